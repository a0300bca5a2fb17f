# unit_tests/test_tool_localization.py
"""
Unit Tests for Localization
===========================
Run with: python -m pytest unit_tests/test_tool_localization.py -v
"""

import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from tools.localization import SUPPORTED_LANGUAGES, TRANSLATIONS, is_supported_language, translate


def test_english_and_swahili_strings():
    assert translate("orderPlaced", "en") == "Order Placed!"
    assert translate("orderPlaced", "sw") != translate("orderPlaced", "en")


def test_missing_key_falls_back_to_english(monkeypatch):
    monkeypatch.setitem(TRANSLATIONS["en"], "onlyInEnglish", "Only English")
    assert translate("onlyInEnglish", "sw") == "Only English"


def test_unknown_key_returns_key():
    assert translate("definitelyNotAKey", "sw") == "definitelyNotAKey"


def test_unknown_language_uses_english():
    assert translate("reset", "fr") == TRANSLATIONS["en"]["reset"]


def test_placeholders_are_filled():
    text = translate("orderPlacedMessage", "en", meal="Kuku Salad Bowl", partner="Nairobi Bites")
    assert "Kuku Salad Bowl" in text
    assert "Nairobi Bites" in text
    assert "{" not in text


def test_both_tables_have_the_same_keys():
    """Every English string has a Swahili counterpart."""
    missing = set(TRANSLATIONS["en"]) - set(TRANSLATIONS["sw"])
    assert not missing, f"Missing Swahili keys: {sorted(missing)}"


def test_supported_languages():
    assert SUPPORTED_LANGUAGES == ["en", "sw"]
    assert is_supported_language("sw")
    assert not is_supported_language("de")
