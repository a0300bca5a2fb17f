# unit_tests/test_agent_event.py
"""
Unit Tests for the Event Planner Agent
======================================
Run with: python -m pytest unit_tests/test_agent_event.py -v
"""

import asyncio
import sys
from pathlib import Path
from types import SimpleNamespace

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from agents import event_agent
from agents.event_agent import (
    EVENT_CONFIG,
    build_event_prompt,
    extract_grounding_chunks,
    generate_event_recommendations,
    get_event_recommendations,
)
from memory.models import Location, SportType


class FakeModels:
    def __init__(self, response):
        self.response = response
        self.requests = []

    async def generate_content(self, **kwargs):
        self.requests.append(kwargs)
        return self.response


def grounded_response(text="Eat oats 3 hours before.", places=()):
    chunks = [SimpleNamespace(maps=SimpleNamespace(title=title, uri=uri)) for title, uri in places]
    return SimpleNamespace(
        text=text,
        candidates=[SimpleNamespace(grounding_metadata=SimpleNamespace(grounding_chunks=chunks))],
    )


def install_client(monkeypatch, response):
    models = FakeModels(response)
    monkeypatch.setattr(
        event_agent, "get_client", lambda: SimpleNamespace(aio=SimpleNamespace(models=models))
    )
    return models


# =============================================================================
# STATIC RECOMMENDATIONS
# =============================================================================

def test_static_recommendations():
    categories = get_event_recommendations()
    assert [c.category for c in categories] == [
        "The Week Before", "Race Morning", "During the Event", "Recovery",
    ]
    assert all(c.recommendations for c in categories)


def test_static_recommendations_are_cached(tmp_path, monkeypatch):
    source = Path(EVENT_CONFIG["recommendations_file"])
    copy = tmp_path / "events.json"
    copy.write_text(source.read_text(encoding="utf-8"), encoding="utf-8")
    monkeypatch.setitem(EVENT_CONFIG, "recommendations_file", str(copy))

    first = get_event_recommendations()
    copy.unlink()
    assert get_event_recommendations() is first


# =============================================================================
# AI RECOMMENDATIONS
# =============================================================================

def test_prompt_mentions_athlete_and_event(make_profile):
    profile = make_profile(SportType.MARATHON, "Vegetarian", allergies=["Dairy"])
    prompt = build_event_prompt(profile, "Eldoret City Marathon", "2026-11-01")

    assert "Marathon & Road Races" in prompt
    assert "Vegetarian" in prompt and "Dairy" in prompt
    assert "Eldoret City Marathon" in prompt and "2026-11-01" in prompt
    assert "near the athlete" not in prompt


def test_ai_recommendations_with_location(make_profile, monkeypatch):
    print("\n" + "=" * 60)
    print("TEST: Maps-grounded recommendations")
    print("=" * 60)

    models = install_client(monkeypatch, grounded_response(places=[
        ("Java House Eldoret", "https://maps.google.com/?cid=1"),
        ("Naivas Eldoret", "https://maps.google.com/?cid=2"),
    ]))
    location = Location(latitude=0.5143, longitude=35.2698)

    result = asyncio.run(generate_event_recommendations(
        make_profile(SportType.MARATHON), "Eldoret City Marathon", "2026-11-01", location
    ))

    assert result.text == "Eat oats 3 hours before."
    assert [c.title for c in result.grounding_chunks] == ["Java House Eldoret", "Naivas Eldoret"]

    config = models.requests[0]["config"]
    assert config.tools[0].google_maps is not None
    lat_lng = config.tool_config.retrieval_config.lat_lng
    assert (lat_lng.latitude, lat_lng.longitude) == (0.5143, 35.2698)
    print(f"✅ {len(result.grounding_chunks)} places returned")


def test_ai_recommendations_without_location(make_profile, monkeypatch):
    models = install_client(monkeypatch, grounded_response())

    result = asyncio.run(generate_event_recommendations(
        make_profile(), "Nairobi Relays", "2026-12-05"
    ))

    assert result.grounding_chunks == []
    assert models.requests[0]["config"] is None


def test_grounding_chunks_skip_entries_without_maps():
    response = SimpleNamespace(candidates=[SimpleNamespace(grounding_metadata=SimpleNamespace(
        grounding_chunks=[
            SimpleNamespace(maps=None, web=SimpleNamespace(uri="https://example.com")),
            SimpleNamespace(maps=SimpleNamespace(title=None, uri="https://maps.google.com/?cid=3")),
        ]
    ))])
    chunks = extract_grounding_chunks(response)
    assert len(chunks) == 1
    assert chunks[0].title == chunks[0].uri == "https://maps.google.com/?cid=3"


def test_grounding_chunks_missing_metadata():
    assert extract_grounding_chunks(SimpleNamespace(candidates=[])) == []
    assert extract_grounding_chunks(SimpleNamespace()) == []
