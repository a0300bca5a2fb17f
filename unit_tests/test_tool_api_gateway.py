# unit_tests/test_tool_api_gateway.py
"""
Unit Tests for the Gemini API Gateway
=====================================
Retry policy and error classification. No network calls.

Run with: python -m pytest unit_tests/test_tool_api_gateway.py -v
"""

import asyncio
import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from google.genai import errors as genai_errors

from tools import api_gateway
from tools.api_gateway import (
    ErrorKind,
    GatewayError,
    backoff_delay,
    classify_error,
    error_message_key,
    with_retry,
)


def rate_limited():
    return GatewayError(ErrorKind.RATE_LIMIT, "429 RESOURCE_EXHAUSTED")


class FlakyCall:
    """Fails with `error` for the first `failures` calls, then returns 'ok'."""

    def __init__(self, failures, error_factory=rate_limited):
        self.failures = failures
        self.error_factory = error_factory
        self.attempts = 0

    async def __call__(self):
        self.attempts += 1
        if self.attempts <= self.failures:
            raise self.error_factory()
        return "ok"


# =============================================================================
# RETRY
# =============================================================================

def test_succeeds_after_two_rate_limits(backoff_sleeps):
    print("\n" + "=" * 60)
    print("TEST: Retry after rate limits")
    print("=" * 60)

    call = FlakyCall(failures=2)
    result = asyncio.run(with_retry(call))

    assert result == "ok"
    assert call.attempts == 3
    assert len(backoff_sleeps) == 2
    assert 2 <= backoff_sleeps[0] < 3
    assert 4 <= backoff_sleeps[1] < 5
    print(f"✅ Delays: {backoff_sleeps}")


def test_gives_up_after_three_retries(backoff_sleeps):
    call = FlakyCall(failures=100)

    with pytest.raises(GatewayError) as exc_info:
        asyncio.run(with_retry(call))

    assert exc_info.value.kind is ErrorKind.RATE_LIMIT
    assert call.attempts == 4
    assert len(backoff_sleeps) == 3


def test_other_errors_are_not_retried(backoff_sleeps):
    call = FlakyCall(failures=1, error_factory=lambda: ValueError("bad request"))

    with pytest.raises(ValueError):
        asyncio.run(with_retry(call))

    assert call.attempts == 1
    assert backoff_sleeps == []


def test_custom_retry_ceiling(backoff_sleeps):
    call = FlakyCall(failures=100)
    with pytest.raises(GatewayError):
        asyncio.run(with_retry(call, max_retries=1))
    assert call.attempts == 2


def test_backoff_grows_exponentially(monkeypatch):
    monkeypatch.setattr(api_gateway.random, "random", lambda: 0.0)
    assert [backoff_delay(n) for n in (1, 2, 3)] == [2, 4, 8]


# =============================================================================
# CLASSIFICATION
# =============================================================================

def test_classify_api_errors():
    exhausted = genai_errors.ClientError(
        429,
        {"error": {"code": 429, "message": "Quota exceeded", "status": "RESOURCE_EXHAUSTED"}},
    )
    not_found = genai_errors.ClientError(
        404,
        {"error": {"code": 404, "message": "Model not found", "status": "NOT_FOUND"}},
    )

    assert classify_error(exhausted) is ErrorKind.RATE_LIMIT
    assert classify_error(not_found) is ErrorKind.GENERIC


def test_classify_wrapped_errors_by_message():
    assert classify_error(RuntimeError("You exceeded your current quota")) is ErrorKind.RATE_LIMIT
    assert classify_error(RuntimeError("RESOURCE_EXHAUSTED")) is ErrorKind.RATE_LIMIT
    assert classify_error(RuntimeError("connection reset")) is ErrorKind.GENERIC


def test_classify_gateway_error_keeps_its_kind():
    assert classify_error(GatewayError(ErrorKind.MISCONFIGURED)) is ErrorKind.MISCONFIGURED


def test_error_message_keys():
    assert error_message_key(rate_limited()) == "rateLimitError"
    assert error_message_key(RuntimeError("boom")) == "genericError"
    assert error_message_key(RuntimeError("boom"), "genericAssistantError") == "genericAssistantError"


def test_missing_api_key_is_misconfigured(monkeypatch):
    monkeypatch.setattr(api_gateway, "_CLIENT", None)
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)

    with pytest.raises(GatewayError) as exc_info:
        api_gateway.get_client()
    assert exc_info.value.kind is ErrorKind.MISCONFIGURED
