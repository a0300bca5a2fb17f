"""
OptiFuel — Gemini API Gateway
=============================
Single entry point for outbound calls to the Gemini API.

- Lazily builds one google-genai client from GOOGLE_API_KEY (.env supported)
- Classifies failures into a typed ErrorKind at the boundary
- Retries rate-limited calls with exponential backoff + jitter

The payment gateway does not go through here and is never retried.
"""

import asyncio
import os
import random
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, TypeVar

from dotenv import load_dotenv
from google import genai
from google.genai import errors as genai_errors

load_dotenv()

T = TypeVar("T")

# =============================================================================
# CONFIGURATION
# =============================================================================
GATEWAY_CONFIG = {
    "max_retries": 3,
    "backoff_base_s": 2,
    "max_jitter_s": 1.0,
    "text_model": "gemini-2.5-flash",
    "chat_model": "gemini-flash-lite-latest",
    "tts_model": "gemini-2.5-flash-preview-tts",
}

RATE_LIMIT_SIGNATURES = ("RESOURCE_EXHAUSTED", "exceeded your current quota")

GEMINI_CONFIGURED = bool(os.getenv("GOOGLE_API_KEY"))
if not GEMINI_CONFIGURED:
    print("⚠️ API Gateway: GOOGLE_API_KEY not found in .env")

_CLIENT: Optional[genai.Client] = None


# =============================================================================
# ERROR CLASSIFICATION
# =============================================================================
class ErrorKind(Enum):
    """Failure categories the rest of the app dispatches on."""
    RATE_LIMIT = "rate_limit"
    MISCONFIGURED = "misconfigured"
    GENERIC = "generic"


class GatewayError(Exception):
    """An error already classified at the gateway boundary."""

    def __init__(self, kind: ErrorKind, message: str = ""):
        super().__init__(message or kind.value)
        self.kind = kind


def classify_error(error: BaseException) -> ErrorKind:
    """Map any failure raised by an AI call onto an ErrorKind."""
    if isinstance(error, GatewayError):
        return error.kind

    if isinstance(error, genai_errors.APIError):
        if error.code == 429 or error.status == "RESOURCE_EXHAUSTED":
            return ErrorKind.RATE_LIMIT
        return ErrorKind.GENERIC

    # Wrapped errors (e.g. re-raised by the ADK runner) only keep the text
    text = str(error)
    if any(signature in text for signature in RATE_LIMIT_SIGNATURES):
        return ErrorKind.RATE_LIMIT
    return ErrorKind.GENERIC


def error_message_key(error: BaseException, generic_key: str = "genericError") -> str:
    """Localization key to show the user for a failed AI call."""
    if classify_error(error) is ErrorKind.RATE_LIMIT:
        return "rateLimitError"
    return generic_key


# =============================================================================
# CLIENT
# =============================================================================
def get_client() -> genai.Client:
    """Return the shared Gemini client, creating it on first use."""
    global _CLIENT
    if _CLIENT is None:
        api_key = os.getenv("GOOGLE_API_KEY")
        if not api_key:
            raise GatewayError(ErrorKind.MISCONFIGURED, "GOOGLE_API_KEY is not set")
        _CLIENT = genai.Client(api_key=api_key)
        print("✅ API Gateway: Gemini client ready")
    return _CLIENT


# =============================================================================
# RETRY
# =============================================================================
async def _backoff_sleep(seconds: float) -> None:
    await asyncio.sleep(seconds)


def backoff_delay(attempt: int) -> float:
    """Seconds to wait before retry number `attempt` (1-based)."""
    base = GATEWAY_CONFIG["backoff_base_s"] ** attempt
    return base + random.random() * GATEWAY_CONFIG["max_jitter_s"]


async def with_retry(
    api_call: Callable[[], Awaitable[T]],
    max_retries: Optional[int] = None,
) -> T:
    """
    Run an async AI call, retrying on rate limits.

    The call is attempted once plus up to `max_retries` more times while it
    keeps failing with a rate-limit error. Any other error, or the last
    rate-limit error, is re-raised unchanged.

    Args:
        api_call: Zero-argument coroutine factory performing the request
        max_retries: Retry ceiling (defaults to GATEWAY_CONFIG["max_retries"])

    Returns:
        Whatever the successful call returned
    """
    ceiling = GATEWAY_CONFIG["max_retries"] if max_retries is None else max_retries
    attempt = 0

    while True:
        try:
            return await api_call()
        except Exception as e:
            if classify_error(e) is not ErrorKind.RATE_LIMIT or attempt >= ceiling:
                raise
            attempt += 1
            delay = backoff_delay(attempt)
            print(f"⚠️ Rate limit exceeded. Retrying in {delay * 1000:.0f}ms... (Attempt {attempt})")
            await _backoff_sleep(delay)


def response_text(response: Any) -> str:
    """Text of a generate_content response, or an empty string."""
    text = getattr(response, "text", None)
    return text.strip() if text else ""


__all__ = [
    "GATEWAY_CONFIG",
    "RATE_LIMIT_SIGNATURES",
    "GEMINI_CONFIGURED",
    "ErrorKind",
    "GatewayError",
    "classify_error",
    "error_message_key",
    "get_client",
    "backoff_delay",
    "with_retry",
    "response_text",
]
