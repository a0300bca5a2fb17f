"""
OptiFuel — Event Planner Agent
==============================
Race-day nutrition recommendations.

Two variants:
  - Static: one global category list from data/event_recommendations.json,
    read once and cached for the life of the process
  - AI: generated per request from the athlete profile, event name/date and
    (optionally) the athlete's location, grounded with Google Maps
"""

import json
import os
from typing import Any, Dict, List, Optional

from google.genai import types

from memory.models import (
    EventRecommendationCategory,
    EventRecommendationResponse,
    GroundingChunk,
    Location,
    UserProfile,
)
from tools.api_gateway import GATEWAY_CONFIG, get_client, response_text, with_retry

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

EVENT_CONFIG = {
    "recommendations_file": os.path.join(BASE_DIR, "data", "event_recommendations.json"),
}

_CACHED_EVENT_RECOMMENDATIONS: Optional[List[EventRecommendationCategory]] = None


# =============================================================================
# STATIC VARIANT
# =============================================================================
def get_event_recommendations() -> List[EventRecommendationCategory]:
    """Global recommendation list, fetched once and cached forever."""
    global _CACHED_EVENT_RECOMMENDATIONS
    if _CACHED_EVENT_RECOMMENDATIONS is not None:
        return _CACHED_EVENT_RECOMMENDATIONS

    with open(EVENT_CONFIG["recommendations_file"], "r", encoding="utf-8") as f:
        raw = json.load(f)
    _CACHED_EVENT_RECOMMENDATIONS = [EventRecommendationCategory(**c) for c in raw]
    print(f"📂 Loaded {len(_CACHED_EVENT_RECOMMENDATIONS)} event recommendation categories")
    return _CACHED_EVENT_RECOMMENDATIONS


def reset_event_cache() -> None:
    global _CACHED_EVENT_RECOMMENDATIONS
    _CACHED_EVENT_RECOMMENDATIONS = None


# =============================================================================
# AI VARIANT
# =============================================================================
def build_event_prompt(
    profile: UserProfile,
    event_name: str,
    event_date: str,
    location: Optional[Location] = None,
) -> str:
    restrictions = profile.dietary_restrictions
    allergies = ", ".join(a for a in restrictions.allergies + [restrictions.other_allergy] if a) or "none"

    prompt = f"""You are an expert sports nutritionist for track and field athletes.

ATHLETE: {profile.name}, {profile.age} years, {profile.gender}
BODY: {profile.height} cm, {profile.weight} kg
DISCIPLINE: {profile.sport.value}
DIET: {restrictions.diet} (allergies: {allergies})
HOME AREA: {profile.geographical_area or "unknown"}
EVENT: {event_name} on {event_date}

Give practical nutrition and hydration recommendations for:
1. The week before the event
2. Race morning
3. During the event
4. Recovery afterwards

Keep it concise, use short headings and bullet points."""

    if location:
        prompt += (
            "\n\nAlso suggest a few places near the athlete where they can buy "
            "suitable pre-race meals or supplies."
        )
    return prompt


def extract_grounding_chunks(response: Any) -> List[GroundingChunk]:
    """Maps sources attached to a grounded response, if any."""
    chunks: List[GroundingChunk] = []
    try:
        metadata = response.candidates[0].grounding_metadata
    except (AttributeError, IndexError, TypeError):
        return chunks

    for chunk in getattr(metadata, "grounding_chunks", None) or []:
        maps = getattr(chunk, "maps", None)
        if maps and getattr(maps, "uri", None):
            chunks.append(GroundingChunk(title=maps.title or maps.uri, uri=maps.uri))
    return chunks


async def generate_event_recommendations(
    profile: UserProfile,
    event_name: str,
    event_date: str,
    location: Optional[Location] = None,
) -> EventRecommendationResponse:
    """Per-request recommendations from Gemini; location adds Maps grounding."""
    client = get_client()
    prompt = build_event_prompt(profile, event_name, event_date, location)

    config = None
    if location:
        config = types.GenerateContentConfig(
            tools=[types.Tool(google_maps=types.GoogleMaps())],
            tool_config=types.ToolConfig(
                retrieval_config=types.RetrievalConfig(
                    lat_lng=types.LatLng(latitude=location.latitude, longitude=location.longitude)
                )
            ),
        )

    async def api_call():
        return await client.aio.models.generate_content(
            model=GATEWAY_CONFIG["text_model"],
            contents=prompt,
            config=config,
        )

    print(f"📅 Event recommendations: '{event_name}' on {event_date} (location={'yes' if location else 'no'})")
    response = await with_retry(api_call)

    return EventRecommendationResponse(
        text=response_text(response),
        grounding_chunks=extract_grounding_chunks(response),
    )


__all__ = [
    "EVENT_CONFIG",
    "get_event_recommendations",
    "reset_event_cache",
    "build_event_prompt",
    "extract_grounding_chunks",
    "generate_event_recommendations",
]
