"""
OptiFuel — Nutrition Plan Agent
===============================
Multi-day nutrition plans keyed by sport and diet, meal details,
allergy warnings and the spoken nutritionist tip.
"""

import asyncio
import io
import json
import os
import wave
from typing import Any, Dict, List, Optional

from google.genai import types

from memory.models import MEAL_SLOTS, DailyPlan, Meal, UserProfile
from tools.api_gateway import GATEWAY_CONFIG, get_client, with_retry
from tools.localization import translate

# =============================================================================
# CONFIGURATION
# =============================================================================
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
DATA_DIR = os.path.join(BASE_DIR, "data")

NUTRITION_CONFIG = {
    "plans_file": os.path.join(DATA_DIR, "nutrition_plans.json"),
    "simulated_latency_s": 3.0,
    "default_key": "default",
    "default_diet": "None",
    "tts_voice": "Kore",
    "tts_sample_rate": 24000,
    "tts_channels": 1,
    "tts_sample_width": 2,
}

SLOT_LABEL_KEYS = {
    "breakfast": "breakfast",
    "mid_morning_snack": "midMorningSnack",
    "lunch": "lunch",
    "afternoon_snack": "afternoonSnack",
    "dinner": "dinner",
}

_CACHED_PLANS: Optional[Dict[str, Dict[str, List[Dict[str, Any]]]]] = None


class PlanUnavailableError(Exception):
    """The plan table has neither a matching nor a default plan."""


# =============================================================================
# PLAN TABLE
# =============================================================================
def load_nutrition_plans() -> Dict[str, Dict[str, List[Dict[str, Any]]]]:
    """Read the plan table from disk once; later calls hit the cache."""
    global _CACHED_PLANS
    if _CACHED_PLANS is not None:
        return _CACHED_PLANS

    with open(NUTRITION_CONFIG["plans_file"], "r", encoding="utf-8") as f:
        _CACHED_PLANS = json.load(f)
    print(f"📂 Loaded nutrition plans for {len(_CACHED_PLANS)} sport key(s)")
    return _CACHED_PLANS


def reset_plan_cache() -> None:
    global _CACHED_PLANS
    _CACHED_PLANS = None


def select_plan(plans: Dict[str, Dict[str, List[Dict[str, Any]]]], sport: str, diet: str) -> List[Dict[str, Any]]:
    """
    Pick the raw plan for a sport/diet pair.

    Fallback order:
        plans[sport] (else plans["default"])
        -> [diet] (else ["None"])
        -> plans["default"]["None"]
    """
    default_key = NUTRITION_CONFIG["default_key"]
    default_diet = NUTRITION_CONFIG["default_diet"]
    default_sport_plans = plans.get(default_key, {})

    sport_plans = plans.get(sport) or default_sport_plans
    plan = sport_plans.get(diet) or sport_plans.get(default_diet)
    plan = plan or default_sport_plans.get(default_diet)

    if not plan:
        raise PlanUnavailableError(f"No plan for sport={sport!r}, diet={diet!r} and no default")
    return plan


async def generate_nutrition_plan(profile: UserProfile) -> List[DailyPlan]:
    """Deterministic multi-day plan for the athlete."""
    plans = load_nutrition_plans()
    sport = profile.sport.value
    diet = profile.dietary_restrictions.diet

    raw_plan = select_plan(plans, sport, diet)
    # Paces the loading screen like a real generation call
    await asyncio.sleep(NUTRITION_CONFIG["simulated_latency_s"])

    print(f"🥗 Plan ready: sport='{sport}', diet='{diet}', days={len(raw_plan)}")
    return [DailyPlan(**day) for day in raw_plan]


# =============================================================================
# MEALS
# =============================================================================
def get_meal(plan: List[DailyPlan], day_index: int, slot: str) -> Meal:
    if slot not in MEAL_SLOTS:
        raise KeyError(f"Unknown meal slot: {slot}")
    if not 0 <= day_index < len(plan):
        raise IndexError(f"Day {day_index} is outside the plan")
    return getattr(plan[day_index].meals, slot)


def get_meal_details(meal: Meal) -> Dict[str, Any]:
    """Description, ingredients and preparation for the meal-detail modal."""
    has_details = bool(meal.ingredients) or bool(meal.preparation)
    return {
        "name": meal.name,
        "description": meal.description,
        "ingredients": meal.ingredients or [],
        "preparation": meal.preparation or [],
        "details_available": has_details,
    }


def get_allergy_warning(profile: UserProfile, language: str = "en") -> Optional[Dict[str, str]]:
    """Localized warning naming the athlete's allergies, if any."""
    restrictions = profile.dietary_restrictions
    allergies = [a for a in restrictions.allergies + [restrictions.other_allergy] if a]
    if not allergies:
        return None
    return {
        "title": translate("allergyWarningTitle", language),
        "text": translate("allergyWarningText", language, allergies=", ".join(allergies)),
    }


def export_plan_rows(plan: List[DailyPlan]) -> List[Dict[str, Any]]:
    """One flat row per meal, for tabular/CSV export."""
    rows = []
    for day in plan:
        for slot in MEAL_SLOTS:
            meal: Meal = getattr(day.meals, slot)
            rows.append({
                "day": day.day,
                "slot": slot,
                "meal": meal.name,
                "protein_g": meal.macros.protein,
                "carbs_g": meal.macros.carbs,
                "fats_g": meal.macros.fats,
            })
    return rows


# =============================================================================
# SPEECH
# =============================================================================
async def generate_speech(text: str) -> bytes:
    """
    Read `text` aloud with Gemini TTS.

    Returns:
        Raw 16-bit mono PCM at 24 kHz
    """
    client = get_client()

    async def api_call():
        return await client.aio.models.generate_content(
            model=GATEWAY_CONFIG["tts_model"],
            contents=f"Say with a calm and encouraging tone: {text}",
            config=types.GenerateContentConfig(
                response_modalities=["AUDIO"],
                speech_config=types.SpeechConfig(
                    voice_config=types.VoiceConfig(
                        prebuilt_voice_config=types.PrebuiltVoiceConfig(
                            voice_name=NUTRITION_CONFIG["tts_voice"],
                        )
                    )
                ),
            ),
        )

    response = await with_retry(api_call)

    try:
        audio = response.candidates[0].content.parts[0].inline_data.data
    except (AttributeError, IndexError, TypeError):
        audio = None

    if not audio:
        raise ValueError("No audio data received from API.")
    return audio


def pcm_to_wav(pcm: bytes) -> bytes:
    """Wrap raw TTS PCM in a WAV container for playback."""
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wav:
        wav.setnchannels(NUTRITION_CONFIG["tts_channels"])
        wav.setsampwidth(NUTRITION_CONFIG["tts_sample_width"])
        wav.setframerate(NUTRITION_CONFIG["tts_sample_rate"])
        wav.writeframes(pcm)
    return buffer.getvalue()


__all__ = [
    "NUTRITION_CONFIG",
    "SLOT_LABEL_KEYS",
    "PlanUnavailableError",
    "load_nutrition_plans",
    "reset_plan_cache",
    "select_plan",
    "generate_nutrition_plan",
    "get_meal",
    "get_meal_details",
    "get_allergy_warning",
    "export_plan_rows",
    "generate_speech",
    "pcm_to_wav",
]
