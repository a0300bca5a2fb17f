import sys
from pathlib import Path

import pytest

# Add root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from agents import delivery_flow, event_agent, nutrition_agent, upgrade_flow
from memory.app_state import AppState
from memory.models import DietaryRestrictions, Macros, Meal, SportType, UserProfile
from tools import api_gateway, delivery_options, mpesa_gateway


class PauseRecorder:
    """Stands in for the flows' sleep helper; remembers every delay."""

    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


class FakeGateway:
    """Payment gateway double that records calls and answers like the sandbox."""

    def __init__(self, succeed=None):
        self.calls = []
        self.succeed = succeed

    async def __call__(self, phone_number, amount):
        self.calls.append((phone_number, amount))
        ok = self.succeed if self.succeed is not None else (
            phone_number.startswith("254") and len(phone_number) == 12
        )
        message = "STK push sent successfully." if ok else "Invalid phone number for sandbox."
        return {"success": ok, "message": message}


@pytest.fixture(autouse=True)
def no_delays(monkeypatch):
    """Every simulated latency becomes zero."""
    monkeypatch.setitem(nutrition_agent.NUTRITION_CONFIG, "simulated_latency_s", 0)
    monkeypatch.setitem(delivery_options.DELIVERY_CONFIG, "simulated_delay_s", 0)
    monkeypatch.setitem(mpesa_gateway.MPESA_CONFIG, "simulated_delay_s", 0)


@pytest.fixture(autouse=True)
def fresh_caches():
    nutrition_agent.reset_plan_cache()
    event_agent.reset_event_cache()
    yield
    nutrition_agent.reset_plan_cache()
    event_agent.reset_event_cache()


@pytest.fixture
def backoff_sleeps(monkeypatch):
    recorder = PauseRecorder()
    monkeypatch.setattr(api_gateway, "_backoff_sleep", recorder)
    return recorder.calls


@pytest.fixture
def flow_pauses(monkeypatch):
    recorder = PauseRecorder()
    monkeypatch.setattr(delivery_flow, "_pause", recorder)
    monkeypatch.setattr(upgrade_flow, "_pause", recorder)
    return recorder.calls


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest.fixture
def make_profile():
    def _make(sport=SportType.SPRINTS, diet="None", allergies=None, other_allergy="", **overrides):
        data = {
            "name": "Faith",
            "age": 24,
            "gender": "Female",
            "geographical_area": "Nairobi, Kenya",
            "height": 168,
            "weight": 56,
            "sport": sport,
            "dietary_restrictions": DietaryRestrictions(
                diet=diet,
                allergies=allergies or [],
                other_allergy=other_allergy,
            ),
        }
        data.update(overrides)
        return UserProfile(**data)
    return _make


@pytest.fixture
def app_state(make_profile):
    state = AppState()
    state.set_profile(make_profile())
    return state


@pytest.fixture
def salmon_meal():
    return Meal(
        name="Salmon with Sweet Potato",
        description="Omega-3 fats and replenishing carbohydrates.",
        macros=Macros(protein=38, carbs=48, fats=20),
    )
