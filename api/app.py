"""
OptiFuel — FastAPI Backend
==========================
HTTP surface for the Streamlit dashboard. Every route is keyed by `user_id`;
each user gets one in-memory UserSession holding the app state, both modal
flows, the hydration tracker and the generated plan.
"""

import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel, Field
import uvicorn

from dotenv import load_dotenv
load_dotenv()

from agents.assistant_agent import ask_assistant, get_sessions
from agents.delivery_flow import DeliveryFlow, InvalidTransitionError, UnknownOptionError
from agents.event_agent import generate_event_recommendations, get_event_recommendations
from agents.nutrition_agent import (
    PlanUnavailableError,
    export_plan_rows,
    generate_nutrition_plan,
    generate_speech,
    get_allergy_warning,
    get_meal,
    get_meal_details,
    pcm_to_wav,
)
from agents.upgrade_flow import UpgradeFlow, UpgradeFlowError
from memory.app_state import AppState, ProfileMissingError, SessionRegistry
from memory.models import (
    ChatMessage,
    DailyPlan,
    DietaryRestrictions,
    Location,
    Meal,
    MealDeliveryOption,
    UserProfile,
)
from tools.api_gateway import GEMINI_CONFIGURED, ErrorKind, classify_error, error_message_key
from tools.hydration import HydrationTracker

API_VERSION = "1.0.0"


# =============================================================================
# USER SESSION
# =============================================================================
class UserSession:
    """Everything the dashboard holds for one user between requests."""

    def __init__(self, user_id: str):
        self.user_id = user_id
        self.state = AppState()
        self.delivery = DeliveryFlow(
            translate_fn=self.state.translate,
            on_order_placed=self._order_placed,
        )
        self.upgrade = UpgradeFlow(
            on_upgraded=self._upgraded,
            translate_fn=self.state.translate,
        )
        self.hydration = HydrationTracker()
        self.plan: Optional[List[DailyPlan]] = None
        self.meal_detail: Optional[Meal] = None
        self.chat_history: List[ChatMessage] = []

    def _order_placed(self, meal: Meal, option: MealDeliveryOption) -> None:
        self.state.add_notification(
            self.state.translate(
                "orderPlacedMessage",
                meal=option.meal_name,
                partner=option.partner_name,
            )
        )

    def _upgraded(self) -> None:
        if self.state.profile is None:
            print("⚠️ Upgrade finished after the profile was reset; ignoring")
            return
        self.state.upgrade_to_premium()
        self.state.add_notification(self.state.translate("upgradeSuccessNotification"))

    def reset(self) -> None:
        self.delivery.close()
        self.upgrade.close()
        self.state.reset()
        self.hydration.reset()
        self.plan = None
        self.meal_detail = None
        self.chat_history = []


SESSIONS = SessionRegistry(UserSession)


def get_session(user_id: str) -> UserSession:
    return SESSIONS.get(user_id)


# =============================================================================
# PYDANTIC MODELS
# =============================================================================
class ProfileRequest(BaseModel):
    user_id: str = "default"
    name: str
    age: int
    gender: str
    geographical_area: str = ""
    height: float
    weight: float
    sport: str
    dietary_restrictions: DietaryRestrictions = Field(default_factory=DietaryRestrictions)


class ProfileUpdateRequest(BaseModel):
    user_id: str = "default"
    name: Optional[str] = None
    age: Optional[int] = None
    gender: Optional[str] = None
    geographical_area: Optional[str] = None
    height: Optional[float] = None
    weight: Optional[float] = None
    sport: Optional[str] = None
    dietary_restrictions: Optional[DietaryRestrictions] = None


class LanguageRequest(BaseModel):
    user_id: str = "default"
    language: str


class UserRequest(BaseModel):
    user_id: str = "default"


class NotificationReadRequest(BaseModel):
    user_id: str = "default"
    notification_id: str


class MealRequest(BaseModel):
    user_id: str = "default"
    day_index: int = 0
    slot: str


class DayRequest(BaseModel):
    user_id: str = "default"
    day_index: int = 0


class OptionRequest(BaseModel):
    user_id: str = "default"
    partner_name: str
    meal_name: str


class PhoneRequest(BaseModel):
    user_id: str = "default"
    phone_number: str


class PaymentRequest(BaseModel):
    user_id: str = "default"
    phone_number: Optional[str] = None


class PinRequest(BaseModel):
    user_id: str = "default"
    pin: str


class EventRequest(BaseModel):
    user_id: str = "default"
    event_name: str
    event_date: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class HydrationRequest(BaseModel):
    user_id: str = "default"
    amount_ml: int


class ChatRequest(BaseModel):
    message: str
    user_id: str = "default"


class ChatResponse(BaseModel):
    status: str
    reply: str
    timestamp: str = Field(default_factory=lambda: datetime.now().isoformat())


# =============================================================================
# APP SETUP
# =============================================================================
app = FastAPI(
    title="OptiFuel API",
    version=API_VERSION,
    description="Nutrition & Performance Backend for Track and Field Athletes"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================
def require_profile(session: UserSession) -> UserProfile:
    try:
        return session.state.require_profile()
    except ProfileMissingError:
        raise HTTPException(status_code=404, detail=session.state.translate("profileRequired"))


def require_plan(session: UserSession) -> List[DailyPlan]:
    if not session.plan:
        raise HTTPException(status_code=404, detail="No nutrition plan has been generated yet")
    return session.plan


def ai_error(session: UserSession, error: Exception, generic_key: str = "genericError") -> HTTPException:
    """Turn a failed AI call into an HTTP error carrying a localized message."""
    kind = classify_error(error)
    status_code = {
        ErrorKind.RATE_LIMIT: 429,
        ErrorKind.MISCONFIGURED: 503,
    }.get(kind, 502)
    print(f"❌ AI call failed ({kind.value}): {error}")
    return HTTPException(
        status_code=status_code,
        detail=session.state.translate(error_message_key(error, generic_key)),
    )


def transition(action, *args):
    """Run a flow action, mapping flow errors onto HTTP errors."""
    try:
        return action(*args)
    except (InvalidTransitionError, UpgradeFlowError) as e:
        raise HTTPException(status_code=409, detail=str(e))
    except UnknownOptionError as e:
        raise HTTPException(status_code=404, detail=str(e))


async def async_transition(action, *args):
    try:
        return await action(*args)
    except (InvalidTransitionError, UpgradeFlowError) as e:
        raise HTTPException(status_code=409, detail=str(e))
    except UnknownOptionError as e:
        raise HTTPException(status_code=404, detail=str(e))


def notifications_payload(session: UserSession) -> Dict[str, Any]:
    return {
        "unread_count": session.state.unread_count,
        "notifications": [n.model_dump(mode="json") for n in session.state.notifications],
    }


# =============================================================================
# ENDPOINTS
# =============================================================================

# -----------------------------------------------------------------------------
# Health & Root
# -----------------------------------------------------------------------------
@app.get("/")
async def root():
    """Root endpoint for health checking."""
    return {
        "status": "online",
        "system": "OptiFuel",
        "version": API_VERSION,
        "docs": "/docs",
        "gemini_configured": GEMINI_CONFIGURED,
    }


@app.get("/api/v1/health")
async def api_health():
    """Detailed health check endpoint."""
    return {
        "status": "online",
        "gemini_configured": GEMINI_CONFIGURED,
        "active_sessions": len(SESSIONS),
        "timestamp": datetime.now().isoformat()
    }


@app.get("/api/v1/dashboard")
async def get_dashboard(user_id: str = Query("default")):
    """Everything the dashboard shell needs in one call."""
    session = get_session(user_id)
    return {
        **session.state.to_dict(),
        "has_plan": bool(session.plan),
        "hydration": session.hydration.to_dict(),
        "delivery_step": session.delivery.step,
        "upgrade_step": session.upgrade.step,
    }


# -----------------------------------------------------------------------------
# Profile
# -----------------------------------------------------------------------------
@app.post("/api/v1/profile")
async def create_profile(request: ProfileRequest):
    """Create (or replace) the athlete profile."""
    session = get_session(request.user_id)
    data = request.model_dump(exclude={"user_id"})
    current = session.state.profile
    if current is not None:
        data["subscription"] = current.subscription

    try:
        profile = UserProfile(**data)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    session.state.set_profile(profile)
    session.plan = None
    print(f"✅ Profile saved: {profile.name} ({profile.sport.value})")
    return {"status": "success", "profile": profile.model_dump(mode="json")}


@app.get("/api/v1/profile")
async def get_profile(user_id: str = Query("default")):
    """Get user profile."""
    session = get_session(user_id)
    profile = require_profile(session)
    return {"status": "success", "profile": profile.model_dump(mode="json")}


@app.post("/api/v1/profile/update")
async def update_profile(request: ProfileUpdateRequest):
    """Update user profile."""
    session = get_session(request.user_id)
    require_profile(session)
    changes = request.model_dump(exclude={"user_id"}, exclude_none=True)

    try:
        profile = session.state.update_profile(**changes)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return {"status": "updated", "profile": profile.model_dump(mode="json")}


@app.post("/api/v1/profile/reset")
async def reset_profile(request: UserRequest):
    """Drop the profile and every piece of session state."""
    session = get_session(request.user_id)
    session.reset()
    await get_sessions().reset(request.user_id)
    print(f"🔄 Session reset for user: {request.user_id}")
    return {"status": "reset"}


@app.post("/api/v1/language")
async def set_language(request: LanguageRequest):
    session = get_session(request.user_id)
    try:
        session.state.set_language(request.language)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return {"status": "success", "language": session.state.language}


# -----------------------------------------------------------------------------
# Notifications
# -----------------------------------------------------------------------------
@app.get("/api/v1/notifications")
async def list_notifications(user_id: str = Query("default")):
    return notifications_payload(get_session(user_id))


@app.post("/api/v1/notifications/read")
async def mark_notification_read(request: NotificationReadRequest):
    session = get_session(request.user_id)
    if not session.state.mark_notification_read(request.notification_id):
        raise HTTPException(status_code=404, detail="Notification not found")
    return notifications_payload(session)


@app.post("/api/v1/notifications/read-all")
async def mark_all_notifications_read(request: UserRequest):
    session = get_session(request.user_id)
    session.state.mark_all_notifications_read()
    return notifications_payload(session)


# -----------------------------------------------------------------------------
# Nutrition Plan
# -----------------------------------------------------------------------------
@app.post("/api/v1/nutrition/plan")
async def create_nutrition_plan(request: UserRequest):
    """Generate the multi-day plan for the current profile."""
    session = get_session(request.user_id)
    profile = require_profile(session)

    print(f"\n🥗 PLAN REQUEST: {profile.name}, sport='{profile.sport.value}'")
    try:
        plan = await generate_nutrition_plan(profile)
    except (PlanUnavailableError, OSError, ValueError) as e:
        print(f"❌ Plan Error: {e}")
        raise HTTPException(status_code=500, detail=session.state.translate("planError"))

    session.plan = plan
    session.state.add_notification(session.state.translate("planReady"))

    return {
        "status": "success",
        "plan": [day.model_dump(mode="json") for day in plan],
        "allergy_warning": get_allergy_warning(profile, session.state.language),
    }


@app.get("/api/v1/nutrition/plan")
async def get_nutrition_plan(user_id: str = Query("default")):
    session = get_session(user_id)
    plan = require_plan(session)
    return {"status": "success", "plan": [day.model_dump(mode="json") for day in plan]}


@app.get("/api/v1/nutrition/plan/export")
async def export_nutrition_plan(user_id: str = Query("default")):
    """Flat per-meal rows for the dashboard's CSV download."""
    session = get_session(user_id)
    return {"status": "success", "rows": export_plan_rows(require_plan(session))}


@app.get("/api/v1/nutrition/allergy-warning")
async def allergy_warning(user_id: str = Query("default")):
    session = get_session(user_id)
    profile = require_profile(session)
    return {"warning": get_allergy_warning(profile, session.state.language)}


@app.post("/api/v1/nutrition/meal-details")
async def open_meal_details(request: MealRequest):
    session = get_session(request.user_id)
    plan = require_plan(session)
    try:
        meal = get_meal(plan, request.day_index, request.slot)
    except (KeyError, IndexError) as e:
        raise HTTPException(status_code=404, detail=str(e))

    session.meal_detail = meal
    return {"status": "open", "details": get_meal_details(meal)}


@app.post("/api/v1/nutrition/meal-details/close")
async def close_meal_details(request: UserRequest):
    session = get_session(request.user_id)
    session.meal_detail = None
    return {"status": "closed"}


@app.post("/api/v1/nutrition/tip/speech")
async def tip_speech(request: DayRequest):
    """Nutritionist tip for one day, read aloud and returned as WAV."""
    session = get_session(request.user_id)
    plan = require_plan(session)
    if not 0 <= request.day_index < len(plan):
        raise HTTPException(status_code=404, detail=f"Day {request.day_index} is outside the plan")

    tip = plan[request.day_index].nutritionist_tip
    if not tip:
        raise HTTPException(status_code=404, detail="This day has no nutritionist tip")

    try:
        pcm = await generate_speech(tip)
    except Exception as e:
        raise ai_error(session, e)

    return Response(content=pcm_to_wav(pcm), media_type="audio/wav")


# -----------------------------------------------------------------------------
# Delivery
# -----------------------------------------------------------------------------
@app.post("/api/v1/delivery/open")
async def open_delivery(request: MealRequest):
    """Open the delivery modal for one meal of the plan."""
    session = get_session(request.user_id)
    profile = require_profile(session)
    plan = require_plan(session)
    try:
        meal = get_meal(plan, request.day_index, request.slot)
    except (KeyError, IndexError) as e:
        raise HTTPException(status_code=404, detail=str(e))

    await session.delivery.open(meal, profile.geographical_area)
    return session.delivery.snapshot()


@app.get("/api/v1/delivery/state")
async def delivery_state(user_id: str = Query("default")):
    return get_session(user_id).delivery.snapshot()


@app.post("/api/v1/delivery/compare-mode")
async def toggle_compare_mode(request: UserRequest):
    session = get_session(request.user_id)
    transition(session.delivery.toggle_compare_mode)
    return session.delivery.snapshot()


@app.post("/api/v1/delivery/compare-item")
async def toggle_comparison_item(request: OptionRequest):
    session = get_session(request.user_id)
    transition(session.delivery.toggle_comparison_item, (request.partner_name, request.meal_name))
    return session.delivery.snapshot()


@app.post("/api/v1/delivery/compare")
async def compare_selected(request: UserRequest):
    session = get_session(request.user_id)
    transition(session.delivery.compare_selected)
    return session.delivery.snapshot()


@app.post("/api/v1/delivery/select")
async def select_option(request: OptionRequest):
    session = get_session(request.user_id)
    transition(session.delivery.select_option, (request.partner_name, request.meal_name))
    return session.delivery.snapshot()


@app.post("/api/v1/delivery/back")
async def delivery_back(request: UserRequest):
    session = get_session(request.user_id)
    transition(session.delivery.back)
    return session.delivery.snapshot()


@app.post("/api/v1/delivery/confirm")
async def confirm_purchase(request: UserRequest):
    session = get_session(request.user_id)
    transition(session.delivery.confirm_purchase)
    return session.delivery.snapshot()


@app.post("/api/v1/delivery/phone")
async def set_delivery_phone(request: PhoneRequest):
    session = get_session(request.user_id)
    transition(session.delivery.set_phone_number, request.phone_number)
    return session.delivery.snapshot()


@app.post("/api/v1/delivery/pay")
async def submit_delivery_payment(request: PaymentRequest):
    """Run the simulated STK push for the selected option."""
    session = get_session(request.user_id)
    print(f"💳 Delivery payment requested by {request.user_id}")
    await async_transition(session.delivery.submit_payment, request.phone_number)
    return session.delivery.snapshot()


@app.post("/api/v1/delivery/close")
async def close_delivery(request: UserRequest):
    session = get_session(request.user_id)
    session.delivery.close()
    return session.delivery.snapshot()


# -----------------------------------------------------------------------------
# Premium Upgrade
# -----------------------------------------------------------------------------
@app.get("/api/v1/upgrade/state")
async def upgrade_state(user_id: str = Query("default")):
    return get_session(user_id).upgrade.snapshot()


@app.post("/api/v1/upgrade/start")
async def start_upgrade(request: UserRequest):
    session = get_session(request.user_id)
    profile = require_profile(session)
    if profile.is_premium:
        raise HTTPException(status_code=409, detail="Already on the Premium plan")
    session.upgrade.start()
    return session.upgrade.snapshot()


@app.post("/api/v1/upgrade/phone")
async def submit_upgrade_phone(request: PhoneRequest):
    session = get_session(request.user_id)
    transition(session.upgrade.submit_phone, request.phone_number)
    return session.upgrade.snapshot()


@app.post("/api/v1/upgrade/confirm")
async def confirm_upgrade(request: UserRequest):
    session = get_session(request.user_id)
    transition(session.upgrade.confirm)
    return session.upgrade.snapshot()


@app.post("/api/v1/upgrade/pin")
async def submit_upgrade_pin(request: PinRequest):
    session = get_session(request.user_id)
    print(f"💳 Upgrade payment requested by {request.user_id}")
    await async_transition(session.upgrade.submit_pin, request.pin)
    return session.upgrade.snapshot()


@app.post("/api/v1/upgrade/close")
async def close_upgrade(request: UserRequest):
    session = get_session(request.user_id)
    session.upgrade.close()
    profile = session.state.profile
    return {
        **session.upgrade.snapshot(),
        "subscription": profile.subscription if profile else None,
    }


# -----------------------------------------------------------------------------
# Event Planner
# -----------------------------------------------------------------------------
@app.get("/api/v1/events/recommendations")
async def static_event_recommendations():
    """General race-day guidance, the same for every athlete."""
    try:
        categories = get_event_recommendations()
    except (OSError, ValueError) as e:
        print(f"❌ Event recommendations error: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    return {"status": "success", "categories": [c.model_dump() for c in categories]}


@app.post("/api/v1/events/recommendations")
async def ai_event_recommendations(request: EventRequest):
    """Personalized event plan (Premium only)."""
    session = get_session(request.user_id)
    profile = require_profile(session)
    if not profile.is_premium:
        raise HTTPException(status_code=403, detail=session.state.translate("premiumRequired"))

    location = None
    if request.latitude is not None and request.longitude is not None:
        try:
            location = Location(latitude=request.latitude, longitude=request.longitude)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))

    try:
        result = await generate_event_recommendations(
            profile, request.event_name, request.event_date, location
        )
    except Exception as e:
        raise ai_error(session, e)

    return {"status": "success", **result.model_dump()}


# -----------------------------------------------------------------------------
# Chat
# -----------------------------------------------------------------------------
@app.post("/api/v1/chat/ask", response_model=ChatResponse)
async def chat_ask(request: ChatRequest):
    """Chat with the NutriAthlete assistant."""
    session = get_session(request.user_id)
    message = request.message.strip()

    if not message:
        return ChatResponse(status="success", reply=session.state.translate("assistantGreeting"))

    session.chat_history.append(ChatMessage(role="user", text=message))
    result = await ask_assistant(message, request.user_id, session.state.language)
    # Errors are shown as the assistant's reply
    session.chat_history.append(ChatMessage(role="model", text=result["reply"]))

    return ChatResponse(status=result["status"], reply=result["reply"])


@app.get("/api/v1/chat/history")
async def chat_history(user_id: str = Query("default")):
    session = get_session(user_id)
    return {"messages": [m.model_dump() for m in session.chat_history]}


# -----------------------------------------------------------------------------
# Hydration
# -----------------------------------------------------------------------------
@app.get("/api/v1/hydration")
async def get_hydration(user_id: str = Query("default")):
    return get_session(user_id).hydration.to_dict()


@app.post("/api/v1/hydration/add")
async def add_water(request: HydrationRequest):
    session = get_session(request.user_id)
    was_reached = session.hydration.goal_reached
    try:
        session.hydration.add_water(request.amount_ml)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    if session.hydration.goal_reached and not was_reached:
        session.state.add_notification(session.state.translate("hydrationGoalReached"))
    return session.hydration.to_dict()


@app.post("/api/v1/hydration/reset")
async def reset_hydration(request: UserRequest):
    session = get_session(request.user_id)
    session.hydration.reset()
    return session.hydration.to_dict()


# =============================================================================
# MAIN
# =============================================================================
if __name__ == "__main__":
    print("\n" + "=" * 50)
    print(f"🚀 OPTIFUEL API v{API_VERSION}")
    print("=" * 50)
    print(f"🤖 Gemini configured: {'✅' if GEMINI_CONFIGURED else '❌'}")
    print("🔗 API Docs: http://localhost:8000/docs")
    print("=" * 50 + "\n")
    uvicorn.run(app, host="0.0.0.0", port=8000)
