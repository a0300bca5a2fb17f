"""
OptiFuel — Domain Models
========================
Pydantic records shared by the store, the agents and the API.
"""

from datetime import datetime
from enum import Enum
from typing import List, Literal, Optional, Tuple
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# ATHLETE PROFILE
# =============================================================================
class SportType(str, Enum):
    """Track & field disciplines (values double as fixture keys)."""
    SPRINTS = "Sprints (100m, 200m, 400m)"
    MIDDLE_DISTANCE = "Middle Distance (800m, 1500m)"
    LONG_DISTANCE = "Long Distance (3000m, 5000m, 10000m)"
    STEEPLECHASE = "Steeplechase (3000m barriers)"
    RELAYS = "Relays (4x100m, 4x400m)"
    HURDLES = "Hurdles (100m/110m, 400m)"
    MARATHON = "Marathon & Road Races"


DietType = Literal[
    "None", "Vegetarian", "Vegan", "Gluten-Free",
    "Pescatarian", "Paleo", "Keto", "Low-Carb",
]
Gender = Literal["Male", "Female", "Other"]
Subscription = Literal["Basic", "Premium"]

DIET_OPTIONS: List[str] = [
    "None", "Vegetarian", "Vegan", "Gluten-Free",
    "Pescatarian", "Paleo", "Keto", "Low-Carb",
]
GENDER_OPTIONS: List[str] = ["Male", "Female", "Other"]


class DietaryRestrictions(BaseModel):
    diet: DietType = "None"
    allergies: List[str] = Field(default_factory=list)
    other_allergy: str = ""


class UserProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    age: int = Field(..., gt=0, lt=120)
    gender: Gender
    geographical_area: str = ""
    height: float = Field(..., gt=0, description="Height in cm")
    weight: float = Field(..., gt=0, description="Weight in kg")
    sport: SportType
    subscription: Subscription = "Basic"
    dietary_restrictions: DietaryRestrictions = Field(default_factory=DietaryRestrictions)

    @property
    def is_premium(self) -> bool:
        return self.subscription == "Premium"


# =============================================================================
# NUTRITION PLAN
# =============================================================================
class Macros(BaseModel):
    protein: float = 0
    carbs: float = 0
    fats: float = 0


class Meal(BaseModel):
    name: str
    description: str = ""
    macros: Macros = Field(default_factory=Macros)
    ingredients: Optional[List[str]] = None
    preparation: Optional[List[str]] = None


MEAL_SLOTS: List[str] = [
    "breakfast", "mid_morning_snack", "lunch", "afternoon_snack", "dinner",
]


class DailyMeals(BaseModel):
    breakfast: Meal
    mid_morning_snack: Meal
    lunch: Meal
    afternoon_snack: Meal
    dinner: Meal


class DailySummary(BaseModel):
    calories: float
    protein: float
    carbs: float
    fats: float


class DailyPlan(BaseModel):
    day: str
    meals: DailyMeals
    daily_summary: DailySummary
    nutritionist_tip: str = ""


# =============================================================================
# DELIVERY
# =============================================================================
class DeliveryPartner(BaseModel):
    name: str
    logo_url: str = ""
    area: List[str] = Field(default_factory=lambda: ["all"])


class MealDeliveryOption(BaseModel):
    model_config = ConfigDict(frozen=True)

    partner_name: str
    meal_name: str
    price: float
    currency: str = "KES"
    delivery_time: str
    rating: float = Field(..., ge=0, le=5)
    special_offer: Optional[str] = None

    @property
    def key(self) -> Tuple[str, str]:
        """Identity used for comparison and selection."""
        return (self.partner_name, self.meal_name)


# =============================================================================
# EVENTS
# =============================================================================
class EventRecommendationItem(BaseModel):
    title: str
    advice: str


class EventRecommendationCategory(BaseModel):
    category: str
    recommendations: List[EventRecommendationItem] = Field(default_factory=list)


class GroundingChunk(BaseModel):
    title: str = ""
    uri: str = ""


class EventRecommendationResponse(BaseModel):
    text: str
    grounding_chunks: List[GroundingChunk] = Field(default_factory=list)


class Location(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


# =============================================================================
# NOTIFICATIONS & CHAT
# =============================================================================
class Notification(BaseModel):
    id: str = Field(default_factory=lambda: uuid4().hex)
    message: str
    timestamp: datetime = Field(default_factory=datetime.now)
    read: bool = False


class ChatMessage(BaseModel):
    role: Literal["user", "model"]
    text: str


__all__ = [
    "SportType",
    "DIET_OPTIONS",
    "GENDER_OPTIONS",
    "DietaryRestrictions",
    "UserProfile",
    "Macros",
    "Meal",
    "MEAL_SLOTS",
    "DailyMeals",
    "DailySummary",
    "DailyPlan",
    "DeliveryPartner",
    "MealDeliveryOption",
    "EventRecommendationItem",
    "EventRecommendationCategory",
    "GroundingChunk",
    "EventRecommendationResponse",
    "Location",
    "Notification",
    "ChatMessage",
]
