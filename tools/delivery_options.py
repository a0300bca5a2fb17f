"""
OptiFuel — Meal Delivery Options
================================
Simulated delivery partners and their menus, filtered by meal keyword and
by the partners that serve the athlete's area.
"""

import asyncio
import re
from typing import Any, Dict, Iterable, List, Optional

from memory.models import DeliveryPartner, MealDeliveryOption

# =============================================================================
# CONFIGURATION
# =============================================================================
DELIVERY_CONFIG = {
    "simulated_delay_s": 1.5,
}

MOCK_DELIVERY_PARTNERS: List[DeliveryPartner] = [
    DeliveryPartner(name="Uber Eats", logo_url="https://d3i4yxtzktqr9n.cloudfront.net/web-eats-v2/97c43f8404e6231e.svg", area=["all"]),
    DeliveryPartner(name="Glovo", logo_url="https://glovoapp.com/images/logo_green.svg", area=["all"]),
    DeliveryPartner(name="KFC Delivery", logo_url="https://www.kfc.co.ke/static/media/kfc-logo.88334237.svg", area=["all"]),
    DeliveryPartner(name="EldoFresh Meals", area=["Eldoret, Kenya"]),
    DeliveryPartner(name="Nairobi Bites", area=["Nairobi, Kenya"]),
]

MOCK_DELIVERY_OPTIONS: List[MealDeliveryOption] = [
    # Oatmeal
    MealDeliveryOption(partner_name="Uber Eats", meal_name="Classic Berry Oatmeal", price=650, delivery_time="25-35 min", rating=4.6, special_offer="Free Delivery"),
    MealDeliveryOption(partner_name="Glovo", meal_name="Hearty Oats with Banana", price=600, delivery_time="30-40 min", rating=4.4),
    MealDeliveryOption(partner_name="EldoFresh Meals", meal_name="Local Honey Oatmeal", price=550, delivery_time="20-30 min", rating=4.8),
    # Chicken salad
    MealDeliveryOption(partner_name="Uber Eats", meal_name="Grilled Chicken Caesar Salad", price=950, delivery_time="30-40 min", rating=4.7),
    MealDeliveryOption(partner_name="Nairobi Bites", meal_name="Kuku Salad Bowl", price=850, delivery_time="25-35 min", rating=4.9, special_offer="10% Off"),
    MealDeliveryOption(partner_name="Glovo", meal_name="Healthy Chicken Greens", price=900, delivery_time="35-45 min", rating=4.5),
    # Salmon
    MealDeliveryOption(partner_name="Uber Eats", meal_name="Baked Salmon & Quinoa", price=1400, delivery_time="40-50 min", rating=4.8),
    MealDeliveryOption(partner_name="Nairobi Bites", meal_name="Mchuzi wa Samaki with Rice", price=1250, delivery_time="30-40 min", rating=4.7),
    MealDeliveryOption(partner_name="Glovo", meal_name="Salmon Fillet Dinner", price=1450, delivery_time="45-55 min", rating=4.6),
    # Pasta
    MealDeliveryOption(partner_name="Glovo", meal_name="Chicken & Tomato Pasta", price=1100, delivery_time="30-40 min", rating=4.5),
    MealDeliveryOption(partner_name="Uber Eats", meal_name="Whole-wheat Chicken Pasta", price=1200, delivery_time="25-35 min", rating=4.7, special_offer="Buy 1 Get 1"),
    # Tofu scramble
    MealDeliveryOption(partner_name="Uber Eats", meal_name="Spicy Tofu Scramble", price=800, delivery_time="25-35 min", rating=4.5),
    MealDeliveryOption(partner_name="Nairobi Bites", meal_name="Vegan Tofu Delight", price=750, delivery_time="30-40 min", rating=4.8),
]


# =============================================================================
# LOOKUP
# =============================================================================
def available_partners(area: str) -> List[str]:
    """Names of partners delivering to `area` (or everywhere)."""
    lower_area = (area or "").lower()
    return [
        partner.name
        for partner in MOCK_DELIVERY_PARTNERS
        if "all" in partner.area or any(a.lower() in lower_area for a in partner.area)
    ]


def meal_keyword(meal_name: str) -> str:
    """First word of the meal name, lowercased."""
    words = meal_name.lower().split()
    return words[0] if words else ""


def find_delivery_options(meal_name: str, area: str) -> List[MealDeliveryOption]:
    partners = available_partners(area)
    keyword = meal_keyword(meal_name)
    if not keyword:
        return []
    return [
        option for option in MOCK_DELIVERY_OPTIONS
        if option.partner_name in partners and keyword in option.meal_name.lower()
    ]


async def get_delivery_options_for_meal(meal_name: str, area: str) -> List[MealDeliveryOption]:
    """Fetch delivery options for a meal, paced like a network request."""
    await asyncio.sleep(DELIVERY_CONFIG["simulated_delay_s"])
    return find_delivery_options(meal_name, area)


# =============================================================================
# COMPARISON
# =============================================================================
def delivery_minutes(option: MealDeliveryOption) -> Optional[int]:
    """Lower bound of the delivery-time range ("25-35 min" -> 25), None if unreadable."""
    match = re.match(r"\s*(\d+)", option.delivery_time)
    return int(match.group(1)) if match else None


def compute_comparison_metrics(items: Iterable[MealDeliveryOption]) -> Dict[str, Any]:
    """Pointwise best values across exactly the given items."""
    items = list(items)
    if not items:
        return {"best_price": None, "fastest_time": None, "highest_rating": None}
    times = [m for m in (delivery_minutes(i) for i in items) if m is not None]
    return {
        "best_price": min(i.price for i in items),
        "fastest_time": min(times) if times else None,
        "highest_rating": max(i.rating for i in items),
    }


def highlight_comparison(items: Iterable[MealDeliveryOption]) -> List[Dict[str, Any]]:
    """Each item with flags telling which metrics it wins."""
    items = list(items)
    metrics = compute_comparison_metrics(items)
    return [
        {
            "option": item,
            "is_best_price": item.price == metrics["best_price"],
            "is_fastest": (
                metrics["fastest_time"] is not None
                and delivery_minutes(item) == metrics["fastest_time"]
            ),
            "is_highest_rated": item.rating == metrics["highest_rating"],
        }
        for item in items
    ]


__all__ = [
    "DELIVERY_CONFIG",
    "MOCK_DELIVERY_PARTNERS",
    "MOCK_DELIVERY_OPTIONS",
    "available_partners",
    "meal_keyword",
    "find_delivery_options",
    "get_delivery_options_for_meal",
    "delivery_minutes",
    "compute_comparison_metrics",
    "highlight_comparison",
]
