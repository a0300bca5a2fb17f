"""
OptiFuel — Hydration Tracker
============================
Daily water intake against a fixed goal.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict

HYDRATION_CONFIG = {
    "daily_goal_ml": 3000,
    "overage_ml": 500,
    "intake_options_ml": [250, 500, 750],
}


@dataclass
class HydrationTracker:
    intake_ml: int = 0
    daily_goal_ml: int = HYDRATION_CONFIG["daily_goal_ml"]

    @property
    def max_intake_ml(self) -> int:
        return self.daily_goal_ml + HYDRATION_CONFIG["overage_ml"]

    @property
    def progress_percent(self) -> float:
        return min(self.intake_ml / self.daily_goal_ml * 100, 100.0)

    @property
    def goal_reached(self) -> bool:
        return self.intake_ml >= self.daily_goal_ml

    def add_water(self, amount_ml: int) -> int:
        if amount_ml <= 0:
            raise ValueError("Amount must be positive")
        self.intake_ml = min(self.intake_ml + amount_ml, self.max_intake_ml)
        return self.intake_ml

    def reset(self) -> None:
        self.intake_ml = 0

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data.update({
            "progress_percent": round(self.progress_percent, 1),
            "goal_reached": self.goal_reached,
            "intake_options_ml": HYDRATION_CONFIG["intake_options_ml"],
        })
        return data


__all__ = ["HYDRATION_CONFIG", "HydrationTracker"]
