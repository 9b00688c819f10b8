"""Re-export individual schema modules for easy imports."""

from .plan import MealPlanIn, MealPlanOut, StoredPlanOut
from .prefs import MealPlanPrefsIn, MealPlanPrefsOut, MealPlanSchedule

__all__ = [
    "MealPlanIn",
    "MealPlanOut",
    "StoredPlanOut",
    "MealPlanPrefsIn",
    "MealPlanPrefsOut",
    "MealPlanSchedule",
]
