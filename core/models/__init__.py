"""Re-export plan value types for easy imports."""

from .plan import (
    ALL_SLOTS,
    DAILY_LABEL,
    DAY_NAMES,
    DEFAULT_SLOTS,
    DailySkeleton,
    DaySkeleton,
    MaterializedSlot,
    PlanDay,
    PlanOptions,
    PlanRecord,
    PlanRequest,
    PlanResult,
    PreferenceContext,
    RecipeRecord,
    ShoppingList,
    SlotSkeleton,
    WeeklySkeleton,
)

__all__ = [
    "ALL_SLOTS",
    "DAILY_LABEL",
    "DAY_NAMES",
    "DEFAULT_SLOTS",
    "DailySkeleton",
    "DaySkeleton",
    "MaterializedSlot",
    "PlanDay",
    "PlanOptions",
    "PlanRecord",
    "PlanRequest",
    "PlanResult",
    "PreferenceContext",
    "RecipeRecord",
    "ShoppingList",
    "SlotSkeleton",
    "WeeklySkeleton",
]
