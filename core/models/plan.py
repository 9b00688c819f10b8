"""
core/models/plan.py
────────────────────────────────────────────────────────────────────────
Value types that flow through the meal-plan pipeline.

Field names are snake_case in Python and camelCase on the wire
(`model_dump(by_alias=True)`), which is the shape persisted documents
and API callers use.
"""
from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

TimeSlot = Literal["breakfast", "lunch", "dinner", "snack"]
PlanType = Literal["weekly", "daily"]
Variety = Literal[
    "varied", "same_every_day", "same_every_week", "leftovers", "meal_prep_sunday"
]
PlanSource = Literal["mealPlan", "chat", "cron"]

ALL_SLOTS: tuple[str, ...] = ("breakfast", "lunch", "dinner", "snack")
DEFAULT_SLOTS: tuple[str, ...] = ("breakfast", "lunch", "dinner")

# Monday-start week; day numbers are positions, not calendar weekdays.
DAY_NAMES: tuple[str, ...] = (
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday",
)
DAILY_LABEL = "Today"


class _Camel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _dedupe_slots(value: list[str] | tuple[str, ...] | None) -> tuple[str, ...] | None:
    if value is None:
        return None
    return tuple(dict.fromkeys(value))


# ───────────────────────── skeleton ──────────────────────────
class SlotSkeleton(_Camel):
    time_slot: str
    recipe_name: str
    description: str = ""

    @field_validator("time_slot", mode="before")
    @classmethod
    def _lower(cls, v: object) -> object:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("description", mode="before")
    @classmethod
    def _blank(cls, v: object) -> object:
        return "" if v is None else v


class DaySkeleton(_Camel):
    day: int | None = None
    day_name: str = ""
    slots: list[SlotSkeleton] = []


class WeeklySkeleton(_Camel):
    baba_tip: str | None = None
    days: list[DaySkeleton] = []


class DailySkeleton(_Camel):
    baba_tip: str | None = None
    slots: list[SlotSkeleton] = []


# ───────────────────────── materialized ──────────────────────
class MaterializedSlot(SlotSkeleton):
    recipe_id: str


class PlanDay(_Camel):
    day: int = Field(..., ge=1, le=7)
    day_name: str
    slots: list[MaterializedSlot] = []


# ───────────────────────── request ───────────────────────────
class PlanOptions(_Camel):
    """What a caller may send; `None` means "use my stored default"."""

    meal_plan_prompt: str | None = None
    ingredients_on_hand: str | None = None
    calorie_target: float | None = Field(None, gt=0)
    dietary_preferences: list[str] | None = None
    preferred_cooking_oil: str | None = None
    type: PlanType | None = None
    include_shopping_list: bool | None = None
    variety: Variety | None = None
    slots: list[TimeSlot] | None = None
    reuse_last_week: bool | None = None


class PreferenceContext(_Camel):
    model_config = ConfigDict(frozen=True)

    meal_plan_prompt: str = ""
    dietary_preferences: tuple[str, ...] = ()
    preferred_cooking_oil: str = "olive oil"
    ingredients_on_hand: str = ""
    calorie_target: float | None = Field(None, gt=0)


class PlanRequest(_Camel):
    """Fully resolved input to the orchestrator."""

    model_config = ConfigDict(frozen=True)

    user_id: str = Field(..., min_length=1)
    preferences: PreferenceContext = PreferenceContext()
    type: PlanType = "weekly"
    variety: Variety = "varied"
    slots: tuple[TimeSlot, ...] = DEFAULT_SLOTS  # type: ignore[assignment]
    reuse_last_week: bool = False
    include_shopping_list: bool = True
    source: PlanSource = "mealPlan"

    @field_validator("slots", mode="before")
    @classmethod
    def _default_slots(cls, v: object) -> object:
        # empty selection falls back to breakfast/lunch/dinner
        return _dedupe_slots(v) or DEFAULT_SLOTS  # type: ignore[arg-type]

    @property
    def is_weekly(self) -> bool:
        return self.type == "weekly"


# ───────────────────────── persisted ─────────────────────────
ShoppingList = str | dict[str, str]


class RecipeRecord(_Camel):
    recipe_title: str
    recipe_content: str = ""
    ingredients: list[str]
    directions: list[str]
    cuisine_type: str = "General"
    cooking_difficulty: str = "medium"
    cooking_time: str = "30 min"
    diet: list[str] = []
    recipe_summary: str = ""
    origin: str = "mealPlan"
    origin_description: str = ""
    user_id: str | None = None
    created_at: datetime | None = None


class PlanRecord(_Camel):
    id: str | None = None
    user_id: str
    type: PlanType
    variety: Variety = "varied"
    subject: str = ""
    content: str = ""
    baba_tip: str = ""
    days: list[PlanDay] = []
    slots: list[MaterializedSlot] = []
    shopping_list: ShoppingList | None = None
    source: PlanSource = "mealPlan"
    created_at: datetime | None = None

    def recipe_ids(self) -> list[str]:
        ids = [s.recipe_id for s in self.slots]
        for d in self.days:
            ids.extend(s.recipe_id for s in d.slots)
        return ids


class PlanResult(_Camel):
    plan_id: str
    plain_text_plan: str
    linked_plan: str
    shopping_list: str | None = None
    plan: PlanRecord
    new_recipe_ids: list[str] = []

    def public(self) -> dict:
        """Caller-facing contract: planId, both renderings, shoppingList?"""
        out = self.model_dump(
            by_alias=True, include={"plan_id", "plain_text_plan", "linked_plan"}
        )
        if self.shopping_list is not None:
            out["shoppingList"] = self.shopping_list
        return out
