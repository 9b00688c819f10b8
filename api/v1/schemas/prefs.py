from __future__ import annotations
from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from core.models.plan import TimeSlot, Variety


class MealPlanSchedule(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    enabled: bool = False
    time: str | None = Field(None, pattern=r"^\d{1,2}:\d{2}$", examples=["07:30"])
    timezone: str = "UTC"
    day_of_week: int | None = Field(None, ge=0, le=6, description="0=Sunday … 6=Saturday")


class MealPlanPrefsIn(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    meal_plan_prompt: str | None = None
    ingredients_on_hand: str | None = None
    dietary_preferences: List[str] = []
    preferred_cooking_oil: str = "olive oil"
    meal_plan_type: Literal["weekly", "daily"] = "weekly"
    include_shopping_list: bool = True
    calorie_target: float | None = Field(None, gt=0)
    variety: Variety = "varied"
    slots: List[TimeSlot] = ["breakfast", "lunch", "dinner"]
    schedule: MealPlanSchedule = MealPlanSchedule()


class MealPlanPrefsOut(MealPlanPrefsIn):
    user_id: str
