from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from core.models import PlanDay, PlanOptions, MaterializedSlot


class MealPlanIn(PlanOptions):
    """Caller-facing request; omitted fields fall back to stored defaults."""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [{
                "mealPlanPrompt": "vegetarian, under 30 minutes",
                "type": "weekly",
                "variety": "varied",
                "slots": ["breakfast", "lunch", "dinner"],
                "includeShoppingList": True,
            }]
        }
    )


class _Out(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MealPlanOut(_Out):
    plan_id: str
    plain_text_plan: str
    linked_plan: str
    shopping_list: str | None = None


class StoredPlanOut(_Out):
    id: str
    type: str
    variety: str
    subject: str
    content: str
    baba_tip: str
    days: list[PlanDay]
    slots: list[MaterializedSlot]
    shopping_list: str | dict[str, str] | None = None
    source: str
    created_at: datetime | None = None
