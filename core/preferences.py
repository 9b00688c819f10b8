"""
core/preferences.py
────────────────────────────────────────────────────────────────────────
Merge what a caller sent with the user's stored meal-plan defaults.

The result is a frozen `PlanRequest` carrying a `PreferenceContext`; the
orchestrator never goes back to the store for preferences mid-run.
"""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from core.errors import PlanRequestError
from core.models import PlanOptions, PlanRequest, PreferenceContext


class StoredDefaults(BaseModel):
    """Per-user defaults as kept in `meal_plan_preferences`."""

    model_config = ConfigDict(from_attributes=True)

    meal_plan_prompt: str | None = None
    ingredients_on_hand: str | None = None
    dietary_preferences: list[str] | None = None
    preferred_cooking_oil: str | None = None
    meal_plan_type: str | None = None
    include_shopping_list: bool | None = None
    calorie_target: float | None = None
    variety: str | None = None
    slots: list[str] | None = None


def _text(*values: str | None) -> str:
    for v in values:
        if v and v.strip():
            return v.strip()
    return ""


def _first(*values: Any) -> Any:
    for v in values:
        if v is not None:
            return v
    return None


def resolve_request(
    user_id: str,
    options: PlanOptions,
    stored: StoredDefaults | None = None,
    source: str = "mealPlan",
) -> PlanRequest:
    """
    Caller values win; blank strings and `None` fall through to the
    stored row, then to the built-in defaults.
    """
    s = stored or StoredDefaults()
    try:
        prefs = PreferenceContext(
            meal_plan_prompt=_text(options.meal_plan_prompt, s.meal_plan_prompt),
            ingredients_on_hand=_text(options.ingredients_on_hand, s.ingredients_on_hand),
            dietary_preferences=tuple(
                _first(options.dietary_preferences, s.dietary_preferences) or ()
            ),
            preferred_cooking_oil=_text(
                options.preferred_cooking_oil, s.preferred_cooking_oil, "olive oil"
            ),
            calorie_target=_first(options.calorie_target, s.calorie_target),
        )
        return PlanRequest(
            user_id=user_id,
            preferences=prefs,
            type=options.type or s.meal_plan_type or "weekly",
            variety=options.variety or s.variety or "varied",
            slots=options.slots or s.slots or (),
            reuse_last_week=bool(options.reuse_last_week),
            include_shopping_list=_first(
                options.include_shopping_list, s.include_shopping_list, True
            ),
            source=source,
        )
    except ValidationError as exc:
        raise PlanRequestError(_describe(exc)) from exc


def _describe(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err.get('msg')}" if loc else err.get("msg", ""))
    return "invalid meal-plan request – " + "; ".join(parts)
