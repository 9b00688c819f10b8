# services/chat_tool.py
"""
`generate_meal_plan` tool for the conversational assistant.

The assistant's own loop picks the tool and passes the arguments; this
module only validates them, runs the shared pipeline, relays progress to
the optional writer and returns a JSON-able result. Failures come back
as `{"success": False, "error": ...}` so the assistant can explain them.
"""
from __future__ import annotations

import inspect
import logging
from typing import Any, Awaitable, Callable, Union

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import MealPlanError, PlannerUnavailableError, PlanPersistenceError
from core.models import PlanOptions
from core.orchestrator import MealPlanOrchestrator
from core.progress import ProgressEvent
from services.meal_plans import generate_for_user

_LOG = logging.getLogger(__name__)

TOOL_NAME = "generate_meal_plan"

Writer = Callable[[dict[str, Any]], Union[None, Awaitable[None]]]

TOOL_SCHEMA: dict[str, Any] = {
    "name": TOOL_NAME,
    "description": (
        "Create and save a meal plan with full recipes for the signed-in user. "
        "Use variety=same_every_day for 'same every day', reuseLastWeek=true for "
        "'repeat last week', slots=[dinner] for 'just dinners', variety=leftovers "
        "for leftovers, variety=meal_prep_sunday for Sunday meal prep."
    ),
    "parameters": {
        "type": "object",
        "properties": {
            "mealPlanPrompt": {"type": "string", "description": "The user's preferences in their own words"},
            "ingredientsOnHand": {"type": "string"},
            "calorieTarget": {"type": "number", "exclusiveMinimum": 0},
            "dietaryPreferences": {"type": "array", "items": {"type": "string"}},
            "preferredCookingOil": {"type": "string"},
            "type": {"type": "string", "enum": ["weekly", "daily"]},
            "includeShoppingList": {"type": "boolean"},
            "variety": {
                "type": "string",
                "enum": ["varied", "same_every_day", "same_every_week", "leftovers", "meal_prep_sunday"],
            },
            "slots": {
                "type": "array",
                "items": {"type": "string", "enum": ["breakfast", "lunch", "dinner", "snack"]},
            },
            "reuseLastWeek": {"type": "boolean"},
        },
    },
}


async def _write(writer: Writer | None, payload: dict[str, Any]) -> None:
    if writer is None:
        return
    result = writer(payload)
    if inspect.isawaitable(result):
        await result


async def run_generate_meal_plan(
    db: AsyncSession,
    user_id: str | None,
    args: dict[str, Any],
    writer: Writer | None = None,
    orchestrator: MealPlanOrchestrator | None = None,
) -> dict[str, Any]:
    if not user_id:
        return {"success": False, "error": "Please sign in to create and save meal plans."}

    try:
        options = PlanOptions.model_validate(args or {})
    except ValidationError as exc:
        return {"success": False, "error": f"Invalid meal plan options: {exc.errors()[0]['msg']}"}

    async def progress(event: ProgressEvent) -> None:
        await _write(writer, {"tool": TOOL_NAME, "progress": event.model_dump(by_alias=True)})

    try:
        result = await generate_for_user(
            db, user_id, options, source="chat", progress=progress, orchestrator=orchestrator
        )
    except PlannerUnavailableError:
        return {"success": False, "error": "The meal planner is busy right now. Please try again."}
    except PlanPersistenceError as exc:
        _LOG.error("chat meal plan for %s not saved: %s", user_id, exc)
        return {"success": False, "error": "The meal plan could not be saved. Please try again."}
    except MealPlanError as exc:
        return {"success": False, "error": str(exc)}

    out: dict[str, Any] = {
        "success": True,
        "planId": result.plan_id,
        "plan": result.linked_plan,
        "plainTextPlan": result.plain_text_plan,
        "linkedPlan": result.linked_plan,
    }
    if result.shopping_list is not None:
        out["shoppingList"] = result.shopping_list
    return out
