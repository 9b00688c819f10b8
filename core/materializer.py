"""
core/materializer.py
────────────────────────────────────────────────────────────────────────
Turn one skeleton slot into a persisted Recipe.

The synthesizer may fail or time out; the recipe is then written with
the slot description as its single ingredient and single direction, so
the plan keeps a real recipe id for every slot. Only the catalog write
itself can fail the batch (`PlanPersistenceError` propagates).
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Protocol

from core import prompts
from core.models import RecipeRecord, SlotSkeleton

_LOG = logging.getLogger(__name__)

SynthesizeFn = Callable[[str, str, bool], Awaitable[dict[str, Any]]]


class RecipeCatalog(Protocol):
    async def add_recipe(self, recipe: RecipeRecord) -> str: ...


@dataclass
class MaterializedRecipe:
    recipe_id: str
    ingredients: list[str]
    synthesized: bool


def _str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(v).strip() for v in value if str(v).strip()]


def build_recipe_content(title: str, ingredients: list[str], directions: list[str]) -> str:
    ing = "\n".join(f"- {i}" for i in ingredients)
    steps = "\n".join(f"{n}. {d}" for n, d in enumerate(directions, start=1))
    return f"{title}\n\nIngredients:\n{ing}\n\nDirections:\n{steps}"


def recipe_from_details(
    slot: SlotSkeleton, details: dict[str, Any] | None, user_id: str | None
) -> RecipeRecord:
    """Field-level defaults for whatever the synthesizer left out."""
    d = details or {}
    fallback = slot.description.strip() or slot.recipe_name
    ingredients = _str_list(d.get("ingredients")) or [fallback]
    directions = _str_list(d.get("directions")) or [fallback]
    diet = d.get("diet")
    return RecipeRecord(
        recipe_title=slot.recipe_name,
        recipe_content=build_recipe_content(slot.recipe_name, ingredients, directions),
        ingredients=ingredients,
        directions=directions,
        cuisine_type=str(d.get("cuisineType") or "General"),
        cooking_difficulty=str(d.get("cookingDifficulty") or "medium").lower(),
        cooking_time=str(d.get("cookingTime") or "30 min"),
        diet=_str_list(diet) if isinstance(diet, list) else ([str(diet)] if diet else []),
        recipe_summary=str(d.get("recipeSummary") or ""),
        origin="mealPlan",
        origin_description=slot.description,
        user_id=user_id,
        created_at=datetime.now(timezone.utc),
    )


class SlotMaterializer:
    def __init__(
        self,
        synthesize: SynthesizeFn,
        catalog: RecipeCatalog,
        timeout_s: float | None = None,
    ) -> None:
        self._synthesize = synthesize
        self._catalog = catalog
        self._timeout = timeout_s

    async def materialize(
        self, slot: SlotSkeleton, user_id: str | None = None
    ) -> MaterializedRecipe:
        hint = prompts.recipe_content_hint(slot.recipe_name, slot.description)
        details: dict[str, Any] | None = None
        try:
            details = await asyncio.wait_for(
                self._synthesize(slot.recipe_name, hint, True), timeout=self._timeout
            )
        except asyncio.TimeoutError:
            _LOG.warning("recipe synthesis timed out for %r; using fallback", slot.recipe_name)
        except Exception as exc:
            _LOG.warning("recipe synthesis failed for %r: %s; using fallback",
                         slot.recipe_name, exc)

        recipe = recipe_from_details(slot, details, user_id)
        recipe_id = await self._catalog.add_recipe(recipe)
        return MaterializedRecipe(
            recipe_id=recipe_id,
            ingredients=recipe.ingredients,
            synthesized=bool(details),
        )
