"""
core/shopping.py
────────────────────────────────────────────────────────────────────────
Shopping List Consolidator.

All ingredient strings of a plan go to one generative call that groups
them by category and adds up duplicates where units agree. The merge is
best-effort: quantities are the model's estimate, never a verified total.
On any failure the raw strings come back as one flat newline-joined list.
"""
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

from config import settings
from core import prompts
from core.errors import PlanRequestError
from core.models import ShoppingList
from scripts.helpers import extract_clean_json

_LOG = logging.getLogger(__name__)


def flat_list(items: list[str]) -> str:
    return "\n".join(items)


def normalise_categories(data: dict[str, Any]) -> dict[str, str]:
    out: dict[str, str] = {}
    for key, value in data.items():
        if isinstance(value, list):
            text = "\n".join(str(v).strip() for v in value if str(v).strip())
        elif isinstance(value, str):
            text = value.strip()
        else:
            continue
        if text:
            out[str(key).strip().lower()] = text
    return out


def render_shopping_list(shopping_list: ShoppingList | None) -> str | None:
    """Single string form: flat lists as-is, categories as titled blocks."""
    if shopping_list is None:
        return None
    if isinstance(shopping_list, str):
        return shopping_list
    return "\n\n".join(
        f"{cat.capitalize()}:\n{items}" for cat, items in shopping_list.items()
    )


class ShoppingListConsolidator:
    def __init__(self, generate: Callable[..., Awaitable[str]]) -> None:
        self._generate = generate

    async def consolidate(self, ingredients: list[str]) -> ShoppingList:
        items = [i.strip() for i in ingredients if i and i.strip()]
        if not items:
            raise PlanRequestError("cannot build a shopping list from an empty ingredient list")

        try:
            raw = await self._generate(
                prompts.shopping_prompt(items),
                system=prompts.SHOPPING_SYSTEM,
                model=settings.shopping_model,
                temperature=0.3,
                max_output_tokens=2000,
                json_mode=True,
            )
            categories = normalise_categories(extract_clean_json(raw))
        except Exception as exc:
            _LOG.warning("shopping list consolidation failed: %s; using flat list", exc)
            return flat_list(items)

        if not categories:
            _LOG.warning("consolidator returned no categories; using flat list")
            return flat_list(items)
        return categories
