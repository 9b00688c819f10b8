# services/recipe_details.py
"""
Recipe Detail Synthesizer backed by Gemini.

Two calls per recipe: a free-text INGREDIENTS/DIRECTIONS draft, then
(when `generate_all`) a JSON classification for cuisine, difficulty,
cooking time, diet labels and a short summary. The returned dict is
partial by contract; callers apply their own defaults.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Awaitable, Callable

from config import settings
from core import prompts
from core.errors import RecipeDetailsError
from scripts.helpers import extract_clean_json
from services import gemini

_LOG = logging.getLogger(__name__)

_BULLET = re.compile(r"^\s*(?:[-*•]|\d+[.)])\s*")
_SECTION = re.compile(r"^\s*\**\s*(INGREDIENTS|DIRECTIONS)\s*\**\s*:?\s*\**\s*$", re.I)

_META_KEYS = ("cookingTime", "cuisineType", "cookingDifficulty", "diet", "recipeSummary")


def parse_sections(text: str) -> dict[str, list[str]]:
    """Split a draft into its INGREDIENTS and DIRECTIONS bullet lists."""
    out: dict[str, list[str]] = {"ingredients": [], "directions": []}
    current: str | None = None
    for line in text.splitlines():
        header = _SECTION.match(line)
        if header:
            current = header.group(1).lower()
            continue
        if current is None or not line.strip():
            continue
        if not _BULLET.match(line):
            # prose after the lists (notes, tips) ends the section
            current = None
            continue
        item = _BULLET.sub("", line).strip()
        if item:
            out[current].append(item)
    return out


async def generate_recipe_details(
    recipe_title: str,
    content_hint: str,
    generate_all: bool = True,
    *,
    generate: Callable[..., Awaitable[str]] = gemini.generate,
) -> dict[str, Any]:
    draft = await generate(
        prompts.recipe_basic_prompt(recipe_title, content_hint),
        system=prompts.RECIPE_SYSTEM,
        model=settings.recipe_model,
        temperature=0.7,
        max_output_tokens=1000,
    )
    result: dict[str, Any] = parse_sections(draft)
    if not result["ingredients"] or not result["directions"]:
        raise RecipeDetailsError(
            f"could not extract ingredients and directions for {recipe_title!r}"
        )
    if not generate_all:
        return result

    try:
        raw = await generate(
            prompts.recipe_classify_prompt(
                recipe_title, result["ingredients"], result["directions"]
            ),
            model=settings.recipe_model,
            temperature=0.2,
            max_output_tokens=400,
            json_mode=True,
        )
        meta = extract_clean_json(raw)
    except Exception as exc:
        # classification is optional; the materializer fills defaults
        _LOG.warning("classification failed for %r: %s", recipe_title, exc)
        return result

    for key in _META_KEYS:
        if meta.get(key):
            result[key] = meta[key]
    return result
