"""
Recipe detail synthesizer – services/recipe_details.py
"""
import asyncio
import json

import pytest

from core.errors import RecipeDetailsError
from services.recipe_details import generate_recipe_details, parse_sections

DRAFT = """Here you go!

**INGREDIENTS:**
- 1 cup red lentils
- 1 onion, diced
* 2 tbsp olive oil

DIRECTIONS:
1. Sweat the onion in oil.
2) Add lentils and simmer 20 minutes.

Enjoy, dear!
"""


class Replies:
    def __init__(self, *answers):
        self.answers = list(answers)
        self.calls = []

    async def __call__(self, prompt, **kw):
        self.calls.append(kw)
        answer = self.answers.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return answer


def test_parse_sections():
    out = parse_sections(DRAFT)
    assert out["ingredients"] == ["1 cup red lentils", "1 onion, diced", "2 tbsp olive oil"]
    assert out["directions"] == ["Sweat the onion in oil.", "Add lentils and simmer 20 minutes."]


def test_details_with_classification():
    gen = Replies(DRAFT, json.dumps({
        "cuisineType": "Turkish",
        "cookingDifficulty": "easy",
        "cookingTime": "30 min",
        "diet": ["vegan"],
        "recipeSummary": "",
        "calories": 400,
    }))
    out = asyncio.run(generate_recipe_details("Lentil Soup", "hint", generate=gen))
    assert out["cuisineType"] == "Turkish"
    assert out["diet"] == ["vegan"]
    assert "recipeSummary" not in out
    assert "calories" not in out
    assert gen.calls[1]["json_mode"] is True


def test_basic_only_skips_classification():
    gen = Replies(DRAFT)
    out = asyncio.run(generate_recipe_details("Lentil Soup", "hint", False, generate=gen))
    assert set(out) == {"ingredients", "directions"}
    assert len(gen.calls) == 1


def test_classification_failure_keeps_the_draft():
    gen = Replies(DRAFT, RuntimeError("quota"))
    out = asyncio.run(generate_recipe_details("Lentil Soup", "hint", generate=gen))
    assert len(out["ingredients"]) == 3
    assert "cuisineType" not in out


def test_draft_without_sections_is_an_error():
    gen = Replies("I don't know that dish, dear.")
    with pytest.raises(RecipeDetailsError):
        asyncio.run(generate_recipe_details("Mystery", "hint", generate=gen))
