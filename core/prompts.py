"""
core/prompts.py
────────────────────────────────────────────────────────────────────────
Instruction text for the three generative calls of a meal plan:

  • the plan skeleton (day/slot names + one-line descriptions)
  • the recipe detail synthesizer (ingredients, directions, metadata)
  • the shopping-list consolidator

Variety policies other than `same_every_day` are enforced here only, by
wording; nothing downstream checks that dinners really repeat.
"""
from __future__ import annotations

import json
from typing import Iterable

from core.models import PlanRequest, PreferenceContext

PERSONA = "You are Baba Selo, a warm grandmother who loves to plan meals."

CALORIE_MIN = 800
CALORIE_MAX = 4000
CALORIE_SPLIT = {"breakfast": 0.20, "lunch": 0.35, "dinner": 0.40, "snack": 0.05}

VARIETY_INSTRUCTIONS = {
    "varied": "Create a 7-day weekly meal plan with variety: different meals each day.",
    "same_every_day": (
        "Create ONE day of meals. The same meals will be repeated every day "
        "of the week. Design one balanced day."
    ),
    "same_every_week": "Create a 7-day weekly meal plan with variety.",
    "leftovers": (
        "Create a plan where the user cooks 2-3 large dinners and eats the same "
        "dinner 2-3 times. E.g. Monday/Tuesday same dinner, Wednesday/Thursday "
        "same, Friday/Saturday same. Breakfast and lunch can vary or repeat. "
        "Minimize cooking days."
    ),
    "meal_prep_sunday": (
        "Create a plan where the user meal preps on Sunday: the SAME lunch is "
        "eaten Monday-Friday. Dinners vary each night. Breakfast can be "
        "simple/repeat."
    ),
}

_REPEAT_HINTS = {
    "leftovers": " Reuse dinner recipes across 2-3 days as described.",
    "meal_prep_sunday": " Same lunch for days 1-5, varied dinners.",
}


# ───────────────────────── context fragments ─────────────────
def preference_context(prefs: PreferenceContext) -> str:
    if prefs.meal_plan_prompt:
        return f"The user's preferences (in their own words): {prefs.meal_plan_prompt}"
    dietary = ", ".join(prefs.dietary_preferences) or "none"
    return f"Use {prefs.preferred_cooking_oil}. Dietary: {dietary}."


def ingredients_context(prefs: PreferenceContext) -> str:
    if not prefs.ingredients_on_hand:
        return ""
    return (
        " The user has these ingredients on hand; prioritize recipes that use "
        f"them: {prefs.ingredients_on_hand}."
    )


def calorie_context(prefs: PreferenceContext) -> str:
    target = prefs.calorie_target
    if target is None or not CALORIE_MIN <= target <= CALORIE_MAX:
        return ""
    split = ", ".join(
        f"{slot} ~{round(target * share)}" for slot, share in CALORIE_SPLIT.items()
    )
    return (
        f" CALORIE TARGET: The user aims for approximately {round(target)} "
        "calories per day. Choose dishes that fit within this budget. "
        f"Typical splits: {split}. Prefer lighter dishes if needed to stay "
        "within the target."
    )


def _slot_examples(slots: Iterable[str], indent: str) -> str:
    return f",\n{indent}".join(
        json.dumps({"timeSlot": s, "recipeName": "Dish name", "description": "Brief description"})
        for s in slots
    )


# ───────────────────────── skeleton ──────────────────────────
def skeleton_instructions(req: PlanRequest) -> str:
    prefs = req.preferences
    context = preference_context(prefs) + ingredients_context(prefs) + calorie_context(prefs)
    slot_list = ", ".join(req.slots)

    if not req.is_weekly:
        return (
            f"{PERSONA} Create a daily meal plan. Return a JSON object with this "
            "exact structure (no other text):\n"
            "{\n"
            '  "babaTip": "A warm Baba tip at the end",\n'
            '  "slots": [\n'
            f"    {_slot_examples(req.slots, '    ')}\n"
            "  ]\n"
            "}\n"
            f"Include only these slots: {slot_list}.\n"
            f"{context}"
        )

    if req.variety == "same_every_day":
        return (
            f"{PERSONA} {VARIETY_INSTRUCTIONS['same_every_day']} Return a JSON "
            "object with this exact structure (no other text):\n"
            "{\n"
            '  "babaTip": "A warm Baba tip at the end",\n'
            '  "days": [\n'
            '    { "day": 1, "dayName": "Monday", "slots": [\n'
            f"      {_slot_examples(req.slots, '      ')}\n"
            "    ]}\n"
            "  ]\n"
            "}\n"
            "NOTE: Only ONE day. It will be duplicated for all 7 days.\n"
            f"Include only these slots: {slot_list}.\n"
            f"{context}"
        )

    return (
        f"{PERSONA} {VARIETY_INSTRUCTIONS[req.variety]} Return a JSON object with "
        "this exact structure (no other text):\n"
        "{\n"
        '  "babaTip": "A warm Baba tip at the end",\n'
        '  "days": [\n'
        '    { "day": 1, "dayName": "Monday", "slots": [\n'
        f"      {_slot_examples(req.slots, '      ')}\n"
        "    ]},\n"
        "    ...repeat for days 2-7 (Tuesday through Sunday)."
        f"{_REPEAT_HINTS.get(req.variety, '')}\n"
        "  ]\n"
        "}\n"
        f"Include only these slots: {slot_list}.\n"
        f"{context}"
    )


def skeleton_user_message(req: PlanRequest) -> str:
    return "This week's meal plan, please!" if req.is_weekly else "Today's meal plan, please!"


# ───────────────────────── recipe details ────────────────────
RECIPE_SYSTEM = (
    "You are a professional chef specializing in recipe development. Generate "
    "detailed recipe ingredients and directions while maintaining authenticity "
    "and clarity."
)


def recipe_content_hint(recipe_name: str, description: str) -> str:
    return f"{recipe_name}\n\nDescription: {description}"


def recipe_basic_prompt(recipe_title: str, content_hint: str) -> str:
    return (
        "Given a recipe title and a short description, generate a complete "
        "recipe with ingredients and directions.\n\n"
        f"Recipe Title: {recipe_title}\n"
        f"Context: {content_hint}\n\n"
        "Please provide the following:\n\n"
        "INGREDIENTS:\n- ingredient 1\n- ingredient 2\n...\n\n"
        "DIRECTIONS:\n1. step 1\n2. step 2\n...\n\n"
        "Rules:\n"
        "1. Ingredients should be clear and include quantities\n"
        "2. Directions should be detailed and easy to follow\n"
        "3. Keep the style consistent with traditional recipes\n"
        "4. Maintain authenticity for cultural dishes"
    )


def recipe_classify_prompt(
    recipe_title: str, ingredients: list[str], directions: list[str]
) -> str:
    return (
        "Classify this recipe. Return ONLY a JSON object with keys:\n"
        '  "cookingTime" (e.g. "30 min"), "cuisineType", '
        '"cookingDifficulty" (easy|medium|hard), "diet" (list of labels such as '
        '"vegetarian", "gluten-free"), "recipeSummary" (2 sentences).\n\n'
        f"Title: {recipe_title}\n"
        "Ingredients:\n" + "\n".join(ingredients) + "\n\n"
        "Directions:\n" + "\n".join(directions)
    )


# ───────────────────────── shopping list ─────────────────────
SHOPPING_SYSTEM = (
    "You are a helpful assistant that consolidates recipe ingredients into a "
    "shopping list. Given a list of ingredients from multiple recipes (each "
    "with quantity/amount), create a consolidated shopping list. Combine "
    "duplicate ingredients and add their amounts where the units are "
    'compatible (e.g. "2 tbsp olive oil" + "3 tbsp olive oil" = '
    '"5 tbsp olive oil"). Group by category: Produce, Dairy, Protein, Pantry, '
    'Bakery, etc. Return JSON: { "produce": "item1\\nitem2", "dairy": "...", '
    '"protein": "...", "pantry": "...", "bakery": "..." } - use category keys '
    'as needed. Each line must include the amount (e.g. "2 cups rice").'
)


def shopping_prompt(ingredients: list[str]) -> str:
    lines = "\n".join(f"- {i}" for i in ingredients)
    return f"Consolidate these ingredients into a shopping list with amounts:\n\n{lines}"
