from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from api.v1.deps import current_user_id
from api.v1.schemas.prefs import MealPlanPrefsIn, MealPlanPrefsOut, MealPlanSchedule
from services.db import MealPlanPreferences, get_session

router = APIRouter()


# ───────────────────────── helpers ──────────────────────────
def _serialize(row: MealPlanPreferences) -> MealPlanPrefsOut:
    """Convert SQLAlchemy row ➜ Pydantic schema, filling defaults."""
    return MealPlanPrefsOut(
        user_id=row.user_id,
        meal_plan_prompt=row.meal_plan_prompt,
        ingredients_on_hand=row.ingredients_on_hand,
        dietary_preferences=row.dietary_preferences or [],
        preferred_cooking_oil=row.preferred_cooking_oil or "olive oil",
        meal_plan_type=row.meal_plan_type or "weekly",
        include_shopping_list=(
            True if row.include_shopping_list is None else row.include_shopping_list
        ),
        calorie_target=row.calorie_target,
        variety=row.variety or "varied",
        slots=row.slots or ["breakfast", "lunch", "dinner"],
        schedule=MealPlanSchedule(
            enabled=bool(row.schedule_enabled),
            time=row.schedule_time,
            timezone=row.schedule_timezone or "UTC",
            day_of_week=row.schedule_day_of_week,
        ),
    )


# ───────────────────────── read ─────────────────────────────
@router.get(
    "/me/meal-plan-preferences",
    response_model=MealPlanPrefsOut,
    status_code=status.HTTP_200_OK,
)
async def get_preferences(
    user_id: str = Depends(current_user_id),
    db: AsyncSession = Depends(get_session),
) -> MealPlanPrefsOut:
    try:
        prefs = await db.get(MealPlanPreferences, user_id)
    except SQLAlchemyError as exc:
        raise HTTPException(503, "could not read meal-plan preferences") from exc
    if prefs is None:
        raise HTTPException(404, "meal-plan preferences not set")
    return _serialize(prefs)


# ───────────────────────── upsert ───────────────────────────
@router.put(
    "/me/meal-plan-preferences",
    response_model=MealPlanPrefsOut,
    status_code=status.HTTP_200_OK,
)
async def upsert_preferences(
    body: MealPlanPrefsIn,
    user_id: str = Depends(current_user_id),
    db: AsyncSession = Depends(get_session),
) -> MealPlanPrefsOut:
    payload = body.model_dump(exclude={"schedule"})
    payload.update(
        schedule_enabled=body.schedule.enabled,
        schedule_time=body.schedule.time,
        schedule_timezone=body.schedule.timezone,
        schedule_day_of_week=body.schedule.day_of_week,
    )

    try:
        prefs = await db.get(MealPlanPreferences, user_id)
        if prefs is None:                      # Insert
            prefs = MealPlanPreferences(user_id=user_id, **payload)
            db.add(prefs)
        else:                                  # Update
            for key, value in payload.items():
                setattr(prefs, key, value)
        await db.commit()
        await db.refresh(prefs)
    except SQLAlchemyError as exc:
        await db.rollback()
        raise HTTPException(503, "could not save meal-plan preferences") from exc
    return _serialize(prefs)
