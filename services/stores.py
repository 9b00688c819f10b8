"""
services/stores.py
────────────────────────────────────────────────────────────────────────
SQL-backed Plan Store and Recipe Catalog.

Both are append-only: one INSERT + COMMIT per write, nothing is ever
updated. Any SQLAlchemy failure surfaces as `PlanPersistenceError`.
Reads make no ordering promise to callers; sort by `created_at` yourself
(see `core.orchestrator.latest_plan`).
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import PlanPersistenceError
from core.models import PlanRecord, RecipeRecord
from services.db import MealPlan, Recipe

_LOG = logging.getLogger(__name__)


def _new_id() -> str:
    return uuid.uuid4().hex


def plan_from_row(row: MealPlan) -> PlanRecord:
    return PlanRecord(
        id=row.id,
        user_id=row.user_id,
        type=row.type,
        variety=row.variety,
        subject=row.subject,
        content=row.content,
        baba_tip=row.baba_tip or "",
        days=row.days or [],
        slots=row.slots or [],
        shopping_list=row.shopping_list,
        source=row.source,
        created_at=row.created_at,
    )


class SqlPlanStore:
    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def add_plan(self, plan: PlanRecord) -> str:
        row = MealPlan(
            id=_new_id(),
            user_id=plan.user_id,
            type=plan.type,
            variety=plan.variety,
            subject=plan.subject,
            content=plan.content,
            baba_tip=plan.baba_tip,
            days=[d.model_dump(by_alias=True) for d in plan.days],
            slots=[s.model_dump(by_alias=True) for s in plan.slots],
            shopping_list=plan.shopping_list,
            source=plan.source,
            created_at=plan.created_at or datetime.now(timezone.utc),
        )
        try:
            self._db.add(row)
            await self._db.commit()
        except SQLAlchemyError as exc:
            await self._db.rollback()
            _LOG.error("meal plan write failed for %s: %s", plan.user_id, exc)
            raise PlanPersistenceError("could not save the meal plan") from exc
        return row.id

    async def recent_plans(self, user_id: str, plan_type: str, limit: int) -> list[PlanRecord]:
        stmt = (
            select(MealPlan)
            .where(MealPlan.user_id == user_id, MealPlan.type == plan_type)
            .order_by(MealPlan.created_at.desc())
            .limit(limit)
        )
        return [plan_from_row(r) for r in await self._scalars(stmt)]

    async def list_plans(self, user_id: str, limit: int = 50) -> list[PlanRecord]:
        stmt = (
            select(MealPlan)
            .where(MealPlan.user_id == user_id)
            .order_by(MealPlan.created_at.desc())
            .limit(limit)
        )
        return [plan_from_row(r) for r in await self._scalars(stmt)]

    async def get_plan(self, plan_id: str) -> PlanRecord | None:
        try:
            row = await self._db.get(MealPlan, plan_id)
        except SQLAlchemyError as exc:
            raise PlanPersistenceError("could not read meal plans") from exc
        return plan_from_row(row) if row else None

    async def _scalars(self, stmt) -> list[MealPlan]:
        try:
            return list((await self._db.execute(stmt)).scalars().all())
        except SQLAlchemyError as exc:
            _LOG.error("meal plan read failed: %s", exc)
            raise PlanPersistenceError("could not read meal plans") from exc


class SqlRecipeCatalog:
    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def add_recipe(self, recipe: RecipeRecord) -> str:
        row = Recipe(
            id=_new_id(),
            **recipe.model_dump(exclude={"created_at"}),
            created_at=recipe.created_at or datetime.now(timezone.utc),
        )
        try:
            self._db.add(row)
            await self._db.commit()
        except SQLAlchemyError as exc:
            await self._db.rollback()
            _LOG.error("recipe write failed for %r: %s", recipe.recipe_title, exc)
            raise PlanPersistenceError(
                f"could not save recipe {recipe.recipe_title!r}"
            ) from exc
        return row.id
