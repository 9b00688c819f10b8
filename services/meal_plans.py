"""
services/meal_plans.py
────────────────────────────────────────────────────────────────────────
The one entry point every caller goes through (HTTP route, chat tool,
scheduled job): load stored defaults → resolve → run the orchestrator.
"""
from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import PlanPersistenceError
from core.models import PlanOptions, PlanResult
from core.orchestrator import MealPlanOrchestrator
from core.preferences import StoredDefaults, resolve_request
from core.progress import ProgressSink
from services.db import MealPlanPreferences
from services.stores import SqlPlanStore, SqlRecipeCatalog

_LOG = logging.getLogger(__name__)


async def load_defaults(db: AsyncSession, user_id: str) -> StoredDefaults | None:
    try:
        row = await db.get(MealPlanPreferences, user_id)
    except SQLAlchemyError as exc:
        raise PlanPersistenceError("could not read meal-plan preferences") from exc
    return StoredDefaults.model_validate(row) if row else None


async def generate_for_user(
    db: AsyncSession,
    user_id: str,
    options: PlanOptions,
    *,
    source: str = "mealPlan",
    progress: ProgressSink | None = None,
    orchestrator: MealPlanOrchestrator | None = None,
) -> PlanResult:
    stored = await load_defaults(db, user_id)
    req = resolve_request(user_id, options, stored, source=source)
    _LOG.info(
        "meal plan requested: user=%s type=%s variety=%s slots=%s reuse=%s source=%s",
        user_id, req.type, req.variety, ",".join(req.slots), req.reuse_last_week, source,
    )
    orch = orchestrator or MealPlanOrchestrator(SqlPlanStore(db), SqlRecipeCatalog(db))
    return await orch.run(req, progress)
