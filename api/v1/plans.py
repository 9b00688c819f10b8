# api/v1/plans.py
from __future__ import annotations

import asyncio
import json
import logging
from typing import AsyncIterator, Awaitable, Callable

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from api.v1.deps import current_user_id, orchestrator, plan_store
from api.v1.schemas import MealPlanIn, MealPlanOut, StoredPlanOut
from core.errors import (
    MealPlanError,
    PlannerUnavailableError,
    PlanPersistenceError,
    PlanRequestError,
)
from core.models import PlanResult
from core.orchestrator import MealPlanOrchestrator, newest_first
from core.progress import ProgressEvent, ProgressSink
from services.db import get_session, session_scope
from services.meal_plans import generate_for_user
from services.stores import SqlPlanStore

_LOG = logging.getLogger(__name__)

router = APIRouter()

FUN_FACTS = [
    "Olive oil was used in ancient Olympic games: athletes rubbed it on their skin before competing.",
    "The Mediterranean diet is one of the most studied eating patterns in the world.",
    "Meal prepping can save you up to 3 hours per week in the kitchen.",
    "Herbs like basil and oregano release more flavor when torn by hand than when cut with a knife.",
    "Eating the same breakfast every day can help with weight management: fewer decisions, fewer temptations.",
    "A well-stocked pantry is half the battle. Baba always says: good ingredients make good food.",
]


# ───────────────────────── helpers ──────────────────────────
def _http_error(exc: MealPlanError) -> HTTPException:
    if isinstance(exc, PlanRequestError):
        return HTTPException(status.HTTP_400_BAD_REQUEST, str(exc))
    if isinstance(exc, PlannerUnavailableError):
        return HTTPException(status.HTTP_502_BAD_GATEWAY, "The meal planner is unavailable, please try again")
    if isinstance(exc, PlanPersistenceError):
        return HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, f"Failed to save meal plan: {exc}")
    return HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to generate meal plan")


async def ndjson_events(
    run: Callable[[ProgressSink], Awaitable[PlanResult]],
) -> AsyncIterator[str]:
    """One `progress` line per slot, then a single `result` or `error` line."""
    queue: asyncio.Queue[dict | None] = asyncio.Queue()

    def on_progress(event: ProgressEvent) -> None:
        queue.put_nowait({"type": "progress", **event.model_dump(by_alias=True)})

    async def produce() -> None:
        try:
            result = await run(on_progress)
            queue.put_nowait({"type": "result", **result.public()})
        except MealPlanError as exc:
            _LOG.warning("streamed meal plan failed: %s", exc)
            queue.put_nowait({"type": "error", "error": _http_error(exc).detail})
        finally:
            queue.put_nowait(None)

    task = asyncio.create_task(produce())
    try:
        while (item := await queue.get()) is not None:
            yield json.dumps(item) + "\n"
        await task
    finally:
        if not task.done():
            task.cancel()


# ───────────────────────── generate ─────────────────────────
@router.post(
    "",
    response_model=MealPlanOut,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    summary="Generate and save a meal plan with full recipes",
)
async def create_meal_plan(
    body: MealPlanIn,
    user_id: str = Depends(current_user_id),
    db: AsyncSession = Depends(get_session),
    orch: MealPlanOrchestrator = Depends(orchestrator),
) -> MealPlanOut:
    try:
        result = await generate_for_user(db, user_id, body, orchestrator=orch)
    except MealPlanError as exc:
        raise _http_error(exc)
    return MealPlanOut.model_validate(result.public())


@router.post(
    "/stream",
    summary="Generate a meal plan, streaming per-recipe progress as NDJSON",
)
async def stream_meal_plan(
    body: MealPlanIn,
    user_id: str = Depends(current_user_id),
) -> StreamingResponse:
    async def run(progress: ProgressSink) -> PlanResult:
        # own session: the request-scoped one may close before the body streams
        async with session_scope() as db:
            return await generate_for_user(db, user_id, body, progress=progress)

    return StreamingResponse(ndjson_events(run), media_type="application/x-ndjson")


# ───────────────────────── history ──────────────────────────
@router.get("/fun-facts", response_model=list[str], summary="Facts to show while a plan generates")
async def fun_facts() -> list[str]:
    return FUN_FACTS


@router.get(
    "",
    response_model=list[StoredPlanOut],
    summary="List the caller's meal plans, newest first",
)
async def list_meal_plans(
    limit: int = 20,
    user_id: str = Depends(current_user_id),
    store: SqlPlanStore = Depends(plan_store),
) -> list[StoredPlanOut]:
    try:
        plans = await store.list_plans(user_id, limit=max(1, min(limit, 100)))
    except MealPlanError as exc:
        raise _http_error(exc)

    return [StoredPlanOut.model_validate(p.model_dump()) for p in newest_first(plans)]


@router.get("/{plan_id}", response_model=StoredPlanOut, summary="Fetch one meal plan")
async def get_meal_plan(
    plan_id: str,
    user_id: str = Depends(current_user_id),
    store: SqlPlanStore = Depends(plan_store),
) -> StoredPlanOut:
    try:
        plan = await store.get_plan(plan_id)
    except MealPlanError as exc:
        raise _http_error(exc)
    if plan is None or plan.user_id != user_id:
        raise HTTPException(status_code=404, detail="Meal plan not found")
    return StoredPlanOut.model_validate(plan.model_dump())
