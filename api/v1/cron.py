# api/v1/cron.py
from __future__ import annotations

from fastapi import APIRouter, Header, HTTPException, status

from config import settings
from workers.scheduled_plans import run_due_plans

router = APIRouter()


@router.get(
    "/meal-plans",
    status_code=status.HTTP_200_OK,
    summary="Generate meal plans for every user whose schedule is due now",
)
async def cron_meal_plans(authorization: str | None = Header(None)) -> dict[str, int]:
    if settings.cron_secret and authorization != f"Bearer {settings.cron_secret}":
        raise HTTPException(status_code=401, detail="Unauthorized")
    summary = await run_due_plans()
    return {"due": summary.due, "generated": summary.generated, "failed": summary.failed}
