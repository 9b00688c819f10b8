"""
workers/scheduled_plans.py
────────────────────────────────────────────────────────────────────────
Scheduled per-user meal plans.

Run every minute (Cloud Scheduler / cron):

    python -m workers.scheduled_plans

Force one user now, ignoring their schedule:

    python -m workers.scheduled_plans --user-id abc123

A user is due when their schedule is enabled and the wall-clock `HH:MM`
in their timezone equals the configured time; weekly plans additionally
need the local weekday to match (0=Sunday … 6=Saturday, default 6).
A failure for one user is logged and counted, the run carries on.
"""
from __future__ import annotations

import argparse
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Awaitable, Callable
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv
from sqlalchemy import select

from config import settings
from core.errors import MealPlanError
from core.models import PlanOptions
from services.db import MealPlanPreferences, session_scope
from services.meal_plans import generate_for_user

_LOG = logging.getLogger(__name__)

DEFAULT_WEEKLY_DAY = 6  # Saturday


@dataclass(frozen=True)
class Schedule:
    user_id: str
    time: str
    timezone: str = "UTC"
    day_of_week: int | None = None
    plan_type: str = "weekly"


@dataclass
class RunSummary:
    due: int = 0
    generated: int = 0
    failed: int = 0


# ───────────────────────── due check ─────────────────────────
def local_time(now: datetime, tz_name: str | None) -> datetime:
    try:
        tz = ZoneInfo(tz_name or "UTC")
    except (ZoneInfoNotFoundError, ValueError):
        _LOG.warning("unknown timezone %r, using UTC", tz_name)
        tz = timezone.utc
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(tz)


def _hhmm(value: str) -> str | None:
    try:
        hour, minute = value.split(":")[:2]
        return f"{int(hour):02d}:{int(minute):02d}"
    except ValueError:
        return None


def is_due(schedule: Schedule, now: datetime) -> bool:
    wanted = _hhmm(schedule.time)
    if wanted is None:
        return False
    local = local_time(now, schedule.timezone)
    if local.strftime("%H:%M") != wanted:
        return False
    if schedule.plan_type == "weekly":
        weekday = (local.weekday() + 1) % 7  # Python Monday=0 → Sunday=0
        target = DEFAULT_WEEKLY_DAY if schedule.day_of_week is None else schedule.day_of_week
        return weekday == target
    return True


# ───────────────────────── I/O ───────────────────────────────
async def load_schedules() -> list[Schedule]:
    async with session_scope() as db:
        rows = (
            await db.execute(
                select(MealPlanPreferences).where(
                    MealPlanPreferences.schedule_enabled.is_(True),
                    MealPlanPreferences.schedule_time.is_not(None),
                )
            )
        ).scalars().all()
    return [
        Schedule(
            user_id=r.user_id,
            time=r.schedule_time or "",
            timezone=r.schedule_timezone or "UTC",
            day_of_week=r.schedule_day_of_week,
            plan_type=r.meal_plan_type or "weekly",
        )
        for r in rows
    ]


async def generate_one(user_id: str) -> str:
    async with session_scope() as db:
        result = await generate_for_user(db, user_id, PlanOptions(), source="cron")
    return result.plan_id


async def run_due_plans(
    now: datetime | None = None,
    *,
    load: Callable[[], Awaitable[list[Schedule]]] = load_schedules,
    generate: Callable[[str], Awaitable[str]] = generate_one,
) -> RunSummary:
    now = now or datetime.now(timezone.utc)
    summary = RunSummary()
    for schedule in await load():
        if not is_due(schedule, now):
            continue
        summary.due += 1
        try:
            plan_id = await generate(schedule.user_id)
        except MealPlanError as exc:
            summary.failed += 1
            _LOG.error("scheduled plan for %s failed: %s", schedule.user_id, exc)
            continue
        summary.generated += 1
        _LOG.info("scheduled plan %s generated for %s", plan_id, schedule.user_id)
    _LOG.info(
        "scheduled run at %s: due=%d generated=%d failed=%d",
        now.isoformat(), summary.due, summary.generated, summary.failed,
    )
    return summary


def main() -> None:
    load_dotenv()
    logging.basicConfig(level=settings.log_level)

    ap = argparse.ArgumentParser()
    ap.add_argument("--user-id", help="generate for this user now, ignoring schedules")
    ap.add_argument("--now", type=datetime.fromisoformat, help="pretend it is this time (ISO)")
    args = ap.parse_args()

    if args.user_id:
        plan_id = asyncio.run(generate_one(args.user_id))
        print(f"✓ plan {plan_id} generated for {args.user_id}")
        return
    summary = asyncio.run(run_due_plans(args.now))
    print(f"✓ due={summary.due} generated={summary.generated} failed={summary.failed}")


if __name__ == "__main__":
    main()
