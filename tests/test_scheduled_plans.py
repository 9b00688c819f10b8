"""
Scheduled plan delivery – workers/scheduled_plans.py
"""
import asyncio
from datetime import datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import pytest

from core.errors import PlanPersistenceError
from workers.scheduled_plans import Schedule, is_due, local_time, run_due_plans

# 2026-03-07 is a Saturday
SAT_0730_UTC = datetime(2026, 3, 7, 7, 30, tzinfo=timezone.utc)


def test_weekly_default_day_is_saturday():
    assert is_due(Schedule("u1", "07:30"), SAT_0730_UTC)
    assert not is_due(Schedule("u1", "07:31"), SAT_0730_UTC)


def test_weekly_explicit_day_of_week():
    assert not is_due(Schedule("u1", "07:30", day_of_week=0), SAT_0730_UTC)
    sunday = datetime(2026, 3, 8, 7, 30, tzinfo=timezone.utc)
    assert is_due(Schedule("u1", "07:30", day_of_week=0), sunday)


def test_daily_ignores_weekday():
    assert is_due(Schedule("u1", "7:30", plan_type="daily"), SAT_0730_UTC)


def test_timezone_is_applied():
    try:
        ZoneInfo("Europe/Paris")
    except ZoneInfoNotFoundError:
        pytest.skip("no tz database")
    # 07:30 UTC == 08:30 in Paris (CET, before DST)
    assert is_due(Schedule("u1", "08:30", timezone="Europe/Paris", plan_type="daily"), SAT_0730_UTC)


def test_unknown_timezone_falls_back_to_utc():
    assert local_time(SAT_0730_UTC, "Mars/Olympus").hour == 7


def test_bad_time_is_never_due():
    assert not is_due(Schedule("u1", "breakfast", plan_type="daily"), SAT_0730_UTC)


def test_run_due_plans_counts_and_continues():
    schedules = [
        Schedule("due-ok", "07:30"),
        Schedule("due-broken", "07:30", plan_type="daily"),
        Schedule("not-due", "18:00"),
    ]
    seen = []

    async def load():
        return schedules

    async def generate(user_id):
        seen.append(user_id)
        if user_id == "due-broken":
            raise PlanPersistenceError("db down")
        return f"plan-{user_id}"

    summary = asyncio.run(run_due_plans(SAT_0730_UTC, load=load, generate=generate))
    assert (summary.due, summary.generated, summary.failed) == (2, 1, 1)
    assert seen == ["due-ok", "due-broken"]
