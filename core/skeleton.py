"""
core/skeleton.py
────────────────────────────────────────────────────────────────────────
Plan skeleton: ask the planner for a lightweight outline, then shape it.

  • `request_skeleton()`      – one generative call, raw text back
  • `parse_skeleton()`        – tolerant parse; `None` when the shape is wrong
  • `expand_template_day()`   – same_every_day → 7 identical days
  • `normalise_week()`        – at most 7 days, canonical Monday-start labels
  • `filter_slots()`          – keep only requested time slots
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Iterable

from pydantic import ValidationError

from config import settings
from core import prompts
from core.errors import PlannerUnavailableError
from core.models import (
    DAY_NAMES,
    DailySkeleton,
    DaySkeleton,
    PlanRequest,
    SlotSkeleton,
    WeeklySkeleton,
)
from scripts.helpers import extract_clean_json

_LOG = logging.getLogger(__name__)

GenerateFn = Callable[..., Awaitable[str]]


@dataclass
class Skeleton:
    baba_tip: str = ""
    days: list[DaySkeleton] = field(default_factory=list)
    slots: list[SlotSkeleton] = field(default_factory=list)
    degraded: bool = False

    @classmethod
    def degraded_from(cls, raw: str) -> "Skeleton":
        return cls(baba_tip=raw, degraded=True)


async def request_skeleton(req: PlanRequest, generate: GenerateFn) -> str:
    try:
        return await generate(
            prompts.skeleton_user_message(req),
            system=prompts.skeleton_instructions(req),
            model=settings.planner_model,
            temperature=0.8,
            max_output_tokens=4000 if req.is_weekly else 2500,
            json_mode=True,
        )
    except Exception as exc:
        raise PlannerUnavailableError(f"meal planner unavailable: {exc}") from exc


def parse_skeleton(raw: str, weekly: bool) -> Skeleton | None:
    try:
        data = extract_clean_json(raw)
        if weekly:
            wk = WeeklySkeleton.model_validate(data)
            return Skeleton(baba_tip=wk.baba_tip or "", days=wk.days)
        dl = DailySkeleton.model_validate(data)
        return Skeleton(baba_tip=dl.baba_tip or "", slots=dl.slots)
    except (ValueError, ValidationError) as exc:
        _LOG.warning("skeleton did not parse (%s); degrading", exc)
        return None


def expand_template_day(days: list[DaySkeleton]) -> list[DaySkeleton]:
    if not days:
        return []
    if len(days) > 1:
        _LOG.warning("same_every_day: planner returned %d days, using day 1", len(days))
    template = days[0]
    return [
        DaySkeleton(day=i + 1, day_name=name, slots=list(template.slots))
        for i, name in enumerate(DAY_NAMES)
    ]


def normalise_week(days: list[DaySkeleton]) -> list[DaySkeleton]:
    """Truncate past 7, relabel by position; short weeks stay short."""
    if len(days) != len(DAY_NAMES):
        _LOG.warning("weekly skeleton has %d days; expected 7", len(days))
    return [
        DaySkeleton(day=i + 1, day_name=DAY_NAMES[i], slots=d.slots)
        for i, d in enumerate(days[: len(DAY_NAMES)])
    ]


def filter_slots(slots: Iterable[SlotSkeleton], allowed: Iterable[str]) -> list[SlotSkeleton]:
    keep = set(allowed)
    return [s for s in slots if s.time_slot in keep]
