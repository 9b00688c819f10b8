"""
core/orchestrator.py
────────────────────────────────────────────────────────────────────────
Meal-plan orchestrator, written as an explicit state machine:

    START → REUSE? → {CLONE_FILTER | SKELETON} → [DUPLICATE_TEMPLATE]
          → FILTER_SLOTS → MATERIALIZE × n → [CONSOLIDATE]
          → ASSEMBLE → PERSIST → DONE

`PlanRun.step()` executes exactly one state and returns the next one;
every external call (planner, synthesizer, consolidator, store write)
sits inside a single step. `MealPlanOrchestrator.run()` just steps until
DONE.

Recovered locally (quality degrades, run continues):
  • skeleton that does not parse   → degraded plan, raw text as the tip
  • slot synthesis error / timeout → fallback recipe from the description
  • consolidation error            → flat ingredient list

Terminal (propagates, nothing returned):
  • any store write (`PlanPersistenceError`); recipes already written
    stay in the catalog
  • planner unreachable (`PlannerUnavailableError`)

Invocations share nothing; two identical requests give two plans.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Awaitable, Callable, Protocol

from config import settings
from core import skeleton as sk
from core.assembler import assemble_plan, render_linked, render_plain
from core.materializer import RecipeCatalog, SlotMaterializer, SynthesizeFn
from core.models import (
    DAILY_LABEL,
    DaySkeleton,
    MaterializedSlot,
    PlanDay,
    PlanRecord,
    PlanRequest,
    PlanResult,
    ShoppingList,
    SlotSkeleton,
)
from core.progress import ProgressEmitter, ProgressEvent, ProgressSink
from core.shopping import ShoppingListConsolidator, render_shopping_list

_LOG = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class PlanState(str, Enum):
    START = "START"
    REUSE = "REUSE"
    CLONE_FILTER = "CLONE_FILTER"
    SKELETON = "SKELETON"
    DUPLICATE_TEMPLATE = "DUPLICATE_TEMPLATE"
    FILTER_SLOTS = "FILTER_SLOTS"
    MATERIALIZE = "MATERIALIZE"
    CONSOLIDATE = "CONSOLIDATE"
    ASSEMBLE = "ASSEMBLE"
    PERSIST = "PERSIST"
    DONE = "DONE"


class PlanStore(Protocol):
    async def add_plan(self, plan: PlanRecord) -> str: ...

    async def recent_plans(
        self, user_id: str, plan_type: str, limit: int
    ) -> list[PlanRecord]: ...


# ───────────────────────── history helpers ───────────────────
def _created(plan: PlanRecord) -> datetime:
    ts = plan.created_at
    if ts is None:
        return _EPOCH
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


def newest_first(candidates: list[PlanRecord]) -> list[PlanRecord]:
    """Store reads come back in no particular order; sort by `created_at`."""
    return sorted(candidates, key=_created, reverse=True)


def latest_plan(candidates: list[PlanRecord]) -> PlanRecord | None:
    ordered = newest_first(candidates)
    return ordered[0] if ordered else None


def clone_filtered_days(plan: PlanRecord, allowed: tuple[str, ...]) -> list[PlanDay]:
    """Keep requested slots only; days left empty are dropped."""
    keep = set(allowed)
    out = []
    for d in plan.days:
        slots = [s.model_copy() for s in d.slots if s.time_slot in keep]
        if slots:
            out.append(PlanDay(day=d.day, day_name=d.day_name, slots=slots))
    return out


# ───────────────────────── one invocation ────────────────────
@dataclass
class _WorkItem:
    day_index: int | None  # position in PlanRun.days, None for daily plans
    slot: SlotSkeleton


@dataclass
class PlanRun:
    req: PlanRequest
    orchestrator: "MealPlanOrchestrator"
    progress: ProgressEmitter
    state: PlanState = PlanState.START
    history: list[PlanState] = field(default_factory=list)

    prior: PlanRecord | None = None
    cloned_days: list[PlanDay] = field(default_factory=list)
    skeleton: sk.Skeleton | None = None
    work: list[_WorkItem] = field(default_factory=list)
    cursor: int = 0
    days: list[PlanDay] = field(default_factory=list)
    slots: list[MaterializedSlot] = field(default_factory=list)
    ingredients: list[str] = field(default_factory=list)
    new_recipe_ids: list[str] = field(default_factory=list)
    shopping_list: ShoppingList | None = None
    plan: PlanRecord | None = None
    plan_id: str | None = None

    @property
    def done(self) -> bool:
        return self.state is PlanState.DONE

    async def step(self) -> PlanState:
        if self.done:
            raise RuntimeError("plan run already finished")
        handler = getattr(self, f"_on_{self.state.value.lower()}")
        self.history.append(self.state)
        nxt = await handler()
        _LOG.debug("plan[%s] %s → %s", self.req.user_id, self.state.value, nxt.value)
        self.state = nxt
        return nxt

    def result(self) -> PlanResult:
        if not self.done or self.plan is None or self.plan_id is None:
            raise RuntimeError("plan run has not finished")
        return PlanResult(
            plan_id=self.plan_id,
            plain_text_plan=self.plan.content or render_plain(self.plan),
            linked_plan=render_linked(self.plan),
            shopping_list=render_shopping_list(self.plan.shopping_list),
            plan=self.plan,
            new_recipe_ids=list(self.new_recipe_ids),
        )

    # ── states ────────────────────────────────────────────────
    async def _on_start(self) -> PlanState:
        if self.req.reuse_last_week and self.req.is_weekly:
            return PlanState.REUSE
        return PlanState.SKELETON

    async def _on_reuse(self) -> PlanState:
        orch = self.orchestrator
        candidates = await orch.plans.recent_plans(
            self.req.user_id, "weekly", orch.history_lookback
        )
        self.prior = latest_plan(candidates)
        if self.prior is None:
            _LOG.info("no previous weekly plan for %s; generating", self.req.user_id)
            return PlanState.SKELETON
        return PlanState.CLONE_FILTER

    async def _on_clone_filter(self) -> PlanState:
        assert self.prior is not None
        self.cloned_days = clone_filtered_days(self.prior, self.req.slots)
        if not self.cloned_days:
            _LOG.info("previous plan %s has no requested slots; generating", self.prior.id)
            return PlanState.SKELETON
        if self.req.include_shopping_list:
            self.shopping_list = self.prior.shopping_list
        return PlanState.ASSEMBLE

    async def _on_skeleton(self) -> PlanState:
        raw = await sk.request_skeleton(self.req, self.orchestrator.generate)
        parsed = sk.parse_skeleton(raw, weekly=self.req.is_weekly)
        if parsed is None:
            self.skeleton = sk.Skeleton.degraded_from(raw)
            return PlanState.ASSEMBLE
        self.skeleton = parsed
        if self.req.is_weekly and self.req.variety == "same_every_day":
            return PlanState.DUPLICATE_TEMPLATE
        return PlanState.FILTER_SLOTS

    async def _on_duplicate_template(self) -> PlanState:
        assert self.skeleton is not None
        self.skeleton.days = sk.expand_template_day(self.skeleton.days)
        return PlanState.FILTER_SLOTS

    async def _on_filter_slots(self) -> PlanState:
        assert self.skeleton is not None
        allowed = self.req.slots
        if self.req.is_weekly:
            week: list[DaySkeleton] = sk.normalise_week(self.skeleton.days)
            for idx, d in enumerate(week):
                self.days.append(PlanDay(day=d.day or idx + 1, day_name=d.day_name))
                self.work += [_WorkItem(idx, s) for s in sk.filter_slots(d.slots, allowed)]
        else:
            self.work = [_WorkItem(None, s) for s in sk.filter_slots(self.skeleton.slots, allowed)]
        return PlanState.MATERIALIZE if self.work else PlanState.ASSEMBLE

    async def _on_materialize(self) -> PlanState:
        item = self.work[self.cursor]
        slot = item.slot
        if item.day_index is None:
            day_no, label, completed = 1, DAILY_LABEL, 0
        else:
            day = self.days[item.day_index]
            day_no, label, completed = day.day, day.day_name, item.day_index

        await self.progress.emit(ProgressEvent(
            day=day_no,
            day_label=label,
            slot_label=slot.time_slot,
            recipe_name=slot.recipe_name,
            running_index=self.cursor + 1,
            total=len(self.work),
            completed_days=completed,
        ))
        made = await self.orchestrator.materializer.materialize(slot, self.req.user_id)
        self.new_recipe_ids.append(made.recipe_id)
        self.ingredients.extend(made.ingredients)

        entry = MaterializedSlot(**slot.model_dump(), recipe_id=made.recipe_id)
        if item.day_index is None:
            self.slots.append(entry)
        else:
            self.days[item.day_index].slots.append(entry)

        self.cursor += 1
        if self.cursor < len(self.work):
            return PlanState.MATERIALIZE
        if self.req.include_shopping_list and any(i.strip() for i in self.ingredients):
            return PlanState.CONSOLIDATE
        return PlanState.ASSEMBLE

    async def _on_consolidate(self) -> PlanState:
        self.shopping_list = await self.orchestrator.consolidator.consolidate(self.ingredients)
        return PlanState.ASSEMBLE

    async def _on_assemble(self) -> PlanState:
        if self.cloned_days:
            assert self.prior is not None
            self.plan = assemble_plan(
                self.req,
                baba_tip=self.prior.baba_tip,
                days=self.cloned_days,
                shopping_list=self.shopping_list,
            )
            return PlanState.PERSIST

        assert self.skeleton is not None
        self.plan = assemble_plan(
            self.req,
            baba_tip=self.skeleton.baba_tip,
            days=self.days,
            slots=self.slots,
            shopping_list=self.shopping_list,
        )
        return PlanState.PERSIST

    async def _on_persist(self) -> PlanState:
        assert self.plan is not None
        self.plan_id = await self.orchestrator.plans.add_plan(self.plan)
        self.plan.id = self.plan_id
        _LOG.info(
            "plan %s saved: user=%s type=%s variety=%s slots=%d new_recipes=%d "
            "shopping_list=%s degraded=%s",
            self.plan_id, self.req.user_id, self.plan.type, self.plan.variety,
            len(self.plan.recipe_ids()), len(self.new_recipe_ids),
            self.plan.shopping_list is not None,
            bool(self.skeleton and self.skeleton.degraded),
        )
        return PlanState.DONE


# ───────────────────────── public entry point ────────────────
class MealPlanOrchestrator:
    def __init__(
        self,
        plans: PlanStore,
        recipes: RecipeCatalog,
        *,
        generate: Callable[..., Awaitable[str]] | None = None,
        synthesize: SynthesizeFn | None = None,
        history_lookback: int | None = None,
        synthesis_timeout_s: float | None = None,
    ) -> None:
        if generate is None or synthesize is None:
            from services import gemini
            from services.recipe_details import generate_recipe_details

            generate = generate or gemini.generate
            synthesize = synthesize or generate_recipe_details

        self.plans = plans
        self.generate = generate
        self.history_lookback = history_lookback or settings.plan_history_lookback
        self.materializer = SlotMaterializer(
            synthesize,
            recipes,
            timeout_s=synthesis_timeout_s or settings.recipe_synthesis_timeout_s,
        )
        self.consolidator = ShoppingListConsolidator(generate)

    def start(self, req: PlanRequest, progress: ProgressSink | None = None) -> PlanRun:
        return PlanRun(req=req, orchestrator=self, progress=ProgressEmitter(progress))

    async def run(self, req: PlanRequest, progress: ProgressSink | None = None) -> PlanResult:
        plan_run = self.start(req, progress)
        while not plan_run.done:
            await plan_run.step()
        return plan_run.result()
