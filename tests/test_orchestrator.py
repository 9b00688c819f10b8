"""
Meal-plan state machine end to end, with in-memory stores and scripted
generative calls – core/orchestrator.py
"""
import asyncio
import json
from datetime import datetime, timedelta, timezone

import pytest

from core.errors import PlannerUnavailableError, PlanPersistenceError
from core.models import PlanOptions, PlanRecord, PlanRequest, PreferenceContext
from core.orchestrator import (
    MealPlanOrchestrator,
    PlanState,
    clone_filtered_days,
    latest_plan,
    newest_first,
)
from core.preferences import resolve_request
from plan_fakes import (
    FakePlanStore,
    FakeRecipeCatalog,
    FakeSynth,
    ScriptedGenerate,
    daily_json,
    prior_weekly_plan,
    weekly_json,
)


def _orch(skeleton, *, plans=None, recipes=None, synth=None, shopping=None):
    plans = plans if plans is not None else FakePlanStore()
    recipes = recipes if recipes is not None else FakeRecipeCatalog()
    gen = ScriptedGenerate(skeleton, shopping=shopping)
    orch = MealPlanOrchestrator(
        plans,
        recipes,
        generate=gen,
        synthesize=synth or FakeSynth(),
        history_lookback=20,
        synthesis_timeout_s=1,
    )
    return orch, plans, recipes, gen


def _run(orch, req, progress=None):
    return asyncio.run(orch.run(req, progress))


# ───────────────────────── scenarios ─────────────────────────
def test_weekly_varied_vegetarian_plan():
    orch, plans, recipes, gen = _orch(weekly_json())
    req = resolve_request("u1", PlanOptions(
        meal_plan_prompt="vegetarian, under 30 minutes",
        type="weekly",
        variety="varied",
        slots=["breakfast", "lunch", "dinner"],
    ))
    result = _run(orch, req)

    plan = plans.plans[result.plan_id]
    assert [d.day for d in plan.days] == [1, 2, 3, 4, 5, 6, 7]
    assert all(len(d.slots) == 3 for d in plan.days)
    assert {s.time_slot for d in plan.days for s in d.slots} == {"breakfast", "lunch", "dinner"}
    assert len(recipes.recipes) == 21
    assert sorted(plan.recipe_ids()) == sorted(recipes.recipes)
    assert plan.shopping_list == {"produce": "2 onions", "pantry": "5 tbsp olive oil"}
    assert result.shopping_list == "Produce:\n2 onions\n\nPantry:\n5 tbsp olive oil"
    assert "vegetarian, under 30 minutes" in gen.calls[0]["system"]
    assert "Snack" not in result.plain_text_plan
    assert result.public()["planId"] == result.plan_id


def test_same_every_day_dinners_are_materialized_per_day():
    # planner ignores the one-day instruction and sends three days
    orch, plans, recipes, _ = _orch(weekly_json(n_days=3))
    req = PlanRequest(user_id="u1", variety="same_every_day", slots=("dinner",))
    result = _run(orch, req)

    plan = result.plan
    assert len(plan.days) == 7
    assert all(len(d.slots) == 1 for d in plan.days)
    texts = {(d.slots[0].recipe_name, d.slots[0].description) for d in plan.days}
    assert texts == {("Dinner 1", "Dinner 1 description")}
    ids = [d.slots[0].recipe_id for d in plan.days]
    assert len(set(ids)) == 7
    assert len(recipes.recipes) == 7


def test_reuse_last_week_clones_the_latest_prior_plan():
    plans = FakePlanStore()
    plans.seed(prior_weekly_plan("u1", age_days=14, tag="old"))
    plans.seed(prior_weekly_plan("u1", age_days=7, tag="last"))
    plans.seed(prior_weekly_plan("someone-else", age_days=1, tag="theirs"))
    orch, _, recipes, gen = _orch(weekly_json(), plans=plans)

    req = PlanRequest(user_id="u1", reuse_last_week=True, slots=("dinner",))
    result = _run(orch, req)

    plan = result.plan
    assert recipes.recipes == {}
    assert gen.calls == []
    assert result.new_recipe_ids == []
    assert all([s.time_slot for s in d.slots] == ["dinner"] for d in plan.days)
    assert set(plan.recipe_ids()) <= {f"last-dinner-{i}" for i in range(1, 8)}
    assert plan.baba_tip == "last tip"
    assert plan.shopping_list == {"produce": "last carrots"}
    assert result.plan_id != "seed-2"


def test_reuse_without_prior_plan_generates():
    orch, _, recipes, gen = _orch(weekly_json())
    req = PlanRequest(user_id="u1", reuse_last_week=True, slots=("dinner",))
    run = orch.start(req)
    while not run.done:
        asyncio.run(run.step())
    assert PlanState.REUSE in run.history
    assert PlanState.SKELETON in run.history
    assert len(recipes.recipes) == 7
    assert gen.count("skeleton") == 1


def test_reuse_with_no_matching_slots_generates():
    plans = FakePlanStore()
    plans.seed(prior_weekly_plan("u1", age_days=7, tag="last"))
    orch, _, recipes, _ = _orch(weekly_json(), plans=plans)
    result = _run(orch, PlanRequest(user_id="u1", reuse_last_week=True, slots=("snack",)))
    assert len(recipes.recipes) == 7
    assert result.new_recipe_ids


def test_reuse_is_ignored_for_daily_plans():
    plans = FakePlanStore()
    plans.seed(prior_weekly_plan("u1", age_days=7, tag="last"))
    orch, _, recipes, _ = _orch(daily_json(("lunch",)), plans=plans)
    run = orch.start(PlanRequest(user_id="u1", type="daily", reuse_last_week=True, slots=("lunch",)))
    while not run.done:
        asyncio.run(run.step())
    assert PlanState.REUSE not in run.history
    assert len(recipes.recipes) == 1


def test_unparseable_daily_skeleton_degrades():
    orch, plans, recipes, gen = _orch("Oh dear, let me tell you about soup instead.")
    req = PlanRequest(
        user_id="u1", type="daily", slots=("breakfast", "lunch", "dinner", "snack")
    )
    result = _run(orch, req)

    plan = plans.plans[result.plan_id]
    assert plan.baba_tip == "Oh dear, let me tell you about soup instead."
    assert plan.slots == [] and plan.days == []
    assert recipes.recipes == {}
    assert plan.shopping_list is None
    assert result.shopping_list is None
    assert gen.count("shopping") == 0
    assert "shoppingList" not in result.public()


def test_failed_synthesis_still_feeds_the_shopping_list():
    synth = FakeSynth(fail_for={"Lunch 2"})
    orch, _, recipes, gen = _orch(weekly_json(), synth=synth)
    result = _run(orch, PlanRequest(user_id="u1"))

    fallback = [r for r in recipes.recipes.values() if r.recipe_title == "Lunch 2"]
    assert len(fallback) == 1
    assert fallback[0].ingredients == ["Lunch 2 description"]
    assert sum(len(d.slots) for d in result.plan.days) == 21
    shopping_prompt = next(c["prompt"] for c in gen.calls if c["kind"] == "shopping")
    assert "- Lunch 2 description" in shopping_prompt


def test_failed_synthesis_without_description_falls_back_to_the_name():
    skeleton = json.dumps({"slots": [{"timeSlot": "dinner", "recipeName": "Mystery Stew"}]})
    orch, plans, recipes, gen = _orch(skeleton, synth=FakeSynth(fail_for={"Mystery Stew"}))
    result = _run(orch, PlanRequest(
        user_id="u1", type="daily", slots=("dinner",), include_shopping_list=True,
    ))

    assert result.plan_id in plans.plans
    (recipe,) = recipes.recipes.values()
    assert recipe.ingredients == ["Mystery Stew"]
    assert recipe.directions == ["Mystery Stew"]
    assert result.plan.shopping_list == {"produce": "2 onions", "pantry": "5 tbsp olive oil"}
    shopping_prompt = next(c["prompt"] for c in gen.calls if c["kind"] == "shopping")
    assert "- Mystery Stew" in shopping_prompt


# ───────────────────────── properties ────────────────────────
@pytest.mark.parametrize("slots", [("breakfast",), ("lunch", "snack"), ("breakfast", "lunch", "dinner", "snack")])
def test_persisted_slots_are_within_the_request(slots):
    orch, _, _, _ = _orch(weekly_json())
    result = _run(orch, PlanRequest(user_id="u1", slots=slots))
    assert {s.time_slot for d in result.plan.days for s in d.slots} == set(slots)


def test_long_week_is_truncated_to_seven_days():
    orch, _, recipes, _ = _orch(weekly_json(n_days=10))
    result = _run(orch, PlanRequest(user_id="u1", slots=("dinner",)))
    assert [d.day for d in result.plan.days] == list(range(1, 8))
    assert len(recipes.recipes) == 7


def test_short_week_is_not_padded():
    orch, _, _, _ = _orch(weekly_json(n_days=4))
    result = _run(orch, PlanRequest(user_id="u1", slots=("dinner",)))
    assert [d.day_name for d in result.plan.days] == ["Monday", "Tuesday", "Wednesday", "Thursday"]


def test_shopping_list_absent_when_not_requested():
    orch, _, _, gen = _orch(weekly_json())
    result = _run(orch, PlanRequest(user_id="u1", include_shopping_list=False))
    assert result.plan.shopping_list is None
    assert gen.count("shopping") == 0


def test_shopping_list_flat_when_consolidation_fails():
    orch, _, _, _ = _orch(daily_json(("dinner",)), shopping=RuntimeError("quota"))
    result = _run(orch, PlanRequest(user_id="u1", type="daily", slots=("dinner",)))
    assert result.plan.shopping_list == "1 cup daily dinner base\n2 tbsp olive oil"


def test_two_identical_requests_give_two_plans():
    orch, plans, recipes, _ = _orch(daily_json())
    req = PlanRequest(user_id="u1", type="daily")
    first = _run(orch, req)
    second = _run(orch, req)
    assert first.plan_id != second.plan_id
    assert set(first.new_recipe_ids).isdisjoint(second.new_recipe_ids)
    assert len(plans.plans) == 2


def test_plan_write_failure_propagates_after_recipes_are_written():
    orch, _, recipes, _ = _orch(daily_json(), plans=FakePlanStore(fail=True))
    with pytest.raises(PlanPersistenceError):
        _run(orch, PlanRequest(user_id="u1", type="daily"))
    assert len(recipes.recipes) == 3


def test_recipe_write_failure_stops_the_batch():
    orch, plans, recipes, _ = _orch(weekly_json(), recipes=FakeRecipeCatalog(fail_on=3))
    with pytest.raises(PlanPersistenceError):
        _run(orch, PlanRequest(user_id="u1"))
    assert len(recipes.recipes) == 2
    assert plans.plans == {}


def test_planner_unreachable_is_terminal():
    orch, plans, _, _ = _orch(ConnectionError("dns"))
    with pytest.raises(PlannerUnavailableError):
        _run(orch, PlanRequest(user_id="u1"))
    assert plans.plans == {}


def test_calorie_target_reaches_the_planner():
    orch, _, _, gen = _orch(daily_json())
    req = PlanRequest(user_id="u1", type="daily", preferences=PreferenceContext(calorie_target=1500))
    _run(orch, req)
    assert "approximately 1500 calories" in gen.calls[0]["system"]


# ───────────────────────── progress + trace ──────────────────
def test_weekly_progress_events_are_ordered():
    events = []
    orch, _, _, _ = _orch(weekly_json(n_days=2))
    _run(orch, PlanRequest(user_id="u1", slots=("breakfast", "dinner")), events.append)

    assert [e.running_index for e in events] == [1, 2, 3, 4]
    assert {e.total for e in events} == {4}
    assert [(e.day, e.slot_label) for e in events] == [
        (1, "breakfast"), (1, "dinner"), (2, "breakfast"), (2, "dinner"),
    ]
    assert [e.completed_days for e in events] == [0, 0, 1, 1]
    assert events[2].day_label == "Tuesday"
    assert events[0].recipe_name == "Breakfast 1"


def test_daily_progress_uses_today_label():
    events = []

    async def sink(event):
        events.append(event)

    orch, _, _, _ = _orch(daily_json(("lunch", "dinner")))
    _run(orch, PlanRequest(user_id="u1", type="daily", slots=("lunch", "dinner")), sink)
    assert [(e.day, e.day_label, e.completed_days) for e in events] == [(1, "Today", 0)] * 2


def test_broken_progress_sink_does_not_abort():
    def sink(event):
        raise RuntimeError("socket closed")

    orch, _, recipes, _ = _orch(daily_json())
    result = _run(orch, PlanRequest(user_id="u1", type="daily"), sink)
    assert result.plan_id
    assert len(recipes.recipes) == 3


def test_state_trace_for_generated_weekly_plan():
    orch, _, _, _ = _orch(weekly_json(n_days=1))
    run = orch.start(PlanRequest(user_id="u1", variety="same_every_day", slots=("dinner",)))
    while not run.done:
        asyncio.run(run.step())
    assert run.history == [
        PlanState.START,
        PlanState.SKELETON,
        PlanState.DUPLICATE_TEMPLATE,
        PlanState.FILTER_SLOTS,
        *[PlanState.MATERIALIZE] * 7,
        PlanState.CONSOLIDATE,
        PlanState.ASSEMBLE,
        PlanState.PERSIST,
    ]
    with pytest.raises(RuntimeError):
        asyncio.run(run.step())


def test_result_before_done_is_an_error():
    orch, _, _, _ = _orch(daily_json())
    with pytest.raises(RuntimeError):
        orch.start(PlanRequest(user_id="u1", type="daily")).result()


# ───────────────────────── history helpers ───────────────────
def _dated(ts, tag):
    return PlanRecord(id=tag, user_id="u1", type="weekly", created_at=ts)


def test_latest_plan_sorts_client_side():
    now = datetime(2026, 3, 1, 12, tzinfo=timezone.utc)
    plans = [
        _dated(now - timedelta(days=3), "a"),
        _dated(None, "undated"),
        _dated((now - timedelta(days=1)).replace(tzinfo=None), "naive"),
        _dated(now - timedelta(days=2), "b"),
    ]
    assert latest_plan(plans).id == "naive"
    assert [p.id for p in newest_first(plans)] == ["naive", "b", "a", "undated"]
    assert latest_plan([]) is None


def test_clone_filtered_days_drops_empty_days():
    prior = prior_weekly_plan("u1", 7, "p")
    assert clone_filtered_days(prior, ("snack",)) == []
    days = clone_filtered_days(prior, ("lunch", "dinner"))
    assert len(days) == 7
    assert [s.time_slot for s in days[0].slots] == ["lunch", "dinner"]
    # the prior plan is left untouched
    assert len(prior.days[0].slots) == 3
