"""
core/assembler.py
────────────────────────────────────────────────────────────────────────
Plan Assembler: the persisted document plus its two renderings.

  plain text   – for email / notifications, no links
  linked text  – markdown, each recipe linked by id for interactive use
"""
from __future__ import annotations

from datetime import datetime, timezone

from core.models import MaterializedSlot, PlanDay, PlanRecord, PlanRequest, ShoppingList
from core.shopping import render_shopping_list

RECIPE_PATH = "/recipe/{recipe_id}"

SUBJECTS = {
    "weekly": "Baba Selo's Weekly Meal Plan",
    "daily": "Baba Selo's Daily Meal Plan",
}


def _label(time_slot: str) -> str:
    return time_slot[:1].upper() + time_slot[1:]


def _link(slot: MaterializedSlot) -> str:
    return f"[{slot.recipe_name}]({RECIPE_PATH.format(recipe_id=slot.recipe_id)})"


def render_plain(plan: PlanRecord) -> str:
    lines: list[str] = []
    if plan.type == "weekly":
        for day in plan.days:
            lines.append(f"\n{day.day_name}:")
            for s in day.slots:
                lines.append(f"  {_label(s.time_slot)}: {s.recipe_name} - {s.description}")
    else:
        for s in plan.slots:
            lines.append(f"{_label(s.time_slot)}: {s.recipe_name} - {s.description}")
    shopping = render_shopping_list(plan.shopping_list)
    if shopping:
        lines.append(f"\nSHOPPING LIST:\n{shopping}")
    if plan.baba_tip:
        lines.append(f"\nBaba Tip: {plan.baba_tip}")
    return "\n".join(lines).strip()


def render_linked(plan: PlanRecord) -> str:
    blocks: list[str] = []
    if plan.type == "weekly":
        for day in plan.days:
            day_lines = [f"**Day {day.day}: {day.day_name}**"]
            day_lines += [
                f"  {_label(s.time_slot)}: {_link(s)} - {s.description}" for s in day.slots
            ]
            blocks.append("\n".join(day_lines))
    else:
        blocks += [f"  {_label(s.time_slot)}: {_link(s)} - {s.description}" for s in plan.slots]
    if plan.baba_tip:
        blocks.append(f"\n**Baba's Tip:** {plan.baba_tip}")
    shopping = render_shopping_list(plan.shopping_list)
    if shopping:
        blocks.append(f"\n**Shopping List:**\n{shopping}")
    return "\n\n".join(blocks)


def assemble_plan(
    req: PlanRequest,
    *,
    baba_tip: str,
    days: list[PlanDay] | None = None,
    slots: list[MaterializedSlot] | None = None,
    shopping_list: ShoppingList | None = None,
) -> PlanRecord:
    plan = PlanRecord(
        user_id=req.user_id,
        type=req.type,
        variety=req.variety,
        subject=SUBJECTS[req.type],
        baba_tip=baba_tip,
        days=days or [],
        slots=slots or [],
        shopping_list=shopping_list,
        source=req.source,
        created_at=datetime.now(timezone.utc),
    )
    plan.content = render_plain(plan)
    return plan
