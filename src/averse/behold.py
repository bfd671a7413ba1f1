"""Display saved meal plans together with their shopping lists."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from rich.console import Console
from rich.table import Table

from averse.dates import day_label
from averse.ingredients import format_quantity
from averse.models import Plan, ShoppingEntry, ShoppingList, Unit, UnitClass

logger = logging.getLogger(__name__)

UNIT_CLASS_ORDER = list(UnitClass)


def format_entry(entry: ShoppingEntry) -> str:
    qty = format_quantity(entry.quantity)
    if entry.unit is Unit.NONE:
        return f"{qty} {entry.name}"
    return f"{qty} {entry.unit.symbol} {entry.name}"


def _entry_sort_key(entry: ShoppingEntry) -> tuple[str, int, str]:
    return entry.name, UNIT_CLASS_ORDER.index(entry.unit_class), entry.unit.symbol


def render(plan: Plan, shopping_list: ShoppingList) -> str:
    """Format a plan and its shopping list as markdown.

    Dates ascending, recipes in assignment order within a date, shopping
    entries by ingredient name then unit class. An ingredient listed in two
    unit classes appears once per class; no conversion is guessed.
    """
    start = plan.date_range.start.isoformat()
    end = plan.date_range.end.isoformat()
    lines = [f"# Meal Plan: {start} to {end}", ""]

    for day in plan.date_range:
        lines.append(f"## {day_label(day)}")
        lines.append("")
        names = plan.recipes_for_day(day)
        if names:
            lines.extend(f"- {name}" for name in names)
        else:
            lines.append("- _nothing planned_")
        lines.append("")

    lines.append("## Shopping List")
    lines.append("")
    entries = sorted(shopping_list, key=_entry_sort_key)
    if entries:
        lines.extend(f"- [ ] {format_entry(e)} ({', '.join(e.recipes)})" for e in entries)
    else:
        lines.append("_No ingredients_")
    lines.append("")

    lines.append("## Summary")
    lines.append("")
    lines.append(f"- Days: {len(plan.date_range)}")
    lines.append(f"- Meals: {len(plan.assignments)}")
    lines.append(f"- Unique recipes: {len(plan.recipe_names())}")
    lines.append(f"- Shopping items: {len(shopping_list)}")
    lines.append("")

    return "\n".join(lines)


def render_json(plan: Plan, shopping_list: ShoppingList) -> str:
    """Format a plan and its shopping list as JSON."""
    from averse.storage import plan_to_dict

    data = {
        "plan_id": plan.plan_id,
        **plan_to_dict(plan),
        "shopping_list": [
            {
                "item": e.name,
                "unit_class": e.unit_class.value,
                "qty": format_quantity(e.quantity),
                "unit": e.unit.symbol,
                "recipes": list(e.recipes),
            }
            for e in sorted(shopping_list, key=_entry_sort_key)
        ],
    }
    return json.dumps(data, indent=2)


def print_plan_table(plans: list[Plan], console: Console | None = None) -> None:
    """Print a summary row per plan: id, range, meals and recipes."""
    table = Table(title="Saved plans")
    table.add_column("Plan")
    table.add_column("Range")
    table.add_column("Meals", justify="right")
    table.add_column("Recipes")

    for plan in plans:
        table.add_row(
            plan.plan_id,
            f"{plan.date_range.start.isoformat()} .. {plan.date_range.end.isoformat()}",
            str(len(plan.assignments)),
            ", ".join(sorted(plan.recipe_names())),
        )

    (console or Console()).print(table)


def run_behold(
    recipe_dir: Path,
    plan_dir: Path,
    plan_id: str | None = None,
    output_format: str = "markdown",
    list_plans: bool = False,
    n_plans: int = 5,
    retries: int = 3,
) -> None:
    """CLI entry point for behold command."""
    from averse.shopping import aggregate
    from averse.storage import latest_plan_id, load_latest_plans, load_plan, load_recipe_store

    if list_plans:
        print_plan_table(load_latest_plans(plan_dir, n_plans, retries))
        return

    if plan_id is None:
        plan_id = latest_plan_id(plan_dir)
        logger.info("No plan given, showing most recent: %s", plan_id)

    plan = load_plan(plan_dir, plan_id, retries)
    store = load_recipe_store(recipe_dir, retries)
    shopping_list = aggregate(plan, store)

    if output_format == "json":
        print(render_json(plan, shopping_list))
    else:
        print(render(plan, shopping_list))
