"""Meal plan generation: assign recipes to dates under cooldown and tag constraints."""

from __future__ import annotations

import logging
from datetime import date, timedelta
from pathlib import Path

from averse.errors import InsufficientRecipes, InvalidRange
from averse.models import Assignment, DateRange, Plan, PlanConstraints, Recipe
from averse.store import RecipeStore

logger = logging.getLogger(__name__)


def is_excluded(recipe: Recipe, exclude_names: frozenset[str]) -> bool:
    """Check if recipe name matches any exclusion (case-insensitive, exact)."""
    if not exclude_names:
        return False
    name_lower = recipe.name.lower()
    return any(ex.lower().strip() == name_lower for ex in exclude_names)


def filter_candidates(recipes: RecipeStore, constraints: PlanConstraints) -> list[str]:
    """Names of recipes that satisfy the tag filter and are not excluded, sorted."""
    return [
        r.name
        for r in recipes
        if r.has_tags(constraints.required_tags) and not is_excluded(r, constraints.exclude)
    ]


def build_plan(
    recipes: RecipeStore,
    date_range: DateRange,
    constraints: PlanConstraints,
) -> Plan:
    """Build a deterministic plan over date_range.

    Dates are filled in ascending order. For each date, meals_per_day distinct
    recipes are chosen from the filtered candidates, skipping any recipe used
    in the previous min_cooldown_days dates. Ties go to the least recently
    used recipe (never-used first), then to name order.

    Raises InsufficientRecipes for the first date that cannot be filled; no
    partial plan is returned.
    """
    if date_range.start > date_range.end:
        raise InvalidRange(date_range.start, date_range.end)

    candidates = filter_candidates(recipes, constraints)
    logger.debug(
        "Planning %s..%s with %d candidates (cooldown=%d, meals/day=%d, tags=%s)",
        date_range.start.isoformat(),
        date_range.end.isoformat(),
        len(candidates),
        constraints.min_cooldown_days,
        constraints.meals_per_day,
        sorted(constraints.required_tags),
    )

    last_used: dict[str, date] = {}
    assignments: list[Assignment] = []

    for day in date_range:
        window_start = day - timedelta(days=constraints.min_cooldown_days)
        eligible = [
            name
            for name in candidates
            if name not in last_used or last_used[name] < window_start
        ]

        if len(eligible) < constraints.meals_per_day:
            logger.debug(
                "%s: %d eligible, %d needed", day.isoformat(), len(eligible),
                constraints.meals_per_day,
            )
            raise InsufficientRecipes(day, constraints.meals_per_day, len(eligible))

        # date.min sorts never-used recipes ahead of any used one
        eligible.sort(key=lambda name: (last_used.get(name, date.min), name))
        for name in eligible[: constraints.meals_per_day]:
            assignments.append(Assignment(day=day, recipe=name))
            last_used[name] = day
            logger.debug("%s: %s", day.isoformat(), name)

    plan = Plan(date_range=date_range, assignments=tuple(assignments), constraints=constraints)
    logger.info(
        "Planned %d meals over %d days using %d recipes",
        len(plan.assignments),
        len(date_range),
        len(plan.recipe_names()),
    )
    return plan


def run_plan(
    recipe_dir: Path,
    plan_dir: Path,
    config: dict,
    start_date: str,
    end_date: str | None = None,
    dry_run: bool = False,
    output_format: str = "markdown",
) -> Plan:
    """CLI entry point for plan command.

    The date is validated before any recipe is loaded, and the plan is only
    written once it has been built and its shopping list aggregated.
    """
    from averse.behold import render, render_json
    from averse.dates import build_range, parse_date
    from averse.shopping import aggregate
    from averse.storage import load_recipe_store, save_plan

    start = parse_date(start_date)
    if end_date is not None:
        date_range = build_range(start, end=parse_date(end_date))
    else:
        date_range = build_range(start, days=int(config["planning"]["days"]))

    planning = config["planning"]
    constraints = PlanConstraints(
        min_cooldown_days=int(planning["min_cooldown_days"]),
        required_tags=frozenset(planning.get("required_tags") or []),
        meals_per_day=int(planning["meals_per_day"]),
        exclude=frozenset(planning.get("exclude") or []),
    )

    retries = int(config["storage"]["write_retries"])
    store = load_recipe_store(recipe_dir, retries)
    plan = build_plan(store, date_range, constraints)
    shopping_list = aggregate(plan, store)

    if dry_run:
        logger.info("Dry run: plan %s not saved", plan.plan_id)
    else:
        save_plan(plan_dir, plan, retries)

    if output_format == "json":
        print(render_json(plan, shopping_list))
    else:
        print(render(plan, shopping_list))
    return plan
