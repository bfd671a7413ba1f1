"""CLI entry point for averse."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from averse.errors import AverseError

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path(".")


def load_settings(args: argparse.Namespace, **overrides: object) -> dict:
    from averse.config import apply_cli_overrides, load_config

    config = load_config(Path(args.data_dir))
    return apply_cli_overrides(
        config,
        recipe_dir=args.recipe_dir,
        plan_dir=args.plan_dir,
        **overrides,
    )


def get_dirs(args: argparse.Namespace, config: dict) -> tuple[Path, Path]:
    from averse.config import resolve_dir

    data_dir = Path(args.data_dir)
    return (
        resolve_dir(data_dir, config["storage"]["recipe_dir"]),
        resolve_dir(data_dir, config["storage"]["plan_dir"]),
    )


def cmd_add(args: argparse.Namespace) -> None:
    from averse.recipes import run_add

    config = load_settings(args)
    recipe_dir, _ = get_dirs(args, config)
    run_add(
        recipe_dir=recipe_dir,
        name=args.name,
        tags=args.tag,
        ingredients=args.ingredient,
        steps=args.step,
        replace=args.replace,
        retries=config["storage"]["write_retries"],
    )


def cmd_view(args: argparse.Namespace) -> None:
    from averse.recipes import run_view

    config = load_settings(args)
    recipe_dir, _ = get_dirs(args, config)
    run_view(
        recipe_dir=recipe_dir,
        query=args.query,
        tags=args.tag,
        retries=config["storage"]["write_retries"],
    )


def cmd_remove(args: argparse.Namespace) -> None:
    from averse.recipes import run_remove

    config = load_settings(args)
    recipe_dir, _ = get_dirs(args, config)
    run_remove(recipe_dir, args.name, retries=config["storage"]["write_retries"])


def cmd_plan(args: argparse.Namespace) -> None:
    from averse.dates import parse_date
    from averse.planner import run_plan

    # Reject malformed dates before touching config or recipes
    parse_date(args.date)
    if args.end_date is not None:
        parse_date(args.end_date)

    config = load_settings(
        args,
        days=args.days,
        cooldown=args.cooldown,
        meals_per_day=args.meals_per_day,
        tags=args.tag,
        exclude=args.exclude,
    )
    recipe_dir, plan_dir = get_dirs(args, config)
    run_plan(
        recipe_dir=recipe_dir,
        plan_dir=plan_dir,
        config=config,
        start_date=args.date,
        end_date=args.end_date,
        dry_run=args.dry_run,
        output_format=args.format,
    )


def cmd_behold(args: argparse.Namespace) -> None:
    from averse.behold import run_behold

    config = load_settings(args, n_plans=args.n_plans)
    recipe_dir, plan_dir = get_dirs(args, config)
    run_behold(
        recipe_dir=recipe_dir,
        plan_dir=plan_dir,
        plan_id=args.plan_id,
        output_format=args.format,
        list_plans=args.list,
        n_plans=config["behold"]["n_plans"],
        retries=config["storage"]["write_retries"],
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="averse",
        description="Store recipes, plan meals for the week and build a grocery list",
    )
    parser.add_argument(
        "--data-dir",
        type=str,
        default=str(DEFAULT_DATA_DIR),
        help="Directory holding averse.yaml, recipes/ and plans/ (default: .)",
    )
    parser.add_argument(
        "-r", "--recipe-dir",
        type=str,
        default=None,
        help="Recipe directory (default: <data-dir>/recipes)",
    )
    parser.add_argument(
        "-p", "--plan-dir",
        type=str,
        default=None,
        help="Plans directory (default: <data-dir>/plans)",
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        default="info",
        help="Logging verbosity (default: info)",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Also write logs to this file",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    # add
    p_add = sub.add_parser("add", help="Add recipe (interactive unless --name is given)")
    p_add.add_argument("--name", type=str, help="Recipe name; skips the prompts")
    p_add.add_argument(
        "--tag", action="append", default=[], help="Tag or comma-separated tags. Repeatable."
    )
    p_add.add_argument(
        "--ingredient",
        action="append",
        default=[],
        help='Ingredient as "<AMOUNT> [<UNIT>] <INGREDIENT>", e.g. "1 lb beef". Repeatable.',
    )
    p_add.add_argument("--step", action="append", default=[], help="Recipe step. Repeatable.")
    p_add.add_argument(
        "--replace", action="store_true", help="Overwrite an existing recipe with this name"
    )
    p_add.set_defaults(func=cmd_add)

    # view
    p_view = sub.add_parser("view", help="View & filter recipes")
    p_view.add_argument("query", nargs="?", help="Recipe name (fuzzy matched)")
    p_view.add_argument(
        "--tag", action="append", default=[], help="Only list recipes with this tag. Repeatable."
    )
    p_view.set_defaults(func=cmd_view)

    # remove
    p_remove = sub.add_parser("remove", help="Delete a recipe")
    p_remove.add_argument("name", type=str, help="Exact recipe name")
    p_remove.set_defaults(func=cmd_remove)

    # plan
    p_plan = sub.add_parser("plan", help="Plan meals + grocery list for the week")
    p_plan.add_argument(
        "-d", "--date", type=str, required=True, help="First day, YYYY-MM-DD e.g. 2022-05-15"
    )
    span = p_plan.add_mutually_exclusive_group()
    span.add_argument("--end-date", type=str, help="Last day, YYYY-MM-DD")
    span.add_argument("--days", type=int, help="Number of days to plan (default: 7)")
    p_plan.add_argument(
        "--cooldown", type=int, help="Days before a recipe may repeat (default: 3)"
    )
    p_plan.add_argument("--meals-per-day", type=int, help="Recipes per day (default: 1)")
    p_plan.add_argument(
        "--tag", action="append", default=[], help="Only plan recipes with this tag. Repeatable."
    )
    p_plan.add_argument(
        "--exclude", action="append", default=[], help="Recipe name to leave out. Repeatable."
    )
    p_plan.add_argument(
        "--dry-run", action="store_true", help="Print the plan without saving it"
    )
    p_plan.add_argument(
        "--format", type=str, choices=["json", "markdown"], default="markdown"
    )
    p_plan.set_defaults(func=cmd_plan)

    # behold
    p_behold = sub.add_parser(
        "behold", help="Display a saved plan with its shopping list"
    )
    p_behold.add_argument(
        "plan_id", nargs="?", help="Plan id (its start date). Default: most recent plan"
    )
    p_behold.add_argument(
        "--list", action="store_true", help="List the latest saved plans instead"
    )
    p_behold.add_argument(
        "-n", "--n-plans", type=int, default=None, help="Number of plans to list (default: 5)"
    )
    p_behold.add_argument(
        "--format", type=str, choices=["json", "markdown"], default="markdown"
    )
    p_behold.set_defaults(func=cmd_behold)

    return parser


def main(argv: list[str] | None = None) -> int:
    from averse.log import setup_logging

    parser = build_parser()
    args = parser.parse_args(argv)

    log_file = Path(args.log_file) if args.log_file else None
    setup_logging(level=args.log_level, log_file=log_file)

    try:
        args.func(args)
    except (AverseError, ValueError) as e:
        logger.error("%s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
