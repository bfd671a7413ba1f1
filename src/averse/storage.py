"""On-disk persistence: recipe markdown files and plan YAML files."""

from __future__ import annotations

import errno
import logging
import os
import re
import tempfile
import time
from datetime import date
from pathlib import Path

import frontmatter
import yaml

from averse.dates import parse_date
from averse.errors import (
    AverseError,
    DuplicateRecipeName,
    InvalidDate,
    PlanNotFound,
    StoreIOError,
    UnknownRecipe,
)
from averse.ingredients import format_ingredient, parse_ingredient
from averse.models import Assignment, DateRange, Plan, PlanConstraints, Recipe
from averse.store import RecipeStore

logger = logging.getLogger(__name__)

TRANSIENT_ERRNOS = {errno.EAGAIN, errno.EBUSY, errno.EINTR}
RETRY_DELAY_SECONDS = 0.05


def _is_transient(exc: OSError) -> bool:
    return exc.errno in TRANSIENT_ERRNOS


def _with_retries(action, path: Path, retries: int, verb: str):
    """Run an I/O action, retrying transient OSErrors up to `retries` attempts."""
    attempts = max(1, retries)
    for attempt in range(1, attempts + 1):
        try:
            return action()
        except OSError as e:
            if _is_transient(e) and attempt < attempts:
                logger.warning(
                    "Transient error %s %s (attempt %d/%d): %s",
                    verb, path, attempt, attempts, e,
                )
                time.sleep(RETRY_DELAY_SECONDS * attempt)
                continue
            raise StoreIOError(path, e.strerror or str(e)) from e


def atomic_write_text(path: Path, text: str, retries: int = 3) -> None:
    """Replace path with text so readers never observe a partial file.

    Writes to a temp file in the same directory, fsyncs, then os.replace().
    """

    def write() -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    _with_retries(write, path, retries, "writing")


def _read_text(path: Path, retries: int = 3) -> str:
    return _with_retries(lambda: path.read_text(encoding="utf-8"), path, retries, "reading")


# --- Recipes ---


def recipe_path(recipe_dir: Path, name: str) -> Path:
    """File path for a recipe: spaces become dashes, ".md" extension."""
    if not name.strip():
        raise ValueError("Recipe name must not be empty")
    if "/" in name or "\\" in name:
        raise ValueError(f"Recipe name must not contain a path separator: {name!r}")
    return recipe_dir / f"{name.strip().replace(' ', '-')}.md"


def discover_recipe_files(recipe_dir: Path) -> list[Path]:
    """Find all .md files in the recipe directory."""
    if not recipe_dir.is_dir():
        return []
    return sorted(recipe_dir.glob("*.md"))


def extract_steps(content: str) -> list[str]:
    """Extract the numbered list under the '## Steps' heading of a recipe body."""
    match = re.search(r"^#{2,3}\s+Steps\s*$", content, re.MULTILINE)
    if not match:
        return []

    section = content[match.end():]
    next_heading = re.search(r"^#{1,3}\s+", section, re.MULTILINE)
    if next_heading:
        section = section[: next_heading.start()]

    steps = []
    for line in section.splitlines():
        m = re.match(r"^\s*\d+\.\s+(.*\S)\s*$", line)
        if m:
            steps.append(m.group(1))
    return steps


def render_recipe_body(recipe: Recipe) -> str:
    lines = [f"# {recipe.name}", "", "## Ingredients", ""]
    lines.extend(f"- {format_ingredient(ing)}" for ing in recipe.ingredients)
    lines.extend(["", "## Steps", ""])
    lines.extend(f"{i}. {step}" for i, step in enumerate(recipe.steps, start=1))
    return "\n".join(lines) + "\n"


def recipe_to_markdown(recipe: Recipe) -> str:
    post = frontmatter.Post(
        render_recipe_body(recipe),
        type="recipe",
        name=recipe.name,
        tags=sorted(recipe.tags),
        ingredients=[format_ingredient(ing) for ing in recipe.ingredients],
    )
    return frontmatter.dumps(post) + "\n"


def parse_recipe_text(text: str, file_path: Path) -> Recipe | None:
    """Parse recipe markdown. Returns None for files that are not recipes."""
    try:
        post = frontmatter.loads(text)
    except yaml.YAMLError as e:
        raise StoreIOError(file_path, f"invalid frontmatter: {e}") from e

    meta = post.metadata
    if meta.get("type") != "recipe":
        return None

    name = str(meta.get("name") or file_path.stem.replace("-", " ")).strip()

    tags = meta.get("tags", []) or []
    if isinstance(tags, str):
        tags = [t.strip() for t in tags.split(",")]

    raw_ingredients = meta.get("ingredients", []) or []
    try:
        ingredients = tuple(parse_ingredient(str(raw)) for raw in raw_ingredients)
    except AverseError as e:
        raise StoreIOError(file_path, str(e)) from e

    return Recipe(
        name=name,
        ingredients=ingredients,
        tags=frozenset(str(t) for t in tags if str(t).strip()),
        steps=tuple(extract_steps(post.content)),
    )


def parse_recipe_file(file_path: Path, retries: int = 3) -> Recipe | None:
    """Parse a single recipe markdown file into a Recipe object."""
    return parse_recipe_text(_read_text(file_path, retries), file_path)


def load_recipe_store(recipe_dir: Path, retries: int = 3) -> RecipeStore:
    """Load every recipe file in the directory into a RecipeStore."""
    store = RecipeStore()
    for f in discover_recipe_files(recipe_dir):
        recipe = parse_recipe_file(f, retries)
        if recipe is None:
            logger.debug("SKIP (not a recipe): %s", f.name)
            continue
        store.add(recipe)
    logger.debug("Loaded %d recipes from %s", len(store), recipe_dir)
    return store


def save_recipe(
    recipe_dir: Path,
    recipe: Recipe,
    overwrite: bool = False,
    retries: int = 3,
) -> Path:
    """Write a recipe file. Refuses to clobber an existing file unless overwrite.

    Distinct names can share a file ("Pasta Bake" and "Pasta-Bake"), so the
    name stored in an existing file is checked before it is replaced.
    """
    path = recipe_path(recipe_dir, recipe.name)
    if path.exists():
        existing = parse_recipe_file(path, retries)
        if existing is None:
            raise StoreIOError(path, "file exists and is not a recipe")
        if existing.name != recipe.name:
            raise DuplicateRecipeName(recipe.name, existing=existing.name)
        if not overwrite:
            raise DuplicateRecipeName(recipe.name)
    atomic_write_text(path, recipe_to_markdown(recipe), retries)
    logger.info("Recipe saved to %s", path)
    return path


def delete_recipe(recipe_dir: Path, name: str, retries: int = 3) -> Path:
    path = recipe_path(recipe_dir, name)
    existing = parse_recipe_file(path, retries) if path.exists() else None
    if existing is None or existing.name != name:
        raise UnknownRecipe(name)
    try:
        path.unlink()
    except FileNotFoundError:
        raise UnknownRecipe(name) from None
    except OSError as e:
        raise StoreIOError(path, e.strerror or str(e)) from e
    logger.info("Recipe removed: %s", path)
    return path


# --- Plans ---


def _to_date(value: object) -> date:
    if isinstance(value, date):
        return value
    return parse_date(str(value))


def plan_to_dict(plan: Plan) -> dict:
    return {
        "start": plan.date_range.start.isoformat(),
        "end": plan.date_range.end.isoformat(),
        "constraints": {
            "min_cooldown_days": plan.constraints.min_cooldown_days,
            "meals_per_day": plan.constraints.meals_per_day,
            "required_tags": sorted(plan.constraints.required_tags),
            "exclude": sorted(plan.constraints.exclude),
        },
        "assignments": [
            {"date": a.day.isoformat(), "recipe": a.recipe} for a in plan.assignments
        ],
    }


def plan_from_dict(data: dict) -> Plan:
    constraints_data = data.get("constraints") or {}
    constraints = PlanConstraints(
        min_cooldown_days=int(constraints_data.get("min_cooldown_days", 0)),
        meals_per_day=int(constraints_data.get("meals_per_day", 1)),
        required_tags=frozenset(constraints_data.get("required_tags") or []),
        exclude=frozenset(constraints_data.get("exclude") or []),
    )
    return Plan(
        date_range=DateRange.create(_to_date(data["start"]), _to_date(data["end"])),
        assignments=tuple(
            Assignment(day=_to_date(a["date"]), recipe=str(a["recipe"]))
            for a in data.get("assignments") or []
        ),
        constraints=constraints,
    )


def plan_path(plan_dir: Path, plan_id: str) -> Path:
    """Path of a plan file. Plan ids are ISO start dates; anything else raises InvalidDate."""
    return plan_dir / f"{parse_date(plan_id).isoformat()}.yaml"


def save_plan(plan_dir: Path, plan: Plan, retries: int = 3) -> Path:
    """Write plan to disk as YAML, replacing any plan with the same id."""
    path = plan_path(plan_dir, plan.plan_id)
    text = yaml.safe_dump(plan_to_dict(plan), sort_keys=False, allow_unicode=True)
    atomic_write_text(path, text, retries)
    logger.info("Plan saved to %s", path)
    return path


def load_plan(plan_dir: Path, plan_id: str, retries: int = 3) -> Plan:
    path = plan_path(plan_dir, plan_id)
    if not path.exists():
        raise PlanNotFound(plan_id)
    text = _read_text(path, retries)
    try:
        data = yaml.safe_load(text)
        if not isinstance(data, dict):
            raise ValueError("expected a mapping")
        return plan_from_dict(data)
    except (yaml.YAMLError, AverseError, KeyError, TypeError, ValueError) as e:
        raise StoreIOError(path, f"invalid plan file: {e}") from e


def _is_plan_id(stem: str) -> bool:
    try:
        return parse_date(stem).isoformat() == stem
    except InvalidDate:
        return False


def list_plan_ids(plan_dir: Path) -> list[str]:
    """Saved plan ids, newest (latest start date) first.

    YAML files whose name is not an ISO date are not plans and are skipped.
    """
    if not plan_dir.is_dir():
        return []
    ids = []
    for p in plan_dir.glob("*.yaml"):
        if _is_plan_id(p.stem):
            ids.append(p.stem)
        else:
            logger.debug("SKIP (not a plan): %s", p.name)
    return sorted(ids, reverse=True)


def latest_plan_id(plan_dir: Path) -> str:
    ids = list_plan_ids(plan_dir)
    if not ids:
        raise PlanNotFound(None)
    return ids[0]


def load_latest_plans(plan_dir: Path, n_plans: int, retries: int = 3) -> list[Plan]:
    """Fetch the latest N plans."""
    return [load_plan(plan_dir, pid, retries) for pid in list_plan_ids(plan_dir)[:n_plans]]
