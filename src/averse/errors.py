"""Failure kinds surfaced by averse."""

from __future__ import annotations

from datetime import date
from pathlib import Path


class AverseError(Exception):
    """Base class for every failure reported at the CLI boundary."""


class InvalidDate(AverseError):
    def __init__(self, raw: str, reason: str = "expected YYYY-MM-DD"):
        self.raw = raw
        self.reason = reason
        super().__init__(f"Invalid date {raw!r}: {reason}")


class InvalidRange(AverseError):
    def __init__(self, start: date, end: date):
        self.start = start
        self.end = end
        super().__init__(
            f"Invalid date range: start {start.isoformat()} is after end {end.isoformat()}"
        )


class InsufficientRecipes(AverseError):
    def __init__(self, day: date, needed: int, available: int):
        self.date = day
        self.needed = needed
        self.available = available
        super().__init__(
            f"Not enough eligible recipes for {day.isoformat()}: "
            f"needed {needed}, only {available} available"
        )


class DanglingRecipeReference(AverseError):
    def __init__(self, recipe_name: str, day: date | None = None):
        self.recipe_name = recipe_name
        self.date = day
        where = f" (assigned to {day.isoformat()})" if day else ""
        super().__init__(f"Plan references missing recipe {recipe_name!r}{where}")


class DuplicateRecipeName(AverseError):
    def __init__(self, name: str, existing: str | None = None):
        self.name = name
        self.existing = existing
        if existing is None:
            super().__init__(f"A recipe named {name!r} already exists")
        else:
            super().__init__(
                f"Recipe {name!r} would be saved over the file of recipe {existing!r}"
            )


class UnknownRecipe(AverseError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"No recipe named {name!r}")


class PlanNotFound(AverseError):
    def __init__(self, plan_id: str | None):
        self.plan_id = plan_id
        if plan_id is None:
            super().__init__("No saved plans found. Run `averse plan --date YYYY-MM-DD` first.")
        else:
            super().__init__(f"No saved plan with id {plan_id!r}")


class IngredientParseError(AverseError):
    def __init__(self, raw: str, reason: str):
        self.raw = raw
        self.reason = reason
        super().__init__(f"Cannot parse ingredient {raw!r}: {reason}")


class StoreIOError(AverseError):
    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to read/write {path}: {reason}")
