"""Shared data models for averse."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from enum import Enum
from typing import Iterator


class UnitClass(Enum):
    MASS = "mass"
    VOLUME = "volume"
    COUNT = "count"
    NONE = "none"


class Unit(Enum):
    """Units of measurement, tagged with their class and base-unit factor."""

    GRAM = ("gram", UnitClass.MASS, Decimal("1"))
    KG = ("kg", UnitClass.MASS, Decimal("1000"))
    OZ = ("oz", UnitClass.MASS, Decimal("28.349523125"))
    LB = ("lb", UnitClass.MASS, Decimal("453.59237"))
    ML = ("ml", UnitClass.VOLUME, Decimal("1"))
    L = ("l", UnitClass.VOLUME, Decimal("1000"))
    TSP = ("tsp", UnitClass.VOLUME, Decimal("4.92892159375"))
    TBSP = ("tbsp", UnitClass.VOLUME, Decimal("14.78676478125"))
    CUP = ("cup", UnitClass.VOLUME, Decimal("236.5882365"))
    GALLON = ("gallon", UnitClass.VOLUME, Decimal("3785.411784"))
    ITEM = ("item", UnitClass.COUNT, None)
    CAN = ("can", UnitClass.COUNT, None)
    CLOVE = ("clove", UnitClass.COUNT, None)
    SLICE = ("slice", UnitClass.COUNT, None)
    NONE = ("", UnitClass.NONE, None)

    def __init__(self, symbol: str, unit_class: UnitClass, factor: Decimal | None):
        self.symbol = symbol
        self.unit_class = unit_class
        self.factor = factor

    @property
    def convertible(self) -> bool:
        return self.factor is not None


BASE_UNITS = {
    UnitClass.MASS: Unit.GRAM,
    UnitClass.VOLUME: Unit.ML,
}


@dataclass(frozen=True)
class IngredientLine:
    name: str
    quantity: Decimal
    unit: Unit = Unit.NONE

    def __str__(self) -> str:
        from averse.ingredients import format_ingredient

        return format_ingredient(self)


@dataclass(frozen=True)
class Recipe:
    name: str
    ingredients: tuple[IngredientLine, ...] = ()
    tags: frozenset[str] = frozenset()
    steps: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("Recipe name must not be empty")
        if "/" in self.name or "\\" in self.name:
            raise ValueError(f"Recipe name must not contain a path separator: {self.name!r}")

    def has_tags(self, required: frozenset[str]) -> bool:
        """Check if the recipe carries every required tag (case-insensitive)."""
        own = {t.lower() for t in self.tags}
        return all(t.lower() in own for t in required)


@dataclass(frozen=True)
class DateRange:
    """Inclusive calendar range. Use DateRange.create for validated construction."""

    start: date
    end: date

    @classmethod
    def create(cls, start: date, end: date) -> DateRange:
        from averse.errors import InvalidRange

        if start > end:
            raise InvalidRange(start, end)
        return cls(start, end)

    def __contains__(self, day: object) -> bool:
        return isinstance(day, date) and self.start <= day <= self.end

    def __iter__(self) -> Iterator[date]:
        day = self.start
        while day <= self.end:
            yield day
            day += timedelta(days=1)

    def __len__(self) -> int:
        return (self.end - self.start).days + 1


@dataclass(frozen=True)
class PlanConstraints:
    min_cooldown_days: int = 0
    required_tags: frozenset[str] = frozenset()
    meals_per_day: int = 1
    exclude: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        if self.min_cooldown_days < 0:
            raise ValueError(
                f"min_cooldown_days must be >= 0, got {self.min_cooldown_days}"
            )
        if self.meals_per_day < 1:
            raise ValueError(f"meals_per_day must be >= 1, got {self.meals_per_day}")


@dataclass(frozen=True)
class Assignment:
    day: date
    recipe: str  # recipe name, resolved against the store on demand


@dataclass(frozen=True)
class Plan:
    date_range: DateRange
    assignments: tuple[Assignment, ...] = ()
    constraints: PlanConstraints = field(default_factory=PlanConstraints)

    def __post_init__(self) -> None:
        for a in self.assignments:
            if a.day not in self.date_range:
                raise ValueError(
                    f"Assignment {a.recipe!r} on {a.day.isoformat()} lies outside "
                    f"{self.date_range.start.isoformat()}..{self.date_range.end.isoformat()}"
                )

    @property
    def plan_id(self) -> str:
        return self.date_range.start.isoformat()

    def recipes_for_day(self, day: date) -> list[str]:
        return [a.recipe for a in self.assignments if a.day == day]

    def recipe_names(self) -> set[str]:
        return {a.recipe for a in self.assignments}


@dataclass(frozen=True)
class ShoppingEntry:
    name: str
    unit_class: UnitClass
    quantity: Decimal
    unit: Unit
    recipes: tuple[str, ...] = ()


@dataclass(frozen=True)
class ShoppingList:
    """Aggregated quantities keyed by (ingredient name, unit class).

    Count-class lines in different count units cannot be merged, so such
    entries additionally differ by unit.
    """

    entries: tuple[ShoppingEntry, ...] = ()

    def __iter__(self) -> Iterator[ShoppingEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def get(
        self, name: str, unit_class: UnitClass | None = None
    ) -> ShoppingEntry | None:
        for entry in self.entries:
            if entry.name == name and (unit_class is None or entry.unit_class == unit_class):
                return entry
        return None
