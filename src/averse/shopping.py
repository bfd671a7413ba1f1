"""Shopping list generation from a meal plan."""

from __future__ import annotations

import logging
from collections import defaultdict
from decimal import Decimal
from fractions import Fraction

from averse.errors import DanglingRecipeReference
from averse.ingredients import normalize_name
from averse.models import (
    BASE_UNITS,
    IngredientLine,
    Plan,
    Recipe,
    ShoppingEntry,
    ShoppingList,
    Unit,
    UnitClass,
)
from averse.store import RecipeStore

logger = logging.getLogger(__name__)

UNIT_CLASS_ORDER = list(UnitClass)


def resolve_recipes(plan: Plan, recipes: RecipeStore) -> list[Recipe]:
    """Resolve every assignment to its recipe, in assignment order.

    Raises DanglingRecipeReference for the first assignment whose recipe has
    been removed from the store.
    """
    resolved = []
    for a in plan.assignments:
        recipe = recipes.find(a.recipe)
        if recipe is None:
            raise DanglingRecipeReference(a.recipe, a.day)
        resolved.append(recipe)
    return resolved


def aggregation_key(line: IngredientLine) -> tuple[str, UnitClass, Unit | None]:
    """Key lines by (normalized name, unit class).

    Convertible classes merge across units; count units have no conversion, so
    the unit itself becomes part of the key.
    """
    unit_key = None if line.unit.convertible else line.unit
    return normalize_name(line.name), line.unit.unit_class, unit_key


def _to_decimal(value: Fraction) -> Decimal:
    return Decimal(value.numerator) / Decimal(value.denominator)


def _settle(unit_class: UnitClass, totals: dict[Unit, Fraction]) -> tuple[Decimal, Unit]:
    """Collapse per-unit totals into one quantity.

    A single unit is kept as written; several units of a convertible class
    are expressed in the class base unit. Totals are exact until this one
    conversion to Decimal.
    """
    if len(totals) == 1:
        (unit, qty), = totals.items()
        return _to_decimal(qty), unit
    base = BASE_UNITS[unit_class]
    qty = sum((q * Fraction(u.factor) for u, q in totals.items()), Fraction(0))
    return _to_decimal(qty), base


def aggregate(plan: Plan, recipes: RecipeStore) -> ShoppingList:
    """Merge the ingredients of every planned meal into a shopping list.

    Sums are kept as exact Fractions and the fold is keyed, so the result
    does not depend on assignment order.
    """
    totals: dict[tuple[str, UnitClass, Unit | None], dict[Unit, Fraction]] = defaultdict(
        lambda: defaultdict(Fraction)
    )
    sources: dict[tuple[str, UnitClass, Unit | None], set[str]] = defaultdict(set)

    for recipe in resolve_recipes(plan, recipes):
        for line in recipe.ingredients:
            key = aggregation_key(line)
            totals[key][line.unit] += Fraction(line.quantity)
            sources[key].add(recipe.name)

    entries = []
    for key, per_unit in totals.items():
        name, unit_class, _ = key
        qty, unit = _settle(unit_class, per_unit)
        entries.append(
            ShoppingEntry(
                name=name,
                unit_class=unit_class,
                quantity=qty,
                unit=unit,
                recipes=tuple(sorted(sources[key])),
            )
        )

    entries.sort(key=lambda e: (e.name, UNIT_CLASS_ORDER.index(e.unit_class), e.unit.symbol))

    logger.debug(
        "Aggregated %d planned meals into %d shopping entries",
        len(plan.assignments),
        len(entries),
    )
    return ShoppingList(entries=tuple(entries))
