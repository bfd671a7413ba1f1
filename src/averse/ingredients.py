"""Ingredient lines: unit lookup, parsing, formatting and name normalization."""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation

from averse.errors import IngredientParseError
from averse.models import IngredientLine, Unit

# Lowercased spellings accepted for each unit.
UNIT_ALIASES: dict[str, Unit] = {
    "g": Unit.GRAM,
    "gram": Unit.GRAM,
    "grams": Unit.GRAM,
    "kg": Unit.KG,
    "kgs": Unit.KG,
    "kilogram": Unit.KG,
    "kilograms": Unit.KG,
    "oz": Unit.OZ,
    "ounce": Unit.OZ,
    "ounces": Unit.OZ,
    "lb": Unit.LB,
    "lbs": Unit.LB,
    "pound": Unit.LB,
    "pounds": Unit.LB,
    "ml": Unit.ML,
    "milliliter": Unit.ML,
    "milliliters": Unit.ML,
    "l": Unit.L,
    "liter": Unit.L,
    "liters": Unit.L,
    "litre": Unit.L,
    "litres": Unit.L,
    "tsp": Unit.TSP,
    "teaspoon": Unit.TSP,
    "teaspoons": Unit.TSP,
    "tbsp": Unit.TBSP,
    "tbs": Unit.TBSP,
    "tablespoon": Unit.TBSP,
    "tablespoons": Unit.TBSP,
    "cup": Unit.CUP,
    "cups": Unit.CUP,
    "gallon": Unit.GALLON,
    "gallons": Unit.GALLON,
    "item": Unit.ITEM,
    "items": Unit.ITEM,
    "can": Unit.CAN,
    "cans": Unit.CAN,
    "clove": Unit.CLOVE,
    "cloves": Unit.CLOVE,
    "slice": Unit.SLICE,
    "slices": Unit.SLICE,
}

FRACTION_RE = re.compile(r"^(\d+)/(\d+)$")


def lookup_unit(token: str) -> Unit | None:
    """Return the Unit for a token, or None if it is not a unit."""
    return UNIT_ALIASES.get(token.lower().strip().rstrip("."))


def parse_quantity(raw: str) -> Decimal:
    """Parse "2", "0.5" or "1/2" into an exact Decimal."""
    m = FRACTION_RE.match(raw)
    if m:
        numerator, denominator = int(m.group(1)), int(m.group(2))
        if denominator == 0:
            raise ValueError("zero denominator")
        return Decimal(numerator) / Decimal(denominator)
    try:
        qty = Decimal(raw)
    except InvalidOperation:
        raise ValueError(f"{raw!r} is not a number") from None
    if not qty.is_finite():
        raise ValueError(f"{raw!r} is not a number")
    return qty


def parse_ingredient(raw: str) -> IngredientLine:
    """Parse '<AMOUNT> [<UNIT>] <INGREDIENT>' (e.g. '1 lb beef', '2 eggs')."""
    tokens = raw.split()
    if not tokens:
        raise IngredientParseError(raw, "No ingredient provided")

    try:
        qty = parse_quantity(tokens[0])
    except ValueError:
        raise IngredientParseError(raw, "AMOUNT must be a valid number") from None
    if qty <= 0:
        raise IngredientParseError(raw, "AMOUNT must be positive")

    rest = tokens[1:]
    unit = lookup_unit(rest[0]) if rest else None
    if unit is not None and len(rest) > 1:
        rest = rest[1:]
    else:
        unit = Unit.NONE

    if not rest or (unit is Unit.NONE and lookup_unit(rest[0]) is not None):
        raise IngredientParseError(raw, "No ingredient provided")

    return IngredientLine(name=" ".join(rest), quantity=qty, unit=unit)


def normalize_name(name: str) -> str:
    """Normalize an ingredient name for aggregation: trimmed, lowercase, single spaces."""
    return " ".join(name.split()).lower()


def format_quantity(qty: Decimal) -> str:
    """Format a Decimal without exponent or trailing zeros, at most 2 places."""
    if qty != qty.to_integral_value():
        qty = qty.quantize(Decimal("0.01"))
    return format(qty.normalize(), "f")


def format_ingredient(line: IngredientLine) -> str:
    """Inverse of parse_ingredient: '<qty> [<unit>] <name>'."""
    qty = format(line.quantity.normalize(), "f")
    if line.unit is Unit.NONE:
        return f"{qty} {line.name}"
    return f"{qty} {line.unit.symbol} {line.name}"
