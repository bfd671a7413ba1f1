"""Tests for ingredient aggregation into a shopping list."""

import itertools
import random
from datetime import date, timedelta
from decimal import Decimal

import pytest
from averse.errors import DanglingRecipeReference
from averse.ingredients import parse_quantity
from averse.models import (
    Assignment,
    DateRange,
    IngredientLine,
    Plan,
    PlanConstraints,
    Recipe,
    Unit,
    UnitClass,
)
from averse.planner import build_plan
from averse.shopping import aggregate, aggregation_key, resolve_recipes
from averse.store import RecipeStore

DAY = date(2022, 7, 31)


def _line(name: str, qty: str, unit: Unit = Unit.NONE) -> IngredientLine:
    return IngredientLine(name=name, quantity=Decimal(qty), unit=unit)


def _plan(*names: str, day: date = DAY) -> Plan:
    return Plan(
        date_range=DateRange(day, day),
        assignments=tuple(Assignment(day, n) for n in names),
    )


class TestAggregate:
    def test_pasta_and_salad_on_one_date(self, pasta, salad):
        store = RecipeStore([pasta, salad])
        shopping = aggregate(_plan("Pasta", "Salad"), store)

        assert len(shopping) == 3
        assert shopping.get("flour").quantity == Decimal("500")
        assert shopping.get("flour").unit == Unit.GRAM
        assert shopping.get("eggs").quantity == Decimal("4")
        assert shopping.get("eggs").unit_class == UnitClass.NONE
        assert shopping.get("lettuce").quantity == Decimal("200")

    def test_names_normalized(self, pasta, salad):
        # Salad spells it "Eggs " and Pasta "eggs"
        shopping = aggregate(_plan("Pasta", "Salad"), RecipeStore([pasta, salad]))
        assert [e.name for e in shopping] == ["eggs", "flour", "lettuce"]
        assert shopping.get("eggs").recipes == ("Pasta", "Salad")

    def test_same_recipe_twice_counts_twice(self, pasta):
        plan = Plan(
            date_range=DateRange(DAY, DAY + timedelta(days=1)),
            assignments=(Assignment(DAY, "Pasta"), Assignment(DAY + timedelta(days=1), "Pasta")),
        )
        shopping = aggregate(plan, RecipeStore([pasta]))
        assert shopping.get("flour").quantity == Decimal("1000")

    def test_same_unit_kept_as_written(self):
        store = RecipeStore([
            Recipe("A", ingredients=(_line("milk", "1", Unit.CUP),)),
            Recipe("B", ingredients=(_line("milk", "0.5", Unit.CUP),)),
        ])
        entry = aggregate(_plan("A", "B"), store).get("milk")
        assert entry.quantity == Decimal("1.5")
        assert entry.unit == Unit.CUP

    def test_mixed_units_of_one_class_convert_to_base(self):
        store = RecipeStore([
            Recipe("A", ingredients=(_line("flour", "1", Unit.KG),)),
            Recipe("B", ingredients=(_line("flour", "250", Unit.GRAM),)),
        ])
        shopping = aggregate(_plan("A", "B"), store)
        assert len(shopping) == 1
        entry = shopping.get("flour")
        assert entry.quantity == Decimal("1250")
        assert entry.unit == Unit.GRAM
        assert entry.unit_class == UnitClass.MASS

    def test_volume_conversion(self):
        store = RecipeStore([
            Recipe("A", ingredients=(_line("stock", "1", Unit.L),)),
            Recipe("B", ingredients=(_line("stock", "1", Unit.CUP),)),
        ])
        entry = aggregate(_plan("A", "B"), store).get("stock")
        assert entry.unit == Unit.ML
        assert entry.quantity == Decimal("1236.5882365")

    def test_incompatible_classes_kept_separate(self):
        store = RecipeStore([
            Recipe("A", ingredients=(_line("flour", "500", Unit.GRAM),)),
            Recipe("B", ingredients=(_line("flour", "2", Unit.CUP),)),
        ])
        shopping = aggregate(_plan("A", "B"), store)
        assert len(shopping) == 2
        assert shopping.get("flour", UnitClass.MASS).quantity == Decimal("500")
        assert shopping.get("flour", UnitClass.VOLUME).quantity == Decimal("2")
        assert shopping.get("flour", UnitClass.VOLUME).unit == Unit.CUP

    def test_count_units_without_conversion_kept_separate(self):
        store = RecipeStore([
            Recipe("A", ingredients=(_line("tomatoes", "1", Unit.CAN),)),
            Recipe("B", ingredients=(_line("tomatoes", "3", Unit.ITEM),)),
            Recipe("C", ingredients=(_line("tomatoes", "2", Unit.CAN),)),
        ])
        shopping = aggregate(_plan("A", "B", "C"), store)
        units = {(e.unit, e.quantity) for e in shopping}
        assert units == {(Unit.CAN, Decimal("3")), (Unit.ITEM, Decimal("3"))}

    def test_empty_plan(self, store):
        plan = Plan(date_range=DateRange(DAY, DAY))
        assert len(aggregate(plan, store)) == 0

    def test_aggregation_key(self):
        assert aggregation_key(_line(" Olive Oil", "1", Unit.TBSP)) == (
            "olive oil", UnitClass.VOLUME, None,
        )
        assert aggregation_key(_line("Tomatoes", "1", Unit.CAN)) == (
            "tomatoes", UnitClass.COUNT, Unit.CAN,
        )


class TestOrderInvariance:
    def test_random_permutations_yield_identical_list(self, store):
        plan = build_plan(
            store,
            DateRange(DAY, DAY + timedelta(days=13)),
            PlanConstraints(min_cooldown_days=1, meals_per_day=2),
        )
        expected = aggregate(plan, store)

        rng = random.Random(1234)
        for _ in range(25):
            shuffled = list(plan.assignments)
            rng.shuffle(shuffled)
            permuted = Plan(
                date_range=plan.date_range,
                assignments=tuple(shuffled),
                constraints=plan.constraints,
            )
            assert aggregate(permuted, store) == expected

    def test_mixed_units_order_invariant(self):
        store = RecipeStore([
            Recipe("A", ingredients=(_line("butter", "1", Unit.OZ), _line("milk", "1", Unit.TSP))),
            Recipe("B", ingredients=(_line("butter", "0.25", Unit.LB), _line("milk", "2", Unit.TBSP))),
            Recipe("C", ingredients=(_line("butter", "30", Unit.GRAM), _line("milk", "1", Unit.GALLON))),
        ])
        names = ["A", "B", "C"]
        expected = aggregate(_plan(*names), store)
        rng = random.Random(7)
        for _ in range(10):
            rng.shuffle(names)
            assert aggregate(_plan(*names), store) == expected

    def test_fractional_quantities_order_invariant(self):
        third = parse_quantity("1/3")
        store = RecipeStore([
            Recipe("A", ingredients=(IngredientLine("sugar", third, Unit.GRAM),)),
            Recipe("B", ingredients=(IngredientLine("sugar", third, Unit.GRAM),)),
            Recipe("C", ingredients=(_line("sugar", "1000000", Unit.GRAM),)),
            Recipe("D", ingredients=(IngredientLine("sugar", third, Unit.KG),)),
        ])
        for names in (["A", "B", "C"], ["A", "B", "C", "D"]):
            expected = aggregate(_plan(*names), store)
            for order in itertools.permutations(names):
                assert aggregate(_plan(*order), store) == expected

    def test_fractions_summed_before_rounding(self):
        third = parse_quantity("1/3")
        store = RecipeStore([
            Recipe("A", ingredients=(IngredientLine("sugar", third, Unit.GRAM),)),
            Recipe("B", ingredients=(IngredientLine("sugar", third, Unit.GRAM),)),
            Recipe("C", ingredients=(_line("sugar", "1000000", Unit.GRAM),)),
        ])
        entry = aggregate(_plan("C", "A", "B"), store).get("sugar")
        assert entry.quantity == Decimal("1000000.666666666666666666667")


class TestDanglingReferences:
    def test_removed_recipe_reported(self, pasta, salad):
        store = RecipeStore([pasta, salad])
        plan = _plan("Pasta", "Salad")
        store.remove("Salad")
        with pytest.raises(DanglingRecipeReference) as exc:
            aggregate(plan, store)
        assert exc.value.recipe_name == "Salad"
        assert exc.value.date == DAY

    def test_resolve_in_assignment_order(self, pasta, salad):
        store = RecipeStore([pasta, salad])
        assert [r.name for r in resolve_recipes(_plan("Salad", "Pasta"), store)] == [
            "Salad", "Pasta",
        ]
