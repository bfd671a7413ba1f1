from decimal import Decimal

import pytest
from averse.models import IngredientLine, Recipe, Unit
from averse.store import RecipeStore


def line(name: str, qty: str, unit: Unit = Unit.NONE) -> IngredientLine:
    return IngredientLine(name=name, quantity=Decimal(qty), unit=unit)


@pytest.fixture
def pasta() -> Recipe:
    return Recipe(
        name="Pasta",
        ingredients=(line("flour", "500", Unit.GRAM), line("eggs", "2")),
        tags=frozenset({"dinner", "italian"}),
        steps=("Make dough.", "Roll and cut.", "Boil for 3 minutes."),
    )


@pytest.fixture
def salad() -> Recipe:
    return Recipe(
        name="Salad",
        ingredients=(line("lettuce", "200", Unit.GRAM), line("Eggs ", "2")),
        tags=frozenset({"lunch", "quick"}),
        steps=("Boil eggs.", "Toss everything."),
    )


@pytest.fixture
def sample_recipes(pasta, salad) -> list[Recipe]:
    """Small set of fake recipes for unit tests."""
    return [
        pasta,
        salad,
        Recipe(
            name="Beef Stew",
            ingredients=(
                line("beef", "1", Unit.LB),
                line("carrots", "3"),
                line("beef stock", "2", Unit.CUP),
            ),
            tags=frozenset({"dinner", "mealprep"}),
        ),
        Recipe(
            name="Chicken Soup",
            ingredients=(
                line("chicken thighs", "500", Unit.GRAM),
                line("chicken stock", "1", Unit.L),
                line("carrots", "2"),
            ),
            tags=frozenset({"dinner", "soup", "mealprep"}),
        ),
        Recipe(
            name="Tomato Soup",
            ingredients=(
                line("tomatoes", "2", Unit.CAN),
                line("cream", "100", Unit.ML),
            ),
            tags=frozenset({"lunch", "soup", "quick"}),
        ),
    ]


@pytest.fixture
def store(sample_recipes) -> RecipeStore:
    return RecipeStore(sample_recipes)
