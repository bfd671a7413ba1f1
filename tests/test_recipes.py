"""Tests for the add/view/remove recipe commands."""

from decimal import Decimal

import pytest
from averse import recipes as recipes_mod
from averse.errors import DuplicateRecipeName, IngredientParseError, UnknownRecipe
from averse.models import IngredientLine, Unit
from averse.recipes import (
    build_recipe,
    fuzzy_match_recipe,
    parse_tags,
    run_add,
    run_remove,
    run_view,
)
from averse.storage import load_recipe_store, save_recipe


@pytest.fixture
def answers(monkeypatch):
    """Feed scripted answers to the interactive prompts."""

    def _script(prompt_answers: list[str], confirm: bool = True) -> None:
        it = iter(prompt_answers)
        monkeypatch.setattr(recipes_mod.Prompt, "ask", lambda *a, **kw: next(it))
        monkeypatch.setattr(recipes_mod.Confirm, "ask", lambda *a, **kw: confirm)

    return _script


OMELETTE_ANSWERS = [
    "Omelette",
    "breakfast, quick",
    "3 eggs",
    "three eggs",  # rejected, prompt repeats
    "10 g butter",
    "",
    "Whisk.",
    "Fry.",
    "",
]


class TestParseTags:
    def test_split_and_strip(self):
        assert parse_tags(" soup, mealprep ,,") == frozenset({"soup", "mealprep"})

    def test_empty(self):
        assert parse_tags("") == frozenset()


class TestBuildRecipe:
    def test_from_cli_values(self):
        recipe = build_recipe(
            " Beef Stew ",
            tags=["dinner, mealprep", "winter"],
            ingredients=["1 lb beef", "3 carrots"],
            steps=["Brown beef.", "  ", "Simmer."],
        )
        assert recipe.name == "Beef Stew"
        assert recipe.tags == frozenset({"dinner", "mealprep", "winter"})
        assert recipe.ingredients == (
            IngredientLine("beef", Decimal("1"), Unit.LB),
            IngredientLine("carrots", Decimal("3")),
        )
        assert recipe.steps == ("Brown beef.", "Simmer.")

    def test_bad_ingredient(self):
        with pytest.raises(IngredientParseError):
            build_recipe("Omelette", ingredients=["three eggs"])

    def test_blank_name(self):
        with pytest.raises(ValueError):
            build_recipe("   ")


class TestFuzzyMatch:
    def test_exact_case_insensitive(self, store):
        assert fuzzy_match_recipe("beef stew", store).name == "Beef Stew"

    def test_substring(self, store):
        assert fuzzy_match_recipe("chicken", store).name == "Chicken Soup"

    def test_typo(self, store):
        assert fuzzy_match_recipe("Tomatoe Soup", store).name == "Tomato Soup"

    def test_no_match(self, store):
        assert fuzzy_match_recipe("zzzz", store) is None


class TestRunAdd:
    def test_interactive(self, tmp_path, answers):
        answers(OMELETTE_ANSWERS)
        recipe = run_add(tmp_path)

        assert recipe.name == "Omelette"
        assert recipe.tags == frozenset({"breakfast", "quick"})
        assert recipe.ingredients == (
            IngredientLine("eggs", Decimal("3")),
            IngredientLine("butter", Decimal("10"), Unit.GRAM),
        )
        assert recipe.steps == ("Whisk.", "Fry.")
        assert load_recipe_store(tmp_path).get("Omelette") == recipe

    def test_interactive_declined(self, tmp_path, answers):
        answers(OMELETTE_ANSWERS, confirm=False)
        run_add(tmp_path)
        assert len(load_recipe_store(tmp_path)) == 0

    def test_duplicate(self, tmp_path, pasta):
        save_recipe(tmp_path, pasta)
        with pytest.raises(DuplicateRecipeName):
            run_add(tmp_path, name="Pasta", ingredients=["1 kg flour"])

    def test_replace(self, tmp_path, pasta):
        save_recipe(tmp_path, pasta)
        run_add(tmp_path, name="Pasta", ingredients=["1 kg flour"], replace=True)
        stored = load_recipe_store(tmp_path).get("Pasta")
        assert stored.ingredients == (IngredientLine("flour", Decimal("1"), Unit.KG),)
        assert stored.tags == frozenset()

    def test_replace_cannot_take_over_another_recipes_file(self, tmp_path):
        run_add(tmp_path, name="Pasta Bake", ingredients=["500 g pasta"])
        with pytest.raises(DuplicateRecipeName):
            run_add(tmp_path, name="Pasta-Bake", ingredients=["1 kg pasta"], replace=True)
        store = load_recipe_store(tmp_path)
        assert store.names() == ["Pasta Bake"]
        assert store.get("Pasta Bake").ingredients == (
            IngredientLine("pasta", Decimal("500"), Unit.GRAM),
        )

    def test_name_with_slash_rejected(self, tmp_path):
        with pytest.raises(ValueError):
            run_add(tmp_path, name="Mac/Cheese", ingredients=["200 g macaroni"])
        assert list(tmp_path.iterdir()) == []


class TestRunView:
    def test_single_recipe(self, tmp_path, pasta, capsys):
        save_recipe(tmp_path, pasta)
        run_view(tmp_path, query="pasta")
        out = capsys.readouterr().out
        assert "# Pasta" in out
        assert "Tags: dinner, italian" in out
        assert "- 500 gram flour" in out
        assert "3. Boil for 3 minutes." in out

    def test_unknown(self, tmp_path, pasta):
        save_recipe(tmp_path, pasta)
        with pytest.raises(UnknownRecipe):
            run_view(tmp_path, query="zzzz")

    def test_table_filtered_by_tag(self, tmp_path, sample_recipes, capsys):
        for recipe in sample_recipes:
            save_recipe(tmp_path, recipe)
        run_view(tmp_path, tags=["soup"])
        out = capsys.readouterr().out
        assert "Chicken Soup" in out
        assert "Tomato Soup" in out
        assert "Pasta" not in out


class TestRunRemove:
    def test_remove(self, tmp_path, pasta):
        save_recipe(tmp_path, pasta)
        run_remove(tmp_path, "Pasta")
        assert len(load_recipe_store(tmp_path)) == 0

    def test_unknown(self, tmp_path):
        with pytest.raises(UnknownRecipe):
            run_remove(tmp_path, "Pasta")
