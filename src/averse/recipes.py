"""Recipe commands: add, view and remove."""

from __future__ import annotations

import logging
from difflib import SequenceMatcher
from pathlib import Path

from rich.console import Console
from rich.prompt import Confirm, Prompt

from averse.errors import DuplicateRecipeName, IngredientParseError, UnknownRecipe
from averse.ingredients import format_ingredient, parse_ingredient
from averse.log import stderr_console
from averse.models import IngredientLine, Recipe
from averse.recipe_renderer import print_recipe_table, render_recipe
from averse.store import RecipeStore
from averse.storage import delete_recipe, load_recipe_store, save_recipe

logger = logging.getLogger(__name__)


def parse_tags(raw: str) -> frozenset[str]:
    """Split 'soup, mealprep' into a tag set, dropping blanks."""
    return frozenset(t.strip() for t in raw.split(",") if t.strip())


def build_recipe(
    name: str,
    tags: list[str] | None = None,
    ingredients: list[str] | None = None,
    steps: list[str] | None = None,
) -> Recipe:
    """Validate raw CLI values into a Recipe. Ingredient strings use '<AMOUNT> [<UNIT>] <INGREDIENT>'."""
    tag_set: set[str] = set()
    for raw in tags or []:
        tag_set |= parse_tags(raw)
    return Recipe(
        name=name.strip(),
        ingredients=tuple(parse_ingredient(raw) for raw in ingredients or []),
        tags=frozenset(tag_set),
        steps=tuple(s.strip() for s in steps or [] if s.strip()),
    )


def prompt_ingredients(console: Console) -> list[IngredientLine]:
    """Ask for ingredient lines until an empty entry, re-prompting on bad input."""
    console.print("[green]<AMOUNT> <UNIT> <INGREDIENT>[/green] (Ex: 1 lb beef)")
    lines: list[IngredientLine] = []
    while True:
        raw = Prompt.ask("Enter ingredient (or ENTER to continue)", default="", console=console)
        if not raw.strip():
            return lines
        try:
            line = parse_ingredient(raw)
        except IngredientParseError as e:
            console.print(f"[red]{e}[/red]\n...Please try again.")
            continue
        lines.append(line)
        console.print(f"  added: {format_ingredient(line)}")


def prompt_steps(console: Console) -> list[str]:
    steps: list[str] = []
    while True:
        step = Prompt.ask("Enter step (or ENTER to quit)", default="", console=console)
        if not step.strip():
            return steps
        steps.append(step.strip())
        console.print(f"  {len(steps)}. {step.strip()}")


def prompt_recipe(console: Console) -> Recipe:
    """Interactively collect a recipe: name, tags, ingredients and steps."""
    name = ""
    while not name.strip():
        name = Prompt.ask("Enter recipe name", console=console)
    tags = parse_tags(
        Prompt.ask("Enter associated tags (e.g. soup, mealprep)", default="", console=console)
    )
    ingredients = prompt_ingredients(console)
    steps = prompt_steps(console)
    return Recipe(
        name=name.strip(),
        ingredients=tuple(ingredients),
        tags=tags,
        steps=tuple(steps),
    )


def fuzzy_match_recipe(name: str, store: RecipeStore) -> Recipe | None:
    """Find the best matching recipe by fuzzy name matching."""
    name_lower = name.lower().strip()

    best_match: tuple[float, Recipe | None] = (0.0, None)

    for recipe in store:
        candidate = recipe.name.lower()

        # Exact match
        if candidate == name_lower:
            return recipe

        # Substring match gets a boost
        score = SequenceMatcher(None, name_lower, candidate).ratio()
        if name_lower in candidate or candidate in name_lower:
            score = max(score, 0.8)

        if score > best_match[0]:
            best_match = (score, recipe)

    if best_match[1] and best_match[0] > 0.4:
        return best_match[1]

    return None


def run_add(
    recipe_dir: Path,
    name: str | None = None,
    tags: list[str] | None = None,
    ingredients: list[str] | None = None,
    steps: list[str] | None = None,
    replace: bool = False,
    retries: int = 3,
) -> Recipe:
    """CLI entry point for add command. Prompts when no name is given."""
    store = load_recipe_store(recipe_dir, retries)

    if name is None:
        recipe = prompt_recipe(stderr_console)
    else:
        recipe = build_recipe(name, tags, ingredients, steps)

    if recipe.name in store:
        if not replace:
            raise DuplicateRecipeName(recipe.name)
        store.replace(recipe)
    else:
        store.add(recipe)

    if name is None and not Confirm.ask(
        f"Save recipe {recipe.name!r}?", default=True, console=stderr_console
    ):
        logger.info("Recipe not saved")
        return recipe

    save_recipe(recipe_dir, recipe, overwrite=replace, retries=retries)
    return recipe


def run_view(
    recipe_dir: Path,
    query: str | None = None,
    tags: list[str] | None = None,
    retries: int = 3,
) -> None:
    """CLI entry point for view command."""
    store = load_recipe_store(recipe_dir, retries)

    if query:
        recipe = fuzzy_match_recipe(query, store)
        if recipe is None:
            raise UnknownRecipe(query)
        print(render_recipe(recipe))
        return

    required: set[str] = set()
    for raw in tags or []:
        required |= parse_tags(raw)
    recipes = store.with_tags(frozenset(required))
    if not recipes:
        logger.warning("No recipes found in %s", recipe_dir)
        return
    print_recipe_table(recipes)


def run_remove(recipe_dir: Path, name: str, retries: int = 3) -> None:
    """CLI entry point for remove command."""
    store = load_recipe_store(recipe_dir, retries)
    store.remove(name)
    delete_recipe(recipe_dir, name, retries)
