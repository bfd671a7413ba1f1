"""Render recipes for the view command."""

from __future__ import annotations

from rich.console import Console
from rich.table import Table

from averse.ingredients import format_ingredient
from averse.models import Recipe


def render_recipe(recipe: Recipe) -> str:
    """Render one recipe with tags, ingredients and numbered steps as markdown."""
    lines = [f"# {recipe.name}", ""]

    if recipe.tags:
        lines.append(f"Tags: {', '.join(sorted(recipe.tags))}")
        lines.append("")

    lines.append("## Ingredients")
    lines.append("")
    if recipe.ingredients:
        lines.extend(f"- {format_ingredient(ing)}" for ing in recipe.ingredients)
    else:
        lines.append("*No ingredients recorded.*")
    lines.append("")

    if recipe.steps:
        lines.append("## Steps")
        lines.append("")
        lines.extend(f"{i}. {step}" for i, step in enumerate(recipe.steps, start=1))
        lines.append("")

    return "\n".join(lines)


def build_recipe_table(recipes: list[Recipe]) -> Table:
    table = Table(title="Recipes")
    table.add_column("ID", justify="right")
    table.add_column("Name")
    table.add_column("Tags")
    table.add_column("Ingredients", justify="right")

    for i, recipe in enumerate(recipes):
        table.add_row(
            str(i),
            recipe.name,
            ", ".join(sorted(recipe.tags)),
            str(len(recipe.ingredients)),
        )
    return table


def print_recipe_table(recipes: list[Recipe], console: Console | None = None) -> None:
    (console or Console()).print(build_recipe_table(recipes))
