"""In-memory recipe collection with unique names."""

from __future__ import annotations

from typing import Iterable, Iterator

from averse.errors import DuplicateRecipeName, UnknownRecipe
from averse.models import Recipe


class RecipeStore:
    """Owns recipe records, keyed by exact name.

    Planning and aggregation only read from the store; edits go through
    add/replace/remove.
    """

    def __init__(self, recipes: Iterable[Recipe] = ()):
        self._recipes: dict[str, Recipe] = {}
        for recipe in recipes:
            self.add(recipe)

    def __contains__(self, name: object) -> bool:
        return name in self._recipes

    def __iter__(self) -> Iterator[Recipe]:
        return iter(sorted(self._recipes.values(), key=lambda r: r.name))

    def __len__(self) -> int:
        return len(self._recipes)

    def names(self) -> list[str]:
        return sorted(self._recipes)

    def add(self, recipe: Recipe) -> None:
        if recipe.name in self._recipes:
            raise DuplicateRecipeName(recipe.name)
        self._recipes[recipe.name] = recipe

    def replace(self, recipe: Recipe) -> Recipe:
        """Replace an existing recipe with an edited version, returning the old one."""
        old = self.get(recipe.name)
        self._recipes[recipe.name] = recipe
        return old

    def remove(self, name: str) -> Recipe:
        if name not in self._recipes:
            raise UnknownRecipe(name)
        return self._recipes.pop(name)

    def get(self, name: str) -> Recipe:
        try:
            return self._recipes[name]
        except KeyError:
            raise UnknownRecipe(name) from None

    def find(self, name: str) -> Recipe | None:
        return self._recipes.get(name)

    def with_tags(self, required: frozenset[str]) -> list[Recipe]:
        return [r for r in self if r.has_tags(required)]
