from __future__ import annotations

from typing import List, Optional, Protocol, Sequence

from werkzeug.datastructures import FileStorage

from .models import Recipe
from .pagination import Pagination


class RecipeRepository(Protocol):
    """Protocol describing the behaviour required by the web layer."""

    def list_recipes(self, pagination: Optional[Pagination] = None) -> List[Recipe]:
        """Return every recipe, or the requested page ordered by creation time."""

    def get_recipe(self, recipe_id: str) -> Recipe:
        """Return a single recipe or raise :class:`KeyError` if missing."""

    def add_recipe(self, recipe: Recipe) -> str:
        """Persist a new recipe, ignoring its id, and return the assigned id."""

    def add_recipes(self, recipes: Sequence[Recipe]) -> List[str]:
        """Persist several recipes at once and return their ids in order."""

    def update_recipe(self, recipe_id: str, recipe: Recipe) -> None:
        """Overwrite every field of a stored recipe except its image."""

    def delete_recipe(self, recipe_id: str) -> None:
        """Remove a recipe and any associated assets."""

    def get_image_url(self, recipe_id: str) -> Optional[str]:
        """Return a URL for the recipe's image, ``None`` if it has no image."""

    def update_image(self, recipe_id: str, image: FileStorage | None) -> None:
        """Replace the recipe's image, or remove it when ``image`` is ``None``."""


__all__ = ["RecipeRepository"]
