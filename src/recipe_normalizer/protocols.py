"""Protocol definitions for recipe_normalizer.

Collaborators around the normalizer are typed by these Protocols, so tests
and alternative backends can be swapped in without inheritance.

Example:
    >>> class ListStore:
    ...     def __init__(self):
    ...         self.items = []
    ...     def add(self, submission):
    ...         self.items.insert(0, submission)
    ...     def list(self):
    ...         return list(self.items)
    ...
    >>> isinstance(ListStore(), SubmissionStore)
    True
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .generator import GenerationResult
    from .models import SavePayload, StoredRecipe, Submission


@runtime_checkable
class SubmissionStore(Protocol):
    """Storage for generation history.

    Implementations return submissions newest first.
    """

    def add(self, submission: Submission) -> None:
        """Record a submission."""
        ...

    def list(self) -> list[Submission]:
        """Return all submissions, newest first."""
        ...


@runtime_checkable
class RecipeRepository(Protocol):
    """Persistence for normalized recipes.

    Ingredient and tag names are upserted; recipes are inserted and linked
    to them by id.
    """

    def save(self, payload: SavePayload | Mapping[str, Any]) -> int:
        """Insert a recipe and return its id.

        Raises:
            PersistenceError: If the payload has no recipe or storage fails
        """
        ...

    def get(self, recipe_id: int) -> StoredRecipe | None:
        """Return a recipe by id."""
        ...

    def list(self) -> list[StoredRecipe]:
        """Return all recipes, oldest first."""
        ...

    def update(self, recipe_id: int, payload: SavePayload | Mapping[str, Any]) -> StoredRecipe | None:
        """Replace a recipe, returning None if the id is unknown."""
        ...

    def delete(self, recipe_id: int) -> bool:
        """Delete a recipe, returning whether it existed."""
        ...


@runtime_checkable
class RecipeSource(Protocol):
    """Turns ingredients into a normalized recipe via a generative model."""

    model: str

    async def generate(
        self,
        ingredients: str | Iterable[str],
        persist: bool = False,
        title: str | None = None,
    ) -> GenerationResult:
        """Generate and normalize a recipe.

        Raises:
            GenerationError: If the model call fails or returns nothing
        """
        ...
