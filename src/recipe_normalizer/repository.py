"""Recipe repository for persistence operations.

Recipes are kept in a single JSON document (``recipes.json``) laid out like
the relational store it stands in for: an ingredient catalog and a tag
catalog keyed by unique name, and recipe rows that reference them by id.

Saving follows insert-or-ignore semantics: ingredient and tag names are
upserted (an existing name keeps its id), the recipe row is inserted, and
its ingredient links, steps and tags are attached. Every write replaces the
document atomically.

Example:
    >>> repository = FileRecipeRepository(Path("data"))
    >>> recipe_id = repository.save(payload)
    >>> repository.get(recipe_id).title
    'Soup'
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Mapping
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .exceptions import PersistenceError
from .models import RecipeIngredientLink, SavePayload, Step, StoredIngredient, StoredRecipe
from .payload import build_save_payload

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Untitled"
DOCUMENT_NAME = "recipes.json"


def _empty_document() -> dict[str, Any]:
    return {
        "next_id": {"recipes": 1, "ingredients": 1, "tags": 1},
        "ingredients": {},
        "tags": {},
        "recipes": [],
    }


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class FileRecipeRepository:
    """Repository storing recipes in a JSON document under ``root``.

    Attributes:
        root: Directory holding the document
        path: The document itself

    Example:
        >>> repo = FileRecipeRepository(tmp_path)
        >>> recipe_id = repo.save({"recipe": {"title": "Soup"}})
    """

    def __init__(self, root: Path) -> None:
        """Initialize the repository.

        Args:
            root: Directory for ``recipes.json``; created on first write
        """
        self.root = Path(root)
        self.path = self.root / DOCUMENT_NAME

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def save(self, payload: SavePayload | Mapping[str, Any] | None) -> int:
        """Insert a recipe with its ingredients, steps and tags.

        Args:
            payload: Save payload, or a mapping of the same shape

        Returns:
            Id of the new recipe

        Raises:
            PersistenceError: If the payload has no recipe or the document
                cannot be read or written
        """
        payload = self._coerce(payload)
        document = self._read()
        now = _now()

        row = self._row(document, payload)
        row.update(id=self._next_id(document, "recipes"), created_at=now, updated_at=now)
        document["recipes"].append(row)

        self._write(document)
        logger.info(f"Saved recipe {row['id']}: {row['title']}")
        return row["id"]

    def get(self, recipe_id: int) -> StoredRecipe | None:
        """Return one recipe, or None if the id is unknown."""
        document = self._read()
        row = self._find(document, recipe_id)
        return self._stored(document, row) if row else None

    def list(self) -> list[StoredRecipe]:
        """Return all recipes, oldest first."""
        document = self._read()
        rows = sorted(document["recipes"], key=lambda row: (row["created_at"], row["id"]))
        return [self._stored(document, row) for row in rows]

    def update(
        self, recipe_id: int, payload: SavePayload | Mapping[str, Any] | None
    ) -> StoredRecipe | None:
        """Replace a recipe's fields, ingredients, steps and tags.

        Returns:
            The updated recipe, or None if the id is unknown

        Raises:
            PersistenceError: If the payload has no recipe
        """
        payload = self._coerce(payload)
        document = self._read()
        existing = self._find(document, recipe_id)
        if existing is None:
            return None

        row = self._row(document, payload)
        row.update(id=recipe_id, created_at=existing["created_at"], updated_at=_now())
        existing.clear()
        existing.update(row)

        self._write(document)
        logger.info(f"Updated recipe {recipe_id}")
        return self._stored(document, existing)

    def delete(self, recipe_id: int) -> bool:
        """Delete a recipe. Catalog entries are kept.

        Returns:
            True if a recipe was removed
        """
        document = self._read()
        remaining = [row for row in document["recipes"] if row["id"] != recipe_id]
        if len(remaining) == len(document["recipes"]):
            return False
        document["recipes"] = remaining
        self._write(document)
        logger.info(f"Deleted recipe {recipe_id}")
        return True

    # -------------------------------------------------------------------------
    # Rows
    # -------------------------------------------------------------------------

    @staticmethod
    def _coerce(payload: SavePayload | Mapping[str, Any] | None) -> SavePayload:
        if isinstance(payload, SavePayload):
            return payload
        if not isinstance(payload, Mapping) or not payload.get("recipe"):
            raise PersistenceError("Invalid payload: missing recipe")
        built = build_save_payload(payload)
        if built is None:
            raise PersistenceError("Invalid payload: missing recipe")
        return built

    def _row(self, document: dict[str, Any], payload: SavePayload) -> dict[str, Any]:
        """Upsert catalog names and build the recipe row for ``payload``."""
        names = [ingredient.name for ingredient in payload.ingredients]
        names += [link.ingredient_name for link in payload.recipe_ingredients if link.ingredient_name]
        ingredient_ids = self._upsert(document, "ingredients", names)
        tag_ids = self._upsert(document, "tags", [tag.name for tag in payload.tags])
        known_ids = set(document["ingredients"].values())

        links = [
            {
                "ingredient_id": self._link_ingredient_id(link, ingredient_ids, known_ids),
                "quantity": link.quantity,
                "unit": link.unit,
                "preparation": link.preparation,
                "order": link.order,
            }
            for link in payload.recipe_ingredients
        ]
        steps = [
            {"step_number": step.step_number or position, "instruction": step.instruction}
            for position, step in enumerate(payload.steps, 1)
        ]

        recipe = payload.recipe
        return {
            "title": recipe.title.strip() or DEFAULT_TITLE,
            "description": recipe.description,
            "servings": recipe.servings,
            "prep_time": recipe.prep_time,
            "cook_time": recipe.cook_time,
            "image_url": recipe.image_url,
            "ingredients": links,
            "steps": steps,
            "tag_ids": list(dict.fromkeys(tag_ids[tag.name] for tag in payload.tags)),
        }

    @staticmethod
    def _link_ingredient_id(
        link: RecipeIngredientLink, ingredient_ids: dict[str, int], known_ids: set[int]
    ) -> int | None:
        """Resolve a link by name; a bare id is kept only if the catalog has it."""
        if link.ingredient_name:
            return ingredient_ids[link.ingredient_name]
        if link.ingredient_id in known_ids:
            return link.ingredient_id
        if link.ingredient_id is not None:
            logger.warning(f"Dropping unknown ingredient id {link.ingredient_id} from link")
        return None

    def _upsert(self, document: dict[str, Any], table: str, names: list[str]) -> dict[str, int]:
        """Insert unknown names into a catalog; return ids for all ``names``."""
        catalog: dict[str, int] = document[table]
        for name in names:
            if name not in catalog:
                catalog[name] = self._next_id(document, table)
        return {name: catalog[name] for name in names}

    @staticmethod
    def _next_id(document: dict[str, Any], table: str) -> int:
        next_id = document["next_id"][table]
        document["next_id"][table] = next_id + 1
        return next_id

    @staticmethod
    def _find(document: dict[str, Any], recipe_id: int) -> dict[str, Any] | None:
        return next((row for row in document["recipes"] if row["id"] == recipe_id), None)

    @staticmethod
    def _stored(document: dict[str, Any], row: dict[str, Any]) -> StoredRecipe:
        ingredient_names = {id_: name for name, id_ in document["ingredients"].items()}
        tag_names = {id_: name for name, id_ in document["tags"].items()}
        ingredients = [
            StoredIngredient(name=ingredient_names.get(link["ingredient_id"]), **link)
            for link in sorted(row["ingredients"], key=lambda link: link["order"])
        ]
        return StoredRecipe(
            id=row["id"],
            title=row["title"],
            description=row["description"],
            servings=row["servings"],
            prep_time=row["prep_time"],
            cook_time=row["cook_time"],
            image_url=row["image_url"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            ingredients=ingredients,
            steps=[Step(**step) for step in row["steps"]],
            tags=[tag_names[tag_id] for tag_id in row["tag_ids"] if tag_id in tag_names],
        )

    # -------------------------------------------------------------------------
    # Document I/O
    # -------------------------------------------------------------------------

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return _empty_document()
        try:
            with self.path.open(encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            raise PersistenceError(
                "Could not read recipe store", path=str(self.path), error=str(e)
            ) from e

    def _write(self, document: dict[str, Any]) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.root, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(document, f, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.path)
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise PersistenceError(
                "Could not write recipe store", path=str(self.path), error=str(e)
            ) from e
