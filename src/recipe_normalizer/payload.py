"""Save-payload building.

``build_save_payload`` is the last step before persistence and the single
place that guarantees every link quantity is numeric or ``None``, whichever
normalization path produced the recipe.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from .models import (
    IngredientName,
    RecipeFields,
    RecipeIngredientLink,
    SavePayload,
    StructuredRecipe,
)
from .normalizer import ingredient_from, link_from, recipe_fields_from, step_from, tags_from

logger = logging.getLogger(__name__)


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _ingredient_names(entries: Any) -> list[IngredientName]:
    names: dict[str, None] = {}
    for entry in _as_list(entries):
        ingredient = ingredient_from(entry)
        if ingredient is not None:
            names.setdefault(ingredient.name)
    return [IngredientName(name=name) for name in names]


def _links(entries: Any) -> list[RecipeIngredientLink]:
    links: list[RecipeIngredientLink] = []
    for position, entry in enumerate(_as_list(entries), 1):
        link = link_from(entry, position)
        if link is None:
            continue
        raw_quantity = entry.get("quantity") if isinstance(entry, dict) else None
        if link.quantity is None and raw_quantity not in (None, ""):
            logger.warning(
                f"Could not parse quantity {raw_quantity!r} for "
                f"{link.ingredient_name or link.ingredient_id}; storing null"
            )
        links.append(link)
    return links


def build_save_payload(
    structured: StructuredRecipe | Mapping[str, Any] | None,
) -> SavePayload | None:
    """Prepare a structured recipe for the recipe store.

    Ingredient names are trimmed and deduplicated into the upsert list, link
    quantities are re-parsed (numbers pass through unchanged), and transient
    fields such as ingredient ids are dropped. ``recipe``, ``steps`` and
    ``tags`` pass through, missing lists becoming empty.

    Args:
        structured: Normalized recipe, or a mapping of the same shape such as
            a user-edited form

    Returns:
        SavePayload, or None when ``structured`` is empty

    Example:
        >>> build_save_payload(None) is None
        True
    """
    if not structured:
        return None

    if isinstance(structured, StructuredRecipe):
        recipe = structured.recipe.model_copy()
        data = structured.model_dump()
    else:
        data = dict(structured)
        source = data.get("recipe")
        recipe = recipe_fields_from(dict(source)) if isinstance(source, Mapping) else RecipeFields()

    steps = [
        step
        for position, entry in enumerate(_as_list(data.get("steps")), 1)
        if (step := step_from(entry, position)) is not None
    ]
    payload = SavePayload(
        recipe=recipe,
        ingredients=_ingredient_names(data.get("ingredients")),
        recipe_ingredients=_links(data.get("recipe_ingredients")),
        steps=steps,
        tags=tags_from(data.get("tags")),
    )
    logger.debug(
        f"Built save payload for '{recipe.title}': {len(payload.ingredients)} ingredients, "
        f"{len(payload.steps)} steps"
    )
    return payload
