"""Prompt text for recipe generation.

The model is asked for a single JSON object whose keys match the
``StructuredRecipe`` shape, so that the structured path of the normalizer
applies whenever the model follows instructions.
"""

from __future__ import annotations

from collections.abc import Iterable

# =============================================================================
# PROMPT TEMPLATES
# =============================================================================

RECIPE_INSTRUCTIONS = (
    "You are a helpful, precise chef. Given the list of ingredients, produce a single "
    "valid JSON object ONLY (no extra text) with the following top-level keys: recipe, "
    "ingredients, recipe_ingredients, steps, tags.\n"
    "- recipe should contain title, description, servings, prep_time, cook_time, image_url.\n"
    "- ingredients should be an array of objects with name.\n"
    "- recipe_ingredients should be an array mapping ingredient_name to quantity, unit, "
    "preparation and order.\n"
    "- steps should be an array of {step_number, instruction}.\n"
    "- tags should be an array of {name}.\n"
    "Return parsable JSON only."
)

SYSTEM_MESSAGE = "You turn ingredient lists into structured recipes."


def format_ingredients(ingredients: str | Iterable[str]) -> str:
    """Render ingredients one per line, dropping blanks."""
    if isinstance(ingredients, str):
        return ingredients.strip()
    return "\n".join(item.strip() for item in ingredients if item and item.strip())


def build_recipe_prompt(ingredients: str | Iterable[str]) -> str:
    """Wrap an ingredient list in the structured-recipe instructions.

    Args:
        ingredients: Free text, or one ingredient per item

    Returns:
        Prompt asking for a JSON object with ``recipe``, ``ingredients``,
        ``recipe_ingredients``, ``steps`` and ``tags``

    Example:
        >>> build_recipe_prompt(["2 eggs", "flour"]).endswith("Ingredients:\\n2 eggs\\nflour")
        True
    """
    return f"{RECIPE_INSTRUCTIONS}\n\nIngredients:\n{format_ingredients(ingredients)}"
