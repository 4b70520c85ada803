"""Structured response normalization.

Turns a model response into a ``StructuredRecipe``. Three paths are tried
in order:

1. Usable JSON: the parsed value carries any of ``recipe``, ``ingredients``,
   ``steps`` or ``tags`` (or a ``recipes`` list), and its fields are mapped
   into the canonical shape.
2. JSON hidden in text: candidates are extracted from the raw text
   (fences, prose, trailing commas) and a usable one is mapped as above.
3. Plain text: lines are split into ``Title:``/``Ingredients:``/``Steps:``
   style sections and read heuristically.

``normalize`` is total: every field falls back to a documented default and
no input makes it raise.

Example:
    >>> structured = normalize(PlainText("Title:\\nPasta\\nIngredients:\\n1 egg"))
    >>> structured.recipe.title
    'Pasta'
"""

from __future__ import annotations

import logging
import math
import re
from typing import Any

from .json_extractor import parse_json_candidates
from .models import (
    DEFAULT_MINUTES,
    DEFAULT_SERVINGS,
    Ingredient,
    RecipeFields,
    RecipeIngredientLink,
    Step,
    StructuredRecipe,
    Tag,
)
from .quantity import QUANTITY_PATTERN, parse_ingredient_line, parse_quantity, strip_bullet
from .responses import ModelResponse, PlainText, StructuredJson, as_model_response

logger = logging.getLogger(__name__)

RECIPE_KEYS = ("recipe", "ingredients", "steps", "tags")
DEFAULT_TITLE = "Generated Recipe"
DESCRIPTION_LINE_LIMIT = 5

_SECTION_NAMES = "title|description|ingredients|steps|instructions|tags"
_HEADING_RE = re.compile(
    rf"^(?:#{{1,6}}\s*)?(?:\*\*|__)?({_SECTION_NAMES})(?:\*\*|__)?\s*:\s*(?:\*\*|__)?\s*(.*)$",
    re.IGNORECASE,
)
_MARKDOWN_HEADING_RE = re.compile(
    rf"^#{{1,6}}\s*(?:\*\*|__)?({_SECTION_NAMES})(?:\*\*|__)?\s*$", re.IGNORECASE
)
_META_RE = re.compile(
    r"^(?:[-*•]\s*)?(?:\*\*|__)?(servings|serves|yield|prep(?:aration)?\s*time|cook(?:ing)?\s*time)"
    r"(?:\*\*|__)?\s*:\s*(?:\*\*|__)?\s*(.+)$",
    re.IGNORECASE,
)
_STEP_PREFIX_RE = re.compile(r"^step\s*\d+\s*[:.)-]?\s*", re.IGNORECASE)
_DURATION_AMOUNT = rf"({QUANTITY_PATTERN}(?:\s*[-–]\s*{QUANTITY_PATTERN})?)"
_HOURS_RE = re.compile(rf"{_DURATION_AMOUNT}\s*(?:hours?|hrs?|h)(?![a-z])", re.IGNORECASE)
_MINUTES_RE = re.compile(rf"{_DURATION_AMOUNT}\s*(?:minutes?|mins?|m)(?![a-z])", re.IGNORECASE)


# ============================================================================
# Value coercion
# ============================================================================


def _text(value: Any) -> str:
    """Render a scalar as trimmed text; anything else becomes ``""``."""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return ""


def _pick(source: dict[str, Any], *keys: str) -> Any:
    """Return the first value under ``keys`` that is neither ``None`` nor ``""``."""
    for key in keys:
        value = source.get(key)
        if value is not None and value != "":
            return value
    return None


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def coerce_number(value: Any, default: int | float) -> int | float:
    """Resolve a number or number-bearing string, else ``default``."""
    number = parse_quantity(value)
    return default if number is None else number


def coerce_minutes(value: Any, default: int | float = DEFAULT_MINUTES) -> int | float:
    """Resolve a duration in minutes.

    Accepts bare numbers and strings such as ``"15 minutes"``, ``"1 hr 30 min"``,
    ``"1 1/2 hours"`` or ``"PT1H20M"``; hours are converted to minutes.
    """
    if isinstance(value, str):
        hours = _HOURS_RE.search(value)
        amount = parse_quantity(hours.group(1)) if hours else None
        if hours and amount is not None:
            minutes = _MINUTES_RE.search(value, hours.end())
            extra = parse_quantity(minutes.group(1)) if minutes else None
            total = float(amount) * 60 + float(extra or 0)
            if math.isfinite(total):
                return int(total) if total.is_integer() else total
    return coerce_number(value, default)


def _coerce_int(value: Any, default: int) -> int:
    number = parse_quantity(value)
    if number is None or not float(number).is_integer():
        return default
    return int(number)


# ============================================================================
# Case A: structured JSON
# ============================================================================


def usable_mapping(data: Any) -> dict[str, Any] | None:
    """Return ``data`` as a recipe mapping when it carries recipe content.

    A list whose first element is an object is read as ``{"recipes": data}``.
    """
    if isinstance(data, list) and data and isinstance(data[0], dict):
        data = {"recipes": data}
    if not isinstance(data, dict):
        return None
    if any(data.get(key) is not None for key in RECIPE_KEYS):
        return data
    recipes = data.get("recipes")
    if isinstance(recipes, list) and recipes and isinstance(recipes[0], dict):
        return data
    return None


def _recipe_object(data: dict[str, Any]) -> dict[str, Any]:
    recipe = data.get("recipe")
    if isinstance(recipe, dict):
        return recipe
    recipes = data.get("recipes")
    if isinstance(recipes, list) and recipes and isinstance(recipes[0], dict):
        return recipes[0]
    return data


def recipe_fields_from(source: dict[str, Any]) -> RecipeFields:
    """Build ``RecipeFields`` from a loosely shaped recipe object."""
    return RecipeFields(
        title=_text(_pick(source, "title", "name")),
        description=_text(source.get("description")),
        servings=coerce_number(source.get("servings"), DEFAULT_SERVINGS),
        prep_time=coerce_minutes(_pick(source, "prep_time", "prepTime")),
        cook_time=coerce_minutes(_pick(source, "cook_time", "cookTime")),
        image_url=_text(_pick(source, "image_url", "image")) or None,
    )


def ingredient_from(entry: Any) -> Ingredient | None:
    if isinstance(entry, str):
        name = entry.strip()
        return Ingredient(name=name) if name else None
    if isinstance(entry, dict):
        name = _text(_pick(entry, "name", "ingredient"))
        if not name:
            return None
        raw_id = entry.get("id")
        ingredient_id = raw_id if isinstance(raw_id, int) and not isinstance(raw_id, bool) else None
        return Ingredient(id=ingredient_id, name=name)
    return None


def step_from(entry: Any, position: int) -> Step | None:
    if isinstance(entry, str):
        return Step(step_number=position, instruction=entry.strip())
    if isinstance(entry, dict):
        return Step(
            step_number=_coerce_int(entry.get("step_number"), position),
            instruction=_text(_pick(entry, "instruction", "text")),
        )
    return None


def tags_from(value: Any) -> list[Tag]:
    if isinstance(value, str):
        value = value.split(",")
    tags: list[Tag] = []
    for entry in _as_list(value):
        name = _text(entry.get("name")) if isinstance(entry, dict) else _text(entry)
        if name:
            tags.append(Tag(name=name))
    return tags


def link_from(entry: Any, position: int) -> RecipeIngredientLink | None:
    if isinstance(entry, str):
        parsed = parse_ingredient_line(entry)
        if not parsed.name:
            return None
        return RecipeIngredientLink(
            ingredient_name=parsed.name,
            quantity=parsed.quantity,
            unit=parsed.unit,
            preparation=parsed.preparation,
            order=position,
        )
    if isinstance(entry, dict):
        raw_id = entry.get("ingredient_id")
        return RecipeIngredientLink(
            ingredient_id=raw_id if isinstance(raw_id, int) and not isinstance(raw_id, bool) else None,
            ingredient_name=_text(_pick(entry, "ingredient_name", "name", "ingredient")) or None,
            quantity=parse_quantity(entry.get("quantity")),
            unit=_text(entry.get("unit")) or None,
            preparation=_text(entry.get("preparation")) or None,
            order=_coerce_int(entry.get("order"), position),
        )
    return None


def _from_json(data: dict[str, Any]) -> StructuredRecipe:
    source = _recipe_object(data)

    ingredients = [
        ingredient
        for entry in _as_list(data.get("ingredients") or source.get("ingredients"))
        if (ingredient := ingredient_from(entry)) is not None
    ]
    steps = [
        step
        for position, entry in enumerate(_as_list(data.get("steps") or source.get("steps")), 1)
        if (step := step_from(entry, position)) is not None
    ]
    tags = tags_from(data.get("tags") or source.get("tags"))

    explicit = _as_list(data.get("recipe_ingredients")) or _as_list(
        source.get("recipe_ingredients")
    )
    if explicit:
        links = [
            link
            for position, entry in enumerate(explicit, 1)
            if (link := link_from(entry, position)) is not None
        ]
        if not ingredients:
            names = dict.fromkeys(link.ingredient_name for link in links if link.ingredient_name)
            ingredients = [Ingredient(name=name) for name in names]
    else:
        links = [
            RecipeIngredientLink(ingredient_name=ingredient.name, order=position)
            for position, ingredient in enumerate(ingredients, 1)
        ]

    return StructuredRecipe(
        recipe=recipe_fields_from(source),
        ingredients=ingredients,
        recipe_ingredients=links,
        steps=steps,
        tags=tags,
    )


# ============================================================================
# Case C: plain text
# ============================================================================


def _heading(line: str) -> tuple[str, str] | None:
    """Return ``(section, inline_text)`` when ``line`` is a section heading."""
    match = _HEADING_RE.match(line) or _MARKDOWN_HEADING_RE.match(line)
    if not match:
        return None
    inline = match.group(2).strip() if match.lastindex and match.lastindex >= 2 else ""
    return match.group(1).lower(), inline


def _meta_field(label: str) -> str:
    label = label.lower()
    if label.startswith("prep"):
        return "prep_time"
    if label.startswith("cook"):
        return "cook_time"
    return "servings"


def _clean_title(line: str) -> str:
    return line.lstrip("#").strip().strip("*_").strip()


def _split_sections(text: str) -> tuple[dict[str, list[str]], dict[str, str]]:
    sections: dict[str, list[str]] = {"body": []}
    meta: dict[str, str] = {}
    current = "body"

    for raw_line in re.split(r"\r?\n", text):
        line = raw_line.strip()
        if not line:
            continue
        meta_match = _META_RE.match(line)
        if meta_match:
            meta.setdefault(_meta_field(meta_match.group(1)), meta_match.group(2).strip())
            continue
        heading = _heading(line)
        if heading:
            current, inline = heading
            sections.setdefault(current, [])
            if inline:
                sections[current].append(inline)
            continue
        sections[current].append(line)

    return sections, meta


def _from_text(text: str, description_lines: int) -> StructuredRecipe:
    sections, meta = _split_sections(text)
    body = sections["body"]

    title = " ".join(sections.get("title", [])).strip()
    description_source = body
    if not title and body:
        title = _clean_title(body[0])
        description_source = body[1:]

    if sections.get("description"):
        description = "\n".join(sections["description"]).strip()
    else:
        description = " ".join(description_source[:description_lines]).strip()

    parsed = [parse_ingredient_line(line) for line in sections.get("ingredients", [])]
    parsed = [item for item in parsed if item.name]
    ingredients = [Ingredient(name=item.name) for item in parsed]
    links = [
        RecipeIngredientLink(
            ingredient_name=item.name,
            quantity=item.quantity,
            unit=item.unit,
            preparation=item.preparation,
            order=position,
        )
        for position, item in enumerate(parsed, 1)
    ]

    step_lines = sections.get("steps") or sections.get("instructions") or []
    instructions = [_STEP_PREFIX_RE.sub("", strip_bullet(line)).strip() for line in step_lines]
    steps = [
        Step(step_number=position, instruction=instruction)
        for position, instruction in enumerate((i for i in instructions if i), 1)
    ]

    tags = [Tag(name=name) for name in map(strip_bullet, sections.get("tags", [])) if name]

    recipe = RecipeFields(
        title=title or DEFAULT_TITLE,
        description=description,
        servings=coerce_number(meta.get("servings"), DEFAULT_SERVINGS),
        prep_time=coerce_minutes(meta.get("prep_time")),
        cook_time=coerce_minutes(meta.get("cook_time")),
    )
    return StructuredRecipe(
        recipe=recipe,
        ingredients=ingredients,
        recipe_ingredients=links,
        steps=steps,
        tags=tags,
    )


# ============================================================================
# Entry points
# ============================================================================


def normalize(
    response: ModelResponse, description_lines: int = DESCRIPTION_LINE_LIMIT
) -> StructuredRecipe:
    """Normalize a model response into a ``StructuredRecipe``.

    Args:
        response: ``StructuredJson`` or ``PlainText`` variant
        description_lines: Body lines used for the description when the text
            has no ``Description:`` section

    Returns:
        A fully populated ``StructuredRecipe``; never raises

    Example:
        >>> normalize(StructuredJson({"recipe": {"title": "Soup"}})).recipe.servings
        1
    """
    text = ""
    if isinstance(response, StructuredJson):
        mapping = usable_mapping(response.data)
        if mapping is not None:
            logger.debug("Normalizing structured JSON response")
            return _from_json(mapping)
        logger.debug("JSON response has no recipe keys, falling back to its text")
        text = response.text
    elif isinstance(response, PlainText):
        text = response.text
    if not isinstance(text, str):
        text = ""

    mapping = usable_mapping(parse_json_candidates(text))
    if mapping is not None:
        logger.debug("Normalizing JSON extracted from response text")
        return _from_json(mapping)

    logger.debug("No usable JSON found, parsing response as plain text")
    return _from_text(text, description_lines)


def normalize_response(
    json: Any = None,
    text: str | None = None,
    description_lines: int = DESCRIPTION_LINE_LIMIT,
) -> StructuredRecipe:
    """Normalize a ``json``/``text`` pair; see ``normalize``."""
    return normalize(as_model_response(json=json, text=text), description_lines)
