"""Quantity and ingredient-line parsing.

``parse_quantity`` turns a free-form quantity into a number: plain numbers,
decimals, ASCII fractions, mixed numbers and unicode vulgar fractions are
understood. It is a total function and returns ``None`` for anything it
cannot read.

Example:
    >>> parse_quantity("1 1/2")
    1.5
    >>> parse_quantity("½")
    0.5
    >>> parse_ingredient_line("2 cups flour - sifted")
    ParsedIngredient(name='flour', quantity=2, unit='cups', preparation='sifted')
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass

VULGAR_FRACTIONS = {
    "½": "1/2",
    "⅓": "1/3",
    "⅔": "2/3",
    "¼": "1/4",
    "¾": "3/4",
    "⅛": "1/8",
}

_VULGAR_CHARS = "".join(VULGAR_FRACTIONS)
_VULGAR_RE = re.compile(rf"(\d)?\s*([{_VULGAR_CHARS}])")
_MIXED_RE = re.compile(r"([+-]?\d+)\s+(\d+)\s*/\s*(\d+)(?![\d.])")
_FRACTION_RE = re.compile(r"([+-]?\d+(?:\.\d+)?)\s*/\s*(\d+(?:\.\d+)?)(?![\d.])")
_NUMBER_RE = re.compile(r"[+-]?(?:\d+(?:\.\d+)?|\.\d+)")

# Units recognised after a quantity; any other word stays part of the name.
UNITS = frozenset(
    {
        "c",
        "can",
        "cans",
        "cl",
        "clove",
        "cloves",
        "cm",
        "cup",
        "cups",
        "dash",
        "dashes",
        "dl",
        "drop",
        "drops",
        "g",
        "gal",
        "gallon",
        "gallons",
        "gram",
        "grams",
        "handful",
        "handfuls",
        "head",
        "heads",
        "inch",
        "inches",
        "jar",
        "jars",
        "kg",
        "kilogram",
        "kilograms",
        "l",
        "lb",
        "lbs",
        "liter",
        "liters",
        "litre",
        "litres",
        "mg",
        "ml",
        "milliliter",
        "milliliters",
        "millilitre",
        "millilitres",
        "oz",
        "ounce",
        "ounces",
        "package",
        "packages",
        "packet",
        "packets",
        "pinch",
        "pinches",
        "pint",
        "pints",
        "pkg",
        "pound",
        "pounds",
        "pt",
        "qt",
        "quart",
        "quarts",
        "slice",
        "slices",
        "sprig",
        "sprigs",
        "stalk",
        "stalks",
        "stick",
        "sticks",
        "tablespoon",
        "tablespoons",
        "tbs",
        "tbsp",
        "teaspoon",
        "teaspoons",
        "tin",
        "tins",
        "tsp",
    }
)

# One quantity: mixed number, fraction, number with or without a vulgar fraction.
QUANTITY_PATTERN = (
    rf"(?:\d+\s+\d+/\d+|\d+(?:\.\d+)?\s*/\s*\d+|\d+\s*[{_VULGAR_CHARS}]"
    rf"|[{_VULGAR_CHARS}]|\d+(?:\.\d+)?)"
)
_INGREDIENT_RE = re.compile(
    rf"^(?P<quantity>{QUANTITY_PATTERN}(?:\s*[-–]\s*{QUANTITY_PATTERN})?)\s*(?P<rest>[^\d/.\s].*)$"
)
_PREPARATION_SPLIT_RE = re.compile(r"\s+[-–—]\s+|,\s*")
BULLET_RE = re.compile(r"^\s*(?:[-*•·]|\d+[.)])\s+")


@dataclass(frozen=True)
class ParsedIngredient:
    """One ingredient line split into its parts."""

    name: str
    quantity: int | float | None = None
    unit: str | None = None
    preparation: str | None = None


def _finite(value: int | float) -> bool:
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


def _as_number(value: float) -> int | float | None:
    if not _finite(value):
        return None
    return int(value) if value.is_integer() else value


def _replace_vulgar(text: str) -> str:
    def substitute(match: re.Match[str]) -> str:
        whole = match.group(1)
        fraction = VULGAR_FRACTIONS[match.group(2)]
        return f"{whole} {fraction}" if whole else fraction

    return _VULGAR_RE.sub(substitute, text)


def parse_quantity(value: object) -> int | float | None:
    """Parse a free-form quantity into a number.

    Args:
        value: A number, a string such as ``"1 1/2"``, ``"0.5"`` or ``"¾"``,
            or ``None``.

    Returns:
        The numeric value, or ``None`` when the input is missing, empty,
        non-finite, has a zero denominator, or holds no number at all.
        Numbers are returned unchanged, so parsing is idempotent.

    Example:
        >>> parse_quantity("1/0") is None
        True
        >>> parse_quantity("about 3 cups")
        3
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value if _finite(value) else None
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    text = _replace_vulgar(text)

    mixed = _MIXED_RE.match(text)
    if mixed:
        whole, numerator, denominator = (float(g) for g in mixed.groups())
        if denominator == 0:
            return None
        sign = -1 if mixed.group(1).startswith("-") else 1
        return _as_number(whole + sign * numerator / denominator)

    fraction = _FRACTION_RE.match(text)
    if fraction:
        numerator = float(fraction.group(1))
        denominator = float(fraction.group(2))
        if denominator == 0 or not math.isfinite(denominator):
            return None
        return _as_number(numerator / denominator)

    number = _NUMBER_RE.search(text)
    if number:
        return _as_number(float(number.group(0)))
    return None


def strip_bullet(line: str) -> str:
    """Remove a leading list marker (``-``, ``*``, ``•``, ``1.``, ``1)``)."""
    return BULLET_RE.sub("", line, count=1).strip()


def parse_ingredient_line(line: str) -> ParsedIngredient:
    """Split a plain-text ingredient line into quantity, unit, name and preparation.

    The accepted shape is ``<quantity> <unit>? <name> (- <preparation>)?``.
    The unit is only taken when the word is a known cooking unit. A comma
    also introduces the preparation. Lines without a leading quantity become
    a bare name.

    Args:
        line: One line of an ingredient list

    Returns:
        ParsedIngredient with ``None`` for the parts that are absent

    Example:
        >>> parse_ingredient_line("1 egg")
        ParsedIngredient(name='egg', quantity=1, unit=None, preparation=None)
        >>> parse_ingredient_line("salt and pepper")
        ParsedIngredient(name='salt and pepper', quantity=None, unit=None, preparation=None)
    """
    text = strip_bullet(line)
    match = _INGREDIENT_RE.match(text)
    if not match:
        return ParsedIngredient(name=text)

    rest = match.group("rest").strip()
    unit: str | None = None
    first, _, remainder = rest.partition(" ")
    if remainder.strip() and first.lower().rstrip(".") in UNITS:
        unit = first
        rest = remainder.strip()

    parts = _PREPARATION_SPLIT_RE.split(rest, maxsplit=1)
    name = parts[0].strip()
    preparation = parts[1].strip() if len(parts) > 1 else ""
    if not name:
        return ParsedIngredient(name=text)

    return ParsedIngredient(
        name=name,
        quantity=parse_quantity(match.group("quantity")),
        unit=unit,
        preparation=preparation or None,
    )
