"""Unit tests for recipe_normalizer.normalizer module.

Tests are grouped by normalization path: structured JSON, JSON recovered
from text, and plain-text parsing.
"""

import json
from typing import Any

import pytest

from recipe_normalizer.normalizer import (
    DEFAULT_TITLE,
    coerce_minutes,
    normalize,
    normalize_response,
    usable_mapping,
)
from recipe_normalizer.responses import PlainText, StructuredJson


def steps_of(structured) -> list[dict[str, Any]]:
    return [step.model_dump() for step in structured.steps]


class TestUsableMapping:
    """Tests for detecting recipe-bearing JSON."""

    @pytest.mark.parametrize("key", ["recipe", "ingredients", "steps", "tags"])
    def test_recipe_keys(self, key: str) -> None:
        """Any recipe key makes a mapping usable."""
        assert usable_mapping({key: []}) == {key: []}

    def test_recipes_list(self) -> None:
        """A recipes list with an object is usable."""
        data = {"recipes": [{"title": "A"}]}
        assert usable_mapping(data) is data

    def test_top_level_list(self) -> None:
        """A list of objects is read as a recipes list."""
        assert usable_mapping([{"title": "A"}]) == {"recipes": [{"title": "A"}]}

    @pytest.mark.parametrize("data", [None, 42, "text", [1, 2], {"status": "ok"}, {"recipes": []}])
    def test_unusable(self, data: Any) -> None:
        """Values without recipe content are rejected."""
        assert usable_mapping(data) is None


class TestStructuredJson:
    """Tests for the structured JSON path."""

    def test_round_trip_example(self) -> None:
        """The canonical small example maps field by field."""
        data = {
            "recipe": {"title": "Soup", "servings": 2},
            "ingredients": ["carrot", "onion"],
            "steps": ["chop", "boil"],
            "tags": ["vegan"],
        }
        structured = normalize(StructuredJson(data))

        assert structured.recipe.title == "Soup"
        assert structured.recipe.servings == 2
        assert structured.recipe.prep_time == 0
        assert len(structured.ingredients) == 2
        assert steps_of(structured) == [
            {"step_number": 1, "instruction": "chop"},
            {"step_number": 2, "instruction": "boil"},
        ]
        assert [tag.model_dump() for tag in structured.tags] == [{"name": "vegan"}]

    def test_bare_string_ingredients(self) -> None:
        """Bare ingredient strings become trimmed names without ids."""
        structured = normalize(StructuredJson({"ingredients": ["  carrot ", "2 cups rice"]}))
        assert [(i.id, i.name) for i in structured.ingredients] == [
            (None, "carrot"),
            (None, "2 cups rice"),
        ]

    def test_synthesized_links(self) -> None:
        """Without explicit links, one empty link per ingredient is made."""
        structured = normalize(StructuredJson({"ingredients": [{"name": "salt"}, "pepper"]}))
        links = [link.model_dump() for link in structured.recipe_ingredients]
        assert links == [
            {
                "ingredient_name": "salt",
                "ingredient_id": None,
                "quantity": None,
                "unit": None,
                "preparation": None,
                "order": 1,
            },
            {
                "ingredient_name": "pepper",
                "ingredient_id": None,
                "quantity": None,
                "unit": None,
                "preparation": None,
                "order": 2,
            },
        ]

    def test_explicit_links_win(self, recipe_json: dict[str, Any]) -> None:
        """Explicit recipe_ingredients are kept with parsed quantities."""
        structured = normalize(StructuredJson(recipe_json))

        assert structured.recipe.title == "Tomato Soup"
        assert structured.recipe.servings == 4
        assert structured.recipe.prep_time == 10
        assert structured.recipe.cook_time == 25
        assert [link.quantity for link in structured.recipe_ingredients] == [1.5, 1, 0.5]
        assert structured.recipe_ingredients[0].unit == "kg"
        assert structured.recipe_ingredients[1].preparation == "diced"
        assert [tag.name for tag in structured.tags] == ["soup", "vegetarian"]

    def test_explicit_links_replace_synthesized_ones(self) -> None:
        """A shorter explicit list still wins wholesale."""
        data = {
            "ingredients": ["a", "b", "c"],
            "recipe_ingredients": [{"ingredient_name": "a", "quantity": "2"}],
        }
        structured = normalize(StructuredJson(data))
        assert len(structured.ingredients) == 3
        assert len(structured.recipe_ingredients) == 1
        assert structured.recipe_ingredients[0].quantity == 2
        assert structured.recipe_ingredients[0].order == 1

    def test_ingredients_derived_from_links(self) -> None:
        """Link names fill an empty ingredient list."""
        data = {
            "recipe": {"title": "Rice"},
            "recipe_ingredients": ["2 cups rice", {"name": "salt"}, {"name": "rice"}],
        }
        structured = normalize(StructuredJson(data))
        assert [i.name for i in structured.ingredients] == ["rice", "salt"]
        first = structured.recipe_ingredients[0]
        assert (first.ingredient_name, first.quantity, first.unit) == ("rice", 2, "cups")

    def test_fallback_field_names(self) -> None:
        """Alternate keys are accepted for title, times, image and steps."""
        data = {
            "recipe": {
                "name": "Flatbread",
                "prepTime": "PT15M",
                "cookTime": "1 hr 30 min",
                "image": "https://example.com/bread.jpg",
            },
            "steps": [{"text": "Knead"}, {"step_number": 5, "instruction": "Bake"}],
        }
        structured = normalize(StructuredJson(data))
        assert structured.recipe.title == "Flatbread"
        assert structured.recipe.prep_time == 15
        assert structured.recipe.cook_time == 90
        assert structured.recipe.image_url == "https://example.com/bread.jpg"
        assert steps_of(structured) == [
            {"step_number": 1, "instruction": "Knead"},
            {"step_number": 5, "instruction": "Bake"},
        ]

    def test_recipes_list(self) -> None:
        """The first of several recipes is used."""
        data = [{"title": "A", "ingredients": ["x"]}, {"title": "B"}]
        structured = normalize(StructuredJson(data))
        assert structured.recipe.title == "A"
        assert [i.name for i in structured.ingredients] == ["x"]

    def test_empty_names_dropped(self) -> None:
        """Blank ingredient and tag names are skipped."""
        data = {"ingredients": ["  ", "salt", {"name": ""}], "tags": ["", {"name": "quick"}]}
        structured = normalize(StructuredJson(data))
        assert [i.name for i in structured.ingredients] == ["salt"]
        assert [t.name for t in structured.tags] == ["quick"]

    def test_non_numeric_fields_default(self) -> None:
        """Unreadable numbers fall back to the defaults."""
        data = {"recipe": {"title": "X", "servings": "lots", "prep_time": "a while"}}
        recipe = normalize(StructuredJson(data)).recipe
        assert recipe.servings == 1
        assert recipe.prep_time == 0
        assert recipe.cook_time == 0
        assert recipe.description == ""
        assert recipe.image_url is None

    def test_malformed_shapes_do_not_raise(self) -> None:
        """Wrongly typed values are ignored rather than raising."""
        data = {"recipe": "oops", "ingredients": 5, "steps": "nope", "tags": {"a": 1}}
        structured = normalize(StructuredJson(data))
        assert structured.recipe.title == ""
        assert structured.ingredients == []
        assert structured.steps == []
        assert structured.tags == []

    def test_out_of_range_numbers_do_not_raise(self) -> None:
        """Numbers beyond float range fall back to defaults."""
        data = {
            "recipe": {"servings": 10**400, "prep_time": 10**400, "cook_time": "9" * 400},
            "recipe_ingredients": [{"ingredient_name": "salt", "quantity": 10**400}],
            "steps": [{"step_number": 10**400, "instruction": "Stir"}],
        }
        structured = normalize(StructuredJson(data))
        assert structured.recipe.servings == 1
        assert structured.recipe.prep_time == 0
        assert structured.recipe.cook_time == 0
        assert structured.recipe_ingredients[0].quantity is None
        assert structured.steps[0].step_number == 1

    def test_oversized_text_quantities_do_not_raise(self) -> None:
        """Huge mixed numbers in text resolve to null quantities."""
        servings = "9" * 400
        quantity = "1" * 5000 + " 1/2"
        text = f"Soup\nServes: {servings}\nIngredients:\n{quantity} cups stock"
        structured = normalize(PlainText(text))
        assert structured.recipe.servings == 1
        assert structured.recipe_ingredients[0].quantity is None
        assert structured.recipe_ingredients[0].ingredient_name == "stock"

    def test_unusable_json_falls_back_to_text(self) -> None:
        """JSON without recipe keys is ignored in favour of its text."""
        response = StructuredJson({"status": "ok"}, text='{"recipe": {"title": "Y"}}')
        assert normalize(response).recipe.title == "Y"


class TestJsonInText:
    """Tests for JSON recovered from raw text."""

    def test_fenced_json(self) -> None:
        """Fenced JSON after prose is recovered."""
        text = 'Here is your recipe:\n```json\n{"recipe":{"title":"X"}}\n```'
        assert normalize(PlainText(text)).recipe.title == "X"

    def test_whole_text_json(self, recipe_json: dict[str, Any]) -> None:
        """Text that is JSON is parsed as such."""
        structured = normalize(PlainText(json.dumps(recipe_json)))
        assert structured.recipe.title == "Tomato Soup"
        assert len(structured.recipe_ingredients) == 3

    def test_trailing_commas(self) -> None:
        """Near-valid JSON with trailing commas is accepted."""
        text = 'Sure!\n{"recipe": {"title": "Z",}, "steps": ["stir",],}'
        structured = normalize(PlainText(text))
        assert structured.recipe.title == "Z"
        assert steps_of(structured) == [{"step_number": 1, "instruction": "stir"}]


class TestPlainText:
    """Tests for heuristic plain-text parsing."""

    def test_labelled_sections(self, plain_text_recipe: str) -> None:
        """Title, ingredients and steps sections are read."""
        structured = normalize(PlainText(plain_text_recipe))

        assert structured.recipe.title == "Pasta"
        assert [i.name for i in structured.ingredients] == ["flour", "egg"]
        flour = structured.recipe_ingredients[0]
        assert flour.quantity == 2
        assert flour.unit == "cups"
        assert steps_of(structured) == [
            {"step_number": 1, "instruction": "Mix"},
            {"step_number": 2, "instruction": "Bake"},
        ]

    def test_markdown_and_metadata(self) -> None:
        """Markdown headings, bullets, step prefixes and metadata lines are handled."""
        text = "\n".join(
            [
                "# Lemon Bars",
                "Bright and tangy.",
                "Serves: 9",
                "Prep time: 20 minutes",
                "Cook time: 1 hour 5 minutes",
                "## Ingredients",
                "- 1 cup flour",
                "- ½ cup butter, softened",
                "**Instructions:**",
                "1. Press the crust.",
                "Step 2: Bake.",
                "Tags: dessert",
            ]
        )
        structured = normalize(PlainText(text))

        assert structured.recipe.title == "Lemon Bars"
        assert structured.recipe.description == "Bright and tangy."
        assert structured.recipe.servings == 9
        assert structured.recipe.prep_time == 20
        assert structured.recipe.cook_time == 65
        butter = structured.recipe_ingredients[1]
        assert (butter.ingredient_name, butter.quantity, butter.unit, butter.preparation) == (
            "butter",
            0.5,
            "cup",
            "softened",
        )
        assert [s.instruction for s in structured.steps] == ["Press the crust.", "Bake."]
        assert [t.name for t in structured.tags] == ["dessert"]

    def test_steps_preferred_over_instructions(self) -> None:
        """The steps section wins when both are present."""
        text = "Steps:\nfirst\nInstructions:\nsecond"
        assert [s.instruction for s in normalize(PlainText(text)).steps] == ["first"]

    def test_inline_heading_text(self) -> None:
        """Text after a heading colon is that section's first line."""
        text = "Title: Soup\nDescription: Warming.\nIngredients:\n1 leek"
        structured = normalize(PlainText(text))
        assert structured.recipe.title == "Soup"
        assert structured.recipe.description == "Warming."
        assert [i.name for i in structured.ingredients] == ["leek"]

    def test_default_title(self) -> None:
        """Text with no title line gets the default title."""
        structured = normalize(PlainText("Ingredients:\n1 egg"))
        assert structured.recipe.title == DEFAULT_TITLE
        assert structured.recipe.description == ""

    def test_empty_text(self) -> None:
        """Empty text still yields a complete recipe."""
        structured = normalize(PlainText(""))
        assert structured.recipe.title == DEFAULT_TITLE
        assert structured.recipe.servings == 1
        assert structured.ingredients == []
        assert structured.steps == []

    def test_description_line_limit(self) -> None:
        """Only the first body lines after the title form the description."""
        body = "\n".join(f"line {n}" for n in range(1, 9))
        structured = normalize(PlainText(f"My Dish\n{body}"))
        assert structured.recipe.title == "My Dish"
        assert structured.recipe.description == "line 1 line 2 line 3 line 4 line 5"

        short = normalize(PlainText(f"My Dish\n{body}"), description_lines=2)
        assert short.recipe.description == "line 1 line 2"

    def test_title_line_not_repeated_in_description(self) -> None:
        """The body line used as the title is left out of the description."""
        structured = normalize(PlainText("Lemon Tart\nSharp and sweet.\nServes a crowd."))
        assert structured.recipe.title == "Lemon Tart"
        assert structured.recipe.description == "Sharp and sweet. Serves a crowd."

    def test_unmatched_ingredient_line(self) -> None:
        """Lines without a quantity become bare names."""
        structured = normalize(PlainText("Ingredients:\nsalt to taste"))
        link = structured.recipe_ingredients[0]
        assert link.ingredient_name == "salt to taste"
        assert link.quantity is None


class TestNormalizeResponse:
    """Tests for the json/text convenience entry point."""

    def test_json_argument(self) -> None:
        """A JSON value takes the structured path."""
        assert normalize_response(json={"recipe": {"title": "A"}}).recipe.title == "A"

    def test_text_argument(self, plain_text_recipe: str) -> None:
        """Text takes the extraction and plain-text paths."""
        assert normalize_response(text=plain_text_recipe).recipe.title == "Pasta"

    def test_nothing(self) -> None:
        """No input yields the default recipe."""
        assert normalize_response().recipe.title == DEFAULT_TITLE


class TestCoerceMinutes:
    """Tests for duration parsing."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (15, 15),
            ("15 minutes", 15),
            ("10-15 minutes", 10),
            ("2 hours", 120),
            ("1.5 hours", 90),
            ("1 hr 30 min", 90),
            ("PT1H20M", 80),
            ("1 1/2 hours", 90),
            ("½ hour", 30),
            ("1-2 hours", 60),
            ("9" * 400 + " hours", 0),
            ("soon", 0),
            (None, 0),
        ],
    )
    def test_values(self, value: Any, expected: int) -> None:
        """Numbers, durations with units and junk resolve to minutes."""
        assert coerce_minutes(value) == expected
