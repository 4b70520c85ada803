"""Pytest configuration and fixtures for recipe_normalizer tests.

Fixtures follow pytest conventions:
- Use monkeypatch for environment manipulation
- Use tmp_path for file operations
"""

import sys
from pathlib import Path
from typing import Any

import pytest

# Add src directory to Python path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """Remove RECIPE_NORMALIZER_* variables and isolate config files.

    HOME points at an empty directory and the working directory is a fresh
    temporary directory, so no user or project config file is picked up.
    """
    import os

    for key in list(os.environ.keys()):
        if key.startswith("RECIPE_NORMALIZER_"):
            monkeypatch.delenv(key, raising=False)

    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    return workdir


@pytest.fixture
def mock_env(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Provide a helper to set RECIPE_NORMALIZER_* environment variables.

    Example:
        def test_env_loading(mock_env):
            mock_env["MODEL"] = "gpt-4o"
            # RECIPE_NORMALIZER_MODEL is now set
    """

    class EnvSetter(dict[str, str]):
        def __setitem__(self, key: str, value: str) -> None:
            super().__setitem__(key, value)
            monkeypatch.setenv(f"RECIPE_NORMALIZER_{key}", value)

    return EnvSetter()


# ============================================================================
# Recipe Fixtures
# ============================================================================


@pytest.fixture
def recipe_json() -> dict[str, Any]:
    """A model answer in the requested JSON shape."""
    return {
        "recipe": {
            "title": "Tomato Soup",
            "description": "A quick weeknight soup.",
            "servings": 4,
            "prep_time": "10 minutes",
            "cook_time": 25,
            "image_url": None,
        },
        "ingredients": [{"name": "tomatoes"}, {"name": "onion"}, {"name": "stock"}],
        "recipe_ingredients": [
            {"ingredient_name": "tomatoes", "quantity": "1 1/2", "unit": "kg", "order": 1},
            {"ingredient_name": "onion", "quantity": 1, "preparation": "diced", "order": 2},
            {"ingredient_name": "stock", "quantity": "½", "unit": "l", "order": 3},
        ],
        "steps": [
            {"step_number": 1, "instruction": "Soften the onion."},
            {"step_number": 2, "instruction": "Add tomatoes and stock, simmer."},
        ],
        "tags": [{"name": "soup"}, {"name": "vegetarian"}],
    }


@pytest.fixture
def plain_text_recipe() -> str:
    """A model answer written as labelled plain text."""
    return (
        "Title:\n"
        "Pasta\n"
        "Ingredients:\n"
        "2 cups flour\n"
        "1 egg\n"
        "Steps:\n"
        "Mix\n"
        "Bake"
    )


# ============================================================================
# OpenAI Client Mocking Fixtures
# ============================================================================


def make_chat_completion(content: str | None) -> Any:
    """Build a chat completion object with one choice."""
    from unittest.mock import MagicMock

    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    response.usage.prompt_tokens = 120
    response.usage.completion_tokens = 80
    return response


@pytest.fixture
def mock_async_openai_client():
    """Create a mock AsyncOpenAI client for generation tests.

    ``client.chat.completions.create`` is an AsyncMock that individual
    tests configure with a return value or side effect.
    """
    from unittest.mock import AsyncMock, MagicMock

    client = MagicMock()
    client.chat.completions.create = AsyncMock()
    return client


@pytest.fixture
def chat_completion():
    """Provide the chat completion builder to tests."""
    return make_chat_completion
