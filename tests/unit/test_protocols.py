"""Unit tests for recipe_normalizer.protocols module.

Tests Protocol definitions and runtime checkability.
"""

from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

from recipe_normalizer.config import NormalizerConfig
from recipe_normalizer.generator import RecipeGenerator
from recipe_normalizer.protocols import RecipeRepository, RecipeSource, SubmissionStore
from recipe_normalizer.repository import FileRecipeRepository
from recipe_normalizer.services import ServiceFactory
from recipe_normalizer.submissions import InMemorySubmissionStore, JsonSubmissionStore


class TestSubmissionStoreProtocol:
    """Tests for SubmissionStore protocol."""

    def test_implementations_match(self, tmp_path: Path) -> None:
        """Both bundled stores satisfy the protocol."""
        assert isinstance(InMemorySubmissionStore(), SubmissionStore)
        assert isinstance(JsonSubmissionStore(tmp_path / "s.json"), SubmissionStore)

    def test_missing_method_fails_check(self) -> None:
        """A class without list fails the isinstance check."""

        class AddOnly:
            def add(self, submission: Any) -> None:
                pass

        assert not isinstance(AddOnly(), SubmissionStore)


class TestRecipeRepositoryProtocol:
    """Tests for RecipeRepository protocol."""

    def test_file_repository_matches(self, tmp_path: Path) -> None:
        """FileRecipeRepository satisfies the protocol."""
        assert isinstance(FileRecipeRepository(tmp_path), RecipeRepository)

    def test_store_is_not_a_repository(self) -> None:
        """A submission store lacks the repository methods."""
        assert not isinstance(InMemorySubmissionStore(), RecipeRepository)


class TestRecipeSourceProtocol:
    """Tests for RecipeSource protocol."""

    def test_generator_matches(self) -> None:
        """RecipeGenerator satisfies the protocol."""
        assert isinstance(RecipeGenerator(MagicMock(), "gpt-4o-mini"), RecipeSource)

    def test_custom_source(self) -> None:
        """Any object with an async generate method qualifies."""

        class CannedSource:
            model = "canned"

            async def generate(self, ingredients: Any, persist: bool = False, title: Any = None) -> Any:
                return None

        assert isinstance(CannedSource(), RecipeSource)

    def test_missing_method_fails_check(self) -> None:
        """A class without generate fails the isinstance check."""

        class Nothing:
            pass

        assert not isinstance(Nothing(), RecipeSource)

    def test_missing_model_fails_check(self) -> None:
        """A source must say which model it uses."""

        class Anonymous:
            async def generate(self, ingredients: Any, persist: bool = False, title: Any = None) -> Any:
                return None

        assert not isinstance(Anonymous(), RecipeSource)

    def test_factory_products_match(self, tmp_path: Path) -> None:
        """The factory hands out objects satisfying each protocol."""
        factory = ServiceFactory(config=NormalizerConfig(data_dir=tmp_path))
        factory.client = MagicMock()

        assert isinstance(factory.create_generator(), RecipeSource)
        assert isinstance(factory.create_repository(), RecipeRepository)
        assert isinstance(factory.create_submission_store(), SubmissionStore)
