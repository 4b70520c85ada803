"""Service factory for centralized dependency injection.

The factory builds the generator, recipe store and submission store from one
``NormalizerConfig`` and shares a single OpenAI client between them.

Example:
    >>> factory = ServiceFactory(NormalizerConfig.load())
    >>> generator = factory.create_generator()
    >>> repository = factory.create_repository()
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property
from typing import TYPE_CHECKING

from openai import AsyncOpenAI

if TYPE_CHECKING:
    from ..config import NormalizerConfig
    from ..protocols import RecipeRepository, RecipeSource, SubmissionStore


@dataclass
class ServiceFactory:
    """Factory for creating service instances with shared dependencies.

    Attributes:
        config: Configuration for all services

    Note:
        The OpenAI client is created lazily on first access and cached, so
        building a repository never requires an API key.
    """

    config: NormalizerConfig

    @cached_property
    def client(self) -> AsyncOpenAI:
        """Get the shared async OpenAI client."""
        return AsyncOpenAI()

    def create_submission_store(self) -> SubmissionStore:
        """Create the generation history store under ``data_dir``."""
        from ..submissions import JsonSubmissionStore

        return JsonSubmissionStore(self.config.submissions_path)

    def create_generator(self, model: str | None = None) -> RecipeSource:
        """Create a recipe generator with injected dependencies.

        Args:
            model: Overrides the configured model

        Returns:
            RecipeGenerator with the shared client and the history store
        """
        from ..generator import RecipeGenerator
        from ..retry import RetryConfig

        return RecipeGenerator(
            client=self.client,
            model=model or self.config.model,
            submissions=self.create_submission_store(),
            retry=RetryConfig(
                max_attempts=self.config.retry_attempts + 1,
                initial_delay=self.config.initial_retry_delay,
            ),
            temperature=self.config.temperature,
            description_lines=self.config.description_line_limit,
        )

    def create_repository(self) -> RecipeRepository:
        """Create the recipe store under ``data_dir``."""
        from ..repository import FileRecipeRepository

        return FileRecipeRepository(self.config.recipes_dir)
