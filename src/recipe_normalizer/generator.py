"""Async recipe generation through the OpenAI chat API.

The generator sends the recipe prompt, normalizes whatever text comes back
and optionally records the exchange in a submission store.

Example:
    >>> generator = RecipeGenerator(client=AsyncOpenAI(), model="gpt-4o-mini")
    >>> result = await generator.generate(["2 eggs", "flour", "milk"])
    >>> result.structured.recipe.title
    'Simple Pancakes'
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from openai import APIConnectionError, APITimeoutError, AsyncOpenAI, OpenAIError, RateLimitError

from .exceptions import GenerationError
from .models import SavePayload, StructuredRecipe
from .normalizer import DESCRIPTION_LINE_LIMIT, normalize
from .payload import build_save_payload
from .prompts import SYSTEM_MESSAGE, build_recipe_prompt, format_ingredients
from .protocols import SubmissionStore
from .responses import PlainText
from .retry import RetryConfig, with_retry
from .submissions import new_submission

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS: tuple[type[Exception], ...] = (
    RateLimitError,
    APIConnectionError,
    APITimeoutError,
)


@dataclass
class GenerationResult:
    """Outcome of one generation request."""

    response_text: str
    structured: StructuredRecipe
    payload: SavePayload


class RecipeGenerator:
    """Generate structured recipes from ingredient lists.

    Attributes:
        client: Injected async OpenAI client
        model: Chat model name
        submissions: Optional store recording each request
        retry: Backoff for transient API errors
        temperature: Sampling temperature; not sent for models that only
            accept the default
        description_lines: Passed through to the normalizer
    """

    def __init__(
        self,
        client: AsyncOpenAI,
        model: str,
        submissions: SubmissionStore | None = None,
        retry: RetryConfig | None = None,
        temperature: float | None = None,
        description_lines: int = DESCRIPTION_LINE_LIMIT,
    ) -> None:
        self.client = client
        self.model = model
        self.submissions = submissions
        self.retry = retry or RetryConfig()
        self.temperature = temperature
        self.description_lines = description_lines

    async def generate(
        self,
        ingredients: str | Iterable[str],
        persist: bool = False,
        title: str | None = None,
    ) -> GenerationResult:
        """Ask the model for a recipe and normalize the answer.

        Args:
            ingredients: Free text, or one ingredient per item
            persist: Record the request in the submission store, if one is set
            title: Title for the recorded submission

        Returns:
            GenerationResult with the raw text, structured recipe and payload

        Raises:
            GenerationError: If no ingredients are given, the API call fails
                after retries, or the model answers with nothing
        """
        question = format_ingredients(ingredients)
        if not question:
            raise GenerationError("No ingredients given", model=self.model)

        response_text = await self._complete(build_recipe_prompt(question))
        structured = normalize(PlainText(response_text), self.description_lines)
        payload = build_save_payload(structured)
        if payload is None:
            raise GenerationError("Model response produced no recipe", model=self.model)

        logger.info(
            f"Generated '{structured.recipe.title}' with {len(structured.ingredients)} "
            f"ingredients and {len(structured.steps)} steps"
        )

        if persist and self.submissions is not None:
            self.submissions.add(
                new_submission(
                    question=question,
                    model=self.model,
                    response_text=response_text,
                    title=title or structured.recipe.title or None,
                )
            )

        return GenerationResult(response_text=response_text, structured=structured, payload=payload)

    def _request_options(self) -> dict[str, Any]:
        options: dict[str, Any] = {"response_format": {"type": "json_object"}}
        if self.temperature is not None and not self.model.startswith("gpt-5"):
            options["temperature"] = self.temperature
        return options

    async def _complete(self, prompt: str) -> str:
        """Run the chat completion with retries and return its text."""

        @with_retry(**self.retry.to_kwargs(), retryable=TRANSIENT_ERRORS)
        async def create() -> Any:
            return await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_MESSAGE},
                    {"role": "user", "content": prompt},
                ],
                **self._request_options(),
            )

        try:
            response = await create()
        except OpenAIError as e:
            logger.error(f"Generation with {self.model} failed: {e}")
            raise GenerationError("Model request failed", model=self.model, error=str(e)) from e

        choices = getattr(response, "choices", None) or []
        content = choices[0].message.content if choices else None
        if not content or not content.strip():
            raise GenerationError("Model returned an empty response", model=self.model)

        usage = getattr(response, "usage", None)
        if usage:
            logger.debug(
                f"Tokens - prompt: {getattr(usage, 'prompt_tokens', 0)}, "
                f"completion: {getattr(usage, 'completion_tokens', 0)}"
            )
        return content
