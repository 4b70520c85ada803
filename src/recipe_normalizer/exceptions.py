"""Custom exceptions for recipe_normalizer.

The normalization core (quantity parsing, JSON extraction, normalization)
never raises: malformed input resolves to documented defaults. The
exceptions below belong to the collaborators around it, such as
configuration loading, the model call and the recipe store.

Example:
    >>> try:
    ...     raise PersistenceError("Recipe file unreadable", path="data/recipes.json")
    ... except RecipeNormalizerError as e:
    ...     print(f"Error in {e.context}: {e}")
"""


class RecipeNormalizerError(Exception):
    """Base exception for all recipe_normalizer errors.

    Attributes:
        message: Human-readable error description
        context: Additional context about where/when the error occurred
    """

    def __init__(self, message: str, **context: str | int | float | bool | None) -> None:
        """Initialize the exception with a message and optional context.

        Args:
            message: Human-readable error description
            **context: Additional context (e.g., model="gpt-4o-mini", recipe_id=3)
        """
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        """Format error message with context."""
        if self.context:
            context_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


class ConfigurationError(RecipeNormalizerError):
    """Error in configuration or settings.

    Raised when:
    - Configuration file is invalid
    - Settings have invalid values
    - An unknown configuration key is updated

    Example:
        >>> raise ConfigurationError(
        ...     "Invalid model name in configuration",
        ...     model="gpt-invalid",
        ...     valid_models="gpt-4o, gpt-4o-mini"
        ... )
    """

    pass


class GenerationError(RecipeNormalizerError):
    """Error while asking the generative model for a recipe.

    Raised when:
    - The API call fails with a non-transient error
    - Transient errors persist after all retry attempts
    - The model returns an empty response

    Example:
        >>> raise GenerationError(
        ...     "Model returned an empty response",
        ...     model="gpt-4o-mini",
        ... )
    """

    pass


class PersistenceError(RecipeNormalizerError):
    """Error while storing or loading recipes and submissions.

    Raised when:
    - A save payload is missing its recipe
    - A store file cannot be read, decoded or written

    Example:
        >>> raise PersistenceError(
        ...     "Invalid payload: missing recipe",
        ...     operation="save",
        ... )
    """

    pass
