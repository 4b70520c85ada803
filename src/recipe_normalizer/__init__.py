"""recipe_normalizer: structured recipes from generative-model output.

Normalizes model responses (JSON, JSON buried in prose or code fences, or
plain text) into one canonical recipe shape and prepares it for storage.

Example:
    >>> from recipe_normalizer import build_save_payload, normalize_response
    >>> structured = normalize_response(text="Title:\\nPasta\\nIngredients:\\n2 cups flour")
    >>> build_save_payload(structured).recipe_ingredients[0].quantity
    2
"""

__version__ = "0.1.0"

from .exceptions import (
    ConfigurationError,
    GenerationError,
    PersistenceError,
    RecipeNormalizerError,
)
from .json_extractor import extract_json_candidates, parse_json_candidates
from .models import (
    Ingredient,
    RecipeFields,
    RecipeIngredientLink,
    SavePayload,
    Step,
    StoredRecipe,
    StructuredRecipe,
    Submission,
    Tag,
)
from .normalizer import normalize, normalize_response
from .payload import build_save_payload
from .quantity import parse_ingredient_line, parse_quantity
from .responses import ModelResponse, PlainText, StructuredJson, as_model_response, unwrap_envelope

__all__ = [
    "ConfigurationError",
    "GenerationError",
    "Ingredient",
    "ModelResponse",
    "PersistenceError",
    "PlainText",
    "RecipeFields",
    "RecipeIngredientLink",
    "RecipeNormalizerError",
    "SavePayload",
    "Step",
    "StoredRecipe",
    "StructuredJson",
    "StructuredRecipe",
    "Submission",
    "Tag",
    "__version__",
    "as_model_response",
    "build_save_payload",
    "extract_json_candidates",
    "normalize",
    "normalize_response",
    "parse_ingredient_line",
    "parse_json_candidates",
    "parse_quantity",
    "unwrap_envelope",
]
