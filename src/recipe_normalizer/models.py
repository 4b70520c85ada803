"""Pydantic models for structured recipes.

These models describe the canonical in-memory shape produced by the
normalizer (``StructuredRecipe``), the payload handed to persistence
(``SavePayload``), and the records kept by the stores (``Submission``,
``StoredRecipe``).

Structured records are created fresh per generation request and only live
until the persistence layer maps them into rows.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

Number = int | float

DEFAULT_SERVINGS = 1
DEFAULT_MINUTES = 0


class RecipeFields(BaseModel):
    """Scalar columns of a recipe row.

    Numeric fields always hold a finite number. Sources that give
    non-numeric text fall back to the defaults (1 serving, 0 minutes).
    """

    title: str = Field("", description="Recipe title, empty when the source gives none")
    description: str = Field("", description="Short description or introduction")
    servings: Number = Field(DEFAULT_SERVINGS, description="Number of servings")
    prep_time: Number = Field(DEFAULT_MINUTES, description="Preparation time in minutes")
    cook_time: Number = Field(DEFAULT_MINUTES, description="Cooking time in minutes")
    image_url: str | None = Field(None, description="Optional image URL")

    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)


class Ingredient(BaseModel):
    """An ingredient identified by name.

    ``id`` stays ``None`` until the ingredient is upserted by the store.
    """

    id: int | None = None
    name: str = Field(..., min_length=1)

    model_config = ConfigDict(extra="forbid")


class IngredientName(BaseModel):
    """Ingredient entry of a save payload: the name to upsert."""

    name: str = Field(..., min_length=1)

    model_config = ConfigDict(extra="forbid")


class RecipeIngredientLink(BaseModel):
    """Link between a recipe and an ingredient with its measurement."""

    ingredient_name: str | None = None
    ingredient_id: int | None = None
    quantity: Number | None = None
    unit: str | None = None
    preparation: str | None = None
    order: int = Field(..., description="1-based position in the ingredient list")

    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)


class Step(BaseModel):
    """A numbered instruction."""

    step_number: int = Field(..., description="1-based step number")
    instruction: str

    model_config = ConfigDict(extra="forbid")


class Tag(BaseModel):
    """A free-form recipe tag."""

    name: str

    model_config = ConfigDict(extra="forbid")


class StructuredRecipe(BaseModel):
    """Canonical normalized recipe.

    Each part maps onto a relational table: ``recipe`` onto recipes,
    ``ingredients`` onto ingredients, ``recipe_ingredients`` onto the link
    table, ``steps`` onto recipe steps and ``tags`` onto tags.
    """

    recipe: RecipeFields = Field(default_factory=RecipeFields)
    ingredients: list[Ingredient] = Field(default_factory=list)
    recipe_ingredients: list[RecipeIngredientLink] = Field(default_factory=list)
    steps: list[Step] = Field(default_factory=list)
    tags: list[Tag] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class SavePayload(BaseModel):
    """Shape expected by the recipe store for insertion.

    ``ingredients`` is the deduplicated upsert list; every quantity in
    ``recipe_ingredients`` is numeric or ``None``.
    """

    recipe: RecipeFields
    ingredients: list[IngredientName] = Field(default_factory=list)
    recipe_ingredients: list[RecipeIngredientLink] = Field(default_factory=list)
    steps: list[Step] = Field(default_factory=list)
    tags: list[Tag] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class Submission(BaseModel):
    """A generation request and the raw text the model answered with."""

    id: str
    title: str = "Submission"
    question: str = ""
    model: str = ""
    response_text: str = ""
    created_at: datetime


class StoredIngredient(BaseModel):
    """Ingredient row of a stored recipe, resolved against the catalog."""

    ingredient_id: int | None = None
    name: str | None = None
    quantity: Number | None = None
    unit: str | None = None
    preparation: str | None = None
    order: int | None = None


class StoredRecipe(BaseModel):
    """A recipe as kept by the recipe store."""

    id: int
    title: str
    description: str = ""
    servings: Number = DEFAULT_SERVINGS
    prep_time: Number = DEFAULT_MINUTES
    cook_time: Number = DEFAULT_MINUTES
    image_url: str | None = None
    created_at: datetime
    updated_at: datetime
    ingredients: list[StoredIngredient] = Field(default_factory=list)
    steps: list[Step] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
