"""Data models and schemas for the recipe ingestion pipeline.

Defines Pydantic models for generation requests, the in-memory recipe draft
produced by the pipeline, wildcard catalog entries and the persisted records
returned by the backend. Field names match the backend tables (snake_case).
All models use Pydantic v2 for validation and JSON (de)serialization.
"""

from enum import Enum
from typing import List, Optional, Annotated, Union

from pydantic import BaseModel, Field, field_validator, model_validator, ConfigDict

from src.utils.errors import DraftIncompleteError

DEFAULT_TITLE = "Untitled Recipe"
MAX_NAME_LENGTH = 200
MAX_UNIT_LENGTH = 50


class RecipeSource(str, Enum):
    """Provenance tag recording how a draft originated."""

    USER_UPLOADED = "user_uploaded"
    AI_GENERATED = "ai_generated"
    WILDCARD_MODIFIED = "wildcard_modified"
    TEMPLATE = "template"
    IMPORTED = "imported"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class Intensity(str, Enum):
    SUBTLE = "subtle"
    MEDIUM = "medium"
    BOLD = "bold"


# ============================================================================
# Generation requests
# ============================================================================


class FreeFormRequest(BaseModel):
    """Request to generate a brand new recipe from a free-text goal."""

    model_config = ConfigDict(str_strip_whitespace=True)

    prompt: Annotated[
        str, Field(min_length=1, max_length=2000, description="What the user wants to cook (1-2000 chars)")
    ]
    cuisine: Annotated[Optional[str], Field(None, max_length=100, description="Cuisine style, e.g. Italian")]
    dietary_restrictions: Annotated[
        List[str], Field(default_factory=list, description="Dietary restrictions such as Vegan or Gluten-Free")
    ]
    difficulty: Annotated[Optional[Difficulty], Field(None, description="Requested difficulty level")]
    include_wildcard: Annotated[bool, Field(False, description="Ask for exactly one wildcard ingredient")]

    @field_validator("cuisine", mode="before")
    @classmethod
    def empty_cuisine_is_none(cls, v):
        """The screen sends an empty string when no cuisine chip is selected."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("dietary_restrictions", mode="before")
    @classmethod
    def clean_restrictions(cls, v):
        """Drop blanks and duplicates, keep the user's order."""
        if v is None:
            return []
        if isinstance(v, str):
            v = v.split(",")
        cleaned = [item.strip() for item in v if isinstance(item, str) and item.strip()]
        return list(dict.fromkeys(cleaned))


class ImportRequest(BaseModel):
    """Request to parse a recipe out of raw text.

    The text is acquired elsewhere (URL fetch, file upload or paste); the
    pipeline only ever sees the text itself.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    source_text: Annotated[str, Field(min_length=1, description="Raw recipe text")]
    source_url: Annotated[Optional[str], Field(None, max_length=500, description="Page the text came from")]
    provenance: Annotated[
        RecipeSource, Field(RecipeSource.IMPORTED, description="imported (URL/paste) or user_uploaded (file)")
    ]

    @field_validator("provenance")
    @classmethod
    def validate_provenance(cls, v: RecipeSource) -> RecipeSource:
        if v not in (RecipeSource.IMPORTED, RecipeSource.USER_UPLOADED):
            raise ValueError(f"Import provenance must be 'imported' or 'user_uploaded', got: {v.value}")
        return v


class AugmentRequest(BaseModel):
    """Request to add wildcard ingredients to an existing draft."""

    existing_recipe: "RecipeDraft"


# ============================================================================
# Recipe draft
# ============================================================================


class IngredientDraft(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Annotated[str, Field(min_length=1, max_length=MAX_NAME_LENGTH)]
    quantity: Annotated[str, Field("", description="Free text, may be non-numeric such as 'to taste'")]
    unit: Annotated[str, Field("", max_length=MAX_UNIT_LENGTH)]
    is_wildcard: bool = False
    wildcard_reason: Optional[str] = None
    order_index: Annotated[int, Field(0, ge=0)]

    @field_validator("quantity", "unit", mode="before")
    @classmethod
    def null_is_blank(cls, v):
        return "" if v is None else v


class InstructionDraft(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    step_number: Annotated[int, Field(1, ge=1)]
    content: Annotated[str, Field(min_length=1)]


class RecipeDraft(BaseModel):
    """In-memory, not yet persisted structured recipe.

    Invariants maintained by the normalizer and by every edit helper below:
    ``ingredients[i].order_index == i`` and ``instructions[i].step_number == i + 1``.
    Editing helpers return a new draft; the original is left untouched so a
    failed or abandoned edit never corrupts the draft a screen is holding.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    title: Annotated[str, Field(DEFAULT_TITLE, min_length=1, max_length=MAX_NAME_LENGTH)]
    description: str = ""
    source: RecipeSource = RecipeSource.USER_UPLOADED
    prep_time_minutes: Annotated[Optional[int], Field(None, ge=0, le=1440)]
    cook_time_minutes: Annotated[Optional[int], Field(None, ge=0, le=1440)]
    servings: Annotated[Optional[int], Field(None, ge=1, le=100)]
    cuisine: Optional[str] = None
    difficulty: Optional[Difficulty] = None
    is_public: bool = True
    image_url: Annotated[Optional[str], Field(None, max_length=500)]
    source_url: Annotated[Optional[str], Field(None, max_length=500)]
    ingredients: List[IngredientDraft] = Field(default_factory=list)
    instructions: List[InstructionDraft] = Field(default_factory=list)

    @field_validator("title", mode="before")
    @classmethod
    def default_title(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return DEFAULT_TITLE
        return v

    @property
    def ingredient_names(self) -> list[str]:
        return [ingredient.name for ingredient in self.ingredients]

    @property
    def wildcard_ingredients(self) -> list[IngredientDraft]:
        return [ingredient for ingredient in self.ingredients if ingredient.is_wildcard]

    @property
    def total_time_minutes(self) -> int:
        return (self.prep_time_minutes or 0) + (self.cook_time_minutes or 0)

    def reindexed(self) -> "RecipeDraft":
        """Return a copy with contiguous order_index (0..n-1) and step_number (1..n)."""
        ingredients = [
            ingredient.model_copy(update={"order_index": index}) for index, ingredient in enumerate(self.ingredients)
        ]
        instructions = [
            instruction.model_copy(update={"step_number": index + 1})
            for index, instruction in enumerate(self.instructions)
        ]
        return self.model_copy(update={"ingredients": ingredients, "instructions": instructions})

    def add_ingredient(self, ingredient: IngredientDraft, position: Optional[int] = None) -> "RecipeDraft":
        ingredients = list(self.ingredients)
        ingredients.insert(len(ingredients) if position is None else position, ingredient)
        return self.model_copy(update={"ingredients": ingredients}).reindexed()

    def remove_ingredient(self, index: int) -> "RecipeDraft":
        ingredients = list(self.ingredients)
        del ingredients[index]
        return self.model_copy(update={"ingredients": ingredients}).reindexed()

    def move_ingredient(self, from_index: int, to_index: int) -> "RecipeDraft":
        ingredients = list(self.ingredients)
        ingredients.insert(to_index, ingredients.pop(from_index))
        return self.model_copy(update={"ingredients": ingredients}).reindexed()

    def add_instruction(self, content: str, position: Optional[int] = None) -> "RecipeDraft":
        instructions = list(self.instructions)
        step = InstructionDraft(content=content)
        instructions.insert(len(instructions) if position is None else position, step)
        return self.model_copy(update={"instructions": instructions}).reindexed()

    def remove_instruction(self, index: int) -> "RecipeDraft":
        instructions = list(self.instructions)
        del instructions[index]
        return self.model_copy(update={"instructions": instructions}).reindexed()

    def missing_for_save(self) -> list[str]:
        """Names of the required lists that are still empty."""
        missing = []
        if not self.ingredients:
            missing.append("ingredients")
        if not self.instructions:
            missing.append("instructions")
        return missing

    def ensure_savable(self) -> None:
        """Savability gate run before persistence (never by the normalizer).

        Raises:
            DraftIncompleteError: If the draft has no ingredients or no instructions.
        """
        missing = self.missing_for_save()
        if missing:
            raise DraftIncompleteError(
                f"Recipe '{self.title}' is missing {' and '.join(missing)}",
                user_message=f"Please add at least one item to {' and '.join(missing)} before saving.",
            )


AugmentRequest.model_rebuild()

GenerationRequest = Union[FreeFormRequest, ImportRequest, AugmentRequest]


# ============================================================================
# Wildcard catalog
# ============================================================================


class WildcardCatalogEntry(BaseModel):
    """A curated unusual ingredient from the remote wildcard catalog."""

    model_config = ConfigDict(str_strip_whitespace=True)

    id: Optional[str] = None
    name: Annotated[str, Field(min_length=1, max_length=MAX_NAME_LENGTH)]
    category: str = ""
    flavor_profile: List[str] = Field(default_factory=list)
    pairs_with: List[str] = Field(default_factory=list)
    description: str = ""
    usage_tips: str = ""
    intensity: Intensity = Intensity.MEDIUM

    @field_validator("id", mode="before")
    @classmethod
    def id_as_string(cls, v):
        return None if v is None else str(v)

    @field_validator("flavor_profile", "pairs_with", mode="before")
    @classmethod
    def none_is_empty(cls, v):
        return v or []


class WildcardSuggestion(BaseModel):
    """Ephemeral recommendation; only reaches a draft if the user accepts it."""

    ingredient: WildcardCatalogEntry
    reason: str = ""
    how_to_use: str = ""
    quantity_suggestion: str = ""


# ============================================================================
# Persisted records (backend rows)
# ============================================================================


class PersistedRecipe(BaseModel):
    """Recipe row as returned by the backend after insert."""

    model_config = ConfigDict(extra="ignore")

    id: str
    user_id: Optional[str] = None
    title: str
    description: str = ""
    source: RecipeSource
    prep_time_minutes: Optional[int] = None
    cook_time_minutes: Optional[int] = None
    servings: Optional[int] = None
    cuisine: Optional[str] = None
    difficulty: Optional[Difficulty] = None
    is_public: bool = True
    is_anonymous: bool = False
    image_url: Optional[str] = None
    created_at: Optional[str] = None
    ingredients: List[IngredientDraft] = Field(default_factory=list)
    instructions: List[InstructionDraft] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def coerce_id(cls, data):
        """Backends may return integer or UUID ids; keep them as strings."""
        if isinstance(data, dict) and data.get("id") is not None:
            data = {**data, "id": str(data["id"])}
        return data
