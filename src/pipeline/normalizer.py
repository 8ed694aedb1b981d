"""Recipe normalizer: shape a loosely typed model payload into a RecipeDraft.

All default filling for model output happens here, for every entry point:

- optional scalars are coerced (numbers from strings, unknown enums to None)
- ingredient quantities become strings ("1", "1.5", "to taste")
- overlong names, units and titles are truncated to the column limits
- ingredients get order_index by position (0-based) and instructions get
  step_number by position (1-based); indices present in the payload are
  informational only and ignored
- in merge mode (wildcard augmentation) new ingredients are appended to an
  existing draft, which is copied and never mutated

Absent arrays are treated as empty. A payload that is not an object, or an
array field of the wrong type, raises NormalizationError.
"""

import math
import re
from typing import Any, Optional

from pydantic import ValidationError

from src.models.models import (
    DEFAULT_TITLE,
    MAX_NAME_LENGTH,
    MAX_UNIT_LENGTH,
    Difficulty,
    IngredientDraft,
    InstructionDraft,
    Intensity,
    RecipeDraft,
    RecipeSource,
    WildcardCatalogEntry,
    WildcardSuggestion,
)
from src.utils.errors import NormalizationError
from src.utils.logger import logger

LEADING_NUMBER = re.compile(r"^\s*(\d+(?:\.\d+)?)")


# ============================================================================
# Scalar coercion
# ============================================================================


def coerce_int(value: Any, minimum: int = 0, maximum: Optional[int] = None) -> Optional[int]:
    """Coerce a loosely typed number ("15", "15 minutes", 15.0) to int.

    Returns None for anything non-numeric or outside [minimum, maximum].
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = value
    elif isinstance(value, str):
        match = LEADING_NUMBER.match(value)
        if not match:
            return None
        number = float(match.group(1))
    else:
        return None

    if not math.isfinite(number):
        return None
    result = int(round(number))
    if result < minimum or (maximum is not None and result > maximum):
        return None
    return result


def coerce_str(value: Any, default: str = "", max_length: Optional[int] = None) -> str:
    if value is None:
        return default
    text = value.strip() if isinstance(value, str) else str(value).strip()
    if max_length is not None and len(text) > max_length:
        text = text[:max_length].rstrip()
    return text


def coerce_bool(value: Any) -> bool:
    """Read a loosely typed flag: "false"/"0"/"no" strings are False."""
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)


def coerce_optional_str(value: Any) -> Optional[str]:
    text = coerce_str(value)
    return text or None


def coerce_quantity(value: Any) -> str:
    """Stringify a quantity. Integral floats lose their '.0' (1.0 -> "1")."""
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return coerce_str(value)


def coerce_difficulty(value: Any) -> Optional[Difficulty]:
    text = coerce_str(value).lower()
    try:
        return Difficulty(text)
    except ValueError:
        return None


def coerce_intensity(value: Any) -> Intensity:
    text = coerce_str(value).lower()
    try:
        return Intensity(text)
    except ValueError:
        return Intensity.MEDIUM


def coerce_str_list(value: Any) -> list[str]:
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, list):
        return []
    return [coerce_str(item) for item in value if coerce_str(item)]


def _array(parsed: dict, key: str) -> list:
    """Return parsed[key] as a list; absent or null means empty."""
    value = parsed.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise NormalizationError(f"Expected '{key}' to be a list, got {type(value).__name__}")
    return value


# ============================================================================
# List items
# ============================================================================


def _ingredient(item: Any, order_index: int, force_wildcard: bool = False) -> Optional[IngredientDraft]:
    if isinstance(item, str):
        item = {"name": item}
    if not isinstance(item, dict):
        return None
    name = coerce_str(item.get("name"), max_length=MAX_NAME_LENGTH)
    if not name:
        return None

    is_wildcard = force_wildcard or coerce_bool(item.get("is_wildcard", False))
    reason = coerce_optional_str(item.get("wildcard_reason") or item.get("reason"))
    return IngredientDraft(
        name=name,
        quantity=coerce_quantity(item.get("quantity")),
        unit=coerce_str(item.get("unit"), max_length=MAX_UNIT_LENGTH),
        is_wildcard=is_wildcard,
        wildcard_reason=reason if is_wildcard else None,
        order_index=order_index,
    )


def _ingredients(items: list, start: int = 0, force_wildcard: bool = False) -> list[IngredientDraft]:
    ingredients = []
    for item in items:
        ingredient = _ingredient(item, start + len(ingredients), force_wildcard=force_wildcard)
        if ingredient is None:
            logger.debug(f"Dropping unusable ingredient entry: {item!r}")
            continue
        ingredients.append(ingredient)
    return ingredients


def _instructions(items: list) -> list[InstructionDraft]:
    instructions = []
    for item in items:
        content = coerce_str(item.get("content") if isinstance(item, dict) else item)
        if not content:
            logger.debug(f"Dropping empty instruction entry: {item!r}")
            continue
        instructions.append(InstructionDraft(step_number=len(instructions) + 1, content=content))
    return instructions


# ============================================================================
# Public API
# ============================================================================


def normalize(
    parsed: dict,
    provenance: RecipeSource,
    merge_into: Optional[RecipeDraft] = None,
) -> RecipeDraft:
    """Turn a parsed model payload into a RecipeDraft.

    Args:
        parsed: Object returned by extract_json().
        provenance: Source tag chosen by the calling entry point.
        merge_into: Existing draft for wildcard augmentation. When given,
            the payload is read as an augmentation response
            (wildcard_ingredients / updated_instructions / description).

    Returns:
        RecipeDraft with contiguous order_index and step_number.

    Raises:
        NormalizationError: If the payload is not an object or an array
            field has the wrong type.
    """
    if not isinstance(parsed, dict):
        raise NormalizationError(f"Expected a JSON object, got {type(parsed).__name__}")

    try:
        if merge_into is not None:
            return _merge_wildcards(parsed, merge_into)
        return _build_draft(parsed, provenance)
    except ValidationError as e:
        logger.warning(f"Normalized draft failed validation: {e}")
        raise NormalizationError(f"Normalized recipe is invalid: {e}") from e


def _build_draft(parsed: dict, provenance: RecipeSource) -> RecipeDraft:
    ingredients = _ingredients(_array(parsed, "ingredients"))
    instructions = _instructions(_array(parsed, "instructions"))

    return RecipeDraft(
        title=coerce_str(parsed.get("title"), max_length=MAX_NAME_LENGTH) or DEFAULT_TITLE,
        description=coerce_str(parsed.get("description")),
        source=provenance,
        prep_time_minutes=coerce_int(parsed.get("prep_time_minutes"), maximum=1440),
        cook_time_minutes=coerce_int(parsed.get("cook_time_minutes"), maximum=1440),
        servings=coerce_int(parsed.get("servings"), minimum=1, maximum=100),
        cuisine=coerce_optional_str(parsed.get("cuisine")),
        difficulty=coerce_difficulty(parsed.get("difficulty")),
        is_public=True,
        ingredients=ingredients,
        instructions=instructions,
    )


def _merge_wildcards(parsed: dict, existing: RecipeDraft) -> RecipeDraft:
    # Drafts loaded from JSON may carry gaps in their indices
    base = existing.model_copy(deep=True).reindexed()
    known = {name.lower() for name in base.ingredient_names}

    new_items = []
    for item in _array(parsed, "wildcard_ingredients"):
        name = coerce_str(item.get("name") if isinstance(item, dict) else item).lower()
        if name and name in known:
            logger.debug(f"Skipping wildcard already in recipe: {name}")
            continue
        known.add(name)
        new_items.append(item)

    wildcards = _ingredients(new_items, start=len(base.ingredients), force_wildcard=True)
    instructions = _instructions(_array(parsed, "updated_instructions"))
    description = coerce_str(parsed.get("description"))

    logger.debug(
        f"Merging {len(wildcards)} wildcard ingredient(s), "
        f"{'replacing' if instructions else 'keeping'} instructions"
    )
    merged = base.model_copy(
        update={
            "ingredients": base.ingredients + wildcards,
            "instructions": instructions or base.instructions,
            "description": description or base.description,
            "source": RecipeSource.WILDCARD_MODIFIED,
        }
    )
    return RecipeDraft.model_validate(merged.model_dump())


def normalize_wildcard_suggestion(parsed: dict) -> WildcardSuggestion:
    """Shape a wildcard suggestion payload.

    Raises:
        NormalizationError: If the payload has no ingredient object with a name.
    """
    if not isinstance(parsed, dict):
        raise NormalizationError(f"Expected a JSON object, got {type(parsed).__name__}")
    ingredient = parsed.get("ingredient")
    if not isinstance(ingredient, dict) or not coerce_str(ingredient.get("name")):
        raise NormalizationError("Wildcard suggestion is missing an ingredient name")

    entry = WildcardCatalogEntry(
        name=coerce_str(ingredient.get("name"), max_length=MAX_NAME_LENGTH),
        category=coerce_str(ingredient.get("category")),
        flavor_profile=coerce_str_list(ingredient.get("flavor_profile")),
        pairs_with=coerce_str_list(ingredient.get("pairs_with")),
        description=coerce_str(ingredient.get("description")),
        usage_tips=coerce_str(ingredient.get("usage_tips")),
        intensity=coerce_intensity(ingredient.get("intensity")),
    )
    return WildcardSuggestion(
        ingredient=entry,
        reason=coerce_str(parsed.get("reason")),
        how_to_use=coerce_str(parsed.get("how_to_use")),
        quantity_suggestion=coerce_str(parsed.get("quantity_suggestion")),
    )
