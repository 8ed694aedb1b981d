"""Unit tests for the recipe normalizer."""

import pytest

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
)
from src.pipeline.normalizer import (
    coerce_int,
    coerce_quantity,
    normalize,
    normalize_wildcard_suggestion,
)
from src.utils.errors import NormalizationError


@pytest.fixture
def existing_draft():
    return RecipeDraft(
        title="Tomato Soup",
        description="Classic and comforting",
        source=RecipeSource.AI_GENERATED,
        ingredients=[
            IngredientDraft(name="Tomatoes", quantity="6", order_index=0),
            IngredientDraft(name="Onion", quantity="1", order_index=1),
            IngredientDraft(name="Stock", quantity="2", unit="cups", order_index=2),
        ],
        instructions=[
            InstructionDraft(step_number=1, content="Chop"),
            InstructionDraft(step_number=2, content="Simmer"),
        ],
    )


class TestCoercion:
    @pytest.mark.parametrize(
        "value,expected",
        [(15, 15), (15.0, 15), ("15", 15), ("15 minutes", 15), (" 20 ", 20), ("about 10", None), (None, None)],
    )
    def test_coerce_int(self, value, expected):
        assert coerce_int(value) == expected

    def test_coerce_int_rejects_bools_and_out_of_range(self):
        assert coerce_int(True) is None
        assert coerce_int(-5) is None
        assert coerce_int(2000, maximum=1440) is None
        assert coerce_int(0, minimum=1) is None

    def test_coerce_int_rejects_non_finite(self):
        assert coerce_int(float("inf")) is None
        assert coerce_int(float("nan")) is None

    @pytest.mark.parametrize(
        "value,expected",
        [(1, "1"), (1.5, "1.5"), (2.0, "2"), (None, ""), ("to taste", "to taste"), (" 1/2 ", "1/2")],
    )
    def test_coerce_quantity(self, value, expected):
        assert coerce_quantity(value) == expected


class TestNormalizeNewDraft:
    """Generate and import payloads."""

    def test_soup_scenario(self):
        parsed = {
            "title": "Soup",
            "ingredients": [{"name": "Water", "quantity": 1, "unit": "cup"}],
            "instructions": [{"content": "Boil"}],
        }

        draft = normalize(parsed, RecipeSource.AI_GENERATED)

        assert draft.title == "Soup"
        assert draft.source == RecipeSource.AI_GENERATED
        assert draft.is_public is True
        assert len(draft.ingredients) == 1
        water = draft.ingredients[0]
        assert (water.name, water.quantity, water.unit) == ("Water", "1", "cup")
        assert water.order_index == 0
        assert water.is_wildcard is False
        assert draft.instructions[0].step_number == 1
        assert draft.instructions[0].content == "Boil"

    def test_empty_lists_are_kept(self):
        draft = normalize({"title": "X", "ingredients": [], "instructions": []}, RecipeSource.IMPORTED)
        assert draft.title == "X"
        assert draft.ingredients == []
        assert draft.instructions == []
        assert draft.source == RecipeSource.IMPORTED

    def test_missing_fields_default(self):
        draft = normalize({}, RecipeSource.IMPORTED)
        assert draft.title == DEFAULT_TITLE
        assert draft.description == ""
        assert draft.prep_time_minutes is None
        assert draft.servings is None
        assert draft.cuisine is None
        assert draft.difficulty is None

    def test_scalars_coerced(self):
        parsed = {
            "title": "  Stew ",
            "prep_time_minutes": "15 minutes",
            "cook_time_minutes": 45.0,
            "servings": "4",
            "cuisine": "",
            "difficulty": "Medium",
        }
        draft = normalize(parsed, RecipeSource.AI_GENERATED)
        assert draft.title == "Stew"
        assert draft.prep_time_minutes == 15
        assert draft.cook_time_minutes == 45
        assert draft.servings == 4
        assert draft.cuisine is None
        assert draft.difficulty == Difficulty.MEDIUM

    def test_unknown_difficulty_becomes_none(self):
        assert normalize({"difficulty": "expert"}, RecipeSource.IMPORTED).difficulty is None

    def test_payload_indices_are_ignored(self):
        parsed = {
            "ingredients": [{"name": "a", "order_index": 7}, {"name": "b", "order_index": 2}],
            "instructions": [{"step_number": 4, "content": "x"}, {"step_number": 9, "content": "y"}],
        }
        draft = normalize(parsed, RecipeSource.IMPORTED)
        assert [i.order_index for i in draft.ingredients] == [0, 1]
        assert [s.step_number for s in draft.instructions] == [1, 2]

    def test_unusable_entries_dropped_before_indexing(self):
        parsed = {
            "ingredients": [{"name": "salt"}, {"quantity": "1"}, 42, {"name": "  "}, "pepper"],
            "instructions": ["Mix", {"content": ""}, None, {"content": "Serve"}],
        }
        draft = normalize(parsed, RecipeSource.IMPORTED)
        assert draft.ingredient_names == ["salt", "pepper"]
        assert [i.order_index for i in draft.ingredients] == [0, 1]
        assert [(s.step_number, s.content) for s in draft.instructions] == [(1, "Mix"), (2, "Serve")]

    def test_wildcard_flag_and_reason(self):
        parsed = {
            "ingredients": [
                {"name": "Fish Sauce", "is_wildcard": True, "wildcard_reason": "Deep umami"},
                {"name": "Beef", "is_wildcard": False, "wildcard_reason": "ignored"},
            ]
        }
        draft = normalize(parsed, RecipeSource.WILDCARD_MODIFIED)
        fish_sauce, beef = draft.ingredients
        assert fish_sauce.is_wildcard is True
        assert fish_sauce.wildcard_reason == "Deep umami"
        assert beef.wildcard_reason is None

    def test_non_object_payload_raises(self):
        with pytest.raises(NormalizationError):
            normalize(["not", "an", "object"], RecipeSource.IMPORTED)

    def test_wrong_array_type_raises(self):
        with pytest.raises(NormalizationError, match="ingredients"):
            normalize({"ingredients": "flour, eggs"}, RecipeSource.IMPORTED)

    def test_null_arrays_are_empty(self):
        draft = normalize({"ingredients": None, "instructions": None}, RecipeSource.IMPORTED)
        assert draft.ingredients == []
        assert draft.instructions == []

    def test_overlong_strings_are_truncated(self):
        parsed = {
            "title": "x" * 300,
            "ingredients": [{"name": "Garlic", "unit": "large cloves, peeled and very finely minced by hand"}],
        }

        draft = normalize(parsed, RecipeSource.IMPORTED)

        assert draft.title == "x" * MAX_NAME_LENGTH
        assert draft.ingredients[0].name == "Garlic"
        assert draft.ingredients[0].unit == "large cloves, peeled and very finely minced by han"
        assert len(draft.ingredients[0].unit) == MAX_UNIT_LENGTH

    @pytest.mark.parametrize(
        "flag,expected",
        [("false", False), ("False", False), ("0", False), ("no", False), ("true", True), ("yes", True), (1, True)],
    )
    def test_string_wildcard_flags(self, flag, expected):
        draft = normalize({"ingredients": [{"name": "Salt", "is_wildcard": flag}]}, RecipeSource.IMPORTED)
        assert draft.ingredients[0].is_wildcard is expected


class TestNormalizeMerge:
    """Wildcard augmentation payloads."""

    def test_appends_wildcards_and_replaces_instructions(self, existing_draft):
        parsed = {
            "wildcard_ingredients": [{"name": "Miso", "quantity": "1", "unit": "tbsp", "reason": "Umami"}],
            "updated_instructions": [{"content": "Chop"}, {"content": "Simmer with miso"}, {"content": "Blend"}],
            "description": "Now with a savory twist",
        }

        merged = normalize(parsed, RecipeSource.WILDCARD_MODIFIED, merge_into=existing_draft)

        assert merged.ingredient_names == ["Tomatoes", "Onion", "Stock", "Miso"]
        miso = merged.ingredients[3]
        assert miso.order_index == 3
        assert miso.is_wildcard is True
        assert miso.wildcard_reason == "Umami"
        assert [s.content for s in merged.instructions] == ["Chop", "Simmer with miso", "Blend"]
        assert [s.step_number for s in merged.instructions] == [1, 2, 3]
        assert merged.description == "Now with a savory twist"
        assert merged.source == RecipeSource.WILDCARD_MODIFIED

    def test_existing_prefix_preserved(self, existing_draft):
        parsed = {"wildcard_ingredients": [{"name": "Sumac"}, {"name": "Tahini"}]}

        merged = normalize(parsed, RecipeSource.WILDCARD_MODIFIED, merge_into=existing_draft)

        assert merged.ingredients[:3] == existing_draft.ingredients
        assert len(merged.ingredients) == 5
        assert all(i.is_wildcard for i in merged.ingredients[3:])

    def test_gapped_indices_are_reindexed(self):
        loaded = RecipeDraft.model_validate(
            {
                "title": "Loaded",
                "ingredients": [{"name": "Rice", "order_index": 3}, {"name": "Egg", "order_index": 7}],
                "instructions": [{"step_number": 4, "content": "Fry"}],
            }
        )

        merged = normalize({"wildcard_ingredients": [{"name": "Kimchi"}]}, RecipeSource.WILDCARD_MODIFIED, merge_into=loaded)

        assert [i.order_index for i in merged.ingredients] == [0, 1, 2]
        assert [s.step_number for s in merged.instructions] == [1]
        assert loaded.ingredients[1].order_index == 7

    def test_empty_updates_keep_original(self, existing_draft):
        parsed = {"wildcard_ingredients": [{"name": "Sumac"}], "updated_instructions": [], "description": ""}

        merged = normalize(parsed, RecipeSource.WILDCARD_MODIFIED, merge_into=existing_draft)

        assert merged.instructions == existing_draft.instructions
        assert merged.description == existing_draft.description

    def test_forces_wildcard_flag(self, existing_draft):
        parsed = {"wildcard_ingredients": [{"name": "Sumac", "is_wildcard": False, "wildcard_reason": "Bright"}]}

        merged = normalize(parsed, RecipeSource.WILDCARD_MODIFIED, merge_into=existing_draft)

        assert merged.ingredients[-1].is_wildcard is True
        assert merged.ingredients[-1].wildcard_reason == "Bright"

    def test_existing_names_not_duplicated(self, existing_draft):
        parsed = {"wildcard_ingredients": [{"name": "onion"}, {"name": "Miso"}, {"name": "MISO"}]}

        merged = normalize(parsed, RecipeSource.WILDCARD_MODIFIED, merge_into=existing_draft)

        assert merged.ingredient_names == ["Tomatoes", "Onion", "Stock", "Miso"]

    def test_input_draft_not_mutated(self, existing_draft):
        snapshot = existing_draft.model_dump()
        parsed = {
            "wildcard_ingredients": [{"name": "Miso"}],
            "updated_instructions": ["New step"],
            "description": "Changed",
        }

        normalize(parsed, RecipeSource.WILDCARD_MODIFIED, merge_into=existing_draft)

        assert existing_draft.model_dump() == snapshot

    def test_wrong_array_type_raises(self, existing_draft):
        with pytest.raises(NormalizationError):
            normalize({"wildcard_ingredients": {"name": "Miso"}}, RecipeSource.WILDCARD_MODIFIED, merge_into=existing_draft)


class TestNormalizeWildcardSuggestion:
    def test_full_suggestion(self):
        parsed = {
            "ingredient": {
                "name": "Gochujang",
                "category": "Heat & Spice",
                "flavor_profile": ["spicy", "sweet"],
                "pairs_with": "honey, eggs",
                "intensity": "BOLD",
            },
            "reason": "Sweet heat",
            "how_to_use": "Stir into the glaze",
            "quantity_suggestion": "1 tbsp",
        }

        suggestion = normalize_wildcard_suggestion(parsed)

        assert suggestion.ingredient.name == "Gochujang"
        assert suggestion.ingredient.pairs_with == ["honey", "eggs"]
        assert suggestion.ingredient.intensity == Intensity.BOLD
        assert suggestion.reason == "Sweet heat"
        assert suggestion.quantity_suggestion == "1 tbsp"

    def test_defaults(self):
        suggestion = normalize_wildcard_suggestion({"ingredient": {"name": "Tahini", "intensity": "loud"}})
        assert suggestion.ingredient.flavor_profile == []
        assert suggestion.ingredient.intensity == Intensity.MEDIUM
        assert suggestion.reason == ""

    def test_missing_name_raises(self):
        with pytest.raises(NormalizationError):
            normalize_wildcard_suggestion({"ingredient": {"category": "Umami Boosters"}})
        with pytest.raises(NormalizationError):
            normalize_wildcard_suggestion({"reason": "no ingredient"})
