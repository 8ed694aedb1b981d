"""Prompt templates for the recipe ingestion pipeline.

Provides pure builder functions that turn a generation request into the
instruction string sent to the generative model. Every recipe-producing
prompt embeds the literal JSON schema the response must follow and ends with
an explicit "JSON only" instruction; the extractor relies on that contract.
No network or I/O happens here.
"""

from functools import singledispatch
from typing import Optional

from src.models.models import AugmentRequest, FreeFormRequest, ImportRequest, WildcardCatalogEntry

JSON_ONLY = "Only respond with valid JSON, no other text."

WILDCARD_CATEGORIES = (
    "Umami Boosters",
    "Acidic Notes",
    "Sweet Enhancers",
    "Aromatic Additions",
    "Textural Elements",
    "Heat & Spice",
)

RECIPE_SCHEMA = """{
  "title": "Recipe Title",
  "description": "Brief appealing description of the dish",
  "prep_time_minutes": 15,
  "cook_time_minutes": 30,
  "servings": 4,
  "cuisine": "Italian",
  "difficulty": "easy|medium|hard",
  "ingredients": [
    {"name": "ingredient name", "quantity": "1", "unit": "cup", "is_wildcard": false}%s
  ],
  "instructions": [
    {"step_number": 1, "content": "Step description"},
    {"step_number": 2, "content": "Step description"}
  ]
}"""

WILDCARD_INGREDIENT_EXAMPLE = (
    ',\n    {"name": "wildcard ingredient", "quantity": "1", "unit": "tbsp", '
    '"is_wildcard": true, "wildcard_reason": "Why this unusual ingredient works"}'
)

AUGMENT_SCHEMA = """{
  "wildcard_ingredients": [
    {"name": "Ingredient Name", "quantity": "1", "unit": "tsp", "reason": "Why this works with the dish"}
  ],
  "updated_instructions": [
    {"step_number": 1, "content": "Updated step that may include wildcard usage"}
  ],
  "description": "Updated description mentioning the unique twist"
}"""

SUGGESTION_SCHEMA = """{
  "ingredient": {
    "name": "Ingredient Name",
    "category": "%s",
    "flavor_profile": ["umami", "salty"],
    "pairs_with": ["ingredient1", "ingredient2"],
    "description": "Brief description of this ingredient",
    "usage_tips": "General tips for using this ingredient",
    "intensity": "subtle|medium|bold"
  },
  "reason": "Why this specific ingredient works with the given recipe ingredients",
  "how_to_use": "Specific instructions for incorporating it into this dish",
  "quantity_suggestion": "Start with 1 tsp and adjust to taste"
}""" % "|".join(WILDCARD_CATEGORIES)


def recipe_schema(include_wildcard: bool = False) -> str:
    """Return the recipe JSON schema, with a wildcard ingredient example if requested."""
    return RECIPE_SCHEMA % (WILDCARD_INGREDIENT_EXAMPLE if include_wildcard else "")


@singledispatch
def build_prompt(request) -> str:
    """Build the model prompt for any generation request.

    Args:
        request: FreeFormRequest, ImportRequest or AugmentRequest.

    Returns:
        str: Complete prompt text.

    Raises:
        TypeError: If the request type is not a known generation request.
    """
    raise TypeError(f"Unsupported generation request: {type(request).__name__}")


@build_prompt.register
def build_generate_prompt(request: FreeFormRequest) -> str:
    """Prompt for free-form recipe generation.

    The goal text is embedded verbatim. Cuisine, dietary and difficulty lines
    are only added when the request carries them.
    """
    lines = [
        f'You are a creative chef. Generate a complete recipe based on this request: "{request.prompt}"',
        "",
    ]
    if request.cuisine:
        lines.append(f"Cuisine style: {request.cuisine}")
    if request.dietary_restrictions:
        lines.append(f"Dietary restrictions: {', '.join(request.dietary_restrictions)}")
    if request.difficulty:
        lines.append(f"Difficulty level: {request.difficulty.value}")

    if request.include_wildcard:
        lines += [
            "",
            'IMPORTANT: Include exactly one "wildcard" ingredient - an uncommon but delicious addition that '
            "adds a unique flavor dimension. This could be something like fish sauce in non-Asian dishes, "
            "espresso in savory sauces, miso in unexpected places, or other surprising but scientifically "
            "sound flavor combinations.",
            "",
            'Mark the wildcard ingredient with "is_wildcard": true and explain why it works in "wildcard_reason". '
            'All other ingredients must have "is_wildcard": false.',
        ]

    lines += [
        "",
        "Respond in this exact JSON format:",
        recipe_schema(include_wildcard=request.include_wildcard),
        "",
        JSON_ONLY,
    ]
    return "\n".join(lines) + "\n"


@build_prompt.register
def build_import_prompt(request: ImportRequest) -> str:
    """Prompt for extracting a structured recipe from raw text."""
    return f'''
You are a recipe parser. Parse the following recipe text and extract all the information into a structured format.

Recipe text:
"""
{request.source_text}
"""

Extract the title, description, prep and cook times, servings, cuisine, difficulty, ingredients and instructions.
If some information is missing, make reasonable estimates based on the recipe content.

Respond in this exact JSON format:
{recipe_schema()}

{JSON_ONLY}
'''


@build_prompt.register
def build_augment_prompt(request: AugmentRequest) -> str:
    """Prompt asking for 1-2 wildcard ingredients for an existing recipe."""
    recipe = request.existing_recipe
    return f"""
You are a culinary innovation expert. Given this existing recipe, suggest 1-2 "wildcard" ingredients that would elevate and make it unique.

Recipe: {recipe.title}
Description: {recipe.description}
Current ingredients: {', '.join(recipe.ingredient_names)}
Cuisine: {recipe.cuisine or 'Not specified'}

Suggest exactly 1-2 wildcard ingredients that are:
- Unexpected but scientifically proven to work (shared flavor compounds, complementary tastes)
- Not already in the recipe
- Something that adds a unique dimension (umami, brightness, depth, etc.)

Also provide updated instructions that incorporate the wildcard ingredients, and an updated description.

Respond in this exact JSON format:
{AUGMENT_SCHEMA}

{JSON_ONLY}
"""


def build_wildcard_suggestion_prompt(ingredients: list[str], cuisine: Optional[str] = None) -> str:
    """Prompt for a single catalog-shaped wildcard suggestion for an ingredient list."""
    cuisine_line = f"Cuisine style: {cuisine}\n" if cuisine else ""
    return f"""
You are a culinary innovation expert specializing in unexpected flavor combinations that are backed by food science.

Given these recipe ingredients: {', '.join(ingredients)}
{cuisine_line}
Suggest ONE surprising "wildcard" ingredient that would elevate this dish. This should be:
- Unexpected but scientifically proven to work (shared flavor compounds, complementary tastes)
- Not a common ingredient for this type of dish
- Something that adds a unique dimension (umami, brightness, depth, etc.)

Examples of great wildcard ingredients: fish sauce, miso paste, coffee/espresso, soy sauce, anchovy paste, nutritional yeast, tahini, marmite, dried mushroom powder, citrus zest, apple cider vinegar, etc.

Respond in this exact JSON format:
{SUGGESTION_SCHEMA}

{JSON_ONLY}
"""


def build_pairing_explanation_prompt(wildcard: str, ingredients: list[str], recipe_title: str) -> str:
    """Prompt for a short plain-text explanation of why a wildcard pairing works."""
    return f"""
You are a culinary expert. Explain why "{wildcard}" works as a unique addition to a recipe called "{recipe_title}" that contains these ingredients: {', '.join(ingredients)}.

Keep your explanation concise (2-3 sentences) and focus on:
1. The flavor science behind why it works
2. How it enhances the dish

Response format: Just the explanation text, no formatting.
"""


def describe_catalog_entry(entry: WildcardCatalogEntry) -> str:
    """One-line summary of a catalog entry, used by the CLI and pairing prompts."""
    flavors = ", ".join(entry.flavor_profile) or "unknown flavor"
    return f"{entry.name} ({entry.category or 'Uncategorized'}, {entry.intensity.value}): {flavors}"
