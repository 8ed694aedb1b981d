#!/usr/bin/env python3
"""Ad hoc runner for the recipe ingestion pipeline.

Run the generate / import / augment pipelines from the terminal without any UI.

Usage:
    python query.py generate "A cozy weeknight soup"
    python query.py generate --cuisine Thai --difficulty easy --diet vegan --wildcard "Noodle salad"
    python query.py import --url https://example.com/best-lasagna
    python query.py import --file recipes/grandmas-pie.txt
    python query.py import "Pancakes. 2 cups flour, 2 eggs, 1 cup milk. Whisk, rest, fry in butter."
    python query.py augment draft.json          # Add 1-2 wildcard ingredients to a saved draft
    python query.py suggest --cuisine Italian "tomatoes, basil, mozzarella"
    python query.py catalog [search]            # Browse the wildcard catalog
    python query.py --debug generate "..."      # Show the full JSON draft
    python query.py --save generate "..."       # Persist the draft to Supabase

Features:
- Markdown rendering of drafts (OUTPUT_FORMAT=markdown) or raw JSON (OUTPUT_FORMAT=json)
- Debug mode prints the full JSON draft and the pipeline state path
- Save mode runs the same wizard flow as the app screens and stores the recipe
"""

import asyncio
import json
import sys
from pathlib import Path

from rich.console import Console
from rich.markdown import Markdown

from src.clients.catalog import WildcardCatalog
from src.clients.supabase import SupabaseRecipeStore
from src.clients.text_source import (
    import_request_from_file,
    import_request_from_text,
    import_request_from_url,
)
from src.models.models import AugmentRequest, FreeFormRequest, RecipeDraft
from src.pipeline.orchestrator import RecipeIngestionPipeline
from src.prompts.prompts import describe_catalog_entry
from src.utils.config import config
from src.utils.errors import RecipeAIError
from src.utils.logger import logger
from src.wizard.wizard import RecipeWizard

console = Console()

COMMANDS = ("generate", "import", "augment", "suggest", "catalog")

# Flags that take a value
VALUE_FLAGS = ("--cuisine", "--difficulty", "--diet", "--url", "--file")
BOOL_FLAGS = ("--debug", "--save", "--wildcard")

USAGE = 'Usage: python query.py [--debug] [--save] <generate|import|augment|suggest|catalog> [options] "<text>"'


def draft_to_markdown(draft: RecipeDraft) -> str:
    """Render a draft as markdown for the terminal."""
    lines = [f"# {draft.title}", ""]
    if draft.description:
        lines += [draft.description, ""]

    facts = []
    if draft.cuisine:
        facts.append(f"**Cuisine:** {draft.cuisine}")
    if draft.difficulty:
        facts.append(f"**Difficulty:** {draft.difficulty.value}")
    if draft.prep_time_minutes is not None:
        facts.append(f"**Prep:** {draft.prep_time_minutes} min")
    if draft.cook_time_minutes is not None:
        facts.append(f"**Cook:** {draft.cook_time_minutes} min")
    if draft.servings:
        facts.append(f"**Serves:** {draft.servings}")
    if facts:
        lines += [" | ".join(facts), ""]

    lines += ["## Ingredients", ""]
    for ingredient in draft.ingredients:
        amount = " ".join(part for part in (ingredient.quantity, ingredient.unit) if part)
        text = f"- {amount} {ingredient.name}" if amount else f"- {ingredient.name}"
        if ingredient.is_wildcard:
            text += " 🃏 *wildcard*"
            if ingredient.wildcard_reason:
                text += f": {ingredient.wildcard_reason}"
        lines.append(text)

    lines += ["", "## Instructions", ""]
    for instruction in draft.instructions:
        lines.append(f"{instruction.step_number}. {instruction.content}")

    lines += ["", f"*Source: {draft.source.value}*"]
    if draft.source_url:
        lines.append(f"*From: {draft.source_url}*")
    return "\n".join(lines)


def parse_args(argv: list[str]) -> tuple[str, dict, str]:
    """Split argv into (command, options, text).

    Raises:
        ValueError: On unknown commands or flags, or a value flag without a value.
    """
    options: dict = {flag.lstrip("-"): False for flag in BOOL_FLAGS}
    command = None
    rest: list[str] = []

    index = 0
    while index < len(argv):
        arg = argv[index]
        if arg in BOOL_FLAGS:
            options[arg.lstrip("-")] = True
        elif arg in VALUE_FLAGS:
            index += 1
            if index >= len(argv):
                raise ValueError(f"{arg} flag requires a value")
            options[arg.lstrip("-")] = argv[index]
        elif arg.startswith("--"):
            raise ValueError(f"Unknown flag: {arg}")
        elif command is None:
            if arg not in COMMANDS:
                raise ValueError(f"Unknown command: {arg}")
            command = arg
        else:
            rest.append(arg)
        index += 1

    if command is None:
        raise ValueError("No command provided")
    return command, options, " ".join(rest)


def print_draft(draft: RecipeDraft, pipeline: RecipeIngestionPipeline, debug: bool) -> None:
    if debug:
        console.print("[bold cyan]Debug Mode: Full Draft[/bold cyan]")
        console.print("[dim]" + "=" * 60 + "[/dim]")
        console.print_json(data=draft.model_dump(mode="json"))
        if pipeline.last_run:
            path = " -> ".join(state.value for state in pipeline.last_run.history)
            console.print(f"[dim]Pipeline {pipeline.last_run.run_id}: {path}[/dim]")
        console.print("[dim]" + "=" * 60 + "[/dim]")
        console.print()

    if config.OUTPUT_FORMAT == "json":
        console.print_json(data=draft.model_dump(mode="json"))
    else:
        console.print(Markdown(draft_to_markdown(draft)))


async def build_request(command: str, options: dict, text: str):
    if command == "generate":
        return FreeFormRequest(
            prompt=text,
            cuisine=options.get("cuisine") or None,
            dietary_restrictions=options.get("diet") or [],
            difficulty=options.get("difficulty") or None,
            include_wildcard=options["wildcard"],
        )
    if command == "import":
        if options.get("url"):
            return await import_request_from_url(options["url"])
        if options.get("file"):
            return import_request_from_file(options["file"])
        return import_request_from_text(text)
    if command == "augment":
        draft = RecipeDraft.model_validate_json(Path(text).read_text(encoding="utf-8"))
        return AugmentRequest(existing_recipe=draft)
    raise ValueError(f"No request for command: {command}")


async def run_command(command: str, options: dict, text: str) -> None:
    pipeline = RecipeIngestionPipeline()

    if command == "catalog":
        store = SupabaseRecipeStore() if config.has_backend else None
        catalog = WildcardCatalog(store)
        entries = await catalog.search(text)
        if catalog.using_fallback:
            console.print("[dim]Using built-in wildcard list[/dim]")
        for entry in entries:
            console.print(f"🃏 {describe_catalog_entry(entry)}")
            console.print(f"   [dim]{entry.usage_tips}[/dim]")
        return

    if command == "suggest":
        ingredients = [item.strip() for item in text.split(",") if item.strip()]
        suggestion = await pipeline.suggest_wildcard(ingredients, options.get("cuisine") or None)
        console.print(f"[bold]🃏 {describe_catalog_entry(suggestion.ingredient)}[/bold]")
        console.print(Markdown(f"**Why:** {suggestion.reason}\n\n**How:** {suggestion.how_to_use}"))
        if suggestion.quantity_suggestion:
            console.print(f"[dim]Start with {suggestion.quantity_suggestion}[/dim]")
        return

    request = await build_request(command, options, text)

    if not options["save"]:
        draft = await pipeline.run(request)
        print_draft(draft, pipeline, options["debug"])
        return

    # Same flow as the app: preview, (wildcard already applied by the request), save
    wizard = RecipeWizard(pipeline, SupabaseRecipeStore(), offer_wildcard=False, bookmark_on_save=True)
    draft = await wizard.submit(request)
    print_draft(draft, pipeline, options["debug"])
    wizard.proceed()
    persisted = await wizard.save()
    console.print(f"[green]✓ Saved recipe {persisted.id}[/green]")


def main(argv: list[str]) -> int:
    try:
        command, options, text = parse_args(argv)
    except ValueError as e:
        print(f"Error: {e}")
        print(USAGE)
        return 1

    if command in ("generate", "augment", "suggest") and not text:
        print(f"Error: '{command}' needs text input")
        print(USAGE)
        return 1

    try:
        asyncio.run(run_command(command, options, text))
    except KeyboardInterrupt:
        logger.info("\nQuery interrupted by user.")
        return 0
    except RecipeAIError as e:
        console.print(f"[red]✗ {e.user_message}[/red]")
        logger.debug(f"Query failed: {e}", exc_info=True)
        return 1
    except Exception as e:
        logger.error(f"Query execution failed: {e}", exc_info=True)
        return 1
    return 0


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(USAGE)
        print("")
        print("Examples:")
        print('  python query.py generate "A cozy weeknight soup"')
        print('  python query.py generate --wildcard --cuisine Mexican "Crowd-pleasing tacos"')
        print("  python query.py import --url https://example.com/recipe")
        print("  python query.py --debug augment draft.json")
        print('  python query.py suggest "chicken, rice, lemon"')
        sys.exit(1)

    sys.exit(main(sys.argv[1:]))
