"""Ingestion orchestrator: the three AI entry points of the recipe app.

Each entry point runs the same linear pipeline

    prompt builder -> model invoker -> response extractor -> recipe normalizer

and differs only in the prompt template and the normalizer mode:

- generate():      free-form request  -> new draft (ai_generated / wildcard_modified)
- import_recipe(): raw recipe text    -> new draft (imported / user_uploaded)
- augment():       existing draft     -> same draft plus 1-2 wildcard ingredients

Every invocation walks idle -> prompting -> awaiting_model -> extracting ->
normalizing -> done, or ends in failed. The path is recorded on an
IngestionRun (exposed as ``last_run``) and is never carried across calls.
Failures are re-raised as RecipeAIError subclasses whose ``user_message``
says what the user can do about it.
"""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from src.clients.gemini import GeminiInvoker
from src.models.models import (
    AugmentRequest,
    FreeFormRequest,
    ImportRequest,
    RecipeDraft,
    RecipeSource,
    WildcardSuggestion,
)
from src.pipeline.extractor import extract_json
from src.pipeline.normalizer import normalize, normalize_wildcard_suggestion
from src.prompts.prompts import (
    build_augment_prompt,
    build_generate_prompt,
    build_import_prompt,
    build_pairing_explanation_prompt,
    build_wildcard_suggestion_prompt,
)
from src.utils.errors import (
    ConfigurationError,
    ExtractionError,
    NormalizationError,
    ProviderError,
    RecipeAIError,
)
from src.utils.logger import log_context


class PipelineState(str, Enum):
    IDLE = "idle"
    PROMPTING = "prompting"
    AWAITING_MODEL = "awaiting_model"
    EXTRACTING = "extracting"
    NORMALIZING = "normalizing"
    DONE = "done"
    FAILED = "failed"


# Remedy appended to extraction/normalization failures, per entry point
EXTRACTION_HINTS = {
    "generate": "Try rephrasing your request.",
    "import": "If you imported from a URL, try pasting the recipe text instead.",
    "augment": "Your recipe is unchanged; you can try again or skip the wildcard step.",
    "suggest": "Please try again.",
}


@dataclass
class IngestionRun:
    """State path of a single pipeline invocation."""

    variant: str
    run_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    state: PipelineState = PipelineState.IDLE
    history: list[PipelineState] = field(default_factory=lambda: [PipelineState.IDLE])
    error: Optional[RecipeAIError] = None

    @property
    def log(self):
        return log_context(run_id=self.run_id, variant=self.variant)

    def advance(self, state: PipelineState) -> None:
        self.state = state
        self.history.append(state)
        self.log.debug(f"-> {state.value}")

    def fail(self, error: RecipeAIError) -> None:
        self.error = error
        self.advance(PipelineState.FAILED)


class RecipeIngestionPipeline:
    """Runs the generate / import / augment pipelines against one model invoker."""

    def __init__(self, invoker: Optional[GeminiInvoker] = None) -> None:
        self.invoker = invoker or GeminiInvoker()
        self.last_run: Optional[IngestionRun] = None

    async def run(self, request) -> RecipeDraft:
        """Dispatch any generation request to its entry point."""
        if isinstance(request, FreeFormRequest):
            return await self.generate(request)
        if isinstance(request, ImportRequest):
            return await self.import_recipe(request)
        if isinstance(request, AugmentRequest):
            return await self.augment(request)
        raise TypeError(f"Unsupported generation request: {type(request).__name__}")

    async def generate(self, request: FreeFormRequest) -> RecipeDraft:
        provenance = RecipeSource.WILDCARD_MODIFIED if request.include_wildcard else RecipeSource.AI_GENERATED
        return await self._execute(
            "generate",
            lambda: build_generate_prompt(request),
            lambda parsed: normalize(parsed, provenance),
        )

    async def import_recipe(self, request: ImportRequest) -> RecipeDraft:
        def _normalize(parsed: dict) -> RecipeDraft:
            draft = normalize(parsed, request.provenance)
            if request.source_url:
                draft = draft.model_copy(update={"source_url": request.source_url})
            return draft

        return await self._execute("import", lambda: build_import_prompt(request), _normalize)

    async def augment(self, request: AugmentRequest) -> RecipeDraft:
        """Add wildcard ingredients. The request's draft is never modified."""
        existing = request.existing_recipe
        return await self._execute(
            "augment",
            lambda: build_augment_prompt(request),
            lambda parsed: normalize(parsed, RecipeSource.WILDCARD_MODIFIED, merge_into=existing),
        )

    async def suggest_wildcard(self, ingredients: list[str], cuisine: Optional[str] = None) -> WildcardSuggestion:
        """Ask the model for one wildcard ingredient for a plain ingredient list."""
        return await self._execute(
            "suggest",
            lambda: build_wildcard_suggestion_prompt(ingredients, cuisine),
            normalize_wildcard_suggestion,
        )

    async def explain_pairing(self, wildcard: str, ingredients: list[str], recipe_title: str) -> str:
        """Plain-text explanation of why a wildcard suits a recipe (no JSON involved)."""
        prompt = build_pairing_explanation_prompt(wildcard, ingredients, recipe_title)
        text = await self.invoker.invoke(prompt)
        return text.strip()

    async def _execute(self, variant: str, build, shape):
        run = IngestionRun(variant=variant)
        self.last_run = run
        log = run.log

        try:
            # Credential check happens before the prompt is even built
            self.invoker.ensure_configured()

            run.advance(PipelineState.PROMPTING)
            prompt = build()

            run.advance(PipelineState.AWAITING_MODEL)
            log.info(f"Calling model ({len(prompt)} char prompt)")
            raw_text = await self.invoker.invoke(prompt)

            run.advance(PipelineState.EXTRACTING)
            parsed = extract_json(raw_text)

            run.advance(PipelineState.NORMALIZING)
            result = shape(parsed)
        except ConfigurationError as e:
            run.fail(e)
            log.error(f"Pipeline not configured: {e}")
            raise
        except ProviderError as e:
            run.fail(e)
            log.warning(f"Model provider error: {e}")
            raise
        except (ExtractionError, NormalizationError) as e:
            e.with_hint(EXTRACTION_HINTS[variant])
            run.fail(e)
            log.warning(f"Could not shape model output: {e}")
            raise
        except Exception as e:
            error = NormalizationError(f"Unexpected pipeline failure: {e}")
            error.with_hint(EXTRACTION_HINTS[variant])
            run.fail(error)
            log.error(f"Unexpected pipeline failure: {e}", exc_info=True)
            raise error from e

        run.advance(PipelineState.DONE)
        log.info(f"Pipeline finished in {len(run.history)} states")
        return result
