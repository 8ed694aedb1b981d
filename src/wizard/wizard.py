"""Client-side wizard state shared by the generate, import and upload screens.

Steps: collecting -> previewing -> offering_wildcard -> final.

The wizard holds at most one draft and allows one in-flight request at a time.
It never persists anything by itself; only save() reaches the store.
"""

from enum import Enum
from typing import Optional

from src.models.models import AugmentRequest, IngredientDraft, PersistedRecipe, RecipeDraft
from src.pipeline.orchestrator import RecipeIngestionPipeline
from src.utils.errors import PersistenceError, RecipeAIError, WizardBusyError, WizardStateError
from src.utils.logger import log_context, logger


class WizardStep(str, Enum):
    COLLECTING = "collecting"
    PREVIEWING = "previewing"
    OFFERING_WILDCARD = "offering_wildcard"
    FINAL = "final"


STEP_ORDER = [WizardStep.COLLECTING, WizardStep.PREVIEWING, WizardStep.OFFERING_WILDCARD, WizardStep.FINAL]

EDITABLE_STEPS = (WizardStep.PREVIEWING, WizardStep.OFFERING_WILDCARD, WizardStep.FINAL)


class RecipeWizard:
    """Step machine for one recipe creation screen.

    Args:
        pipeline: Ingestion pipeline used for submit() and add_wildcard().
        store: Persistence collaborator used by save() (SupabaseRecipeStore).
        offer_wildcard: When False, proceed() skips the wildcard step.
        bookmark_on_save: Also bookmark the saved recipe (best effort).
    """

    def __init__(
        self,
        pipeline: RecipeIngestionPipeline,
        store=None,
        offer_wildcard: bool = True,
        bookmark_on_save: bool = False,
    ) -> None:
        self.pipeline = pipeline
        self.store = store
        self.offer_wildcard = offer_wildcard
        self.bookmark_on_save = bookmark_on_save

        self.step = WizardStep.COLLECTING
        self.request = None
        self.draft: Optional[RecipeDraft] = None
        self.saved: Optional[PersistedRecipe] = None
        self.error: Optional[str] = None
        self.is_busy = False
        self.closed = False

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------

    def _require(self, *steps: WizardStep) -> None:
        if self.closed:
            raise WizardStateError("Wizard is closed")
        if self.is_busy:
            raise WizardBusyError("A request is already in flight")
        if self.step not in steps:
            allowed = ", ".join(step.value for step in steps)
            raise WizardStateError(f"Action not allowed in step '{self.step.value}' (allowed: {allowed})")

    def _require_draft(self) -> RecipeDraft:
        self._require(*EDITABLE_STEPS)
        if self.draft is None:
            raise WizardStateError("There is no draft to edit")
        return self.draft

    def _move_to(self, step: WizardStep) -> None:
        log_context(wizard_step=step.value).info(f"Wizard {self.step.value} -> {step.value}")
        self.step = step

    # ------------------------------------------------------------------
    # Model-backed transitions
    # ------------------------------------------------------------------

    async def submit(self, request) -> Optional[RecipeDraft]:
        """Run the pipeline for a generate/import request and preview the draft.

        Re-submitting from the preview replaces the held draft. Returns None if
        the wizard was closed while the request was in flight.
        """
        self._require(WizardStep.COLLECTING, WizardStep.PREVIEWING)
        self.error = None
        self.is_busy = True
        try:
            draft = await self.pipeline.run(request)
        except RecipeAIError as e:
            if not self.closed:
                self.error = e.user_message
            raise
        finally:
            self.is_busy = False

        if self.closed:
            logger.debug("Discarding pipeline result for closed wizard")
            return None

        self.request = request
        self.draft = draft
        self._move_to(WizardStep.PREVIEWING)
        return draft

    def proceed(self) -> WizardStep:
        """Accept the preview. No model call."""
        self._require(WizardStep.PREVIEWING)
        self._move_to(WizardStep.OFFERING_WILDCARD if self.offer_wildcard else WizardStep.FINAL)
        return self.step

    async def add_wildcard(self) -> Optional[RecipeDraft]:
        """Augment the held draft. On failure the step and draft stay as they were."""
        self._require(WizardStep.OFFERING_WILDCARD)
        self.error = None
        self.is_busy = True
        try:
            augmented = await self.pipeline.augment(AugmentRequest(existing_recipe=self.draft))
        except RecipeAIError as e:
            if not self.closed:
                self.error = e.user_message
            raise
        finally:
            self.is_busy = False

        if self.closed:
            logger.debug("Discarding augment result for closed wizard")
            return None

        self.draft = augmented
        self._move_to(WizardStep.FINAL)
        return augmented

    def skip_wildcard(self) -> RecipeDraft:
        self._require(WizardStep.OFFERING_WILDCARD)
        self._move_to(WizardStep.FINAL)
        return self.draft

    def back(self, to: Optional[WizardStep] = None) -> WizardStep:
        """Go back to an earlier step (the previous one by default).

        Going back to collecting drops the draft.
        """
        self._require(*EDITABLE_STEPS)
        current = STEP_ORDER.index(self.step)
        if to is None:
            target = STEP_ORDER[current - 1]
            if target == WizardStep.OFFERING_WILDCARD and not self.offer_wildcard:
                target = WizardStep.PREVIEWING
        else:
            target = WizardStep(to)
            if STEP_ORDER.index(target) >= current:
                raise WizardStateError(f"Cannot go back from '{self.step.value}' to '{target.value}'")

        if target == WizardStep.COLLECTING:
            self.draft = None
            self.request = None
        self.error = None
        self._move_to(target)
        return target

    # ------------------------------------------------------------------
    # Save
    # ------------------------------------------------------------------

    async def save(self) -> PersistedRecipe:
        """Persist the final draft and reset the wizard.

        Raises:
            DraftIncompleteError: If the draft has no ingredients or instructions.
            PersistenceError: If the store rejects the recipe. The wizard stays in final.
        """
        self._require(WizardStep.FINAL)
        if self.store is None:
            raise WizardStateError("No recipe store configured")

        self.error = None
        self.is_busy = True
        try:
            self.draft.ensure_savable()
            persisted = await self.store.create_recipe(self.draft)
        except RecipeAIError as e:
            self.error = e.user_message
            log_context(wizard_step=self.step.value).warning(f"Save failed: {e}")
            raise
        finally:
            self.is_busy = False

        if self.bookmark_on_save:
            try:
                await self.store.save_bookmark(persisted.id)
            except PersistenceError as e:
                logger.info(f"Could not bookmark recipe {persisted.id}: {e}")

        self.saved = persisted
        self.reset()
        return persisted

    # ------------------------------------------------------------------
    # Draft editing
    # ------------------------------------------------------------------

    def edit_draft(self, **fields) -> RecipeDraft:
        """Replace scalar fields on the draft (title, servings, ...)."""
        draft = self._require_draft()
        self.draft = RecipeDraft.model_validate({**draft.model_dump(), **fields}).reindexed()
        return self.draft

    def add_ingredient(self, name: str, quantity: str = "", unit: str = "", position: Optional[int] = None) -> RecipeDraft:
        draft = self._require_draft()
        self.draft = draft.add_ingredient(IngredientDraft(name=name, quantity=quantity, unit=unit), position)
        return self.draft

    def remove_ingredient(self, index: int) -> RecipeDraft:
        self.draft = self._require_draft().remove_ingredient(index)
        return self.draft

    def add_instruction(self, content: str, position: Optional[int] = None) -> RecipeDraft:
        self.draft = self._require_draft().add_instruction(content, position)
        return self.draft

    def remove_instruction(self, index: int) -> RecipeDraft:
        self.draft = self._require_draft().remove_instruction(index)
        return self.draft

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def reset(self) -> None:
        self.step = WizardStep.COLLECTING
        self.request = None
        self.draft = None
        self.error = None

    def close(self) -> None:
        """Mark the screen as gone; results arriving later are discarded."""
        self.closed = True
