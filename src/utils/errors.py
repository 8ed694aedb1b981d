"""Error taxonomy for the recipe ingestion pipeline and its collaborators.

Every failure that reaches a screen carries a ``user_message``: the text the
UI shows verbatim. Component errors are raised by the extractor, normalizer
and model invoker; the orchestrator re-raises them with a message suited to
the entry point that failed.
"""

from enum import Enum
from typing import Optional


class RecipeAIError(Exception):
    """Base class for all user-facing recipe pipeline errors."""

    default_message = "Something went wrong. Please try again."

    def __init__(self, message: Optional[str] = None, *, user_message: Optional[str] = None) -> None:
        super().__init__(message or self.default_message)
        # message is for logs; only default_message or an explicit user_message reaches the screen
        self.user_message = user_message or self.default_message

    def with_hint(self, hint: str) -> "RecipeAIError":
        """Append a remedy hint to the user message (in place) and return self."""
        if hint and hint not in self.user_message:
            self.user_message = f"{self.user_message} {hint}"
        return self


class ConfigurationError(RecipeAIError):
    """The model credential is missing. Fatal until fixed in the environment."""

    default_message = "Gemini API key is not configured. Please add GEMINI_API_KEY to your .env file."


class ProviderErrorKind(str, Enum):
    INVALID_CREDENTIAL = "invalid_credential"
    QUOTA_EXCEEDED = "quota_exceeded"
    PERMISSION_DENIED = "permission_denied"
    OTHER = "other"


PROVIDER_MESSAGES = {
    ProviderErrorKind.INVALID_CREDENTIAL: "Invalid Gemini API key. Please check your GEMINI_API_KEY in the .env file.",
    ProviderErrorKind.QUOTA_EXCEEDED: "Gemini API quota exceeded. Please try again later or check your API billing.",
    ProviderErrorKind.PERMISSION_DENIED: "Gemini API access denied. Please ensure the API is enabled for your project, then try again later.",
}


class ProviderError(RecipeAIError):
    """The generative model provider rejected or failed the call."""

    def __init__(self, kind: ProviderErrorKind, detail: str = "") -> None:
        self.kind = kind
        self.detail = detail
        user_message = PROVIDER_MESSAGES.get(kind) or f"Gemini API error: {detail or 'Unknown error'}"
        super().__init__(f"{kind.value}: {detail}" if detail else kind.value, user_message=user_message)

    @property
    def is_transient(self) -> bool:
        """Quota and permission problems may clear up later; a bad key will not."""
        return self.kind in (ProviderErrorKind.QUOTA_EXCEEDED, ProviderErrorKind.PERMISSION_DENIED)


class ExtractionError(RecipeAIError):
    """The model output did not contain the expected JSON object."""

    default_message = "The AI response could not be read as a recipe. Please try again."


class NoJsonFound(ExtractionError):
    pass


class MalformedJson(ExtractionError):
    pass


class NormalizationError(RecipeAIError):
    default_message = "The AI response had an unexpected shape. Please try again."


class DraftIncompleteError(RecipeAIError, ValueError):
    """A draft without ingredients or instructions cannot be saved."""

    default_message = "A recipe needs at least one ingredient and one instruction before it can be saved."


class PersistenceError(RecipeAIError):
    default_message = "Failed to save recipe. Please try again."


class TextAcquisitionError(RecipeAIError):
    default_message = "Could not read the recipe text. Please try pasting the recipe text instead."


class TextTooShortError(TextAcquisitionError, ValueError):
    default_message = "Please paste more of the recipe including ingredients and instructions."


class WizardStateError(RecipeAIError):
    """An action was triggered from a step that does not allow it."""

    default_message = "That action is not available right now."


class WizardBusyError(WizardStateError):
    default_message = "Please wait for the current request to finish."
