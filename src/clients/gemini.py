"""Model invoker: a thin async wrapper around the Gemini text API.

Takes a prompt, returns the raw response text. One outbound call per
invocation, no retries and no timeout of its own: a failure is terminal for
that invocation and the user decides whether to try again.

Provider failures are classified into ProviderError kinds so screens can
tell a bad key from an exhausted quota or a disabled API.
"""

import asyncio
from typing import Optional

from google import genai
from google.genai import errors, types

from src.utils.config import config
from src.utils.errors import ConfigurationError, ProviderError, ProviderErrorKind
from src.utils.logger import logger

# Markers looked up in the provider error text, checked in this order
ERROR_MARKERS = (
    ("API_KEY_INVALID", ProviderErrorKind.INVALID_CREDENTIAL),
    ("API key not valid", ProviderErrorKind.INVALID_CREDENTIAL),
    ("QUOTA_EXCEEDED", ProviderErrorKind.QUOTA_EXCEEDED),
    ("RESOURCE_EXHAUSTED", ProviderErrorKind.QUOTA_EXCEEDED),
    ("PERMISSION_DENIED", ProviderErrorKind.PERMISSION_DENIED),
)

STATUS_CODES = {
    429: ProviderErrorKind.QUOTA_EXCEEDED,
    403: ProviderErrorKind.PERMISSION_DENIED,
    401: ProviderErrorKind.INVALID_CREDENTIAL,
}


def classify_provider_error(exc: Exception) -> ProviderErrorKind:
    """Map a provider or transport exception to a ProviderErrorKind.

    Text markers win over HTTP codes: Gemini reports an invalid key as a
    plain 400 INVALID_ARGUMENT whose details carry API_KEY_INVALID.

    Args:
        exc: Exception raised by the Gemini SDK (or the transport below it).

    Returns:
        ProviderErrorKind, OTHER when nothing matches.
    """
    text = " ".join(
        str(part) for part in (exc, getattr(exc, "status", None), getattr(exc, "message", None)) if part
    )
    for marker, kind in ERROR_MARKERS:
        if marker in text:
            return kind

    code = getattr(exc, "code", None)
    if isinstance(code, int) and code in STATUS_CODES:
        return STATUS_CODES[code]
    return ProviderErrorKind.OTHER


class GeminiInvoker:
    """Single-shot text completion against a Gemini model."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_output_tokens: Optional[int] = None,
    ) -> None:
        self.api_key = config.GEMINI_API_KEY if api_key is None else api_key
        self.model = model or config.GEMINI_MODEL
        self.temperature = config.TEMPERATURE if temperature is None else temperature
        self.max_output_tokens = max_output_tokens or config.MAX_OUTPUT_TOKENS

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    def ensure_configured(self) -> None:
        """Fail fast, before any network call, when no credential is set.

        Raises:
            ConfigurationError: If the API key is missing or blank.
        """
        if not self.is_configured:
            raise ConfigurationError()

    def _generation_config(self) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            temperature=self.temperature,
            max_output_tokens=self.max_output_tokens,
        )

    async def invoke(self, prompt: str) -> str:
        """Send the prompt and return the model's raw text.

        Args:
            prompt: Complete prompt string.

        Returns:
            Response text ("" when the model returned no text part).

        Raises:
            ConfigurationError: If no API key is configured (no call is made).
            ProviderError: On any provider or transport failure.
        """
        self.ensure_configured()

        try:
            client = genai.Client(api_key=self.api_key)
            # The SDK client is synchronous; keep the event loop free while waiting
            response = await asyncio.to_thread(
                client.models.generate_content,
                model=self.model,
                contents=prompt,
                config=self._generation_config(),
            )
        except errors.APIError as e:
            kind = classify_provider_error(e)
            logger.warning(f"Gemini API call failed ({kind.value}): {e}")
            raise ProviderError(kind, getattr(e, "message", None) or str(e)) from e
        except Exception as e:
            kind = classify_provider_error(e)
            logger.warning(f"Gemini call failed ({kind.value}): {e}")
            raise ProviderError(kind, str(e)) from e

        text = response.text or ""
        logger.debug(f"Gemini responded with {len(text)} chars (model={self.model})")
        return text
