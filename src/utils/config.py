"""Configuration management for the Recipe Wildcard AI core.

Loads environment variables from system environment and .env file.
Priority order: system environment > .env file > hardcoded defaults
"""

import os
from typing import Optional

from dotenv import load_dotenv


# Load .env file (if exists, silently continues if missing)
load_dotenv()


class Config:
    """Application configuration loaded from environment variables."""

    def __init__(self) -> None:
        """Initialize configuration from environment variables."""
        # Gemini API key: may be empty here, the model invoker refuses to run without it
        self.GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
        # Default: gemini-2.5-flash (fast, cost-effective, good at JSON output)
        self.GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
        # LLM Model Parameters
        # Temperature: Controls randomness. Recipes benefit from some creativity,
        # wildcard suggestions in particular.
        self.TEMPERATURE: float = float(os.getenv("TEMPERATURE", "0.7"))
        # Max Output Tokens: a full recipe with 10-15 steps fits comfortably in 4096
        self.MAX_OUTPUT_TOKENS: int = int(os.getenv("MAX_OUTPUT_TOKENS", "4096"))

        # Backend-as-a-service (Supabase PostgREST) used by the save action
        self.SUPABASE_URL: str = os.getenv("SUPABASE_URL", "")
        self.SUPABASE_ANON_KEY: str = os.getenv("SUPABASE_ANON_KEY", "")
        # Optional signed-in session. Without it recipes are stored anonymously
        # and bookmarks are unavailable.
        self.SUPABASE_ACCESS_TOKEN: Optional[str] = os.getenv("SUPABASE_ACCESS_TOKEN")
        self.SUPABASE_USER_ID: Optional[str] = os.getenv("SUPABASE_USER_ID")

        # Text acquisition
        # MIN_RECIPE_TEXT_LENGTH: pasted/uploaded text shorter than this is rejected
        # before the pipeline runs. Default: 50 characters
        self.MIN_RECIPE_TEXT_LENGTH: int = int(os.getenv("MIN_RECIPE_TEXT_LENGTH", "50"))
        # MAX_SOURCE_TEXT_CHARS: fetched page text is truncated to keep prompts bounded
        self.MAX_SOURCE_TEXT_CHARS: int = int(os.getenv("MAX_SOURCE_TEXT_CHARS", "20000"))
        # FETCH_TIMEOUT_SECONDS: timeout for fetching a recipe page by URL
        self.FETCH_TIMEOUT_SECONDS: int = int(os.getenv("FETCH_TIMEOUT_SECONDS", "10"))

        # Output Format for query.py: "json" or "markdown". Default: "markdown"
        self.OUTPUT_FORMAT: str = os.getenv("OUTPUT_FORMAT", "markdown")

    @property
    def has_backend(self) -> bool:
        """True when Supabase credentials are configured."""
        return bool(self.SUPABASE_URL and self.SUPABASE_ANON_KEY)

    def validate(self) -> None:
        """Validate configuration values.

        GEMINI_API_KEY is intentionally not required here: a missing key is
        reported as a ConfigurationError when a model call is attempted.

        Raises:
            ValueError: If invalid values are provided.
        """
        if not (0.0 <= self.TEMPERATURE <= 2.0):
            raise ValueError(
                f"TEMPERATURE must be between 0.0 and 2.0, got: {self.TEMPERATURE}"
            )
        if self.MAX_OUTPUT_TOKENS < 512:
            raise ValueError(
                f"MAX_OUTPUT_TOKENS must be at least 512, got: {self.MAX_OUTPUT_TOKENS}"
            )
        if self.MIN_RECIPE_TEXT_LENGTH < 1:
            raise ValueError(
                f"MIN_RECIPE_TEXT_LENGTH must be at least 1, got: {self.MIN_RECIPE_TEXT_LENGTH}"
            )
        if self.MAX_SOURCE_TEXT_CHARS < self.MIN_RECIPE_TEXT_LENGTH:
            raise ValueError(
                "MAX_SOURCE_TEXT_CHARS must not be smaller than MIN_RECIPE_TEXT_LENGTH, "
                f"got: {self.MAX_SOURCE_TEXT_CHARS} < {self.MIN_RECIPE_TEXT_LENGTH}"
            )
        if self.FETCH_TIMEOUT_SECONDS < 1:
            raise ValueError(
                f"FETCH_TIMEOUT_SECONDS must be at least 1 second, got: {self.FETCH_TIMEOUT_SECONDS}"
            )
        if self.OUTPUT_FORMAT not in ("json", "markdown"):
            raise ValueError(
                f"OUTPUT_FORMAT must be 'json' or 'markdown', got: {self.OUTPUT_FORMAT}"
            )


# Create module-level config instance and validate immediately
config = Config()
config.validate()
