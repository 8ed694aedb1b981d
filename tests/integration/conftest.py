"""Pytest configuration and fixtures for integration tests.

Ensures environment variables are loaded and skips the live Gemini tests
when no API key is configured.
"""

import os
from pathlib import Path

import pytest
from dotenv import load_dotenv


def pytest_configure(config):
    """Load .env from the project root before test collection."""
    env_path = Path(__file__).parent.parent.parent / ".env"
    load_dotenv(env_path)

    print("\n" + "=" * 70)
    print("Note: These tests call the live Gemini API and require GEMINI_API_KEY")
    print(f"Environment loaded from: {env_path}")
    print("=" * 70 + "\n")


@pytest.fixture(scope="session", autouse=True)
def check_api_keys():
    """Skip every integration test if GEMINI_API_KEY is not configured."""
    if not os.getenv("GEMINI_API_KEY"):
        pytest.skip(
            "Integration tests skipped. Missing API key: GEMINI_API_KEY. Please set it in your .env file.",
            allow_module_level=True,
        )


@pytest.fixture
def pipeline():
    from src.clients.gemini import GeminiInvoker
    from src.pipeline.orchestrator import RecipeIngestionPipeline

    return RecipeIngestionPipeline(GeminiInvoker(api_key=os.getenv("GEMINI_API_KEY")))
