"""Text acquisition: get raw recipe text for the import pipeline.

Supplies ImportRequest.source_text from one of three places:
- a recipe web page (fetched with aiohttp, HTML stripped with BeautifulSoup)
- an uploaded text file
- a pasted buffer

Length validation lives here, not in the pipeline: text shorter than
MIN_RECIPE_TEXT_LENGTH is rejected before any model call.
"""

import asyncio
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

import aiohttp
from bs4 import BeautifulSoup

from src.models.models import ImportRequest, RecipeSource
from src.utils.config import config
from src.utils.errors import TextAcquisitionError, TextTooShortError
from src.utils.logger import logger

# Elements that never contain recipe content
NOISE_TAGS = ("script", "style", "noscript", "nav", "footer", "header", "aside", "form", "svg", "iframe")

HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 13_3) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/125.0.0.0 Safari/537.36"
    )
}


def is_valid_url(text: str) -> bool:
    """True for absolute http(s) URLs with a host."""
    try:
        parsed = urlparse((text or "").strip())
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def validate_recipe_text(text: Optional[str], min_length: Optional[int] = None) -> str:
    """Strip and length-check recipe text.

    Args:
        text: Raw text from a paste, file or page.
        min_length: Minimum characters after stripping. Default: config.MIN_RECIPE_TEXT_LENGTH.

    Returns:
        The stripped text.

    Raises:
        TextAcquisitionError: If the text is empty.
        TextTooShortError: If the text is shorter than min_length.
    """
    min_length = config.MIN_RECIPE_TEXT_LENGTH if min_length is None else min_length
    stripped = (text or "").strip()
    if not stripped:
        raise TextAcquisitionError("Recipe text is empty", user_message="Please paste the recipe text to import.")
    if len(stripped) < min_length:
        raise TextTooShortError(f"Recipe text has {len(stripped)} chars, need at least {min_length}")
    return stripped


def html_to_text(html: str) -> str:
    """Visible text of an HTML page, one block per line, noise elements removed."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup.find_all(list(NOISE_TAGS)):
        tag.decompose()
    root = soup.find("article") or soup.find("main") or soup.body or soup
    lines = (line.strip() for line in root.get_text(separator="\n").splitlines())
    return "\n".join(line for line in lines if line)


async def _fetch_html(url: str) -> str:
    timeout = aiohttp.ClientTimeout(total=config.FETCH_TIMEOUT_SECONDS)
    async with aiohttp.ClientSession(headers=HEADERS) as session:
        async with session.get(url, timeout=timeout) as response:
            response.raise_for_status()
            return await response.text()


async def fetch_recipe_text(url: str) -> str:
    """Fetch a recipe page and reduce it to plain text.

    Raises:
        TextAcquisitionError: If the URL is invalid, the fetch fails or the page
            has no usable text. Many recipe sites block automated access, so the
            message suggests pasting the text instead.
    """
    if not is_valid_url(url):
        raise TextAcquisitionError(
            f"Invalid URL: {url!r}",
            user_message="Please enter a valid URL starting with http:// or https://",
        )

    try:
        html = await _fetch_html(url.strip())
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        logger.warning(f"Fetch recipe page failed: {url}: {e}")
        raise TextAcquisitionError(
            f"Could not fetch {url}: {e}",
            user_message="This website may block automated access. Please paste the recipe text instead.",
        ) from e

    text = html_to_text(html)[: config.MAX_SOURCE_TEXT_CHARS]
    logger.info(f"Fetched recipe page {url} ({len(text)} chars of text)")
    return validate_recipe_text(text)


def read_recipe_file(path: str | Path) -> str:
    """Read an uploaded recipe file as UTF-8 text (undecodable bytes replaced).

    Raises:
        TextAcquisitionError: If the file cannot be read.
        TextTooShortError: If its content is too short to be a recipe.
    """
    file_path = Path(path)
    try:
        content = file_path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.warning(f"Read recipe file failed: {file_path}: {e}")
        raise TextAcquisitionError(
            f"Could not read {file_path}: {e}",
            user_message="Failed to read the file. Please try again.",
        ) from e
    return validate_recipe_text(content[: config.MAX_SOURCE_TEXT_CHARS])


async def import_request_from_url(url: str) -> ImportRequest:
    text = await fetch_recipe_text(url)
    return ImportRequest(source_text=text, source_url=url.strip(), provenance=RecipeSource.IMPORTED)


def import_request_from_file(path: str | Path) -> ImportRequest:
    return ImportRequest(source_text=read_recipe_file(path), provenance=RecipeSource.USER_UPLOADED)


def import_request_from_text(text: str) -> ImportRequest:
    return ImportRequest(source_text=validate_recipe_text(text), provenance=RecipeSource.IMPORTED)
