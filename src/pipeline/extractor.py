"""Response extractor: pull the JSON object out of free model text.

Uses the greedy regex r'{.*}' (first opening brace to last closing brace).
This tolerates prose before and after a single JSON object, but is fragile
when the surrounding prose itself contains braces: the candidate span then
includes that prose and fails to parse. No repair is attempted.
"""

import json
import re

from src.utils.errors import MalformedJson, NoJsonFound
from src.utils.logger import logger

JSON_SPAN = re.compile(r"\{.*\}", re.DOTALL)


def find_json_span(raw_text: str) -> str | None:
    """Return the text from the first '{' to the last '}', or None."""
    match = JSON_SPAN.search(raw_text or "")
    return match.group() if match else None


def extract_json(raw_text: str) -> dict:
    """Extract and parse the JSON object embedded in a model response.

    Args:
        raw_text: Raw response text (may include explanatory text around the JSON).

    Returns:
        dict: Parsed JSON object.

    Raises:
        NoJsonFound: If the text has no '{' ... '}' span.
        MalformedJson: If the span is not valid JSON.
    """
    candidate = find_json_span(raw_text)
    if candidate is None:
        logger.warning(f"No JSON object found in model response ({len(raw_text or '')} chars)")
        raise NoJsonFound("No JSON found in response")

    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError as e:
        logger.warning(f"Model response JSON is malformed: {e}")
        raise MalformedJson(f"Malformed JSON in response: {e}") from e

    logger.debug(f"Extracted JSON object with keys: {sorted(parsed)}")
    return parsed
