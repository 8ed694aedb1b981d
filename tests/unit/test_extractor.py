"""Unit tests for the response extractor."""

import pytest

from src.pipeline.extractor import extract_json, find_json_span
from src.utils.errors import ExtractionError, MalformedJson, NoJsonFound


class TestFindJsonSpan:
    def test_span_is_first_to_last_brace(self):
        assert find_json_span('Here you go: {"a": {"b": 1}} Enjoy!') == '{"a": {"b": 1}}'

    def test_multiline_span(self):
        text = 'Sure!\n{\n  "title": "Soup"\n}\nBon appetit'
        assert find_json_span(text) == '{\n  "title": "Soup"\n}'

    def test_no_braces(self):
        assert find_json_span("I cannot help with that.") is None

    def test_empty_and_none(self):
        assert find_json_span("") is None
        assert find_json_span(None) is None


class TestExtractJson:
    def test_pure_json(self):
        assert extract_json('{"title": "Soup", "servings": 4}') == {"title": "Soup", "servings": 4}

    def test_prose_around_json(self):
        raw = 'Here you go: {"title":"X","ingredients":[],"instructions":[]} Enjoy!'
        assert extract_json(raw) == {"title": "X", "ingredients": [], "instructions": []}

    def test_markdown_fenced_json(self):
        raw = '```json\n{"title": "Fenced"}\n```'
        assert extract_json(raw) == {"title": "Fenced"}

    def test_no_json_found(self):
        with pytest.raises(NoJsonFound) as exc:
            extract_json("Sorry, I can only talk about recipes.")
        assert str(exc.value) == "No JSON found in response"

    def test_malformed_json(self):
        with pytest.raises(MalformedJson) as exc:
            extract_json('{"title": "Soup",}')
        assert isinstance(exc.value.__cause__, ValueError)

    def test_braces_in_trailing_prose_break_extraction(self):
        """The greedy span swallows prose braces and is then unparsable."""
        raw = '{"title": "Soup"} Tip: use {your favourite} herbs'
        with pytest.raises(MalformedJson):
            extract_json(raw)

    def test_errors_share_extraction_base(self):
        assert issubclass(NoJsonFound, ExtractionError)
        assert issubclass(MalformedJson, ExtractionError)
