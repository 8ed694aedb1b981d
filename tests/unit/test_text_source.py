"""Unit tests for text acquisition (network mocked)."""

import asyncio
from unittest.mock import AsyncMock, patch

import aiohttp
import pytest

from src.clients.text_source import (
    fetch_recipe_text,
    html_to_text,
    import_request_from_file,
    import_request_from_text,
    import_request_from_url,
    is_valid_url,
    read_recipe_file,
    validate_recipe_text,
)
from src.models.models import RecipeSource
from src.utils.errors import TextAcquisitionError, TextTooShortError

RECIPE_TEXT = (
    "Classic Pancakes\n"
    "Ingredients: 2 cups flour, 2 eggs, 1.5 cups milk, 2 tbsp sugar, pinch of salt.\n"
    "Instructions: Whisk everything together, rest 10 minutes, fry in butter."
)

RECIPE_PAGE = f"""
<html>
  <head><title>Pancakes</title><style>body {{ color: red; }}</style></head>
  <body>
    <nav>Home | Recipes | About</nav>
    <article>
      <h1>Classic Pancakes</h1>
      <p>Ingredients: 2 cups flour, 2 eggs, 1.5 cups milk, 2 tbsp sugar, pinch of salt.</p>
      <p>Instructions: Whisk everything together, rest 10 minutes, fry in butter.</p>
      <script>trackVisit();</script>
    </article>
    <footer>Copyright</footer>
  </body>
</html>
"""


class TestValidation:
    @pytest.mark.parametrize(
        "url,expected",
        [
            ("https://example.com/recipe", True),
            ("http://example.com", True),
            ("  https://example.com/x  ", True),
            ("ftp://example.com/file", False),
            ("example.com/recipe", False),
            ("not a url", False),
            ("", False),
        ],
    )
    def test_is_valid_url(self, url, expected):
        assert is_valid_url(url) is expected

    def test_text_is_stripped(self):
        assert validate_recipe_text(f"  {RECIPE_TEXT}  ") == RECIPE_TEXT

    def test_empty_text_rejected(self):
        with pytest.raises(TextAcquisitionError) as exc:
            validate_recipe_text("   ")
        assert not isinstance(exc.value, TextTooShortError)

    def test_short_text_rejected(self):
        with pytest.raises(TextTooShortError) as exc:
            validate_recipe_text("Pancakes: flour, eggs, milk.")
        assert "Please paste more of the recipe" in exc.value.user_message

    def test_boundary_is_inclusive(self):
        assert validate_recipe_text("x" * 50) == "x" * 50
        with pytest.raises(TextTooShortError):
            validate_recipe_text("x" * 49)

    def test_custom_minimum(self):
        assert validate_recipe_text("short", min_length=5) == "short"


class TestHtmlToText:
    def test_strips_noise_and_keeps_article(self):
        text = html_to_text(RECIPE_PAGE)

        assert "Classic Pancakes" in text
        assert "2 cups flour" in text
        assert "trackVisit" not in text
        assert "Home | Recipes" not in text
        assert "Copyright" not in text
        assert "color: red" not in text

    def test_falls_back_to_body(self):
        assert html_to_text("<html><body><p>Just a paragraph</p></body></html>") == "Just a paragraph"

    def test_no_blank_lines(self):
        text = html_to_text("<body><p>One</p>\n\n\n<p>Two</p></body>")
        assert text.splitlines() == ["One", "Two"]


class TestFetchRecipeText:
    @pytest.mark.asyncio
    async def test_fetch_success(self):
        with patch("src.clients.text_source._fetch_html", new=AsyncMock(return_value=RECIPE_PAGE)) as fetch:
            text = await fetch_recipe_text(" https://example.com/pancakes ")

        fetch.assert_awaited_once_with("https://example.com/pancakes")
        assert "Whisk everything together" in text

    @pytest.mark.asyncio
    async def test_invalid_url_makes_no_request(self):
        with patch("src.clients.text_source._fetch_html", new=AsyncMock()) as fetch:
            with pytest.raises(TextAcquisitionError) as exc:
                await fetch_recipe_text("example.com/pancakes")

        fetch.assert_not_awaited()
        assert "valid URL" in exc.value.user_message

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [aiohttp.ClientConnectionError("refused"), asyncio.TimeoutError()])
    async def test_fetch_failure_suggests_paste(self, error):
        with patch("src.clients.text_source._fetch_html", new=AsyncMock(side_effect=error)):
            with pytest.raises(TextAcquisitionError) as exc:
                await fetch_recipe_text("https://example.com/blocked")

        assert "may block automated access" in exc.value.user_message
        assert exc.value.__cause__ is error

    @pytest.mark.asyncio
    async def test_page_without_recipe_text(self):
        with patch("src.clients.text_source._fetch_html", new=AsyncMock(return_value="<body><p>Hi</p></body>")):
            with pytest.raises(TextTooShortError):
                await fetch_recipe_text("https://example.com/empty")

    @pytest.mark.asyncio
    async def test_import_request_from_url(self):
        with patch("src.clients.text_source._fetch_html", new=AsyncMock(return_value=RECIPE_PAGE)):
            request = await import_request_from_url("https://example.com/pancakes")

        assert request.provenance == RecipeSource.IMPORTED
        assert request.source_url == "https://example.com/pancakes"
        assert "Classic Pancakes" in request.source_text


class TestFileAndPaste:
    def test_read_recipe_file(self, tmp_path):
        path = tmp_path / "pancakes.txt"
        path.write_text(RECIPE_TEXT, encoding="utf-8")

        assert read_recipe_file(path) == RECIPE_TEXT

    def test_missing_file(self, tmp_path):
        with pytest.raises(TextAcquisitionError) as exc:
            read_recipe_file(tmp_path / "missing.txt")
        assert "Failed to read the file" in exc.value.user_message

    def test_short_file(self, tmp_path):
        path = tmp_path / "short.txt"
        path.write_text("eggs", encoding="utf-8")
        with pytest.raises(TextTooShortError):
            read_recipe_file(path)

    def test_import_request_from_file_is_user_uploaded(self, tmp_path):
        path = tmp_path / "pancakes.txt"
        path.write_text(RECIPE_TEXT, encoding="utf-8")

        request = import_request_from_file(str(path))

        assert request.provenance == RecipeSource.USER_UPLOADED
        assert request.source_url is None

    def test_import_request_from_text(self):
        request = import_request_from_text(RECIPE_TEXT)
        assert request.provenance == RecipeSource.IMPORTED
        assert request.source_text == RECIPE_TEXT

    def test_import_request_from_short_text(self):
        with pytest.raises(TextTooShortError):
            import_request_from_text("too short")
