"""Tests for the Gemini screenshot analyzer (no real API calls)."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

from app.config import Settings
from app.services.analyzer import (
    EMPTY_MESSAGE,
    ERROR_MESSAGE,
    MISSING_KEY_MESSAGE,
    analyze_screenshot,
)


def _analyze(settings: Settings) -> str:
    return asyncio.run(analyze_screenshot(b"\xff\xd8jpeg", "mobile", settings=settings))


def _client(response=None, error=None) -> MagicMock:
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock(return_value=response, side_effect=error)
    return client


class TestAnalyzeScreenshot:
    def test_missing_key_returns_fixed_message(self):
        assert _analyze(Settings(gemini_api_key="")) == MISSING_KEY_MESSAGE

    def test_returns_model_text(self):
        client = _client(SimpleNamespace(text="  Clean hero, tighten the footer.  "))
        with patch("google.genai.Client", return_value=client):
            result = _analyze(Settings(gemini_api_key="key"))

        assert result == "Clean hero, tighten the footer."
        kwargs = client.aio.models.generate_content.await_args.kwargs
        assert kwargs["model"] == "gemini-2.5-flash"
        assert "mobile screenshot" in kwargs["contents"][1]

    def test_empty_text_returns_placeholder(self):
        with patch("google.genai.Client", return_value=_client(SimpleNamespace(text=None))):
            assert _analyze(Settings(gemini_api_key="key")) == EMPTY_MESSAGE

    def test_api_error_returns_fixed_message(self):
        with patch("google.genai.Client", return_value=_client(error=RuntimeError("quota"))):
            assert _analyze(Settings(gemini_api_key="key")) == ERROR_MESSAGE
