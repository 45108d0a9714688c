"""UI/UX critique of a captured screenshot via Gemini."""

import asyncio
import logging
from typing import Optional

from app.config import Settings, get_settings

logger = logging.getLogger(__name__)

ANALYSIS_TIMEOUT = 60  # seconds

MISSING_KEY_MESSAGE = "Gemini API key is missing. Cannot perform analysis."
ERROR_MESSAGE = "Error connecting to Gemini for analysis."
EMPTY_MESSAGE = "No analysis generated."

_PROMPT = """
You are a UI/UX Expert. Analyze this {viewport} screenshot of a website.
1. Identify the main layout structure.
2. Critique the spacing and visual hierarchy.
3. Give 3 short, actionable improvements.
Keep the response concise (under 100 words).
"""


async def analyze_screenshot(
    image: bytes,
    viewport: str,
    mime_type: str = "image/jpeg",
    *,
    settings: Optional[Settings] = None,
) -> str:
    """Return a short layout critique of *image*.

    Never raises: a missing API key or any Gemini failure is reported as a
    fixed message instead.
    """
    settings = settings or get_settings()
    if not settings.gemini_api_key:
        logger.warning("GEMINI_API_KEY is not set – skipping analysis")
        return MISSING_KEY_MESSAGE

    try:
        from google import genai
        from google.genai import types

        client = genai.Client(api_key=settings.gemini_api_key)
        response = await asyncio.wait_for(
            client.aio.models.generate_content(
                model=settings.gemini_model,
                contents=[
                    types.Part.from_bytes(data=image, mime_type=mime_type),
                    _PROMPT.format(viewport=viewport),
                ],
            ),
            timeout=ANALYSIS_TIMEOUT,
        )
    except Exception as exc:
        logger.error("Gemini analysis failed: %s", exc)
        return ERROR_MESSAGE

    return (response.text or "").strip() or EMPTY_MESSAGE
