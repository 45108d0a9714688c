"""Screenshot acquisition with ordered provider fallback."""

import asyncio
import logging
from typing import NamedTuple, Optional

import httpx

from app.services.cancellation import pause, raise_if_cancelled
from app.services.fetcher import FetchResult, HttpFetcher
from app.services.providers import CaptureTarget, ViewportType, select_providers

logger = logging.getLogger(__name__)

PROVIDER_BACKOFF = 0.5  # seconds
MIN_IMAGE_BYTES = 100


class ProviderError(Exception):
    """A single provider returned an unusable response."""


class AllProvidersFailedError(Exception):
    """Every provider in the fallback sequence failed for one capture."""

    def __init__(self, message: str, last_error: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.last_error = last_error


class Screenshot(NamedTuple):
    content: bytes
    mime_type: str
    provider: str


def _validate_image(result: FetchResult, min_bytes: int) -> str:
    """Return the image MIME type of *result* or raise :class:`ProviderError`."""
    if not result.is_success:
        raise ProviderError(f"Status {result.status_code}")
    mime_type = result.content_type.split(";")[0].strip().lower()
    if len(result.content) < min_bytes or "image" not in mime_type:
        raise ProviderError(
            f"Invalid image data received ({len(result.content)} bytes, "
            f"content type '{result.content_type}')"
        )
    return mime_type


async def capture_screenshot(
    url: str,
    width: int,
    height: int,
    viewport: ViewportType,
    full_page: bool = False,
    *,
    fetcher: HttpFetcher,
    backoff: float = PROVIDER_BACKOFF,
    min_bytes: int = MIN_IMAGE_BYTES,
    cancel: Optional[asyncio.Event] = None,
) -> Screenshot:
    """Capture *url* at the given size, trying each suitable provider once, in order.

    Raises:
        AllProvidersFailedError: when no provider produced a valid image.  The
            last provider error is chained and kept on ``last_error``.
        CaptureCancelled: if *cancel* is set before a fetch or a backoff.
    """
    target = CaptureTarget(url, width, height, viewport, full_page)
    last_error: Optional[BaseException] = None

    for provider in select_providers(viewport, full_page):
        raise_if_cancelled(cancel)
        try:
            result = await fetcher.fetch(provider.build_url(target), via_proxy=provider.use_proxy)
            mime_type = _validate_image(result, min_bytes)
        except (ProviderError, ValueError, httpx.HTTPError, RuntimeError) as exc:
            logger.warning(
                "%s capture failed for %s [%s], trying next – %s",
                provider.name, url, viewport, exc,
            )
            last_error = exc
            await pause(backoff, cancel)
            continue

        logger.info("Captured %s [%s] via %s", url, viewport, provider.name)
        return Screenshot(result.content, mime_type, provider.name)

    if last_error is None:
        raise AllProvidersFailedError("All screenshot providers failed")
    raise AllProvidersFailedError(
        f"All screenshot providers failed: {last_error}", last_error
    ) from last_error
