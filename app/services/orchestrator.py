"""Capture orchestration: crawl, then screenshot every page in every requested viewport."""

import asyncio
import logging
import uuid
from datetime import datetime
from typing import List, NamedTuple, Optional

from app.config import Settings, get_settings
from app.models.capture_request import CaptureRequest
from app.services.cancellation import CaptureCancelled, pause, raise_if_cancelled
from app.services.capturer import AllProvidersFailedError, capture_screenshot
from app.services.crawler import ProgressCallback, crawl_urls
from app.services.fetcher import HttpFetcher, validate_url
from app.services.filename import error_filename, filename_fields, render_filename
from app.services.imaging import image_dimensions, render_placeholder
from app.services.normalizer import canonicalize_url
from app.services.providers import ViewportType

logger = logging.getLogger(__name__)


class Viewport(NamedTuple):
    type: ViewportType
    width: int
    height: int


class CapturedImage(NamedTuple):
    id: str
    url: str
    viewport: ViewportType
    content: bytes
    mime_type: str
    width: int
    height: int
    filename: str
    is_placeholder: bool = False
    provider: Optional[str] = None
    analysis: Optional[str] = None


class CaptureResult(NamedTuple):
    root_url: str
    pages: List[str]
    images: List[CapturedImage]


def build_viewports(request: CaptureRequest, settings: Settings) -> List[Viewport]:
    """Return the enabled viewports, desktop first, filling unset resolutions from *settings*."""
    viewports: List[Viewport] = []
    if request.desktop:
        res = request.desktop_res
        viewports.append(
            Viewport(
                "desktop",
                res.width if res else settings.desktop_width,
                res.height if res else settings.desktop_height,
            )
        )
    if request.mobile:
        res = request.mobile_res
        viewports.append(
            Viewport(
                "mobile",
                res.width if res else settings.mobile_width,
                res.height if res else settings.mobile_height,
            )
        )
    return viewports


def _notify(on_progress: Optional[ProgressCallback], message: str) -> None:
    if on_progress is not None:
        on_progress(message)


async def run_capture(
    request: CaptureRequest,
    *,
    fetcher: Optional[HttpFetcher] = None,
    settings: Optional[Settings] = None,
    on_progress: Optional[ProgressCallback] = None,
    cancel: Optional[asyncio.Event] = None,
    now: Optional[datetime] = None,
) -> CaptureResult:
    """Capture every crawled page of *request* in every enabled viewport.

    The result always holds ``len(pages) × len(viewports)`` images, in
    page-major order.  A pair that no provider could capture is represented
    by a generated placeholder image named ``error_<domain>_<viewport>.jpg``.
    Crawling is best-effort: if it blows up, only the root page is captured.

    Raises:
        ValueError: if the URL is unusable even after normalisation.  Raised
            before any network activity.
        CaptureCancelled: if *cancel* is set while the batch is in flight.
    """
    settings = settings or get_settings()
    fetcher = fetcher or HttpFetcher()
    now = now or datetime.now()

    root_url = canonicalize_url(request.url)
    validate_url(root_url, block_private=settings.block_private_addresses)

    _notify(on_progress, "Starting crawler...")
    pages = [root_url]
    try:
        crawled = await crawl_urls(
            root_url,
            request.depth,
            fetch_html=fetcher.fetch_html,
            max_children=settings.max_children_per_page,
            on_progress=on_progress,
            cancel=cancel,
        )
        if crawled:
            pages = crawled
    except CaptureCancelled:
        raise
    except Exception:
        logger.exception("Crawl failed for %s, capturing the root URL only", root_url)

    viewports = build_viewports(request, settings)
    total = len(pages) * len(viewports)
    capture_kind = "Full Page" if request.full_page else "Viewport"
    logger.info(
        "Capturing %d page(s) × %d viewport(s) for %s",
        len(pages), len(viewports), root_url,
    )

    images: List[CapturedImage] = []
    index = 0
    for url in pages:
        for viewport in viewports:
            index += 1
            _notify(
                on_progress,
                f"Capturing ({index}/{total}): {url} [{viewport.type} - {capture_kind}]",
            )
            raise_if_cancelled(cancel)

            try:
                shot = await capture_screenshot(
                    url,
                    viewport.width,
                    viewport.height,
                    viewport.type,
                    request.full_page,
                    fetcher=fetcher,
                    backoff=settings.provider_backoff,
                    min_bytes=settings.min_image_bytes,
                    cancel=cancel,
                )
            except AllProvidersFailedError as exc:
                logger.error("Failed to capture %s [%s]: %s", url, viewport.type, exc)
                _notify(on_progress, f"Capture failed for {url} [{viewport.type}]")
                images.append(
                    CapturedImage(
                        id=str(uuid.uuid4()),
                        url=url,
                        viewport=viewport.type,
                        content=render_placeholder(viewport.width, viewport.height, url),
                        mime_type="image/jpeg",
                        width=viewport.width,
                        height=viewport.height,
                        filename=error_filename(url, viewport.type),
                        is_placeholder=True,
                    )
                )
            else:
                # Full-page captures come back taller than the requested viewport
                actual_width, actual_height = image_dimensions(shot.content)
                width = actual_width or viewport.width
                height = actual_height or viewport.height
                fields = filename_fields(url, viewport.type, width, height, index, now)
                images.append(
                    CapturedImage(
                        id=str(uuid.uuid4()),
                        url=url,
                        viewport=viewport.type,
                        content=shot.content,
                        mime_type=shot.mime_type,
                        width=width,
                        height=height,
                        filename=render_filename(request.filename_template, fields),
                        provider=shot.provider,
                    )
                )

            await pause(settings.capture_delay, cancel)

    return CaptureResult(root_url=root_url, pages=pages, images=images)
