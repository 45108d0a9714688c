import asyncio
import base64
import io
import json
import logging
from datetime import datetime

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import StreamingResponse
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.config import get_settings
from app.models.capture_request import CaptureRequest
from app.models.capture_response import CaptureResponse, CapturedImageModel
from app.services.bundler import archive_name, bundle_images
from app.services.cancellation import CaptureCancelled
from app.services.fetcher import validate_url
from app.services.normalizer import canonicalize_url
from app.services.orchestrator import CaptureResult, run_capture

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)
router = APIRouter()

# Strong references to streaming capture tasks until they finish
_background_tasks: set = set()


@router.post(
    "/capture",
    response_model=CaptureResponse,
    summary="Capture screenshots of a site",
    description=(
        "Normalises *url*, follows internal links (same hostname) up to `depth` "
        "levels deep and captures every page in each enabled viewport through "
        "a chain of external screenshot providers.  Pairs that no provider can "
        "capture come back as generated error placeholders, so the response "
        "always holds pages × viewports images.\n\n"
        "Pass `?format=zip` to download the images as a ZIP archive instead."
    ),
)
@limiter.limit("5/minute")
async def capture_endpoint(
    request: Request,
    body: CaptureRequest,
    format: str = Query(default="json", description="Output format: 'json' or 'zip'."),
) -> CaptureResponse | StreamingResponse:
    """Crawl and capture *url* in every requested viewport."""
    logger.info(
        "Capture request received",
        extra={"url": body.url, "depth": body.depth, "full_page": body.full_page},
    )

    try:
        result = await run_capture(body)
    except ValueError as exc:
        logger.warning("Invalid or blocked URL: %s – %s", body.url, exc)
        raise HTTPException(status_code=400, detail=str(exc))

    if format == "zip":
        return _build_zip_response(result)
    return _to_response(result)


@router.post(
    "/capture/stream",
    summary="Capture screenshots with live progress (Server-Sent Events)",
    description=(
        "Same as `/capture`, but streams `progress` events while the batch runs "
        "and finishes with a single `complete` event carrying the full response "
        "(or an `error` event).  Closing the connection cancels the batch."
    ),
)
@limiter.limit("5/minute")
async def capture_stream(request: Request, body: CaptureRequest) -> StreamingResponse:
    try:
        root_url = canonicalize_url(body.url)
        validate_url(root_url, block_private=get_settings().block_private_addresses)
    except ValueError as exc:
        logger.warning("Invalid or blocked URL: %s – %s", body.url, exc)
        raise HTTPException(status_code=400, detail=str(exc))

    queue: asyncio.Queue = asyncio.Queue()
    cancel = asyncio.Event()

    def on_progress(message: str) -> None:
        queue.put_nowait(sse_event("progress", {"message": message}))

    async def run() -> None:
        try:
            result = await run_capture(body, on_progress=on_progress, cancel=cancel)
            await queue.put(sse_event("complete", _to_response(result).model_dump()))
        except CaptureCancelled:
            logger.info("Capture of %s cancelled by client", root_url)
        except Exception as exc:
            logger.exception("Streaming capture failed for %s", root_url)
            await queue.put(sse_event("error", {"detail": str(exc)}))
        finally:
            await queue.put(None)

    async def event_stream():
        task = asyncio.create_task(run())
        _background_tasks.add(task)
        task.add_done_callback(_background_tasks.discard)
        try:
            while (event := await queue.get()) is not None:
                yield event
        finally:
            # Client went away or stream finished; the batch stops at its next checkpoint
            cancel.set()

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def sse_event(event_type: str, data: dict) -> str:
    """Format a Server-Sent Event string."""
    payload = {"type": event_type, **data}
    return f"data: {json.dumps(payload)}\n\n"


def _to_response(result: CaptureResult) -> CaptureResponse:
    images = [
        CapturedImageModel(
            id=img.id,
            url=img.url,
            viewport=img.viewport,
            mime_type=img.mime_type,
            data=base64.b64encode(img.content).decode("ascii"),
            width=img.width,
            height=img.height,
            filename=img.filename,
            is_placeholder=img.is_placeholder,
            provider=img.provider,
            analysis=img.analysis,
        )
        for img in result.images
    ]
    return CaptureResponse(
        start_url=result.root_url,
        pages_captured=len(result.pages),
        pages=result.pages,
        images_captured=len(images),
        failed_count=sum(1 for img in images if img.is_placeholder),
        images=images,
    )


def _build_zip_response(result: CaptureResult) -> StreamingResponse:
    """Return a :class:`StreamingResponse` with every captured image in one ZIP archive."""
    archive = bundle_images((img.filename, img.content) for img in result.images)
    filename = archive_name(datetime.now())
    return StreamingResponse(
        io.BytesIO(archive),
        media_type="application/zip",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
