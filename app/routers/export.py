import io
import logging
from datetime import datetime

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import StreamingResponse

from app.models.export_request import ExportRequest
from app.routers.capture import limiter
from app.services.bundler import archive_name, bundle_images
from app.services.imaging import decode_image_data

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/export",
    summary="Bundle screenshots into a ZIP archive",
    response_class=StreamingResponse,
)
@limiter.limit("10/minute")
async def export_endpoint(request: Request, body: ExportRequest) -> StreamingResponse:
    """Pack the supplied images into ``Capture_Batch_<timestamp>.zip``."""
    files = []
    for image in body.images:
        try:
            files.append((image.filename, decode_image_data(image.data)))
        except ValueError:
            raise HTTPException(
                status_code=400, detail=f"Image data for '{image.filename}' must be valid base64."
            )

    logger.info("Export request received", extra={"images": len(files)})
    archive = bundle_images(files)
    filename = archive_name(datetime.now())
    return StreamingResponse(
        io.BytesIO(archive),
        media_type="application/zip",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
