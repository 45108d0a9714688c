import logging

from fastapi import APIRouter, HTTPException, Request

from app.models.analyze_request import AnalyzeRequest, AnalyzeResponse
from app.routers.capture import limiter
from app.services.analyzer import analyze_screenshot
from app.services.imaging import decode_image_data

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/analyze", response_model=AnalyzeResponse, summary="Critique a screenshot's layout")
@limiter.limit("10/minute")
async def analyze_endpoint(request: Request, body: AnalyzeRequest) -> AnalyzeResponse:
    """Ask Gemini for a short UI/UX critique of one captured screenshot.

    Without a configured ``GEMINI_API_KEY`` (or when Gemini fails) the
    response carries a fixed explanatory message instead of an analysis.
    """
    try:
        image = decode_image_data(body.data)
    except ValueError as exc:
        logger.warning("Analyze request with undecodable image data – %s", exc)
        raise HTTPException(status_code=400, detail="Image data must be valid base64.")

    logger.info("Analyze request received", extra={"viewport": body.viewport, "size": len(image)})
    analysis = await analyze_screenshot(image, body.viewport, body.mime_type)
    return AnalyzeResponse(analysis=analysis)
