from typing import List, Literal, Optional

from pydantic import BaseModel


class CapturedImageModel(BaseModel):
    id: str
    url: str
    viewport: Literal["desktop", "mobile"]
    mime_type: str
    data: str  # base64-encoded image bytes
    width: int
    height: int
    filename: str
    is_placeholder: bool = False
    provider: Optional[str] = None
    analysis: Optional[str] = None


class CaptureResponse(BaseModel):
    start_url: str
    pages_captured: int
    pages: List[str]
    images_captured: int
    failed_count: int
    images: List[CapturedImageModel]
