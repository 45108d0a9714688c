from typing import Literal

from pydantic import BaseModel, Field


class AnalyzeRequest(BaseModel):
    data: str = Field(min_length=1, description="Base64-encoded screenshot (a data: URL prefix is accepted).")
    viewport: Literal["desktop", "mobile"] = "desktop"
    mime_type: str = "image/jpeg"


class AnalyzeResponse(BaseModel):
    analysis: str
