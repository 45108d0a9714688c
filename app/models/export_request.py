from typing import List

from pydantic import BaseModel, Field


class ExportImage(BaseModel):
    filename: str = Field(min_length=1)
    data: str = Field(min_length=1, description="Base64-encoded image bytes (a data: URL prefix is accepted).")


class ExportRequest(BaseModel):
    images: List[ExportImage] = Field(min_length=1)
