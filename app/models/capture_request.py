from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.services.filename import DEFAULT_TEMPLATE


class Resolution(BaseModel):
    model_config = ConfigDict(frozen=True)

    width: int = Field(ge=1, le=7680)
    height: int = Field(ge=1, le=7680)
    label: str = ""


class CaptureRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str = Field(
        min_length=1,
        description="Page to capture. A missing scheme defaults to https://.",
        examples=["example.com", "https://example.com/pricing"],
    )
    depth: int = Field(
        default=1,
        ge=1,
        le=5,
        description="Crawl depth: 1 captures only the URL, 2 adds the pages it links to, etc. (1–5).",
    )
    desktop: bool = True
    mobile: bool = False
    desktop_res: Optional[Resolution] = None
    mobile_res: Optional[Resolution] = None
    full_page: bool = False
    filename_template: str = Field(
        default=DEFAULT_TEMPLATE,
        description=(
            "Filename template. Placeholders: {domain}, {path}, {date}, {time}, "
            "{viewport}, {width}, {height}, {index}."
        ),
    )
    auto_download: bool = False

    @model_validator(mode="after")
    def _require_viewport(self) -> "CaptureRequest":
        if not (self.desktop or self.mobile):
            raise ValueError("Enable at least one viewport (desktop or mobile).")
        return self
