"""Filename synthesis from user-supplied templates."""

import re
from datetime import datetime
from typing import Dict, Mapping, Union
from urllib.parse import urlparse

DEFAULT_TEMPLATE = "{domain}_{date}_{viewport}"

PLACEHOLDERS = ("domain", "path", "date", "time", "viewport", "width", "height", "index")

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9\-_. \[\]()]")
_IMAGE_EXTENSIONS = (".jpg", ".png")


def clean_hostname(url: str) -> str:
    """Return the hostname of *url* without a leading ``www.``."""
    hostname = urlparse(url).hostname or ""
    return hostname[4:] if hostname.startswith("www.") else hostname


def clean_path(url: str) -> str:
    """Return the URL path with ``/`` turned into ``-``; empty for the site root."""
    path = urlparse(url).path
    if path in ("", "/"):
        return ""
    return path.replace("/", "-")


def filename_fields(
    url: str,
    viewport: str,
    width: int,
    height: int,
    index: int,
    now: datetime,
) -> Dict[str, str]:
    """Build the placeholder values for one captured image."""
    return {
        "domain": clean_hostname(url),
        "path": clean_path(url),
        "date": now.strftime("%Y-%m-%d"),
        "time": now.strftime("%H-%M"),
        "viewport": viewport,
        "width": str(width),
        "height": str(height),
        "index": str(index),
    }


def sanitize_filename(name: str) -> str:
    """Replace filesystem-unsafe characters and make sure there is an image extension."""
    name = _UNSAFE_CHARS.sub("_", name)
    if not name.lower().endswith(_IMAGE_EXTENSIONS):
        name += ".jpg"
    return name


def render_filename(template: str, fields: Mapping[str, Union[str, int]]) -> str:
    """Render *template* with *fields* into a sanitized filename.

    Placeholders are substituted literally (every occurrence, case-sensitive).
    Placeholders without a value in *fields* are left in place and are then
    neutralised by sanitisation.  A blank template falls back to
    :data:`DEFAULT_TEMPLATE`.
    """
    if not template or not template.strip():
        template = DEFAULT_TEMPLATE

    filename = template
    for name in PLACEHOLDERS:
        if name in fields:
            filename = filename.replace(f"{{{name}}}", str(fields[name]))

    return sanitize_filename(filename)


def error_filename(url: str, viewport: str) -> str:
    return sanitize_filename(f"error_{clean_hostname(url)}_{viewport}.jpg")
