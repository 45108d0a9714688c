"""Image helpers: dimension detection and the capture-error placeholder."""

import base64
import io
import logging
from typing import Tuple

from PIL import Image, ImageDraw, ImageFont, UnidentifiedImageError

logger = logging.getLogger(__name__)

_BACKGROUND = (248, 250, 252)
_BROWSER_BAR = (226, 232, 240)
_ERROR_RED = (239, 68, 68)
_MUTED = (100, 116, 139)
_BAR_HEIGHT = 50
_MAX_LABEL_CHARS = 80


def image_dimensions(content: bytes) -> Tuple[int, int]:
    """Return ``(width, height)`` of an encoded image, or ``(0, 0)`` if it cannot be read."""
    try:
        with Image.open(io.BytesIO(content)) as img:
            return img.size
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        logger.warning("Could not detect image dimensions – %s", exc)
        return 0, 0


def _draw_centered(draw: ImageDraw.ImageDraw, center_x: float, y: float, text: str, font, fill) -> None:
    left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
    draw.text((center_x - (right - left) / 2, y - (bottom - top) / 2), text, font=font, fill=fill)


def render_placeholder(width: int, height: int, label: str) -> bytes:
    """Render a JPEG showing an error glyph and *label* (usually the failing page URL).

    Stands in for a screenshot that no provider could produce, at the size
    that was requested.
    """
    width, height = max(width, 1), max(height, 1)
    img = Image.new("RGB", (width, height), _BACKGROUND)
    draw = ImageDraw.Draw(img)

    # Browser chrome
    draw.rectangle((0, 0, width, min(_BAR_HEIGHT, height)), fill=_BROWSER_BAR)

    center_x, center_y = width / 2, height / 2
    radius = max(min(width, height) // 20, 12)
    glyph_y = center_y - 40 - radius
    draw.ellipse(
        (center_x - radius, glyph_y - radius, center_x + radius, glyph_y + radius),
        outline=_ERROR_RED,
        width=max(radius // 6, 2),
    )
    _draw_centered(draw, center_x, glyph_y, "!", ImageFont.load_default(size=radius), _ERROR_RED)

    _draw_centered(draw, center_x, center_y - 20, "Capture Error", ImageFont.load_default(size=24), _ERROR_RED)

    if len(label) > _MAX_LABEL_CHARS:
        label = label[: _MAX_LABEL_CHARS - 3] + "..."
    _draw_centered(draw, center_x, center_y + 20, label, ImageFont.load_default(size=14), _MUTED)

    buffer = io.BytesIO()
    img.save(buffer, format="JPEG", quality=85)
    return buffer.getvalue()


def decode_image_data(data: str) -> bytes:
    """Decode base64 image data, accepting an optional ``data:image/...;base64,`` prefix.

    Raises:
        ValueError: if *data* is not valid base64.
    """
    if data.startswith("data:"):
        data = data.split(",", 1)[-1]
    return base64.b64decode(data, validate=True)
