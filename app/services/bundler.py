"""ZIP packaging of captured images for download."""

import io
import zipfile
from datetime import datetime
from typing import Iterable, Set, Tuple

from app.services.filename import sanitize_filename


def _unique_name(filename: str, used: Set[str]) -> str:
    """Return *filename*, or ``name (n).ext`` if an earlier entry already took it."""
    if filename not in used:
        return filename
    stem, dot, ext = filename.rpartition(".")
    counter = 2
    while True:
        candidate = f"{stem} ({counter}).{ext}" if dot else f"{filename} ({counter})"
        if candidate not in used:
            return candidate
        counter += 1


def bundle_images(images: Iterable[Tuple[str, bytes]]) -> bytes:
    """Pack ``(filename, content)`` pairs into a ZIP archive and return its bytes.

    Templates can produce the same filename twice in one batch; later
    duplicates are stored as ``name (2).jpg``, ``name (3).jpg`` and so on.
    """
    buffer = io.BytesIO()
    used: Set[str] = set()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zf:
        for filename, content in images:
            name = _unique_name(sanitize_filename(filename), used)
            used.add(name)
            zf.writestr(name, content)
    return buffer.getvalue()


def archive_name(now: datetime) -> str:
    return f"Capture_Batch_{now.strftime('%Y-%m-%d-%H-%M-%S')}.zip"
