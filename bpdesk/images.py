from __future__ import annotations

import base64
import mimetypes
from pathlib import Path


class NotAnImage(ValueError):
    pass


def guess_image_mime(path: Path) -> str | None:
    mime, _ = mimetypes.guess_type(path.name)
    if mime and mime.startswith("image/"):
        return mime
    return None


def image_file_to_data_uri(path: Path) -> str:
    """Inline an image file as a ``data:`` URI for the ``image`` field."""
    mime = guess_image_mime(path)
    if mime is None:
        raise NotAnImage("Only image files are accepted.")
    encoded = base64.b64encode(path.read_bytes()).decode("ascii")
    return f"data:{mime};base64,{encoded}"


def is_data_uri(value: str) -> bool:
    return value.startswith("data:")
