from __future__ import annotations

import base64
import io
from pathlib import Path

from PIL import Image

PNG_DATA_URI_PREFIX = "data:image/png;base64,"
COVER_SIZE = (1280, 720)


def to_data_uri(image_bytes: bytes) -> str:
    """Encode PNG bytes as a ``data:image/png;base64,...`` URI."""
    return PNG_DATA_URI_PREFIX + base64.b64encode(image_bytes).decode("utf-8")


def data_uri_payload(data_uri: str) -> str:
    """Return the base64 payload of a data URI (everything after the first comma)."""
    _, sep, payload = data_uri.partition(",")
    if not sep:
        raise ValueError("Not a data URI")
    return payload


def decode_data_uri(data_uri: str) -> bytes:
    return base64.b64decode(data_uri_payload(data_uri))


def image_file_to_data_uri(path: str | Path) -> str:
    """Load any image Pillow can read and re-encode it as a PNG data URI."""
    with Image.open(path) as img:
        buf = io.BytesIO()
        img.convert("RGBA" if img.mode in ("RGBA", "LA", "P") else "RGB").save(
            buf, format="PNG"
        )
    return to_data_uri(buf.getvalue())


def image_size(data_uri: str) -> tuple[int, int]:
    """Pixel size of the image held by a data URI."""
    with Image.open(io.BytesIO(decode_data_uri(data_uri))) as img:
        return img.size


def solid_cover_png(
    color: tuple[int, int, int] = (76, 29, 149),
    size: tuple[int, int] = COVER_SIZE,
) -> bytes:
    """A flat 16:9 PNG, used as an offline stand-in for generated covers."""
    img = Image.new("RGB", size, color)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()
