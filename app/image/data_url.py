"""Data URL helpers for rendering and exporting fused images."""

import base64
import binascii
from typing import Tuple


DOWNLOAD_FILENAME = "fused-image.png"


def build_data_url(mime_type: str, data: str) -> str:
    """Return a directly renderable `data:` URL for a base64 payload."""
    return f"data:{mime_type};base64,{data}"


def decode_data_url(url: str) -> Tuple[str, bytes]:
    """Split a base64 `data:` URL into `(mime_type, raw_bytes)`.

    Raises:
        ValueError: for malformed URLs or payloads.
    """
    if not url or not url.startswith("data:") or "," not in url:
        raise ValueError("Not a data URL")

    header, encoded = url[len("data:"):].split(",", 1)
    if not header.endswith(";base64"):
        raise ValueError("Only base64 data URLs are supported")

    mime_type = header[: -len(";base64")] or "application/octet-stream"
    try:
        return mime_type, base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as err:
        raise ValueError("Invalid base64 payload") from err
