"""Transient preview resources for populated upload slots.

A preview is a `preview://<token>` reference backed by an in-memory thumbnail.
Slots acquire one on file selection and must release it when the file changes
or the slot goes away; `live_count` makes leaks observable.

Thumbnails are rendered with Pillow. Files Pillow cannot decode keep their raw
bytes as the preview body.
"""

import io
import logging
import threading
import uuid
from typing import Dict, Optional, Tuple

from PIL import Image, UnidentifiedImageError

from app.image.encoder import FileReadError, UploadedFile


logger = logging.getLogger(__name__)

PREVIEW_SCHEME = "preview://"
THUMBNAIL_SIZE = (256, 256)


def _render_thumbnail(raw: bytes, content_type: str) -> Tuple[bytes, str]:
    try:
        with Image.open(io.BytesIO(raw)) as img:
            img.thumbnail(THUMBNAIL_SIZE)
            out = io.BytesIO()
            if img.mode in ("RGB", "RGBA"):
                img.save(out, format="PNG")
            else:
                converted = img.convert("RGBA")
                try:
                    converted.save(out, format="PNG")
                finally:
                    converted.close()
            return out.getvalue(), "image/png"
    except (UnidentifiedImageError, OSError, ValueError):
        return raw, content_type or "application/octet-stream"


class PreviewRegistry:
    """Thread-safe store of live preview resources."""

    def __init__(self):
        self._previews: Dict[str, Tuple[bytes, str]] = {}
        self._lock = threading.Lock()

    def create(self, upload: UploadedFile) -> str:
        """Acquire a preview for `upload` and return its reference URL."""
        try:
            raw = upload.read()
        except FileReadError:
            logger.warning("Preview unavailable for %r", upload.filename)
            raw = b""
        body = _render_thumbnail(raw, upload.content_type) if raw else (raw, upload.content_type)
        token = uuid.uuid4().hex
        with self._lock:
            self._previews[token] = body
        return PREVIEW_SCHEME + token

    def revoke(self, url: Optional[str]) -> None:
        """Release a preview; unknown or `None` references are ignored."""
        if not url:
            return
        token = url[len(PREVIEW_SCHEME):] if url.startswith(PREVIEW_SCHEME) else url
        with self._lock:
            self._previews.pop(token, None)

    def get(self, token: str) -> Optional[Tuple[bytes, str]]:
        """Return `(body, media_type)` for a live preview, else `None`."""
        with self._lock:
            return self._previews.get(token)

    @property
    def live_count(self) -> int:
        with self._lock:
            return len(self._previews)
