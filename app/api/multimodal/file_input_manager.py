"""
File-reference loading for API/CLI adapters.

Architectural role:
- Convert user-supplied file references into `UploadedFile` objects that can be
  assigned to upload slots.
- Enforce path scope and size constraints before any bytes are kept.
- Provide adapter-level loading only; image-type validation stays in the slot
  manager.

Processing lifecycle:
1. Resolve each reference (`data:` URL, local path, or `file://` URL).
2. Pre-validate base64 payload size before decode.
3. Validate normalized path, base-directory scope and size.
4. Guess the media type from the data URL header or file extension.

Error handling strategy:
- Invalid references raise `ValueError` with a short message; callers report it.

Side effects:
- None. Files are read lazily by the encoder; data URLs are decoded in memory.
"""

import os
import base64
import binascii
import mimetypes
from typing import Optional
from urllib.parse import urlparse, unquote

from app.image.encoder import UploadedFile


# ============================================================
# CONFIG
# ============================================================

MAX_FILE_SIZE_MB = float(os.getenv("MAX_UPLOAD_SIZE_MB", "10"))
MAX_FILE_SIZE_BYTES = int(MAX_FILE_SIZE_MB * 1024 * 1024)


def _allowed_base_dir() -> Optional[str]:
    """Optional directory scope for local paths, read from `FILE_INPUT_BASE_DIR`."""
    base = os.getenv("FILE_INPUT_BASE_DIR")
    if not base:
        return None
    return os.path.realpath(os.path.expanduser(base))


# ============================================================
# PUBLIC ENTRYPOINTS
# ============================================================

def load_upload(file_ref: str) -> UploadedFile:
    """
    Resolve a file reference into an `UploadedFile`.

    Supported formats:
    - data URL (decoded in memory)
    - file URL (local host only)
    - plain local path
    """
    if not file_ref or not file_ref.strip():
        raise ValueError("Empty file reference")

    file_ref = file_ref.strip()

    if file_ref.startswith("data:"):
        return _load_data_url(file_ref)

    if file_ref.startswith("file://"):
        parsed = urlparse(file_ref)

        # Reject remote hosts in file URLs.
        if parsed.netloc not in ("", "localhost"):
            raise ValueError("Remote file URLs are not supported")

        return _load_path(unquote(parsed.path or ""))

    return _load_path(file_ref)


def from_bytes(filename: str, content_type: Optional[str], data: bytes) -> UploadedFile:
    """Wrap uploaded bytes (for example a multipart form file) after a size check."""
    if len(data) > MAX_FILE_SIZE_BYTES:
        raise ValueError("File exceeds max size limit")
    return UploadedFile(
        filename=filename or "upload",
        content_type=content_type or guess_media_type(filename),
        data=data,
    )


def guess_media_type(filename: Optional[str]) -> str:
    """Guess a media type from a filename extension; empty string when unknown."""
    if not filename:
        return ""
    guessed, _ = mimetypes.guess_type(filename)
    return guessed or ""


# ============================================================
# RESOLUTION
# ============================================================

def _load_data_url(data_url: str) -> UploadedFile:
    """
    Decode a data URL into an in-memory upload.

    Input validation behavior:
    - Applies an approximate decoded-size check before decode.
    - Raises `ValueError` for oversize or malformed payloads.
    """
    if "," not in data_url:
        raise ValueError("Malformed data URL")

    header, encoded = data_url.split(",", 1)
    padding = 0
    if encoded.endswith("=="):
        padding = 2
    elif encoded.endswith("="):
        padding = 1
    approx_decoded_size = (len(encoded) * 3) // 4 - padding
    if approx_decoded_size > MAX_FILE_SIZE_BYTES:
        raise ValueError("File exceeds max size limit")

    media_type = header[len("data:"):].split(";", 1)[0]
    try:
        data = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as err:
        raise ValueError("Malformed data URL") from err

    extension = (mimetypes.guess_extension(media_type) or "") if media_type else ""
    return UploadedFile(
        filename=f"upload{extension}",
        content_type=media_type,
        data=data,
    )


def _load_path(path: str) -> UploadedFile:
    normalized = _normalize_path(path)
    _validate_file(normalized)
    return UploadedFile(
        filename=os.path.basename(normalized),
        content_type=guess_media_type(normalized),
        path=normalized,
    )


# ============================================================
# VALIDATION
# ============================================================

def _normalize_path(path: str) -> Optional[str]:
    """Expand and canonicalize a path; return `None` for empty input."""
    if not path:
        return None
    expanded = os.path.expanduser(path)
    return os.path.realpath(expanded)


def _is_allowed_path(path: str) -> bool:
    """Return whether `path` is inside the configured base directory, if any."""
    base_dir = _allowed_base_dir()
    if base_dir is None:
        return True
    try:
        normalized = os.path.realpath(path)
        return os.path.commonpath([normalized, base_dir]) == base_dir
    except ValueError:
        return False


def _validate_file(path: Optional[str]) -> None:
    """
    Enforce access and size constraints before a path is accepted.

    Validation behavior:
    - Rejects empty/invalid paths.
    - Rejects paths outside the configured base directory.
    - Rejects non-existent files.
    - Rejects files larger than the configured max size.
    """
    if not path:
        raise ValueError("Invalid file path")

    if not _is_allowed_path(path):
        raise ValueError("Access denied: path is outside allowed directory")

    if not os.path.isfile(path):
        raise ValueError("File does not exist")

    if os.path.getsize(path) > MAX_FILE_SIZE_BYTES:
        raise ValueError("File exceeds max size limit")
