"""Upload file model and base64 encoding for model requests.

Processing flow:
    1. Adapters wrap browser/CLI input into `UploadedFile`.
    2. `encode_file` reads the bytes in a worker thread.
    3. Bytes are base64-encoded and paired with the upload's media type.

Error handling strategy:
    - Read failures raise `FileReadError`; the caller decides how to surface them.

Determinism:
    - Encoding is deterministic for fixed file contents.
    - `encode_files` preserves input order regardless of completion order.
"""

import asyncio
import base64
from dataclasses import dataclass
from typing import List, Optional, Sequence


class FileReadError(RuntimeError):
    """Raised when an uploaded file cannot be read."""


@dataclass(frozen=True)
class UploadedFile:
    """One selected file, either held in memory or read lazily from `path`."""

    filename: str
    content_type: str = ""
    data: Optional[bytes] = None
    path: Optional[str] = None

    @property
    def is_image(self) -> bool:
        return (self.content_type or "").startswith("image/")

    def read(self) -> bytes:
        if self.data is not None:
            return self.data
        if not self.path:
            raise FileReadError(f"No content available for {self.filename!r}")
        try:
            with open(self.path, "rb") as f:
                return f.read()
        except OSError as err:
            raise FileReadError(f"Could not read {self.filename!r}") from err


@dataclass(frozen=True)
class EncodedImage:
    data: str
    mime_type: str


async def encode_file(upload: UploadedFile) -> EncodedImage:
    """Read `upload` off the event loop and return its base64 encoding.

    Raises:
        FileReadError: when the underlying bytes cannot be read.
    """
    raw = await asyncio.to_thread(upload.read)
    return EncodedImage(
        data=base64.b64encode(raw).decode("ascii"),
        mime_type=upload.content_type,
    )


async def encode_files(uploads: Sequence[UploadedFile]) -> List[EncodedImage]:
    """Encode several uploads concurrently, keeping input order."""
    return list(await asyncio.gather(*(encode_file(upload) for upload in uploads)))
