"""Upload slot manager.

Holds exactly `image_count` addressable slots. Each slot is empty or holds one
`UploadedFile` together with the preview reference acquired for it. Preview
resources are released whenever a slot's file changes, the slot is removed, or
the slot falls out of range after a count decrease.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from app.image.encoder import UploadedFile
from app.image.preview import PreviewRegistry


logger = logging.getLogger(__name__)

MIN_IMAGES = 2
MAX_IMAGES = 5
DEFAULT_IMAGE_COUNT = 2
ALLOWED_IMAGE_COUNTS = tuple(range(MIN_IMAGES, MAX_IMAGES + 1))

INVALID_FILE_MESSAGE = "Please upload only image files."


class InvalidUploadError(ValueError):
    """Raised when a non-image file is assigned to a slot."""


@dataclass
class UploadSlot:
    index: int
    file: Optional[UploadedFile] = None
    preview_url: Optional[str] = None

    @property
    def populated(self) -> bool:
        return self.file is not None


class UploadSlotManager:

    def __init__(self, previews: Optional[PreviewRegistry] = None, image_count: int = DEFAULT_IMAGE_COUNT):
        self.previews = previews or PreviewRegistry()
        self._slots: List[UploadSlot] = []
        self.set_image_count(image_count)

    @property
    def image_count(self) -> int:
        return len(self._slots)

    @property
    def slots(self) -> List[UploadSlot]:
        return list(self._slots)

    def set_image_count(self, count: int) -> None:
        """Resize the addressable range, keeping slots below `count` untouched."""
        if count not in ALLOWED_IMAGE_COUNTS:
            raise ValueError(
                f"Image count must be between {MIN_IMAGES} and {MAX_IMAGES}, got {count!r}"
            )

        for slot in self._slots[count:]:
            self._release(slot)
        del self._slots[count:]

        while len(self._slots) < count:
            self._slots.append(UploadSlot(index=len(self._slots)))

    def get(self, index: int) -> UploadSlot:
        return self._slots[self._check_index(index)]

    def set_slot(self, index: int, file: Optional[UploadedFile]) -> None:
        """Assign or clear a slot.

        `None` clears unconditionally. A non-image file raises
        `InvalidUploadError` and leaves the slot as it was.
        """
        slot = self._slots[self._check_index(index)]

        if file is None:
            self._release(slot)
            return

        if not file.is_image:
            logger.warning(
                "Rejected non-image upload %r (%s) for slot %d",
                file.filename, file.content_type or "unknown type", index,
            )
            raise InvalidUploadError(INVALID_FILE_MESSAGE)

        self._release(slot)
        slot.file = file
        slot.preview_url = self.previews.create(file)

    def remove_slot(self, index: int) -> None:
        self.set_slot(index, None)

    def populated_files(self) -> List[UploadedFile]:
        """Files of populated slots in slot-index order."""
        return [slot.file for slot in self._slots if slot.file is not None]

    @property
    def all_populated(self) -> bool:
        return all(slot.populated for slot in self._slots)

    def clear(self) -> None:
        for slot in self._slots:
            self._release(slot)

    def _release(self, slot: UploadSlot) -> None:
        self.previews.revoke(slot.preview_url)
        slot.preview_url = None
        slot.file = None

    def _check_index(self, index: int) -> int:
        if not isinstance(index, int) or not 0 <= index < len(self._slots):
            raise IndexError(f"Slot {index!r} is out of range for {len(self._slots)} images")
        return index
