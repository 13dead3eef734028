"""Session state holder for one fusion workspace.

Purpose of this abstraction:
    Keep every piece of interactive state (slots, prompt, status, active result,
    history, error, loading message) on one object with plain mutation methods,
    so adapters and the fusion invoker share a single source of truth.

State transitions:
    - Slot/prompt edits happen at any time; accepted files clear the error.
    - `begin_fusion` moves `idle -> pending` and clears the error.
    - `complete_fusion` / `fail_fusion` record the outcome; `end_fusion` always
      returns to `idle`.

Failure semantics:
    A failed fusion never touches `active_result` or `history`.

Side effects:
    None outside the process; all state is in memory.
"""

import time
from typing import Optional

from app.image.encoder import UploadedFile
from app.image.preview import PreviewRegistry
from app.prompting.examples import get_example
from app.session.history import FusionResult, HISTORY_LIMIT, ResultHistory
from app.session.slots import DEFAULT_IMAGE_COUNT, InvalidUploadError, UploadSlotManager


STATUS_IDLE = "idle"
STATUS_PENDING = "pending"


class FusionSession:

    def __init__(
        self,
        image_count: int = DEFAULT_IMAGE_COUNT,
        history_limit: int = HISTORY_LIMIT,
        previews: Optional[PreviewRegistry] = None,
    ):
        self.slots = UploadSlotManager(previews=previews, image_count=image_count)
        self.history = ResultHistory(limit=history_limit)
        self.prompt = ""
        self.status = STATUS_IDLE
        self.loading_message = ""
        self.active_result: Optional[FusionResult] = None
        self.error = ""
        self._last_result_ms = 0

    # ---------------------------------------------------------
    # Uploads and prompt
    # ---------------------------------------------------------

    @property
    def image_count(self) -> int:
        return self.slots.image_count

    def set_image_count(self, count: int) -> None:
        self.slots.set_image_count(count)

    def set_slot(self, index: int, file: Optional[UploadedFile]) -> bool:
        """Assign a file to a slot, or clear it with `None`.

        Returns `False` when the file was rejected; the validation message is
        then available on `error` and the slot is unchanged.
        """
        try:
            self.slots.set_slot(index, file)
        except InvalidUploadError as err:
            self.error = str(err)
            return False
        if file is not None:
            self.error = ""
        return True

    def remove_slot(self, index: int) -> None:
        self.slots.remove_slot(index)

    def set_prompt(self, prompt: str) -> None:
        self.prompt = prompt or ""

    def apply_example(self, index: int) -> str:
        self.prompt = get_example(index)
        return self.prompt

    # ---------------------------------------------------------
    # Fusion lifecycle
    # ---------------------------------------------------------

    @property
    def is_pending(self) -> bool:
        return self.status == STATUS_PENDING

    @property
    def can_fuse(self) -> bool:
        """Fuse is allowed only with a prompt, every slot filled, and nothing pending."""
        return (
            not self.is_pending
            and bool(self.prompt.strip())
            and self.slots.all_populated
        )

    def begin_fusion(self) -> None:
        if self.is_pending:
            raise RuntimeError("A fusion is already in progress")
        self.status = STATUS_PENDING
        self.error = ""

    def end_fusion(self) -> None:
        self.status = STATUS_IDLE
        self.loading_message = ""

    def next_result_id(self) -> str:
        """Creation timestamp in ms, bumped when two results share a millisecond."""
        now_ms = time.time_ns() // 1_000_000
        self._last_result_ms = max(now_ms, self._last_result_ms + 1)
        return str(self._last_result_ms)

    def complete_fusion(self, result: FusionResult) -> None:
        self.active_result = result
        self.history.add(result)

    def fail_fusion(self, message: str) -> None:
        self.error = message

    # ---------------------------------------------------------
    # Results
    # ---------------------------------------------------------

    def select_history(self, result_id: str) -> FusionResult:
        """Make a history entry active without touching the history itself."""
        result = self.history.get(result_id)
        if result is None:
            raise KeyError(result_id)
        self.active_result = result
        return result

    def reset(self) -> None:
        """Drop uploads, prompt and results, releasing all preview resources."""
        self.slots.clear()
        self.slots.set_image_count(DEFAULT_IMAGE_COUNT)
        self.history = ResultHistory(limit=self.history.limit)
        self.prompt = ""
        self.active_result = None
        self.error = ""
        self.end_fusion()

    def snapshot(self) -> dict:
        """Plain-dict rendering of the current state for adapters."""
        return {
            "image_count": self.image_count,
            "slots": [
                {
                    "index": slot.index,
                    "filename": slot.file.filename if slot.file else None,
                    "preview_url": slot.preview_url,
                }
                for slot in self.slots.slots
            ],
            "prompt": self.prompt,
            "status": self.status,
            "loading_message": self.loading_message,
            "error": self.error,
            "can_fuse": self.can_fuse,
            "active_result": self.active_result.model_dump() if self.active_result else None,
            "history": [item.id for item in self.history],
        }
