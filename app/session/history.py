"""Fusion results and the bounded session history."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict


HISTORY_LIMIT = 10


class FusionResult(BaseModel):
    """One produced fusion. `id` is the creation time in milliseconds."""

    model_config = ConfigDict(frozen=True)

    id: str
    image: str
    text: str


class ResultHistory:
    """Most-recent-first list of results.

    Insertion is always at the front; once `limit` is exceeded the oldest entry
    is dropped from the tail. Reading or selecting never reorders entries.
    """

    def __init__(self, limit: int = HISTORY_LIMIT):
        if limit < 1:
            raise ValueError("History limit must be positive")
        self.limit = limit
        self._items: List[FusionResult] = []

    def add(self, result: FusionResult) -> None:
        self._items = [result, *self._items[: self.limit - 1]]

    def items(self) -> List[FusionResult]:
        return list(self._items)

    def get(self, result_id: str) -> Optional[FusionResult]:
        for item in self._items:
            if item.id == result_id:
                return item
        return None

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(list(self._items))
