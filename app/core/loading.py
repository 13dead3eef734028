"""Rotating status text shown while a fusion is pending.

The rotator is an async context manager around a periodic asyncio task. On
entry it publishes the first message; every `interval` seconds it advances,
wrapping after the last one. On exit the task is cancelled and the published
message reset to an empty string, whatever the outcome of the wrapped block.
"""

import asyncio
import contextlib
from typing import Callable, Optional, Sequence


LOADING_MESSAGES = (
    "Consulting the AI muse...",
    "Fusing pixels with creativity...",
    "This can take a minute, hold tight!",
    "Unleashing digital magic...",
)
ROTATION_INTERVAL_SECONDS = 3.0


class LoadingMessageRotator:

    def __init__(
        self,
        publish: Callable[[str], None],
        messages: Sequence[str] = LOADING_MESSAGES,
        interval: float = ROTATION_INTERVAL_SECONDS,
    ):
        if not messages:
            raise ValueError("At least one loading message is required")
        self._publish = publish
        self._messages = tuple(messages)
        self._interval = interval
        self._index = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def current(self) -> str:
        return self._messages[self._index]

    async def _rotate(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            self._index = (self._index + 1) % len(self._messages)
            self._publish(self.current)

    def start(self) -> None:
        if self._task is not None:
            return
        self._index = 0
        self._publish(self.current)
        self._task = asyncio.get_running_loop().create_task(self._rotate())

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._index = 0
        self._publish("")

    async def __aenter__(self):
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.stop()
        return False
