"""Wake-up signal shared by every subscriber of the live image listing."""

from __future__ import annotations

import asyncio


class ChangeNotifier:
    """Monotonic change counter with an awaitable "something changed" signal.

    Writers call `notify()` after committing. Readers remember the version
    they last rendered and `wait_for_change(seen)` until it moves on; several
    notifications between two waits collapse into one wake-up.
    """

    def __init__(self) -> None:
        self._version = 0
        self._event = asyncio.Event()

    @property
    def version(self) -> int:
        return self._version

    def notify(self) -> None:
        self._version += 1
        event, self._event = self._event, asyncio.Event()
        event.set()

    async def wait_for_change(self, seen_version: int) -> int:
        """Block until the version differs from `seen_version` and return it."""
        while self._version == seen_version:
            await self._event.wait()
        return self._version
