"""One-shot debounce timer used to tear down sessions that ran out of work."""

from __future__ import annotations

import asyncio
from collections.abc import Callable


class TeardownTimer:
    """Calls ``callback(timer)`` once after ``delay`` seconds unless cancelled.

    Cancelling is idempotent: only the first cancel of a timer that has not
    fired returns True.
    """

    def __init__(
        self,
        delay: float,
        callback: Callable[[TeardownTimer], None],
        *,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._delay = delay
        self._callback = callback
        self._fired = False
        self._cancelled = False
        loop = loop or asyncio.get_running_loop()
        self._handle = loop.call_later(delay, self._fire)

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def fired(self) -> bool:
        return self._fired

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def active(self) -> bool:
        return not (self._fired or self._cancelled)

    def _fire(self) -> None:
        if self._cancelled:
            return
        self._fired = True
        self._callback(self)

    def cancel(self) -> bool:
        """Cancel the timer; returns False if it already fired or was cancelled."""
        if not self.active:
            return False
        self._cancelled = True
        self._handle.cancel()
        return True
