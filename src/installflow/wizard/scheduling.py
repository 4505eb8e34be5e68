"""Cancellable scheduled callbacks.

A :class:`CallbackSlot` holds at most one pending callback. Scheduling into a
slot first cancels whatever is pending there.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Protocol


class Cancellable(Protocol):
    def cancel(self) -> object: ...


# (delay_seconds, callback) -> handle
Scheduler = Callable[[float, Callable[[], None]], Cancellable]


def loop_scheduler(delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
    """Schedule on the running asyncio loop."""
    return asyncio.get_running_loop().call_later(delay, callback)


class CallbackSlot:
    """One logical timer slot."""

    def __init__(self, name: str, scheduler: Scheduler | None = None) -> None:
        self.name = name
        self._scheduler = scheduler or loop_scheduler
        self._handle: Cancellable | None = None
        self._generation = 0

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule(self, delay: float, callback: Callable[[], None]) -> None:
        """Cancel any pending callback, then schedule callback after delay seconds."""
        self.cancel()
        self._generation += 1
        generation = self._generation

        def _fire() -> None:
            # A handle that lost a race with cancel() must not run.
            if generation != self._generation or self._handle is None:
                return
            self._handle = None
            callback()

        self._handle = self._scheduler(max(0.0, delay), _fire)

    def cancel(self) -> bool:
        handle = self._handle
        if handle is None:
            return False
        self._handle = None
        self._generation += 1
        handle.cancel()
        return True
