"""Core LogBus for streaming log records to a presentation layer.

It is fail-safe: subscriber exceptions never crash publishing.
"""

from __future__ import annotations

import contextlib
import sys
import traceback
from collections.abc import Callable
from dataclasses import dataclass

from installflow.core.subscription import Subscription

LogCallback = Callable[["LogRecord"], None]


@dataclass(frozen=True)
class LogRecord:
    level_name: str
    plain: str
    logger_name: str


class LogBus:
    def __init__(self) -> None:
        self._subs: list[tuple[str | None, LogCallback]] = []

    def subscribe(self, cb: LogCallback, level_name: str | None = None) -> Subscription:
        """Receive records of one level, or of every level when level_name is None."""
        entry = (level_name, cb)
        self._subs.append(entry)

        def _remove() -> None:
            with contextlib.suppress(ValueError):
                self._subs.remove(entry)

        return Subscription(f"log:{level_name or '*'}", _remove)

    def publish(self, record: LogRecord) -> None:
        for level_name, cb in list(self._subs):
            if level_name is not None and level_name != record.level_name:
                continue
            try:
                cb(record)
            except Exception:
                # Never call the core logger from here (recursion).
                msg = "LogBus subscriber raised; suppressed.\n" + traceback.format_exc()
                with contextlib.suppress(Exception):
                    sys.stderr.write(msg)

    def clear(self) -> None:
        self._subs.clear()

    @property
    def subscriber_count(self) -> int:
        return len(self._subs)


_LOG_BUS: LogBus | None = None


def get_log_bus() -> LogBus:
    global _LOG_BUS
    if _LOG_BUS is None:
        _LOG_BUS = LogBus()
    return _LOG_BUS
