"""Ticketed request guard: last request of a class wins.

Each asynchronous operation class owns a counter. A call captures the ticket
returned by :meth:`RequestGuard.dispatch` and, once its result arrives,
applies it only while :meth:`RequestGuard.is_current` still holds. Stale
results are dropped silently; in-flight backend calls are never aborted.
"""

from __future__ import annotations

from installflow.core.logging import get_logger

_logger = get_logger(__name__)

RELEASES = "releases"
SAVE_DATA_PREVIEW = "save_data_preview"
PASSWORD_VALIDATION = "password_validation"
LOGIN_STATUS = "login_status"


class RequestGuard:
    def __init__(self) -> None:
        self._counters: dict[str, int] = {}

    def dispatch(self, class_id: str) -> int:
        """Start a new request of class_id and return its ticket."""
        ticket = self._counters.get(class_id, 0) + 1
        self._counters[class_id] = ticket
        _logger.debug(f"dispatch {class_id} ticket={ticket}")
        return ticket

    def invalidate(self, class_id: str) -> None:
        """Make every outstanding request of class_id stale."""
        self._counters[class_id] = self._counters.get(class_id, 0) + 1

    def is_current(self, class_id: str, ticket: int) -> bool:
        current = self._counters.get(class_id, 0) == ticket
        if not current:
            _logger.debug(f"stale {class_id} result dropped (ticket={ticket})")
        return current

    def current(self, class_id: str) -> int:
        return self._counters.get(class_id, 0)
