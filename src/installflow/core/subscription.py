"""Disposable subscription handles.

Every ``subscribe`` call in installflow returns a :class:`Subscription`. The
owner must call :meth:`Subscription.dispose` exactly once when it stops
listening; further calls are no-ops.
"""

from __future__ import annotations

from collections.abc import Callable


class Subscription:
    """Handle returned by a subscribe call."""

    def __init__(self, name: str, remove: Callable[[], None]) -> None:
        self.name = name
        self._remove: Callable[[], None] | None = remove

    @property
    def active(self) -> bool:
        return self._remove is not None

    def dispose(self) -> bool:
        """Detach the listener.

        Returns:
            True if this call detached it, False if it was already disposed
        """
        remove = self._remove
        if remove is None:
            return False
        self._remove = None
        remove()
        return True

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *exc: object) -> None:
        self.dispose()

    def __repr__(self) -> str:
        state = "active" if self.active else "disposed"
        return f"Subscription({self.name!r}, {state})"
