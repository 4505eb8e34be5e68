"""Event bus connecting the backend channel to the workflow.

Backend-pushed install progress and lifecycle events (login success and
friends) arrive here; the wizard publishes its own step and diagnostics
events on the same bus. Subscribing returns a disposable handle.
"""

from __future__ import annotations

import contextlib
import traceback
from collections import defaultdict
from collections.abc import Callable
from typing import Any

from installflow.core.logging import get_logger
from installflow.core.subscription import Subscription

_logger = get_logger(__name__)

EventCallback = Callable[[dict[str, Any]], None]
AnyEventCallback = Callable[[str, dict[str, Any]], None]

# Backend channel
INSTALL_PROGRESS = "install-progress"
LOGIN_SUCCESS = "login-success"

# Emitted by the wizard
STEP_CHANGED = "wizard.step_changed"


class EventBus:
    """Simple pub/sub bus.

    Example:
        bus = EventBus()

        def on_progress(data):
            print(data["progress"])

        sub = bus.subscribe("install-progress", on_progress)
        bus.publish("install-progress", {"stage": "downloading", "progress": 10})
        sub.dispose()
    """

    def __init__(self) -> None:
        self._subscribers: dict[str, list[EventCallback]] = defaultdict(list)
        self._all_subscribers: list[AnyEventCallback] = []

    def subscribe(self, event: str, callback: EventCallback) -> Subscription:
        """Subscribe to one event.

        Args:
            event: Event name
            callback: Receives the event data dict

        Returns:
            Handle; call dispose() exactly once to unsubscribe
        """
        self._subscribers[event].append(callback)

        def _remove() -> None:
            with contextlib.suppress(ValueError):
                self._subscribers[event].remove(callback)

        return Subscription(event, _remove)

    def subscribe_all(self, callback: AnyEventCallback) -> Subscription:
        """Subscribe to every published event (diagnostics sinks etc.)."""
        self._all_subscribers.append(callback)

        def _remove() -> None:
            with contextlib.suppress(ValueError):
                self._all_subscribers.remove(callback)

        return Subscription("*", _remove)

    def publish(self, event: str, data: dict[str, Any] | None = None) -> None:
        """Publish an event.

        Handler exceptions are logged and never reach the publisher.
        """
        data = data or {}

        for cb_event in list(self._subscribers.get(event, [])):
            try:
                cb_event(data)
            except Exception as e:
                _logger.error(
                    f"Error in event handler for '{event}' (callback={cb_event}): "
                    f"{type(e).__name__}: {e}\n{traceback.format_exc()}"
                )

        for cb_all in list(self._all_subscribers):
            try:
                cb_all(event, data)
            except Exception as e:
                _logger.error(
                    f"Error in all-event handler (event='{event}', callback={cb_all}): "
                    f"{type(e).__name__}: {e}\n{traceback.format_exc()}"
                )

    def subscriber_count(self, event: str) -> int:
        return len(self._subscribers.get(event, []))

    def clear(self) -> None:
        self._subscribers.clear()
        self._all_subscribers.clear()


_global_bus: EventBus | None = None


def get_event_bus() -> EventBus:
    """Get global event bus instance."""
    global _global_bus
    if _global_bus is None:
        _global_bus = EventBus()
    return _global_bus
