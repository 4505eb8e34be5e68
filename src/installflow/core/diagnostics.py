"""Diagnostics envelopes published on the event bus.

Emission is fail-safe: diagnostics never affect workflow behavior.
"""

from __future__ import annotations

import contextlib
from datetime import UTC, datetime
from typing import Any

from installflow.core.events import EventBus, get_event_bus

OPERATION_START = "operation.start"
OPERATION_END = "operation.end"


def build_envelope(
    *,
    event: str,
    component: str,
    operation: str,
    data: dict[str, Any],
) -> dict[str, Any]:
    """Build the canonical diagnostics envelope.

    Schema:
        {
          "event": "<string>",
          "component": "<string>",
          "operation": "<string>",
          "timestamp": "<iso8601 utc>",
          "data": { ... }
        }

    Timestamp is emitted in UTC with a trailing 'Z'.
    """
    ts = datetime.now(UTC).replace(microsecond=0).isoformat().replace("+00:00", "Z")
    return {
        "event": event,
        "component": component,
        "operation": operation,
        "timestamp": ts,
        "data": data,
    }


def emit_diagnostic(
    event: str,
    *,
    component: str,
    operation: str,
    data: dict[str, Any],
    bus: EventBus | None = None,
) -> None:
    with contextlib.suppress(Exception):
        envelope = build_envelope(event=event, component=component, operation=operation, data=data)
        (bus or get_event_bus()).publish(event, envelope)
