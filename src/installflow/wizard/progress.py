"""Progress aggregation for one install run.

Backend progress events are merged into a single, monotonic percentage plus a
stage message. Within a run the displayed value never decreases.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from installflow.wizard.messages import Translator
from installflow.wizard.session import InstallSession

DEFAULT_WATERMARK = 99.0


class ProgressStage(StrEnum):
    RESOLVING = "resolving"
    DOWNLOADING = "downloading"
    EXTRACTING = "extracting"
    PATCHERS = "patchers"
    RESTORING = "restoring"
    COMPLETE = "complete"
    FAILED = "failed"


_BYTE_STAGES = frozenset({ProgressStage.DOWNLOADING.value, ProgressStage.PATCHERS.value})


def clamp_percent(value: float) -> float:
    if math.isnan(value):
        return 0.0
    return max(0.0, min(100.0, value))


def _number(payload: Mapping[str, Any], *keys: str) -> float | None:
    for key in keys:
        value = payload.get(key)
        if isinstance(value, bool):
            continue
        if isinstance(value, (int, float)):
            return float(value)
    return None


@dataclass(frozen=True)
class ProgressEvent:
    stage: str
    progress: float | None = None
    message: str = ""
    downloaded: float | None = None
    total: float | None = None
    current: float | None = None
    entries_total: float | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> ProgressEvent:
        """Build from a backend payload (camelCase or snake_case keys)."""
        return cls(
            stage=str(payload.get("stage", "")),
            progress=_number(payload, "progress"),
            message=str(payload.get("message") or ""),
            downloaded=_number(payload, "downloaded"),
            total=_number(payload, "total"),
            current=_number(payload, "current"),
            entries_total=_number(payload, "entriesTotal", "entries_total"),
        )

    @property
    def byte_percent(self) -> int | None:
        if self.downloaded is None or not self.total or self.total <= 0:
            return None
        return math.floor(self.downloaded / self.total * 100)

    @property
    def has_value(self) -> bool:
        """True when the event carries a percentage (explicit or from bytes)."""
        return self.progress is not None or (
            self.stage in _BYTE_STAGES and self.byte_percent is not None
        )

    def percent(self) -> float:
        """Percentage this event reports; derived from bytes when absent."""
        if self.progress is not None:
            return clamp_percent(self.progress)
        if self.stage in _BYTE_STAGES and self.byte_percent is not None:
            return clamp_percent(self.byte_percent)
        return 0.0


def _count(value: float) -> int | float:
    return int(value) if float(value).is_integer() else value


def format_progress_message(event: ProgressEvent, translator: Translator) -> str:
    """Stage-specific status line.

    downloading/patchers: percent of bytes when the total is known, else the
    raw byte count. extracting: current/total when the entry total is known.
    Everything else shows the message verbatim.
    """
    if event.stage in _BYTE_STAGES and event.downloaded is not None:
        percent = event.byte_percent
        if percent is not None:
            return translator("install.progress_percent", message=event.message, percent=percent)
        return translator(
            "install.progress_bytes",
            message=event.message,
            downloaded=_count(event.downloaded),
            bytes=translator("common.bytes"),
        )

    if event.stage == ProgressStage.EXTRACTING and event.current is not None:
        if event.entries_total is not None and event.entries_total > 0:
            return translator(
                "install.progress_entries",
                message=event.message,
                current=_count(event.current),
                total=_count(event.entries_total),
            )

    return event.message


class ProgressAggregator:
    """Sole writer of session.progress and session.progress_message."""

    def __init__(
        self,
        session: InstallSession,
        translator: Translator,
        *,
        watermark: float = DEFAULT_WATERMARK,
    ) -> None:
        self._session = session
        self._t = translator
        self._watermark = clamp_percent(watermark)
        self._pinned = False

    @property
    def pinned(self) -> bool:
        return self._pinned

    @property
    def value(self) -> float:
        return self._session.progress

    def start(self) -> None:
        """Begin a new run at 0."""
        self._pinned = False
        self._session.progress = 0.0
        self._session.progress_message = self._t("install.starting")

    def apply(self, event: ProgressEvent | Mapping[str, Any]) -> float:
        """Merge one backend event; returns the displayed value.

        Events arriving while pinned are ignored. An event whose percentage
        is below the displayed value is stale and changes neither the value
        nor the message.
        """
        if not isinstance(event, ProgressEvent):
            event = ProgressEvent.from_payload(event)
        if self._pinned:
            return self._session.progress

        current = self._session.progress
        if event.has_value:
            percent = event.percent()
            if percent < current:
                return current
            self._session.progress = percent
        self._session.progress_message = format_progress_message(event, self._t)
        return self._session.progress

    def pin(self, message: str) -> None:
        """Hold at the watermark with a stage message replacing numeric detail."""
        self._pinned = True
        self._session.progress = max(self._session.progress, self._watermark)
        self._session.progress_message = message

    def finish(self, message: str | None = None) -> None:
        self._pinned = False
        self._session.progress = 100.0
        self._session.progress_message = message if message is not None else self._t("install.complete")
