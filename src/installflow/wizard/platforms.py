"""Game platform selection policy."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class Platform(StrEnum):
    STEAM = "steam"
    EPIC = "epic"


@dataclass(frozen=True)
class PlatformCandidate:
    path: str
    platform: Platform


def is_platform_selectable(platform: Platform | str, epic_enabled: bool) -> bool:
    """Steam is always selectable; epic only behind its feature flag."""
    if Platform(platform) == Platform.STEAM:
        return True
    return epic_enabled


def requires_login(platform: Platform | str | None, epic_enabled: bool) -> bool:
    """Whether the login step is interposed before version selection."""
    return platform is not None and Platform(platform) == Platform.EPIC and epic_enabled


def normalize_platform_candidates(
    candidates: Iterable[Mapping[str, Any] | PlatformCandidate],
) -> list[PlatformCandidate]:
    """Drop unknown platforms and sort: steam first, then path (case-insensitive).

    The input is never mutated.
    """
    known: list[PlatformCandidate] = []
    for candidate in candidates:
        if isinstance(candidate, PlatformCandidate):
            known.append(candidate)
            continue
        raw = str(candidate.get("platform", ""))
        if raw not in (Platform.STEAM.value, Platform.EPIC.value):
            continue
        known.append(PlatformCandidate(path=str(candidate.get("path", "")), platform=Platform(raw)))

    return sorted(
        known,
        key=lambda c: (0 if c.platform == Platform.STEAM else 1, c.path.casefold()),
    )


def filter_selectable_candidates(
    candidates: list[PlatformCandidate], epic_enabled: bool
) -> list[PlatformCandidate]:
    if epic_enabled:
        return list(candidates)
    return [c for c in candidates if is_platform_selectable(c.platform, epic_enabled)]
