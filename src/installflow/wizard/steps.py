"""Wizard step identifiers, ordering and back navigation."""

from __future__ import annotations

from enum import StrEnum


class WizardStep(StrEnum):
    WELCOME = "welcome"
    DETECTING = "detecting"
    PLATFORM = "platform"
    EPIC_LOGIN = "epic-login"
    VERSION = "version"
    IMPORT = "import"
    CONFIRM = "confirm"
    PROGRESS = "progress"
    COMPLETE = "complete"


class Direction(StrEnum):
    FORWARD = "forward"
    BACK = "back"


# Only used to decide transition direction. DETECTING sits between WELCOME
# and PLATFORM; EPIC_LOGIN is interposed only for login-requiring platforms.
STEP_ORDER: dict[WizardStep, float] = {
    WizardStep.WELCOME: 0.0,
    WizardStep.DETECTING: 0.5,
    WizardStep.PLATFORM: 1.0,
    WizardStep.EPIC_LOGIN: 2.0,
    WizardStep.VERSION: 3.0,
    WizardStep.IMPORT: 4.0,
    WizardStep.CONFIRM: 5.0,
    WizardStep.PROGRESS: 6.0,
    WizardStep.COMPLETE: 7.0,
}


def step_order(step: WizardStep | str) -> float:
    return STEP_ORDER[WizardStep(step)]


def direction(current: WizardStep | str, target: WizardStep | str) -> Direction:
    """FORWARD iff target is ordered after current."""
    if step_order(target) > step_order(current):
        return Direction.FORWARD
    return Direction.BACK


def back_target(step: WizardStep, *, requires_login: bool) -> WizardStep | None:
    """Return where "back" leads from step, or None if back is not offered.

    Args:
        step: Current step
        requires_login: Whether the selected platform goes through the login step
    """
    if step == WizardStep.PLATFORM:
        return WizardStep.WELCOME
    if step == WizardStep.EPIC_LOGIN:
        return WizardStep.PLATFORM
    if step == WizardStep.VERSION:
        return WizardStep.EPIC_LOGIN if requires_login else WizardStep.PLATFORM
    if step == WizardStep.IMPORT:
        return WizardStep.VERSION
    if step == WizardStep.CONFIRM:
        return WizardStep.IMPORT
    return None
