"""Step transition bookkeeping.

On every step change the previous step is kept as "exiting" so both can be
rendered together for a fixed duration; afterwards the exiting step is
discarded. A new transition always cancels the pending discard first, so
rapid changes never leave an orphaned exiting step behind.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from installflow.core.logging import get_logger
from installflow.wizard.scheduling import CallbackSlot, Scheduler
from installflow.wizard.steps import Direction, WizardStep, direction

_logger = get_logger(__name__)

DEFAULT_TRANSITION_MS = 420.0


@dataclass(frozen=True)
class TransitionFrame:
    """What presentation should render right now."""

    displayed: WizardStep
    exiting: WizardStep | None
    direction: Direction


class StepTransition:
    def __init__(
        self,
        initial: WizardStep = WizardStep.WELCOME,
        *,
        duration_ms: float = DEFAULT_TRANSITION_MS,
        scheduler: Scheduler | None = None,
        on_change: Callable[[TransitionFrame], None] | None = None,
    ) -> None:
        self._frame = TransitionFrame(displayed=initial, exiting=None, direction=Direction.FORWARD)
        self._duration_ms = duration_ms
        self._slot = CallbackSlot("step-exit", scheduler)
        self._on_change = on_change

    @property
    def frame(self) -> TransitionFrame:
        return self._frame

    @property
    def current(self) -> WizardStep:
        return self._frame.displayed

    @property
    def exit_pending(self) -> bool:
        return self._slot.pending

    def transition(self, target: WizardStep) -> TransitionFrame:
        """Move to target.

        Returns:
            The new frame; unchanged when target is already displayed
        """
        current = self._frame.displayed
        if target == current:
            return self._frame

        moving = direction(current, target)
        self._frame = TransitionFrame(displayed=target, exiting=current, direction=moving)
        _logger.verbose(f"step {current} -> {target} ({moving})")

        self._slot.schedule(self._duration_ms / 1000.0, self._discard_exiting)
        self._notify()
        return self._frame

    def close(self) -> None:
        self._slot.cancel()

    def _discard_exiting(self) -> None:
        if self._frame.exiting is None:
            return
        self._frame = TransitionFrame(
            displayed=self._frame.displayed, exiting=None, direction=self._frame.direction
        )
        self._notify()

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change(self._frame)
