"""Retry-or-skip recovery for recoverable import operations.

The loop is an explicit state machine::

    ATTEMPT -> SUCCEEDED
    ATTEMPT -> AWAITING_CHOICE -> ATTEMPT   (user chose retry)
                               -> SKIPPED   (user declined)

Retries are unbounded; only the user ends the loop.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from installflow.core.logging import get_logger
from installflow.wizard.messages import Translator

_logger = get_logger(__name__)

UNKNOWN_IMPORT_ERROR_MESSAGE = "Unknown import error"

# Returns True to retry, False to skip. May be sync or async.
Confirmer = Callable[[str], bool | Awaitable[bool]]


def normalize_error_message(error: Any) -> str:
    """Display string for a failure; blank becomes a generic message."""
    message = "" if error is None else str(error).strip()
    return message or UNKNOWN_IMPORT_ERROR_MESSAGE


class RetryState(StrEnum):
    ATTEMPT = "attempt"
    AWAITING_CHOICE = "awaiting_choice"
    SUCCEEDED = "succeeded"
    SKIPPED = "skipped"


class StageStatus(StrEnum):
    SUCCEEDED = "succeeded"
    SKIPPED = "skipped"
    NOT_RUN = "not_run"


@dataclass(frozen=True)
class StageOutcome:
    stage_id: str
    status: StageStatus
    attempts: int = 0
    reason: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == StageStatus.SUCCEEDED


async def _ask(confirm: Confirmer, message: str) -> bool:
    answer = confirm(message)
    if inspect.isawaitable(answer):
        answer = await answer
    return bool(answer)


async def run_with_retry_prompt(
    operation: Callable[[], Awaitable[Any]],
    *,
    prompt: str,
    translator: Translator,
    confirm: Confirmer,
    on_skip: Callable[[str], None],
    stage_id: str = "operation",
) -> StageOutcome:
    """Run operation until it succeeds or the user declines a retry.

    Args:
        operation: Zero-argument coroutine factory, re-invoked on each retry
        prompt: Message key rendered with the failure as ``{error}``
        translator: Message catalog
        confirm: Yes/no collaborator; awaited before anything else proceeds
        on_skip: Receives the normalized failure message when skipped
        stage_id: Name used in the outcome and in log lines

    Returns:
        StageOutcome with status SUCCEEDED or SKIPPED
    """
    state = RetryState.ATTEMPT
    attempts = 0
    failure = ""

    while True:
        if state == RetryState.ATTEMPT:
            attempts += 1
            try:
                await operation()
            except Exception as e:
                failure = normalize_error_message(e)
                _logger.warning(f"{stage_id} attempt {attempts} failed: {failure}")
                state = RetryState.AWAITING_CHOICE
            else:
                state = RetryState.SUCCEEDED

        elif state == RetryState.AWAITING_CHOICE:
            retry = await _ask(confirm, translator(prompt, error=failure))
            state = RetryState.ATTEMPT if retry else RetryState.SKIPPED

        elif state == RetryState.SUCCEEDED:
            return StageOutcome(stage_id, StageStatus.SUCCEEDED, attempts)

        else:
            on_skip(failure)
            _logger.warning(f"{stage_id} skipped after {attempts} attempt(s)")
            return StageOutcome(stage_id, StageStatus.SKIPPED, attempts, failure)
