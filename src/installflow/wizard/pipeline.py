"""Import pipeline: base install call followed by the staged import chain.

The base settings/install call is fatal on failure. Every active stage runs
inside the retry-or-skip loop and never aborts the run. Only one run may be
outstanding at a time; a second invocation is rejected, not queued.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from installflow.core.diagnostics import OPERATION_END, OPERATION_START, emit_diagnostic
from installflow.core.errors import FatalInstallError, InstallInProgressError
from installflow.core.events import INSTALL_PROGRESS, EventBus, get_event_bus
from installflow.core.logging import get_logger
from installflow.wizard.backend import InstallBackend, SettingsUpdate
from installflow.wizard.messages import Translator
from installflow.wizard.progress import ProgressAggregator
from installflow.wizard.retry import (
    Confirmer,
    StageOutcome,
    StageStatus,
    normalize_error_message,
    run_with_retry_prompt,
)
from installflow.wizard.session import InstallSession
from installflow.wizard.stages import StagePlan, load_stage_plan

_logger = get_logger(__name__)

COMPONENT = "import_pipeline"


@dataclass
class PipelineResult:
    outcomes: dict[str, StageOutcome] = field(default_factory=dict)
    skip_reason: str | None = None

    @property
    def skipped(self) -> list[str]:
        return [o.stage_id for o in self.outcomes.values() if o.status == StageStatus.SKIPPED]

    def ran(self, stage_id: str) -> bool:
        outcome = self.outcomes.get(stage_id)
        return outcome is not None and outcome.status != StageStatus.NOT_RUN


class ImportPipeline:
    def __init__(
        self,
        session: InstallSession,
        backend: InstallBackend,
        progress: ProgressAggregator,
        translator: Translator,
        confirm: Confirmer,
        *,
        plan: StagePlan | None = None,
        features: Mapping[str, bool] | None = None,
        bus: EventBus | None = None,
    ) -> None:
        self._session = session
        self._backend = backend
        self._progress = progress
        self._t = translator
        self._confirm = confirm
        self.plan = plan or load_stage_plan()
        self._features = dict(features or {})
        self._bus = bus or get_event_bus()

    @property
    def running(self) -> bool:
        return self._session.install_in_progress

    @contextmanager
    def exclusive(self) -> Iterator[None]:
        """Hold the in-progress guard for the duration of the block.

        Raises:
            InstallInProgressError: If a run is already outstanding
        """
        if self._session.install_in_progress:
            raise InstallInProgressError()
        self._session.install_in_progress = True
        try:
            yield
        finally:
            self._session.install_in_progress = False

    async def run(self) -> PipelineResult:
        """Guarded run; see execute()."""
        with self.exclusive():
            return await self.execute()

    async def execute(self) -> PipelineResult:
        """Run the base call and every active stage.

        The caller must hold exclusive().

        Raises:
            FatalInstallError: If settings or base install failed
        """
        session = self._session
        session.clear_skip()
        session.error = None
        self._progress.start()

        with self._bus.subscribe(INSTALL_PROGRESS, self._progress.apply):
            await self._install_base()

        result = PipelineResult()
        flags = session.flags()
        for stage in self.plan:
            if not stage.is_active(flags, self._features, result.outcomes):
                result.outcomes[stage.id] = StageOutcome(stage.id, StageStatus.NOT_RUN)
                continue

            _logger.info(f"import stage: {stage.id}")
            self._progress.pin(self._t(stage.message))
            emit_diagnostic(
                OPERATION_START,
                component=COMPONENT,
                operation=stage.id,
                data={"operation": stage.operation},
                bus=self._bus,
            )
            outcome = await run_with_retry_prompt(
                self._operation(stage.operation),
                prompt=stage.prompt,
                translator=self._t,
                confirm=self._confirm,
                on_skip=session.mark_import_skipped,
                stage_id=stage.id,
            )
            result.outcomes[stage.id] = outcome
            emit_diagnostic(
                OPERATION_END,
                component=COMPONENT,
                operation=stage.id,
                data={"status": outcome.status.value, "attempts": outcome.attempts},
                bus=self._bus,
            )

        result.skip_reason = session.skip_reason
        self._progress.finish()
        return result

    async def _install_base(self) -> None:
        session = self._session
        restore = session.preserved_save_data_available and session.restore_save_data
        emit_diagnostic(
            OPERATION_START,
            component=COMPONENT,
            operation="install",
            data={"tag": session.release_tag, "restore_preserved": restore},
            bus=self._bus,
        )
        try:
            await self._backend.apply_settings(
                SettingsUpdate(
                    install_path=session.install_path,
                    platform=session.platform,
                    release_tag=session.release_tag,
                )
            )
            await self._backend.install(
                tag=session.release_tag,
                platform=session.platform,
                restore_preserved=restore,
            )
        except Exception as e:
            message = normalize_error_message(e)
            _logger.error(f"install failed: {message}")
            emit_diagnostic(
                OPERATION_END,
                component=COMPONENT,
                operation="install",
                data={"status": "failed", "error": message},
                bus=self._bus,
            )
            raise FatalInstallError(message) from e

        emit_diagnostic(
            OPERATION_END,
            component=COMPONENT,
            operation="install",
            data={"status": "succeeded"},
            bus=self._bus,
        )

    def _operation(self, name: str) -> Callable[[], Awaitable[Any]]:
        session = self._session
        backend = self._backend
        operations: dict[str, Callable[[], Awaitable[Any]]] = {
            "import_save_data": lambda: backend.import_save_data(session.import_source_path.strip()),
            "import_migration_archive": lambda: backend.import_migration_archive(
                session.archive_path.strip(), session.archive_password.strip()
            ),
            "merge_save_data_presets": lambda: backend.merge_save_data_presets(
                session.import_source_path.strip()
            ),
            "merge_preserved_presets": backend.merge_preserved_presets,
        }
        return operations[name]
