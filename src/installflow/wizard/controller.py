"""Install wizard controller.

Sequences the steps (welcome -> detecting -> platform -> [epic-login] ->
version -> import -> confirm -> progress -> complete) and wires the request
guard, password validator, progress aggregator and import pipeline to one
:class:`InstallSession`. Operational failures never become a terminal step;
they land in session fields while the step returns to where the user can act.
"""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import Any

from installflow.core.config import WizardConfig
from installflow.core.diagnostics import OPERATION_END, OPERATION_START, emit_diagnostic
from installflow.core.errors import FatalInstallError, InputError, InstallInProgressError
from installflow.core.events import LOGIN_SUCCESS, STEP_CHANGED, EventBus, get_event_bus
from installflow.core.logging import get_logger
from installflow.core.subscription import Subscription
from installflow.wizard.backend import InstallBackend, SettingsUpdate
from installflow.wizard.messages import MessageCatalog
from installflow.wizard.password import ArchivePasswordValidator
from installflow.wizard.pipeline import ImportPipeline, PipelineResult
from installflow.wizard.platforms import (
    Platform,
    filter_selectable_candidates,
    is_platform_selectable,
    normalize_platform_candidates,
    requires_login,
)
from installflow.wizard.progress import ProgressAggregator
from installflow.wizard.retry import Confirmer, normalize_error_message
from installflow.wizard.scheduling import Scheduler
from installflow.wizard.session import InstallSession
from installflow.wizard.stages import StagePlan, load_stage_plan
from installflow.wizard.steps import WizardStep, back_target
from installflow.wizard.tickets import (
    LOGIN_STATUS,
    RELEASES,
    SAVE_DATA_PREVIEW,
    RequestGuard,
)
from installflow.wizard.transition import StepTransition, TransitionFrame

_logger = get_logger(__name__)

COMPONENT = "install_wizard"


class InstallWizard:
    """Orchestrates one install run.

    Args:
        backend: Backend collaborator
        confirm: Yes/no collaborator used by the retry-or-skip loop
        config: Resolved wizard settings (defaults when None)
        translator: Message catalog (packaged catalog when None)
        bus: Event bus for progress, lifecycle and diagnostics events
        scheduler: Timer factory for the step transition (asyncio loop when None)
        plan: Import stage plan (config.pipeline_definition or packaged plan when None)
    """

    def __init__(
        self,
        backend: InstallBackend,
        confirm: Confirmer,
        *,
        config: WizardConfig | None = None,
        translator: MessageCatalog | None = None,
        bus: EventBus | None = None,
        scheduler: Scheduler | None = None,
        plan: StagePlan | None = None,
    ) -> None:
        self.config = config or WizardConfig()
        self.backend = backend
        self.bus = bus or get_event_bus()
        self.t = translator or MessageCatalog.load()
        self.session = InstallSession()
        self.session.locale = self.t.set_locale(self.config.locale)
        self.guard = RequestGuard()

        self.transition = StepTransition(
            self.session.step,
            duration_ms=self.config.transition_ms,
            scheduler=scheduler,
            on_change=self._on_frame,
        )
        self.password = ArchivePasswordValidator(
            self.session,
            backend,
            self.guard,
            self.t,
            extension=self.config.migration_extension,
            feature_enabled=self.config.migration_enabled,
        )
        self.progress = ProgressAggregator(
            self.session, self.t, watermark=self.config.pipeline_watermark
        )
        self.pipeline = ImportPipeline(
            self.session,
            backend,
            self.progress,
            self.t,
            confirm,
            plan=plan or load_stage_plan(self.config.pipeline_definition),
            features=self.config.features,
            bus=self.bus,
        )

        self._tasks: set[asyncio.Task[Any]] = set()
        self._subscriptions: list[Subscription] = [
            self.bus.subscribe(LOGIN_SUCCESS, self._on_login_success),
        ]

    # ═══════════════════════════════════════════
    #  STEP BOOKKEEPING
    # ═══════════════════════════════════════════

    @property
    def step(self) -> WizardStep:
        return self.session.step

    @property
    def frame(self) -> TransitionFrame:
        return self.transition.frame

    @property
    def epic_enabled(self) -> bool:
        return self.config.epic_login_enabled

    def _go(self, step: WizardStep) -> None:
        self.session.step = step
        self.transition.transition(step)

    def _on_frame(self, frame: TransitionFrame) -> None:
        self.bus.publish(
            STEP_CHANGED,
            {
                "step": frame.displayed.value,
                "exiting": frame.exiting.value if frame.exiting else None,
                "direction": frame.direction.value,
            },
        )

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait_background(self) -> None:
        """Wait for fire-and-forget work (release refresh, login refresh)."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ═══════════════════════════════════════════
    #  WELCOME / DETECTION
    # ═══════════════════════════════════════════

    async def start(self) -> bool:
        """Detect installations and move to platform selection.

        Returns:
            True on success; False when detection failed (back on welcome)
        """
        session = self.session
        session.error = None
        self.password.reset()
        session.reset_import_state()
        self._go(WizardStep.DETECTING)
        self._spawn(self.refresh_releases())

        try:
            detected = await self.backend.detect_platforms()
        except Exception as e:
            session.error = normalize_error_message(e)
            _logger.warning(f"platform detection failed: {session.error}")
            self._go(WizardStep.WELCOME)
            return False

        session.detected_platforms = filter_selectable_candidates(
            normalize_platform_candidates(detected), self.epic_enabled
        )

        try:
            status = await self.backend.preserved_save_data_status()
            preserved = status.usable
        except Exception as e:
            _logger.debug(f"preserved save data status unavailable: {e}")
            preserved = False
        session.preserved_save_data_available = preserved
        session.restore_save_data = preserved

        self._go(WizardStep.PLATFORM)
        return True

    async def refresh_releases(self) -> None:
        """Reload the release list; only the newest request applies its result."""
        session = self.session
        ticket = self.guard.dispatch(RELEASES)
        session.releases_loading = True
        session.releases_error = None
        session.releases = []
        session.release_tag = ""

        try:
            releases = await self.backend.list_releases()
        except Exception as e:
            if self.guard.is_current(RELEASES, ticket):
                session.releases = []
                session.release_tag = ""
                session.releases_error = normalize_error_message(e)
        else:
            if self.guard.is_current(RELEASES, ticket):
                session.releases = list(releases)
                if releases and not session.release_tag.strip():
                    session.release_tag = releases[0].tag
        finally:
            if self.guard.current(RELEASES) == ticket:
                session.releases_loading = False

    # ═══════════════════════════════════════════
    #  PLATFORM / LOGIN
    # ═══════════════════════════════════════════

    def _require(self, value: str, field: str, message_key: str) -> str:
        if not value.strip():
            raise InputError(field, self.t(message_key))
        return value

    def select_platform(self, path: str, platform: Platform | str) -> bool:
        """Select an installation; a different platform than before reloads releases."""
        session = self.session
        try:
            selected = Platform(platform)
        except ValueError:
            session.error = self.t("platform.unknown", platform=platform)
            return False
        if not is_platform_selectable(selected, self.epic_enabled):
            session.error = self.t("platform.epic_disabled")
            self._go(WizardStep.PLATFORM)
            return False
        try:
            self._require(path, "install_path", "platform.path_required")
        except InputError as e:
            session.error = e.message
            return False

        changed = session.platform is not None and session.platform != selected
        session.install_path = path
        session.platform = selected
        session.error = None
        if changed:
            self._spawn(self.refresh_releases())
        if requires_login(selected, self.epic_enabled):
            self._go(WizardStep.EPIC_LOGIN)
        else:
            self._go(WizardStep.VERSION)
        return True

    async def select_manual_folder(self, path: str) -> bool:
        """Ask the backend which platform path belongs to, then select it."""
        try:
            self._require(path, "install_path", "platform.path_required")
        except InputError as e:
            self.session.error = e.message
            return False
        try:
            platform = await self.backend.detect_platform(path)
        except Exception as e:
            self.session.error = normalize_error_message(e)
            return False
        return self.select_platform(path, platform)

    def finish_login(self) -> bool:
        if self.session.step != WizardStep.EPIC_LOGIN:
            return False
        self._go(WizardStep.VERSION)
        return True

    async def refresh_login_status(self) -> None:
        session = self.session
        if not self.epic_enabled:
            session.epic_logged_in = False
            session.epic_user_display = None
            return

        ticket = self.guard.dispatch(LOGIN_STATUS)
        status = await self.backend.login_status()
        if not self.guard.is_current(LOGIN_STATUS, ticket):
            return
        session.epic_logged_in = status.logged_in
        session.epic_user_display = status.user_display

    async def restore_login(self) -> None:
        """Best-effort session restore; failures leave the logged-out default."""
        if not self.epic_enabled:
            await self.refresh_login_status()
            return
        try:
            await self.backend.restore_login_session()
        except Exception as e:
            _logger.debug(f"login session restore failed: {e}")
        try:
            await self.refresh_login_status()
        except Exception as e:
            _logger.debug(f"login status unavailable: {e}")

    def _on_login_success(self, data: dict[str, Any]) -> None:
        if not self.epic_enabled:
            return
        try:
            self._spawn(self._refresh_login_quietly())
        except RuntimeError:
            _logger.debug("login-success received without a running loop")

    async def _refresh_login_quietly(self) -> None:
        try:
            await self.refresh_login_status()
        except Exception as e:
            _logger.warning(f"login status refresh failed: {normalize_error_message(e)}")

    # ═══════════════════════════════════════════
    #  VERSION
    # ═══════════════════════════════════════════

    def select_version(self, tag: str) -> bool:
        try:
            self._require(tag, "release_tag", "version.tag_required")
        except InputError as e:
            self.session.error = e.message
            return False
        self.session.release_tag = tag
        self.session.error = None
        self._go(WizardStep.IMPORT)
        return True

    # ═══════════════════════════════════════════
    #  IMPORT OPTIONS
    # ═══════════════════════════════════════════

    def set_import_enabled(self, enabled: bool) -> None:
        self.session.import_enabled = enabled
        if not enabled:
            self.guard.invalidate(SAVE_DATA_PREVIEW)
            self.session.import_source_path = ""
            self.session.clear_import_preview()

    def set_migration_import_enabled(self, enabled: bool) -> None:
        self.password.set_enabled(enabled)

    def set_restore_save_data(self, enabled: bool) -> None:
        self.session.restore_save_data = enabled

    async def select_import_source(self, source_path: str) -> bool:
        """Preview importable save data at source_path.

        Returns:
            True when this (still current) preview succeeded
        """
        session = self.session
        ticket = self.guard.dispatch(SAVE_DATA_PREVIEW)
        session.import_source_path = source_path
        session.clear_import_preview()
        session.import_previewing = True

        try:
            preview = await self.backend.preview_save_data(source_path)
        except Exception as e:
            if not self.guard.is_current(SAVE_DATA_PREVIEW, ticket):
                return False
            session.import_preview_error = normalize_error_message(e)
            session.import_previewing = False
            return False

        if not self.guard.is_current(SAVE_DATA_PREVIEW, ticket):
            return False
        session.import_source_path = preview.source_path
        session.import_save_data_path = preview.save_data_path
        session.import_preview_presets = list(preview.presets)
        session.import_preview_file_count = preview.file_count
        session.import_previewing = False
        return True

    def select_archive(self, archive_path: str) -> None:
        self.password.select_archive(archive_path)

    def change_password(self, password: str) -> None:
        self.password.change_password(password)

    async def blur_password(self) -> bool:
        return await self.password.validate()

    def _save_data_ready(self) -> bool:
        session = self.session
        if not session.import_enabled:
            return True
        return (
            bool(session.import_save_data_path.strip())
            and session.import_preview_error is None
            and not session.import_previewing
        )

    async def import_next(self) -> bool:
        """Advance from import to confirm once every enabled import is ready."""
        if not self._save_data_ready():
            return False
        if not self.password.check_inputs():
            return False
        if not self.password.can_advance() and not await self.password.validate():
            return False
        self._go(WizardStep.CONFIRM)
        return True

    # ═══════════════════════════════════════════
    #  CONFIRM / INSTALL
    # ═══════════════════════════════════════════

    async def confirm_install(self) -> PipelineResult | None:
        """Run the install and import pipeline.

        Returns:
            The pipeline result on completion; None when rejected, when inputs
            were incomplete, or when the base install failed
        """
        try:
            with self.pipeline.exclusive():
                return await self._confirm_install()
        except InstallInProgressError:
            _logger.verbose("install already in progress; request ignored")
            return None

    async def _confirm_install(self) -> PipelineResult | None:
        session = self.session
        if session.platform is None or not session.install_path or not session.release_tag:
            return None

        if session.import_enabled and not session.import_source_path.strip():
            session.import_preview_error = self.t("import.not_configured")
            self._go(WizardStep.IMPORT)
            return None
        if not self.password.check_inputs():
            self._go(WizardStep.IMPORT)
            return None
        if self.password.active and not await self.password.validate():
            self._go(WizardStep.IMPORT)
            return None

        self._go(WizardStep.PROGRESS)
        try:
            result = await self.pipeline.execute()
        except FatalInstallError as e:
            session.error = e.message
            self._go(WizardStep.CONFIRM)
            return None
        except Exception as e:
            session.error = normalize_error_message(e)
            _logger.error(f"install run aborted: {session.error}")
            self._go(WizardStep.CONFIRM)
            return None

        self._go(WizardStep.COMPLETE)
        return result

    # ═══════════════════════════════════════════
    #  NAVIGATION / COMPLETION
    # ═══════════════════════════════════════════

    def back(self) -> bool:
        target = back_target(
            self.session.step,
            requires_login=requires_login(self.session.platform, self.epic_enabled),
        )
        if target is None:
            return False
        self._go(target)
        return True

    def restart(self) -> bool:
        """From complete, start over on welcome with a fresh session."""
        if self.session.step != WizardStep.COMPLETE:
            return False
        for class_id in (RELEASES, SAVE_DATA_PREVIEW, LOGIN_STATUS):
            self.guard.invalidate(class_id)
        self.password.reset()
        self.session.reset()
        self._go(WizardStep.WELCOME)
        return True

    async def create_shortcut(self) -> bool:
        emit_diagnostic(
            OPERATION_START, component=COMPONENT, operation="create_shortcut", data={}, bus=self.bus
        )
        try:
            await self.backend.create_shortcut()
        except Exception as e:
            self.session.error = normalize_error_message(e)
            ok = False
        else:
            ok = True
        emit_diagnostic(
            OPERATION_END,
            component=COMPONENT,
            operation="create_shortcut",
            data={"status": "succeeded" if ok else "failed"},
            bus=self.bus,
        )
        return ok

    async def change_locale(self, code: str) -> str:
        """Switch the message catalog; persisting it to settings is best-effort."""
        locale = self.t.set_locale(code)
        self.session.locale = locale
        try:
            await self.backend.apply_settings(SettingsUpdate(locale=locale))
        except Exception as e:
            _logger.debug(f"locale not persisted: {e}")
        return locale

    def close(self) -> None:
        """Dispose subscriptions, timers and background work."""
        for subscription in self._subscriptions:
            subscription.dispose()
        self._subscriptions.clear()
        self.transition.close()
        for task in list(self._tasks):
            task.cancel()
