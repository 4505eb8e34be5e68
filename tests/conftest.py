"""Pytest configuration and fixtures."""

import asyncio
import sys
from collections import defaultdict, deque
from pathlib import Path
from typing import Any

import pytest

# Add src to path so the tests run without an editable install
repo_root = Path(__file__).parent.parent
sys.path.insert(0, str(repo_root / "src"))

from installflow.core.config import WizardConfig  # noqa: E402
from installflow.core.events import EventBus  # noqa: E402
from installflow.core.log_bus import get_log_bus  # noqa: E402
from installflow.core.logging import (  # noqa: E402
    VerbosityLevel,
    set_colors,
    set_console_output,
    set_verbosity,
)
from installflow.wizard.backend import (  # noqa: E402
    LoginStatus,
    PresetSummary,
    PreservedSaveDataStatus,
    Release,
    SaveDataPreview,
)
from installflow.wizard.messages import MessageCatalog  # noqa: E402
from installflow.wizard.platforms import Platform, PlatformCandidate  # noqa: E402


class FakeBackend:
    """Scriptable backend double.

    Results and failures are taken when a call starts; a gate (if any) is
    awaited afterwards, so a gated call can finish after a later one.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.platforms: list[Any] = [
            {"path": "D:/Epic/Game", "platform": "epic"},
            {"path": "C:/Steam/Game", "platform": "steam"},
        ]
        self.manual_platform = Platform.STEAM
        self.releases = [
            Release("v2.0.0", "Release 2.0.0", "2026-01-02T00:00:00Z"),
            Release("v1.0.0", "Release 1.0.0", "2025-12-01T00:00:00Z"),
        ]
        self.preserved = PreservedSaveDataStatus(available=False, files=0)
        self.login = LoginStatus(logged_in=False)
        self.previews: dict[str, SaveDataPreview] = {}
        self.bus: EventBus | None = None
        self.progress_events: list[dict[str, Any]] = []

        self._failures: dict[str, deque[BaseException]] = defaultdict(deque)
        self._results: dict[str, deque[Any]] = defaultdict(deque)
        self._gates: dict[str, deque[asyncio.Event]] = defaultdict(deque)

    # Scripting helpers

    def fail(self, name: str, *errors: BaseException) -> None:
        self._failures[name].extend(errors)

    def respond(self, name: str, *results: Any) -> None:
        self._results[name].extend(results)

    def gate(self, name: str) -> asyncio.Event:
        event = asyncio.Event()
        self._gates[name].append(event)
        return event

    def count(self, name: str) -> int:
        return sum(1 for call, _args in self.calls if call == name)

    def names(self) -> list[str]:
        return [call for call, _args in self.calls]

    async def _call(self, name: str, *args: Any, default: Any = None) -> Any:
        self.calls.append((name, args))
        failure = self._failures[name].popleft() if self._failures[name] else None
        result = self._results[name].popleft() if self._results[name] else default
        if self._gates[name]:
            await self._gates[name].popleft().wait()
        if failure is not None:
            raise failure
        return result

    # InstallBackend

    async def detect_platforms(self):
        return await self._call("detect_platforms", default=list(self.platforms))

    async def detect_platform(self, path):
        return await self._call("detect_platform", path, default=self.manual_platform)

    async def list_releases(self):
        return await self._call("list_releases", default=list(self.releases))

    async def apply_settings(self, update):
        return await self._call("apply_settings", update)

    async def install(self, *, tag, platform, restore_preserved):
        if self.bus is not None:
            for payload in self.progress_events:
                self.bus.publish("install-progress", payload)
        return await self._call("install", tag, platform, restore_preserved)

    async def preserved_save_data_status(self):
        return await self._call("preserved_save_data_status", default=self.preserved)

    async def preview_save_data(self, source_path):
        default = self.previews.get(source_path) or SaveDataPreview(
            source_path=source_path,
            save_data_path=f"{source_path}/SaveData",
            presets=(PresetSummary(1, "Default", True),),
            file_count=3,
        )
        return await self._call("preview_save_data", source_path, default=default)

    async def import_save_data(self, source_path):
        return await self._call("import_save_data", source_path)

    async def validate_archive_password(self, archive_path, password):
        return await self._call("validate_archive_password", archive_path, password)

    async def import_migration_archive(self, archive_path, password):
        return await self._call("import_migration_archive", archive_path, password)

    async def merge_save_data_presets(self, source_path):
        return await self._call("merge_save_data_presets", source_path)

    async def merge_preserved_presets(self):
        return await self._call("merge_preserved_presets")

    async def create_shortcut(self):
        return await self._call("create_shortcut")

    async def login_status(self):
        return await self._call("login_status", default=self.login)

    async def restore_login_session(self):
        return await self._call("restore_login_session")


class ScriptedConfirmer:
    """Answers retry prompts from a script; records every prompt shown."""

    def __init__(self, *answers: bool, is_async: bool = False) -> None:
        self.answers = deque(answers)
        self.prompts: list[str] = []
        self.is_async = is_async

    def _answer(self, message: str) -> bool:
        self.prompts.append(message)
        if not self.answers:
            raise AssertionError(f"unexpected prompt: {message}")
        return self.answers.popleft()

    def __call__(self, message: str):
        if self.is_async:
            return self._answer_later(message)
        return self._answer(message)

    async def _answer_later(self, message: str) -> bool:
        await asyncio.sleep(0)
        return self._answer(message)


class ManualHandle:
    def __init__(self, scheduler: "ManualScheduler", delay: float, callback) -> None:
        self.scheduler = scheduler
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Timer factory that only fires when told to."""

    def __init__(self) -> None:
        self.handles: list[ManualHandle] = []

    def __call__(self, delay, callback) -> ManualHandle:
        handle = ManualHandle(self, delay, callback)
        self.handles.append(handle)
        return handle

    @property
    def pending(self) -> list[ManualHandle]:
        return [h for h in self.handles if not h.cancelled]

    def fire_all(self) -> int:
        fired = 0
        for handle in list(self.handles):
            if not handle.cancelled:
                handle.cancelled = True
                handle.callback()
                fired += 1
        return fired


@pytest.fixture(autouse=True)
def _quiet_logging():
    """Keep console output off and the LogBus clean between tests."""
    set_console_output(False)
    set_verbosity(VerbosityLevel.NORMAL)
    get_log_bus().clear()
    yield
    get_log_bus().clear()
    set_verbosity(VerbosityLevel.NORMAL)
    set_console_output(True)
    set_colors(True)


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def backend(bus):
    fake = FakeBackend()
    fake.bus = bus
    return fake


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def catalog():
    return MessageCatalog.load()


@pytest.fixture
def config():
    return WizardConfig()


@pytest.fixture
def steam_candidate():
    return PlatformCandidate(path="C:/Steam/Game", platform=Platform.STEAM)


@pytest.fixture
def make_confirmer():
    return ScriptedConfirmer
