"""Contract of the backend collaborator.

The workflow only relies on these result-bearing operations. Every method
either returns its typed result or raises; the raised error's string is what
the user sees. :class:`~installflow.core.errors.BackendError` may carry a
structured ``code``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from installflow.wizard.platforms import Platform, PlatformCandidate


@dataclass(frozen=True)
class Release:
    tag: str
    name: str
    published_at: str


@dataclass(frozen=True)
class PresetSummary:
    id: int
    name: str
    has_data_file: bool


@dataclass(frozen=True)
class SaveDataPreview:
    source_path: str
    save_data_path: str
    presets: tuple[PresetSummary, ...]
    file_count: int


@dataclass(frozen=True)
class PreservedSaveDataStatus:
    available: bool
    files: int

    @property
    def usable(self) -> bool:
        return self.available and self.files > 0


@dataclass(frozen=True)
class LoginStatus:
    logged_in: bool
    account_id: str | None = None
    display_name: str | None = None

    @property
    def user_display(self) -> str | None:
        for value in (self.display_name, self.account_id):
            if value and value.strip():
                return value.strip()
        return None


@dataclass(frozen=True)
class SettingsUpdate:
    install_path: str | None = None
    platform: Platform | None = None
    release_tag: str | None = None
    locale: str | None = None


class InstallBackend(Protocol):
    """Operations the orchestrator calls on the backend."""

    async def detect_platforms(self) -> list[PlatformCandidate]: ...

    async def detect_platform(self, path: str) -> Platform: ...

    async def list_releases(self) -> list[Release]: ...

    async def apply_settings(self, update: SettingsUpdate) -> None: ...

    async def install(self, *, tag: str, platform: Platform, restore_preserved: bool) -> object: ...

    async def preserved_save_data_status(self) -> PreservedSaveDataStatus: ...

    async def preview_save_data(self, source_path: str) -> SaveDataPreview: ...

    async def import_save_data(self, source_path: str) -> object: ...

    async def validate_archive_password(self, archive_path: str, password: str) -> object: ...

    async def import_migration_archive(self, archive_path: str, password: str) -> object: ...

    async def merge_save_data_presets(self, source_path: str) -> object: ...

    async def merge_preserved_presets(self) -> object: ...

    async def create_shortcut(self) -> object: ...

    async def login_status(self) -> LoginStatus: ...

    async def restore_login_session(self) -> object: ...
