"""The single mutable aggregate for one wizard run.

Field ownership (single writer per group):
- step: InstallWizard
- releases*: InstallWizard (release refresh, ticket-guarded)
- import preview fields: InstallWizard (preview, ticket-guarded)
- archive_*, password_validation: ArchivePasswordValidator
- progress, progress_message: ProgressAggregator
- install_in_progress, skip bookkeeping: ImportPipeline
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from enum import StrEnum
from typing import Any

from installflow.wizard.backend import PresetSummary, Release
from installflow.wizard.platforms import Platform, PlatformCandidate
from installflow.wizard.steps import WizardStep

SKIP_REASON_SEPARATOR = " / "


class PasswordValidationState(StrEnum):
    IDLE = "idle"
    CHECKING = "checking"
    VALID = "valid"
    INVALID = "invalid"


@dataclass
class InstallSession:
    step: WizardStep = WizardStep.WELCOME

    # ═══════════════════════════════════════════
    #  TARGET
    # ═══════════════════════════════════════════

    platform: Platform | None = None
    install_path: str = ""
    release_tag: str = ""
    detected_platforms: list[PlatformCandidate] = field(default_factory=list)

    releases: list[Release] = field(default_factory=list)
    releases_loading: bool = False
    releases_error: str | None = None

    preserved_save_data_available: bool = False
    restore_save_data: bool = True

    # ═══════════════════════════════════════════
    #  IMPORT OPTIONS
    # ═══════════════════════════════════════════

    import_enabled: bool = False
    migration_import_enabled: bool = False

    import_source_path: str = ""
    import_save_data_path: str = ""
    import_preview_presets: list[PresetSummary] = field(default_factory=list)
    import_preview_file_count: int = 0
    import_preview_error: str | None = None
    import_previewing: bool = False

    archive_path: str = ""
    archive_password: str = ""
    archive_error: str | None = None
    password_validation: PasswordValidationState = PasswordValidationState.IDLE

    # ═══════════════════════════════════════════
    #  RUN STATE
    # ═══════════════════════════════════════════

    install_in_progress: bool = False
    progress: float = 0.0
    progress_message: str = ""
    import_skipped_after_failure: bool = False
    skip_reason: str | None = None
    error: str | None = None

    # ═══════════════════════════════════════════
    #  LOGIN / LOCALE
    # ═══════════════════════════════════════════

    epic_logged_in: bool = False
    epic_user_display: str | None = None
    locale: str = "en"

    def clear_import_preview(self) -> None:
        self.import_save_data_path = ""
        self.import_preview_presets = []
        self.import_preview_file_count = 0
        self.import_preview_error = None
        self.import_previewing = False

    def reset_import_state(self) -> None:
        """Forget every import choice.

        Callers must also invalidate outstanding password validations.
        """
        self.import_enabled = False
        self.migration_import_enabled = False
        self.import_source_path = ""
        self.clear_import_preview()
        self.archive_path = ""
        self.archive_password = ""
        self.archive_error = None
        self.password_validation = PasswordValidationState.IDLE
        self.clear_skip()

    def clear_skip(self) -> None:
        self.import_skipped_after_failure = False
        self.skip_reason = None

    def mark_import_skipped(self, reason: str) -> None:
        self.import_skipped_after_failure = True
        if self.skip_reason:
            self.skip_reason = f"{self.skip_reason}{SKIP_REASON_SEPARATOR}{reason}"
        else:
            self.skip_reason = reason

    def reset(self) -> None:
        """Restore every field to its initial value (locale is kept)."""
        locale = self.locale
        fresh = InstallSession()
        for f in fields(self):
            setattr(self, f.name, getattr(fresh, f.name))
        self.locale = locale

    @property
    def has_import_preview(self) -> bool:
        return bool(self.import_save_data_path.strip())

    def flags(self) -> dict[str, bool]:
        """Boolean predicates the import stage plan can refer to."""
        return {
            "import_enabled": self.import_enabled,
            "migration_import_enabled": self.migration_import_enabled,
            "preserved_save_data_available": self.preserved_save_data_available,
            "restore_save_data": self.restore_save_data,
        }

    def to_dict(self) -> dict[str, Any]:
        """Plain, serializable snapshot of the session."""
        data = asdict(self)
        data["step"] = self.step.value
        data["platform"] = self.platform.value if self.platform else None
        data["password_validation"] = self.password_validation.value
        for candidate in data["detected_platforms"]:
            candidate["platform"] = str(candidate["platform"])
        return data
