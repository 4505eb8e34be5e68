"""Error handling with friendly messages."""

from __future__ import annotations


class InstallFlowError(Exception):
    """Base exception for all installflow errors."""

    def __init__(self, message: str, suggestion: str | None = None) -> None:
        self.message = message
        self.suggestion = suggestion
        super().__init__(message)

    def __str__(self) -> str:
        if self.suggestion:
            return f"{self.message}\nSuggestion: {self.suggestion}"
        return self.message


class ConfigError(InstallFlowError):
    """Configuration error."""

    pass


class PipelineError(InstallFlowError):
    """Invalid import stage plan."""

    pass


class InputError(InstallFlowError):
    """Required user input is missing.

    Detected locally before anything is sent to the backend.
    """

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(message)


class BackendError(InstallFlowError):
    """Failure reported by the backend collaborator.

    Args:
        message: Error description as reported by the backend
        code: Optional structured error code (e.g. "wrong_password")
    """

    def __init__(self, message: str, code: str | None = None) -> None:
        self.code = code
        super().__init__(message)


class ArchivePasswordError(InstallFlowError):
    """Archive password validation failed."""

    WRONG_PASSWORD = "wrong_password"
    VALIDATION_FAILED = "validation_failed"

    def __init__(self, kind: str, message: str, detail: str = "") -> None:
        self.kind = kind
        self.detail = detail
        super().__init__(message)

    @property
    def is_wrong_password(self) -> bool:
        return self.kind == self.WRONG_PASSWORD


class FatalInstallError(InstallFlowError):
    """The base settings/install call failed; the import pipeline is aborted."""

    pass


class InstallInProgressError(InstallFlowError):
    """An install run is already outstanding."""

    def __init__(self) -> None:
        super().__init__(
            "An installation is already in progress",
            "Wait for the current installation to finish",
        )
