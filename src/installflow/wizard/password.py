"""Archive password validation state machine.

States: idle -> checking -> valid | invalid. Any edit to the archive path or
the password text forces idle and makes the in-flight check stale.
"""

from __future__ import annotations

from installflow.core.errors import ArchivePasswordError, BackendError, InputError
from installflow.core.logging import get_logger
from installflow.wizard.backend import InstallBackend
from installflow.wizard.messages import Translator
from installflow.wizard.session import InstallSession, PasswordValidationState
from installflow.wizard.tickets import PASSWORD_VALIDATION, RequestGuard

_logger = get_logger(__name__)

WRONG_PASSWORD_CODE = "wrong_password"

_STATIC_MARKERS = (
    "incorrect password",
    "invalid password",
    "failed to decrypt .snrdata",
    "password may be incorrect",
    "please provide a password",
)

_BLOCKING_STATES = frozenset(
    {
        PasswordValidationState.IDLE,
        PasswordValidationState.CHECKING,
        PasswordValidationState.INVALID,
    }
)


def wrong_password_markers(extension: str = "snrdata") -> tuple[str, ...]:
    ext = extension.strip().lstrip(".").lower()
    return (f"failed to decrypt .{ext}", *_STATIC_MARKERS)


def is_wrong_password_error(message: str, extension: str = "snrdata", code: str | None = None) -> bool:
    """Classify a validation failure.

    A structured backend code wins; only uncoded failures fall back to
    matching the backend's English message text.
    """
    if code:
        return code == WRONG_PASSWORD_CODE
    normalized = message.lower()
    return any(marker in normalized for marker in wrong_password_markers(extension))


class ArchivePasswordValidator:
    """Owns archive_path, archive_password, archive_error and password_validation."""

    def __init__(
        self,
        session: InstallSession,
        backend: InstallBackend,
        guard: RequestGuard,
        translator: Translator,
        *,
        extension: str = "snrdata",
        feature_enabled: bool = True,
    ) -> None:
        self._session = session
        self._backend = backend
        self._guard = guard
        self._t = translator
        self._extension = extension
        self._feature_enabled = feature_enabled

    @property
    def active(self) -> bool:
        return self._feature_enabled and self._session.migration_import_enabled

    @property
    def state(self) -> PasswordValidationState:
        return self._session.password_validation

    def _to_idle(self) -> None:
        self._guard.invalidate(PASSWORD_VALIDATION)
        self._session.password_validation = PasswordValidationState.IDLE

    def select_archive(self, archive_path: str) -> None:
        self._to_idle()
        self._session.archive_path = archive_path
        self._session.archive_error = None

    def change_password(self, password: str) -> None:
        self._to_idle()
        self._session.archive_password = password

    def set_enabled(self, enabled: bool) -> None:
        """Toggle migration import; disabling forgets archive inputs."""
        self._to_idle()
        self._session.migration_import_enabled = enabled
        if not enabled:
            self._session.archive_path = ""
            self._session.archive_password = ""
            self._session.archive_error = None

    def reset(self) -> None:
        self._to_idle()
        self._session.archive_error = None

    def require_inputs(self) -> None:
        """Raise InputError for the first missing archive input."""
        if not self._session.archive_path.strip():
            raise InputError("archive_path", self._t("import.archive_not_configured"))
        if not self._session.archive_password.strip():
            raise InputError("archive_password", self._t("import.archive_password_required"))

    def check_inputs(self) -> bool:
        """Local input check; never reaches the backend."""
        if not self.active:
            return True
        try:
            self.require_inputs()
        except InputError as e:
            self._session.archive_error = e.message
            return False
        return True

    def can_advance(self) -> bool:
        if not self.active:
            return True
        return self._session.password_validation not in _BLOCKING_STATES

    async def validate(self) -> bool:
        """Validate the current archive/password pair.

        Returns:
            True when the pair is valid (or migration import is off); False
            when invalid or when the result was superseded by a newer edit
        """
        if not self.active:
            return True

        session = self._session
        if not self.check_inputs():
            session.password_validation = PasswordValidationState.INVALID
            return False

        archive_path = session.archive_path.strip()
        password = session.archive_password.strip()
        ticket = self._guard.dispatch(PASSWORD_VALIDATION)
        session.archive_error = None
        session.password_validation = PasswordValidationState.CHECKING

        try:
            await self._backend.validate_archive_password(archive_path, password)
        except Exception as e:
            if not self._guard.is_current(PASSWORD_VALIDATION, ticket):
                return False
            error = self._classify(e)
            session.password_validation = PasswordValidationState.INVALID
            session.archive_error = str(error)
            _logger.verbose(f"archive password rejected ({error.kind}): {error.detail}")
            return False

        if not self._guard.is_current(PASSWORD_VALIDATION, ticket):
            return False
        session.password_validation = PasswordValidationState.VALID
        return True

    def _classify(self, error: Exception) -> ArchivePasswordError:
        detail = str(error)
        code = error.code if isinstance(error, BackendError) else None
        if is_wrong_password_error(detail, self._extension, code):
            return ArchivePasswordError(
                ArchivePasswordError.WRONG_PASSWORD,
                self._t("import.archive_password_invalid"),
                detail,
            )
        return ArchivePasswordError(
            ArchivePasswordError.VALIDATION_FAILED,
            self._t("import.archive_password_check_failed", error=detail),
            detail,
        )
