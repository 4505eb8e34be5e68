"""Centralized logging for installflow.

Four verbosity levels:
- QUIET (0): Warnings + errors
- NORMAL (1): Info + warnings + errors
- VERBOSE (2): Step transitions and stage details
- DEBUG (3): Everything, including ticket bookkeeping

Usage:
    from installflow.core.logging import get_logger, set_verbosity

    logger = get_logger(__name__)
    set_verbosity(2)  # VERBOSE

    logger.verbose("transition platform -> version")
    logger.warning("stage skipped")

Every emitted line is also published on the LogBus so a presentation layer
can stream it.
"""

from __future__ import annotations

import sys
from enum import IntEnum

from installflow.core.log_bus import LogRecord, get_log_bus


class VerbosityLevel(IntEnum):
    """Verbosity levels."""

    QUIET = 0  # Warnings + errors
    NORMAL = 1  # Info + warnings + errors
    VERBOSE = 2  # Detailed info
    DEBUG = 3  # Everything


LEVEL_NAMES: dict[str, VerbosityLevel] = {
    "quiet": VerbosityLevel.QUIET,
    "normal": VerbosityLevel.NORMAL,
    "verbose": VerbosityLevel.VERBOSE,
    "debug": VerbosityLevel.DEBUG,
}

_VERBOSITY: VerbosityLevel = VerbosityLevel.NORMAL
_USE_COLORS: bool = True
_CONSOLE: bool = True


def set_verbosity(level: int | str | VerbosityLevel) -> None:
    """Set global verbosity level.

    Args:
        level: 0-3, a VerbosityLevel, or a level name (quiet|normal|verbose|debug)
    """
    global _VERBOSITY

    if isinstance(level, str):
        try:
            level = LEVEL_NAMES[level.strip().lower()]
        except KeyError:
            raise ValueError(f"Unknown verbosity level: {level!r}") from None
    _VERBOSITY = VerbosityLevel(level)


def get_verbosity() -> VerbosityLevel:
    return _VERBOSITY


def set_colors(enabled: bool) -> None:
    global _USE_COLORS
    _USE_COLORS = enabled


def set_console_output(enabled: bool) -> None:
    """Enable or disable printing; records still reach the LogBus."""
    global _CONSOLE
    _CONSOLE = enabled


class InstallFlowLogger:
    """Logger with verbosity support."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "VERBOSE": "\033[34m",  # Blue
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "RESET": "\033[0m",
    }

    def __init__(self, name: str):
        self.name = name

    def _format_message(self, level_name: str, message: str) -> str:
        if _USE_COLORS and sys.stdout.isatty():
            color = self.COLORS.get(level_name, "")
            reset = self.COLORS["RESET"]
            return f"{color}[{level_name.lower()}]{reset} {message}"
        return f"[{level_name.lower()}] {message}"

    def _log(self, level: VerbosityLevel, level_name: str, message: str) -> None:
        # ERROR is always emitted
        if level_name != "ERROR" and level > _VERBOSITY:
            return

        plain = f"[{level_name.lower()}] {message}"
        get_log_bus().publish(LogRecord(level_name=level_name, plain=plain, logger_name=self.name))

        if _CONSOLE:
            stream = sys.stderr if level_name in ("ERROR", "WARNING") else sys.stdout
            print(self._format_message(level_name, message), file=stream)

    def debug(self, message: str) -> None:
        self._log(VerbosityLevel.DEBUG, "DEBUG", message)

    def verbose(self, message: str) -> None:
        self._log(VerbosityLevel.VERBOSE, "VERBOSE", message)

    def info(self, message: str) -> None:
        self._log(VerbosityLevel.NORMAL, "INFO", message)

    def warning(self, message: str) -> None:
        self._log(VerbosityLevel.QUIET, "WARNING", message)

    def error(self, message: str) -> None:
        self._log(VerbosityLevel.QUIET, "ERROR", message)


_LOGGERS: dict[str, InstallFlowLogger] = {}


def get_logger(name: str = __name__) -> InstallFlowLogger:
    """Get logger instance for module.

    Args:
        name: Logger name (usually __name__)
    """
    if name not in _LOGGERS:
        _LOGGERS[name] = InstallFlowLogger(name)
    return _LOGGERS[name]
