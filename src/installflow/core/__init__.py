"""installflow core: errors, logging, events, configuration, diagnostics."""

from installflow.core.config import ConfigResolver, ConfigSource, WizardConfig
from installflow.core.errors import (
    ArchivePasswordError,
    BackendError,
    ConfigError,
    FatalInstallError,
    InputError,
    InstallFlowError,
    InstallInProgressError,
    PipelineError,
)
from installflow.core.events import EventBus, get_event_bus
from installflow.core.logging import VerbosityLevel, get_logger, get_verbosity, set_verbosity
from installflow.core.subscription import Subscription

__all__ = [
    # Config
    "ConfigResolver",
    "ConfigSource",
    "WizardConfig",
    # Errors
    "InstallFlowError",
    "ConfigError",
    "PipelineError",
    "InputError",
    "BackendError",
    "ArchivePasswordError",
    "FatalInstallError",
    "InstallInProgressError",
    # Events
    "EventBus",
    "get_event_bus",
    "Subscription",
    # Logging
    "VerbosityLevel",
    "get_logger",
    "get_verbosity",
    "set_verbosity",
]
