"""installflow - guided install and migration workflow core."""

__version__ = "0.1.0"

from installflow.controls import AppSnapshot, ControlState, compute_control_state
from installflow.core import InstallFlowError, WizardConfig
from installflow.wizard import InstallSession, InstallWizard, WizardStep

__all__ = [
    "__version__",
    "AppSnapshot",
    "ControlState",
    "InstallFlowError",
    "InstallSession",
    "InstallWizard",
    "WizardConfig",
    "WizardStep",
    "compute_control_state",
]
