"""Launcher control enablement."""

from installflow.controls.control_state import ControlState, compute_control_state
from installflow.controls.snapshot import AppSnapshot, LauncherSettings

__all__ = ["AppSnapshot", "ControlState", "LauncherSettings", "compute_control_state"]
