"""Launcher state snapshot consumed by the control-state computer."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any

from installflow.wizard.backend import PresetSummary

_CAMEL = re.compile(r"(?<!^)(?=[A-Z])")


def _snake(key: str) -> str:
    return _CAMEL.sub("_", key).lower()


def _normalize_keys(data: Mapping[str, Any]) -> dict[str, Any]:
    return {_snake(str(k)): v for k, v in data.items()}


def _preset(raw: Any) -> PresetSummary:
    if isinstance(raw, PresetSummary):
        return raw
    data = _normalize_keys(raw)
    return PresetSummary(
        id=int(data.get("id", 0)),
        name=str(data.get("name", "")),
        has_data_file=bool(data.get("has_data_file", False)),
    )


@dataclass(frozen=True)
class LauncherSettings:
    game_path: str = ""
    platform: str = "steam"
    release_tag: str = ""
    profile_path: str = ""
    close_to_tray_on_close: bool = False
    close_webview_on_tray_background: bool = False
    locale: str = "en"

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> LauncherSettings:
        """Accepts snake_case or camelCase keys.

        The launcher's legacy names (amongUsPath, gamePlatform,
        selectedReleaseTag, uiLocale) are understood too.
        """
        values = _normalize_keys(data)
        aliases = {
            "among_us_path": "game_path",
            "game_platform": "platform",
            "selected_release_tag": "release_tag",
            "ui_locale": "locale",
        }
        for old, new in aliases.items():
            if old in values and new not in values:
                values[new] = values.pop(old)
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in values.items() if k in known and v is not None})


@dataclass(frozen=True)
class AppSnapshot:
    """Everything control enablement depends on; nothing else."""

    settings: LauncherSettings | None = None
    profile_is_ready: bool = False
    game_running: bool = False

    install_in_progress: bool = False
    uninstall_in_progress: bool = False
    launch_in_progress: bool = False
    creating_shortcut: bool = False
    releases_loading: bool = False
    epic_logged_in: bool = False

    migration_exporting: bool = False
    migration_importing: bool = False
    preset_loading: bool = False
    preset_exporting: bool = False
    preset_inspecting: bool = False
    preset_importing: bool = False
    local_presets: tuple[PresetSummary, ...] = ()
    archive_presets: tuple[PresetSummary, ...] = ()

    reporting_ready: bool = False
    report_preparing: bool = False
    reporting_loading: bool = False
    report_messages_loading: bool = False
    report_sending: bool = False
    report_message_sending: bool = False
    selected_report_thread_id: str | None = None

    preserved_save_data_available: bool = False

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> AppSnapshot:
        """Build from a plain mapping (e.g. a YAML/JSON document).

        Unknown keys are ignored so full launcher state dumps can be fed in.
        """
        values = _normalize_keys(data)
        settings = values.get("settings")
        if settings is not None and not isinstance(settings, LauncherSettings):
            values["settings"] = LauncherSettings.from_mapping(settings)
        for key in ("local_presets", "archive_presets"):
            if key in values:
                values[key] = tuple(_preset(p) for p in values[key] or ())
        thread = values.get("selected_report_thread_id")
        if thread is not None:
            values["selected_report_thread_id"] = str(thread)

        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in values.items() if k in known})
