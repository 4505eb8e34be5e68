"""Tests for compute_control_state."""

from dataclasses import fields, replace

import pytest

from installflow.controls import AppSnapshot, ControlState, LauncherSettings, compute_control_state
from installflow.wizard.backend import PresetSummary


def _settings(**overrides):
    base = LauncherSettings(
        game_path="C:/Game",
        platform="steam",
        release_tag="v1.0.0",
        profile_path="C:/profile",
        close_to_tray_on_close=True,
        close_webview_on_tray_background=True,
        locale="ja",
    )
    return replace(base, **overrides)


def test_has_46_controls():
    assert len(fields(ControlState)) == 46


def test_no_settings_disables_main_operations():
    state = compute_control_state(AppSnapshot())

    assert state.install_button_disabled
    assert state.launch_vanilla_button_disabled
    assert state.launch_modded_button_disabled
    assert state.migration_export_button_disabled


def test_ready_snapshot_enables_launch():
    state = compute_control_state(AppSnapshot(settings=_settings(), profile_is_ready=True))

    assert not state.launch_vanilla_button_disabled
    assert not state.launch_modded_button_disabled
    assert not state.install_button_disabled
    assert not state.close_webview_on_tray_background_input_disabled


@pytest.mark.parametrize("close_to_tray", [True, False])
def test_webview_toggle_follows_close_to_tray(close_to_tray):
    snapshot = AppSnapshot(
        settings=_settings(close_to_tray_on_close=close_to_tray), profile_is_ready=True
    )
    state = compute_control_state(snapshot)
    assert state.close_webview_on_tray_background_input_disabled is (not close_to_tray)


def test_game_running_disables_launch():
    snapshot = AppSnapshot(settings=_settings(), profile_is_ready=True, game_running=True)
    state = compute_control_state(snapshot)
    assert state.launch_vanilla_button_disabled
    assert state.launch_modded_button_disabled


def test_modded_launch_needs_profile():
    state = compute_control_state(AppSnapshot(settings=_settings(), profile_is_ready=False))
    assert state.launch_modded_button_disabled
    assert not state.launch_vanilla_button_disabled


def test_archive_without_importable_preset_disables_import():
    snapshot = AppSnapshot(
        settings=_settings(), archive_presets=(PresetSummary(1, "x", has_data_file=False),)
    )
    state = compute_control_state(snapshot)

    assert state.preset_import_button_disabled
    assert state.preset_select_all_archive_button_disabled
    assert not state.preset_clear_archive_button_disabled


@pytest.mark.parametrize(
    "busy",
    [
        "install_in_progress",
        "uninstall_in_progress",
        "migration_exporting",
        "migration_importing",
        "preset_loading",
        "preset_exporting",
        "preset_inspecting",
        "preset_importing",
    ],
)
def test_busy_flags_block_install_and_launch(busy):
    snapshot = replace(AppSnapshot(settings=_settings(), profile_is_ready=True), **{busy: True})
    state = compute_control_state(snapshot)

    assert state.install_button_disabled
    assert state.launch_vanilla_button_disabled
    assert state.platform_select_disabled


def test_restore_checkbox_needs_preserved_data():
    base = AppSnapshot(settings=_settings())
    assert compute_control_state(base).install_restore_save_data_checkbox_disabled
    with_data = replace(base, preserved_save_data_available=True)
    assert not compute_control_state(with_data).install_restore_save_data_checkbox_disabled


def test_reporting_controls():
    base = AppSnapshot(settings=_settings(), reporting_ready=True)
    state = compute_control_state(base)
    assert not state.report_send_button_disabled
    assert state.report_reply_input_disabled

    threaded = compute_control_state(replace(base, selected_report_thread_id="t1"))
    assert not threaded.report_reply_input_disabled
    assert not threaded.report_send_message_button_disabled


def test_deterministic_for_equal_snapshots():
    a = AppSnapshot(settings=_settings(), local_presets=(PresetSummary(1, "a", True),))
    b = AppSnapshot(settings=_settings(), local_presets=(PresetSummary(1, "a", True),))
    assert a == b
    assert compute_control_state(a) == compute_control_state(b)


def test_from_mapping_accepts_launcher_dump():
    snapshot = AppSnapshot.from_mapping(
        {
            "settings": {
                "amongUsPath": "C:/Game",
                "gamePlatform": "steam",
                "selectedReleaseTag": "v1.0.0",
                "selectedGameServerId": "main",
                "profilePath": "C:/profile",
                "closeToTrayOnClose": False,
                "uiLocale": "ja",
            },
            "profileIsReady": True,
            "archivePresets": [{"id": 1, "name": "x", "hasDataFile": True}],
            "reportThreads": [],
        }
    )

    assert snapshot.settings.game_path == "C:/Game"
    assert snapshot.settings.release_tag == "v1.0.0"
    assert snapshot.profile_is_ready
    assert snapshot.archive_presets == (PresetSummary(1, "x", True),)
    assert not compute_control_state(snapshot).preset_import_button_disabled


def test_disabled_lists_names():
    state = compute_control_state(AppSnapshot())
    assert "install_button_disabled" in state.disabled()
    assert set(state.disabled()) <= set(state.to_dict())
