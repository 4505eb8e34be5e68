"""Pure derivation of control enablement from an :class:`AppSnapshot`.

Every field of :class:`ControlState` is a boolean expression over the
snapshot alone: no hidden state, no I/O.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass

from installflow.controls.snapshot import AppSnapshot


@dataclass(frozen=True)
class ControlState:
    install_button_disabled: bool
    install_restore_save_data_checkbox_disabled: bool
    uninstall_button_disabled: bool
    uninstall_preserve_save_data_checkbox_disabled: bool
    launch_modded_button_disabled: bool
    launch_vanilla_button_disabled: bool
    create_modded_shortcut_button_disabled: bool
    epic_login_webview_button_disabled: bool
    epic_login_code_button_disabled: bool
    epic_logout_button_disabled: bool
    detect_game_path_button_disabled: bool
    save_game_path_button_disabled: bool
    refresh_releases_button_disabled: bool
    release_select_disabled: bool
    platform_select_disabled: bool
    open_game_folder_button_disabled: bool
    open_profile_folder_button_disabled: bool
    close_to_tray_on_close_input_disabled: bool
    close_webview_on_tray_background_input_disabled: bool
    migration_export_button_disabled: bool
    migration_import_button_disabled: bool
    migration_import_path_input_disabled: bool
    migration_encryption_enabled_input_disabled: bool
    migration_export_password_input_disabled: bool
    migration_import_password_input_disabled: bool
    preset_refresh_button_disabled: bool
    preset_select_all_local_button_disabled: bool
    preset_clear_local_button_disabled: bool
    preset_export_path_input_disabled: bool
    preset_export_button_disabled: bool
    preset_import_path_input_disabled: bool
    preset_inspect_button_disabled: bool
    preset_select_all_archive_button_disabled: bool
    preset_clear_archive_button_disabled: bool
    preset_import_button_disabled: bool
    report_refresh_button_disabled: bool
    report_notification_toggle_disabled: bool
    report_type_select_disabled: bool
    report_title_input_disabled: bool
    report_description_input_disabled: bool
    report_map_input_disabled: bool
    report_role_input_disabled: bool
    report_timing_input_disabled: bool
    report_send_button_disabled: bool
    report_reply_input_disabled: bool
    report_send_message_button_disabled: bool

    def to_dict(self) -> dict[str, bool]:
        return asdict(self)

    def disabled(self) -> list[str]:
        """Names of the disabled controls, in declaration order."""
        return [name for name, value in asdict(self).items() if value]


def compute_control_state(state: AppSnapshot) -> ControlState:
    settings = state.settings
    has_settings = settings is not None
    has_game_path = bool(settings and settings.game_path.strip())
    has_profile_path = bool(settings and settings.profile_path.strip())
    has_tag = bool(settings and settings.release_tag.strip())
    close_to_tray = bool(settings and settings.close_to_tray_on_close)

    migration_busy = state.migration_exporting or state.migration_importing
    preset_busy = (
        state.preset_loading
        or state.preset_exporting
        or state.preset_inspecting
        or state.preset_importing
    )
    transfer_busy = migration_busy or preset_busy
    shortcut_busy = state.creating_shortcut
    setup_busy = state.install_in_progress or state.uninstall_in_progress
    launching = state.launch_in_progress

    launch_available = (
        has_settings
        and has_game_path
        and not launching
        and not state.game_running
        and not setup_busy
        and not transfer_busy
        and not shortcut_busy
    )

    # Launching, setup and transfers all lock the same set of inputs.
    locked = launching or setup_busy or transfer_busy
    migration_locked = transfer_busy or setup_busy or launching or state.game_running
    preset_locked = migration_locked or not has_settings
    no_local_presets = len(state.local_presets) == 0
    no_archive_presets = len(state.archive_presets) == 0
    has_importable_archive_preset = any(p.has_data_file for p in state.archive_presets)

    report_form_locked = not state.reporting_ready or state.report_preparing or state.report_sending
    reply_locked = (
        not state.reporting_ready
        or not state.selected_report_thread_id
        or state.report_message_sending
    )

    return ControlState(
        install_button_disabled=(
            not has_settings or not has_tag or setup_busy or state.releases_loading or transfer_busy
        ),
        install_restore_save_data_checkbox_disabled=(
            setup_busy
            or state.releases_loading
            or transfer_busy
            or not state.preserved_save_data_available
        ),
        uninstall_button_disabled=(
            not has_settings
            or setup_busy
            or launching
            or state.game_running
            or transfer_busy
            or shortcut_busy
        ),
        uninstall_preserve_save_data_checkbox_disabled=(
            setup_busy or launching or state.game_running or transfer_busy or shortcut_busy
        ),
        launch_modded_button_disabled=not launch_available or not state.profile_is_ready,
        launch_vanilla_button_disabled=not launch_available,
        create_modded_shortcut_button_disabled=(
            not has_settings
            or not has_game_path
            or shortcut_busy
            or launching
            or setup_busy
            or transfer_busy
        ),
        epic_login_webview_button_disabled=locked,
        epic_login_code_button_disabled=locked,
        epic_logout_button_disabled=not state.epic_logged_in or locked,
        detect_game_path_button_disabled=locked,
        save_game_path_button_disabled=locked,
        refresh_releases_button_disabled=state.releases_loading or setup_busy or transfer_busy,
        release_select_disabled=state.releases_loading or setup_busy or transfer_busy,
        platform_select_disabled=setup_busy or transfer_busy,
        open_game_folder_button_disabled=not has_game_path or locked,
        open_profile_folder_button_disabled=not has_profile_path or locked,
        close_to_tray_on_close_input_disabled=locked,
        close_webview_on_tray_background_input_disabled=locked or not close_to_tray,
        migration_export_button_disabled=not has_settings or migration_locked,
        migration_import_button_disabled=migration_locked,
        migration_import_path_input_disabled=migration_locked,
        migration_encryption_enabled_input_disabled=migration_locked,
        migration_export_password_input_disabled=migration_locked,
        migration_import_password_input_disabled=migration_locked,
        preset_refresh_button_disabled=preset_locked,
        preset_select_all_local_button_disabled=preset_locked or no_local_presets,
        preset_clear_local_button_disabled=preset_locked or no_local_presets,
        preset_export_path_input_disabled=preset_locked,
        preset_export_button_disabled=preset_locked or no_local_presets,
        preset_import_path_input_disabled=preset_locked,
        preset_inspect_button_disabled=preset_locked,
        preset_select_all_archive_button_disabled=(
            preset_locked or no_archive_presets or not has_importable_archive_preset
        ),
        preset_clear_archive_button_disabled=preset_locked or no_archive_presets,
        preset_import_button_disabled=preset_locked or not has_importable_archive_preset,
        report_refresh_button_disabled=(
            state.report_preparing or state.reporting_loading or state.report_messages_loading
        ),
        report_notification_toggle_disabled=state.report_preparing or state.report_sending,
        report_type_select_disabled=report_form_locked,
        report_title_input_disabled=report_form_locked,
        report_description_input_disabled=report_form_locked,
        report_map_input_disabled=report_form_locked,
        report_role_input_disabled=report_form_locked,
        report_timing_input_disabled=report_form_locked,
        report_send_button_disabled=report_form_locked,
        report_reply_input_disabled=reply_locked,
        report_send_message_button_disabled=reply_locked,
    )
