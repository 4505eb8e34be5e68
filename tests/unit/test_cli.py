"""Tests for the developer CLI."""

import installflow.core.logging as logging_module
from installflow.__main__ import main
from installflow.core.logging import VerbosityLevel, get_verbosity


def test_help(capsys):
    assert main([]) == 0
    assert "Usage:" in capsys.readouterr().out


def test_controls_command(tmp_path, capsys):
    snapshot = tmp_path / "snapshot.yaml"
    snapshot.write_text(
        "settings:\n"
        "  game_path: C:/Game\n"
        "  release_tag: v1.0.0\n"
        "  close_to_tray_on_close: true\n"
        "profile_is_ready: true\n",
        encoding="utf-8",
    )

    assert main(["controls", str(snapshot)]) == 0
    out = capsys.readouterr().out
    assert "enabled   launch_vanilla_button_disabled" in out
    assert "disabled  install_restore_save_data_checkbox_disabled" in out


def test_controls_missing_file(tmp_path):
    assert main(["controls", str(tmp_path / "none.yaml")]) == 1


def test_stages_command(capsys):
    code = main(
        ["stages", "--set", "import_enabled", "--set", "migration_import_enabled", "--fail", "migration_import"]
    )
    assert code == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines == [
        "succeeded  save_data_import",
        "skipped    migration_import",
        "not_run    save_data_preset_merge",
        "not_run    preserved_save_data_preset_merge",
    ]


def test_stages_unknown_flag():
    assert main(["stages", "--set", "sunny"]) == 2


def test_verbosity_flag_anywhere(capsys):
    assert main(["version", "-d"]) == 0
    assert get_verbosity() == VerbosityLevel.DEBUG
    assert capsys.readouterr().out.strip() == "0.1.0"


def test_unknown_command():
    assert main(["frobnicate"]) == 2


def test_color_setting_is_honoured(monkeypatch):
    monkeypatch.setenv("INSTALLFLOW_LOGGING_COLOR", "false")
    assert main(["version"]) == 0
    assert logging_module._USE_COLORS is False


def test_invalid_color_setting_fails(monkeypatch):
    monkeypatch.setenv("INSTALLFLOW_LOGGING_COLOR", "sometimes")
    assert main(["version"]) == 1
