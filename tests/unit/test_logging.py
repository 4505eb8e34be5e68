"""Tests for the verbosity logger and LogBus."""

import pytest

from installflow.core.log_bus import LogBus, LogRecord, get_log_bus
from installflow.core.logging import (
    VerbosityLevel,
    get_logger,
    get_verbosity,
    set_console_output,
    set_verbosity,
)


def _capture():
    records = []
    sub = get_log_bus().subscribe(records.append)
    return records, sub


def test_normal_hides_verbose_and_debug():
    records, sub = _capture()
    log = get_logger("test.normal")

    log.debug("d")
    log.verbose("v")
    log.info("i")
    log.warning("w")
    sub.dispose()

    assert [r.level_name for r in records] == ["INFO", "WARNING"]
    assert records[0].plain == "[info] i"
    assert records[0].logger_name == "test.normal"


def test_quiet_still_emits_errors():
    set_verbosity("quiet")
    records, sub = _capture()
    log = get_logger("test.quiet")

    log.info("i")
    log.error("e")
    sub.dispose()

    assert [r.level_name for r in records] == ["ERROR"]


def test_debug_emits_everything():
    set_verbosity(VerbosityLevel.DEBUG)
    records, sub = _capture()
    get_logger("test.debug").debug("ticket")
    sub.dispose()
    assert records[0].level_name == "DEBUG"


def test_set_verbosity_by_name_and_number():
    set_verbosity("Verbose")
    assert get_verbosity() == VerbosityLevel.VERBOSE
    set_verbosity(0)
    assert get_verbosity() == VerbosityLevel.QUIET
    with pytest.raises(ValueError):
        set_verbosity("chatty")


def test_console_output_goes_to_streams(capsys):
    set_console_output(True)
    log = get_logger("test.console")
    log.info("hello")
    log.warning("careful")
    out, err = capsys.readouterr()
    assert "[info] hello" in out
    assert "[warning] careful" in err


def test_get_logger_caches():
    assert get_logger("same") is get_logger("same")


class TestLogBus:
    def test_level_filter(self):
        bus = LogBus()
        errors = []
        bus.subscribe(errors.append, level_name="ERROR")

        bus.publish(LogRecord("INFO", "[info] x", "a"))
        bus.publish(LogRecord("ERROR", "[error] y", "a"))

        assert [r.plain for r in errors] == ["[error] y"]

    def test_failing_subscriber_does_not_break_publish(self, capsys):
        bus = LogBus()
        seen = []

        def boom(record):
            raise RuntimeError("nope")

        bus.subscribe(boom)
        bus.subscribe(seen.append)
        bus.publish(LogRecord("INFO", "[info] x", "a"))

        assert len(seen) == 1
        assert "suppressed" in capsys.readouterr().err

    def test_dispose_detaches_once(self):
        bus = LogBus()
        sub = bus.subscribe(lambda r: None)
        assert bus.subscriber_count == 1
        assert sub.dispose() is True
        assert sub.dispose() is False
        assert bus.subscriber_count == 0
