"""Tests for centralized logging system."""

from __future__ import annotations

from pathlib import Path

from listingwizard.core.config import ConfigResolver
from listingwizard.core.log_bus import LogRecord, get_log_bus
from listingwizard.core.logging import (
    VerbosityLevel,
    apply_logging_policy,
    get_log_sink,
    get_logger,
    get_verbosity,
    set_colors,
    set_log_sink,
    set_verbosity,
)


class TestVerbosityLevel:
    """Test VerbosityLevel enum."""

    def test_verbosity_ordering(self):
        """Levels are ordered QUIET < NORMAL < VERBOSE < DEBUG."""
        assert VerbosityLevel.QUIET == 0
        assert VerbosityLevel.QUIET < VerbosityLevel.NORMAL < VerbosityLevel.VERBOSE
        assert VerbosityLevel.VERBOSE < VerbosityLevel.DEBUG


class TestLoggingSetup:
    """Test logging setup functions."""

    def test_set_get_verbosity(self):
        """Ints and enum members are both accepted."""
        set_verbosity(2)
        assert get_verbosity() == VerbosityLevel.VERBOSE

        set_verbosity(VerbosityLevel.DEBUG)
        assert get_verbosity() == VerbosityLevel.DEBUG

    def test_apply_policy_from_resolver(self, tmp_path: Path):
        """Resolved logging.level drives global verbosity."""
        resolver = ConfigResolver(
            cli_args={"logging": {"level": "verbose"}},
            user_config_path=tmp_path / "none.yaml",
            system_config_path=tmp_path / "none2.yaml",
        )
        apply_logging_policy(resolver.resolve_logging_policy())
        assert get_verbosity() == VerbosityLevel.VERBOSE

        quiet = ConfigResolver(
            cli_args={"logging": {"level": "quiet"}},
            user_config_path=tmp_path / "none.yaml",
            system_config_path=tmp_path / "none2.yaml",
        )
        apply_logging_policy(quiet.resolve_logging_policy())
        assert get_verbosity() == VerbosityLevel.QUIET

    def test_set_colors(self):
        """Disabling colors does not break output."""
        set_colors(False)
        get_logger("test").info("test")
        set_colors(True)


def test_log_bus_receives_plain_records() -> None:
    got: list[LogRecord] = []
    get_log_bus().subscribe_all(got.append)

    get_logger("listingwizard.autosave").warning("Autosave failed")

    assert got == [
        LogRecord(
            level_name="WARNING",
            plain="[warning] Autosave failed",
            logger_name="listingwizard.autosave",
        )
    ]


def test_verbosity_filters_bus_records() -> None:
    got: list[LogRecord] = []
    get_log_bus().subscribe("INFO", got.append)

    set_verbosity(VerbosityLevel.QUIET)
    get_logger("x").info("hidden")
    set_verbosity(VerbosityLevel.NORMAL)
    get_logger("x").info("shown")

    assert [r.plain for r in got] == ["[info] shown"]


def test_errors_always_published() -> None:
    got: list[LogRecord] = []
    get_log_bus().subscribe("ERROR", got.append)

    set_verbosity(VerbosityLevel.QUIET)
    get_logger("x").error("boom")

    assert len(got) == 1
    assert got[0].plain == "[error] boom"


def test_log_sink_adapter_and_reset() -> None:
    lines: list[str] = []
    set_log_sink(lines.append)
    get_logger("x").info("one")

    set_log_sink(None)
    get_logger("x").info("two")

    assert lines == ["[info] one"]


def test_failing_subscriber_does_not_break_logging() -> None:
    def boom(_rec: LogRecord) -> None:
        raise RuntimeError("subscriber failure")

    got: list[LogRecord] = []
    bus = get_log_bus()
    bus.subscribe_all(boom)
    bus.subscribe_all(got.append)

    get_logger("x").info("still delivered")

    assert len(got) == 1


def test_sink_is_replaced_not_stacked() -> None:
    first: list[str] = []
    second: list[str] = []
    set_log_sink(first.append)
    set_log_sink(second.append)
    assert get_log_sink() == second.append

    get_logger("x").warning("once")

    assert first == []
    assert second == ["[warning] once"]


def test_is_enabled_for_follows_verbosity() -> None:
    log = get_logger("x")
    set_verbosity(VerbosityLevel.VERBOSE)
    assert log.is_enabled_for("VERBOSE")
    assert not log.is_enabled_for("DEBUG")


def test_level_subscription_is_case_insensitive() -> None:
    got: list[LogRecord] = []
    bus = get_log_bus()
    bus.subscribe("warning", got.append)
    get_logger("x").warning("w")
    bus.unsubscribe("WARNING", got.append)
    get_logger("x").warning("w2")

    assert [r.plain for r in got] == ["[warning] w"]
