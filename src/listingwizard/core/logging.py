"""Centralized logging for listingwizard.

Every module logs through ``get_logger(__name__)``. A line is printed when
its level is within the global verbosity and is always published on the
LogBus in plain (uncoloured) form:

    QUIET    warnings and errors
    NORMAL   adds info
    VERBOSE  adds verbose detail (autosave ticks, step moves)
    DEBUG    everything

Errors bypass the verbosity check.
"""

from __future__ import annotations

import sys
from collections.abc import Callable
from dataclasses import dataclass
from enum import IntEnum

from listingwizard.core.config import LoggingPolicy
from listingwizard.core.log_bus import LogRecord, get_log_bus


class VerbosityLevel(IntEnum):
    QUIET = 0
    NORMAL = 1
    VERBOSE = 2
    DEBUG = 3


# Minimum verbosity at which each level is emitted.
_THRESHOLDS: dict[str, VerbosityLevel] = {
    "DEBUG": VerbosityLevel.DEBUG,
    "VERBOSE": VerbosityLevel.VERBOSE,
    "INFO": VerbosityLevel.NORMAL,
    "WARNING": VerbosityLevel.QUIET,
    "ERROR": VerbosityLevel.QUIET,
}

_POLICY_LEVELS: dict[str, VerbosityLevel] = {
    "debug": VerbosityLevel.DEBUG,
    "verbose": VerbosityLevel.VERBOSE,
}


@dataclass
class _LoggingState:
    verbosity: VerbosityLevel = VerbosityLevel.NORMAL
    colors: bool = True
    sink: Callable[[str], None] | None = None
    sink_adapter: Callable[[LogRecord], None] | None = None


_STATE = _LoggingState()


def set_verbosity(level: int | VerbosityLevel) -> None:
    _STATE.verbosity = VerbosityLevel(level)


def get_verbosity() -> VerbosityLevel:
    return _STATE.verbosity


def apply_logging_policy(policy: LoggingPolicy) -> None:
    """Set the global verbosity from a resolved ``logging.level``."""
    level = _POLICY_LEVELS.get(policy.level_name)
    if level is None:
        level = VerbosityLevel.NORMAL if policy.emit_info else VerbosityLevel.QUIET
    set_verbosity(level)


def set_colors(enabled: bool) -> None:
    _STATE.colors = enabled


def set_log_sink(sink: Callable[[str], None] | None) -> None:
    """Route the plain text of every published record to ``sink``.

    Replaces any previous sink; ``None`` detaches it. Sink errors are ignored.
    """
    bus = get_log_bus()
    if _STATE.sink_adapter is not None:
        bus.unsubscribe_all(_STATE.sink_adapter)
    _STATE.sink = sink
    _STATE.sink_adapter = None
    if sink is None:
        return

    def _forward(rec: LogRecord) -> None:
        try:
            sink(rec.plain)
        except Exception:
            return

    _STATE.sink_adapter = _forward
    bus.subscribe_all(_forward)


def get_log_sink() -> Callable[[str], None] | None:
    return _STATE.sink


class WizardLogger:
    """Named logger honouring the global verbosity."""

    COLORS = {
        "DEBUG": "\033[36m",
        "VERBOSE": "\033[34m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
    }
    RESET = "\033[0m"

    def __init__(self, name: str):
        self.name = name

    def is_enabled_for(self, level_name: str) -> bool:
        return _THRESHOLDS[level_name] <= _STATE.verbosity

    def _emit(self, level_name: str, message: str) -> None:
        if level_name != "ERROR" and not self.is_enabled_for(level_name):
            return

        tag = f"[{level_name.lower()}]"
        get_log_bus().publish(
            LogRecord(level_name=level_name, plain=f"{tag} {message}", logger_name=self.name)
        )

        stream = sys.stderr if level_name == "ERROR" else sys.stdout
        if _STATE.colors and stream.isatty():
            tag = f"{self.COLORS[level_name]}{tag}{self.RESET}"
        print(f"{tag} {message}", file=stream)

    def debug(self, message: str) -> None:
        self._emit("DEBUG", message)

    def verbose(self, message: str) -> None:
        self._emit("VERBOSE", message)

    def info(self, message: str) -> None:
        self._emit("INFO", message)

    def warning(self, message: str) -> None:
        self._emit("WARNING", message)

    def error(self, message: str) -> None:
        self._emit("ERROR", message)


_LOGGERS: dict[str, WizardLogger] = {}


def get_logger(name: str = __name__) -> WizardLogger:
    """Return the shared logger for ``name`` (usually ``__name__``)."""
    logger = _LOGGERS.get(name)
    if logger is None:
        logger = _LOGGERS[name] = WizardLogger(name)
    return logger
