"""Publish/subscribe channel for log records.

The wizard logger writes every emitted line here so that sinks (files,
test collectors) can observe logging without touching stdout. A failing
subscriber is reported on stderr and never reaches the caller that logged.
"""

from __future__ import annotations

import contextlib
import sys
import traceback
from collections.abc import Callable
from dataclasses import dataclass

from listingwizard.core.bus import WILDCARD, Subscribers


@dataclass(frozen=True)
class LogRecord:
    level_name: str
    plain: str
    logger_name: str


LogCallback = Callable[[LogRecord], None]


class LogBus:
    """Delivers records to level subscribers and to catch-all subscribers."""

    def __init__(self) -> None:
        self._subs: Subscribers[LogCallback] = Subscribers()

    def subscribe(self, level_name: str, cb: LogCallback) -> None:
        self._subs.add(level_name.upper(), cb)

    def unsubscribe(self, level_name: str, cb: LogCallback) -> None:
        self._subs.remove(level_name.upper(), cb)

    def subscribe_all(self, cb: LogCallback) -> None:
        self._subs.add(WILDCARD, cb)

    def unsubscribe_all(self, cb: LogCallback) -> None:
        self._subs.remove(WILDCARD, cb)

    def publish(self, record: LogRecord) -> None:
        targets = self._subs.snapshot(WILDCARD) + self._subs.snapshot(record.level_name)
        for cb in targets:
            try:
                cb(record)
            except Exception:
                _report_subscriber_failure(record)

    def clear(self) -> None:
        self._subs.clear()


def _report_subscriber_failure(record: LogRecord) -> None:
    # The logger publishes through this bus, so it cannot be used here.
    msg = (
        f"log subscriber failed on {record.level_name} record from "
        f"{record.logger_name}; suppressed.\n{traceback.format_exc()}"
    )
    with contextlib.suppress(OSError, ValueError):
        sys.stderr.write(msg)


_LOG_BUS = LogBus()


def get_log_bus() -> LogBus:
    return _LOG_BUS
