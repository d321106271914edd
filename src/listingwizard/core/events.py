"""Event bus for wizard diagnostics.

Components announce what they did (``wizard.step``, ``photos.ingest``,
``boundary.end`` ...) without knowing who listens. Handlers get the event
data dict; catch-all handlers also get the event name.
"""

from __future__ import annotations

import traceback
from collections.abc import Callable
from typing import Any

from listingwizard.core.bus import WILDCARD, Subscribers
from listingwizard.core.logging import get_logger

_logger = get_logger(__name__)

EventHandler = Callable[[dict[str, Any]], None]
CatchAllHandler = Callable[[str, dict[str, Any]], None]


class EventBus:
    """In-process pub/sub keyed by event name.

    Handler exceptions are logged and swallowed so one broken listener
    cannot interrupt the wizard.
    """

    def __init__(self) -> None:
        self._handlers: Subscribers[EventHandler] = Subscribers()
        self._catch_all: Subscribers[CatchAllHandler] = Subscribers()

    def subscribe(self, event: str, callback: EventHandler) -> None:
        self._handlers.add(event, callback)

    def unsubscribe(self, event: str, callback: EventHandler) -> None:
        self._handlers.remove(event, callback)

    def subscribe_all(self, callback: CatchAllHandler) -> None:
        self._catch_all.add(WILDCARD, callback)

    def unsubscribe_all(self, callback: CatchAllHandler) -> None:
        self._catch_all.remove(WILDCARD, callback)

    def publish(self, event: str, data: dict[str, Any] | None = None) -> None:
        payload = data or {}
        for handler in self._handlers.snapshot(event):
            try:
                handler(payload)
            except Exception as e:
                _log_handler_failure(event, handler, e)
        for catch_all in self._catch_all.snapshot(WILDCARD):
            try:
                catch_all(event, payload)
            except Exception as e:
                _log_handler_failure(event, catch_all, e)

    def clear(self) -> None:
        self._handlers.clear()
        self._catch_all.clear()

    @property
    def subscriber_count(self) -> int:
        return len(self._handlers) + len(self._catch_all)


def _log_handler_failure(event: str, handler: Callable[..., None], exc: Exception) -> None:
    name = getattr(handler, "__qualname__", repr(handler))
    _logger.error(f"Handler {name} failed on '{event}': {type(exc).__name__}: {exc}")
    _logger.debug(traceback.format_exc())


_EVENT_BUS = EventBus()


def get_event_bus() -> EventBus:
    """Return the process-wide event bus."""
    return _EVENT_BUS
