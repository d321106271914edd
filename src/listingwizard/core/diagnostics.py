"""Structured diagnostics for wizard operations.

Components call ``emit`` with a component/operation pair; the envelope
goes out on the event bus. ``install_jsonl_sink`` appends every bus event
to ``<diagnostics.dir>/diagnostics.jsonl`` while ``diagnostics.enabled``
is true.
"""

from __future__ import annotations

import contextlib
import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from listingwizard.core.config import ConfigResolver
from listingwizard.core.errors import ConfigError
from listingwizard.core.events import EventBus, get_event_bus
from listingwizard.core.logging import get_logger

_logger = get_logger(__name__)

ENVELOPE_KEYS = frozenset({"event", "component", "operation", "timestamp", "data"})
SINK_FILENAME = "diagnostics.jsonl"


def _utc_stamp() -> str:
    return datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


def build_envelope(
    *,
    event: str,
    component: str,
    operation: str,
    data: dict[str, Any],
) -> dict[str, Any]:
    return {
        "event": event,
        "component": component,
        "operation": operation,
        "timestamp": _utc_stamp(),
        "data": data,
    }


def emit(event: str, *, component: str, operation: str, data: dict[str, Any]) -> None:
    """Publish a diagnostics envelope. Never raises."""
    with contextlib.suppress(Exception):
        get_event_bus().publish(
            event,
            build_envelope(event=event, component=component, operation=operation, data=data),
        )


def is_diagnostics_enabled(resolver: ConfigResolver) -> bool:
    """``diagnostics.enabled``; invalid values count as disabled."""
    if resolver.resolve_optional("diagnostics.enabled") is None:
        return False
    try:
        return resolver.resolve_bool("diagnostics.enabled")
    except ConfigError as e:
        _logger.warning(f"Invalid diagnostics.enabled value; treating as disabled. {e}")
        return False


class JsonlSink:
    """Catch-all bus subscriber appending one JSON object per event."""

    def __init__(self, resolver: ConfigResolver, path: Path):
        self.resolver = resolver
        self.path = path

    def __call__(self, event: str, data: dict[str, Any]) -> None:
        if not is_diagnostics_enabled(self.resolver):
            return
        record = data
        if not (isinstance(data, dict) and set(data) == ENVELOPE_KEYS):
            record = build_envelope(
                event=event, component="unknown", operation="unknown", data=data
            )
        line = json.dumps(record, ensure_ascii=True, separators=(",", ":"), sort_keys=True)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as f:
                f.write(line + "\n")
        except OSError as e:
            _logger.warning(f"Diagnostics sink write failed: {type(e).__name__}: {e}")


def install_jsonl_sink(*, resolver: ConfigResolver, bus: EventBus | None = None) -> Path:
    """Attach a JsonlSink to ``bus`` (default: the global bus) and return its path."""
    out_dir, _src = resolver.resolve("diagnostics.dir")
    sink = JsonlSink(resolver, Path(str(out_dir)).expanduser() / SINK_FILENAME)
    (bus if bus is not None else get_event_bus()).subscribe_all(sink)
    return sink.path
