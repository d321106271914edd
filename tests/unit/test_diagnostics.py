"""Tests for the diagnostics envelope, event bus and JSONL sink."""

from __future__ import annotations

import json
from pathlib import Path

from listingwizard.core.config import ConfigResolver
from listingwizard.core.diagnostics import (
    build_envelope,
    emit,
    install_jsonl_sink,
    is_diagnostics_enabled,
)
from listingwizard.core.events import EventBus, get_event_bus


def _resolver(tmp_path: Path, enabled: object) -> ConfigResolver:
    return ConfigResolver(
        cli_args={"diagnostics": {"enabled": enabled, "dir": str(tmp_path / "diag")}},
        user_config_path=tmp_path / "none.yaml",
        system_config_path=tmp_path / "none2.yaml",
    )


def test_envelope_shape():
    env = build_envelope(event="wizard.step", component="wizard", operation="next", data={"i": 1})
    assert set(env) == {"event", "component", "operation", "timestamp", "data"}
    assert env["timestamp"].endswith("Z")
    assert env["data"] == {"i": 1}


def test_emit_publishes_envelope():
    got: list[dict] = []
    get_event_bus().subscribe("wizard.submit", got.append)
    emit("wizard.submit", component="wizard", operation="submit", data={"ok": True})
    assert got[0]["component"] == "wizard"
    assert got[0]["data"] == {"ok": True}


def test_event_bus_isolates_failing_subscriber():
    bus = EventBus()
    got: list[dict] = []

    def boom(_data: dict) -> None:
        raise RuntimeError("handler failure")

    bus.subscribe("e", boom)
    bus.subscribe("e", got.append)
    bus.publish("e", {"x": 1})
    assert got == [{"x": 1}]

    bus.unsubscribe("e", got.append)
    bus.publish("e", {"x": 2})
    assert got == [{"x": 1}]


def test_enabled_flag(tmp_path: Path):
    assert is_diagnostics_enabled(_resolver(tmp_path, True)) is True
    assert is_diagnostics_enabled(_resolver(tmp_path, "off")) is False
    assert is_diagnostics_enabled(_resolver(tmp_path, "garbage")) is False


def test_jsonl_sink_writes_when_enabled(tmp_path: Path):
    bus = EventBus()
    path = install_jsonl_sink(resolver=_resolver(tmp_path, True), bus=bus)

    bus.publish(
        "drafts.save",
        build_envelope(event="drafts.save", component="drafts", operation="save", data={}),
    )
    bus.publish("raw.event", {"k": "v"})

    lines = [json.loads(line) for line in path.read_text().splitlines()]
    assert [x["event"] for x in lines] == ["drafts.save", "raw.event"]
    assert lines[1]["component"] == "unknown"
    assert lines[1]["data"] == {"k": "v"}


def test_jsonl_sink_silent_when_disabled(tmp_path: Path):
    bus = EventBus()
    path = install_jsonl_sink(resolver=_resolver(tmp_path, False), bus=bus)
    bus.publish("x", {})
    assert not path.exists()


def test_event_bus_catch_all_and_count():
    bus = EventBus()
    seen: list[str] = []

    def on_any(name: str, _data: dict) -> None:
        seen.append(name)

    bus.subscribe_all(on_any)
    bus.subscribe("a", lambda _d: None)
    assert bus.subscriber_count == 2

    bus.publish("a")
    bus.publish("b", {"k": 1})
    bus.unsubscribe_all(on_any)
    bus.publish("c")

    assert seen == ["a", "b"]
    bus.clear()
    assert bus.subscriber_count == 0
