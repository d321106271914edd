"""Topic-keyed subscriber registry shared by the log and event buses."""

from __future__ import annotations

from collections.abc import Callable
from typing import Generic, TypeVar

CallbackT = TypeVar("CallbackT", bound=Callable[..., object])

WILDCARD = "*"


class Subscribers(Generic[CallbackT]):
    """Callbacks grouped by topic. The ``*`` topic receives everything."""

    def __init__(self) -> None:
        self._by_topic: dict[str, list[CallbackT]] = {}

    def add(self, topic: str, callback: CallbackT) -> None:
        self._by_topic.setdefault(topic, []).append(callback)

    def remove(self, topic: str, callback: CallbackT) -> None:
        """Drop one registration; unknown callbacks are ignored."""
        subs = self._by_topic.get(topic)
        if subs is None:
            return
        if callback in subs:
            subs.remove(callback)
        if not subs:
            del self._by_topic[topic]

    def snapshot(self, topic: str) -> list[CallbackT]:
        # Copy, so callbacks may unsubscribe while being notified.
        return list(self._by_topic.get(topic, ()))

    def clear(self) -> None:
        self._by_topic.clear()

    def __len__(self) -> int:
        return sum(len(subs) for subs in self._by_topic.values())
