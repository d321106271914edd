from __future__ import annotations

import json as _json
from dataclasses import dataclass, field
from typing import Any

import requests


@dataclass
class FakeResponse:
    status_code: int = 200
    payload: Any = None
    text: str = ""

    @property
    def content(self) -> bytes:
        if self.payload is None:
            return self.text.encode("utf-8")
        return _json.dumps(self.payload).encode("utf-8")

    def json(self) -> Any:
        if self.payload is None:
            return _json.loads(self.text)
        return self.payload


@dataclass
class FakeSession:
    """Stands in for requests.Session; replies are queued per (method, path suffix)."""

    replies: list[tuple[str, str, FakeResponse | Exception]] = field(default_factory=list)
    calls: list[dict[str, Any]] = field(default_factory=list)

    def reply(self, method: str, path: str, response: FakeResponse | Exception) -> None:
        self.replies.append((method, path, response))

    def request(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append({"method": method, "url": url, **kwargs})
        for i, (m, p, resp) in enumerate(self.replies):
            if m == method and url.endswith(p):
                del self.replies[i]
                if isinstance(resp, Exception):
                    raise resp
                return resp
        return FakeResponse(status_code=200, payload=[])


def connection_error() -> requests.ConnectionError:
    return requests.ConnectionError("connection refused")
