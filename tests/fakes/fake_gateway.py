from __future__ import annotations

import asyncio
import copy
from dataclasses import dataclass, field
from typing import Any

from listingwizard.core.errors import GatewayError, PartialWriteError, UploadError


@dataclass
class FakeEntityGateway:
    """In-memory property backend.

    fail_next makes the next N mutating calls (create/update) raise
    GatewayError, simulating a network outage. fail_photos_next makes the
    next N creates store the property and then raise PartialWriteError, as
    when the photo rows cannot be written. When hold is given, create and
    update wait until it is set.
    """

    entities: dict[str, dict[str, Any]] = field(default_factory=dict)
    photos: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    fail_next: int = 0
    fail_loads: int = 0
    fail_photos_next: int = 0
    hold: asyncio.Event | None = None
    created: list[tuple[dict[str, Any], str]] = field(default_factory=list)
    updated: list[tuple[str, dict[str, Any]]] = field(default_factory=list)
    _counter: int = 0

    async def _maybe_fail(self) -> None:
        if self.hold is not None:
            await self.hold.wait()
        if self.fail_next > 0:
            self.fail_next -= 1
            raise GatewayError("Network error: connection reset")

    async def get_by_id(self, entity_id: str, include_drafts: bool = True) -> dict[str, Any] | None:
        if self.fail_loads > 0:
            self.fail_loads -= 1
            raise GatewayError("Network error: timed out")
        entity = self.entities.get(entity_id)
        return copy.deepcopy(entity) if entity is not None else None

    async def create(self, payload: dict[str, Any], owner_id: str) -> dict[str, Any]:
        await self._maybe_fail()
        self._counter += 1
        entity_id = f"prop-{self._counter}"
        row = {**copy.deepcopy(payload), "id": entity_id, "owner_id": owner_id, "status": "pending"}
        self.entities[entity_id] = row
        self.created.append((copy.deepcopy(payload), owner_id))
        if self.fail_photos_next > 0:
            self.fail_photos_next -= 1
            raise PartialWriteError(entity_id, "photo rows not saved: connection reset")
        return copy.deepcopy(row)

    async def update(self, entity_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        await self._maybe_fail()
        if entity_id not in self.entities:
            raise GatewayError(f"Property '{entity_id}' not found", status_code=404)
        self.entities[entity_id].update(copy.deepcopy(payload))
        self.updated.append((entity_id, copy.deepcopy(payload)))
        return copy.deepcopy(self.entities[entity_id])

    async def get_photos(self, entity_id: str) -> list[dict[str, Any]]:
        return copy.deepcopy(self.photos.get(entity_id, []))


@dataclass
class FakeUploadService:
    """Object storage returning deterministic public URLs."""

    fail_paths_containing: set[str] = field(default_factory=set)
    uploads: list[tuple[str, int, str | None]] = field(default_factory=list)

    async def upload(
        self, data: bytes, desired_path: str, content_type: str | None = None
    ) -> str:
        if any(s in desired_path for s in self.fail_paths_containing):
            raise UploadError(f"Upload of {desired_path} failed")
        self.uploads.append((desired_path, len(data), content_type))
        return f"https://cdn.test/public-images/{desired_path}"
