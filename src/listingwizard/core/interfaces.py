"""Capabilities consumed by the wizard.

The wizard does not implement authentication, the property backend, or
object storage. It is handed objects satisfying these protocols at
construction time.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Protocol


@dataclass(frozen=True)
class Session:
    """An authenticated session as reported by the auth capability."""

    user_id: str
    role: str
    email: str | None = None


class SessionStatus(StrEnum):
    """Explicit rehydration signal, for auth capabilities that expose one."""

    LOADING = "loading"
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"


class AuthProvider(Protocol):
    """Session lookup.

    session_status() may return None when the provider cannot tell a
    loading session from an absent one; the gate then falls back to timing.
    """

    def get_current_session(self) -> Session | None: ...

    def has_session_artifact(self) -> bool:
        """True if a stored session token exists locally (not validated)."""
        ...

    def session_status(self) -> SessionStatus | None: ...


class EntityGateway(Protocol):
    """Remote property records.

    Payloads are the dicts produced by converter.to_persisted_entity().
    Implementations raise GatewayError on transport or backend failure.
    """

    async def get_by_id(self, entity_id: str, include_drafts: bool = True) -> dict[str, Any] | None:
        ...

    async def create(self, payload: dict[str, Any], owner_id: str) -> dict[str, Any]: ...

    async def update(self, entity_id: str, payload: dict[str, Any]) -> dict[str, Any]: ...

    async def get_photos(self, entity_id: str) -> list[dict[str, Any]]: ...


class UploadService(Protocol):
    """Object storage: store bytes, get back a stable public URL.

    Implementations raise UploadError on failure.
    """

    async def upload(
        self, data: bytes, desired_path: str, content_type: str | None = None
    ) -> str: ...
