"""HTTP implementations of the entity gateway and upload capability.

Targets a PostgREST-style backend (tables under /rest/v1, object storage
under /storage/v1). requests is blocking, so every call runs in a worker
thread via asyncio.to_thread.

Transport failures and HTTP status >= 400 become GatewayError (entity
calls) or UploadError (storage calls).
"""

from __future__ import annotations

import asyncio
import contextlib
import time
from collections.abc import Callable
from typing import Any
from urllib.parse import quote

import requests

from listingwizard.core.config import ConfigResolver
from listingwizard.core.diagnostics import emit
from listingwizard.core.errors import (
    ConfigError,
    EntityNotFoundError,
    GatewayError,
    PartialWriteError,
    UploadError,
)
from listingwizard.core.logging import get_logger

log = get_logger(__name__)

PROPERTIES_PATH = "/rest/v1/properties"
PHOTOS_PATH = "/rest/v1/property_photos"

_PHOTO_FIELDS = ("image_url", "caption", "alt_text", "category", "display_order", "is_primary")


def _duration_ms(t0: float, t1: float) -> int:
    ms = int((t1 - t0) * 1000.0)
    return 0 if ms < 0 else ms


class RestClient:
    """Thin wrapper over a requests session.

    Args:
        base_url: Backend root, e.g. https://xyz.example.co
        api_key: Project API key (sent as apikey, and as bearer token when
            no access token is available)
        access_token: Returns the signed-in user's token, if any
        timeout: Per-request timeout in seconds
        session: requests.Session (or compatible object)
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        access_token: Callable[[], str | None] | None = None,
        timeout: float = 15,
        session: Any | None = None,
    ) -> None:
        if not base_url:
            raise ConfigError(
                "Gateway base URL is not configured",
                "Set gateway.base_url or LISTINGWIZARD_GATEWAY_BASE_URL",
            )
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._access_token = access_token
        self.session = session if session is not None else requests.Session()

    def url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        token = self._access_token() if self._access_token is not None else None
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {token or self.api_key}",
        }
        if extra:
            headers.update(extra)
        return headers

    def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        data: bytes | None = None,
        headers: dict[str, str] | None = None,
    ) -> requests.Response:
        try:
            response = self.session.request(
                method,
                self.url(path),
                params=params,
                json=json,
                data=data,
                headers=self.headers(headers),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise GatewayError(f"{method} {path} failed: {type(e).__name__}: {e}") from e

        if response.status_code >= 400:
            body = (response.text or "")[:200]
            raise GatewayError(
                f"{method} {path} failed: HTTP {response.status_code}: {body}",
                status_code=response.status_code,
            )
        return response


def _rows(response: requests.Response) -> list[dict[str, Any]]:
    if not response.content:
        return []
    try:
        data = response.json()
    except ValueError as e:
        raise GatewayError(f"Backend returned invalid JSON: {e}") from e
    if isinstance(data, dict):
        return [data]
    if isinstance(data, list):
        return [r for r in data if isinstance(r, dict)]
    raise GatewayError(f"Unexpected backend response: {type(data).__name__}")


class HttpEntityGateway:
    """Property records in /properties, photo records in /property_photos."""

    def __init__(self, client: RestClient) -> None:
        self.client = client

    async def _call(self, operation: str, fn: Callable[..., Any], *args: Any) -> Any:
        t0 = time.monotonic()
        emit("boundary.start", component="gateway", operation=operation, data={})
        try:
            result = await asyncio.to_thread(fn, *args)
        except GatewayError as e:
            emit(
                "boundary.end",
                component="gateway",
                operation=operation,
                data={
                    "status": "error",
                    "error_type": type(e).__name__,
                    "status_code": e.status_code,
                    "duration_ms": _duration_ms(t0, time.monotonic()),
                },
            )
            log.warning(f"Gateway {operation} failed: {e.message}")
            raise
        emit(
            "boundary.end",
            component="gateway",
            operation=operation,
            data={"status": "ok", "duration_ms": _duration_ms(t0, time.monotonic())},
        )
        return result

    # -- sync bodies (run in worker threads) --

    def _get_by_id(self, entity_id: str, include_drafts: bool) -> dict[str, Any] | None:
        params = {"id": f"eq.{entity_id}", "select": "*"}
        if not include_drafts:
            params["status"] = "eq.approved"
        rows = _rows(self.client.request("GET", PROPERTIES_PATH, params=params))
        return rows[0] if rows else None

    def _replace_photos(self, entity_id: str, photos: list[dict[str, Any]]) -> None:
        """Delete then re-insert the photo rows of one property.

        Not atomic: if the insert fails the property has no photo rows until
        the next successful create retry or update.
        """
        self.client.request("DELETE", PHOTOS_PATH, params={"property_id": f"eq.{entity_id}"})
        if not photos:
            return
        records = [
            {"property_id": entity_id, **{k: p.get(k) for k in _PHOTO_FIELDS}} for p in photos
        ]
        self.client.request("POST", PHOTOS_PATH, json=records)

    def _create(self, payload: dict[str, Any], owner_id: str) -> dict[str, Any]:
        body = dict(payload)
        photos = body.pop("photos_with_captions", None) or []
        body["owner_id"] = owner_id
        body["status"] = "pending"
        rows = _rows(
            self.client.request(
                "POST",
                PROPERTIES_PATH,
                json=body,
                headers={"Prefer": "return=representation"},
            )
        )
        if not rows:
            raise GatewayError("Backend did not return the created property")
        created = rows[0]
        entity_id = str(created.get("id") or "")
        if entity_id:
            try:
                self._replace_photos(entity_id, photos)
            except GatewayError as e:
                raise PartialWriteError(
                    entity_id,
                    f"Property {entity_id} was created but its photos were not saved: "
                    f"{e.message}",
                ) from e
        return created

    def _update(self, entity_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        body = dict(payload)
        photos = body.pop("photos_with_captions", None) or []
        rows = _rows(
            self.client.request(
                "PATCH",
                PROPERTIES_PATH,
                params={"id": f"eq.{entity_id}"},
                json=body,
                headers={"Prefer": "return=representation"},
            )
        )
        if not rows:
            raise EntityNotFoundError(entity_id)
        self._replace_photos(entity_id, photos)
        return rows[0]

    def _get_photos(self, entity_id: str) -> list[dict[str, Any]]:
        params = {
            "property_id": f"eq.{entity_id}",
            "select": "*",
            "order": "display_order.asc",
        }
        return _rows(self.client.request("GET", PHOTOS_PATH, params=params))

    # -- EntityGateway --

    async def get_by_id(self, entity_id: str, include_drafts: bool = True) -> dict[str, Any] | None:
        return await self._call("get_by_id", self._get_by_id, entity_id, include_drafts)

    async def create(self, payload: dict[str, Any], owner_id: str) -> dict[str, Any]:
        return await self._call("create", self._create, payload, owner_id)

    async def update(self, entity_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        return await self._call("update", self._update, entity_id, payload)

    async def get_photos(self, entity_id: str) -> list[dict[str, Any]]:
        return await self._call("get_photos", self._get_photos, entity_id)


class HttpObjectStorage:
    """Upload bytes to a public bucket and return the object's public URL."""

    def __init__(self, client: RestClient, bucket: str = "public-images") -> None:
        self.client = client
        self.bucket = bucket

    def public_url(self, path: str) -> str:
        return self.client.url(f"/storage/v1/object/public/{self.bucket}/{quote(path)}")

    def _upload(self, data: bytes, desired_path: str, content_type: str | None) -> str:
        headers = {"Content-Type": content_type or "application/octet-stream"}
        try:
            self.client.request(
                "POST",
                f"/storage/v1/object/{self.bucket}/{quote(desired_path)}",
                data=data,
                headers=headers,
            )
        except GatewayError as e:
            raise UploadError(
                f"Upload of {desired_path} failed: {e.message}",
                "Try again, or add the image by URL",
            ) from e
        return self.public_url(desired_path)

    async def upload(
        self, data: bytes, desired_path: str, content_type: str | None = None
    ) -> str:
        return await asyncio.to_thread(self._upload, data, desired_path, content_type)


def build_http_backends(
    resolver: ConfigResolver,
    *,
    access_token: Callable[[], str | None] | None = None,
    session: Any | None = None,
) -> tuple[HttpEntityGateway, HttpObjectStorage]:
    """Construct gateway and storage from gateway.* and storage.* config."""
    base_url = str(resolver.resolve_optional("gateway.base_url", "") or "")
    api_key = str(resolver.resolve_optional("gateway.api_key", "") or "")
    timeout = 15.0
    with contextlib.suppress(ConfigError):
        timeout = resolver.resolve_float("gateway.timeout_seconds")
    bucket = str(resolver.resolve_optional("storage.bucket", "public-images"))

    client = RestClient(
        base_url, api_key, access_token=access_token, timeout=timeout, session=session
    )
    return HttpEntityGateway(client), HttpObjectStorage(client, bucket)
