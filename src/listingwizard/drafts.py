"""Draft store: local persistence of wizard documents keyed by user id.

Two implementations share one record format:

    {"document": {...}, "lastSaved": "<iso8601 utc>", "fingerprint": "<sha256>"}

save() is idempotent: when the document fingerprint equals the stored one,
the stored record (including lastSaved) is left untouched.
"""

from __future__ import annotations

import contextlib
import json
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol
from urllib.parse import quote

from listingwizard.core.diagnostics import emit
from listingwizard.core.errors import DraftStoreError
from listingwizard.core.logging import get_logger
from listingwizard.document import WizardDocument

log = get_logger(__name__)

DEFAULT_KEY_PREFIX = "property_draft_"


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _duration_ms(t0: float, t1: float) -> int:
    ms = int((t1 - t0) * 1000.0)
    return 0 if ms < 0 else ms


@dataclass(frozen=True)
class DraftRecord:
    document: WizardDocument
    last_saved: datetime
    fingerprint: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "document": self.document.to_dict(),
            "lastSaved": self.last_saved.isoformat(),
            "fingerprint": self.fingerprint,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DraftRecord:
        if not isinstance(data, dict) or not isinstance(data.get("document"), dict):
            raise ValueError("draft record must contain a 'document' mapping")
        document = WizardDocument.from_dict(data["document"])
        raw_ts = data.get("lastSaved")
        last_saved = datetime.fromisoformat(raw_ts) if isinstance(raw_ts, str) else _utc_now()
        if last_saved.tzinfo is None:
            last_saved = last_saved.replace(tzinfo=UTC)
        # The stored fingerprint is of the document as saved, before any
        # normalization applied by from_dict.
        fp = data.get("fingerprint")
        if not isinstance(fp, str) or not fp:
            fp = document.fingerprint()
        return cls(document=document, last_saved=last_saved, fingerprint=fp)


class DraftStore(Protocol):
    def save(self, user_id: str, document: WizardDocument) -> DraftRecord: ...

    def load(self, user_id: str) -> WizardDocument | None: ...

    def load_record(self, user_id: str) -> DraftRecord | None: ...

    def clear(self, user_id: str) -> None: ...


def draft_key(user_id: str, prefix: str = DEFAULT_KEY_PREFIX) -> str:
    return f"{prefix}{user_id}"


class InMemoryDraftStore:
    """Draft store for tests and embedding; records are kept serialized."""

    def __init__(
        self,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        now: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._prefix = key_prefix
        self._now = now
        self._data: dict[str, str] = {}
        self.writes = 0

    def keys(self) -> list[str]:
        return sorted(self._data)

    def save(self, user_id: str, document: WizardDocument) -> DraftRecord:
        key = draft_key(user_id, self._prefix)
        fp = document.fingerprint()
        existing = self.load_record(user_id)
        if existing is not None and existing.fingerprint == fp:
            return existing

        record = DraftRecord(document=document.clone(), last_saved=self._now(), fingerprint=fp)
        self._data[key] = json.dumps(record.to_dict(), sort_keys=True)
        self.writes += 1
        return record

    def load_record(self, user_id: str) -> DraftRecord | None:
        raw = self._data.get(draft_key(user_id, self._prefix))
        if raw is None:
            return None
        try:
            return DraftRecord.from_dict(json.loads(raw))
        except (ValueError, TypeError) as e:
            log.warning(f"Ignoring unreadable draft for user {user_id}: {e}")
            return None

    def load(self, user_id: str) -> WizardDocument | None:
        record = self.load_record(user_id)
        return record.document if record is not None else None

    def clear(self, user_id: str) -> None:
        self._data.pop(draft_key(user_id, self._prefix), None)


def _atomic_write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(text, encoding="utf-8")
    tmp.replace(path)


class FileDraftStore:
    """One JSON file per user under a drafts directory.

    Layout:
        <root>/<key_prefix><quoted user id>.json
    """

    def __init__(
        self,
        root: Path,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        now: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._root = root
        self._prefix = key_prefix
        self._now = now

    @property
    def root(self) -> Path:
        return self._root

    def path_for(self, user_id: str) -> Path:
        return self._root / f"{draft_key(quote(user_id, safe=''), self._prefix)}.json"

    def save(self, user_id: str, document: WizardDocument) -> DraftRecord:
        """Persist the document unless it is unchanged.

        Raises:
            DraftStoreError: If the file cannot be written
        """
        t0 = time.monotonic()
        fp = document.fingerprint()
        existing = self.load_record(user_id)
        if existing is not None and existing.fingerprint == fp:
            log.debug(f"Draft unchanged for user {user_id}; skipping write")
            return existing

        record = DraftRecord(document=document.clone(), last_saved=self._now(), fingerprint=fp)
        payload = json.dumps(record.to_dict(), indent=2, sort_keys=True) + "\n"
        path = self.path_for(user_id)
        emit("boundary.start", component="drafts", operation="save", data={"user_id": user_id})
        try:
            _atomic_write_text(path, payload)
        except OSError as e:
            emit(
                "boundary.end",
                component="drafts",
                operation="save",
                data={"user_id": user_id, "status": "error", "error_type": type(e).__name__},
            )
            raise DraftStoreError(
                f"Failed to write draft {path}: {e}",
                f"Check that {self._root} is writable",
            ) from e

        emit(
            "boundary.end",
            component="drafts",
            operation="save",
            data={
                "user_id": user_id,
                "status": "ok",
                "duration_ms": _duration_ms(t0, time.monotonic()),
            },
        )
        return record

    def load_record(self, user_id: str) -> DraftRecord | None:
        path = self.path_for(user_id)
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return DraftRecord.from_dict(data)
        except (OSError, ValueError, TypeError) as e:
            log.warning(f"Ignoring unreadable draft {path}: {type(e).__name__}: {e}")
            return None

    def load(self, user_id: str) -> WizardDocument | None:
        record = self.load_record(user_id)
        return record.document if record is not None else None

    def clear(self, user_id: str) -> None:
        path = self.path_for(user_id)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise DraftStoreError(f"Failed to remove draft {path}: {e}") from e
        with contextlib.suppress(OSError):
            path.with_suffix(path.suffix + ".tmp").unlink(missing_ok=True)
