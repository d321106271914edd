"""Autosave scheduler.

Periodically writes the current document to the draft store while the
wizard is mounted. A tick only saves when the document has a title and a
category, no submit is in progress, and the document changed since the
last save. Failures are logged and never propagated.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Awaitable, Callable
from datetime import datetime
from enum import StrEnum

from listingwizard.core.diagnostics import emit
from listingwizard.core.logging import get_logger
from listingwizard.document import WizardDocument
from listingwizard.drafts import DraftRecord, DraftStore

log = get_logger(__name__)


class TickOutcome(StrEnum):
    SAVED = "saved"
    SKIPPED_SUBMITTING = "skipped_submitting"
    SKIPPED_INCOMPLETE = "skipped_incomplete"
    SKIPPED_UNCHANGED = "skipped_unchanged"
    FAILED = "failed"


class AutosaveScheduler:
    """Fixed-interval autosave bound to one user and one document source.

    Args:
        store: Draft store
        user_id: Draft key; the owner id, scoped per property in edit mode
        get_document: Returns the current document (read at every tick)
        interval: Seconds between ticks
        is_submitting: Returns True while a submit is in progress
        sleep: Awaitable sleep, injectable for tests
    """

    def __init__(
        self,
        store: DraftStore,
        user_id: str,
        get_document: Callable[[], WizardDocument],
        *,
        interval: float = 30.0,
        is_submitting: Callable[[], bool] = lambda: False,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.store = store
        self.user_id = user_id
        self.interval = interval
        self._get_document = get_document
        self._is_submitting = is_submitting
        self._sleep = sleep
        self._task: asyncio.Task[None] | None = None
        self._last_fingerprint: str | None = None
        self.saving = False
        self.last_saved: datetime | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def mark_saved(self, record: DraftRecord) -> None:
        """Record a save performed outside the scheduler (explicit save, resume)."""
        self._last_fingerprint = record.fingerprint
        self.last_saved = record.last_saved

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run())
        log.debug(f"Autosave started (every {self.interval}s)")

    async def stop(self) -> None:
        """Cancel the timer and wait for it to finish."""
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        log.debug("Autosave stopped")

    async def _run(self) -> None:
        while True:
            await self._sleep(self.interval)
            try:
                self.tick()
            except Exception as e:
                log.error(f"Autosave tick crashed: {type(e).__name__}: {e}")

    def tick(self) -> TickOutcome:
        if self._is_submitting():
            log.verbose("Autosave skipped: submit in progress")
            return TickOutcome.SKIPPED_SUBMITTING

        self.saving = True
        try:
            doc = self._get_document()
            if not doc.basic.title.strip() or not doc.basic.category.strip():
                return TickOutcome.SKIPPED_INCOMPLETE
            if doc.fingerprint() == self._last_fingerprint:
                return TickOutcome.SKIPPED_UNCHANGED
            record = self.store.save(self.user_id, doc)
        except Exception as e:
            log.warning(f"Autosave failed: {type(e).__name__}: {e}")
            emit(
                "wizard.autosave",
                component="autosave",
                operation="tick",
                data={"status": "error", "error_type": type(e).__name__},
            )
            return TickOutcome.FAILED
        finally:
            self.saving = False

        self.mark_saved(record)
        emit(
            "wizard.autosave",
            component="autosave",
            operation="tick",
            data={"status": "ok", "fingerprint": record.fingerprint},
        )
        log.verbose("Draft autosaved")
        return TickOutcome.SAVED
