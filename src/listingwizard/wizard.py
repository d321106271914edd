"""Wizard orchestrator.

Owns the document for the session and composes the auth gate, step
controller, validation, converter, photo manager, draft store, autosave and
entity gateway.

Lifecycle:
    idle -> authenticating [-> awaiting_session] -> loading -> ready
    ready -> submitting -> submitted | ready (failure, retry allowed)
    any -> aborted (auth outcome) | unmounted

Control returns to the caller through on_exit(reason, message).
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import Any

from listingwizard.auth import AuthGate, AuthPhase
from listingwizard.autosave import AutosaveScheduler
from listingwizard.catalog import normalize_category
from listingwizard.converter import to_persisted_entity, to_wizard_document
from listingwizard.core.config import ConfigResolver, WizardSettings
from listingwizard.core.diagnostics import emit
from listingwizard.core.errors import (
    AccessDeniedError,
    AuthError,
    AuthenticationRequiredError,
    EntityNotFoundError,
    GatewayError,
    ListingWizardError,
    PartialWriteError,
    WizardError,
)
from listingwizard.core.interfaces import AuthProvider, EntityGateway, Session, UploadService
from listingwizard.core.logging import get_logger
from listingwizard.document import WizardDocument
from listingwizard.drafts import DraftRecord, DraftStore, FileDraftStore
from listingwizard.photos import PhotoManager, UploadFile, UploadOutcome
from listingwizard.review import completion_percentage
from listingwizard.steps import (
    StepController,
    StepDescriptor,
    StepStatus,
    StepTransition,
    load_step_definitions,
)
from listingwizard.validation import (
    ValidationOptions,
    ValidationResult,
    validate_all,
    validate_step,
)

log = get_logger(__name__)


class WizardStatus(StrEnum):
    IDLE = "idle"
    AUTHENTICATING = "authenticating"
    AWAITING_SESSION = "awaiting_session"
    LOADING = "loading"
    LOAD_FAILED = "load_failed"
    READY = "ready"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"
    ABORTED = "aborted"
    UNMOUNTED = "unmounted"


class ExitReason(StrEnum):
    SUBMITTED = "submitted"
    SESSION_EXPIRED = "session_expired"
    AUTH_REQUIRED = "auth_required"
    ACCESS_DENIED = "access_denied"
    CANCELLED = "cancelled"


_EDITABLE = frozenset({WizardStatus.READY, WizardStatus.SUBMITTING})


@dataclass(frozen=True)
class SubmitResult:
    ok: bool
    entity: dict[str, Any] | None = None
    failed_step: str | None = None
    validation: ValidationResult | None = None
    error: str | None = None
    retryable: bool = False


@dataclass(frozen=True)
class WizardView:
    """Everything needed to render the active step."""

    status: WizardStatus
    step: StepDescriptor
    index: int
    total: int
    title: str
    sections: tuple[str, ...]
    progress_percent: float
    step_statuses: tuple[StepStatus, ...]
    validation: ValidationResult
    is_last: bool
    saving: bool
    last_saved: datetime | None
    completion: int
    error: str | None


def _exit_reason(error: AuthError) -> ExitReason:
    if isinstance(error, AccessDeniedError):
        return ExitReason.ACCESS_DENIED
    if isinstance(error, AuthenticationRequiredError):
        return ExitReason.AUTH_REQUIRED
    return ExitReason.SESSION_EXPIRED


def _draft_owner(user_id: str, property_id: str | None) -> str:
    # Edit sessions get their own key so a create session never resumes them.
    return f"{user_id}/{property_id}" if property_id else user_id


class WizardOrchestrator:
    """Property listing wizard session.

    Args:
        auth: Session capability
        gateway: Remote property records
        drafts: Local draft store
        uploader: Object storage for photo uploads (optional)
        settings: Runtime settings; defaults when None
        steps: Step descriptors; loaded from settings.steps_file when None
        property_id: Existing property to edit; create mode when None
        initial_title: Prefill for create mode without a draft
        initial_category: Prefill for create mode without a draft
        on_exit: Called once when control goes back to the caller
        sleep: Awaitable sleep used by the auth gate and autosave timers
    """

    def __init__(
        self,
        *,
        auth: AuthProvider,
        gateway: EntityGateway,
        drafts: DraftStore,
        uploader: UploadService | None = None,
        settings: WizardSettings | None = None,
        steps: list[StepDescriptor] | None = None,
        property_id: str | None = None,
        initial_title: str | None = None,
        initial_category: str | None = None,
        on_exit: Callable[[ExitReason, str | None], None] | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.settings = settings or WizardSettings()
        self.auth = auth
        self.gateway = gateway
        self.drafts = drafts
        self.uploader = uploader
        self.property_id = property_id
        self.initial_title = initial_title
        self.initial_category = initial_category
        self._on_exit = on_exit
        self._sleep = sleep

        self._document = WizardDocument()
        self._status = WizardStatus.IDLE
        self.session: Session | None = None
        self.error: str | None = None
        self.exit_reason: ExitReason | None = None
        self.draft_owner = ""

        self._validation_options = ValidationOptions(
            seasonal_overlap_check=self.settings.seasonal_overlap_check
        )
        self.controller = StepController(
            steps if steps is not None else load_step_definitions(self.settings.steps_file),
            lambda step_id: validate_step(step_id, self._document, self._validation_options),
        )
        self.gate = AuthGate(
            auth,
            accepted_roles=self.settings.accepted_roles,
            initial_delay=self.settings.auth_initial_delay,
            grace_window=self.settings.auth_grace_window,
            status_poll=self.settings.auth_status_poll,
            sleep=sleep,
            on_phase=self._on_auth_phase,
        )
        self.autosave: AutosaveScheduler | None = None
        self._gate_task: asyncio.Task[Session] | None = None
        self._load_task: asyncio.Task[tuple[dict[str, Any], list[dict[str, Any]]]] | None = None

    @classmethod
    def from_config(
        cls,
        resolver: ConfigResolver,
        *,
        auth: AuthProvider,
        gateway: EntityGateway,
        drafts: DraftStore | None = None,
        **kwargs: Any,
    ) -> WizardOrchestrator:
        """Build an orchestrator from resolved configuration.

        Without an explicit draft store, drafts are files under drafts.dir.
        """
        settings = WizardSettings.from_resolver(resolver)
        if drafts is None:
            drafts = FileDraftStore(settings.drafts_dir, settings.draft_key_prefix)
        return cls(auth=auth, gateway=gateway, drafts=drafts, settings=settings, **kwargs)

    # -- state --

    @property
    def status(self) -> WizardStatus:
        return self._status

    def _set_status(self, status: WizardStatus) -> None:
        if status != self._status:
            log.debug(f"Wizard status: {self._status} -> {status}")
        self._status = status

    @property
    def document(self) -> WizardDocument:
        return self._document

    @document.setter
    def document(self, doc: WizardDocument) -> None:
        self._require_editable()
        self._document = doc

    def _require_editable(self) -> None:
        if self._status not in _EDITABLE:
            raise WizardError(f"Document cannot be edited while {self._status}")

    def edit(self, fn: Callable[[WizardDocument], WizardDocument | None]) -> WizardDocument:
        """Apply an edit. fn may mutate the document in place or return a new one."""
        self._require_editable()
        result = fn(self._document)
        if result is not None:
            self._document = result
        return self._document

    @property
    def photos(self) -> PhotoManager:
        return PhotoManager(self._document.photos)

    def _on_auth_phase(self, phase: AuthPhase) -> None:
        if phase == AuthPhase.AWAITING_SESSION and self._status == WizardStatus.AUTHENTICATING:
            self._set_status(WizardStatus.AWAITING_SESSION)

    def _exit(self, reason: ExitReason, message: str | None) -> None:
        self.exit_reason = reason
        if self._on_exit is not None:
            self._on_exit(reason, message)

    # -- lifecycle --

    async def mount(self) -> WizardStatus:
        """Authenticate, load the entity or resume a draft, start autosave."""
        if self._status != WizardStatus.IDLE:
            raise WizardError(f"Wizard already mounted (status: {self._status})")

        self._set_status(WizardStatus.AUTHENTICATING)
        self._gate_task = asyncio.create_task(self.gate.resolve())
        try:
            session = await self._gate_task
        except AuthError as e:
            self._abort(e)
            return self._status
        except asyncio.CancelledError:
            if self._status == WizardStatus.UNMOUNTED:
                return self._status
            raise
        finally:
            self._gate_task = None

        self.session = session
        self.draft_owner = _draft_owner(session.user_id, self.property_id)
        log.info(f"Authenticated as {session.email or session.user_id} ({session.role})")
        self.autosave = AutosaveScheduler(
            self.drafts,
            self.draft_owner,
            lambda: self._document,
            interval=self.settings.autosave_interval,
            is_submitting=lambda: self._status == WizardStatus.SUBMITTING,
            sleep=self._sleep,
        )

        if self.property_id:
            await self._load_entity()
        else:
            self._resume_or_prefill()
            self._set_status(WizardStatus.READY)

        if self._status == WizardStatus.READY:
            self._start_autosave()
        return self._status

    def _abort(self, error: AuthError) -> None:
        reason = _exit_reason(error)
        self.error = error.message
        self._set_status(WizardStatus.ABORTED)
        log.warning(f"Wizard aborted: {error.message}")
        emit(
            "wizard.abort",
            component="wizard",
            operation="mount",
            data={"reason": reason.value, "recoverable": error.recoverable},
        )
        self._exit(reason, error.suggestion or error.message)

    def _resume_or_prefill(self) -> None:
        assert self.session is not None
        record = self.drafts.load_record(self.draft_owner)
        if record is not None:
            self._document = record.document
            if self.autosave is not None:
                self.autosave.mark_saved(record)
            log.info("Resumed saved draft")
            return

        if self.initial_title:
            self._document.basic.title = self.initial_title
        if self.initial_category:
            self._document.basic.category = normalize_category(self.initial_category)

    async def _fetch_entity(self, entity_id: str) -> tuple[dict[str, Any], list[dict[str, Any]]]:
        entity = await self.gateway.get_by_id(entity_id, include_drafts=True)
        if entity is None:
            raise EntityNotFoundError(entity_id)
        try:
            photos = await self.gateway.get_photos(entity_id)
        except GatewayError as e:
            log.warning(f"Could not load photo records, using legacy images: {e.message}")
            photos = []
        return entity, photos

    async def _load_entity(self) -> None:
        assert self.property_id is not None
        self._set_status(WizardStatus.LOADING)
        self.error = None
        self._load_task = asyncio.create_task(self._fetch_entity(self.property_id))
        try:
            entity, photos = await self._load_task
        except GatewayError as e:
            self.error = e.message
            self._set_status(WizardStatus.LOAD_FAILED)
            log.error(f"Error loading property {self.property_id}: {e.message}")
            return
        except asyncio.CancelledError:
            if self._status == WizardStatus.UNMOUNTED:
                return
            raise
        finally:
            self._load_task = None

        self._document = to_wizard_document(entity, photos)
        self._set_status(WizardStatus.READY)
        log.info(f"Loaded property {self.property_id} for editing")

    async def retry_load(self) -> WizardStatus:
        """Retry a failed entity load."""
        if self._status != WizardStatus.LOAD_FAILED:
            raise WizardError(f"Nothing to retry (status: {self._status})")
        await self._load_entity()
        if self._status == WizardStatus.READY:
            self._start_autosave()
        return self._status

    def _start_autosave(self) -> None:
        if self.autosave is not None and self.settings.autosave_enabled:
            self.autosave.start()

    async def unmount(self) -> None:
        """Cancel pending timers and loads. No callbacks fire afterwards."""
        if self._status == WizardStatus.UNMOUNTED:
            return
        self._set_status(WizardStatus.UNMOUNTED)
        for task in (self._gate_task, self._load_task):
            if task is not None and not task.done():
                task.cancel()
        if self.autosave is not None:
            await self.autosave.stop()
        emit("wizard.unmount", component="wizard", operation="unmount", data={})

    async def cancel(self) -> None:
        """User left the wizard; the draft stays for later."""
        self._exit(ExitReason.CANCELLED, None)
        await self.unmount()

    # -- navigation --

    def _emit_step(self, transition: StepTransition, operation: str, start: int) -> None:
        emit(
            "wizard.step",
            component="wizard",
            operation=operation,
            data={"from": start, "to": transition.index, "moved": transition.moved},
        )

    def next(self) -> StepTransition:
        start = self.controller.current_index
        transition = self.controller.go_next()
        self._emit_step(transition, "next", start)
        return transition

    def previous(self) -> StepTransition:
        start = self.controller.current_index
        transition = self.controller.go_previous()
        self._emit_step(transition, "previous", start)
        return transition

    def go_to(self, target: int | str) -> StepTransition:
        """Jump to a step by index or id. Not gated by validation."""
        start = self.controller.current_index
        index = self.controller.index_of(target) if isinstance(target, str) else target
        transition = self.controller.go_to(index)
        self._emit_step(transition, "go_to", start)
        return transition

    def validate_current(self) -> ValidationResult:
        return validate_step(
            self.controller.current.id, self._document, self._validation_options
        )

    def view(self) -> WizardView:
        step = self.controller.current
        day_picnic = self._document.is_day_picnic
        n = len(self.controller.steps)
        return WizardView(
            status=self._status,
            step=step,
            index=self.controller.current_index,
            total=n,
            title=step.title_for(day_picnic),
            sections=step.visible_sections(day_picnic),
            progress_percent=self.controller.progress_percent,
            step_statuses=tuple(self.controller.status_of(i) for i in range(n)),
            validation=self.validate_current(),
            is_last=self.controller.is_last,
            saving=self.autosave.saving if self.autosave is not None else False,
            last_saved=self.autosave.last_saved if self.autosave is not None else None,
            completion=completion_percentage(self._document),
            error=self.error,
        )

    # -- persistence --

    def save_draft(self) -> DraftRecord:
        """Explicit draft save.

        Raises:
            WizardError: If no session is established
            DraftStoreError: If the store cannot write
        """
        if self.session is None:
            raise WizardError("Cannot save a draft before authentication")
        record = self.drafts.save(self.draft_owner, self._document)
        if self.autosave is not None:
            self.autosave.mark_saved(record)
        return record

    async def upload_photos(self, files: list[UploadFile]) -> list[UploadOutcome]:
        self._require_editable()
        if self.uploader is None:
            raise WizardError("No upload service configured", "Add photos by URL instead")
        return await self.photos.ingest(
            files,
            self.uploader,
            title=self._document.basic.title,
            path_prefix=self.settings.storage_path_prefix,
        )

    async def submit(self) -> SubmitResult:
        """Validate every step, convert, and create or update the property.

        Validation, auth and gateway failures are returned, not raised; the
        document and the local draft are left intact so the user can retry.
        A submit that completes after unmount clears the draft but leaves the
        status alone and does not call on_exit.
        """
        if self._status != WizardStatus.READY:
            raise WizardError(f"Cannot submit while {self._status}")
        if not self.controller.is_last:
            raise WizardError("Submit is only available on the final step")

        try:
            session = self.gate.current()
        except AuthError as e:
            log.warning(f"Submit refused: {e.message}")
            return SubmitResult(ok=False, error=e.message, retryable=e.recoverable)

        report = validate_all(
            self._document,
            [s.id for s in self.controller.steps],
            self._validation_options,
        )
        failure = report.first_failure
        if failure is not None:
            log.verbose(f"Submit blocked by step '{failure.step_id}': {failure.reason}")
            return SubmitResult(
                ok=False,
                failed_step=failure.step_id,
                validation=failure,
                error=failure.reason,
            )

        payload = to_persisted_entity(self._document)
        self._set_status(WizardStatus.SUBMITTING)
        mode = "update" if self.property_id else "create"
        try:
            if self.property_id:
                entity = await self.gateway.update(self.property_id, payload)
            else:
                entity = await self.gateway.create(payload, session.user_id)
        except ListingWizardError as e:
            if isinstance(e, PartialWriteError):
                # The row exists now; the retry must update it.
                self.property_id = e.entity_id
            if self._status == WizardStatus.SUBMITTING:
                self._set_status(WizardStatus.READY)
            log.error(f"Submission failed: {e.message}")
            emit(
                "wizard.submit",
                component="wizard",
                operation=mode,
                data={"status": "error", "error_type": type(e).__name__},
            )
            return SubmitResult(ok=False, error=e.message, retryable=True)

        try:
            self.drafts.clear(self.draft_owner)
        except Exception as e:
            log.warning(f"Could not clear draft after submit: {type(e).__name__}: {e}")

        emit(
            "wizard.submit",
            component="wizard",
            operation=mode,
            data={"status": "ok", "property_id": entity.get("id")},
        )
        if self._status == WizardStatus.UNMOUNTED:
            log.info("Property submitted after the wizard was closed")
            return SubmitResult(ok=True, entity=entity)

        self._set_status(WizardStatus.SUBMITTED)
        if self.autosave is not None:
            await self.autosave.stop()
        log.info("Property submitted for review")
        self._exit(
            ExitReason.SUBMITTED,
            "Your property has been submitted for review. "
            "You'll be notified once it's approved.",
        )
        return SubmitResult(ok=True, entity=entity)
