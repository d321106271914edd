"""End-to-end wizard sessions against in-memory capabilities."""

from __future__ import annotations

import asyncio
import dataclasses

import pytest

from listingwizard.autosave import TickOutcome
from listingwizard.converter import to_persisted_entity
from listingwizard.core.errors import WizardError
from listingwizard.core.events import get_event_bus
from listingwizard.core.interfaces import Session
from listingwizard.photos import UploadFile
from listingwizard.steps import StepStatus
from listingwizard.wizard import ExitReason, WizardOrchestrator, WizardStatus


@pytest.fixture
def exits():
    return []


@pytest.fixture
def make_wizard(fake_auth, fake_gateway, fake_uploader, memory_drafts, settings, steps, fake_sleep, exits):
    def _make(**kwargs) -> WizardOrchestrator:
        params = {
            "auth": fake_auth,
            "gateway": fake_gateway,
            "drafts": memory_drafts,
            "uploader": fake_uploader,
            "settings": settings,
            "steps": steps,
            "sleep": fake_sleep,
            "on_exit": lambda reason, msg: exits.append((reason, msg)),
        }
        params.update(kwargs)
        return WizardOrchestrator(**params)

    return _make


def _walk_to_review(wizard: WizardOrchestrator) -> None:
    while not wizard.controller.is_last:
        transition = wizard.next()
        assert transition.moved, transition.validation


class TestCreateFlow:
    @pytest.mark.asyncio
    async def test_mount_edit_submit(self, make_wizard, valid_document, fake_gateway, memory_drafts, exits):
        wizard = make_wizard()
        assert await wizard.mount() is WizardStatus.READY
        assert wizard.session.user_id == "user-1"

        wizard.document = valid_document
        wizard.save_draft()
        assert memory_drafts.load("user-1") == valid_document

        _walk_to_review(wizard)
        result = await wizard.submit()

        assert result.ok
        assert result.entity["id"] == "prop-1"
        payload, owner = fake_gateway.created[0]
        assert owner == "user-1"
        assert payload["max_guests"] == 6
        assert payload["property_type"] == "Villa"
        assert wizard.status is WizardStatus.SUBMITTED
        assert memory_drafts.load("user-1") is None
        assert exits[0][0] is ExitReason.SUBMITTED

    @pytest.mark.asyncio
    async def test_submit_retry_after_network_failure(
        self, make_wizard, valid_document, fake_gateway, memory_drafts, exits
    ):
        wizard = make_wizard()
        await wizard.mount()
        wizard.document = valid_document
        wizard.save_draft()
        _walk_to_review(wizard)
        before = wizard.document.fingerprint()

        fake_gateway.fail_next = 1
        failed = await wizard.submit()

        assert not failed.ok
        assert failed.retryable
        assert "Network error" in failed.error
        assert wizard.status is WizardStatus.READY
        assert wizard.document.fingerprint() == before
        assert memory_drafts.load("user-1") == valid_document
        assert exits == []

        retried = await wizard.submit()
        assert retried.ok
        assert memory_drafts.load("user-1") is None
        assert len(fake_gateway.created) == 1

    @pytest.mark.asyncio
    async def test_retry_after_partial_create_updates_same_property(
        self, make_wizard, valid_document, fake_gateway, memory_drafts, exits
    ):
        wizard = make_wizard()
        await wizard.mount()
        wizard.document = valid_document
        wizard.save_draft()
        _walk_to_review(wizard)

        fake_gateway.fail_photos_next = 1
        failed = await wizard.submit()

        assert not failed.ok
        assert failed.retryable
        assert wizard.property_id == "prop-1"
        assert wizard.status is WizardStatus.READY
        assert memory_drafts.load("user-1") == valid_document

        retried = await wizard.submit()

        assert retried.ok
        assert len(fake_gateway.created) == 1
        assert [entity_id for entity_id, _ in fake_gateway.updated] == ["prop-1"]
        assert memory_drafts.load("user-1") is None
        assert [reason for reason, _ in exits] == [ExitReason.SUBMITTED]

    @pytest.mark.asyncio
    async def test_submit_reports_first_invalid_step(self, make_wizard, fake_gateway):
        wizard = make_wizard()
        await wizard.mount()
        wizard.go_to("review")

        result = await wizard.submit()

        assert not result.ok
        assert result.failed_step == "basic"
        assert result.error == "Title is required"
        assert fake_gateway.created == []
        assert wizard.status is WizardStatus.READY

    @pytest.mark.asyncio
    async def test_submit_only_on_last_step(self, make_wizard, valid_document):
        wizard = make_wizard()
        await wizard.mount()
        wizard.document = valid_document
        with pytest.raises(WizardError, match="final step"):
            await wizard.submit()

    @pytest.mark.asyncio
    async def test_session_lost_before_submit(self, make_wizard, valid_document, fake_auth, fake_gateway):
        wizard = make_wizard()
        await wizard.mount()
        wizard.document = valid_document
        _walk_to_review(wizard)

        fake_auth.session = None
        result = await wizard.submit()

        assert not result.ok
        assert result.error == "Session Expired"
        assert fake_gateway.created == []

    @pytest.mark.asyncio
    async def test_prefill_from_initial_values(self, make_wizard):
        wizard = make_wizard(initial_title="Lakeview Farm", initial_category="farmhouses")
        await wizard.mount()
        assert wizard.document.basic.title == "Lakeview Farm"
        assert wizard.document.basic.category == "Farmhouse"

    @pytest.mark.asyncio
    async def test_resume_draft_wins_over_prefill(self, make_wizard, memory_drafts, valid_document):
        memory_drafts.save("user-1", valid_document)
        wizard = make_wizard(initial_title="Ignored")
        await wizard.mount()

        assert wizard.document == valid_document
        assert wizard.autosave.last_saved is not None
        assert wizard.autosave.tick() is TickOutcome.SKIPPED_UNCHANGED


class TestNavigationAndView:
    @pytest.mark.asyncio
    async def test_next_blocked_then_allowed(self, make_wizard, valid_document):
        events: list[dict] = []
        get_event_bus().subscribe("wizard.step", events.append)
        wizard = make_wizard()
        await wizard.mount()

        blocked = wizard.next()
        assert not blocked.moved
        assert wizard.view().validation.reason == "Title is required"

        wizard.document = valid_document
        assert wizard.next().moved
        assert wizard.previous().moved
        assert [e["data"]["moved"] for e in events] == [False, True, True]

    @pytest.mark.asyncio
    async def test_view_for_day_picnic(self, make_wizard):
        wizard = make_wizard()
        await wizard.mount()

        def to_day_picnic(doc):
            doc.basic.category = "Day Picnic"
            doc.capacity.day_picnic_capacity = 40

        wizard.edit(to_day_picnic)
        wizard.go_to(1)
        view = wizard.view()

        assert view.title == "Capacity & Duration"
        assert view.sections == ("capacity",)
        assert view.validation.skipped
        assert view.step_statuses[:3] == (StepStatus.COMPLETE, StepStatus.CURRENT, StepStatus.UPCOMING)
        assert view.total == 8
        assert view.progress_percent == 25.0

    @pytest.mark.asyncio
    async def test_upload_photos(self, make_wizard, settings, fake_uploader):
        wizard = make_wizard(settings=dataclasses.replace(settings, storage_path_prefix="listings"))
        await wizard.mount()
        wizard.edit(lambda doc: setattr(doc.basic, "title", "Sea Breeze"))

        outcomes = await wizard.upload_photos([UploadFile("a.jpg", b"a"), UploadFile("b.jpg", b"b")])

        assert all(o.ok for o in outcomes)
        assert len(wizard.document.photos) == 2
        assert wizard.document.photos[0].is_primary
        assert fake_uploader.uploads[0][0].startswith("listings/property-")

    @pytest.mark.asyncio
    async def test_edits_rejected_before_ready(self, make_wizard, valid_document):
        wizard = make_wizard()
        with pytest.raises(WizardError):
            wizard.document = valid_document
        with pytest.raises(WizardError):
            wizard.save_draft()


class TestEditMode:
    @pytest.fixture
    def stored(self, fake_gateway, valid_document):
        entity = {**to_persisted_entity(valid_document), "id": "prop-7", "images": ["https://cdn/old.jpg"]}
        del entity["photos_with_captions"]
        fake_gateway.entities["prop-7"] = entity
        return entity

    @pytest.mark.asyncio
    async def test_load_and_update(self, make_wizard, stored, fake_gateway, valid_document):
        fake_gateway.photos["prop-7"] = [
            {"image_url": "https://cdn/new.jpg", "caption": "Pool", "is_primary": True, "display_order": 0}
        ]
        wizard = make_wizard(property_id="prop-7")

        assert await wizard.mount() is WizardStatus.READY
        assert wizard.document.basic.title == valid_document.basic.title
        assert wizard.document.image_urls == ["https://cdn/new.jpg"]

        wizard.edit(lambda doc: setattr(doc.basic, "title", "Sea Breeze Villa (renovated)"))
        _walk_to_review(wizard)
        result = await wizard.submit()

        assert result.ok
        entity_id, payload = fake_gateway.updated[0]
        assert entity_id == "prop-7"
        assert payload["title"] == "Sea Breeze Villa (renovated)"
        assert fake_gateway.created == []

    @pytest.mark.asyncio
    async def test_edit_drafts_do_not_leak_into_create(self, make_wizard, stored, memory_drafts):
        editor = make_wizard(property_id="prop-7")
        await editor.mount()
        editor.edit(lambda doc: setattr(doc.basic, "title", "Work in progress"))
        editor.save_draft()
        await editor.unmount()

        assert memory_drafts.load("user-1/prop-7").basic.title == "Work in progress"
        assert memory_drafts.load("user-1") is None

        creator = make_wizard()
        await creator.mount()
        assert creator.document.basic.title != "Work in progress"

    @pytest.mark.asyncio
    async def test_legacy_images_used_without_photo_records(self, make_wizard, stored):
        wizard = make_wizard(property_id="prop-7")
        await wizard.mount()
        assert wizard.document.image_urls == ["https://cdn/old.jpg"]
        assert wizard.document.photos[0].is_primary

    @pytest.mark.asyncio
    async def test_load_failure_then_retry(self, make_wizard, stored, fake_gateway):
        fake_gateway.fail_loads = 1
        wizard = make_wizard(property_id="prop-7")

        assert await wizard.mount() is WizardStatus.LOAD_FAILED
        assert "timed out" in wizard.error
        with pytest.raises(WizardError):
            wizard.edit(lambda doc: None)

        assert await wizard.retry_load() is WizardStatus.READY
        assert wizard.error is None

    @pytest.mark.asyncio
    async def test_missing_property(self, make_wizard):
        wizard = make_wizard(property_id="nope")
        assert await wizard.mount() is WizardStatus.LOAD_FAILED
        assert "not found" in wizard.error

    @pytest.mark.asyncio
    async def test_retry_requires_failed_load(self, make_wizard):
        wizard = make_wizard()
        await wizard.mount()
        with pytest.raises(WizardError, match="Nothing to retry"):
            await wizard.retry_load()


class TestAbort:
    @pytest.mark.asyncio
    async def test_no_session(self, make_wizard, fake_auth, exits):
        fake_auth.session = None
        fake_auth.artifact = False
        wizard = make_wizard()

        assert await wizard.mount() is WizardStatus.ABORTED
        assert exits == [(ExitReason.AUTH_REQUIRED, "Please sign in to continue creating your property.")]

    @pytest.mark.asyncio
    async def test_access_denied(self, make_wizard, fake_auth, exits):
        fake_auth.session = Session(user_id="a-1", role="admin")
        wizard = make_wizard()

        assert await wizard.mount() is WizardStatus.ABORTED
        assert exits[0][0] is ExitReason.ACCESS_DENIED
        assert wizard.error == "Access Denied"

    @pytest.mark.asyncio
    async def test_session_expired_after_grace(self, make_wizard, fake_auth, fake_sleep, exits):
        fake_auth.session = None
        fake_auth.artifact = True
        seen: list[WizardStatus] = []
        wizard = make_wizard()
        fake_sleep.on_call = lambda n, _delay: seen.append(wizard.status)

        assert await wizard.mount() is WizardStatus.ABORTED
        assert fake_sleep.calls == [1.0, 3.0]
        assert seen == [WizardStatus.AUTHENTICATING, WizardStatus.AWAITING_SESSION]
        assert exits[0][0] is ExitReason.SESSION_EXPIRED

    @pytest.mark.asyncio
    async def test_mount_twice(self, make_wizard):
        wizard = make_wizard()
        await wizard.mount()
        with pytest.raises(WizardError, match="already mounted"):
            await wizard.mount()


class TestUnmount:
    @pytest.mark.asyncio
    async def test_unmount_during_auth_wait(self, make_wizard, exits):
        waiting = asyncio.Event()

        async def blocking_sleep(_delay: float) -> None:
            waiting.set()
            await asyncio.Event().wait()

        wizard = make_wizard(sleep=blocking_sleep)
        mount = asyncio.create_task(wizard.mount())
        await waiting.wait()

        await wizard.unmount()

        assert await mount is WizardStatus.UNMOUNTED
        assert wizard.session is None
        assert exits == []

    @pytest.mark.asyncio
    async def test_cancel_reports_and_unmounts(self, make_wizard, exits):
        wizard = make_wizard()
        await wizard.mount()
        await wizard.cancel()
        assert exits == [(ExitReason.CANCELLED, None)]
        assert wizard.status is WizardStatus.UNMOUNTED

    @pytest.mark.asyncio
    async def test_autosave_runs_while_mounted(self, make_wizard, settings, memory_drafts, valid_document):
        delays: list[float] = []

        async def yielding_sleep(delay: float) -> None:
            delays.append(delay)
            await asyncio.sleep(0)

        memory_drafts.save("user-1", valid_document)
        wizard = make_wizard(
            settings=dataclasses.replace(settings, autosave_enabled=True, autosave_interval=30.0),
            sleep=yielding_sleep,
        )
        await wizard.mount()
        assert wizard.autosave.running

        wizard.edit(lambda doc: setattr(doc.basic, "title", "Sea Breeze Villa II"))
        while memory_drafts.writes < 2:
            await asyncio.sleep(0)
        assert memory_drafts.load("user-1").basic.title == "Sea Breeze Villa II"

        await wizard.unmount()
        assert not wizard.autosave.running
        assert 30.0 in delays

    @pytest.mark.asyncio
    async def test_submit_finishing_after_unmount_stays_silent(
        self, make_wizard, valid_document, fake_gateway, memory_drafts, exits
    ):
        wizard = make_wizard()
        await wizard.mount()
        wizard.document = valid_document
        wizard.save_draft()
        _walk_to_review(wizard)

        fake_gateway.hold = asyncio.Event()
        submit = asyncio.create_task(wizard.submit())
        while wizard.status is not WizardStatus.SUBMITTING:
            await asyncio.sleep(0)
        await wizard.unmount()
        fake_gateway.hold.set()
        result = await submit

        assert result.ok
        assert wizard.status is WizardStatus.UNMOUNTED
        assert exits == []
        assert len(fake_gateway.created) == 1
        assert memory_drafts.load("user-1") is None
