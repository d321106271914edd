"""Pytest configuration and fixtures."""

from __future__ import annotations

import importlib.util
import sys
from pathlib import Path
from types import ModuleType

import pytest

# Add repo root and src to path (for 'listingwizard.*' imports without install)
repo_root = Path(__file__).parent.parent
sys.path.insert(0, str(repo_root))
sys.path.insert(0, str(repo_root / "src"))

from listingwizard.core.config import WizardSettings  # noqa: E402
from listingwizard.core.events import get_event_bus  # noqa: E402
from listingwizard.core.interfaces import Session  # noqa: E402
from listingwizard.core.log_bus import get_log_bus  # noqa: E402
from listingwizard.core.logging import VerbosityLevel, set_verbosity  # noqa: E402
from listingwizard.document import RoomType, WizardDocument  # noqa: E402
from listingwizard.drafts import InMemoryDraftStore  # noqa: E402
from listingwizard.steps import load_step_definitions  # noqa: E402


def _load_fake(name: str) -> ModuleType:
    """Load a fakes module without turning tests/ into an importable package."""
    p = Path(__file__).resolve().parent / "fakes" / f"{name}.py"
    spec = importlib.util.spec_from_file_location(f"_listingwizard_test_{name}", p)
    assert spec and spec.loader
    mod = importlib.util.module_from_spec(spec)
    sys.modules[spec.name] = mod
    spec.loader.exec_module(mod)
    return mod


fake_auth_mod = _load_fake("fake_auth")
fake_gateway_mod = _load_fake("fake_gateway")
fake_http_mod = _load_fake("fake_http")


@pytest.fixture(autouse=True)
def _reset_buses():
    """Keep global buses and verbosity from leaking between tests."""
    get_event_bus().clear()
    get_log_bus().clear()
    set_verbosity(VerbosityLevel.NORMAL)
    yield
    get_event_bus().clear()
    get_log_bus().clear()
    set_verbosity(VerbosityLevel.NORMAL)


@pytest.fixture
def owner_session() -> Session:
    return Session(user_id="user-1", role="property_owner", email="owner@example.com")


@pytest.fixture
def fake_auth(owner_session):
    return fake_auth_mod.FakeAuthProvider(session=owner_session, artifact=True)


@pytest.fixture
def fake_sleep():
    return fake_auth_mod.FakeSleep()


@pytest.fixture
def fake_gateway():
    return fake_gateway_mod.FakeEntityGateway()


@pytest.fixture
def fake_uploader():
    return fake_gateway_mod.FakeUploadService()


@pytest.fixture
def fake_http() -> ModuleType:
    """Module with FakeSession / FakeResponse / connection_error."""
    return fake_http_mod


@pytest.fixture
def memory_drafts() -> InMemoryDraftStore:
    return InMemoryDraftStore()


@pytest.fixture
def settings(tmp_path: Path) -> WizardSettings:
    """Settings with zero-length timers (sleep is faked anyway)."""
    return WizardSettings(
        autosave_enabled=False,
        drafts_dir=tmp_path / "drafts",
    )


@pytest.fixture
def steps():
    return load_step_definitions()


@pytest.fixture
def valid_document() -> WizardDocument:
    """A Villa listing that passes every step."""
    doc = WizardDocument()
    b = doc.basic
    b.title = "Sea Breeze Villa"
    b.category = "Villa"
    b.description = "Three bedroom villa a short walk from the beach."
    b.address = "12 Coastal Road"
    b.city = "Goa"
    b.state = "Goa"
    b.contact_phone = "+91 90000 00000"
    doc.capacity.rooms_count = 3
    doc.capacity.capacity_per_room = 2
    doc.rooms.room_types = [
        RoomType(type="Double Room", count=2, price_per_night=4500.0),
        RoomType(type="Suite", count=1, price_per_night=7000.0, size="40 sqm"),
    ]
    doc.amenities.property_facilities = ["Free Wi-Fi", "Swimming Pool"]
    doc.safety.fire_safety = ["Smoke Alarms"]
    return doc
