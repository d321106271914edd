"""Validation engine.

Pure and synchronous: given a document, report pass/fail plus human-readable
reasons. A failed validation is a value (ValidationResult), never an
exception.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import date

from listingwizard.catalog import (
    CancellationPolicy,
    DurationCategory,
    PhotoCategory,
    is_known_category,
)
from listingwizard.document import SeasonalRate, WizardDocument

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

_PHOTO_CATEGORIES = frozenset(c.value for c in PhotoCategory)
_CANCELLATION_POLICIES = frozenset(c.value for c in CancellationPolicy)


@dataclass(frozen=True)
class ValidationResult:
    step_id: str
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    skipped: bool = False

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def reason(self) -> str | None:
        """First blocking message, if any."""
        return self.errors[0] if self.errors else None


@dataclass(frozen=True)
class ValidationReport:
    """Result of validating every step in order."""

    results: tuple[ValidationResult, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return all(r.ok for r in self.results)

    @property
    def first_failure(self) -> ValidationResult | None:
        for r in self.results:
            if not r.ok:
                return r
        return None

    def for_step(self, step_id: str) -> ValidationResult | None:
        for r in self.results:
            if r.step_id == step_id:
                return r
        return None


@dataclass(frozen=True)
class ValidationOptions:
    seasonal_overlap_check: bool = False


def room_allocation_remaining(doc: WizardDocument) -> int:
    """Declared rooms minus rooms allocated to room types.

    > 0: under-allocated, < 0: over-allocated, 0: exact.
    """
    return doc.capacity.rooms_count - doc.rooms.allocated


def room_allocation_message(doc: WizardDocument) -> str | None:
    remaining = room_allocation_remaining(doc)
    if remaining > 0:
        return (
            f"Room types need {remaining} more room(s) to match the "
            f"{doc.capacity.rooms_count} declared"
        )
    if remaining < 0:
        return (
            f"Room types are over by {-remaining} room(s); only "
            f"{doc.capacity.rooms_count} declared"
        )
    return None


def _parse_date(value: str) -> date | None:
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        return None


def seasonal_overlaps(seasons: Iterable[SeasonalRate]) -> list[tuple[str, str]]:
    """Return name pairs of seasons whose inclusive date ranges intersect.

    Seasons with unparsable or inverted ranges are ignored here; they are
    reported by the policies rules.
    """
    spans: list[tuple[date, date, str]] = []
    for s in seasons:
        start = _parse_date(s.start_date)
        end = _parse_date(s.end_date)
        if start is None or end is None or start > end:
            continue
        spans.append((start, end, s.name))

    spans.sort(key=lambda t: (t[0], t[1]))
    out: list[tuple[str, str]] = []
    for i, (_start_a, end_a, name_a) in enumerate(spans):
        for start_b, _end_b, name_b in spans[i + 1 :]:
            if start_b > end_a:
                break
            out.append((name_a, name_b))
    return out


def _check_basic(doc: WizardDocument, opts: ValidationOptions) -> tuple[list[str], list[str]]:
    b = doc.basic
    errors: list[str] = []
    required = (
        ("title", "Title"),
        ("category", "Property type"),
        ("description", "Description"),
        ("address", "Address"),
        ("city", "City"),
        ("state", "State"),
    )
    for attr, label in required:
        if not getattr(b, attr).strip():
            errors.append(f"{label} is required")
    if b.category.strip() and not is_known_category(b.category):
        errors.append(f"Unknown property type: {b.category!r}")
    if not 1 <= b.star_rating <= 5:
        errors.append("Star rating must be between 1 and 5")
    return errors, []


def _check_rooms(doc: WizardDocument, opts: ValidationOptions) -> tuple[list[str], list[str]]:
    c = doc.capacity
    errors: list[str] = []
    if c.rooms_count < 1:
        errors.append("At least one room is required")
    if c.capacity_per_room < 1:
        errors.append("Capacity per room must be at least 1")
    if c.bedrooms < 0 or c.bathrooms < 0:
        errors.append("Bedroom and bathroom counts cannot be negative")
    for i, rt in enumerate(doc.rooms.room_types, start=1):
        if not rt.type.strip():
            errors.append(f"Room type #{i} needs a type")
        if rt.count < 1:
            errors.append(f"Room type #{i} needs a count of at least 1")
    msg = room_allocation_message(doc)
    if msg is not None:
        errors.append(msg)
    return errors, []


def _day_picnic_warnings(doc: WizardDocument) -> list[str]:
    c = doc.capacity
    warnings: list[str] = []
    if not c.day_picnic_capacity or c.day_picnic_capacity < 1:
        warnings.append("Day picnic capacity is not set")
    known = {d.value for d in DurationCategory}
    if c.day_picnic_duration and c.day_picnic_duration not in known:
        warnings.append(f"Unknown day picnic duration: {c.day_picnic_duration!r}")
    return warnings


def _check_photos(doc: WizardDocument, opts: ValidationOptions) -> tuple[list[str], list[str]]:
    errors: list[str] = []
    warnings: list[str] = []
    for i, p in enumerate(doc.photos, start=1):
        if not p.image_url.strip():
            errors.append(f"Photo #{i} has no image URL")
        if p.category not in _PHOTO_CATEGORIES:
            errors.append(f"Photo #{i} has an unknown category: {p.category!r}")
    if doc.photos:
        primaries = sum(1 for p in doc.photos if p.is_primary)
        if primaries != 1:
            errors.append(f"Exactly one primary photo is required (found {primaries})")
    else:
        warnings.append("Listings with photos attract more bookings")
    return errors, warnings


def _check_policies(doc: WizardDocument, opts: ValidationOptions) -> tuple[list[str], list[str]]:
    p = doc.pricing
    errors: list[str] = []
    warnings: list[str] = []
    if p.base_rate <= 0:
        errors.append("Base rate must be greater than 0")
    if not p.currency.strip():
        errors.append("Currency is required")
    if p.minimum_stay < 1:
        errors.append("Minimum stay must be at least 1 night")
    if p.cancellation_policy not in _CANCELLATION_POLICIES:
        errors.append(f"Unknown cancellation policy: {p.cancellation_policy!r}")
    if not _TIME_RE.match(p.check_in_time):
        errors.append(f"Check-in time must be HH:MM, got {p.check_in_time!r}")
    if not _TIME_RE.match(p.check_out_time):
        errors.append(f"Check-out time must be HH:MM, got {p.check_out_time!r}")

    for i, s in enumerate(p.seasonal_rates, start=1):
        label = s.name.strip() or f"#{i}"
        if not s.name.strip():
            errors.append(f"Season #{i} needs a name")
        if s.rate <= 0:
            errors.append(f"Season {label} rate must be greater than 0")
        start = _parse_date(s.start_date)
        end = _parse_date(s.end_date)
        if start is None or end is None:
            errors.append(f"Season {label} needs valid start and end dates (YYYY-MM-DD)")
        elif start > end:
            errors.append(f"Season {label} ends before it starts")

    for a, b in seasonal_overlaps(p.seasonal_rates):
        msg = f"Seasons {a!r} and {b!r} overlap"
        if opts.seasonal_overlap_check:
            errors.append(msg)
        else:
            warnings.append(msg)
    return errors, warnings


def _check_location(doc: WizardDocument, opts: ValidationOptions) -> tuple[list[str], list[str]]:
    errors: list[str] = []
    n = doc.nearby
    for group, places in (
        ("Landmark", n.landmarks),
        ("Dining place", n.dining),
        ("Entertainment place", n.entertainment),
    ):
        for i, place in enumerate(places, start=1):
            if not place.name.strip():
                errors.append(f"{group} #{i} needs a name")
    return errors, []


_Check = Callable[[WizardDocument, ValidationOptions], tuple[list[str], list[str]]]

_CHECKS: dict[str, _Check] = {
    "basic": _check_basic,
    "rooms": _check_rooms,
    "photos": _check_photos,
    "policies": _check_policies,
    "location": _check_location,
}


def validate_step(
    step_id: str, doc: WizardDocument, options: ValidationOptions | None = None
) -> ValidationResult:
    """Validate the document partition owned by one step.

    Steps without rules (amenities, safety, review) always pass. The rooms
    step is skipped for the day-picnic category.
    """
    opts = options or ValidationOptions()

    if step_id == "rooms" and doc.is_day_picnic:
        return ValidationResult(
            step_id=step_id, warnings=tuple(_day_picnic_warnings(doc)), skipped=True
        )

    check = _CHECKS.get(step_id)
    if check is None:
        return ValidationResult(step_id=step_id)

    errors, warnings_list = check(doc, opts)
    return ValidationResult(
        step_id=step_id, errors=tuple(errors), warnings=tuple(warnings_list)
    )


def validate_all(
    doc: WizardDocument,
    step_ids: Iterable[str],
    options: ValidationOptions | None = None,
) -> ValidationReport:
    return ValidationReport(results=tuple(validate_step(s, doc, options) for s in step_ids))
