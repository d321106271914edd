"""Listing quality scores shown on the review step."""

from __future__ import annotations

from dataclasses import dataclass

from listingwizard.catalog import (
    EMERGENCY_PROCEDURES,
    FIRE_SAFETY_FEATURES,
    HEALTH_SAFETY_FEATURES,
    SECURITY_FEATURES,
)
from listingwizard.document import WizardDocument

SAFETY_FEATURES_TOTAL = (
    len(FIRE_SAFETY_FEATURES)
    + len(SECURITY_FEATURES)
    + len(HEALTH_SAFETY_FEATURES)
    + len(EMERGENCY_PROCEDURES)
)


def completion_percentage(doc: WizardDocument) -> int:
    """Weighted profile completion, 0..100.

    Basic details 30, rooms 20, amenities 15, photos 20, pricing 10,
    safety and extras 5.
    """
    score = 0
    b = doc.basic

    if b.title:
        score += 5
    if b.category:
        score += 5
    if len(b.description) > 100:
        score += 10
    if b.address:
        score += 5
    if b.contact_phone:
        score += 5

    if doc.max_guests > 0:
        score += 5
    if doc.capacity.bedrooms > 0 or doc.is_day_picnic:
        score += 5
    if doc.capacity.bathrooms > 0 or doc.is_day_picnic:
        score += 5
    if doc.rooms.room_types:
        score += 5

    amenity_count = len(doc.amenities.flat)
    if amenity_count >= 5:
        score += 10
    if amenity_count >= 10:
        score += 5

    photo_count = len(doc.photos)
    if photo_count >= 1:
        score += 5
    if photo_count >= 5:
        score += 10
    if photo_count >= 10:
        score += 5

    if doc.pricing.base_rate > 0:
        score += 5
    if len(doc.pricing.payment_methods) > 1:
        score += 5

    if doc.safety.fire_safety:
        score += 3
    if len(b.languages) > 1:
        score += 2

    return min(score, 100)


@dataclass(frozen=True)
class SafetyScore:
    selected: int
    total: int

    @property
    def rating(self) -> str:
        if self.selected >= 20:
            return "excellent"
        if self.selected >= 10:
            return "good"
        return "needs_more"


def safety_score(doc: WizardDocument) -> SafetyScore:
    return SafetyScore(selected=doc.safety.total, total=SAFETY_FEATURES_TOTAL)
