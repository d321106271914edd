"""Wizard document: the single mutable aggregate edited across all steps.

Sections are plain dataclasses with defaults so that a fresh document is
immediately renderable. Set-valued fields are ordered lists with set
semantics (see toggle_member()).

Serialization (to_dict/from_dict) is the draft format. from_dict is tolerant:
unknown keys are ignored and malformed values fall back to defaults, since a
draft may have been written by an older version.
"""

from __future__ import annotations

import copy
from dataclasses import asdict, dataclass, field
from typing import Any

from listingwizard.catalog import PhotoCategory, PropertyCategory, normalize_category
from listingwizard.coerce import (
    as_count_map,
    as_dict,
    as_float,
    as_int,
    as_list,
    as_number_map,
    as_opt_float,
    as_opt_int,
    as_opt_str,
    as_str,
    as_str_list,
    as_str_map,
)
from listingwizard.core.fingerprints import fingerprint_json

POLICY_BLOCKS = (
    "child_policy",
    "pet_policy",
    "smoking_policy",
    "damage_policy",
    "group_booking_policy",
)


def toggle_member(values: list[str], value: str) -> list[str]:
    """Return a copy of values with value added, or removed if present."""
    if value in values:
        return [v for v in values if v != value]
    return [*values, value]


def _dedup(values: list[str]) -> list[str]:
    out: list[str] = []
    for v in values:
        if v not in out:
            out.append(v)
    return out


@dataclass
class Coordinates:
    lat: float
    lng: float

    @classmethod
    def from_dict(cls, data: Any) -> Coordinates | None:
        d = as_dict(data)
        lat = as_opt_float(d.get("lat"))
        lng = as_opt_float(d.get("lng"))
        if lat is None or lng is None:
            return None
        return cls(lat=lat, lng=lng)


@dataclass
class BasicInfo:
    title: str = ""
    category: str = ""
    subtype: str = ""
    description: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: str = "India"
    coordinates: Coordinates | None = None
    contact_phone: str = ""
    license_number: str = ""
    star_rating: int = 3
    languages: list[str] = field(default_factory=lambda: ["English", "Hindi"])

    @classmethod
    def from_dict(cls, data: Any) -> BasicInfo:
        d = as_dict(data)
        out = cls()
        for name in (
            "title",
            "subtype",
            "description",
            "address",
            "city",
            "state",
            "postal_code",
            "contact_phone",
            "license_number",
        ):
            setattr(out, name, as_str(d.get(name)))
        out.category = normalize_category(as_str(d.get("category")))
        out.country = as_str(d.get("country"), out.country)
        out.coordinates = Coordinates.from_dict(d.get("coordinates"))
        out.star_rating = as_int(d.get("star_rating"), out.star_rating)
        if "languages" in d:
            out.languages = as_str_list(d.get("languages"))
        return out


@dataclass
class Capacity:
    """Either rooms x capacity (regular stays) or a single day-picnic figure."""

    rooms_count: int = 1
    capacity_per_room: int = 2
    bedrooms: int = 1
    bathrooms: int = 1
    day_picnic_capacity: int | None = None
    day_picnic_duration: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> Capacity:
        d = as_dict(data)
        base = cls()
        return cls(
            rooms_count=as_int(d.get("rooms_count"), base.rooms_count),
            capacity_per_room=as_int(d.get("capacity_per_room"), base.capacity_per_room),
            bedrooms=as_int(d.get("bedrooms"), base.bedrooms),
            bathrooms=as_int(d.get("bathrooms"), base.bathrooms),
            day_picnic_capacity=as_opt_int(d.get("day_picnic_capacity")),
            day_picnic_duration=as_opt_str(d.get("day_picnic_duration")),
        )


@dataclass
class RoomType:
    type: str = ""
    count: int = 1
    price_per_night: float | None = None
    size: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> RoomType:
        d = as_dict(data)
        return cls(
            type=as_str(d.get("type")),
            count=as_int(d.get("count"), 0),
            price_per_night=as_opt_float(d.get("price_per_night")),
            size=as_opt_str(d.get("size")),
        )


@dataclass
class RoomComposition:
    room_types: list[RoomType] = field(default_factory=list)
    amenities_per_room: dict[str, list[str]] = field(default_factory=dict)
    beds: dict[str, int] = field(default_factory=dict)
    configurations: dict[str, Any] = field(default_factory=dict)

    @property
    def allocated(self) -> int:
        return sum(rt.count for rt in self.room_types)

    @classmethod
    def from_dict(cls, data: Any) -> RoomComposition:
        d = as_dict(data)
        return cls(
            room_types=[RoomType.from_dict(x) for x in as_list(d.get("room_types"))],
            amenities_per_room={
                k: as_str_list(v) for k, v in as_dict(d.get("amenities_per_room")).items()
            },
            beds=as_count_map(d.get("beds")),
            configurations=as_dict(d.get("configurations")),
        )


@dataclass
class Amenities:
    property_facilities: list[str] = field(default_factory=list)
    room_features: list[str] = field(default_factory=list)
    recreation: list[str] = field(default_factory=list)
    accessibility: list[str] = field(default_factory=list)
    services: list[str] = field(default_factory=list)
    connectivity: dict[str, Any] = field(default_factory=dict)
    facilities: dict[str, Any] = field(default_factory=dict)

    @property
    def flat(self) -> list[str]:
        """Deprecated flat amenity list, derived from the structured sets."""
        return _dedup(
            [
                *self.property_facilities,
                *self.room_features,
                *self.recreation,
                *self.accessibility,
                *self.services,
            ]
        )

    @classmethod
    def from_dict(cls, data: Any) -> Amenities:
        d = as_dict(data)
        return cls(
            property_facilities=as_str_list(d.get("property_facilities")),
            room_features=as_str_list(d.get("room_features")),
            recreation=as_str_list(d.get("recreation")),
            accessibility=as_str_list(d.get("accessibility")),
            services=as_str_list(d.get("services")),
            connectivity=as_dict(d.get("connectivity")),
            facilities=as_dict(d.get("facilities")),
        )


@dataclass
class SeasonalRate:
    name: str = ""
    rate: float = 0.0
    start_date: str = ""
    end_date: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> SeasonalRate:
        d = as_dict(data)
        return cls(
            name=as_str(d.get("name")),
            rate=as_float(d.get("rate")),
            start_date=as_str(d.get("start_date")),
            end_date=as_str(d.get("end_date")),
        )


def _default_policies() -> dict[str, dict[str, Any]]:
    return {name: {} for name in POLICY_BLOCKS}


@dataclass
class PricingPolicy:
    base_rate: float = 1000.0
    currency: str = "INR"
    minimum_stay: int = 1
    seasonal_rates: list[SeasonalRate] = field(default_factory=list)
    special_rates: dict[str, float] = field(default_factory=dict)
    discounts: dict[str, float] = field(default_factory=dict)
    cancellation_policy: str = "moderate"
    check_in_time: str = "15:00"
    check_out_time: str = "11:00"
    payment_methods: list[str] = field(default_factory=lambda: ["card", "cash"])
    meal_plans: list[str] = field(default_factory=list)
    policies: dict[str, dict[str, Any]] = field(default_factory=_default_policies)

    @classmethod
    def from_dict(cls, data: Any) -> PricingPolicy:
        d = as_dict(data)
        out = cls()
        out.base_rate = as_float(d.get("base_rate"), out.base_rate)
        out.currency = as_str(d.get("currency"), out.currency) or out.currency
        out.minimum_stay = as_int(d.get("minimum_stay"), out.minimum_stay)
        out.seasonal_rates = [SeasonalRate.from_dict(x) for x in as_list(d.get("seasonal_rates"))]
        out.special_rates = as_number_map(d.get("special_rates"))
        out.discounts = as_number_map(d.get("discounts"))
        out.cancellation_policy = as_str(d.get("cancellation_policy"), out.cancellation_policy)
        out.check_in_time = as_str(d.get("check_in_time"), out.check_in_time)
        out.check_out_time = as_str(d.get("check_out_time"), out.check_out_time)
        if "payment_methods" in d:
            out.payment_methods = as_str_list(d.get("payment_methods"))
        out.meal_plans = as_str_list(d.get("meal_plans"))
        policies = as_dict(d.get("policies"))
        for name in POLICY_BLOCKS:
            out.policies[name] = as_dict(policies.get(name))
        return out


@dataclass
class Safety:
    fire_safety: list[str] = field(default_factory=list)
    security: list[str] = field(default_factory=list)
    health: list[str] = field(default_factory=list)
    emergency: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.fire_safety) + len(self.security) + len(self.health) + len(self.emergency)

    @classmethod
    def from_dict(cls, data: Any) -> Safety:
        d = as_dict(data)
        return cls(
            fire_safety=as_str_list(d.get("fire_safety")),
            security=as_str_list(d.get("security")),
            health=as_str_list(d.get("health")),
            emergency=as_str_list(d.get("emergency")),
        )


@dataclass
class NearbyPlace:
    name: str = ""
    type: str = ""
    distance: str = ""
    cuisine: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> NearbyPlace:
        d = as_dict(data)
        return cls(
            name=as_str(d.get("name")),
            type=as_str(d.get("type")),
            distance=as_str(d.get("distance")),
            cuisine=as_str(d.get("cuisine")),
        )


@dataclass
class Nearby:
    landmarks: list[NearbyPlace] = field(default_factory=list)
    dining: list[NearbyPlace] = field(default_factory=list)
    entertainment: list[NearbyPlace] = field(default_factory=list)
    distances: dict[str, str] = field(default_factory=dict)
    transport: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> Nearby:
        d = as_dict(data)
        return cls(
            landmarks=[NearbyPlace.from_dict(x) for x in as_list(d.get("landmarks"))],
            dining=[NearbyPlace.from_dict(x) for x in as_list(d.get("dining"))],
            entertainment=[NearbyPlace.from_dict(x) for x in as_list(d.get("entertainment"))],
            distances=as_str_map(d.get("distances")),
            transport=as_dict(d.get("transport")),
        )


@dataclass
class Photo:
    image_url: str
    caption: str = ""
    alt_text: str = ""
    category: str = PhotoCategory.EXTERIOR.value
    display_order: int = 0
    is_primary: bool = False

    @classmethod
    def from_dict(cls, data: Any) -> Photo:
        d = as_dict(data)
        return cls(
            image_url=as_str(d.get("image_url")),
            caption=as_str(d.get("caption")),
            alt_text=as_str(d.get("alt_text")),
            category=as_str(d.get("category"), PhotoCategory.EXTERIOR.value)
            or PhotoCategory.EXTERIOR.value,
            display_order=as_int(d.get("display_order")),
            is_primary=d.get("is_primary") is True,
        )


@dataclass
class ExtraServices:
    meals: dict[str, Any] = field(default_factory=dict)
    transportation: list[str] = field(default_factory=list)
    activities: list[str] = field(default_factory=list)
    spa_wellness: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> ExtraServices:
        d = as_dict(data)
        return cls(
            meals=as_dict(d.get("meals")),
            transportation=as_str_list(d.get("transportation")),
            activities=as_str_list(d.get("activities")),
            spa_wellness=as_str_list(d.get("spa_wellness")),
        )


@dataclass
class WizardDocument:
    basic: BasicInfo = field(default_factory=BasicInfo)
    capacity: Capacity = field(default_factory=Capacity)
    rooms: RoomComposition = field(default_factory=RoomComposition)
    amenities: Amenities = field(default_factory=Amenities)
    pricing: PricingPolicy = field(default_factory=PricingPolicy)
    safety: Safety = field(default_factory=Safety)
    nearby: Nearby = field(default_factory=Nearby)
    photos: list[Photo] = field(default_factory=list)
    extras: ExtraServices = field(default_factory=ExtraServices)

    @property
    def is_day_picnic(self) -> bool:
        return self.basic.category == PropertyCategory.DAY_PICNIC.value

    @property
    def max_guests(self) -> int:
        """Derived guest capacity; never stored."""
        if self.is_day_picnic:
            return self.capacity.day_picnic_capacity or 0
        return max(self.capacity.rooms_count, 0) * max(self.capacity.capacity_per_room, 0)

    @property
    def image_urls(self) -> list[str]:
        """Deprecated flat image list, derived from the photo records."""
        return [p.image_url for p in self.photos]

    @property
    def primary_photo(self) -> Photo | None:
        for p in self.photos:
            if p.is_primary:
                return p
        return None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Any) -> WizardDocument:
        d = as_dict(data)
        return cls(
            basic=BasicInfo.from_dict(d.get("basic")),
            capacity=Capacity.from_dict(d.get("capacity")),
            rooms=RoomComposition.from_dict(d.get("rooms")),
            amenities=Amenities.from_dict(d.get("amenities")),
            pricing=PricingPolicy.from_dict(d.get("pricing")),
            safety=Safety.from_dict(d.get("safety")),
            nearby=Nearby.from_dict(d.get("nearby")),
            photos=[Photo.from_dict(x) for x in as_list(d.get("photos"))],
            extras=ExtraServices.from_dict(d.get("extras")),
        )

    def fingerprint(self) -> str:
        return fingerprint_json(self.to_dict())

    def clone(self) -> WizardDocument:
        return copy.deepcopy(self)
