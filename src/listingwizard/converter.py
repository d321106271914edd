"""Format converter between the wizard document and the persisted entity.

to_wizard_document() and to_persisted_entity() are inverses on the fields
they share. Loading never raises: missing or malformed sections degrade to
document defaults, since older entities may lack newer optional sections.

Deprecated flat fields (``amenities``, ``images``) are written for older
consumers but folded into the structured form on load.
"""

from __future__ import annotations

from typing import Any

from listingwizard.catalog import PhotoCategory, PropertyCategory, normalize_category
from listingwizard.coerce import (
    as_count_map,
    as_dict,
    as_float,
    as_int,
    as_list,
    as_number_map,
    as_opt_int,
    as_opt_str,
    as_str,
    as_str_list,
    as_str_map,
)
from listingwizard.document import (
    POLICY_BLOCKS,
    Amenities,
    BasicInfo,
    Capacity,
    Coordinates,
    ExtraServices,
    Nearby,
    NearbyPlace,
    Photo,
    PricingPolicy,
    RoomComposition,
    RoomType,
    Safety,
    SeasonalRate,
    WizardDocument,
)


def normalize_photos(photos: list[Photo]) -> list[Photo]:
    """Sort by display_order, renumber densely and keep exactly one primary.

    The first primary in order wins; with no primary, the first photo is
    promoted. Photos without a URL are dropped.
    """
    ordered = sorted(
        (p for p in photos if p.image_url), key=lambda p: p.display_order
    )
    primary_seen = False
    out: list[Photo] = []
    for i, p in enumerate(ordered):
        is_primary = p.is_primary and not primary_seen
        primary_seen = primary_seen or is_primary
        out.append(
            Photo(
                image_url=p.image_url,
                caption=p.caption,
                alt_text=p.alt_text,
                category=p.category,
                display_order=i,
                is_primary=is_primary,
            )
        )
    if out and not primary_seen:
        out[0].is_primary = True
    return out


def photos_from_image_urls(urls: list[str]) -> list[Photo]:
    """Synthesize photo records from a legacy flat image list."""
    return [
        Photo(
            image_url=url,
            caption="",
            alt_text="",
            category=PhotoCategory.EXTERIOR.value,
            display_order=i,
            is_primary=i == 0,
        )
        for i, url in enumerate(urls)
    ]


# -- entity -> document ------------------------------------------------------


def _basic_from_entity(e: dict[str, Any]) -> BasicInfo:
    location = as_dict(e.get("location"))
    out = BasicInfo(
        title=as_str(e.get("title")),
        category=normalize_category(as_str(e.get("property_type"))),
        subtype=as_str(e.get("property_subtype")),
        description=as_str(e.get("description")),
        address=as_str(e.get("address")) or as_str(location.get("address")),
        city=as_str(location.get("city")) or as_str(e.get("city")),
        state=as_str(location.get("state")) or as_str(e.get("state")),
        postal_code=as_str(e.get("postal_code")),
        country=as_str(e.get("country")) or BasicInfo().country,
        coordinates=Coordinates.from_dict(location.get("coordinates")),
        contact_phone=as_str(e.get("contact_phone")),
        license_number=as_str(e.get("license_number")),
        star_rating=as_int(e.get("star_rating"), BasicInfo().star_rating),
    )
    if "languages_spoken" in e:
        out.languages = as_str_list(e.get("languages_spoken"))
    return out


def _capacity_from_entity(e: dict[str, Any], category: str) -> Capacity:
    base = Capacity()
    dp_capacity = as_opt_int(e.get("day_picnic_capacity"))
    if dp_capacity is None and category == PropertyCategory.DAY_PICNIC.value:
        dp_capacity = as_opt_int(e.get("max_guests"))
    return Capacity(
        rooms_count=as_int(e.get("rooms_count"), base.rooms_count),
        capacity_per_room=as_int(e.get("capacity_per_room"), base.capacity_per_room),
        bedrooms=as_int(e.get("bedrooms"), base.bedrooms),
        bathrooms=as_int(e.get("bathrooms"), base.bathrooms),
        day_picnic_capacity=dp_capacity,
        day_picnic_duration=as_opt_str(e.get("day_picnic_duration_category")),
    )


def _rooms_from_entity(e: dict[str, Any]) -> RoomComposition:
    details = as_dict(e.get("rooms_details"))
    beds = as_dict(e.get("bed_configuration"))
    return RoomComposition(
        room_types=[RoomType.from_dict(x) for x in as_list(details.get("types"))],
        amenities_per_room={
            k: as_str_list(v) for k, v in as_dict(details.get("amenities_per_room")).items()
        },
        beds=as_count_map(beds.get("beds")),
        configurations=as_dict(details.get("configurations")),
    )


def _amenities_from_entity(e: dict[str, Any]) -> Amenities:
    details = as_dict(e.get("amenities_details"))
    out = Amenities(
        property_facilities=as_str_list(details.get("property_facilities")),
        room_features=as_str_list(details.get("room_features")),
        recreation=as_str_list(details.get("recreation")),
        accessibility=as_str_list(details.get("accessibility")),
        services=as_str_list(details.get("services")),
        connectivity=as_dict(details.get("connectivity")),
        facilities=as_dict(e.get("facilities")),
    )
    known = set(out.flat)
    for legacy in as_str_list(e.get("amenities")):
        if legacy not in known:
            out.property_facilities.append(legacy)
            known.add(legacy)
    return out


def _pricing_from_entity(e: dict[str, Any]) -> PricingPolicy:
    base = PricingPolicy()
    pricing = as_dict(e.get("pricing"))
    seasonal = as_dict(e.get("seasonal_pricing"))
    extended = as_dict(e.get("policies_extended"))

    rate = pricing.get("daily_rate")
    if rate is None:
        rate = e.get("price")

    out = PricingPolicy(
        base_rate=as_float(rate, base.base_rate),
        currency=as_str(pricing.get("currency")) or base.currency,
        minimum_stay=as_int(e.get("minimum_stay"), base.minimum_stay),
        seasonal_rates=[SeasonalRate.from_dict(x) for x in as_list(seasonal.get("seasons"))],
        special_rates=as_number_map(seasonal.get("special_rates")),
        discounts=as_number_map(seasonal.get("discounts")),
        cancellation_policy=as_str(e.get("cancellation_policy")) or base.cancellation_policy,
        check_in_time=as_str(e.get("check_in_time")) or base.check_in_time,
        check_out_time=as_str(e.get("check_out_time")) or base.check_out_time,
        meal_plans=as_str_list(e.get("meal_plans")),
        policies={name: as_dict(extended.get(name)) for name in POLICY_BLOCKS},
    )
    if "payment_methods" in e:
        out.payment_methods = as_str_list(e.get("payment_methods"))
    return out


def _safety_from_entity(e: dict[str, Any]) -> Safety:
    s = as_dict(e.get("safety_security"))
    return Safety(
        fire_safety=as_str_list(s.get("fire_safety")),
        security=as_str_list(s.get("security_features")),
        health=as_str_list(s.get("health_safety")),
        emergency=as_str_list(s.get("emergency_procedures")),
    )


def _nearby_from_entity(e: dict[str, Any]) -> Nearby:
    n = as_dict(e.get("nearby_attractions"))
    return Nearby(
        landmarks=[NearbyPlace.from_dict(x) for x in as_list(n.get("landmarks"))],
        dining=[NearbyPlace.from_dict(x) for x in as_list(n.get("dining"))],
        entertainment=[NearbyPlace.from_dict(x) for x in as_list(n.get("entertainment"))],
        distances=as_str_map(n.get("distances")),
        transport=as_dict(n.get("transport")),
    )


def _photos_from_entity(
    e: dict[str, Any], photo_records: list[dict[str, Any]] | None
) -> list[Photo]:
    records = as_list(photo_records)
    if not records:
        records = as_list(e.get("photos_with_captions"))
    if records:
        return normalize_photos([Photo.from_dict(r) for r in records])
    return photos_from_image_urls(as_str_list(e.get("images")))


def to_wizard_document(
    entity: dict[str, Any], photo_records: list[dict[str, Any]] | None = None
) -> WizardDocument:
    """Build a wizard document from a persisted entity.

    Args:
        entity: Property record as returned by the entity gateway
        photo_records: Dedicated photo records; they take precedence over the
            entity's legacy image list

    Returns:
        A new document; never raises on malformed input.
    """
    e = as_dict(entity)
    basic = _basic_from_entity(e)
    return WizardDocument(
        basic=basic,
        capacity=_capacity_from_entity(e, basic.category),
        rooms=_rooms_from_entity(e),
        amenities=_amenities_from_entity(e),
        pricing=_pricing_from_entity(e),
        safety=_safety_from_entity(e),
        nearby=_nearby_from_entity(e),
        photos=_photos_from_entity(e, photo_records),
        extras=ExtraServices.from_dict(e.get("extra_services")),
    )


# -- document -> entity ------------------------------------------------------


def _place(p: NearbyPlace) -> dict[str, Any]:
    out: dict[str, Any] = {"name": p.name, "type": p.type, "distance": p.distance}
    if p.cuisine:
        out["cuisine"] = p.cuisine
    return out


def _room_type(rt: RoomType) -> dict[str, Any]:
    out: dict[str, Any] = {"type": rt.type, "count": rt.count}
    if rt.price_per_night is not None:
        out["price_per_night"] = rt.price_per_night
    if rt.size:
        out["size"] = rt.size
    return out


def photo_record(photo: Photo) -> dict[str, Any]:
    return {
        "image_url": photo.image_url,
        "caption": photo.caption,
        "alt_text": photo.alt_text,
        "category": photo.category,
        "display_order": photo.display_order,
        "is_primary": photo.is_primary,
    }


def to_persisted_entity(doc: WizardDocument) -> dict[str, Any]:
    """Produce the payload accepted by EntityGateway.create/update.

    max_guests is re-derived; deprecated flat fields are derived from the
    structured sections.
    """
    b = doc.basic
    c = doc.capacity
    p = doc.pricing
    a = doc.amenities

    location: dict[str, Any] = {"address": b.address, "city": b.city, "state": b.state}
    if b.coordinates is not None:
        location["coordinates"] = {"lat": b.coordinates.lat, "lng": b.coordinates.lng}

    photos = [photo_record(ph) for ph in doc.photos]

    return {
        "title": b.title,
        "description": b.description,
        "property_type": b.category,
        "property_subtype": b.subtype,
        "address": b.address,
        "postal_code": b.postal_code,
        "country": b.country,
        "contact_phone": b.contact_phone,
        "license_number": b.license_number,
        "star_rating": b.star_rating,
        "languages_spoken": list(b.languages),
        "location": location,
        "rooms_count": c.rooms_count,
        "capacity_per_room": c.capacity_per_room,
        "max_guests": doc.max_guests,
        "bedrooms": c.bedrooms,
        "bathrooms": c.bathrooms,
        "day_picnic_capacity": c.day_picnic_capacity,
        "day_picnic_duration_category": c.day_picnic_duration,
        "rooms_details": {
            "types": [_room_type(rt) for rt in doc.rooms.room_types],
            "configurations": dict(doc.rooms.configurations),
            "amenities_per_room": {k: list(v) for k, v in doc.rooms.amenities_per_room.items()},
        },
        "bed_configuration": {"beds": dict(doc.rooms.beds)},
        "amenities": a.flat,
        "amenities_details": {
            "property_facilities": list(a.property_facilities),
            "room_features": list(a.room_features),
            "connectivity": dict(a.connectivity),
            "recreation": list(a.recreation),
            "services": list(a.services),
            "accessibility": list(a.accessibility),
        },
        "facilities": dict(a.facilities),
        "pricing": {"currency": p.currency, "daily_rate": p.base_rate},
        "seasonal_pricing": {
            "seasons": [
                {
                    "name": s.name,
                    "rate": s.rate,
                    "start_date": s.start_date,
                    "end_date": s.end_date,
                }
                for s in p.seasonal_rates
            ],
            "special_rates": dict(p.special_rates),
            "discounts": dict(p.discounts),
        },
        "minimum_stay": p.minimum_stay,
        "cancellation_policy": p.cancellation_policy,
        "check_in_time": p.check_in_time,
        "check_out_time": p.check_out_time,
        "payment_methods": list(p.payment_methods),
        "meal_plans": list(p.meal_plans),
        "policies_extended": {name: dict(p.policies.get(name, {})) for name in POLICY_BLOCKS},
        "safety_security": {
            "fire_safety": list(doc.safety.fire_safety),
            "security_features": list(doc.safety.security),
            "emergency_procedures": list(doc.safety.emergency),
            "health_safety": list(doc.safety.health),
        },
        "nearby_attractions": {
            "landmarks": [_place(x) for x in doc.nearby.landmarks],
            "transport": dict(doc.nearby.transport),
            "dining": [_place(x) for x in doc.nearby.dining],
            "entertainment": [_place(x) for x in doc.nearby.entertainment],
            "distances": dict(doc.nearby.distances),
        },
        "extra_services": {
            "meals": dict(doc.extras.meals),
            "transportation": list(doc.extras.transportation),
            "activities": list(doc.extras.activities),
            "spa_wellness": list(doc.extras.spa_wellness),
        },
        "images": doc.image_urls,
        "photos_with_captions": photos,
    }
