"""Closed vocabularies offered by the listing wizard."""

from __future__ import annotations

from enum import StrEnum


class PropertyCategory(StrEnum):
    DAY_PICNIC = "Day Picnic"
    HOTEL = "Hotel"
    VILLA = "Villa"
    RESORT = "Resort"
    FARMHOUSE = "Farmhouse"
    HOMESTAY = "Homestay"
    APARTMENT = "Apartment"
    GUESTHOUSE = "Guesthouse"
    HOSTEL = "Hostel"
    HERITAGE_PALACE = "Heritage Palace"
    BANQUET_HALL = "Banquet Hall"
    WEDDING_VENUE = "Wedding Venue"


class DurationCategory(StrEnum):
    HALF_DAY = "half_day"  # 4-6 hours
    FULL_DAY = "full_day"  # 8-10 hours
    EXTENDED_DAY = "extended_day"  # 10+ hours


class CancellationPolicy(StrEnum):
    FLEXIBLE = "flexible"
    MODERATE = "moderate"
    STRICT = "strict"
    SUPER_STRICT = "super_strict"
    NON_REFUNDABLE = "non_refundable"


class PhotoCategory(StrEnum):
    EXTERIOR = "exterior"
    INTERIOR = "interior"
    ROOM = "room"
    BATHROOM = "bathroom"
    AMENITY = "amenity"
    VIEW = "view"
    DINING = "dining"
    RECREATION = "recreation"


def _category_aliases() -> dict[str, PropertyCategory]:
    aliases: dict[str, PropertyCategory] = {}
    for cat in PropertyCategory:
        label = cat.value.lower()
        aliases[label] = cat
        aliases[label + "s"] = cat
        aliases[label.replace(" ", "-")] = cat
        aliases[label.replace(" ", "_")] = cat
    # Slugs and labels used by older listings.
    aliases["home-stays"] = PropertyCategory.HOMESTAY
    aliases["heritage-place"] = PropertyCategory.HERITAGE_PALACE
    aliases["picnic spot"] = PropertyCategory.DAY_PICNIC
    return aliases


_CATEGORY_ALIASES = _category_aliases()


def normalize_category(value: str | None) -> str:
    """Map a label, plural label or slug to the canonical category label.

    Unknown values are returned stripped but otherwise untouched so that
    validation can report them.
    """
    raw = (value or "").strip()
    if not raw:
        return ""
    cat = _CATEGORY_ALIASES.get(raw.lower())
    return cat.value if cat is not None else raw


def is_known_category(value: str) -> bool:
    return value in {c.value for c in PropertyCategory}


SUBTYPES: dict[PropertyCategory, list[str]] = {
    PropertyCategory.HOTEL: [
        "Luxury Hotel",
        "Business Hotel",
        "Budget Hotel",
        "Boutique Hotel",
        "Airport Hotel",
    ],
    PropertyCategory.VILLA: [
        "Luxury Villa",
        "Beach Villa",
        "Hill Station Villa",
        "Private Villa",
        "Shared Villa",
    ],
    PropertyCategory.APARTMENT: ["Studio", "1 BHK", "2 BHK", "3 BHK", "4+ BHK", "Penthouse"],
    PropertyCategory.GUESTHOUSE: [
        "Traditional Guesthouse",
        "Modern Guesthouse",
        "Family Guesthouse",
    ],
    PropertyCategory.RESORT: ["Beach Resort", "Hill Resort", "Wellness Resort", "Adventure Resort"],
    PropertyCategory.HOSTEL: ["Backpacker Hostel", "Luxury Hostel", "Female Only", "Mixed Dorm"],
    PropertyCategory.DAY_PICNIC: [
        "Family Picnic",
        "Corporate Outing",
        "Birthday Party",
        "Group Gathering",
    ],
    PropertyCategory.FARMHOUSE: [
        "Traditional Farmhouse",
        "Modern Farmhouse",
        "Heritage Farmhouse",
    ],
    PropertyCategory.HOMESTAY: ["Family Homestay", "Budget Homestay", "Luxury Homestay"],
    PropertyCategory.HERITAGE_PALACE: ["Royal Palace", "Heritage Hotel", "Historic Mansion"],
    PropertyCategory.BANQUET_HALL: ["Wedding Hall", "Conference Hall", "Event Space"],
    PropertyCategory.WEDDING_VENUE: ["Garden Wedding", "Beach Wedding", "Palace Wedding"],
}

LANGUAGES = [
    "English", "Hindi", "Bengali", "Telugu", "Marathi", "Tamil", "Gujarati", "Urdu",
    "Kannada", "Odia", "Malayalam", "Punjabi", "Assamese", "Maithili", "Sanskrit",
    "French", "German", "Spanish", "Chinese", "Japanese", "Korean", "Arabic",
]  # fmt: skip

ROOM_TYPES = [
    "Single Room", "Double Room", "Twin Room", "Triple Room", "Quad Room",
    "Suite", "Deluxe Room", "Premium Room", "Family Room", "Connecting Rooms",
    "Dormitory", "Private Room", "Shared Room", "Studio", "Apartment",
]  # fmt: skip

BED_TYPES = [
    "Single Bed", "Double Bed", "Queen Bed", "King Bed", "Twin Beds",
    "Bunk Bed", "Sofa Bed", "Murphy Bed", "Daybed", "Futon",
]  # fmt: skip

ROOM_AMENITIES = [
    "Air Conditioning", "Heating", "Wi-Fi", "TV", "Smart TV", "Minibar",
    "Coffee/Tea Maker", "Safe", "Balcony", "City View", "Garden View", "Sea View",
    "Private Bathroom", "Shared Bathroom", "Bathtub", "Shower", "Hair Dryer",
    "Toiletries", "Towels", "Desk", "Chair", "Wardrobe", "Iron", "Kitchenette",
]  # fmt: skip

PROPERTY_FACILITIES = [
    "Free Wi-Fi", "Parking", "Swimming Pool", "Fitness Center", "Restaurant",
    "Bar/Lounge", "Spa & Wellness", "24-hour Reception", "Room Service",
    "Laundry Service", "Airport Shuttle", "Business Center", "Meeting Rooms",
    "Garden/Terrace", "BBQ Facilities", "Children's Play Area", "Pet Friendly",
    "Non-smoking Property",
]  # fmt: skip

ROOM_FEATURES = [
    "Air Conditioning", "Heating", "Private Bathroom", "Shared Bathroom",
    "Flat-screen TV", "Smart TV", "Mini-bar", "Coffee/Tea Maker",
    "Safe", "Hair Dryer", "Iron & Ironing Board", "Balcony/Terrace",
    "City View", "Garden View", "Mountain View", "Sea View",
    "Desk & Chair", "Wardrobe/Closet", "Telephone", "Wake-up Service",
]  # fmt: skip

RECREATION_FACILITIES = [
    "Indoor Pool", "Outdoor Pool", "Hot Tub/Jacuzzi", "Sauna", "Steam Room",
    "Fitness Center", "Yoga Classes", "Tennis Court", "Golf Course Access",
    "Bicycle Rental", "Hiking Trails", "Water Sports", "Beach Access",
    "Library", "Game Room", "Entertainment Program", "Live Music",
]  # fmt: skip

ACCESSIBILITY_FEATURES = [
    "Wheelchair Accessible", "Elevator Access", "Accessible Parking",
    "Accessible Bathrooms", "Braille Signage", "Audio Induction Loop",
    "Grab Rails", "Step-free Access", "Accessible Pool", "Service Animals Allowed",
]  # fmt: skip

FIRE_SAFETY_FEATURES = [
    "Smoke Alarms", "Fire Extinguishers", "Fire Blankets", "Sprinkler System",
    "Emergency Exit Signs", "Fire Escape Routes", "Fire Doors", "Emergency Lighting",
    "Fire Assembly Point", "Staff Fire Training", "Regular Fire Drills",
    "Fire Safety Certificate",
]  # fmt: skip

SECURITY_FEATURES = [
    "CCTV Surveillance", "24-hour Security", "Access Control System", "Security Guards",
    "Electronic Key Cards", "Safe Deposit Boxes", "In-room Safes", "Security Lighting",
    "Perimeter Fencing", "Visitor Registration", "Emergency Alarm System", "Panic Buttons",
    "Security Patrol", "Biometric Access", "Motion Sensors", "Security Escort Service",
]  # fmt: skip

HEALTH_SAFETY_FEATURES = [
    "First Aid Kit", "First Aid Trained Staff", "Medical Emergency Procedures",
    "Emergency Contact List", "AED (Defibrillator)", "Wheelchair Accessibility",
    "Non-slip Surfaces", "Handrails & Grab Bars", "Emergency Phone System",
    "Regular Safety Inspections", "COVID-19 Safety Protocols", "Sanitization Stations",
    "Air Quality Monitoring", "Water Quality Testing", "Pest Control Services",
]  # fmt: skip

EMERGENCY_PROCEDURES = [
    "Fire Evacuation Plan", "Medical Emergency Response", "Natural Disaster Protocol",
    "Security Incident Response", "Power Outage Procedures", "Water Emergency Protocol",
    "Guest Emergency Contacts", "Local Emergency Services Info", "Staff Emergency Training",
    "Emergency Supply Kit", "Communication System", "Backup Generator",
]  # fmt: skip

PAYMENT_METHODS = ["card", "cash", "bank_transfer", "upi", "digital_wallet", "check"]

MEAL_PLANS = [
    "Room Only", "Bed & Breakfast", "Half Board", "Full Board", "All Inclusive",
    "Continental Breakfast", "American Breakfast", "Lunch Included", "Dinner Included",
]  # fmt: skip

_FIELD_OPTIONS: dict[str, list[str]] = {
    "category": [c.value for c in PropertyCategory],
    "languages": LANGUAGES,
    "room_types": ROOM_TYPES,
    "bed_types": BED_TYPES,
    "room_amenities": ROOM_AMENITIES,
    "facilities": PROPERTY_FACILITIES,
    "room_features": ROOM_FEATURES,
    "recreation": RECREATION_FACILITIES,
    "accessibility": ACCESSIBILITY_FEATURES,
    "fire_safety": FIRE_SAFETY_FEATURES,
    "security": SECURITY_FEATURES,
    "health_safety": HEALTH_SAFETY_FEATURES,
    "emergency_procedures": EMERGENCY_PROCEDURES,
    "payment_methods": PAYMENT_METHODS,
    "meal_plans": MEAL_PLANS,
    "cancellation_policy": [c.value for c in CancellationPolicy],
    "duration_category": [c.value for c in DurationCategory],
    "photo_category": [c.value for c in PhotoCategory],
}


def options_for(field: str, category: str | None = None) -> list[str]:
    """Return the selectable values for a wizard field.

    ``subtype`` depends on the property category; any other field ignores it.
    Unknown fields yield an empty list.
    """
    if field == "subtype":
        normalized = normalize_category(category)
        if not is_known_category(normalized):
            return []
        return list(SUBTYPES[PropertyCategory(normalized)])
    return list(_FIELD_OPTIONS.get(field, []))
