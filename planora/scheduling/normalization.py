"""Activity taxonomy and normalization of free-text categories onto it."""

from enum import Enum


class ActivityType(str, Enum):
    """Closed activity taxonomy."""

    attraction = "attraction"
    food = "food"
    transport = "transport"
    shopping = "shopping"
    nature = "nature"
    history = "history"


# Free-text categories seen from the generation service and user input.
TYPE_SYNONYMS: dict[str, ActivityType] = {
    "sightseeing": ActivityType.attraction,
    "museum": ActivityType.attraction,
    "landmark": ActivityType.attraction,
    "accommodation": ActivityType.attraction,
    "entertainment": ActivityType.attraction,
    "wellness": ActivityType.attraction,
    "business": ActivityType.attraction,
    "social": ActivityType.attraction,
    "personal": ActivityType.attraction,
    "rest": ActivityType.attraction,
    "other": ActivityType.attraction,
    "restaurant": ActivityType.food,
    "dining": ActivityType.food,
    "cafe": ActivityType.food,
    "street food": ActivityType.food,
    "flight": ActivityType.transport,
    "transit": ActivityType.transport,
    "train": ActivityType.transport,
    "taxi": ActivityType.transport,
    "market": ActivityType.shopping,
    "bazaar": ActivityType.shopping,
    "mall": ActivityType.shopping,
    "park": ActivityType.nature,
    "beach": ActivityType.nature,
    "hiking": ActivityType.nature,
    "garden": ActivityType.nature,
    "sports": ActivityType.nature,
    "historical": ActivityType.history,
    "heritage": ActivityType.history,
    "temple": ActivityType.history,
    "monument": ActivityType.history,
    "fort": ActivityType.history,
    "palace": ActivityType.history,
}


def normalize_activity_type(value: str | ActivityType | None) -> ActivityType:
    """Map a free-text category onto ActivityType.

    Canonical names map to themselves, known synonyms through TYPE_SYNONYMS,
    anything else (including empty or None) to ``attraction``. Idempotent.
    """
    if isinstance(value, ActivityType):
        return value
    if not value:
        return ActivityType.attraction

    key = value.strip().lower()
    if key in TYPE_SYNONYMS:
        return TYPE_SYNONYMS[key]
    try:
        return ActivityType(key)
    except ValueError:
        return ActivityType.attraction
