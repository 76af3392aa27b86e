"""Planner decision tables.

Radius/result limits and category mappings referenced by the planner. Provider-facing strings
(places types) must come from these mappings; nothing from the user query is passed through.
"""

from __future__ import annotations

from enum import StrEnum

from src.intent.schema import Category

PLACES_MAX_RESULTS = 40
EVENTS_MAX_RESULTS = 50
MAX_PLACES_TYPES = 3

DEFAULT_PLACES_RADIUS_M = 5000
NIGHTLIFE_PLACES_RADIUS_M = 2500
SOCIAL_PLACES_RADIUS_M = 3000
LOW_CONFIDENCE_PLACES_RADIUS_M = 4000

DEFAULT_EVENTS_RADIUS_MI = 25
MAJOR_CITY_EVENTS_RADIUS_MI = 35
LOW_CONFIDENCE_EVENTS_RADIUS_MI = 15

# Events enabled only by an incidental time mention are clamped to these.
WEAK_EVENTS_RADIUS_MI = 15
WEAK_EVENTS_MAX_RESULTS = 25

FALLBACK_PLACES_RADIUS_M = DEFAULT_PLACES_RADIUS_M
FALLBACK_PLACES_MAX_RESULTS = 20

LOW_CONFIDENCE_MAX = 0.4
HIGH_CONFIDENCE_MIN = 0.7


class ConfidenceTier(StrEnum):
    """Confidence bands governing how aggressively providers are combined."""

    low = "low"
    medium = "medium"
    high = "high"


def confidence_tier(confidence: float) -> ConfidenceTier:
    """Map a confidence score to its tier (low < 0.4 <= medium < 0.7 <= high)."""

    if confidence < LOW_CONFIDENCE_MAX:
        return ConfidenceTier.low
    if confidence >= HIGH_CONFIDENCE_MIN:
        return ConfidenceTier.high
    return ConfidenceTier.medium


PLACES_MAX_BY_TIER: dict[ConfidenceTier, int] = {
    ConfidenceTier.low: 20,
    ConfidenceTier.medium: 30,
    ConfidenceTier.high: PLACES_MAX_RESULTS,
}

EVENTS_MAX_BY_TIER: dict[ConfidenceTier, int] = {
    ConfidenceTier.low: 25,
    ConfidenceTier.medium: 40,
    ConfidenceTier.high: EVENTS_MAX_RESULTS,
}

# Places provider type filters. Music is usually an events concept; social is too broad.
CATEGORY_TO_PLACES_TYPES: dict[Category, tuple[str, ...]] = {
    Category.food: ("restaurant", "cafe"),
    Category.nightlife: ("bar", "night_club"),
    Category.art: ("museum", "art_gallery"),
    Category.history: ("museum", "tourist_attraction"),
    Category.fitness: ("gym",),
    Category.outdoor: ("park", "tourist_attraction"),
}

PLACES_TYPE_PRIORITY: tuple[Category, ...] = (
    Category.food,
    Category.nightlife,
    Category.art,
    Category.history,
    Category.fitness,
    Category.outdoor,
    Category.social,
    Category.other,
    Category.music,
)

PLACE_SIGNAL_CATEGORIES: frozenset[Category] = frozenset(
    {
        Category.food,
        Category.art,
        Category.history,
        Category.fitness,
        Category.outdoor,
        Category.nightlife,
    }
)

EVENT_SIGNAL_KEYWORDS: frozenset[str] = frozenset(
    {"concerts", "shows", "festivals", "sports", "comedy", "theater", "events"}
)

MAJOR_CITIES: frozenset[str] = frozenset(
    {"new york", "los angeles", "chicago", "san francisco", "seattle", "boston", "miami"}
)
