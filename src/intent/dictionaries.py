"""English dictionaries for places, events, vibes, time and location phrases.

These mappings are used by the rules-based parser and should remain small and deterministic.
Keys are canonical terms; values are the literal variants recognized in normalized text.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from functools import lru_cache

STOPWORDS: frozenset[str] = frozenset(
    {
        "a", "an", "and", "are", "at", "be", "by", "do", "for", "from", "going", "happening",
        "here", "i", "in", "is", "it", "me", "my", "near", "of", "on", "or", "places", "please",
        "show", "some", "stuff", "that", "the", "this", "things", "to", "up", "what", "with",
        "you", "your",
    }
)

DAYS_OF_WEEK: dict[str, tuple[str, ...]] = {
    "monday": ("monday", "mon"),
    "tuesday": ("tuesday", "tue", "tues"),
    "wednesday": ("wednesday", "wed"),
    "thursday": ("thursday", "thu", "thurs"),
    "friday": ("friday", "fri"),
    "saturday": ("saturday", "sat"),
    "sunday": ("sunday", "sun"),
}

# Vibes enrich the intent; they never decide provider selection on their own.
VIBE_TERMS: dict[str, tuple[str, ...]] = {
    "lively": ("lively", "energetic", "upbeat", "buzzing"),
    "relaxing": ("relaxing", "relaxed", "calm", "peaceful", "chill", "laid-back"),
    "creative": ("creative", "artsy", "hands-on", "maker"),
    "social": ("social", "friendly", "meet", "meetup", "networking"),
    "fun": ("fun", "exciting", "awesome"),
    "romantic": ("romantic", "date", "date-night", "cozy"),
    "family": ("family", "kid-friendly", "family-friendly"),
    "adventurous": ("adventurous", "adventure"),
    "quiet": ("quiet", "lowkey", "low-key"),
}

PLACE_KEYWORDS: dict[str, tuple[str, ...]] = {
    # food
    "pizza": ("pizza", "pizzeria"),
    "sushi": ("sushi",),
    "burgers": ("burger", "burgers"),
    "restaurant": ("restaurant", "restaurants", "dinner", "lunch", "brunch", "breakfast", "food", "eat"),
    "cafe": ("cafe", "cafes", "coffee", "coffee shop", "coffee shops"),
    "dessert": ("ice cream", "dessert", "bakery", "boba"),
    # nightlife
    "bars": ("bar", "bars", "pub", "pubs", "brewery", "breweries", "cocktails"),
    "club": ("club", "clubs", "nightlife", "dance"),
    # culture
    "museum": ("museum", "museums", "gallery", "galleries"),
    "exhibits": ("exhibit", "exhibits", "exhibition", "exhibitions"),
    # outdoor
    "park": ("park", "parks", "trail", "trails", "hike", "hiking", "beach", "outdoors", "outdoor"),
    # fitness
    "gym": ("gym", "gyms", "fitness", "workout", "yoga", "pilates"),
}

EVENT_KEYWORDS: dict[str, tuple[str, ...]] = {
    "concerts": ("concert", "concerts", "live music", "gig", "gigs"),
    "shows": ("show", "shows", "performance", "performances"),
    "festivals": ("festival", "festivals", "fair", "fairs"),
    "sports": ("game", "games", "match", "matches", "sports"),
    "comedy": ("comedy", "standup", "stand-up"),
    "theater": ("theater", "theatre", "play", "plays", "musical", "musicals"),
    "events": ("event", "events", "happening", "going on", "what's on"),
}

CITY_ALIASES: dict[str, tuple[str, ...]] = {
    "san francisco": ("san francisco", "sf", "bay area"),
    "new york": ("new york", "nyc", "new york city"),
    "los angeles": ("los angeles", "la"),
    "chicago": ("chicago",),
    "miami": ("miami",),
    "austin": ("austin",),
    "seattle": ("seattle",),
    "boston": ("boston",),
}

NEAR_ME_PHRASES: tuple[str, ...] = ("near me", "nearby", "around here", "close to me", "in my area")
NEAR_ME_TOKENS: frozenset[str] = frozenset({"near", "me", "nearby", "around", "here", "close", "area"})
NEAR_ME_VALUE = "near me"

ZIP_RE = re.compile(r"\b\d{5}\b")

# Trailing "in <phrase>" / "at <phrase>"; string heuristic only, no geocoding.
TRAILING_LOCATION_RE = re.compile(r"\b(?:in|at)\s+(?P<phrase>[a-z][a-z\s\-]{1,40})$")

TIME_LABEL_TERMS: dict[str, tuple[str, ...]] = {
    "now": ("now", "right"),
    "tonight": ("tonight",),
    "today": ("today",),
    "weekend": ("weekend", "weekends"),
}

# Vague activity phrasing ("things to do", "something fun to do", "activities").
ABSTRACT_ACTIVITY_RE = re.compile(
    r"\b(?:things|something|stuff)(?:\s+[a-z'\-]+)?\s+to\s+do\b|\bactivit(?:y|ies)\b"
)


@lru_cache(maxsize=None)
def variant_pattern(variant: str) -> re.Pattern[str]:
    """Compile the matcher for one dictionary variant.

    Single tokens match on word boundaries; multi-token phrases must be delimited by whitespace or
    the text edges so that "live music" does not match inside "olive musical".
    """

    value = variant.lower().strip()
    escaped = re.escape(value)
    if " " in value:
        return re.compile(rf"(?:^|\s){escaped}(?:\s|$)")
    return re.compile(rf"\b{escaped}\b")


def _contains_variant(text: str, variants: Iterable[str]) -> bool:
    return any(v.strip() and variant_pattern(v).search(text) for v in variants)


def uniq_preserve_order(items: Iterable[str]) -> list[str]:
    """Deduplicate while preserving first-seen order; blank items are dropped."""

    seen: set[str] = set()
    out: list[str] = []
    for item in items:
        key = item.strip()
        if not key or key in seen:
            continue
        seen.add(key)
        out.append(key)
    return out


def find_matches(text: str, dictionary: Mapping[str, Iterable[str]]) -> list[str]:
    """Return canonical entries with at least one variant present in the normalized text."""

    return uniq_preserve_order(
        canonical for canonical, variants in dictionary.items() if _contains_variant(text, variants)
    )


def detect_day_of_week(text: str) -> str | None:
    """Return the first weekday (Monday first) mentioned by any of its aliases."""

    for day, aliases in DAYS_OF_WEEK.items():
        if _contains_variant(text, aliases):
            return day
    return None


def has_near_me_phrase(text: str) -> bool:
    """Whether the text uses one of the "near me" phrasings."""

    return _contains_variant(text, NEAR_ME_PHRASES)


def detect_city(text: str) -> str | None:
    """Return the canonical city for the first known alias in the text."""

    for city, variants in CITY_ALIASES.items():
        if _contains_variant(text, variants):
            return city
    return None


def looks_like_intent_keyword(phrase: str) -> bool:
    """Whether a phrase contains place or event vocabulary (e.g. "bars" in "things to do in bars")."""

    value = phrase.lower().strip()
    return any(
        _contains_variant(value, variants)
        for dictionary in (PLACE_KEYWORDS, EVENT_KEYWORDS)
        for variants in dictionary.values()
    )
