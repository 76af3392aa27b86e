"""Rules-based search intent parser.

This parser is deterministic and conservative:
    - it only recognizes vocabulary from the controlled dictionaries,
    - it defaults to `both` whenever place/event evidence is absent,
    - it never fabricates a time or location signal.

Unlike the public `src.intent.parser.parse_intent`, this function may raise `RulesParserError`.
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable

from src.intent.dictionaries import (
    ABSTRACT_ACTIVITY_RE,
    CITY_ALIASES,
    DAYS_OF_WEEK,
    EVENT_KEYWORDS,
    NEAR_ME_TOKENS,
    NEAR_ME_VALUE,
    PLACE_KEYWORDS,
    STOPWORDS,
    TIME_LABEL_TERMS,
    TRAILING_LOCATION_RE,
    VIBE_TERMS,
    ZIP_RE,
    detect_city,
    detect_day_of_week,
    find_matches,
    has_near_me_phrase,
    looks_like_intent_keyword,
    uniq_preserve_order,
    variant_pattern,
)
from src.intent.normalize import normalize_text, tokenize
from src.intent.schema import (
    Category,
    IntentType,
    LocationHint,
    LocationType,
    SearchIntent,
    TimeContext,
    TimeLabel,
    default_intent,
)


class RulesParserError(ValueError):
    """Raised when the rules parser cannot produce a valid intent."""


BASE_CONFIDENCE = 0.2
KEYWORD_BOOST = 0.25
INTENT_TYPE_BOOST = 0.15
TIME_BOOST = 0.15
LOCATION_BOOST = 0.15
VIBE_BOOST = 0.08
CATEGORY_BOOST = 0.07
SINGLE_TOKEN_PENALTY = 0.25
TWO_TOKEN_PENALTY = 0.10
ABSTRACT_ONLY_PENALTY = 0.08

MAX_FALLBACK_KEYWORDS = 4
MIN_FALLBACK_TOKEN_LENGTH = 3

_FALLBACK_TOKEN_RE = re.compile(r"^[a-z0-9][a-z0-9'\-]*$")

_FOOD_KEYWORDS = {"pizza", "sushi", "burgers", "restaurant", "cafe", "dessert"}
_NIGHTLIFE_KEYWORDS = {"bars", "club"}
_MUSIC_EVENT_KEYWORDS = {"concerts", "shows", "festivals"}
_CULTURE_KEYWORDS = {"museum", "exhibits"}


def clamp01(value: float) -> float:
    """Clamp a score into `[0, 1]`; non-finite values collapse to 0."""

    if not math.isfinite(value):
        return 0.0
    return max(0.0, min(1.0, value))


def _parse_time_context(text: str) -> TimeContext:
    day = detect_day_of_week(text)
    if day is not None:
        return TimeContext(label=TimeLabel.specific, day_of_week=day)

    for label, phrases in (
            (TimeLabel.now, ("right now", "now")),
            (TimeLabel.tonight, ("tonight",)),
            (TimeLabel.today, ("today",)),
            (TimeLabel.weekend, ("this weekend", "weekend")),
    ):
        if any(variant_pattern(p).search(text) for p in phrases):
            return TimeContext(label=label)

    return TimeContext()


def _parse_location_hint(text: str) -> LocationHint:
    match = ZIP_RE.search(text)
    if match:
        return LocationHint(type=LocationType.zip, value=match.group(0))

    if has_near_me_phrase(text):
        return LocationHint(type=LocationType.near_me, value=NEAR_ME_VALUE)

    city = detect_city(text)
    if city is not None:
        return LocationHint(type=LocationType.city, value=city)

    match = TRAILING_LOCATION_RE.search(text)
    if match:
        candidate = match.group("phrase").strip()
        if len(candidate) >= 2 and not looks_like_intent_keyword(candidate):
            return LocationHint(type=LocationType.city, value=candidate)

    return LocationHint()


def _infer_categories(
        *,
        text: str,
        place_keywords: list[str],
        event_keywords: list[str],
        vibes: list[str],
) -> list[Category]:
    places = set(place_keywords)
    events = set(event_keywords)
    cats: list[Category] = []

    def add(category: Category) -> None:
        if category not in cats:
            cats.append(category)

    if places & _FOOD_KEYWORDS:
        add(Category.food)
    if places & _NIGHTLIFE_KEYWORDS:
        add(Category.nightlife)
    if events & _MUSIC_EVENT_KEYWORDS:
        add(Category.music)

    # Culture: the art/history split is heuristic and may produce both tags.
    if places & _CULTURE_KEYWORDS:
        add(Category.art)
    if variant_pattern("history").search(text) or variant_pattern("historical").search(text):
        add(Category.history)
    if "exhibits" in places:
        add(Category.history)

    if "park" in places:
        add(Category.outdoor)
    if "gym" in places or "sports" in events:
        add(Category.fitness)
    if "social" in vibes:
        add(Category.social)

    if variant_pattern("nightlife").search(text) or variant_pattern("night life").search(text):
        add(Category.nightlife)

    if not cats:
        add(Category.other)
    return cats


def _determine_intent_type(place_hits: int, event_hits: int) -> IntentType:
    if place_hits and event_hits:
        return IntentType.both
    if place_hits:
        return IntentType.place
    if event_hits:
        return IntentType.event
    # No evidence either way: never guess a direction.
    return IntentType.both


def _banned_fallback_tokens(
        *,
        vibes: Iterable[str],
        time_context: TimeContext,
        location_hint: LocationHint,
) -> set[str]:
    banned = set(STOPWORDS)

    for vibe in vibes:
        banned.add(vibe)
        for variant in VIBE_TERMS.get(vibe, ()):
            banned.update(variant.split())

    if time_context.label is not None:
        banned.update(TIME_LABEL_TERMS.get(time_context.label, (time_context.label,)))
    if time_context.day_of_week is not None:
        banned.add(time_context.day_of_week)
        banned.update(DAYS_OF_WEEK.get(time_context.day_of_week, ()))

    if location_hint.type == LocationType.near_me:
        banned.update(NEAR_ME_TOKENS)
    elif location_hint.value:
        banned.update(location_hint.value.split())
        if location_hint.type == LocationType.city:
            # The alias the user typed ("nyc", "bay area") is a location token too.
            for variant in CITY_ALIASES.get(location_hint.value, ()):
                banned.update(variant.split())

    return banned


def _fallback_keywords(tokens: list[str], banned: set[str]) -> list[str]:
    candidates = [
        tok
        for tok in tokens
        if _FALLBACK_TOKEN_RE.match(tok)
           and len(tok) >= MIN_FALLBACK_TOKEN_LENGTH
           and tok not in banned
    ]
    return uniq_preserve_order(candidates)[:MAX_FALLBACK_KEYWORDS]


def _score_confidence(
        *,
        text: str,
        token_count: int,
        keywords: list[str],
        vibes: list[str],
        intent_type: IntentType,
        time_context: TimeContext,
        location_hint: LocationHint,
        categories: list[Category],
) -> float:
    score = BASE_CONFIDENCE

    if keywords:
        score += KEYWORD_BOOST
    if intent_type != IntentType.both:
        score += INTENT_TYPE_BOOST
    if time_context.label is not None:
        score += TIME_BOOST
    if location_hint.type != LocationType.unknown:
        score += LOCATION_BOOST
    if vibes:
        score += VIBE_BOOST
    if any(c != Category.other for c in categories):
        score += CATEGORY_BOOST

    if token_count <= 1:
        score -= SINGLE_TOKEN_PENALTY
    elif token_count <= 2:
        score -= TWO_TOKEN_PENALTY

    abstract_only = not keywords and (bool(ABSTRACT_ACTIVITY_RE.search(text)) or bool(vibes))
    if abstract_only:
        score -= ABSTRACT_ONLY_PENALTY

    # Rounded so repeated runs serialize identically.
    return round(clamp01(score), 4)


def parse_intent(text: str) -> SearchIntent:
    """Parse an input string into a validated SearchIntent.

    Raises:
        RulesParserError: If the input is not a string.
    """

    if not isinstance(text, str):
        raise RulesParserError(f"expected str, got {type(text).__name__}")

    normalized = normalize_text(text)
    if not normalized:
        return default_intent(text)

    time_context = _parse_time_context(normalized)
    location_hint = _parse_location_hint(normalized)

    vibes = find_matches(normalized, VIBE_TERMS)
    place_keywords = find_matches(normalized, PLACE_KEYWORDS)
    event_keywords = find_matches(normalized, EVENT_KEYWORDS)

    intent_type = _determine_intent_type(len(place_keywords), len(event_keywords))

    tokens = tokenize(normalized)
    keywords = uniq_preserve_order([*place_keywords, *event_keywords])
    if not keywords:
        banned = _banned_fallback_tokens(
            vibes=vibes,
            time_context=time_context,
            location_hint=location_hint,
        )
        keywords = _fallback_keywords(tokens, banned)

    categories = _infer_categories(
        text=normalized,
        place_keywords=place_keywords,
        event_keywords=event_keywords,
        vibes=vibes,
    )

    confidence = _score_confidence(
        text=normalized,
        token_count=len(tokens),
        keywords=keywords,
        vibes=vibes,
        intent_type=intent_type,
        time_context=time_context,
        location_hint=location_hint,
        categories=categories,
    )

    try:
        return SearchIntent(
            raw_query=text,
            intent_type=intent_type,
            keywords=tuple(keywords),
            vibe=tuple(vibes),
            categories=tuple(categories),
            time_context=time_context,
            location_hint=location_hint,
            confidence=confidence,
        )
    except Exception as exc:  # noqa: BLE001 - surfaced to the boundary as a parse failure
        raise RulesParserError(str(exc)) from exc
