"""Deterministic, cost-aware provider planner.

The planner converts a validated `SearchIntent` into a `ProviderPlan`. Provider selection is a
decision table keyed by confidence tier; each tier is an ordered list of named guard clauses, and
the branch that fires is recorded in the plan's reasoning trail. `build_plan` never raises.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from src.intent.dictionaries import ABSTRACT_ACTIVITY_RE
from src.intent.schema import Category, IntentType, LocationType, SearchIntent, intent_from_obj
from src.planner.dates import as_aware, compute_date_window
from src.planner.schema import EventsQuery, PlacesQuery, ProviderPlan
from src.planner.tables import (
    CATEGORY_TO_PLACES_TYPES,
    DEFAULT_EVENTS_RADIUS_MI,
    DEFAULT_PLACES_RADIUS_M,
    EVENT_SIGNAL_KEYWORDS,
    EVENTS_MAX_BY_TIER,
    EVENTS_MAX_RESULTS,
    FALLBACK_PLACES_MAX_RESULTS,
    FALLBACK_PLACES_RADIUS_M,
    LOW_CONFIDENCE_EVENTS_RADIUS_MI,
    LOW_CONFIDENCE_PLACES_RADIUS_M,
    MAJOR_CITIES,
    MAJOR_CITY_EVENTS_RADIUS_MI,
    MAX_PLACES_TYPES,
    NIGHTLIFE_PLACES_RADIUS_M,
    PLACE_SIGNAL_CATEGORIES,
    PLACES_MAX_BY_TIER,
    PLACES_MAX_RESULTS,
    PLACES_TYPE_PRIORITY,
    SOCIAL_PLACES_RADIUS_M,
    WEAK_EVENTS_MAX_RESULTS,
    WEAK_EVENTS_RADIUS_MI,
    ConfidenceTier,
    confidence_tier,
)

logger = logging.getLogger(__name__)


class PlanBuilderError(ValueError):
    """Raised when an intent cannot be converted into a provider plan."""


@dataclass(frozen=True)
class Signals:
    """Routing signals derived from an intent."""

    categories: frozenset[Category]
    time_present: bool
    event_signal: bool
    place_signal: bool
    mixed_abstract: bool


@dataclass(frozen=True)
class Route:
    """The decision-table branch that fired."""

    branch: str
    call_places: bool
    call_events: bool
    reason: str
    notes: tuple[str, ...] = ()


def collect_signals(intent: SearchIntent) -> Signals:
    """Derive the boolean routing signals used by the decision table."""

    categories = frozenset(intent.categories) or frozenset({Category.other})
    time_present = intent.time_context.label is not None

    event_signal = (
            intent.intent_type == IntentType.event
            or Category.music in categories
            or any(k.lower() in EVENT_SIGNAL_KEYWORDS for k in intent.keywords)
    )
    place_signal = intent.intent_type == IntentType.place or bool(categories & PLACE_SIGNAL_CATEGORIES)
    mixed_abstract = (
            Category.social in categories
            or Category.nightlife in categories
            or bool(ABSTRACT_ACTIVITY_RE.search(intent.raw_query.lower()))
    )

    return Signals(
        categories=categories,
        time_present=time_present,
        event_signal=event_signal,
        place_signal=place_signal,
        mixed_abstract=mixed_abstract,
    )


def _route_low(intent: SearchIntent, s: Signals) -> Route:
    # Low confidence: a single provider keeps external cost down.
    if (s.event_signal or s.time_present) and not s.place_signal:
        return Route(
            "low.events_only",
            call_places=False,
            call_events=True,
            reason="Low confidence, but clear event signal present -> events only.",
        )

    notes: tuple[str, ...] = ()
    if (s.event_signal or s.time_present) and s.mixed_abstract:
        notes = ("Event signal present, but keeping single-provider routing to minimize cost.",)
    return Route(
        "low.places_default",
        call_places=True,
        call_events=False,
        reason="Low confidence -> defaulting to places unless event intent is clear.",
        notes=notes,
    )


def _route_medium(intent: SearchIntent, s: Signals) -> Route:
    if s.mixed_abstract or (s.place_signal and s.event_signal):
        return Route(
            "medium.both_mixed",
            call_places=True,
            call_events=True,
            reason="Medium confidence + mixed/abstract intent -> calling both providers.",
        )
    if intent.intent_type == IntentType.event or (
            (s.event_signal or s.time_present) and not s.place_signal
    ):
        return Route(
            "medium.events_leaning",
            call_places=False,
            call_events=True,
            reason="Medium confidence + event-leaning signals -> events only.",
        )
    if intent.intent_type == IntentType.place or (s.place_signal and not s.event_signal):
        return Route(
            "medium.places_leaning",
            call_places=True,
            call_events=False,
            reason="Medium confidence + place-leaning signals -> places only.",
        )
    return Route(
        "medium.places_fallback",
        call_places=True,
        call_events=False,
        reason="Medium confidence fallback -> places only.",
    )


def _route_high(intent: SearchIntent, s: Signals) -> Route:
    if intent.intent_type == IntentType.place and not s.event_signal:
        return Route(
            "high.places_only",
            call_places=True,
            call_events=False,
            reason=(
                "High confidence + place intent; time context present -> places + limited events."
                if s.time_present
                else "High confidence + place intent -> places only."
            ),
        )
    if intent.intent_type == IntentType.event and s.event_signal:
        return Route(
            "high.events_only",
            call_places=False,
            call_events=True,
            reason="High confidence + event intent -> events only.",
        )
    if s.mixed_abstract or (s.place_signal and s.event_signal):
        return Route(
            "high.both_mixed",
            call_places=True,
            call_events=True,
            reason="High confidence + mixed/abstract intent -> calling both providers.",
        )
    if s.event_signal:
        return Route(
            "high.events_signal",
            call_places=False,
            call_events=True,
            reason="High confidence + event signal -> events only.",
        )
    return Route(
        "high.places_fallback",
        call_places=True,
        call_events=False,
        reason=(
            "High confidence fallback; time context present -> places + limited events."
            if s.time_present
            else "High confidence + no clear event signal -> places only."
        ),
    )


_TIER_ROUTERS: dict[ConfidenceTier, Callable[[SearchIntent, Signals], Route]] = {
    ConfidenceTier.low: _route_low,
    ConfidenceTier.medium: _route_medium,
    ConfidenceTier.high: _route_high,
}


def choose_places_radius(categories: frozenset[Category], tier: ConfidenceTier) -> int:
    """Tighter radius for dense categories and low-confidence queries."""

    if Category.nightlife in categories:
        return NIGHTLIFE_PLACES_RADIUS_M
    if Category.social in categories:
        return SOCIAL_PLACES_RADIUS_M
    if tier == ConfidenceTier.low:
        return LOW_CONFIDENCE_PLACES_RADIUS_M
    return DEFAULT_PLACES_RADIUS_M


def choose_places_types(categories: frozenset[Category]) -> tuple[str, ...] | None:
    """Types for the highest-priority category that has a places mapping."""

    for category in PLACES_TYPE_PRIORITY:
        if category not in categories:
            continue
        types = CATEGORY_TO_PLACES_TYPES.get(category)
        if types:
            return types[:MAX_PLACES_TYPES]
    return None


def is_major_city(intent: SearchIntent) -> bool:
    hint = intent.location_hint
    if hint.type != LocationType.city:
        return False
    return (hint.value or "").lower() in MAJOR_CITIES


def choose_events_radius(intent: SearchIntent, tier: ConfidenceTier) -> int:
    if is_major_city(intent):
        return MAJOR_CITY_EVENTS_RADIUS_MI
    if tier == ConfidenceTier.low:
        return LOW_CONFIDENCE_EVENTS_RADIUS_MI
    return DEFAULT_EVENTS_RADIUS_MI


def _clamp_int(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def _build_places_query(s: Signals, tier: ConfidenceTier, reasoning: list[str]) -> PlacesQuery:
    radius_meters = choose_places_radius(s.categories, tier)
    max_results = _clamp_int(PLACES_MAX_BY_TIER[tier], 1, PLACES_MAX_RESULTS)
    types = choose_places_types(s.categories)

    types_note = f", types=[{', '.join(types)}]" if types else ""
    reasoning.append(f"Places: radius={radius_meters}m, maxResults={max_results}{types_note}.")
    return PlacesQuery(radius_meters=radius_meters, max_results=max_results, types=types)


def _build_events_query(
        intent: SearchIntent,
        s: Signals,
        tier: ConfidenceTier,
        now: datetime,
        reasoning: list[str],
) -> EventsQuery:
    # Enabled only because of a time mention: no event vocabulary, no music, not event intent.
    events_weak = (
            s.time_present
            and intent.intent_type != IntentType.event
            and not s.event_signal
            and Category.music not in s.categories
    )

    radius_miles = _clamp_int(choose_events_radius(intent, tier), 1, 100)
    max_results = _clamp_int(EVENTS_MAX_BY_TIER[tier], 1, EVENTS_MAX_RESULTS)
    if events_weak:
        radius_miles = min(radius_miles, WEAK_EVENTS_RADIUS_MI)
        max_results = min(max_results, WEAK_EVENTS_MAX_RESULTS)

    date_range = compute_date_window(intent.time_context, now) if s.time_present else None

    if date_range is not None:
        reasoning.append(
            f"Events: radius={radius_miles}mi, maxResults={max_results}, "
            f"dateRange={date_range.start.isoformat()}..{date_range.end.isoformat()}."
        )
    else:
        reasoning.append(f"Events: radius={radius_miles}mi, maxResults={max_results} (no dateRange).")

    if events_weak:
        reasoning.append(
            "Cost safeguard: time-based events query is conservative (no explicit event language)."
        )

    return EventsQuery(radius_miles=radius_miles, max_results=max_results, date_range=date_range)


def _build_plan(intent: SearchIntent, now: datetime) -> ProviderPlan:
    reasoning: list[str] = []
    signals = collect_signals(intent)
    tier = confidence_tier(intent.confidence)

    call_events = False
    if signals.time_present:
        call_events = True
        reasoning.append("Time context detected -> enabling events query with deterministic dateRange.")

    route = _TIER_ROUTERS[tier](intent, signals)
    reasoning.append(route.reason)
    reasoning.extend(route.notes)

    call_places = route.call_places
    call_events = call_events or route.call_events

    if not call_places and not call_events:
        call_places = True
        reasoning.append("Fail-safe: no provider selected by heuristics -> defaulting to places.")

    places_query = _build_places_query(signals, tier, reasoning) if call_places else None
    events_query = (
        _build_events_query(intent, signals, tier, now, reasoning) if call_events else None
    )

    if call_places and call_events:
        reasoning.append(
            "Cost safeguard: capped results (places<=40, events<=50) and tightened radius for dense intents."
        )
    else:
        reasoning.append("Cost safeguard: single-provider routing to reduce external API spend.")

    logger.debug(
        "planned tier=%s branch=%s places=%s events=%s",
        tier,
        route.branch,
        call_places,
        call_events,
    )

    return ProviderPlan(
        call_places=call_places,
        call_events=call_events,
        places_query=places_query,
        events_query=events_query,
        reasoning=tuple(reasoning),
    )


def fallback_plan(error: BaseException | str) -> ProviderPlan:
    """The minimal safe plan returned when planning fails: places only, conservative caps."""

    return ProviderPlan(
        call_places=True,
        call_events=False,
        places_query=PlacesQuery(
            radius_meters=FALLBACK_PLACES_RADIUS_M,
            max_results=FALLBACK_PLACES_MAX_RESULTS,
        ),
        reasoning=(
            "Planner error: returning safe fallback plan (places only).",
            f"Error: {error}",
        ),
    )


def build_plan(intent: SearchIntent | Any, *, now: datetime | None = None) -> ProviderPlan:
    """Build a deterministic, cost-aware plan for which providers to call and how.

    Args:
        intent: A `SearchIntent`, or a decoded JSON object validated into one.
        now: Reference instant for date windows; defaults to the current local time.

    Never raises; at least one provider is always selected.
    """

    try:
        if not isinstance(intent, SearchIntent):
            if intent is None:
                raise PlanBuilderError("intent is required")
            intent = intent_from_obj(intent)
        reference = as_aware(now) if now is not None else datetime.now().astimezone()
        return _build_plan(intent, reference)
    except Exception as exc:
        # Planner boundary: any failure degrades to the safe places-only plan.
        logger.exception("provider planner failed")
        return fallback_plan(exc)
