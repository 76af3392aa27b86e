"""Tests for the cost-aware provider planner (decision table, parameters, fail-safes)."""

from __future__ import annotations

from datetime import datetime
from typing import Any

import pytest

from src.intent.parser import parse_intent
from src.intent.schema import (
    Category,
    IntentType,
    LocationHint,
    LocationType,
    SearchIntent,
    TimeContext,
    TimeLabel,
)
from src.planner import builder
from src.planner.builder import Route, build_plan, choose_places_radius, choose_places_types
from src.planner.tables import ConfidenceTier, confidence_tier


def _intent(**overrides: Any) -> SearchIntent:
    fields: dict[str, Any] = {"raw_query": "query", "confidence": 0.5}
    fields.update(overrides)
    return SearchIntent(**fields)


def test_confidence_tiers() -> None:
    assert confidence_tier(0.0) == ConfidenceTier.low
    assert confidence_tier(0.399) == ConfidenceTier.low
    assert confidence_tier(0.4) == ConfidenceTier.medium
    assert confidence_tier(0.699) == ConfidenceTier.medium
    assert confidence_tier(0.7) == ConfidenceTier.high


def test_pizza_near_me_calls_places_only(fixed_now: datetime) -> None:
    plan = build_plan(parse_intent("pizza near me"), now=fixed_now)
    assert plan.call_places is True
    assert plan.call_events is False
    assert plan.events_query is None
    assert plan.places_query is not None
    assert plan.places_query.types == ("restaurant", "cafe")
    assert plan.places_query.radius_meters == 5000
    assert plan.places_query.max_results == 40
    assert "High confidence + place intent -> places only." in plan.reasoning


def test_live_concerts_weekend_in_austin_calls_events_only(fixed_now: datetime) -> None:
    plan = build_plan(parse_intent("live concerts this weekend in Austin"), now=fixed_now)
    assert plan.call_places is False
    assert plan.call_events is True
    assert plan.places_query is None

    events = plan.events_query
    assert events is not None
    assert events.radius_miles == 25
    assert events.max_results == 50
    assert events.date_range is not None
    assert events.date_range.start.isoformat() == "2026-10-17T00:00:00-04:00"
    assert events.date_range.end.date().isoformat() == "2026-10-18"
    assert "High confidence + event intent -> events only." in plan.reasoning


def test_something_fun_tonight_calls_both_with_clamped_events(fixed_now: datetime) -> None:
    plan = build_plan(parse_intent("something fun to do tonight"), now=fixed_now)
    assert plan.call_places is True
    assert plan.call_events is True
    assert "Medium confidence + mixed/abstract intent -> calling both providers." in plan.reasoning

    events = plan.events_query
    assert events is not None
    assert events.radius_miles == 15
    assert events.max_results == 25
    assert events.date_range is not None
    assert events.date_range.start.isoformat() == "2026-10-14T17:00:00-04:00"
    assert (
               "Cost safeguard: time-based events query is conservative (no explicit event language)."
           ) in plan.reasoning

    places = plan.places_query
    assert places is not None
    assert places.radius_meters == 5000
    assert places.max_results == 30
    assert places.types is None


@pytest.mark.parametrize("text", ["", "90210"])
def test_empty_and_zip_only_fall_back_to_low_confidence_places(text: str, fixed_now: datetime) -> None:
    plan = build_plan(parse_intent(text), now=fixed_now)
    assert plan.call_places is True
    assert plan.call_events is False
    assert plan.places_query is not None
    assert plan.places_query.radius_meters == 4000
    assert plan.places_query.max_results == 20


def test_low_confidence_clear_event_signal_routes_to_events(fixed_now: datetime) -> None:
    plan = build_plan(
        _intent(
            intent_type=IntentType.event,
            keywords=("concerts",),
            categories=(Category.music,),
            confidence=0.3,
        ),
        now=fixed_now,
    )
    assert (plan.call_places, plan.call_events) == (False, True)
    assert plan.events_query is not None
    assert plan.events_query.radius_miles == 15
    assert plan.events_query.max_results == 25
    assert plan.events_query.date_range is None


def test_low_confidence_never_calls_both_for_weak_mixed_signals(fixed_now: datetime) -> None:
    plan = build_plan(
        _intent(
            raw_query="dinner and a show, things to do",
            keywords=("restaurant", "shows"),
            categories=(Category.food, Category.music),
            confidence=0.3,
        ),
        now=fixed_now,
    )
    assert (plan.call_places, plan.call_events) == (True, False)
    assert "Event signal present, but keeping single-provider routing to minimize cost." in plan.reasoning


def test_low_confidence_cost_note_needs_mixed_phrasing(fixed_now: datetime) -> None:
    plan = build_plan(
        _intent(
            raw_query="dinner show",
            keywords=("restaurant", "shows"),
            categories=(Category.food, Category.music),
            confidence=0.3,
        ),
        now=fixed_now,
    )
    assert (plan.call_places, plan.call_events) == (True, False)
    assert "Event signal present, but keeping single-provider routing to minimize cost." not in plan.reasoning


def test_low_confidence_time_only_routes_to_clamped_events(fixed_now: datetime) -> None:
    intent = parse_intent("tonight")
    assert confidence_tier(intent.confidence) == ConfidenceTier.low

    plan = build_plan(intent, now=fixed_now)
    assert (plan.call_places, plan.call_events) == (False, True)
    assert plan.places_query is None
    assert "Low confidence, but clear event signal present -> events only." in plan.reasoning
    assert (
               "Cost safeguard: time-based events query is conservative (no explicit event language)."
           ) in plan.reasoning

    events = plan.events_query
    assert events is not None
    assert events.radius_miles == 15
    assert events.max_results == 25
    assert events.date_range is not None
    assert events.date_range.start.isoformat() == "2026-10-14T17:00:00-04:00"


def test_city_alias_routes_like_canonical_city(fixed_now: datetime) -> None:
    alias = build_plan(parse_intent("chill nyc"), now=fixed_now)
    canonical = build_plan(parse_intent("chill new york"), now=fixed_now)
    assert "Low confidence -> defaulting to places unless event intent is clear." in alias.reasoning
    assert alias.places_query == canonical.places_query
    assert alias.places_query is not None
    assert alias.places_query.radius_meters == 4000
    assert alias.places_query.max_results == 20


@pytest.mark.parametrize("raw_query", ["things to do downtown", "stuff to do this week", "group activities"])
def test_high_confidence_abstract_phrasing_calls_both(raw_query: str, fixed_now: datetime) -> None:
    plan = build_plan(_intent(raw_query=raw_query, keywords=("karaoke",), confidence=0.8), now=fixed_now)
    assert (plan.call_places, plan.call_events) == (True, True)
    assert "High confidence + mixed/abstract intent -> calling both providers." in plan.reasoning
    assert plan.events_query is not None
    assert plan.events_query.radius_miles == 25
    assert plan.events_query.max_results == 50


def test_high_confidence_without_abstract_phrasing_stays_single(fixed_now: datetime) -> None:
    plan = build_plan(_intent(raw_query="karaoke", keywords=("karaoke",), confidence=0.8), now=fixed_now)
    assert (plan.call_places, plan.call_events) == (True, False)
    assert "High confidence + no clear event signal -> places only." in plan.reasoning


def test_time_context_enables_events_at_any_tier(fixed_now: datetime) -> None:
    plan = build_plan(
        _intent(
            raw_query="pizza tonight",
            intent_type=IntentType.place,
            keywords=("pizza",),
            categories=(Category.food,),
            time_context=TimeContext(label=TimeLabel.tonight),
            confidence=0.35,
        ),
        now=fixed_now,
    )
    assert (plan.call_places, plan.call_events) == (True, True)
    assert plan.reasoning[0].startswith("Time context detected")
    assert plan.events_query is not None
    assert plan.events_query.radius_miles == 15
    assert plan.events_query.max_results == 25
    assert plan.events_query.date_range is not None


@pytest.mark.parametrize(
    ("overrides", "calls", "reason"),
    [
        (
                {"intent_type": IntentType.event, "keywords": ("comedy",)},
                (False, True),
                "Medium confidence + event-leaning signals -> events only.",
        ),
        (
                {"intent_type": IntentType.place, "keywords": ("sushi",), "categories": (Category.food,)},
                (True, False),
                "Medium confidence + place-leaning signals -> places only.",
        ),
        (
                {"intent_type": IntentType.place, "keywords": ("bars",), "categories": (Category.nightlife,)},
                (True, True),
                "Medium confidence + mixed/abstract intent -> calling both providers.",
        ),
        (
                {"keywords": ("xyz",)},
                (True, False),
                "Medium confidence fallback -> places only.",
        ),
    ],
)
def test_medium_confidence_branches(
        overrides: dict[str, Any],
        calls: tuple[bool, bool],
        reason: str,
        fixed_now: datetime,
) -> None:
    plan = build_plan(_intent(confidence=0.5, **overrides), now=fixed_now)
    assert (plan.call_places, plan.call_events) == calls
    assert reason in plan.reasoning


def test_medium_nightlife_uses_tight_radius_and_bar_types(fixed_now: datetime) -> None:
    plan = build_plan(
        _intent(
            intent_type=IntentType.place,
            keywords=("bars",),
            categories=(Category.nightlife,),
            confidence=0.5,
        ),
        now=fixed_now,
    )
    assert plan.places_query is not None
    assert plan.places_query.radius_meters == 2500
    assert plan.places_query.types == ("bar", "night_club")
    assert plan.events_query is not None
    assert plan.events_query.radius_miles == 25
    assert plan.events_query.max_results == 40
    assert plan.events_query.date_range is None


def test_high_confidence_event_keyword_without_event_intent(fixed_now: datetime) -> None:
    plan = build_plan(_intent(keywords=("comedy",), confidence=0.8), now=fixed_now)
    assert (plan.call_places, plan.call_events) == (False, True)
    assert "High confidence + event signal -> events only." in plan.reasoning


def test_high_confidence_mixed_in_major_city(fixed_now: datetime) -> None:
    plan = build_plan(
        _intent(
            raw_query="dinner and a show in nyc",
            keywords=("restaurant", "shows"),
            categories=(Category.food, Category.music),
            location_hint=LocationHint(type=LocationType.city, value="new york"),
            confidence=0.9,
        ),
        now=fixed_now,
    )
    assert (plan.call_places, plan.call_events) == (True, True)
    assert plan.events_query is not None
    assert plan.events_query.radius_miles == 35
    assert plan.events_query.max_results == 50
    assert plan.places_query is not None
    assert plan.places_query.types == ("restaurant", "cafe")
    assert plan.places_query.max_results == 40


def test_high_confidence_fallback_with_time_clamps_events(fixed_now: datetime) -> None:
    plan = build_plan(
        _intent(
            raw_query="karaoke tonight",
            keywords=("karaoke",),
            time_context=TimeContext(label=TimeLabel.tonight),
            confidence=0.75,
        ),
        now=fixed_now,
    )
    assert (plan.call_places, plan.call_events) == (True, True)
    assert "High confidence fallback; time context present -> places + limited events." in plan.reasoning
    assert plan.events_query is not None
    assert plan.events_query.radius_miles == 15
    assert plan.events_query.max_results == 25


def test_major_city_widens_events_even_at_low_confidence(fixed_now: datetime) -> None:
    plan = build_plan(
        _intent(
            intent_type=IntentType.event,
            keywords=("festivals",),
            categories=(Category.music,),
            location_hint=LocationHint(type=LocationType.city, value="chicago"),
            confidence=0.3,
        ),
        now=fixed_now,
    )
    assert plan.events_query is not None
    assert plan.events_query.radius_miles == 35


def test_places_radius_and_type_priority() -> None:
    both = frozenset({Category.social, Category.nightlife})
    assert choose_places_radius(both, ConfidenceTier.high) == 2500
    assert choose_places_radius(frozenset({Category.social}), ConfidenceTier.high) == 3000
    assert choose_places_radius(frozenset({Category.food}), ConfidenceTier.low) == 4000
    assert choose_places_radius(frozenset({Category.food}), ConfidenceTier.medium) == 5000

    culture = frozenset({Category.music, Category.history, Category.art})
    assert choose_places_types(culture) == ("museum", "art_gallery")
    assert choose_places_types(frozenset({Category.music})) is None
    assert choose_places_types(frozenset({Category.social, Category.other})) is None


def test_fail_safe_forces_places(monkeypatch: pytest.MonkeyPatch, fixed_now: datetime) -> None:
    def no_provider(intent: SearchIntent, signals: builder.Signals) -> Route:
        return Route("test.none", call_places=False, call_events=False, reason="Nothing matched.")

    monkeypatch.setitem(builder._TIER_ROUTERS, ConfidenceTier.medium, no_provider)

    plan = build_plan(_intent(), now=fixed_now)
    assert (plan.call_places, plan.call_events) == (True, False)
    assert "Fail-safe: no provider selected by heuristics -> defaulting to places." in plan.reasoning


@pytest.mark.parametrize("bad", [None, {"rawQuery": "x", "confidence": 3}, "pizza"])
def test_invalid_input_returns_safe_fallback_plan(bad: Any) -> None:
    plan = build_plan(bad)
    assert (plan.call_places, plan.call_events) == (True, False)
    assert plan.places_query is not None
    assert plan.places_query.radius_meters == 5000
    assert plan.places_query.max_results == 20
    assert plan.reasoning[0] == "Planner error: returning safe fallback plan (places only)."
    assert plan.reasoning[1].startswith("Error: ")


def test_internal_fault_returns_safe_fallback_plan(
        monkeypatch: pytest.MonkeyPatch,
        fixed_now: datetime,
) -> None:
    def boom(*args: Any) -> None:
        raise OverflowError("date value out of range")

    monkeypatch.setattr("src.planner.builder.compute_date_window", boom)

    plan = build_plan(parse_intent("concerts tonight"), now=fixed_now)
    assert (plan.call_places, plan.call_events) == (True, False)
    assert plan.reasoning[1] == "Error: date value out of range"


def test_accepts_decoded_json_intent(fixed_now: datetime) -> None:
    plan = build_plan(
        {"rawQuery": "comedy", "intentType": "event", "keywords": ["comedy"], "confidence": 0.8},
        now=fixed_now,
    )
    assert (plan.call_places, plan.call_events) == (False, True)


@pytest.mark.parametrize(
    "text",
    [
        "",
        "pizza near me",
        "live concerts this weekend in Austin",
        "something fun to do tonight",
        "90210",
        "museum friday",
        "bars right now",
        "brunch today in brooklyn",
        "yoga",
        "chill vibes",
    ],
)
def test_plan_invariants(text: str, fixed_now: datetime) -> None:
    intent = parse_intent(text)
    plan = build_plan(intent, now=fixed_now)

    assert plan.call_places or plan.call_events
    assert (plan.places_query is not None) == plan.call_places
    assert (plan.events_query is not None) == plan.call_events
    if plan.events_query is not None:
        has_window = plan.events_query.date_range is not None
        assert has_window == (intent.time_context.label is not None)
    assert build_plan(intent, now=fixed_now).to_json() == plan.to_json()
