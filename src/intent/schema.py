"""SearchIntent schema (Pydantic models).

This schema is the contract between the intent parser and the provider planner. Values are
immutable and serialize to camelCase JSON for logs, fixtures and the orchestration layer.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

WEEKDAYS: tuple[str, ...] = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)


class IntentType(StrEnum):
    """Which kind of result the user is after."""

    place = "place"
    event = "event"
    both = "both"


class Category(StrEnum):
    """Normalized internal categories."""

    food = "food"
    nightlife = "nightlife"
    music = "music"
    art = "art"
    history = "history"
    fitness = "fitness"
    outdoor = "outdoor"
    social = "social"
    other = "other"


class TimeLabel(StrEnum):
    """Resolved time-window labels."""

    now = "now"
    today = "today"
    tonight = "tonight"
    weekend = "weekend"
    specific = "specific"


class LocationType(StrEnum):
    """How the query locates itself."""

    near_me = "near_me"
    city = "city"
    zip = "zip"
    unknown = "unknown"


class FrozenModel(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_json(self) -> str:
        """Serialize with camelCase keys, omitting unset optional fields."""

        return self.model_dump_json(by_alias=True, exclude_none=True)


class TimeContext(FrozenModel):
    """Explicit time signal; an empty context means none was found."""

    label: TimeLabel | None = None
    day_of_week: str | None = None

    @model_validator(mode="after")
    def validate_day(self) -> TimeContext:
        """A weekday is carried only (and always) by the `specific` label."""

        if self.label == TimeLabel.specific:
            if self.day_of_week not in WEEKDAYS:
                raise ValueError("specific time context requires a weekday name")
        elif self.day_of_week is not None:
            raise ValueError("day_of_week is only allowed with label=specific")
        return self


class LocationHint(FrozenModel):
    """Where the user wants results; `unknown` never carries a value."""

    type: LocationType = LocationType.unknown
    value: str | None = None

    @model_validator(mode="after")
    def validate_value(self) -> LocationHint:
        if self.type == LocationType.unknown and self.value is not None:
            raise ValueError("unknown location hint must not carry a value")
        return self


class SearchIntent(FrozenModel):
    """A fully validated search intent."""

    raw_query: str
    intent_type: IntentType = IntentType.both
    keywords: tuple[str, ...] = ()
    vibe: tuple[str, ...] = ()
    categories: tuple[Category, ...] = Field(default=(Category.other,), min_length=1)
    time_context: TimeContext = Field(default_factory=TimeContext)
    location_hint: LocationHint = Field(default_factory=LocationHint)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0, allow_inf_nan=False)

    @model_validator(mode="after")
    def validate_uniqueness(self) -> SearchIntent:
        """Keywords, vibes and categories are ordered sets."""

        for name in ("keywords", "vibe", "categories"):
            values = getattr(self, name)
            if len(set(values)) != len(values):
                raise ValueError(f"{name} must not contain duplicates")
        return self


def default_intent(raw_query: str = "") -> SearchIntent:
    """The maximally conservative intent: no signals, zero confidence."""

    return SearchIntent(raw_query=raw_query)


def intent_from_obj(obj: Any) -> SearchIntent:
    """Validate and parse a SearchIntent from an arbitrary decoded JSON object."""

    return SearchIntent.model_validate(obj)
