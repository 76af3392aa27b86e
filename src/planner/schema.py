"""ProviderPlan schema (Pydantic models).

The plan is the contract between the planner and the orchestration layer that performs the actual
provider calls. Each query block is present exactly when its provider is selected.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import Field, model_validator

from src.intent.schema import FrozenModel
from src.planner.tables import EVENTS_MAX_RESULTS, MAX_PLACES_TYPES, PLACES_MAX_RESULTS


class DateWindow(FrozenModel):
    """A timezone-aware `[start, end]` window serialized as ISO-8601."""

    start: datetime
    end: datetime

    @model_validator(mode="after")
    def validate_range(self) -> DateWindow:
        """Validate that both bounds are timezone-aware and `start <= end`."""

        if self.start.tzinfo is None or self.end.tzinfo is None:
            raise ValueError("date window bounds must be timezone-aware")
        if self.start > self.end:
            raise ValueError("start must be <= end")
        return self


class PlacesQuery(FrozenModel):
    """Parameters for the places provider."""

    radius_meters: int = Field(gt=0)
    max_results: int = Field(ge=1, le=PLACES_MAX_RESULTS)
    types: tuple[str, ...] | None = Field(default=None, min_length=1, max_length=MAX_PLACES_TYPES)


class EventsQuery(FrozenModel):
    """Parameters for the events provider."""

    radius_miles: int = Field(ge=1, le=100)
    max_results: int = Field(ge=1, le=EVENTS_MAX_RESULTS)
    date_range: DateWindow | None = None


class ProviderPlan(FrozenModel):
    """Which providers to call, with what parameters, and why."""

    call_places: bool
    call_events: bool
    places_query: PlacesQuery | None = None
    events_query: EventsQuery | None = None
    reasoning: tuple[str, ...] = ()

    @model_validator(mode="after")
    def validate_calls(self) -> ProviderPlan:
        """Enforce the fail-safe and the query/flag pairing."""

        if not (self.call_places or self.call_events):
            raise ValueError("a plan must call at least one provider")
        if self.call_places != (self.places_query is not None):
            raise ValueError("places_query must be present iff call_places")
        if self.call_events != (self.events_query is not None):
            raise ValueError("events_query must be present iff call_events")
        return self
