"""Query planning pipeline: parse a search phrase, then plan provider calls.

Hard contract: every call produces a valid intent and a plan that selects at least one provider.
Any unexpected failure is logged internally and degrades to the conservative defaults.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from time import monotonic
from typing import Any

from src.app import App
from src.intent.parser import ParseSource, parse_intent_with_source
from src.intent.schema import SearchIntent, default_intent
from src.planner.builder import build_plan, fallback_plan
from src.planner.schema import ProviderPlan

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchPlan:
    """A parsed intent together with the provider plan derived from it."""

    intent: SearchIntent
    plan: ProviderPlan
    source: ParseSource

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready camelCase structure for the orchestration layer."""

        return {
            "intent": self.intent.model_dump(mode="json", by_alias=True, exclude_none=True),
            "plan": self.plan.model_dump(mode="json", by_alias=True, exclude_none=True),
        }


def plan_search(text: Any, *, app: App | None = None, now: datetime | None = None) -> SearchPlan:
    """Parse `text` and build its provider plan.

    Args:
        text: The raw search phrase.
        app: Supplies the configured timezone for the default `now`.
        now: Injected reference instant (deterministic tests, replays).
    """

    started = monotonic()
    reference = now if now is not None else (app.now() if app is not None else None)

    # noinspection PyBroadException
    try:
        parsed = parse_intent_with_source(text)
        plan = build_plan(parsed.intent, now=reference)
        result = SearchPlan(intent=parsed.intent, plan=plan, source=parsed.source)
    except Exception as exc:
        # Pipeline boundary: both stages are total, so this only guards against wiring faults.
        logger.exception("search planning failed")
        raw_query = text if isinstance(text, str) else ""
        return SearchPlan(intent=default_intent(raw_query), plan=fallback_plan(exc), source="fallback")

    latency_ms = int((monotonic() - started) * 1000)
    logger.debug("query=%r", result.intent.raw_query)
    logger.info(
        "planned source=%s intent=%s confidence=%.2f places=%s events=%s latency_ms=%d",
        result.source,
        result.intent.intent_type,
        result.intent.confidence,
        result.plan.call_places,
        result.plan.call_events,
        latency_ms,
    )
    return result
