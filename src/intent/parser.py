"""Intent parser boundary (never raises; conservative fallback)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Literal

from src.intent.rules_parser import RulesParserError
from src.intent.rules_parser import parse_intent as parse_rules_intent
from src.intent.schema import SearchIntent, default_intent

logger = logging.getLogger(__name__)

ParseSource = Literal["rules", "fallback"]


@dataclass(frozen=True)
class ParseResult:
    """Validated intent plus information about which path produced it."""

    intent: SearchIntent
    source: ParseSource


def parse_intent_with_source(text: Any) -> ParseResult:
    """Parse text into a SearchIntent.

    Strategy:
        1) Run the deterministic rules parser.
        2) On unsupported input (`RulesParserError`) or any unexpected fault, return the
           maximally conservative intent instead of raising.
    """

    raw_query = text if isinstance(text, str) else ""

    try:
        return ParseResult(intent=parse_rules_intent(text), source="rules")
    except RulesParserError as exc:
        logger.warning("unsupported query reason=%s", exc)
    except Exception:
        # Parser boundary: internal errors degrade to the conservative default.
        logger.exception("intent parser failed")

    return ParseResult(intent=default_intent(raw_query), source="fallback")


def parse_intent(text: Any) -> SearchIntent:
    """Parse text into a SearchIntent (convenience wrapper, never raises)."""

    return parse_intent_with_source(text).intent
