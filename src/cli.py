"""Command-line entry point: print the intent and provider plan for a query as JSON."""

from __future__ import annotations

import argparse
import json
import sys
from datetime import datetime

from dotenv import load_dotenv

from src.app import create_app
from src.config.logging import configure_logging
from src.config.settings import load_settings
from src.pipeline import plan_search


def _parse_now(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid ISO-8601 datetime: {value!r}") from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Parse a discovery search phrase and show which providers would be called.",
    )
    parser.add_argument("query", help="Free-text search phrase, e.g. \"pizza near me\".")
    parser.add_argument(
        "--now",
        type=_parse_now,
        default=None,
        help="Reference time for date windows (ISO-8601). Defaults to now in PLANNER_TIMEZONE.",
    )
    parser.add_argument("--indent", type=int, default=2, help="JSON indentation (0 for compact).")
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for planning a single query."""

    args = build_parser().parse_args(argv)

    load_dotenv()
    settings = load_settings()
    configure_logging(settings.log_level)
    app = create_app(settings)

    now = args.now
    if now is not None and now.tzinfo is None:
        now = now.replace(tzinfo=app.tz)

    result = plan_search(args.query, app=app, now=now)
    indent = args.indent if args.indent > 0 else None
    sys.stdout.write(json.dumps(result.to_dict(), indent=indent) + "\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
