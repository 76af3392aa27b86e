"""Application composition root.

This module wires configuration into the planning pipeline for the CLI and in-process callers.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from zoneinfo import ZoneInfo

from src.config.settings import Settings


@dataclass(frozen=True)
class App:
    """Shared application dependencies for pipeline callers."""

    settings: Settings
    tz: ZoneInfo

    def now(self) -> datetime:
        """Current wall-clock time in the configured timezone."""

        return datetime.now(self.tz)


def create_app(settings: Settings) -> App:
    """Create the application container."""

    return App(settings=settings, tz=settings.tzinfo)
