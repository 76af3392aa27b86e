"""Pytest configuration.

The repository uses a flat `src/` layout without an installed package. This conftest ensures tests
can import from the `src.*` namespace when running `pytest` locally, and provides a fixed clock.
"""

from __future__ import annotations

import sys
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest

# Ensure `import src...` works when running pytest without installing the package.
REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT))

NEW_YORK = ZoneInfo("America/New_York")


@pytest.fixture
def fixed_now() -> datetime:
    """Wednesday 2026-10-14 12:00 in New York."""

    return datetime(2026, 10, 14, 12, 0, tzinfo=NEW_YORK)
