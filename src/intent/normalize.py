"""Text normalization for deterministic intent parsing."""

from __future__ import annotations

import re

_NON_WORD_RE = re.compile(r"[^a-z0-9\s'\-]+")
_MULTISPACE_RE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Normalize user text for rules-based parsing.

    Normalization is intentionally conservative:
        - Lowercase.
        - Replace curly apostrophes with `'`.
        - Replace anything but letters, digits, hyphens and apostrophes with spaces.
        - Collapse whitespace.

    The goal is deterministic tokenization, not linguistic lemmatization.
    """

    value = (text or "").lower()
    value = value.replace("’", "'").replace("‘", "'")

    value = _NON_WORD_RE.sub(" ", value)
    value = _MULTISPACE_RE.sub(" ", value).strip()
    return value


def tokenize(normalized: str) -> list[str]:
    """Split normalized text into tokens (hyphenated words stay whole)."""

    return [tok for tok in normalized.split(" ") if tok]
