"""Text sanitization and normalization for stored prompts."""

from __future__ import annotations

import re

MAX_PROMPT_LENGTH = 4000

_WHITESPACE_RE = re.compile(r"\s+")


def sanitize(raw: str) -> str:
    """Strip surrounding whitespace and cap the length for storage."""
    return raw.strip()[:MAX_PROMPT_LENGTH]


def normalize(text: str) -> str:
    """Collapse whitespace runs to single spaces. Only used for comparison."""
    return _WHITESPACE_RE.sub(" ", text).strip()
