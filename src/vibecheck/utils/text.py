"""Lexical helpers shared by the checkers."""

from __future__ import annotations

import math
import re

_NON_WORD = re.compile(r"\W+")


def tokenize(text: str, min_length: int = 1) -> list[str]:
    """Lowercase ``text`` and split it on non-word runs.

    Tokens shorter than ``min_length`` are dropped. Order and duplicates are
    preserved so callers can compute ratios over the raw token stream.
    """
    return [token for token in _NON_WORD.split(text.lower()) if len(token) >= min_length]


def contains_any(text: str, needles: tuple[str, ...] | list[str]) -> bool:
    return any(needle in text for needle in needles)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (50.5 -> 51)."""
    return int(math.floor(value + 0.5))


def excerpt(text: str | None, length: int) -> str | None:
    if text is None:
        return None
    return text[:length]


def shorten(text: str, length: int = 100) -> str:
    """Truncate ``text`` to ``length`` characters, marking the cut with ``...``."""
    if len(text) > length:
        return text[:length] + "..."
    return text
