"""Utility helpers used across backend modules."""

from __future__ import annotations

import math
import re
import uuid


def round_half_up(value: float) -> int:
    """Round ``value`` to the nearest integer, halves away from zero for
    positives (``2.5 -> 3``) rather than Python's banker's rounding."""

    return int(math.floor(value + 0.5))


def format_time(seconds: int) -> str:
    """Return ``seconds`` formatted as ``MM:SS``."""

    seconds = max(0, int(seconds))
    mins, secs = divmod(seconds, 60)
    return f"{mins:02d}:{secs:02d}"


_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _leading_int(text: str) -> int:
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0


def parse_time(value) -> int:
    """Return the number of seconds described by ``value``.

    ``value`` may be an ``int`` number of seconds or a ``"MM:SS"`` string.
    Anything unparsable, and any negative result, yields ``0``.  Each part
    is read up to its first non-digit, so ``"1:-30"`` is ``60 - 30``.
    """

    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return max(0, int(value))
    if not isinstance(value, str):
        return 0
    parts = value.split(":")
    if len(parts) != 2:
        return 0
    total = _leading_int(parts[0]) * 60 + _leading_int(parts[1])
    return max(0, total)


def new_id(prefix: str = "") -> str:
    """Return a new unique identifier, optionally prefixed."""

    token = uuid.uuid4().hex
    return f"{prefix}_{token[:16]}" if prefix else token
