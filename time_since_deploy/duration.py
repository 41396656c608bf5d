"""Human-readable approximations of ``timedelta`` values.

    >>> format_duration(timedelta(days=3, hours=2, minutes=5))
    '3 days 2 hours'
"""
from datetime import timedelta
from typing import List, Optional, Tuple


_US_PER_SECOND = 1_000_000
_US_PER_DAY = 86_400 * _US_PER_SECOND

# (singular, plural, length in microseconds), largest first
UNITS: Tuple[Tuple[str, str, int], ...] = (
    ("year", "years", 365 * _US_PER_DAY),
    ("week", "weeks", 7 * _US_PER_DAY),
    ("day", "days", _US_PER_DAY),
    ("hour", "hours", 3600 * _US_PER_SECOND),
    ("minute", "minutes", 60 * _US_PER_SECOND),
    ("second", "seconds", _US_PER_SECOND),
    ("millisecond", "milliseconds", 1000),
    ("microsecond", "microseconds", 1),
)


def split_duration(delta: timedelta) -> List[Tuple[int, str]]:
    """Break a non-negative delta into its non-zero (value, unit) components."""
    remaining = abs(delta) // timedelta(microseconds=1)
    parts: List[Tuple[int, str]] = []
    for singular, plural, size in UNITS:
        value, remaining = divmod(remaining, size)
        if value:
            parts.append((value, singular if value == 1 else plural))
    return parts


def format_duration(delta: timedelta, limit: Optional[int] = 2) -> str:
    """Format ``delta`` keeping only its ``limit`` most significant units."""
    parts = split_duration(delta)
    if not parts:
        return "0 seconds"
    if limit is not None and limit > 0:
        parts = parts[:limit]
    text = " ".join(f"{value} {unit}" for value, unit in parts)
    return f"-{text}" if delta < timedelta(0) else text
