"""Defensive date helpers shared by the evidence scorers.

Upstream evidence arrives with dates in whatever shape the scraper or the LLM
produced. Everything here returns ``None`` for input it cannot read instead of
raising, and every returned datetime is timezone-aware UTC.
"""

from __future__ import annotations

import math
from datetime import date, datetime, timezone
from typing import Any, Iterable, Optional

SECONDS_PER_DAY = 60 * 60 * 24

_FALLBACK_FORMATS = [
    "%Y-%m-%d",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
    "%m/%d/%Y",
    "%a, %d %b %Y %H:%M:%S %Z",
    "%a, %d %b %Y %H:%M:%S %z",
    "%d %b %Y",
    "%B %d, %Y",
    "%b %d, %Y",
]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse a loosely-typed date value.

    Accepts datetimes, dates, ISO-8601 strings (with or without ``Z``), a few
    common human formats, and numeric epoch timestamps in milliseconds.
    Booleans, blanks and anything unparseable yield ``None``.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        try:
            return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    try:
        return _as_utc(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        pass
    for fmt in _FALLBACK_FORMATS:
        try:
            return _as_utc(datetime.strptime(text, fmt))
        except ValueError:
            continue
    return None


def to_iso(value: datetime) -> str:
    """Render a datetime as a UTC ISO string with a ``Z`` suffix."""
    return _as_utc(value).isoformat().replace("+00:00", "Z")


def first_parseable(values: Iterable[Any]) -> Optional[datetime]:
    """Return the first value that parses, trying candidates in order."""
    for candidate in values:
        parsed = parse_datetime(candidate)
        if parsed is not None:
            return parsed
    return None


def whole_days_between(later: datetime, earlier: datetime) -> int:
    """Floor of the day span between two datetimes (negative when reversed)."""
    delta = _as_utc(later) - _as_utc(earlier)
    return math.floor(delta.total_seconds() / SECONDS_PER_DAY)


def days_since(value: Any, now: Optional[datetime] = None) -> Optional[int]:
    """Whole days elapsed since ``value``; ``None`` when it does not parse."""
    parsed = parse_datetime(value)
    if parsed is None:
        return None
    return whole_days_between(now or utc_now(), parsed)


__all__ = [
    "SECONDS_PER_DAY",
    "days_since",
    "first_parseable",
    "parse_datetime",
    "to_iso",
    "utc_now",
    "whole_days_between",
]
