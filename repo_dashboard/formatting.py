"""Display helpers for numbers and timestamps."""

from __future__ import annotations

from datetime import datetime

from .config import UTC

_INTERVALS = (
    ("year", 31_536_000),
    ("month", 2_592_000),
    ("week", 604_800),
    ("day", 86_400),
    ("hour", 3_600),
    ("minute", 60),
)


def format_number(value: int) -> str:
    return f"{value:,}"


def format_date(value: datetime) -> str:
    """Render as ``Jan 5, 2024``."""

    return f"{value:%b} {value.day}, {value.year}"


def relative_time(value: datetime, now: datetime | None = None) -> str:
    """Render the distance to ``now`` using its largest whole unit, e.g. ``2 days ago``."""

    now = now or datetime.now(tz=UTC)
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    seconds = int((now - value).total_seconds())
    for unit, length in _INTERVALS:
        count = seconds // length
        if count >= 1:
            return f"{count} {unit}{'s' if count > 1 else ''} ago"
    return "just now"


__all__ = ["format_date", "format_number", "relative_time"]
