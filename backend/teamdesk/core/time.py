from __future__ import annotations

from datetime import UTC, datetime


def utcnow() -> datetime:
    """Return an aware UTC timestamp, the form written to every table."""
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    # Naive values are taken to be UTC; some backends load them back that way.
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
