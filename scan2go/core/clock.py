"""Claim-window time helpers.

Timestamps are stored in UTC. The daily claim window is the server-local
calendar day: local midnight (inclusive) to the next local midnight
(exclusive).
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def today_local() -> date:
    return datetime.now().date()


def local_day_bounds(day: date) -> tuple[datetime, datetime]:
    """UTC instants bounding the server-local calendar day `day`."""
    start = datetime.combine(day, time.min).astimezone()
    end = datetime.combine(day + timedelta(days=1), time.min).astimezone()
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def local_month_bounds(day: date) -> tuple[datetime, datetime]:
    first = day.replace(day=1)
    nxt = (first + timedelta(days=32)).replace(day=1)
    start, _ = local_day_bounds(first)
    end, _ = local_day_bounds(nxt)
    return start, end


def as_local(value: datetime) -> datetime:
    """Convert a stored timestamp to server-local time (naive values are UTC)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone()
