# Overview: UTC clock and ISO-8601 helpers shared by models, services and routes.

"""
All timestamps are stored as naive UTC. Values arriving from clients are
normalized on the way in (parse_iso_datetime) and rendered with a trailing
"Z" on the way out (to_utc_z). Due dates, paid_at and report windows all go
through these helpers so comparisons never mix aware and naive values.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _as_naive_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Accepts "2030-01-31", "2030-01-31T10:00", "...Z" and "...+03:00".

    Dates without an offset are taken as UTC. Blank input gives None;
    malformed input raises ValueError.
    """
    if value is None or not value.strip():
        return None
    text = value.strip()
    if text[-1] in "zZ":
        text = text[:-1] + "+00:00"
    return _as_naive_utc(datetime.fromisoformat(text))


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """Second-precision ISO-8601 in UTC, e.g. 2030-01-31T10:00:00Z."""
    if dt is None:
        return None
    return _as_naive_utc(dt).replace(microsecond=0).isoformat() + "Z"


# Report windows (dashboard, monthly summary)

def start_of_day(now: datetime) -> datetime:
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_month(now: datetime) -> datetime:
    return start_of_day(now).replace(day=1)


def start_of_next_month(now: datetime) -> datetime:
    first = start_of_month(now)
    year, month = divmod(first.month, 12)
    return first.replace(year=first.year + year, month=month + 1)
