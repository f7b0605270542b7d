"""
date_time_helper.py

Helper functions for UTC timestamps used by the signing engine.

All timestamps handled by the engine are timezone-aware UTC datetimes.
Naive datetimes coming from collaborators are interpreted as UTC.
"""

from datetime import date, datetime, timezone
from typing import Callable, Optional

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current time as an aware UTC datetime (default clock)."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return ensure_utc(value).isoformat()


def parse_iso_datetime(text: str) -> Optional[datetime]:
    """
    Parse an ISO8601 timestamp (a trailing 'Z' is accepted).

    :return: aware UTC datetime, or None if the text is not a timestamp
    """
    raw = (text or "").strip()
    if not raw:
        return None
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        return ensure_utc(datetime.fromisoformat(raw))
    except ValueError:
        return None


def parse_calendar_date(text: str) -> Optional[date]:
    """
    Parse a calendar date from an ISO date or ISO timestamp string.

    Returns None for anything that is not a valid calendar date
    (e.g. '2024-02-30' or 'tomorrow').
    """
    raw = (text or "").strip()
    if not raw:
        return None
    try:
        return date.fromisoformat(raw)
    except ValueError:
        pass
    stamp = parse_iso_datetime(raw)
    return stamp.date() if stamp is not None else None
