"""
Availability Engine Datetime Utilities

This module provides datetime parsing and wall-clock helpers:
- get_timezone: Resolve an IANA zone name to a pytz timezone
- parse_iso_datetime: Parse an ISO-8601 string that carries an explicit offset
- at_local_time: Move a datetime to a given wall-clock time in a zone
- shift: Add an absolute duration and re-normalize to the zone's offset
- format_rejected_times: Render rejected timestamps for the LLM prompt
"""

from datetime import datetime, time, timedelta
from typing import Iterable, List, Optional

import pytz


def get_timezone(name: str):
    """Resolve an IANA zone name (e.g. America/Chicago) to a pytz timezone."""
    return pytz.timezone(name)


def now_in_timezone(timezone: str) -> datetime:
    """Current instant expressed in the given zone."""
    return datetime.now(get_timezone(timezone))


def parse_iso_datetime(value: str) -> Optional[datetime]:
    """
    Parse an ISO-8601 string with an explicit UTC offset.

    Args:
        value: e.g. "2025-10-29T14:00:00-05:00" or "2025-10-29T19:00:00Z"

    Returns:
        Timezone-aware datetime, or None when the string is invalid or has no offset
    """
    if not value or not isinstance(value, str):
        return None

    try:
        dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None

    if dt.tzinfo is None:
        return None
    return dt


def parse_rejected_times(rejected_times: Optional[Iterable[str]]) -> List[datetime]:
    """Parse rejected timestamps, silently dropping any that are not valid."""
    parsed = []
    for value in rejected_times or []:
        dt = parse_iso_datetime(value)
        if dt is not None:
            parsed.append(dt)
    return parsed


def at_local_time(dt: datetime, wall_time: time, timezone: str, days: int = 0) -> datetime:
    """
    Set the wall-clock time of dt in the given zone, keeping its local date
    (moved by whole calendar days when days is given).

    The zone's offset for the resulting civil time is used, so DST
    transitions between dt and the new time are honoured.
    """
    tz = get_timezone(timezone)
    local_date = dt.astimezone(tz).date() + timedelta(days=days)
    naive = datetime.combine(local_date, wall_time.replace(second=0, microsecond=0))
    return tz.localize(naive)


def localize_naive(naive: datetime, timezone: str) -> datetime:
    """Attach the zone to a naive wall-clock datetime."""
    return get_timezone(timezone).localize(naive)


def shift(dt: datetime, delta: timedelta, timezone: str) -> datetime:
    """Add an absolute duration and express the result in the zone."""
    tz = get_timezone(timezone)
    return tz.normalize((dt + delta).astimezone(tz))


def format_rejected_times(rejected_times: Optional[Iterable[str]]) -> str:
    """Comma-separated rejected timestamps, or an empty string."""
    values = [value.strip() for value in rejected_times or [] if value and value.strip()]
    return ", ".join(values)
