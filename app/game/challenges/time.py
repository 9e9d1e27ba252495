from __future__ import annotations

from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo


def civil_date(now_utc: datetime, timezone_name: str) -> date:
    """Converts a UTC instant to the calendar day of the challenge time zone."""
    return now_utc.astimezone(ZoneInfo(timezone_name)).date()


def next_civil_date(day: date) -> date:
    return day + timedelta(days=1)


def civil_midnight_utc(day: date, timezone_name: str) -> datetime:
    """Returns the UTC instant at which ``day`` begins in the challenge time zone."""
    local_midnight = datetime(day.year, day.month, day.day, tzinfo=ZoneInfo(timezone_name))
    return local_midnight.astimezone(ZoneInfo("UTC"))
