# league_board/date_windows.py
"""
Date parsing and leaderboard time windows.

Windows are computed relative to "now" at call time and are inclusive of the
boundary day: a 30-day window starting on the 1st includes games played any
time on the 1st.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Optional, Union

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta


@dataclass(frozen=True)
class DateWindow:
    """A closed [start, end] interval of timezone-aware datetimes."""
    start: datetime
    end: datetime

    def contains(self, when: Optional[datetime]) -> bool:
        if when is None:
            return False
        return self.start <= when <= self.end


def parse_datetime(value: Any) -> Optional[datetime]:
    """
    Parse a backend timestamp into an aware datetime (UTC when no offset is given).

    Accepts:
      - datetime / date objects
      - ISO-8601 strings ("2025-03-01T19:30:00Z", "2025-03-01")
      - serialized server timestamps: {"_seconds": 1740857400, "_nanoseconds": 0}

    Returns None for missing or unparseable values.
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime.combine(value, time.min)
    elif isinstance(value, dict):
        seconds = value.get("_seconds", value.get("seconds"))
        if not isinstance(seconds, (int, float)) or isinstance(seconds, bool):
            return None
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    elif isinstance(value, str):
        try:
            dt = date_parser.isoparse(value.strip())
        except (ValueError, OverflowError):
            return None
    else:
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def start_of_day(dt: datetime) -> datetime:
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def end_of_day(dt: datetime) -> datetime:
    return dt.replace(hour=23, minute=59, second=59, microsecond=999999)


def _as_local(value: Union[date, datetime], tzinfo) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=tzinfo)
    return datetime.combine(value, time.min, tzinfo=tzinfo)


def last_n_days(days: int, now: datetime, as_of: Union[date, datetime, None] = None) -> DateWindow:
    """
    Window covering the last `days` days.

    The window ends at `now`, or at the end of the `as_of` day when given, and
    starts at midnight `days` days before the end.
    """
    if days < 0:
        raise ValueError(f"days must be >= 0, got {days}")
    end = end_of_day(_as_local(as_of, now.tzinfo)) if as_of is not None else now
    start = start_of_day(end - timedelta(days=days))
    return DateWindow(start=start, end=end)


def last_calendar_month(now: datetime) -> DateWindow:
    """Window covering the whole previous calendar month in now's timezone."""
    first_this_month = start_of_day(now.replace(day=1))
    start = first_this_month - relativedelta(months=1)
    end = first_this_month - timedelta(microseconds=1)
    return DateWindow(start=start, end=end)
