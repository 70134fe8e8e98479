from __future__ import annotations
import math
import re
from datetime import date, datetime, time, timezone
from typing import Optional

TIMELINE_START_HOUR = 6
TIMELINE_END_HOUR = 20

_HHMM = re.compile(r"^\s*(\d{1,2}):(\d{2})(?::\d{2})?\s*$")


def position_percent(hour: float, window_start: float = TIMELINE_START_HOUR, window_end: float = TIMELINE_END_HOUR) -> float:
    """Map an hour of the day onto the display window.

    Values outside 0-100 are returned as-is so early or late punches still render.
    """
    return (hour - window_start) / (window_end - window_start) * 100


def now_like(reference: datetime) -> datetime:
    return datetime.now(reference.tzinfo)


def elapsed_seconds(start: datetime, end: datetime) -> float:
    # Aware datetimes sharing a tzinfo subtract by wall clock, which is off by the DST shift.
    if start.tzinfo is not None and end.tzinfo is not None:
        start, end = start.astimezone(timezone.utc), end.astimezone(timezone.utc)
    return (end - start).total_seconds()


def minutes_between(start: datetime, end: Optional[datetime], now: Optional[datetime] = None) -> int:
    if end is None:
        end = now or now_like(start)
    return math.floor(elapsed_seconds(start, end) / 60)


def hour_of(ts: datetime) -> float:
    return ts.hour + ts.minute / 60


def parse_hhmm(value: Optional[str]) -> Optional[int]:
    """Return minutes after midnight for an "HH:MM" string, or None when unusable."""
    if not value:
        return None
    match = _HHMM.match(value)
    if not match:
        return None
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 24 or minutes > 59:
        return None
    return hours * 60 + minutes


def midnight(day: date, reference: datetime) -> datetime:
    return datetime.combine(day, time(0, 0), tzinfo=reference.tzinfo)


def minute_of_day(ts: datetime, day: Optional[date] = None) -> int:
    # Clock-face minutes from midnight of `day`, not elapsed time. A span crossing midnight keeps growing past 1440.
    day = day or ts.date()
    return math.floor((ts - midnight(day, ts)).total_seconds() / 60)


def day_of_week(day: date) -> int:
    """Sunday = 0 ... Saturday = 6."""
    return (day.weekday() + 1) % 7


def format_duration(minutes: Optional[int]) -> str:
    if not minutes:
        return "—"
    hours, mins = divmod(int(minutes), 60)
    return f"{hours}h {mins}m"
