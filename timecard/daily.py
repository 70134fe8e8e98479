from __future__ import annotations
from collections import defaultdict
from datetime import date, datetime, time, timedelta
from typing import Dict, Iterable, List, Optional

from .geometry import minutes_between
from .models import DailyTimeEntry, ShiftClosure, TimeEntry, TimeEntryStats
from .segments import LATE_GRACE_MINUTES, SegmentClassifier

MAX_SHIFT_HOURS = 12


def group_daily_entries(
    entries: Iterable[TimeEntry],
    scheduled_start: Optional[str] = None,
    now: Optional[datetime] = None,
    late_grace_minutes: int = LATE_GRACE_MINUTES,
) -> List[DailyTimeEntry]:
    """Collapse one person's entries into per-day summaries, most recent day first."""
    by_date: Dict[date, List[TimeEntry]] = defaultdict(list)
    for entry in entries:
        by_date[entry.work_date].append(entry)

    classifier = SegmentClassifier(scheduled_start, late_grace_minutes=late_grace_minutes) if scheduled_start else None
    days: List[DailyTimeEntry] = []
    for work_date, day_entries in by_date.items():
        ordered = sorted(day_entries, key=lambda e: e.start)
        clock_in = ordered[0].start
        days.append(
            DailyTimeEntry(
                work_date=work_date,
                entries=ordered,
                clock_in=clock_in,
                clock_out=ordered[-1].end,
                total_minutes=sum(entry.minutes(now) for entry in ordered),
                is_late=classifier.arrived_late(ordered) if classifier else False,
                has_no_clock_out=any(entry.end is None for entry in ordered),
            )
        )
    days.sort(key=lambda d: d.work_date, reverse=True)
    return days


def summarize_days(days: Iterable[DailyTimeEntry]) -> TimeEntryStats:
    day_list = list(days)
    if not day_list:
        return TimeEntryStats()
    total_minutes = sum(day.total_minutes for day in day_list)
    return TimeEntryStats(
        days_worked=len(day_list),
        late_arrivals=sum(1 for day in day_list if day.is_late),
        total_hours=round(total_minutes / 60, 1),
        average_hours_per_day=round(total_minutes / 60 / len(day_list), 1),
    )


def find_overlong_open_shifts(
    entries: Iterable[TimeEntry],
    now: datetime,
    max_shift_hours: float = MAX_SHIFT_HOURS,
) -> List[ShiftClosure]:
    """Propose closing open entries that started more than `max_shift_hours` ago.

    Proposed end is the last instant of `now`'s day. Nothing is modified.
    """
    cutoff = now - timedelta(hours=max_shift_hours)
    end_of_day = datetime.combine(now.date(), time(23, 59, 59, 999000), tzinfo=now.tzinfo)
    closures = []
    for entry in sorted(entries, key=lambda e: e.start):
        if entry.end is not None or entry.start >= cutoff:
            continue
        closures.append(
            ShiftClosure(
                time_entry_id=entry.id,
                person_id=entry.person_id,
                end=end_of_day,
                duration_minutes=minutes_between(entry.start, end_of_day),
            )
        )
    return closures
