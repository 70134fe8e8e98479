from __future__ import annotations
from datetime import date, datetime
from typing import List, Optional, Sequence

from .geometry import (
    TIMELINE_END_HOUR,
    TIMELINE_START_HOUR,
    minute_of_day,
    now_like,
    parse_hhmm,
    position_percent,
)
from .models import DayStatus, ScheduledRange, Segment, SegmentType, TimeEntry, Timeline

DEFAULT_SCHEDULED_START = "08:00"
DEFAULT_SCHEDULED_END = "17:00"
LATE_GRACE_MINUTES = 10
MIN_SEGMENT_WIDTH = 0.5

LABELS = {
    SegmentType.REGULAR: "Working time",
    SegmentType.LATE: "Late",
    SegmentType.OVERTIME: "Overtime",
    SegmentType.BREAK: "Break",
    SegmentType.NO_ACTIVITY: "No activity",
}


class SegmentClassifier:
    """Turns one person's day of punches into positioned timeline segments.

    The classifier keeps its own 08:00-17:00 fallback; it does not consult the
    schedule resolver. Callers that know the person's schedule pass it in.
    """

    def __init__(
        self,
        scheduled_start: Optional[str] = None,
        scheduled_end: Optional[str] = None,
        *,
        window_start: float = TIMELINE_START_HOUR,
        window_end: float = TIMELINE_END_HOUR,
        late_grace_minutes: int = LATE_GRACE_MINUTES,
        min_width: float = MIN_SEGMENT_WIDTH,
    ) -> None:
        self.scheduled_start = scheduled_start or DEFAULT_SCHEDULED_START
        self.scheduled_end = scheduled_end or DEFAULT_SCHEDULED_END
        self.start_minute = _minutes_or_default(self.scheduled_start, DEFAULT_SCHEDULED_START)
        self.end_minute = _minutes_or_default(self.scheduled_end, DEFAULT_SCHEDULED_END)
        self.window_start = window_start
        self.window_end = window_end
        self.late_grace_minutes = late_grace_minutes
        self.min_width = min_width

    def _percent(self, minute: float) -> float:
        return position_percent(minute / 60, self.window_start, self.window_end)

    def _segment(self, kind: SegmentType, start: int, end: int, entry_id: Optional[str] = None) -> Segment:
        start_percent = self._percent(start)
        width = self._percent(end) - start_percent
        return Segment(
            type=kind,
            start_minute=start,
            end_minute=end,
            start_percent=start_percent,
            width_percent=max(width, self.min_width),
            label=LABELS[kind],
            entry_id=entry_id,
        )

    def is_late(self, clock_in: Optional[datetime]) -> bool:
        if clock_in is None:
            return False
        return minute_of_day(clock_in) > self.start_minute + self.late_grace_minutes

    def arrived_late(self, ordered: Sequence[TimeEntry]) -> bool:
        # A day that opens on a break is never late.
        return bool(ordered) and not ordered[0].is_break and self.is_late(ordered[0].start)

    def classify(self, entries: Sequence[TimeEntry], now: Optional[datetime] = None) -> List[Segment]:
        ordered = _ordered(entries)
        if not ordered:
            return [self._segment(SegmentType.NO_ACTIVITY, self.start_minute, self.end_minute)]

        day = ordered[0].start.date()
        clock_in = minute_of_day(ordered[0].start, day)
        segments: List[Segment] = []
        if self.arrived_late(ordered):
            segments.append(self._segment(SegmentType.LATE, self.start_minute, clock_in))

        for entry in ordered:
            segments.extend(self._classify_entry(entry, day, now))
        return segments

    def _classify_entry(self, entry: TimeEntry, day: date, now: Optional[datetime]) -> List[Segment]:
        start = minute_of_day(entry.start, day)
        end = minute_of_day(entry.end or now or now_like(entry.start), day)
        end = max(end, start)
        scheduled_end = self.end_minute

        if entry.is_break:
            return [self._segment(SegmentType.BREAK, start, end, entry.id)]
        if start >= scheduled_end:
            return [self._segment(SegmentType.OVERTIME, start, end, entry.id)]
        if end > scheduled_end:
            return [
                self._segment(SegmentType.REGULAR, start, scheduled_end, entry.id),
                self._segment(SegmentType.OVERTIME, scheduled_end, end, entry.id),
            ]
        return [self._segment(SegmentType.REGULAR, start, end, entry.id)]

    def status(self, entries: Sequence[TimeEntry]) -> DayStatus:
        ordered = _ordered(entries)
        if not ordered:
            return DayStatus.NO_ACTIVITY
        if ordered[-1].end is None:
            return DayStatus.ACTIVE
        if self.arrived_late(ordered):
            return DayStatus.LATE
        return DayStatus.COMPLETE

    def scheduled_range(self) -> ScheduledRange:
        start_percent = self._percent(self.start_minute)
        return ScheduledRange(
            start_time=self.scheduled_start,
            end_time=self.scheduled_end,
            start_percent=start_percent,
            width_percent=self._percent(self.end_minute) - start_percent,
        )

    def timeline(self, entries: Sequence[TimeEntry], now: Optional[datetime] = None) -> Timeline:
        ordered = _ordered(entries)
        work_date = ordered[0].start.date() if ordered else None
        return Timeline(
            work_date=work_date,
            segments=self.classify(entries, now),
            scheduled_range=self.scheduled_range(),
            status=self.status(entries),
        )


def _ordered(entries: Sequence[TimeEntry]) -> List[TimeEntry]:
    return sorted((e for e in entries if e.start is not None), key=lambda e: e.start)


def _minutes_or_default(value: str, default: str) -> int:
    minutes = parse_hhmm(value)
    if minutes is None:
        minutes = parse_hhmm(default)
    return minutes


def classify_day(
    entries: Sequence[TimeEntry],
    scheduled_start: Optional[str] = None,
    scheduled_end: Optional[str] = None,
    now: Optional[datetime] = None,
    **options,
) -> List[Segment]:
    return SegmentClassifier(scheduled_start, scheduled_end, **options).classify(entries, now)


def day_status(entries: Sequence[TimeEntry], scheduled_start: Optional[str] = None, **options) -> DayStatus:
    return SegmentClassifier(scheduled_start, **options).status(entries)


def build_timeline(
    entries: Sequence[TimeEntry],
    scheduled_start: Optional[str] = None,
    scheduled_end: Optional[str] = None,
    now: Optional[datetime] = None,
    **options,
) -> Timeline:
    return SegmentClassifier(scheduled_start, scheduled_end, **options).timeline(entries, now)
