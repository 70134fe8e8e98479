from datetime import datetime

import pytest

from timecard.models import DayStatus, SegmentType, TimeEntry
from timecard.segments import SegmentClassifier, build_timeline, classify_day, day_status

DAY = (2024, 3, 4)


def at(hhmm: str) -> datetime:
    hours, minutes = hhmm.split(":")
    return datetime(*DAY, int(hours), int(minutes))


def entry(entry_id: str, start: str, end: str | None, is_break: bool = False) -> TimeEntry:
    return TimeEntry(id=entry_id, person_id="p1", start=at(start), end=at(end) if end else None, is_break=is_break)


def test_no_entries_emit_single_no_activity_segment():
    segments = classify_day([])

    assert len(segments) == 1
    segment = segments[0]
    assert segment.type == SegmentType.NO_ACTIVITY
    assert (segment.start_minute, segment.end_minute) == (480, 1020)
    assert segment.start_percent == pytest.approx(200 / 14)
    assert segment.width_percent == pytest.approx(900 / 14)


def test_clock_in_ten_minutes_after_start_is_not_late():
    segments = classify_day([entry("e1", "08:10", "16:00")])

    assert [s.type for s in segments] == [SegmentType.REGULAR]


def test_clock_in_eleven_minutes_after_start_is_late():
    segments = classify_day([entry("e1", "08:11", "16:00")])

    assert [s.type for s in segments] == [SegmentType.LATE, SegmentType.REGULAR]
    assert (segments[0].start_minute, segments[0].end_minute) == (480, 491)
    assert segments[0].label == "Late"


def test_entry_crossing_scheduled_end_is_split():
    segments = classify_day([entry("e1", "07:00", "19:30")], "08:00", "17:00")

    assert [s.type for s in segments] == [SegmentType.REGULAR, SegmentType.OVERTIME]
    assert (segments[0].start_minute, segments[0].end_minute) == (420, 1020)
    assert (segments[1].start_minute, segments[1].end_minute) == (1020, 1170)
    assert segments[1].start_percent == pytest.approx(1100 / 14)


def test_entry_after_scheduled_end_is_all_overtime():
    segments = classify_day([entry("e1", "08:00", "12:00"), entry("e2", "17:00", "19:00")])

    assert [s.type for s in segments] == [SegmentType.REGULAR, SegmentType.OVERTIME]
    assert segments[1].entry_id == "e2"


def test_break_entries_are_classified_as_break():
    segments = classify_day([entry("e1", "08:00", "12:00"), entry("b1", "12:00", "12:30", is_break=True)])

    assert segments[1].type == SegmentType.BREAK
    assert segments[1].label == "Break"


def test_zero_width_segment_keeps_minimum_width():
    segments = classify_day([entry("e1", "10:00", "10:00")], "10:00")

    assert segments[0].width_percent == 0.5
    assert segments[0].start_minute == segments[0].end_minute == 600


def test_open_entry_runs_until_now():
    segments = classify_day([entry("e1", "08:00", None)], now=at("10:00"))

    assert segments[0].end_minute == 600


def test_early_punch_positions_off_window():
    segments = classify_day([entry("e1", "05:00", "09:00")])

    assert segments[0].start_percent < 0


def test_segments_cover_entries_and_late_gap_without_overlap():
    entries = [
        entry("e1", "08:30", "12:00"),
        entry("b1", "12:00", "12:30", is_break=True),
        entry("e2", "12:30", "18:00"),
    ]

    segments = classify_day(entries, "08:00", "17:00")

    assert segments[0].type == SegmentType.LATE
    assert segments[0].start_minute == 480
    for previous, current in zip(segments, segments[1:]):
        assert current.start_minute == previous.end_minute
    assert segments[-1].end_minute == 18 * 60
    for item in entries:
        covered = sum(s.end_minute - s.start_minute for s in segments if s.entry_id == item.id)
        assert covered == item.minutes()


def test_custom_schedule_moves_overtime_boundary():
    segments = classify_day([entry("e1", "09:00", "18:00")], "09:00", "18:00")

    assert [s.type for s in segments] == [SegmentType.REGULAR]


def test_malformed_schedule_falls_back_to_default():
    classifier = SegmentClassifier("bogus", "17:00")

    assert classifier.start_minute == 480


@pytest.mark.parametrize(
    "entries, expected",
    [
        ([], DayStatus.NO_ACTIVITY),
        ([entry("e1", "08:00", None)], DayStatus.ACTIVE),
        ([entry("e1", "08:30", "17:00")], DayStatus.LATE),
        ([entry("e1", "08:05", "17:00")], DayStatus.COMPLETE),
    ],
)
def test_day_status(entries, expected):
    assert day_status(entries) == expected


def test_timeline_carries_scheduled_range_and_status():
    timeline = build_timeline([entry("e1", "08:00", "17:00")], "08:00", "17:00")

    assert timeline.work_date.isoformat() == "2024-03-04"
    assert timeline.status == DayStatus.COMPLETE
    assert timeline.scheduled_range.start_percent == pytest.approx(200 / 14)
    assert timeline.scheduled_range.width_percent == pytest.approx(900 / 14)


def test_day_opening_on_a_break_is_not_late():
    entries = [entry("b1", "09:00", "09:15", is_break=True), entry("e1", "09:15", "16:00")]

    segments = classify_day(entries)

    assert [s.type for s in segments] == [SegmentType.BREAK, SegmentType.REGULAR]
    assert day_status(entries) == DayStatus.COMPLETE
