from .assembler import RowAssembler
from .cost_codes import build_code_map, dominant_category, normalize_task_type, resolve_cost_code
from .daily import find_overlong_open_shifts, group_daily_entries, summarize_days
from .geometry import minutes_between, position_percent
from .models import (
    Allocation,
    CategoryHours,
    CostCategory,
    DayStatus,
    HoursType,
    OutputRow,
    OvertimePolicy,
    Person,
    ScheduleDay,
    Segment,
    SegmentType,
    TaskTypeCodeMap,
    TimeEntry,
)
from .overtime import DailyOvertimeAllocator, split_unit
from .schedules import ScheduleResolver
from .segments import SegmentClassifier, build_timeline, classify_day, day_status

__all__ = [
    "Allocation",
    "CategoryHours",
    "CostCategory",
    "DailyOvertimeAllocator",
    "DayStatus",
    "HoursType",
    "OutputRow",
    "OvertimePolicy",
    "Person",
    "RowAssembler",
    "ScheduleDay",
    "ScheduleResolver",
    "Segment",
    "SegmentClassifier",
    "SegmentType",
    "TaskTypeCodeMap",
    "TimeEntry",
    "build_code_map",
    "build_timeline",
    "classify_day",
    "day_status",
    "dominant_category",
    "find_overlong_open_shifts",
    "group_daily_entries",
    "minutes_between",
    "normalize_task_type",
    "position_percent",
    "resolve_cost_code",
    "split_unit",
    "summarize_days",
]
