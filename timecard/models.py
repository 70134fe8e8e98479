from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from .geometry import minutes_between


class HoursType(str, Enum):
    REGULAR = "Regular"
    OVERTIME = "Overtime"


class SegmentType(str, Enum):
    REGULAR = "regular"
    LATE = "late"
    OVERTIME = "overtime"
    BREAK = "break"
    NO_ACTIVITY = "no-activity"


class DayStatus(str, Enum):
    NO_ACTIVITY = "No Activity"
    ACTIVE = "Active"
    LATE = "Late"
    COMPLETE = "Complete"


class CostCategory(str, Enum):
    # Declaration order is the tie-break order for dominant category lookups.
    MATERIAL_HANDLING = "material_handling"
    PROCESSING_CUTTING = "processing_cutting"
    FABRICATION_FITUP_WELD = "fabrication_fitup_weld"
    FINISHES = "finishes"
    OTHER = "other"


CATEGORY_ORDER: Tuple[CostCategory, ...] = tuple(CostCategory)


@dataclass(frozen=True)
class CategoryHours:
    """Hours (not minutes) booked against each cost category."""

    material_handling: float = 0.0
    processing_cutting: float = 0.0
    fabrication_fitup_weld: float = 0.0
    finishes: float = 0.0
    other: float = 0.0

    def get(self, category: CostCategory) -> float:
        return CATEGORY_GETTERS[category](self) or 0.0

    def items(self) -> List[Tuple[CostCategory, float]]:
        return [(category, self.get(category)) for category in CATEGORY_ORDER]

    def total(self) -> float:
        return sum(value for _, value in self.items())

    def scaled(self, factor: float) -> CategoryHours:
        return CategoryHours(**{category.value: value * factor for category, value in self.items()})


CATEGORY_GETTERS: Dict[CostCategory, Callable[[CategoryHours], float]] = {
    CostCategory.MATERIAL_HANDLING: lambda hours: hours.material_handling,
    CostCategory.PROCESSING_CUTTING: lambda hours: hours.processing_cutting,
    CostCategory.FABRICATION_FITUP_WELD: lambda hours: hours.fabrication_fitup_weld,
    CostCategory.FINISHES: lambda hours: hours.finishes,
    CostCategory.OTHER: lambda hours: hours.other,
}


@dataclass(frozen=True)
class Person:
    id: str
    first_name: str = ""
    last_name: str = ""
    employee_number: Optional[str] = None
    department_id: Optional[str] = None

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip() or "Unknown"


@dataclass(frozen=True)
class TimeEntry:
    id: str
    person_id: str
    start: datetime
    end: Optional[datetime] = None
    is_break: bool = False
    project_id: Optional[str] = None
    duration_minutes: Optional[int] = None
    task_code: Optional[str] = None
    injury_reported: bool = False
    # Geolocation and photo details travel with the entry but are never read by the engine.
    metadata: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def is_active(self) -> bool:
        return self.end is None

    @property
    def work_date(self) -> date:
        return self.start.date()

    def minutes(self, now: Optional[datetime] = None) -> int:
        if self.duration_minutes is not None:
            return self.duration_minutes
        return minutes_between(self.start, self.end, now)


@dataclass(frozen=True)
class ScheduleDay:
    day_of_week: int  # Sunday = 0
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    is_day_off: bool = False
    person_id: Optional[str] = None
    department_id: Optional[str] = None


@dataclass(frozen=True)
class OvertimePolicy:
    enabled: bool = False
    daily_threshold_hours: float = 8.0
    company_id: Optional[str] = None

    @property
    def threshold_minutes(self) -> float:
        return self.daily_threshold_hours * 60


@dataclass(frozen=True)
class Allocation:
    time_entry_id: str
    project_id: Optional[str] = None
    hours: CategoryHours = field(default_factory=CategoryHours)
    id: Optional[str] = None


@dataclass(frozen=True)
class TaskTypeCodeMap:
    codes: Dict[str, str] = field(default_factory=dict)
    category_codes: Dict[CostCategory, str] = field(default_factory=dict)
    company_id: Optional[str] = None

    def code_for(self, category: Optional[CostCategory]) -> str:
        if category is None:
            return ""
        return self.category_codes.get(category, "")


@dataclass(frozen=True)
class OutputRow:
    person_id: str
    employee_number: Optional[str]
    first_name: str
    last_name: str
    work_date: date
    project_name: str
    cost_code: str
    categories: CategoryHours
    hours_type: HoursType
    hours: float
    injury: bool = False
    time_entry_id: Optional[str] = None


@dataclass(frozen=True)
class Segment:
    type: SegmentType
    start_minute: int
    end_minute: int
    start_percent: float
    width_percent: float
    label: str
    entry_id: Optional[str] = None

    @property
    def start_hour(self) -> float:
        return self.start_minute / 60

    @property
    def end_hour(self) -> float:
        return self.end_minute / 60


@dataclass(frozen=True)
class ScheduledRange:
    start_time: str
    end_time: str
    start_percent: float
    width_percent: float


@dataclass
class Timeline:
    work_date: Optional[date]
    segments: List[Segment]
    scheduled_range: ScheduledRange
    status: DayStatus


@dataclass
class DailyTimeEntry:
    work_date: date
    entries: List[TimeEntry]
    clock_in: Optional[datetime]
    clock_out: Optional[datetime]
    total_minutes: int
    is_late: bool
    has_no_clock_out: bool


@dataclass
class TimeEntryStats:
    days_worked: int = 0
    late_arrivals: int = 0
    total_hours: float = 0.0
    average_hours_per_day: float = 0.0


@dataclass(frozen=True)
class ShiftClosure:
    time_entry_id: str
    person_id: str
    end: datetime
    duration_minutes: int
