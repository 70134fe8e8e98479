from __future__ import annotations
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .geometry import day_of_week
from .logging import get_logger
from .models import Allocation, CategoryHours, HoursType, OvertimePolicy, TimeEntry
from .schedules import ResolvedSchedule, ScheduleResolver

logger = get_logger(__name__)


@dataclass(frozen=True)
class WorkUnit:
    """A slice of a day's work that receives its own regular/overtime rows."""

    entry: TimeEntry
    minutes: float
    allocation: Optional[Allocation] = None
    categories: CategoryHours = field(default_factory=CategoryHours)
    cost_code: str = ""


@dataclass(frozen=True)
class AllocatedHours:
    unit: WorkUnit
    hours_type: HoursType
    minutes: float

    @property
    def hours(self) -> float:
        return self.minutes / 60

    @property
    def share(self) -> float:
        # Fraction of the unit this line represents.
        if not self.unit.minutes:
            return 1.0
        return self.minutes / self.unit.minutes


@dataclass
class DayAllocation:
    person_id: str
    work_date: date
    total_minutes: float
    schedule: ResolvedSchedule
    lines: List[AllocatedHours] = field(default_factory=list)

    @property
    def regular_hours(self) -> float:
        return sum(line.hours for line in self.lines if line.hours_type == HoursType.REGULAR)

    @property
    def overtime_hours(self) -> float:
        return sum(line.hours for line in self.lines if line.hours_type == HoursType.OVERTIME)


def split_unit(unit_minutes: float, total_daily_minutes: float, scheduled_minutes: float, enabled: bool) -> List[Tuple[HoursType, float]]:
    """Apportion one unit's minutes into regular and overtime minutes.

    The unit receives the same share of the day's regular and overtime
    minutes as it contributed to the day's total.
    """
    if not enabled or scheduled_minutes <= 0 or total_daily_minutes <= scheduled_minutes:
        return [(HoursType.REGULAR, unit_minutes)]

    ratio = unit_minutes / total_daily_minutes
    regular = min(total_daily_minutes, scheduled_minutes) * ratio
    overtime = max(0.0, total_daily_minutes - scheduled_minutes) * ratio
    parts: List[Tuple[HoursType, float]] = []
    if regular > 0:
        parts.append((HoursType.REGULAR, regular))
    if overtime > 0:
        parts.append((HoursType.OVERTIME, overtime))
    return parts


def group_by_person_day(entries: Iterable[TimeEntry]) -> Dict[Tuple[str, date], List[TimeEntry]]:
    grouped: Dict[Tuple[str, date], List[TimeEntry]] = defaultdict(list)
    for entry in entries:
        grouped[(entry.person_id, entry.work_date)].append(entry)
    for day_entries in grouped.values():
        day_entries.sort(key=lambda e: (e.start, e.id))
    return dict(grouped)


class DailyOvertimeAllocator:
    def __init__(self, resolver: ScheduleResolver, policy: Optional[OvertimePolicy] = None) -> None:
        self.resolver = resolver
        self.policy = policy or resolver.policy

    @staticmethod
    def daily_minutes(entries: Iterable[TimeEntry], now: Optional[datetime] = None) -> int:
        return sum(entry.minutes(now) for entry in entries)

    def allocate_day(
        self,
        person_id: str,
        department_id: Optional[str],
        work_date: date,
        entries: Sequence[TimeEntry],
        units: Optional[Sequence[WorkUnit]] = None,
        now: Optional[datetime] = None,
    ) -> DayAllocation:
        # Overtime belongs to the whole day, so totals come from every entry, not each unit.
        total = self.daily_minutes(entries, now)
        schedule = self.resolver.resolve(person_id, department_id, day_of_week(work_date))
        if units is None:
            units = [WorkUnit(entry=entry, minutes=entry.minutes(now)) for entry in entries]

        result = DayAllocation(person_id=person_id, work_date=work_date, total_minutes=total, schedule=schedule)
        for unit in units:
            for hours_type, minutes in split_unit(unit.minutes, total, schedule.minutes, self.policy.enabled):
                result.lines.append(AllocatedHours(unit=unit, hours_type=hours_type, minutes=minutes))

        if result.overtime_hours:
            logger.debug(
                "overtime_split",
                person_id=person_id,
                work_date=work_date.isoformat(),
                total_minutes=total,
                scheduled_minutes=schedule.minutes,
                schedule_source=schedule.source,
                overtime_hours=round(result.overtime_hours, 4),
            )
        return result
