from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from .geometry import parse_hhmm
from .logging import get_logger
from .models import OvertimePolicy, ScheduleDay

logger = get_logger(__name__)

EMPLOYEE = "employee"
DEPARTMENT = "department"
POLICY = "policy"


@dataclass(frozen=True)
class ResolvedSchedule:
    minutes: float
    source: str
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    is_day_off: bool = False


def _resolve_day(row: ScheduleDay, source: str) -> Optional[ResolvedSchedule]:
    """Resolve a single schedule row, or None when it does not settle the day."""
    if row.is_day_off:
        return ResolvedSchedule(minutes=0, source=source, is_day_off=True)
    start = parse_hhmm(row.start_time)
    end = parse_hhmm(row.end_time)
    if start is None or end is None:
        return None
    return ResolvedSchedule(minutes=end - start, source=source, start_time=row.start_time, end_time=row.end_time)


class ScheduleResolver:
    """Scheduled minutes per person and weekday: employee, then department, then policy."""

    def __init__(self, schedule_days: Iterable[ScheduleDay], policy: Optional[OvertimePolicy] = None) -> None:
        self.policy = policy or OvertimePolicy()
        self._employee: Dict[Tuple[str, int], ScheduleDay] = {}
        self._department: Dict[Tuple[str, int], ScheduleDay] = {}
        for row in schedule_days:
            if row.person_id is not None:
                self._employee.setdefault((row.person_id, row.day_of_week), row)
            elif row.department_id is not None:
                self._department.setdefault((row.department_id, row.day_of_week), row)

    def resolve(self, person_id: str, department_id: Optional[str], day_of_week: int) -> ResolvedSchedule:
        candidates: List[Tuple[Optional[ScheduleDay], str]] = [
            (self._employee.get((person_id, day_of_week)), EMPLOYEE),
        ]
        if department_id is not None:
            candidates.append((self._department.get((department_id, day_of_week)), DEPARTMENT))

        for row, source in candidates:
            if row is None:
                continue
            resolved = _resolve_day(row, source)
            if resolved is not None:
                logger.debug("schedule_resolved", person_id=person_id, day_of_week=day_of_week, source=source, minutes=resolved.minutes)
                return resolved

        return ResolvedSchedule(minutes=self.policy.threshold_minutes, source=POLICY)

    def scheduled_minutes(self, person_id: str, department_id: Optional[str], day_of_week: int) -> float:
        return self.resolve(person_id, department_id, day_of_week).minutes

    def scheduled_window(self, person_id: str, department_id: Optional[str], day_of_week: int) -> Optional[Tuple[str, str]]:
        resolved = self.resolve(person_id, department_id, day_of_week)
        if resolved.start_time is None or resolved.end_time is None:
            return None
        return resolved.start_time, resolved.end_time
