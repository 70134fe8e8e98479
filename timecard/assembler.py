from __future__ import annotations
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from .cost_codes import resolve_cost_code
from .logging import get_logger
from .models import Allocation, HoursType, OutputRow, OvertimePolicy, Person, TaskTypeCodeMap, TimeEntry
from .overtime import DailyOvertimeAllocator, DayAllocation, WorkUnit, group_by_person_day
from .schedules import ScheduleResolver

logger = get_logger(__name__)

HOURS_TYPE_ORDER = {HoursType.REGULAR: 0, HoursType.OVERTIME: 1}


def row_sort_key(row: OutputRow):
    return (row.last_name.casefold(), row.first_name.casefold(), row.person_id, HOURS_TYPE_ORDER[row.hours_type])


def index_allocations(allocations: Iterable[Allocation]) -> Dict[str, List[Allocation]]:
    indexed: Dict[str, List[Allocation]] = defaultdict(list)
    for allocation in allocations:
        indexed[allocation.time_entry_id].append(allocation)
    return dict(indexed)


class RowAssembler:
    """Builds payroll timecard rows from entries, allocations and the day's overtime split."""

    def __init__(
        self,
        resolver: ScheduleResolver,
        policy: Optional[OvertimePolicy] = None,
        code_map: Optional[TaskTypeCodeMap] = None,
        people: Optional[Mapping[str, Person]] = None,
        projects: Optional[Mapping[str, str]] = None,
        include_breaks: bool = True,
        max_workers: Optional[int] = None,
    ) -> None:
        self.allocator = DailyOvertimeAllocator(resolver, policy)
        self.code_map = code_map
        self.people = people or {}
        self.projects = projects or {}
        self.include_breaks = include_breaks
        self.max_workers = max_workers

    def units_for(self, entry: TimeEntry, allocations: Sequence[Allocation], now: Optional[datetime] = None) -> List[WorkUnit]:
        entry_minutes = entry.minutes(now)
        fallback_code = entry.task_code or ""
        if not allocations:
            return [WorkUnit(entry=entry, minutes=entry_minutes, cost_code=fallback_code)]

        units = []
        for allocation in allocations:
            category_hours = allocation.hours.total()
            units.append(
                WorkUnit(
                    entry=entry,
                    minutes=category_hours * 60 if category_hours > 0 else entry_minutes,
                    allocation=allocation,
                    categories=allocation.hours,
                    cost_code=resolve_cost_code(allocation.hours, self.code_map) or fallback_code,
                )
            )
        return units

    def _project_name(self, unit: WorkUnit) -> str:
        project_id = unit.allocation.project_id if unit.allocation and unit.allocation.project_id else unit.entry.project_id
        if project_id is None:
            return ""
        return self.projects.get(project_id, "")

    def _rows_for_day(self, person: Person, day: DayAllocation) -> List[OutputRow]:
        rows = []
        for line in day.lines:
            unit = line.unit
            rows.append(
                OutputRow(
                    person_id=person.id,
                    employee_number=person.employee_number,
                    first_name=person.first_name,
                    last_name=person.last_name,
                    work_date=day.work_date,
                    project_name=self._project_name(unit),
                    cost_code=unit.cost_code,
                    categories=unit.categories.scaled(line.share),
                    hours_type=line.hours_type,
                    hours=line.hours,
                    injury=unit.entry.injury_reported,
                    time_entry_id=unit.entry.id,
                )
            )
        return rows

    def allocate_person(
        self,
        person_id: str,
        entries: Sequence[TimeEntry],
        allocations: Mapping[str, Sequence[Allocation]],
        now: Optional[datetime] = None,
    ) -> List[DayAllocation]:
        person = self.people.get(person_id) or Person(id=person_id)
        days = []
        for (_, work_date), day_entries in sorted(group_by_person_day(entries).items(), key=lambda item: item[0][1]):
            units = [unit for entry in day_entries for unit in self.units_for(entry, allocations.get(entry.id, ()), now)]
            days.append(self.allocator.allocate_day(person_id, person.department_id, work_date, day_entries, units, now))
        return days

    def _person_rows(self, person_id: str, entries: Sequence[TimeEntry], allocations: Mapping[str, Sequence[Allocation]], now: Optional[datetime]) -> List[OutputRow]:
        person = self.people.get(person_id) or Person(id=person_id)
        rows: List[OutputRow] = []
        for day in self.allocate_person(person_id, entries, allocations, now):
            rows.extend(self._rows_for_day(person, day))
        return rows

    def build_rows(
        self,
        entries: Iterable[TimeEntry],
        allocations: Iterable[Allocation] = (),
        now: Optional[datetime] = None,
    ) -> List[OutputRow]:
        by_entry = index_allocations(allocations)
        by_person: Dict[str, List[TimeEntry]] = defaultdict(list)
        for entry in sorted(entries, key=lambda e: (e.start, e.id)):
            if entry.is_break and not self.include_breaks:
                continue
            by_person[entry.person_id].append(entry)

        person_ids = list(by_person)
        if self.max_workers and len(person_ids) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                per_person = list(pool.map(lambda pid: self._person_rows(pid, by_person[pid], by_entry, now), person_ids))
        else:
            per_person = [self._person_rows(pid, by_person[pid], by_entry, now) for pid in person_ids]

        rows = sorted((row for person_rows in per_person for row in person_rows), key=row_sort_key)
        logger.debug("rows_assembled", people=len(person_ids), rows=len(rows))
        return rows
