from __future__ import annotations

from datetime import date
from typing import Iterable, List, Mapping, Optional

from .models import Person, TimeEntry


def filter_entries(
    entries: Iterable[TimeEntry],
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    person_ids: Optional[List[str]] = None,
    departments: Optional[List[str]] = None,
    people: Optional[Mapping[str, Person]] = None,
) -> List[TimeEntry]:
    """Filter time entries by work date range, person and department."""

    people = people or {}

    def matches(entry: TimeEntry) -> bool:
        if start_date and entry.work_date < start_date:
            return False
        if end_date and entry.work_date > end_date:
            return False
        if person_ids and entry.person_id not in person_ids:
            return False
        if departments:
            person = people.get(entry.person_id)
            if person is None or person.department_id not in departments:
                return False
        return True

    return [entry for entry in entries if matches(entry)]
