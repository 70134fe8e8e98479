from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List

from pydantic import BaseModel, Field, field_validator, model_validator

from .cost_codes import build_code_map
from .models import (
    Allocation,
    CategoryHours,
    OvertimePolicy,
    Person,
    ScheduleDay,
    TaskTypeCodeMap,
    TimeEntry,
)


class PersonIn(BaseModel):
    id: str
    first_name: str | None = ""
    last_name: str | None = ""
    employee_number: str | None = None
    department_id: str | None = None

    def to_model(self) -> Person:
        return Person(
            id=self.id,
            first_name=self.first_name or "",
            last_name=self.last_name or "",
            employee_number=self.employee_number,
            department_id=self.department_id,
        )


class ProjectIn(BaseModel):
    id: str
    name: str


class TimeEntryIn(BaseModel):
    id: str
    person_id: str
    start_time: datetime
    end_time: datetime | None = None
    is_break: bool = False
    project_id: str | None = None
    duration_minutes: int | None = None
    task_code: str | None = None
    injury_reported: bool = False
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def end_after_start(self) -> "TimeEntryIn":
        if self.end_time is not None and self.end_time < self.start_time:
            raise ValueError(f"Time entry {self.id} ends before it starts")
        return self

    def to_model(self) -> TimeEntry:
        return TimeEntry(
            id=self.id,
            person_id=self.person_id,
            start=self.start_time,
            end=self.end_time,
            is_break=self.is_break,
            project_id=self.project_id,
            duration_minutes=self.duration_minutes,
            task_code=self.task_code,
            injury_reported=self.injury_reported,
            metadata=dict(self.metadata),
        )


class ScheduleDayIn(BaseModel):
    day_of_week: int = Field(ge=0, le=6)
    start_time: str | None = None
    end_time: str | None = None
    is_day_off: bool | None = False
    person_id: str | None = None
    department_id: str | None = None

    def to_model(self) -> ScheduleDay:
        return ScheduleDay(
            day_of_week=self.day_of_week,
            start_time=self.start_time,
            end_time=self.end_time,
            is_day_off=bool(self.is_day_off),
            person_id=self.person_id,
            department_id=self.department_id,
        )


class OvertimePolicyIn(BaseModel):
    enabled: bool = False
    daily_threshold_hours: float | None = 8.0
    company_id: str | None = None

    def to_model(self) -> OvertimePolicy:
        threshold = 8.0 if self.daily_threshold_hours is None else self.daily_threshold_hours
        return OvertimePolicy(enabled=self.enabled, daily_threshold_hours=threshold, company_id=self.company_id)


class AllocationIn(BaseModel):
    id: str | None = None
    time_entry_id: str
    project_id: str | None = None
    material_handling: float | None = 0.0
    processing_cutting: float | None = 0.0
    fabrication_fitup_weld: float | None = 0.0
    finishes: float | None = 0.0
    other: float | None = 0.0

    @field_validator("material_handling", "processing_cutting", "fabrication_fitup_weld", "finishes", "other")
    @classmethod
    def none_as_zero(cls, value: float | None) -> float:
        return value or 0.0

    def to_model(self) -> Allocation:
        return Allocation(
            id=self.id,
            time_entry_id=self.time_entry_id,
            project_id=self.project_id,
            hours=CategoryHours(
                material_handling=self.material_handling,
                processing_cutting=self.processing_cutting,
                fabrication_fitup_weld=self.fabrication_fitup_weld,
                finishes=self.finishes,
                other=self.other,
            ),
        )


class TaskTypeIn(BaseModel):
    name: str
    code: str | None = None


class WorkspaceIn(BaseModel):
    company_id: str | None = None
    people: List[PersonIn] = Field(default_factory=list)
    projects: List[ProjectIn] = Field(default_factory=list)
    time_entries: List[TimeEntryIn] = Field(default_factory=list)
    schedules: List[ScheduleDayIn] = Field(default_factory=list)
    overtime_policy: OvertimePolicyIn = Field(default_factory=OvertimePolicyIn)
    allocations: List[AllocationIn] = Field(default_factory=list)
    task_types: List[TaskTypeIn] = Field(default_factory=list)


@dataclass(frozen=True)
class EngineInputs:
    people: Dict[str, Person] = field(default_factory=dict)
    projects: Dict[str, str] = field(default_factory=dict)
    entries: List[TimeEntry] = field(default_factory=list)
    schedules: List[ScheduleDay] = field(default_factory=list)
    policy: OvertimePolicy = field(default_factory=OvertimePolicy)
    allocations: List[Allocation] = field(default_factory=list)
    code_map: TaskTypeCodeMap = field(default_factory=TaskTypeCodeMap)

    def entries_for(self, person_id: str) -> List[TimeEntry]:
        return sorted((e for e in self.entries if e.person_id == person_id), key=lambda e: e.start)


def parse_workspace(data: Dict[str, Any]) -> EngineInputs:
    workspace = WorkspaceIn.model_validate(data)
    return EngineInputs(
        people={person.id: person.to_model() for person in workspace.people},
        projects={project.id: project.name for project in workspace.projects},
        entries=[entry.to_model() for entry in workspace.time_entries],
        schedules=[day.to_model() for day in workspace.schedules],
        policy=workspace.overtime_policy.to_model(),
        allocations=[allocation.to_model() for allocation in workspace.allocations],
        code_map=build_code_map(
            ((task_type.name, task_type.code or "") for task_type in workspace.task_types),
            company_id=workspace.company_id,
        ),
    )


def load_workspace(path: Path) -> EngineInputs:
    if not path.exists():
        raise FileNotFoundError(f"Workspace data not found at {path}")
    with path.open("r", encoding="utf-8") as handle:
        return parse_workspace(json.load(handle))
