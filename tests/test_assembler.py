from datetime import datetime

import pytest

from timecard.assembler import RowAssembler
from timecard.cost_codes import build_code_map
from timecard.models import Allocation, CategoryHours, HoursType, OvertimePolicy, Person, ScheduleDay, TimeEntry
from timecard.schedules import ScheduleResolver

PEOPLE = {
    "p1": Person(id="p1", first_name="Ada", last_name="Lovelace", employee_number="E-1", department_id="shop"),
    "p2": Person(id="p2", first_name="Zed", last_name="Adams", employee_number="E-2"),
    "p3": Person(id="p3", first_name="Bob", last_name="Adams", employee_number="E-3"),
}
PROJECTS = {"proj1": "Bridge", "proj2": "Tower"}
CODE_MAP = build_code_map([("Material Handling", "MH"), ("Fabrication / Fit-up / Weld", "FW"), ("Finishes", "FN")])
SHOP_SCHEDULE = [ScheduleDay(day_of_week=1, start_time="08:00", end_time="17:00", department_id="shop")]


def at(hhmm: str, day: int = 4) -> datetime:
    hours, minutes = hhmm.split(":")
    return datetime(2024, 3, day, int(hours), int(minutes))


def build_assembler(enabled: bool = True, schedule=SHOP_SCHEDULE, **kwargs) -> RowAssembler:
    policy = OvertimePolicy(enabled=enabled)
    return RowAssembler(
        ScheduleResolver(schedule, policy),
        policy=policy,
        code_map=CODE_MAP,
        people=PEOPLE,
        projects=PROJECTS,
        **kwargs,
    )


def test_legacy_entry_splits_into_regular_and_overtime_rows():
    work = TimeEntry(id="e1", person_id="p1", start=at("07:00"), end=at("19:30"), project_id="proj1", task_code="T-100")

    rows = build_assembler().build_rows([work])

    assert [row.hours_type for row in rows] == [HoursType.REGULAR, HoursType.OVERTIME]
    assert rows[0].hours == pytest.approx(9.0)
    assert rows[1].hours == pytest.approx(3.5)
    assert {row.cost_code for row in rows} == {"T-100"}
    assert {row.project_name for row in rows} == {"Bridge"}
    assert rows[0].categories == CategoryHours()
    assert rows[0].employee_number == "E-1"
    assert rows[0].work_date.isoformat() == "2024-03-04"


def test_allocations_produce_rows_per_category_split():
    work = TimeEntry(id="e1", person_id="p1", start=at("08:00"), end=at("18:00"), project_id="proj1", task_code="T-100")
    allocations = [
        Allocation(time_entry_id="e1", project_id="proj2", hours=CategoryHours(material_handling=6)),
        Allocation(time_entry_id="e1", hours=CategoryHours(fabrication_fitup_weld=4)),
    ]

    rows = build_assembler().build_rows([work], allocations)

    summary = [(row.hours_type, row.cost_code, row.project_name, round(row.hours, 6)) for row in rows]
    assert summary == [
        (HoursType.REGULAR, "MH", "Tower", 5.4),
        (HoursType.REGULAR, "FW", "Bridge", 3.6),
        (HoursType.OVERTIME, "MH", "Tower", 0.6),
        (HoursType.OVERTIME, "FW", "Bridge", 0.4),
    ]
    assert rows[0].categories.material_handling == pytest.approx(5.4)
    assert rows[2].categories.material_handling == pytest.approx(0.6)
    assert sum(row.hours for row in rows) == pytest.approx(10.0)


def test_empty_allocation_falls_back_to_entry_minutes_and_code():
    work = TimeEntry(id="e1", person_id="p1", start=at("08:00"), end=at("12:00"), task_code="T-9")
    allocations = [Allocation(time_entry_id="e1", project_id="proj2")]

    rows = build_assembler().build_rows([work], allocations)

    assert len(rows) == 1
    assert rows[0].hours == pytest.approx(4.0)
    assert rows[0].cost_code == "T-9"
    assert rows[0].project_name == "Tower"


def test_unmapped_category_uses_entry_code():
    work = TimeEntry(id="e1", person_id="p1", start=at("08:00"), end=at("10:00"), task_code="T-9")
    allocations = [Allocation(time_entry_id="e1", hours=CategoryHours(other=2))]

    rows = build_assembler().build_rows([work], allocations)

    assert rows[0].cost_code == "T-9"
    assert rows[0].categories.other == pytest.approx(2)


def test_rows_sorted_by_last_then_first_name_then_hours_type():
    entries = [
        TimeEntry(id="e1", person_id="p1", start=at("07:00"), end=at("19:00")),
        TimeEntry(id="e2", person_id="p2", start=at("08:00"), end=at("12:00")),
        TimeEntry(id="e3", person_id="p3", start=at("08:00"), end=at("12:00")),
    ]

    rows = build_assembler(schedule=[]).build_rows(entries)

    assert [(row.last_name, row.first_name, row.hours_type) for row in rows] == [
        ("Adams", "Bob", HoursType.REGULAR),
        ("Adams", "Zed", HoursType.REGULAR),
        ("Lovelace", "Ada", HoursType.REGULAR),
        ("Lovelace", "Ada", HoursType.OVERTIME),
    ]


def test_regular_rows_precede_overtime_across_days():
    entries = [
        TimeEntry(id="e1", person_id="p1", start=at("07:00", 4), end=at("19:00", 4)),
        TimeEntry(id="e2", person_id="p1", start=at("07:00", 5), end=at("19:00", 5)),
    ]

    rows = build_assembler(schedule=[]).build_rows(entries)

    assert [(row.hours_type, row.work_date.day) for row in rows] == [
        (HoursType.REGULAR, 4),
        (HoursType.REGULAR, 5),
        (HoursType.OVERTIME, 4),
        (HoursType.OVERTIME, 5),
    ]


def test_policy_disabled_emits_one_regular_row_per_entry():
    entries = [
        TimeEntry(id="e1", person_id="p1", start=at("06:00"), end=at("12:00")),
        TimeEntry(id="e2", person_id="p1", start=at("12:30"), end=at("20:00")),
    ]

    rows = build_assembler(enabled=False).build_rows(entries)

    assert [row.hours_type for row in rows] == [HoursType.REGULAR, HoursType.REGULAR]
    assert [row.hours for row in rows] == [pytest.approx(6.0), pytest.approx(7.5)]


def test_breaks_can_be_excluded():
    entries = [
        TimeEntry(id="e1", person_id="p1", start=at("08:00"), end=at("12:00")),
        TimeEntry(id="b1", person_id="p1", start=at("12:00"), end=at("12:30"), is_break=True),
    ]

    assert len(build_assembler().build_rows(entries)) == 2
    assert [row.time_entry_id for row in build_assembler(include_breaks=False).build_rows(entries)] == ["e1"]


def test_concurrent_assembly_matches_sequential():
    entries = [
        TimeEntry(id=f"e{i}", person_id=person_id, start=at("07:00"), end=at("18:30"))
        for i, person_id in enumerate(["p1", "p2", "p3", "p1"])
    ]

    sequential = build_assembler().build_rows(entries)
    concurrent = build_assembler(max_workers=3).build_rows(entries)

    assert concurrent == sequential


def test_unknown_person_and_project_degrade_to_blanks():
    work = TimeEntry(id="e1", person_id="ghost", start=at("08:00"), end=at("12:00"), project_id="missing", injury_reported=True)

    rows = build_assembler().build_rows([work])

    assert rows[0].first_name == "" and rows[0].last_name == ""
    assert rows[0].project_name == ""
    assert rows[0].cost_code == ""
    assert rows[0].injury is True


def test_daily_totals_are_conserved_across_rows():
    entries = [
        TimeEntry(id="e1", person_id="p1", start=at("06:45"), end=at("11:58")),
        TimeEntry(id="e2", person_id="p1", start=at("12:31"), end=at("19:07")),
    ]
    allocations = [
        Allocation(time_entry_id="e2", hours=CategoryHours(finishes=3.6)),
        Allocation(time_entry_id="e2", hours=CategoryHours(material_handling=3.0)),
    ]

    rows = build_assembler().build_rows(entries, allocations)

    total_minutes = sum(e.minutes() for e in entries)
    assert sum(row.hours for row in rows) == pytest.approx(total_minutes / 60, abs=1e-6)


def test_namesakes_keep_their_rows_together():
    people = {
        "s2": Person(id="s2", first_name="Sam", last_name="Lee"),
        "s1": Person(id="s1", first_name="Sam", last_name="Lee"),
    }
    policy = OvertimePolicy(enabled=True)
    assembler = RowAssembler(ScheduleResolver([], policy), policy=policy, people=people)
    entries = [
        TimeEntry(id="e1", person_id="s2", start=at("07:00"), end=at("18:00")),
        TimeEntry(id="e2", person_id="s1", start=at("07:00"), end=at("18:00")),
    ]

    rows = assembler.build_rows(entries)

    assert [(row.person_id, row.hours_type) for row in rows] == [
        ("s1", HoursType.REGULAR),
        ("s1", HoursType.OVERTIME),
        ("s2", HoursType.REGULAR),
        ("s2", HoursType.OVERTIME),
    ]
