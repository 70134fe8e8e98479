from datetime import date, datetime

import pytest

from timecard.models import CategoryHours, CostCategory, Person, TimeEntry


def test_category_hours_total_and_lookup():
    hours = CategoryHours(material_handling=1.5, finishes=2)

    assert hours.total() == 3.5
    assert hours.get(CostCategory.FINISHES) == 2
    assert [category for category, _ in hours.items()][0] == CostCategory.MATERIAL_HANDLING


def test_category_hours_scaled():
    hours = CategoryHours(material_handling=6, other=4).scaled(0.25)

    assert hours.material_handling == pytest.approx(1.5)
    assert hours.other == pytest.approx(1.0)
    assert hours.finishes == 0


def test_time_entry_minutes_prefers_stored_duration():
    entry = TimeEntry(id="e1", person_id="p1", start=datetime(2024, 3, 4, 8, 0), end=datetime(2024, 3, 4, 9, 0), duration_minutes=45)

    assert entry.minutes() == 45
    assert entry.work_date == date(2024, 3, 4)


def test_open_time_entry_measures_to_now():
    entry = TimeEntry(id="e1", person_id="p1", start=datetime(2024, 3, 4, 8, 0))

    assert entry.is_active
    assert entry.minutes(datetime(2024, 3, 4, 8, 59, 59)) == 59


def test_person_display_name():
    assert Person(id="p1", first_name="Ada", last_name="Lovelace").display_name == "Ada Lovelace"
    assert Person(id="p2").display_name == "Unknown"
