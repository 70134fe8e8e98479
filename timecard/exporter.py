from __future__ import annotations

import csv
import json
from dataclasses import asdict, is_dataclass
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List

from .geometry import format_duration
from .models import CATEGORY_ORDER, DailyTimeEntry, OutputRow

ReportRow = Dict[str, Any]

ROW_HEADERS = [
    "employee_number",
    "last_name",
    "first_name",
    "date",
    "project",
    "cost_code",
    *[category.value for category in CATEGORY_ORDER],
    "hours_type",
    "hours",
    "injury",
]


def _stringify(value: Any) -> str:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def rows_to_records(rows: Iterable[OutputRow]) -> List[ReportRow]:
    records: List[ReportRow] = []
    for row in rows:
        records.append(
            {
                "employee_number": row.employee_number or "",
                "last_name": row.last_name,
                "first_name": row.first_name,
                "date": row.work_date,
                "project": row.project_name or "No Project",
                "cost_code": row.cost_code,
                **{category.value: round(value, 2) for category, value in row.categories.items()},
                "hours_type": row.hours_type.value,
                "hours": round(row.hours, 2),
                "injury": "Yes" if row.injury else "No",
            }
        )
    return records


def export_csv(records: Iterable[ReportRow], output_path: Path, fieldnames: List[str] | None = None) -> Path:
    records = list(records)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", newline="", encoding="utf-8") as handle:
        if not records and not fieldnames:
            return output_path
        writer = csv.DictWriter(handle, fieldnames=fieldnames or list(records[0].keys()))
        writer.writeheader()
        for record in records:
            writer.writerow({key: _stringify(value) for key, value in record.items()})
    return output_path


def export_rows_csv(rows: Iterable[OutputRow], output_path: Path) -> Path:
    return export_csv(rows_to_records(rows), output_path, fieldnames=ROW_HEADERS)


def _jsonable(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return {key: _jsonable(item) for key, item in asdict(value).items()}
    if isinstance(value, dict):
        return {_stringify(key) if isinstance(key, Enum) else key: _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    if isinstance(value, (date, datetime, Enum)):
        return _stringify(value)
    return value


def to_json(value: Any) -> str:
    return json.dumps(_jsonable(value), indent=2)


def daily_records(days: Iterable[DailyTimeEntry]) -> List[ReportRow]:
    """Per-day summaries with the worked time spelled out for display."""
    return [{**_jsonable(day), "total": format_duration(day.total_minutes)} for day in days]


def export_rows(rows: Iterable[OutputRow], output_path: Path) -> Path:
    if output_path.suffix.lower() == ".csv":
        return export_rows_csv(rows, output_path)
    if output_path.suffix.lower() == ".json":
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(to_json(rows_to_records(rows)), encoding="utf-8")
        return output_path
    raise ValueError("Unsupported export format. Use .csv or .json")
