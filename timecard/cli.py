from __future__ import annotations
import argparse
from datetime import date, datetime
from pathlib import Path

from .assembler import RowAssembler
from .config import get_settings
from .daily import find_overlong_open_shifts, group_daily_entries, summarize_days
from .exporter import daily_records, export_rows, rows_to_records, to_json
from .filters import filter_entries
from .geometry import day_of_week, now_like
from .loader import EngineInputs, load_workspace
from .logging import configure_logging, get_logger
from .models import Person
from .schedules import ScheduleResolver
from .segments import SegmentClassifier

DEFAULT_DATA_PATH = Path("data/workspace.json")

logger = get_logger(__name__)


def inputs_from_args(args: argparse.Namespace) -> EngineInputs:
    return load_workspace(Path(args.data) if args.data else DEFAULT_DATA_PATH)


def parse_date(value: str | None) -> date | None:
    if not value:
        return None
    return date.fromisoformat(value)


def parse_now(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value)


def cmd_rows(args: argparse.Namespace) -> None:
    inputs = inputs_from_args(args)
    entries = filter_entries(
        inputs.entries,
        start_date=parse_date(args.start_date),
        end_date=parse_date(args.end_date),
        person_ids=args.employee,
        departments=args.department,
        people=inputs.people,
    )
    assembler = RowAssembler(
        ScheduleResolver(inputs.schedules, inputs.policy),
        policy=inputs.policy,
        code_map=inputs.code_map,
        people=inputs.people,
        projects=inputs.projects,
        include_breaks=not args.exclude_breaks,
        max_workers=args.workers,
    )
    rows = assembler.build_rows(entries, inputs.allocations, now=parse_now(args.now))
    if args.output:
        output_path = export_rows(rows, Path(args.output))
        print(f"Exported {len(rows)} rows to {output_path}")
    else:
        print(to_json(rows_to_records(rows)))
    logger.info("command_complete", command="rows", rows=len(rows))


def _classifier_for(args: argparse.Namespace, inputs: EngineInputs, work_date: date) -> SegmentClassifier:
    settings = get_settings()
    start, end = args.scheduled_start, args.scheduled_end
    if args.use_schedule and not (start and end):
        person = inputs.people.get(args.employee)
        resolver = ScheduleResolver(inputs.schedules, inputs.policy)
        window = resolver.scheduled_window(args.employee, person.department_id if person else None, day_of_week(work_date))
        if window:
            start, end = start or window[0], end or window[1]
    return SegmentClassifier(
        start or settings.default_scheduled_start,
        end or settings.default_scheduled_end,
        window_start=settings.timeline_start_hour,
        window_end=settings.timeline_end_hour,
        late_grace_minutes=settings.late_grace_minutes,
        min_width=settings.min_segment_width,
    )


def cmd_timeline(args: argparse.Namespace) -> None:
    inputs = inputs_from_args(args)
    work_date = parse_date(args.date)
    entries = filter_entries(inputs.entries_for(args.employee), start_date=work_date, end_date=work_date)
    timeline = _classifier_for(args, inputs, work_date).timeline(entries, now=parse_now(args.now))
    print(to_json(timeline))
    logger.info("command_complete", command="timeline", segments=len(timeline.segments), status=timeline.status.value)


def cmd_daily(args: argparse.Namespace) -> None:
    inputs = inputs_from_args(args)
    settings = get_settings()
    entries = filter_entries(
        inputs.entries_for(args.employee),
        start_date=parse_date(args.start_date),
        end_date=parse_date(args.end_date),
    )
    days = group_daily_entries(
        entries,
        scheduled_start=args.scheduled_start,
        now=parse_now(args.now),
        late_grace_minutes=settings.late_grace_minutes,
    )
    person = inputs.people.get(args.employee) or Person(id=args.employee)
    print(to_json({"employee": person.display_name, "days": daily_records(days), "stats": summarize_days(days)}))
    logger.info("command_complete", command="daily", days=len(days))


def cmd_open_shifts(args: argparse.Namespace) -> None:
    inputs = inputs_from_args(args)
    settings = get_settings()
    now = parse_now(args.now)
    if now is None:
        now = now_like(inputs.entries[0].start) if inputs.entries else datetime.now()
    max_hours = args.max_hours or settings.max_shift_hours
    closures = find_overlong_open_shifts(inputs.entries, now, max_shift_hours=max_hours)
    print(to_json(closures))
    logger.info("command_complete", command="open-shifts", closures=len(closures))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Timecard allocation engine")
    parser.add_argument("--data", help="Workspace JSON file (default data/workspace.json)")
    parser.add_argument("--now", help="ISO timestamp used for open entries")
    sub = parser.add_subparsers(dest="command", required=True)

    rows = sub.add_parser("rows", help="Regular/overtime timecard rows")
    rows.add_argument("--start-date")
    rows.add_argument("--end-date")
    rows.add_argument("--employee", action="append")
    rows.add_argument("--department", action="append")
    rows.add_argument("--exclude-breaks", action="store_true")
    rows.add_argument("--workers", type=int, help="Process people concurrently")
    rows.add_argument("--output", help="Output file (csv or json)")
    rows.set_defaults(func=cmd_rows)

    timeline = sub.add_parser("timeline", help="Classified timeline segments for one person-day")
    timeline.add_argument("employee")
    timeline.add_argument("date")
    timeline.add_argument("--scheduled-start")
    timeline.add_argument("--scheduled-end")
    timeline.add_argument("--use-schedule", action="store_true", help="Take start/end from the resolved schedule")
    timeline.set_defaults(func=cmd_timeline)

    daily = sub.add_parser("daily", help="Per-day attendance summary for one person")
    daily.add_argument("employee")
    daily.add_argument("--start-date")
    daily.add_argument("--end-date")
    daily.add_argument("--scheduled-start")
    daily.set_defaults(func=cmd_daily)

    open_shifts = sub.add_parser("open-shifts", help="Open entries past the shift limit")
    open_shifts.add_argument("--max-hours", type=float)
    open_shifts.set_defaults(func=cmd_open_shifts)

    return parser


def main(argv: list[str] | None = None) -> None:
    configure_logging(get_settings().log_level)
    parser = build_parser()
    args = parser.parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    main()
