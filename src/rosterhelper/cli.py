"""Command-line interface for the rosterhelper staffing engine."""

import argparse
import logging
import sys
from datetime import date, time, timedelta
from typing import Optional

from rosterhelper.data.repository import InMemoryRepository
from rosterhelper.data.snapshot import SnapshotError, dump_intents, load_snapshot
from rosterhelper.domain.calendar import previous_week, start_of_week, week_dates
from rosterhelper.domain.models import (
    DayHours,
    DayTypeTier,
    Employee,
    LeaveInterval,
    OperatingHours,
    ServiceArea,
    ShiftAssignment,
    ShiftTemplate,
    StaffingRequirement,
)
from rosterhelper.domain.staffing import StaffingConfigError
from rosterhelper.output.report import ReportGenerator
from rosterhelper.scheduling.auto_assign import AutoFillResult
from rosterhelper.scheduling.cpsat_assigner import SolverType
from rosterhelper.scheduling.session import SchedulingSession, SessionConfig

SAMPLE_BUSINESS_UNIT = "bu1"


def create_sample_repository(week_start: date) -> InMemoryRepository:
    """Create a sample rooftop bar with one week of history.

    The previous week is partly staffed so that carry-over, gap analysis
    and auto-fill all have something to do in `week_start`'s week.
    """
    bu = SAMPLE_BUSINESS_UNIT

    templates = [
        ShiftTemplate("st1", "Morning", time(9, 0), time(18, 0), break_minutes=60, business_unit_id=bu),
        ShiftTemplate("st2", "Mid", time(13, 0), time(22, 0), break_minutes=60, business_unit_id=bu),
        ShiftTemplate("st3", "Closing", time(17, 0), time(2, 0), break_minutes=30, business_unit_id=bu),
        ShiftTemplate("st5", "Opening", time(10, 0), time(19, 0), break_minutes=60, business_unit_id=bu),
        ShiftTemplate(
            "st4", "Flexible",
            business_unit_id=bu,
            is_flexible=True,
            min_hours_per_day=8,
            min_days_per_week=5,
        ),
    ]

    areas = [
        ServiceArea("area1", bu, "Reception", capacity=2),
        ServiceArea("area2", bu, "Bar", capacity=3),
        ServiceArea("area3", bu, "Floor", capacity=5),
    ]

    closing = {"start_time": time(17, 0), "end_time": time(2, 0)}
    requirements = [
        StaffingRequirement("r1", "area1", "Host", DayTypeTier.OFF_PEAK, 1),
        StaffingRequirement("r2", "area1", "Host", DayTypeTier.PEAK, 1),
        StaffingRequirement("r3", "area1", "Host", DayTypeTier.SUPER_PEAK, 2),
        StaffingRequirement("r4", "area2", "Bartender", DayTypeTier.OFF_PEAK, 1, **closing),
        StaffingRequirement("r5", "area2", "Bartender", DayTypeTier.PEAK, 2, **closing),
        StaffingRequirement("r6", "area2", "Bartender", DayTypeTier.SUPER_PEAK, 3, max_count=3, **closing),
        StaffingRequirement("r7", "area3", "Server", DayTypeTier.OFF_PEAK, 2),
        StaffingRequirement("r8", "area3", "Server", DayTypeTier.PEAK, 3),
        StaffingRequirement("r9", "area3", "Server", DayTypeTier.SUPER_PEAK, 4),
    ]

    people = [
        ("e1", "Alice", "Host"),
        ("e2", "Bob", "Host"),
        ("e3", "Carol", "Bartender"),
        ("e4", "David", "Bartender"),
        ("e5", "Eve", "Bartender"),
        ("e6", "Frank", "Server"),
        ("e7", "Grace", "Server"),
        ("e8", "Henry", "Server"),
        ("e9", "Ivy", "Server"),
        ("e10", "Jack", "Manager"),
    ]
    employees = [
        Employee(emp_id, name, position, department="Operations", business_unit_id=bu)
        for emp_id, name, position in people
    ]

    hours = OperatingHours(
        business_unit_id=bu,
        hours={
            "Mon": DayHours(time(10, 0), time(22, 0)),
            "Tue": DayHours(time(10, 0), time(22, 0)),
            "Wed": DayHours(time(10, 0), time(22, 0)),
            "Thu": DayHours(time(10, 0), time(0, 0)),
            "Fri": DayHours(time(10, 0), time(2, 0)),
            "Sat": DayHours(time(10, 0), time(2, 0)),
            "Sun": DayHours(time(10, 0), time(22, 0)),
        },
    )

    # Last week: one host opening, one bartender closing, two servers
    history = []
    for i, day in enumerate(week_dates(previous_week(week_start))):
        for emp_id, template_id, area_id in (
            ("e1", "st5", "area1"),
            ("e3", "st3", "area2"),
            ("e6", "st5", "area3"),
            ("e7", "st2", "area3"),
        ):
            history.append(
                ShiftAssignment(
                    id=f"a{i}-{emp_id}",
                    employee_id=emp_id,
                    shift_template_id=template_id,
                    schedule_date=day,
                    business_unit_id=bu,
                    assigned_area_id=area_id,
                )
            )

    leaves = [
        LeaveInterval("e4", week_start + timedelta(days=4), week_start + timedelta(days=6), id="lv1"),
    ]

    return InMemoryRepository(
        employees=employees,
        templates=templates,
        areas=areas,
        requirements=requirements,
        assignments=history,
        leaves=leaves,
        operating_hours=[hours],
    )


def print_fill_result(result: AutoFillResult) -> None:
    print(f"\n  {result.reason}")
    if result.solver_status:
        print(f"  Solver status: {result.solver_status}")
    if result.fallback_count:
        print(f"  {result.fallback_count} placement(s) used a fallback template")


def print_validation(session: SchedulingSession) -> None:
    result = session.validate_schedule()
    if result.is_valid:
        print("\n  Validation: PASSED")
    else:
        print(f"\n  Validation: FAILED ({len(result.errors)} errors)")
        for error in result.errors[:5]:
            print(f"    - {error}")
        if len(result.errors) > 5:
            print(f"    ... and {len(result.errors) - 5} more errors")


def run_demo(
    week_start: date,
    solver: str = "heuristic",
    output_path: Optional[str] = None,
) -> None:
    """Run the full weekly workflow on sample data."""
    week_start = start_of_week(week_start)
    print(f"Running demo for week of {week_start.isoformat()}...")

    repository = create_sample_repository(week_start)
    config = SessionConfig(solver_type=SolverType(solver))
    session = SchedulingSession.from_repository(
        repository, SAMPLE_BUSINESS_UNIT, previous_week(week_start), config
    )

    carry_over = session.navigate(week_start)
    print(f"\n  Carry-over: {carry_over.suggested_count} suggested shifts")
    published = session.publish()
    print(f"  Published {published.committed_count} suggestions")

    before = session.analyze_gaps()
    print(f"\n  Gaps before auto-fill: {len(before.gaps)} ({before.total_missing} missing)")

    result = session.auto_fill()
    print_fill_result(result)

    after = session.analyze_gaps()
    print(f"  Gaps after auto-fill: {len(after.gaps)} ({after.total_missing} missing)")
    print(f"  Status: {session.status().value}")

    print_validation(session)

    stats = session.week_stats()
    print(f"\n  Assignments: {stats['assignments']}, paid hours: {stats['paid_hours']:.1f}")

    report = ReportGenerator()
    if output_path:
        report.generate(session, output_path, result)
        print(f"\n  Report written to {output_path}")
    else:
        print()
        print(report.generate_to_string(session, result))


def _open_session(args) -> SchedulingSession:
    repository = load_snapshot(args.snapshot)
    config = SessionConfig(
        solver_type=SolverType(getattr(args, "solver", "heuristic")),
        auto_suggest_carry_over=False,
    )
    return SchedulingSession.from_repository(
        repository, args.business_unit, date.fromisoformat(args.week), config
    )


def _write_intents(session: SchedulingSession, path: Optional[str]) -> None:
    intents = session.drain_intents()
    if path:
        dump_intents(intents, path)
        print(f"  {len(intents)} change(s) written to {path}")
    else:
        print(f"  {len(intents)} change(s) pending")


def run_analyze(args) -> None:
    session = _open_session(args)
    report = ReportGenerator()
    if args.output:
        report.generate(session, args.output)
        print(f"Report written to {args.output}")
    else:
        print(report.generate_to_string(session))


def run_autofill(args) -> None:
    session = _open_session(args)
    result = session.auto_fill(department=args.department)
    print(f"Auto-fill for {session.business_unit_id}, week of {session.week_start.isoformat()}")
    print_fill_result(result)
    for p in result.placements:
        print(f"    {p.schedule_date.isoformat()} {p.employee_id:<8} {p.gap.role:<15} {p.template_id}")
    print_validation(session)
    _write_intents(session, args.intents_out)


def run_carry_over(args) -> None:
    session = _open_session(args)
    result = session.suggest_carry_over()
    print(f"Carry-over for {session.business_unit_id}, week of {session.week_start.isoformat()}")
    if not result.suggestions:
        print(f"  {result.reason}")
        return
    print(f"  {result.suggested_count} suggested shifts")
    if args.publish:
        published = session.publish()
        print(f"  Published {published.committed_count} shifts")
        _write_intents(session, args.intents_out)


def _add_snapshot_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("snapshot", help="Path to a JSON snapshot file")
    parser.add_argument(
        "--business-unit", "-b",
        required=True,
        help="Business unit ID",
    )
    parser.add_argument(
        "--week", "-w",
        default=date.today().isoformat(),
        help="Any date in the target week, YYYY-MM-DD (default: today)",
    )


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        description="rosterhelper - Staffing gap analysis and auto-scheduling",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s demo                                  Run the weekly workflow on sample data
  %(prog)s demo --solver cpsat                   Auto-fill with the CP-SAT assigner
  %(prog)s demo --output week.txt                Write the week report to a file

  %(prog)s analyze snap.json -b bu1 -w 2024-01-15          Print the week report
  %(prog)s autofill snap.json -b bu1 --intents-out out.json  Fill gaps, save changes
  %(prog)s carry-over snap.json -b bu1 --publish            Copy last week and publish
        """,
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    demo_parser = subparsers.add_parser("demo", help="Run the weekly workflow on sample data")
    demo_parser.add_argument(
        "--week", "-w",
        default=date.today().isoformat(),
        help="Any date in the week to schedule (default: today)",
    )
    demo_parser.add_argument(
        "--solver", "-s",
        default="heuristic",
        choices=["heuristic", "cpsat", "hybrid"],
        help="Assigner: heuristic (default), cpsat (maximal), hybrid",
    )
    demo_parser.add_argument(
        "--output", "-o",
        type=str,
        help="Output report file path",
    )

    analyze_parser = subparsers.add_parser("analyze", help="Report gaps and coverage for a week")
    _add_snapshot_arguments(analyze_parser)
    analyze_parser.add_argument("--output", "-o", help="Output report file path")

    autofill_parser = subparsers.add_parser("autofill", help="Fill staffing gaps for a week")
    _add_snapshot_arguments(autofill_parser)
    autofill_parser.add_argument("--department", "-d", help="Only use employees of this department")
    autofill_parser.add_argument(
        "--solver", "-s",
        default="heuristic",
        choices=["heuristic", "cpsat", "hybrid"],
        help="Assigner: heuristic (default), cpsat (maximal), hybrid",
    )
    autofill_parser.add_argument("--intents-out", help="Write resulting changes as JSON")

    carry_parser = subparsers.add_parser(
        "carry-over",
        help="Suggest last week's shifts for an empty week",
    )
    _add_snapshot_arguments(carry_parser)
    carry_parser.add_argument(
        "--publish",
        action="store_true",
        help="Commit the suggestions",
    )
    carry_parser.add_argument("--intents-out", help="Write resulting changes as JSON")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.command == "demo":
            run_demo(date.fromisoformat(args.week), args.solver, args.output)
        elif args.command == "analyze":
            run_analyze(args)
        elif args.command == "autofill":
            run_autofill(args)
        elif args.command == "carry-over":
            run_carry_over(args)
        else:
            parser.print_help()
            return 1
    except (SnapshotError, StaffingConfigError, OSError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
