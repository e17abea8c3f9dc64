"""Text report of a scheduling week.

The report shows, for one business unit and week:
- The roster grid (employee by day, template name per cell)
- Opening/closing coverage per day
- Staffing gaps and surpluses
- Pending carry-over suggestions and the publish status
"""

from pathlib import Path
from typing import Optional, Union

from rosterhelper.domain.calendar import format_hhmm, week_dates, weekday_key
from rosterhelper.scheduling.auto_assign import AutoFillResult
from rosterhelper.scheduling.session import SchedulingSession


class ReportGenerator:
    """Generates a human-readable week report for a session."""

    def generate(
        self,
        session: SchedulingSession,
        output_path: Union[str, Path],
        fill_result: Optional[AutoFillResult] = None,
    ) -> str:
        """Generate the report and save it to a file.

        Args:
            session: Session positioned on the week to report.
            output_path: Path to save the text file.
            fill_result: Optional auto-fill result to summarize.

        Returns:
            The generated text content.
        """
        content = self._generate_content(session, fill_result)
        Path(output_path).write_text(content)
        return content

    def generate_to_string(
        self,
        session: SchedulingSession,
        fill_result: Optional[AutoFillResult] = None,
    ) -> str:
        return self._generate_content(session, fill_result)

    def _generate_content(
        self,
        session: SchedulingSession,
        fill_result: Optional[AutoFillResult],
    ) -> str:
        lines = []
        days = week_dates(session.week_start)

        # Header
        lines.append("=" * 80)
        lines.append(
            f"WEEK SCHEDULE - {session.business_unit_id} - "
            f"{days[0].isoformat()} to {days[-1].isoformat()}"
        )
        lines.append("=" * 80)
        lines.append(f"Status: {session.status().value.upper()}")
        lines.append("")

        lines.extend(self._roster_grid(session, days))
        lines.extend(self._coverage_section(session))
        lines.extend(self._gap_section(session))

        suggestions = session.suggestions()
        if suggestions:
            lines.append("-" * 80)
            lines.append(f"CARRY-OVER SUGGESTIONS ({len(suggestions)} pending)")
            lines.append("-" * 80)
            for s in suggestions:
                employee = session.employees.get(s.employee_id)
                name = employee.name if employee else s.employee_id
                lines.append(f"  {s.schedule_date.isoformat()}  {name:<20} {s.shift_template_id}")
            lines.append("")

        if fill_result is not None:
            lines.append("-" * 80)
            lines.append("AUTO-FILL")
            lines.append("-" * 80)
            lines.append(f"  {fill_result.reason}")
            if fill_result.fallback_count:
                lines.append(
                    f"  {fill_result.fallback_count} placement(s) used a fallback template"
                )
            for p in fill_result.placements:
                employee = session.employees.get(p.employee_id)
                name = employee.name if employee else p.employee_id
                marker = "" if p.exact_template_match else " (fallback)"
                lines.append(
                    f"  {p.schedule_date.isoformat()}  {name:<20} {p.gap.role:<15} "
                    f"{p.template_id}{marker}"
                )
            lines.append("")

        return "\n".join(lines)

    def _roster_grid(self, session: SchedulingSession, days) -> list[str]:
        lines = ["-" * 80, "ROSTER", "-" * 80]
        header = f"{'Employee':<20}" + "".join(f"{weekday_key(d):>8}" for d in days)
        lines.append(header)

        for area_name, employees in session.employees_by_area().items():
            lines.append(f"[{area_name}]")
            for employee in employees:
                cells = []
                for day in days:
                    assignment = session.state.assignment_for(employee.id, day)
                    if assignment is None:
                        cell = "LEAVE" if session.state.is_on_leave(employee.id, day) else "-"
                    else:
                        template = session.templates.get(assignment.shift_template_id)
                        cell = template.name[:7] if template else assignment.shift_template_id[:7]
                        if assignment.provisional:
                            cell = cell[:6] + "*"
                    cells.append(f"{cell:>8}")
                lines.append(f"{employee.name[:20]:<20}" + "".join(cells))
        lines.append("")
        return lines

    def _coverage_section(self, session: SchedulingSession) -> list[str]:
        lines = ["-" * 80, "OPENING / CLOSING COVERAGE", "-" * 80]
        for day, coverage in session.validate_coverage().items():
            hours = session.operating_hours.hours_for(day)
            if hours is None:
                lines.append(f"  {weekday_key(day)} {day.isoformat()}  closed")
                continue
            status = "OK" if coverage.is_fully_covered else " ".join(coverage.messages)
            lines.append(
                f"  {weekday_key(day)} {day.isoformat()}  "
                f"{format_hhmm(hours.open)}-{format_hhmm(hours.close)}  {status}"
            )
        lines.append("")
        return lines

    def _gap_section(self, session: SchedulingSession) -> list[str]:
        report = session.analyze_gaps()
        lines = ["-" * 80, f"STAFFING GAPS ({report.total_missing} missing)", "-" * 80]
        if not report.gaps:
            lines.append("  All staffing requirements met.")
        for gap in report.gaps:
            lines.append(
                f"  {gap.schedule_date.isoformat()} {gap.day_type.value:<10} "
                f"{gap.area_name:<12} {gap.role:<15} "
                f"{gap.scheduled}/{gap.required} (-{gap.missing}) {gap.shift_time}"
            )
        for surplus in report.surpluses:
            lines.append(
                f"  {surplus.schedule_date.isoformat()} {surplus.area_name:<12} "
                f"{surplus.role:<15} over by {surplus.excess}"
            )
        lines.append("")
        return lines
