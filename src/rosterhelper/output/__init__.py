"""Output generators for scheduling weeks."""

from rosterhelper.output.report import ReportGenerator

__all__ = ["ReportGenerator"]
