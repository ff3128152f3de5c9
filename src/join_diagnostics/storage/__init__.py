"""Storage module for report audit logging and the last-report slot."""

from join_diagnostics.storage.last_report import LastReportSlot
from join_diagnostics.storage.report_logger import ReportLogger

__all__ = ["LastReportSlot", "ReportLogger"]
