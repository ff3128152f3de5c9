"""
LastReportSlot - most recent JoinReport, for interactive follow-up.

An injectable object rather than module state: callers that want the
"last report" convenience create a slot and pass it around. Access is
guarded by a lock; concurrent writers race and the last write wins.
"""

import logging
import threading

from join_diagnostics.core.join_report import JoinReport

logger = logging.getLogger(__name__)


class LastReportSlot:
    """Single thread-safe slot holding the most recent report."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._report: JoinReport | None = None

    def store(self, report: JoinReport) -> None:
        with self._lock:
            self._report = report
        logger.debug(f"Stored last report for {report.key_spec.describe()}")

    def get(self) -> JoinReport | None:
        with self._lock:
            return self._report

    def clear(self) -> None:
        with self._lock:
            self._report = None
