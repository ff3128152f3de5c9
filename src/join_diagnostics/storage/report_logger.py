"""
ReportLogger - Audit trail of join analyses.

Appends one timestamped record per JoinReport to a log file.

Formats:
- text: human-readable block per report (header line + rendered text report)
- json: pretty-printed JSON object per report, separated by blank lines
- jsonl: one JSON object per line (streaming-friendly, append-only)
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from join_diagnostics.cli.renderers import ReportFormat, render_report
from join_diagnostics.core.join_report import JoinReport

logger = logging.getLogger(__name__)

LOG_FORMATS = ("text", "json", "jsonl")


class ReportLogger:
    """
    Appends join reports to an audit log file.

    Example Usage:
        >>> report_logger = ReportLogger(Path("logs/joins.jsonl"), fmt="jsonl")
        >>> report_logger.log_report(report, label="orders x customers")
        >>> report_logger.read_entries()
    """

    def __init__(self, path: Path | str, fmt: str = "jsonl"):
        """
        Initialize ReportLogger.

        Args:
            path: Log file (parent directories are created)
            fmt: "text", "json" or "jsonl"

        Raises:
            ValueError: If fmt is not supported
        """
        if fmt not in LOG_FORMATS:
            raise ValueError(f"Unsupported log format: {fmt}. Expected one of {', '.join(LOG_FORMATS)}")
        self.path = Path(path)
        self.fmt = fmt
        self.path.parent.mkdir(parents=True, exist_ok=True)
        logger.info(f"ReportLogger initialized with log file: {self.path} ({fmt})")

    def log_report(self, report: JoinReport, label: str | None = None, timestamp: str | None = None) -> None:
        """
        Append a report to the log.

        Args:
            report: Report to record
            label: Optional free-text label (e.g. the input file names)
            timestamp: ISO 8601 timestamp (auto-generated if not provided)
        """
        if timestamp is None:
            timestamp = datetime.now().isoformat()

        if self.fmt == "text":
            header = f"--- {timestamp}" + (f" [{label}]" if label else "") + " ---"
            self._append(header + "\n" + render_report(report, ReportFormat.TEXT) + "\n")
            return

        entry: dict[str, Any] = {"timestamp": timestamp, "report": report.to_dict()}
        if label:
            entry["label"] = label

        if self.fmt == "jsonl":
            self._append(json.dumps(entry, default=str) + "\n")
        else:
            self._append(json.dumps(entry, indent=2, default=str) + "\n\n")

    def read_entries(self) -> list[dict[str, Any]]:
        """
        Read back logged entries (jsonl and json formats).

        Returns:
            Entry dicts in chronological order

        Raises:
            ValueError: For the text format, which is not machine-readable
        """
        if self.fmt == "text":
            raise ValueError("Text report logs cannot be read back as entries")
        if not self.path.exists():
            return []

        content = self.path.read_text()
        if self.fmt == "jsonl":
            return [json.loads(line) for line in content.splitlines() if line.strip()]
        return [json.loads(block) for block in content.split("\n\n") if block.strip()]

    def _append(self, text: str) -> None:
        with open(self.path, "a") as f:
            f.write(text)
        logger.debug(f"Logged join report to {self.path.name}")
