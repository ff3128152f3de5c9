"""
Tests for ReportLogger (audit trail of join analyses).

Tests follow AAA pattern and verify:
- Append-only logging in jsonl, json and text formats
- Reading entries back
- Directory creation
"""

import json

import pytest

from join_diagnostics import analyze
from join_diagnostics.storage import ReportLogger


@pytest.fixture
def orders_report(orders_df, customers_df):
    return analyze(orders_df, customers_df, "customer_id")


class TestReportLoggerBasics:
    def test_report_logger_creates_parent_directory(self, tmp_path):
        # Arrange
        log_file = tmp_path / "logs" / "nested" / "joins.jsonl"
        assert not log_file.parent.exists()

        # Act
        ReportLogger(log_file)

        # Assert
        assert log_file.parent.is_dir()

    def test_report_logger_unknown_format_raises(self, tmp_path):
        with pytest.raises(ValueError, match="Unsupported log format"):
            ReportLogger(tmp_path / "joins.log", fmt="xml")

    def test_read_entries_missing_file_empty(self, tmp_path):
        assert ReportLogger(tmp_path / "joins.jsonl").read_entries() == []


class TestReportLoggerFormats:
    def test_log_report_jsonl_one_line_per_report(self, tmp_path, orders_report):
        # Arrange
        log_file = tmp_path / "joins.jsonl"
        report_logger = ReportLogger(log_file, fmt="jsonl")

        # Act
        report_logger.log_report(orders_report, label="orders x customers", timestamp="2026-01-05T10:00:00")
        report_logger.log_report(orders_report, timestamp="2026-01-05T11:00:00")

        # Assert
        lines = log_file.read_text().splitlines()
        assert len(lines) == 2
        entry = json.loads(lines[0])
        assert entry["timestamp"] == "2026-01-05T10:00:00"
        assert entry["label"] == "orders x customers"
        assert entry["report"]["expected_rows"]["left"] == 4
        assert "label" not in json.loads(lines[1])

    def test_log_report_json_roundTripsThroughReadEntries(self, tmp_path, orders_report):
        report_logger = ReportLogger(tmp_path / "joins.json", fmt="json")

        report_logger.log_report(orders_report, timestamp="t1")
        report_logger.log_report(orders_report, timestamp="t2")

        entries = report_logger.read_entries()
        assert [e["timestamp"] for e in entries] == ["t1", "t2"]
        assert entries[0]["report"]["cardinality"] == "m:1"

    def test_log_report_text_contains_rendered_report(self, tmp_path, orders_report):
        log_file = tmp_path / "joins.log"
        report_logger = ReportLogger(log_file, fmt="text")

        report_logger.log_report(orders_report, label="nightly", timestamp="2026-01-05T10:00:00")

        content = log_file.read_text()
        assert content.startswith("--- 2026-01-05T10:00:00 [nightly] ---\n")
        assert "Join Diagnostic Report" in content

    def test_read_entries_text_format_raises(self, tmp_path):
        with pytest.raises(ValueError):
            ReportLogger(tmp_path / "joins.log", fmt="text").read_entries()

    def test_log_report_auto_timestamp(self, tmp_path, orders_report):
        report_logger = ReportLogger(tmp_path / "joins.jsonl")

        report_logger.log_report(orders_report)

        assert report_logger.read_entries()[0]["timestamp"]
