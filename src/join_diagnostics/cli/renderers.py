"""
Renderer Registry - Strategy pattern for JoinReport presentation.

Each output format has its own renderer class, registered by ReportFormat.
Renderers read the report and never modify it.
"""

from __future__ import annotations

import json
import math
from enum import Enum
from typing import Any, Protocol, runtime_checkable

import polars as pl

from join_diagnostics.core.issues import Severity
from join_diagnostics.core.join_report import JoinReport


class ReportFormat(Enum):
    TEXT = "text"
    MARKDOWN = "markdown"
    DATA_TABLE = "data_table"
    JSON = "json"


@runtime_checkable
class Renderer(Protocol):
    """Protocol for report renderers."""

    def render(self, report: JoinReport) -> Any:
        """Render a report to its output representation."""
        ...


# Global registry for module-level decorator
RENDERERS: dict[ReportFormat, Renderer] = {}


def register(fmt: ReportFormat):
    """Decorator to register a renderer for a format in global registry."""

    def decorator(renderer_class: type) -> type:
        RENDERERS[fmt] = renderer_class()
        return renderer_class

    return decorator


def render_report(report: JoinReport, fmt: ReportFormat | str = ReportFormat.TEXT) -> Any:
    """
    Render a report using the global registry.

    Returns:
        str for TEXT, MARKDOWN and JSON; a Polars DataFrame for DATA_TABLE
    """
    try:
        fmt = ReportFormat(fmt)
    except ValueError as e:
        raise ValueError(f"Unknown report format: {fmt}") from e
    renderer = RENDERERS.get(fmt)
    if not renderer:
        raise ValueError(f"Unknown report format: {fmt.value}")
    return renderer.render(report)


def summary_metrics(report: JoinReport) -> list[tuple[str, float | None]]:
    """Headline numbers, in display order. An undefined match rate is None."""
    match = report.match_analysis
    return [
        ("left_rows", report.x_summary.row_count),
        ("right_rows", report.y_summary.row_count),
        ("left_unique_keys", report.x_summary.unique_count),
        ("right_unique_keys", report.y_summary.unique_count),
        ("keys_matched", match.matched_count),
        ("keys_left_only", match.left_only_count),
        ("keys_right_only", match.right_only_count),
        ("match_rate", round(match.match_rate, 4) if match.has_match_rate else None),
        ("issues", len(report.issues)),
        ("inner_join_rows", report.expected_rows.inner),
        ("left_join_rows", report.expected_rows.left),
        ("right_join_rows", report.expected_rows.right),
        ("full_join_rows", report.expected_rows.full),
    ]


def _format_rate(report: JoinReport) -> str:
    match = report.match_analysis
    return f"{match.match_rate * 100:.1f}%" if match.has_match_rate else "n/a"


_SEVERITY_MARK = {Severity.ERROR: "✖", Severity.WARNING: "!", Severity.INFO: "ℹ"}


# =============================================================================
# Concrete Renderer Implementations
# =============================================================================


@register(ReportFormat.TEXT)
class TextRenderer:
    """Plain-text report for terminals."""

    def render(self, report: JoinReport) -> str:
        lines = ["Join Diagnostic Report", "=" * 22]

        if report.sampling is not None and report.sampling.sampled:
            s = report.sampling
            lines.append(
                f"Sampled analysis: {s.sample_size} rows from {s.original_x_rows} (x) "
                f"and {s.original_y_rows} (y)"
            )
        lines.append(f"Join columns: {report.key_spec.describe()}")
        lines.append("")

        lines.append("Table Summary")
        for label, summary in (("Left", report.x_summary), ("Right", report.y_summary)):
            lines.append(
                f"  {label} table: {summary.row_count} rows, {summary.unique_count} unique keys, "
                f"{summary.duplicate_key_count} duplicate keys, {summary.na_count} NA keys"
            )
        lines.append("")

        match = report.match_analysis
        lines.append("Match Analysis")
        lines.append(f"  Keys in both: {match.matched_count}")
        lines.append(f"  Keys only in left: {match.left_only_count}")
        lines.append(f"  Keys only in right: {match.right_only_count}")
        lines.append(f"  Match rate (left): {_format_rate(report)}")
        lines.append(f"  Cardinality: {report.cardinality}")
        lines.append("")

        if report.issues:
            lines.append("Issues Detected")
            for issue in report.issues:
                lines.append(f"  {_SEVERITY_MARK[issue.severity]} {issue.message}")
            lines.append("")

        if report.multicolumn is not None and report.multicolumn.is_multicolumn:
            lines.append("Per-Column Breakdown")
            for column in report.multicolumn.columns:
                rate = "n/a" if math.isnan(column.match_rate) else f"{column.match_rate * 100:.1f}%"
                lines.append(f"  {column.x_column}: {rate} match rate ({column.matched}/{column.x_unique})")
            if report.multicolumn.problem_column is not None:
                lines.append(f"  Lowest match rate: {report.multicolumn.problem_column}")
            lines.append("")

        lines.append("Expected Row Counts")
        memory = report.memory_estimate.formatted() if report.memory_estimate else {}
        for how in ("inner", "left", "right", "full"):
            size = f" (~{memory[how]})" if how in memory else ""
            lines.append(f"  {how}_join: {report.expected_rows.for_join(how)}{size}")

        return "\n".join(lines) + "\n"


@register(ReportFormat.MARKDOWN)
class MarkdownRenderer:
    """Markdown report: summary table followed by the issue list."""

    def render(self, report: JoinReport) -> str:
        lines = [f"## Join Diagnostic Report: `{report.key_spec.describe()}`", ""]
        if report.sampling is not None and report.sampling.sampled:
            lines.append(f"_Sampled analysis: {report.sampling.sample_size} rows per table._")
            lines.append("")

        lines.append("| Metric | Value |")
        lines.append("|--------|-------|")
        for metric, value in summary_metrics(report):
            lines.append(f"| {metric} | {'n/a' if value is None else value} |")
        lines.append(f"| cardinality | {report.cardinality} |")
        lines.append("")

        if report.issues:
            lines.append("### Issues")
            lines.append("")
            for issue in report.issues:
                lines.append(f"- **{issue.severity.value}** ({issue.kind.value}): {issue.message}")
        else:
            lines.append("No issues detected.")

        return "\n".join(lines) + "\n"


@register(ReportFormat.DATA_TABLE)
class DataTableRenderer:
    """Two-column metric/value DataFrame."""

    def render(self, report: JoinReport) -> pl.DataFrame:
        metrics = summary_metrics(report)
        return pl.DataFrame(
            [
                pl.Series("metric", [m for m, _ in metrics], dtype=pl.String),
                pl.Series("value", [None if v is None else float(v) for _, v in metrics], dtype=pl.Float64),
            ]
        )


@register(ReportFormat.JSON)
class JsonRenderer:
    """JSON document of the full report."""

    def render(self, report: JoinReport) -> str:
        return json.dumps(report.to_dict(), indent=2, default=str)
