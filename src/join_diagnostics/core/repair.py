"""
Key repair - fixes for the trivial issues the detectors report.

repair_keys() trims whitespace, standardizes case, strips invisible
characters and turns empty strings into nulls on text key columns.
Input frames are never mutated; repaired copies are returned.
suggest_repairs() turns a JoinReport into Polars snippets the caller can
paste into their own pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Literal

import polars as pl
import structlog

from join_diagnostics.core.columns import ColumnKind, coerce_table, series_kind
from join_diagnostics.core.diagnostics_config import INVISIBLE_CHARACTERS
from join_diagnostics.core.errors import InvalidInputError
from join_diagnostics.core.issues import IssueKind
from join_diagnostics.core.join_report import JoinReport
from join_diagnostics.core.keys import resolve_key_spec, validate_key_columns

logger = structlog.get_logger(__name__)

# Matches the detector: only ASCII whitespace counts as whitespace
_ASCII_WHITESPACE = " \t\n\r\x0b\x0c"
INVISIBLE_PATTERN = "[" + "".join(INVISIBLE_CHARACTERS) + "]"
_INVISIBLE_PATTERN_SOURCE = "[" + "".join(f"\\u{ord(c):04x}" for c in INVISIBLE_CHARACTERS) + "]"


@dataclass(frozen=True)
class ColumnRepair:
    table: str  # "x" or "y"
    column: str
    n_changes: int
    change_types: tuple[str, ...]

    def describe(self) -> str:
        return f"{self.table}.{self.column}: {', '.join(self.change_types)}"


@dataclass(frozen=True)
class RepairResult:
    """
    Repaired tables plus the change log.

    In dry-run mode x and y are the unmodified inputs.
    """

    x: pl.DataFrame
    y: pl.DataFrame | None
    changes: tuple[ColumnRepair, ...]

    @property
    def total_changes(self) -> int:
        return sum(change.n_changes for change in self.changes)


def _count_changed(before: pl.Series, after: pl.Series) -> int:
    # Null comparisons yield null, which sum() ignores
    return int((before != after).sum())


def _empty_to_null(series: pl.Series) -> pl.Series:
    return (
        series.to_frame()
        .select(
            pl.when(pl.col(series.name) == "")
            .then(pl.lit(None, dtype=pl.String))
            .otherwise(pl.col(series.name))
            .alias(series.name)
        )
        .to_series()
    )


def _repair_column(
    series: pl.Series,
    trim_whitespace: bool,
    standardize_case: str | None,
    remove_invisible: bool,
    empty_to_na: bool,
) -> tuple[pl.Series, int, list[str]]:
    """Apply each enabled step in order, counting values each step changed."""
    if series_kind(series) is not ColumnKind.TEXT:
        return series, 0, []

    steps: list[tuple[str, Callable[[pl.Series], pl.Series]]] = []
    if trim_whitespace:
        steps.append(("trimmed whitespace", lambda s: s.str.strip_chars(_ASCII_WHITESPACE)))
    if standardize_case == "lower":
        steps.append(("lower case", lambda s: s.str.to_lowercase()))
    elif standardize_case == "upper":
        steps.append(("upper case", lambda s: s.str.to_uppercase()))
    if remove_invisible:
        steps.append(("removed invisible chars", lambda s: s.str.replace_all(INVISIBLE_PATTERN, "")))

    n_changes = 0
    change_types: list[str] = []
    for label, step in steps:
        repaired = step(series)
        changed = _count_changed(series, repaired)
        if changed:
            n_changes += changed
            change_types.append(f"{label} ({changed})")
            series = repaired

    if empty_to_na:
        n_empty = int((series == "").sum())
        if n_empty:
            n_changes += n_empty
            change_types.append(f"empty to NA ({n_empty})")
            series = _empty_to_null(series)

    return series, n_changes, change_types


def repair_keys(
    x: Any,
    y: Any = None,
    key_spec: Any = None,
    trim_whitespace: bool = True,
    standardize_case: Literal["lower", "upper"] | None = None,
    remove_invisible: bool = True,
    empty_to_na: bool = False,
    dry_run: bool = False,
) -> RepairResult:
    """
    Repair common key problems on text key columns.

    Args:
        x: Left table
        y: Right table, or None to repair x alone
        key_spec: Key specification accepted by resolve_key_spec()
        trim_whitespace: Strip leading/trailing whitespace
        standardize_case: "lower", "upper" or None (unchanged)
        remove_invisible: Remove zero-width, BOM and non-breaking space characters
        empty_to_na: Turn empty strings into nulls
        dry_run: Only report the changes; return the inputs untouched

    Returns:
        RepairResult with new frames (or the originals on dry run) and one
        ColumnRepair per column that changed

    Raises:
        InvalidInputError: If key_spec is missing or standardize_case is invalid
        ColumnNotFoundError: If a key column is missing
    """
    if key_spec is None:
        raise InvalidInputError("key_spec is required")
    if standardize_case not in (None, "lower", "upper"):
        raise InvalidInputError(f"standardize_case must be 'lower', 'upper' or None, got {standardize_case!r}")

    x = coerce_table(x, "x")
    y = coerce_table(y, "y") if y is not None else None
    spec = resolve_key_spec(key_spec)
    validate_key_columns(x, y, spec)

    changes: list[ColumnRepair] = []
    tables = {"x": x, "y": y}
    sides = [("x", spec.x_columns)] + ([("y", spec.y_columns)] if y is not None else [])

    for side, columns in sides:
        table = tables[side]
        repaired_columns = []
        # dict.fromkeys drops repeated column names while keeping key order
        for column in dict.fromkeys(columns):
            repaired, n_changes, change_types = _repair_column(
                table.get_column(column), trim_whitespace, standardize_case, remove_invisible, empty_to_na
            )
            if n_changes:
                changes.append(ColumnRepair(side, column, n_changes, tuple(change_types)))
                repaired_columns.append(repaired)
        if repaired_columns and not dry_run:
            tables[side] = table.with_columns(repaired_columns)

    result = RepairResult(x=tables["x"], y=tables["y"], changes=tuple(changes))
    logger.info(
        "key_repair_completed",
        by=spec.describe(),
        dry_run=dry_run,
        total_changes=result.total_changes,
        columns=[change.describe() for change in changes],
    )
    return result


def suggest_repairs(report: JoinReport) -> tuple[str, ...]:
    """
    Polars code snippets fixing the repairable issues in a report.

    Covers whitespace, case mismatch, empty string and encoding issues, in
    report order. Returns an empty tuple when nothing is repairable.
    """
    if not isinstance(report, JoinReport):
        raise InvalidInputError(f"report must be a JoinReport, got {type(report).__name__}")

    suggestions: list[str] = []
    for issue in report.issues:
        if issue.kind is IssueKind.WHITESPACE:
            tbl, col = issue.table.value, issue.columns[0]
            suggestions.append(f'{tbl} = {tbl}.with_columns(pl.col("{col}").str.strip_chars())')
        elif issue.kind is IssueKind.CASE_MISMATCH:
            col_x, col_y = issue.columns
            suggestions.append(
                "# Standardize case:\n"
                f'x = x.with_columns(pl.col("{col_x}").str.to_lowercase())\n'
                f'y = y.with_columns(pl.col("{col_y}").str.to_lowercase())'
            )
        elif issue.kind is IssueKind.EMPTY_STRING:
            tbl, col = issue.table.value, issue.columns[0]
            suggestions.append(
                f"{tbl} = {tbl}.with_columns("
                f'pl.when(pl.col("{col}") == "").then(None).otherwise(pl.col("{col}")).alias("{col}"))'
            )
        elif issue.kind is IssueKind.ENCODING:
            tbl, col = issue.table.value, issue.columns[0]
            suggestions.append(
                "# Remove invisible characters:\n"
                f'{tbl} = {tbl}.with_columns(pl.col("{col}").str.replace_all("{_INVISIBLE_PATTERN_SOURCE}", ""))'
            )
    return tuple(suggestions)
