"""
Quick key quality assessment.

key_check() is the fast pass/fail variant of analyze(): it only looks at
duplicates, missing keys, whitespace and case mismatches. key_duplicates()
pulls the offending rows out of a table for inspection.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

import polars as pl
import structlog

from join_diagnostics.core.columns import coerce_table, present_mask
from join_diagnostics.core.errors import InvalidInputError
from join_diagnostics.core.keys import resolve_key_spec, summarize_keys, validate_key_columns
from join_diagnostics.core.string_diagnostics import detect_case_mismatch, detect_whitespace

logger = structlog.get_logger(__name__)

DUPLICATE_COUNT_COLUMN = ".n_duplicates"


@dataclass(frozen=True)
class KeyCheckResult:
    is_ok: bool
    problems: tuple[str, ...] = ()


def key_check(x: Any, y: Any, key_spec: Any) -> KeyCheckResult:
    """
    Fast pass/fail check of join key quality.

    Args:
        x: Left table
        y: Right table
        key_spec: Key specification accepted by resolve_key_spec()

    Returns:
        KeyCheckResult with one human-readable line per problem
    """
    spec = resolve_key_spec(key_spec)
    x = coerce_table(x, "x", spec.x_columns)
    y = coerce_table(y, "y", spec.y_columns)
    validate_key_columns(x, y, spec)

    problems: list[str] = []
    x_summary = summarize_keys(x, spec.x_columns)
    y_summary = summarize_keys(y, spec.y_columns)

    for label, summary in (("Left", x_summary), ("Right", y_summary)):
        if summary.has_duplicates:
            problems.append(
                f"{label} table has {summary.duplicate_key_count} duplicate key(s) "
                f"({summary.duplicate_row_count} rows affected)"
            )
    for label, summary in (("Left", x_summary), ("Right", y_summary)):
        if summary.na_count > 0:
            problems.append(f"{label} table has {summary.na_count} NA key(s)")

    for x_col, y_col in spec.pairs:
        x_series = x.get_column(x_col)
        y_series = y.get_column(y_col)

        ws = detect_whitespace(x_series)
        if ws.has_issues:
            problems.append(
                f"Left table column '{x_col}' has whitespace issues ({len(ws.affected_values)} values)"
            )
        ws = detect_whitespace(y_series)
        if ws.has_issues:
            problems.append(
                f"Right table column '{y_col}' has whitespace issues ({len(ws.affected_values)} values)"
            )

        case = detect_case_mismatch(x_series, y_series)
        if case.has_issues:
            problems.append(f"Column '{x_col}'/'{y_col}' has {len(case.mismatches)} case mismatch(es)")

    for problem in problems:
        logger.warning("key_check_problem", by=spec.describe(), problem=problem)
    if not problems:
        logger.info("key_check_passed", by=spec.describe())

    return KeyCheckResult(is_ok=not problems, problems=tuple(problems))


def key_duplicates(
    table: Any, columns: str | list[str], keep: Literal["all", "first", "last"] = "all"
) -> pl.DataFrame:
    """
    Rows whose key appears more than once.

    Args:
        table: Table to inspect
        columns: Key column name(s)
        keep: "all" rows, or only the "first"/"last" occurrence per key

    Returns:
        Duplicated rows in original order plus a .n_duplicates column with the
        key's occurrence count. Zero rows (same schema) when there are none.
        Rows with a missing key are never reported.
    """
    if keep not in ("all", "first", "last"):
        raise InvalidInputError(f"keep must be 'all', 'first' or 'last', got {keep!r}")

    table = coerce_table(table, "table")
    spec = resolve_key_spec(columns)
    validate_key_columns(table, None, spec)
    key_columns = list(spec.x_columns)

    duplicates = (
        table.filter(present_mask(table, key_columns))
        .with_columns(pl.len().over(key_columns).cast(pl.Int64).alias(DUPLICATE_COUNT_COLUMN))
        .filter(pl.col(DUPLICATE_COUNT_COLUMN) > 1)
    )

    if keep == "all":
        return duplicates
    return duplicates.unique(subset=key_columns, keep=keep, maintain_order=True)
