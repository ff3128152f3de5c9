"""
Cardinality-enforcing joins.

join_strict() checks the observed key relationship against an expected one
before joining, so an unexpected duplicate fails loudly instead of silently
multiplying rows.
"""

from __future__ import annotations

from typing import Any

import polars as pl
import structlog

from join_diagnostics.core.cardinality import (
    Cardinality,
    cardinality_violation,
    classify_cardinality,
    parse_cardinality,
)
from join_diagnostics.core.columns import coerce_table
from join_diagnostics.core.errors import CardinalityViolationError, InvalidInputError
from join_diagnostics.core.keys import KeySpec, resolve_key_spec, summarize_keys, validate_key_columns
from join_diagnostics.core.row_prediction import JOIN_TYPES

logger = structlog.get_logger(__name__)


def run_join(x: pl.DataFrame, y: pl.DataFrame, spec: KeySpec, how: str) -> pl.DataFrame:
    """Execute the join with Polars; key columns keep the left table's names."""
    if how not in JOIN_TYPES:
        raise InvalidInputError(f"how must be one of {', '.join(JOIN_TYPES)}, got {how!r}")
    try:
        if spec.same_names:
            return x.join(y, on=list(spec.x_columns), how=how, coalesce=True)
        return x.join(y, left_on=list(spec.x_columns), right_on=list(spec.y_columns), how=how, coalesce=True)
    except pl.exceptions.PolarsError as e:
        raise InvalidInputError(f"Cannot join on {spec.describe()}: {e}") from e


def align_key_dtypes(x: pl.DataFrame, y: pl.DataFrame, spec: KeySpec) -> tuple[pl.DataFrame, pl.DataFrame]:
    """
    Cast key pairs whose dtypes differ to a shared dtype so Polars can join them.

    Numeric pairs become Float64; any other mismatch compares as String.
    """
    x_casts: list[pl.Expr] = []
    y_casts: list[pl.Expr] = []
    for x_col, y_col in spec.pairs:
        x_dtype = x.schema[x_col]
        y_dtype = y.schema[y_col]
        if x_dtype == y_dtype:
            continue
        target = pl.Float64 if x_dtype.is_numeric() and y_dtype.is_numeric() else pl.String
        x_casts.append(pl.col(x_col).cast(target))
        y_casts.append(pl.col(y_col).cast(target))
        logger.info(
            "key_dtypes_aligned",
            x_column=x_col,
            y_column=y_col,
            x_dtype=str(x_dtype),
            y_dtype=str(y_dtype),
            target=str(target),
        )
    if not x_casts:
        return x, y
    return x.with_columns(x_casts), y.with_columns(y_casts)


def detect_cardinality(x: Any, y: Any, key_spec: Any) -> Cardinality:
    """Observed relationship between the two tables' keys."""
    spec = resolve_key_spec(key_spec)
    x = coerce_table(x, "x", spec.x_columns)
    y = coerce_table(y, "y", spec.y_columns)
    validate_key_columns(x, y, spec)

    x_summary = summarize_keys(x, spec.x_columns)
    y_summary = summarize_keys(y, spec.y_columns)
    cardinality = classify_cardinality(x_summary.has_duplicates, y_summary.has_duplicates)
    logger.info(
        "cardinality_detected",
        by=spec.describe(),
        cardinality=cardinality.value,
        x_duplicate_keys=x_summary.duplicate_key_count,
        y_duplicate_keys=y_summary.duplicate_key_count,
    )
    return cardinality


def join_strict(
    x: Any,
    y: Any,
    key_spec: Any,
    how: str = "left",
    expect: str | Cardinality = "1:1",
) -> pl.DataFrame:
    """
    Join two tables, enforcing an expected cardinality.

    Args:
        x: Left table
        y: Right table
        key_spec: Key specification accepted by resolve_key_spec()
        how: "inner", "left", "right" or "full"
        expect: "1:1", "1:m"/"1:many", "m:1"/"many:1" or "m:m"/"many:many"

    Returns:
        Joined Polars DataFrame

    Raises:
        CardinalityViolationError: If the observed relationship breaks the contract
        InvalidInputError: If how or expect is not recognised
    """
    try:
        expected = parse_cardinality(expect)
    except ValueError as e:
        raise InvalidInputError(str(e)) from e
    if how not in JOIN_TYPES:
        raise InvalidInputError(f"how must be one of {', '.join(JOIN_TYPES)}, got {how!r}")

    spec = resolve_key_spec(key_spec)
    x = coerce_table(x, "x", spec.x_columns)
    y = coerce_table(y, "y", spec.y_columns)
    validate_key_columns(x, y, spec)

    x_summary = summarize_keys(x, spec.x_columns)
    y_summary = summarize_keys(y, spec.y_columns)
    reason = cardinality_violation(expected, x_summary.has_duplicates, y_summary.has_duplicates)
    if reason is not None:
        actual = classify_cardinality(x_summary.has_duplicates, y_summary.has_duplicates)
        logger.warning(
            "cardinality_violation",
            by=spec.describe(),
            expected=expected.value,
            actual=actual.value,
            reason=reason,
        )
        raise CardinalityViolationError(expected.value, actual.value, reason)

    result = run_join(x, y, spec, how)
    logger.info("strict_join_completed", by=spec.describe(), how=how, expect=expected.value, rows=result.height)
    return result
