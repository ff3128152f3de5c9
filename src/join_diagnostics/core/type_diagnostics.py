"""
Type Diagnostics - detectors comparing the kinds and values of key columns.

Covers:
- Type mismatch between the two key columns (text/categorical/numeric)
- Categorical level mismatch
- Floating-point precision hazards within one column
"""

from __future__ import annotations

import math

import polars as pl

from join_diagnostics.core.columns import ColumnKind, is_missing, series_kind
from join_diagnostics.core.diagnostics_config import MAX_EXACT_FLOAT_INT
from join_diagnostics.core.issues import Issue, IssueKind, Severity, TableSide


def _max_abs(series: pl.Series) -> float | None:
    values = [abs(v) for v in series.to_list() if not is_missing(v)]
    return max(values) if values else None


def detect_type_mismatch(x: pl.Series, y: pl.Series, x_name: str, y_name: str) -> list[Issue]:
    """
    Compare the column kinds on both sides of a key pair.

    - text vs categorical: info, values are compared after coercion
    - numeric vs text/categorical: warning, values never compare equal
    - boolean vs numeric: warning, true and false silently match 1 and 0
    - integer vs float with magnitudes above 2^53: precision warning
    """
    x_kind = series_kind(x)
    y_kind = series_kind(y)
    columns = (x_name, y_name)
    issues: list[Issue] = []

    if {x_kind, y_kind} == {ColumnKind.TEXT, ColumnKind.CATEGORICAL}:
        issues.append(
            Issue(
                kind=IssueKind.TYPE_MISMATCH,
                severity=Severity.INFO,
                table=TableSide.BOTH,
                columns=columns,
                message=(
                    f"Type difference: '{x_name}' is {x_kind.value}, '{y_name}' is {y_kind.value} "
                    "(will be coerced)"
                ),
                details={"x_kind": x_kind.value, "y_kind": y_kind.value},
            )
        )

    if (x_kind.is_numeric and y_kind.is_textual) or (x_kind.is_textual and y_kind.is_numeric):
        issues.append(
            Issue(
                kind=IssueKind.TYPE_MISMATCH,
                severity=Severity.WARNING,
                table=TableSide.BOTH,
                columns=columns,
                message=(
                    f"Type mismatch: '{x_name}' is {x_kind.value}, '{y_name}' is {y_kind.value} "
                    "- may cause unexpected results"
                ),
                details={"x_kind": x_kind.value, "y_kind": y_kind.value},
            )
        )

    if (x_kind is ColumnKind.BOOLEAN and y_kind.is_numeric) or (x_kind.is_numeric and y_kind is ColumnKind.BOOLEAN):
        issues.append(
            Issue(
                kind=IssueKind.TYPE_MISMATCH,
                severity=Severity.WARNING,
                table=TableSide.BOTH,
                columns=columns,
                message=(
                    f"Type mismatch: '{x_name}' is {x_kind.value}, '{y_name}' is {y_kind.value} "
                    "- true/false will match 1/0"
                ),
                details={"x_kind": x_kind.value, "y_kind": y_kind.value},
            )
        )

    if {x_kind, y_kind} == {ColumnKind.INTEGER, ColumnKind.FLOAT}:
        for series, name, side in ((x, x_name, TableSide.X), (y, y_name, TableSide.Y)):
            max_val = _max_abs(series)
            if max_val is not None and max_val > MAX_EXACT_FLOAT_INT:
                issues.append(
                    Issue(
                        kind=IssueKind.PRECISION,
                        severity=Severity.WARNING,
                        table=side,
                        columns=(name,),
                        message=f"Large numeric values in '{name}' may lose precision when compared as float",
                        details={"max_abs_value": max_val},
                    )
                )

    return issues


def _levels(series: pl.Series) -> list[str]:
    """Category levels; Enum columns keep declared levels, others use observed values."""
    if isinstance(series.dtype, pl.Enum):
        return list(series.dtype.categories.to_list())
    return [str(v) for v in series.drop_nulls().unique(maintain_order=True).to_list()]


def detect_factor_mismatch(x: pl.Series, y: pl.Series, x_name: str, y_name: str) -> list[Issue]:
    """Report category levels present on only one side (both columns categorical)."""
    if series_kind(x) is not ColumnKind.CATEGORICAL or series_kind(y) is not ColumnKind.CATEGORICAL:
        return []

    x_levels = _levels(x)
    y_levels = _levels(y)
    y_set = set(y_levels)
    x_set = set(x_levels)
    x_only = [level for level in x_levels if level not in y_set]
    y_only = [level for level in y_levels if level not in x_set]

    if not x_only and not y_only:
        return []

    parts = []
    if x_only:
        parts.append(f"{len(x_only)} level(s) only in '{x_name}'")
    if y_only:
        parts.append(f"{len(y_only)} level(s) only in '{y_name}'")

    return [
        Issue(
            kind=IssueKind.FACTOR_LEVELS,
            severity=Severity.INFO,
            table=TableSide.BOTH,
            columns=(x_name, y_name),
            message="Factor level mismatch: " + ", ".join(parts),
            details={"x_only_levels": x_only, "y_only_levels": y_only},
        )
    ]


def detect_numeric_precision(series: pl.Series, name: str, side: TableSide) -> list[Issue]:
    """
    Flag floating-point keys that may not compare exactly.

    Only float columns apply; integer columns are exact.
    """
    if series_kind(series) is not ColumnKind.FLOAT:
        return []

    values = [float(v) for v in series.to_list() if not is_missing(v)]
    if not values:
        return []

    issues: list[Issue] = []
    non_integral = [v for v in values if math.isfinite(v) and v != math.floor(v)]
    if non_integral:
        issues.append(
            Issue(
                kind=IssueKind.FLOAT_PRECISION,
                severity=Severity.WARNING,
                table=side,
                columns=(name,),
                message=f"Floating-point key values in '{name}' may not match exactly due to precision",
                details={"n_non_integral": len(non_integral)},
            )
        )

    max_val = max(abs(v) for v in values)
    if max_val > MAX_EXACT_FLOAT_INT:
        issues.append(
            Issue(
                kind=IssueKind.LARGE_NUMERIC,
                severity=Severity.WARNING,
                table=side,
                columns=(name,),
                message=f"Very large numeric values in '{name}' may lose precision",
                details={"max_abs_value": max_val},
            )
        )

    return issues
