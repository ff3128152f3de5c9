"""
Join Analyzer - orchestration of the diagnostic pipeline.

Single entry point: analyze(table_x, table_y, key_spec, options).

Pipeline:
1. Coerce inputs to Polars and validate key columns (once, up front)
2. Optionally sample rows (explicit seed)
3. Summarize keys, analyze matches, predict row counts, classify cardinality
4. Run the applicable detectors per key column pair
5. Estimate Cartesian risk, break down composite keys, estimate memory
6. Assemble an immutable JoinReport
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import polars as pl
import structlog

from join_diagnostics.core.cardinality import classify_cardinality
from join_diagnostics.core.cartesian import CartesianRisk, estimate_cartesian_risk
from join_diagnostics.core.columns import coerce_table
from join_diagnostics.core.diagnostics_config import (
    CARTESIAN_THRESHOLD,
    MEMORY_OVERHEAD_FACTOR,
    MESSAGE_EXAMPLE_COUNT,
    NEAR_MATCH_MAX_CANDIDATES,
    NEAR_MATCH_MAX_DISTANCE,
)
from join_diagnostics.core.errors import InvalidInputError
from join_diagnostics.core.issues import Issue, IssueKind, Severity, TableSide
from join_diagnostics.core.join_report import JoinReport, MemoryEstimate, SamplingInfo
from join_diagnostics.core.keys import (
    KeySpec,
    KeySummary,
    count_keys,
    resolve_key_spec,
    summarize_counts,
    validate_key_columns,
)
from join_diagnostics.core.match_analysis import analyze_match
from join_diagnostics.core.multicolumn import analyze_multicolumn
from join_diagnostics.core.row_prediction import ExpectedRowCounts, predict_row_counts
from join_diagnostics.core.sampling import sample_rows
from join_diagnostics.core.string_diagnostics import (
    detect_case_mismatch,
    detect_empty_strings,
    detect_encoding_issues,
    detect_near_matches,
    detect_whitespace,
)
from join_diagnostics.core.type_diagnostics import (
    detect_factor_mismatch,
    detect_numeric_precision,
    detect_type_mismatch,
)

logger = structlog.get_logger(__name__)

_SIDE_LABEL = {TableSide.X: "Left", TableSide.Y: "Right"}


@dataclass(frozen=True)
class AnalysisOptions:
    """
    Tuning knobs for analyze().

    Attributes:
        sample_size: Sample at most this many rows per table (None = all rows)
        sample_seed: Seed for reproducible sampling
        near_match_max_distance: Largest edit distance reported as a near match
        near_match_max_candidates: Most near-match pairs reported
        cartesian_threshold: Expansion factor above which explosion is flagged
    """

    sample_size: int | None = None
    sample_seed: int | None = None
    near_match_max_distance: int = NEAR_MATCH_MAX_DISTANCE
    near_match_max_candidates: int = NEAR_MATCH_MAX_CANDIDATES
    cartesian_threshold: float = CARTESIAN_THRESHOLD

    def __post_init__(self) -> None:
        if self.sample_size is not None and self.sample_size <= 0:
            raise InvalidInputError(f"sample_size must be positive, got {self.sample_size}")
        if self.cartesian_threshold <= 0:
            raise InvalidInputError(f"cartesian_threshold must be positive, got {self.cartesian_threshold}")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AnalysisOptions:
        """Build options from a config dict, ignoring unknown keys."""
        known = {name: data[name] for name in cls.__dataclass_fields__ if name in data}
        return cls(**known)


def _summary_issues(summary: KeySummary, side: TableSide, columns: tuple[str, ...]) -> list[Issue]:
    label = _SIDE_LABEL[side]
    issues = []
    if summary.duplicate_key_count > 0:
        issues.append(
            Issue(
                kind=IssueKind.DUPLICATES,
                severity=Severity.WARNING,
                table=side,
                columns=columns,
                message=(
                    f"{label} table has {summary.duplicate_key_count} duplicate key(s) affecting "
                    f"{summary.duplicate_row_count} rows - may cause row multiplication"
                ),
                details={
                    "duplicate_keys": list(summary.duplicate_keys),
                    "duplicate_row_count": summary.duplicate_row_count,
                },
            )
        )
    if summary.na_count > 0:
        issues.append(
            Issue(
                kind=IssueKind.NA,
                severity=Severity.WARNING,
                table=side,
                columns=columns,
                message=f"{label} table has {summary.na_count} NA key(s) - these will not match",
                details={"na_count": summary.na_count},
            )
        )
    return issues


def _single_column_issues(series: pl.Series, column: str, side: TableSide) -> list[Issue]:
    """Whitespace and encoding checks for one side of a key pair."""
    label = _SIDE_LABEL[side]
    issues = []

    ws = detect_whitespace(series)
    if ws.has_issues:
        issues.append(
            Issue(
                kind=IssueKind.WHITESPACE,
                severity=Severity.WARNING,
                table=side,
                columns=(column,),
                message=(
                    f"{label} column '{column}' has {len(ws.affected_values)} value(s) "
                    "with leading/trailing whitespace"
                ),
                details={
                    "leading": list(ws.leading),
                    "trailing": list(ws.trailing),
                    "affected_values": list(ws.affected_values),
                },
            )
        )

    enc = detect_encoding_issues(series)
    if enc.has_issues:
        severity = Severity.WARNING if enc.invisible_chars else Severity.INFO
        issues.append(
            Issue(
                kind=IssueKind.ENCODING,
                severity=severity,
                table=side,
                columns=(column,),
                message=(
                    f"{label} column '{column}' has encoding issues "
                    "(invisible chars or mixed Unicode normalization)"
                ),
                details={
                    "invisible_chars": list(enc.invisible_chars),
                    "affected_values": list(enc.affected_values),
                    "mixed_normalization": enc.mixed_normalization,
                    "non_normalized_values": list(enc.non_normalized_values),
                },
            )
        )
    return issues


def _empty_string_issue(series: pl.Series, column: str, side: TableSide) -> list[Issue]:
    empty = detect_empty_strings(series)
    if not empty.has_issues:
        return []
    return [
        Issue(
            kind=IssueKind.EMPTY_STRING,
            severity=Severity.INFO,
            table=side,
            columns=(column,),
            message=(
                f"{_SIDE_LABEL[side]} column '{column}' has {empty.n_empty} empty string(s) "
                "- these match other empty strings but not NA"
            ),
            details={"n_empty": empty.n_empty, "indices": list(empty.indices)},
        )
    ]


def _pair_issues(x: pl.DataFrame, y: pl.DataFrame, x_col: str, y_col: str, options: AnalysisOptions) -> list[Issue]:
    """Run every applicable detector over one key column pair, in report order."""
    x_series = x.get_column(x_col)
    y_series = y.get_column(y_col)
    issues: list[Issue] = []

    issues.extend(_single_column_issues(x_series, x_col, TableSide.X))
    issues.extend(_single_column_issues(y_series, y_col, TableSide.Y))

    case = detect_case_mismatch(x_series, y_series)
    if case.has_issues:
        first_x, first_y = case.mismatches[0]
        issues.append(
            Issue(
                kind=IssueKind.CASE_MISMATCH,
                severity=Severity.WARNING,
                table=TableSide.BOTH,
                columns=(x_col, y_col),
                message=(
                    f"{len(case.mismatches)} key(s) would match if case-insensitive "
                    f"(e.g., '{first_x}' vs '{first_y}')"
                ),
                details={"mismatches": [list(pair) for pair in case.mismatches]},
            )
        )

    issues.extend(detect_type_mismatch(x_series, y_series, x_col, y_col))
    issues.extend(detect_factor_mismatch(x_series, y_series, x_col, y_col))
    issues.extend(_empty_string_issue(x_series, x_col, TableSide.X))
    issues.extend(_empty_string_issue(y_series, y_col, TableSide.Y))
    issues.extend(detect_numeric_precision(x_series, x_col, TableSide.X))
    issues.extend(detect_numeric_precision(y_series, y_col, TableSide.Y))

    near = detect_near_matches(
        x_series,
        y_series,
        max_distance=options.near_match_max_distance,
        max_candidates=options.near_match_max_candidates,
    )
    if near.has_issues:
        examples = ", ".join(f"'{m.x_key}' ~ '{m.y_key}'" for m in near.near_matches[:MESSAGE_EXAMPLE_COUNT])
        issues.append(
            Issue(
                kind=IssueKind.NEAR_MATCH,
                severity=Severity.INFO,
                table=TableSide.BOTH,
                columns=(x_col, y_col),
                message=f"{len(near.near_matches)} near-match(es) found (e.g., {examples}) - possible typos?",
                details={
                    "near_matches": [
                        {"x_key": m.x_key, "y_key": m.y_key, "distance": m.distance} for m in near.near_matches
                    ]
                },
            )
        )

    return issues


def _cartesian_issue(risk: CartesianRisk, key_spec: KeySpec) -> list[Issue]:
    if not risk.has_explosion:
        return []
    worst = risk.worst_keys[0]
    return [
        Issue(
            kind=IssueKind.CARTESIAN_EXPLOSION,
            severity=Severity.ERROR,
            table=TableSide.BOTH,
            columns=key_spec.x_columns,
            message=(
                f"Cartesian product risk: result will be {risk.expansion_factor:.1f}x larger than input "
                f"(worst key {worst.key!r}: {worst.x_count} x {worst.y_count} = {worst.product} rows)"
            ),
            details={"expansion_factor": risk.expansion_factor, "total_inner": risk.total_inner},
        )
    ]


def estimate_memory(x: pl.DataFrame, y: pl.DataFrame, expected: ExpectedRowCounts) -> MemoryEstimate:
    """Approximate result bytes: rows x mean input row size x overhead factor."""
    avg_row_bytes = (x.estimated_size() / max(x.height, 1) + y.estimated_size() / max(y.height, 1)) / 2

    def _bytes(rows: int) -> int:
        return int(rows * avg_row_bytes * MEMORY_OVERHEAD_FACTOR)

    return MemoryEstimate(
        inner=_bytes(expected.inner),
        left=_bytes(expected.left),
        right=_bytes(expected.right),
        full=_bytes(expected.full),
    )


def analyze(table_x: Any, table_y: Any, key_spec: Any, options: AnalysisOptions | None = None) -> JoinReport:
    """
    Diagnose a join before running it.

    Args:
        table_x: Left table (Polars or pandas DataFrame, or a list of row dicts)
        table_y: Right table
        key_spec: Shared column name(s), (x_column, y_column) pairs or an x -> y mapping
        options: AnalysisOptions (defaults used when None)

    Returns:
        Immutable JoinReport

    Raises:
        InvalidInputError: If an input is not tabular or the key spec is malformed
        ColumnNotFoundError: If a key column is missing on either side
    """
    options = options or AnalysisOptions()
    spec = resolve_key_spec(key_spec)
    x = coerce_table(table_x, "x", spec.x_columns)
    y = coerce_table(table_y, "y", spec.y_columns)
    validate_key_columns(x, y, spec)

    logger.info(
        "join_analysis_started",
        by=spec.describe(),
        x_rows=x.height,
        y_rows=y.height,
        sample_size=options.sample_size,
    )

    sampling = None
    if options.sample_size is not None:
        original_x_rows, original_y_rows = x.height, y.height
        x, x_sampled = sample_rows(x, options.sample_size, options.sample_seed)
        y, y_sampled = sample_rows(y, options.sample_size, options.sample_seed)
        if x_sampled or y_sampled:
            sampling = SamplingInfo(
                sampled=True,
                sample_size=options.sample_size,
                seed=options.sample_seed,
                original_x_rows=original_x_rows,
                original_y_rows=original_y_rows,
            )

    x_counts = count_keys(x, spec.x_columns)
    y_counts = count_keys(y, spec.y_columns)
    x_summary = summarize_counts(x_counts)
    y_summary = summarize_counts(y_counts)

    match = analyze_match(x_counts.keys, y_counts.keys)
    expected = predict_row_counts(x_counts, y_counts)
    cardinality = classify_cardinality(x_summary.has_duplicates, y_summary.has_duplicates)
    risk = estimate_cartesian_risk(x_counts, y_counts, options.cartesian_threshold)

    issues: list[Issue] = []
    issues.extend(_summary_issues(x_summary, TableSide.X, spec.x_columns))
    issues.extend(_summary_issues(y_summary, TableSide.Y, spec.y_columns))
    for x_col, y_col in spec.pairs:
        issues.extend(_pair_issues(x, y, x_col, y_col, options))
    issues.extend(_cartesian_issue(risk, spec))

    report = JoinReport(
        key_spec=spec,
        x_summary=x_summary,
        y_summary=y_summary,
        match_analysis=match,
        expected_rows=expected,
        issues=tuple(issues),
        cardinality=cardinality,
        cartesian_risk=risk,
        multicolumn=analyze_multicolumn(x, y, spec),
        sampling=sampling,
        memory_estimate=estimate_memory(x, y, expected),
    )

    logger.info(
        "join_analysis_completed",
        by=spec.describe(),
        cardinality=cardinality.value,
        n_issues=len(report.issues),
        match_rate=match.match_rate if match.has_match_rate else None,
        **expected.to_dict(),
    )
    return report
