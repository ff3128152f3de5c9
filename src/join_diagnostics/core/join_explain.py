"""
Post-join diagnostics.

explain_join() compares a join result that already exists with the row
counts the key multiplicities predict, and names the causes of growth
(duplicate keys) and shrinkage (unmatched or missing keys).
diff_tables() summarizes how a table changed across a join.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog

from join_diagnostics.core.columns import coerce_table
from join_diagnostics.core.errors import InvalidInputError
from join_diagnostics.core.keys import count_keys, resolve_key_spec, summarize_counts, validate_key_columns
from join_diagnostics.core.match_analysis import analyze_match
from join_diagnostics.core.row_prediction import JOIN_TYPES, ExpectedRowCounts, predict_row_counts

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class JoinExplanation:
    """
    Why a join produced the number of rows it did.

    Attributes:
        how: Join type (given, or inferred from the row counts)
        n_x, n_y, n_result: Row counts of the inputs and the result
        expected_rows: Predicted rows for every join type
        matched: Unique keys present on both sides
        x_only, y_only: Unique keys present on one side only
        x_duplicates, y_duplicates: Distinct duplicated keys per side
        x_na, y_na: Rows with a missing key per side
        reasons: Human-readable causes, most significant first
    """

    how: str
    n_x: int
    n_y: int
    n_result: int
    expected_rows: ExpectedRowCounts
    matched: int
    x_only: int
    y_only: int
    x_duplicates: int
    y_duplicates: int
    x_na: int
    y_na: int
    reasons: tuple[str, ...] = ()

    @property
    def expected(self) -> int:
        return self.expected_rows.for_join(self.how)

    @property
    def matches_prediction(self) -> bool:
        return self.n_result == self.expected

    @property
    def row_change(self) -> int:
        """Rows gained (positive) or lost (negative) relative to the left table."""
        return self.n_result - self.n_x


def _infer_how(n_result: int, expected: ExpectedRowCounts) -> str:
    for how in JOIN_TYPES:
        if expected.for_join(how) == n_result:
            return how
    return "left"


def explain_join(result: Any, x: Any, y: Any, key_spec: Any, how: str | None = None) -> JoinExplanation:
    """
    Explain a join result's row count.

    Args:
        result: The joined table
        x: Left input
        y: Right input
        key_spec: Key specification used for the join
        how: Join type; inferred from the row counts when None (first of
            inner, left, right, full whose prediction equals the result)

    Returns:
        JoinExplanation
    """
    if how is not None and how not in JOIN_TYPES:
        raise InvalidInputError(f"how must be one of {', '.join(JOIN_TYPES)}, got {how!r}")

    result = coerce_table(result, "result")
    spec = resolve_key_spec(key_spec)
    x = coerce_table(x, "x", spec.x_columns)
    y = coerce_table(y, "y", spec.y_columns)
    validate_key_columns(x, y, spec)

    x_counts = count_keys(x, spec.x_columns)
    y_counts = count_keys(y, spec.y_columns)
    x_summary = summarize_counts(x_counts)
    y_summary = summarize_counts(y_counts)
    match = analyze_match(x_counts.keys, y_counts.keys)
    expected = predict_row_counts(x_counts, y_counts)
    how = how or _infer_how(result.height, expected)

    reasons: list[str] = []
    if result.height > x.height and y_summary.has_duplicates:
        reasons.append(
            f"Right table has {y_summary.duplicate_key_count} duplicate key(s) - "
            "matching left rows are repeated once per duplicate"
        )
    if x_summary.has_duplicates and how in ("right", "full", "inner"):
        reasons.append(
            f"Left table has {x_summary.duplicate_key_count} duplicate key(s) - matching right rows are repeated"
        )
    if how in ("inner", "right") and expected.left_unmatched:
        reasons.append(f"{expected.left_unmatched} left row(s) had no matching key and were dropped")
    if how in ("right", "full") and expected.right_unmatched:
        reasons.append(f"{expected.right_unmatched} right row(s) had no matching key and were added")
    if x_summary.na_count or y_summary.na_count:
        reasons.append(
            f"Missing keys never match ({x_summary.na_count} left, {y_summary.na_count} right)"
        )

    expected_for_how = expected.for_join(how)
    if result.height != expected_for_how:
        reasons.append(
            f"Result has {result.height} rows but a {how} join on these keys yields "
            f"{expected_for_how} - it may have been filtered or joined on other keys"
        )

    explanation = JoinExplanation(
        how=how,
        n_x=x.height,
        n_y=y.height,
        n_result=result.height,
        expected_rows=expected,
        matched=match.matched_count,
        x_only=match.left_only_count,
        y_only=match.right_only_count,
        x_duplicates=x_summary.duplicate_key_count,
        y_duplicates=y_summary.duplicate_key_count,
        x_na=x_summary.na_count,
        y_na=y_summary.na_count,
        reasons=tuple(reasons),
    )
    logger.info(
        "join_explained",
        by=spec.describe(),
        how=how,
        n_result=result.height,
        expected=explanation.expected,
        matches_prediction=explanation.matches_prediction,
    )
    return explanation


@dataclass(frozen=True)
class TableDiff:
    before_rows: int
    after_rows: int
    before_cols: int
    after_cols: int
    columns_added: tuple[str, ...]
    columns_removed: tuple[str, ...]

    @property
    def row_change(self) -> int:
        return self.after_rows - self.before_rows


def diff_tables(before: Any, after: Any) -> TableDiff:
    """Shape and column changes between a table and its joined form."""
    before = coerce_table(before, "before")
    after = coerce_table(after, "after")
    before_set = set(before.columns)
    after_set = set(after.columns)
    return TableDiff(
        before_rows=before.height,
        after_rows=after.height,
        before_cols=before.width,
        after_cols=after.width,
        columns_added=tuple(c for c in after.columns if c not in before_set),
        columns_removed=tuple(c for c in before.columns if c not in after_set),
    )
