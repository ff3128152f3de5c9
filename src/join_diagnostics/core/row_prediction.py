"""
Row count prediction per join type.

A join takes the Cartesian product within each matched key group, so the
inner result is the sum over shared keys of count_x * count_y. Counts are
Python ints and never overflow.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog

from join_diagnostics.core.keys import KeyCounts

logger = structlog.get_logger(__name__)

JOIN_TYPES = ("inner", "left", "right", "full")


@dataclass(frozen=True)
class ExpectedRowCounts:
    """
    Predicted result sizes.

    Invariant: full == inner + left_unmatched + right_unmatched.
    """

    inner: int
    left: int
    right: int
    full: int
    left_unmatched: int
    right_unmatched: int

    def for_join(self, how: str) -> int:
        if how not in JOIN_TYPES:
            raise ValueError(f"Unknown join type: {how}")
        return getattr(self, how)

    def to_dict(self) -> dict[str, Any]:
        return {"inner": self.inner, "left": self.left, "right": self.right, "full": self.full}


def predict_row_counts(x_counts: KeyCounts, y_counts: KeyCounts) -> ExpectedRowCounts:
    """
    Predict inner/left/right/full join sizes from key multiplicities.

    Rows with missing keys never match and surface as unmatched rows.
    """
    inner = 0
    x_matched_rows = 0
    y_matched_rows = 0
    for key, x_n in x_counts.counts.items():
        y_n = y_counts.get(key)
        if y_n:
            inner += x_n * y_n
            x_matched_rows += x_n
            y_matched_rows += y_n

    left_unmatched = x_counts.row_count - x_matched_rows
    right_unmatched = y_counts.row_count - y_matched_rows

    expected = ExpectedRowCounts(
        inner=inner,
        left=inner + left_unmatched,
        right=inner + right_unmatched,
        full=inner + left_unmatched + right_unmatched,
        left_unmatched=left_unmatched,
        right_unmatched=right_unmatched,
    )
    logger.debug("row_counts_predicted", **expected.to_dict())
    return expected
