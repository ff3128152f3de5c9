"""Key overlap between two tables under set semantics (missing keys excluded)."""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from join_diagnostics.core.columns import is_missing


@dataclass(frozen=True)
class MatchAnalysis:
    """
    Overlap of unique left and right keys.

    match_rate is matched_count / unique left keys, or NaN when the left side
    has no unique keys. Check has_match_rate before treating it as a number.
    """

    matched_count: int
    left_only_count: int
    right_only_count: int
    match_rate: float
    matched_keys: tuple[Any, ...]
    left_only_keys: tuple[Any, ...]
    right_only_keys: tuple[Any, ...]

    @property
    def has_match_rate(self) -> bool:
        return not math.isnan(self.match_rate)

    def to_dict(self) -> dict[str, Any]:
        return {
            "matched_count": self.matched_count,
            "left_only_count": self.left_only_count,
            "right_only_count": self.right_only_count,
            "match_rate": self.match_rate if self.has_match_rate else None,
        }


def _unique_in_order(keys: Iterable[Any]) -> dict[Any, None]:
    return dict.fromkeys(key for key in keys if not is_missing(key))


def analyze_match(x_keys: Iterable[Any], y_keys: Iterable[Any]) -> MatchAnalysis:
    """
    Compare two key collections.

    Args:
        x_keys: Left keys (duplicates and missing values allowed)
        y_keys: Right keys

    Returns:
        MatchAnalysis whose key tuples follow first-seen order
    """
    x_unique = _unique_in_order(x_keys)
    y_unique = _unique_in_order(y_keys)

    matched = tuple(key for key in x_unique if key in y_unique)
    left_only = tuple(key for key in x_unique if key not in y_unique)
    right_only = tuple(key for key in y_unique if key not in x_unique)

    match_rate = len(matched) / len(x_unique) if x_unique else math.nan

    return MatchAnalysis(
        matched_count=len(matched),
        left_only_count=len(left_only),
        right_only_count=len(right_only),
        match_rate=match_rate,
        matched_keys=matched,
        left_only_keys=left_only,
        right_only_keys=right_only,
    )
