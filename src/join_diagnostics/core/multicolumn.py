"""Per-column match attribution for composite keys."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

import polars as pl

from join_diagnostics.core.keys import KeySpec
from join_diagnostics.core.match_analysis import analyze_match


@dataclass(frozen=True)
class ColumnMatch:
    x_column: str
    y_column: str
    x_unique: int
    y_unique: int
    matched: int
    x_only: int
    y_only: int
    match_rate: float  # NaN when the x column has no present values

    def to_dict(self) -> dict[str, Any]:
        return {
            "x_column": self.x_column,
            "y_column": self.y_column,
            "x_unique": self.x_unique,
            "y_unique": self.y_unique,
            "matched": self.matched,
            "x_only": self.x_only,
            "y_only": self.y_only,
            "match_rate": None if math.isnan(self.match_rate) else self.match_rate,
        }


@dataclass(frozen=True)
class MultiColumnBreakdown:
    """
    Match rates per key column.

    problem_column is the x column with the lowest defined match rate
    (first in key order on ties), or None when no rate is defined.
    """

    is_multicolumn: bool
    columns: tuple[ColumnMatch, ...] = ()
    problem_column: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_multicolumn": self.is_multicolumn,
            "columns": [c.to_dict() for c in self.columns],
            "problem_column": self.problem_column,
        }


def analyze_multicolumn(x: pl.DataFrame, y: pl.DataFrame, key_spec: KeySpec) -> MultiColumnBreakdown:
    """Break a composite key's mismatch down column by column."""
    if not key_spec.is_composite:
        return MultiColumnBreakdown(is_multicolumn=False)

    columns = []
    for x_col, y_col in key_spec.pairs:
        match = analyze_match(x.get_column(x_col).to_list(), y.get_column(y_col).to_list())
        columns.append(
            ColumnMatch(
                x_column=x_col,
                y_column=y_col,
                x_unique=match.matched_count + match.left_only_count,
                y_unique=match.matched_count + match.right_only_count,
                matched=match.matched_count,
                x_only=match.left_only_count,
                y_only=match.right_only_count,
                match_rate=match.match_rate,
            )
        )

    problem = None
    lowest = math.inf
    for column in columns:
        if not math.isnan(column.match_rate) and column.match_rate < lowest:
            lowest = column.match_rate
            problem = column.x_column

    return MultiColumnBreakdown(is_multicolumn=True, columns=tuple(columns), problem_column=problem)
