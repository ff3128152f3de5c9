"""
JoinReport - Typed, immutable aggregate of one join analysis.

Created once per analyze() call and read-only afterwards, so it can be shared
across threads and handed to renderers, loggers and repair helpers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from join_diagnostics.core.cardinality import Cardinality
from join_diagnostics.core.cartesian import CartesianRisk
from join_diagnostics.core.issues import Issue, IssueKind, Severity
from join_diagnostics.core.keys import KeySpec, KeySummary
from join_diagnostics.core.match_analysis import MatchAnalysis
from join_diagnostics.core.multicolumn import MultiColumnBreakdown
from join_diagnostics.core.row_prediction import ExpectedRowCounts


@dataclass(frozen=True)
class SamplingInfo:
    """
    Present when analyze() ran on sampled rows.

    Every metric in the report, expected_rows included, describes the sample.
    """

    sampled: bool
    sample_size: int
    seed: int | None
    original_x_rows: int
    original_y_rows: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "sampled": self.sampled,
            "sample_size": self.sample_size,
            "seed": self.seed,
            "original_x_rows": self.original_x_rows,
            "original_y_rows": self.original_y_rows,
        }


@dataclass(frozen=True)
class MemoryEstimate:
    """Approximate result size in bytes per join type."""

    inner: int
    left: int
    right: int
    full: int

    def formatted(self) -> dict[str, str]:
        return {name: format_bytes(getattr(self, name)) for name in ("inner", "left", "right", "full")}

    def to_dict(self) -> dict[str, int]:
        return {"inner": self.inner, "left": self.left, "right": self.right, "full": self.full}


def format_bytes(n_bytes: float) -> str:
    """Render a byte count as B, KB, MB or GB."""
    if n_bytes < 1024:
        return f"{round(n_bytes)} B"
    if n_bytes < 1024**2:
        return f"{n_bytes / 1024:.1f} KB"
    if n_bytes < 1024**3:
        return f"{n_bytes / 1024**2:.1f} MB"
    return f"{n_bytes / 1024**3:.1f} GB"


@dataclass(frozen=True)
class JoinReport:
    """
    Immutable result of a join analysis.

    Attributes:
        key_spec: Key columns on each side
        x_summary: Key quality of the left table
        y_summary: Key quality of the right table
        match_analysis: Unique key overlap
        expected_rows: Predicted row counts per join type
        issues: Findings in detection order
        cardinality: Observed relationship (1:1, 1:m, m:1, m:m)
        cartesian_risk: Explosion analysis
        multicolumn: Per-column breakdown (is_multicolumn False for single keys)
        sampling: Set when rows were sampled before analysis
        memory_estimate: Approximate result size per join type
    """

    key_spec: KeySpec
    x_summary: KeySummary
    y_summary: KeySummary
    match_analysis: MatchAnalysis
    expected_rows: ExpectedRowCounts
    issues: tuple[Issue, ...]
    cardinality: Cardinality
    cartesian_risk: CartesianRisk | None = None
    multicolumn: MultiColumnBreakdown | None = None
    sampling: SamplingInfo | None = None
    memory_estimate: MemoryEstimate | None = None

    @property
    def has_problems(self) -> bool:
        """True when any warning or error was detected."""
        return any(issue.is_problem for issue in self.issues)

    def issues_of(self, kind: IssueKind) -> tuple[Issue, ...]:
        return tuple(issue for issue in self.issues if issue.kind is kind)

    def issues_at(self, severity: Severity) -> tuple[Issue, ...]:
        return tuple(issue for issue in self.issues if issue.severity is severity)

    def scaled_expected_rows(self) -> ExpectedRowCounts:
        """
        Linearly scale sampled predictions to the original table sizes.

        Duplicate-driven growth does not scale linearly, so this is a rough
        estimate. Returns expected_rows unchanged when no sampling happened.
        """
        if self.sampling is None or not self.sampling.sampled:
            return self.expected_rows

        x_scale = self.sampling.original_x_rows / max(self.x_summary.row_count, 1)
        y_scale = self.sampling.original_y_rows / max(self.y_summary.row_count, 1)
        inner = round(self.expected_rows.inner * max(x_scale, y_scale))
        left_unmatched = round(self.expected_rows.left_unmatched * x_scale)
        right_unmatched = round(self.expected_rows.right_unmatched * y_scale)
        return ExpectedRowCounts(
            inner=inner,
            left=inner + left_unmatched,
            right=inner + right_unmatched,
            full=inner + left_unmatched + right_unmatched,
            left_unmatched=left_unmatched,
            right_unmatched=right_unmatched,
        )

    def to_dict(self) -> dict[str, Any]:
        """JSON-safe dictionary of every field."""
        return {
            "by": self.key_spec.to_dict(),
            "x_summary": self.x_summary.to_dict(),
            "y_summary": self.y_summary.to_dict(),
            "match_analysis": self.match_analysis.to_dict(),
            "expected_rows": self.expected_rows.to_dict(),
            "cardinality": self.cardinality.value,
            "issues": [issue.to_dict() for issue in self.issues],
            "cartesian_risk": self.cartesian_risk.to_dict() if self.cartesian_risk else None,
            "multicolumn": self.multicolumn.to_dict() if self.multicolumn else None,
            "sampling": self.sampling.to_dict() if self.sampling else None,
            "memory_estimate": self.memory_estimate.to_dict() if self.memory_estimate else None,
        }
