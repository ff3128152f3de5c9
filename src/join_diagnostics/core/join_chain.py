"""
Multi-table join chain analysis.

Each step is analyzed with analyze(); its left join is then materialised so
the next step can refer to it as "result".
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import polars as pl
import structlog

from join_diagnostics.core.analyzer import AnalysisOptions, analyze
from join_diagnostics.core.columns import coerce_table
from join_diagnostics.core.errors import InvalidInputError
from join_diagnostics.core.join_report import JoinReport
from join_diagnostics.core.strict_join import align_key_dtypes, run_join

logger = structlog.get_logger(__name__)

PREVIOUS_RESULT = "result"


@dataclass(frozen=True)
class JoinChainStep:
    step: int
    left: str
    right: str
    left_rows: int
    right_rows: int
    report: JoinReport


def _step_field(spec: Mapping[str, Any], name: str, step: int) -> Any:
    try:
        return spec[name]
    except KeyError as e:
        raise InvalidInputError(f"Join step {step} is missing '{name}'") from e


def analyze_join_chain(
    tables: Mapping[str, Any],
    steps: Sequence[Mapping[str, Any]],
    options: AnalysisOptions | None = None,
) -> tuple[JoinChainStep, ...]:
    """
    Analyze a sequence of joins.

    Args:
        tables: Named input tables
        steps: One mapping per join with "left", "right" and "by". A left of
            "result" refers to the previous step's left join output.
        options: AnalysisOptions applied to every step

    Returns:
        One JoinChainStep per join, in order

    Raises:
        InvalidInputError: If tables is not a mapping, a step is malformed or
            names an unknown table
    """
    if not isinstance(tables, Mapping):
        raise InvalidInputError("tables must be a mapping of name -> data frame")

    frames = {name: coerce_table(table, name) for name, table in tables.items()}
    current: pl.DataFrame | None = None
    results: list[JoinChainStep] = []

    for i, spec in enumerate(steps, start=1):
        left_name = _step_field(spec, "left", i)
        right_name = _step_field(spec, "right", i)
        by = _step_field(spec, "by", i)

        if left_name == PREVIOUS_RESULT and current is not None:
            left = current
        elif left_name in frames:
            left = frames[left_name]
        else:
            raise InvalidInputError(f"Join step {i}: table '{left_name}' not found")
        if right_name not in frames:
            raise InvalidInputError(f"Join step {i}: table '{right_name}' not found")
        right = frames[right_name]

        report = analyze(left, right, by, options)
        results.append(
            JoinChainStep(
                step=i,
                left=left_name,
                right=right_name,
                left_rows=left.height,
                right_rows=right.height,
                report=report,
            )
        )
        logger.info(
            "join_chain_step_analyzed",
            step=i,
            left=left_name,
            right=right_name,
            n_issues=len(report.issues),
            expected_left_rows=report.expected_rows.left,
        )

        # Key type mismatches are already in the report; cast them so the step can be joined
        left, right = align_key_dtypes(left, right, report.key_spec)
        try:
            current = run_join(left, right, report.key_spec, "left")
        except InvalidInputError as e:
            raise InvalidInputError(f"Join step {i}: {e.reason}") from e

    logger.info("join_chain_analyzed", steps=len(results), total_issues=sum(len(r.report.issues) for r in results))
    return tuple(results)
