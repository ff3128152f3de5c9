"""
Cartesian explosion risk.

When both sides repeat a key, the join emits count_x * count_y rows for it.
The expansion factor compares the predicted inner join size with the larger
input table.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog

from join_diagnostics.core.diagnostics_config import CARTESIAN_THRESHOLD, CARTESIAN_WORST_KEYS
from join_diagnostics.core.keys import KeyCounts

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class KeyExpansion:
    key: Any
    x_count: int
    y_count: int
    product: int


@dataclass(frozen=True)
class CartesianRisk:
    """
    Explosion analysis for one join.

    Attributes:
        has_explosion: expansion_factor > threshold
        expansion_factor: inner rows / max(rows_x, rows_y); 0 with no matches
        total_inner: Predicted inner join rows
        threshold: Multiplier the factor was compared against
        worst_keys: Largest per-key products, descending
    """

    has_explosion: bool
    expansion_factor: float
    total_inner: int
    threshold: float
    worst_keys: tuple[KeyExpansion, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "has_explosion": self.has_explosion,
            "expansion_factor": self.expansion_factor,
            "total_inner": self.total_inner,
            "threshold": self.threshold,
            "worst_keys": [
                {
                    "key": list(k.key) if isinstance(k.key, tuple) else k.key,
                    "x_count": k.x_count,
                    "y_count": k.y_count,
                    "product": k.product,
                }
                for k in self.worst_keys
            ],
        }


def estimate_cartesian_risk(
    x_counts: KeyCounts, y_counts: KeyCounts, threshold: float = CARTESIAN_THRESHOLD
) -> CartesianRisk:
    """
    Estimate how much a join multiplies rows.

    Zero matched keys is an explicit no-risk result, not an error.
    """
    expansions = [
        KeyExpansion(key, x_n, y_counts.get(key), x_n * y_counts.get(key))
        for key, x_n in x_counts.counts.items()
        if key in y_counts
    ]

    if not expansions:
        return CartesianRisk(has_explosion=False, expansion_factor=0.0, total_inner=0, threshold=threshold)

    total_inner = sum(e.product for e in expansions)
    max_input = max(x_counts.row_count, y_counts.row_count)
    expansion_factor = total_inner / max_input
    # sorted() is stable, so ties keep first-seen order
    worst = sorted(expansions, key=lambda e: e.product, reverse=True)[:CARTESIAN_WORST_KEYS]

    risk = CartesianRisk(
        has_explosion=expansion_factor > threshold,
        expansion_factor=expansion_factor,
        total_inner=total_inner,
        threshold=threshold,
        worst_keys=tuple(worst),
    )
    if risk.has_explosion:
        logger.warning(
            "cartesian_explosion_detected",
            expansion_factor=round(expansion_factor, 2),
            threshold=threshold,
            total_inner=total_inner,
        )
    return risk
