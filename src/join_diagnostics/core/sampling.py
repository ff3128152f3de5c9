"""
Row sampling for large-table analysis.

Sampling is a pre-processing step run before the deterministic core; the
core itself never samples. An explicit seed makes the subset reproducible.
"""

from __future__ import annotations

import polars as pl


def sample_rows(table: pl.DataFrame, sample_size: int, seed: int | None = None) -> tuple[pl.DataFrame, bool]:
    """
    Sample up to sample_size rows without replacement.

    Returns:
        (table, sampled) where sampled is False when the table already fits
    """
    if sample_size <= 0:
        raise ValueError(f"sample_size must be positive, got {sample_size}")
    if table.height <= sample_size:
        return table, False
    return table.sample(n=sample_size, with_replacement=False, shuffle=False, seed=seed), True
