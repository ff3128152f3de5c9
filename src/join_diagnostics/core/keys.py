"""
Key derivation and summarization.

This module turns one or more key columns into per-row keys and computes:
- Occurrence counts per present key (first-seen order)
- Row, unique, duplicate and NA counts for a table side

Composite keys are true tuples, never separator-joined strings, so values
cannot collide across column boundaries. A composite key with any missing
component is itself missing.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

import polars as pl
import structlog

from join_diagnostics.core.columns import iter_keys, present_mask
from join_diagnostics.core.errors import ColumnNotFoundError, InvalidInputError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class KeySpec:
    """
    Resolved join key specification.

    Attributes:
        x_columns: Key columns in the left table, in key order
        y_columns: Key columns in the right table, parallel to x_columns
    """

    x_columns: tuple[str, ...]
    y_columns: tuple[str, ...]

    @property
    def is_composite(self) -> bool:
        return len(self.x_columns) > 1

    @property
    def pairs(self) -> tuple[tuple[str, str], ...]:
        return tuple(zip(self.x_columns, self.y_columns))

    @property
    def same_names(self) -> bool:
        return self.x_columns == self.y_columns

    def describe(self) -> str:
        """Human-readable form, e.g. "id" or "id = customer_id, date"."""
        parts = [x if x == y else f"{x} = {y}" for x, y in self.pairs]
        return ", ".join(parts)

    def to_dict(self) -> dict[str, list[str]]:
        return {"x_columns": list(self.x_columns), "y_columns": list(self.y_columns)}


def resolve_key_spec(by: Any) -> KeySpec:
    """
    Normalize the accepted key specifications into a KeySpec.

    Accepted forms:
    - "id" (single shared column)
    - ["id", "date"] (shared column names)
    - [("id", "customer_id"), ...] (x/y pairs when names differ)
    - {"id": "customer_id"} (mapping x -> y)

    Raises:
        InvalidInputError: If the spec is empty or malformed
    """
    if isinstance(by, KeySpec):
        return by
    if isinstance(by, str):
        return KeySpec((by,), (by,))
    if isinstance(by, Mapping):
        items = list(by.items())
    elif isinstance(by, Sequence):
        items = []
        for entry in by:
            if isinstance(entry, str):
                items.append((entry, entry))
            elif isinstance(entry, Sequence) and len(entry) == 2 and all(isinstance(e, str) for e in entry):
                items.append((entry[0], entry[1]))
            else:
                raise InvalidInputError(f"Invalid key specification entry: {entry!r}")
    else:
        raise InvalidInputError(f"Key specification must be a string, list or mapping, got {type(by).__name__}")

    if not items:
        raise InvalidInputError("Key specification must name at least one column")

    return KeySpec(tuple(x for x, _ in items), tuple(y for _, y in items))


def validate_key_columns(x: pl.DataFrame, y: pl.DataFrame | None, key_spec: KeySpec) -> None:
    """
    Check that every key column exists on its side.

    Run once by the orchestrator before any summarizer or detector.

    Raises:
        ColumnNotFoundError: With the offending side and missing columns
    """
    missing_x = [col for col in key_spec.x_columns if col not in x.columns]
    if missing_x:
        raise ColumnNotFoundError("x", missing_x)
    if y is not None:
        missing_y = [col for col in key_spec.y_columns if col not in y.columns]
        if missing_y:
            raise ColumnNotFoundError("y", missing_y)


@dataclass(frozen=True)
class KeyCounts:
    """
    Occurrence counts of present keys in one table.

    Attributes:
        counts: Read-only mapping key -> occurrences, in first-seen order
        na_count: Rows whose key is missing
        row_count: Total rows
    """

    counts: Mapping[Any, int]
    na_count: int
    row_count: int

    def __contains__(self, key: Any) -> bool:
        return key in self.counts

    def get(self, key: Any) -> int:
        return self.counts.get(key, 0)

    @property
    def keys(self) -> list[Any]:
        return list(self.counts)


@dataclass(frozen=True)
class KeySummary:
    """
    Key quality summary for one table side.

    Attributes:
        row_count: Total rows
        unique_count: Distinct present keys
        duplicate_key_count: Distinct keys appearing at least twice
        duplicate_row_count: Rows carrying a duplicated key
        na_count: Rows whose key is missing
        duplicate_keys: Duplicated keys in first-seen order
    """

    row_count: int
    unique_count: int
    duplicate_key_count: int
    duplicate_row_count: int
    na_count: int
    duplicate_keys: tuple[Any, ...]

    @property
    def has_duplicates(self) -> bool:
        return self.duplicate_key_count > 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "row_count": self.row_count,
            "unique_count": self.unique_count,
            "duplicate_key_count": self.duplicate_key_count,
            "duplicate_row_count": self.duplicate_row_count,
            "na_count": self.na_count,
            "duplicate_keys": [list(k) if isinstance(k, tuple) else k for k in self.duplicate_keys],
        }


def count_keys(table: pl.DataFrame, columns: Sequence[str]) -> KeyCounts:
    """
    Count occurrences of each present key.

    Args:
        table: Polars DataFrame
        columns: Key column names (already validated)

    Returns:
        KeyCounts with first-seen key order
    """
    columns = list(columns)
    present = table.select(columns).filter(present_mask(table, columns))
    grouped = present.group_by(columns, maintain_order=True).len(name="__count")

    counts: dict[Any, int] = {}
    for row in grouped.iter_rows():
        key = row[0] if len(columns) == 1 else tuple(row[:-1])
        counts[key] = int(row[-1])

    return KeyCounts(
        counts=MappingProxyType(counts),
        na_count=table.height - present.height,
        row_count=table.height,
    )


def summarize_counts(key_counts: KeyCounts) -> KeySummary:
    """Derive a KeySummary from precomputed KeyCounts."""
    duplicates = [(key, n) for key, n in key_counts.counts.items() if n > 1]
    return KeySummary(
        row_count=key_counts.row_count,
        unique_count=len(key_counts.counts),
        duplicate_key_count=len(duplicates),
        duplicate_row_count=sum(n for _, n in duplicates),
        na_count=key_counts.na_count,
        duplicate_keys=tuple(key for key, _ in duplicates),
    )


def summarize_keys(table: pl.DataFrame, columns: Sequence[str]) -> KeySummary:
    """
    Summarize key quality for a table.

    Empty tables yield an all-zero summary.
    """
    summary = summarize_counts(count_keys(table, columns))
    logger.debug(
        "key_summary_computed",
        columns=list(columns),
        row_count=summary.row_count,
        unique_count=summary.unique_count,
        duplicate_key_count=summary.duplicate_key_count,
        na_count=summary.na_count,
    )
    return summary


def present_keys(table: pl.DataFrame, columns: Sequence[str]) -> list[Any]:
    """All present keys in row order (duplicates kept, missing dropped)."""
    return [key for key in iter_keys(table, columns) if key is not None]
