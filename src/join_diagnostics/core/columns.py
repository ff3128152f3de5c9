"""
Column model - closed variant over the value kinds a key column can hold.

Detectors dispatch on ColumnKind rather than probing values at runtime.
Tables are Polars DataFrames; pandas frames and row sequences are converted
once at the boundary by coerce_table().
"""

from __future__ import annotations

import math
from collections.abc import Iterator, Mapping, Sequence
from enum import Enum
from typing import Any

import pandas as pd
import polars as pl

from join_diagnostics.core.errors import InvalidInputError


class ColumnKind(Enum):
    """Kind of values held by a column, derived from its Polars dtype."""

    TEXT = "text"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    CATEGORICAL = "categorical"
    MISSING = "missing"
    OTHER = "other"

    @property
    def is_numeric(self) -> bool:
        return self in (ColumnKind.INTEGER, ColumnKind.FLOAT)

    @property
    def is_textual(self) -> bool:
        return self in (ColumnKind.TEXT, ColumnKind.CATEGORICAL)


def column_kind(dtype: pl.DataType) -> ColumnKind:
    """Map a Polars dtype onto the closed ColumnKind variant."""
    if dtype == pl.String:
        return ColumnKind.TEXT
    if isinstance(dtype, (pl.Categorical, pl.Enum)):
        return ColumnKind.CATEGORICAL
    if dtype == pl.Boolean:
        return ColumnKind.BOOLEAN
    if dtype == pl.Null:
        return ColumnKind.MISSING
    if dtype.is_integer():
        return ColumnKind.INTEGER
    if dtype.is_float() or dtype.is_decimal():
        return ColumnKind.FLOAT
    return ColumnKind.OTHER


def series_kind(series: pl.Series) -> ColumnKind:
    return column_kind(series.dtype)


def is_missing(value: Any) -> bool:
    """A value is missing when it is null or a float NaN."""
    if value is None:
        return True
    return isinstance(value, float) and math.isnan(value)


def coerce_table(data: Any, name: str = "table", columns: Sequence[str] = ()) -> pl.DataFrame:
    """
    Convert supported tabular inputs to a Polars DataFrame.

    Accepts Polars DataFrames (returned as-is), pandas DataFrames and
    sequences of row mappings. An empty row sequence has no columns to infer,
    so it becomes a zero-row frame holding `columns` typed as Null.

    Raises:
        InvalidInputError: If data is not tabular
    """
    if isinstance(data, pl.DataFrame):
        return data
    if isinstance(data, pd.DataFrame):
        return pl.from_pandas(data)
    if isinstance(data, Sequence) and not isinstance(data, (str, bytes)):
        if all(isinstance(row, Mapping) for row in data):
            if not data:
                return pl.DataFrame(schema={col: pl.Null for col in columns})
            return pl.DataFrame([dict(row) for row in data])
    raise InvalidInputError(f"`{name}` must be a data frame, got {type(data).__name__}")


def present_mask(table: pl.DataFrame, columns: Sequence[str]) -> pl.Expr:
    """Expression that is true where every key column holds a non-missing value."""
    conditions = []
    for col in columns:
        cond = pl.col(col).is_not_null()
        if table.schema[col].is_float():
            cond = cond & pl.col(col).is_not_nan()
        conditions.append(cond)
    return pl.all_horizontal(conditions)


def iter_keys(table: pl.DataFrame, columns: Sequence[str]) -> Iterator[Any]:
    """
    Yield the key of every row in order.

    Single-column keys are the raw value, composite keys a tuple. A key with
    any missing component is yielded as None.
    """
    if len(columns) == 1:
        for value in table.get_column(columns[0]).to_list():
            yield None if is_missing(value) else value
        return
    for row in table.select(columns).iter_rows():
        yield None if any(is_missing(v) for v in row) else row


def unique_present_values(series: pl.Series) -> list[Any]:
    """Unique non-missing values of a column in first-seen order."""
    seen: dict[Any, None] = {}
    for value in series.to_list():
        if not is_missing(value) and value not in seen:
            seen[value] = None
    return list(seen)
