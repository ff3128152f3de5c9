"""
Cardinality classification and enforcement.

Cardinality is a coarse contract ("which side must be unique"), not a count;
duplicate detail lives in KeySummary. The enforcement rules are asymmetric:
1:m constrains x, m:1 constrains y.
"""

from __future__ import annotations

from enum import Enum


class Cardinality(Enum):
    """Relationship between left and right keys."""

    ONE_TO_ONE = "1:1"
    ONE_TO_MANY = "1:m"
    MANY_TO_ONE = "m:1"
    MANY_TO_MANY = "m:m"

    def __str__(self) -> str:
        return self.value


_ALIASES = {
    "1:1": Cardinality.ONE_TO_ONE,
    "1:m": Cardinality.ONE_TO_MANY,
    "1:many": Cardinality.ONE_TO_MANY,
    "m:1": Cardinality.MANY_TO_ONE,
    "many:1": Cardinality.MANY_TO_ONE,
    "m:m": Cardinality.MANY_TO_MANY,
    "many:many": Cardinality.MANY_TO_MANY,
}


def parse_cardinality(value: str | Cardinality) -> Cardinality:
    """Parse "1:1", "1:m"/"1:many", "m:1"/"many:1" or "m:m"/"many:many"."""
    if isinstance(value, Cardinality):
        return value
    try:
        return _ALIASES[value.strip().lower()]
    except KeyError as e:
        raise ValueError(f"Unknown cardinality: {value!r}. Expected one of {sorted(_ALIASES)}") from e


def classify_cardinality(x_has_duplicates: bool, y_has_duplicates: bool) -> Cardinality:
    if x_has_duplicates and y_has_duplicates:
        return Cardinality.MANY_TO_MANY
    if x_has_duplicates:
        return Cardinality.MANY_TO_ONE
    if y_has_duplicates:
        return Cardinality.ONE_TO_MANY
    return Cardinality.ONE_TO_ONE


def cardinality_violation(
    expected: str | Cardinality, x_has_duplicates: bool, y_has_duplicates: bool
) -> str | None:
    """
    Check an expected cardinality against observed duplicates.

    Returns:
        Reason string if the expectation is violated, None otherwise
    """
    expected = parse_cardinality(expected)
    actual = classify_cardinality(x_has_duplicates, y_has_duplicates)

    if expected is Cardinality.ONE_TO_ONE and actual is not Cardinality.ONE_TO_ONE:
        return f"keys must be unique on both sides (found {actual})"
    if expected is Cardinality.ONE_TO_MANY and x_has_duplicates:
        return "left keys must be unique"
    if expected is Cardinality.MANY_TO_ONE and y_has_duplicates:
        return "right keys must be unique"
    return None
