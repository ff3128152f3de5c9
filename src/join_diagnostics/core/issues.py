"""
Issue - typed finding produced by the detectors.

Issues are pure findings: they describe the input and never modify it.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any


class IssueKind(Enum):
    """Every kind of finding the engine can report."""

    DUPLICATES = "duplicates"
    NA = "na"
    WHITESPACE = "whitespace"
    CASE_MISMATCH = "case_mismatch"
    ENCODING = "encoding"
    EMPTY_STRING = "empty_string"
    TYPE_MISMATCH = "type_mismatch"
    PRECISION = "precision"
    FACTOR_LEVELS = "factor_levels"
    FLOAT_PRECISION = "float_precision"
    LARGE_NUMERIC = "large_numeric"
    NEAR_MATCH = "near_match"
    CARTESIAN_EXPLOSION = "cartesian_explosion"


class Severity(Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class TableSide(Enum):
    X = "x"
    Y = "y"
    BOTH = "both"
    NONE = "none"


@dataclass(frozen=True)
class Issue:
    """
    One detected problem.

    Attributes:
        kind: What was detected
        severity: info, warning or error
        table: Which side is affected
        columns: Affected column(s); x column first for two-sided findings
        message: Human-readable summary
        details: Read-only payload specific to the kind (values, pairs, counts)
    """

    kind: IssueKind
    severity: Severity
    table: TableSide
    columns: tuple[str, ...]
    message: str
    details: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "details", MappingProxyType(dict(self.details)))

    @property
    def is_problem(self) -> bool:
        """True for warnings and errors."""
        return self.severity is not Severity.INFO

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "severity": self.severity.value,
            "table": self.table.value,
            "columns": list(self.columns),
            "message": self.message,
            "details": {k: _jsonable(v) for k, v in self.details.items()},
        }


def _jsonable(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, Mapping):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)
