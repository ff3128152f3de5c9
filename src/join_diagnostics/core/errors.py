"""Exception taxonomy for join diagnostics.

All errors are caller-correctable input problems. Undefined metrics (such as a
match rate over zero keys) are sentinel values, not exceptions.
"""

from __future__ import annotations


class JoinDiagnosticsError(ValueError):
    """Base class for all join diagnostic failures."""

    pass


class InvalidInputError(JoinDiagnosticsError):
    """Raised when an argument is not tabular or the key spec is malformed."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class ColumnNotFoundError(JoinDiagnosticsError):
    """Raised when key columns are absent from one side of the join."""

    def __init__(self, side: str, missing_columns: list[str] | tuple[str, ...]):
        self.side = side
        self.missing_columns = tuple(missing_columns)
        super().__init__(f"Column(s) not found in {side}: {', '.join(self.missing_columns)}")


class CardinalityViolationError(JoinDiagnosticsError):
    """Raised by the strict join when the expected relationship does not hold."""

    def __init__(self, expected: str, actual: str, reason: str):
        self.expected = expected
        self.actual = actual
        self.reason = reason
        super().__init__(f"Cardinality violation: expected {expected} but found {actual} ({reason})")
