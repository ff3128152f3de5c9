"""Tests for type, factor level and numeric precision detectors."""

import polars as pl

from join_diagnostics.core.columns import ColumnKind, column_kind
from join_diagnostics.core.issues import IssueKind, Severity, TableSide
from join_diagnostics.core.type_diagnostics import (
    detect_factor_mismatch,
    detect_numeric_precision,
    detect_type_mismatch,
)


class TestColumnKind:
    def test_column_kind_maps_polars_dtypes(self):
        assert column_kind(pl.String) is ColumnKind.TEXT
        assert column_kind(pl.Int32) is ColumnKind.INTEGER
        assert column_kind(pl.Float64) is ColumnKind.FLOAT
        assert column_kind(pl.Boolean) is ColumnKind.BOOLEAN
        assert column_kind(pl.Categorical()) is ColumnKind.CATEGORICAL
        assert column_kind(pl.Null) is ColumnKind.MISSING
        assert column_kind(pl.Date) is ColumnKind.OTHER


class TestDetectTypeMismatch:
    def test_detect_type_mismatch_numeric_vs_text_warning(self):
        # Act
        issues = detect_type_mismatch(pl.Series([1, 2]), pl.Series(["1", "2"]), "id", "id")

        # Assert
        assert len(issues) == 1
        assert issues[0].kind is IssueKind.TYPE_MISMATCH
        assert issues[0].severity is Severity.WARNING
        assert issues[0].details["x_kind"] == "integer"

    def test_detect_type_mismatch_text_vs_categorical_info(self):
        issues = detect_type_mismatch(
            pl.Series(["a"]), pl.Series(["a"], dtype=pl.Categorical), "k", "k"
        )

        assert [i.severity for i in issues] == [Severity.INFO]

    def test_detect_type_mismatch_same_kind_noIssues(self):
        assert detect_type_mismatch(pl.Series([1]), pl.Series([2]), "a", "b") == []

    def test_detect_type_mismatch_large_int_vs_float_precisionWarning(self):
        # Arrange
        x = pl.Series([2**53 + 1], dtype=pl.Int64)
        y = pl.Series([1.0])

        # Act
        issues = detect_type_mismatch(x, y, "id", "id")

        # Assert
        assert len(issues) == 1
        assert issues[0].kind is IssueKind.PRECISION
        assert issues[0].table is TableSide.X

    def test_detect_type_mismatch_boolean_vs_integer_warning(self):
        issues = detect_type_mismatch(pl.Series([True, False]), pl.Series([1, 0]), "flag", "flag")

        assert len(issues) == 1
        assert issues[0].kind is IssueKind.TYPE_MISMATCH
        assert issues[0].severity is Severity.WARNING
        assert issues[0].details == {"x_kind": "boolean", "y_kind": "integer"}


class TestDetectFactorMismatch:
    def test_detect_factor_mismatch_levels_onEachSide(self):
        x = pl.Series(["a", "b"], dtype=pl.Categorical)
        y = pl.Series(["b", "c"], dtype=pl.Categorical)

        issues = detect_factor_mismatch(x, y, "k", "k")

        assert len(issues) == 1
        assert issues[0].kind is IssueKind.FACTOR_LEVELS
        assert list(issues[0].details["x_only_levels"]) == ["a"]
        assert list(issues[0].details["y_only_levels"]) == ["c"]

    def test_detect_factor_mismatch_enum_uses_declaredLevels(self):
        x = pl.Series(["a"], dtype=pl.Enum(["a", "b"]))
        y = pl.Series(["a"], dtype=pl.Enum(["a"]))

        issues = detect_factor_mismatch(x, y, "k", "k")

        assert list(issues[0].details["x_only_levels"]) == ["b"]

    def test_detect_factor_mismatch_text_columns_notApplicable(self):
        assert detect_factor_mismatch(pl.Series(["a"]), pl.Series(["b"]), "k", "k") == []


class TestDetectNumericPrecision:
    def test_detect_numeric_precision_fractional_floats_flagged(self):
        issues = detect_numeric_precision(pl.Series([1.5, 2.0]), "k", TableSide.X)

        assert [i.kind for i in issues] == [IssueKind.FLOAT_PRECISION]

    def test_detect_numeric_precision_integral_floats_clean(self):
        assert detect_numeric_precision(pl.Series([1.0, 2.0, None]), "k", TableSide.Y) == []

    def test_detect_numeric_precision_large_values_flagged(self):
        issues = detect_numeric_precision(pl.Series([1e17]), "k", TableSide.Y)

        assert [i.kind for i in issues] == [IssueKind.LARGE_NUMERIC]
        assert issues[0].table is TableSide.Y

    def test_detect_numeric_precision_integer_column_notApplicable(self):
        assert detect_numeric_precision(pl.Series([2**60]), "k", TableSide.X) == []
