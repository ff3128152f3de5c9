"""Tests for key_check() and key_duplicates()."""

import polars as pl
import pytest

from join_diagnostics.core.errors import ColumnNotFoundError, InvalidInputError
from join_diagnostics.core.key_check import DUPLICATE_COUNT_COLUMN, key_check, key_duplicates
from join_diagnostics.core.keys import summarize_keys


@pytest.fixture
def dup_df():
    return pl.DataFrame({"id": [1, 2, 2, 3, 3, 3, 4], "value": list("abcdefg")})


class TestKeyCheck:
    def test_key_check_clean_pair_isOk(self, clean_pair):
        x, y = clean_pair

        result = key_check(x, y, "id")

        assert result.is_ok
        assert result.problems == ()

    def test_key_check_duplicates_reportedWithRowCount(self, orders_df, customers_df):
        # Act
        result = key_check(orders_df, customers_df, "customer_id")

        # Assert
        assert not result.is_ok
        assert result.problems == ("Left table has 1 duplicate key(s) (2 rows affected)",)

    def test_key_check_whitespace_and_case_reported(self):
        x = pl.DataFrame({"k": ["a ", "B"]})
        y = pl.DataFrame({"k": ["a", "b"]})

        result = key_check(x, y, "k")

        assert "Left table column 'k' has whitespace issues (1 values)" in result.problems
        assert "Column 'k'/'k' has 1 case mismatch(es)" in result.problems

    def test_key_check_na_keys_reported(self):
        x = pl.DataFrame({"id": [1, None]})
        y = pl.DataFrame({"id": [1]})

        result = key_check(x, y, "id")

        assert result.problems == ("Left table has 1 NA key(s)",)

    def test_key_check_missing_column_raises(self, clean_pair):
        x, y = clean_pair

        with pytest.raises(ColumnNotFoundError):
            key_check(x, y, "nope")


class TestKeyDuplicates:
    def test_key_duplicates_all_rowsMatchDuplicateRowCount(self, dup_df):
        # Act
        result = key_duplicates(dup_df, "id")

        # Assert
        assert result.height == summarize_keys(dup_df, ["id"]).duplicate_row_count
        assert result["id"].to_list() == [2, 2, 3, 3, 3]
        assert result[DUPLICATE_COUNT_COLUMN].to_list() == [2, 2, 3, 3, 3]

    def test_key_duplicates_first_oneRowPerKey(self, dup_df):
        result = key_duplicates(dup_df, "id", keep="first")

        assert sorted(zip(result["id"].to_list(), result["value"].to_list())) == [(2, "b"), (3, "d")]

    def test_key_duplicates_last_oneRowPerKey(self, dup_df):
        result = key_duplicates(dup_df, "id", keep="last")

        assert sorted(zip(result["id"].to_list(), result["value"].to_list())) == [(2, "c"), (3, "f")]

    def test_key_duplicates_none_emptyWithSameSchema(self, clean_pair):
        x, _ = clean_pair

        result = key_duplicates(x, "id")

        assert result.height == 0
        assert result.columns == ["id", "value", DUPLICATE_COUNT_COLUMN]

    def test_key_duplicates_missing_keys_neverReported(self):
        result = key_duplicates(pl.DataFrame({"id": [None, None, 1]}, schema={"id": pl.Int64}), "id")

        assert result.height == 0

    def test_key_duplicates_composite_key(self):
        table = pl.DataFrame({"a": [1, 1, 1], "b": ["x", "x", "y"]})

        result = key_duplicates(table, ["a", "b"])

        assert result.height == 2

    def test_key_duplicates_invalid_keep_raises(self, dup_df):
        with pytest.raises(InvalidInputError):
            key_duplicates(dup_df, "id", keep="middle")


class TestKeyCheckEmptyInput:
    def test_key_check_empty_row_list_passes(self):
        result = key_check([], [{"id": 1}], "id")

        assert result.is_ok
        assert result.problems == ()
