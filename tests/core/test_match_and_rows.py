"""Tests for key overlap, row count prediction and cardinality."""

import math

import polars as pl
import pytest

from join_diagnostics.core.cardinality import (
    Cardinality,
    cardinality_violation,
    classify_cardinality,
    parse_cardinality,
)
from join_diagnostics.core.keys import count_keys
from join_diagnostics.core.match_analysis import analyze_match
from join_diagnostics.core.row_prediction import predict_row_counts


def _counts(values):
    return count_keys(pl.DataFrame({"k": values}), ["k"])


class TestAnalyzeMatch:
    """Test suite for MatchAnalysis."""

    def test_analyze_match_overlap_countsAndOrder(self):
        # Act
        match = analyze_match([1, 2, 2, 3], [4, 3, 2])

        # Assert
        assert match.matched_count == 2
        assert match.matched_keys == (2, 3)
        assert match.left_only_keys == (1,)
        assert match.right_only_keys == (4,)
        assert match.match_rate == pytest.approx(2 / 3)

    def test_analyze_match_empty_left_rateIsNan(self):
        match = analyze_match([], [1, 2])

        assert math.isnan(match.match_rate)
        assert not match.has_match_rate
        assert match.to_dict()["match_rate"] is None

    def test_analyze_match_missing_values_excluded(self):
        match = analyze_match([None, 1, float("nan")], [1, None])

        assert match.matched_count == 1
        assert match.left_only_count == 0
        assert match.match_rate == 1.0

    def test_analyze_match_counts_partitionUniqueKeys(self):
        x = ["a", "b", "c", "c"]
        y = ["b", "c", "d"]

        match = analyze_match(x, y)

        assert match.matched_count + match.left_only_count == len(set(x))
        assert match.matched_count + match.right_only_count == len(set(y))


class TestPredictRowCounts:
    """Test suite for ExpectedRowCounts."""

    def test_predict_row_counts_scenarioA_duplicateOnLeft(self):
        # Arrange
        x = _counts([1, 2, 2, 3])
        y = _counts([1, 2, 3])

        # Act
        expected = predict_row_counts(x, y)

        # Assert
        assert expected.to_dict() == {"inner": 4, "left": 4, "right": 4, "full": 4}

    def test_predict_row_counts_scenarioB_duplicateOnRight(self):
        expected = predict_row_counts(_counts([1, 2]), _counts([1, 1, 2, 3]))

        assert expected.inner == 3
        assert expected.left == 3
        assert expected.right == 4
        assert expected.full == 4

    def test_predict_row_counts_missing_keys_countAsUnmatched(self):
        expected = predict_row_counts(_counts([1, None]), _counts([1, None]))

        assert expected.inner == 1
        assert expected.left == 2
        assert expected.right == 2
        assert expected.full == 3

    def test_predict_row_counts_full_equalsInnerPlusUnmatched(self):
        expected = predict_row_counts(_counts(["a", "a", "b", "x"]), _counts(["a", "b", "b", "y", "z"]))

        assert expected.full == expected.inner + expected.left_unmatched + expected.right_unmatched
        assert expected.left >= expected.inner
        assert expected.right >= expected.inner

    def test_predict_row_counts_missing_keys_bothSides_innerBoundedByOuter(self):
        # Arrange
        x_counts = _counts([1, 1, None, 2, None])
        y_counts = _counts([None, 1, 3, None])

        # Act
        expected = predict_row_counts(x_counts, y_counts)

        # Assert
        assert expected.inner == 2
        assert expected.inner <= expected.left
        assert expected.inner <= expected.right
        assert (expected.left, expected.right, expected.full) == (5, 5, 8)

    def test_predict_row_counts_swapped_tables_mirrorOuterJoins(self):
        x_counts = _counts(["a", "a", "b", "x"])
        y_counts = _counts(["a", "b", "b", "y", None])

        forward = predict_row_counts(x_counts, y_counts)
        swapped = predict_row_counts(y_counts, x_counts)

        assert swapped.inner == forward.inner
        assert (swapped.left, swapped.right) == (forward.right, forward.left)
        assert swapped.full == forward.full

    def test_expected_for_join_unknownType_raisesValueError(self):
        expected = predict_row_counts(_counts([1]), _counts([1]))

        with pytest.raises(ValueError, match="Unknown join type"):
            expected.for_join("cross")


class TestCardinality:
    """Test suite for classification and enforcement."""

    @pytest.mark.parametrize(
        "x_dups,y_dups,expected",
        [
            (False, False, Cardinality.ONE_TO_ONE),
            (True, False, Cardinality.MANY_TO_ONE),
            (False, True, Cardinality.ONE_TO_MANY),
            (True, True, Cardinality.MANY_TO_MANY),
        ],
    )
    def test_classify_cardinality_allCombinations(self, x_dups, y_dups, expected):
        assert classify_cardinality(x_dups, y_dups) is expected

    @pytest.mark.parametrize(
        "x_dups,y_dups,swapped",
        [
            (False, False, Cardinality.ONE_TO_ONE),
            (True, True, Cardinality.MANY_TO_MANY),
            (False, True, Cardinality.MANY_TO_ONE),
            (True, False, Cardinality.ONE_TO_MANY),
        ],
    )
    def test_classify_cardinality_swapped_sides(self, x_dups, y_dups, swapped):
        assert classify_cardinality(y_dups, x_dups) is swapped

    def test_parse_cardinality_aliases_normalize(self):
        assert parse_cardinality("1:many") is Cardinality.ONE_TO_MANY
        assert parse_cardinality(" MANY:1 ") is Cardinality.MANY_TO_ONE
        assert parse_cardinality("many:many") is Cardinality.MANY_TO_MANY
        assert str(Cardinality.ONE_TO_MANY) == "1:m"

    def test_parse_cardinality_unknown_raisesValueError(self):
        with pytest.raises(ValueError, match="Unknown cardinality"):
            parse_cardinality("2:3")

    def test_cardinality_violation_oneToOne_rejectsAnyDuplicates(self):
        assert "unique on both sides" in cardinality_violation("1:1", False, True)
        assert cardinality_violation("1:1", False, False) is None

    def test_cardinality_violation_oneToMany_constrainsLeftOnly(self):
        assert cardinality_violation("1:m", False, True) is None
        assert cardinality_violation("1:m", True, False) == "left keys must be unique"

    def test_cardinality_violation_manyToOne_constrainsRightOnly(self):
        assert cardinality_violation("m:1", True, False) is None
        assert cardinality_violation("m:1", False, True) == "right keys must be unique"

    def test_cardinality_violation_manyToMany_acceptsAll(self):
        assert cardinality_violation("m:m", True, True) is None
