"""Tests for text key detectors."""

import polars as pl
import pytest

from join_diagnostics.core import string_diagnostics
from join_diagnostics.core.string_diagnostics import (
    detect_case_mismatch,
    detect_empty_strings,
    detect_encoding_issues,
    detect_near_matches,
    detect_whitespace,
    levenshtein,
)


class TestDetectWhitespace:
    def test_detect_whitespace_scenarioC_leadingAndTrailing(self):
        # Arrange
        series = pl.Series(["A ", " B", "C"])

        # Act
        result = detect_whitespace(series)

        # Assert
        assert result.trailing == (0,)
        assert result.leading == (1,)
        assert set(result.affected_values) == {"A ", " B"}
        assert result.has_issues

    def test_detect_whitespace_numeric_column_notApplicable(self):
        result = detect_whitespace(pl.Series([1, 2, 3]))

        assert not result.has_issues

    def test_detect_whitespace_nonBreakingSpace_notCountedAsWhitespace(self):
        result = detect_whitespace(pl.Series(["A\u00a0"]))

        assert not result.has_issues

    def test_detect_whitespace_categorical_column_applies(self):
        result = detect_whitespace(pl.Series(["A ", "B"], dtype=pl.Categorical))

        assert result.affected_values == ("A ",)

    def test_detect_whitespace_nulls_ignored(self):
        result = detect_whitespace(pl.Series(["A", None]))

        assert not result.has_issues


class TestDetectCaseMismatch:
    def test_detect_case_mismatch_scenarioD_pairsCounterparts(self):
        # Arrange
        x = pl.Series(["ABC", "def"])
        y = pl.Series(["abc", "DEF"])

        # Act
        result = detect_case_mismatch(x, y)

        # Assert
        assert result.mismatches == (("ABC", "abc"), ("def", "DEF"))

    def test_detect_case_mismatch_exact_match_notReported(self):
        result = detect_case_mismatch(pl.Series(["abc"]), pl.Series(["abc", "ABC"]))

        assert not result.has_issues

    def test_detect_case_mismatch_numeric_side_notApplicable(self):
        result = detect_case_mismatch(pl.Series(["1"]), pl.Series([1]))

        assert not result.has_issues


class TestDetectEncodingIssues:
    def test_detect_encoding_invisible_chars_reported(self):
        result = detect_encoding_issues(pl.Series(["ab\u200bc", "abc"]))

        assert result.invisible_chars == (0,)
        assert result.affected_values == ("ab\u200bc",)
        assert result.has_issues

    def test_detect_encoding_mixed_normalization_reported(self):
        # Arrange: precomposed and decomposed forms of "caf\u00e9"
        composed = "caf\u00e9"
        decomposed = "cafe\u0301"

        # Act
        result = detect_encoding_issues(pl.Series([composed, decomposed]))

        # Assert
        assert result.mixed_normalization
        assert result.non_normalized_values == (decomposed,)

    def test_detect_encoding_single_normalization_clean(self):
        result = detect_encoding_issues(pl.Series(["cafe\u0301", "plain"]))

        assert not result.mixed_normalization
        assert not result.has_issues


class TestDetectEmptyStrings:
    def test_detect_empty_strings_indices(self):
        result = detect_empty_strings(pl.Series(["", "a", None, ""]))

        assert result.indices == (0, 3)
        assert result.n_empty == 2

    def test_detect_empty_strings_numeric_notApplicable(self):
        assert not detect_empty_strings(pl.Series([0, 1])).has_issues


class TestLevenshtein:
    @pytest.mark.parametrize(
        "s1,s2,expected",
        [
            ("kitten", "sitting", 3),
            ("", "abc", 3),
            ("abc", "abc", 0),
            ("flaw", "lawn", 2),
        ],
    )
    def test_levenshtein_known_distances(self, s1, s2, expected):
        assert levenshtein(s1, s2) == expected
        assert levenshtein(s2, s1) == expected

    @pytest.mark.parametrize(
        "a,b,c",
        [
            ("kitten", "sitting", "sittin"),
            ("flaw", "lawn", "law"),
            ("", "abc", "abd"),
            ("delta", "delte", "dolte"),
        ],
    )
    def test_levenshtein_triangle_inequality_holds(self, a, b, c):
        assert levenshtein(a, c) <= levenshtein(a, b) + levenshtein(b, c)


class TestDetectNearMatches:
    def test_detect_near_matches_single_typo_found(self):
        result = detect_near_matches(pl.Series(["delta"]), pl.Series(["delte"]))

        assert len(result.near_matches) == 1
        match = result.near_matches[0]
        assert (match.x_key, match.y_key, match.distance) == ("delta", "delte", 1)

    def test_detect_near_matches_short_keys_skipped(self):
        result = detect_near_matches(pl.Series(["ab"]), pl.Series(["ac"]))

        assert not result.has_issues

    def test_detect_near_matches_sorted_ascendingByDistance(self):
        result = detect_near_matches(pl.Series(["abcdef"]), pl.Series(["abcxyf", "abcdeg"]))

        assert [m.distance for m in result.near_matches] == [1, 2]

    def test_detect_near_matches_stops_atMaxCandidates(self):
        result = detect_near_matches(
            pl.Series(["apple", "grape"]), pl.Series(["appla", "grapa"]), max_candidates=1
        )

        assert len(result.near_matches) == 1

    def test_detect_near_matches_matched_keys_excluded(self):
        result = detect_near_matches(pl.Series(["delta"]), pl.Series(["delta", "delte"]))

        assert not result.has_issues

    def test_detect_near_matches_x_sample_caps_unmatchedKeys(self):
        # Arrange: 50 unrelated unmatched keys come before the typo
        x = pl.Series([f"q{i:04d}" for i in range(50)] + ["delte"])
        y = pl.Series(["delta"])

        # Act
        capped = detect_near_matches(x, y, x_sample=50)
        widened = detect_near_matches(x, y, x_sample=51)

        # Assert
        assert not capped.has_issues
        assert [m.x_key for m in widened.near_matches] == ["delte"]

    def test_detect_near_matches_y_sample_caps_rightKeys(self):
        x = pl.Series(["delta"])
        y = pl.Series([f"q{i:04d}" for i in range(100)] + ["delte"])

        assert not detect_near_matches(x, y, y_sample=100).has_issues
        assert [m.y_key for m in detect_near_matches(x, y, y_sample=101).near_matches] == ["delte"]

    def test_detect_near_matches_length_gap_skipsDistance(self, monkeypatch):
        # Arrange
        calls = []

        def recording_levenshtein(s1, s2):
            calls.append((s1, s2))
            return levenshtein(s1, s2)

        monkeypatch.setattr(string_diagnostics, "levenshtein", recording_levenshtein)

        # Act
        result = detect_near_matches(pl.Series(["abcdef"]), pl.Series(["abcdefghi", "abcdeg"]), max_distance=2)

        # Assert
        assert calls == [("abcdef", "abcdeg")]
        assert [m.y_key for m in result.near_matches] == ["abcdeg"]
