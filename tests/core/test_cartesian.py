"""Tests for Cartesian explosion risk and composite key breakdown."""

import polars as pl
import pytest

from join_diagnostics.core.cartesian import estimate_cartesian_risk
from join_diagnostics.core.keys import count_keys, resolve_key_spec
from join_diagnostics.core.multicolumn import analyze_multicolumn


def _counts(values):
    return count_keys(pl.DataFrame({"k": values}), ["k"])


class TestEstimateCartesianRisk:
    def test_estimate_cartesian_risk_scenarioE_flagged(self):
        # Arrange
        values = [1, 1, 1, 2, 2]

        # Act
        risk = estimate_cartesian_risk(_counts(values), _counts(values), threshold=2)

        # Assert
        assert risk.expansion_factor == pytest.approx(2.6)
        assert risk.total_inner == 13
        assert risk.has_explosion
        assert risk.worst_keys[0].key == 1
        assert risk.worst_keys[0].product == 9

    def test_estimate_cartesian_risk_no_matches_explicitNoRisk(self):
        risk = estimate_cartesian_risk(_counts([1, 2]), _counts([3, 4]))

        assert not risk.has_explosion
        assert risk.expansion_factor == 0.0
        assert risk.worst_keys == ()

    def test_estimate_cartesian_risk_one_to_one_factorIsOne(self):
        risk = estimate_cartesian_risk(_counts([1, 2, 3]), _counts([1, 2, 3]))

        assert risk.expansion_factor == pytest.approx(1.0)
        assert not risk.has_explosion

    def test_estimate_cartesian_risk_worst_keys_cappedAtFive(self):
        values = [k for k in range(7) for _ in range(2)]

        risk = estimate_cartesian_risk(_counts(values), _counts(values))

        assert len(risk.worst_keys) == 5
        # Equal products keep first-seen order
        assert [k.key for k in risk.worst_keys] == [0, 1, 2, 3, 4]

    def test_cartesian_risk_to_dict_compositeKeys_areLists(self):
        table = pl.DataFrame({"a": [1, 1], "b": ["x", "x"]})
        counts = count_keys(table, ["a", "b"])

        result = estimate_cartesian_risk(counts, counts).to_dict()

        assert result["worst_keys"][0]["key"] == [1, "x"]


class TestAnalyzeMulticolumn:
    def test_analyze_multicolumn_single_key_notMulticolumn(self):
        x = pl.DataFrame({"id": [1]})

        result = analyze_multicolumn(x, x, resolve_key_spec("id"))

        assert not result.is_multicolumn
        assert result.columns == ()

    def test_analyze_multicolumn_identifies_problemColumn(self, composite_pair):
        # Arrange
        x, y = composite_pair

        # Act
        result = analyze_multicolumn(x, y, resolve_key_spec(["id", "year"]))

        # Assert
        assert result.is_multicolumn
        rates = {c.x_column: c.match_rate for c in result.columns}
        assert rates["id"] == 1.0
        assert rates["year"] == pytest.approx(1 / 3)
        assert result.problem_column == "year"

    def test_analyze_multicolumn_tie_firstColumnWins(self):
        x = pl.DataFrame({"a": [1, 2], "b": [1, 2]})
        y = pl.DataFrame({"a": [1, 3], "b": [1, 3]})

        result = analyze_multicolumn(x, y, resolve_key_spec(["a", "b"]))

        assert result.problem_column == "a"
