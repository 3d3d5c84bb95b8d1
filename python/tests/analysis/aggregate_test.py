"""Tests for portfolio aggregation."""

from __future__ import annotations

import pytest
from etfdash.analysis.aggregate import (
    allocation_breakdown,
    holding_valuations,
    total_value,
    weighted_total_series,
)
from etfdash.analysis.normalize import normalize_all


class TestWeightedTotalSeries:
    """Tests for the shares-weighted blended line."""

    def test_example_pair(self, make_series, make_portfolio) -> None:
        result = normalize_all(
            {"A.AX": make_series([10.0, 20.0]), "B.AX": make_series([50.0, 25.0])}
        )
        portfolio = make_portfolio(A=1, B=1, CASH=0)

        points = weighted_total_series(result.normalized, portfolio, result.timestamps)

        assert [p.value for p in points] == [100.0, 125.0]
        assert [p.timestamp for p in points] == result.timestamps

    def test_unequal_shares(self, make_series, make_portfolio) -> None:
        result = normalize_all(
            {"A.AX": make_series([10.0, 20.0]), "B.AX": make_series([50.0, 25.0])}
        )
        points = weighted_total_series(result.normalized, make_portfolio(A=3, B=1))
        # 200 * 0.75 + 50 * 0.25
        assert points[1].value == pytest.approx(162.5)

    def test_zero_invested_shares_gives_zero_line(
        self, make_series, make_portfolio
    ) -> None:
        result = normalize_all({"A.AX": make_series([10.0, 11.0, 12.0])})
        portfolio = make_portfolio(A=0, B=0, CASH=5000)

        points = weighted_total_series(result.normalized, portfolio, result.timestamps)

        assert len(points) == 3
        assert all(p.value == 0.0 for p in points)

    def test_cash_excluded_from_weights(self, make_series, make_portfolio) -> None:
        result = normalize_all({"A.AX": make_series([10.0, 15.0])})
        points = weighted_total_series(
            result.normalized, make_portfolio(A=2, CASH=1_000_000)
        )
        assert [p.value for p in points] == [100.0, 150.0]

    def test_failed_series_contributes_zero_keeps_denominator(
        self, make_series, make_portfolio
    ) -> None:
        result = normalize_all(
            {"A.AX": make_series([10.0, 20.0]), "B.AX": make_series([None, None])}
        )
        assert "B.AX" in result.failures

        points = weighted_total_series(
            result.normalized, make_portfolio(A=1, B=1), result.timestamps
        )

        assert [p.value for p in points] == [50.0, 100.0]

    def test_absent_point_contributes_zero(self, make_series, make_portfolio) -> None:
        result = normalize_all(
            {"A.AX": make_series([10.0, None, 30.0]), "B.AX": make_series([5.0, 5.0, 5.0])}
        )
        points = weighted_total_series(result.normalized, make_portfolio(A=1, B=1))
        assert [p.value for p in points] == pytest.approx([100.0, 50.0, 200.0])

    def test_holding_without_series_ignored(self, make_series, make_portfolio) -> None:
        result = normalize_all({"A.AX": make_series([10.0, 20.0])})
        points = weighted_total_series(result.normalized, make_portfolio(A=1, Z=3))
        assert [p.value for p in points] == [25.0, 50.0]

    def test_no_series_and_no_timestamps_is_empty(self, make_portfolio) -> None:
        assert weighted_total_series({}, make_portfolio(A=1)) == []

    def test_no_series_with_timestamps_is_zero(self, make_portfolio) -> None:
        points = weighted_total_series({}, make_portfolio(A=1), timestamps=[1, 2])
        assert [p.value for p in points] == [0.0, 0.0]

    def test_length_mismatch_raises(self, make_series, make_portfolio) -> None:
        result = normalize_all({"A.AX": make_series([10.0, 20.0])})
        with pytest.raises(ValueError, match="expected 3"):
            weighted_total_series(
                result.normalized, make_portfolio(A=1), timestamps=[1, 2, 3]
            )


class TestHoldingValuations:
    """Tests for per-holding value and weight."""

    def test_values_and_weights(self, make_portfolio) -> None:
        portfolio = make_portfolio(A=10, B=5, CASH=100)
        valuations = holding_valuations({"A.AX": 20.0, "B.AX": 40.0}, portfolio)

        by_symbol = {v.symbol: v for v in valuations}
        assert by_symbol["A.AX"].value == 200.0
        assert by_symbol["B.AX"].value == 200.0
        assert by_symbol["CASH"].price == 1.0
        assert by_symbol["CASH"].value == 100.0
        assert by_symbol["A.AX"].weight == pytest.approx(0.4)
        assert sum(v.weight for v in valuations) == pytest.approx(1.0)

    def test_missing_price_values_at_zero(self, make_portfolio) -> None:
        portfolio = make_portfolio(A=10, B=5, CASH=50)
        valuations = holding_valuations({"A.AX": 5.0}, portfolio)

        by_symbol = {v.symbol: v for v in valuations}
        assert by_symbol["B.AX"].price == 0.0
        assert by_symbol["B.AX"].value == 0.0
        assert by_symbol["B.AX"].weight == 0.0
        assert total_value(valuations) == pytest.approx(100.0)
        assert by_symbol["A.AX"].weight == pytest.approx(0.5)
        assert by_symbol["CASH"].weight == pytest.approx(0.5)

    def test_none_price_values_at_zero(self, make_portfolio) -> None:
        valuations = holding_valuations({"A.AX": None}, make_portfolio(A=10))
        assert valuations[0].value == 0.0

    def test_zero_total_gives_zero_weights(self, make_portfolio) -> None:
        valuations = holding_valuations({}, make_portfolio(A=10, CASH=0))
        assert all(v.weight == 0.0 for v in valuations)

    def test_preserves_portfolio_order(self, make_portfolio) -> None:
        valuations = holding_valuations({}, make_portfolio(B=1, A=1, CASH=1))
        assert [v.symbol for v in valuations] == ["B.AX", "A.AX", "CASH"]


class TestAllocationBreakdown:
    """Tests for the chart breakdown filter."""

    def test_drops_zero_value_holdings(self, make_portfolio) -> None:
        valuations = holding_valuations(
            {"A.AX": 10.0}, make_portfolio(A=1, B=4, CASH=0)
        )
        breakdown = allocation_breakdown(valuations)
        assert [v.symbol for v in breakdown] == ["A.AX"]
        assert len(valuations) == 3
