"""Tests for the portfolio data model."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from etfdash.portfolio.models import Holding, Portfolio


class TestPortfolioDefault:
    """Tests for the zero-share default portfolio."""

    def test_one_holding_per_instrument_plus_cash(self) -> None:
        portfolio = Portfolio.default(["A.AX", "B.AX"])
        assert [h.symbol for h in portfolio.holdings] == ["A.AX", "B.AX", "CASH"]
        assert all(h.shares == 0.0 for h in portfolio.holdings)

    def test_last_updated_is_aware(self) -> None:
        assert Portfolio.default([]).last_updated.tzinfo is not None


class TestPortfolioQueries:
    """Tests for holding lookup and share totals."""

    def test_get(self, make_portfolio) -> None:
        portfolio = make_portfolio(A=3)
        assert portfolio.get("A.AX") == Holding("A.AX", 3)
        assert portfolio.get("Z.AX") is None

    def test_invested_shares_excludes_cash(self, make_portfolio) -> None:
        assert make_portfolio(A=3, B=2, CASH=1000).invested_shares() == 5

    def test_is_cash(self) -> None:
        assert Holding("CASH").is_cash
        assert not Holding("A.AX").is_cash


class TestPortfolioSerialization:
    """Tests for the stored JSON form."""

    def test_round_trip(self, make_portfolio) -> None:
        portfolio = make_portfolio(A=1.5, CASH=200)
        restored = Portfolio.from_dict(portfolio.to_dict())
        assert restored == portfolio

    def test_naive_timestamp_assumed_utc(self) -> None:
        restored = Portfolio.from_dict(
            {"holdings": [], "last_updated": "2024-03-01T10:00:00"}
        )
        assert restored.last_updated == datetime(2024, 3, 1, 10, tzinfo=UTC)

    def test_integer_shares_accepted(self) -> None:
        restored = Portfolio.from_dict(
            {
                "holdings": [{"symbol": "A.AX", "shares": 4}],
                "last_updated": "2024-03-01T10:00:00+00:00",
            }
        )
        assert restored.holdings[0].shares == 4.0

    @pytest.mark.parametrize(
        "data",
        [
            [],
            {"last_updated": "2024-03-01T10:00:00+00:00"},
            {"holdings": "nope", "last_updated": "2024-03-01T10:00:00+00:00"},
            {"holdings": [{"symbol": "A.AX"}], "last_updated": "2024-03-01"},
            {"holdings": [{"symbol": "", "shares": 1}], "last_updated": "2024-03-01"},
            {"holdings": [{"symbol": "A.AX", "shares": -1}], "last_updated": "2024-03-01"},
            {"holdings": [{"symbol": "A.AX", "shares": True}], "last_updated": "2024-03-01"},
            {"holdings": [{"symbol": "A.AX", "shares": "3"}], "last_updated": "2024-03-01"},
            {"holdings": [{"symbol": "A.AX", "shares": 10**400}], "last_updated": "2024-03-01"},
            {"holdings": [], "last_updated": 12345},
            {"holdings": [], "last_updated": "not a date"},
        ],
    )
    def test_malformed_raises(self, data) -> None:
        with pytest.raises(ValueError):
            Portfolio.from_dict(data)
