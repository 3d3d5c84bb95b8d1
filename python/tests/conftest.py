"""Shared pytest fixtures for the dashboard tests."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from datetime import UTC, datetime

import duckdb
import pytest
from etfdash.db.connection import init_memory_db
from etfdash.portfolio.ledger import HoldingsLedger
from etfdash.portfolio.models import Holding, Observation, Portfolio

# Weekly bars starting 2024-01-01 00:00 UTC
T0 = 1_704_067_200
WEEK = 7 * 24 * 3600

SeriesFactory = Callable[..., list[Observation]]
PortfolioFactory = Callable[..., Portfolio]


@pytest.fixture
def t0() -> int:
    return T0


@pytest.fixture
def make_series() -> SeriesFactory:
    """Build weekly observations from a list of prices."""

    def _make(prices: list[float | None], start: int = T0) -> list[Observation]:
        return [
            Observation(timestamp=start + i * WEEK, price=price)
            for i, price in enumerate(prices)
        ]

    return _make


@pytest.fixture
def make_portfolio() -> PortfolioFactory:
    """Build a portfolio from keyword shares; ``A=1`` becomes ``A.AX: 1``."""

    def _make(**shares: float) -> Portfolio:
        holdings = [
            Holding(symbol=name if name == "CASH" else f"{name}.AX", shares=qty)
            for name, qty in shares.items()
        ]
        return Portfolio(holdings=holdings, last_updated=datetime(2024, 1, 1, tzinfo=UTC))

    return _make


@pytest.fixture
def instruments() -> list[str]:
    return ["A.AX", "B.AX"]


@pytest.fixture
def db() -> Iterator[duckdb.DuckDBPyConnection]:
    conn = init_memory_db()
    yield conn
    conn.close()


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    """Provide a clock frozen at 2024-06-01 12:00 UTC."""
    return lambda: datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def ledger(
    db: duckdb.DuckDBPyConnection,
    instruments: list[str],
    fixed_clock: Callable[[], datetime],
) -> HoldingsLedger:
    return HoldingsLedger(db, instruments=instruments, clock=fixed_clock)
