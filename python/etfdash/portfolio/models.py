"""Portfolio data model.

Plain dataclasses for observations, holdings, the portfolio itself and
the derived valuation records. ``Portfolio`` round-trips through a JSON
dict for the ledger store; parsing is strict so a malformed stored
value can be rejected as a whole.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from etfdash.config import CASH_SYMBOL


@dataclass(frozen=True)
class Observation:
    """One price point. ``price`` is None when the provider has no value."""

    timestamp: int
    price: float | None


@dataclass
class Holding:
    """A declared quantity of one instrument, or a dollar balance for CASH."""

    symbol: str
    shares: float = 0.0

    @property
    def is_cash(self) -> bool:
        return self.symbol == CASH_SYMBOL


@dataclass
class Portfolio:
    """Ordered holdings plus the time of the last edit.

    Attributes:
        holdings: One Holding per configured instrument, then CASH.
        last_updated: Timezone-aware UTC timestamp of the last change.

    """

    holdings: list[Holding] = field(default_factory=list)
    last_updated: datetime = field(default_factory=lambda: datetime.now(tz=UTC))

    @classmethod
    def default(cls, instruments: list[str]) -> Portfolio:
        """Build a zero-share portfolio for the given instruments plus CASH."""
        holdings = [Holding(symbol=s, shares=0.0) for s in instruments]
        holdings.append(Holding(symbol=CASH_SYMBOL, shares=0.0))
        return cls(holdings=holdings)

    def get(self, symbol: str) -> Holding | None:
        for holding in self.holdings:
            if holding.symbol == symbol:
                return holding
        return None

    def invested_shares(self) -> float:
        """Sum of shares across non-cash holdings."""
        return sum(h.shares for h in self.holdings if not h.is_cash)

    def to_dict(self) -> dict[str, Any]:
        return {
            "holdings": [{"symbol": h.symbol, "shares": h.shares} for h in self.holdings],
            "last_updated": self.last_updated.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Portfolio:
        """Parse a serialized portfolio.

        Args:
            data: Dict with ``holdings`` (list of ``{symbol, shares}``)
                and ``last_updated`` (ISO-8601 string).

        Returns:
            The parsed Portfolio.

        Raises:
            ValueError: If any field is missing or has the wrong type,
                or a share count is negative or not finite.

        """
        if not isinstance(data, dict):
            msg = f"Portfolio must be an object, got {type(data).__name__}"
            raise ValueError(msg)

        raw_holdings = data.get("holdings")
        if not isinstance(raw_holdings, list):
            msg = "Portfolio 'holdings' must be a list"
            raise ValueError(msg)

        holdings: list[Holding] = []
        for item in raw_holdings:
            if not isinstance(item, dict):
                msg = "Each holding must be an object"
                raise ValueError(msg)
            symbol = item.get("symbol")
            shares = item.get("shares")
            if not isinstance(symbol, str) or not symbol:
                msg = f"Invalid holding symbol: {symbol!r}"
                raise ValueError(msg)
            if isinstance(shares, bool) or not isinstance(shares, int | float):
                msg = f"Invalid shares for {symbol}: {shares!r}"
                raise ValueError(msg)
            try:
                value = float(shares)
            except OverflowError as exc:
                msg = f"Shares for {symbol} are out of range"
                raise ValueError(msg) from exc
            if not math.isfinite(value) or value < 0:
                msg = f"Shares for {symbol} must be finite and non-negative"
                raise ValueError(msg)
            holdings.append(Holding(symbol=symbol, shares=value))

        raw_updated = data.get("last_updated")
        if not isinstance(raw_updated, str):
            msg = "Portfolio 'last_updated' must be an ISO-8601 string"
            raise ValueError(msg)
        last_updated = datetime.fromisoformat(raw_updated)
        if last_updated.tzinfo is None:
            last_updated = last_updated.replace(tzinfo=UTC)

        return cls(holdings=holdings, last_updated=last_updated)


@dataclass(frozen=True)
class HoldingValuation:
    """Market value and portfolio weight of one holding."""

    symbol: str
    shares: float
    price: float
    value: float
    weight: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "shares": self.shares,
            "price": self.price,
            "value": self.value,
            "weight": self.weight,
        }


@dataclass(frozen=True)
class WeightedTotalPoint:
    """One point of the blended performance line."""

    timestamp: int
    value: float
