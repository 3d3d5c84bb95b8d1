"""Portfolio aggregation.

Two independent views over the same Portfolio:

- ``weighted_total_series`` blends the rebased series into one line,
  weighted by declared share counts.
- ``holding_valuations`` prices each holding at its latest price and
  computes its share of total portfolio value.

Note:
    In the weighted total, a holding whose rebased value is absent at
    some point contributes zero there while its shares stay in the
    denominator. This understates the blended value at that point
    instead of renormalizing over the instruments that do have data.
    The behaviour is kept for compatibility with the dashboard's
    existing charts.

"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from etfdash.portfolio.models import HoldingValuation, WeightedTotalPoint

if TYPE_CHECKING:
    from etfdash.analysis.normalize import NormalizedSeries
    from etfdash.portfolio.models import Portfolio


def weighted_total_series(
    normalized: dict[str, NormalizedSeries],
    portfolio: Portfolio,
    timestamps: list[int] | None = None,
) -> list[WeightedTotalPoint]:
    """Compute the shares-weighted blend of rebased series.

    Args:
        normalized: Rebased series keyed by symbol. Symbols that failed
            normalization are simply absent from the mapping.
        portfolio: Holdings supplying the weights. CASH is ignored.
        timestamps: Timestamps of the output points. Defaults to those
            of the first rebased series (empty if there is none).

    Returns:
        One WeightedTotalPoint per timestamp. Every value is 0 when the
        portfolio holds no non-cash shares.

    Raises:
        ValueError: If a rebased series length differs from
            ``timestamps``.

    """
    if timestamps is None:
        first = next(iter(normalized.values()), None)
        timestamps = first.timestamps if first is not None else []

    totals = np.zeros(len(timestamps), dtype=np.float64)
    denominator = portfolio.invested_shares()

    if denominator > 0:
        for holding in portfolio.holdings:
            if holding.is_cash or holding.shares == 0:
                continue
            series = normalized.get(holding.symbol)
            if series is None:
                continue
            values = series.as_array()
            if len(values) != len(totals):
                msg = (
                    f"{holding.symbol}: series has {len(values)} points, "
                    f"expected {len(totals)}"
                )
                raise ValueError(msg)
            weight = holding.shares / denominator
            totals += np.where(np.isnan(values), 0.0, values * weight)

    return [
        WeightedTotalPoint(timestamp=int(ts), value=float(value))
        for ts, value in zip(timestamps, totals, strict=True)
    ]


def holding_valuations(
    current_prices: dict[str, float | None],
    portfolio: Portfolio,
) -> list[HoldingValuation]:
    """Value each holding at its current price.

    A holding without a known price is valued at zero rather than
    treated as an error. CASH is always priced at 1.

    Args:
        current_prices: Latest price per symbol.
        portfolio: Holdings to value.

    Returns:
        One HoldingValuation per holding, in portfolio order.

    """
    priced: list[tuple[str, float, float, float]] = []
    total_value = 0.0
    for holding in portfolio.holdings:
        if holding.is_cash:
            price = 1.0
        else:
            price = float(current_prices.get(holding.symbol) or 0.0)
        value = holding.shares * price
        total_value += value
        priced.append((holding.symbol, holding.shares, price, value))

    return [
        HoldingValuation(
            symbol=symbol,
            shares=shares,
            price=price,
            value=value,
            weight=(value / total_value) if total_value > 0 else 0.0,
        )
        for symbol, shares, price, value in priced
    ]


def allocation_breakdown(
    valuations: list[HoldingValuation],
) -> list[HoldingValuation]:
    """Keep only holdings with a positive value, for allocation charts."""
    return [v for v in valuations if v.value > 0]


def total_value(valuations: list[HoldingValuation]) -> float:
    return sum(v.value for v in valuations)
