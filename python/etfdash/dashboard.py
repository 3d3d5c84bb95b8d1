"""Dashboard refresh cycle.

One refresh fetches every configured instrument, aligns the series on
the first instrument's timeline, rebases them, and combines them with
the ledger's holdings. A fetch failure for any instrument aborts the
whole cycle with ``DataUnavailable``; a series that cannot be rebased
is left out of the normalized view and the weighted total only.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import pandas as pd

from etfdash.analysis.aggregate import (
    allocation_breakdown,
    holding_valuations,
    total_value,
    weighted_total_series,
)
from etfdash.analysis.normalize import normalize_all
from etfdash.config import (
    DATE_LABEL_FORMAT,
    DISPLAY_TIMEZONE,
    DEFAULT_RANGE,
    display_symbol,
    interval_for_range,
)
from etfdash.market.validation import align_to_reference

if TYPE_CHECKING:
    from etfdash.market.series_store import PriceSeriesStore
    from etfdash.portfolio.ledger import HoldingsLedger
    from etfdash.portfolio.models import (
        HoldingValuation,
        Observation,
        Portfolio,
        WeightedTotalPoint,
    )

logger = logging.getLogger(__name__)


def date_label(timestamp: int, tz: str = DISPLAY_TIMEZONE) -> str:
    """Format an epoch-second timestamp as a chart label (``Jan 2024``).

    The label is taken in ``tz`` so a bar stamped at exchange-local
    midnight on the 1st falls in its own month.
    """
    local = pd.Timestamp(timestamp, unit="s", tz="UTC").tz_convert(tz)
    return local.strftime(DATE_LABEL_FORMAT)


def current_prices(series: dict[str, list[Observation]]) -> dict[str, float]:
    """Take the last observation of each series as its current price.

    Pass each instrument's own fetched series, not the aligned view:
    alignment can drop an instrument's latest bar. Symbols whose last
    observation is absent are left out, so they value at zero
    downstream.
    """
    prices: dict[str, float] = {}
    for symbol, observations in series.items():
        if observations and observations[-1].price is not None:
            prices[symbol] = observations[-1].price
    return prices


@dataclass
class DashboardView:
    """Everything the presentation layer needs for one refresh.

    Chart rows are keyed by display symbol (market suffix stripped) and
    omit a symbol wherever its value is absent.
    """

    range: str
    interval: str
    timestamps: list[int]
    dates: list[str]
    absolute: list[dict[str, Any]]
    normalized: list[dict[str, Any]]
    weighted_total: list[WeightedTotalPoint]
    current_prices: dict[str, float]
    valuations: list[HoldingValuation]
    breakdown: list[HoldingValuation]
    total_value: float
    portfolio: Portfolio
    failures: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": "ok",
            "range": self.range,
            "interval": self.interval,
            "timestamps": self.timestamps,
            "dates": self.dates,
            "absolute": self.absolute,
            "normalized": self.normalized,
            "weighted_total": [
                {"timestamp": p.timestamp, "date": date_label(p.timestamp), "value": p.value}
                for p in self.weighted_total
            ],
            "current_prices": self.current_prices,
            "valuations": [v.to_dict() for v in self.valuations],
            "breakdown": [v.to_dict() for v in self.breakdown],
            "total_value": self.total_value,
            "portfolio": self.portfolio.to_dict(),
            "failures": self.failures,
        }


def _chart_rows(
    dates: list[str],
    columns: dict[str, list[float | None]],
) -> list[dict[str, Any]]:
    rows: list[dict[str, Any]] = []
    for i, date in enumerate(dates):
        row: dict[str, Any] = {"date": date}
        for symbol, values in columns.items():
            if values[i] is not None:
                row[display_symbol(symbol)] = values[i]
        rows.append(row)
    return rows


class Dashboard:
    """Ties the price store and the holdings ledger together.

    Args:
        store: Source of raw price series.
        ledger: Holdings ledger.
        instruments: Instruments to chart, in display order. Defaults
            to the ledger's configured instruments.

    """

    def __init__(
        self,
        store: PriceSeriesStore,
        ledger: HoldingsLedger,
        instruments: list[str] | None = None,
    ) -> None:
        self.store = store
        self.ledger = ledger
        self.instruments = (
            list(instruments) if instruments is not None else list(ledger.instruments)
        )

    async def arefresh(self, range_: str = DEFAULT_RANGE) -> DashboardView:
        """Run one refresh cycle.

        Args:
            range_: Window to chart.

        Returns:
            The computed DashboardView.

        Raises:
            DataUnavailable: If any instrument's series could not be fetched.
            ValueError: If the range is unsupported.

        """
        interval = interval_for_range(range_)
        raw = await self.store.fetch_all(self.instruments, range_)
        series = align_to_reference(raw)

        result = normalize_all(series)
        portfolio = self.ledger.load()
        prices = current_prices(raw)
        valuations = holding_valuations(prices, portfolio)

        dates = [date_label(ts) for ts in result.timestamps]
        absolute = _chart_rows(
            dates, {s: [o.price for o in obs] for s, obs in series.items()}
        )
        normalized = _chart_rows(
            dates, {s: ns.values for s, ns in result.normalized.items()}
        )

        logger.info(
            "Refreshed %d instruments (%s, %d points, %d not normalized)",
            len(series),
            range_,
            len(dates),
            len(result.failures),
        )
        return DashboardView(
            range=range_,
            interval=interval,
            timestamps=result.timestamps,
            dates=dates,
            absolute=absolute,
            normalized=normalized,
            weighted_total=weighted_total_series(
                result.normalized, portfolio, result.timestamps
            ),
            current_prices=prices,
            valuations=valuations,
            breakdown=allocation_breakdown(valuations),
            total_value=total_value(valuations),
            portfolio=portfolio,
            failures={s: str(exc) for s, exc in result.failures.items()},
        )

    def refresh(self, range_: str = DEFAULT_RANGE) -> DashboardView:
        """Blocking wrapper around ``arefresh``."""
        return asyncio.run(self.arefresh(range_))
