"""Yahoo Finance market data adapter.

Fetches close-price series via the yfinance library and maps them to
Observations. This is the dashboard's only price source.

Note:
    yfinance uses an unofficial Yahoo Finance API. Any failure inside
    the library, or an empty response, is reported as
    ``DataUnavailable`` for the requested symbol.

"""

from __future__ import annotations

import logging
import math
from typing import Any

from etfdash.config import VALID_INTERVALS, interval_for_range
from etfdash.errors import DataUnavailable
from etfdash.portfolio.models import Observation

logger = logging.getLogger(__name__)

# Dashboard range -> yfinance ``period`` argument
_PERIODS: dict[str, str] = {
    "1m": "1mo",
    "6m": "6mo",
    "1y": "1y",
    "2y": "2y",
    "5y": "5y",
    "10y": "10y",
}


def _require_yfinance() -> tuple[Any, Any]:
    """Lazy-import yfinance and pandas.

    Returns:
        Tuple of (yfinance module, pandas module).

    Raises:
        ImportError: If yfinance is not installed.

    """
    try:
        import pandas as pd
        import yfinance as yf
    except ImportError as exc:
        msg = "yfinance is required for Yahoo Finance data. Install with: pip install etfdash"
        raise ImportError(msg) from exc
    return yf, pd


def _close_to_price(close: Any) -> float | None:
    """Map a raw close to a price; missing, NaN and zero closes become None."""
    if close is None:
        return None
    value = float(close)
    if math.isnan(value) or value == 0:
        return None
    return value


def fetch_series(
    symbol: str,
    range_: str,
    interval: str | None = None,
) -> list[Observation]:
    """Fetch the close-price series for a symbol.

    Args:
        symbol: Instrument identifier (e.g., "VAS.AX").
        range_: Window, one of ``1m, 6m, 1y, 2y, 5y, 10y``.
        interval: Bar interval, ``1d`` or ``1wk``. Defaults to the
            interval the dashboard uses for ``range_``.

    Returns:
        Observations ascending by timestamp, one per bar.

    Raises:
        ValueError: If symbol is empty or range/interval is unsupported.
        DataUnavailable: If the request fails or returns no data.
        ImportError: If yfinance is not installed.

    """
    if not symbol or not symbol.strip():
        msg = "symbol must be a non-empty string"
        raise ValueError(msg)
    if interval is None:
        interval = interval_for_range(range_)
    elif range_ not in _PERIODS:
        msg = f"Unsupported range: {range_}"
        raise ValueError(msg)
    if interval not in VALID_INTERVALS:
        msg = f"Unsupported interval: {interval}. Use one of {', '.join(VALID_INTERVALS)}."
        raise ValueError(msg)

    yf, pd = _require_yfinance()
    symbol = symbol.strip().upper()

    try:
        ticker = yf.Ticker(symbol)
        df = ticker.history(period=_PERIODS[range_], interval=interval, auto_adjust=False)
    except Exception as exc:  # noqa: BLE001 - yfinance raises many unrelated exception types
        logger.exception("Yahoo Finance request failed for %s", symbol)
        raise DataUnavailable(symbol, f"request failed: {exc}") from exc

    if df is None or df.empty:
        logger.warning("No price data for %s (range=%s, interval=%s)", symbol, range_, interval)
        raise DataUnavailable(symbol, "no price data returned")
    if "Close" not in df.columns:
        raise DataUnavailable(symbol, "response has no Close column")

    observations = [
        Observation(
            timestamp=int(pd.Timestamp(date_idx).timestamp()),
            price=_close_to_price(close),
        )
        for date_idx, close in df["Close"].items()
    ]
    observations.sort(key=lambda o: o.timestamp)
    return observations
