"""Holdings ledger.

Owns the user's Portfolio and its persistence. Every edit goes through
``update``, which mutates and writes in one step, so a change is never
visible in memory without also being on disk.
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Callable
from dataclasses import replace
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from etfdash.config import CASH_SYMBOL, LEDGER_KEY, configured_instruments
from etfdash.db.kv_store import get_value, put_value
from etfdash.errors import UnknownInstrument
from etfdash.portfolio.models import Holding, Portfolio

if TYPE_CHECKING:
    import duckdb

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


class HoldingsLedger:
    """Durable store for a single Portfolio.

    Args:
        conn: DuckDB connection with the ``kv_store`` table.
        instruments: Configured instrument list. Defaults to
            ``configured_instruments()``.
        key: Store key the portfolio is saved under.
        clock: Returns the current time; used for ``last_updated``.

    """

    def __init__(
        self,
        conn: duckdb.DuckDBPyConnection,
        instruments: list[str] | None = None,
        key: str = LEDGER_KEY,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.conn = conn
        self.instruments = (
            list(instruments) if instruments is not None else configured_instruments()
        )
        self.key = key
        self.clock = clock

    def load(self) -> Portfolio:
        """Return the stored portfolio, or a zero-share default.

        A stored value that is not valid JSON or does not parse as a
        Portfolio is treated as missing. The result always holds one
        entry per configured instrument followed by CASH.
        """
        raw = get_value(self.conn, self.key)
        if raw is None:
            logger.info("No stored portfolio under '%s', using defaults", self.key)
            return Portfolio.default(self.instruments)

        try:
            stored = Portfolio.from_dict(json.loads(raw))
        except ValueError as exc:
            logger.warning("Ignoring malformed stored portfolio: %s", exc)
            return Portfolio.default(self.instruments)

        return self._conform(stored)

    def save(self, portfolio: Portfolio) -> None:
        """Persist a full replacement of the stored portfolio."""
        put_value(self.conn, self.key, json.dumps(portfolio.to_dict()))
        logger.info("Saved portfolio (%d holdings)", len(portfolio.holdings))

    def update(self, symbol: str, shares: float) -> Portfolio:
        """Set the share count of one holding and persist the result.

        Args:
            symbol: Instrument identifier, or ``CASH`` for the cash balance.
            shares: New quantity. Negative values are clamped to 0.

        Returns:
            The updated Portfolio, already saved.

        Raises:
            UnknownInstrument: If the portfolio has no holding for symbol.
            ValueError: If shares is not a finite number.

        """
        if not math.isfinite(shares):
            msg = f"shares must be a finite number, got {shares}"
            raise ValueError(msg)

        current = self.load()
        if current.get(symbol) is None:
            raise UnknownInstrument(symbol)

        clamped = max(0.0, float(shares))
        updated = Portfolio(
            holdings=[
                replace(h, shares=clamped) if h.symbol == symbol else replace(h)
                for h in current.holdings
            ],
            last_updated=self.clock(),
        )
        self.save(updated)
        return updated

    def _conform(self, stored: Portfolio) -> Portfolio:
        """Align a stored portfolio with the configured instrument list.

        Instruments added to the configuration get zero shares; stored
        holdings no longer configured are dropped.
        """
        shares: dict[str, float] = {}
        for holding in stored.holdings:
            shares.setdefault(holding.symbol, holding.shares)

        dropped = set(shares) - set(self.instruments) - {CASH_SYMBOL}
        if dropped:
            logger.info("Dropping unconfigured holdings: %s", sorted(dropped))

        holdings = [Holding(symbol=s, shares=shares.get(s, 0.0)) for s in self.instruments]
        holdings.append(Holding(symbol=CASH_SYMBOL, shares=shares.get(CASH_SYMBOL, 0.0)))
        return Portfolio(holdings=holdings, last_updated=stored.last_updated)
