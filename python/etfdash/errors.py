"""Exception taxonomy for the dashboard core.

``DataUnavailable`` is fatal for a refresh cycle. ``NoBaseValue`` and
``DegenerateBase`` are recovered per instrument by the normalizer's
callers. ``UnknownInstrument`` signals a broken ledger invariant and is
always surfaced.
"""

from __future__ import annotations


class DashboardError(Exception):
    """Base class for all dashboard errors."""


class DataUnavailable(DashboardError):
    """An upstream fetch failed or returned a malformed payload."""

    def __init__(self, symbol: str, message: str) -> None:
        self.symbol = symbol
        super().__init__(f"{symbol}: {message}")


class NormalizationError(DashboardError):
    """A series could not be rebased."""

    def __init__(self, symbol: str, message: str) -> None:
        self.symbol = symbol
        super().__init__(f"{symbol}: {message}")


class NoBaseValue(NormalizationError):
    """Every value in the series is absent."""


class DegenerateBase(NormalizationError):
    """The first present value of the series is zero."""


class UnknownInstrument(DashboardError, KeyError):
    """A ledger update targeted a symbol with no matching holding."""

    def __init__(self, symbol: str) -> None:
        self.symbol = symbol
        super().__init__(f"No holding for instrument '{symbol}'")

    def __str__(self) -> str:
        return str(self.args[0])
