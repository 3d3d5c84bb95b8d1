"""Series rebasing.

Rebases each raw price series to ``BASE_INDEX`` (100) at its first
present observation so instruments with different price levels can be
compared on one axis. Absent points stay absent: nothing is
interpolated or forward-filled.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np

from etfdash.config import BASE_INDEX
from etfdash.errors import DegenerateBase, NoBaseValue, NormalizationError

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from etfdash.portfolio.models import Observation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NormalizedSeries:
    """A rebased series.

    Attributes:
        symbol: Instrument identifier.
        timestamps: Epoch-second timestamps, passed through unchanged.
        values: Rebased values; None where the raw price was absent.
        base: The raw price the series was rebased against.

    """

    symbol: str
    timestamps: list[int]
    values: list[float | None]
    base: float

    def as_array(self) -> NDArray[np.float64]:
        """Return the values as a float array with NaN for absent points."""
        return np.array(
            [np.nan if v is None else v for v in self.values],
            dtype=np.float64,
        )


@dataclass
class NormalizationResult:
    """Output of ``normalize_all``.

    Attributes:
        normalized: Rebased series keyed by symbol, in input order.
        failures: Symbols that could not be rebased, with the error.
        timestamps: Shared timestamps taken from the first input series.

    """

    normalized: dict[str, NormalizedSeries] = field(default_factory=dict)
    failures: dict[str, NormalizationError] = field(default_factory=dict)
    timestamps: list[int] = field(default_factory=list)


def _prices(observations: list[Observation]) -> NDArray[np.float64]:
    return np.array(
        [np.nan if o.price is None else o.price for o in observations],
        dtype=np.float64,
    )


def normalize_series(
    symbol: str,
    observations: list[Observation],
    timestamps: list[int] | None = None,
) -> NormalizedSeries:
    """Rebase one series so its first present value equals 100.

    Args:
        symbol: Instrument identifier (used in errors).
        observations: Ordered observations for the instrument.
        timestamps: Timestamps to attach to the output. Defaults to the
            series' own timestamps.

    Returns:
        The rebased series, same length as the input.

    Raises:
        NoBaseValue: If every price is absent (or the series is empty).
        DegenerateBase: If the first present price is zero.
        ValueError: If ``timestamps`` has a different length.

    """
    if timestamps is None:
        timestamps = [o.timestamp for o in observations]
    if len(timestamps) != len(observations):
        msg = (
            f"{symbol}: expected {len(timestamps)} observations, "
            f"got {len(observations)}"
        )
        raise ValueError(msg)

    prices = _prices(observations)
    present = ~np.isnan(prices)
    if not present.any():
        raise NoBaseValue(symbol, "series has no price to rebase against")

    base = float(prices[np.argmax(present)])
    if base == 0:
        raise DegenerateBase(symbol, "first present price is zero")

    scaled = prices / base * BASE_INDEX
    values: list[float | None] = [
        float(v) if ok else None for v, ok in zip(scaled, present, strict=True)
    ]
    return NormalizedSeries(
        symbol=symbol,
        timestamps=list(timestamps),
        values=values,
        base=base,
    )


def normalize_all(series: dict[str, list[Observation]]) -> NormalizationResult:
    """Rebase a set of aligned series.

    Series that cannot be rebased are recorded in ``failures`` and
    left out of ``normalized``; the others are unaffected.

    Args:
        series: Observations keyed by symbol. All series must have the
            same length; timestamps are taken from the first one.

    Returns:
        NormalizationResult with the rebased series and any failures.

    Raises:
        ValueError: If the series lengths differ.

    """
    result = NormalizationResult()
    if not series:
        return result

    first = next(iter(series.values()))
    result.timestamps = [o.timestamp for o in first]

    lengths = {symbol: len(obs) for symbol, obs in series.items()}
    if len(set(lengths.values())) > 1:
        msg = f"Series must have equal length, got {lengths}"
        raise ValueError(msg)

    for symbol, observations in series.items():
        try:
            result.normalized[symbol] = normalize_series(
                symbol, observations, result.timestamps
            )
        except NormalizationError as exc:
            logger.warning("Skipping %s: %s", symbol, exc)
            result.failures[symbol] = exc

    return result
