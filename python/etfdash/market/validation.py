"""Market data validation and alignment.

Checks incoming series for integrity before they reach the
normalizer, and aligns a set of series onto one shared timeline.
Both operate on Observation lists, the exchange format between the
market layer and the analysis layer.
"""

from __future__ import annotations

import logging
import math

import pandas as pd

from etfdash.errors import DataUnavailable
from etfdash.portfolio.models import Observation

logger = logging.getLogger(__name__)


def validate_observations(symbol: str, observations: list[Observation]) -> None:
    """Validate a fetched series.

    Checks:
    - The series is not empty
    - Timestamps are integers, strictly ascending
    - Prices are absent or finite and non-negative

    Args:
        symbol: Instrument the series belongs to.
        observations: The fetched observations.

    Raises:
        DataUnavailable: On the first violation found.

    """
    if not observations:
        raise DataUnavailable(symbol, "series is empty")

    previous: int | None = None
    for obs in observations:
        if isinstance(obs.timestamp, bool) or not isinstance(obs.timestamp, int):
            raise DataUnavailable(symbol, f"non-integer timestamp {obs.timestamp!r}")
        if previous is not None and obs.timestamp <= previous:
            raise DataUnavailable(
                symbol, f"timestamps not ascending at {obs.timestamp}"
            )
        previous = obs.timestamp

        if obs.price is None:
            continue
        if not math.isfinite(obs.price) or obs.price < 0:
            raise DataUnavailable(symbol, f"invalid price {obs.price!r} at {obs.timestamp}")


def parse_observations(symbol: str, payload: object) -> list[Observation]:
    """Parse a ``[{timestamp, price}]`` payload into Observations.

    ``close`` is accepted in place of ``price``.

    Args:
        symbol: Instrument the payload belongs to.
        payload: Decoded JSON list.

    Returns:
        Validated observations.

    Raises:
        DataUnavailable: If the payload is malformed.

    """
    if not isinstance(payload, list):
        raise DataUnavailable(symbol, "payload is not a list")

    observations: list[Observation] = []
    for item in payload:
        if not isinstance(item, dict) or "timestamp" not in item:
            raise DataUnavailable(symbol, f"malformed observation {item!r}")
        raw_price = item.get("price", item.get("close"))
        if raw_price is not None and (
            isinstance(raw_price, bool) or not isinstance(raw_price, int | float)
        ):
            raise DataUnavailable(symbol, f"non-numeric price {raw_price!r}")
        observations.append(
            Observation(
                timestamp=item["timestamp"],
                price=None if raw_price is None else float(raw_price),
            )
        )

    validate_observations(symbol, observations)
    return observations


def align_to_reference(
    series: dict[str, list[Observation]],
) -> dict[str, list[Observation]]:
    """Reindex every series onto the timestamps of the first one.

    A series missing a reference timestamp gets an absent observation
    there; timestamps the reference does not have are dropped. After
    alignment all series have the same length and timestamps.

    Args:
        series: Observations keyed by symbol, in display order.

    Returns:
        Aligned observations keyed by symbol, same order.

    """
    if not series:
        return {}

    reference_symbol, reference = next(iter(series.items()))
    index = pd.Index([o.timestamp for o in reference], dtype="int64")

    aligned: dict[str, list[Observation]] = {}
    for symbol, observations in series.items():
        prices = pd.Series(
            [math.nan if o.price is None else o.price for o in observations],
            index=pd.Index([o.timestamp for o in observations], dtype="int64"),
            dtype="float64",
        )
        reindexed = prices.reindex(index)
        missing = int(reindexed.isna().sum() - prices.isna().sum())
        if missing > 0 and symbol != reference_symbol:
            logger.info(
                "%s is missing %d of %s's timestamps", symbol, missing, reference_symbol
            )
        aligned[symbol] = [
            Observation(timestamp=int(ts), price=None if pd.isna(p) else float(p))
            for ts, p in reindexed.items()
        ]
    return aligned
