"""Price series store.

Fetches one series per instrument, concurrently, and joins the results
into a single outcome: either every series arrived, or the whole
request fails with ``DataUnavailable``. Successful responses are cached
per ``(symbol, range)`` for a short stale time.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from threading import Lock

from etfdash.config import STALE_SECONDS, interval_for_range
from etfdash.errors import DataUnavailable
from etfdash.market.validation import validate_observations
from etfdash.market.yahoo import fetch_series
from etfdash.portfolio.models import Observation

logger = logging.getLogger(__name__)

Fetcher = Callable[[str, str, str], list[Observation]]


@dataclass
class _CacheItem:
    value: list[Observation]
    expires_at: float


class _SeriesCache:
    """Thread-safe TTL cache keyed by (symbol, range)."""

    def __init__(self, ttl_seconds: float) -> None:
        self.ttl_seconds = ttl_seconds
        self._data: dict[tuple[str, str], _CacheItem] = {}
        self._lock = Lock()

    def get(self, key: tuple[str, str]) -> list[Observation] | None:
        now = time.monotonic()
        with self._lock:
            item = self._data.get(key)
            if item is None:
                return None
            if item.expires_at <= now:
                self._data.pop(key, None)
                return None
            return item.value

    def set(self, key: tuple[str, str], value: list[Observation]) -> None:
        if self.ttl_seconds <= 0:
            return
        with self._lock:
            expires_at = time.monotonic() + self.ttl_seconds
            self._data[key] = _CacheItem(value=value, expires_at=expires_at)


class PriceSeriesStore:
    """Source of raw price series for the configured instruments.

    Args:
        fetcher: Callable ``(symbol, range, interval) -> observations``.
            Defaults to the Yahoo Finance adapter.
        stale_seconds: How long a fetched series is reused. 0 disables
            caching.

    """

    def __init__(
        self,
        fetcher: Fetcher = fetch_series,
        stale_seconds: float = STALE_SECONDS,
    ) -> None:
        if stale_seconds < 0:
            msg = f"stale_seconds must be non-negative, got {stale_seconds}"
            raise ValueError(msg)
        self.fetcher = fetcher
        self._cache = _SeriesCache(stale_seconds)

    def get(self, symbol: str, range_: str) -> list[Observation]:
        """Return the validated series for one instrument.

        Raises:
            DataUnavailable: If the fetch fails or the payload is invalid.

        """
        key = (symbol, range_)
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("Cache hit for %s (%s)", symbol, range_)
            return cached

        interval = interval_for_range(range_)
        observations = self.fetcher(symbol, range_, interval)
        validate_observations(symbol, observations)
        self._cache.set(key, observations)
        return observations

    async def fetch_all(
        self,
        symbols: list[str],
        range_: str,
    ) -> dict[str, list[Observation]]:
        """Fetch every symbol concurrently and join the results.

        Args:
            symbols: Instruments to fetch, in display order.
            range_: Window shared by all requests.

        Returns:
            Observations keyed by symbol, in the order given.

        Raises:
            DataUnavailable: If any instrument failed. All failures are
                logged; the first one is raised.
            ValueError: If the range is unsupported.

        """
        interval_for_range(range_)
        results = await asyncio.gather(
            *(asyncio.to_thread(self.get, symbol, range_) for symbol in symbols),
            return_exceptions=True,
        )

        series: dict[str, list[Observation]] = {}
        failures: list[DataUnavailable] = []
        for symbol, result in zip(symbols, results, strict=True):
            if isinstance(result, DataUnavailable):
                logger.error("Fetch failed for %s: %s", symbol, result)
                failures.append(result)
            elif isinstance(result, BaseException):
                raise result
            else:
                series[symbol] = result

        if failures:
            raise failures[0]
        return series

