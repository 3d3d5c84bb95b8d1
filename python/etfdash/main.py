"""ETF dashboard sidecar entry point.

Communicates with the UI process via stdin/stdout using
newline-delimited JSON messages. Logs go to stderr.

Protocol:
    Request:  {"id": "uuid", "method": "string", "params": {}}
    Response: {"id": "uuid", "result": {}}
    Error:    {"id": "uuid", "error": {"message": "string", "type": "string"}}

A refresh whose data could not be fetched is not a protocol error: it
returns ``{"status": "error", ...}`` as its result so the UI can show
a single error state.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import traceback
from functools import partial
from typing import Any

import numpy as np

from etfdash import log_config
from etfdash.analysis.aggregate import (
    allocation_breakdown,
    holding_valuations,
    total_value,
    weighted_total_series,
)
from etfdash.analysis.normalize import normalize_all
from etfdash.config import DEFAULT_RANGE, configured_instruments
from etfdash.dashboard import Dashboard, date_label
from etfdash.db.connection import init_ledger_db
from etfdash.errors import DataUnavailable
from etfdash.market.series_store import PriceSeriesStore
from etfdash.market.validation import parse_observations
from etfdash.portfolio.ledger import HoldingsLedger
from etfdash.portfolio.models import Observation, Portfolio

logger = logging.getLogger(__name__)


class _NumpyEncoder(json.JSONEncoder):
    """JSON encoder that handles NumPy types."""

    def default(self, o: Any) -> Any:
        """Convert NumPy types to JSON-serializable Python types."""
        if isinstance(o, np.ndarray):
            return o.tolist()
        if isinstance(o, np.integer):
            return int(o)
        if isinstance(o, np.floating):
            return float(o)
        return super().default(o)


def build_dashboard(db_path: str | None = None) -> Dashboard:
    """Wire the Yahoo-backed store and the on-disk ledger together."""
    ledger = HoldingsLedger(init_ledger_db(db_path), configured_instruments())
    return Dashboard(PriceSeriesStore(), ledger)


def _parse_series(series: dict[str, Any]) -> dict[str, list[Observation]]:
    return {symbol: parse_observations(symbol, payload) for symbol, payload in series.items()}


def _handle_refresh(dashboard: Dashboard, range: str = DEFAULT_RANGE) -> dict[str, Any]:  # noqa: A002
    """Run a refresh cycle, mapping fetch failures to an error state."""
    try:
        return dashboard.refresh(range).to_dict()
    except DataUnavailable as exc:
        return {
            "status": "error",
            "message": "Error loading data",
            "symbol": exc.symbol,
            "detail": str(exc),
        }


def _handle_ledger_load(dashboard: Dashboard) -> dict[str, Any]:
    return dashboard.ledger.load().to_dict()


def _handle_ledger_update(
    dashboard: Dashboard,
    symbol: str,
    shares: float,
) -> dict[str, Any]:
    return dashboard.ledger.update(symbol, shares).to_dict()


def _handle_market_series(
    dashboard: Dashboard,
    symbol: str,
    range: str = DEFAULT_RANGE,  # noqa: A002
) -> list[dict[str, Any]]:
    return [
        {"timestamp": o.timestamp, "price": o.price}
        for o in dashboard.store.get(symbol, range)
    ]


def _handle_normalize(series: dict[str, Any]) -> dict[str, Any]:
    """Rebase caller-supplied series.

    Args:
        series: Mapping of symbol to a list of ``{timestamp, price}``.

    Returns:
        Dict with timestamps, normalized values per symbol, and the
        symbols that could not be rebased.

    """
    result = normalize_all(_parse_series(series))
    return {
        "timestamps": result.timestamps,
        "normalized": {s: ns.values for s, ns in result.normalized.items()},
        "failures": {
            s: {"type": type(exc).__name__, "message": str(exc)}
            for s, exc in result.failures.items()
        },
    }


def _handle_weighted_total(
    series: dict[str, Any],
    portfolio: dict[str, Any],
) -> list[dict[str, Any]]:
    """Rebase caller-supplied series and blend them by portfolio shares."""
    result = normalize_all(_parse_series(series))
    points = weighted_total_series(
        result.normalized, Portfolio.from_dict(portfolio), result.timestamps
    )
    return [
        {"timestamp": p.timestamp, "date": date_label(p.timestamp), "value": p.value}
        for p in points
    ]


def _handle_valuations(
    current_prices: dict[str, float | None],
    portfolio: dict[str, Any],
) -> dict[str, Any]:
    valuations = holding_valuations(current_prices, Portfolio.from_dict(portfolio))
    return {
        "valuations": [v.to_dict() for v in valuations],
        "breakdown": [v.to_dict() for v in allocation_breakdown(valuations)],
        "total_value": total_value(valuations),
    }


def dispatch(method: str, params: dict[str, Any], dashboard: Dashboard) -> Any:
    """Route a method call to the appropriate handler.

    Args:
        method: The method name (e.g., "dashboard.refresh").
        params: The parameters for the method.
        dashboard: Dashboard the stateful handlers operate on.

    Returns:
        The result of the method call.

    Raises:
        ValueError: If the method is not recognized.

    """
    handlers: dict[str, Any] = {
        # Refresh cycle
        "dashboard.refresh": partial(_handle_refresh, dashboard),
        # Ledger
        "ledger.load": partial(_handle_ledger_load, dashboard),
        "ledger.update": partial(_handle_ledger_update, dashboard),
        # Market data
        "market.series": partial(_handle_market_series, dashboard),
        # Stateless analysis
        "analysis.normalize": _handle_normalize,
        "analysis.weighted_total": _handle_weighted_total,
        "analysis.valuations": _handle_valuations,
    }
    if method not in handlers:
        msg = f"Unknown method: {method}"
        raise ValueError(msg)
    return handlers[method](**params)


def main(argv: list[str] | None = None, dashboard: Dashboard | None = None) -> None:
    """Run the sidecar message loop.

    Reads newline-delimited JSON from stdin, dispatches to handlers,
    and writes JSON responses to stdout. Runs until stdin is closed.

    Args:
        argv: Command-line arguments (``--db PATH``, ``--verbose``).
        dashboard: Pre-built dashboard; built from configuration if None.

    """
    parser = argparse.ArgumentParser(prog="etfdash")
    parser.add_argument("--db", default=None, help="Path to the ledger database")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    log_config.setup(verbose=args.verbose)
    if dashboard is None:
        dashboard = build_dashboard(args.db)
    logger.info("Sidecar ready (%d instruments)", len(dashboard.instruments))

    for raw_line in sys.stdin:
        stripped = raw_line.strip()
        if not stripped:
            continue

        request: dict[str, Any] = {}
        try:
            request = json.loads(stripped)
            request_id = request.get("id", "unknown")
            method = request["method"]
            params = request.get("params", {})
            result = dispatch(method, params, dashboard)
            response: dict[str, Any] = {"id": request_id, "result": result}
        except Exception as exc:  # noqa: BLE001 - dispatcher must catch all errors and return them as JSON
            logger.debug("Request failed", exc_info=True)
            request_id = (
                request.get("id", "unknown") if isinstance(request, dict) else "unknown"
            )
            response = {
                "id": request_id,
                "error": {
                    "message": str(exc),
                    "type": type(exc).__name__,
                    "traceback": traceback.format_exc(),
                },
            }
        sys.stdout.write(json.dumps(response, cls=_NumpyEncoder) + "\n")
        sys.stdout.flush()


if __name__ == "__main__":
    main()
