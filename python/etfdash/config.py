"""Runtime configuration for the ETF dashboard.

Module-level constants with environment-variable overrides. The
instrument list is fixed at startup; nothing here is discovered
dynamically.

Environment:
    ETFDASH_INSTRUMENTS: Comma-separated instrument list.
    ETFDASH_DATA_DIR: Directory holding ``ledger.duckdb``.
    ETFDASH_STALE_SECONDS: Series cache freshness in seconds.
    ETFDASH_TIMEZONE: Timezone chart dates are labelled in.

"""

from __future__ import annotations

import os
from pathlib import Path

CASH_SYMBOL = "CASH"
BASE_INDEX = 100.0
LEDGER_KEY = "portfolio"

DEFAULT_INSTRUMENTS: list[str] = [
    "VAS.AX",
    "VGS.AX",
    "VGAD.AX",
    "VAE.AX",
    "VGE.AX",
    "IVE.AX",
    "DJRE.AX",
    "GOLD.AX",
]

VALID_RANGES: tuple[str, ...] = ("1m", "6m", "1y", "2y", "5y", "10y")
VALID_INTERVALS: tuple[str, ...] = ("1d", "1wk")
DEFAULT_RANGE = "2y"

DATE_LABEL_FORMAT = "%b %Y"
# ASX bars are stamped at Sydney midnight
DISPLAY_TIMEZONE = os.environ.get("ETFDASH_TIMEZONE", "Australia/Sydney")

DATA_DIR = Path(
    os.environ.get("ETFDASH_DATA_DIR", str(Path.home() / ".etfdash" / "data"))
)
LEDGER_DB_NAME = "ledger.duckdb"

# Matches the dashboard's five-minute stale time
STALE_SECONDS = int(os.environ.get("ETFDASH_STALE_SECONDS", "300"))


def configured_instruments() -> list[str]:
    """Return the configured instrument list.

    Reads ``ETFDASH_INSTRUMENTS`` when set, otherwise the default ETF
    list. Order is preserved and duplicates are dropped.

    Returns:
        Ordered list of instrument identifiers.

    """
    raw = os.environ.get("ETFDASH_INSTRUMENTS", "")
    symbols = [s.strip().upper() for s in raw.split(",") if s.strip()]
    if not symbols:
        return list(DEFAULT_INSTRUMENTS)
    return list(dict.fromkeys(symbols))


def interval_for_range(range_: str) -> str:
    """Select the bar interval for a requested range.

    Args:
        range_: One of ``VALID_RANGES``.

    Returns:
        ``"1d"`` for a one-month range, ``"1wk"`` otherwise.

    Raises:
        ValueError: If the range is not recognized.

    """
    if range_ not in VALID_RANGES:
        msg = f"Unsupported range: {range_}. Use one of {', '.join(VALID_RANGES)}."
        raise ValueError(msg)
    return "1d" if range_ == "1m" else "1wk"


def display_symbol(symbol: str) -> str:
    """Strip the market suffix from an instrument (``VAS.AX`` -> ``VAS``)."""
    return symbol.split(".", 1)[0]


def ledger_db_path() -> Path:
    """Return the path of the ledger database file."""
    return DATA_DIR / LEDGER_DB_NAME
