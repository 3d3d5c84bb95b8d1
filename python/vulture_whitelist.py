"""Vulture whitelist: references that appear unused but are called dynamically.

Vulture scans for unreachable code.  Items listed here are known false
positives: entry points invoked by setuptools, pytest fixtures consumed
via dependency injection, etc.

Usage:
    cd python && vulture etfdash tests vulture_whitelist.py
"""

# ── Entry points (called by setuptools console_scripts, not imported) ──
from etfdash.main import main  # noqa: F401

# ── Pytest fixtures (injected by pytest, never called directly) ──
from tests.conftest import db  # noqa: F401
from tests.conftest import fixed_clock  # noqa: F401
from tests.conftest import instruments  # noqa: F401
from tests.conftest import ledger  # noqa: F401
from tests.conftest import make_portfolio  # noqa: F401
from tests.conftest import make_series  # noqa: F401
from tests.conftest import t0  # noqa: F401

