"""Configuration for the ledger and its dashboard.

Values are module-level constants with environment variable overrides,
so tests and deployments can point the app at another data directory
without code changes.
"""

from __future__ import annotations

import os
from pathlib import Path

_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

DATA_DIR = Path(os.getenv("LEDGER_DATA_DIR", _PROJECT_ROOT / "data"))

# Starter records loaded when no saved state exists yet
SEED_PATH = Path(os.getenv("LEDGER_SEED_PATH", DATA_DIR / "seed.json"))

# Where the dashboard persists its state between sessions
STATE_PATH = Path(os.getenv("LEDGER_STATE_PATH", DATA_DIR / "state.json"))

LOG_LEVEL = os.getenv("LEDGER_LOG_LEVEL", "INFO")

# Name of the budget threshold preset used by the dashboard (see ledger.budgets.PRESETS)
BUDGET_PRESET = os.getenv("LEDGER_BUDGET_PRESET", "default")

CURRENCY = os.getenv("LEDGER_CURRENCY", "$")

# Number of most recent days kept in daily trend series
TREND_WINDOW = 30


def ensure_data_dir() -> None:
    """Create the data directory if it doesn't exist."""
    DATA_DIR.mkdir(parents=True, exist_ok=True)
