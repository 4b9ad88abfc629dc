"""Logging setup shared by the ledger modules."""
import logging
import sys
from typing import Optional

from ledger import config

_configured = False


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger under the ``ledger`` hierarchy.

    The first call attaches a console handler to the ``ledger`` logger and
    sets its level from ``config.LOG_LEVEL``; later calls reuse it.
    """
    global _configured
    root = logging.getLogger("ledger")
    if not _configured:
        root.setLevel(getattr(logging, config.LOG_LEVEL.upper(), logging.INFO))
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        root.addHandler(handler)
        root.propagate = False
        _configured = True
    if not name or name == "ledger":
        return root
    if not name.startswith("ledger."):
        name = f"ledger.{name}"
    return logging.getLogger(name)
