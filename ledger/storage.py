"""Persistence for application state.

The store talks to storage through two calls, ``load()`` and ``save()``,
exchanging plain JSON snapshots::

    {"transactions": [...rows], "budgets": [...rows], "current_view": "dashboard"}
"""
import json
from pathlib import Path
from typing import Optional, Protocol, Union

from ledger.errors import StorageError
from ledger.log import get_logger

logger = get_logger(__name__)


class Storage(Protocol):
    def load(self) -> Optional[dict]:
        ...

    def save(self, snapshot: dict) -> None:
        ...


class MemoryStorage:
    """Keeps the last snapshot in memory. Used by tests and throwaway sessions."""

    def __init__(self, initial: Optional[dict] = None):
        self.snapshot = initial
        self.saves = 0

    def load(self) -> Optional[dict]:
        return self.snapshot

    def save(self, snapshot: dict) -> None:
        self.snapshot = snapshot
        self.saves += 1


def read_json(path: Path) -> dict:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise StorageError(f"Cannot read {path}: {e}") from e
    if not isinstance(data, dict):
        raise StorageError(f"{path} does not contain a JSON object")
    return data


class JsonFileStorage:
    """Stores the snapshot in a JSON file.

    When the state file does not exist yet, ``load`` falls back to the seed
    file (if one is given) so a fresh install starts with sample data.
    """

    def __init__(self, path: Union[str, Path], seed_path: Union[str, Path, None] = None):
        self.path = Path(path)
        self.seed_path = Path(seed_path) if seed_path else None

    def load(self) -> Optional[dict]:
        if self.path.exists():
            logger.info(f"Loading state from {self.path}")
            return read_json(self.path)
        if self.seed_path and self.seed_path.exists():
            logger.info(f"No saved state, loading seed {self.seed_path}")
            return read_json(self.seed_path)
        return None

    def save(self, snapshot: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(snapshot, f, indent=2)
            tmp.replace(self.path)
        except (OSError, TypeError, ValueError) as e:
            tmp.unlink(missing_ok=True)
            raise StorageError(f"Cannot write {self.path}: {e}") from e
        logger.debug(
            f"Saved {len(snapshot.get('transactions', []))} transactions and "
            f"{len(snapshot.get('budgets', []))} budgets to {self.path}"
        )
