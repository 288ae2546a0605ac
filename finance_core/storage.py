"""Persistence utilities for the finance tracker core services."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List

from .exceptions import PersistenceError

logger = logging.getLogger(__name__)


class JSONStorage:
    """File-based JSON storage with crash-safe writes, one file per resource."""

    def __init__(self, base_path: Path) -> None:
        self._base_path = Path(base_path)
        try:
            self._base_path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PersistenceError(f"Unable to create data directory {self._base_path}") from exc

    def load(self, resource: str) -> List[Dict[str, Any]]:
        path = self._base_path / resource
        if not path.exists():
            return []
        try:
            with path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except json.JSONDecodeError as exc:
            raise PersistenceError(f"Corrupted JSON data in {path}") from exc
        except OSError as exc:
            raise PersistenceError(f"Unable to read from {path}") from exc

        if not isinstance(payload, list):
            raise PersistenceError(f"Expected list payload in {path}")
        logger.debug("Loaded %d records from %s", len(payload), path)
        return payload

    def save(self, resource: str, records: Iterable[Dict[str, Any]]) -> None:
        path = self._base_path / resource
        temp_path = path.with_suffix(path.suffix + ".tmp")
        snapshot = list(records)
        try:
            with temp_path.open("w", encoding="utf-8") as handle:
                json.dump(snapshot, handle, indent=2)
                handle.flush()
            # Atomic on POSIX; readers never observe a half-written file.
            temp_path.replace(path)
        except OSError as exc:
            self._discard(temp_path)
            logger.warning("Write of %s failed; keeping previous contents", resource)
            raise PersistenceError(f"Unable to write to {path}") from exc
        logger.debug("Saved %d records to %s", len(snapshot), path)

    @staticmethod
    def _discard(temp_path: Path) -> None:
        """Remove a partially written snapshot so the next load sees only committed data."""
        try:
            temp_path.unlink()
        except FileNotFoundError:
            pass
        except OSError:
            logger.warning("Could not remove stale snapshot %s", temp_path)

    @property
    def base_path(self) -> Path:
        return self._base_path
