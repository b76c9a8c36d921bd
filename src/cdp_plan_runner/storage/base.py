"""Result storage abstractions for extracted page data."""

from __future__ import annotations

import json
import logging
import secrets
import time
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, List, Optional

LOGGER = logging.getLogger(__name__)


def generate_name(prefix: str = "extracted_data") -> str:
    timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S-%fZ")
    return f"{prefix}_{timestamp}_{secrets.token_hex(3)}.json"


class ResultStore(ABC):
    """Interface for saving and retrieving extracted payloads."""

    @abstractmethod
    def save(self, data: Any, name: Optional[str] = None) -> str:
        """Persist ``data`` and return the name it was stored under."""

    @abstractmethod
    def get(self, name: str) -> dict[str, Any]:
        """Return the stored record (``timestamp`` and ``data``) for ``name``."""

    @abstractmethod
    def list(self) -> List[str]:
        """Return the names of all stored records."""

    @abstractmethod
    def cleanup(self, max_age_days: int = 30) -> List[str]:
        """Delete records older than ``max_age_days`` and return their names."""


class InMemoryResultStore(ResultStore):
    """Simple in-memory store useful for testing."""

    def __init__(self) -> None:
        self._records: dict[str, dict[str, Any]] = {}

    def save(self, data: Any, name: Optional[str] = None) -> str:
        name = name or generate_name()
        self._records[name] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "data": data,
        }
        return name

    def get(self, name: str) -> dict[str, Any]:
        return self._records[name]

    def list(self) -> List[str]:
        return sorted(self._records)

    def cleanup(self, max_age_days: int = 30) -> List[str]:
        cutoff = datetime.now(timezone.utc) - timedelta(days=max_age_days)
        expired = [
            name
            for name, record in self._records.items()
            if datetime.fromisoformat(record["timestamp"]) < cutoff
        ]
        for name in expired:
            del self._records[name]
        return expired


class JSONFileStore(ResultStore):
    """Store each payload as a pretty-printed JSON file in one directory."""

    def __init__(self, directory: Path) -> None:
        self._directory = directory
        self._directory.mkdir(parents=True, exist_ok=True)
        LOGGER.info("Data storage initialized at: %s", self._directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def save(self, data: Any, name: Optional[str] = None) -> str:
        name = name or generate_name()
        path = self._path(name)
        record = {"timestamp": datetime.now(timezone.utc).isoformat(), "data": data}
        path.write_text(json.dumps(record, indent=2, default=str), encoding="utf-8")
        LOGGER.info("Data saved to: %s", path)
        return name

    def get(self, name: str) -> dict[str, Any]:
        path = self._path(name)
        if not path.is_file():
            raise KeyError(name)
        return json.loads(path.read_text(encoding="utf-8"))

    def list(self) -> List[str]:
        return sorted(path.name for path in self._directory.glob("*.json"))

    def cleanup(self, max_age_days: int = 30) -> List[str]:
        """Delete records older than ``max_age_days`` and return their names."""

        cutoff = time.time() - max_age_days * 24 * 60 * 60
        removed: List[str] = []
        for name in self.list():
            path = self._directory / name
            try:
                if path.stat().st_mtime < cutoff:
                    path.unlink()
                    removed.append(name)
                    LOGGER.info("Removed old data file: %s", name)
            except OSError:
                LOGGER.exception("Failed to remove old data file %s", name)
        return removed

    def _path(self, name: str) -> Path:
        if not name.endswith(".json") or Path(name).name != name or name.startswith("."):
            raise ValueError(f"Invalid record name: {name!r}")
        return self._directory / name
