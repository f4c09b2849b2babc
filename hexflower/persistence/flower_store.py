"""
Persistence providers for Hex Flowers.

The engine persists its whole collection after every change as a list of
snapshot dictionaries (one per flower, stored ids included). A provider only
needs ``load()`` and ``save(entries)``; two are shipped:

- InMemoryFlowerStore: keeps a deep copy in memory (tests, embedding hosts)
- JsonFileFlowerStore: writes a single JSON file, like session saves
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Protocol, runtime_checkable
import copy
import json
import logging

logger = logging.getLogger(__name__)

STORE_FORMAT_VERSION = 1


@runtime_checkable
class FlowerStore(Protocol):
    """Persistence collaborator consumed by the navigation engine."""

    def load(self) -> list[dict[str, Any]]:
        ...

    def save(self, entries: list[dict[str, Any]]) -> None:
        ...


class InMemoryFlowerStore:
    """Store that keeps entries in memory."""

    def __init__(self, entries: Optional[list[dict[str, Any]]] = None):
        self._entries: list[dict[str, Any]] = copy.deepcopy(entries or [])
        self.save_count = 0

    def load(self) -> list[dict[str, Any]]:
        return copy.deepcopy(self._entries)

    def save(self, entries: list[dict[str, Any]]) -> None:
        self._entries = copy.deepcopy(entries)
        self.save_count += 1

    @property
    def entries(self) -> list[dict[str, Any]]:
        return copy.deepcopy(self._entries)


class JsonFileFlowerStore:
    """
    Store that keeps all flowers in one JSON file.

    File layout:
        {"version": 1, "saved_at": "<iso>", "hexFlowers": [<snapshot>, ...]}
    """

    def __init__(self, filepath: Path | str):
        """
        Initialize the store.

        Args:
            filepath: JSON file to read and write. Parent directories are
                created on first save.
        """
        self.filepath = Path(filepath)

    def load(self) -> list[dict[str, Any]]:
        """
        Read stored flowers.

        Returns:
            Snapshot dictionaries; empty if the file does not exist yet
        """
        if not self.filepath.exists():
            logger.info(f"No flower store at {self.filepath}, starting empty")
            return []

        with open(self.filepath, "r", encoding="utf-8") as f:
            data = json.load(f)

        if isinstance(data, list):
            entries = data
        else:
            entries = data.get("hexFlowers", [])

        logger.info(f"Loaded {len(entries)} Hex Flowers from {self.filepath}")
        return entries

    def save(self, entries: list[dict[str, Any]]) -> None:
        """Write all flowers, replacing the file contents."""
        self.filepath.parent.mkdir(parents=True, exist_ok=True)
        data = {
            "version": STORE_FORMAT_VERSION,
            "saved_at": datetime.now().isoformat(),
            "hexFlowers": entries,
        }
        tmp_path = self.filepath.with_suffix(self.filepath.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        tmp_path.replace(self.filepath)
        logger.debug(f"Saved {len(entries)} Hex Flowers to {self.filepath}")
