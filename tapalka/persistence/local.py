"""
Local Cache - Synchronous, always-available key/value store.

The local tier is written on every mutation, so implementations must
be cheap and idempotent. Values are strings, like browser storage.
"""

from __future__ import annotations
from pathlib import Path
from typing import Protocol, runtime_checkable
import json
import logging
import os

from .errors import CorruptLocalSnapshot

logger = logging.getLogger(__name__)


@runtime_checkable
class LocalCache(Protocol):
    """String-keyed get/set store."""

    def get(self, key: str) -> str | None:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def set_many(self, entries: dict[str, str]) -> None:
        """Write several keys as one write."""
        ...


class InMemoryLocalCache:
    """Dictionary-backed cache (tests, ephemeral sessions)."""

    def __init__(self, initial: dict[str, str] | None = None):
        self.data: dict[str, str] = dict(initial or {})
        self.write_count = 0

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value
        self.write_count += 1

    def set_many(self, entries: dict[str, str]) -> None:
        self.data.update(entries)
        self.write_count += 1


class JsonFileLocalCache:
    """
    One JSON file per player.

    Usage:
        cache = JsonFileLocalCache(Path("~/.tapalka/cache") / "42.json")
        cache.set("tapalka_score", "120")

    A malformed file raises CorruptLocalSnapshot once, then the cache
    continues empty and the next write replaces the file.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path).expanduser()
        self._data: dict[str, str] | None = None

    def get(self, key: str) -> str | None:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        self.set_many({key: value})

    def set_many(self, entries: dict[str, str]) -> None:
        """Write several keys with one file write."""
        data = self._data if self._data is not None else self._load_quietly()
        data.update(entries)
        self._write(data)

    def _load(self) -> dict[str, str]:
        if self._data is not None:
            return self._data

        self._data = {}
        if not self.path.exists():
            return self._data

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise CorruptLocalSnapshot(f"Unreadable cache file {self.path}: {e}") from e

        if not isinstance(raw, dict):
            raise CorruptLocalSnapshot(f"Cache file {self.path} is not a JSON object")

        self._data = {str(k): str(v) for k, v in raw.items() if v is not None}
        return self._data

    def _load_quietly(self) -> dict[str, str]:
        try:
            return self._load()
        except CorruptLocalSnapshot as e:
            logger.warning("Discarding corrupt local cache: %s", e)
            return self._data if self._data is not None else {}

    def _write(self, data: dict[str, str]):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, sort_keys=True)
        os.replace(tmp_path, self.path)
