"""Storage adapters — string key-value stores that back persisted state.

Any object with ``get``/``set``/``remove`` satisfies the Storage protocol.
MemoryStorage is the default; JsonFileStorage keeps every key in one JSON
file on disk.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

logger = logging.getLogger("statekeep.storage")


class Storage(Protocol):
    def get(self, key: str) -> str | None: ...
    def set(self, key: str, value: str) -> None: ...
    def remove(self, key: str) -> None: ...


class MemoryStorage:
    """Dict-backed storage. Lives as long as the process."""

    def __init__(self, data: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(data) if data else {}

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __repr__(self) -> str:
        return f"MemoryStorage({sorted(self._data)!r})"


class JsonFileStorage:
    """Durable storage: one JSON object of key -> string in a single file.

    Every write rewrites the whole file through a temp file and os.replace,
    so a crash mid-write leaves the previous contents in place.
    """

    def __init__(self, path: str | os.PathLike) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> dict[str, str]:
        """Whole file as a dict. A missing or corrupt file reads as empty;
        the next write replaces it."""
        if not self._path.exists():
            return {}
        try:
            with open(self._path, encoding="utf-8") as f:
                data = json.load(f)
        except ValueError as exc:
            logger.error("Ignoring corrupt storage file %s: %s", self._path, exc)
            return {}
        if not isinstance(data, dict):
            logger.error(
                "Ignoring storage file %s: expected an object, got %s",
                self._path, type(data).__name__,
            )
            return {}
        return data

    def _write_all(self, data: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = None
        try:
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self._path.parent,
                prefix=self._path.name + ".",
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp = f.name
                json.dump(data, f, ensure_ascii=False, sort_keys=True)
            os.replace(tmp, self._path)
        finally:
            # gone after a successful replace
            if tmp is not None and os.path.exists(tmp):
                os.remove(tmp)

    def get(self, key: str) -> str | None:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def remove(self, key: str) -> None:
        data = self._read_all()
        if key in data:
            del data[key]
            self._write_all(data)

    def __repr__(self) -> str:
        return f"JsonFileStorage({str(self._path)!r})"
