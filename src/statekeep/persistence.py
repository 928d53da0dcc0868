"""Persistence backend — timestamped state records in a key-value store.

A record is stored as one JSON string under a configured key:

    {"state": <T>, "initialState": <T>, "timestamp": <int ms since epoch>}

Misconfiguration (backup disabled, or no key) is never raised: every
operation logs the problem and does nothing. A record that fails to parse is
logged, removed, and treated as absent.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Generic, TypeVar

from statekeep.errors import CorruptRecordError
from statekeep.storage import MemoryStorage, Storage

T = TypeVar("T")

logger = logging.getLogger("statekeep.persistence")


def now_ms() -> int:
    return int(time.time() * 1000)


class PersistedRecord(Generic[T]):
    """A snapshot of container state as written to storage."""

    __slots__ = ("state", "initial_state", "timestamp")

    def __init__(self, state: T, initial_state: T, timestamp: int) -> None:
        self.state = state
        self.initial_state = initial_state
        self.timestamp = timestamp

    def to_json(self) -> str:
        return json.dumps(
            {
                "state": self.state,
                "initialState": self.initial_state,
                "timestamp": self.timestamp,
            }
        )

    @classmethod
    def from_json(cls, text: str, key: str | None = None) -> PersistedRecord:
        """Parse a stored record. Raises CorruptRecordError on bad content."""
        try:
            raw: Any = json.loads(text)
        except (TypeError, ValueError) as exc:
            raise CorruptRecordError(key, f"invalid JSON ({exc})") from exc
        if not isinstance(raw, dict):
            raise CorruptRecordError(key, f"expected an object, got {type(raw).__name__}")
        missing = [k for k in ("state", "initialState", "timestamp") if k not in raw]
        if missing:
            raise CorruptRecordError(key, f"missing {', '.join(missing)}")
        timestamp = raw["timestamp"]
        # bool is an int subclass
        if isinstance(timestamp, bool) or not isinstance(timestamp, int):
            raise CorruptRecordError(key, f"timestamp is not an integer: {timestamp!r}")
        return cls(raw["state"], raw["initialState"], timestamp)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PersistedRecord):
            return NotImplemented
        return (
            self.state == other.state
            and self.initial_state == other.initial_state
            and self.timestamp == other.timestamp
        )

    def __repr__(self) -> str:
        return (
            f"PersistedRecord(state={self.state!r}, "
            f"initial_state={self.initial_state!r}, timestamp={self.timestamp})"
        )


class PersistenceBackend:
    """Reads and writes one PersistedRecord under one storage key."""

    def __init__(
        self,
        storage: Storage | None = None,
        *,
        enabled: bool = False,
        key: str | None = None,
        stale_time: int | None = None,
    ) -> None:
        self.storage: Storage = storage if storage is not None else MemoryStorage()
        self.enabled = enabled
        self.key = key
        self.stale_time = stale_time

    def available(self) -> bool:
        """True if backup is enabled and keyed. Logs why not otherwise."""
        if not self.enabled:
            logger.error("Local backup is not enabled")
            return False
        if not self.key:
            logger.error("No local key provided to store state")
            return False
        return True

    def write(self, state: Any, initial_state: Any) -> None:
        if not self.available():
            return
        record = PersistedRecord(state, initial_state, now_ms())
        self.storage.set(self.key, record.to_json())

    def read(self) -> PersistedRecord | None:
        """Return the stored record, or None if absent, unavailable, or corrupt."""
        if not self.available():
            return None
        text = self.storage.get(self.key)
        if text is None or text == "":
            return None
        try:
            return PersistedRecord.from_json(text, self.key)
        except CorruptRecordError as exc:
            logger.error("Discarding persisted state: %s", exc)
            self.storage.remove(self.key)
            return None

    def is_stale(self, record: PersistedRecord) -> bool:
        if not self.stale_time:
            return False
        return now_ms() - record.timestamp > self.stale_time

    def remove(self) -> None:
        if not self.available():
            return
        self.storage.remove(self.key)

    def __repr__(self) -> str:
        state = "enabled" if self.enabled else "disabled"
        return f"PersistenceBackend({self.key!r}, {state})"
