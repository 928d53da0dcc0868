"""Exceptions raised by statekeep."""

from __future__ import annotations


class StatekeepError(Exception):
    """Base class for statekeep errors."""


class CorruptRecordError(StatekeepError, ValueError):
    """A persisted record could not be parsed."""

    def __init__(self, key: str | None, reason: str) -> None:
        super().__init__(f"Corrupt record under {key!r}: {reason}")
        self.key = key
        self.reason = reason
