"""Subscriber registry — ordered, synchronous fan-out to observers.

Subscribers are plain callables ``(new_state, prev_state, initial_state)``.
Removal is by identity, so the same function registered twice is removed
twice by a single ``remove`` call.
"""

from __future__ import annotations

from typing import Callable, Generic, Iterator, TypeVar

T = TypeVar("T")

Subscriber = Callable[[T, T, T], None]


class SubscriberRegistry(Generic[T]):
    """Ordered list of subscriber callbacks."""

    __slots__ = ("_subscribers",)

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []

    def add(self, callback: Subscriber) -> None:
        self._subscribers.append(callback)

    def remove(self, callback: Subscriber) -> None:
        """Drop every registration identical to callback. Missing is fine."""
        self._subscribers = [cb for cb in self._subscribers if cb is not callback]

    def notify(self, new_state: T, prev_state: T, initial_state: T) -> None:
        """Call each subscriber in registration order.

        Iterates over a snapshot, so a subscriber that unsubscribes itself
        (or another) mid fan-out does not shift the remaining deliveries.
        Exceptions propagate to the caller.
        """
        for cb in list(self._subscribers):
            cb(new_state, prev_state, initial_state)

    def __len__(self) -> int:
        return len(self._subscribers)

    def __contains__(self, callback: object) -> bool:
        return any(cb is callback for cb in self._subscribers)

    def __iter__(self) -> Iterator[Subscriber]:
        return iter(list(self._subscribers))

    def __repr__(self) -> str:
        return f"SubscriberRegistry({len(self._subscribers)} subscribers)"
