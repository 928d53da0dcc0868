"""StateContainer — a single observable value with a commit protocol.

Every mutation goes through ``await container.set(...)``:

    clone -> resolve setter -> equality short-circuit -> middleware
          -> commit -> notify subscribers -> persist

Calls to ``set`` on one container are serialised through an asyncio.Lock,
so overlapping calls commit in the order they were made instead of racing
while their middleware awaits.

Persistence operations (``persist``/``load``/``reset``/``clear``) are
synchronous. ``load`` and ``reset`` replace the initial state wholesale with
the persisted one and bypass both the equality check and middleware.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Generic, TypeVar, Union

from statekeep.middleware import Middleware, MiddlewarePipeline
from statekeep.persistence import PersistenceBackend
from statekeep.snapshot import clone, equal
from statekeep.storage import Storage
from statekeep.subscribers import Subscriber, SubscriberRegistry

T = TypeVar("T")

Setter = Union[T, Callable[[T, T], T]]

logger = logging.getLogger("statekeep.container")


class StateContainer(Generic[T]):
    """Observable state with middleware, subscribers, and optional backup.

    Usage:
        counter = StateContainer({"count": 0})
        counter.subscribe(lambda new, prev, init: print(new))
        # prints {'count': 0}, the initial call

        await counter.set(lambda s, init: {"count": s["count"] + 1})
        # prints {'count': 1}

    With local_backup on, state must be JSON-compatible (dicts, lists,
    strings, numbers, bools, None). The backup write happens after the
    commit and fan-out, so a value json cannot encode is still committed
    and delivered; set() then raises TypeError and the stored record keeps
    its previous contents.
    """

    def __init__(
        self,
        initial: T,
        *,
        callback: Subscriber | None = None,
        auto_update: bool = True,
        local_backup: bool = False,
        local_key: str | None = None,
        stale_time: int | None = None,
        storage: Storage | None = None,
    ) -> None:
        self._state: T = initial
        self._initial_state: T = initial
        self._subscribers: SubscriberRegistry[T] = SubscriberRegistry()
        self._middleware: MiddlewarePipeline[T] = MiddlewarePipeline()
        self._backend = PersistenceBackend(
            storage, enabled=local_backup, key=local_key, stale_time=stale_time
        )
        self._lock: asyncio.Lock | None = None
        self._lock_loop: asyncio.AbstractEventLoop | None = None
        # Reserved. Nothing reads it.
        self.auto_update = auto_update

        if callback is not None:
            callback(self._state, self._state, self._initial_state)
        if local_backup:
            self.load()

    # --- Reads ---

    def get(self) -> T:
        """Current state by reference. Treat it as read-only."""
        return self._state

    @property
    def state(self) -> T:
        return self._state

    @property
    def initial_state(self) -> T:
        return self._initial_state

    @property
    def local_backup(self) -> bool:
        return self._backend.enabled

    @property
    def storage(self) -> Storage:
        return self._backend.storage

    # --- Mutation ---

    def _commit_lock(self) -> asyncio.Lock:
        """The set() lock for the running loop. A new loop gets a fresh lock."""
        loop = asyncio.get_running_loop()
        if self._lock is None or self._lock_loop is not loop:
            self._lock = asyncio.Lock()
            self._lock_loop = loop
        return self._lock

    async def set(self, setter: Setter) -> tuple[T, T]:
        """Propose a new state; returns ``(new_state, prev_state)``.

        setter is either the replacement value or a function
        ``(prev_state, initial_state) -> candidate``. A candidate equal to
        the current state returns immediately with nothing run. Otherwise
        the candidate passes through every middleware, is committed,
        broadcast to subscribers, and written to backup if enabled.

        If a middleware raises, nothing is committed and the exception
        propagates.
        """
        async with self._commit_lock():
            prev_state = clone(self._state)
            if callable(setter):
                candidate = setter(prev_state, self._initial_state)
            else:
                candidate = setter

            if equal(prev_state, candidate):
                return self._state, prev_state

            new_state = await self._middleware.run(
                candidate, prev_state, self._initial_state
            )

            self._state = new_state
            self._subscribers.notify(self._state, prev_state, self._initial_state)

            if self._backend.enabled:
                self.persist()

            return self._state, prev_state

    # --- Subscribers ---

    def subscribe(self, callback: Subscriber, *, initial_call: bool = True) -> bool:
        """Register callback. With initial_call, call it now with the current state
        as both new and previous value."""
        self._subscribers.add(callback)
        if initial_call:
            callback(self._state, self._state, self._initial_state)
        return True

    def unsubscribe(self, callback: Subscriber) -> bool:
        """Remove every registration of callback."""
        self._subscribers.remove(callback)
        return True

    @property
    def subscribers(self) -> SubscriberRegistry[T]:
        return self._subscribers

    # --- Middleware ---

    def add_middleware(self, fn: Middleware) -> None:
        self._middleware.add(fn)

    def remove_middleware(self, fn: Middleware) -> None:
        self._middleware.remove(fn)

    @property
    def middleware(self) -> MiddlewarePipeline[T]:
        return self._middleware

    # --- Persistence ---

    def persist(self) -> None:
        """Write state, initial state, and the current time to backup."""
        self._backend.write(self._state, self._initial_state)

    def load(self) -> None:
        """Adopt the persisted record, or reset if it is stale.

        The record's initial state replaces ours; its state is committed
        as-is without middleware. Subscribers are always notified.
        """
        record = self._backend.read()
        if record is None:
            return
        if self._backend.is_stale(record):
            logger.info("Persisted state under %r is stale, resetting", self._backend.key)
            self.reset()
            return
        self._initial_state = record.initial_state
        self._state = record.state
        logger.debug("Loaded persisted state from %r", self._backend.key)
        self._subscribers.notify(self._state, self._initial_state, self._initial_state)

    def reset(self) -> None:
        """Set state and initial state to the persisted initial state."""
        record = self._backend.read()
        if record is None:
            return
        self._state = record.initial_state
        self._initial_state = record.initial_state
        logger.debug("Reset to persisted initial state from %r", self._backend.key)
        self._subscribers.notify(self._state, self._initial_state, self._initial_state)

    def clear(self) -> None:
        """Delete the persisted record. In-memory state is untouched."""
        self._backend.remove()

    def __repr__(self) -> str:
        return f"StateContainer({self._state!r})"
