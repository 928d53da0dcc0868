"""Middleware pipeline — sequential transforms applied before a commit.

Each stage receives ``(value, prev_state, initial_state)`` where ``value`` is
the previous stage's output, and may return either the next value or an
awaitable resolving to it. Stages run strictly one after another.
"""

from __future__ import annotations

import inspect
from typing import Awaitable, Callable, Generic, TypeVar, Union

T = TypeVar("T")

Middleware = Callable[[T, T, T], Union[T, Awaitable[T]]]


class MiddlewarePipeline(Generic[T]):
    """Ordered list of (possibly async) transform stages."""

    __slots__ = ("_stages",)

    def __init__(self) -> None:
        self._stages: list[Middleware] = []

    def add(self, fn: Middleware) -> None:
        self._stages.append(fn)

    def remove(self, fn: Middleware) -> None:
        """Drop every registration identical to fn."""
        self._stages = [m for m in self._stages if m is not fn]

    async def run(self, candidate: T, prev_state: T, initial_state: T) -> T:
        """Thread candidate through every stage, awaiting each in turn.

        The first stage to raise aborts the run; the exception propagates.
        """
        value = candidate
        for stage in list(self._stages):
            result = stage(value, prev_state, initial_state)
            if inspect.isawaitable(result):
                result = await result
            value = result
        return value

    def __len__(self) -> int:
        return len(self._stages)

    def __repr__(self) -> str:
        return f"MiddlewarePipeline({len(self._stages)} stages)"
