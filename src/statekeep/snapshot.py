"""Snapshot helpers — deep clone and structural equality for state values.

State values are plain data (dicts, lists, dataclasses, scalars). The commit
protocol clones the live state before handing it to setters so that a setter
mutating its argument cannot corrupt the comparison baseline.
"""

from __future__ import annotations

import copy
from typing import TypeVar

T = TypeVar("T")


def clone(value: T) -> T:
    """Deep-copy a state value. Copy failures propagate."""
    return copy.deepcopy(value)


def _same_kind(a: object, b: object) -> bool:
    if type(a) is type(b):
        return True
    # bool is an int subclass but never equal to a number here
    if isinstance(a, bool) or isinstance(b, bool):
        return False
    return isinstance(a, (int, float)) and isinstance(b, (int, float))


def equal(a: object, b: object) -> bool:
    """Type-strict structural equality.

    Containers compare element by element; values of different types are
    unequal, so ``{"flag": 1}`` and ``{"flag": True}`` differ and ``[1]``
    differs from ``(1,)``. ints and floats compare by value (``1 == 1.0``).
    Anything else falls back to ``==``.
    """
    if a is b:
        return True
    if not _same_kind(a, b):
        return False
    if isinstance(a, dict):
        return a.keys() == b.keys() and all(equal(a[k], b[k]) for k in a)
    if isinstance(a, (list, tuple)):
        return len(a) == len(b) and all(equal(x, y) for x, y in zip(a, b))
    return bool(a == b)
