"""Atoms: equality-gated state cells that track their readers.

When an Atom is read while a capture is active, it registers itself as a
dependency. When its value changes, every connected listener is notified.

Thread safety: call set_scheduler() once from the owning thread. After
that, any .set() from a background thread is marshaled onto it; writes
from the owning thread stay synchronous.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Generic, TypeVar

from atomsync._tracking import notify, track

T = TypeVar("T")

Equals = Callable[[Any, Any], bool]

_SCALARS = (int, float, str, bytes, bool)

# ─── Auto-marshal ────────────────────────────────────────────────────────────
_scheduler = None
_scheduler_thread = None


def set_scheduler(scheduler) -> None:
    """Set the global thread scheduler for cross-thread atom writes.

    Call once from the owning thread:
        atomsync.set_scheduler(app.call_from_thread)

    After this, any Atom.set() from a background thread is marshaled.
    Pass None to turn marshaling off again.
    """
    global _scheduler, _scheduler_thread
    _scheduler = scheduler
    _scheduler_thread = threading.current_thread() if scheduler is not None else None


def get_scheduler():
    return _scheduler


def is_same(prev: Any, next: Any) -> bool:
    """Default sameness: identity, or equal immutable scalars of one type."""
    if prev is next:
        return True
    return type(prev) is type(next) and isinstance(prev, _SCALARS) and prev == next


class Atom(Generic[T]):
    """A mutable state cell with automatic dependency tracking.

    ``a.get()`` / ``a()`` read, ``a.set(v)`` / ``a(v)`` write. A callable
    argument is treated as an updater and applied to the current value.
    """

    __slots__ = ("_value", "_equals", "__weakref__")

    def __init__(self, value: T, equals: Equals | None = None) -> None:
        self._value = value
        self._equals = equals

    def get(self) -> T:
        """Read the value. Registers the atom in every active capture set."""
        track(self)
        return self._value

    def set(self, value: T | Callable[[T], T]) -> T:
        """Write a new value (or apply an updater) and notify on change.

        Returns the resulting value. From a background thread with a
        scheduler set, the write is queued and the current value returned.
        """
        if _scheduler is not None and threading.current_thread() != _scheduler_thread:
            _scheduler(lambda v=value: self._write(v))
            return self._value
        return self._write(value)

    def _write(self, value: Any) -> T:
        prev = self._value
        next_value = value(prev) if callable(value) else value
        if is_same(prev, next_value):
            return prev
        if self._equals is not None and self._equals(prev, next_value):
            return prev
        self._value = next_value
        notify(self)
        return next_value

    def __call__(self, *args: Any) -> T:
        if not args:
            return self.get()
        (value,) = args
        return self.set(value)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._value!r})"


def atom(initial: T, *, equals: Equals | None = None) -> Atom[T]:
    """Create an atom.

    Usage:
        count = atom(0)
        count.set(lambda n: n + 1)
        count()  # 1
    """
    return Atom(initial, equals)


def is_atom(value: object) -> bool:
    return isinstance(value, Atom)
