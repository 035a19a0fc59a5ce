"""Computed values: derived state with automatic dependency tracking.

A Computed is a read-only atom holding a molecule's result. When any atom
the molecule read changes, the molecule is re-captured eagerly and the
result is pushed through the normal atom write path, so the equality gate
still suppresses redundant downstream notifications.

Sources only hold a weak reference to the computed atom: once nothing
else references it, its edges are dropped and it stops recomputing.
"""

from __future__ import annotations

import weakref
from typing import Any, Callable, TypeVar

from atomsync._tracking import connect, disconnect
from atomsync.atom import Atom, Equals
from atomsync.capture import capture
from atomsync.errors import MisuseError

T = TypeVar("T")


class Computed(Atom[T]):
    """A read-only atom whose value is derived from other atoms."""

    __slots__ = ()

    def set(self, value: Any) -> T:
        raise MisuseError(f"{self!r} is derived and cannot be written")


def computed(molecule: Callable[[], T], *, equals: Equals | None = None) -> Computed[T]:
    """Create a Computed from a molecule.

    Usage:
        counter = atom(3)
        doubled = computed(lambda: counter() * 2)

        doubled()  # 6
        counter(5)
        doubled()  # 10
    """
    dependencies, state = capture(molecule)
    result: Computed[T] = Computed(state, equals)
    target_ref = weakref.ref(result)

    def listener() -> None:
        nonlocal dependencies
        target = target_ref()
        if target is None:
            for dependency in dependencies:
                disconnect(dependency, listener)
            return
        next_dependencies, next_state = capture(molecule)
        for dependency in dependencies - next_dependencies:
            disconnect(dependency, listener)
        for dependency in next_dependencies:
            connect(dependency, listener, target)
        dependencies = next_dependencies
        target._write(next_state)

    for dependency in dependencies:
        connect(dependency, listener, result)
    return result
