"""capture() and peek(): the public face of dependency tracking."""

from __future__ import annotations

from typing import Any, Callable, TypeVar

from atomsync._tracking import capture_call, untracked
from atomsync.atom import Atom

T = TypeVar("T")


def capture(molecule: Callable[[], T]) -> tuple[set[Atom], T]:
    """Run molecule and return the atoms it read along with its result.

    An atom passed directly is its own single dependency.

    Usage:
        dependencies, total = capture(lambda: a() + b())
        # dependencies == {a, b}
    """
    if isinstance(molecule, Atom):
        return {molecule}, molecule.get()
    return capture_call(molecule)


def peek(value: Any, *args: Any) -> Any:
    """Call value(*args) without registering any reads as dependencies.

    Non-callable values pass through unchanged, so peek(x) works on both
    atoms and plain values.
    """
    if not callable(value):
        return value
    return untracked(value, *args)
