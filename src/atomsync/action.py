"""Actions and transactions: batched state mutations.

Wrapping writes in batch(), an @action or `with transaction()` defers every
listener until the outermost scope exits, so subscribers see all of the
writes at once instead of one glitchy intermediate state per write.
"""

from __future__ import annotations

import functools
from contextlib import contextmanager
from typing import Callable, ParamSpec, TypeVar

from atomsync._tracking import batch, begin_batch, end_batch

P = ParamSpec("P")
R = TypeVar("R")

__all__ = ["action", "batch", "transaction"]


def action(fn: Callable[P, R]) -> Callable[P, R]:
    """Decorator: batch all atom writes inside fn.

    Listeners only fire after fn returns, not during.

    Usage:
        left = atom(0)
        right = atom(0)

        @action
        def swap():
            a, b = left(), right()
            left(b)
            right(a)
            # subscribers see both changes at once, not one at a time
    """

    @functools.wraps(fn)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        return batch(functools.partial(fn, *args, **kwargs))

    return wrapper


@contextmanager
def transaction():
    """Context manager for batching writes.

    Usage:
        with transaction():
            left.set(1)
            right.set(2)
            # listeners fire here, after both are set
    """
    outermost = begin_batch()
    try:
        yield
    finally:
        if outermost:
            end_batch()
