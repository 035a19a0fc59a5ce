"""observe(): per-key lifecycles over a keyed collection."""

from __future__ import annotations

from typing import Any, Callable

from atomsync.capture import peek
from atomsync._tracking import untracked
from atomsync.mapped import iter_entries
from atomsync.reaction import Cleanup, subscribe


def _noop() -> None:
    pass


def observe(molecule: Callable[[], Any], factory: Callable[[Any, Any], Cleanup | None]) -> Cleanup:
    """Call factory(value, key) once per key as keys appear in the collection.

    The cleanup returned by the factory runs once when its key disappears.
    The returned function stops observing and runs every live cleanup.

    Usage:
        players = atom({"ann": 1})
        stop = observe(players, lambda v, k: lambda: print(f"{k} left"))
        players({})  # prints "ann left"
    """
    connections: dict[Any, Cleanup] = {}

    def listener(state: Any, prev: Any = None) -> None:
        present = dict(iter_entries(state))
        for key in [key for key in connections if key not in present]:
            connections.pop(key)()
        for key, value in present.items():
            if key not in connections:
                cleanup = untracked(factory, value, key)
                connections[key] = cleanup if cleanup is not None else _noop

    unsubscribe = subscribe(molecule, listener)
    listener(peek(molecule))

    def stop() -> None:
        unsubscribe()
        while connections:
            _, cleanup = connections.popitem()
            cleanup()

    return stop
