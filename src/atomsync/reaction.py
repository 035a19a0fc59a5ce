"""Reactions: side effects triggered by atom state changes.

Both flavors keep their dependency set fresh: every time they fire, they
re-capture the molecule and reconnect to whatever it read this time, since
conditional reads can change the set between runs.

- subscribe(molecule, callback): calls callback(state, prev) whenever the
  molecule's result changes.
- effect(callback): runs callback immediately and re-runs it whenever any
  atom it read changes. callback may return a cleanup function.
"""

from __future__ import annotations

from typing import Callable, TypeVar

from atomsync._tracking import capture_call, connect, disconnect, run_to_completion, untracked
from atomsync.atom import is_same
from atomsync.capture import capture

T = TypeVar("T")

Cleanup = Callable[[], None]


def _reconnect(old: set, new: set, listener) -> None:
    for dependency in old - new:
        disconnect(dependency, listener)
    for dependency in new:
        connect(dependency, listener)


def subscribe(molecule: Callable[[], T], callback: Callable[[T, T], None]) -> Cleanup:
    """Call callback(state, prev) when the molecule's result changes.

    Returns an idempotent unsubscribe function.

    Usage:
        first = atom("Alice")
        last = atom("Smith")

        names = []
        unsubscribe = subscribe(
            lambda: f"{first()} {last()}",
            lambda name, prev: names.append(name),
        )
        # names == []: the callback doesn't fire on setup

        first("Bob")
        # names == ["Bob Smith"]

        unsubscribe()
    """
    dependencies, state = capture(molecule)
    disconnected = False

    def listener() -> None:
        nonlocal dependencies, state
        if disconnected:
            return
        next_dependencies, next_state = capture(molecule)
        if disconnected:
            return
        _reconnect(dependencies, next_dependencies, listener)
        dependencies = next_dependencies

        prev, state = state, next_state
        if not is_same(prev, next_state):
            untracked(callback, next_state, prev)

    def unsubscribe() -> None:
        nonlocal disconnected
        if disconnected:
            return
        disconnected = True
        for dependency in dependencies:
            disconnect(dependency, listener)

    for dependency in dependencies:
        connect(dependency, listener)
    return unsubscribe


def effect(callback: Callable[[], Cleanup | None]) -> Cleanup:
    """Run callback now, then re-run it whenever an atom it read changes.

    If callback returns a function, it is called before the next run and
    once more when the effect is unsubscribed.

    Usage:
        counter = atom(0)
        log = []

        stop = effect(lambda: log.append(counter()))
        # log == [0]: ran immediately

        counter(1)
        # log == [0, 1]

        stop()
        counter(2)
        # log == [0, 1]: stopped
    """
    cleanup: Cleanup | None = None
    disconnected = False

    def run() -> None:
        nonlocal cleanup
        result = run_to_completion(callback)
        cleanup = result if callable(result) else None

    def run_cleanup() -> None:
        nonlocal cleanup
        pending, cleanup = cleanup, None
        if pending is not None:
            untracked(pending)

    dependencies, _ = capture_call(run)

    def listener() -> None:
        nonlocal dependencies
        if disconnected:
            return
        run_cleanup()
        next_dependencies, _ = capture_call(run)
        if disconnected:
            run_cleanup()
            return
        _reconnect(dependencies, next_dependencies, listener)
        dependencies = next_dependencies

    def unsubscribe() -> None:
        nonlocal disconnected
        if disconnected:
            return
        disconnected = True
        for dependency in dependencies:
            disconnect(dependency, listener)
        run_cleanup()

    for dependency in dependencies:
        connect(dependency, listener)
    return unsubscribe
