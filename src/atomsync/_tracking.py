"""Dependency tracking engine: the heart of atomsync.

Uses a context variable to hold the capture sets that are currently
collecting reads. Every atom read while a set is active registers itself
in *all* active sets, not just the innermost one.

Batching: writes inside `batch()` queue their listeners and flush them
once, when the outermost batch exits.
"""

from __future__ import annotations

import contextvars
import inspect
import weakref
from typing import TYPE_CHECKING, Any, Callable

from atomsync import _anchor
from atomsync.errors import SuspensionError

if TYPE_CHECKING:
    from atomsync.atom import Atom

Listener = Callable[[], None]

# Capture sets collecting reads right now, outermost first.
capturing: contextvars.ContextVar[tuple[set, ...]] = contextvars.ContextVar(
    "capturing", default=()
)


def run_to_completion(fn: Callable[..., Any], *args: Any) -> Any:
    """Call fn and reject the result if it is an awaitable or async generator.

    Tracked code cannot suspend: the bookkeeping around it assumes the call
    returns before anything else touches the runtime.
    """
    result = fn(*args)
    if inspect.isasyncgen(result):
        result.aclose().close()
    elif inspect.isawaitable(result):
        cancel = getattr(result, "close", None) or getattr(result, "cancel", None)
        if cancel is not None:
            cancel()
    else:
        return result
    name = getattr(fn, "__qualname__", None) or repr(fn)
    raise SuspensionError(
        f"{name} returned an awaitable or async generator; tracked code must not suspend"
    )


def track(atom: Atom) -> None:
    """Register a read of atom in every active capture set."""
    for dependencies in capturing.get():
        dependencies.add(atom)


def capture_call(molecule: Callable[[], Any]) -> tuple[set, Any]:
    """Run molecule with a fresh capture set pushed on top of the active ones."""
    dependencies: set = set()
    token = capturing.set(capturing.get() + (dependencies,))
    try:
        result = run_to_completion(molecule)
    finally:
        capturing.reset(token)
    return dependencies, result


def untracked(fn: Callable[..., Any], *args: Any) -> Any:
    """Run fn with every active capture set hidden, then restore them."""
    token = capturing.set(())
    try:
        return run_to_completion(fn, *args)
    finally:
        capturing.reset(token)


def connect(atom: Atom, listener: Listener, ref: object = None) -> None:
    """Add a listener edge to atom.

    With a ref, the edge only lives as long as ref does: when ref is
    garbage collected the edge is removed again.
    """
    edges = _anchor.listeners.get(atom)
    if edges is None:
        edges = _anchor.listeners[atom] = {}
    if ref is None:
        edges[listener] = None
        return

    source = weakref.ref(atom)

    def _release(_ref: weakref.ref) -> None:
        target = source()
        if target is not None:
            disconnect(target, listener)

    edges[listener] = weakref.ref(ref, _release)


def disconnect(atom: Atom, listener: Listener) -> None:
    """Remove a listener edge from atom. Missing edges are ignored."""
    edges = _anchor.listeners.get(atom)
    if edges is None:
        return
    edges.pop(listener, None)
    if not edges:
        _anchor.listeners.pop(atom, None)


def listener_count(atom: Atom) -> int:
    """Number of listeners connected to atom. Useful for testing."""
    return len(_anchor.listeners.get(atom, ()))


def notify(atom: Atom) -> None:
    """Run (or queue, inside a batch) every listener of atom.

    The listener set is snapshotted first, so listeners connected or
    disconnected by another listener do not change this pass.
    """
    edges = _anchor.listeners.get(atom)
    if not edges:
        return
    snapshot = list(edges)
    if _anchor.batching:
        for listener in snapshot:
            _anchor.pending[listener] = None
        return
    for listener in snapshot:
        listener()


def begin_batch() -> bool:
    """Enter a batching scope. Returns False when one is already active."""
    if _anchor.batching:
        return False
    _anchor.batching = True
    return True


def end_batch() -> None:
    """Leave the outermost batching scope and flush pending listeners."""
    _anchor.batching = False
    _flush_pending()


def batch(callback: Callable[[], Any]) -> Any:
    """Run callback, deferring notifications until the outermost batch exits.

    Nested calls just run callback. The outermost call always clears the
    batching flag and flushes, even when callback raises.

    Usage:
        batch(lambda: (a.set(1), b.set(2)))
        # listeners of a and b run once, after both writes
    """
    outermost = begin_batch()
    try:
        return run_to_completion(callback)
    finally:
        if outermost:
            end_batch()


def _flush_pending() -> None:
    """Run each pending listener once. Listeners run with batching off."""
    listeners = list(_anchor.pending)
    _anchor.pending.clear()
    for listener in listeners:
        listener()


def get_pending_count() -> int:
    """Number of listeners waiting for the current batch to end. Useful for testing."""
    return len(_anchor.pending)
