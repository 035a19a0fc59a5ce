"""Data anchor: plain Python structures that hold all reactive runtime state.

Listener edges live here rather than on the atoms so the behaviour modules
can stay stateless. The registry is keyed weakly by atom: once an atom is
unreachable its listener map is reclaimed with it.
"""

from __future__ import annotations

import weakref

# atom -> {listener: keep-alive weakref or None}
listeners: weakref.WeakKeyDictionary = weakref.WeakKeyDictionary()

# Batch state. pending is an ordered set (dict keys) of listeners to run
# once the outermost batch exits.
batching: bool = False
pending: dict = {}


def reset() -> None:
    """Drop every listener edge and any pending batch. Used between tests."""
    global batching
    listeners.clear()
    pending.clear()
    batching = False
