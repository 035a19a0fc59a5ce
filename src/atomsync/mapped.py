"""mapped(): a derived key→value atom rebuilt entry by entry."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Callable, Iterator

from atomsync._tracking import untracked
from atomsync.atom import is_same
from atomsync.computed import Computed, computed

Mapper = Callable[[Any, Any], Any]


def iter_entries(items: Any) -> Iterator[tuple[Any, Any]]:
    """Yield (key, value) pairs of a mapping or sequence, skipping None values."""
    if items is None:
        return
    pairs = items.items() if isinstance(items, Mapping) else enumerate(items)
    for key, value in pairs:
        if value is not None:
            yield key, value


def _unpack(result: Any, key: Any) -> tuple[Any, Any]:
    """Split a mapper result into (value, key); the input key is the fallback."""
    if isinstance(result, tuple) and 1 <= len(result) <= 2:
        value = result[0]
        new_key = result[1] if len(result) == 2 else None
        return value, key if new_key is None else new_key
    return result, key


def _reconcile(prev: dict, items: dict) -> dict:
    """Return prev if items holds the same entries, else a dict reusing unchanged values."""
    changed = len(prev) != len(items)
    result = {}
    for key, value in items.items():
        if key in prev and is_same(prev[key], value):
            result[key] = prev[key]
        else:
            result[key] = value
            changed = True
    return result if changed else prev


def mapped(molecule: Callable[[], Any], mapper: Mapper) -> Computed[dict]:
    """Map every entry of a molecule's collection into a derived dict.

    mapper(value, key) returns None to drop the entry, a (value, key) tuple
    to rename it, or a bare value to keep the key. The mapper runs for every
    entry on every upstream change; the output dict is only replaced when an
    entry was added, removed or changed.

    Usage:
        scores = atom({"x": 1, "y": 2})
        big = mapped(scores, lambda v, k: (v * 10, k) if v > 1 else None)
        big()  # {"y": 20}
    """
    prev: dict = {}

    def derive() -> dict:
        nonlocal prev
        items = {}
        for key, value in iter_entries(molecule()):
            result = untracked(mapper, value, key)
            if result is None:
                continue
            new_value, new_key = _unpack(result, key)
            if new_value is not None:
                items[new_key] = new_value
        prev = _reconcile(prev, items)
        return prev

    return computed(derive)
