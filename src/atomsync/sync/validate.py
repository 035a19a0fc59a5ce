"""Legality checks for values sent over the sync protocol.

Only plain data can be synced: None, bool, str, finite int/float, and
plain dict/list composites of those. Keys of one dict must be all strings
or all integral numbers.

validate_change() covers what a single value can't show: a list turning into
a dict only survives a patch when the dict has string keys that don't look
like list indices.
"""

from __future__ import annotations

import math
from typing import Any

from atomsync.atom import Atom
from atomsync.errors import SyncValidationError
from atomsync.sync.patch import is_index_key, is_none


def _key_kind(key: Any, path: tuple) -> str:
    if type(key) is str:
        return "string"
    if type(key) is int:
        return "number"
    if type(key) is float:
        if not math.isfinite(key) or not key.is_integer():
            raise SyncValidationError(f"numeric key {key!r} must be a finite integer", path)
        return "number"
    raise SyncValidationError(f"{type(key).__name__} keys cannot be synced", path)


def validate(value: Any, path: tuple = ()) -> None:
    """Raise SyncValidationError if value cannot be synced."""
    if value is None or type(value) in (bool, str, int):
        return
    if type(value) is float:
        if not math.isfinite(value):
            raise SyncValidationError(f"non-finite number {value!r} cannot be synced", path)
        return
    if isinstance(value, Atom):
        raise SyncValidationError("atoms cannot be synced, sync their state instead", path)
    if type(value) is list:
        for index, item in enumerate(value):
            validate(item, path + (index,))
        return
    if type(value) is dict:
        if is_none(value):
            raise SyncValidationError("the removal marker cannot be used as a value", path)
        kind = None
        for key, item in value.items():
            key_kind = _key_kind(key, path)
            if kind is None:
                kind = key_kind
            elif key_kind != kind:
                raise SyncValidationError("keys must be all strings or all numbers", path)
            validate(item, path + (key,))
        return
    raise SyncValidationError(f"{type(value).__name__} values cannot be synced", path)


def validate_change(prev: Any, next: Any, path: tuple = ()) -> None:
    """Raise SyncValidationError if diff(prev, next) can't be applied faithfully."""
    if type(prev) is list and type(next) is dict:
        keys = [key for key, value in next.items() if value is not None]
        if not keys or any(is_index_key(key) for key in keys):
            raise SyncValidationError(
                "a list can only become a dict with non-numeric string keys", path
            )
        return
    if type(prev) is not type(next) or type(prev) not in (dict, list):
        return
    prev_items = dict(enumerate(prev)) if type(prev) is list else prev
    next_items = dict(enumerate(next)) if type(next) is list else next
    for key, value in next_items.items():
        if key in prev_items:
            validate_change(prev_items[key], value, path + (key,))
