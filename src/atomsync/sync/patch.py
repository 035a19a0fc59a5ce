"""Structural diff and patch of plain dict/list state.

A patch is a dict holding only the keys that changed between two states.
Removed keys are marked with NONE, a plain dict so the marker survives any
serialization the transport applies. Lists diff by index; after a trip
through a string-keyed transport their patch keys are coerced back to
ints by apply().
"""

from __future__ import annotations

from typing import Any

NONE: dict = {"__none": "__none"}

_COMPOSITES = (dict, list)


def is_none(value: Any) -> bool:
    """Whether value is the removal marker, even after a serialization round trip."""
    return value is NONE or (
        type(value) is dict and len(value) == 1 and value.get("__none") == "__none"
    )


def _as_mapping(value: dict | list) -> dict:
    return dict(enumerate(value)) if isinstance(value, list) else value


def _unchanged(prev: Any, next: Any) -> bool:
    if prev is next:
        return True
    if isinstance(prev, _COMPOSITES) or isinstance(next, _COMPOSITES):
        return False
    return type(prev) is type(next) and prev == next


def diff(prev: dict | list, next: dict | list) -> dict:
    """Return the patch that turns prev into next.

    Usage:
        diff({"a": 1, "b": 2}, {"a": 1, "b": 3, "c": 4})  # {"b": 3, "c": 4}
        diff({"a": 1}, {})  # {"a": NONE}
    """
    prev_items = _as_mapping(prev)
    next_items = _as_mapping(next)
    patch = {}

    for key, prev_value in prev_items.items():
        if key not in next_items or next_items[key] is None:
            if prev_value is not None:
                patch[key] = NONE
            continue
        next_value = next_items[key]
        if _unchanged(prev_value, next_value):
            continue
        if isinstance(prev_value, _COMPOSITES) and isinstance(next_value, _COMPOSITES):
            if type(prev_value) is list and type(next_value) is dict:
                patch[key] = _list_to_dict(prev_value, next_value)
                continue
            if type(prev_value) is not type(next_value):
                patch[key] = next_value
                continue
            sub_patch = diff(prev_value, next_value)
            if sub_patch:
                patch[key] = sub_patch
            continue
        patch[key] = next_value

    for key, next_value in next_items.items():
        if next_value is not None and prev_items.get(key) is None:
            patch[key] = next_value

    return patch


def _list_to_dict(prev: list, next: dict) -> dict:
    """Patch turning a list into a dict: drop every index, then add each entry.

    Only faithful when next has string keys that don't look like indices;
    validate_change() rejects the other cases.
    """
    patch = {index: NONE for index in range(len(prev))}
    for key, value in next.items():
        if value is not None:
            patch[key] = value
    return patch


def is_index_key(key: Any) -> bool:
    """Whether key addresses a list slot, before or after a string-keyed transport."""
    if type(key) is int:
        return True
    return isinstance(key, str) and key.isascii() and key.isdecimal()


def _coerce_index(key: Any) -> Any:
    if isinstance(key, str) and is_index_key(key):
        return int(key)
    return key


def apply(state: Any, patch: Any) -> Any:
    """Apply a patch produced by diff() to state, returning the new state.

    The input is never mutated. Non-composite state or patch values are
    replaced outright rather than merged.

    Usage:
        apply({"a": 1, "b": 2}, {"b": NONE, "c": 5})  # {"a": 1, "c": 5}
    """
    if is_none(patch):
        return None
    if not isinstance(state, _COMPOSITES) or not isinstance(patch, dict):
        return patch

    is_list = isinstance(state, list)
    result = dict(_as_mapping(state)) if is_list else dict(state)
    for key, value in patch.items():
        if is_list:
            key = _coerce_index(key)
        next_value = apply(result.get(key), value)
        if next_value is None:
            result.pop(key, None)
        else:
            result[key] = next_value

    if is_list and set(result) == set(range(len(result))):
        return [result[index] for index in range(len(result))]
    return result
