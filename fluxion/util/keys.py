"""
Structural Key Access
=====================

Read and copy-on-write update of one key of a state value. This is what lets
a slice project `state[key]` out of its parent and write a new value back
without touching siblings.

Supported containers:

- Mappings: by key.
- Lists and tuples: by integer index (named tuples also by field name).
  Writing the index one past the end appends.
- Dataclass instances: by field name, written with `dataclasses.replace`.
- Any other object: by attribute, written on a shallow copy.

Writes never mutate the original value; sibling entries are carried over by
reference.
"""

import copy
import dataclasses
from collections.abc import Mapping, MutableMapping
from typing import Any, Hashable

from .sentinels import ABSENT


def _is_sequence(state: Any) -> bool:
    return isinstance(state, (list, tuple))


def _is_dataclass_instance(state: Any) -> bool:
    return dataclasses.is_dataclass(state) and not isinstance(state, type)


def has_key(state: Any, key: Hashable) -> bool:
    return get_key(state, key, ABSENT) is not ABSENT


def get_key(state: Any, key: Hashable, default: Any = None) -> Any:
    """Value of `state` at `key`, or `default` when there is none."""
    if state is None:
        return default
    if isinstance(state, Mapping):
        return state.get(key, default)
    if _is_sequence(state):
        if isinstance(key, int):
            if -len(state) <= key < len(state):
                return state[key]
            return default
        if isinstance(key, str) and hasattr(state, "_fields"):
            return getattr(state, key, default)
        return default
    if isinstance(key, str):
        return getattr(state, key, default)
    return default


def assoc_key(state: Any, key: Hashable, value: Any) -> Any:
    """
    Copy of `state` with `key` set to `value`.

    A `None` state becomes a new dict holding only `key`. On a list or tuple,
    `key == len(state)` appends.

    Raises:
        TypeError: If `state` cannot hold `key`.
        IndexError: If a sequence index is neither in range nor one past the end.
    """
    if state is None:
        return {key: value}

    if isinstance(state, MutableMapping):
        updated = copy.copy(state)
        updated[key] = value
        return updated
    if isinstance(state, Mapping):
        return {**state, key: value}

    if _is_sequence(state):
        if isinstance(key, str) and hasattr(state, "_replace"):
            return state._replace(**{key: value})
        if not isinstance(key, int):
            raise TypeError(f"Sequence state needs an integer key, got {key!r}")
        items = list(state)
        if key == len(items):
            items.append(value)
        elif -len(items) <= key < len(items):
            items[key] = value
        else:
            raise IndexError(
                f"Index {key} is out of range for a sequence of length {len(items)}"
            )
        if isinstance(state, list):
            return items
        if hasattr(state, "_make"):
            return state._make(items)
        return type(state)(items)

    if not isinstance(key, str):
        raise TypeError(
            f"Cannot set key {key!r} on state of type {type(state).__name__}"
        )
    if _is_dataclass_instance(state):
        return dataclasses.replace(state, **{key: value})

    updated = copy.copy(state)
    setattr(updated, key, value)
    return updated


def dissoc_key(state: Any, key: Hashable) -> Any:
    """
    Copy of `state` without `key`.

    Only mappings can lose a key; for any other container the key is reset
    to None instead.
    """
    if state is None:
        return None
    if isinstance(state, MutableMapping):
        if key not in state:
            return state
        updated = copy.copy(state)
        del updated[key]
        return updated
    if isinstance(state, Mapping):
        return {k: v for k, v in state.items() if k != key}
    return assoc_key(state, key, None)
