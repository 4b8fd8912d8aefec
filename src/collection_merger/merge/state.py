"""Shallow state snapshots and snapshot diffing.

``capture()`` records the public scalar properties of one item so that the
engine can compare an item before and after the caller's mapping routine
ran.  Collection-valued properties are skipped: nested collections are
merged explicitly by the caller and report their own changes.  Strings,
bytes and nested pydantic models count as single values.

Property enumeration, in order of preference:

* mappings -- string keys
* pydantic models -- ``model_fields``
* dataclasses -- ``dataclasses.fields``
* other objects -- public instance attributes (``__dict__`` and
  ``__slots__``), then readable ``property`` descriptors on the class
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel

from collection_merger.merge.models import PropertyDelta

Snapshot = dict[str, Any]

_TEXT_TYPES = (str, bytes, bytearray)


def capture(item: Any) -> Snapshot:
    """Capture the public scalar properties of *item*.

    Args:
        item: Any object, or ``None``.

    Returns:
        Mapping of property name to value.  Empty for ``None``.
    """
    state: Snapshot = {}
    if item is None:
        return state

    for name in _property_names(item):
        if isinstance(item, Mapping):
            value = item[name]
        else:
            value = getattr(item, name)
        if _is_collection(value):
            continue
        state[name] = value
    return state


def diff(before: Snapshot, after: Snapshot) -> list[PropertyDelta]:
    """Compare two snapshots of the same item.

    Keys are visited in the order of *before*; keys missing from *after*
    are ignored.  Values that are identical or equal produce no delta.

    Returns:
        One ``PropertyDelta`` per changed property.
    """
    changes: list[PropertyDelta] = []
    for name, old_value in before.items():
        if name not in after:
            continue
        new_value = after[name]
        if old_value is new_value or old_value == new_value:
            continue
        changes.append(
            PropertyDelta(name=name, old_value=old_value, new_value=new_value)
        )
    return changes


# ------------------------------------------------------------------
# Internal helpers
# ------------------------------------------------------------------


def _is_collection(value: Any) -> bool:
    # pydantic models iterate over their fields but are single values
    if isinstance(value, (BaseModel, *_TEXT_TYPES)):
        return False
    return isinstance(value, Iterable)


def _property_names(item: Any) -> list[str]:
    if isinstance(item, Mapping):
        return [k for k in item if isinstance(k, str) and not k.startswith("_")]

    if isinstance(item, BaseModel):
        return [n for n in type(item).model_fields if not n.startswith("_")]

    if dataclasses.is_dataclass(item):
        return [
            f.name for f in dataclasses.fields(item) if not f.name.startswith("_")
        ]

    names: list[str] = []
    seen: set[str] = set()

    def _add(name: str) -> None:
        if name.startswith("_") or name in seen:
            return
        seen.add(name)
        names.append(name)

    for name in getattr(item, "__dict__", {}):
        _add(name)

    cls = type(item)
    for klass in reversed(cls.__mro__):
        slots = vars(klass).get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        for name in slots:
            if hasattr(item, name):
                _add(name)

    for klass in reversed(cls.__mro__):
        for name, attr in vars(klass).items():
            if isinstance(attr, property) and attr.fget is not None:
                _add(name)

    return names
