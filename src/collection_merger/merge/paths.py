"""Hierarchical path construction for change records.

A path locates an item inside a (possibly nested) merge traversal:

* root scope: ``Person[1]``
* nested scope: ``Person[1].Cat[3]``

The identifier inside the brackets is taken from the source item when it
exposes one, otherwise from the destination item, otherwise the configured
placeholder (``?`` by default).  Identifier resolution:

1. **Exact names** -- each name in ``PathConfig.id_fields`` (``ID`` then
   ``Id``) is tried as an attribute, or as a key for mapping items.
2. **Case-insensitive** -- only when ``PathConfig.case_insensitive_ids`` is
   set, attribute/key names are compared case-insensitively in a second
   pass (so ``id`` matches ``ID``).

A name that resolves to ``None`` counts as absent.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from collection_merger.config_schema import PathConfig

_DEFAULT_CONFIG = PathConfig()


def build_path(
    parent_path: str | None,
    label: str,
    source_item: Any = None,
    destination_item: Any = None,
    config: PathConfig | None = None,
) -> str:
    """Build the path for one item.

    Args:
        parent_path: Path of the enclosing item, or ``None``/``""`` at the
            root scope.
        label: Collection label, usually the destination type name.
        source_item: Source item, preferred for the identifier.
        destination_item: Destination item, used when the source item has
            no identifier.
        config: Identifier lookup settings.

    Returns:
        ``"{label}[{id}]"`` or ``"{parent_path}.{label}[{id}]"``.
    """
    cfg = config or _DEFAULT_CONFIG
    item_id = get_id_string(source_item, cfg)
    if item_id is None:
        item_id = get_id_string(destination_item, cfg)
    if item_id is None:
        item_id = cfg.placeholder

    segment = f"{label}[{item_id}]"
    if not parent_path:
        return segment
    return f"{parent_path}.{segment}"


def get_id_string(item: Any, config: PathConfig | None = None) -> str | None:
    """Return the identifier of *item* as a string, or ``None``."""
    if item is None:
        return None
    cfg = config or _DEFAULT_CONFIG

    value = _lookup_exact(item, cfg.id_fields)
    if value is None and cfg.case_insensitive_ids:
        value = _lookup_folded(item, cfg.id_fields)
    if value is None:
        return None
    return str(value)


# ------------------------------------------------------------------
# Internal helpers
# ------------------------------------------------------------------


def _lookup_exact(item: Any, names: tuple[str, ...]) -> Any:
    for name in names:
        if isinstance(item, Mapping):
            value = item.get(name)
        else:
            value = getattr(item, name, None)
        if value is not None:
            return value
    return None


def _lookup_folded(item: Any, names: tuple[str, ...]) -> Any:
    if isinstance(item, Mapping):
        candidates = [k for k in item if isinstance(k, str)]
    else:
        candidates = [n for n in dir(item) if not n.startswith("_")]

    for name in names:
        folded = name.casefold()
        for candidate in candidates:
            if candidate.casefold() != folded:
                continue
            if isinstance(item, Mapping):
                value = item[candidate]
            else:
                value = getattr(item, candidate, None)
            if value is not None:
                return value
    return None
