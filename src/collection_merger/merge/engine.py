"""Merge engine: reconcile a destination collection with a source collection.

The engine mutates *destination* in place so that, afterwards, it holds
exactly the items that correspond to *source*:

1. **Deletion signals** -- when ``is_source_deleted(src)`` is true, the
   first matching destination item is removed and the source item is not
   upserted.  A signal with no match is ignored.
2. **Upsert** -- the first destination item for which ``match(src, dst)``
   holds is updated in place through ``map_properties``; without a match a
   new ``item_type()`` is populated and appended.
3. **Orphans** -- destination items that no source item matches are
   removed once every source item has been processed.

Removal excises the item from *destination* (by identity) unless a
``delete_destination`` action is supplied, e.g. a soft-delete flag flip.

Change detection is shallow: each matched item is snapshotted before and
after ``map_properties`` and only changed scalar properties are reported.
Nested collections are merged by calling ``context.merge(...)`` (or
``merge_nested``) from inside ``map_properties``; their changes land in the
same report under the parent item's path.

Four call shapes share one algorithm, written as a step generator that
yields collaborator calls:

- ``merge`` / ``merge_nested`` drive it synchronously.
- ``merge_async`` / ``merge_nested_async`` drive it as a coroutine and
  await collaborators that return awaitables.

Errors raised by collaborators propagate unchanged.  There is no rollback:
the destination keeps whatever mutations happened before the failure.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import (
    Awaitable,
    Callable,
    Generator,
    Iterable,
    MutableSequence,
    Sequence,
)
from typing import Any, NamedTuple, TypeVar

from collection_merger.config_schema import (
    MergerConfig,
    PathConfig,
    resolve_path_config,
)
from collection_merger.merge.context import MergeContext
from collection_merger.merge.models import MergeReport
from collection_merger.merge.paths import build_path
from collection_merger.merge.state import capture, diff

S = TypeVar("S")
D = TypeVar("D")

logger = logging.getLogger(__name__)

_MISSING = object()


class _Call(NamedTuple):
    """A collaborator invocation requested by the merge steps."""

    func: Callable[..., Any]
    args: tuple[Any, ...]


_Steps = Generator[_Call, Any, None]


# ------------------------------------------------------------------
# Synchronous API
# ------------------------------------------------------------------


def merge(
    destination: MutableSequence[D],
    source: Iterable[S],
    match: Callable[[S, D], bool],
    map_properties: Callable[[S, D, MergeContext], None],
    *,
    item_type: Callable[[], D],
    is_source_deleted: Callable[[S], bool] | None = None,
    delete_destination: Callable[[D], None] | None = None,
    label: str | None = None,
    config: PathConfig | MergerConfig | None = None,
) -> MergeReport:
    """Merge *source* into *destination* and report what changed.

    Args:
        destination: Collection to update in place.
        source: Items to merge from.  Consumed once.
        match: ``match(src, dst)`` returns ``True`` when both describe the
            same entity.  Should match at most one destination item; when
            several match, the first one wins.
        map_properties: ``map_properties(src, dst, context)`` copies fields
            onto *dst* and may merge nested collections through *context*.
        item_type: Zero-argument factory for new destination items.
        is_source_deleted: Marks source items that request deletion.
        delete_destination: Custom removal action replacing excision from
            *destination*.
        label: Collection label used in paths.  Defaults to
            ``item_type.__name__``.
        config: Path settings (a ``PathConfig`` or a full ``MergerConfig``).

    Returns:
        Report of every change, including those made by nested merges.

    Raises:
        ValueError: If a required argument is ``None``.
    """
    _require(
        destination=destination,
        source=source,
        match=match,
        map_properties=map_properties,
        item_type=item_type,
    )
    collection_label = _resolve_label(label, item_type)
    context = MergeContext(resolve_path_config(config))

    logger.debug("Starting merge into %s", collection_label)
    _run(
        _merge_steps(
            destination,
            _materialize(source),
            match,
            map_properties,
            context,
            item_type=item_type,
            label=collection_label,
            is_source_deleted=is_source_deleted,
            delete_destination=delete_destination,
        )
    )
    return _finish(context, collection_label)


def merge_nested(
    destination: MutableSequence[D],
    context: MergeContext,
    source: Iterable[S],
    match: Callable[[S, D], bool],
    map_properties: Callable[[S, D, MergeContext], None],
    *,
    item_type: Callable[[], D],
    is_source_deleted: Callable[[S], bool] | None = None,
    delete_destination: Callable[[D], None] | None = None,
    label: str | None = None,
) -> None:
    """Merge a nested collection using the parent's *context*.

    Call from inside a parent ``map_properties``.  Paths are prefixed with
    ``context.current_path`` and changes accrue to the parent's report.
    Arguments are as for ``merge``.
    """
    _require(
        destination=destination,
        context=context,
        source=source,
        match=match,
        map_properties=map_properties,
        item_type=item_type,
    )
    _run(
        _merge_steps(
            destination,
            _materialize(source),
            match,
            map_properties,
            context,
            item_type=item_type,
            label=_resolve_label(label, item_type),
            is_source_deleted=is_source_deleted,
            delete_destination=delete_destination,
        )
    )


# ------------------------------------------------------------------
# Asynchronous API
# ------------------------------------------------------------------


async def merge_async(
    destination: MutableSequence[D],
    source: Iterable[S],
    match: Callable[[S, D], bool | Awaitable[bool]],
    map_properties: Callable[[S, D, MergeContext], None | Awaitable[None]],
    *,
    item_type: Callable[[], D],
    is_source_deleted: Callable[[S], bool | Awaitable[bool]] | None = None,
    delete_destination: Callable[[D], None | Awaitable[None]] | None = None,
    label: str | None = None,
    config: PathConfig | MergerConfig | None = None,
) -> MergeReport:
    """Coroutine version of ``merge``.

    Collaborators may be plain callables or return awaitables; each call is
    awaited before the next one starts, so no two steps ever overlap.
    """
    _require(
        destination=destination,
        source=source,
        match=match,
        map_properties=map_properties,
        item_type=item_type,
    )
    collection_label = _resolve_label(label, item_type)
    context = MergeContext(resolve_path_config(config))

    logger.debug("Starting async merge into %s", collection_label)
    await _run_async(
        _merge_steps(
            destination,
            _materialize(source),
            match,
            map_properties,
            context,
            item_type=item_type,
            label=collection_label,
            is_source_deleted=is_source_deleted,
            delete_destination=delete_destination,
        )
    )
    return _finish(context, collection_label)


async def merge_nested_async(
    destination: MutableSequence[D],
    context: MergeContext,
    source: Iterable[S],
    match: Callable[[S, D], bool | Awaitable[bool]],
    map_properties: Callable[[S, D, MergeContext], None | Awaitable[None]],
    *,
    item_type: Callable[[], D],
    is_source_deleted: Callable[[S], bool | Awaitable[bool]] | None = None,
    delete_destination: Callable[[D], None | Awaitable[None]] | None = None,
    label: str | None = None,
) -> None:
    """Coroutine version of ``merge_nested``."""
    _require(
        destination=destination,
        context=context,
        source=source,
        match=match,
        map_properties=map_properties,
        item_type=item_type,
    )
    await _run_async(
        _merge_steps(
            destination,
            _materialize(source),
            match,
            map_properties,
            context,
            item_type=item_type,
            label=_resolve_label(label, item_type),
            is_source_deleted=is_source_deleted,
            delete_destination=delete_destination,
        )
    )


# ------------------------------------------------------------------
# Algorithm
# ------------------------------------------------------------------


def _merge_steps(
    destination: MutableSequence[Any],
    source: Sequence[Any],
    match: Callable[..., Any],
    map_properties: Callable[..., Any],
    context: MergeContext,
    *,
    item_type: Callable[[], Any],
    label: str,
    is_source_deleted: Callable[..., Any] | None,
    delete_destination: Callable[..., Any] | None,
) -> _Steps:
    """Run one merge scope, yielding every collaborator call.

    The driver sends each call's result back into the generator.
    """
    parent_path = context.current_path
    path_config = context.path_config
    removed: list[Any] = []

    def _path(source_item: Any, destination_item: Any) -> str:
        return build_path(
            parent_path, label, source_item, destination_item, path_config
        )

    def _first_match(source_item: Any) -> Generator[_Call, Any, Any]:
        for candidate in list(destination):
            if (yield _Call(match, (source_item, candidate))):
                return candidate
        return _MISSING

    def _has_source(destination_item: Any) -> Generator[_Call, Any, bool]:
        for source_item in source:
            if (yield _Call(match, (source_item, destination_item))):
                return True
        return False

    def _remove(source_item: Any, destination_item: Any) -> _Steps:
        if delete_destination is None:
            _excise(destination, destination_item)
        else:
            yield _Call(delete_destination, (destination_item,))
        removed.append(destination_item)
        context.record_removed(
            _path(source_item, destination_item), destination_item
        )

    for source_item in source:
        if is_source_deleted is not None and (
            yield _Call(is_source_deleted, (source_item,))
        ):
            target = yield from _first_match(source_item)
            if target is not _MISSING:
                yield from _remove(source_item, target)
            continue

        target = yield from _first_match(source_item)
        if target is not _MISSING:
            before = capture(target)
            item_path = _path(source_item, target)
            with context.path_scope(item_path):
                yield _Call(map_properties, (source_item, target, context))
            deltas = diff(before, capture(target))
            if deltas:
                context.record_updated(item_path, target, deltas)
            continue

        new_item = item_type()
        item_path = _path(source_item, new_item)
        with context.path_scope(item_path):
            yield _Call(map_properties, (source_item, new_item, context))
        destination.append(new_item)
        context.record_added(item_path, new_item)

    orphans: list[Any] = []
    for destination_item in list(destination):
        if any(destination_item is r for r in removed):
            continue
        if not (yield from _has_source(destination_item)):
            orphans.append(destination_item)

    for destination_item in orphans:
        yield from _remove(None, destination_item)


# ------------------------------------------------------------------
# Drivers
# ------------------------------------------------------------------


def _run(steps: _Steps) -> None:
    """Drive *steps* to completion, calling collaborators directly."""
    result: Any = None
    while True:
        try:
            call = steps.send(result)
        except StopIteration:
            return
        try:
            result = call.func(*call.args)
            if inspect.isawaitable(result):
                _discard(result)
                raise TypeError(
                    f"{_describe(call.func)} returned an awaitable; "
                    "use merge_async() with asynchronous collaborators"
                )
        except Exception:
            # Unwind the steps (popping any pushed path) and re-raise as is
            steps.close()
            raise


async def _run_async(steps: _Steps) -> None:
    """Drive *steps* to completion, awaiting collaborator results."""
    result: Any = None
    while True:
        try:
            call = steps.send(result)
        except StopIteration:
            return
        try:
            result = call.func(*call.args)
            if inspect.isawaitable(result):
                result = await result
        except Exception:
            steps.close()
            raise


# ------------------------------------------------------------------
# Internal helpers
# ------------------------------------------------------------------


def _require(**arguments: Any) -> None:
    for name, value in arguments.items():
        if value is None:
            raise ValueError(f"{name} must not be None")


def _resolve_label(label: str | None, item_type: Callable[[], Any]) -> str:
    if label:
        return label
    name = getattr(item_type, "__name__", "")
    if not name or name.startswith("<"):
        raise ValueError(
            "label is required when item_type has no usable __name__"
        )
    return name


def _materialize(source: Iterable[Any]) -> Sequence[Any]:
    if isinstance(source, Sequence):
        return source
    return list(source)


def _excise(destination: MutableSequence[Any], item: Any) -> None:
    for index, candidate in enumerate(destination):
        if candidate is item:
            del destination[index]
            return


def _finish(context: MergeContext, label: str) -> MergeReport:
    report = context.finalize()
    logger.debug(
        "Merge into %s complete: %d added, %d updated, %d removed",
        label,
        report.added_count,
        report.updated_count,
        report.removed_count,
    )
    return report


def _discard(awaitable: Any) -> None:
    if inspect.iscoroutine(awaitable):
        awaitable.close()


def _describe(func: Callable[..., Any]) -> str:
    return getattr(func, "__qualname__", None) or repr(func)
