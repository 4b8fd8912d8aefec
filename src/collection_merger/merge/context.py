"""Mutable state shared by one root merge call and all of its nested merges.

A ``MergeContext`` is created by a root ``merge()``/``merge_async()`` call
and handed to every ``map_properties`` invocation.  Nested merges started
from inside ``map_properties`` reuse it, so every change, however deep,
lands in one ordered list.  The path stack tracks which item is currently
being mapped; its top becomes the parent path of nested merges.

The context is not thread-safe and must not outlive the root call.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from collection_merger.config_schema import PathConfig
from collection_merger.merge.models import (
    ChangeKind,
    ChangeRecord,
    MergeReport,
    PropertyDelta,
)

if TYPE_CHECKING:
    from collections.abc import Iterable


class MergeContext:
    """Path stack and change log for a single merge call-tree.

    Args:
        path_config: Identifier lookup settings used by every merge that
            runs under this context.
    """

    def __init__(self, path_config: PathConfig | None = None) -> None:
        self.path_config = path_config or PathConfig()
        self._path_stack: list[str] = []
        self._changes: list[ChangeRecord] = []

    # ------------------------------------------------------------------
    # Path stack
    # ------------------------------------------------------------------

    @property
    def current_path(self) -> str | None:
        """Path of the item being mapped, or ``None`` at the root scope."""
        if not self._path_stack:
            return None
        return self._path_stack[-1]

    @property
    def depth(self) -> int:
        return len(self._path_stack)

    def push_path(self, path: str) -> None:
        self._path_stack.append(path)

    def pop_path(self) -> None:
        """Pop the current path.  Does nothing when the stack is empty."""
        if self._path_stack:
            self._path_stack.pop()

    @contextmanager
    def path_scope(self, path: str) -> Iterator[str]:
        """Push *path* for the duration of a ``with`` block."""
        self.push_path(path)
        try:
            yield path
        finally:
            self.pop_path()

    # ------------------------------------------------------------------
    # Change log
    # ------------------------------------------------------------------

    @property
    def changes(self) -> tuple[ChangeRecord, ...]:
        """Changes recorded so far, oldest first."""
        return tuple(self._changes)

    def record_added(self, path: str, item: Any) -> ChangeRecord:
        return self._record(ChangeKind.ADDED, path, item)

    def record_updated(
        self,
        path: str,
        item: Any,
        property_deltas: Sequence[PropertyDelta],
    ) -> ChangeRecord:
        return self._record(
            ChangeKind.UPDATED, path, item, tuple(property_deltas)
        )

    def record_removed(self, path: str, item: Any) -> ChangeRecord:
        return self._record(ChangeKind.REMOVED, path, item)

    def finalize(self) -> MergeReport:
        """Snapshot the recorded changes into an immutable report.

        Each call returns an independent report.
        """
        return MergeReport(changes=tuple(self._changes))

    def _record(
        self,
        kind: ChangeKind,
        path: str,
        item: Any,
        property_deltas: tuple[PropertyDelta, ...] | None = None,
    ) -> ChangeRecord:
        record = ChangeRecord(
            kind=kind,
            path=path,
            item=item,
            property_deltas=property_deltas,
        )
        self._changes.append(record)
        return record

    # ------------------------------------------------------------------
    # Nested merges
    # ------------------------------------------------------------------

    def merge(
        self,
        destination: Any,
        source: Iterable[Any],
        match: Any,
        map_properties: Any,
        **kwargs: Any,
    ) -> None:
        """Shorthand for ``merge_nested(destination, self, source, ...)``."""
        # Import here to avoid circular imports (engine imports context)
        from collection_merger.merge.engine import merge_nested

        merge_nested(destination, self, source, match, map_properties, **kwargs)

    async def merge_async(
        self,
        destination: Any,
        source: Iterable[Any],
        match: Any,
        map_properties: Any,
        **kwargs: Any,
    ) -> None:
        """Shorthand for ``merge_nested_async(destination, self, source, ...)``."""
        from collection_merger.merge.engine import merge_nested_async

        await merge_nested_async(
            destination, self, source, match, map_properties, **kwargs
        )
