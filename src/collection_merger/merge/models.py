"""Pydantic models for the collection merge engine.

Defines the data contracts produced by a merge run:

- ``ChangeKind``: Enum of change classifications.
- ``PropertyDelta``: One property that differs before/after a mapping step.
- ``ChangeRecord``: One added, updated, or removed item.
- ``MergeReport``: Aggregate results for a full (root) merge call.

All models are frozen (immutable) for safety.  Items referenced by a
``ChangeRecord`` are stored by reference and never copied.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, model_validator


class ChangeKind(str, Enum):
    """Classification of a single change to a destination collection."""

    ADDED = "added"
    UPDATED = "updated"
    REMOVED = "removed"


class PropertyDelta(BaseModel):
    """A single property whose value changed during a mapping step.

    Attributes:
        name: Property (attribute) name.
        old_value: Value captured before mapping.
        new_value: Value captured after mapping.
    """

    name: str
    old_value: Any = None
    new_value: Any = None

    model_config = {"frozen": True}


class ChangeRecord(BaseModel):
    """A single change applied to a destination collection.

    Attributes:
        kind: Whether the item was added, updated, or removed.
        path: Hierarchical location of the item, e.g. ``Person[1].Cat[3]``.
        item: The affected destination item (the removed instance for
            removals).
        property_deltas: Changed properties; only set for updates.
    """

    kind: ChangeKind
    path: str = Field(min_length=1)
    item: Any
    property_deltas: tuple[PropertyDelta, ...] | None = None

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_deltas(self) -> ChangeRecord:
        if self.kind == ChangeKind.UPDATED:
            if not self.property_deltas:
                raise ValueError(
                    "Updated records must carry at least one property delta"
                )
        elif self.property_deltas is not None:
            raise ValueError(
                f"{self.kind.value.capitalize()} records cannot carry property deltas"
            )
        return self


class MergeReport(BaseModel):
    """Aggregate report for a root merge call, including nested merges.

    Attributes:
        changes: All recorded changes in the order they were recorded.
    """

    changes: tuple[ChangeRecord, ...] = ()

    model_config = {"frozen": True}

    @property
    def added(self) -> list[ChangeRecord]:
        """Records where kind is ADDED."""
        return [c for c in self.changes if c.kind == ChangeKind.ADDED]

    @property
    def updated(self) -> list[ChangeRecord]:
        """Records where kind is UPDATED."""
        return [c for c in self.changes if c.kind == ChangeKind.UPDATED]

    @property
    def removed(self) -> list[ChangeRecord]:
        """Records where kind is REMOVED."""
        return [c for c in self.changes if c.kind == ChangeKind.REMOVED]

    @property
    def total_changes(self) -> int:
        return len(self.changes)

    @property
    def added_count(self) -> int:
        return len(self.added)

    @property
    def updated_count(self) -> int:
        return len(self.updated)

    @property
    def removed_count(self) -> int:
        return len(self.removed)

    @property
    def has_changes(self) -> bool:
        return self.total_changes > 0

    def find(self, path: str) -> list[ChangeRecord]:
        """Return every record located at *path*."""
        return [c for c in self.changes if c.path == path]

    def summary(self) -> str:
        """Format a human-readable summary of the merge.

        Returns:
            Multi-line summary string with counts by kind.
        """
        lines = [
            "Merge report",
            f"  Added:   {self.added_count}",
            f"  Updated: {self.updated_count}",
            f"  Removed: {self.removed_count}",
            f"  Total:   {self.total_changes}",
        ]
        return "\n".join(lines)
