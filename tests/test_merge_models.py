"""Tests for merge data models.

Covers:
- ChangeRecord validation (non-empty path, delta rules per kind)
- Item references are kept, not copied
- MergeReport counts, filtered views, find() and summary()
- Immutability
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from collection_merger.merge.models import (
    ChangeKind,
    ChangeRecord,
    MergeReport,
    PropertyDelta,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class Item:
    def __init__(self, ID: int) -> None:
        self.ID = ID


def _delta(name: str = "Name", old: object = "a", new: object = "b"):
    return PropertyDelta(name=name, old_value=old, new_value=new)


def _record(kind: ChangeKind, path: str, item: object = None):
    deltas = (_delta(),) if kind == ChangeKind.UPDATED else None
    return ChangeRecord(
        kind=kind,
        path=path,
        item=item if item is not None else Item(0),
        property_deltas=deltas,
    )


# ---------------------------------------------------------------------------
# ChangeRecord
# ---------------------------------------------------------------------------


class TestChangeRecord:
    """Tests for ChangeRecord validation."""

    def test_item_kept_by_reference(self):
        item = Item(1)
        record = ChangeRecord(kind=ChangeKind.ADDED, path="Item[1]", item=item)
        assert record.item is item

    def test_empty_path_rejected(self):
        with pytest.raises(ValidationError):
            ChangeRecord(kind=ChangeKind.ADDED, path="", item=Item(1))

    def test_updated_requires_deltas(self):
        with pytest.raises(ValidationError, match="at least one"):
            ChangeRecord(
                kind=ChangeKind.UPDATED,
                path="Item[1]",
                item=Item(1),
                property_deltas=(),
            )

    def test_updated_without_deltas_rejected(self):
        with pytest.raises(ValidationError):
            ChangeRecord(kind=ChangeKind.UPDATED, path="Item[1]", item=Item(1))

    @pytest.mark.parametrize("kind", [ChangeKind.ADDED, ChangeKind.REMOVED])
    def test_deltas_rejected_for_add_and_remove(self, kind):
        with pytest.raises(ValidationError, match="cannot carry"):
            ChangeRecord(
                kind=kind,
                path="Item[1]",
                item=Item(1),
                property_deltas=(_delta(),),
            )

    def test_frozen(self):
        record = _record(ChangeKind.ADDED, "Item[1]")
        with pytest.raises(ValidationError):
            record.path = "Other[1]"

    def test_kind_values(self):
        assert ChangeKind.ADDED.value == "added"
        assert ChangeKind.UPDATED.value == "updated"
        assert ChangeKind.REMOVED.value == "removed"


# ---------------------------------------------------------------------------
# MergeReport
# ---------------------------------------------------------------------------


class TestMergeReport:
    """Tests for MergeReport derived properties."""

    def _report(self) -> MergeReport:
        return MergeReport(
            changes=(
                _record(ChangeKind.UPDATED, "P[1].C[1]"),
                _record(ChangeKind.ADDED, "P[1].C[3]"),
                _record(ChangeKind.REMOVED, "P[1].C[2]"),
                _record(ChangeKind.UPDATED, "P[1]"),
                _record(ChangeKind.ADDED, "P[2]"),
            )
        )

    def test_empty_report(self):
        report = MergeReport()
        assert report.total_changes == 0
        assert report.has_changes is False
        assert report.added == []

    def test_counts(self):
        report = self._report()
        assert report.total_changes == 5
        assert report.added_count == 2
        assert report.updated_count == 2
        assert report.removed_count == 1
        assert report.has_changes is True
        assert report.total_changes == (
            report.added_count + report.updated_count + report.removed_count
        )

    def test_filtered_views_keep_order(self):
        report = self._report()
        assert [r.path for r in report.updated] == ["P[1].C[1]", "P[1]"]
        assert [r.path for r in report.added] == ["P[1].C[3]", "P[2]"]

    def test_find(self):
        report = self._report()
        assert [r.kind for r in report.find("P[1]")] == [ChangeKind.UPDATED]
        assert report.find("P[9]") == []

    def test_summary(self):
        text = self._report().summary()
        assert "Added:   2" in text
        assert "Updated: 2" in text
        assert "Removed: 1" in text
        assert "Total:   5" in text

    def test_frozen(self):
        report = self._report()
        with pytest.raises(ValidationError):
            report.changes = ()
