"""Collection merge engine with change tracking.

Public API for merging a source collection into a destination collection
in place, recording what was added, updated, and removed.

Architecture
------------
Matching is delegated to a caller-supplied predicate and field copying to
a caller-supplied mapping routine.  The engine snapshots each matched
item's scalar properties around the mapping routine to find updated
fields, and threads a ``MergeContext`` through nested merges so that a
single report describes an entire object graph.

Modules:

- ``engine``    -- ``merge``, ``merge_nested``, ``merge_async``,
  ``merge_nested_async``: the merge algorithm.
- ``context``   -- ``MergeContext``: path stack and change log.
- ``paths``     -- ``build_path``: ``Parent[1].Child[2]`` path strings.
- ``state``     -- ``capture``/``diff``: shallow property snapshots.
- ``models``    -- ``ChangeKind``, ``PropertyDelta``, ``ChangeRecord``,
  ``MergeReport``: core data contracts.
- ``reporter``  -- Human-readable and JSON report formatting.

Usage example
-------------
::

    from collection_merger.merge import merge

    def map_person(src, dst, context):
        dst.ID = src.ID
        dst.Name = src.Name
        context.merge(
            dst.Cats,
            src.Cats,
            match=lambda s, d: s.ID == d.ID,
            map_properties=map_cat,
            item_type=Cat,
        )

    report = merge(
        people,
        person_dtos,
        match=lambda src, dst: src.ID == dst.ID,
        map_properties=map_person,
        item_type=Person,
    )
    print(report.summary())
"""

from .context import MergeContext
from .engine import merge, merge_async, merge_nested, merge_nested_async
from .models import (
    ChangeKind,
    ChangeRecord,
    MergeReport,
    PropertyDelta,
)
from .paths import build_path
from .reporter import format_merge_report, report_to_json
from .state import capture, diff

__all__ = [
    "ChangeKind",
    "ChangeRecord",
    "MergeContext",
    "MergeReport",
    "PropertyDelta",
    "build_path",
    "capture",
    "diff",
    "format_merge_report",
    "merge",
    "merge_async",
    "merge_nested",
    "merge_nested_async",
    "report_to_json",
]
