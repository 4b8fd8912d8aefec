"""Merge report formatting functions.

Provides human-readable and machine-readable output for merge reports:

- ``format_merge_report`` -- full post-merge summary.
- ``format_property_delta`` -- one ``name: old -> new`` line.
- ``report_to_json`` -- structured dict suitable for ``json.dumps``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .models import MergeReport, PropertyDelta

_JSON_SCALARS = (str, int, float, bool, type(None))


# ------------------------------------------------------------------
# Human-readable report
# ------------------------------------------------------------------


def format_merge_report(report: MergeReport) -> str:
    """Format a complete merge report as human-readable text.

    Sections are only included when they contain at least one record.

    Args:
        report: The finalized merge report.

    Returns:
        Multi-line formatted string.
    """
    if not report.has_changes:
        return "No changes."

    lines: list[str] = []
    lines.append(
        f"{report.total_changes} changes: "
        f"{report.added_count} added, "
        f"{report.updated_count} updated, "
        f"{report.removed_count} removed"
    )
    lines.append("")

    if report.added:
        lines.append("Added:")
        for record in report.added:
            lines.append(f"  {record.path}")
        lines.append("")

    if report.updated:
        lines.append("Updated:")
        for record in report.updated:
            lines.append(f"  {record.path}")
            for delta in record.property_deltas or ():
                lines.append(f"    {format_property_delta(delta)}")
        lines.append("")

    if report.removed:
        lines.append("Removed:")
        for record in report.removed:
            lines.append(f"  {record.path}")
        lines.append("")

    return "\n".join(lines).rstrip()


def format_property_delta(delta: PropertyDelta) -> str:
    """Format a delta as ``name: 'old' -> 'new'``."""
    return f"{delta.name}: {delta.old_value!r} -> {delta.new_value!r}"


# ------------------------------------------------------------------
# JSON output
# ------------------------------------------------------------------


def report_to_json(report: MergeReport) -> dict:
    """Convert a merge report to a structured dict for JSON serialisation.

    Item references are not included; non-JSON property values are
    rendered with ``str()``.

    Args:
        report: The merge report.

    Returns:
        Dict with counts and per-record details in recorded order.
    """
    changes_list = []
    for record in report.changes:
        entry: dict = {
            "kind": record.kind.value,
            "path": record.path,
        }
        if record.property_deltas is not None:
            entry["property_deltas"] = [
                {
                    "name": d.name,
                    "old_value": _json_value(d.old_value),
                    "new_value": _json_value(d.new_value),
                }
                for d in record.property_deltas
            ]
        changes_list.append(entry)

    return {
        "has_changes": report.has_changes,
        "counts": {
            "total": report.total_changes,
            "added": report.added_count,
            "updated": report.updated_count,
            "removed": report.removed_count,
        },
        "changes": changes_list,
    }


def _json_value(value: Any) -> Any:
    if isinstance(value, _JSON_SCALARS):
        return value
    return str(value)
