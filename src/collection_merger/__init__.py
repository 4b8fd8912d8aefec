"""In-place collection merging with structured change reports."""

__version__ = "0.1.0"

from .config_schema import LoggingConfig, MergerConfig, PathConfig
from .merge import (
    ChangeKind,
    ChangeRecord,
    MergeContext,
    MergeReport,
    PropertyDelta,
    format_merge_report,
    merge,
    merge_async,
    merge_nested,
    merge_nested_async,
    report_to_json,
)

__all__ = [
    "ChangeKind",
    "ChangeRecord",
    "LoggingConfig",
    "MergeContext",
    "MergeReport",
    "MergerConfig",
    "PathConfig",
    "PropertyDelta",
    "__version__",
    "format_merge_report",
    "merge",
    "merge_async",
    "merge_nested",
    "merge_nested_async",
    "report_to_json",
]
