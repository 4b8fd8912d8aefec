"""Configuration schema for collection_merger.

Defines Pydantic models for the config structure with dedicated sections
for path construction and logging.

Usage:
    from collection_merger.config_schema import MergerConfig, build_config

    raw = load_hierarchical_config()
    config = build_config(raw)
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class PathConfig(BaseModel):
    """Settings for building hierarchical change paths.

    Every field has a default, so ``PathConfig()`` reproduces the standard
    ``Label[ID]`` behaviour.
    """

    id_fields: tuple[str, ...] = Field(
        default=("ID", "Id"),
        min_length=1,
        description="Identifier attribute names, tried in order",
    )
    case_insensitive_ids: bool = Field(
        default=False,
        description="Fall back to case-insensitive identifier lookup",
    )
    placeholder: str = Field(
        default="?",
        min_length=1,
        description="Identifier used when an item exposes none",
    )

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
        format: ``"text"`` or ``"json"``.
    """

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")
    format: str = Field(default="text", pattern="^(text|json)$")

    model_config = {"frozen": True}

    @field_validator("level")
    @classmethod
    def normalise_level(cls, value: str) -> str:
        level = value.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(
                f"Invalid log level '{value}'. Valid levels: {list(_LOG_LEVELS)}"
            )
        return level


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------


class MergerConfig(BaseModel):
    """Top-level configuration.

    Aggregates all config sections. Every section has sensible defaults,
    so ``MergerConfig()`` (zero-config) is always valid.
    """

    path: PathConfig = Field(default_factory=PathConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Factory functions
# ---------------------------------------------------------------------------


def build_config(raw_data: dict) -> MergerConfig:
    """Construct a ``MergerConfig`` from the raw dict returned by
    ``load_hierarchical_config()``.

    Handles missing sections gracefully; anything absent gets defaults.
    Unknown top-level sections are ignored with a warning.

    Args:
        raw_data: Merged configuration dictionary.

    Returns:
        Validated ``MergerConfig`` instance.
    """
    if not raw_data:
        return MergerConfig()

    known = set(MergerConfig.model_fields)
    unknown = sorted(set(raw_data) - known)
    if unknown:
        logger.warning("Ignoring unknown config sections: %s", unknown)

    return MergerConfig(
        **{k: v for k, v in raw_data.items() if k in known}
    )


def resolve_path_config(
    config: PathConfig | MergerConfig | None,
) -> PathConfig:
    """Return the ``PathConfig`` section for any accepted config shape."""
    if config is None:
        return PathConfig()
    if isinstance(config, MergerConfig):
        return config.path
    return config
