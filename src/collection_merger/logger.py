import json
import logging
import os
import sys

from collection_merger.config_schema import LoggingConfig

_TEXT_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class JsonFormatter(logging.Formatter):
    """Single-line JSON formatter for structured debug output.

    Produces one JSON object per log record with fields: ts, level, logger, msg.
    Exception info is included as an "exc" field when present.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _make_formatter(debug_format: str) -> logging.Formatter:
    if debug_format == "json":
        return JsonFormatter(datefmt=_DATE_FORMAT)
    return logging.Formatter(_TEXT_FORMAT, datefmt=_DATE_FORMAT)


def setup_logging(
    debug: bool = False,
    log_file: str | None = None,
    debug_format: str = "text",
    level: str | None = None,
) -> None:
    """
    Configure logging for applications that embed collection_merger.

    The library itself only emits DEBUG diagnostics through module
    loggers; this helper is for callers that want them on stderr.

    Args:
        debug: If True, overrides the level to DEBUG.
        log_file: Optional file that receives the same records as stderr.
        debug_format: "text" (default) or "json" for structured output.
        level: Explicit level name; overrides the environment variable.

    Environment variables:
        COLLECTION_MERGER_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING,
            ERROR). Default: INFO.
    """
    level_name = (
        level or os.getenv("COLLECTION_MERGER_LOG_LEVEL", "INFO")
    ).upper()

    # debug parameter overrides everything else
    if debug:
        log_level = logging.DEBUG
    else:
        log_level = getattr(logging, level_name, logging.INFO)

    handlers: list[logging.Handler] = []
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(_make_formatter(debug_format))
    handlers.append(stderr_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a")
        file_handler.setFormatter(_make_formatter(debug_format))
        handlers.append(file_handler)

    logging.basicConfig(
        level=log_level,
        handlers=handlers,
    )


def setup_logging_from_config(
    config: LoggingConfig, debug: bool = False
) -> None:
    """Apply a ``LoggingConfig`` section via ``setup_logging()``."""
    setup_logging(
        debug=debug,
        log_file=config.file,
        debug_format=config.format,
        level=config.level,
    )
