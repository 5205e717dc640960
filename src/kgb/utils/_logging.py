"""Logging utilities for KGB.

Loggers are standalone structlog loggers that write one JSON object (or
one human-readable line) per event to a file. Global structlog configuration
is never modified, so the CLI, the monitor and tests can each build their
own logger without interfering with one another.

The watcher is meant to run for hours, so file output can be rotated by
size through the standard library's RotatingFileHandler.
"""

import logging
from logging.handlers import RotatingFileHandler
from os import getenv
from pathlib import Path
from typing import TYPE_CHECKING, Literal, cast

import structlog

from ._paths import get_kgb_log_file

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger, Processor

LogFormatType = Literal["json", "text"]

DEBUG_ENV_VAR = "KGB_DEBUG"
LEVEL_ENV_VAR = "KGB_LOG_LEVEL"


def resolve_log_level(level: str | None = None) -> int:
    """Resolve the effective log level.

    ``KGB_DEBUG`` always wins. Otherwise the explicit level is used, then
    ``KGB_LOG_LEVEL``, then info. Unknown names fall back to info.

    Args:
        level: Level name (debug, info, warning, error), or None.

    Returns:
        The logging level as an integer.
    """
    if getenv(DEBUG_ENV_VAR):
        return logging.DEBUG

    name = level if level is not None else getenv(LEVEL_ENV_VAR, "info")
    return logging.getLevelNamesMapping().get(name.upper(), logging.INFO)


def _rotating_sink(
    path: Path, level: int, max_bytes: int, backup_count: int
) -> logging.Logger:
    # One stdlib logger per file; handlers are replaced if the path is reused
    sink = logging.getLogger(f"kgb.sink.{path}")
    for stale in tuple(sink.handlers):
        stale.close()
        sink.removeHandler(stale)
    sink.propagate = False
    sink.setLevel(level)

    handler = RotatingFileHandler(path, maxBytes=max_bytes, backupCount=backup_count)
    handler.setFormatter(logging.Formatter("%(message)s"))
    sink.addHandler(handler)
    return sink


def _processors(log_format: LogFormatType) -> list["Processor"]:  # noqa: UP037
    processors: list[Processor] = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if log_format == "json":
        processors.append(structlog.processors.dict_tracebacks)
        processors.append(structlog.processors.JSONRenderer())
    else:
        # "timestamp [level] event key=value ..."
        processors.append(structlog.dev.ConsoleRenderer(colors=False))
    return processors


def create_logger(
    *,
    level: str | None = None,
    log_format: LogFormatType = "json",
    log_file: str = "",
    command: str = "",
    max_bytes: int = 0,
    backup_count: int = 0,
) -> "FilteringBoundLogger":  # noqa: UP037
    """Create a file logger for KGB.

    Args:
        level: Level threshold; see resolve_log_level().
        log_format: Output format, either "json" or "text".
        log_file: Path to the log file (the default log file if empty).
        command: CLI command name, bound to every entry when given.
        max_bytes: Size at which the file is rotated; 0 disables rotation.
        backup_count: Rotated files to keep; 0 disables rotation.

    Returns:
        A FilteringBoundLogger instance.
    """
    path = Path(log_file) if log_file else get_kgb_log_file()
    path.parent.mkdir(parents=True, exist_ok=True)
    effective_level = resolve_log_level(level)

    if max_bytes > 0 and backup_count > 0:
        raw_logger: object = _rotating_sink(path, effective_level, max_bytes, backup_count)
    else:
        raw_logger = structlog.WriteLogger(file=path.open("a"))

    logger = cast(
        "FilteringBoundLogger",
        structlog.wrap_logger(
            raw_logger,
            processors=_processors(log_format),
            wrapper_class=structlog.make_filtering_bound_logger(effective_level),
            context_class=dict,
        ),
    )
    return logger.bind(command=command) if command else logger


def get_default_logger() -> "FilteringBoundLogger":  # noqa: UP037
    """Return the logger components fall back to when none is injected."""
    return cast("FilteringBoundLogger", structlog.get_logger("kgb"))
