"""
Area Access — Logging setup for applications embedding the library.

Two loggers are in play. The domain modules (hierarchy, wizard, permissions)
use stdlib ``logging`` under the ``area_access`` namespace, while the route
guards emit structlog events such as ``area_access.guards.view_denied``.
``configure_logging`` sets both to the configured level so a single
``AREA_ACCESS_LOG_LEVEL`` governs everything the library says.
"""

from __future__ import annotations

import logging

import structlog

from area_access.config import AreaAccessSettings, settings

#: Root of the stdlib loggers used by the domain modules.
LIBRARY_LOGGER = "area_access"

LOG_FORMATS = ("json", "console")


def resolve_level(name: str | int) -> int:
    """Map a level name such as ``"debug"`` to its numeric value."""
    if isinstance(name, int):
        return name
    level = logging.getLevelNamesMapping().get(str(name).strip().upper())
    if level is None:
        raise ValueError(f"Unknown log level: {name!r}")
    return level


def _renderer(log_format: str) -> structlog.typing.Processor:
    fmt = log_format.strip().lower()
    if fmt == "console":
        return structlog.dev.ConsoleRenderer()
    if fmt == "json":
        return structlog.processors.JSONRenderer(sort_keys=True)
    raise ValueError(f"Unknown log format: {log_format!r} (expected one of {LOG_FORMATS})")


def configure_logging(config: AreaAccessSettings | None = None) -> int:
    """
    Configure guard events and domain-module logging from settings.

    JSON output carries structured tracebacks; console output keeps the
    pretty exception rendering. Returns the numeric level applied.

    Raises:
        ValueError: On an unknown level name or log format.
    """
    config = config or settings
    level = resolve_level(config.log_level)
    renderer = _renderer(config.log_format)

    processors: list[structlog.typing.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if isinstance(renderer, structlog.processors.JSONRenderer):
        processors.append(structlog.processors.dict_tracebacks)
    processors.append(renderer)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )
    logging.getLogger(LIBRARY_LOGGER).setLevel(level)
    return level
