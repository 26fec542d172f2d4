from __future__ import annotations

import logging
from typing import Any

import structlog


def resolve_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    return logging.getLevelNamesMapping().get(level.upper(), logging.INFO)


def configure_logging(level: int | str = logging.INFO, *, environment: str | None = None) -> None:
    """Render structlog events as one JSON object per line.

    Every event carries ``service`` and, when given, ``environment`` so the
    upload pipeline logs can be filtered per deployment.
    """
    numeric_level = resolve_level(level)
    static_fields: dict[str, Any] = {"service": "tubely"}
    if environment:
        static_fields["environment"] = environment

    def add_static_fields(_logger: Any, _method: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        for key, value in static_fields.items():
            event_dict.setdefault(key, value)
        return event_dict

    logging.basicConfig(format="%(message)s", level=numeric_level)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_static_fields,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        cache_logger_on_first_use=True,
    )


def get_logger(**initial_values: Any) -> structlog.BoundLogger:
    return structlog.get_logger().bind(**initial_values)


__all__ = ["configure_logging", "get_logger", "resolve_level"]
