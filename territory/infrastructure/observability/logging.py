"""structlog setup for the territory engine.

``production`` renders one JSON object per line; every other environment
uses the console renderer. Entries look like::

    {"event": "territory_claimed", "level": "info",
     "timestamp": "2026-01-01T00:00:00Z", "correlation_id": "sweep-...",
     "resource_id": "paris", "agent_id": "agent-1"}
"""

import logging
import math
import os
from typing import Any, cast

import structlog
from structlog.typing import Processor

from territory.infrastructure.observability.correlation import (
    correlation_id_processor,
)

LOG_LEVEL_ENV = "LOG_LEVEL"


def resolve_log_level(name: str | None = None) -> int:
    """Map a level name (or ``LOG_LEVEL``) to a logging constant, INFO if unknown."""
    level_name = (name or os.environ.get(LOG_LEVEL_ENV) or "INFO").upper()
    level = logging.getLevelName(level_name)
    return level if isinstance(level, int) else logging.INFO


def never_for_infinite_days(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Render infinite day counts (no liveness ever recorded) as "never".

    JSON has no infinity literal.
    """
    for key, value in event_dict.items():
        if isinstance(value, float) and math.isinf(value):
            event_dict[key] = "never"
    return event_dict


def build_processors(json_output: bool) -> list[Processor]:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        cast(Processor, correlation_id_processor),
        cast(Processor, never_for_infinite_days),
        structlog.processors.format_exc_info,
    ]
    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))
    return processors


def configure_structlog(
    environment: str = "production", level: str | None = None
) -> None:
    """Configure structlog once at process start.

    Args:
        environment: ``production`` for JSON lines, anything else for console.
        level: Level name; defaults to ``LOG_LEVEL`` then INFO.
    """
    structlog.configure(
        processors=build_processors(json_output=environment == "production"),
        wrapper_class=structlog.make_filtering_bound_logger(resolve_log_level(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger_for_service(
    service_name: str, component: str = "territory"
) -> structlog.BoundLogger:
    """Logger with ``service`` and ``component`` already bound."""
    return structlog.get_logger().bind(service=service_name, component=component)
