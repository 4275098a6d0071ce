"""Bootstrap wiring for logging configuration."""

from __future__ import annotations

import os

from territory.infrastructure.observability import (
    configure_structlog as _configure_structlog,
)

ENVIRONMENT_ENV = "TERRITORY_ENVIRONMENT"


def configure_structlog(environment: str | None = None) -> None:
    """Configure structlog for the given environment.

    Falls back to ``TERRITORY_ENVIRONMENT`` and then to "production".
    """
    _configure_structlog(
        environment=environment or os.environ.get(ENVIRONMENT_ENV, "production")
    )


__all__ = ["configure_structlog"]
