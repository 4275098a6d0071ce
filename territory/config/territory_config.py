"""Territory engine configuration.

This module defines the tunable policy of the engine with environment
variable overrides for production tuning.

Environment Variables:
- INACTIVITY_DAYS: Days without liveness before eviction (default: 7)
- INACTIVITY_WARNING_DAYS: Warning window before eviction (default: 2)
- EVICTION_SWEEP_INTERVAL_SECONDS: Sweep period (default: 86400)
- CLAIM_MAX_ATTEMPTS: Random-claim attempts before exhaustion (default: 3)
- CLAIM_MAX_ELAPSED_SECONDS: Time budget for the claim loop (default: 5.0)
- COUNTRY_SUGGESTION_LIMIT: Alternative countries offered (default: 5)
- TRANSACTION_RETRY_LIMIT: Re-runs after a concurrent modification (default: 3)

Unparsable, zero or negative environment values fall back to the default.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_INACTIVITY_DAYS = 7
DEFAULT_WARNING_DAYS = 2


def _get_positive_int_env(key: str, default: int) -> int:
    """Get a positive integer environment variable with default.

    Args:
        key: Environment variable name.
        default: Default value if not set, invalid or not positive.

    Returns:
        Parsed integer value or default.
    """
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        parsed = int(value)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _get_positive_float_env(key: str, default: float) -> float:
    """Get a positive float environment variable with default."""
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        parsed = float(value)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


@dataclass(frozen=True)
class TerritoryConfig:
    """Configuration for allocation, liveness and eviction.

    The warning window and the sweep both read ``inactivity_threshold_days``
    so an agent is always inside the warning window before it can be
    voided.

    Attributes:
        inactivity_threshold_days: Whole days without liveness after which
            an agent is voided by the sweep.
        warning_days: Size of the approaching-eviction window.
        sweep_interval_seconds: Period of the background eviction monitor.
        claim_max_attempts: Bound on pick-then-claim attempts.
        claim_max_elapsed_seconds: Bound on total claim-loop time.
        suggestion_limit: Number of alternative countries offered.
        transaction_retry_limit: Bound on re-running one engine transaction
            after a ConcurrentModificationError.
    """

    inactivity_threshold_days: int = DEFAULT_INACTIVITY_DAYS
    warning_days: int = DEFAULT_WARNING_DAYS
    sweep_interval_seconds: int = 86_400
    claim_max_attempts: int = 3
    claim_max_elapsed_seconds: float = 5.0
    suggestion_limit: int = 5
    transaction_retry_limit: int = 3

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.inactivity_threshold_days < 1:
            raise ValueError(
                "inactivity_threshold_days must be positive, "
                f"got {self.inactivity_threshold_days}"
            )
        if self.warning_days < 0:
            raise ValueError(
                f"warning_days must be non-negative, got {self.warning_days}"
            )
        if self.warning_days >= self.inactivity_threshold_days:
            raise ValueError(
                f"warning_days ({self.warning_days}) must be less than "
                f"inactivity_threshold_days ({self.inactivity_threshold_days})"
            )
        if self.sweep_interval_seconds < 1:
            raise ValueError(
                "sweep_interval_seconds must be positive, "
                f"got {self.sweep_interval_seconds}"
            )
        if self.claim_max_attempts < 1:
            raise ValueError(
                f"claim_max_attempts must be at least 1, got {self.claim_max_attempts}"
            )
        if self.claim_max_elapsed_seconds <= 0:
            raise ValueError(
                "claim_max_elapsed_seconds must be positive, "
                f"got {self.claim_max_elapsed_seconds}"
            )
        if self.suggestion_limit < 0:
            raise ValueError(
                f"suggestion_limit must be non-negative, got {self.suggestion_limit}"
            )
        if self.transaction_retry_limit < 1:
            raise ValueError(
                "transaction_retry_limit must be at least 1, "
                f"got {self.transaction_retry_limit}"
            )

    @classmethod
    def from_environment(cls) -> "TerritoryConfig":
        """Create config from environment variables with defaults.

        A warning window that would not fit inside the configured threshold
        is clamped to one day less than the threshold.

        Returns:
            TerritoryConfig with values from environment or defaults.
        """
        threshold = _get_positive_int_env("INACTIVITY_DAYS", DEFAULT_INACTIVITY_DAYS)
        warning = _get_positive_int_env("INACTIVITY_WARNING_DAYS", DEFAULT_WARNING_DAYS)
        return cls(
            inactivity_threshold_days=threshold,
            warning_days=min(warning, threshold - 1),
            sweep_interval_seconds=_get_positive_int_env(
                "EVICTION_SWEEP_INTERVAL_SECONDS", 86_400
            ),
            claim_max_attempts=_get_positive_int_env("CLAIM_MAX_ATTEMPTS", 3),
            claim_max_elapsed_seconds=_get_positive_float_env(
                "CLAIM_MAX_ELAPSED_SECONDS", 5.0
            ),
            suggestion_limit=_get_positive_int_env("COUNTRY_SUGGESTION_LIMIT", 5),
            transaction_retry_limit=_get_positive_int_env("TRANSACTION_RETRY_LIMIT", 3),
        )


# Pre-defined configurations for common use cases

# Default production config
DEFAULT_TERRITORY_CONFIG = TerritoryConfig()

# Testing config with short intervals for unit tests
TEST_TERRITORY_CONFIG = TerritoryConfig(
    inactivity_threshold_days=7,
    warning_days=2,
    sweep_interval_seconds=1,
    claim_max_attempts=3,
    claim_max_elapsed_seconds=5.0,
    suggestion_limit=5,
    transaction_retry_limit=3,
)
