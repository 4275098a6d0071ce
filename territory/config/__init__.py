"""Configuration module for the territory engine.

Available Configurations:
- TerritoryConfig: Inactivity threshold, warning window, sweep period and
  claim-retry bounds
"""

from territory.config.territory_config import (
    DEFAULT_TERRITORY_CONFIG,
    TEST_TERRITORY_CONFIG,
    TerritoryConfig,
)

__all__ = [
    "TerritoryConfig",
    "DEFAULT_TERRITORY_CONFIG",
    "TEST_TERRITORY_CONFIG",
]
