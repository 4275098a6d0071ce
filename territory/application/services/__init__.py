"""Application services for the territory engine."""

from territory.application.services.allocation_engine import AllocationEngine
from territory.application.services.assignment_trail_service import (
    AssignmentTrailService,
)
from territory.application.services.eviction_monitor import EvictionMonitor
from territory.application.services.eviction_sweeper import EvictionSweeper
from territory.application.services.liveness_tracker import LivenessTracker
from territory.application.services.resource_catalog_service import (
    ResourceCatalogService,
)
from territory.application.services.territory_registration_service import (
    RegistrationResult,
    TerritoryRegistrationService,
)

__all__: list[str] = [
    "AllocationEngine",
    "AssignmentTrailService",
    "EvictionMonitor",
    "EvictionSweeper",
    "LivenessTracker",
    "RegistrationResult",
    "ResourceCatalogService",
    "TerritoryRegistrationService",
]
