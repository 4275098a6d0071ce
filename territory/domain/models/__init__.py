"""Domain models for the territory engine."""

from territory.domain.models.agent import Agent
from territory.domain.models.assignment_record import (
    NON_ADMINISTRATIVE_ACTORS,
    SELF_REGISTRATION_ACTOR,
    SYSTEM_ACTOR,
    AssignmentAction,
    AssignmentRecord,
    is_administrative_actor,
)
from territory.domain.models.consistency_report import (
    ConsistencyReport,
    OwnershipDiscrepancy,
)
from territory.domain.models.liveness import LivenessStatus
from territory.domain.models.resource import CountryAvailability, Resource
from territory.domain.models.sweep_report import (
    SweepFailure,
    SweepReport,
    VoidedAgentSummary,
)
from territory.domain.models.void_placement import (
    VOID_LOCATION_LABEL,
    VoidPlacement,
    VoidZone,
)

__all__: list[str] = [
    "Agent",
    "AssignmentAction",
    "AssignmentRecord",
    "ConsistencyReport",
    "CountryAvailability",
    "LivenessStatus",
    "NON_ADMINISTRATIVE_ACTORS",
    "OwnershipDiscrepancy",
    "Resource",
    "SELF_REGISTRATION_ACTOR",
    "SYSTEM_ACTOR",
    "SweepFailure",
    "SweepReport",
    "VOID_LOCATION_LABEL",
    "VoidPlacement",
    "VoidZone",
    "VoidedAgentSummary",
    "is_administrative_actor",
]
