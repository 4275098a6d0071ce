"""Ownership consistency report models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True, eq=True)
class OwnershipDiscrepancy:
    """A single disagreement between resource and agent records.

    Attributes:
        kind: "owner_mismatch" (resource points at an agent that does not
            point back), "territory_mismatch" (agent points at a resource
            that does not point back) or "voided_owner" (a voided agent
            still owns a resource).
        resource_id: Resource involved, if any.
        agent_id: Agent involved, if any.
    """

    kind: str
    resource_id: str | None
    agent_id: str | None


@dataclass(frozen=True)
class ConsistencyReport:
    """Result of a full ownership consistency check."""

    checked_at: datetime
    resources_checked: int
    agents_checked: int
    discrepancies: list[OwnershipDiscrepancy] = field(default_factory=list)

    @property
    def is_consistent(self) -> bool:
        """True when no discrepancy was found."""
        return not self.discrepancies
