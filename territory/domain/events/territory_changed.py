"""Territory change domain event.

One TerritoryChangedPayload is published after every committed claim,
release, administrative override, administrative unassign and void. The
payload carries identities and the action kind only; what subscribers do
with it (webhooks, live updates) is their concern.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from territory.domain.models.assignment_record import AssignmentAction
from territory.domain.models.void_placement import VoidPlacement

# Event type constants following lowercase.dot.notation convention
TERRITORY_CLAIMED_EVENT_TYPE: str = "territory.claimed"
TERRITORY_RELEASED_EVENT_TYPE: str = "territory.released"
TERRITORY_VOIDED_EVENT_TYPE: str = "territory.voided"
TERRITORY_OVERRIDDEN_EVENT_TYPE: str = "territory.administrative_override"

EVENT_TYPE_BY_ACTION: dict[AssignmentAction, str] = {
    AssignmentAction.CLAIMED: TERRITORY_CLAIMED_EVENT_TYPE,
    AssignmentAction.RELEASED: TERRITORY_RELEASED_EVENT_TYPE,
    AssignmentAction.VOIDED: TERRITORY_VOIDED_EVENT_TYPE,
    AssignmentAction.ADMINISTRATIVE_OVERRIDE: TERRITORY_OVERRIDDEN_EVENT_TYPE,
}


@dataclass(frozen=True, eq=True)
class TerritoryChangedPayload:
    """Payload describing one committed ownership change.

    Attributes:
        action: The transition kind.
        resource_id: Resource claimed, released or vacated (None when a voided
            agent held nothing).
        agent_id: Agent affected, or None.
        actor: Who performed the change.
        reason: Free-text reason recorded in the trail.
        occurred_at: Commit time (UTC).
        sequence: Sequence number of the trail record for ``action``.
        previous_agent_id: Owner displaced by an administrative override.
        void_placement: Placement given to a voided agent.
    """

    action: AssignmentAction
    resource_id: str | None
    agent_id: str | None
    actor: str
    reason: str
    occurred_at: datetime
    sequence: int
    previous_agent_id: str | None = field(default=None)
    void_placement: VoidPlacement | None = field(default=None)

    def __post_init__(self) -> None:
        """Validate payload fields."""
        if self.action == AssignmentAction.VOIDED and self.void_placement is None:
            raise ValueError("voided event requires a void_placement")
        if self.sequence < 1:
            raise ValueError(f"sequence must be positive, got {self.sequence}")

    @property
    def event_type(self) -> str:
        """Dotted event type for this payload's action."""
        return EVENT_TYPE_BY_ACTION[self.action]

    def to_dict(self) -> dict[str, object]:
        """Convert payload to dictionary for event serialization.

        Returns:
            Dictionary suitable for JSON serialization.
        """
        return {
            "event_type": self.event_type,
            "action": self.action.value,
            "resource_id": self.resource_id,
            "agent_id": self.agent_id,
            "actor": self.actor,
            "reason": self.reason,
            "occurred_at": self.occurred_at.isoformat(),
            "sequence": self.sequence,
            "previous_agent_id": self.previous_agent_id,
            "void_placement": self.void_placement.to_dict()
            if self.void_placement
            else None,
        }
