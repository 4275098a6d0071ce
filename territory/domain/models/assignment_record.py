"""Assignment record (audit trail entry) domain model.

Every ownership change produces exactly one AssignmentRecord. Records are
append-only: stores assign the ``sequence`` number at commit and never
update or delete a record afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

SELF_REGISTRATION_ACTOR: str = "self-registration"
SYSTEM_ACTOR: str = "system"

NON_ADMINISTRATIVE_ACTORS: frozenset[str] = frozenset(
    {SELF_REGISTRATION_ACTOR, SYSTEM_ACTOR}
)


def is_administrative_actor(actor: str) -> bool:
    """Return True if ``actor`` is an administrator identity.

    Any non-empty actor other than the self-registration and system actors
    is treated as an administrator id. Authorization is the caller's job;
    this only classifies the label that will be recorded.
    """
    return bool(actor) and actor not in NON_ADMINISTRATIVE_ACTORS


class AssignmentAction(Enum):
    """Kind of ownership transition."""

    CLAIMED = "claimed"
    RELEASED = "released"
    VOIDED = "voided"
    ADMINISTRATIVE_OVERRIDE = "administrative-override"


@dataclass(frozen=True, eq=True)
class AssignmentRecord:
    """One entry of the assignment trail.

    Attributes:
        sequence: Store-assigned, strictly increasing commit order.
        resource_id: The resource involved. None for a ``voided`` record of
            an agent that held nothing at eviction time.
        agent_id: The agent involved, or None.
        action: The transition kind.
        actor: Who performed it ("self-registration", "system" or an admin id).
        reason: Free-text reason.
        recorded_at: When the transition was recorded (UTC).
    """

    sequence: int
    resource_id: str | None
    agent_id: str | None
    action: AssignmentAction
    actor: str
    reason: str
    recorded_at: datetime

    def __post_init__(self) -> None:
        """Validate record fields."""
        if not self.actor:
            raise ValueError("actor must be non-empty")
        if self.action != AssignmentAction.VOIDED and self.resource_id is None:
            raise ValueError(f"{self.action.value} record requires a resource_id")

    def to_dict(self) -> dict[str, object]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "sequence": self.sequence,
            "resource_id": self.resource_id,
            "agent_id": self.agent_id,
            "action": self.action.value,
            "actor": self.actor,
            "reason": self.reason,
            "recorded_at": self.recorded_at.isoformat(),
        }
