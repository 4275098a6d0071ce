"""Permanent rejection errors.

These are never retryable: repeating the same request cannot succeed.
They are kept apart from the transient conflicts so callers can show a
clear, final rejection instead of retrying.
"""

from __future__ import annotations

from datetime import datetime

from territory.domain.exceptions import TerritoryError


class PermanentRejectionError(TerritoryError):
    """Base class for non-retryable rejections."""

    retryable = False


class ReservedResourceError(PermanentRejectionError):
    """Raised when a non-administrative actor claims a reserved resource.

    Attributes:
        resource_id: The reserved resource.
        actor: The actor that attempted the claim.
    """

    def __init__(self, resource_id: str, actor: str) -> None:
        self.resource_id = resource_id
        self.actor = actor
        super().__init__(
            f"Resource {resource_id} is reserved; "
            f"actor {actor!r} may not claim it"
        )


class AgentVoidedError(PermanentRejectionError):
    """Raised when any claim is attempted for a voided agent.

    Attributes:
        agent_id: The voided agent.
    """

    def __init__(self, agent_id: str) -> None:
        self.agent_id = agent_id
        super().__init__(f"Agent {agent_id} is permanently voided")


class AlreadyVoidedError(PermanentRejectionError):
    """Raised when voiding an agent that is already voided.

    Attributes:
        agent_id: The agent.
    """

    def __init__(self, agent_id: str) -> None:
        self.agent_id = agent_id
        super().__init__(f"Agent {agent_id} is already voided")


class AgentRecoveredError(PermanentRejectionError):
    """Raised when an eviction finds liveness newer than its inactivity cutoff.

    The check runs on the locked agent row, so a heartbeat committed after
    the agent was selected for eviction still saves it.

    Attributes:
        agent_id: The agent.
        last_liveness: Liveness found on the locked row.
        inactive_since: Cutoff the eviction required liveness to be at or before.
    """

    def __init__(
        self, agent_id: str, last_liveness: datetime, inactive_since: datetime
    ) -> None:
        self.agent_id = agent_id
        self.last_liveness = last_liveness
        self.inactive_since = inactive_since
        super().__init__(
            f"Agent {agent_id} reported liveness at {last_liveness.isoformat()}, "
            f"after the eviction cutoff {inactive_since.isoformat()}"
        )
