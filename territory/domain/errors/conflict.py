"""Transient conflict errors for the allocation engine.

A transient conflict means another transaction got there first. The
caller is expected to re-read state and retry (see the registration
workflow's bounded claim loop) rather than surface the failure to the
end user on the first occurrence.
"""

from __future__ import annotations

from territory.domain.exceptions import TerritoryError


class TransientConflictError(TerritoryError):
    """Base class for conflicts that may resolve on retry."""

    retryable = True


class AlreadyOwnedError(TransientConflictError):
    """Raised when a claim finds the resource owned at commit time.

    Attributes:
        resource_id: The contested resource.
        owner_id: The agent that currently owns it.
    """

    def __init__(self, resource_id: str, owner_id: str) -> None:
        self.resource_id = resource_id
        self.owner_id = owner_id
        super().__init__(f"Resource {resource_id} is already owned by {owner_id}")


class AgentAlreadyHasTerritoryError(TransientConflictError):
    """Raised when an agent that already holds a resource tries to claim another.

    The agent must release its current territory first.

    Attributes:
        agent_id: The claiming agent.
        resource_id: The resource the agent currently holds.
    """

    def __init__(self, agent_id: str, resource_id: str) -> None:
        self.agent_id = agent_id
        self.resource_id = resource_id
        super().__init__(
            f"Agent {agent_id} already holds {resource_id}; release it first"
        )


class ConcurrentModificationError(TransientConflictError):
    """Raised when a row changed between an unlocked read and its locked re-read.

    Store adapters raise this from inside a transaction; the allocation
    engine re-runs the whole transaction a bounded number of times.

    Attributes:
        entity: Kind of row that changed ("agent" or "resource").
        entity_id: Identity of that row.
        operation: The engine operation that detected the change.
    """

    def __init__(self, entity: str, entity_id: str, operation: str) -> None:
        self.entity = entity
        self.entity_id = entity_id
        self.operation = operation
        super().__init__(
            f"Concurrent modification of {entity} {entity_id} during {operation}"
        )
