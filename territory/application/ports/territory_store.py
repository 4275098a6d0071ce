"""Territory store port: transactional persistence for resources and agents.

This module defines the abstract interface the allocation engine uses to
read and mutate resources, agents and the assignment trail.

Ownership rules:
1. Only the allocation engine opens transactions. No other component
   writes ``owner_id``, ``resource_id`` or ``voided``.
2. Everything written inside ``transaction()`` commits together or not at
   all; an exception escaping the block rolls back every effect.
3. ``lock_resource`` / ``lock_agent`` take exclusive row locks held until
   the transaction ends. Callers lock at most one resource, always before
   any agent, and lock agents in ascending id order.
4. The plain read methods never take exclusive locks and only observe
   committed state.
5. Assignment records are append-only. Sequence numbers follow commit
   order.
"""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from datetime import datetime
from typing import Protocol

from territory.domain.models.agent import Agent
from territory.domain.models.assignment_record import (
    AssignmentAction,
    AssignmentRecord,
)
from territory.domain.models.resource import CountryAvailability, Resource
from territory.domain.models.void_placement import VoidPlacement


class TerritoryTransactionProtocol(Protocol):
    """Unit of work handed out by TerritoryStoreProtocol.transaction().

    Methods:
        lock_resource: Lock and read a resource row
        lock_agent: Lock and read an agent row
        set_resource_owner: Write a resource's owner
        set_agent_resource: Write an agent's held resource
        mark_agent_voided: Set the permanent void flag and placement
        append_assignment: Append an audit record
    """

    async def lock_resource(self, resource_id: str) -> Resource | None:
        """Lock a resource for the rest of the transaction and return it.

        Args:
            resource_id: Resource to lock.

        Returns:
            The resource as seen under the lock, or None if unknown.
        """
        ...

    async def lock_agent(self, agent_id: str) -> Agent | None:
        """Lock an agent for the rest of the transaction and return it.

        Args:
            agent_id: Agent to lock.

        Returns:
            The agent as seen under the lock, or None if unknown.
        """
        ...

    async def set_resource_owner(self, resource_id: str, owner_id: str | None) -> None:
        """Set or clear a locked resource's owner."""
        ...

    async def set_agent_resource(self, agent_id: str, resource_id: str | None) -> None:
        """Set or clear a locked agent's held resource."""
        ...

    async def mark_agent_voided(self, agent_id: str, placement: VoidPlacement) -> None:
        """Set a locked agent's void flag and placement.

        The agent must hold no resource. There is no inverse operation.
        """
        ...

    async def append_assignment(
        self,
        *,
        resource_id: str | None,
        agent_id: str | None,
        action: AssignmentAction,
        actor: str,
        reason: str,
        recorded_at: datetime,
    ) -> AssignmentRecord:
        """Append an assignment record.

        Returns:
            The record with its sequence number assigned.
        """
        ...


class TerritoryStoreProtocol(Protocol):
    """Protocol for resource, agent and assignment-trail storage.

    Implementations may use PostgreSQL (SqlTerritoryStore) or in-memory
    storage (InMemoryTerritoryStore).
    """

    def transaction(self) -> AbstractAsyncContextManager[TerritoryTransactionProtocol]:
        """Open a read-modify-write transaction.

        Usage:
            async with store.transaction() as tx:
                resource = await tx.lock_resource("paris")
                ...

        Raises:
            ConcurrentModificationError: May be raised by the backend when a
                conditional write finds the row changed.
        """
        ...

    async def get_resource(self, resource_id: str) -> Resource | None:
        """Read a resource (committed state, no lock)."""
        ...

    async def list_resources(self, country_code: str | None = None) -> list[Resource]:
        """List resources ordered by id, optionally for one country."""
        ...

    async def list_eligible_resources(self, country_code: str) -> list[Resource]:
        """List unreserved, unowned resources in a country, ordered by id."""
        ...

    async def count_by_country(self) -> list[CountryAvailability]:
        """Count eligible and total resources for every country."""
        ...

    async def add_resource(self, resource: Resource) -> bool:
        """Add a catalog resource.

        The catalog is append-only: a resource whose id already exists is
        left untouched.

        Returns:
            True if inserted, False if the id already existed.
        """
        ...

    async def get_agent(self, agent_id: str) -> Agent | None:
        """Read an agent (committed state, no lock)."""
        ...

    async def list_agents(self, include_voided: bool = False) -> list[Agent]:
        """List agents ordered by id."""
        ...

    async def list_agents_inactive_since(self, cutoff: datetime) -> list[Agent]:
        """List non-voided agents whose last liveness is before ``cutoff``.

        Agents that never recorded liveness are included.
        """
        ...

    async def create_agent(self, agent: Agent) -> None:
        """Insert a new agent with no territory.

        Raises:
            AgentAlreadyExistsError: If the id is taken.
        """
        ...

    async def delete_agent(self, agent_id: str) -> bool:
        """Delete an agent that holds no territory and has no trail entries.

        Used to roll back a registration placeholder.

        Returns:
            True if deleted, False if absent or not deletable.
        """
        ...

    async def record_liveness(self, agent_id: str, at: datetime) -> datetime:
        """Advance an agent's last liveness to ``at`` unless it is already later.

        Returns:
            The stored last liveness after the update.

        Raises:
            AgentNotFoundError: If the agent is unknown.
        """
        ...

    async def list_assignments(
        self,
        *,
        resource_id: str | None = None,
        agent_id: str | None = None,
        limit: int | None = None,
    ) -> list[AssignmentRecord]:
        """List assignment records in sequence order.

        Args:
            resource_id: Only records for this resource.
            agent_id: Only records for this agent.
            limit: Return at most the latest ``limit`` records.
        """
        ...
