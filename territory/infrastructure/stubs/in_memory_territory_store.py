"""In-memory territory store for development and testing.

Transactions are serialized by a single asyncio.Lock held for the whole
``async with store.transaction()`` block. Writes are staged on the
transaction and applied only when the block exits cleanly, so an
exception anywhere inside the block leaves committed state untouched.
Plain reads never take the lock and see committed state only.

This stub is NOT suitable for production use.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime

from territory.application.ports.territory_store import TerritoryStoreProtocol
from territory.domain.errors import AgentAlreadyExistsError, AgentNotFoundError
from territory.domain.models.agent import Agent
from territory.domain.models.assignment_record import (
    AssignmentAction,
    AssignmentRecord,
)
from territory.domain.models.resource import CountryAvailability, Resource
from territory.domain.models.void_placement import VoidPlacement


class InjectedStoreFailure(RuntimeError):
    """Raised by the stub when a test injected a failure for an operation."""


class _InMemoryTransaction:
    """Staged unit of work for InMemoryTerritoryStore."""

    def __init__(self, store: InMemoryTerritoryStore) -> None:
        self._store = store
        self._resources: dict[str, Resource] = {}
        self._agents: dict[str, Agent] = {}
        self._records: list[AssignmentRecord] = []
        self._locked_resources: set[str] = set()
        self._locked_agents: set[str] = set()

    def _current_resource(self, resource_id: str) -> Resource | None:
        return self._resources.get(resource_id) or self._store._resources.get(
            resource_id
        )

    def _current_agent(self, agent_id: str) -> Agent | None:
        return self._agents.get(agent_id) or self._store._agents.get(agent_id)

    async def lock_resource(self, resource_id: str) -> Resource | None:
        self._store._check_failure("lock_resource")
        # Yield so concurrent callers interleave up to the lock boundary
        await asyncio.sleep(0)
        resource = self._current_resource(resource_id)
        if resource is not None:
            self._locked_resources.add(resource_id)
        return resource

    async def lock_agent(self, agent_id: str) -> Agent | None:
        self._store._check_failure("lock_agent")
        agent = self._current_agent(agent_id)
        if agent is not None:
            self._locked_agents.add(agent_id)
        return agent

    async def set_resource_owner(self, resource_id: str, owner_id: str | None) -> None:
        self._store._check_failure("set_resource_owner")
        if resource_id not in self._locked_resources:
            raise RuntimeError(f"Resource {resource_id} written without lock")
        resource = self._current_resource(resource_id)
        assert resource is not None
        self._resources[resource_id] = resource.with_owner(owner_id)

    async def set_agent_resource(self, agent_id: str, resource_id: str | None) -> None:
        self._store._check_failure("set_agent_resource")
        if agent_id not in self._locked_agents:
            raise RuntimeError(f"Agent {agent_id} written without lock")
        agent = self._current_agent(agent_id)
        assert agent is not None
        self._agents[agent_id] = agent.with_resource(resource_id)

    async def mark_agent_voided(self, agent_id: str, placement: VoidPlacement) -> None:
        self._store._check_failure("mark_agent_voided")
        if agent_id not in self._locked_agents:
            raise RuntimeError(f"Agent {agent_id} written without lock")
        agent = self._current_agent(agent_id)
        assert agent is not None
        if agent.resource_id is not None:
            raise ValueError(f"Agent {agent_id} must release before voiding")
        self._agents[agent_id] = agent.with_void(placement)

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
        self._store._check_failure("append_assignment")
        record = AssignmentRecord(
            sequence=len(self._store._assignments) + len(self._records) + 1,
            resource_id=resource_id,
            agent_id=agent_id,
            action=action,
            actor=actor,
            reason=reason,
            recorded_at=recorded_at,
        )
        self._records.append(record)
        return record

    def commit(self) -> None:
        self._store._resources.update(self._resources)
        self._store._agents.update(self._agents)
        self._store._assignments.extend(self._records)


class InMemoryTerritoryStore(TerritoryStoreProtocol):
    """In-memory implementation of TerritoryStoreProtocol.

    Attributes:
        committed_transactions: Count of transactions that committed.
        rolled_back_transactions: Count of transactions that rolled back.
    """

    def __init__(self) -> None:
        """Initialize the stub with empty storage."""
        self._resources: dict[str, Resource] = {}
        self._agents: dict[str, Agent] = {}
        self._assignments: list[AssignmentRecord] = []
        self._write_lock = asyncio.Lock()
        self._failures: set[str] = set()
        self.committed_transactions = 0
        self.rolled_back_transactions = 0

    # =========================================================================
    # Test Control Methods
    # =========================================================================

    def inject_failure(self, operation: str) -> None:
        """Make every call to a transaction method raise InjectedStoreFailure.

        Args:
            operation: Method name, e.g. "append_assignment".
        """
        self._failures.add(operation)

    def clear_failures(self) -> None:
        """Remove all injected failures."""
        self._failures.clear()

    def clear(self) -> None:
        """Clear all stored data (for testing)."""
        self._resources.clear()
        self._agents.clear()
        self._assignments.clear()
        self._failures.clear()
        self.committed_transactions = 0
        self.rolled_back_transactions = 0

    def _check_failure(self, operation: str) -> None:
        if operation in self._failures:
            raise InjectedStoreFailure(f"Injected failure in {operation}")

    # =========================================================================
    # Transactions
    # =========================================================================

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[_InMemoryTransaction]:
        async with self._write_lock:
            tx = _InMemoryTransaction(self)
            try:
                yield tx
            except BaseException:
                self.rolled_back_transactions += 1
                raise
            tx.commit()
            self.committed_transactions += 1

    # =========================================================================
    # Resources
    # =========================================================================

    async def get_resource(self, resource_id: str) -> Resource | None:
        return self._resources.get(resource_id)

    async def list_resources(self, country_code: str | None = None) -> list[Resource]:
        return sorted(
            (
                r
                for r in self._resources.values()
                if country_code is None or r.country_code == country_code
            ),
            key=lambda r: r.id,
        )

    async def list_eligible_resources(self, country_code: str) -> list[Resource]:
        return [r for r in await self.list_resources(country_code) if r.is_eligible]

    async def count_by_country(self) -> list[CountryAvailability]:
        totals: dict[str, int] = {}
        available: dict[str, int] = {}
        for resource in self._resources.values():
            code = resource.country_code
            totals[code] = totals.get(code, 0) + 1
            available[code] = available.get(code, 0) + int(resource.is_eligible)
        return [
            CountryAvailability(
                country_code=code,
                available_count=available[code],
                total_count=totals[code],
            )
            for code in sorted(totals)
        ]

    async def add_resource(self, resource: Resource) -> bool:
        async with self._write_lock:
            if resource.id in self._resources:
                return False
            self._resources[resource.id] = resource
            return True

    # =========================================================================
    # Agents
    # =========================================================================

    async def get_agent(self, agent_id: str) -> Agent | None:
        return self._agents.get(agent_id)

    async def list_agents(self, include_voided: bool = False) -> list[Agent]:
        return sorted(
            (a for a in self._agents.values() if include_voided or not a.voided),
            key=lambda a: a.id,
        )

    async def list_agents_inactive_since(self, cutoff: datetime) -> list[Agent]:
        return [
            a
            for a in await self.list_agents()
            if a.last_liveness is None or a.last_liveness <= cutoff
        ]

    async def create_agent(self, agent: Agent) -> None:
        async with self._write_lock:
            if agent.id in self._agents:
                raise AgentAlreadyExistsError(agent.id)
            self._agents[agent.id] = agent

    async def delete_agent(self, agent_id: str) -> bool:
        async with self._write_lock:
            agent = self._agents.get(agent_id)
            if agent is None or agent.resource_id is not None or agent.voided:
                return False
            if any(r.agent_id == agent_id for r in self._assignments):
                return False
            del self._agents[agent_id]
            return True

    async def record_liveness(self, agent_id: str, at: datetime) -> datetime:
        async with self._write_lock:
            agent = self._agents.get(agent_id)
            if agent is None:
                raise AgentNotFoundError(agent_id)
            updated = agent.with_liveness(at)
            self._agents[agent_id] = updated
            assert updated.last_liveness is not None
            return updated.last_liveness

    # =========================================================================
    # Assignment trail
    # =========================================================================

    async def list_assignments(
        self,
        *,
        resource_id: str | None = None,
        agent_id: str | None = None,
        limit: int | None = None,
    ) -> list[AssignmentRecord]:
        records = [
            r
            for r in self._assignments
            if (resource_id is None or r.resource_id == resource_id)
            and (agent_id is None or r.agent_id == agent_id)
        ]
        if limit is not None:
            records = records[-limit:] if limit > 0 else []
        return records
