"""Assignment trail query and ownership verification.

Read-only surface over the append-only assignment trail, plus a full
check that resource and agent records agree on ownership. The check does
not repair anything; discrepancies are logged and reported.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from structlog import get_logger

from territory.domain.errors import AgentNotFoundError, ResourceNotFoundError
from territory.domain.models.assignment_record import AssignmentRecord
from territory.domain.models.consistency_report import (
    ConsistencyReport,
    OwnershipDiscrepancy,
)

if TYPE_CHECKING:
    from territory.application.ports.territory_store import TerritoryStoreProtocol
    from territory.application.ports.time_authority import TimeAuthorityProtocol

logger = get_logger()


class AssignmentTrailService:
    """Administrative read access to the assignment trail."""

    def __init__(
        self,
        store: TerritoryStoreProtocol,
        time_authority: TimeAuthorityProtocol,
    ) -> None:
        self._store = store
        self._time = time_authority

    async def history_for_resource(
        self, resource_id: str, limit: int | None = None
    ) -> list[AssignmentRecord]:
        """Records for one resource in commit order.

        Args:
            resource_id: The resource.
            limit: Only the latest ``limit`` records.

        Raises:
            ResourceNotFoundError: Unknown resource.
        """
        if await self._store.get_resource(resource_id) is None:
            raise ResourceNotFoundError(resource_id)
        return await self._store.list_assignments(resource_id=resource_id, limit=limit)

    async def history_for_agent(
        self, agent_id: str, limit: int | None = None
    ) -> list[AssignmentRecord]:
        """Records for one agent in commit order.

        Raises:
            AgentNotFoundError: The agent is unknown and has no history.
        """
        records = await self._store.list_assignments(agent_id=agent_id, limit=limit)
        if not records and await self._store.get_agent(agent_id) is None:
            raise AgentNotFoundError(agent_id)
        return records

    async def verify_consistency(self) -> ConsistencyReport:
        """Check that every ownership link is mirrored on both sides.

        Returns:
            ConsistencyReport listing every discrepancy found.
        """
        log = logger.bind(operation="verify_consistency")
        resources = await self._store.list_resources()
        agents = {a.id: a for a in await self._store.list_agents(include_voided=True)}
        discrepancies: list[OwnershipDiscrepancy] = []

        owners: dict[str, str] = {}
        for resource in resources:
            if resource.owner_id is None:
                continue
            owners[resource.id] = resource.owner_id
            owner = agents.get(resource.owner_id)
            if owner is not None and owner.voided:
                discrepancies.append(
                    OwnershipDiscrepancy("voided_owner", resource.id, owner.id)
                )
            elif owner is None or owner.resource_id != resource.id:
                discrepancies.append(
                    OwnershipDiscrepancy("owner_mismatch", resource.id, resource.owner_id)
                )

        for agent in agents.values():
            if agent.resource_id is None:
                continue
            if owners.get(agent.resource_id) != agent.id:
                discrepancies.append(
                    OwnershipDiscrepancy(
                        "territory_mismatch", agent.resource_id, agent.id
                    )
                )

        report = ConsistencyReport(
            checked_at=self._time.now(),
            resources_checked=len(resources),
            agents_checked=len(agents),
            discrepancies=discrepancies,
        )
        if report.is_consistent:
            log.info(
                "ownership_consistent",
                resources=report.resources_checked,
                agents=report.agents_checked,
            )
        else:
            for discrepancy in discrepancies:
                log.warning(
                    "ownership_discrepancy",
                    kind=discrepancy.kind,
                    resource_id=discrepancy.resource_id,
                    agent_id=discrepancy.agent_id,
                )
        return report
