"""Allocation engine: the only writer of resource and agent ownership.

Every mutating operation runs as one store transaction. Ownership on both
sides and the assignment record commit together or not at all. Rows are
locked in a fixed order (the resource first, then agents by ascending
id), so two transactions touching the same rows queue instead of
deadlocking, and a claim that loses a race observes ``AlreadyOwnedError``
under its own lock rather than from a stale read.

Operations that must find an agent's resource before locking it (release,
void) read the agent unlocked, lock the resource, then re-check the agent
under its lock. If the agent moved in between, the transaction raises
ConcurrentModificationError and is re-run a bounded number of times.

One TerritoryChangedPayload is published after each commit. Publish
failures are logged and never undo or fail the committed operation.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, TypeVar

from structlog import get_logger

from territory.domain.errors import (
    AgentAlreadyHasTerritoryError,
    AgentNotFoundError,
    AgentRecoveredError,
    AgentVoidedError,
    AlreadyOwnedError,
    AlreadyVoidedError,
    ConcurrentModificationError,
    ReservedResourceError,
    ResourceNotAssignedError,
    ResourceNotFoundError,
)
from territory.domain.events.territory_changed import TerritoryChangedPayload
from territory.domain.exceptions import TerritoryError
from territory.domain.models.agent import Agent
from territory.domain.models.assignment_record import (
    SYSTEM_ACTOR,
    AssignmentAction,
    AssignmentRecord,
    is_administrative_actor,
)
from territory.domain.models.resource import Resource
from territory.domain.models.void_placement import VoidPlacement
from territory.domain.services.void_placement import compute_void_placement

if TYPE_CHECKING:
    from datetime import datetime

    from territory.application.ports.territory_event_publisher import (
        TerritoryEventPublisherProtocol,
    )
    from territory.application.ports.territory_store import (
        TerritoryStoreProtocol,
        TerritoryTransactionProtocol,
    )
    from territory.application.ports.time_authority import TimeAuthorityProtocol

logger = get_logger()

T = TypeVar("T")

EVICTION_RELEASE_REASON = "evicted"
DEFAULT_OVERRIDE_REASON = "Administrative assignment"
DEFAULT_UNASSIGN_REASON = "Administrative unassignment"
DEFAULT_UNASSIGN_TO_VOID_REASON = "Administrative move to void"
DEFAULT_TRANSACTION_RETRY_LIMIT = 3


class AllocationEngine:
    """Transactional claim, release, override and void operations.

    Example:
        >>> engine = AllocationEngine(store=store, time_authority=clock)
        >>> await engine.claim("paris", "agent-a", "self-registration", "signup")
    """

    def __init__(
        self,
        store: TerritoryStoreProtocol,
        time_authority: TimeAuthorityProtocol,
        publisher: TerritoryEventPublisherProtocol | None = None,
        transaction_retry_limit: int = DEFAULT_TRANSACTION_RETRY_LIMIT,
    ) -> None:
        """Initialize the allocation engine.

        Args:
            store: Transactional territory store.
            time_authority: Source of record timestamps.
            publisher: Notification dispatch; None disables publishing.
            transaction_retry_limit: Attempts per operation when the store
                reports a concurrent modification.
        """
        if transaction_retry_limit < 1:
            raise ValueError("transaction_retry_limit must be at least 1")
        self._store = store
        self._time = time_authority
        self._publisher = publisher
        self._retry_limit = transaction_retry_limit

    # =========================================================================
    # Public operations
    # =========================================================================

    async def claim(
        self,
        resource_id: str,
        agent_id: str,
        actor: str,
        reason: str,
    ) -> Resource:
        """Claim a resource for an agent.

        Args:
            resource_id: Resource to claim.
            agent_id: Claiming agent.
            actor: "self-registration", "system" or an administrator id.
            reason: Free-text reason for the trail.

        Returns:
            The claimed resource, owned by ``agent_id``.

        Raises:
            ResourceNotFoundError: Unknown resource.
            AgentNotFoundError: Unknown agent.
            AgentVoidedError: The agent is permanently voided.
            ReservedResourceError: Reserved resource and non-admin actor.
            AgentAlreadyHasTerritoryError: The agent already holds a resource.
            AlreadyOwnedError: Another agent owns the resource at commit time.
        """
        log = logger.bind(
            operation="claim", resource_id=resource_id, agent_id=agent_id, actor=actor
        )

        async def work(tx: TerritoryTransactionProtocol) -> tuple[Resource, AssignmentRecord]:
            resource = await self._lock_existing_resource(tx, resource_id)
            agent = await self._lock_existing_agent(tx, agent_id)
            if agent.voided:
                raise AgentVoidedError(agent_id)
            if resource.reserved and not is_administrative_actor(actor):
                raise ReservedResourceError(resource_id, actor)
            return await self._assign(
                tx, resource, agent, AssignmentAction.CLAIMED, actor, reason
            )

        claimed, record = await self._run_transaction("claim", work, log)
        log.info("territory_claimed", sequence=record.sequence)
        await self._publish(self._payload(record), log)
        return claimed

    async def release(
        self,
        agent_id: str,
        actor: str,
        reason: str,
    ) -> Resource | None:
        """Release whatever resource an agent holds.

        Returns:
            The released resource (now unowned), or None when the agent held
            nothing. The no-op case writes no record and publishes nothing.

        Raises:
            AgentNotFoundError: Unknown agent.
        """
        log = logger.bind(operation="release", agent_id=agent_id, actor=actor)

        async def work(
            tx: TerritoryTransactionProtocol,
        ) -> tuple[Resource, AssignmentRecord] | None:
            snapshot = await self._read_agent(agent_id)
            if snapshot.resource_id is None:
                agent = await self._lock_existing_agent(tx, agent_id)
                if agent.resource_id is not None:
                    raise ConcurrentModificationError("agent", agent_id, "release")
                return None
            resource, agent = await self._lock_held(tx, snapshot, "release")
            record = await self._release_held(tx, resource, agent, actor, reason)
            return resource.with_owner(None), record

        outcome = await self._run_transaction("release", work, log)
        if outcome is None:
            log.debug("release_noop")
            return None
        released, record = outcome
        log.info("territory_released", resource_id=released.id, sequence=record.sequence)
        await self._publish(self._payload(record), log)
        return released

    async def administrative_override(
        self,
        resource_id: str,
        agent_id: str,
        actor: str,
        reason: str = DEFAULT_OVERRIDE_REASON,
    ) -> Resource:
        """Assign a resource to an agent, displacing any current owner.

        Bypasses the reserved check. A displaced owner is released first and
        that release is recorded under the same ``actor``. Authorization of
        ``actor`` is the caller's responsibility.

        Raises:
            ResourceNotFoundError: Unknown resource.
            AgentNotFoundError: Unknown agent.
            AgentVoidedError: The agent is permanently voided.
            AgentAlreadyHasTerritoryError: The agent already holds a resource.
        """
        log = logger.bind(
            operation="administrative_override",
            resource_id=resource_id,
            agent_id=agent_id,
            actor=actor,
        )

        async def work(
            tx: TerritoryTransactionProtocol,
        ) -> tuple[Resource, AssignmentRecord, str | None]:
            resource = await self._lock_existing_resource(tx, resource_id)
            previous_owner = resource.owner_id
            agents: dict[str, Agent | None] = {}
            for locked_id in sorted({agent_id, previous_owner} - {None}):
                agents[locked_id] = await tx.lock_agent(locked_id)
            agent = agents[agent_id]
            if agent is None:
                raise AgentNotFoundError(agent_id)
            if agent.voided:
                raise AgentVoidedError(agent_id)
            if agent.resource_id is not None:
                raise AgentAlreadyHasTerritoryError(agent_id, agent.resource_id)

            if previous_owner is not None:
                displaced = agents[previous_owner]
                await tx.set_resource_owner(resource_id, None)
                if displaced is not None and displaced.resource_id == resource_id:
                    await tx.set_agent_resource(previous_owner, None)
                await tx.append_assignment(
                    resource_id=resource_id,
                    agent_id=previous_owner,
                    action=AssignmentAction.RELEASED,
                    actor=actor,
                    reason=f"Displaced by administrative override: {reason}",
                    recorded_at=self._time.now(),
                )
                resource = resource.with_owner(None)

            assigned, record = await self._assign(
                tx,
                resource,
                agent,
                AssignmentAction.ADMINISTRATIVE_OVERRIDE,
                actor,
                reason,
            )
            return assigned, record, previous_owner

        assigned, record, previous_owner = await self._run_transaction(
            "administrative_override", work, log
        )
        log.info(
            "territory_overridden",
            previous_agent_id=previous_owner,
            sequence=record.sequence,
        )
        await self._publish(self._payload(record, previous_agent_id=previous_owner), log)
        return assigned

    async def void_agent(
        self,
        agent_id: str,
        placement: VoidPlacement | None = None,
        actor: str = SYSTEM_ACTOR,
        reason: str = "",
        inactive_since: datetime | None = None,
    ) -> Agent:
        """Permanently evict an agent to a void placement.

        A held resource is released first (recorded as ``released`` with
        reason "evicted"), then the agent is voided and a ``voided`` record
        is appended.

        Args:
            agent_id: Agent to void.
            placement: Void placement; computed from the agent id when None.
            actor: Who is voiding the agent.
            reason: Free-text reason for the ``voided`` record.
            inactive_since: Eviction cutoff. When given, the locked agent must
                have no liveness after it.

        Returns:
            The voided agent.

        Raises:
            AgentNotFoundError: Unknown agent.
            AlreadyVoidedError: The agent is already voided. Nothing is written.
            AgentRecoveredError: Liveness newer than ``inactive_since``. Nothing
                is written.
        """
        placement = placement or compute_void_placement(agent_id)
        log = logger.bind(operation="void_agent", agent_id=agent_id, actor=actor)

        async def work(
            tx: TerritoryTransactionProtocol,
        ) -> tuple[Agent, AssignmentRecord]:
            snapshot = await self._read_agent(agent_id)
            if snapshot.voided:
                raise AlreadyVoidedError(agent_id)
            if snapshot.resource_id is None:
                agent = await self._lock_existing_agent(tx, agent_id)
                if agent.voided:
                    raise AlreadyVoidedError(agent_id)
                if agent.resource_id is not None:
                    raise ConcurrentModificationError("agent", agent_id, "void_agent")
                return await self._void_locked(
                    tx, None, agent, placement, actor, reason, inactive_since
                )
            resource, agent = await self._lock_held(tx, snapshot, "void_agent")
            return await self._void_locked(
                tx, resource, agent, placement, actor, reason, inactive_since
            )

        voided, record = await self._run_transaction("void_agent", work, log)
        log.info(
            "agent_voided",
            previous_resource_id=record.resource_id,
            void_zone=placement.zone_name,
            sequence=record.sequence,
        )
        await self._publish(self._payload(record, void_placement=placement), log)
        return voided

    async def administrative_unassign(
        self,
        resource_id: str,
        actor: str,
        reason: str | None = None,
        move_to_void: bool = False,
    ) -> Resource:
        """Clear a resource's owner on an administrator's behalf.

        Args:
            resource_id: Resource to vacate.
            actor: Administrator id.
            reason: Free-text reason; a default is used when None.
            move_to_void: Void the owner instead of merely releasing it.

        Returns:
            The vacated resource.

        Raises:
            ResourceNotFoundError: Unknown resource.
            ResourceNotAssignedError: The resource has no owner.
        """
        if reason is None:
            reason = DEFAULT_UNASSIGN_TO_VOID_REASON if move_to_void else DEFAULT_UNASSIGN_REASON
        log = logger.bind(
            operation="administrative_unassign",
            resource_id=resource_id,
            actor=actor,
            move_to_void=move_to_void,
        )
        placement: VoidPlacement | None = None

        async def work(
            tx: TerritoryTransactionProtocol,
        ) -> tuple[Resource, AssignmentRecord]:
            nonlocal placement
            resource = await self._lock_existing_resource(tx, resource_id)
            if resource.owner_id is None:
                raise ResourceNotAssignedError(resource_id)
            agent = await self._lock_existing_agent(tx, resource.owner_id)
            if move_to_void:
                placement = compute_void_placement(agent.id)
                _, record = await self._void_locked(
                    tx, resource, agent, placement, actor, reason
                )
            else:
                record = await self._release_held(tx, resource, agent, actor, reason)
            return resource.with_owner(None), record

        vacated, record = await self._run_transaction("administrative_unassign", work, log)
        log.info("territory_unassigned", agent_id=record.agent_id, sequence=record.sequence)
        await self._publish(self._payload(record, void_placement=placement), log)
        return vacated

    # =========================================================================
    # Transaction helpers
    # =========================================================================

    async def _run_transaction(
        self,
        operation: str,
        work: Callable[[TerritoryTransactionProtocol], Awaitable[T]],
        log: Any,
    ) -> T:
        """Run ``work`` in a store transaction, re-running on concurrent modification."""
        for attempt in range(1, self._retry_limit + 1):
            try:
                async with self._store.transaction() as tx:
                    return await work(tx)
            except ConcurrentModificationError as exc:
                if attempt >= self._retry_limit:
                    log.warning(
                        "transaction_retries_exhausted",
                        attempts=attempt,
                        error=str(exc),
                    )
                    raise
                log.info("transaction_retry", attempt=attempt, error=str(exc))
            except TerritoryError as exc:
                if exc.retryable:
                    log.info(f"{operation}_conflict", error_type=type(exc).__name__)
                else:
                    log.warning(f"{operation}_rejected", error_type=type(exc).__name__)
                raise
        raise AssertionError("unreachable")

    async def _read_agent(self, agent_id: str) -> Agent:
        agent = await self._store.get_agent(agent_id)
        if agent is None:
            raise AgentNotFoundError(agent_id)
        return agent

    @staticmethod
    async def _lock_existing_resource(
        tx: TerritoryTransactionProtocol, resource_id: str
    ) -> Resource:
        resource = await tx.lock_resource(resource_id)
        if resource is None:
            raise ResourceNotFoundError(resource_id)
        return resource

    @staticmethod
    async def _lock_existing_agent(
        tx: TerritoryTransactionProtocol, agent_id: str
    ) -> Agent:
        agent = await tx.lock_agent(agent_id)
        if agent is None:
            raise AgentNotFoundError(agent_id)
        return agent

    async def _lock_held(
        self,
        tx: TerritoryTransactionProtocol,
        snapshot: Agent,
        operation: str,
    ) -> tuple[Resource, Agent]:
        """Lock the resource an unlocked snapshot says the agent holds, then the agent."""
        assert snapshot.resource_id is not None
        resource = await self._lock_existing_resource(tx, snapshot.resource_id)
        agent = await self._lock_existing_agent(tx, snapshot.id)
        if agent.resource_id != resource.id or resource.owner_id != agent.id:
            raise ConcurrentModificationError("agent", agent.id, operation)
        return resource, agent

    async def _assign(
        self,
        tx: TerritoryTransactionProtocol,
        resource: Resource,
        agent: Agent,
        action: AssignmentAction,
        actor: str,
        reason: str,
    ) -> tuple[Resource, AssignmentRecord]:
        """Write ownership on both sides plus the record. Both rows must be locked."""
        if agent.resource_id is not None:
            raise AgentAlreadyHasTerritoryError(agent.id, agent.resource_id)
        if resource.owner_id is not None:
            raise AlreadyOwnedError(resource.id, resource.owner_id)
        await tx.set_resource_owner(resource.id, agent.id)
        await tx.set_agent_resource(agent.id, resource.id)
        record = await tx.append_assignment(
            resource_id=resource.id,
            agent_id=agent.id,
            action=action,
            actor=actor,
            reason=reason,
            recorded_at=self._time.now(),
        )
        return resource.with_owner(agent.id), record

    async def _release_held(
        self,
        tx: TerritoryTransactionProtocol,
        resource: Resource,
        agent: Agent,
        actor: str,
        reason: str,
    ) -> AssignmentRecord:
        await tx.set_resource_owner(resource.id, None)
        await tx.set_agent_resource(agent.id, None)
        return await tx.append_assignment(
            resource_id=resource.id,
            agent_id=agent.id,
            action=AssignmentAction.RELEASED,
            actor=actor,
            reason=reason,
            recorded_at=self._time.now(),
        )

    async def _void_locked(
        self,
        tx: TerritoryTransactionProtocol,
        resource: Resource | None,
        agent: Agent,
        placement: VoidPlacement,
        actor: str,
        reason: str,
        inactive_since: datetime | None = None,
    ) -> tuple[Agent, AssignmentRecord]:
        if (
            inactive_since is not None
            and agent.last_liveness is not None
            and agent.last_liveness > inactive_since
        ):
            raise AgentRecoveredError(agent.id, agent.last_liveness, inactive_since)
        if resource is not None:
            await self._release_held(tx, resource, agent, actor, EVICTION_RELEASE_REASON)
        await tx.mark_agent_voided(agent.id, placement)
        record = await tx.append_assignment(
            resource_id=resource.id if resource else None,
            agent_id=agent.id,
            action=AssignmentAction.VOIDED,
            actor=actor,
            reason=reason,
            recorded_at=self._time.now(),
        )
        return agent.with_resource(None).with_void(placement), record

    # =========================================================================
    # Notification
    # =========================================================================

    @staticmethod
    def _payload(
        record: AssignmentRecord,
        previous_agent_id: str | None = None,
        void_placement: VoidPlacement | None = None,
    ) -> TerritoryChangedPayload:
        return TerritoryChangedPayload(
            action=record.action,
            resource_id=record.resource_id,
            agent_id=record.agent_id,
            actor=record.actor,
            reason=record.reason,
            occurred_at=record.recorded_at,
            sequence=record.sequence,
            previous_agent_id=previous_agent_id,
            void_placement=void_placement,
        )

    async def _publish(self, payload: TerritoryChangedPayload, log: Any) -> None:
        """Hand a committed change to notification dispatch; never raises."""
        if self._publisher is None:
            return
        try:
            await self._publisher.publish(payload)
        except Exception as exc:
            log.warning(
                "territory_event_publish_failed",
                event_type=payload.event_type,
                error=str(exc),
            )
