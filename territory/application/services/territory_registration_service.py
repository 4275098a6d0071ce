"""Registration workflow: create an agent and give it a random territory.

The workflow picks a random eligible resource and claims it. Losing a
race (``AlreadyOwnedError``) is retried with a fresh pick, bounded by both
an attempt count and an elapsed-time budget; when either runs out the
caller gets ``ExhaustedError`` with alternative countries. If the claim
ultimately fails, the placeholder agent created for the registration is
deleted again.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from structlog import get_logger

from territory.config.territory_config import DEFAULT_TERRITORY_CONFIG, TerritoryConfig
from territory.domain.errors import (
    AlreadyOwnedError,
    ExhaustedError,
    NoEligibleResourceError,
)
from territory.domain.models.agent import Agent
from territory.domain.models.assignment_record import SELF_REGISTRATION_ACTOR
from territory.domain.models.resource import Resource

if TYPE_CHECKING:
    from territory.application.ports.territory_store import TerritoryStoreProtocol
    from territory.application.ports.time_authority import TimeAuthorityProtocol
    from territory.application.services.allocation_engine import AllocationEngine
    from territory.application.services.resource_catalog_service import (
        ResourceCatalogService,
    )

logger = get_logger()

REGISTRATION_REASON = "Random assignment during registration"
REASSIGNMENT_REASON = "Random assignment"


@dataclass(frozen=True)
class RegistrationResult:
    """Outcome of a successful registration.

    Attributes:
        agent: The registered agent, holding ``resource``.
        resource: The claimed resource.
        attempts: Claim attempts it took.
    """

    agent: Agent
    resource: Resource
    attempts: int


class TerritoryRegistrationService:
    """Registers agents and assigns random territories with bounded retries."""

    def __init__(
        self,
        store: TerritoryStoreProtocol,
        catalog: ResourceCatalogService,
        engine: AllocationEngine,
        time_authority: TimeAuthorityProtocol,
        config: TerritoryConfig = DEFAULT_TERRITORY_CONFIG,
    ) -> None:
        self._store = store
        self._catalog = catalog
        self._engine = engine
        self._time = time_authority
        self._config = config

    async def register_agent(
        self,
        agent_id: str,
        name: str,
        country_code: str,
    ) -> RegistrationResult:
        """Create an agent and claim a random resource in ``country_code``.

        The new agent starts with liveness recorded at registration time.

        Raises:
            AgentAlreadyExistsError: The id is taken. Nothing is created.
            ExhaustedError: No resource could be claimed. The placeholder
                agent has been removed.
        """
        log = logger.bind(
            operation="register_agent", agent_id=agent_id, country_code=country_code
        )
        now = self._time.now()
        await self._store.create_agent(
            Agent(id=agent_id, name=name, created_at=now, last_liveness=now)
        )
        log.debug("placeholder_agent_created")

        try:
            resource, attempts = await self._claim_random(
                agent_id, country_code, SELF_REGISTRATION_ACTOR, REGISTRATION_REASON
            )
        except BaseException as exc:
            # Cancellation counts as a failed claim too.
            deleted = await self._store.delete_agent(agent_id)
            log.warning(
                "registration_rolled_back",
                error_type=type(exc).__name__,
                placeholder_deleted=deleted,
            )
            raise

        agent = await self._store.get_agent(agent_id)
        assert agent is not None
        log.info("agent_registered", resource_id=resource.id, attempts=attempts)
        return RegistrationResult(agent=agent, resource=resource, attempts=attempts)

    async def assign_random_territory(
        self,
        agent_id: str,
        country_code: str,
        actor: str = SELF_REGISTRATION_ACTOR,
        reason: str = REASSIGNMENT_REASON,
    ) -> Resource:
        """Claim a random resource for an existing agent.

        The agent must hold nothing (release first).

        Raises:
            AgentNotFoundError: Unknown agent.
            AgentVoidedError: The agent is voided.
            AgentAlreadyHasTerritoryError: The agent holds a resource.
            ExhaustedError: Retries or eligible resources ran out.
        """
        resource, _ = await self._claim_random(agent_id, country_code, actor, reason)
        return resource

    async def _claim_random(
        self,
        agent_id: str,
        country_code: str,
        actor: str,
        reason: str,
    ) -> tuple[Resource, int]:
        log = logger.bind(agent_id=agent_id, country_code=country_code)
        deadline = self._time.deadline(self._config.claim_max_elapsed_seconds)
        attempts = 0

        while attempts < self._config.claim_max_attempts:
            attempts += 1
            try:
                candidate = await self._catalog.pick_random_eligible(country_code)
            except NoEligibleResourceError as exc:
                log.info("claim_pool_empty", attempts=attempts)
                raise ExhaustedError(
                    country_code, attempts, exc.suggested_countries
                ) from exc

            try:
                resource = await self._engine.claim(candidate.id, agent_id, actor, reason)
                return resource, attempts
            except AlreadyOwnedError:
                log.info("claim_race_lost", resource_id=candidate.id, attempt=attempts)

            if self._time.monotonic() >= deadline:
                log.warning("claim_deadline_exceeded", attempts=attempts)
                break

        suggestions = await self._catalog.suggest_countries(exclude=country_code)
        log.warning("claim_attempts_exhausted", attempts=attempts)
        raise ExhaustedError(country_code, attempts, suggestions)
