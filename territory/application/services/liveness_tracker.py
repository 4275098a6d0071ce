"""Liveness tracker.

Records each agent's most recent proof of life and answers how long an
agent has been silent relative to the inactivity threshold. Inactivity is
measured in whole days (floored); an agent that never recorded liveness
is treated as infinitely inactive.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from structlog import get_logger

from territory.config.territory_config import DEFAULT_TERRITORY_CONFIG, TerritoryConfig
from territory.domain.errors import AgentNotFoundError
from territory.domain.models.liveness import LivenessStatus

if TYPE_CHECKING:
    from territory.application.ports.territory_store import TerritoryStoreProtocol
    from territory.application.ports.time_authority import TimeAuthorityProtocol
    from territory.domain.models.agent import Agent

logger = get_logger()

SECONDS_PER_DAY = 86_400


def days_between(last_liveness: datetime | None, now: datetime) -> float:
    """Whole days from ``last_liveness`` to ``now``; ``math.inf`` if never."""
    if last_liveness is None:
        return math.inf
    return float((now - last_liveness) // timedelta(days=1))


def compute_status(
    agent_id: str,
    days_inactive: float,
    threshold_days: int,
    warning_days: int,
) -> LivenessStatus:
    """Pure status computation from a days-inactive figure.

    ``days_until_void`` is ``max(0, threshold - days_inactive)``; the agent
    is approaching when that is positive and no more than ``warning_days``.
    """
    days_until_void = max(0.0, threshold_days - days_inactive)
    return LivenessStatus(
        agent_id=agent_id,
        days_inactive=days_inactive,
        days_until_void=days_until_void,
        approaching=0 < days_until_void <= warning_days,
    )


class LivenessTracker:
    """Records liveness and evaluates inactivity.

    Example:
        >>> tracker = LivenessTracker(store, time_authority)
        >>> await tracker.record_liveness("agent-a")
        >>> status = await tracker.status("agent-a")
    """

    def __init__(
        self,
        store: TerritoryStoreProtocol,
        time_authority: TimeAuthorityProtocol,
        config: TerritoryConfig = DEFAULT_TERRITORY_CONFIG,
    ) -> None:
        self._store = store
        self._time = time_authority
        self._config = config

    @property
    def threshold_days(self) -> int:
        """The configured inactivity threshold shared with the sweeper."""
        return self._config.inactivity_threshold_days

    async def record_liveness(self, agent_id: str, at: datetime | None = None) -> datetime:
        """Record a proof-of-life signal.

        Out-of-order signals never move the stored timestamp backwards.

        Args:
            agent_id: The agent.
            at: Signal time; defaults to now.

        Returns:
            The stored last liveness after this call.

        Raises:
            AgentNotFoundError: Unknown agent.
        """
        at = at or self._time.now()
        stored = await self._store.record_liveness(agent_id, at)
        if stored != at:
            logger.debug(
                "stale_liveness_ignored",
                agent_id=agent_id,
                received=at.isoformat(),
                stored=stored.isoformat(),
            )
        return stored

    async def _agent(self, agent_id: str) -> Agent:
        agent = await self._store.get_agent(agent_id)
        if agent is None:
            raise AgentNotFoundError(agent_id)
        return agent

    async def days_since(self, agent_id: str) -> float:
        """Whole days since the agent's last liveness, ``math.inf`` if never.

        Raises:
            AgentNotFoundError: Unknown agent.
        """
        agent = await self._agent(agent_id)
        return days_between(agent.last_liveness, self._time.now())

    async def status(
        self,
        agent_id: str,
        threshold_days: int | None = None,
        warning_days: int | None = None,
    ) -> LivenessStatus:
        """Report where an agent stands relative to eviction.

        Thresholds default to the configured values. No side effects.

        Raises:
            AgentNotFoundError: Unknown agent.
        """
        return compute_status(
            agent_id,
            await self.days_since(agent_id),
            self._config.inactivity_threshold_days
            if threshold_days is None
            else threshold_days,
            self._config.warning_days if warning_days is None else warning_days,
        )

    async def list_approaching(
        self,
        threshold_days: int | None = None,
        warning_days: int | None = None,
    ) -> list[LivenessStatus]:
        """List non-voided agents inside the warning window.

        Returns:
            Statuses sorted by days until void, soonest first.
        """
        threshold = (
            self._config.inactivity_threshold_days
            if threshold_days is None
            else threshold_days
        )
        warning = self._config.warning_days if warning_days is None else warning_days
        now = self._time.now()
        cutoff = now - timedelta(days=threshold - warning)
        statuses = [
            compute_status(
                agent.id, days_between(agent.last_liveness, now), threshold, warning
            )
            for agent in await self._store.list_agents_inactive_since(cutoff)
        ]
        approaching = [s for s in statuses if s.approaching]
        approaching.sort(key=lambda s: (s.days_until_void, s.agent_id))
        return approaching

    async def list_past_threshold(self, threshold_days: int | None = None) -> list[Agent]:
        """List non-voided agents whose inactivity reached the threshold.

        Agents that never recorded liveness are included.
        """
        threshold = (
            self._config.inactivity_threshold_days
            if threshold_days is None
            else threshold_days
        )
        cutoff = self._time.now() - timedelta(days=threshold)
        return await self._store.list_agents_inactive_since(cutoff)
