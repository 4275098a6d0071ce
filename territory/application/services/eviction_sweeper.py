"""Eviction sweeper.

Finds non-voided agents whose inactivity reached the threshold and voids
each one through the allocation engine. Each agent is processed on its
own: a failure is logged and collected in the report, and the sweep goes
on with the next agent.

Running two sweeps at once, or a sweep alongside claim and release
traffic, is safe. The engine's transaction decides every race, and an
agent that another sweep voided first is skipped.
"""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

from structlog import get_logger

from territory.application.services.liveness_tracker import days_between
from territory.domain.errors import (
    AgentNotFoundError,
    AgentRecoveredError,
    AlreadyVoidedError,
)
from territory.domain.models.assignment_record import SYSTEM_ACTOR
from territory.domain.models.sweep_report import (
    SweepFailure,
    SweepReport,
    VoidedAgentSummary,
)
from territory.domain.services.void_placement import compute_void_placement
from territory.infrastructure.observability.correlation import (
    generate_correlation_id,
    set_correlation_id,
)

if TYPE_CHECKING:
    from territory.application.ports.territory_store import TerritoryStoreProtocol
    from territory.application.ports.time_authority import TimeAuthorityProtocol
    from territory.application.services.allocation_engine import AllocationEngine
    from territory.application.services.liveness_tracker import LivenessTracker

logger = get_logger()


def eviction_reason(days_inactive: float, threshold_days: int) -> str:
    """Reason text recorded on a sweep void."""
    days = "unknown" if days_inactive == float("inf") else str(int(days_inactive))
    return f"Inactive for {days} days (threshold: {threshold_days} days)"


class EvictionSweeper:
    """Voids agents past the inactivity threshold.

    Example:
        >>> sweeper = EvictionSweeper(engine, tracker, store, time_authority)
        >>> report = await sweeper.sweep(threshold_days=7)
        >>> report.voided_agent_ids
        ['agent-a']
    """

    def __init__(
        self,
        engine: AllocationEngine,
        liveness: LivenessTracker,
        store: TerritoryStoreProtocol,
        time_authority: TimeAuthorityProtocol,
    ) -> None:
        """Initialize the sweeper.

        Args:
            engine: Allocation engine used to void agents.
            liveness: Tracker supplying candidates and the default threshold.
            store: Store used to re-read each candidate before voiding.
            time_authority: Source of the sweep's reference time.
        """
        self._engine = engine
        self._liveness = liveness
        self._store = store
        self._time = time_authority

    async def sweep(
        self,
        threshold_days: int | None = None,
        dry_run: bool = False,
    ) -> SweepReport:
        """Void every non-voided agent inactive for at least ``threshold_days``.

        Args:
            threshold_days: Inactivity threshold; defaults to the configured one.
            dry_run: Report the candidates without voiding anyone.

        Returns:
            SweepReport with the voided agents and per-agent errors.

        Raises:
            ValueError: If threshold_days is not positive.
        """
        threshold = (
            self._liveness.threshold_days if threshold_days is None else threshold_days
        )
        if threshold < 1:
            raise ValueError(f"threshold_days must be positive, got {threshold}")

        set_correlation_id(generate_correlation_id("sweep"))
        started_at = self._time.now()
        log = logger.bind(
            operation="eviction_sweep", threshold_days=threshold, dry_run=dry_run
        )

        candidates = await self._liveness.list_past_threshold(threshold)
        report = SweepReport(
            threshold_days=threshold,
            started_at=started_at,
            checked=len(candidates),
            dry_run=dry_run,
        )
        log.info("sweep_started", candidates=len(candidates))

        for candidate in candidates:
            agent_log = log.bind(agent_id=candidate.id)
            try:
                # Liveness may have arrived after the candidate list was read
                now = self._time.now()
                current = await self._store.get_agent(candidate.id)
                if current is None:
                    raise AgentNotFoundError(candidate.id)
                if current.voided:
                    agent_log.info("sweep_agent_already_voided")
                    continue
                days_inactive = days_between(current.last_liveness, now)
                if days_inactive < threshold:
                    agent_log.info("sweep_agent_recovered", days_inactive=days_inactive)
                    continue

                placement = compute_void_placement(current.id)
                summary = VoidedAgentSummary(
                    agent_id=current.id,
                    agent_name=current.name,
                    previous_resource_id=current.resource_id,
                    void_zone=placement.zone_name,
                    days_inactive=days_inactive,
                )
                if not dry_run:
                    await self._engine.void_agent(
                        current.id,
                        placement,
                        SYSTEM_ACTOR,
                        eviction_reason(days_inactive, threshold),
                        inactive_since=now - timedelta(days=threshold),
                    )
                report.voided.append(summary)
            except AlreadyVoidedError:
                agent_log.info("sweep_agent_voided_concurrently")
            except AgentRecoveredError as exc:
                agent_log.info(
                    "sweep_agent_recovered_during_void",
                    last_liveness=exc.last_liveness.isoformat(),
                )
            except Exception as exc:
                agent_log.error(
                    "sweep_agent_failed",
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
                report.errors.append(SweepFailure(agent_id=candidate.id, error=str(exc)))

        log.info(
            "sweep_completed",
            checked=report.checked,
            voided=len(report.voided),
            errors=len(report.errors),
        )
        return report
