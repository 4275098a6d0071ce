"""Bootstrap wiring for the territory services.

Assembles one consistent set of services around a single store, clock and
publisher. The SQL store is used when DATABASE_URL is set; otherwise the
in-memory store backs the services (development and tests).
"""

from __future__ import annotations

import random
from dataclasses import dataclass

from territory.application.ports.territory_event_publisher import (
    TerritoryEventPublisherProtocol,
)
from territory.application.ports.territory_store import TerritoryStoreProtocol
from territory.application.ports.time_authority import TimeAuthorityProtocol
from territory.application.services.allocation_engine import AllocationEngine
from territory.application.services.assignment_trail_service import (
    AssignmentTrailService,
)
from territory.application.services.eviction_monitor import EvictionMonitor
from territory.application.services.eviction_sweeper import EvictionSweeper
from territory.application.services.liveness_tracker import LivenessTracker
from territory.application.services.resource_catalog_service import (
    ResourceCatalogService,
)
from territory.application.services.territory_registration_service import (
    TerritoryRegistrationService,
)
from territory.bootstrap.database import database_configured, get_session_factory
from territory.config.territory_config import TerritoryConfig
from territory.infrastructure.adapters.queue_event_dispatcher import (
    QueueEventDispatcher,
)
from territory.infrastructure.adapters.sql_territory_store import SqlTerritoryStore
from territory.infrastructure.adapters.system_time_authority import (
    SystemTimeAuthority,
)
from territory.infrastructure.stubs.in_memory_territory_store import (
    InMemoryTerritoryStore,
)


@dataclass(frozen=True)
class TerritoryServices:
    """All territory services sharing one store, clock and publisher."""

    config: TerritoryConfig
    store: TerritoryStoreProtocol
    time_authority: TimeAuthorityProtocol
    publisher: TerritoryEventPublisherProtocol
    catalog: ResourceCatalogService
    engine: AllocationEngine
    liveness: LivenessTracker
    sweeper: EvictionSweeper
    monitor: EvictionMonitor
    registration: TerritoryRegistrationService
    trail: AssignmentTrailService

    async def start(self, run_monitor: bool = False) -> None:
        """Start background delivery and, optionally, scheduled eviction.

        Until this runs a queue publisher only accumulates payloads.
        """
        if isinstance(self.publisher, QueueEventDispatcher):
            await self.publisher.start()
        if run_monitor:
            await self.monitor.start()

    async def stop(self) -> None:
        """Stop the monitor, then deliver outstanding notifications."""
        await self.monitor.stop()
        if isinstance(self.publisher, QueueEventDispatcher):
            await self.publisher.stop(drain=True)


def build_territory_services(
    *,
    store: TerritoryStoreProtocol | None = None,
    time_authority: TimeAuthorityProtocol | None = None,
    publisher: TerritoryEventPublisherProtocol | None = None,
    config: TerritoryConfig | None = None,
    rng: random.Random | None = None,
) -> TerritoryServices:
    """Assemble the services. Any collaborator not given gets its default.

    Args:
        store: Territory store; SQL when DATABASE_URL is set, else in-memory.
        time_authority: Clock; SystemTimeAuthority by default.
        publisher: Notification dispatch; a QueueEventDispatcher by default.
        config: Policy; read from the environment by default.
        rng: Random source for catalog picks.
    """
    config = config or TerritoryConfig.from_environment()
    if store is None:
        store = (
            SqlTerritoryStore(get_session_factory())
            if database_configured()
            else InMemoryTerritoryStore()
        )
    time_authority = time_authority or SystemTimeAuthority()
    publisher = publisher or QueueEventDispatcher()

    catalog = ResourceCatalogService(
        store, rng=rng, suggestion_limit=config.suggestion_limit
    )
    engine = AllocationEngine(
        store,
        time_authority,
        publisher=publisher,
        transaction_retry_limit=config.transaction_retry_limit,
    )
    liveness = LivenessTracker(store, time_authority, config)
    sweeper = EvictionSweeper(engine, liveness, store, time_authority)
    return TerritoryServices(
        config=config,
        store=store,
        time_authority=time_authority,
        publisher=publisher,
        catalog=catalog,
        engine=engine,
        liveness=liveness,
        sweeper=sweeper,
        monitor=EvictionMonitor(
            sweeper,
            time_authority,
            interval_seconds=config.sweep_interval_seconds,
            threshold_days=config.inactivity_threshold_days,
        ),
        registration=TerritoryRegistrationService(
            store, catalog, engine, time_authority, config
        ),
        trail=AssignmentTrailService(store, time_authority),
    )


_services: TerritoryServices | None = None


def get_territory_services() -> TerritoryServices:
    """Get the process-wide services, building them on first call.

    The caller owns the lifecycle: await ``start()`` at startup and
    ``stop()`` at shutdown.
    """
    global _services
    if _services is None:
        _services = build_territory_services()
    return _services


def set_territory_services(services: TerritoryServices) -> None:
    """Set custom services (for testing)."""
    global _services
    _services = services


def reset_territory_services() -> None:
    """Reset the services singleton."""
    global _services
    _services = None
