"""
Pytest configuration and shared fixtures for the territory engine tests.

Testing Standards:
- All async tests use pytest.mark.asyncio (auto mode enabled in pyproject.toml)
- Use AsyncMock for async collaborator failures
- Use FakeTimeAuthority for anything time-dependent
- Unit tests go in tests/unit/
- Integration tests go in tests/integration/
"""

import random

import pytest

from territory.application.services.allocation_engine import AllocationEngine
from territory.application.services.assignment_trail_service import (
    AssignmentTrailService,
)
from territory.application.services.eviction_sweeper import EvictionSweeper
from territory.application.services.liveness_tracker import LivenessTracker
from territory.application.services.resource_catalog_service import (
    ResourceCatalogService,
)
from territory.application.services.territory_registration_service import (
    TerritoryRegistrationService,
)
from territory.config.territory_config import TEST_TERRITORY_CONFIG, TerritoryConfig
from territory.infrastructure.stubs.in_memory_event_publisher import (
    InMemoryEventPublisher,
)
from territory.infrastructure.stubs.in_memory_territory_store import (
    InMemoryTerritoryStore,
)
from tests.helpers.fake_time_authority import FakeTimeAuthority


@pytest.fixture
def anyio_backend() -> str:
    """Use asyncio as the async backend."""
    return "asyncio"


@pytest.fixture
def fake_time_authority() -> FakeTimeAuthority:
    """Fresh clock frozen at 2026-01-01T00:00:00 UTC."""
    return FakeTimeAuthority()


@pytest.fixture
def config() -> TerritoryConfig:
    """Test configuration (threshold 7 days, warning 2 days)."""
    return TEST_TERRITORY_CONFIG


@pytest.fixture
def store() -> InMemoryTerritoryStore:
    """Fresh in-memory store for each test."""
    return InMemoryTerritoryStore()


@pytest.fixture
def publisher() -> InMemoryEventPublisher:
    """Recording publisher."""
    return InMemoryEventPublisher()


@pytest.fixture
def engine(
    store: InMemoryTerritoryStore,
    fake_time_authority: FakeTimeAuthority,
    publisher: InMemoryEventPublisher,
) -> AllocationEngine:
    """Allocation engine over the in-memory store."""
    return AllocationEngine(store, fake_time_authority, publisher=publisher)


@pytest.fixture
def catalog(store: InMemoryTerritoryStore) -> ResourceCatalogService:
    """Catalog service with a seeded random source."""
    return ResourceCatalogService(store, rng=random.Random(42))


@pytest.fixture
def liveness(
    store: InMemoryTerritoryStore,
    fake_time_authority: FakeTimeAuthority,
    config: TerritoryConfig,
) -> LivenessTracker:
    """Liveness tracker using the test configuration."""
    return LivenessTracker(store, fake_time_authority, config)


@pytest.fixture
def sweeper(
    engine: AllocationEngine,
    liveness: LivenessTracker,
    store: InMemoryTerritoryStore,
    fake_time_authority: FakeTimeAuthority,
) -> EvictionSweeper:
    """Eviction sweeper wired to the shared engine and tracker."""
    return EvictionSweeper(engine, liveness, store, fake_time_authority)


@pytest.fixture
def registration(
    store: InMemoryTerritoryStore,
    catalog: ResourceCatalogService,
    engine: AllocationEngine,
    fake_time_authority: FakeTimeAuthority,
    config: TerritoryConfig,
) -> TerritoryRegistrationService:
    """Registration workflow wired to the shared services."""
    return TerritoryRegistrationService(
        store, catalog, engine, fake_time_authority, config
    )


@pytest.fixture
def trail(
    store: InMemoryTerritoryStore,
    fake_time_authority: FakeTimeAuthority,
) -> AssignmentTrailService:
    """Assignment trail service."""
    return AssignmentTrailService(store, fake_time_authority)
