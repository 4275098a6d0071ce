"""In-memory stubs for development and testing."""

from territory.infrastructure.stubs.in_memory_event_publisher import (
    InMemoryEventPublisher,
)
from territory.infrastructure.stubs.in_memory_territory_store import (
    InjectedStoreFailure,
    InMemoryTerritoryStore,
)

__all__: list[str] = [
    "InMemoryEventPublisher",
    "InMemoryTerritoryStore",
    "InjectedStoreFailure",
]
