"""Application ports (interfaces implemented by infrastructure)."""

from territory.application.ports.territory_event_publisher import (
    TerritoryEventPublisherProtocol,
)
from territory.application.ports.territory_store import (
    TerritoryStoreProtocol,
    TerritoryTransactionProtocol,
)
from territory.application.ports.time_authority import TimeAuthorityProtocol

__all__: list[str] = [
    "TerritoryEventPublisherProtocol",
    "TerritoryStoreProtocol",
    "TerritoryTransactionProtocol",
    "TimeAuthorityProtocol",
]
