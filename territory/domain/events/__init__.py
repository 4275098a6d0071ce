"""Domain events published by the allocation engine."""

from territory.domain.events.territory_changed import (
    EVENT_TYPE_BY_ACTION,
    TERRITORY_CLAIMED_EVENT_TYPE,
    TERRITORY_OVERRIDDEN_EVENT_TYPE,
    TERRITORY_RELEASED_EVENT_TYPE,
    TERRITORY_VOIDED_EVENT_TYPE,
    TerritoryChangedPayload,
)

__all__: list[str] = [
    "EVENT_TYPE_BY_ACTION",
    "TERRITORY_CLAIMED_EVENT_TYPE",
    "TERRITORY_OVERRIDDEN_EVENT_TYPE",
    "TERRITORY_RELEASED_EVENT_TYPE",
    "TERRITORY_VOIDED_EVENT_TYPE",
    "TerritoryChangedPayload",
]
