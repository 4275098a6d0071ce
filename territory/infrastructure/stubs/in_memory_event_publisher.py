"""In-memory territory event publisher stub.

Records every published payload so tests can assert exactly which
notifications a committed operation produced. Can be configured to fail
so tests can prove that publish errors never undo a committed change.
"""

from __future__ import annotations

from territory.application.ports.territory_event_publisher import (
    TerritoryEventPublisherProtocol,
)
from territory.domain.events.territory_changed import TerritoryChangedPayload


class InMemoryEventPublisher(TerritoryEventPublisherProtocol):
    """Recording implementation of TerritoryEventPublisherProtocol.

    Attributes:
        published: Payloads accepted, in publish order.
        attempts: Number of publish calls, failed ones included.
    """

    def __init__(self, fail: bool = False) -> None:
        """Initialize the publisher.

        Args:
            fail: When True every publish raises ConnectionError.
        """
        self._fail = fail
        self.published: list[TerritoryChangedPayload] = []
        self.attempts = 0

    def set_failure(self, fail: bool) -> None:
        """Toggle failure mode."""
        self._fail = fail

    def event_types(self) -> list[str]:
        """Event types published so far, in order."""
        return [payload.event_type for payload in self.published]

    def clear(self) -> None:
        """Forget all recorded payloads."""
        self.published.clear()
        self.attempts = 0

    async def publish(self, payload: TerritoryChangedPayload) -> None:
        self.attempts += 1
        if self._fail:
            raise ConnectionError("notification dispatch unavailable")
        self.published.append(payload)
