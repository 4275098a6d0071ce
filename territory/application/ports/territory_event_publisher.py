"""Territory event publisher port.

The allocation engine publishes one TerritoryChangedPayload after each
committed change. Publishing is fire-and-forget: implementations must not
block on delivery, and the engine treats any publish error as a logged
warning, never as a failure of the committed operation.
"""

from typing import Protocol

from territory.domain.events.territory_changed import TerritoryChangedPayload


class TerritoryEventPublisherProtocol(Protocol):
    """Port for handing committed changes to notification dispatch."""

    async def publish(self, payload: TerritoryChangedPayload) -> None:
        """Hand a committed change to the dispatcher.

        Args:
            payload: The committed change.

        Note:
            - Must return promptly; delivery happens elsewhere
            - Delivery failures should be logged, not raised
        """
        ...
