"""Clock port.

Inactivity is measured in whole days between ``now()`` and an agent's last
liveness, and claim retries stop at a deadline on the monotonic clock.
Both readings come from an injected time authority so tests can move time
forward by days without sleeping.
"""

from abc import ABC, abstractmethod
from datetime import datetime


class TimeAuthorityProtocol(ABC):
    """Source of wall-clock timestamps and elapsed-time readings."""

    @abstractmethod
    def now(self) -> datetime:
        """Current timezone-aware UTC time; stamped on liveness and trail records."""
        ...

    @abstractmethod
    def monotonic(self) -> float:
        """Seconds on a clock that never goes backwards.

        Only differences are meaningful; used for retry deadlines and
        sweep durations, never stored.
        """
        ...

    def deadline(self, seconds: float) -> float:
        """Monotonic reading ``seconds`` from now."""
        return self.monotonic() + seconds
