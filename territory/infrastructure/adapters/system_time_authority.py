"""Production clock."""

import time
from datetime import datetime, timezone

from territory.application.ports.time_authority import TimeAuthorityProtocol


class SystemTimeAuthority(TimeAuthorityProtocol):
    """UTC wall clock plus ``time.monotonic``.

    The only place in the package that reads the system clock.
    """

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def monotonic(self) -> float:
        return time.monotonic()
