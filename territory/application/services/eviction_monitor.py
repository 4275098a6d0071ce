"""Scheduled eviction.

Wakes every ``sweep_interval_seconds`` (a day by default) and runs one
eviction sweep. Sweep starts are spaced by the interval, so a long sweep
shortens the following sleep instead of delaying the schedule.
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import TYPE_CHECKING, Optional

import structlog

if TYPE_CHECKING:
    from territory.application.ports.time_authority import TimeAuthorityProtocol
    from territory.application.services.eviction_sweeper import EvictionSweeper
    from territory.domain.models.sweep_report import SweepReport


class EvictionMonitor:
    """Owns the background task that sweeps on a timer.

    Example:
        >>> monitor = EvictionMonitor(sweeper, clock, interval_seconds=86_400)
        >>> await monitor.start()
        >>> await monitor.stop()
    """

    def __init__(
        self,
        sweeper: "EvictionSweeper",
        time_authority: "TimeAuthorityProtocol",
        interval_seconds: int = 86_400,
        threshold_days: int | None = None,
    ) -> None:
        """
        Args:
            sweeper: Sweeper invoked each cycle.
            time_authority: Monotonic clock used to time each cycle.
            interval_seconds: Spacing between sweep starts.
            threshold_days: Passed to every sweep; None keeps the sweeper's
                configured threshold.
        """
        self._sweeper = sweeper
        self._time = time_authority
        self._interval = interval_seconds
        self._threshold_days = threshold_days
        self._task: Optional[asyncio.Task[None]] = None
        self._last_report: Optional["SweepReport"] = None
        self.consecutive_failures = 0
        self._log = structlog.get_logger().bind(
            service="eviction_monitor", interval_seconds=interval_seconds
        )

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def interval_seconds(self) -> int:
        return self._interval

    @property
    def last_report(self) -> Optional["SweepReport"]:
        """Report of the latest successful sweep."""
        return self._last_report

    async def start(self) -> None:
        """Schedule the loop; a second call while running does nothing."""
        if self.running:
            return
        self._task = asyncio.create_task(self._sweep_forever())
        self._log.info("eviction_monitor_started")

    async def stop(self) -> None:
        """Cancel the loop and wait for it to unwind."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        self._log.info("eviction_monitor_stopped")

    async def _sweep_forever(self) -> None:
        while True:
            cycle_start = self._time.monotonic()
            try:
                await self.run_once()
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                self.consecutive_failures += 1
                self._log.error(
                    "eviction_cycle_failed",
                    error=str(exc),
                    consecutive_failures=self.consecutive_failures,
                )
            else:
                self.consecutive_failures = 0
            spent = self._time.monotonic() - cycle_start
            await asyncio.sleep(max(0.0, self._interval - spent))

    async def run_once(self) -> "SweepReport":
        """Sweep now, outside the schedule, and keep the report."""
        report = await self._sweeper.sweep(self._threshold_days)
        self._last_report = report
        self._log.info(
            "eviction_cycle_complete",
            checked=report.checked,
            voided=len(report.voided),
            errors=len(report.errors),
        )
        return report
