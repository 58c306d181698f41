"""
Monitoring - Maintenance Scheduler.

============================================================
RESPONSIBILITY
============================================================
Periodic housekeeping for the alert engine state.

- Prune expired frequency windows (every minute)
- Drop rate limit entries older than the retention (every 10 minutes)
- Log a liveness heartbeat (every hour)

============================================================
DESIGN PRINCIPLES
============================================================
- Each job is a plain method and can be run directly
- Each job runs in its own background task
- A failing tick is logged; the loop keeps going
- Only touches tracker and limiter state

============================================================
"""

import asyncio
import logging
from typing import Callable, List, Optional

from core.clock import ClockProtocol, SystemClock

from .alerts.frequency import FrequencyTracker
from .alerts.throttle import RateLimiter
from .config import MaintenanceConfig


logger = logging.getLogger(__name__)


class MaintenanceScheduler:
    """
    Runs the housekeeping jobs on fixed intervals.
    """

    def __init__(
        self,
        tracker: FrequencyTracker,
        limiter: RateLimiter,
        config: Optional[MaintenanceConfig] = None,
        clock: Optional[ClockProtocol] = None,
    ):
        self._tracker = tracker
        self._limiter = limiter
        self._config = config or MaintenanceConfig()
        self._clock = clock or SystemClock()

        self._running = False
        self._tasks: List[asyncio.Task] = []

    @property
    def is_running(self) -> bool:
        return self._running

    # =========================================================
    # JOBS
    # =========================================================

    def prune_frequency(self) -> int:
        """Drop expired frequency timestamps and empty keys."""
        return self._tracker.prune(self._clock.now_ms())

    def prune_rate_limits(self) -> int:
        """Drop rate limit entries past the retention horizon."""
        return self._limiter.prune(
            self._clock.now_ms(),
            self._config.rate_limit_retention_ms,
        )

    def heartbeat(self) -> int:
        """Log liveness and the number of tracked keys."""
        key_count = self._tracker.key_count
        logger.info(f"Voltr Alert Service heartbeat - {self._clock.format_iso()}")
        logger.info(f"Watching {key_count} vault/event combinations")
        return key_count

    # =========================================================
    # LIFECYCLE
    # =========================================================

    async def start(self) -> None:
        """Start the three background loops."""
        if self._running:
            return

        self._running = True
        c = self._config
        self._tasks = [
            asyncio.create_task(self._run("frequency prune", c.frequency_prune_interval_ms, self.prune_frequency)),
            asyncio.create_task(self._run("rate limit prune", c.rate_limit_prune_interval_ms, self.prune_rate_limits)),
            asyncio.create_task(self._run("heartbeat", c.heartbeat_interval_ms, self.heartbeat)),
        ]
        logger.info("Maintenance scheduler started")

    async def stop(self) -> None:
        """Cancel the background loops."""
        self._running = False

        for task in self._tasks:
            task.cancel()
        for task in self._tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._tasks = []

        logger.info("Maintenance scheduler stopped")

    async def _run(self, name: str, interval_ms: int, job: Callable[[], int]) -> None:
        """Run one job every interval_ms."""
        while self._running:
            try:
                await asyncio.sleep(interval_ms / 1000)
                job()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Maintenance job '{name}' failed: {e}")


__all__ = ["MaintenanceScheduler"]
