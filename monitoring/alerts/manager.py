"""
Alert Engine.

============================================================
PURPOSE
============================================================
Runs the per-event alert pipeline and schedules delivery.

    line -> decode -> classify -> rate limit -> format -> sink

PRINCIPLES:
- Decisions for event N finish before event N+1 is looked at
- The rate limit timestamp is recorded when an alert is admitted
- Delivery is fire-and-forget; failures are logged, never retried
- Tracker and limiter are owned here, not module globals

============================================================
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Set

from core.clock import ClockProtocol, SystemClock
from data_ingestion.decoder import VaultEventDecoder
from data_ingestion.types import DomainEvent

from ..config import AlertServiceConfig
from ..models import AlertCandidate, AlertTier, NotificationPayload
from ..notifications.telegram import TelegramFormatter
from .frequency import FrequencyTracker
from .rules import VaultEventClassifier
from .throttle import RateLimiter


logger = logging.getLogger(__name__)


# Notification sink type
NotificationSink = Callable[[NotificationPayload], Awaitable[bool]]


class AlertEngine:
    """
    Owns the frequency tracker, rate limiter, classifier and
    formatter, and drives them for every incoming line.
    """

    def __init__(
        self,
        config: AlertServiceConfig,
        sink: NotificationSink,
        clock: Optional[ClockProtocol] = None,
        decoder: Optional[VaultEventDecoder] = None,
    ):
        """
        Initialize engine.

        Args:
            config: Service configuration
            sink: Awaited with each admitted payload
            clock: Time source for frequency and rate limiting
            decoder: Line decoder (built from config if omitted)
        """
        self._config = config
        self._sink = sink
        self._clock = clock or SystemClock()

        self._decoder = decoder or VaultEventDecoder(config.ingestion.expected_service)
        self._tracker = FrequencyTracker(
            window_ms=config.thresholds.high_frequency_window_ms,
            threshold=config.thresholds.high_frequency_events,
        )
        self._limiter = RateLimiter(self._clock)
        self._classifier = VaultEventClassifier(config.thresholds, self._tracker)
        self._formatter = TelegramFormatter(config.telegram.mention_usernames)

        self._pending: Set[asyncio.Task] = set()

        # Metrics
        self._events_processed = 0
        self._alerts_admitted = 0
        self._alerts_suppressed = 0
        self._deliveries_failed = 0

    @property
    def tracker(self) -> FrequencyTracker:
        return self._tracker

    @property
    def rate_limiter(self) -> RateLimiter:
        return self._limiter

    @property
    def decoder(self) -> VaultEventDecoder:
        return self._decoder

    @property
    def formatter(self) -> TelegramFormatter:
        return self._formatter

    @property
    def pending_deliveries(self) -> int:
        return len(self._pending)

    # =========================================================
    # PIPELINE
    # =========================================================

    async def handle_line(self, line: str) -> None:
        """Line handler for the log follower."""
        self.process_line(line)

    def process_line(self, line: str) -> List[NotificationPayload]:
        """
        Decode and process one log line.

        Must run inside the event loop; delivery is scheduled on it.

        Returns:
            Payloads admitted for delivery
        """
        event = self._decoder.decode(line)
        if event is None:
            return []
        return self.process_event(event)

    def process_event(self, event: DomainEvent) -> List[NotificationPayload]:
        """
        Classify, rate limit and format one event.

        Returns:
            Payloads admitted for delivery, in emission order
        """
        self._events_processed += 1
        now_ms = self._clock.now_ms()

        admitted: List[NotificationPayload] = []
        for candidate in self._classifier.classify(event, now_ms):
            cooldown_ms = self._cooldown_for(candidate)
            if not self._limiter.admit(candidate.rate_limit_key, cooldown_ms, now_ms):
                self._alerts_suppressed += 1
                logger.debug(f"Rate limited: {candidate.rate_limit_key}")
                continue

            self._alerts_admitted += 1
            payload = self._formatter.format(candidate)
            self._schedule(payload, candidate)
            admitted.append(payload)

        return admitted

    def _cooldown_for(self, candidate: AlertCandidate) -> int:
        if candidate.tier == AlertTier.INFO:
            return self._config.rate_limiting.info_cooldown_ms
        return self._config.rate_limiting.critical_cooldown_ms

    # =========================================================
    # DELIVERY
    # =========================================================

    def _schedule(self, payload: NotificationPayload, candidate: AlertCandidate) -> None:
        task = asyncio.get_running_loop().create_task(self._deliver(payload, candidate))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _deliver(self, payload: NotificationPayload, candidate: AlertCandidate) -> None:
        try:
            delivered = await self._sink(payload)
        except Exception as e:
            logger.error(f"Notification sink error for {candidate.rate_limit_key}: {e}")
            delivered = False

        if delivered:
            logger.info(f"{candidate.tier.value} alert sent: {candidate.kind.value} ({candidate.vault})")
        else:
            self._deliveries_failed += 1
            logger.warning(f"{candidate.tier.value} alert not delivered: {candidate.kind.value} ({candidate.vault})")

    async def drain(self) -> None:
        """Wait for all scheduled deliveries to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def stats(self) -> dict:
        return {
            "events_processed": self._events_processed,
            "alerts_admitted": self._alerts_admitted,
            "alerts_suppressed": self._alerts_suppressed,
            "deliveries_failed": self._deliveries_failed,
            "pending_deliveries": len(self._pending),
            "tracked_keys": self._tracker.key_count,
            "decoder": self._decoder.stats(),
        }


__all__ = ["NotificationSink", "AlertEngine"]
