"""
Orchestrator - Vault Alert Service.

============================================================
RESPONSIBILITY
============================================================
Wires the ingestion source, alert engine, maintenance and
Telegram sink into one runtime.

- Fails fast when the log file is missing
- Announces itself in the Telegram chat on startup
- Runs until SIGINT/SIGTERM, then shuts down in order

============================================================
SHUTDOWN ORDER
============================================================
1. Stop the log follower (no new events)
2. Stop maintenance loops
3. Close the Telegram HTTP session

In-flight deliveries are not awaited.

============================================================
"""

import asyncio
import logging
from typing import Optional

from core.clock import ClockProtocol, SystemClock
from data_ingestion.log_follower import LogFollower, replay_file
from monitoring.alerts.manager import AlertEngine
from monitoring.config import AlertServiceConfig
from monitoring.maintenance import MaintenanceScheduler
from monitoring.notifications.telegram import TelegramFormatter, TelegramNotifier

from .core import install_signal_handlers, restore_signal_handlers


logger = logging.getLogger(__name__)


class VaultAlertService:
    """
    The running alert service.
    """

    def __init__(
        self,
        config: AlertServiceConfig,
        notifier: Optional[TelegramNotifier] = None,
        clock: Optional[ClockProtocol] = None,
        send_startup_message: bool = True,
    ):
        """
        Initialize service.

        Args:
            config: Service configuration
            notifier: Telegram sink (built from config if omitted)
            clock: Time source shared by all components
            send_startup_message: Post the startup notice on start
        """
        self._config = config
        self._clock = clock or SystemClock()
        self._send_startup = send_startup_message

        self._notifier = notifier or TelegramNotifier(config.telegram)
        self._engine = AlertEngine(config, self._notifier.send, clock=self._clock)
        self._maintenance = MaintenanceScheduler(
            self._engine.tracker,
            self._engine.rate_limiter,
            config.maintenance,
            clock=self._clock,
        )
        self._follower = LogFollower(
            config.ingestion.log_file,
            self._engine.handle_line,
            poll_interval_seconds=config.ingestion.poll_interval_seconds,
            start_at_end=config.ingestion.start_at_end,
        )

        self._running = False
        self._stop_event: Optional[asyncio.Event] = None

    @property
    def engine(self) -> AlertEngine:
        return self._engine

    @property
    def maintenance(self) -> MaintenanceScheduler:
        return self._maintenance

    @property
    def follower(self) -> LogFollower:
        return self._follower

    @property
    def is_running(self) -> bool:
        return self._running

    # =========================================================
    # LIFECYCLE
    # =========================================================

    async def start(self) -> None:
        """
        Start following the log and the maintenance loops.

        Raises:
            IngestionSourceUnavailable: If the log file is missing
        """
        if self._running:
            return

        logger.info(f"Starting to watch log file: {self._config.ingestion.log_file}")
        self._follower.open()

        if self._send_startup:
            await self.send_startup_message()

        await self._follower.start()
        await self._maintenance.start()
        self._running = True

        logger.info("Voltr Alert Service started successfully!")

    async def stop(self) -> None:
        """Stop everything and release resources."""
        if self._stop_event is not None:
            self._stop_event.set()

        if not self._running:
            await self._notifier.close()
            return

        logger.info("Shutting down Voltr Alert Service...")
        self._running = False

        await self._follower.stop()
        await self._maintenance.stop()
        await self._notifier.close()

        logger.info(f"Voltr Alert Service stopped | {self._engine.stats()}")

    def request_stop(self, signal_name: str = "") -> None:
        """Ask run_forever to return."""
        if signal_name:
            logger.info(f"Received signal {signal_name}")
        if self._stop_event is not None:
            self._stop_event.set()

    async def run_forever(self) -> None:
        """Start, wait for a shutdown signal, stop."""
        self._stop_event = asyncio.Event()
        await self.start()

        handlers = install_signal_handlers(self.request_stop)
        try:
            await self._stop_event.wait()
        finally:
            restore_signal_handlers(handlers)
            await self.stop()

    # =========================================================
    # MESSAGES & REPLAY
    # =========================================================

    async def send_startup_message(self) -> bool:
        """Post the startup notice to the Telegram chat."""
        text = TelegramFormatter.format_startup(
            bot_token=self._config.telegram.bot_token,
            chat_id=self._config.telegram.chat_id,
            log_file=self._config.ingestion.log_file,
            at=self._clock.now(),
        )
        sent = await self._notifier.send_text(text)
        if not sent:
            logger.warning("Startup message was not delivered")
        return sent

    async def replay(self, path: str) -> int:
        """
        Run an existing log file through the engine once.

        Waits for all deliveries before returning.

        Returns:
            Number of lines read
        """
        try:
            lines = await replay_file(path, self._engine.handle_line)
            await self._engine.drain()
        finally:
            await self._notifier.close()

        logger.info(f"Replayed {lines} lines from {path} | {self._engine.stats()}")
        return lines


__all__ = ["VaultAlertService"]
