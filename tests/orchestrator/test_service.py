"""
Tests for the Vault Alert Service runtime.

============================================================
PURPOSE
============================================================
Wiring and lifecycle of follower, engine, maintenance and sink.

TEST PRINCIPLES:
- A missing log file is fatal and nothing is announced
- Shutdown is idempotent and always closes the sink
- Replay waits for deliveries

============================================================
"""

import asyncio
import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from core.clock import MockClock
from core.exceptions import IngestionSourceUnavailable
from monitoring.config import AlertServiceConfig, IngestionConfig, TelegramConfig
from orchestrator.service import VaultAlertService
from tests.helpers import USER, make_log_line


def make_notifier():
    notifier = MagicMock()
    notifier.send = AsyncMock(return_value=True)
    notifier.send_text = AsyncMock(return_value=True)
    notifier.close = AsyncMock()
    return notifier


def make_config(log_file):
    return AlertServiceConfig(
        telegram=TelegramConfig(bot_token="123456:ABCDEFGHIJ", chat_id="-100123"),
        ingestion=IngestionConfig(log_file=str(log_file), poll_interval_seconds=0.01),
    )


@pytest.fixture
def log_file(tmp_path):
    path = tmp_path / "voltr-vault-out.log"
    path.write_text("", encoding="utf-8")
    return path


@pytest.fixture
def clock():
    return MockClock(datetime(2025, 6, 2, 4, 20, 14, tzinfo=timezone.utc))


# ============================================================
# LIFECYCLE
# ============================================================

class TestLifecycle:
    """Tests for start/stop."""

    @pytest.mark.asyncio
    async def test_missing_log_file_is_fatal(self, tmp_path, clock):
        notifier = make_notifier()
        service = VaultAlertService(make_config(tmp_path / "missing.log"), notifier, clock=clock)

        with pytest.raises(IngestionSourceUnavailable):
            await service.start()

        notifier.send_text.assert_not_awaited()
        assert not service.is_running

        await service.stop()
        notifier.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_start_announces_and_stop(self, log_file, clock):
        notifier = make_notifier()
        service = VaultAlertService(make_config(log_file), notifier, clock=clock)

        await service.start()

        assert service.is_running
        assert service.follower.is_running
        assert service.maintenance.is_running
        text = notifier.send_text.await_args.args[0]
        assert "Voltr Alert Service Started" in text
        assert "├ Bot Token: ...CDEFGHIJ" in text
        assert "└ Time: 2025-06-02 04:20:14 UTC" in text

        await service.stop()
        await service.stop()

        assert not service.is_running
        assert not service.follower.is_running
        assert not service.maintenance.is_running

    @pytest.mark.asyncio
    async def test_startup_message_disabled(self, log_file, clock):
        notifier = make_notifier()
        service = VaultAlertService(
            make_config(log_file), notifier, clock=clock, send_startup_message=False,
        )

        await service.start()
        await service.stop()

        notifier.send_text.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_live_line_reaches_sink(self, log_file, clock):
        notifier = make_notifier()
        service = VaultAlertService(make_config(log_file), notifier, clock=clock)
        await service.start()

        with open(log_file, "a", encoding="utf-8") as f:
            f.write(make_log_line("withdrawVaultEvent", {
                "vault": "vault1",
                "user": USER,
                "userAmountAssetWithdrawn": 10,
                "vaultAssetTotalValueBefore": 1000,
                "vaultAssetTotalValueAfter": 990,
            }) + "\n")

        for _ in range(200):
            if notifier.send.await_count:
                break
            await asyncio.sleep(0.01)
        await service.stop()

        payload = notifier.send.await_args.args[0]
        assert payload.text.startswith("💸 <b>Vault Withdrawal</b>")

    @pytest.mark.asyncio
    async def test_run_forever_until_requested(self, log_file, clock):
        notifier = make_notifier()
        service = VaultAlertService(
            make_config(log_file), notifier, clock=clock, send_startup_message=False,
        )

        task = asyncio.create_task(service.run_forever())
        for _ in range(200):
            if service.is_running:
                break
            await asyncio.sleep(0.01)

        service.request_stop("SIGTERM")
        await asyncio.wait_for(task, timeout=5)

        assert not service.is_running
        notifier.close.assert_awaited()


# ============================================================
# REPLAY
# ============================================================

class TestReplay:
    """Tests for one-shot replay."""

    @pytest.mark.asyncio
    async def test_replay_delivers_and_closes(self, log_file, clock):
        lines = [
            "PM2 | some unrelated output",
            make_log_line("depositVaultEvent", {
                "vault": "vault1",
                "user": USER,
                "userAmountAssetDeposited": 150,
                "vaultAssetTotalValueBefore": 1000,
                "vaultAssetTotalValueAfter": 1150,
            }),
            json.dumps({"message": "not an event"}),
        ]
        log_file.write_text("\n".join(lines) + "\n", encoding="utf-8")
        notifier = make_notifier()
        service = VaultAlertService(make_config(log_file), notifier, clock=clock)

        count = await service.replay(str(log_file))

        assert count == 3
        assert notifier.send.await_count == 2
        notifier.send_text.assert_not_awaited()
        notifier.close.assert_awaited_once()
        assert service.engine.stats()["events_processed"] == 1
