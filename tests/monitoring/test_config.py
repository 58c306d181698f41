"""
Tests for Service Configuration.
"""

import os

import pytest

from core.exceptions import ConfigurationError
from monitoring.config import (
    DEFAULT_LOG_FILE,
    AlertServiceConfig,
    TelegramConfig,
    ThresholdConfig,
    load_config,
)


ENV_VARS = [
    "TELEGRAM_BOT_TOKEN",
    "TELEGRAM_CHAT_ID",
    "TELEGRAM_USERNAME_A",
    "TELEGRAM_USERNAME_B",
    "TELEGRAM_API_BASE_URL",
    "TELEGRAM_TIMEOUT_SECONDS",
    "ALERT_LARGE_VAULT_DEPOSIT_PERCENT",
    "ALERT_LARGE_VAULT_WITHDRAWAL_PERCENT",
    "ALERT_LARGE_STRATEGY_MOVE_PERCENT",
    "ALERT_STRATEGY_PNL_RATIO",
    "ALERT_HIGH_FREQUENCY_EVENTS",
    "ALERT_HIGH_FREQUENCY_WINDOW_MS",
    "ALERT_INFO_COOLDOWN_MS",
    "ALERT_CRITICAL_COOLDOWN_MS",
    "VAULT_LOG_FILE",
    "VAULT_SERVICE_NAME",
    "VAULT_LOG_POLL_SECONDS",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Empty environment plus an empty .env file.

    load_dotenv writes to os.environ, so each test gets its own copy.
    """
    monkeypatch.setattr(os, "environ", os.environ.copy())
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    env_file = tmp_path / ".env"
    env_file.write_text("", encoding="utf-8")
    return env_file


# ============================================================
# LOADING
# ============================================================

class TestLoadConfig:
    """Tests for load_config."""

    def test_defaults(self, clean_env):
        config = load_config(str(clean_env))

        assert config.telegram.bot_token == ""
        assert not config.telegram.is_configured
        assert config.thresholds.large_vault_deposit_percent == 0.1
        assert config.thresholds.strategy_pnl_ratio_threshold == 0.01
        assert config.thresholds.high_frequency_events == 10
        assert config.rate_limiting.info_cooldown_ms == 30_000
        assert config.rate_limiting.critical_cooldown_ms == 300_000
        assert config.ingestion.log_file == DEFAULT_LOG_FILE
        assert config.ingestion.expected_service == "voltr-vault-listener"

    def test_environment_values(self, clean_env, monkeypatch):
        monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "123:abc")
        monkeypatch.setenv("TELEGRAM_CHAT_ID", "-100123")
        monkeypatch.setenv("TELEGRAM_USERNAME_A", "@alice")
        monkeypatch.setenv("TELEGRAM_USERNAME_B", "bob")
        monkeypatch.setenv("ALERT_LARGE_VAULT_WITHDRAWAL_PERCENT", "0.05")
        monkeypatch.setenv("ALERT_CRITICAL_COOLDOWN_MS", "60000")

        config = load_config(str(clean_env))

        assert config.telegram.is_configured
        assert config.telegram.mention_usernames == ["alice", "bob"]
        assert config.thresholds.large_vault_withdrawal_percent == 0.05
        assert config.thresholds.large_vault_deposit_percent == 0.1
        assert config.rate_limiting.critical_cooldown_ms == 60_000

    def test_env_file(self, clean_env, monkeypatch):
        clean_env.write_text(
            "TELEGRAM_BOT_TOKEN=from-file\nVAULT_LOG_FILE=/var/log/vault.log\n",
            encoding="utf-8",
        )

        config = load_config(str(clean_env))

        assert config.telegram.bot_token == "from-file"
        assert config.ingestion.log_file == "/var/log/vault.log"

    def test_process_env_wins_over_file(self, clean_env, monkeypatch):
        clean_env.write_text("TELEGRAM_CHAT_ID=from-file\n", encoding="utf-8")
        monkeypatch.setenv("TELEGRAM_CHAT_ID", "from-process")

        assert load_config(str(clean_env)).telegram.chat_id == "from-process"

    def test_invalid_number(self, clean_env, monkeypatch):
        monkeypatch.setenv("ALERT_HIGH_FREQUENCY_EVENTS", "ten")

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(str(clean_env))

        assert exc_info.value.context["config_key"] == "ALERT_HIGH_FREQUENCY_EVENTS"
        assert exc_info.value.is_fatal


# ============================================================
# VALIDATION
# ============================================================

class TestValidate:
    """Tests for AlertServiceConfig.validate."""

    def test_valid(self):
        config = AlertServiceConfig(telegram=TelegramConfig(bot_token="t", chat_id="c"))
        assert config.validate() == []

    def test_missing_telegram(self):
        errors = AlertServiceConfig().validate()

        assert "TELEGRAM_BOT_TOKEN is not set" in errors
        assert "TELEGRAM_CHAT_ID is not set" in errors

    def test_telegram_optional(self):
        assert AlertServiceConfig().validate(require_telegram=False) == []

    def test_bad_thresholds(self):
        config = AlertServiceConfig(
            thresholds=ThresholdConfig(
                large_vault_deposit_percent=-1,
                high_frequency_events=0,
                high_frequency_window_ms=0,
            ),
        )

        errors = config.validate(require_telegram=False)

        assert len(errors) == 3
