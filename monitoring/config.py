"""
Monitoring - Configuration.

============================================================
PURPOSE
============================================================
All configuration for the vault alert service.

- Thresholds for critical alerts
- Cooldowns for rate limiting
- Maintenance intervals
- Telegram credentials and ingestion source

Values are loaded from the environment (optionally a .env
file) and may be overridden from the command line.

============================================================
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Callable, List, Optional, TypeVar

from dotenv import load_dotenv

from core.exceptions import ConfigurationError


logger = logging.getLogger(__name__)

T = TypeVar("T")


DEFAULT_LOG_FILE = "/root/.pm2/logs/voltr-vault-out.log"
DEFAULT_SERVICE_NAME = "voltr-vault-listener"


# ============================================================
# TELEGRAM CONFIGURATION
# ============================================================

@dataclass
class TelegramConfig:
    """
    Telegram sink configuration.
    """

    bot_token: str = ""
    """Bot API token."""

    chat_id: str = ""
    """Chat receiving all notifications."""

    mention_usernames: List[str] = field(default_factory=list)
    """Operators mentioned at the top of critical alerts."""

    api_base_url: str = "https://api.telegram.org"
    """Bot API base URL."""

    request_timeout_seconds: float = 10.0
    """Total timeout for one sendMessage call."""

    @property
    def is_configured(self) -> bool:
        """Whether credentials are present."""
        return bool(self.bot_token and self.chat_id)


# ============================================================
# THRESHOLD CONFIGURATION
# ============================================================

@dataclass
class ThresholdConfig:
    """
    Alert thresholds.

    Percent thresholds are fractions of the vault total value
    (0.1 = 10%) and are compared against percentages (x100).
    """

    large_vault_deposit_percent: float = 0.1
    """Vault deposit above this fraction of total value is critical."""

    large_vault_withdrawal_percent: float = 0.1
    """Vault withdrawal above this fraction of total value is critical."""

    large_strategy_move_percent: float = 0.1
    """Strategy deposit/withdrawal above this fraction is critical."""

    strategy_pnl_ratio_threshold: float = 0.01
    """|pnl| / amount above this ratio is a significant PnL."""

    high_frequency_events: int = 10
    """Occurrences within the window that trigger a high-frequency alert."""

    high_frequency_window_ms: int = 60_000
    """Sliding window length for frequency tracking."""


# ============================================================
# RATE LIMIT CONFIGURATION
# ============================================================

@dataclass
class RateLimitConfig:
    """
    Cooldowns per alert class.
    """

    info_cooldown_ms: int = 30_000
    """Minimum gap between two identical info notifications."""

    critical_cooldown_ms: int = 300_000
    """Minimum gap between two identical critical alerts."""


# ============================================================
# MAINTENANCE CONFIGURATION
# ============================================================

@dataclass
class MaintenanceConfig:
    """
    Background maintenance intervals.
    """

    frequency_prune_interval_ms: int = 60_000
    """How often expired frequency windows are pruned."""

    rate_limit_prune_interval_ms: int = 600_000
    """How often stale rate limit entries are removed."""

    rate_limit_retention_ms: int = 24 * 60 * 60 * 1000
    """Rate limit entries older than this are dropped."""

    heartbeat_interval_ms: int = 60 * 60 * 1000
    """How often the liveness heartbeat is logged."""


# ============================================================
# INGESTION CONFIGURATION
# ============================================================

@dataclass
class IngestionConfig:
    """
    Log source configuration.
    """

    log_file: str = DEFAULT_LOG_FILE
    """PM2 output log of the vault listener."""

    expected_service: str = DEFAULT_SERVICE_NAME
    """Only events whose service tag matches are processed."""

    poll_interval_seconds: float = 0.5
    """How often the follower checks the file for new data."""

    start_at_end: bool = True
    """Skip the existing file content on startup."""


# ============================================================
# SERVICE CONFIGURATION
# ============================================================

@dataclass
class AlertServiceConfig:
    """
    Complete alert service configuration.
    """

    telegram: TelegramConfig = field(default_factory=TelegramConfig)
    thresholds: ThresholdConfig = field(default_factory=ThresholdConfig)
    rate_limiting: RateLimitConfig = field(default_factory=RateLimitConfig)
    maintenance: MaintenanceConfig = field(default_factory=MaintenanceConfig)
    ingestion: IngestionConfig = field(default_factory=IngestionConfig)

    def validate(self, require_telegram: bool = True) -> List[str]:
        """
        Validate the configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if require_telegram:
            if not self.telegram.bot_token:
                errors.append("TELEGRAM_BOT_TOKEN is not set")
            if not self.telegram.chat_id:
                errors.append("TELEGRAM_CHAT_ID is not set")

        t = self.thresholds
        for name in (
            "large_vault_deposit_percent",
            "large_vault_withdrawal_percent",
            "large_strategy_move_percent",
            "strategy_pnl_ratio_threshold",
        ):
            if getattr(t, name) < 0:
                errors.append(f"{name} must not be negative")
        if t.high_frequency_events < 1:
            errors.append("high_frequency_events must be at least 1")
        if t.high_frequency_window_ms <= 0:
            errors.append("high_frequency_window_ms must be positive")

        r = self.rate_limiting
        if r.info_cooldown_ms < 0 or r.critical_cooldown_ms < 0:
            errors.append("cooldowns must not be negative")

        m = self.maintenance
        for name in (
            "frequency_prune_interval_ms",
            "rate_limit_prune_interval_ms",
            "rate_limit_retention_ms",
            "heartbeat_interval_ms",
        ):
            if getattr(m, name) <= 0:
                errors.append(f"{name} must be positive")

        if self.ingestion.poll_interval_seconds <= 0:
            errors.append("poll_interval_seconds must be positive")
        if not self.ingestion.expected_service:
            errors.append("expected_service must not be empty")

        return errors


# ============================================================
# ENVIRONMENT LOADING
# ============================================================

def _env(name: str, cast: Callable[[str], T], default: T) -> T:
    """Read and cast an environment variable, falling back to default."""
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw.strip())
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid value for {name}: {e}",
            config_key=name,
            actual_value=raw,
        ) from e


def load_config(env_file: Optional[str] = None) -> AlertServiceConfig:
    """
    Build configuration from the environment.

    Loads ``env_file`` (or a ``.env`` in the working directory)
    without overriding variables already set in the process.

    Raises:
        ConfigurationError: If a numeric override cannot be parsed
    """
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()

    usernames = [
        name.lstrip("@")
        for name in (
            os.getenv("TELEGRAM_USERNAME_A", ""),
            os.getenv("TELEGRAM_USERNAME_B", ""),
        )
        if name
    ]

    config = AlertServiceConfig(
        telegram=TelegramConfig(
            bot_token=os.getenv("TELEGRAM_BOT_TOKEN", ""),
            chat_id=os.getenv("TELEGRAM_CHAT_ID", ""),
            mention_usernames=usernames,
            api_base_url=os.getenv("TELEGRAM_API_BASE_URL", "https://api.telegram.org"),
            request_timeout_seconds=_env("TELEGRAM_TIMEOUT_SECONDS", float, 10.0),
        ),
        thresholds=ThresholdConfig(
            large_vault_deposit_percent=_env("ALERT_LARGE_VAULT_DEPOSIT_PERCENT", float, 0.1),
            large_vault_withdrawal_percent=_env("ALERT_LARGE_VAULT_WITHDRAWAL_PERCENT", float, 0.1),
            large_strategy_move_percent=_env("ALERT_LARGE_STRATEGY_MOVE_PERCENT", float, 0.1),
            strategy_pnl_ratio_threshold=_env("ALERT_STRATEGY_PNL_RATIO", float, 0.01),
            high_frequency_events=_env("ALERT_HIGH_FREQUENCY_EVENTS", int, 10),
            high_frequency_window_ms=_env("ALERT_HIGH_FREQUENCY_WINDOW_MS", int, 60_000),
        ),
        rate_limiting=RateLimitConfig(
            info_cooldown_ms=_env("ALERT_INFO_COOLDOWN_MS", int, 30_000),
            critical_cooldown_ms=_env("ALERT_CRITICAL_COOLDOWN_MS", int, 300_000),
        ),
        ingestion=IngestionConfig(
            log_file=os.getenv("VAULT_LOG_FILE", DEFAULT_LOG_FILE),
            expected_service=os.getenv("VAULT_SERVICE_NAME", DEFAULT_SERVICE_NAME),
            poll_interval_seconds=_env("VAULT_LOG_POLL_SECONDS", float, 0.5),
        ),
    )

    logger.debug(
        f"Configuration loaded (log_file={config.ingestion.log_file}, "
        f"telegram_configured={config.telegram.is_configured})"
    )
    return config


__all__ = [
    "DEFAULT_LOG_FILE",
    "DEFAULT_SERVICE_NAME",
    "TelegramConfig",
    "ThresholdConfig",
    "RateLimitConfig",
    "MaintenanceConfig",
    "IngestionConfig",
    "AlertServiceConfig",
    "load_config",
]
