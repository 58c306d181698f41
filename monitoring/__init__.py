"""
Monitoring & Alerting Package.

============================================================
PURPOSE
============================================================
Turns decoded vault events into prioritized Telegram alerts.

PRINCIPLES:
1. NOTIFICATION-ONLY - Observes vault events, never acts on them
2. DETERMINISTIC - Explicit thresholds, no predictions
3. QUIET - Duplicate alerts are suppressed per cooldown class
4. RESILIENT - A failed delivery never stops processing

============================================================
WHAT THIS SUBSYSTEM MUST DO
============================================================
- Track event frequency per vault and event kind
- Flag large transfers and significant strategy PnL
- Rate limit info and critical alerts separately
- Send notifications via Telegram

============================================================
"""

from .models import (
    AlertTier,
    AlertKind,
    AlertCandidate,
    InfoAlert,
    LargeTransactionAlert,
    StrategyPnLAlert,
    HighFrequencyAlert,
    NotificationPayload,
)

from .config import (
    TelegramConfig,
    ThresholdConfig,
    RateLimitConfig,
    MaintenanceConfig,
    IngestionConfig,
    AlertServiceConfig,
    load_config,
)

from .alerts import (
    EventMetrics,
    FrequencyTracker,
    RateLimiter,
    VaultEventClassifier,
    AlertEngine,
    NotificationSink,
)

from .notifications import (
    TelegramFormatter,
    TelegramNotifier,
)

from .maintenance import MaintenanceScheduler


__all__ = [
    # Models
    "AlertTier",
    "AlertKind",
    "AlertCandidate",
    "InfoAlert",
    "LargeTransactionAlert",
    "StrategyPnLAlert",
    "HighFrequencyAlert",
    "NotificationPayload",

    # Config
    "TelegramConfig",
    "ThresholdConfig",
    "RateLimitConfig",
    "MaintenanceConfig",
    "IngestionConfig",
    "AlertServiceConfig",
    "load_config",

    # Alerts
    "EventMetrics",
    "FrequencyTracker",
    "RateLimiter",
    "VaultEventClassifier",
    "AlertEngine",
    "NotificationSink",

    # Notifications
    "TelegramFormatter",
    "TelegramNotifier",

    # Maintenance
    "MaintenanceScheduler",
]
