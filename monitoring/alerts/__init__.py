"""
Alerts Package.

Vault event classification, frequency tracking, rate limiting
and the alert engine that ties them together.
"""

from .metrics import EventMetrics
from .frequency import FrequencyTracker, frequency_key
from .throttle import RateLimiter
from .rules import (
    EventHandler,
    VaultTransferHandler,
    StrategyTransferHandler,
    DirectStrategyWithdrawHandler,
    VaultEventClassifier,
    create_default_handlers,
    describe_window,
)
from .manager import AlertEngine, NotificationSink


__all__ = [
    # Metrics
    "EventMetrics",

    # State
    "FrequencyTracker",
    "frequency_key",
    "RateLimiter",

    # Rules
    "EventHandler",
    "VaultTransferHandler",
    "StrategyTransferHandler",
    "DirectStrategyWithdrawHandler",
    "VaultEventClassifier",
    "create_default_handlers",
    "describe_window",

    # Engine
    "AlertEngine",
    "NotificationSink",
]
