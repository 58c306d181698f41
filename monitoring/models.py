"""
Monitoring - Alert Models.

============================================================
PURPOSE
============================================================
Typed alert candidates produced by the classifier and the
notification payload produced by the formatter.

AlertCandidate is a tagged union:
- InfoAlert             (tier INFO, one per handled event)
- LargeTransactionAlert (tier CRITICAL)
- StrategyPnLAlert      (tier CRITICAL)
- HighFrequencyAlert    (tier CRITICAL)

The AlertKind discriminator selects the variant; each variant
accepts only its own kinds.

============================================================
"""

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Optional


# ============================================================
# ENUMS
# ============================================================

class AlertTier(Enum):
    """Alert severity tiers."""

    INFO = "INFO"
    CRITICAL = "CRITICAL"


class AlertKind(str, Enum):
    """Discriminator for alert candidates."""

    # Info
    VAULT_DEPOSIT = "vault_deposit"
    VAULT_WITHDRAWAL = "vault_withdrawal"
    STRATEGY_DEPOSIT = "strategy_deposit"
    STRATEGY_WITHDRAWAL = "strategy_withdrawal"
    DIRECT_STRATEGY_WITHDRAWAL = "direct_strategy_withdrawal"

    # Critical
    LARGE_VAULT_DEPOSIT = "large_vault_deposit"
    LARGE_VAULT_WITHDRAWAL = "large_vault_withdrawal"
    LARGE_STRATEGY_DEPOSIT = "large_strategy_deposit"
    LARGE_STRATEGY_WITHDRAWAL = "large_strategy_withdrawal"
    STRATEGY_SIGNIFICANT_PNL = "strategy_significant_pnl"
    HIGH_FREQUENCY = "high_frequency"


INFO_KINDS: FrozenSet[AlertKind] = frozenset({
    AlertKind.VAULT_DEPOSIT,
    AlertKind.VAULT_WITHDRAWAL,
    AlertKind.STRATEGY_DEPOSIT,
    AlertKind.STRATEGY_WITHDRAWAL,
    AlertKind.DIRECT_STRATEGY_WITHDRAWAL,
})

LARGE_TRANSACTION_KINDS: FrozenSet[AlertKind] = frozenset({
    AlertKind.LARGE_VAULT_DEPOSIT,
    AlertKind.LARGE_VAULT_WITHDRAWAL,
    AlertKind.LARGE_STRATEGY_DEPOSIT,
    AlertKind.LARGE_STRATEGY_WITHDRAWAL,
})


# ============================================================
# ALERT CANDIDATES
# ============================================================

@dataclass(frozen=True)
class AlertCandidate:
    """
    Base for all alert candidates.

    Produced fresh per classification; never persisted.
    """

    kind: AlertKind
    vault: str
    timestamp: str

    allowed_kinds = frozenset(AlertKind)
    tier = AlertTier.CRITICAL

    def __post_init__(self) -> None:
        if not self.vault:
            raise ValueError("Alert candidate requires a vault")
        if self.kind not in self.allowed_kinds:
            raise ValueError(
                f"{type(self).__name__} does not accept kind {self.kind.value}"
            )

    @property
    def rate_limit_key(self) -> str:
        """Cooldown class key: tier, alert type and vault."""
        return f"{self.tier.value.lower()}_{self.kind.value}_{self.vault}"


@dataclass(frozen=True)
class InfoAlert(AlertCandidate):
    """Informational notification sent for every handled event."""

    amount: float = 0.0
    percentage_change: float = 0.0
    pnl: Optional[float] = None
    pnl_percent: Optional[float] = None
    user: Optional[str] = None
    strategy: Optional[str] = None
    manager: Optional[str] = None

    allowed_kinds = INFO_KINDS
    tier = AlertTier.INFO


@dataclass(frozen=True)
class LargeTransactionAlert(AlertCandidate):
    """Deposit or withdrawal that is large relative to the vault."""

    amount: float = 0.0
    percentage: float = 0.0
    threshold: float = 0.0
    user: Optional[str] = None
    strategy: Optional[str] = None
    manager: Optional[str] = None

    allowed_kinds = LARGE_TRANSACTION_KINDS

    @property
    def is_deposit(self) -> bool:
        return self.kind in (
            AlertKind.LARGE_VAULT_DEPOSIT,
            AlertKind.LARGE_STRATEGY_DEPOSIT,
        )

    @property
    def is_vault_level(self) -> bool:
        return self.kind in (
            AlertKind.LARGE_VAULT_DEPOSIT,
            AlertKind.LARGE_VAULT_WITHDRAWAL,
        )


@dataclass(frozen=True)
class StrategyPnLAlert(AlertCandidate):
    """Strategy PnL that is significant relative to the moved amount."""

    amount: float = 0.0
    pnl: float = 0.0
    pnl_percent: float = 0.0
    pnl_to_amount_ratio: float = 0.0
    threshold: float = 0.0
    strategy: Optional[str] = None
    manager: Optional[str] = None
    user: Optional[str] = None

    allowed_kinds = frozenset({AlertKind.STRATEGY_SIGNIFICANT_PNL})


@dataclass(frozen=True)
class HighFrequencyAlert(AlertCandidate):
    """Burst of events of one kind on one vault."""

    event_type: str = ""
    rate: int = 0
    threshold: int = 0
    time_window: str = ""

    allowed_kinds = frozenset({AlertKind.HIGH_FREQUENCY})


# ============================================================
# NOTIFICATION PAYLOAD
# ============================================================

@dataclass(frozen=True)
class NotificationPayload:
    """
    Rendered notification, ready for the sink.

    silent maps to Telegram's disable_notification.
    """

    text: str
    parse_mode: str = "HTML"
    silent: bool = False


__all__ = [
    "AlertTier",
    "AlertKind",
    "INFO_KINDS",
    "LARGE_TRANSACTION_KINDS",
    "AlertCandidate",
    "InfoAlert",
    "LargeTransactionAlert",
    "StrategyPnLAlert",
    "HighFrequencyAlert",
    "NotificationPayload",
]
