"""
Alert Rules - Vault Event Classification.

============================================================
PURPOSE
============================================================
Turns a decoded vault event into zero or more alert candidates.

PRINCIPLES:
- Every event is recorded for frequency tracking first
- Every handled event yields exactly one info alert
- Critical alerts only on explicit, configurable thresholds
- Threshold comparisons are strict; the frequency check is not
- Unknown event kinds produce nothing beyond frequency alerts

============================================================
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from data_ingestion.types import DomainEvent, VaultEventName

from ..config import ThresholdConfig
from ..models import (
    AlertCandidate,
    AlertKind,
    HighFrequencyAlert,
    InfoAlert,
    LargeTransactionAlert,
    StrategyPnLAlert,
)
from .frequency import FrequencyTracker, frequency_key
from .metrics import EventMetrics


logger = logging.getLogger(__name__)


def describe_window(window_ms: int) -> str:
    """Human label for a window length, e.g. 60000 -> '1 minute'."""
    for unit_ms, unit in ((3_600_000, "hour"), (60_000, "minute"), (1000, "second")):
        if window_ms >= unit_ms and window_ms % unit_ms == 0:
            count = window_ms // unit_ms
            return f"{count} {unit}" if count == 1 else f"{count} {unit}s"
    return f"{window_ms} ms"


# ============================================================
# HANDLER BASE
# ============================================================

class EventHandler(ABC):
    """
    Classification rule for one event kind.

    Handlers are deterministic: the same event and thresholds
    always produce the same candidates.
    """

    event_name: VaultEventName
    amount_field: str

    def metrics(self, event: DomainEvent) -> EventMetrics:
        return EventMetrics.from_payload(event.payload, self.amount_field)

    @abstractmethod
    def handle(self, event: DomainEvent, thresholds: ThresholdConfig) -> List[AlertCandidate]:
        """Produce the candidates for one event."""

    def _significant_pnl(
        self,
        event: DomainEvent,
        metrics: EventMetrics,
        thresholds: ThresholdConfig,
        **participants: Optional[str],
    ) -> Optional[StrategyPnLAlert]:
        if metrics.pnl_to_amount_ratio <= thresholds.strategy_pnl_ratio_threshold:
            return None
        return StrategyPnLAlert(
            kind=AlertKind.STRATEGY_SIGNIFICANT_PNL,
            vault=event.vault,
            timestamp=event.timestamp,
            amount=metrics.amount,
            pnl=metrics.pnl,
            pnl_percent=metrics.pnl_percent,
            pnl_to_amount_ratio=metrics.pnl_to_amount_ratio,
            threshold=thresholds.strategy_pnl_ratio_threshold,
            **participants,
        )

    def _large_transaction(
        self,
        kind: AlertKind,
        event: DomainEvent,
        metrics: EventMetrics,
        threshold_fraction: float,
        **participants: Optional[str],
    ) -> Optional[LargeTransactionAlert]:
        threshold_percent = threshold_fraction * 100
        if metrics.transaction_percent <= threshold_percent:
            return None
        return LargeTransactionAlert(
            kind=kind,
            vault=event.vault,
            timestamp=event.timestamp,
            amount=metrics.amount,
            percentage=metrics.transaction_percent,
            threshold=threshold_percent,
            **participants,
        )


# ============================================================
# CONCRETE HANDLERS
# ============================================================

class VaultTransferHandler(EventHandler):
    """
    User deposit into or withdrawal from a vault.

    Info carries the vault value change; large transfers are
    critical.
    """

    def __init__(
        self,
        event_name: VaultEventName,
        amount_field: str,
        info_kind: AlertKind,
        large_kind: AlertKind,
        threshold_attr: str,
    ):
        self.event_name = event_name
        self.amount_field = amount_field
        self._info_kind = info_kind
        self._large_kind = large_kind
        self._threshold_attr = threshold_attr

    def handle(self, event: DomainEvent, thresholds: ThresholdConfig) -> List[AlertCandidate]:
        metrics = self.metrics(event)
        user = event.text("user")

        candidates: List[AlertCandidate] = [
            InfoAlert(
                kind=self._info_kind,
                vault=event.vault,
                timestamp=event.timestamp,
                amount=metrics.amount,
                percentage_change=metrics.percentage_change,
                user=user,
            )
        ]

        large = self._large_transaction(
            self._large_kind,
            event,
            metrics,
            getattr(thresholds, self._threshold_attr),
            user=user,
        )
        if large:
            candidates.append(large)

        return candidates


class StrategyTransferHandler(EventHandler):
    """
    Manager moving vault funds into or out of a strategy.

    Info carries the transfer size and PnL; both a significant
    PnL and a large transfer are critical, independently.
    """

    def __init__(
        self,
        event_name: VaultEventName,
        amount_field: str,
        info_kind: AlertKind,
        large_kind: AlertKind,
    ):
        self.event_name = event_name
        self.amount_field = amount_field
        self._info_kind = info_kind
        self._large_kind = large_kind

    def handle(self, event: DomainEvent, thresholds: ThresholdConfig) -> List[AlertCandidate]:
        metrics = self.metrics(event)
        strategy = event.text("strategy")
        manager = event.text("manager")

        candidates: List[AlertCandidate] = [
            InfoAlert(
                kind=self._info_kind,
                vault=event.vault,
                timestamp=event.timestamp,
                amount=metrics.amount,
                percentage_change=metrics.transaction_percent,
                pnl=metrics.pnl,
                pnl_percent=metrics.pnl_percent,
                strategy=strategy,
                manager=manager,
            )
        ]

        significant = self._significant_pnl(
            event, metrics, thresholds, strategy=strategy, manager=manager,
        )
        if significant:
            candidates.append(significant)

        large = self._large_transaction(
            self._large_kind,
            event,
            metrics,
            thresholds.large_strategy_move_percent,
            strategy=strategy,
            manager=manager,
        )
        if large:
            candidates.append(large)

        return candidates


class DirectStrategyWithdrawHandler(EventHandler):
    """User withdrawing straight from a strategy."""

    event_name = VaultEventName.DIRECT_WITHDRAW_STRATEGY
    amount_field = "userAmountAssetWithdrawn"

    def handle(self, event: DomainEvent, thresholds: ThresholdConfig) -> List[AlertCandidate]:
        metrics = self.metrics(event)
        user = event.text("user")
        strategy = event.text("strategy")

        candidates: List[AlertCandidate] = [
            InfoAlert(
                kind=AlertKind.DIRECT_STRATEGY_WITHDRAWAL,
                vault=event.vault,
                timestamp=event.timestamp,
                amount=metrics.amount,
                percentage_change=metrics.percentage_change,
                pnl=metrics.pnl,
                pnl_percent=metrics.pnl_percent,
                user=user,
                strategy=strategy,
            )
        ]

        significant = self._significant_pnl(
            event, metrics, thresholds, strategy=strategy, user=user,
        )
        if significant:
            candidates.append(significant)

        return candidates


def create_default_handlers() -> List[EventHandler]:
    """Handlers for the five alerting event kinds."""
    return [
        VaultTransferHandler(
            VaultEventName.DEPOSIT_VAULT,
            "userAmountAssetDeposited",
            AlertKind.VAULT_DEPOSIT,
            AlertKind.LARGE_VAULT_DEPOSIT,
            "large_vault_deposit_percent",
        ),
        VaultTransferHandler(
            VaultEventName.WITHDRAW_VAULT,
            "userAmountAssetWithdrawn",
            AlertKind.VAULT_WITHDRAWAL,
            AlertKind.LARGE_VAULT_WITHDRAWAL,
            "large_vault_withdrawal_percent",
        ),
        StrategyTransferHandler(
            VaultEventName.DEPOSIT_STRATEGY,
            "vaultAmountAssetDeposited",
            AlertKind.STRATEGY_DEPOSIT,
            AlertKind.LARGE_STRATEGY_DEPOSIT,
        ),
        StrategyTransferHandler(
            VaultEventName.WITHDRAW_STRATEGY,
            "vaultAmountAssetWithdrawn",
            AlertKind.STRATEGY_WITHDRAWAL,
            AlertKind.LARGE_STRATEGY_WITHDRAWAL,
        ),
        DirectStrategyWithdrawHandler(),
    ]


# ============================================================
# CLASSIFIER
# ============================================================

class VaultEventClassifier:
    """
    Maps decoded events to alert candidates.

    Stateless apart from the frequency tracker it records into.
    """

    def __init__(
        self,
        thresholds: ThresholdConfig,
        tracker: FrequencyTracker,
        handlers: Optional[List[EventHandler]] = None,
    ):
        self._thresholds = thresholds
        self._tracker = tracker
        self._handlers: Dict[str, EventHandler] = {
            h.event_name.value: h for h in (handlers or create_default_handlers())
        }
        self._window_label = describe_window(tracker.window_ms)

    @property
    def handled_events(self) -> List[str]:
        return list(self._handlers)

    def classify(self, event: DomainEvent, now_ms: int) -> List[AlertCandidate]:
        """
        Classify one event.

        Args:
            event: Decoded event
            now_ms: Arrival time used for frequency tracking

        Returns:
            Candidates in emission order (high-frequency first)
        """
        candidates: List[AlertCandidate] = []

        count = self._tracker.record(frequency_key(event.event_name, event.vault), now_ms)
        if self._tracker.is_high_frequency(count):
            candidates.append(
                HighFrequencyAlert(
                    kind=AlertKind.HIGH_FREQUENCY,
                    vault=event.vault,
                    timestamp=event.timestamp,
                    event_type=event.event_name,
                    rate=count,
                    threshold=self._tracker.threshold,
                    time_window=self._window_label,
                )
            )

        handler = self._handlers.get(event.event_name)
        if handler is None:
            logger.debug(f"No handler for event {event.event_name}")
            return candidates

        candidates.extend(handler.handle(event, self._thresholds))
        return candidates


__all__ = [
    "describe_window",
    "EventHandler",
    "VaultTransferHandler",
    "StrategyTransferHandler",
    "DirectStrategyWithdrawHandler",
    "create_default_handlers",
    "VaultEventClassifier",
]
