"""
Data Ingestion - Type Definitions.

============================================================
PURPOSE
============================================================
Shared types for the ingestion layer.

- Wire schemas for the PM2 log envelope and the vault event
- The immutable DomainEvent handed to the alert engine
- Known vault event kinds

============================================================
WIRE FORMAT
============================================================
Each PM2 log line is a JSON envelope:

    {"message": "<vault event JSON>\\n", "timestamp": "...",
     "type": "out", "process_id": 1, "app_name": "voltr-vault"}

The message is itself JSON emitted by the vault listener:

    {"level": "info", "service": "voltr-vault-listener",
     "timestamp": "2025-06-02T04:20:14.162Z",
     "eventName": "depositStrategyEvent", "slot": 344046326,
     "eventData": {"vault": "...", ...}}

============================================================
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field


# =============================================================
# ENUMS
# =============================================================

class VaultEventName(str, Enum):
    """Event kinds emitted by the vault listener."""
    DEPOSIT_VAULT = "depositVaultEvent"
    WITHDRAW_VAULT = "withdrawVaultEvent"
    DEPOSIT_STRATEGY = "depositStrategyEvent"
    WITHDRAW_STRATEGY = "withdrawStrategyEvent"
    DIRECT_WITHDRAW_STRATEGY = "directWithdrawStrategyEvent"
    HARVEST_FEE = "harvestFeeEvent"
    INITIALIZE_VAULT = "initializeVaultEvent"
    REQUEST_WITHDRAW_VAULT = "requestWithdrawVaultEvent"
    CANCEL_REQUEST_WITHDRAW_VAULT = "cancelRequestWithdrawVaultEvent"

    @classmethod
    def parse(cls, value: str) -> Optional["VaultEventName"]:
        """Return the enum member for a raw kind, or None if unknown."""
        try:
            return cls(value)
        except ValueError:
            return None


# =============================================================
# WIRE SCHEMAS
# =============================================================

class PM2LogEntry(BaseModel):
    """Outer envelope written by PM2 for each stdout line."""
    model_config = ConfigDict(extra="ignore")

    message: str
    timestamp: Optional[str] = None
    type: Optional[str] = None
    process_id: Optional[int] = None
    app_name: Optional[str] = None


class VaultEventData(BaseModel):
    """
    Event payload.

    Only the vault address is required; every other field
    (amounts, totals, participants) is kept as-is.
    """
    model_config = ConfigDict(extra="allow")

    vault: str = Field(..., min_length=1)


class VaultEventRecord(BaseModel):
    """
    Inner vault event carried in the envelope message.

    Only service, eventName and eventData are validated. The listener
    metadata (slot, signature, programId) is ignored, and the time
    fields are accepted in any shape.
    """
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    service: str
    event_name: str = Field(..., alias="eventName", min_length=1)
    timestamp: Any = None
    time: Any = None
    event_data: VaultEventData = Field(..., alias="eventData")

    @property
    def event_time(self) -> str:
        """First ISO-style time string present, or empty."""
        for value in (self.timestamp, self.time):
            if isinstance(value, str) and value:
                return value
        return ""


# =============================================================
# DOMAIN EVENT
# =============================================================

@dataclass(frozen=True)
class DomainEvent:
    """
    A decoded vault state transition.

    Immutable once decoded; discarded after classification.
    """
    event_name: str
    entity_key: str
    payload: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    timestamp: str = ""

    @property
    def kind(self) -> Optional[VaultEventName]:
        """Known event kind, or None for kinds added upstream later."""
        return VaultEventName.parse(self.event_name)

    @property
    def vault(self) -> str:
        """Vault address (the entity key)."""
        return self.entity_key

    def text(self, name: str) -> Optional[str]:
        """String payload field, or None when absent or blank."""
        value = self.payload.get(name)
        if isinstance(value, str) and value:
            return value
        return None


__all__ = [
    "VaultEventName",
    "PM2LogEntry",
    "VaultEventData",
    "VaultEventRecord",
    "DomainEvent",
]
