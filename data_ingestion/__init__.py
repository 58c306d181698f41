"""
Data Ingestion Package.

This package reads the vault listener's PM2 log and decodes
vault events. No alerting logic - only data acquisition.

Modules:
- types: Wire schemas and the DomainEvent
- decoder: Log line -> DomainEvent
- log_follower: Tails the log file
"""

from data_ingestion.types import (
    VaultEventName,
    PM2LogEntry,
    VaultEventData,
    VaultEventRecord,
    DomainEvent,
)
from data_ingestion.decoder import VaultEventDecoder
from data_ingestion.log_follower import LineHandler, LogFollower, replay_file


__all__ = [
    # Types
    "VaultEventName",
    "PM2LogEntry",
    "VaultEventData",
    "VaultEventRecord",
    "DomainEvent",
    # Decoder
    "VaultEventDecoder",
    # Follower
    "LineHandler",
    "LogFollower",
    "replay_file",
]
