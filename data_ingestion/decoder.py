"""
Data Ingestion - Vault Event Decoder.

============================================================
RESPONSIBILITY
============================================================
Turns one raw log line into a DomainEvent, or rejects it.

- Stage 1: parse the PM2 envelope
- Stage 2: parse the vault event inside the envelope message
- Filter on the origin service tag

============================================================
DESIGN PRINCIPLES
============================================================
- The log interleaves unrelated lines: rejection is normal
- Rejection is silent (DEBUG only), never an exception
- Foreign services are dropped exactly like parse failures

============================================================
"""

import logging
from types import MappingProxyType
from typing import Optional

from pydantic import ValidationError

from .types import DomainEvent, PM2LogEntry, VaultEventRecord


logger = logging.getLogger(__name__)


class VaultEventDecoder:
    """
    Two-stage decoder for vault listener log lines.
    """

    def __init__(self, expected_service: str = "voltr-vault-listener"):
        """
        Initialize decoder.

        Args:
            expected_service: Service tag events must carry
        """
        self._expected_service = expected_service

        # Metrics
        self._lines_seen = 0
        self._events_decoded = 0
        self._lines_rejected = 0
        self._events_foreign = 0

    @property
    def expected_service(self) -> str:
        """Service tag accepted by this decoder."""
        return self._expected_service

    def decode(self, line: str) -> Optional[DomainEvent]:
        """
        Decode a log line.

        Returns:
            The DomainEvent, or None when the line is not a
            vault event from the expected service.
        """
        self._lines_seen += 1

        line = line.strip()
        if not line:
            self._lines_rejected += 1
            return None

        try:
            entry = PM2LogEntry.model_validate_json(line)
            record = VaultEventRecord.model_validate_json(entry.message.strip())
        except ValidationError as e:
            self._lines_rejected += 1
            logger.debug(f"Skipping non-event line ({e.error_count()} errors)")
            return None

        if record.service != self._expected_service:
            self._events_foreign += 1
            logger.debug(f"Skipping event from service {record.service!r}")
            return None

        payload = MappingProxyType(record.event_data.model_dump())
        self._events_decoded += 1

        return DomainEvent(
            event_name=record.event_name,
            entity_key=record.event_data.vault,
            payload=payload,
            timestamp=record.event_time,
        )

    def stats(self) -> dict:
        """Get decoder counters."""
        return {
            "lines_seen": self._lines_seen,
            "events_decoded": self._events_decoded,
            "lines_rejected": self._lines_rejected,
            "events_foreign": self._events_foreign,
        }


__all__ = ["VaultEventDecoder"]
