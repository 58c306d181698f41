"""
Shared builders for vault event test data.
"""

import json
from typing import Any, Dict, Optional

from data_ingestion.types import DomainEvent


VAULT = "DT3srSkTf2tyoAyz9nHf112MChkKEG7LGTGaGWccwgkE"
USER = "GFwEi2jkesr9sFdq2oyxdUdxgn4SKW4YjaVRADkTj3Pk"
STRATEGY = "Cwg2fnhSwJo7K8HRKBhYesnCGzc8tWbGFvXDL3wwdu3s"
MANAGER = "9xQeWvG816bUx9EPjHmaT23yvVM2ZWbrrpZb9PusVFin"
EVENT_TIME = "2025-06-02T04:20:14.162Z"


def make_event(
    event_name: str,
    vault: str = VAULT,
    timestamp: str = EVENT_TIME,
    **payload: Any,
) -> DomainEvent:
    """Build a DomainEvent with the given payload fields."""
    data: Dict[str, Any] = {"vault": vault}
    data.update(payload)
    return DomainEvent(
        event_name=event_name,
        entity_key=vault,
        payload=data,
        timestamp=timestamp,
    )


def make_log_line(
    event_name: str,
    event_data: Optional[Dict[str, Any]] = None,
    service: str = "voltr-vault-listener",
    timestamp: str = EVENT_TIME,
) -> str:
    """Build one PM2 JSON log line carrying a vault event."""
    inner: Dict[str, Any] = {
        "level": "info",
        "time": timestamp,
        "service": service,
        "version": "unknown",
        "timestamp": timestamp,
        "programId": "vVoLTRjQmtFpiYoegx285Ze4gsLJ8ZxgFKVcuvmG1a8",
        "eventName": event_name,
        "slot": 344046326,
        "message": f"{event_name} received",
    }
    if event_data is not None:
        inner["eventData"] = event_data

    return json.dumps({
        "message": json.dumps(inner) + "\n",
        "timestamp": "2025-06-02 04:20:14 +00:00",
        "type": "out",
        "process_id": 1,
        "app_name": "voltr-vault",
    })
