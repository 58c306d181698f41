"""
Core Module Package.

This package contains the infrastructure components
that the rest of the service depends on.

Components:
- clock: Injectable time abstraction
- exceptions: Custom exception hierarchy
"""

from .clock import ClockProtocol, SystemClock, MockClock, from_iso8601, to_iso8601
from .exceptions import (
    Severity,
    AlertServiceException,
    ConfigurationError,
    IngestionError,
    IngestionSourceUnavailable,
    DeliveryError,
)


__all__ = [
    "ClockProtocol",
    "SystemClock",
    "MockClock",
    "from_iso8601",
    "to_iso8601",
    "Severity",
    "AlertServiceException",
    "ConfigurationError",
    "IngestionError",
    "IngestionSourceUnavailable",
    "DeliveryError",
]
