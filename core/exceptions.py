"""
Core Module - Exceptions.

============================================================
RESPONSIBILITY
============================================================
Defines the custom exceptions for the vault alert service.

- Provides a small, clear exception hierarchy
- Separates fatal startup errors from recoverable ones
- Includes context for debugging

============================================================
EXCEPTION HIERARCHY
============================================================
AlertServiceException (base)
├── ConfigurationError
├── IngestionError
│   └── IngestionSourceUnavailable
└── DeliveryError

Non-domain log lines and unknown event kinds are NOT errors
and never raise.

============================================================
"""

from enum import Enum
from datetime import datetime, timezone
from typing import Any, Dict, Optional


# ============================================================
# SEVERITY LEVELS
# ============================================================

class Severity(Enum):
    """Exception severity levels."""

    LOW = "low"
    """Minor issue, informational."""

    MEDIUM = "medium"
    """Moderate issue, requires attention."""

    HIGH = "high"
    """Serious issue, may impact operations."""

    CRITICAL = "critical"
    """Critical issue, the process cannot continue."""


# ============================================================
# BASE EXCEPTION
# ============================================================

class AlertServiceException(Exception):
    """
    Base exception for all alert service errors.

    All exceptions carry:
    - severity: for log level selection
    - context: for debugging
    - recoverable: whether the service keeps running
    - timestamp: when the error occurred
    """

    default_severity: Severity = Severity.MEDIUM
    default_recoverable: bool = True

    def __init__(
        self,
        message: str,
        severity: Optional[Severity] = None,
        context: Optional[Dict[str, Any]] = None,
        recoverable: Optional[bool] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)

        self.message = message
        self.severity = severity or self.default_severity
        self.context = context or {}
        self.recoverable = recoverable if recoverable is not None else self.default_recoverable
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

        if cause:
            self.context["cause_type"] = type(cause).__name__
            self.context["cause_message"] = str(cause)

    @property
    def is_fatal(self) -> bool:
        """Check if the error should terminate the process."""
        return not self.recoverable and self.severity == Severity.CRITICAL

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for logging."""
        return {
            "type": type(self).__name__,
            "message": self.message,
            "severity": self.severity.value,
            "recoverable": self.recoverable,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "cause": str(self.cause) if self.cause else None,
        }

    def to_log_format(self) -> str:
        """Format exception for a single log line."""
        ctx_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
        line = (
            f"[{self.severity.value.upper()}] {type(self).__name__}: {self.message}"
            f" | recoverable={self.recoverable}"
        )
        if ctx_str:
            line += f" | {ctx_str}"
        return line


# ============================================================
# CONFIGURATION ERRORS
# ============================================================

class ConfigurationError(AlertServiceException):
    """Error in configuration."""

    default_severity = Severity.CRITICAL
    default_recoverable = False

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        actual_value: Optional[Any] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})

        if config_key:
            context["config_key"] = config_key
        if actual_value is not None:
            context["actual_value"] = str(actual_value)[:100]

        super().__init__(message, context=context, **kwargs)


# ============================================================
# INGESTION ERRORS
# ============================================================

class IngestionError(AlertServiceException):
    """Error reading from the ingestion source."""

    default_severity = Severity.MEDIUM
    default_recoverable = True

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})
        if path:
            context["path"] = path
        super().__init__(message, context=context, **kwargs)


class IngestionSourceUnavailable(IngestionError):
    """The log file to follow does not exist or cannot be opened."""

    default_severity = Severity.CRITICAL
    default_recoverable = False


# ============================================================
# DELIVERY ERRORS
# ============================================================

class DeliveryError(AlertServiceException):
    """Notification could not be delivered to the sink."""

    default_severity = Severity.MEDIUM
    default_recoverable = True

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        description: Optional[str] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})
        if status is not None:
            context["status"] = status
        if description:
            context["description"] = description
        super().__init__(message, context=context, **kwargs)


__all__ = [
    "Severity",
    "AlertServiceException",
    "ConfigurationError",
    "IngestionError",
    "IngestionSourceUnavailable",
    "DeliveryError",
]
