"""
Orchestrator - Core Runtime Helpers.

============================================================
RESPONSIBILITY
============================================================
Process-level plumbing shared by the CLI and the service.

- Logging setup (json or text to stdout)
- Signal handler installation (SIGINT, SIGTERM)

============================================================
"""

import asyncio
import json
import logging
import signal
import sys
from typing import Callable, Dict, Optional


# ============================================================
# LOGGING SETUP
# ============================================================

class JsonLogFormatter(logging.Formatter):
    """One JSON object per log record."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def setup_logging(
    level: str = "INFO",
    log_format: str = "text",
) -> logging.Logger:
    """
    Set up process-wide logging.

    Args:
        level: Log level name
        log_format: Output format (json or text)

    Returns:
        The service logger
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    if log_format == "json":
        formatter: logging.Formatter = JsonLogFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
        )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = [handler]

    # aiohttp access noise is not useful here
    logging.getLogger("aiohttp").setLevel(max(log_level, logging.WARNING))

    return logging.getLogger("orchestrator")


# ============================================================
# SIGNAL HANDLING
# ============================================================

SHUTDOWN_SIGNALS = (signal.SIGTERM, signal.SIGINT)


def install_signal_handlers(
    on_signal: Callable[[str], None],
    loop: Optional[asyncio.AbstractEventLoop] = None,
) -> Dict[int, object]:
    """
    Route SIGINT/SIGTERM to on_signal(signal_name).

    Returns:
        Previous handlers, for restore_signal_handlers
    """
    original: Dict[int, object] = {}

    if sys.platform == "win32":
        # No loop signal handlers on Windows; SIGTERM is not delivered
        original[signal.SIGINT] = signal.getsignal(signal.SIGINT)
        signal.signal(signal.SIGINT, lambda signum, frame: on_signal("SIGINT"))
        return original

    loop = loop or asyncio.get_running_loop()
    for sig in SHUTDOWN_SIGNALS:
        original[sig] = signal.getsignal(sig)
        loop.add_signal_handler(sig, on_signal, sig.name)
    return original


def restore_signal_handlers(
    original: Dict[int, object],
    loop: Optional[asyncio.AbstractEventLoop] = None,
) -> None:
    """Undo install_signal_handlers."""
    if sys.platform == "win32":
        for sig, handler in original.items():
            signal.signal(sig, handler)
        return

    loop = loop or asyncio.get_running_loop()
    for sig in original:
        loop.remove_signal_handler(sig)


__all__ = [
    "JsonLogFormatter",
    "setup_logging",
    "SHUTDOWN_SIGNALS",
    "install_signal_handlers",
    "restore_signal_handlers",
]
