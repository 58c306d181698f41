"""
Notifications Package.

Telegram formatting and delivery for the alert engine.
"""

from .telegram import (
    TelegramFormatter,
    TelegramNotifier,
    format_number,
    format_time,
    short_address,
)


__all__ = [
    "TelegramFormatter",
    "TelegramNotifier",
    "format_number",
    "format_time",
    "short_address",
]
