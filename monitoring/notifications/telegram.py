"""
Telegram Notification Handler.

============================================================
PURPOSE
============================================================
Render alert candidates for Telegram and deliver them.

PRINCIPLES:
- Notification-only, NO control commands
- One fixed HTML layout per alert kind
- Rendered time comes from the event, so output is repeatable
- Delivery failures are logged, never raised

============================================================
"""

import asyncio
import html
import logging
import math
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

import aiohttp

from core.clock import from_iso8601
from core.exceptions import DeliveryError

from ..config import TelegramConfig
from ..models import (
    AlertCandidate,
    AlertKind,
    AlertTier,
    HighFrequencyAlert,
    InfoAlert,
    LargeTransactionAlert,
    NotificationPayload,
    StrategyPnLAlert,
)


logger = logging.getLogger(__name__)


TIME_FORMAT = "%Y-%m-%d %H:%M:%S UTC"


# ============================================================
# VALUE FORMATTING
# ============================================================

def short_address(address: Optional[str]) -> str:
    """Shorten an address to first8...last8."""
    if not address:
        return "Unknown"
    return html.escape(f"{address[:8]}...{address[-8:]}")


def format_number(value: float) -> str:
    """Thousands separators, up to three decimals."""
    if math.isinf(value):
        return "∞" if value > 0 else "-∞"
    if float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,.3f}".rstrip("0").rstrip(".")


def format_time(timestamp: str) -> str:
    """Render an event timestamp; unparsable values are shown as-is."""
    if not timestamp:
        return "Unknown"
    try:
        return from_iso8601(timestamp).strftime(TIME_FORMAT)
    except ValueError:
        return html.escape(timestamp)


def _signed(value: float) -> str:
    return "+" if value >= 0 else ""


def _ratio_percent(ratio: float) -> str:
    if math.isinf(ratio):
        return "∞%"
    return f"{ratio * 100:.1f}%"


# ============================================================
# TELEGRAM MESSAGE FORMATTER
# ============================================================

# kind -> (header, label for percentage_change, participant rows)
INFO_LAYOUTS = {
    AlertKind.VAULT_DEPOSIT: ("💰 <b>Vault Deposit</b>", "Change", ("user", "vault")),
    AlertKind.VAULT_WITHDRAWAL: ("💸 <b>Vault Withdrawal</b>", "Change", ("user", "vault")),
    AlertKind.STRATEGY_DEPOSIT: (
        "📈 <b>Strategy Deposit</b>", "Size", ("strategy", "vault", "manager"),
    ),
    AlertKind.STRATEGY_WITHDRAWAL: (
        "📉 <b>Strategy Withdrawal</b>", "Size", ("strategy", "vault", "manager"),
    ),
    AlertKind.DIRECT_STRATEGY_WITHDRAWAL: (
        "🔄 <b>Direct Strategy Withdrawal</b>", "Change", ("user", "strategy", "vault"),
    ),
}


class TelegramFormatter:
    """
    Formats alert candidates for Telegram.

    Uses HTML formatting; dispatch goes through an explicit
    kind -> renderer table with a generic fallback.
    """

    CRITICAL_BANNER = "🚨🚨🚨 <b>CRITICAL ALERT</b> 🚨🚨🚨"

    def __init__(self, mention_usernames: Optional[List[str]] = None):
        self._mentions = [name for name in (mention_usernames or []) if name]

        self._renderers: Dict[AlertKind, Callable[[Any], str]] = {
            kind: self._render_info for kind in INFO_LAYOUTS
        }
        self._renderers.update({
            AlertKind.LARGE_VAULT_DEPOSIT: self._render_large_transaction,
            AlertKind.LARGE_VAULT_WITHDRAWAL: self._render_large_transaction,
            AlertKind.LARGE_STRATEGY_DEPOSIT: self._render_large_transaction,
            AlertKind.LARGE_STRATEGY_WITHDRAWAL: self._render_large_transaction,
            AlertKind.STRATEGY_SIGNIFICANT_PNL: self._render_strategy_pnl,
            AlertKind.HIGH_FREQUENCY: self._render_high_frequency,
        })

    def has_renderer(self, kind: AlertKind) -> bool:
        return kind in self._renderers

    def format(self, candidate: AlertCandidate) -> NotificationPayload:
        """Render a candidate into a notification payload."""
        renderer = self._renderers.get(candidate.kind, self._render_unknown)
        return NotificationPayload(
            text=renderer(candidate),
            parse_mode="HTML",
            silent=candidate.tier == AlertTier.INFO,
        )

    # =========================================================
    # INFO
    # =========================================================

    def _render_info(self, alert: InfoAlert) -> str:
        header, change_label, rows = INFO_LAYOUTS[alert.kind]

        icon = "📈" if alert.percentage_change >= 0 else "📉"
        lines = [
            header,
            f"├ Amount: {format_number(alert.amount)}",
            f"├ {change_label}: {icon} {alert.percentage_change:.2f}%",
        ]

        if alert.pnl is not None and alert.pnl_percent is not None:
            pnl_icon = "💚" if alert.pnl >= 0 else "❤️"
            sign = _signed(alert.pnl)
            lines.append(
                f"├ PnL: {pnl_icon} {sign}{format_number(alert.pnl)} "
                f"({sign}{alert.pnl_percent:.2f}%)"
            )

        for row in rows:
            lines.append(f"├ {row.capitalize()}: <code>{short_address(getattr(alert, row))}</code>")

        lines.append(f"└ Time: {format_time(alert.timestamp)}")
        return "\n".join(lines)

    # =========================================================
    # CRITICAL
    # =========================================================

    def _critical(self, body: List[str], candidate: AlertCandidate) -> str:
        """Wrap critical body lines with banner, mentions and time."""
        lines = [self.CRITICAL_BANNER]
        lines.extend(f"@{name}" for name in self._mentions)
        lines.append("")
        lines.extend(body)
        lines.append(f"└ Time: {format_time(candidate.timestamp)}")
        return "\n".join(lines)

    def _render_large_transaction(self, alert: LargeTransactionAlert) -> str:
        context = "VAULT" if alert.is_vault_level else "STRATEGY"
        action = "DEPOSIT" if alert.is_deposit else "WITHDRAWAL"

        body = [
            f"💥 <b>LARGE {context} {action}</b>",
            f"├ Amount: <b>{format_number(alert.amount)}</b>",
            f"├ Percentage: <b>{alert.percentage:.2f}%</b>",
            f"├ Threshold: {format_number(alert.threshold)}%",
        ]
        if alert.user:
            body.append(f"├ User: <code>{short_address(alert.user)}</code>")
        if alert.strategy:
            body.append(f"├ Strategy: <code>{short_address(alert.strategy)}</code>")
        if alert.manager:
            body.append(f"├ Manager: <code>{short_address(alert.manager)}</code>")
        body.append(f"├ Vault: <code>{short_address(alert.vault)}</code>")

        return self._critical(body, alert)

    def _render_strategy_pnl(self, alert: StrategyPnLAlert) -> str:
        direction = "💚 GAIN" if alert.pnl >= 0 else "❤️ LOSS"
        sign = _signed(alert.pnl)

        body = [
            f"📊 <b>STRATEGY SIGNIFICANT PnL {direction}</b>",
            f"├ PnL: <b>{sign}{format_number(alert.pnl)} ({sign}{alert.pnl_percent:.2f}%)</b>",
            f"├ Amount: {format_number(alert.amount)}",
            f"├ PnL Ratio: {_ratio_percent(alert.pnl_to_amount_ratio)}",
            f"├ Threshold: {_ratio_percent(alert.threshold)}",
            f"├ Strategy: <code>{short_address(alert.strategy)}</code>",
            f"├ Vault: <code>{short_address(alert.vault)}</code>",
        ]
        if alert.manager:
            body.append(f"├ Manager: <code>{short_address(alert.manager)}</code>")
        if alert.user:
            body.append(f"├ User: <code>{short_address(alert.user)}</code>")

        return self._critical(body, alert)

    def _render_high_frequency(self, alert: HighFrequencyAlert) -> str:
        window = html.escape(alert.time_window)
        body = [
            "⚡ <b>HIGH FREQUENCY ACTIVITY</b>",
            f"├ Event Type: {html.escape(alert.event_type)}",
            f"├ Rate: <b>{alert.rate} events/{window}</b>",
            f"├ Threshold: {alert.threshold} events/{window}",
            f"├ Vault: <code>{short_address(alert.vault)}</code>",
        ]
        return self._critical(body, alert)

    # =========================================================
    # FALLBACK
    # =========================================================

    def _render_unknown(self, candidate: AlertCandidate) -> str:
        kind = html.escape(candidate.kind.value)
        if candidate.tier == AlertTier.INFO:
            return f"ℹ️ <b>Vault Event</b>\n└ Type: {kind}"
        return self._critical(
            ["🔧 <b>UNKNOWN CRITICAL EVENT</b>", f"├ Type: {kind}"],
            candidate,
        )

    # =========================================================
    # SERVICE MESSAGES
    # =========================================================

    @staticmethod
    def format_startup(bot_token: str, chat_id: str, log_file: str, at: datetime) -> str:
        """Message sent when the service starts."""
        return "\n".join([
            "🧪 <b>Voltr Alert Service Started</b>",
            f"├ Bot Token: ...{html.escape(bot_token[-8:])}",
            f"├ Chat ID: {html.escape(chat_id)}",
            f"├ Log File: {html.escape(log_file)}",
            f"└ Time: {at.strftime(TIME_FORMAT)}",
        ])

    @staticmethod
    def format_connection_test(bot_username: str, chat_id: str, at: datetime) -> str:
        """Message sent by the connection check."""
        return "\n".join([
            "🧪 <b>Test Message from Voltr Alert Service</b>",
            f"├ Bot: @{html.escape(bot_username)}",
            f"├ Chat ID: {html.escape(chat_id)}",
            f"└ Time: {at.strftime(TIME_FORMAT)}",
        ])


# ============================================================
# TELEGRAM NOTIFIER
# ============================================================

class TelegramNotifier:
    """
    Sends notifications to one Telegram chat.

    This is a notification-only client.
    NO control commands are processed.
    """

    def __init__(
        self,
        config: TelegramConfig,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Initialize Telegram notifier.

        Args:
            config: Credentials, endpoint and timeout
            session: Optional pre-built HTTP session
        """
        self._config = config
        self._session = session

        # Metrics
        self._sent = 0
        self._failed = 0

        if not config.is_configured:
            logger.warning(
                "TelegramNotifier NOT configured - check TELEGRAM_BOT_TOKEN and TELEGRAM_CHAT_ID"
            )

    @property
    def is_configured(self) -> bool:
        return self._config.is_configured

    def _url(self, method: str) -> str:
        base = self._config.api_base_url.rstrip("/")
        return f"{base}/bot{self._config.bot_token}/{method}"

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self._config.request_timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def close(self) -> None:
        """Close the notifier."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    # =========================================================
    # SENDING
    # =========================================================

    async def send(self, payload: NotificationPayload) -> bool:
        """
        Deliver a payload to the configured chat.

        Returns True if Telegram accepted the message.
        """
        if not self.is_configured:
            self._failed += 1
            return False

        body = {
            "chat_id": self._config.chat_id,
            "text": payload.text,
            "parse_mode": payload.parse_mode,
            "disable_notification": payload.silent,
        }

        try:
            await self._call("sendMessage", body)
        except DeliveryError as e:
            self._failed += 1
            logger.warning(f"Telegram API error: {e.to_log_format()}")
            return False
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self._failed += 1
            logger.error(f"Failed to send Telegram message: {e!r}")
            return False

        self._sent += 1
        return True

    async def send_text(self, text: str, silent: bool = False) -> bool:
        """Send an already formatted HTML message."""
        return await self.send(NotificationPayload(text=text, silent=silent))

    async def get_me(self) -> Dict[str, Any]:
        """
        Fetch the bot identity.

        Raises:
            DeliveryError: If the API rejects the token
            aiohttp.ClientError: On transport failure
        """
        return await self._call("getMe")

    async def check_connection(self) -> Optional[str]:
        """Return the bot username, or None if the API is unreachable."""
        try:
            me = await self.get_me()
        except DeliveryError as e:
            logger.error(f"Telegram connection check failed: {e.to_log_format()}")
            return None
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Telegram connection check failed: {e!r}")
            return None
        return me.get("username", "")

    async def _call(self, method: str, body: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Call a Bot API method and return its result."""
        session = await self._get_session()
        url = self._url(method)

        if body is None:
            request = session.get(url)
        else:
            request = session.post(url, json=body)

        async with request as response:
            try:
                data = await response.json(content_type=None)
            except ValueError:
                data = None

            if response.status != 200 or not isinstance(data, dict) or not data.get("ok"):
                description = data.get("description") if isinstance(data, dict) else None
                raise DeliveryError(
                    f"Telegram {method} failed",
                    status=response.status,
                    description=description,
                )

        result = data.get("result")
        return result if isinstance(result, dict) else {}

    def stats(self) -> dict:
        return {"sent": self._sent, "failed": self._failed}


__all__ = [
    "short_address",
    "format_number",
    "format_time",
    "TelegramFormatter",
    "TelegramNotifier",
]
