"""
Orchestrator - CLI.

============================================================
RESPONSIBILITY
============================================================
Command-line interface for the vault alert service.

- Provides argparse-based CLI
- Loads configuration from the environment, then CLI overrides
- Live mode, one-shot replay, or a Telegram connection check
- Entry point for the application

============================================================
USAGE
============================================================
python -m orchestrator.cli
python -m orchestrator.cli --log-file ./voltr-vault-out.log --log-format json
python -m orchestrator.cli --replay ./voltr-vault-out.log
python -m orchestrator.cli --check-telegram

============================================================
"""

import argparse
import asyncio
import logging
import os
import sys
from datetime import datetime, timezone
from typing import List, Optional

from core.exceptions import AlertServiceException, ConfigurationError
from monitoring.config import AlertServiceConfig, load_config
from monitoring.notifications.telegram import TelegramFormatter, TelegramNotifier

from . import __version__
from .core import setup_logging
from .service import VaultAlertService


logger = logging.getLogger(__name__)


# ============================================================
# CLI ARGUMENT PARSER
# ============================================================

def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="voltr-alert-service",
        description="Real-time Telegram alerts for Voltr vault events",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Modes:
  (default)         Follow the PM2 log and alert until stopped
  --replay FILE     Run an existing log through the engine once and exit
  --check-telegram  Verify the bot token and send a test message

Examples:
  %(prog)s                                   # Live, default log file
  %(prog)s --log-file ./voltr-vault-out.log  # Live, custom log file
  %(prog)s --replay ./voltr-vault-out.log    # Backfill alerts from a log
        """
    )

    # --------------------------------------------------------
    # Source Options
    # --------------------------------------------------------
    source_group = parser.add_argument_group("Source Options")

    source_group.add_argument(
        "--log-file",
        type=str,
        metavar="PATH",
        help="PM2 log file to follow (default: VAULT_LOG_FILE or the PM2 default)",
    )

    source_group.add_argument(
        "--env-file",
        type=str,
        metavar="PATH",
        help="Load environment variables from this file instead of ./.env",
    )

    # --------------------------------------------------------
    # Mode Options
    # --------------------------------------------------------
    mode_group = parser.add_argument_group("Mode Options")
    exclusive = mode_group.add_mutually_exclusive_group()

    exclusive.add_argument(
        "--replay",
        type=str,
        metavar="FILE",
        help="Process an existing log file once, wait for deliveries and exit",
    )

    exclusive.add_argument(
        "--check-telegram",
        action="store_true",
        help="Check the Telegram bot connection, send a test message and exit",
    )

    mode_group.add_argument(
        "--no-startup-message",
        action="store_true",
        help="Do not post the startup notice to Telegram",
    )

    # --------------------------------------------------------
    # Logging Options
    # --------------------------------------------------------
    logging_group = parser.add_argument_group("Logging Options")

    logging_group.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="INFO",
        help="Logging level (default: INFO)",
    )

    logging_group.add_argument(
        "--log-format",
        type=str,
        choices=["json", "text"],
        default="text",
        help="Logging format (default: text)",
    )

    # --------------------------------------------------------
    # Version/Info
    # --------------------------------------------------------
    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser


# ============================================================
# CLI VALIDATION
# ============================================================

def validate_args(args: argparse.Namespace) -> List[str]:
    """
    Validate CLI arguments.

    Returns:
        List of validation errors
    """
    errors = []

    if args.replay is not None and not os.path.isfile(args.replay):
        errors.append(f"--replay file not found: {args.replay}")

    if args.env_file is not None and not os.path.isfile(args.env_file):
        errors.append(f"--env-file not found: {args.env_file}")

    if args.log_file is not None and not args.log_file.strip():
        errors.append("--log-file must not be empty")

    return errors


# ============================================================
# CLI CONFIGURATION BUILDER
# ============================================================

def build_config(args: argparse.Namespace) -> AlertServiceConfig:
    """
    Build service configuration from environment and CLI.

    Raises:
        ConfigurationError: If an environment value is invalid
    """
    config = load_config(args.env_file)

    if args.log_file:
        config.ingestion.log_file = args.log_file

    return config


# ============================================================
# TELEGRAM CHECK
# ============================================================

async def check_telegram(config: AlertServiceConfig) -> int:
    """
    Verify the bot token and send a silent test message.

    Returns:
        Exit code
    """
    notifier = TelegramNotifier(config.telegram)
    try:
        print("Testing Telegram connection...")
        username = await notifier.check_connection()
        if username is None:
            print("❌ Telegram test failed", file=sys.stderr)
            return 1
        print(f"✅ Bot connection successful: {username}")

        text = TelegramFormatter.format_connection_test(
            bot_username=username,
            chat_id=config.telegram.chat_id,
            at=datetime.now(timezone.utc),
        )
        if not await notifier.send_text(text, silent=True):
            print("❌ Failed to send test message", file=sys.stderr)
            return 1
        print("✅ Test message sent successfully")
        return 0
    finally:
        await notifier.close()


# ============================================================
# MAIN ENTRY POINT
# ============================================================

async def async_main(args: argparse.Namespace, config: AlertServiceConfig) -> int:
    """
    Async main entry point.

    Returns:
        Exit code
    """
    if args.check_telegram:
        return await check_telegram(config)

    service = VaultAlertService(
        config,
        send_startup_message=not (args.no_startup_message or args.replay),
    )

    try:
        if args.replay:
            await service.replay(args.replay)
        else:
            await service.run_forever()
        return 0

    except AlertServiceException as e:
        logger.critical(f"Fatal error: {e.to_log_format()}")
        return 1
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return 1
    finally:
        await service.stop()


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Args:
        argv: Command line arguments (default: sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    errors = validate_args(args)
    if errors:
        for error in errors:
            print(f"Error: {error}", file=sys.stderr)
        return 1

    setup_logging(args.log_level, args.log_format)

    try:
        config = build_config(args)
    except ConfigurationError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    # Replay may run without credentials; alerts are then only logged
    config_errors = config.validate(require_telegram=not args.replay)
    if config_errors:
        for error in config_errors:
            print(f"Error: {error}", file=sys.stderr)
        return 1

    print_banner(args, config)

    try:
        return asyncio.run(async_main(args, config))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130


def print_banner(args: argparse.Namespace, config: AlertServiceConfig) -> None:
    """Print startup banner."""
    if args.check_telegram:
        mode = "check-telegram"
    elif args.replay:
        mode = "replay"
    else:
        mode = "live"

    print()
    print("=" * 60)
    print("  VOLTR VAULT ALERT SERVICE")
    print("=" * 60)
    print(f"  Mode:       {mode}")
    print(f"  Log File:   {args.replay or config.ingestion.log_file}")
    print(f"  Service:    {config.ingestion.expected_service}")
    print(f"  Log Level:  {args.log_level}")
    print("=" * 60)
    print()


# ============================================================
# MODULE EXECUTION
# ============================================================

if __name__ == "__main__":
    sys.exit(main())
