"""
Orchestrator Package - Service Runtime Layer.

============================================================
PACKAGE OVERVIEW
============================================================
Single entrypoint that controls startup, shutdown and the
run mode of the vault alert service.

============================================================
CORE PRINCIPLES
============================================================
1. The orchestrator has NO alerting logic
2. It ONLY wires components and manages their lifecycle
3. Missing inputs at startup are fatal; later failures are not

============================================================
ARCHITECTURE
============================================================

    +-----------------------------------------------------+
    |                  VaultAlertService                  |
    |-----------------------------------------------------|
    |  LogFollower          |  PM2 log -> lines           |
    |  AlertEngine          |  lines -> alerts            |
    |  MaintenanceScheduler |  pruning + heartbeat        |
    |  TelegramNotifier     |  alerts -> chat             |
    |  CLI                  |  argparse entrypoint        |
    +-----------------------------------------------------+

============================================================
"""

__version__ = "1.0.0"

from .core import setup_logging, install_signal_handlers, restore_signal_handlers
from .service import VaultAlertService
from .cli import create_parser, validate_args, build_config, main


__all__ = [
    "__version__",
    "setup_logging",
    "install_signal_handlers",
    "restore_signal_handlers",
    "VaultAlertService",
    "create_parser",
    "validate_args",
    "build_config",
    "main",
]
