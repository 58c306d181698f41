#!/usr/bin/env python3
"""
Voltr Vault Alert Service - Main Application Entry Point.

============================================================
SINGLE ENTRYPOINT
============================================================
- Compatible with PM2 process management
- Can be started, stopped, and restarted safely
- Handles SIGINT/SIGTERM gracefully

============================================================
USAGE
============================================================
Direct execution:
    python app.py

With PM2:
    pm2 start app.py --interpreter python --name voltr-alerts

Environment (or .env):
    TELEGRAM_BOT_TOKEN, TELEGRAM_CHAT_ID,
    TELEGRAM_USERNAME_A, TELEGRAM_USERNAME_B,
    VAULT_LOG_FILE

============================================================
PM2 ECOSYSTEM CONFIG (ecosystem.config.js)
============================================================
module.exports = {
    apps: [{
        name: 'voltr-alerts',
        script: 'app.py',
        interpreter: 'python',
        autorestart: true,
        max_restarts: 10,
        min_uptime: '10s',
        restart_delay: 4000,
        watch: false,
    }]
};

============================================================
"""

import sys

from orchestrator.cli import main


if __name__ == "__main__":
    sys.exit(main())
