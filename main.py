"""
Main entrypoint: interactive console session with the trading agent.

Env: ENCRYPTION_KEY (64 hex chars, required), USER_DATA_DIR, JUPITER_SEARCH_URL,
COINGECKO_PRICE_URL, GATEWAY_TIMEOUT_SEC, LOG_LEVEL, LOG_FORMAT.

Usage: python main.py [--user ID]
"""

import sys

from tradebot_agent.console import main

if __name__ == "__main__":
    sys.exit(main())
