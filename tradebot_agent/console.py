"""
Console driver: talk to the agent from a terminal.

Each stdin line is one event: ``/start`` is a command, ``!buy_0.05_<mint>``
is a menu action (the callback data shown next to each button), anything
else is free text. Replies go to stdout, logs to stderr.

Swaps are not wired to a chain here; buys and sells fail with a clear reply.
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from tradebot_agent.agent.bot import TradingAgent
from tradebot_agent.config.env import load_tradebot_env, print_tradebot_startup
from tradebot_agent.config.settings import Settings, get_settings
from tradebot_agent.core.exceptions import ConfigurationError
from tradebot_agent.core.replies import Reply
from tradebot_agent.gateway.jupiter import JupiterGateway
from tradebot_agent.store.record_store import FileRecordStore, normalize_user_id
from tradebot_agent.trading.executor import DisabledExecutor
from tradebot_agent.tradebot_logging import get_logger
from tradebot_agent.vault.codec import VaultCodec

logger = get_logger(__name__)

ACTION_PREFIX = "!"
EXIT_WORDS = ("exit", "quit")


def render(reply: Reply) -> str:
    lines = [reply.text]
    for row in reply.menu:
        lines.append("  " + "   ".join(f"[{label}] {ACTION_PREFIX}{action}" for label, action in row))
    return "\n".join(lines)


async def dispatch(agent: TradingAgent, user_id: str, line: str) -> Reply:
    if line.startswith("/"):
        return await agent.handle_command(user_id, line)
    if line.startswith(ACTION_PREFIX):
        return await agent.handle_action(user_id, line[len(ACTION_PREFIX):])
    return await agent.handle_text(user_id, line)


async def run_console(settings: Settings, user_id: str) -> None:
    codec = VaultCodec(settings.encryption_key, insecure=settings.insecure_key)
    store = FileRecordStore(settings.user_data_dir, codec)
    async with JupiterGateway(
        search_url=settings.jupiter_search_url,
        price_url=settings.coingecko_price_url,
        timeout_sec=settings.gateway_timeout_sec,
    ) as gateway:
        agent = TradingAgent(store, gateway, DisabledExecutor())
        print(render(await agent.handle_command(user_id, "/start")), flush=True)
        while True:
            line = await asyncio.to_thread(sys.stdin.readline)
            if not line:
                break
            line = line.strip()
            if not line:
                continue
            if line.lower() in EXIT_WORDS:
                break
            print(render(await dispatch(agent, user_id, line)), flush=True)
    logger.info("console_stopped", user_id=user_id)


def main(argv: list[str] | None = None) -> int:
    load_tradebot_env()
    parser = argparse.ArgumentParser(description="Chat with the trading agent from the terminal.")
    parser.add_argument("--user", default="console", help="User id whose record to use (default: console)")
    args = parser.parse_args(argv)

    try:
        user_id = normalize_user_id(args.user)
    except ValueError as e:
        parser.error(str(e))

    print_tradebot_startup("console")
    try:
        settings = get_settings()
    except ConfigurationError as e:
        logger.error("console_config_error", error=e.code, message=e.message)
        return 1

    try:
        asyncio.run(run_console(settings, user_id))
    except KeyboardInterrupt:
        logger.info("console_interrupted", user_id=user_id)
    return 0


if __name__ == "__main__":
    sys.exit(main())
