"""
Agent package — the dispatcher a chat transport drives, plus the callback
grammar and reply rendering it uses.
"""

from tradebot_agent.agent.actions import Action, ActionKind, parse_action
from tradebot_agent.agent.bot import TradingAgent
from tradebot_agent.core.replies import Reply

__all__ = ["Action", "ActionKind", "Reply", "TradingAgent", "parse_action"]
