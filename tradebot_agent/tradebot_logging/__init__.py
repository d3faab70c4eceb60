"""
Structured logging for the tradebot agent.

JSON events on stderr with timestamp, level, event_type and logger name.
"""

from tradebot_agent.tradebot_logging.logger import bind_user, configure_logging, get_logger

__all__ = ["bind_user", "configure_logging", "get_logger"]
