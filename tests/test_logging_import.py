"""
Test that tradebot_logging can be imported without circular import and logger works.
"""

from __future__ import annotations


def test_logging_import():
    """Import get_logger from tradebot_logging and use the logger."""
    from tradebot_agent.tradebot_logging import bind_user, get_logger

    logger = get_logger("test")
    assert logger is not None
    assert hasattr(logger, "info")
    assert hasattr(logger, "warning")
    assert hasattr(logger, "error")
    logger.info("test_message", key="value")
    bind_user("42").info("test_user_message")


def test_package_imports():
    """Every subpackage imports cleanly (store <-> conversation ordering included)."""
    import tradebot_agent.agent
    import tradebot_agent.conversation.machine
    import tradebot_agent.store

    assert tradebot_agent.agent.TradingAgent is not None


def test_secret_fields_are_masked():
    from tradebot_agent.tradebot_logging.logger import REDACTED, _redact_secrets

    event = _redact_secrets(None, "info", {"event": "wallet_imported", "private_key": "abc", "user_id": "1"})
    assert event["private_key"] == REDACTED
    assert event["user_id"] == "1"
