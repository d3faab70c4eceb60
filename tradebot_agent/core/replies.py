"""
Reply objects returned by the agent to whatever transport drives it.

menu rows are lists of (label, action) buttons; action is the callback data
that handle_action() parses back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from tradebot_agent.core.exceptions import TradebotError

Button = tuple[str, str]


@dataclass
class Reply:
    text: str
    ok: bool = True
    menu: list[list[Button]] = field(default_factory=list)
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def failure(cls, text: str, **data: Any) -> "Reply":
        return cls(text=f"❌ {text}", ok=False, data=dict(data))

    @classmethod
    def from_error(cls, exc: TradebotError) -> "Reply":
        return cls(
            text=f"❌ {exc.message}",
            ok=False,
            data={"error": exc.code, **exc.details},
        )

    def action_list(self) -> list[str]:
        return [action for row in self.menu for _, action in row]
