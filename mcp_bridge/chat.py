"""The chat surface that receives prompts and operator messages."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mcp_bridge.ui.console import Console

logger = logging.getLogger(__name__)


@dataclass
class ChatMessage:
    role: str
    content: str
    source: str | None = None


class ChatSurface:
    """Default interaction surface of the host: an ordered transcript.

    Messages are echoed to the console when one is attached.
    """

    def __init__(self, console: "Console | None" = None):
        self._console = console
        self.messages: list[ChatMessage] = []

    def send(self, content: str, role: str = "user", source: str | None = None) -> ChatMessage:
        message = ChatMessage(role=role, content=content, source=source)
        self.messages.append(message)
        logger.debug("Chat message (%s, %d chars) from %s", role, len(content), source or "operator")
        if self._console:
            title = f"{role} · {source}" if source else role
            self._console.panel(content, title=title)
        return message

    def clear(self) -> None:
        self.messages.clear()

    @property
    def last(self) -> ChatMessage | None:
        return self.messages[-1] if self.messages else None

    def __len__(self) -> int:
        return len(self.messages)
