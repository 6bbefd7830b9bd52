"""UI utilities for mcp-bridge.

Provides Rich-based console output with:
- Semantic styles for success / warning / error messages
- Numbered selection menus for servers, prompts and resources
- A bordered multi-line prompt for the chat session
"""

from mcp_bridge.ui.console import (
    Console,
    SelectionPrompt,
    SessionPrompt,
    console,
    parse_selection,
)

__all__ = [
    "Console",
    "SelectionPrompt",
    "SessionPrompt",
    "console",
    "parse_selection",
]
