"""Host-side registries: the category-keyed tool registry and the context store.

Both are owned objects passed to whoever needs them.  Every mutation
happens under a lock so that readers of the flat tool list (e.g. tool
dispatch) never observe a half-applied change.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable

from mcp_bridge.mcp.base import Category, ToolCapability

logger = logging.getLogger(__name__)

ToolBinding = Callable[[dict], Any]


@dataclass
class RegisteredTool:
    """A tool the host can dispatch, plus how to invoke it."""

    category: Category
    tool: ToolCapability
    binding: ToolBinding

    @property
    def name(self) -> str:
        return self.tool.name


@dataclass
class ContextEntry:
    """Something attached to the chat context (e.g. an MCP resource)."""

    key: str
    kind: str
    metadata: dict[str, Any] = field(default_factory=dict)


class ToolRegistry:
    """Category -> tools mapping exposed to the host.

    A tool is present iff it was registered and its category has not been
    unregistered since.  Registering the same ``(category, name)`` twice
    replaces the binding rather than adding a duplicate.
    """

    def __init__(self):
        self._categories: dict[Category, dict[str, RegisteredTool]] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------ #
    # Mutation
    # ------------------------------------------------------------------ #

    def register_tool(self, category: Category, tool: ToolCapability, binding: ToolBinding) -> None:
        with self._lock:
            tools = self._categories.setdefault(category, {})
            tools[tool.name] = RegisteredTool(category=category, tool=tool, binding=binding)
        logger.debug("Registered tool '%s' under %s", tool.name, category)

    def unregister_category(self, category: Category) -> int:
        """Drop a whole category.  Returns the number of tools removed."""
        with self._lock:
            removed = self._categories.pop(category, None)
        count = len(removed) if removed else 0
        logger.debug("Unregistered %s (%d tools)", category, count)
        return count

    # ------------------------------------------------------------------ #
    # Queries (snapshots)
    # ------------------------------------------------------------------ #

    def list_categories(self) -> list[Category]:
        with self._lock:
            return list(self._categories)

    def registered_sources(self) -> set[str]:
        """Sources with at least one category in the registry."""
        with self._lock:
            return {category.source for category in self._categories}

    def tools_in(self, category: Category) -> list[RegisteredTool]:
        with self._lock:
            return list(self._categories.get(category, {}).values())

    def list_tools(self) -> list[RegisteredTool]:
        """Flat list of every registered tool."""
        with self._lock:
            return [tool for tools in self._categories.values() for tool in tools.values()]

    def snapshot(self) -> dict[Category, list[str]]:
        """Category -> sorted tool names, for comparisons and display."""
        with self._lock:
            return {category: sorted(tools) for category, tools in self._categories.items()}

    def find(self, tool_name: str, source: str | None = None) -> RegisteredTool | None:
        """Look a tool up by name, optionally restricted to one source."""
        with self._lock:
            for category, tools in self._categories.items():
                if source is not None and category.source != source:
                    continue
                if tool_name in tools:
                    return tools[tool_name]
        return None

    def __len__(self) -> int:
        with self._lock:
            return sum(len(tools) for tools in self._categories.values())

    def __contains__(self, category: Category) -> bool:
        with self._lock:
            return category in self._categories


class ContextStore:
    """Ordered chat-context entries, deduplicated by key."""

    def __init__(self):
        self._entries: dict[str, ContextEntry] = {}
        self._lock = threading.Lock()

    def add(self, key: str, kind: str, metadata: dict | None = None) -> bool:
        """Insert an entry.  Returns False when *key* is already present."""
        with self._lock:
            if key in self._entries:
                return False
            self._entries[key] = ContextEntry(key=key, kind=kind, metadata=dict(metadata or {}))
        logger.debug("Context entry added: %s", key)
        return True

    def remove(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def get(self, key: str) -> ContextEntry | None:
        with self._lock:
            return self._entries.get(key)

    def entries(self, kind: str | None = None) -> list[ContextEntry]:
        with self._lock:
            return [e for e in self._entries.values() if kind is None or e.kind == kind]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries
