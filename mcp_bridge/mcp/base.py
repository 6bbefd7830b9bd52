"""Capability data model and the provider contract.

A *source* is a named MCP server.  Each source advertises three kinds of
capability: tools, prompts and resources.  The bridge never talks the MCP
protocol itself; it queries a :class:`CapabilitySourceProvider`, which is
responsible for transport, server processes and protocol framing.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

DEFAULT_CATEGORY_PREFIX = "mcp-"


# -------------------------------------------------------------------- #
# Data model
# -------------------------------------------------------------------- #


class SourceStatus(str, Enum):
    """Connection status of an MCP server as reported by the provider."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"

    @classmethod
    def parse(cls, value: Any) -> "SourceStatus":
        """Map a provider status string onto the enum (unknown -> ERROR)."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.ERROR


@dataclass(frozen=True)
class Category:
    """Registry key identifying the source a tool came from.

    The owning source is a field, not something parsed back out of the
    tag, so two sources can never collide through naming.
    """

    source: str
    prefix: str = DEFAULT_CATEGORY_PREFIX

    @property
    def tag(self) -> str:
        """Display form used in tool listings (``mcp-<source>``)."""
        return f"{self.prefix}{self.source}"

    def __str__(self) -> str:
        return self.tag


@dataclass
class ToolCapability:
    """A tool advertised by a source."""

    source: str
    name: str
    description: str = ""
    input_schema: dict = field(default_factory=dict)

    def category(self, prefix: str = DEFAULT_CATEGORY_PREFIX) -> Category:
        return Category(self.source, prefix)


@dataclass
class PromptCapability:
    """A prompt template advertised by a source."""

    source: str
    name: str
    description: str = ""
    arguments: list[dict] = field(default_factory=list)

    @property
    def qualified_name(self) -> str:
        return f"{self.source}/{self.name}"


@dataclass
class ResourceCapability:
    """A readable resource advertised by a source."""

    source: str
    uri: str
    name: str = ""
    description: str = ""
    mime_type: str = ""

    @property
    def qualified_name(self) -> str:
        return f"{self.source}/{self.name or self.uri}"


# -------------------------------------------------------------------- #
# Abstract contract
# -------------------------------------------------------------------- #


class CapabilitySourceProvider(ABC):
    """Contract for whatever owns the MCP servers.

    Implementations are responsible for:
    - Knowing which servers exist (static configuration)
    - Starting and stopping them
    - Speaking the MCP protocol and translating responses into the
      capability dataclasses above

    ``list_tools``, ``list_prompts`` and ``list_resources`` are only
    meaningful while the server reports ``connected``.  Query methods
    raise :class:`mcp_bridge.errors.ProviderError` on failure.
    """

    name: str = ""

    def __init__(self, settings: dict | None = None):
        self.settings = settings or {}
        self.logger = logging.getLogger(f"mcp.provider.{self.name or type(self).__name__}")

    # ------------------------------------------------------------------ #
    # Abstract methods -- providers MUST implement
    # ------------------------------------------------------------------ #

    @abstractmethod
    def list_sources(self) -> list[str]:
        """Names of every configured server."""

    @abstractmethod
    def get_status(self, source: str) -> SourceStatus:
        """Current connection status of *source*."""

    @abstractmethod
    def start_sources(self, sources: list[str], on_complete: Callable[[], None]) -> None:
        """Start *sources* asynchronously.

        Must call *on_complete* once after every start has been attempted,
        whether or not each one succeeded.
        """

    @abstractmethod
    def stop_source(self, source: str) -> None:
        """Request that *source* be stopped.  Fire-and-forget."""

    @abstractmethod
    def list_tools(self, source: str) -> list[ToolCapability]:
        """Tools currently advertised by *source*."""

    @abstractmethod
    def list_prompts(self, source: str) -> list[PromptCapability]:
        """Prompts currently advertised by *source*."""

    @abstractmethod
    def list_resources(self, source: str) -> list[ResourceCapability]:
        """Resources currently advertised by *source*."""

    @abstractmethod
    def get_prompt(self, source: str, name: str, arguments: dict | None = None) -> Any:
        """Render a prompt.  Returns the raw MCP payload."""

    @abstractmethod
    def read_resource(self, source: str, uri: str) -> Any:
        """Read a resource.  Returns the raw MCP payload."""

    @abstractmethod
    def call_tool(self, source: str, name: str, arguments: dict) -> Any:
        """Invoke a tool.  Returns the raw MCP payload."""

    # ------------------------------------------------------------------ #
    # Optional overrides
    # ------------------------------------------------------------------ #

    def close(self) -> None:
        """Release provider resources.  Safe to call multiple times."""

    # ------------------------------------------------------------------ #
    # Provided by base
    # ------------------------------------------------------------------ #

    def active_sources(self) -> list[str]:
        """Servers that are connected or on their way there."""
        return [
            name for name in self.list_sources()
            if self.get_status(name) in (SourceStatus.CONNECTED, SourceStatus.CONNECTING)
        ]
