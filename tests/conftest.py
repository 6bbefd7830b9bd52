"""Shared test fixtures for mcp_bridge tests."""

from unittest.mock import MagicMock

import pytest

from mcp_bridge.chat import ChatSurface
from mcp_bridge.mcp.base import (
    CapabilitySourceProvider,
    PromptCapability,
    ResourceCapability,
    SourceStatus,
    ToolCapability,
)
from mcp_bridge.mcp.reconciler import RegistryReconciler


# ------------------------------------------------------------------
# In-process provider (no hub, no servers)
# ------------------------------------------------------------------


class FakeProvider(CapabilitySourceProvider):
    """Provider whose servers live in a dict.

    ``start_sources`` flips each server to ``connected`` (or ``error``
    when added with ``start_ok=False``).  With ``defer_start`` set, the
    completion callbacks are parked in ``pending`` until the test calls
    :meth:`finish_starts`.
    """

    name = "fake"

    def __init__(self, settings=None):
        super().__init__(settings)
        self.servers: dict[str, dict] = {}
        self.start_calls: list[list[str]] = []
        self.stop_calls: list[str] = []
        self.prompt_calls: list[tuple] = []
        self.resource_calls: list[tuple] = []
        self.tool_calls: list[tuple] = []
        self.prompt_payloads: dict[tuple, object] = {}
        self.resource_payloads: dict[tuple, object] = {}
        self.defer_start = False
        self.pending: list = []
        self.closed = False

    def add_server(self, name, status="disconnected", tools=(), prompts=(), resources=(), start_ok=True):
        self.servers[name] = {
            "status": status,
            "tools": list(tools),
            "prompts": list(prompts),
            "resources": list(resources),
            "start_ok": start_ok,
        }
        return self

    def set_status(self, name, status):
        self.servers[name]["status"] = status

    def finish_starts(self):
        pending, self.pending = self.pending, []
        for callback in pending:
            callback()

    # -- contract --------------------------------------------------------

    def list_sources(self):
        return list(self.servers)

    def get_status(self, source):
        if source not in self.servers:
            return SourceStatus.DISCONNECTED
        return SourceStatus(self.servers[source]["status"])

    def start_sources(self, sources, on_complete):
        self.start_calls.append(list(sources))
        for name in sources:
            server = self.servers[name]
            server["status"] = "connected" if server["start_ok"] else "error"
        if self.defer_start:
            self.pending.append(on_complete)
        else:
            on_complete()

    def stop_source(self, source):
        self.stop_calls.append(source)
        self.servers[source]["status"] = "disconnected"

    def list_tools(self, source):
        return [ToolCapability(source=source, name=t, description=f"{t} tool") for t in self.servers[source]["tools"]]

    def list_prompts(self, source):
        return [
            PromptCapability(source=source, name=p, description=f"{p} prompt")
            for p in self.servers[source]["prompts"]
        ]

    def list_resources(self, source):
        return [
            ResourceCapability(source=source, uri=uri, name=uri.rsplit("/", 1)[-1], description="")
            for uri in self.servers[source]["resources"]
        ]

    def get_prompt(self, source, name, arguments=None):
        self.prompt_calls.append((source, name, arguments))
        default = {"messages": [{"role": "user", "content": {"type": "text", "text": f"Run {name}"}}]}
        return self.prompt_payloads.get((source, name), default)

    def read_resource(self, source, uri):
        self.resource_calls.append((source, uri))
        default = {"contents": [{"uri": uri, "text": f"content of {uri}"}]}
        return self.resource_payloads.get((source, uri), default)

    def call_tool(self, source, name, arguments):
        self.tool_calls.append((source, name, arguments))
        return {"content": [{"type": "text", "text": f"{source}:{name}"}]}

    def close(self):
        self.closed = True


# ------------------------------------------------------------------
# Fixtures
# ------------------------------------------------------------------


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def mock_console():
    return MagicMock()


@pytest.fixture
def selector():
    """Selection prompt stand-in; configure return values per test."""
    sel = MagicMock()
    sel.choose_many.side_effect = lambda title, options, **kw: list(options)
    sel.confirm.return_value = False
    sel.ask.return_value = ""
    return sel


@pytest.fixture
def chat():
    return ChatSurface()


@pytest.fixture
def reconciler(provider, mock_console, selector, chat):
    return RegistryReconciler(provider, chat=chat, console=mock_console, selector=selector)


@pytest.fixture
def two_servers(provider):
    """A (disconnected, one tool) and B (connected, two tools)."""
    provider.add_server("A", "disconnected", tools=["a1"], prompts=["pa"], resources=["file:///a.txt"])
    provider.add_server("B", "connected", tools=["b1", "b2"], prompts=["pb"], resources=["file:///b.txt"])
    return provider
