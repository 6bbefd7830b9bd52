"""Capability source provider backed by a local MCP hub service.

The hub owns the MCP server processes and speaks the MCP protocol to
them.  This provider is a thin JSON-over-HTTP client for the hub's REST
API, so the bridge never deals with transports or server processes.

Config example (mcp-bridge.yaml):
    hub:
      url: "http://localhost:37373"
      timeout: 10
"""

from __future__ import annotations

import threading
from typing import Any, Callable
from urllib.parse import quote

import requests

from mcp_bridge.errors import ProviderError
from mcp_bridge.mcp.base import (
    CapabilitySourceProvider,
    PromptCapability,
    ResourceCapability,
    SourceStatus,
    ToolCapability,
)

DEFAULT_HUB_URL = "http://localhost:37373"
DEFAULT_TIMEOUT = 10


class HubSourceProvider(CapabilitySourceProvider):
    """Provider that talks to an MCP hub over HTTP.

    ``start_sources`` and ``stop_source`` run on daemon threads so the
    interactive session never waits on a server coming up.
    """

    name = "hub"

    def __init__(self, settings: dict | None = None, session: requests.Session | None = None):
        super().__init__(settings)
        self.base_url = str(self.settings.get("url") or DEFAULT_HUB_URL).rstrip("/")
        self.timeout = self.settings.get("timeout") or DEFAULT_TIMEOUT
        self._session = session or requests.Session()
        self._session.headers.update({
            "Content-Type": "application/json",
            "Accept": "application/json",
        })
        self._lock = threading.Lock()
        self._workers: list[threading.Thread] = []

    # ------------------------------------------------------------------ #
    # Servers
    # ------------------------------------------------------------------ #

    def _servers(self) -> list[dict]:
        data = self._request("GET", "/api/servers")
        servers = data.get("servers", []) if isinstance(data, dict) else data
        if not isinstance(servers, list):
            raise ProviderError(f"Unexpected server listing from hub: {data!r}")
        return [s for s in servers if isinstance(s, dict) and s.get("name")]

    def list_sources(self) -> list[str]:
        return [s["name"] for s in self._servers()]

    def get_status(self, source: str) -> SourceStatus:
        for server in self._servers():
            if server["name"] == source:
                return SourceStatus.parse(server.get("status", SourceStatus.DISCONNECTED.value))
        return SourceStatus.DISCONNECTED

    def start_sources(self, sources: list[str], on_complete: Callable[[], None]) -> None:
        names = list(sources)

        def worker():
            try:
                for name in names:
                    try:
                        self._request("POST", "/api/servers/start", json={"server_name": name})
                        self.logger.info("Started MCP server '%s'", name)
                    except ProviderError as exc:
                        self.logger.warning("Failed to start MCP server '%s': %s", name, exc)
            finally:
                on_complete()

        self._spawn(worker, "mcp-hub-start")

    def stop_source(self, source: str) -> None:
        def worker():
            try:
                self._request("POST", "/api/servers/stop", json={"server_name": source})
                self.logger.info("Stopped MCP server '%s'", source)
            except ProviderError as exc:
                self.logger.warning("Failed to stop MCP server '%s': %s", source, exc)

        self._spawn(worker, "mcp-hub-stop")

    # ------------------------------------------------------------------ #
    # Capabilities
    # ------------------------------------------------------------------ #

    def list_tools(self, source: str) -> list[ToolCapability]:
        data = self._request("GET", self._server_path(source, "tools"))
        return [
            ToolCapability(
                source=source,
                name=t["name"],
                description=t.get("description", ""),
                input_schema=t.get("inputSchema", {}),
            )
            for t in _items(data, "tools") if t.get("name")
        ]

    def list_prompts(self, source: str) -> list[PromptCapability]:
        data = self._request("GET", self._server_path(source, "prompts"))
        return [
            PromptCapability(
                source=source,
                name=p["name"],
                description=p.get("description", ""),
                arguments=p.get("arguments", []) or [],
            )
            for p in _items(data, "prompts") if p.get("name")
        ]

    def list_resources(self, source: str) -> list[ResourceCapability]:
        data = self._request("GET", self._server_path(source, "resources"))
        return [
            ResourceCapability(
                source=source,
                uri=r["uri"],
                name=r.get("name", ""),
                description=r.get("description", ""),
                mime_type=r.get("mimeType", ""),
            )
            for r in _items(data, "resources") if r.get("uri")
        ]

    def get_prompt(self, source: str, name: str, arguments: dict | None = None) -> Any:
        return self._request(
            "POST",
            self._server_path(source, "prompts/get"),
            json={"prompt_name": name, "arguments": arguments or {}},
        )

    def read_resource(self, source: str, uri: str) -> Any:
        return self._request("POST", self._server_path(source, "resources/read"), json={"uri": uri})

    def call_tool(self, source: str, name: str, arguments: dict) -> Any:
        return self._request(
            "POST",
            self._server_path(source, "tools/call"),
            json={"tool_name": name, "arguments": arguments or {}},
        )

    def close(self, wait: float = 5.0) -> None:
        """Give pending start/stop requests *wait* seconds, then close the session."""
        for thread in list(self._workers):
            thread.join(timeout=wait)
        self._workers = [t for t in self._workers if t.is_alive()]
        self._session.close()

    # ------------------------------------------------------------------ #
    # Internal
    # ------------------------------------------------------------------ #

    def _spawn(self, target: Callable[[], None], name: str) -> threading.Thread:
        self._workers = [t for t in self._workers if t.is_alive()]
        thread = threading.Thread(target=target, name=name, daemon=True)
        self._workers.append(thread)
        thread.start()
        return thread

    @staticmethod
    def _server_path(source: str, suffix: str) -> str:
        return f"/api/servers/{quote(source, safe='')}/{suffix}"

    def _request(self, method: str, path: str, json: dict | None = None) -> Any:
        """Send one request to the hub and return its decoded JSON body.

        Raises ProviderError on transport errors, HTTP errors, invalid
        JSON, or a hub-level ``{"error": ...}`` response.
        """
        url = f"{self.base_url}{path}"
        # requests.Session is not documented as thread-safe
        with self._lock:
            try:
                resp = self._session.request(method, url, json=json, timeout=self.timeout)
            except requests.RequestException as exc:
                raise ProviderError(f"MCP hub request failed ({method} {path}): {exc}") from exc

        if resp.status_code >= 400:
            raise ProviderError(f"MCP hub returned HTTP {resp.status_code} for {method} {path}: {resp.text[:200]}")

        if not resp.content:
            return {}

        try:
            data = resp.json()
        except ValueError as exc:
            raise ProviderError(f"MCP hub returned invalid JSON for {method} {path}") from exc

        if isinstance(data, dict) and data.get("error"):
            error = data["error"]
            message = error.get("message", str(error)) if isinstance(error, dict) else str(error)
            raise ProviderError(f"MCP hub error for {method} {path}: {message}")

        self.logger.debug("%s %s -> %s", method, path, resp.status_code)
        return data


def _items(data: Any, key: str) -> list[dict]:
    """Accept either ``{"<key>": [...]}`` or a bare list."""
    items = data.get(key, []) if isinstance(data, dict) else data
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, dict)]
