"""Registry reconciler -- keeps the host registry in step with MCP servers.

The reconciler is the primary interface for the rest of the bridge.  It
provides:

- connect: start servers that are not yet registered and register their tools
- disconnect: drop whole tool categories and optionally stop their servers
- refresh: re-read prompt and resource listings from connected servers
- prompt / resource dispatch into the chat surface and context store

Callers are expected to issue one connect/disconnect at a time; that is
assumed, not enforced.  The registry itself serialises its own writes.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Any, Callable, TYPE_CHECKING

from mcp_bridge.errors import (
    ConfigurationError,
    DisconnectedAtUse,
    EmptyResult,
    PartialStartFailure,
    ProviderError,
    UnknownCapability,
)
from mcp_bridge.mcp.base import (
    DEFAULT_CATEGORY_PREFIX,
    CapabilitySourceProvider,
    Category,
    PromptCapability,
    ResourceCapability,
    SourceStatus,
    ToolCapability,
)
from mcp_bridge.mcp.cache import KnownCapabilitiesCache
from mcp_bridge.mcp.content import extract_text
from mcp_bridge.mcp.registry import ContextStore, ToolRegistry

if TYPE_CHECKING:
    from mcp_bridge.chat import ChatSurface
    from mcp_bridge.ui.console import Console, SelectionPrompt

logger = logging.getLogger(__name__)

RESOURCE_CONTEXT_KIND = "mcp_resource"
RESOURCE_KEY_SCHEME = "mcp"


def resource_context_key(source: str, uri: str) -> str:
    """Synthetic context key for a resource (``mcp://<source>/<uri>``)."""
    return f"{RESOURCE_KEY_SCHEME}://{source}/{uri}"


# -------------------------------------------------------------------- #
# Results
# -------------------------------------------------------------------- #


@dataclass
class ConnectSummary:
    """Outcome of a connect operation."""

    sources: list[str] = field(default_factory=list)  # sources whose tools were registered
    tools_added: int = 0
    started: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    attempted: int = 0  # sources that needed a start request
    cancelled: bool = False
    error: str = ""
    messages: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.error and not self.failed


@dataclass
class DisconnectSummary:
    """Outcome of a disconnect operation."""

    removed: dict[str, int] = field(default_factory=dict)  # source -> tools removed
    stopped: list[str] = field(default_factory=list)
    cancelled: bool = False
    messages: list[str] = field(default_factory=list)

    @property
    def tools_removed(self) -> int:
        return sum(self.removed.values())


@dataclass
class ToolCallResult:
    """Result of dispatching a registered tool."""

    content: str
    is_error: bool = False
    error_message: str = ""
    raw: Any = None


class _OneShot:
    """Wrap a continuation so that only the first call runs it."""

    def __init__(self, fn: Callable[..., Any], label: str):
        self._fn = fn
        self._label = label
        self._fired = False
        self._lock = threading.Lock()

    def __call__(self, *args: Any, **kwargs: Any) -> None:
        with self._lock:
            if self._fired:
                logger.warning("Ignoring repeated completion for %s", self._label)
                return
            self._fired = True
        self._fn(*args, **kwargs)


# -------------------------------------------------------------------- #
# Reconciler
# -------------------------------------------------------------------- #


class RegistryReconciler:
    """Reconciles the host registry with the provider's MCP servers."""

    def __init__(
        self,
        provider: CapabilitySourceProvider,
        registry: ToolRegistry | None = None,
        cache: KnownCapabilitiesCache | None = None,
        context: ContextStore | None = None,
        chat: "ChatSurface | None" = None,
        console: "Console | None" = None,
        selector: "SelectionPrompt | None" = None,
        category_prefix: str = DEFAULT_CATEGORY_PREFIX,
    ):
        if console is None:
            from mcp_bridge.ui.console import console as default_console
            console = default_console
        if chat is None:
            from mcp_bridge.chat import ChatSurface
            chat = ChatSurface(console)

        self.provider = provider
        self.registry = registry if registry is not None else ToolRegistry()
        self.cache = cache if cache is not None else KnownCapabilitiesCache()
        self.context = context if context is not None else ContextStore()
        self.chat = chat
        self._console = console
        self._selector = selector
        self._prefix = category_prefix

    # ------------------------------------------------------------------ #
    # Connect
    # ------------------------------------------------------------------ #

    def connect(
        self,
        requested: list[str] | None = None,
        interactive: bool = False,
        on_complete: Callable[[ConnectSummary], None] | None = None,
    ) -> "Future[ConnectSummary]":
        """Register tools from servers that are not registered yet.

        Servers that are not connected are started first; registration
        continues once the provider reports that starting has finished.
        The returned future resolves, and *on_complete* runs, exactly
        once with the summary -- even on partial failure.

        Raises:
            ConfigurationError: if no MCP servers are configured at all.
        """
        future: Future[ConnectSummary] = Future()

        def finish(summary: ConnectSummary) -> None:
            future.set_result(summary)
            if on_complete is not None:
                on_complete(summary)

        done = _OneShot(finish, "connect")

        try:
            known = self.provider.list_sources()
        except Exception as exc:
            logger.warning("Could not list MCP servers: %s", exc)
            self._console.print_error(f"Could not list MCP servers: {exc}")
            done(ConnectSummary(error=str(exc), messages=[f"Could not list MCP servers: {exc}"]))
            return future

        if not known:
            raise ConfigurationError("No MCP servers are configured.")

        targets = self._resolve(requested, known)
        if not targets:
            message = f"No known MCP server matches: {', '.join(requested or [])}"
            self._console.print_warning(message)
            done(ConnectSummary(messages=[message]))
            return future

        registered = self.registry.registered_sources()
        unregistered = [name for name in targets if name not in registered]

        if not unregistered:
            self.refresh_prompts_and_resources(known)
            message = "All requested MCP servers are already registered; no new tools added."
            self._console.print_info(message)
            done(ConnectSummary(messages=[message]))
            return future

        working = unregistered
        if interactive:
            working = self._get_selector().choose_many("Connect MCP servers", unregistered)
            if not working:
                self._console.print_dim("No servers selected.")
                done(ConnectSummary(cancelled=True, messages=["No servers selected."]))
                return future

        to_start = [name for name in working if self._status(name) != SourceStatus.CONNECTED]

        def complete() -> None:
            try:
                summary = self._complete_connect(working, to_start)
            except Exception as exc:
                logger.warning("Connect completion failed: %s", exc)
                self._console.print_error(f"Connect failed: {exc}")
                summary = ConnectSummary(attempted=len(to_start), error=str(exc), messages=[f"Connect failed: {exc}"])
            done(summary)

        if not to_start:
            complete()
            return future

        logger.info("Starting MCP servers: %s", ", ".join(to_start))
        self._console.print_info(f"Starting {len(to_start)} MCP server(s): {', '.join(to_start)}")
        started = _OneShot(complete, "start_sources")
        try:
            self.provider.start_sources(to_start, started)
        except Exception as exc:
            logger.warning("Start request failed: %s", exc)
            self._console.print_warning(f"Start request failed: {exc}")
            started()
        return future

    def _complete_connect(self, working: list[str], to_start: list[str]) -> ConnectSummary:
        summary = ConnectSummary(attempted=len(to_start))

        for name in to_start:
            if self._status(name) == SourceStatus.CONNECTED:
                summary.started.append(name)
            else:
                summary.failed.append(name)

        for name in working:
            if self._status(name) != SourceStatus.CONNECTED:
                continue
            try:
                tools = [_as_tool(name, item) for item in self.provider.list_tools(name)]
            except Exception as exc:
                logger.warning("Failed to list tools for '%s': %s", name, exc)
                self._console.print_warning(f"Could not list tools for '{name}': {exc}")
                continue
            category = Category(name, self._prefix)
            for tool in tools:
                self.registry.register_tool(category, tool, self._binding(name, tool.name))
            summary.tools_added += len(tools)
            summary.sources.append(name)

        self.refresh_prompts_and_resources(working)

        added = f"Added {summary.tools_added} tools from {len(summary.sources)} servers"
        summary.messages.append(added)
        self._console.print_success(added)
        if summary.failed:
            failure = PartialStartFailure(summary.failed, summary.attempted)
            summary.messages.append(str(failure))
            logger.warning("%s: %s", failure, ", ".join(failure.failed))
            self._console.print_warning(f"{failure} ({', '.join(failure.failed)})")
        return summary

    def _binding(self, source: str, tool_name: str) -> Callable[[dict], Any]:
        def invoke(arguments: dict) -> Any:
            return self.provider.call_tool(source, tool_name, arguments)
        return invoke

    # ------------------------------------------------------------------ #
    # Disconnect
    # ------------------------------------------------------------------ #

    def disconnect(
        self,
        requested: list[str] | None = None,
        interactive: bool = False,
        stop_servers: bool | None = None,
    ) -> DisconnectSummary:
        """Remove registered tool categories and optionally stop servers.

        *stop_servers* decides whether the underlying servers are stopped
        after their tools are removed.  When None, interactive mode asks
        and non-interactive mode leaves them running.
        """
        categories = self.registry.list_categories()
        if requested:
            wanted = set(requested)
            matching = [c for c in categories if c.source in wanted]
        else:
            matching = categories

        if not matching:
            return self._shutdown_unregistered(interactive)

        summary = DisconnectSummary()
        sources = sorted({c.source for c in matching})
        if interactive:
            chosen = set(self._get_selector().choose_many("Disconnect MCP servers", sources))
            if not chosen:
                self._console.print_dim("No servers selected.")
                summary.cancelled = True
                return summary
            matching = [c for c in matching if c.source in chosen]
            sources = sorted(chosen)

        for category in matching:
            count = self.registry.unregister_category(category)
            summary.removed[category.source] = summary.removed.get(category.source, 0) + count

        removed = f"Removed {summary.tools_removed} tools from {len(summary.removed)} servers"
        summary.messages.append(removed)
        self._console.print_success(removed)

        if stop_servers is None:
            stop_servers = interactive and self._get_selector().confirm(
                f"Also stop {', '.join(sources)}?"
            )
        if stop_servers:
            summary.stopped = self.stop_servers(sources)
        return summary

    def _shutdown_unregistered(self, interactive: bool) -> DisconnectSummary:
        summary = DisconnectSummary()
        try:
            active = self.provider.active_sources()
        except Exception as exc:
            logger.warning("Could not query MCP servers: %s", exc)
            self._console.print_error(f"Could not query MCP servers: {exc}")
            summary.messages.append(str(exc))
            return summary

        if not active:
            message = "No MCP tools are registered and all servers are already stopped."
            summary.messages.append(message)
            if interactive:
                self._console.print_info(message)
            return summary

        if interactive and not self._get_selector().confirm(
            f"No MCP tools are registered. Stop all running servers ({', '.join(active)})?"
        ):
            summary.cancelled = True
            return summary

        summary.stopped = self.stop_servers(active)
        message = f"Stopped {len(summary.stopped)} MCP servers"
        summary.messages.append(message)
        self._console.print_success(message)
        return summary

    def stop_servers(self, sources: list[str]) -> list[str]:
        """Request a stop for each server.  Returns those the provider accepted.

        Cached prompts and resources of a stopped server are dropped.
        """
        stopped = []
        for source in sources:
            try:
                self.provider.stop_source(source)
            except Exception as exc:
                logger.warning("Failed to stop MCP server '%s': %s", source, exc)
                self._console.print_warning(f"Failed to stop '{source}': {exc}")
                continue
            self.cache.forget(source)
            logger.info("Stop requested for MCP server '%s'", source)
            stopped.append(source)
        return stopped

    # ------------------------------------------------------------------ #
    # Prompt / resource cache
    # ------------------------------------------------------------------ #

    def refresh_prompts_and_resources(self, sources: list[str] | None = None) -> list[str]:
        """Re-read prompt and resource listings of connected servers.

        Servers that are not connected keep whatever entry they had.
        Returns the names that were refreshed.
        """
        if sources is None:
            try:
                sources = self.provider.list_sources()
            except Exception as exc:
                logger.warning("Could not list MCP servers: %s", exc)
                return []

        refreshed: list[str] = []
        for name in sources:
            if self._status(name) != SourceStatus.CONNECTED:
                continue
            try:
                prompts = self.provider.list_prompts(name)
                resources = self.provider.list_resources(name)
            except Exception as exc:
                logger.warning("Failed to refresh prompts/resources for '%s': %s", name, exc)
                continue
            self.cache.store(name, prompts, resources)
            refreshed.append(name)
        return refreshed

    def prompt_choices(self) -> list[PromptCapability]:
        """Every cached prompt, source-qualified, sorted by source then name."""
        return sorted(self.cache.prompts(), key=lambda p: (p.source, p.name))

    def resource_choices(self) -> list[ResourceCapability]:
        """Every cached resource, source-qualified, sorted by source then name."""
        return sorted(self.cache.resources(), key=lambda r: (r.source, r.name or r.uri))

    # ------------------------------------------------------------------ #
    # Prompts
    # ------------------------------------------------------------------ #

    def select_prompt(self) -> str | None:
        """Let the operator pick a cached prompt and send it."""
        choices = self.prompt_choices()
        if not choices:
            self._console.print_warning("No MCP prompts available. Connect or refresh a server first.")
            return None
        labels = [_label(p.qualified_name, p.description) for p in choices]
        index = self._get_selector().choose_one("MCP prompts", labels)
        if index is None:
            return None
        prompt = choices[index]
        arguments = {}
        for argument in prompt.arguments:
            arg_name = argument.get("name")
            if not arg_name:
                continue
            value = self._get_selector().ask(f"{arg_name}: ")
            if value:
                arguments[arg_name] = value
        return self.send_prompt(prompt.source, prompt.name, arguments or None)

    def send_prompt(self, source: str, name: str, arguments: dict | None = None) -> str | None:
        """Render a prompt and deliver its first message to the chat surface.

        Problems are reported on the console; returns None in that case.
        """
        try:
            text = self._prompt_text(source, name, arguments)
        except (UnknownCapability, DisconnectedAtUse, EmptyResult, ProviderError) as exc:
            logger.info("Prompt %s/%s not sent: %s", source, name, exc)
            self._console.print_warning(str(exc))
            return None
        self.chat.send(text, role="user", source=source)
        return text

    def _prompt_text(self, source: str, name: str, arguments: dict | None) -> str:
        if self.cache.find_prompt(source, name) is None:
            raise UnknownCapability(f"Prompt '{name}' is not known for server '{source}'.")
        self._require_connected(source)
        try:
            payload = self.provider.get_prompt(source, name, arguments)
        except ProviderError:
            raise
        except Exception as exc:
            raise ProviderError(f"Failed to get prompt '{name}' from '{source}': {exc}") from exc
        text = extract_text(payload, "messages")
        if text is None:
            raise EmptyResult(f"Prompt '{name}' from '{source}'")
        return text

    # ------------------------------------------------------------------ #
    # Resources
    # ------------------------------------------------------------------ #

    def select_resource(self) -> bool:
        """Let the operator pick a cached resource and add it to context."""
        choices = self.resource_choices()
        if not choices:
            self._console.print_warning("No MCP resources available. Connect or refresh a server first.")
            return False
        labels = [_label(r.qualified_name, r.description) for r in choices]
        index = self._get_selector().choose_one("MCP resources", labels)
        if index is None:
            return False
        resource = choices[index]
        return self.add_resource_to_context(resource.source, resource.uri)

    def add_resource_to_context(self, source: str, uri: str) -> bool:
        """Read a resource and attach it to the chat context.

        Returns True when a new context entry was created.  Adding a key
        that is already present is reported and leaves one entry.
        """
        key = resource_context_key(source, uri)
        if key in self.context:
            self._console.print_info(f"{key} is already in context.")
            return False

        resource = self.cache.find_resource(source, uri)
        try:
            if resource is None:
                raise UnknownCapability(f"Resource '{uri}' is not known for server '{source}'.")
            self._require_connected(source)
            text = self._resource_text(source, uri)
        except (UnknownCapability, DisconnectedAtUse, EmptyResult, ProviderError) as exc:
            logger.info("Resource %s not added: %s", key, exc)
            self._console.print_warning(str(exc))
            return False

        added = self.context.add(
            key,
            RESOURCE_CONTEXT_KIND,
            {
                "source": source,
                "uri": uri,
                "name": resource.name,
                "description": resource.description,
                "mime_type": resource.mime_type,
                "content": text,
            },
        )
        if added:
            self._console.print_success(f"Added {key} to context")
        return added

    def _resource_text(self, source: str, uri: str) -> str:
        try:
            payload = self.provider.read_resource(source, uri)
        except ProviderError:
            raise
        except Exception as exc:
            raise ProviderError(f"Failed to read '{uri}' from '{source}': {exc}") from exc
        text = extract_text(payload, "contents")
        if text is None:
            raise EmptyResult(f"Resource '{uri}' from '{source}'")
        return text

    # ------------------------------------------------------------------ #
    # Tools
    # ------------------------------------------------------------------ #

    def call_tool(self, tool_name: str, arguments: dict, source: str | None = None) -> ToolCallResult:
        """Dispatch a registered tool through its binding.  Never raises."""
        registered = self.registry.find(tool_name, source)
        if registered is None:
            return ToolCallResult(content="", is_error=True, error_message=f"Unknown tool: {tool_name}")
        try:
            payload = registered.binding(arguments)
        except Exception as exc:
            logger.warning("Tool '%s' on %s failed: %s", tool_name, registered.category, exc)
            return ToolCallResult(content="", is_error=True, error_message=str(exc))

        is_error = isinstance(payload, dict) and bool(payload.get("isError"))
        content = extract_text(payload, "content") or ""
        return ToolCallResult(
            content=content,
            is_error=is_error,
            error_message=content if is_error else "",
            raw=payload,
        )

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #

    def status(self) -> list[dict]:
        """Per-server status with registered tool and cached listing counts."""
        try:
            sources = self.provider.list_sources()
        except Exception as exc:
            logger.warning("Could not list MCP servers: %s", exc)
            return []
        rows = []
        for name in sources:
            category = Category(name, self._prefix)
            rows.append({
                "name": name,
                "status": self._status(name).value,
                "category": category.tag,
                "tools": len(self.registry.tools_in(category)),
                "prompts": len(self.cache.prompts(name)),
                "resources": len(self.cache.resources(name)),
            })
        return rows

    # ------------------------------------------------------------------ #
    # Internal
    # ------------------------------------------------------------------ #

    def _resolve(self, requested: list[str] | None, known: list[str]) -> list[str]:
        if not requested:
            return list(known)
        known_set = set(known)
        resolved = []
        for name in requested:
            if name in known_set:
                if name not in resolved:
                    resolved.append(name)
            else:
                logger.warning("Unknown MCP server '%s' ignored", name)
                self._console.print_warning(f"Unknown MCP server '{name}' ignored")
        return resolved

    def _status(self, source: str) -> SourceStatus:
        try:
            return SourceStatus.parse(self.provider.get_status(source))
        except Exception as exc:
            logger.warning("Could not get status of '%s': %s", source, exc)
            return SourceStatus.ERROR

    def _require_connected(self, source: str) -> None:
        if self._status(source) != SourceStatus.CONNECTED:
            raise DisconnectedAtUse(source)

    def _get_selector(self) -> "SelectionPrompt":
        if self._selector is None:
            from mcp_bridge.ui.console import SelectionPrompt
            self._selector = SelectionPrompt(self._console)
        return self._selector


def _as_tool(source: str, item: Any) -> ToolCapability:
    """Accept a ToolCapability or a raw ``{"name", "description", "inputSchema"}`` dict."""
    if isinstance(item, ToolCapability):
        return item
    if isinstance(item, dict) and item.get("name"):
        return ToolCapability(
            source=source,
            name=str(item["name"]),
            description=item.get("description", "") or "",
            input_schema=item.get("inputSchema", item.get("input_schema", {})) or {},
        )
    raise ProviderError(f"Malformed tool entry from '{source}': {item!r}")


def _label(name: str, description: str) -> str:
    if not description:
        return name
    first_line = description.strip().splitlines()[0] if description.strip() else ""
    return f"{name}: {first_line}" if first_line else name
