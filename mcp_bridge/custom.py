"""Command handlers for mcp-bridge."""

import json
import logging
from pathlib import Path

from knack.util import CLIError

from mcp_bridge.config import BridgeConfig
from mcp_bridge.errors import ConfigurationError

logger = logging.getLogger(__name__)

_DEFAULT_CONNECT_WAIT = 60.0


# ======================================================================
# Helpers
# ======================================================================


def _load_config(config_dir: str | None = None) -> BridgeConfig:
    config = BridgeConfig(config_dir or ".")
    config.load()
    return config


def _build_provider(config: BridgeConfig):
    """Build the capability source provider named by the config.

    ``provider.path`` selects a custom provider file; otherwise the
    MCP hub provider is used.
    """
    from mcp_bridge.mcp.hub import HubSourceProvider
    from mcp_bridge.mcp.loader import load_provider

    provider_path = config.get("provider.path")
    if provider_path:
        full_path = Path(provider_path)
        if not full_path.is_absolute():
            full_path = config.config_dir / full_path
        try:
            return load_provider(str(full_path), config.get("provider.settings", {}) or {})
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc

    return HubSourceProvider(config.get("hub", {}) or {})


def _build_reconciler(config: BridgeConfig, console=None):
    from mcp_bridge.mcp.reconciler import RegistryReconciler

    if console is None:
        from mcp_bridge.ui.console import console

    return RegistryReconciler(
        _build_provider(config),
        console=console,
        category_prefix=config.get("tools.category_prefix", "mcp-"),
    )


def _parse_key_values(pairs: list[str] | None) -> dict:
    """Turn ``["a=1", "b=two"]`` into ``{"a": "1", "b": "two"}``."""
    result = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise CLIError(f"Expected key=value, got '{pair}'.")
        result[key] = value
    return result


# ======================================================================
# Session
# ======================================================================


def bridge_session(auto_connect=False, config_dir=None):
    """Run the interactive chat session."""
    from mcp_bridge.session import BridgeSession
    from mcp_bridge.ui.console import console

    config = _load_config(config_dir)
    reconciler = _build_reconciler(config, console)
    session = BridgeSession(reconciler, console, prompt_text=config.get("session.prompt", "> "))
    try:
        session.run(auto_connect=auto_connect or bool(config.get("session.auto_connect")))
    finally:
        reconciler.provider.close()


# ======================================================================
# Servers
# ======================================================================


def bridge_servers_list(config_dir=None):
    """List MCP servers and their status."""
    reconciler = _build_reconciler(_load_config(config_dir))
    try:
        return reconciler.status()
    finally:
        reconciler.provider.close()


def bridge_servers_connect(servers=None, wait=None, config_dir=None):
    """Start MCP servers and register their tools."""
    from concurrent.futures import TimeoutError as FutureTimeout

    reconciler = _build_reconciler(_load_config(config_dir))
    try:
        future = reconciler.connect(servers, interactive=False)
        try:
            summary = future.result(timeout=wait or _DEFAULT_CONNECT_WAIT)
        except FutureTimeout:
            raise CLIError("Timed out waiting for MCP servers to start.")
        return {
            "tools_added": summary.tools_added,
            "servers": summary.sources,
            "started": summary.started,
            "failed": summary.failed,
            "messages": summary.messages,
        }
    finally:
        reconciler.provider.close()


def bridge_servers_disconnect(servers=None, stop=False, config_dir=None):
    """Stop MCP servers.

    Each CLI invocation starts with an empty tool registry, so there are
    no tools to remove; with --stop the named (or all active) servers
    are stopped.
    """
    if not stop:
        return {"stopped": [], "messages": ["No tools are registered outside a session; pass --stop to stop servers."]}

    reconciler = _build_reconciler(_load_config(config_dir))
    try:
        if servers:
            return {"stopped": reconciler.stop_servers(servers)}
        summary = reconciler.disconnect(None, interactive=False)
        return {"stopped": summary.stopped, "messages": summary.messages}
    finally:
        reconciler.provider.close()


# ======================================================================
# Prompts / resources
# ======================================================================


def bridge_prompts_list(config_dir=None):
    """List prompts of connected MCP servers."""
    reconciler = _build_reconciler(_load_config(config_dir))
    try:
        reconciler.refresh_prompts_and_resources()
        return [
            {"server": p.source, "name": p.name, "description": p.description}
            for p in reconciler.prompt_choices()
        ]
    finally:
        reconciler.provider.close()


def bridge_prompts_send(server=None, name=None, arguments=None, config_dir=None):
    """Render an MCP prompt and return its first message."""
    if not server or not name:
        raise CLIError("--server and --name are required.")

    reconciler = _build_reconciler(_load_config(config_dir))
    try:
        reconciler.refresh_prompts_and_resources([server])
        text = reconciler.send_prompt(server, name, _parse_key_values(arguments) or None)
        if text is None:
            raise CLIError(f"Prompt '{name}' from '{server}' could not be sent.")
        return {"server": server, "name": name, "text": text}
    finally:
        reconciler.provider.close()


def bridge_resources_list(config_dir=None):
    """List resources of connected MCP servers."""
    reconciler = _build_reconciler(_load_config(config_dir))
    try:
        reconciler.refresh_prompts_and_resources()
        return [
            {"server": r.source, "uri": r.uri, "name": r.name, "description": r.description}
            for r in reconciler.resource_choices()
        ]
    finally:
        reconciler.provider.close()


def bridge_resources_read(server=None, uri=None, config_dir=None):
    """Read an MCP resource and return it as a context entry."""
    if not server or not uri:
        raise CLIError("--server and --uri are required.")

    from mcp_bridge.mcp.reconciler import resource_context_key

    reconciler = _build_reconciler(_load_config(config_dir))
    try:
        reconciler.refresh_prompts_and_resources([server])
        if not reconciler.add_resource_to_context(server, uri):
            raise CLIError(f"Resource '{uri}' from '{server}' could not be read.")
        entry = reconciler.context.get(resource_context_key(server, uri))
        return {"key": entry.key, "kind": entry.kind, **entry.metadata}
    finally:
        reconciler.provider.close()


# ======================================================================
# Config
# ======================================================================


def bridge_config_init(config_dir=None):
    """Write a default mcp-bridge.yaml."""
    config = BridgeConfig(config_dir or ".")
    if config.exists():
        raise CLIError(f"{config.config_path} already exists.")
    config.create_default()
    return {"path": str(config.config_path), "status": "created"}


def bridge_config_show(config_dir=None):
    """Display the effective configuration."""
    return _load_config(config_dir).to_dict()


def bridge_config_get(key=None, config_dir=None):
    """Get a single configuration value by dot-separated key."""
    if not key:
        raise CLIError("--key is required.")

    value = _load_config(config_dir).get(key)
    if value is None:
        raise CLIError(f"Key '{key}' not found in configuration.")
    return {"key": key, "value": value}


def bridge_config_set(key=None, value=None, config_dir=None):
    """Set a configuration value."""
    if not key:
        raise CLIError("--key is required.")
    if value is None:
        raise CLIError("--value is required.")

    config = _load_config(config_dir)

    # Try to parse value as JSON for structured values
    try:
        parsed = json.loads(value)
    except (json.JSONDecodeError, TypeError):
        parsed = value
    config.set(key, parsed)

    return {"key": key, "value": config.get(key), "status": "updated"}
