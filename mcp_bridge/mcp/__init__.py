"""MCP (Model Context Protocol) capability bridge.

Keeps the host's tool registry, prompt/resource cache and chat context in
step with the MCP servers a provider exposes.

Public API:
    CapabilitySourceProvider -- Abstract provider contract
    HubSourceProvider        -- Provider backed by a local MCP hub (HTTP)
    SourceStatus             -- Server connection status
    Category                 -- Registry key for one server's tools
    ToolCapability           -- Tool descriptor
    PromptCapability         -- Prompt descriptor
    ResourceCapability       -- Resource descriptor
    ToolRegistry             -- Category-keyed host tool registry
    ContextStore             -- Key-deduplicated chat context
    KnownCapabilitiesCache   -- Cached prompt/resource listings
    RegistryReconciler       -- connect / disconnect / refresh / dispatch
"""

from mcp_bridge.mcp.base import (
    CapabilitySourceProvider,
    Category,
    PromptCapability,
    ResourceCapability,
    SourceStatus,
    ToolCapability,
)
from mcp_bridge.mcp.cache import KnownCapabilitiesCache
from mcp_bridge.mcp.hub import HubSourceProvider
from mcp_bridge.mcp.reconciler import (
    ConnectSummary,
    DisconnectSummary,
    RegistryReconciler,
    ToolCallResult,
)
from mcp_bridge.mcp.registry import ContextEntry, ContextStore, ToolRegistry

__all__ = [
    "CapabilitySourceProvider",
    "Category",
    "ConnectSummary",
    "ContextEntry",
    "ContextStore",
    "DisconnectSummary",
    "HubSourceProvider",
    "KnownCapabilitiesCache",
    "PromptCapability",
    "RegistryReconciler",
    "ResourceCapability",
    "SourceStatus",
    "ToolCallResult",
    "ToolCapability",
    "ToolRegistry",
]
