"""Error taxonomy for mcp-bridge.

Only :class:`ConfigurationError` escapes a public reconciler operation.
The rest are raised internally and turned into console messages at the
operation boundary.
"""

from knack.util import CLIError


class BridgeError(CLIError):
    """Base class for all mcp-bridge errors."""


class ConfigurationError(BridgeError):
    """No MCP servers are configured, or the configuration is invalid."""


class ProviderError(BridgeError):
    """The capability source provider failed (transport, bad response)."""


class DisconnectedAtUse(BridgeError):
    """A prompt or resource was used while its server is not connected."""

    def __init__(self, source: str):
        super().__init__(f"MCP server '{source}' is not connected.")
        self.source = source


class UnknownCapability(BridgeError):
    """A prompt, resource or tool is not in the cache or registry."""


class EmptyResult(BridgeError):
    """A remote call succeeded but returned no usable content."""

    def __init__(self, what: str):
        super().__init__(f"{what} returned no content.")
        self.what = what


class PartialStartFailure(BridgeError):
    """Some servers failed to start.  Reported, never raised to callers."""

    def __init__(self, failed: list[str], attempted: int):
        super().__init__(f"{len(failed)}/{attempted} servers failed to start")
        self.failed = list(failed)
        self.attempted = attempted
