"""Per-source cache of prompt and resource listings.

Menus are built from this cache, never from a live query, so a source
only becomes selectable after a refresh while it was connected.
"""

from __future__ import annotations

import logging
import threading

from mcp_bridge.mcp.base import PromptCapability, ResourceCapability

logger = logging.getLogger(__name__)


class KnownCapabilitiesCache:
    """source name -> last fetched prompts, and separately -> resources."""

    def __init__(self):
        self._prompts: dict[str, list[PromptCapability]] = {}
        self._resources: dict[str, list[ResourceCapability]] = {}
        self._lock = threading.Lock()

    def store(
        self,
        source: str,
        prompts: list[PromptCapability],
        resources: list[ResourceCapability],
    ) -> None:
        """Overwrite both listings for *source* in one step."""
        with self._lock:
            self._prompts[source] = list(prompts)
            self._resources[source] = list(resources)
        logger.debug(
            "Cached %d prompts and %d resources for '%s'",
            len(prompts), len(resources), source,
        )

    def forget(self, source: str) -> None:
        with self._lock:
            self._prompts.pop(source, None)
            self._resources.pop(source, None)

    def has(self, source: str) -> bool:
        with self._lock:
            return source in self._prompts or source in self._resources

    def prompts(self, source: str | None = None) -> list[PromptCapability]:
        with self._lock:
            if source is not None:
                return list(self._prompts.get(source, []))
            return [p for name in sorted(self._prompts) for p in self._prompts[name]]

    def resources(self, source: str | None = None) -> list[ResourceCapability]:
        with self._lock:
            if source is not None:
                return list(self._resources.get(source, []))
            return [r for name in sorted(self._resources) for r in self._resources[name]]

    def find_prompt(self, source: str, name: str) -> PromptCapability | None:
        for prompt in self.prompts(source):
            if prompt.name == name:
                return prompt
        return None

    def find_resource(self, source: str, uri: str) -> ResourceCapability | None:
        for resource in self.resources(source):
            if resource.uri == uri:
                return resource
        return None
