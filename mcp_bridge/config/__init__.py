"""Bridge configuration management."""

import copy
import logging
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import yaml
from knack.util import CLIError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = {
    "hub": {
        "url": "http://localhost:37373",
        "timeout": 10,
    },
    "provider": {
        # Path to a .py file defining a CapabilitySourceProvider; empty = hub
        "path": "",
        "settings": {},
    },
    "tools": {
        "category_prefix": "mcp-",
    },
    "session": {
        "auto_connect": False,
        "prompt": "> ",
    },
}


def _merge(base: dict, overlay: dict) -> dict:
    """Recursively merge *overlay* into *base* (in place)."""
    for key, value in overlay.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


class BridgeConfig:
    """Manages mcp-bridge.yaml configuration.

    Provides dot-notation get/set for nested values.  A missing file
    means "all defaults"; values read from disk are overlaid onto
    ``DEFAULT_CONFIG``.
    """

    CONFIG_FILENAME = "mcp-bridge.yaml"

    def __init__(self, config_dir: str = "."):
        self.config_dir = Path(config_dir)
        self.config_path = self.config_dir / self.CONFIG_FILENAME
        self._config: dict = copy.deepcopy(DEFAULT_CONFIG)

    # ------------------------------------------------------------------ #
    #  Persistence                                                        #
    # ------------------------------------------------------------------ #

    def load(self) -> dict:
        """Load configuration from mcp-bridge.yaml if it exists.

        Raises:
            CLIError if the file is not valid YAML or not a mapping.
        """
        self._config = copy.deepcopy(DEFAULT_CONFIG)
        if not self.config_path.exists():
            logger.debug("No %s found, using defaults", self.config_path)
            return self._config

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise CLIError(f"Invalid YAML in {self.config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise CLIError(f"{self.config_path} must contain a mapping at the top level.")

        _merge(self._config, data)
        logger.debug("Configuration loaded from %s", self.config_path)
        return self._config

    def save(self):
        """Persist current configuration to mcp-bridge.yaml."""
        self.config_dir.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(
                self._config,
                f,
                default_flow_style=False,
                sort_keys=False,
                allow_unicode=True,
            )
        logger.debug("Configuration saved to %s", self.config_path)

    def create_default(self, overrides: dict | None = None) -> dict:
        """Write a fresh configuration built from the defaults."""
        self._config = copy.deepcopy(DEFAULT_CONFIG)
        if overrides:
            _merge(self._config, overrides)
        self.save()
        return self._config

    def exists(self) -> bool:
        return self.config_path.exists()

    # ------------------------------------------------------------------ #
    #  Access                                                             #
    # ------------------------------------------------------------------ #

    def get(self, key: str, default: Any = None) -> Any:
        """Get a config value by dot-separated key.

        Examples:
            config.get("hub.url")
            config.get("tools.category_prefix")
        """
        current = self._config
        for part in key.split("."):
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default
        return current

    def set(self, key: str, value: Any):
        """Set a config value by dot-separated key, validate, and save."""
        self._validate_config_value(key, value)

        parts = key.split(".")
        current = self._config
        for part in parts[:-1]:
            if part not in current or not isinstance(current[part], dict):
                current[part] = {}
            current = current[part]
        current[parts[-1]] = value
        self.save()

    def to_dict(self) -> dict:
        return copy.deepcopy(self._config)

    # ------------------------------------------------------------------ #
    #  Validation                                                         #
    # ------------------------------------------------------------------ #

    @staticmethod
    def _validate_config_value(key: str, value: Any):
        """Enforce constraints at config-set time.

        Rules:
          - hub.url must be an http(s) URL with a host.
          - hub.timeout must be a positive number.
          - tools.category_prefix must be non-empty.
          - provider.path, when set, must point at a .py file.
        """
        if key == "hub.url":
            parsed = urlparse(str(value))
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                raise CLIError(f"Invalid hub URL: '{value}'.\nExpected http://host:port or https://host:port.")

        if key == "hub.timeout":
            try:
                timeout = float(value)
            except (TypeError, ValueError):
                timeout = 0
            if isinstance(value, bool) or timeout <= 0:
                raise CLIError(f"hub.timeout must be a positive number of seconds, got '{value}'.")

        if key == "tools.category_prefix":
            if not isinstance(value, str) or not value.strip():
                raise CLIError("tools.category_prefix must be a non-empty string.")

        if key == "provider.path" and value:
            if not str(value).endswith(".py"):
                raise CLIError(f"provider.path must point at a .py file, got '{value}'.")
