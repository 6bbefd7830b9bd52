"""Load a custom capability source provider from a Python file.

The file must either set ``PROVIDER_CLASS`` or define exactly one
CapabilitySourceProvider subclass.
"""

from __future__ import annotations

import importlib.util
import logging
from pathlib import Path
from typing import Any

from mcp_bridge.mcp.base import CapabilitySourceProvider

logger = logging.getLogger(__name__)


def load_provider(file_path: str, settings: dict | None = None, **kwargs: Any) -> CapabilitySourceProvider:
    """Load and instantiate a provider from a Python file.

    Args:
        file_path: Path to the Python provider file.
        settings: Provider settings from mcp-bridge.yaml.
        **kwargs: Additional keyword args passed to the provider constructor.

    Returns:
        Instantiated CapabilitySourceProvider subclass.

    Raises:
        ValueError: If the file is invalid or no provider class is found.
    """
    path = Path(file_path)

    if not path.exists():
        raise ValueError(f"Provider file not found: {file_path}")

    if path.suffix != ".py":
        raise ValueError(f"Expected .py file, got: {path.suffix}")

    try:
        spec = importlib.util.spec_from_file_location(f"mcp_provider_{path.stem}", str(path))
        if spec is None or spec.loader is None:
            raise ValueError(f"Cannot load module spec from {file_path}")
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
    except ValueError:
        raise
    except Exception as exc:
        raise ValueError(f"Failed to load provider from {file_path}: {exc}") from exc

    if hasattr(module, "PROVIDER_CLASS"):
        provider_cls = module.PROVIDER_CLASS
        if isinstance(provider_cls, type) and issubclass(provider_cls, CapabilitySourceProvider):
            logger.info("Loaded provider %s from %s", provider_cls.__name__, file_path)
            return provider_cls(settings, **kwargs)
        raise ValueError(f"PROVIDER_CLASS in {file_path} must be a CapabilitySourceProvider subclass.")

    provider_classes = [
        attr for attr in vars(module).values()
        if isinstance(attr, type)
        and issubclass(attr, CapabilitySourceProvider)
        and attr is not CapabilitySourceProvider
        and attr.__module__ == module.__name__
    ]

    if not provider_classes:
        raise ValueError(
            f"No CapabilitySourceProvider subclass found in {file_path}. "
            "Define a class that extends CapabilitySourceProvider."
        )

    if len(provider_classes) > 1:
        raise ValueError(
            f"Multiple CapabilitySourceProvider subclasses found in {file_path}: "
            f"{[c.__name__ for c in provider_classes]}. "
            "Set PROVIDER_CLASS to specify which one to use."
        )

    logger.info("Loaded provider %s from %s", provider_classes[0].__name__, file_path)
    return provider_classes[0](settings, **kwargs)
