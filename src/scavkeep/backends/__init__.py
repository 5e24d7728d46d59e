"""Page backends for scavkeep.

This module provides pluggable browser backends behind the ``MinePage``
capability. The default backend is "selenium".

Available backends:
    - selenium: Selenium (+ undetected-chromedriver in stealth mode)
    - nodriver: CDP-direct Chrome automation (requires: pip install scavkeep[nodriver])

Example:
    >>> from scavkeep.backends import get_backend, list_backends
    >>> print(list_backends())
    ['nodriver', 'selenium']
    >>> page = get_backend("selenium", headless=True)
"""

from importlib import import_module
from typing import Any

from scavkeep.backends.base import MinePage, PageButton

# Backend registry maps names to module:class paths
# Using strings enables lazy loading - dependencies only imported when used
_BACKEND_REGISTRY: dict[str, str] = {
    "selenium": "scavkeep.backends.selenium:SeleniumPage",
    "nodriver": "scavkeep.backends.nodriver:NoDriverPage",
}


def get_backend(name: str = "selenium", **kwargs: Any) -> MinePage:
    """Get a page backend instance by name.

    Backends are lazily imported to avoid loading dependencies that
    aren't installed.

    Args:
        name: Backend identifier. One of: "selenium", "nodriver".
        **kwargs: Backend-specific initialization options passed to
            the backend constructor (headless, profile_dir, ...).

    Returns:
        Configured backend instance (not started).

    Raises:
        ValueError: If backend name is not recognized.
        ImportError: If backend dependencies are not installed.
    """
    if name not in _BACKEND_REGISTRY:
        available = ", ".join(sorted(_BACKEND_REGISTRY.keys()))
        raise ValueError(f"Unknown backend '{name}'. Available backends: {available}")

    module_path, class_name = _BACKEND_REGISTRY[name].rsplit(":", 1)

    try:
        module = import_module(module_path)
    except ImportError as exc:
        raise ImportError(
            f"Backend '{name}' requires additional dependencies. "
            f"Failed to import {module_path}: {exc}"
        ) from exc

    backend_class = getattr(module, class_name)
    return backend_class(**kwargs)


def list_backends() -> list[str]:
    """List available backend names.

    Returns:
        Sorted list of registered backend names.
    """
    return sorted(_BACKEND_REGISTRY.keys())


def register_backend(name: str, module_class_path: str) -> None:
    """Register a custom page backend.

    Args:
        name: Backend identifier (e.g., "playwright").
        module_class_path: Import path in format "module.path:ClassName".

    Raises:
        ValueError: If name is already registered or path format is invalid.
    """
    if name in _BACKEND_REGISTRY:
        raise ValueError(f"Backend '{name}' is already registered")

    if ":" not in module_class_path:
        raise ValueError(
            f"Invalid module_class_path '{module_class_path}'. "
            "Expected format: 'module.path:ClassName'"
        )

    _BACKEND_REGISTRY[name] = module_class_path


__all__ = [
    "MinePage",
    "PageButton",
    "get_backend",
    "list_backends",
    "register_backend",
]
