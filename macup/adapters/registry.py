"""
Backend registry — maps backend identifiers to implementations.

The registry is the single point of backend management. The engine
never instantiates backends itself: it resolves each section's
backend here when the plan is built.
"""

from __future__ import annotations

import logging
from typing import Any

from macup.adapters.base import Backend
from macup.core.models.section import InstallScript

logger = logging.getLogger(__name__)


class BackendRegistry:
    """Central registry of backends, keyed by identifier."""

    def __init__(self) -> None:
        self._backends: dict[str, Backend] = {}

    def register(self, backend: Backend) -> None:
        """Register a backend under its ``name``."""
        name = backend.name
        if name in self._backends:
            logger.warning("Overwriting existing backend: %s", name)
        self._backends[name] = backend
        logger.debug("Registered backend: %s", name)

    def unregister(self, name: str) -> None:
        """Remove a backend from the registry."""
        self._backends.pop(name, None)

    def get(self, name: str) -> Backend | None:
        """Look up a backend by name."""
        return self._backends.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._backends

    def list_backends(self) -> list[str]:
        """List all registered backend names."""
        return list(self._backends.keys())

    def backend_status(self) -> dict[str, dict[str, Any]]:
        """Get runtime availability of all registered backends."""
        status = {}
        for name, backend in self._backends.items():
            try:
                available = backend.is_runtime_available()
            except Exception:
                available = False
            status[name] = {
                "name": name,
                "display_name": backend.display_name or name,
                "available": available,
                "runtime": backend.runtime_command,
                "bootstrap": "/".join(backend.bootstrap) if backend.bootstrap else None,
                "type": backend.__class__.__name__,
            }
        return status


def default_registry(scripts: list[InstallScript] | None = None) -> BackendRegistry:
    """Build a registry with every built-in backend.

    Args:
        scripts: Install scripts declared in the config; they back the
            ``script`` backend.
    """
    from macup.adapters.packages.brew import BrewBackend, BrewCaskBackend, BrewTapBackend
    from macup.adapters.packages.cargo import CargoBackend
    from macup.adapters.packages.mas import MasBackend
    from macup.adapters.packages.npm import NpmBackend
    from macup.adapters.shell.script import ScriptBackend

    registry = BackendRegistry()
    registry.register(BrewBackend())
    registry.register(BrewCaskBackend())
    registry.register(BrewTapBackend())
    registry.register(NpmBackend())
    registry.register(CargoBackend())
    registry.register(MasBackend())
    registry.register(ScriptBackend(scripts or []))
    return registry
