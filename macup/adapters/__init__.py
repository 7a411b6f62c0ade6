"""Adapters — backend bindings for external package managers.

Public re-exports for convenient access.
"""

from macup.adapters.base import Backend
from macup.adapters.mock import MockBackend
from macup.adapters.registry import BackendRegistry, default_registry

__all__ = [
    "Backend",
    "BackendRegistry",
    "MockBackend",
    "default_registry",
]
