"""Adapters — tool bindings for external integrations.

Public re-exports for convenient access.
"""

from slugbuild.adapters.base import Adapter, ExecutionContext
from slugbuild.adapters.mock import MockAdapter
from slugbuild.adapters.registry import AdapterRegistry, default_registry

__all__ = [
    "Adapter",
    "AdapterRegistry",
    "ExecutionContext",
    "MockAdapter",
    "default_registry",
]
