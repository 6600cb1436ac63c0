"""
Adapter registry — maps tool names to adapters and dispatches actions.

``execute_action`` is the only way a build service reaches npm, gem,
bower or grunt.  A test swaps a tool by registering a ``MockAdapter``
under the same name.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from slugbuild.adapters.base import Adapter, ExecutionContext
from slugbuild.core.models.action import Action, Receipt

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """Tool name → adapter."""

    def __init__(self) -> None:
        self._adapters: dict[str, Adapter] = {}

    def register(self, adapter: Adapter) -> None:
        """Add ``adapter``; a later registration under the same name wins."""
        if adapter.name in self._adapters:
            logger.debug("Replacing adapter %s", adapter.name)
        self._adapters[adapter.name] = adapter

    def unregister(self, name: str) -> None:
        self._adapters.pop(name, None)

    def get(self, name: str) -> Adapter | None:
        return self._adapters.get(name)

    def list_adapters(self) -> list[str]:
        return list(self._adapters)

    def adapter_status(self) -> dict[str, dict[str, Any]]:
        """Which tools are installed, for diagnostics."""
        return {
            name: {
                "name": name,
                "available": adapter.is_available(),
                "type": type(adapter).__name__,
            }
            for name, adapter in self._adapters.items()
        }

    def execute_action(self, action: Action) -> Receipt:
        """Run ``action`` through its adapter.

        Unknown tools, failed pre-flight checks and adapters that raise
        come back as failed receipts, like any other tool failure.
        """
        adapter = self._adapters.get(action.adapter)
        if adapter is None:
            return Receipt.failure(
                action.adapter, action.id, f"No adapter registered for '{action.adapter}'"
            )

        context = ExecutionContext(action=action)
        valid, reason = adapter.validate(context)
        if not valid:
            return Receipt.failure(action.adapter, action.id, f"Validation failed: {reason}")

        started = time.monotonic()
        try:
            receipt = adapter.execute(context)
        except Exception as e:
            logger.error("Adapter %s raised during %s: %s", action.adapter, action.id, e)
            receipt = Receipt.failure(action.adapter, action.id, f"Adapter error: {e}")
        receipt.duration_ms = int((time.monotonic() - started) * 1000)
        return receipt


def default_registry() -> AdapterRegistry:
    """Registry wired with the real build tools."""
    from slugbuild.adapters.languages import (
        BowerAdapter,
        GemAdapter,
        GruntAdapter,
        NpmAdapter,
        RubyAdapter,
    )

    registry = AdapterRegistry()
    for adapter in (NpmAdapter(), BowerAdapter(), GruntAdapter(), RubyAdapter(), GemAdapter()):
        registry.register(adapter)
    return registry
