"""
Adapter base — how a build tool is plugged into the compile.

Services never start processes themselves.  They describe the call as
an ``Action`` and the registry hands it, wrapped in an
``ExecutionContext``, to the adapter registered under the action's
tool name.
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod

from pydantic import BaseModel

from slugbuild.core.models.action import Action, Receipt


class ExecutionContext(BaseModel):
    """An action plus the process environment it runs in."""

    action: Action
    inherit_env: bool = True

    @property
    def working_dir(self) -> str:
        return self.action.cwd or "."

    def environment(self) -> dict[str, str]:
        """The child environment: inherited variables, then the action's overrides."""
        env = dict(os.environ) if self.inherit_env else {}
        env.update(self.action.env)
        return env


class Adapter(ABC):
    """A build tool reachable through the registry.

    ``execute`` reports every outcome, including a missing executable
    or a non-zero exit, as a ``Receipt``; it does not raise.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Registry key, also the first half of action ids ('npm', 'gem', ...)."""

    @abstractmethod
    def is_available(self, context: ExecutionContext | None = None) -> bool:
        """Whether the tool can be found (on the context's PATH if given)."""

    @abstractmethod
    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        """Pre-flight check; returns ``(ok, reason)``."""

    @abstractmethod
    def execute(self, context: ExecutionContext) -> Receipt:
        """Run the action to completion."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
