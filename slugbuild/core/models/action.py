"""
Action and Receipt — one tool invocation and its outcome.

Build services describe a tool call as an ``Action`` (argv, working
directory, environment overrides) and hand it to the adapter registry.
What comes back is always a ``Receipt``: adapters report a non-zero
exit or a missing executable in the receipt instead of raising, and
the service layer decides whether that is fatal.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


class Action(BaseModel):
    """A tool invocation requested by a build service."""

    id: str                         # "<adapter>:<step>", e.g. "npm:install"
    adapter: str                    # registry name of the tool
    args: list[str] = Field(default_factory=list)
    cwd: str | None = None
    env: dict[str, str] = Field(default_factory=dict)


class Receipt(BaseModel):
    """Outcome of one action: status, combined output and exit code."""

    adapter: str
    action_id: str
    status: Literal["ok", "failed"] = "ok"

    output: str = ""                # stdout and stderr, interleaved
    error: str | None = None
    return_code: int | None = None  # None when no process ran
    command: str = ""               # argv as shown in the build log
    duration_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @classmethod
    def success(cls, adapter: str, action_id: str, output: str = "", **fields: Any) -> Receipt:
        return cls(adapter=adapter, action_id=action_id, output=output, **fields)

    @classmethod
    def failure(cls, adapter: str, action_id: str, error: str, **fields: Any) -> Receipt:
        return cls(adapter=adapter, action_id=action_id, status="failed", error=error, **fields)
