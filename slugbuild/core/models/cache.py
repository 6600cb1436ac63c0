"""
CacheRecord — what the previous compile left behind in the cache dir.

The cold-start state (no prior compile) is ``CacheRecord()``.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class CacheRecord(BaseModel):
    """Versions and dependency presence recorded by the last compile."""

    model_config = ConfigDict(frozen=True)

    previous_node: str | None = None
    previous_npm: str | None = None
    modules_present: bool = False

    @property
    def cold(self) -> bool:
        return (
            self.previous_node is None
            and self.previous_npm is None
            and not self.modules_present
        )
