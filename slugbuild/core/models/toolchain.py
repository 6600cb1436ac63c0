"""
Toolchain models — resolved versions and installed locations.

``ToolchainLocations`` replaces mutation of the process-wide ``PATH``:
it is threaded through the stages that need node/npm on the search
path and rendered into a subprocess environment or export lines only
where a command runs or a script is emitted.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class ResolvedVersions(BaseModel):
    """Exact versions chosen for this compile."""

    model_config = ConfigDict(frozen=True)

    node: str
    npm: str | None = None  # None until the bundled npm is known


class ToolchainLocations(BaseModel):
    """Where the installed toolchain lives, in search-path order."""

    model_config = ConfigDict(frozen=True)

    node_home: Path
    bin_dirs: tuple[Path, ...] = Field(default_factory=tuple)

    @classmethod
    def for_node_home(cls, node_home: Path, *extra_bins: Path) -> ToolchainLocations:
        return cls(node_home=node_home, bin_dirs=(node_home / "bin", *extra_bins))

    def with_bin_dir(self, path: Path) -> ToolchainLocations:
        """Return a copy with ``path`` appended to the search order."""
        if path in self.bin_dirs:
            return self
        return self.model_copy(update={"bin_dirs": (*self.bin_dirs, path)})

    def search_path(self, base: str | None = None) -> str:
        """Render a ``PATH`` value with the toolchain dirs first."""
        if base is None:
            base = os.environ.get("PATH", "")
        parts = [str(p) for p in self.bin_dirs]
        if base:
            parts.append(base)
        return os.pathsep.join(parts)

    def environment(self, base_path: str | None = None) -> dict[str, str]:
        """Environment overrides for subprocesses that need the toolchain."""
        return {
            "PATH": self.search_path(base_path),
            "NODE_HOME": str(self.node_home),
        }
