"""
BuildState — every value decided so far in a compile.

Stages receive the current state and return an updated copy via
``advance``; a decision field, once set, is never reassigned.
The state lives in memory only: the filesystem is touched at the
stage boundaries that need persistence (cache read and write).
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict

from slugbuild.core.models.cache import CacheRecord
from slugbuild.core.models.context import BuildContext
from slugbuild.core.models.decisions import CacheVerdict, ManifestSource, StartupMethod
from slugbuild.core.models.manifest import PackageManifest
from slugbuild.core.models.settings import BuildSettings
from slugbuild.core.models.toolchain import ResolvedVersions, ToolchainLocations

_DECISIONS = ("manifest_source", "startup", "verdict")


class BuildState(BaseModel):
    """Immutable snapshot of a compile in progress."""

    model_config = ConfigDict(frozen=True)

    context: BuildContext
    settings: BuildSettings
    manifest: PackageManifest | None = None

    versions: ResolvedVersions | None = None
    toolchain: ToolchainLocations | None = None
    cache_record: CacheRecord = CacheRecord()
    ruby_version: str | None = None

    verdict: CacheVerdict | None = None
    manifest_source: ManifestSource | None = None
    startup: StartupMethod | None = None

    def advance(self, **changes: Any) -> BuildState:
        """Return a copy with ``changes`` applied.

        Raises:
            ValueError: If a decision that was already made is changed.
        """
        for name in _DECISIONS:
            if name in changes and getattr(self, name) is not None:
                if changes[name] != getattr(self, name):
                    raise ValueError(f"{name} already decided as {getattr(self, name)}")
        return self.model_copy(update=changes)

    def require_toolchain(self) -> ToolchainLocations:
        if self.toolchain is None:
            raise RuntimeError("node toolchain is not installed yet")
        return self.toolchain

    def require_versions(self) -> ResolvedVersions:
        if self.versions is None:
            raise RuntimeError("toolchain versions are not resolved yet")
        return self.versions
