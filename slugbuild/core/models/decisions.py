"""
Build decisions — closed variants decided once per compile.

Each decision is made by a detector in first-match priority order and
consumed downstream by exhaustive matching. None of them is persisted.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class ManifestSource(StrEnum):
    """Which artifact is authoritative for the dependency tree."""

    PREBUILT = "prebuilt"             # node_modules checked into the source tree
    LOCKFILE = "lockfile"             # npm-shrinkwrap.json / package-lock.json
    MANIFEST_ONLY = "manifest-only"   # package.json alone
    NONE = "none"


class StartupMethod(StrEnum):
    """How the deployed application's web process is started."""

    EXISTING_PROCESS_FILE = "existing-procfile"
    PACKAGE_START_SCRIPT = "npm-start"
    DEFAULT_ENTRY_FILE = "server-js"
    NONE = "none"


class CacheReason(StrEnum):
    """Why a cache was (or was not) considered usable."""

    NO_PRIOR_CACHE = "no prior cache"
    DISABLED = "disabled by configuration"
    RUNTIME_CHANGED = "runtime version changed"
    PACKAGE_MANAGER_CHANGED = "package manager version changed"
    UNCHANGED = "versions unchanged"


class CacheVerdict(BaseModel):
    """Whether a previous dependency cache may be reused, and why."""

    model_config = ConfigDict(frozen=True)

    usable: bool
    reason: CacheReason

    def __str__(self) -> str:
        verdict = "usable" if self.usable else "not usable"
        return f"{verdict} ({self.reason.value})"
