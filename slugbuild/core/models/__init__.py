"""
Domain models — Pydantic types for the compile.

All models are re-exported here for convenient access:

    from slugbuild.core.models import BuildContext, BuildState, CacheVerdict
"""

from slugbuild.core.models.action import Action, Receipt
from slugbuild.core.models.cache import CacheRecord
from slugbuild.core.models.context import BuildContext
from slugbuild.core.models.decisions import (
    CacheReason,
    CacheVerdict,
    ManifestSource,
    StartupMethod,
)
from slugbuild.core.models.manifest import Engines, PackageManifest, VersionSpec
from slugbuild.core.models.settings import BuildSettings
from slugbuild.core.models.state import BuildState
from slugbuild.core.models.toolchain import ResolvedVersions, ToolchainLocations

__all__ = [
    # action.py
    "Action",
    "Receipt",
    # cache.py
    "CacheRecord",
    # context.py
    "BuildContext",
    # decisions.py
    "CacheReason",
    "CacheVerdict",
    "ManifestSource",
    "StartupMethod",
    # manifest.py
    "Engines",
    "PackageManifest",
    "VersionSpec",
    # settings.py
    "BuildSettings",
    # state.py
    "BuildState",
    # toolchain.py
    "ResolvedVersions",
    "ToolchainLocations",
]
