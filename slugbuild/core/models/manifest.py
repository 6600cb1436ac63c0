"""
Package manifest — the parts of package.json the compile cares about.

Unknown keys are ignored; a manifest with no ``engines`` block requests
the latest stable node and the npm bundled with it.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class Engines(BaseModel):
    """Requested toolchain ranges (``engines`` in package.json).

    A bare number (``"node": 18``) is taken as the string ``"18"``.
    """

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    node: str = ""
    npm: str = ""


class PackageManifest(BaseModel):
    """Subset of package.json read by the compile."""

    model_config = ConfigDict(extra="ignore")

    engines: Engines = Field(default_factory=Engines)
    scripts: dict[str, str] = Field(default_factory=dict)

    @property
    def start_script(self) -> str | None:
        """The declared ``npm start`` command, if any."""
        return self.scripts.get("start") or None


class VersionSpec(BaseModel):
    """A requested range or exact version for one toolchain target."""

    model_config = ConfigDict(frozen=True)

    target: Literal["node", "npm"]
    requested: str = ""

    @classmethod
    def for_node(cls, manifest: PackageManifest | None) -> VersionSpec:
        return cls(target="node", requested=manifest.engines.node if manifest else "")

    @classmethod
    def for_npm(cls, manifest: PackageManifest | None) -> VersionSpec:
        return cls(target="npm", requested=manifest.engines.npm if manifest else "")
