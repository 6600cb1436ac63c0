"""
Version resolution — turn a requested range into an exact version.

An exact ``X.Y.Z`` request is used as-is without touching the network.
Anything else (a semver range, ``latest``, or nothing at all) is sent
to the external resolution service, whose answer must itself be an
exact version.  Failures are fatal and never retried.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from typing import Any, Protocol

from slugbuild.adapters.net.http import fetch_text
from slugbuild.core.errors import ResolutionFailure
from slugbuild.core.models.manifest import VersionSpec

logger = logging.getLogger(__name__)

EXACT_VERSION_RE = re.compile(r"^\d+\.\d+\.\d+$")


def is_exact(version: str) -> bool:
    """Whether ``version`` is already a concrete ``X.Y.Z`` version."""
    return bool(EXACT_VERSION_RE.match(version.strip()))


class VersionResolver(Protocol):
    """Capability: requested range → exact version for a target."""

    def resolve(self, target: str, requested: str) -> str:
        """Return the exact version, or raise ``ResolutionFailure``."""
        ...


class SemverServiceResolver:
    """Resolve ranges through a semver.io-compatible HTTP service.

    ``GET {base_url}/{target}/resolve?range=<requested>`` answers with the
    highest matching stable version as plain text.
    """

    def __init__(
        self,
        base_url: str,
        fetch: Callable[..., dict[str, Any]] = fetch_text,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._fetch = fetch

    def resolve(self, target: str, requested: str) -> str:
        url = f"{self.base_url}/{target}/resolve"
        result = self._fetch(url, params={"range": requested})
        if not result["ok"]:
            raise ResolutionFailure(target, requested, result["error"])
        return result["text"].strip()


def resolve_version(spec: VersionSpec, resolver: VersionResolver) -> str:
    """Resolve a version spec to an exact ``X.Y.Z`` version.

    Raises:
        ResolutionFailure: If the resolver fails or answers with
            something that is not an exact version.
    """
    requested = spec.requested.strip()
    if is_exact(requested):
        logger.debug("%s version %s is exact", spec.target, requested)
        return requested

    answer = resolver.resolve(spec.target, requested)
    version = answer.strip().lstrip("v")
    if not is_exact(version):
        raise ResolutionFailure(
            spec.target, requested, f"resolver answered {answer!r}, not an exact version"
        )
    return version


def describe_request(spec: VersionSpec) -> str:
    """Human-readable form of a request for the build log."""
    if not spec.requested:
        return f"{spec.target} version not specified in package.json, using latest stable"
    return f"{spec.target} range requested: {spec.requested}"
