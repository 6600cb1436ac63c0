"""
Archive installer — put the node toolchain into the build tree.

The node archive for a resolved version is downloaded to a scratch
directory, extracted, and its single top-level directory moved to the
build's toolchain-home (``vendor/node``).  Instead of prepending to the
process ``PATH``, the installer returns ``ToolchainLocations`` that
later stages render into their subprocess environments.
"""

from __future__ import annotations

import logging
import tarfile
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Any

from slugbuild.adapters.languages.node import parse_version
from slugbuild.adapters.net.http import download
from slugbuild.adapters.registry import AdapterRegistry
from slugbuild.adapters.shell.filesystem import make_executable, move_tree
from slugbuild.core.errors import FetchFailure, InstallFailure
from slugbuild.core.models.context import BuildContext
from slugbuild.core.models.toolchain import ToolchainLocations
from slugbuild.core.services.commands import run_tool

logger = logging.getLogger(__name__)

Fetcher = Callable[[str, Path], dict[str, Any]]


def archive_url(template: str, version: str) -> str:
    """Deterministic archive location for ``version``."""
    return template.format(version=version)


def _extract(archive: Path, dest: Path, url: str) -> Path:
    """Extract ``archive`` into ``dest`` and return its top-level directory."""
    try:
        with tarfile.open(archive, "r:*") as tar:
            tar.extractall(dest, filter="tar")
    except (tarfile.TarError, OSError) as e:
        raise FetchFailure(url, f"cannot extract archive: {e}") from e

    roots = [p for p in dest.iterdir() if p.is_dir()]
    if len(roots) != 1:
        raise FetchFailure(url, f"expected one top-level directory, found {len(roots)}")
    return roots[0]


def install_node(
    context: BuildContext,
    version: str,
    url_template: str,
    fetch: Fetcher = download,
) -> ToolchainLocations:
    """Fetch node ``version`` and install it at ``context.node_home``.

    Raises:
        FetchFailure: If the download or extraction fails.
    """
    url = archive_url(url_template, version)
    logger.info("Downloading and installing node %s", version)

    with tempfile.TemporaryDirectory(prefix="slugbuild-node-") as scratch:
        scratch_dir = Path(scratch)
        archive = scratch_dir / "node.tar.gz"
        result = fetch(url, archive)
        if not result["ok"]:
            raise FetchFailure(url, result["error"])

        extracted = _extract(archive, scratch_dir / "extract", url)
        move_tree(extracted, context.node_home)

    toolchain = ToolchainLocations.for_node_home(context.node_home)
    marked = make_executable(context.node_home / "bin")
    logger.debug("Marked %d toolchain executables", marked)
    return toolchain


def bundled_npm_version(
    registry: AdapterRegistry,
    context: BuildContext,
    toolchain: ToolchainLocations,
) -> str:
    """Version of the npm that shipped with the installed node."""
    receipt = run_tool(
        registry,
        adapter="npm",
        step="version",
        args=["--version"],
        cwd=context.build_dir,
        env=toolchain.environment(),
        echo=False,
    )
    version = parse_version(receipt.output)
    if version is None:
        raise InstallFailure("npm:version", "bundled npm reported no version")
    return version


def install_npm(
    registry: AdapterRegistry,
    context: BuildContext,
    toolchain: ToolchainLocations,
    requested: str | None,
    bundled: str,
) -> str:
    """Install npm ``requested`` globally if it differs from ``bundled``.

    Returns:
        The npm version in effect afterwards.

    Raises:
        InstallFailure: If ``npm install -g npm@<version>`` fails.
    """
    if not requested:
        logger.info("Using default npm version: %s", bundled)
        return bundled
    if requested == bundled:
        logger.info("npm %s already bundled with node", bundled)
        return bundled

    logger.info("Downloading and installing npm %s (replacing version %s)", requested, bundled)
    run_tool(
        registry,
        adapter="npm",
        step="install-npm",
        args=["install", "--unsafe-perm", "--quiet", "-g", f"npm@{requested}"],
        cwd=context.build_dir,
        env=toolchain.environment(),
    )
    return requested
