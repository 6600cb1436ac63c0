"""
Dependency installer — build node_modules with the right strategy.

Which artifact is authoritative for the dependency tree is decided
once, before anything touches ``node_modules``:

    node_modules in the source tree     → PREBUILT
    npm-shrinkwrap.json / package-lock  → LOCKFILE
    package.json                        → MANIFEST_ONLY
    nothing                             → NONE

The strategy then follows from the source and the cache verdict:

    NONE                         skip
    PREBUILT                     npm rebuild, then npm install
    LOCKFILE/MANIFEST_ONLY + hit restore cache, npm prune, npm install
    LOCKFILE/MANIFEST_ONLY + miss start empty, npm install

Every npm call uses ``--userconfig <build>/.npmrc`` so a developer's
global npm configuration never leaks into the slug.
"""

from __future__ import annotations

import logging
from enum import StrEnum
from pathlib import Path

from slugbuild.adapters.registry import AdapterRegistry
from slugbuild.adapters.shell.filesystem import copy_tree, remove_path
from slugbuild.core.models.context import LOCKFILES, MANIFEST_FILE, MODULES_DIR, BuildContext
from slugbuild.core.models.decisions import CacheVerdict, ManifestSource
from slugbuild.core.models.settings import BuildSettings
from slugbuild.core.models.toolchain import ToolchainLocations
from slugbuild.core.services.commands import run_tool

logger = logging.getLogger(__name__)


class InstallStrategy(StrEnum):
    SKIP = "skip"
    REBUILD_PREBUILT = "rebuild-prebuilt"
    RESTORE_AND_PRUNE = "restore-and-prune"
    FRESH_INSTALL = "fresh-install"


def detect_manifest_source(build_dir: Path) -> ManifestSource:
    """Pick the authoritative dependency source (first match wins)."""
    if (build_dir / MODULES_DIR).is_dir():
        return ManifestSource.PREBUILT
    if any((build_dir / name).is_file() for name in LOCKFILES):
        return ManifestSource.LOCKFILE
    if (build_dir / MANIFEST_FILE).is_file():
        return ManifestSource.MANIFEST_ONLY
    return ManifestSource.NONE


def select_strategy(source: ManifestSource, verdict: CacheVerdict) -> InstallStrategy:
    """Map (source, verdict) onto one of the four strategies."""
    if source is ManifestSource.NONE:
        return InstallStrategy.SKIP
    if source is ManifestSource.PREBUILT:
        return InstallStrategy.REBUILD_PREBUILT
    if source in (ManifestSource.LOCKFILE, ManifestSource.MANIFEST_ONLY):
        if verdict.usable:
            return InstallStrategy.RESTORE_AND_PRUNE
        return InstallStrategy.FRESH_INSTALL
    raise ValueError(f"Unhandled manifest source: {source!r}")


def npm_environment(
    toolchain: ToolchainLocations,
    settings: BuildSettings,
) -> dict[str, str]:
    """Subprocess environment for npm: toolchain first, config passed through."""
    env = settings.passthrough_env()
    env.update(toolchain.environment())
    return env


def _npm(
    registry: AdapterRegistry,
    context: BuildContext,
    env: dict[str, str],
    step: str,
    *args: str,
) -> None:
    run_tool(
        registry,
        adapter="npm",
        step=step,
        args=[*args, "--userconfig", str(context.npmrc)],
        cwd=context.build_dir,
        env=env,
    )


def install_dependencies(
    registry: AdapterRegistry,
    context: BuildContext,
    settings: BuildSettings,
    toolchain: ToolchainLocations,
    source: ManifestSource,
    verdict: CacheVerdict,
) -> InstallStrategy:
    """Produce ``node_modules`` in the build tree.

    Returns:
        The strategy that ran.

    Raises:
        InstallFailure: If rebuild, prune or install exits non-zero.
    """
    strategy = select_strategy(source, verdict)
    env = npm_environment(toolchain, settings)

    if strategy is InstallStrategy.SKIP:
        logger.warning("No package.json found; no source for dependency tree")
        return strategy

    if strategy is InstallStrategy.REBUILD_PREBUILT:
        logger.info("Found existing node_modules directory; skipping cache")
        logger.info("Rebuilding any native dependencies")
        _npm(registry, context, env, "rebuild", "rebuild")
    elif strategy is InstallStrategy.RESTORE_AND_PRUNE:
        logger.info("Restoring node_modules directory from cache")
        copy_tree(context.cached_node_modules, context.node_modules)
        logger.info("Pruning cached dependencies not specified in package.json")
        _npm(registry, context, env, "prune", "prune")
    else:
        logger.info("Installing node modules from scratch (cache %s)", verdict)
        remove_path(context.node_modules)

    logger.info("Installing dependencies")
    _npm(registry, context, env, "install", "install")
    return strategy
