"""
Cache store — read and write the node area of the build cache.

Layout under the cache dir::

    node/node-version    single line, exact node version
    node/npm-version     single line, exact npm version
    node/node_modules/   copy of the last successful dependency tree

The version records are written on every successful compile; the
dependency tree only when the compile produced one.  Writing is the
last step of a compile, so a failed compile leaves the previous cache
intact.
"""

from __future__ import annotations

import logging

from slugbuild.adapters.shell.filesystem import (
    copy_tree,
    read_line,
    remove_path,
    reset_dir,
    write_text,
)
from slugbuild.core.models.cache import CacheRecord
from slugbuild.core.models.context import BuildContext
from slugbuild.core.models.toolchain import ResolvedVersions

logger = logging.getLogger(__name__)

NODE_VERSION_FILE = "node-version"
NPM_VERSION_FILE = "npm-version"

# Pre-namespacing layout: node_modules at the top of the cache dir
LEGACY_CACHE_ENTRIES = ("node_modules",)

# Toolchain scratch directories that must not ship in the slug
BUILD_SCRATCH_DIRS = (".node-gyp", ".npm")


def read_cache_record(context: BuildContext) -> CacheRecord:
    """What the previous compile recorded (cold start if nothing)."""
    record = CacheRecord(
        previous_node=read_line(context.node_cache / NODE_VERSION_FILE),
        previous_npm=read_line(context.node_cache / NPM_VERSION_FILE),
        modules_present=context.cached_node_modules.is_dir(),
    )
    if record.cold:
        logger.info("No previous build cache")
    else:
        logger.info(
            "Previous build: node %s, npm %s, node_modules %s",
            record.previous_node or "unknown",
            record.previous_npm or "unknown",
            "cached" if record.modules_present else "not cached",
        )
    return record


def clean_build_artifacts(context: BuildContext) -> list[str]:
    """Remove toolchain scratch dirs from the build tree."""
    removed = [
        name for name in BUILD_SCRATCH_DIRS if remove_path(context.build_dir / name)
    ]
    if removed:
        logger.debug("Removed build scratch: %s", ", ".join(removed))
    return removed


def write_cache(context: BuildContext, versions: ResolvedVersions) -> bool:
    """Persist versions and node_modules for the next compile.

    Only the node area is reset: other buildpacks sharing the cache dir
    keep their entries.

    Returns:
        True if a node_modules tree was cached.
    """
    for name in LEGACY_CACHE_ENTRIES:
        if remove_path(context.cache_dir / name):
            logger.debug("Removed legacy cache entry %s", name)

    reset_dir(context.node_cache)
    write_text(context.node_cache / NODE_VERSION_FILE, f"{versions.node}\n")
    write_text(context.node_cache / NPM_VERSION_FILE, f"{versions.npm or ''}\n")

    if not context.node_modules.is_dir():
        logger.info("No node_modules directory to cache")
        return False

    logger.info("Caching node_modules directory for future builds")
    copy_tree(context.node_modules, context.cached_node_modules)
    return True
