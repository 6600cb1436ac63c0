"""
Front-end toolchain — Compass, bower and grunt, after node_modules exists.

Compass is a Ruby gem installed into the build tree's gem home
(``.gem``), restored from ``cache/ruby/.gem`` when the cache is usable.
The gem cache follows the same validity policy as node_modules:
presence, the cache flag, and the Ruby version recorded next to it.

bower always runs; grunt runs when the app has a Gruntfile, with the
app's config vars passed through so tasks can read them.

Every failure here aborts the compile.
"""

from __future__ import annotations

import logging
from pathlib import Path

from slugbuild.adapters.registry import AdapterRegistry
from slugbuild.adapters.shell.filesystem import (
    copy_tree,
    read_line,
    remove_path,
    reset_dir,
    write_text,
)
from slugbuild.core.models.context import BuildContext
from slugbuild.core.models.decisions import CacheVerdict
from slugbuild.core.models.settings import BuildSettings
from slugbuild.core.models.toolchain import ToolchainLocations
from slugbuild.core.services.cache_policy import evaluate_cache
from slugbuild.core.services.commands import run_tool
from slugbuild.core.services.dependencies import npm_environment
from slugbuild.core.services.runtime_env import append_export_lines

logger = logging.getLogger(__name__)

RUBY_VERSION_FILE = "ruby-version"
GRUNTFILES = ("Gruntfile.js", "Gruntfile.coffee", "grunt.js")
COMPASS_GEM = "compass"


# ── Compass ─────────────────────────────────────────────────────


def gem_environment(context: BuildContext) -> dict[str, str]:
    """Install gems into the build tree, never the system gem home."""
    return {
        "HOME": str(context.build_dir),
        "GEM_HOME": str(context.gem_dir),
        "GEM_PATH": str(context.gem_dir),
    }


def ruby_version(registry: AdapterRegistry, context: BuildContext) -> str:
    receipt = run_tool(
        registry,
        adapter="ruby",
        step="version",
        args=["-e", "print RUBY_VERSION"],
        cwd=context.build_dir,
        echo=False,
    )
    return receipt.output.strip()


def evaluate_gem_cache(
    context: BuildContext,
    settings: BuildSettings,
    current_ruby: str,
) -> CacheVerdict:
    return evaluate_cache(
        modules_present=context.cached_gem_dir.is_dir(),
        cache_enabled=settings.modules_cache,
        previous_runtime=read_line(context.ruby_cache / RUBY_VERSION_FILE),
        resolved_runtime=current_ruby,
    )


def install_compass(
    registry: AdapterRegistry,
    context: BuildContext,
    settings: BuildSettings,
) -> str:
    """Install or update Compass in ``.gem``.

    Returns:
        The Ruby version the gems were installed with.

    Raises:
        InstallFailure: If ruby or gem fails.
    """
    current_ruby = ruby_version(registry, context)
    verdict = evaluate_gem_cache(context, settings, current_ruby)
    env = gem_environment(context)
    gem_args = [COMPASS_GEM, "--no-document"]

    if verdict.usable:
        logger.info("Restoring ruby gems directory from cache")
        copy_tree(context.cached_gem_dir, context.gem_dir)
        run_tool(
            registry, adapter="gem", step="update-compass",
            args=["update", *gem_args], cwd=context.build_dir, env=env,
        )
    else:
        logger.info("Installing Compass (gem cache %s)", verdict)
        remove_path(context.gem_dir)
        run_tool(
            registry, adapter="gem", step="install-compass",
            args=["install", *gem_args], cwd=context.build_dir, env=env,
        )

    append_export_lines(context, {
        "GEM_HOME": str(context.gem_dir),
        "PATH": f"{context.gem_dir / 'bin'}:$PATH",
    })
    return current_ruby


def write_gem_cache(context: BuildContext, ruby: str | None) -> bool:
    """Persist ``.gem`` and its Ruby version for the next compile."""
    reset_dir(context.ruby_cache)
    if ruby:
        write_text(context.ruby_cache / RUBY_VERSION_FILE, f"{ruby}\n")
    if not context.gem_dir.is_dir():
        return False
    logger.info("Caching ruby gems directory for future builds")
    copy_tree(context.gem_dir, context.cached_gem_dir)
    return True


# ── bower ───────────────────────────────────────────────────────


def _has_bower(context: BuildContext, toolchain: ToolchainLocations) -> bool:
    candidates = [context.node_modules / ".bin" / "bower"]
    candidates += [d / "bower" for d in toolchain.bin_dirs]
    return any(path.exists() for path in candidates)


def fetch_frontend_packages(
    registry: AdapterRegistry,
    context: BuildContext,
    settings: BuildSettings,
    toolchain: ToolchainLocations,
) -> None:
    """Run ``bower install``, installing bower into the toolchain if needed."""
    env = npm_environment(toolchain, settings)
    if not _has_bower(context, toolchain):
        logger.info("Installing bower")
        run_tool(
            registry, adapter="npm", step="install-bower",
            args=["install", "--quiet", "-g", "bower"], cwd=context.build_dir, env=env,
        )

    logger.info("Installing front-end packages with bower")
    run_tool(
        registry, adapter="bower", step="install",
        args=["install", "--config.interactive=false"], cwd=context.build_dir, env=env,
    )


# ── grunt ───────────────────────────────────────────────────────


def find_gruntfile(build_dir: Path) -> Path | None:
    for name in GRUNTFILES:
        if (build_dir / name).is_file():
            return build_dir / name
    return None


def run_grunt(
    registry: AdapterRegistry,
    context: BuildContext,
    settings: BuildSettings,
    toolchain: ToolchainLocations,
) -> bool:
    """Run ``grunt heroku:<NODE_ENV>`` when the app has a Gruntfile.

    Returns:
        True if grunt ran.
    """
    gruntfile = find_gruntfile(context.build_dir)
    if gruntfile is None:
        logger.info("No Gruntfile (%s) found", ", ".join(GRUNTFILES))
        return False

    task = f"heroku:{settings.node_env}"
    logger.info("Found %s, running grunt %s task", gruntfile.name, task)
    env = npm_environment(toolchain, settings)
    env["GEM_HOME"] = env["GEM_PATH"] = str(context.gem_dir)
    env["PATH"] = toolchain.with_bin_dir(context.gem_dir / "bin").search_path()
    run_tool(registry, adapter="grunt", step=task, args=[task], cwd=context.build_dir, env=env)
    return True
