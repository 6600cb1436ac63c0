"""
Compile use case — turn a source tree into a runnable slug.

This is the top-level orchestrator: it loads settings and the
manifest, assembles the ordered stage list and runs it.  Every stage
is a small function of the build state; the tools they need (adapter
registry, version resolver, archive fetcher) come from a ``Toolbox``
so tests can substitute any of them.

Stage order:
    read cache → detect dependency source → resolve versions →
    install node → install npm → evaluate cache → install dependencies →
    detect startup → write runtime env → compass → bower → grunt →
    clean + write cache
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import partial
from pathlib import Path

from slugbuild.adapters.net.http import download
from slugbuild.adapters.registry import AdapterRegistry, default_registry
from slugbuild.core.config.loader import ConfigError, load_manifest, load_settings
from slugbuild.core.engine.pipeline import PipelineReport, Stage, run_pipeline
from slugbuild.core.models.context import BuildContext
from slugbuild.core.models.decisions import ManifestSource
from slugbuild.core.models.manifest import VersionSpec
from slugbuild.core.models.state import BuildState
from slugbuild.core.models.toolchain import ResolvedVersions
from slugbuild.core.services import (
    archive,
    assets,
    cache_policy,
    cache_store,
    dependencies,
    runtime_env,
    startup,
    versions,
)
from slugbuild.core.services.archive import Fetcher
from slugbuild.core.services.versions import SemverServiceResolver, VersionResolver

logger = logging.getLogger(__name__)


@dataclass
class Toolbox:
    """External capabilities used by the stages."""

    registry: AdapterRegistry
    resolver: VersionResolver
    fetch: Fetcher = download


# ── Stages ──────────────────────────────────────────────────────


def read_cache(tools: Toolbox, state: BuildState) -> BuildState:
    return state.advance(cache_record=cache_store.read_cache_record(state.context))


def detect_dependency_source(tools: Toolbox, state: BuildState) -> BuildState:
    source = dependencies.detect_manifest_source(state.context.build_dir)
    logger.info("Dependency source: %s", source)
    return state.advance(manifest_source=source)


def resolve_versions(tools: Toolbox, state: BuildState) -> BuildState:
    node_spec = VersionSpec.for_node(state.manifest)
    npm_spec = VersionSpec.for_npm(state.manifest)

    logger.info(versions.describe_request(node_spec))
    node = versions.resolve_version(node_spec, tools.resolver)
    logger.info("Resolved node version: %s", node)

    npm = None
    if npm_spec.requested:
        logger.info(versions.describe_request(npm_spec))
        npm = versions.resolve_version(npm_spec, tools.resolver)
        logger.info("Resolved npm version: %s", npm)

    return state.advance(versions=ResolvedVersions(node=node, npm=npm))


def install_node(tools: Toolbox, state: BuildState) -> BuildState:
    toolchain = archive.install_node(
        state.context,
        state.require_versions().node,
        state.settings.node_archive_url,
        tools.fetch,
    )
    return state.advance(toolchain=toolchain)


def install_npm(tools: Toolbox, state: BuildState) -> BuildState:
    resolved = state.require_versions()
    toolchain = state.require_toolchain()
    bundled = archive.bundled_npm_version(tools.registry, state.context, toolchain)
    npm = archive.install_npm(tools.registry, state.context, toolchain, resolved.npm, bundled)
    return state.advance(versions=resolved.model_copy(update={"npm": npm}))


def evaluate_cache(tools: Toolbox, state: BuildState) -> BuildState:
    resolved = state.require_versions()
    record = state.cache_record
    verdict = cache_policy.evaluate_cache(
        modules_present=record.modules_present,
        cache_enabled=state.settings.modules_cache,
        previous_runtime=record.previous_node,
        resolved_runtime=resolved.node,
        previous_package_manager=record.previous_npm,
        resolved_package_manager=resolved.npm,
    )
    if state.manifest_source is ManifestSource.PREBUILT:
        logger.info("Cache not consulted: node_modules is checked in")
    elif state.manifest_source is ManifestSource.NONE:
        logger.info("Cache not consulted: no package.json")
    elif verdict.usable:
        logger.info("Using cached node_modules (%s)", verdict.reason)
    else:
        logger.info("Not using cached node_modules (%s)", verdict.reason)
    return state.advance(verdict=verdict)


def install_dependencies(tools: Toolbox, state: BuildState) -> BuildState:
    strategy = dependencies.install_dependencies(
        tools.registry,
        state.context,
        state.settings,
        state.require_toolchain(),
        state.manifest_source,
        state.verdict,
    )
    logger.debug("Install strategy: %s", strategy)
    return state


def detect_startup(tools: Toolbox, state: BuildState) -> BuildState:
    method = startup.detect_startup_method(state.context.build_dir, state.manifest)
    startup.write_process_file(state.context, method)
    return state.advance(startup=method)


def write_runtime_env(tools: Toolbox, state: BuildState) -> BuildState:
    runtime_env.write_profile_script(state.context)
    runtime_env.write_export_script(state.context, state.require_toolchain())
    return state


def install_compass(tools: Toolbox, state: BuildState) -> BuildState:
    ruby = assets.install_compass(tools.registry, state.context, state.settings)
    return state.advance(ruby_version=ruby)


def fetch_frontend_packages(tools: Toolbox, state: BuildState) -> BuildState:
    assets.fetch_frontend_packages(
        tools.registry, state.context, state.settings, state.require_toolchain()
    )
    return state


def run_grunt(tools: Toolbox, state: BuildState) -> BuildState:
    assets.run_grunt(tools.registry, state.context, state.settings, state.require_toolchain())
    return state


def write_cache(tools: Toolbox, state: BuildState) -> BuildState:
    cache_store.clean_build_artifacts(state.context)
    cache_store.write_cache(state.context, state.require_versions())
    assets.write_gem_cache(state.context, state.ruby_version)
    return state


def build_stages(tools: Toolbox) -> list[Stage]:
    """The compile, as an ordered list of named stages."""
    steps = [
        ("read-cache", "Reading build cache", read_cache),
        ("detect-source", "Detecting dependency source", detect_dependency_source),
        ("resolve-versions", "Resolving node and npm versions", resolve_versions),
        ("install-node", "Installing node", install_node),
        ("install-npm", "Installing npm", install_npm),
        ("evaluate-cache", "Checking node_modules cache", evaluate_cache),
        ("install-dependencies", "Installing dependencies", install_dependencies),
        ("detect-startup", "Detecting startup method", detect_startup),
        ("write-runtime-env", "Writing runtime environment", write_runtime_env),
        ("install-compass", "Installing Compass", install_compass),
        ("fetch-frontend", "Fetching front-end packages", fetch_frontend_packages),
        ("run-grunt", "Running grunt", run_grunt),
        ("write-cache", "Caching build artifacts", write_cache),
    ]
    return [Stage(name=name, title=title, run=partial(fn, tools)) for name, title, fn in steps]


# ── Entry point ─────────────────────────────────────────────────


@dataclass
class CompileResult:
    """Result of a compile."""

    context: BuildContext | None = None
    report: PipelineReport | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.report is not None and self.report.all_ok

    @property
    def exit_code(self) -> int:
        if self.error is not None:
            return 1
        if self.report is None:
            return 1
        return self.report.exit_code

    @property
    def message(self) -> str | None:
        if self.error is not None:
            return self.error
        if self.report is not None and self.report.error is not None:
            return str(self.report.error)
        return None

    def to_dict(self) -> dict:
        result: dict = {"ok": self.ok, "exit_code": self.exit_code}
        if self.error:
            result["error"] = self.error
        if self.context:
            result["build_dir"] = str(self.context.build_dir)
            result["cache_dir"] = str(self.context.cache_dir)
        if self.report:
            result["report"] = self.report.to_dict()
        return result


def run(
    build_dir: Path | str,
    cache_dir: Path | str,
    env_dir: Path | str | None = None,
    *,
    buildpack_dir: Path | str | None = None,
    tools: Toolbox | None = None,
    environ: dict[str, str] | None = None,
) -> CompileResult:
    """Compile ``build_dir`` using ``cache_dir`` as the side-cache.

    Args:
        build_dir: The application source tree; becomes the slug.
        cache_dir: Persistent cache shared across compiles.
        env_dir: Directory of config vars (one file per var).
        buildpack_dir: Where the build-stage ``export`` script is written
            (default: ``$BUILDPACK_DIR`` or the current directory).
        tools: Override the external capabilities (tests).
        environ: Override the process environment (tests).

    Returns:
        CompileResult; never raises for build failures.
    """
    environ = dict(os.environ if environ is None else environ)
    build_path = Path(build_dir).resolve()
    if not build_path.is_dir():
        return CompileResult(error=f"Build dir does not exist: {build_path}")

    cache_path = Path(cache_dir).resolve()
    try:
        cache_path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        return CompileResult(error=f"Cannot create cache dir {cache_path}: {e}")
    env_path = Path(env_dir).resolve() if env_dir else None
    bp_path = Path(buildpack_dir or environ.get("BUILDPACK_DIR") or Path.cwd()).resolve()

    context = BuildContext(
        build_dir=build_path,
        cache_dir=cache_path,
        env_dir=env_path,
        buildpack_dir=bp_path,
    )

    try:
        settings = load_settings(env_path, environ)
        manifest = load_manifest(build_path)
    except ConfigError as e:
        return CompileResult(context=context, error=str(e))

    if tools is None:
        tools = Toolbox(
            registry=default_registry(),
            resolver=SemverServiceResolver(settings.semver_service_url),
        )

    state = BuildState(context=context, settings=settings, manifest=manifest)
    report = run_pipeline(build_stages(tools), state)
    return CompileResult(context=context, report=report)
