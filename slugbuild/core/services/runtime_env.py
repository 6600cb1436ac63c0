"""
Runtime environment scripts — make the toolchain findable after the compile.

Two scripts are emitted:

    .profile.d/nodejs.sh   sourced by the dyno at startup; paths are
                           relative to ``$HOME`` (the slug root)
    <buildpack>/export     sourced by later buildpacks in the same
                           multi-buildpack compile; absolute build paths

Both are overwritten on every compile.  Later stages of this compile
may append to the export script (``append_export_lines``).
"""

from __future__ import annotations

import logging
from pathlib import Path

from slugbuild.adapters.shell.filesystem import write_text
from slugbuild.core.models.context import BuildContext
from slugbuild.core.models.toolchain import ToolchainLocations

logger = logging.getLogger(__name__)


def _export(name: str, value: str) -> str:
    return f'export {name}="{value}"\n'


def profile_script_content() -> str:
    """Startup-time exports, resolved against the slug's ``$HOME``."""
    return (
        _export("PATH", "$HOME/vendor/node/bin:$HOME/bin:$HOME/node_modules/.bin:$PATH")
        + _export("NODE_HOME", "$HOME/vendor/node")
    )


def export_script_content(context: BuildContext, toolchain: ToolchainLocations) -> str:
    """Build-time exports with absolute paths into the build dir."""
    bins = [str(p) for p in toolchain.bin_dirs]
    local_bin = str(context.node_modules / ".bin")
    if local_bin not in bins:
        bins.append(local_bin)
    return (
        _export("PATH", ":".join([*bins, "$PATH"]))
        + _export("NODE_HOME", str(toolchain.node_home))
    )


def write_profile_script(context: BuildContext) -> Path:
    path = context.profile_script
    write_text(path, profile_script_content())
    logger.info("Wrote %s", path.relative_to(context.build_dir))
    return path


def write_export_script(context: BuildContext, toolchain: ToolchainLocations) -> Path:
    path = context.export_script
    write_text(path, export_script_content(context, toolchain))
    logger.debug("Wrote build-stage exports to %s", path)
    return path


def append_export_lines(context: BuildContext, variables: dict[str, str]) -> None:
    """Add exports for a later stage to the build-stage script."""
    lines = "".join(_export(name, value) for name, value in variables.items())
    write_text(context.export_script, lines, append=True)
