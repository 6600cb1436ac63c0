"""
Startup method detection — how the deployed app's web process starts.

First match wins:
    Procfile present       → use it unchanged
    scripts.start declared → ``web: npm start``
    server.js at the root  → ``web: node server.js``
    otherwise              → nothing to run (reported, not fatal)
"""

from __future__ import annotations

import logging
from pathlib import Path

from slugbuild.adapters.shell.filesystem import write_text
from slugbuild.core.models.context import PROCESS_FILE, BuildContext
from slugbuild.core.models.decisions import StartupMethod
from slugbuild.core.models.manifest import PackageManifest

logger = logging.getLogger(__name__)

DEFAULT_ENTRY_FILE = "server.js"

_WEB_COMMANDS = {
    StartupMethod.PACKAGE_START_SCRIPT: "npm start",
    StartupMethod.DEFAULT_ENTRY_FILE: f"node {DEFAULT_ENTRY_FILE}",
}


def detect_startup_method(
    build_dir: Path,
    manifest: PackageManifest | None,
) -> StartupMethod:
    """Decide the startup method in priority order."""
    if (build_dir / PROCESS_FILE).is_file():
        return StartupMethod.EXISTING_PROCESS_FILE
    if manifest is not None and manifest.start_script:
        return StartupMethod.PACKAGE_START_SCRIPT
    if (build_dir / DEFAULT_ENTRY_FILE).is_file():
        return StartupMethod.DEFAULT_ENTRY_FILE
    return StartupMethod.NONE


def web_command(method: StartupMethod) -> str | None:
    """The synthesized ``web`` command for ``method``, if one is synthesized."""
    return _WEB_COMMANDS.get(method)


def process_types(build_dir: Path, method: StartupMethod) -> dict[str, str]:
    """Process types the slug will declare, for release metadata."""
    if method is StartupMethod.EXISTING_PROCESS_FILE:
        return _parse_procfile(build_dir / PROCESS_FILE)
    command = web_command(method)
    return {"web": command} if command else {}


def _parse_procfile(path: Path) -> dict[str, str]:
    types: dict[str, str] = {}
    for line in path.read_text(encoding="utf-8").splitlines():
        name, sep, command = line.partition(":")
        if sep and name.strip() and not name.lstrip().startswith("#"):
            types[name.strip()] = command.strip()
    return types


def write_process_file(context: BuildContext, method: StartupMethod) -> bool:
    """Synthesize a Procfile when the method calls for one.

    Returns:
        True if a Procfile was written.
    """
    if method is StartupMethod.EXISTING_PROCESS_FILE:
        logger.info("Procfile found; leaving it unchanged")
        return False

    command = web_command(method)
    if command is None:
        logger.warning(
            "No Procfile, no start script in package.json and no %s; "
            "the app has no default web process",
            DEFAULT_ENTRY_FILE,
        )
        return False

    write_text(context.procfile, f"web: {command}\n")
    logger.info("No Procfile found; adding 'web: %s'", command)
    return True
