"""
Configuration loader — build settings and the application manifest.

Two inputs shape a compile besides the source tree itself:

    - the env dir: one file per config var, written by the platform
      from the app's config store;
    - the process environment, which the env dir overrides.

Both are merged into a typed ``BuildSettings``.  ``load_manifest``
reads package.json into a ``PackageManifest``.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from pydantic import ValidationError

from slugbuild.core.models.context import MANIFEST_FILE
from slugbuild.core.models.manifest import PackageManifest
from slugbuild.core.models.settings import BuildSettings

logger = logging.getLogger(__name__)

# Config vars never imported from the env dir: they would break the
# compile's own toolchain resolution.
ENV_DIR_BLACKLIST = frozenset({
    "PATH",
    "GIT_DIR",
    "CPATH",
    "CPPATH",
    "LD_PRELOAD",
    "LIBRARY_PATH",
})

_FALSE_VALUES = {"false", "0", "no", "off"}


class ConfigError(Exception):
    """Raised when build configuration or the manifest is unreadable."""


def _flag(value: str | None, default: bool) -> bool:
    if value is None or value == "":
        return default
    return value.strip().lower() not in _FALSE_VALUES


def load_env_dir(env_dir: Path | None) -> dict[str, str]:
    """Read config vars from an env dir (file name = var, content = value).

    A missing env dir is an empty config, not an error.

    Raises:
        ConfigError: If the path exists but is not a readable directory.
    """
    if env_dir is None or not env_dir.exists():
        return {}
    if not env_dir.is_dir():
        raise ConfigError(f"Env dir is not a directory: {env_dir}")

    values: dict[str, str] = {}
    try:
        entries = sorted(env_dir.iterdir())
    except OSError as e:
        raise ConfigError(f"Cannot read env dir {env_dir}: {e}") from e

    for entry in entries:
        if not entry.is_file():
            continue
        if entry.name in ENV_DIR_BLACKLIST:
            logger.debug("Ignoring blacklisted config var %s", entry.name)
            continue
        try:
            values[entry.name] = entry.read_text(encoding="utf-8").rstrip("\n")
        except OSError as e:
            raise ConfigError(f"Cannot read config var {entry}: {e}") from e

    logger.debug("Imported %d config vars from %s", len(values), env_dir)
    return values


def load_settings(
    env_dir: Path | None = None,
    environ: dict[str, str] | None = None,
) -> BuildSettings:
    """Merge process environment and env-dir config vars into settings."""
    merged = dict(os.environ if environ is None else environ)
    config_vars = load_env_dir(env_dir)
    merged.update(config_vars)

    defaults = BuildSettings()
    return BuildSettings(
        modules_cache=_flag(merged.get("NODE_MODULES_CACHE"), defaults.modules_cache),
        production=_flag(merged.get("NPM_CONFIG_PRODUCTION"), defaults.production),
        node_env=merged.get("NODE_ENV") or defaults.node_env,
        semver_service_url=merged.get("SEMVER_SERVICE_URL") or defaults.semver_service_url,
        node_archive_url=(
            merged.get("NODE_ARCHIVE_URL_TEMPLATE") or defaults.node_archive_url
        ),
        config_vars=config_vars,
    )


def load_manifest(build_dir: Path) -> PackageManifest | None:
    """Load package.json from the build dir.

    Returns:
        The parsed manifest, or None when the app has no package.json.

    Raises:
        ConfigError: If package.json exists but is not a JSON object.
    """
    path = build_dir / MANIFEST_FILE
    if not path.is_file():
        return None

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a JSON object in {path}, got {type(data).__name__}")

    try:
        return PackageManifest.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid package.json: {e}") from e
