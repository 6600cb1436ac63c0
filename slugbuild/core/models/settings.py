"""
BuildSettings — feature flags and pass-through variables for one compile.

Populated by ``slugbuild.core.config.loader.load_settings`` from the
process environment and the env dir.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class BuildSettings(BaseModel):
    """Feature flags and pass-through variables for one compile."""

    model_config = ConfigDict(frozen=True)

    modules_cache: bool = True          # NODE_MODULES_CACHE
    production: bool = True             # NPM_CONFIG_PRODUCTION
    node_env: str = "production"        # NODE_ENV, the grunt target
    semver_service_url: str = "https://semver.io"
    node_archive_url: str = (
        "https://nodejs.org/dist/v{version}/node-v{version}-linux-x64.tar.gz"
    )
    config_vars: dict[str, str] = Field(default_factory=dict)

    def passthrough_env(self) -> dict[str, str]:
        """Variables handed verbatim to build and task-runner commands."""
        env = dict(self.config_vars)
        env["NODE_ENV"] = self.node_env
        env["NPM_CONFIG_PRODUCTION"] = "true" if self.production else "false"
        return env
