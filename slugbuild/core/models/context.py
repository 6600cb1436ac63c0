"""
BuildContext — the directories a compile reads and writes.

The three invocation directories (build, cache, env) plus the buildpack
directory that receives the build-stage export script.  The well-known
file names of an app tree are defined here too; functions that only
get a ``build_dir`` (detection, release) join these names instead of
spelling them out.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict

MANIFEST_FILE = "package.json"
LOCKFILES = ("npm-shrinkwrap.json", "package-lock.json")
MODULES_DIR = "node_modules"
PROCESS_FILE = "Procfile"


class BuildContext(BaseModel):
    """Directories owned by one compile. Not persisted."""

    model_config = ConfigDict(frozen=True)

    build_dir: Path
    cache_dir: Path
    env_dir: Path | None = None
    buildpack_dir: Path

    # ── Build tree ───────────────────────────────────────────────

    @property
    def node_home(self) -> Path:
        """Toolchain-home: where node and its bundled npm are installed."""
        return self.build_dir / "vendor" / "node"

    @property
    def node_modules(self) -> Path:
        return self.build_dir / MODULES_DIR

    @property
    def npmrc(self) -> Path:
        """Per-build npm configuration; the user's global config is never read."""
        return self.build_dir / ".npmrc"

    @property
    def procfile(self) -> Path:
        return self.build_dir / PROCESS_FILE

    @property
    def profile_script(self) -> Path:
        return self.build_dir / ".profile.d" / "nodejs.sh"

    @property
    def gem_dir(self) -> Path:
        return self.build_dir / ".gem"

    # ── Buildpack ────────────────────────────────────────────────

    @property
    def export_script(self) -> Path:
        """Sourced by later buildpacks in a multi-buildpack compile."""
        return self.buildpack_dir / "export"

    # ── Cache ────────────────────────────────────────────────────

    @property
    def node_cache(self) -> Path:
        return self.cache_dir / "node"

    @property
    def cached_node_modules(self) -> Path:
        return self.node_cache / MODULES_DIR

    @property
    def ruby_cache(self) -> Path:
        return self.cache_dir / "ruby"

    @property
    def cached_gem_dir(self) -> Path:
        return self.ruby_cache / ".gem"
