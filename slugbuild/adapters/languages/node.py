"""
Node.js adapters — npm and the front-end tools run through node.

npm comes from the toolchain installed into the build tree; bower and
grunt are preferably the app's own copies under node_modules/.bin.
"""

from __future__ import annotations

import re

from slugbuild.adapters.base import ExecutionContext
from slugbuild.adapters.shell.command import CommandAdapter

_VERSION_RE = re.compile(r"v?(\d+\.\d+\.\d+)")


def parse_version(output: str) -> str | None:
    """Extract the first ``X.Y.Z`` from ``--version`` output."""
    match = _VERSION_RE.search(output)
    return match.group(1) if match else None


class NpmAdapter(CommandAdapter):
    """npm, the package manager bundled with the node archive."""

    def __init__(self) -> None:
        super().__init__("npm")

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        if not context.action.args:
            return False, "Missing npm subcommand"
        return super().validate(context)


class BowerAdapter(CommandAdapter):
    """bower, the front-end package fetcher."""

    def __init__(self) -> None:
        super().__init__("bower", prefer_local_bin=True)


class GruntAdapter(CommandAdapter):
    """grunt, the task runner (always the app's local grunt-cli first)."""

    def __init__(self) -> None:
        super().__init__("grunt", prefer_local_bin=True)
