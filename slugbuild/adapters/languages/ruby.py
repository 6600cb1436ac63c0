"""
Ruby adapters — the system Ruby used to install the Compass gem.
"""

from __future__ import annotations

from slugbuild.adapters.shell.command import CommandAdapter


class RubyAdapter(CommandAdapter):
    """The ruby interpreter (used to read ``RUBY_VERSION``)."""

    def __init__(self) -> None:
        super().__init__("ruby")


class GemAdapter(CommandAdapter):
    """RubyGems; installs Compass into the build tree's gem home."""

    def __init__(self) -> None:
        super().__init__("gem")
