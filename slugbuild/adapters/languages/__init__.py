"""Language toolchain adapters."""

from slugbuild.adapters.languages.node import BowerAdapter, GruntAdapter, NpmAdapter
from slugbuild.adapters.languages.ruby import GemAdapter, RubyAdapter

__all__ = ["BowerAdapter", "GemAdapter", "GruntAdapter", "NpmAdapter", "RubyAdapter"]
