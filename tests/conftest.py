"""
Shared test fixtures and configuration.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from slugbuild.adapters.mock import MockAdapter
from slugbuild.adapters.registry import AdapterRegistry
from slugbuild.core.models.context import BuildContext
from slugbuild.core.models.settings import BuildSettings
from slugbuild.core.use_cases.compile import Toolbox

from tests.fakes import (
    FakeFetcher,
    FakeNpm,
    StaticResolver,
    gem_side_effect,
    ruby_side_effect,
)

# ── Fixtures ────────────────────────────────────────────────────


@pytest.fixture
def build_dir(tmp_path: Path) -> Path:
    path = tmp_path / "build"
    path.mkdir()
    return path


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    path = tmp_path / "cache"
    path.mkdir()
    return path


@pytest.fixture
def buildpack_dir(tmp_path: Path) -> Path:
    path = tmp_path / "buildpack"
    path.mkdir()
    return path


@pytest.fixture
def context(build_dir: Path, cache_dir: Path, buildpack_dir: Path) -> BuildContext:
    return BuildContext(build_dir=build_dir, cache_dir=cache_dir, buildpack_dir=buildpack_dir)


@pytest.fixture
def settings() -> BuildSettings:
    return BuildSettings()


@pytest.fixture
def fake_npm() -> FakeNpm:
    return FakeNpm()


@pytest.fixture
def registry(fake_npm: FakeNpm) -> AdapterRegistry:
    reg = AdapterRegistry()
    reg.register(fake_npm.adapter)
    reg.register(MockAdapter(adapter_name="ruby", on_execute=ruby_side_effect))
    reg.register(MockAdapter(adapter_name="gem", on_execute=gem_side_effect))
    reg.register(MockAdapter(adapter_name="bower"))
    reg.register(MockAdapter(adapter_name="grunt"))
    return reg


@pytest.fixture
def resolver() -> StaticResolver:
    return StaticResolver({
        ("node", ""): "20.11.1",
        ("node", "18.x"): "18.19.1",
        ("node", ">=20"): "20.11.1",
        ("npm", "10.x"): "10.2.4",
    })


@pytest.fixture
def fetcher(tmp_path: Path) -> FakeFetcher:
    return FakeFetcher(tmp_path)


@pytest.fixture
def tools(registry: AdapterRegistry, resolver: StaticResolver, fetcher: FakeFetcher) -> Toolbox:
    return Toolbox(registry=registry, resolver=resolver, fetch=fetcher)
