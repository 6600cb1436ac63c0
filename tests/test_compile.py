"""
End-to-end tests for the compile — every stage, with the tools faked.

Each build gets a fresh source tree (as on the platform), while the
cache dir is shared between builds.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from slugbuild.adapters.mock import MockAdapter
from slugbuild.adapters.registry import AdapterRegistry
from slugbuild.core.use_cases.compile import Toolbox, build_stages, run

from tests.fakes import (
    BUNDLED_NPM,
    RUBY_VERSION,
    FakeFetcher,
    FakeNpm,
    StaticResolver,
    gem_side_effect,
    ruby_side_effect,
    write_manifest,
)

ANSWERS = {
    ("node", ""): "20.11.1",
    ("node", "18.x"): "18.19.1",
    ("node", ">=20"): "20.11.1",
    ("npm", "10.x"): "10.2.4",
}


class Build:
    """One compile with its own fakes, so calls are counted per build."""

    def __init__(self, tmp_path: Path, name: str) -> None:
        self.build_dir = tmp_path / name
        self.build_dir.mkdir()
        self.npm = FakeNpm()
        self.registry = AdapterRegistry()
        self.registry.register(self.npm.adapter)
        self.registry.register(MockAdapter(adapter_name="ruby", on_execute=ruby_side_effect))
        self.registry.register(MockAdapter(adapter_name="gem", on_execute=gem_side_effect))
        self.registry.register(MockAdapter(adapter_name="bower"))
        self.registry.register(MockAdapter(adapter_name="grunt"))
        self.resolver = StaticResolver(ANSWERS)
        self.fetcher = FakeFetcher(tmp_path)
        self.tools = Toolbox(registry=self.registry, resolver=self.resolver, fetch=self.fetcher)

    @property
    def local_npm_calls(self) -> list[list[str]]:
        """npm calls against the app, without global installs."""
        return [args for args in self.npm.calls if "-g" not in args]

    def compile(self, cache_dir: Path, buildpack_dir: Path, env_dir: Path | None = None,
                environ: dict[str, str] | None = None):
        return run(
            self.build_dir,
            cache_dir,
            env_dir,
            buildpack_dir=buildpack_dir,
            tools=self.tools,
            environ=environ or {},
        )


@pytest.fixture
def new_build(tmp_path: Path):
    counter = iter(range(100))

    def make(**manifest) -> Build:
        build = Build(tmp_path, f"build-{next(counter)}")
        if manifest:
            write_manifest(build.build_dir, **manifest)
        return build

    return make


def _cached(cache_dir: Path) -> list[str]:
    modules = cache_dir / "node" / "node_modules"
    return sorted(p.name for p in modules.iterdir()) if modules.is_dir() else []


# ── First build ──────────────────────────────────────────────────────


class TestFirstBuild:
    def test_complete_slug(self, new_build, cache_dir, buildpack_dir):
        build = new_build(
            engines={"node": "18.x"},
            scripts={"start": "node app.js"},
            dependencies={"express": "^4", "left-pad": "^1"},
        )
        result = build.compile(cache_dir, buildpack_dir)

        assert result.ok, result.message
        assert result.exit_code == 0
        slug = build.build_dir
        assert (slug / "vendor" / "node" / "bin" / "node").is_file()
        assert sorted(p.name for p in (slug / "node_modules").iterdir()) == ["express", "left-pad"]
        assert (slug / "Procfile").read_text() == "web: npm start\n"
        assert (slug / ".profile.d" / "nodejs.sh").is_file()
        assert (buildpack_dir / "export").is_file()
        assert (slug / ".gem" / "bin" / "compass").is_file()

    def test_cache_written(self, new_build, cache_dir, buildpack_dir):
        build = new_build(engines={"node": "18.x"}, dependencies={"express": "^4"})
        build.compile(cache_dir, buildpack_dir)

        assert (cache_dir / "node" / "node-version").read_text() == "18.19.1\n"
        assert (cache_dir / "node" / "npm-version").read_text() == f"{BUNDLED_NPM}\n"
        assert _cached(cache_dir) == ["express"]
        assert (cache_dir / "ruby" / "ruby-version").read_text() == f"{RUBY_VERSION}\n"
        assert (cache_dir / "ruby" / ".gem" / "bin" / "compass").is_file()

    def test_installs_from_scratch(self, new_build, cache_dir, buildpack_dir):
        build = new_build(dependencies={"express": "^4"})
        build.compile(cache_dir, buildpack_dir)
        assert build.local_npm_calls[0] == ["--version"]
        assert [a[0] for a in build.local_npm_calls[1:]] == ["install"]
        assert build.resolver.calls == [("node", "")]

    def test_requested_npm_installed(self, new_build, cache_dir, buildpack_dir):
        build = new_build(engines={"node": "18.x", "npm": "10.x"})
        build.compile(cache_dir, buildpack_dir)
        assert ["install", "--unsafe-perm", "--quiet", "-g", "npm@10.2.4"] in build.npm.calls
        assert (cache_dir / "node" / "npm-version").read_text() == "10.2.4\n"

    def test_exact_versions_skip_resolution(self, new_build, cache_dir, buildpack_dir):
        build = new_build(engines={"node": "16.20.2"})
        assert build.compile(cache_dir, buildpack_dir).ok
        assert build.resolver.calls == []
        assert build.fetcher.urls[0].endswith("node-v16.20.2-linux-x64.tar.gz")

    def test_scratch_dirs_removed(self, new_build, cache_dir, buildpack_dir):
        build = new_build(dependencies={})
        (build.build_dir / ".npm").mkdir()
        (build.build_dir / ".node-gyp").mkdir()
        build.compile(cache_dir, buildpack_dir)
        assert not (build.build_dir / ".npm").exists()
        assert not (build.build_dir / ".node-gyp").exists()

    def test_grunt_runs_with_gruntfile(self, new_build, cache_dir, buildpack_dir):
        build = new_build(dependencies={})
        (build.build_dir / "Gruntfile.js").write_text("")
        build.compile(cache_dir, buildpack_dir, environ={"NODE_ENV": "staging"})
        assert build.registry.get("grunt").calls == [["heroku:staging"]]

    def test_no_manifest_degrades(self, new_build, cache_dir, buildpack_dir):
        build = new_build()
        result = build.compile(cache_dir, buildpack_dir)
        assert result.ok
        assert build.local_npm_calls == [["--version"]]
        assert not (build.build_dir / "Procfile").exists()
        assert _cached(cache_dir) == []
        assert (cache_dir / "node" / "node-version").read_text() == "20.11.1\n"


# ── Repeat builds ────────────────────────────────────────────────────


class TestRepeatBuild:
    def _first(self, new_build, cache_dir, buildpack_dir, **engines):
        first = new_build(
            engines=engines, dependencies={"express": "^4", "left-pad": "^1"}
        )
        assert first.compile(cache_dir, buildpack_dir).ok
        return first

    def test_second_build_prunes_instead_of_reinstalling(
        self, new_build, cache_dir, buildpack_dir
    ):
        self._first(new_build, cache_dir, buildpack_dir, node="18.x")
        second = new_build(
            engines={"node": "18.x"}, dependencies={"express": "^4", "lodash": "^4"}
        )
        result = second.compile(cache_dir, buildpack_dir)

        assert result.ok, result.message
        assert [a[0] for a in second.local_npm_calls] == ["--version", "prune", "install"]
        assert second.npm.new_installs == ["lodash"]
        assert sorted(p.name for p in (second.build_dir / "node_modules").iterdir()) == [
            "express", "lodash",
        ]
        assert _cached(cache_dir) == ["express", "lodash"]
        assert second.registry.get("gem").calls[0][0] == "update"

    def test_runtime_change_reinstalls(self, new_build, cache_dir, buildpack_dir):
        self._first(new_build, cache_dir, buildpack_dir, node="18.x")
        second = new_build(engines={"node": ">=20"}, dependencies={"express": "^4"})
        second.compile(cache_dir, buildpack_dir)

        assert "prune" not in [a[0] for a in second.local_npm_calls]
        assert second.npm.new_installs == ["express"]
        assert (cache_dir / "node" / "node-version").read_text() == "20.11.1\n"

    def test_npm_change_reinstalls(self, new_build, cache_dir, buildpack_dir):
        self._first(new_build, cache_dir, buildpack_dir, node="18.x")
        second = new_build(engines={"node": "18.x", "npm": "10.x"}, dependencies={"express": "^4"})
        second.compile(cache_dir, buildpack_dir)
        assert second.npm.new_installs == ["express"]

    def test_cache_disabled_reinstalls(self, new_build, cache_dir, buildpack_dir):
        self._first(new_build, cache_dir, buildpack_dir, node="18.x")
        second = new_build(engines={"node": "18.x"}, dependencies={"express": "^4"})
        second.compile(cache_dir, buildpack_dir, environ={"NODE_MODULES_CACHE": "false"})
        assert second.npm.new_installs == ["express"]

    def test_committed_node_modules_rebuilt(self, new_build, cache_dir, buildpack_dir):
        self._first(new_build, cache_dir, buildpack_dir, node="18.x")
        second = new_build(engines={"node": "18.x"}, dependencies={"express": "^4"})
        (second.build_dir / "node_modules" / "express").mkdir(parents=True)

        second.compile(cache_dir, buildpack_dir)
        assert [a[0] for a in second.local_npm_calls] == ["--version", "rebuild", "install"]
        assert not (second.build_dir / "node_modules" / "left-pad").exists()

    def test_committed_node_modules_narration(self, new_build, cache_dir, buildpack_dir,
                                              caplog):
        self._first(new_build, cache_dir, buildpack_dir, node="18.x")
        second = new_build(engines={"node": "18.x"}, dependencies={"express": "^4"})
        (second.build_dir / "node_modules").mkdir()

        with caplog.at_level(logging.INFO, logger="slugbuild"):
            assert second.compile(cache_dir, buildpack_dir).ok
        assert "Cache not consulted: node_modules is checked in" in caplog.text
        assert "Using cached node_modules" not in caplog.text

    def test_legacy_cache_layout_removed(self, new_build, cache_dir, buildpack_dir):
        (cache_dir / "node_modules" / "ancient").mkdir(parents=True)
        build = new_build(dependencies={"express": "^4"})
        build.compile(cache_dir, buildpack_dir)
        assert not (cache_dir / "node_modules").exists()
        # the legacy tree is never restored
        assert build.npm.new_installs == ["express"]


# ── Failures ─────────────────────────────────────────────────────────


class TestFailures:
    def _seed(self, new_build, cache_dir, buildpack_dir):
        first = new_build(engines={"node": "18.x"}, dependencies={"express": "^4"})
        assert first.compile(cache_dir, buildpack_dir).ok

    def test_unresolvable_version(self, new_build, cache_dir, buildpack_dir):
        self._seed(new_build, cache_dir, buildpack_dir)
        build = new_build(engines={"node": "99.x"})
        result = build.compile(cache_dir, buildpack_dir)

        assert not result.ok
        assert result.exit_code == 1
        assert result.report.failed_stage == "resolve-versions"
        assert "99.x" in result.message
        assert build.fetcher.urls == []
        assert (cache_dir / "node" / "node-version").read_text() == "18.19.1\n"

    def test_install_failure_keeps_previous_cache(self, new_build, cache_dir, buildpack_dir):
        self._seed(new_build, cache_dir, buildpack_dir)
        build = new_build(engines={"node": "18.x"}, dependencies={"broken": "^1"})
        build.npm.adapter.set_failure("npm:install", return_code=3, output="npm ERR! 404")

        result = build.compile(cache_dir, buildpack_dir)

        assert result.exit_code == 3
        assert result.report.failed_stage == "install-dependencies"
        assert _cached(cache_dir) == ["express"]
        stages = [r.action_id for r in result.report.receipts]
        assert "write-cache" not in stages

    def test_grunt_failure_aborts(self, new_build, cache_dir, buildpack_dir):
        build = new_build(dependencies={})
        (build.build_dir / "Gruntfile.js").write_text("")
        build.registry.get("grunt").set_failure("grunt:heroku:production", return_code=6)

        result = build.compile(cache_dir, buildpack_dir)
        assert result.exit_code == 6
        assert result.report.failed_stage == "run-grunt"

    def test_missing_build_dir(self, tmp_path, cache_dir, buildpack_dir):
        result = run(tmp_path / "nope", cache_dir, buildpack_dir=buildpack_dir)
        assert not result.ok
        assert result.exit_code == 1
        assert "does not exist" in result.message

    def test_invalid_manifest(self, new_build, cache_dir, buildpack_dir):
        build = new_build()
        (build.build_dir / "package.json").write_text("{oops")
        result = build.compile(cache_dir, buildpack_dir)
        assert not result.ok
        assert "Invalid JSON" in result.message
        assert build.npm.calls == []


# ── Configuration ────────────────────────────────────────────────────


class TestConfiguration:
    def test_env_dir_vars_reach_tools(self, new_build, cache_dir, buildpack_dir, tmp_path):
        env_dir = tmp_path / "env"
        env_dir.mkdir()
        (env_dir / "NPM_CONFIG_PRODUCTION").write_text("false")
        (env_dir / "SECRET").write_text("xyz")
        build = new_build(dependencies={"express": "^4"}, devDependencies={"mocha": "^10"})

        build.compile(cache_dir, buildpack_dir, env_dir=env_dir)

        assert sorted(build.npm.new_installs) == ["express", "mocha"]
        install = [c for c in build.npm.adapter.call_log if c.action.args[0] == "install"][0]
        assert install.action.env["SECRET"] == "xyz"

    def test_buildpack_dir_from_environment(self, new_build, cache_dir, tmp_path):
        target = tmp_path / "bp-env"
        target.mkdir()
        build = new_build(dependencies={})
        result = run(
            build.build_dir, cache_dir, tools=build.tools, environ={"BUILDPACK_DIR": str(target)}
        )
        assert result.ok
        assert (target / "export").is_file()

    def test_stage_order(self, tools):
        names = [stage.name for stage in build_stages(tools)]
        assert names.index("detect-source") < names.index("install-dependencies")
        assert names.index("evaluate-cache") < names.index("install-dependencies")
        assert names.index("install-dependencies") < names.index("install-compass")
        assert names[-1] == "write-cache"

    def test_json_report(self, new_build, cache_dir, buildpack_dir):
        build = new_build(dependencies={})
        data = build.compile(cache_dir, buildpack_dir).to_dict()
        assert data["ok"] is True
        assert data["report"]["total"] == len(build_stages(build.tools))
