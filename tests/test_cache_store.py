"""
Tests for reading and writing the node area of the build cache.
"""

from slugbuild.core.models.toolchain import ResolvedVersions
from slugbuild.core.services.cache_store import (
    clean_build_artifacts,
    read_cache_record,
    write_cache,
)


class TestReadCacheRecord:
    def test_cold(self, context):
        record = read_cache_record(context)
        assert record.cold
        assert record.previous_node is None

    def test_reads_versions_and_modules(self, context):
        context.cached_node_modules.mkdir(parents=True)
        (context.node_cache / "node-version").write_text("20.11.1\n")
        (context.node_cache / "npm-version").write_text("10.2.4\n")

        record = read_cache_record(context)
        assert record.previous_node == "20.11.1"
        assert record.previous_npm == "10.2.4"
        assert record.modules_present
        assert not record.cold

    def test_empty_npm_record_is_unknown(self, context):
        context.node_cache.mkdir(parents=True)
        (context.node_cache / "node-version").write_text("20.11.1\n")
        (context.node_cache / "npm-version").write_text("\n")
        assert read_cache_record(context).previous_npm is None


class TestWriteCache:
    def test_versions_written_without_node_modules(self, context):
        cached = write_cache(context, ResolvedVersions(node="20.11.1", npm="10.2.4"))

        assert cached is False
        assert (context.node_cache / "node-version").read_text() == "20.11.1\n"
        assert (context.node_cache / "npm-version").read_text() == "10.2.4\n"
        assert not context.cached_node_modules.exists()

    def test_copies_node_modules(self, context):
        (context.node_modules / "express").mkdir(parents=True)
        (context.node_modules / "express" / "index.js").write_text("")

        assert write_cache(context, ResolvedVersions(node="20.11.1", npm="10.2.4"))
        assert (context.cached_node_modules / "express" / "index.js").is_file()
        # the build tree keeps its copy
        assert (context.node_modules / "express").is_dir()

    def test_replaces_previous_tree(self, context):
        (context.cached_node_modules / "old-dep").mkdir(parents=True)
        (context.node_modules / "new-dep").mkdir(parents=True)

        write_cache(context, ResolvedVersions(node="20.11.1", npm="10.2.4"))
        assert not (context.cached_node_modules / "old-dep").exists()
        assert (context.cached_node_modules / "new-dep").is_dir()

    def test_removes_legacy_top_level_modules(self, context):
        (context.cache_dir / "node_modules" / "ancient").mkdir(parents=True)
        write_cache(context, ResolvedVersions(node="20.11.1"))
        assert not (context.cache_dir / "node_modules").exists()

    def test_leaves_other_cache_areas_alone(self, context):
        (context.cache_dir / "python").mkdir()
        (context.cache_dir / "python" / "marker").write_text("x")
        write_cache(context, ResolvedVersions(node="20.11.1", npm="10.2.4"))
        assert (context.cache_dir / "python" / "marker").is_file()

    def test_written_record_reads_back(self, context):
        (context.node_modules / "express").mkdir(parents=True)
        write_cache(context, ResolvedVersions(node="18.19.1", npm="9.8.1"))
        record = read_cache_record(context)
        assert (record.previous_node, record.previous_npm) == ("18.19.1", "9.8.1")
        assert record.modules_present


class TestCleanBuildArtifacts:
    def test_removes_scratch_dirs(self, context):
        (context.build_dir / ".npm" / "_cacache").mkdir(parents=True)
        (context.build_dir / ".node-gyp").mkdir()
        (context.build_dir / "src").mkdir()

        removed = clean_build_artifacts(context)
        assert sorted(removed) == [".node-gyp", ".npm"]
        assert (context.build_dir / "src").is_dir()

    def test_nothing_to_remove(self, context):
        assert clean_build_artifacts(context) == []
