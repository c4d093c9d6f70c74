"""Tests for Gradle module cache lookup."""

from __future__ import annotations

import json

import pytest

from gradle_buildinfo.cache import (
    find_cached_artifact,
    find_file_case_insensitive,
    find_unique_variant,
    gradle_cache_base,
    gradle_user_home,
)
from gradle_buildinfo.exceptions import PathTraversalError
from gradle_buildinfo.models import DependencyRecord


def _dep(group="org.x", module="lib", version="1.0", classifier="", dep_type="jar"):
    dep_id = f"{group}:{module}:{version}" + (f":{classifier}" if classifier else "")
    return DependencyRecord(
        id=dep_id, name=f"{group}:{module}", version=version, type=dep_type, classifier=classifier
    )


class TestUserHome:
    def test_override(self, tmp_path, monkeypatch):
        monkeypatch.setenv("GRADLE_USER_HOME", str(tmp_path))
        assert gradle_user_home() == tmp_path
        assert gradle_cache_base() == tmp_path / "caches" / "modules-2" / "files-2.1"

    def test_traversal_rejected(self, monkeypatch):
        monkeypatch.setenv("GRADLE_USER_HOME", "/home/user/../../etc")
        with pytest.raises(PathTraversalError):
            gradle_user_home()

    def test_default_under_home(self, tmp_path, monkeypatch):
        monkeypatch.delenv("GRADLE_USER_HOME", raising=False)
        monkeypatch.setenv("HOME", str(tmp_path))
        assert gradle_user_home() == tmp_path / ".gradle"


class TestFindCachedArtifact:
    def test_versioned_name(self, cache_file, gradle_cache):
        path = cache_file("org.x", "lib", "1.0", "lib-1.0.jar")
        assert find_cached_artifact(_dep()) == path

    def test_unversioned_name(self, cache_file):
        path = cache_file("org.x", "lib", "1.0", "lib.jar")
        assert find_cached_artifact(_dep()) == path

    def test_explicit_cache_base(self, tmp_path):
        directory = tmp_path / "org.x" / "lib" / "1.0" / "h1"
        directory.mkdir(parents=True)
        (directory / "lib-1.0.jar").write_bytes(b"x")
        assert find_cached_artifact(_dep(), cache_base=tmp_path) == directory / "lib-1.0.jar"

    def test_searches_all_hash_dirs(self, cache_file):
        cache_file("org.x", "lib", "1.0", "lib-1.0.pom", hash_dir="aaaa")
        path = cache_file("org.x", "lib", "1.0", "lib-1.0.jar", hash_dir="bbbb")
        assert find_cached_artifact(_dep()) == path

    def test_classifier(self, cache_file):
        cache_file("org.x", "lib", "1.0", "lib-1.0.jar")
        path = cache_file("org.x", "lib", "1.0", "lib-1.0-linux.jar", hash_dir="cccc")
        assert find_cached_artifact(_dep(classifier="linux")) == path

    def test_type_extension(self, cache_file):
        path = cache_file("org.x", "lib", "1.0", "lib-1.0.aar")
        assert find_cached_artifact(_dep(dep_type="aar")) == path

    def test_case_insensitive(self, cache_file):
        path = cache_file("org.x", "lib", "1.0", "LIB-1.0.JAR")
        assert find_cached_artifact(_dep()) == path

    def test_missing(self, gradle_cache):
        assert find_cached_artifact(_dep()) is None

    def test_traversal_coordinates_rejected(self, gradle_cache):
        assert find_cached_artifact(_dep(group="..", module="etc")) is None

    def test_no_version(self, gradle_cache):
        assert find_cached_artifact(_dep(version="")) is None

    def test_module_metadata_runtime_variant(self, cache_file):
        meta = {
            "variants": [
                {"name": "apiElements", "files": [{"name": "lib-1.0-api.jar"}]},
                {"name": "runtimeElements", "files": [{"name": "lib-1.0-jvm.jar"}]},
            ]
        }
        cache_file("org.x", "lib", "1.0", "lib-1.0.module", json.dumps(meta).encode(), hash_dir="m")
        cache_file("org.x", "lib", "1.0", "lib-1.0-api.jar", hash_dir="m")
        path = cache_file("org.x", "lib", "1.0", "lib-1.0-jvm.jar", hash_dir="m")
        assert find_cached_artifact(_dep()) == path

    @pytest.mark.parametrize(
        "meta",
        [
            {"variants": 1},
            {"variants": [{"name": "runtimeElements", "files": 5}]},
            {"variants": [{"name": "runtimeElements", "files": [7, "x"]}]},
            ["not", "a", "dict"],
        ],
    )
    def test_malformed_module_metadata_is_no_match(self, cache_file, meta):
        cache_file("g", "m", "1.0", "m-1.0.module", json.dumps(meta).encode())
        assert find_cached_artifact(_dep(group="g", module="m")) is None

    def test_malformed_variant_skipped(self, cache_file):
        meta = {
            "variants": [
                {"name": "runtimeElements", "files": 5},
                {"name": "apiElements", "files": [{"name": "m-1.0-api.jar"}]},
            ]
        }
        cache_file("g", "m", "1.0", "m-1.0.module", json.dumps(meta).encode(), hash_dir="m")
        cache_file("g", "m", "1.0", "m-1.0-extra.jar", hash_dir="m")
        path = cache_file("g", "m", "1.0", "m-1.0-api.jar", hash_dir="m")
        assert find_cached_artifact(_dep(group="g", module="m")) == path

    def test_unique_variant(self, cache_file):
        cache_file("org.x", "lib", "1.0", "lib-1.0-sources.jar")
        path = cache_file("org.x", "lib", "1.0", "lib-1.0-all.jar")
        assert find_cached_artifact(_dep()) == path


class TestHelpers:
    def test_case_insensitive_skips_sidecars(self, tmp_path):
        (tmp_path / "lib-1.0.jar.sha1").write_text("x")
        assert find_file_case_insensitive(tmp_path, "lib-1.0.jar.sha1") is None

    def test_unique_variant_ambiguous(self, tmp_path):
        (tmp_path / "lib-1.0-a.jar").write_bytes(b"")
        (tmp_path / "lib-1.0-b.jar").write_bytes(b"")
        assert find_unique_variant(tmp_path, "lib", "1.0", "jar") is None

    def test_unique_variant_ignores_javadoc(self, tmp_path):
        (tmp_path / "lib-1.0-javadoc.jar").write_bytes(b"")
        assert find_unique_variant(tmp_path, "lib", "1.0", "jar") is None
