"""Tests for checksum calculation and the manifest → cache resolution order."""

from __future__ import annotations

import hashlib
from unittest.mock import MagicMock

from gradle_buildinfo.checksums import ChecksumResolver, calc_checksums, expected_artifact_name
from gradle_buildinfo.models import ArtifactRecord, DependencyRecord, Digests


def _dep(dep_id="org.x:lib:1.0", dep_type="jar"):
    parts = dep_id.split(":")
    return DependencyRecord(id=dep_id, name=":".join(parts[:2]), version=parts[2], type=dep_type)


class TestCalcChecksums:
    def test_digests(self, tmp_path):
        path = tmp_path / "a.jar"
        path.write_bytes(b"hello")
        digests = calc_checksums(path)
        assert digests.sha1 == hashlib.sha1(b"hello").hexdigest()
        assert digests.sha256 == hashlib.sha256(b"hello").hexdigest()
        assert digests.md5 == hashlib.md5(b"hello").hexdigest()


class TestExpectedArtifactName:
    def test_plain(self):
        assert expected_artifact_name(_dep()) == "lib-1.0.jar"

    def test_classifier_from_id(self):
        assert expected_artifact_name(_dep("org.x:lib:1.0:linux")) == "lib-1.0-linux.jar"

    def test_type(self):
        assert expected_artifact_name(_dep(dep_type="aar")) == "lib-1.0.aar"


class TestChecksumResolver:
    def test_manifest_first(self):
        finder = MagicMock()
        deployed = {
            "core": [
                ArtifactRecord("core", "jar", "lib-1.0.jar", "org/x/lib/1.0/lib-1.0.jar", Digests(sha1="s1", md5="m5")),
            ]
        }
        resolved = ChecksumResolver(deployed, artifact_finder=finder).resolve(_dep())
        assert resolved.source == "manifest"
        assert resolved.checksum == Digests(sha1="s1", md5="m5")
        assert resolved.path == "org/x/lib/1.0/lib-1.0.jar"
        finder.assert_not_called()

    def test_cache_when_not_in_manifest(self, tmp_path):
        jar = tmp_path / "lib-1.0.jar"
        jar.write_bytes(b"data")
        resolved = ChecksumResolver({}, artifact_finder=lambda dep: jar).resolve(_dep())
        assert resolved.source == "cache"
        assert resolved.checksum.sha256 == hashlib.sha256(b"data").hexdigest()
        assert resolved.path == str(jar)

    def test_manifest_match_without_digests_falls_through(self, tmp_path):
        jar = tmp_path / "lib-1.0.jar"
        jar.write_bytes(b"data")
        deployed = {"": [ArtifactRecord("", "jar", "lib-1.0.jar", "p", Digests())]}
        resolved = ChecksumResolver(deployed, artifact_finder=lambda dep: jar).resolve(_dep())
        assert resolved.source == "cache"

    def test_nothing_found(self):
        assert ChecksumResolver(artifact_finder=lambda dep: None).resolve(_dep()) is None

    def test_unreadable_cache_file(self, tmp_path):
        missing = tmp_path / "gone.jar"
        assert ChecksumResolver(artifact_finder=lambda dep: missing).resolve(_dep()) is None

    def test_name_without_group_skips_manifest(self):
        dep = DependencyRecord(id="lib:1.0", name="lib", version="1.0")
        deployed = {"": [ArtifactRecord("", "jar", "lib-1.0.jar", "p", Digests(sha1="s"))]}
        assert ChecksumResolver(deployed, artifact_finder=lambda d: None).from_manifest(dep) is None
