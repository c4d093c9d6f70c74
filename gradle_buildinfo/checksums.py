"""Checksum resolution: deployed-artifact manifest first, Gradle cache second."""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Callable

import structlog

from gradle_buildinfo.cache import find_cached_artifact
from gradle_buildinfo.models import DEFAULT_TYPE, ArtifactRecord, DependencyRecord, Digests, ResolvedChecksum

log = structlog.get_logger("gradle_buildinfo.checksums")

_CHUNK_SIZE = 64 * 1024

ArtifactFinder = Callable[[DependencyRecord], Path | None]


def calc_checksums(path: str | Path) -> Digests:
    """sha1, sha256 and md5 of a file, read once."""
    sha1 = hashlib.sha1()
    sha256 = hashlib.sha256()
    md5 = hashlib.md5()
    with open(path, "rb") as fh:
        for chunk in iter(lambda: fh.read(_CHUNK_SIZE), b""):
            sha1.update(chunk)
            sha256.update(chunk)
            md5.update(chunk)
    return Digests(sha1=sha1.hexdigest(), sha256=sha256.hexdigest(), md5=md5.hexdigest())


def expected_artifact_name(dep: DependencyRecord) -> str:
    """``artifact-version[-classifier].type`` as a publish step names the file."""
    dep_type = dep.type or DEFAULT_TYPE
    id_parts = dep.id.split(":")
    if len(id_parts) >= 4 and id_parts[3]:
        return f"{dep.artifact}-{dep.version}-{id_parts[3]}.{dep_type}"
    return f"{dep.artifact}-{dep.version}.{dep_type}"


class ChecksumResolver:
    """Attach checksums to dependencies.

    1. Match against artifacts listed in the deployed-artifact manifest
       (no hashing needed).
    2. Locate the file in the Gradle module cache and hash it.
    """

    def __init__(
        self,
        deployed_artifacts: dict[str, list[ArtifactRecord]] | None = None,
        artifact_finder: ArtifactFinder = find_cached_artifact,
    ) -> None:
        self._deployed = deployed_artifacts or {}
        self._find_artifact = artifact_finder

    def from_manifest(self, dep: DependencyRecord) -> ResolvedChecksum | None:
        if not self._deployed or ":" not in dep.name:
            return None
        expected = expected_artifact_name(dep)
        for artifacts in self._deployed.values():
            for artifact in artifacts:
                if artifact.name != expected:
                    continue
                if artifact.checksum.is_empty():
                    log.debug("checksums.manifest_match_without_digests", dependency=dep.id)
                    return None
                return ResolvedChecksum(checksum=artifact.checksum, path=artifact.path, source="manifest")
        return None

    def from_cache(self, dep: DependencyRecord) -> ResolvedChecksum | None:
        path = self._find_artifact(dep)
        if path is None:
            return None
        try:
            digests = calc_checksums(path)
        except OSError as exc:
            log.debug("checksums.hash_failed", dependency=dep.id, path=str(path), error=str(exc))
            return None
        return ResolvedChecksum(checksum=digests, path=str(path), source="cache")

    def resolve(self, dep: DependencyRecord) -> ResolvedChecksum | None:
        """Checksums for *dep*, or None when neither tier yields a digest."""
        return self.from_manifest(dep) or self.from_cache(dep)
