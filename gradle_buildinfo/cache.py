"""Lookup of dependency files in Gradle's module cache.

Layout (read-only)::

    <GRADLE_USER_HOME>/caches/modules-2/files-2.1/<group>/<module>/<version>/<sha1>/<file>

Every path below the cache base is built through :class:`PathSandbox`,
since group, module and version come from build output.
"""

from __future__ import annotations

import json
import os
from pathlib import Path

import structlog

from gradle_buildinfo.exceptions import PathTraversalError
from gradle_buildinfo.models import DEFAULT_TYPE, DependencyRecord
from gradle_buildinfo.sandbox import PathSandbox, clean_absolute

log = structlog.get_logger("gradle_buildinfo.cache")

_SIDECAR_SUFFIXES = (".sha1", ".sha256", ".sha512", ".md5")
_METADATA_SUFFIXES = (".module", ".json")
_NON_RUNTIME_MARKERS = ("-sources.", "-javadoc.", "-tests.")


def gradle_user_home() -> Path:
    """``GRADLE_USER_HOME`` (rejected if it contains ``..``) or ``~/.gradle``."""
    override = os.environ.get("GRADLE_USER_HOME", "")
    if override:
        if ".." in override:
            raise PathTraversalError(f"path traversal pattern in GRADLE_USER_HOME: {override}")
        return clean_absolute(override)
    return clean_absolute(Path.home() / ".gradle")


def gradle_cache_base() -> Path:
    return gradle_user_home() / "caches" / "modules-2" / "files-2.1"


def _files(directory: Path) -> list[Path]:
    try:
        return sorted(p for p in directory.iterdir() if p.is_file())
    except OSError:
        return []


def _is_sidecar_or_metadata(name_lower: str) -> bool:
    return name_lower.endswith(_SIDECAR_SUFFIXES) or name_lower.endswith(_METADATA_SUFFIXES)


def find_file_case_insensitive(directory: Path, expected: str) -> Path | None:
    expected_lower = expected.strip().lower()
    if not expected_lower:
        return None
    for path in _files(directory):
        name_lower = path.name.lower()
        if _is_sidecar_or_metadata(name_lower):
            continue
        if name_lower == expected_lower:
            return path
    return None


def find_unique_variant(directory: Path, module: str, version: str, ext: str) -> Path | None:
    """The single ``module-version-<variant>.ext`` file, ignoring sources/javadoc/tests."""
    prefix = f"{module}-{version}-".lower()
    suffix = f".{ext}".lower()
    found: Path | None = None
    for path in _files(directory):
        name_lower = path.name.lower()
        if _is_sidecar_or_metadata(name_lower) or name_lower.endswith(".pom"):
            continue
        if not (name_lower.startswith(prefix) and name_lower.endswith(suffix)):
            continue
        if any(marker in name_lower for marker in _NON_RUNTIME_MARKERS):
            continue
        if found is not None:
            return None  # ambiguous
        found = path
    return found


def find_from_module_metadata(
    sandbox: PathSandbox, directory: Path, module: str, version: str, ext: str
) -> Path | None:
    """Resolve the artifact named by Gradle module metadata (``*.module``).

    Runtime variants are preferred; several distinct candidates mean no match.
    """
    files = _files(directory)
    expected = f"{module}-{version}.module".lower()
    candidates = [p for p in files if p.name.lower() == expected] or [
        p for p in files if p.name.lower().endswith(".module")
    ]
    if not candidates:
        return None
    try:
        meta = json.loads(candidates[0].read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return None
    if not isinstance(meta, dict) or not isinstance(meta.get("variants"), list):
        return None
    variants = [
        v for v in meta["variants"] if isinstance(v, dict) and isinstance(v.get("files", []), list)
    ]

    def pick(runtime_only: bool) -> Path | None:
        chosen: Path | None = None
        for variant in variants:
            if runtime_only and "runtime" not in str(variant.get("name", "")).lower():
                continue
            for entry in variant.get("files") or []:
                name = str(entry.get("name", "")).strip() if isinstance(entry, dict) else ""
                if not name or not name.lower().endswith(f".{ext}".lower()):
                    continue
                try:
                    path = sandbox.join_name(directory, name)
                except PathTraversalError:
                    continue
                if not path.is_file():
                    continue
                if chosen is not None and chosen != path:
                    return None
                chosen = path
        return chosen

    return pick(True) or pick(False)


def find_cached_artifact(dep: DependencyRecord, cache_base: Path | None = None) -> Path | None:
    """Locate the file for *dep* in the Gradle cache, or None."""
    group, _, module = dep.name.partition(":")
    if not (group and module and dep.version):
        return None
    ext = (dep.type or DEFAULT_TYPE).strip().lstrip(".") or DEFAULT_TYPE
    id_parts = dep.id.split(":")
    classifier = id_parts[3] if len(id_parts) >= 4 else ""

    try:
        sandbox = PathSandbox(cache_base if cache_base is not None else gradle_cache_base())
        version_dir = sandbox.join(group, module, dep.version)
    except PathTraversalError as exc:
        log.debug("cache.lookup_rejected", dependency=dep.id, error=str(exc))
        return None
    if not version_dir.is_dir():
        log.debug("cache.not_found", dependency=dep.id, path=str(version_dir))
        return None

    if classifier:
        names = [f"{module}-{dep.version}-{classifier}.{ext}"]
    else:
        names = [f"{module}-{dep.version}.{ext}", f"{module}.{ext}"]

    try:
        hash_dirs = sorted(p for p in version_dir.iterdir() if p.is_dir())
    except OSError as exc:
        log.debug("cache.unreadable", dependency=dep.id, error=str(exc))
        return None

    for hash_dir in hash_dirs:
        try:
            hash_dir = sandbox.join(group, module, dep.version, hash_dir.name)
            for name in names:
                candidate = sandbox.join_name(hash_dir, name)
                if candidate.is_file():
                    return candidate
        except PathTraversalError as exc:
            log.debug("cache.lookup_rejected", dependency=dep.id, error=str(exc))
            continue

        for name in names:
            found = find_file_case_insensitive(hash_dir, name)
            if found is not None:
                return found
        if not classifier:
            found = find_from_module_metadata(sandbox, hash_dir, module, dep.version, ext)
            if found is None:
                found = find_unique_variant(hash_dir, module, dep.version, ext)
            if found is not None:
                return found
    return None
