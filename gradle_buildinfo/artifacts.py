"""Deployed-artifact manifest: publish locally and read back what was produced.

Runs only when the caller reports that a publish step happened. The
bundled init script is copied to a temp file, Gradle writes a JSON
manifest into the project, and both files are removed afterwards
whether or not the run succeeded.
"""

from __future__ import annotations

import os
import tempfile
import time
from pathlib import Path

import structlog
from pydantic import BaseModel, TypeAdapter, ValidationError

from gradle_buildinfo.exceptions import GradleInvocationError, ManifestError, PathTraversalError
from gradle_buildinfo.models import ArtifactRecord, Digests
from gradle_buildinfo.runner import GradleRunner
from gradle_buildinfo.sandbox import PathSandbox

log = structlog.get_logger("gradle_buildinfo.artifacts")

INIT_SCRIPT_PATH = Path(__file__).parent / "scripts" / "init-artifact-extractor.gradle"
PUBLISH_TASK = "buildInfoPublishToLocal"
MANIFEST_TASK = "generateBuildInfoManifest"
MANIFEST_PROPERTY = "buildInfoManifest.fileName"

_MAX_SEARCH_DEPTH = 5
_SKIP_DIRS = frozenset({".git", ".gradle", ".idea", "node_modules", "buildSrc"})


class ManifestEntry(BaseModel):
    """One element of the manifest JSON array."""

    module_name: str = ""
    type: str = ""
    name: str = ""
    path: str = ""
    sha1: str = ""
    sha256: str = ""
    md5: str = ""


_MANIFEST_ADAPTER = TypeAdapter(list[ManifestEntry])


def normalize_module_name(module_name: str) -> str:
    """Gradle project path → module path: ``:a:b`` → ``a:b``, ``:``/``::`` → ``""``."""
    name = module_name.strip()
    if name.startswith(":"):
        name = name[1:]
    if name == ":":
        name = ""
    return name


def parse_manifest(content: str) -> dict[str, list[ArtifactRecord]]:
    """Group manifest entries by module path; entries without digests are skipped."""
    try:
        entries = _MANIFEST_ADAPTER.validate_json(content)
    except ValidationError as exc:
        raise ManifestError(f"cannot parse generated artifacts manifest: {exc}") from exc

    result: dict[str, list[ArtifactRecord]] = {}
    for entry in entries:
        digests = Digests(sha1=entry.sha1, sha256=entry.sha256, md5=entry.md5)
        if digests.is_empty():
            log.warning("artifacts.no_checksums", artifact=entry.name)
            continue
        module_name = normalize_module_name(entry.module_name)
        result.setdefault(module_name, []).append(
            ArtifactRecord(
                module_name=module_name,
                type=entry.type,
                name=entry.name,
                path=entry.path,
                checksum=digests,
            )
        )
    return result


def resolve_manifest_path(sandbox: PathSandbox, file_name: str) -> Path:
    """Find the generated manifest: ``build/<name>`` first, then a bounded walk."""
    default = sandbox.join_name(sandbox.join("build"), file_name)
    if default.is_file():
        return default

    base_depth = len(sandbox.base.parts)
    for dirpath, dirnames, filenames in os.walk(sandbox.base):
        current = Path(dirpath)
        if len(current.parts) - base_depth >= _MAX_SEARCH_DEPTH:
            dirnames[:] = []
        else:
            dirnames[:] = sorted(d for d in dirnames if d not in _SKIP_DIRS)
        if file_name in filenames:
            return sandbox.join_name(current, file_name)

    raise ManifestError(f"generated manifest {file_name} not found under {sandbox.base}")


def _remove_quietly(path: str | Path, what: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as exc:
        log.warning("artifacts.cleanup_failed", file=what, path=str(path), error=str(exc))


def collect_deployed_artifacts(runner: GradleRunner, sandbox: PathSandbox) -> dict[str, list[ArtifactRecord]]:
    """Run the publish + manifest tasks and return artifacts keyed by module path.

    Raises:
        ManifestError: the tasks failed or the manifest is missing or malformed.
    """
    try:
        script_text = INIT_SCRIPT_PATH.read_text(encoding="utf-8")
    except OSError as exc:
        raise ManifestError(f"init script unavailable: {exc}") from exc

    manifest_name = f"build-info-manifest-{time.time_ns()}.json"
    fd, init_script = tempfile.mkstemp(prefix="init-artifact-extractor-", suffix=".gradle")
    manifest_path: Path | None = None
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(script_text)

        try:
            runner.run(
                PUBLISH_TASK,
                MANIFEST_TASK,
                "-I",
                init_script,
                f"-P{MANIFEST_PROPERTY}={manifest_name}",
            )
        except GradleInvocationError as exc:
            raise ManifestError(f"failed to collect Gradle artifacts: {exc}") from exc

        try:
            manifest_path = resolve_manifest_path(sandbox, manifest_name)
            content = manifest_path.read_text(encoding="utf-8")
        except (OSError, PathTraversalError) as exc:
            raise ManifestError(f"cannot read generated artifacts manifest: {exc}") from exc
        return parse_manifest(content)
    finally:
        _remove_quietly(init_script, "init script")
        if manifest_path is not None:
            _remove_quietly(manifest_path, "manifest")
