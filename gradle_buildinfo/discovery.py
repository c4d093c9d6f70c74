"""Module discovery: settings file → module paths → per-module metadata.

Precedence for a sub-module's coordinates:
  1. explicit ``group`` / ``name`` / ``version`` in its own build script
  2. the root project's resolved group / version
  3. artifact only: the module directory's base name, or the module path
     with ``:`` replaced by ``-`` when the module has no build script

The root artifact is taken from ``rootProject.name`` in the settings file
when present, then its own ``name``, then the working directory's base name.
"""

from __future__ import annotations

from pathlib import Path

import structlog

from gradle_buildinfo.exceptions import PathTraversalError
from gradle_buildinfo.models import UNSPECIFIED, ModuleMetadata, ModuleTable
from gradle_buildinfo.parsing.metadata import (
    parse_build_metadata,
    parse_root_project_name,
    parse_settings_modules,
)
from gradle_buildinfo.sandbox import PathSandbox

log = structlog.get_logger("gradle_buildinfo.discovery")

SETTINGS_FILES = ("settings.gradle", "settings.gradle.kts")
BUILD_FILES = ("build.gradle", "build.gradle.kts")


def module_directory(sandbox: PathSandbox, module_path: str) -> Path:
    """Directory of ``a:b:c`` → ``<base>/a/b/c``; raises PathTraversalError."""
    if not module_path:
        return sandbox.base
    return sandbox.join(*module_path.split(":"))


def find_build_file(sandbox: PathSandbox, module_path: str) -> Path | None:
    """Groovy ``build.gradle`` wins over ``build.gradle.kts`` at every level."""
    try:
        directory = module_directory(sandbox, module_path)
        for name in BUILD_FILES:
            candidate = sandbox.join_name(directory, name)
            if candidate.is_file():
                return candidate
    except PathTraversalError as exc:
        log.debug("discovery.build_file_rejected", module=module_path, error=str(exc))
    return None


def read_build_script(sandbox: PathSandbox, module_path: str) -> str | None:
    """Content of a module's build script, or None if missing or unreadable."""
    path = find_build_file(sandbox, module_path)
    if path is None:
        return None
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        log.warning("discovery.build_file_unreadable", module=module_path, path=str(path), error=str(exc))
        return None


def read_settings_file(sandbox: PathSandbox) -> str:
    """Content of settings.gradle(.kts), or ``""`` when there is none."""
    for name in SETTINGS_FILES:
        try:
            path = sandbox.join(name)
        except PathTraversalError:
            continue
        if not path.is_file():
            continue
        try:
            return path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            log.debug("discovery.settings_unreadable", path=str(path), error=str(exc))
            return ""
    return ""


def _resolve_root(sandbox: PathSandbox, settings: str) -> ModuleMetadata:
    content = read_build_script(sandbox, "")
    if content is None:
        log.debug("discovery.root_build_file_missing", working_directory=str(sandbox.base))
        group, artifact, version = UNSPECIFIED, "", UNSPECIFIED
    else:
        group, artifact, version = parse_build_metadata(content)

    root_name = parse_root_project_name(settings) if settings else ""
    if root_name:
        artifact = root_name
    elif not artifact or artifact == UNSPECIFIED:
        artifact = sandbox.base.name
    return ModuleMetadata(group=group, artifact=artifact, version=version)


def _resolve_submodule(
    sandbox: PathSandbox, module_path: str, root: ModuleMetadata
) -> ModuleMetadata | None:
    try:
        directory = module_directory(sandbox, module_path)
    except PathTraversalError as exc:
        log.warning("discovery.module_skipped", module=module_path, reason=str(exc))
        return None

    content = read_build_script(sandbox, module_path)
    if content is None:
        return ModuleMetadata(
            group=root.group,
            artifact=module_path.replace(":", "-"),
            version=root.version,
        )

    group, artifact, version = parse_build_metadata(content)
    return ModuleMetadata(
        group=group if group and group != UNSPECIFIED else root.group,
        artifact=artifact or directory.name,
        version=version if version and version != UNSPECIFIED else root.version,
    )


def discover_modules(sandbox: PathSandbox) -> ModuleTable:
    """Enumerate the build's modules and resolve their coordinates."""
    settings = read_settings_file(sandbox)
    root = _resolve_root(sandbox, settings)

    order = [""]
    metadata = {"": root}
    module_paths = parse_settings_modules(settings) if settings else [""]
    for module_path in module_paths[1:]:
        info = _resolve_submodule(sandbox, module_path, root)
        if info is None:
            continue
        order.append(module_path)
        metadata[module_path] = info

    log.debug("discovery.modules_found", count=len(order), modules=order)
    return ModuleTable(order=order, metadata=metadata)
