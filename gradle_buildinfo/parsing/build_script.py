"""Regex fallback parser for dependencies declared in build.gradle(.kts).

Used only when the Gradle CLI produced nothing for a module. Recognises:

  implementation "group:artifact:version[:classifier]"
  implementation group: 'g', name: 'a', version: 'v'
  implementation project(':path')      /  implementation project ':path'

Transitive dependencies are not visible here; the result under-reports
compared to Gradle's own resolution.
"""

from __future__ import annotations

import re

import structlog

from gradle_buildinfo.graph import add_dependency, map_configuration_to_scopes
from gradle_buildinfo.models import DependencyRecord, ModuleMetadata, ModuleTable
from gradle_buildinfo.parsing.text import extract_dependencies_block, strip_comments

log = structlog.get_logger("gradle_buildinfo.parsing")

CONFIGURATIONS = (
    "testImplementation",
    "testCompileOnly",
    "testRuntimeOnly",
    "implementation",
    "compileOnly",
    "runtimeOnly",
    "annotationProcessor",
    "api",
    "compile",
    "runtime",
    "kapt",
    "ksp",
)
_CONFIG = r"\b(" + "|".join(CONFIGURATIONS) + r")"

_STRING_DEP_RE = re.compile(_CONFIG + r"""\s*[(\s]\s*['"]([^'"]+)['"]""")
_MAP_DEP_RE = re.compile(
    _CONFIG
    + r"""\s*(?:\(|\s)\s*group\s*[:=]\s*['"]([^'"]+)['"]"""
    + r"""\s*,\s*name\s*[:=]\s*['"]([^'"]+)['"]"""
    + r"""(?:\s*,\s*version\s*[:=]\s*['"]([^'"]+)['"])?"""
)
_PROJECT_DEP_RE = re.compile(
    _CONFIG + r"""\s*(?:\(|\s)\s*project\s*(?:\(\s*path\s*[:=]\s*|\(?\s*)['"]([^'"]+)['"]"""
)


def parse_declared_dependencies(
    content: str,
    modules: ModuleTable,
    current: ModuleMetadata,
) -> dict[str, DependencyRecord]:
    """Dependencies declared in the first top-level ``dependencies`` block."""
    block = strip_comments(extract_dependencies_block(content))
    if not block:
        log.debug("parsing.no_dependencies_block")
        return {}

    dependencies: dict[str, DependencyRecord] = {}

    for match in _STRING_DEP_RE.finditer(block):
        configuration, notation = match.group(1), match.group(2)
        parts = notation.split(":")
        if len(parts) < 3:
            continue
        add_dependency(
            dependencies,
            parts[0],
            parts[1],
            parts[2],
            map_configuration_to_scopes(configuration),
            classifier=parts[3] if len(parts) >= 4 else "",
        )

    for match in _MAP_DEP_RE.finditer(block):
        configuration, group, artifact, version = match.groups()
        add_dependency(
            dependencies,
            group,
            artifact,
            version or "",
            map_configuration_to_scopes(configuration),
        )

    for match in _PROJECT_DEP_RE.finditer(block):
        configuration, project_path = match.group(1), match.group(2)
        target = modules.resolve_project(project_path, current)
        add_dependency(
            dependencies,
            target.group,
            target.artifact,
            target.version,
            map_configuration_to_scopes(configuration),
        )

    log.debug("parsing.declared_dependencies", count=len(dependencies))
    return dependencies
