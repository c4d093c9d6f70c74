"""Authoritative dependency resolution through ``gradle dependencies``."""

from __future__ import annotations

import re

import structlog

from gradle_buildinfo.exceptions import GradleInvocationError
from gradle_buildinfo.graph import DependencyGraph, collect_tree, map_configuration_to_scopes
from gradle_buildinfo.models import DependencyRecord, ModuleMetadata, ModuleTable
from gradle_buildinfo.parsing.dependency_tree import parse_dependency_tree
from gradle_buildinfo.runner import GradleRunner

log = structlog.get_logger("gradle_buildinfo.resolver")

JVM_CONFIGURATIONS = ["compileClasspath", "runtimeClasspath"]
JVM_TEST_CONFIGURATIONS = ["testCompileClasspath", "testRuntimeClasspath"]
ANDROID_CONFIGURATIONS = [
    "debugCompileClasspath",
    "debugRuntimeClasspath",
    "releaseCompileClasspath",
    "releaseRuntimeClasspath",
]
ANDROID_TEST_CONFIGURATIONS = [
    "debugUnitTestCompileClasspath",
    "debugUnitTestRuntimeClasspath",
    "releaseUnitTestCompileClasspath",
    "releaseUnitTestRuntimeClasspath",
    "debugAndroidTestCompileClasspath",
    "debugAndroidTestRuntimeClasspath",
]

_ANDROID_MARKERS_RE = re.compile(
    r"""com\.android\.(?:application|library|dynamic-feature|test)"""
    r"""|\bandroid\s*\{"""
    r"""|\balias\(\s*libs\.plugins\.android"""
)


def is_android_project(build_content: str) -> bool:
    """Heuristic: Android plugin ids or an ``android { }`` block."""
    return _ANDROID_MARKERS_RE.search(build_content) is not None


def configurations_for(build_content: str, include_tests: bool) -> list[str]:
    if is_android_project(build_content):
        configs = list(ANDROID_CONFIGURATIONS)
        if include_tests:
            configs += ANDROID_TEST_CONFIGURATIONS
        return configs
    configs = list(JVM_CONFIGURATIONS)
    if include_tests:
        configs += JVM_TEST_CONFIGURATIONS
    return configs


def dependencies_task(module_path: str) -> str:
    return f":{module_path}:dependencies" if module_path else "dependencies"


class GradleDependencyResolver:
    """Query each relevant configuration of a module and merge the trees."""

    def __init__(self, runner: GradleRunner, modules: ModuleTable, include_tests: bool = False) -> None:
        self._runner = runner
        self._modules = modules
        self._include_tests = include_tests

    def resolve(
        self,
        module_path: str,
        build_content: str,
        current: ModuleMetadata,
    ) -> tuple[dict[str, DependencyRecord], DependencyGraph]:
        """Return ``(dependencies, parent→children graph)`` for one module.

        A failing configuration is logged and skipped; the others still run.
        """
        dependencies: dict[str, DependencyRecord] = {}
        graph: DependencyGraph = {}

        def resolve_project(path: str) -> ModuleMetadata:
            return self._modules.resolve_project(path, current)

        for configuration in configurations_for(build_content, self._include_tests):
            try:
                output = self._runner.run(
                    dependencies_task(module_path), "--configuration", configuration, "--quiet"
                )
            except GradleInvocationError as exc:
                log.debug(
                    "resolver.configuration_failed",
                    module=module_path,
                    configuration=configuration,
                    error=str(exc),
                    output=exc.output[-2000:],
                )
                continue

            tree = parse_dependency_tree(output, resolve_project)
            collect_tree(tree, map_configuration_to_scopes(configuration), dependencies, graph)

        log.debug("resolver.collected", module=module_path, count=len(dependencies))
        return dependencies, graph
