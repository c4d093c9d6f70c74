"""Build-info collection for a Gradle project.

Pipeline per call:

    Phase 1: gradle --version                (build agent)
    Phase 2: deployed-artifact manifest      (only after a publish step)
    Phase 3: one phase per module, in settings order
             CLI tree tier → fallback build-script tier → checksums

Module discovery runs once, at construction.
"""

from __future__ import annotations

import threading
import time
from datetime import datetime
from pathlib import Path
from typing import Callable

import structlog

from gradle_buildinfo import __version__
from gradle_buildinfo.artifacts import collect_deployed_artifacts
from gradle_buildinfo.checksums import ChecksumResolver
from gradle_buildinfo.config import GradleConfig
from gradle_buildinfo.discovery import discover_modules, read_build_script
from gradle_buildinfo.exceptions import (
    CollectionCancelledError,
    CollectionTimeoutError,
    ConfigError,
    ManifestError,
)
from gradle_buildinfo.graph import DependencyGraph, build_requested_by_map, normalize_scopes
from gradle_buildinfo.models import ArtifactRecord, DependencyRecord, ModuleMetadata
from gradle_buildinfo.parsing.build_script import parse_declared_dependencies
from gradle_buildinfo.progress import (
    SOURCE_BUILD_SCRIPT,
    SOURCE_CLI,
    SOURCE_NONE,
    PhaseProgress,
    ProgressTracker,
)
from gradle_buildinfo.resolver import GradleDependencyResolver
from gradle_buildinfo.runner import GradleRunner, resolve_gradle_executable
from gradle_buildinfo.sandbox import PathSandbox
from gradle_buildinfo.schemas import Agent, Artifact, BuildInfo, Dependency, Module

log = structlog.get_logger("gradle_buildinfo.collector")

AGENT_NAME = "gradle-buildinfo"
BUILD_AGENT_NAME = "Gradle"
MODULE_TYPE = "gradle"


def format_started(moment: datetime | None = None) -> str:
    """``2024-05-01T10:20:30.123+0200``: millisecond precision, numeric offset."""
    moment = moment or datetime.now().astimezone()
    millis = moment.microsecond // 1000
    return f"{moment.strftime('%Y-%m-%dT%H:%M:%S')}.{millis:03d}{moment.strftime('%z')}"


def _to_artifact(record: ArtifactRecord) -> Artifact:
    artifact = Artifact(name=record.name, type=record.type or None, path=record.path or None)
    artifact.set_checksum(record.checksum)
    return artifact


class GradleBuildInfoCollector:
    """Collect build-info for one Gradle project.

    Raises ConfigError at construction when the working directory is empty
    or missing. After that, collection degrades instead of failing: broken
    configurations, modules and lines are skipped and logged.
    """

    def __init__(
        self,
        config: GradleConfig,
        runner: GradleRunner | None = None,
        progress_callback: Callable[[PhaseProgress], None] | None = None,
    ) -> None:
        if not config.working_directory:
            raise ConfigError("working directory is required")
        if not Path(config.working_directory).is_dir():
            raise ConfigError(f"working directory does not exist: {config.working_directory}")

        self.config = config
        self.sandbox = PathSandbox(config.working_directory)
        if runner is None:
            executable = resolve_gradle_executable(self.sandbox.base, config.gradle_executable)
            runner = GradleRunner(self.sandbox.base, executable, config.command_timeout)
        self.runner = runner
        self.modules = discover_modules(self.sandbox)
        self._resolver = GradleDependencyResolver(
            runner, self.modules, include_tests=config.include_test_dependencies
        )
        self._progress_callback = progress_callback
        self.progress = self._new_progress()

    def set_was_publish_command(self, was_publish: bool) -> None:
        self.config.was_publish_command = was_publish

    def _new_progress(self) -> ProgressTracker:
        """Fresh tracker for each collection call."""
        tracker = ProgressTracker()
        if self._progress_callback is not None:
            tracker.callbacks.append(self._progress_callback)
        return tracker

    # ── Per-module resolution ──

    def _module_metadata(self, module_path: str) -> ModuleMetadata:
        return self.modules.get(module_path) or self.modules.root

    def _resolve(
        self, module_path: str
    ) -> tuple[dict[str, DependencyRecord], DependencyGraph, str]:
        current = self._module_metadata(module_path)
        content = read_build_script(self.sandbox, module_path) or ""

        dependencies, graph = self._resolver.resolve(module_path, content, current)
        if dependencies:
            return dependencies, graph, SOURCE_CLI

        if not content:
            log.debug("collector.no_build_script", module=module_path)
            return {}, {}, SOURCE_NONE
        log.info("collector.fallback_parser", module=module_path)
        return parse_declared_dependencies(content, self.modules, current), {}, SOURCE_BUILD_SCRIPT

    def resolve_dependencies(
        self, module_path: str = ""
    ) -> tuple[dict[str, DependencyRecord], DependencyGraph]:
        """Dependencies and parent→child graph of one module, freshly built.

        The Gradle CLI tier is authoritative. When it yields nothing the
        module's ``dependencies`` block is parsed instead (no graph edges).
        """
        dependencies, graph, _ = self._resolve(module_path)
        return dependencies, graph

    def get_project_dependencies(self, module_path: str = "") -> list[DependencyRecord]:
        """Resolved dependency records of one module, sorted by id."""
        dependencies, _ = self.resolve_dependencies(module_path)
        return [dependencies[dep_id] for dep_id in sorted(dependencies)]

    def get_dependency_graph(self, module_path: str = "") -> DependencyGraph:
        """Parent id → ordered child ids for one module."""
        _, graph = self.resolve_dependencies(module_path)
        return graph

    def process_module(self, module_path: str, checksums: ChecksumResolver) -> Module:
        """Build the module record; dependencies without any checksum are dropped."""
        module, _, _ = self._build_module(module_path, checksums)
        return module

    def _build_module(
        self, module_path: str, checksums: ChecksumResolver
    ) -> tuple[Module, str, list[str]]:
        current = self._module_metadata(module_path)
        dependencies, graph, source = self._resolve(module_path)
        dropped: list[str] = []
        requested_by = build_requested_by_map(graph)

        entries: list[Dependency] = []
        for dep_id in sorted(dependencies):
            record = dependencies[dep_id]
            resolved = checksums.resolve(record)
            if resolved is None or resolved.checksum.is_empty():
                log.warning("collector.dependency_dropped", module=module_path, dependency=dep_id)
                dropped.append(dep_id)
                continue
            entry = Dependency(id=dep_id, type=record.type, scopes=normalize_scopes(record.scopes))
            entry.set_checksum(resolved.checksum)
            requesters = requested_by.get(dep_id)
            if requesters:
                entry.requested_by = [list(requesters)]
            entries.append(entry)

        module = Module(
            id=current.module_id,
            type=MODULE_TYPE,
            properties={"moduleName": module_path} if module_path else None,
            dependencies=entries or None,
        )
        return module, source, dropped

    # ── Collection ──

    def _deployed_artifacts(self) -> dict[str, list[ArtifactRecord]]:
        phase = "deployed_artifacts"
        if not self.config.was_publish_command:
            self.progress.skip_phase(phase, "no publish step")
            return {}
        self.progress.start_phase(phase)
        try:
            deployed = collect_deployed_artifacts(self.runner, self.sandbox)
        except ManifestError as exc:
            log.warning("collector.deployed_artifacts_failed", error=str(exc))
            self.progress.fail_phase(phase, str(exc))
            return {}
        self.progress.complete_phase(phase, detail=f"{sum(len(a) for a in deployed.values())} artifacts")
        return deployed

    def _check_interrupted(
        self,
        build_info: BuildInfo,
        cancel_event: threading.Event | None,
        deadline: float | None,
    ) -> None:
        processed = len(build_info.modules)
        if cancel_event is not None and cancel_event.is_set():
            log.warning("collector.cancelled", processed=processed, total=len(self.modules.order))
            self.progress.mark_interrupted("cancelled")
            raise CollectionCancelledError(
                f"collection cancelled after {processed} module(s)", build_info
            )
        if deadline is not None and time.monotonic() >= deadline:
            log.warning("collector.timed_out", processed=processed, total=len(self.modules.order))
            self.progress.mark_interrupted("timeout")
            raise CollectionTimeoutError(
                f"collection timed out after {processed} module(s)", build_info
            )

    def collect_build_info(
        self,
        build_name: str,
        build_number: str,
        *,
        cancel_event: threading.Event | None = None,
        timeout: float | None = None,
    ) -> BuildInfo:
        """Collect the build-info record for every discovered module.

        Cancellation and the overall *timeout* are checked between modules.
        Modules finished before that point are kept on the
        ``build_info`` attribute of the raised error.

        Raises:
            CollectionCancelledError: *cancel_event* was set.
            CollectionTimeoutError: *timeout* seconds elapsed.
        """
        deadline = time.monotonic() + timeout if timeout is not None else None
        self.progress = self._new_progress()

        self.progress.start_phase("gradle_version")
        gradle_version = self.runner.gradle_version()
        self.progress.complete_phase("gradle_version", detail=gradle_version)

        build_info = BuildInfo(
            name=build_name,
            number=build_number,
            started=format_started(),
            agent=Agent(name=AGENT_NAME, version=__version__),
            build_agent=Agent(name=BUILD_AGENT_NAME, version=gradle_version),
        )

        deployed = self._deployed_artifacts()
        checksums = ChecksumResolver(deployed)

        for module_path in self.modules.order:
            self._check_interrupted(build_info, cancel_event, deadline)
            self.progress.start_module(module_path)
            module, source, dropped = self._build_module(module_path, checksums)
            artifacts = deployed.get(module_path) or []
            if artifacts:
                module.artifacts = [_to_artifact(a) for a in artifacts]
            build_info.modules.append(module)
            self.progress.complete_module(
                module_path,
                source=source,
                dependencies=len(module.dependencies or []),
                dropped=dropped,
                artifacts=len(artifacts),
            )

        log.info(
            "collector.done",
            build=build_name,
            number=build_number,
            modules=len(build_info.modules),
        )
        return build_info
