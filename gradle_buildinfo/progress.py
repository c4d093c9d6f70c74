"""Progress of a collection run.

A run has two setup phases (``gradle_version``, ``deployed_artifacts``) and
one ``module:<path>`` phase per discovered module. Module phases also record
where the dependencies came from and what had to be dropped, so the summary
doubles as a per-module report.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable

import structlog

log = structlog.get_logger("gradle_buildinfo.progress")

# Where a module's dependencies came from.
SOURCE_CLI = "gradle"
SOURCE_BUILD_SCRIPT = "build_script"
SOURCE_NONE = "none"


def module_phase(module_path: str) -> str:
    """``module::`` for the root module, ``module:<path>`` otherwise."""
    return f"module:{module_path or ':'}"


@dataclass
class PhaseProgress:
    phase: str
    status: str = "pending"  # pending | running | completed | failed | skipped
    start_time: float | None = None
    end_time: float | None = None
    detail: str = ""
    error: str | None = None
    module_path: str | None = None
    source: str = ""
    dependencies: int = 0
    dropped: list[str] = field(default_factory=list)
    artifacts: int = 0

    @property
    def duration(self) -> float | None:
        if self.start_time is not None and self.end_time is not None:
            return round(self.end_time - self.start_time, 3)
        return None

    @property
    def is_module(self) -> bool:
        return self.module_path is not None

    def as_dict(self) -> dict[str, Any]:
        entry: dict[str, Any] = {
            "phase": self.phase,
            "status": self.status,
            "duration": self.duration,
            "detail": self.detail,
            "error": self.error,
        }
        if self.is_module:
            entry.update(
                module=self.module_path,
                source=self.source,
                dependencies=self.dependencies,
                dropped=list(self.dropped),
                artifacts=self.artifacts,
            )
        return entry


class ProgressTracker:
    """Record phases of one collection call and notify callbacks on change.

    Callback errors are logged and never reach the collector.
    """

    def __init__(self) -> None:
        self.phases: list[PhaseProgress] = []
        self._by_name: dict[str, PhaseProgress] = {}
        self.callbacks: list[Callable[[PhaseProgress], None]] = []
        self.interrupted: str | None = None

    def _add(self, p: PhaseProgress) -> PhaseProgress:
        self.phases.append(p)
        self._by_name[p.phase] = p
        return p

    def start_phase(self, phase: str) -> None:
        p = self._add(PhaseProgress(phase=phase, status="running", start_time=time.monotonic()))
        log.debug("progress.phase_started", phase=phase)
        self._notify(p)

    def complete_phase(self, phase: str, detail: str = "") -> None:
        p = self._by_name.get(phase)
        if p:
            p.status = "completed"
            p.end_time = time.monotonic()
            p.detail = detail
            log.debug("progress.phase_completed", phase=phase, duration=p.duration, detail=detail)
            self._notify(p)

    def fail_phase(self, phase: str, error: str) -> None:
        p = self._by_name.get(phase)
        if p:
            p.status = "failed"
            p.end_time = time.monotonic()
            p.error = error
            log.debug("progress.phase_failed", phase=phase, error=error)
            self._notify(p)

    def skip_phase(self, phase: str, reason: str) -> None:
        self._notify(self._add(PhaseProgress(phase=phase, status="skipped", detail=reason)))

    # ── Modules ──

    def start_module(self, module_path: str) -> None:
        p = self._add(
            PhaseProgress(
                phase=module_phase(module_path),
                status="running",
                start_time=time.monotonic(),
                module_path=module_path,
            )
        )
        log.debug("progress.module_started", module=module_path)
        self._notify(p)

    def complete_module(
        self,
        module_path: str,
        *,
        source: str,
        dependencies: int,
        dropped: list[str] | None = None,
        artifacts: int = 0,
    ) -> None:
        p = self._by_name.get(module_phase(module_path))
        if p is None:
            return
        p.status = "completed"
        p.end_time = time.monotonic()
        p.source = source
        p.dependencies = dependencies
        p.dropped = list(dropped or [])
        p.artifacts = artifacts
        p.detail = f"{dependencies} dependencies via {source}"
        if p.dropped:
            p.detail += f", {len(p.dropped)} dropped"
        log.debug(
            "progress.module_completed",
            module=module_path,
            duration=p.duration,
            source=source,
            dependencies=dependencies,
            dropped=len(p.dropped),
        )
        self._notify(p)

    def mark_interrupted(self, reason: str) -> None:
        self.interrupted = reason

    def get_summary(self) -> dict[str, Any]:
        modules = [p for p in self.phases if p.is_module and p.status == "completed"]
        total_duration = sum(p.duration or 0 for p in self.phases)
        return {
            "phases": [p.as_dict() for p in self.phases],
            "modules": len(modules),
            "dependencies": sum(p.dependencies for p in modules),
            "dropped": sum(len(p.dropped) for p in modules),
            "artifacts": sum(p.artifacts for p in modules),
            "interrupted": self.interrupted,
            "total_duration": round(total_duration, 3),
        }

    def _notify(self, p: PhaseProgress) -> None:
        for cb in self.callbacks:
            try:
                cb(p)
            except Exception:
                log.debug("progress.callback_error", phase=p.phase, exc_info=True)
