"""CLI entry point: gradle-buildinfo.

Subcommands:
    gradle-buildinfo collect /path/to/project --build-name app --build-number 42
    gradle-buildinfo modules /path/to/project
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any

import click

from gradle_buildinfo.collector import GradleBuildInfoCollector
from gradle_buildinfo.config import DEFAULT_COMMAND_TIMEOUT, GradleConfig
from gradle_buildinfo.core.logging import setup_logging
from gradle_buildinfo.exceptions import CollectionInterruptedError, ConfigError
from gradle_buildinfo.progress import PhaseProgress


def _default_timeout() -> float:
    raw = os.environ.get("GRADLE_BUILDINFO_COMMAND_TIMEOUT", "")
    if not raw:
        return DEFAULT_COMMAND_TIMEOUT
    try:
        return float(raw)
    except ValueError:
        click.echo(
            f"Warning: ignoring invalid GRADLE_BUILDINFO_COMMAND_TIMEOUT={raw!r}", err=True
        )
        return DEFAULT_COMMAND_TIMEOUT


def _echo_phase(phase: PhaseProgress) -> None:
    if phase.status == "running":
        return
    duration = f" ({phase.duration}s)" if phase.duration is not None else ""
    detail = f": {phase.detail}" if phase.detail else ""
    error = f" ERROR: {phase.error}" if phase.error else ""
    click.echo(f"[{phase.status}] {phase.phase}{duration}{detail}{error}", err=True)


def _echo_summary(summary: dict[str, Any]) -> None:
    """Per-module report of where dependencies came from and what was dropped."""
    click.echo("Summary:", err=True)
    for entry in summary["phases"]:
        if "module" not in entry:
            continue
        click.echo(
            f"  {entry['module'] or ':':<30} {entry['status']:<10} "
            f"{entry['dependencies']:>4} deps  {len(entry['dropped']):>3} dropped  "
            f"{entry['artifacts']:>3} artifacts  ({entry['source'] or '-'})",
            err=True,
        )
        for dep_id in entry["dropped"]:
            click.echo(f"      dropped (no checksum): {dep_id}", err=True)
    click.echo(
        f"  {summary['modules']} modules, {summary['dependencies']} dependencies, "
        f"{summary['dropped']} dropped, {summary['artifacts']} artifacts "
        f"in {summary['total_duration']}s",
        err=True,
    )
    if summary["interrupted"]:
        click.echo(f"  interrupted: {summary['interrupted']}", err=True)


def _build_collector(config: GradleConfig, show_progress: bool = False) -> GradleBuildInfoCollector:
    try:
        return GradleBuildInfoCollector(config, progress_callback=_echo_phase if show_progress else None)
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
def main(verbose: bool) -> None:
    """Extract build-info (modules, dependencies, checksums) from a Gradle project."""
    setup_logging("DEBUG" if verbose else None)


@main.command("collect")
@click.argument("project", type=click.Path(file_okay=False))
@click.option("--build-name", default=None, help="Build name (default: project directory name)")
@click.option("--build-number", default="1", show_default=True, help="Build number")
@click.option("--include-tests", is_flag=True, help="Include test classpath configurations")
@click.option("--published", is_flag=True, help="A publish step ran; attach deployed artifacts")
@click.option("--gradle", "gradle_executable", default=None, help="Gradle executable (project wrapper wins)")
@click.option("--timeout", type=float, default=None, help="Per-command timeout in seconds")
@click.option("--overall-timeout", type=float, default=None, help="Deadline for the whole collection")
@click.option("--progress", "show_progress", is_flag=True, help="Print phase progress and a per-module summary to stderr")
@click.option("-o", "--output", default=None, help="Write JSON here instead of stdout")
def collect(
    project: str,
    build_name: str | None,
    build_number: str,
    include_tests: bool,
    published: bool,
    gradle_executable: str | None,
    timeout: float | None,
    overall_timeout: float | None,
    show_progress: bool,
    output: str | None,
) -> None:
    """Collect build-info for PROJECT and print it as JSON."""
    config = GradleConfig(
        working_directory=project,
        gradle_executable=gradle_executable,
        command_timeout=timeout if timeout is not None else _default_timeout(),
        include_test_dependencies=include_tests,
        was_publish_command=published,
    )
    collector = _build_collector(config, show_progress)
    name = build_name or collector.sandbox.base.name

    exit_code = 0
    try:
        build_info = collector.collect_build_info(name, build_number, timeout=overall_timeout)
    except CollectionInterruptedError as e:
        click.echo(f"Error: {e} (partial result follows)", err=True)
        build_info = e.build_info
        exit_code = 1

    if show_progress:
        _echo_summary(collector.progress.get_summary())

    text = build_info.to_json()
    if output:
        Path(output).write_text(text + "\n")
        click.echo(f"Build info written to {output}", err=True)
    else:
        click.echo(text)
    if exit_code:
        sys.exit(exit_code)


@main.command("modules")
@click.argument("project", type=click.Path(file_okay=False))
def modules(project: str) -> None:
    """List the modules discovered in PROJECT's settings file."""
    collector = _build_collector(GradleConfig(working_directory=project))
    for module_path in collector.modules.order:
        meta = collector.modules.metadata[module_path]
        click.echo(f"{module_path or ':':<30} {meta.module_id}")
