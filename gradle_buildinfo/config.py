"""Collector configuration."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_COMMAND_TIMEOUT = 300.0  # seconds per Gradle invocation


@dataclass
class GradleConfig:
    """Inputs for one GradleBuildInfoCollector."""

    working_directory: str
    gradle_executable: str | None = None  # override; wrapper in the project wins
    command_timeout: float = DEFAULT_COMMAND_TIMEOUT
    include_test_dependencies: bool = False
    was_publish_command: bool = False  # gates the manifest pipeline
