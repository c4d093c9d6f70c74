"""Custom exceptions for gradle-buildinfo."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gradle_buildinfo.schemas import BuildInfo


class BuildInfoError(Exception):
    """Base exception for all build-info extraction errors."""


class ConfigError(BuildInfoError):
    """Raised when the collector cannot be constructed from its configuration."""


class PathTraversalError(BuildInfoError):
    """Raised when a derived path would escape its sandbox base directory."""


class GradleInvocationError(BuildInfoError):
    """Base for failures of a single Gradle CLI invocation."""

    def __init__(self, message: str, command: list[str], output: str = ""):
        self.command = command
        self.output = output
        super().__init__(message)


class GradleCommandError(GradleInvocationError):
    """Raised when Gradle exits non-zero or cannot be started."""

    def __init__(self, command: list[str], returncode: int | None, output: str = ""):
        self.returncode = returncode
        if returncode is None:
            message = f"gradle command could not be started: {' '.join(command)}"
        else:
            message = f"gradle command failed (rc={returncode}): {' '.join(command)}"
        super().__init__(message, command, output)


class GradleTimeoutError(GradleInvocationError):
    """Raised when a Gradle invocation exceeds its deadline."""

    def __init__(self, command: list[str], timeout: float, output: str = ""):
        self.timeout = timeout
        super().__init__(
            f"gradle command timed out after {timeout}s: {' '.join(command)}",
            command,
            output,
        )


class ManifestError(BuildInfoError):
    """Raised when the deployed-artifact manifest cannot be produced or read."""


class CollectionInterruptedError(BuildInfoError):
    """Raised when a collection call stops early; carries the partial result."""

    def __init__(self, message: str, build_info: BuildInfo):
        self.build_info = build_info
        super().__init__(message)


class CollectionCancelledError(CollectionInterruptedError):
    """Raised when the caller's cancel event is set between modules."""


class CollectionTimeoutError(CollectionInterruptedError):
    """Raised when the overall collection deadline passes between modules."""
