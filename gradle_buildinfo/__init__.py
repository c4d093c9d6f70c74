"""gradle-buildinfo: build-info extraction for Gradle projects."""

__version__ = "0.1.0"

from gradle_buildinfo.collector import GradleBuildInfoCollector
from gradle_buildinfo.config import GradleConfig
from gradle_buildinfo.exceptions import (
    BuildInfoError,
    CollectionCancelledError,
    CollectionInterruptedError,
    CollectionTimeoutError,
    ConfigError,
    GradleCommandError,
    GradleInvocationError,
    GradleTimeoutError,
    ManifestError,
    PathTraversalError,
)
from gradle_buildinfo.models import DependencyRecord, ModuleMetadata, Scope
from gradle_buildinfo.schemas import BuildInfo

__all__ = [
    "BuildInfo",
    "BuildInfoError",
    "CollectionCancelledError",
    "CollectionInterruptedError",
    "CollectionTimeoutError",
    "ConfigError",
    "DependencyRecord",
    "GradleBuildInfoCollector",
    "GradleCommandError",
    "GradleConfig",
    "GradleInvocationError",
    "GradleTimeoutError",
    "ManifestError",
    "ModuleMetadata",
    "PathTraversalError",
    "Scope",
]
