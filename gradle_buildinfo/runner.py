"""Gradle CLI invocation with a per-command deadline."""

from __future__ import annotations

import os
import re
import shutil
import subprocess
from pathlib import Path

import structlog

from gradle_buildinfo.config import DEFAULT_COMMAND_TIMEOUT
from gradle_buildinfo.exceptions import GradleCommandError, GradleInvocationError, GradleTimeoutError

log = structlog.get_logger("gradle_buildinfo.runner")

FALLBACK_EXECUTABLE = "gradle"
UNKNOWN_VERSION = "unknown"
MINIMUM_MAJOR_VERSION = 5  # the artifact manifest init script needs task registration APIs
_BASE_FLAGS = ["--console=plain", "--warning-mode=none"]
_VERSION_RE = re.compile(r"Gradle\s+(\d+\.\d+(?:\.\d+)?\S*)")


def is_supported_version(version: str) -> bool:
    major, _, _ = version.partition(".")
    try:
        return int(major) >= MINIMUM_MAJOR_VERSION
    except ValueError:
        return False


def _wrapper_name() -> str:
    return "gradlew.bat" if os.name == "nt" else "gradlew"


def resolve_gradle_executable(working_directory: str | Path, override: str | None = None) -> str:
    """Pick the Gradle executable for a project.

    Order: project wrapper, configured override, ``gradle`` on PATH, and
    finally the bare ``gradle`` literal.
    """
    wrapper = Path(working_directory) / _wrapper_name()
    if wrapper.is_file():
        return str(wrapper.resolve())
    if override:
        return override
    found = shutil.which(FALLBACK_EXECUTABLE)
    if found:
        return found
    log.warning(
        "runner.executable_not_found",
        working_directory=str(working_directory),
        path=os.environ.get("PATH", ""),
        fallback=FALLBACK_EXECUTABLE,
    )
    return FALLBACK_EXECUTABLE


def _no_daemon() -> bool:
    return (
        os.environ.get("CI", "").lower() == "true"
        or os.environ.get("GRADLE_BUILDINFO_NO_DAEMON", "").lower() == "true"
    )


def _decode(output: str | bytes | None) -> str:
    if output is None:
        return ""
    if isinstance(output, bytes):
        return output.decode("utf-8", errors="replace")
    return output


class GradleRunner:
    """Run Gradle tasks in the project root and return combined stdout+stderr."""

    def __init__(
        self,
        working_directory: str | Path,
        executable: str,
        timeout: float = DEFAULT_COMMAND_TIMEOUT,
    ) -> None:
        self.working_directory = str(working_directory)
        self.executable = executable
        self.timeout = timeout

    def build_command(self, *args: str) -> list[str]:
        flags = (["--no-daemon"] if _no_daemon() else []) + _BASE_FLAGS
        return [self.executable, *flags, *args]

    def run(self, *args: str) -> str:
        """Run Gradle with *args*.

        Raises:
            GradleTimeoutError: the command exceeded ``timeout`` seconds.
            GradleCommandError: non-zero exit, or the executable could not start.
        """
        cmd = self.build_command(*args)
        log.debug("runner.exec", command=cmd, timeout=self.timeout)
        try:
            result = subprocess.run(
                cmd,
                cwd=self.working_directory,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                errors="replace",
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise GradleTimeoutError(cmd, self.timeout, _decode(exc.output)) from exc
        except OSError as exc:
            raise GradleCommandError(cmd, None, str(exc)) from exc

        if result.returncode != 0:
            raise GradleCommandError(cmd, result.returncode, result.stdout or "")
        return result.stdout or ""

    def gradle_version(self) -> str:
        """Version reported by ``gradle --version``, or ``"unknown"``."""
        try:
            output = self.run("--version")
        except GradleInvocationError as exc:
            log.debug("runner.version_failed", error=str(exc))
            return UNKNOWN_VERSION
        match = _VERSION_RE.search(output)
        if match is None:
            return UNKNOWN_VERSION
        version = match.group(1)
        if not is_supported_version(version):
            log.warning("runner.old_gradle", version=version, minimum=MINIMUM_MAJOR_VERSION)
        return version
