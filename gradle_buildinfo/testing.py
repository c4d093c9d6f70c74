"""Test doubles for gradle_buildinfo, for tests that must not start Gradle.

Usage::

    from gradle_buildinfo.testing import FakeGradleRunner

    runner = FakeGradleRunner(trees={
        ("dependencies", "compileClasspath"): "+--- a:b:1.0\\n",
    })
    collector = GradleBuildInfoCollector(config, runner=runner)
"""

from __future__ import annotations

from typing import Callable

from gradle_buildinfo.runner import GradleRunner

TreeOutput = str | Exception


class FakeGradleRunner(GradleRunner):
    """Drop-in replacement for GradleRunner returning canned output.

    Parameters
    ----------
    trees:
        ``(task, configuration) → output`` for ``dependencies`` queries.
        An exception value is raised instead of returned. Unknown
        configurations produce empty output.
    version:
        What :meth:`gradle_version` reports.
    handler:
        Called with the argument tuple for any other invocation (publish,
        manifest, ...); its return value is the command output.
    """

    def __init__(
        self,
        trees: dict[tuple[str, str], TreeOutput] | None = None,
        *,
        version: str = "8.5",
        handler: Callable[..., str] | None = None,
    ) -> None:
        super().__init__(".", "gradle")
        self.trees = dict(trees or {})
        self.version = version
        self.handler = handler
        self._calls: list[tuple[str, ...]] = []

    @property
    def calls(self) -> list[tuple[str, ...]]:
        """Argument tuples received, in order."""
        return self._calls

    def run(self, *args: str) -> str:
        self._calls.append(args)
        if "--configuration" in args:
            configuration = args[args.index("--configuration") + 1]
            result = self.trees.get((args[0], configuration), "")
            if isinstance(result, Exception):
                raise result
            return result
        if self.handler is not None:
            return self.handler(*args)
        return ""

    def gradle_version(self) -> str:
        return self.version
