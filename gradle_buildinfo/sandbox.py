"""Path sandbox: every derived filesystem path stays under one base directory.

Module paths, build-script names and cache coordinates all come from
project-controlled text, so path construction never trusts a component:

  - ``join()`` builds ``base/c1/c2/...`` from individual components
  - ``join_name()`` appends a single file name to an already-sandboxed directory
  - ``contains()`` checks an arbitrary path

Rejections raise :class:`PathTraversalError`; callers log and treat the
path as "not found".
"""

from __future__ import annotations

import os
from pathlib import Path

from gradle_buildinfo.exceptions import PathTraversalError

_SEPARATORS = ("/", "\\")


def clean_absolute(path: str | os.PathLike[str]) -> Path:
    """Absolute, normalized form of *path* (no symlink resolution)."""
    raw = os.fspath(path)
    if not raw:
        raise PathTraversalError("path cannot be empty")
    return Path(os.path.abspath(os.path.normpath(raw)))


def is_contained(child: str | os.PathLike[str], parent: str | os.PathLike[str]) -> bool:
    """True if *child* equals *parent* or is a strict descendant of it."""
    try:
        child_abs = str(clean_absolute(child))
        parent_abs = str(clean_absolute(parent))
    except PathTraversalError:
        return False
    return child_abs == parent_abs or child_abs.startswith(parent_abs.rstrip(os.sep) + os.sep)


def _validate_component(component: str) -> str:
    if ".." in component:
        raise PathTraversalError(f"path component contains '..': {component!r}")
    if os.path.isabs(component) or component.startswith(_SEPARATORS):
        raise PathTraversalError(f"path component is absolute: {component!r}")
    if any(sep in component for sep in _SEPARATORS) or os.sep in component:
        raise PathTraversalError(f"path component contains a separator: {component!r}")
    if os.path.splitdrive(component)[0]:
        raise PathTraversalError(f"path component carries a drive: {component!r}")
    return os.path.basename(component)


class PathSandbox:
    """Constructs paths that are guaranteed to stay inside ``base``."""

    def __init__(self, base: str | os.PathLike[str]) -> None:
        self.base = clean_absolute(base)

    def __repr__(self) -> str:
        return f"PathSandbox({str(self.base)!r})"

    def contains(self, path: str | os.PathLike[str]) -> bool:
        return is_contained(path, self.base)

    def ensure(self, path: str | os.PathLike[str]) -> Path:
        """Return the cleaned absolute *path*, or raise if it leaves the sandbox."""
        cleaned = clean_absolute(path)
        if not self.contains(cleaned):
            raise PathTraversalError(f"path {cleaned} escapes base directory {self.base}")
        return cleaned

    def join(self, *components: str) -> Path:
        """Join validated components onto the base directory.

        Empty components are ignored, so ``join()`` is the base itself.
        """
        path = self.base
        for component in components:
            if not component:
                continue
            path = path / _validate_component(component)
        return self.ensure(path)

    def join_name(self, directory: str | os.PathLike[str], name: str) -> Path:
        """Append a single file *name* to a directory inside the sandbox."""
        if not name:
            raise PathTraversalError("file name cannot be empty")
        parent = self.ensure(directory)
        return self.ensure(parent / _validate_component(name))
