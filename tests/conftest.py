"""Shared pytest fixtures for gradle-buildinfo tests."""

from __future__ import annotations

from pathlib import Path

import pytest


@pytest.fixture
def make_project(tmp_path):
    """Write ``{relative path: content}`` under a fresh project directory."""

    def _make(files: dict[str, str], name: str = "project") -> Path:
        root = tmp_path / name
        root.mkdir(exist_ok=True)
        for rel, content in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        return root

    return _make


@pytest.fixture
def gradle_cache(tmp_path, monkeypatch):
    """Point GRADLE_USER_HOME at a temp dir; returns the files-2.1 cache base."""
    home = tmp_path / "gradle-home"
    base = home / "caches" / "modules-2" / "files-2.1"
    base.mkdir(parents=True)
    monkeypatch.setenv("GRADLE_USER_HOME", str(home))
    return base


@pytest.fixture
def cache_file(gradle_cache):
    """Create ``<cache>/<group>/<module>/<version>/<hash>/<name>`` with *content*."""

    def _add(
        group: str,
        module: str,
        version: str,
        name: str,
        content: bytes = b"jar-bytes",
        hash_dir: str = "0123abcd",
    ) -> Path:
        directory = gradle_cache / group / module / version / hash_dir
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / name
        path.write_bytes(content)
        return path

    return _add
