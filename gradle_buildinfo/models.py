"""Data models for module discovery, dependency resolution and checksums."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

UNSPECIFIED = "unspecified"
DEFAULT_TYPE = "jar"


class Scope(str, enum.Enum):
    """Build-info level classification of a dependency's usage."""

    COMPILE = "compile"
    RUNTIME = "runtime"
    TEST = "test"
    PROVIDED = "provided"
    SYSTEM = "system"


def dependency_id(group: str, artifact: str, version: str, classifier: str = "") -> str:
    """Canonical ``group:artifact:version[:classifier]`` id.

    A missing version (map notation without ``version:``) yields ``group:artifact``;
    a classifier is only appended when a version is present.
    """
    parts = [group, artifact]
    if version:
        parts.append(version)
        if classifier:
            parts.append(classifier)
    return ":".join(parts)


@dataclass(frozen=True)
class ModuleMetadata:
    """Resolved identity of one project module."""

    group: str
    artifact: str
    version: str

    @property
    def module_id(self) -> str:
        return ":".join(
            [self.group or UNSPECIFIED, self.artifact or UNSPECIFIED, self.version or UNSPECIFIED]
        )


@dataclass
class ModuleTable:
    """Discovered modules in settings order (root first, keyed by module path)."""

    order: list[str]
    metadata: dict[str, ModuleMetadata]

    @property
    def root(self) -> ModuleMetadata:
        return self.metadata[""]

    def get(self, module_path: str) -> ModuleMetadata | None:
        return self.metadata.get(module_path)

    def resolve_project(self, project_path: str, current: ModuleMetadata) -> ModuleMetadata:
        """Resolve a ``project(':a:b')`` reference.

        Unknown paths keep the last path segment as artifact and borrow the
        referencing module's group and version.
        """
        path = project_path.strip().lstrip(":")
        known = self.metadata.get(path)
        if known is not None:
            return known
        return ModuleMetadata(
            group=current.group,
            artifact=path.split(":")[-1],
            version=current.version,
        )


@dataclass
class DependencyRecord:
    """One resolved dependency of a module, deduplicated by ``id``."""

    id: str
    name: str  # group:artifact
    version: str
    type: str = DEFAULT_TYPE
    classifier: str = ""
    scopes: set[Scope] = field(default_factory=set)

    @property
    def group(self) -> str:
        return self.name.split(":", 1)[0]

    @property
    def artifact(self) -> str:
        return self.name.split(":", 1)[-1]


@dataclass
class DependencyTreeNode:
    """One entry of a ``gradle dependencies`` tree; children are arena indices."""

    group: str
    module: str
    version: str
    classifier: str = ""
    type: str = DEFAULT_TYPE
    children: list[int] = field(default_factory=list)


@dataclass
class DependencyTree:
    """Index-addressed arena of tree nodes for one configuration's output."""

    nodes: list[DependencyTreeNode] = field(default_factory=list)
    roots: list[int] = field(default_factory=list)

    def add(self, node: DependencyTreeNode, parent: int | None = None) -> int:
        index = len(self.nodes)
        self.nodes.append(node)
        if parent is None:
            self.roots.append(index)
        else:
            self.nodes[parent].children.append(index)
        return index

    def root_nodes(self) -> list[DependencyTreeNode]:
        return [self.nodes[i] for i in self.roots]

    def children_of(self, index: int) -> list[DependencyTreeNode]:
        return [self.nodes[i] for i in self.nodes[index].children]


@dataclass
class Digests:
    """Checksum digests; any subset may be empty."""

    sha1: str = ""
    sha256: str = ""
    md5: str = ""

    def is_empty(self) -> bool:
        return not (self.sha1 or self.sha256 or self.md5)


@dataclass
class ArtifactRecord:
    """An artifact produced by the local publish step, from the manifest."""

    module_name: str  # "" for the root project
    type: str
    name: str
    path: str
    checksum: Digests = field(default_factory=Digests)


@dataclass
class ResolvedChecksum:
    """Checksums attached to a dependency and where they came from."""

    checksum: Digests
    path: str
    source: str  # "manifest" | "cache"
