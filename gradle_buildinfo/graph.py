"""Dependency accumulation, scope mapping and requested-by graph inversion."""

from __future__ import annotations

from collections.abc import Iterable

from gradle_buildinfo.models import (
    DEFAULT_TYPE,
    DependencyRecord,
    DependencyTree,
    Scope,
    dependency_id,
)

DependencyGraph = dict[str, list[str]]
RequestedByMap = dict[str, list[str]]

_VALID_SCOPES = {scope.value: scope for scope in Scope}


def map_configuration_to_scopes(configuration: str) -> set[Scope]:
    """Map a Gradle configuration name to build-info scopes.

    Checked most specific first; anything unmatched is ``compile``.
    """
    name = configuration.lower()
    if "test" in name:
        return {Scope.TEST}
    if "compileclasspath" in name or "compileonly" in name or name in ("api", "compile"):
        return {Scope.COMPILE}
    if "runtimeclasspath" in name or "runtimeonly" in name or name == "runtime":
        return {Scope.RUNTIME}
    if "provided" in name:
        return {Scope.PROVIDED}
    return {Scope.COMPILE}


def merge_scopes(existing: set[Scope], incoming: Iterable[Scope | str]) -> set[Scope]:
    """Union *incoming* into *existing* in place, dropping unknown scope names."""
    for scope in incoming:
        value = scope.value if isinstance(scope, Scope) else str(scope)
        known = _VALID_SCOPES.get(value)
        if known is not None:
            existing.add(known)
    return existing


def normalize_scopes(scopes: Iterable[Scope | str]) -> list[str]:
    """Sorted valid scope names; ``["compile"]`` when nothing valid remains."""
    normalized = sorted(s.value for s in merge_scopes(set(), scopes))
    return normalized or [Scope.COMPILE.value]


def add_dependency(
    dependencies: dict[str, DependencyRecord],
    group: str,
    artifact: str,
    version: str,
    scopes: Iterable[Scope],
    classifier: str = "",
    dep_type: str = DEFAULT_TYPE,
) -> str:
    """Insert or merge one dependency into a per-module accumulator; returns its id."""
    dep_id = dependency_id(group, artifact, version, classifier)
    record = dependencies.get(dep_id)
    if record is None:
        record = DependencyRecord(
            id=dep_id,
            name=f"{group}:{artifact}",
            version=version,
            type=dep_type or DEFAULT_TYPE,
            classifier=classifier if version else "",
        )
        dependencies[dep_id] = record
    merge_scopes(record.scopes, scopes)
    return dep_id


def add_edge(graph: DependencyGraph, parent: str, child: str) -> None:
    children = graph.setdefault(parent, [])
    if child not in children:
        children.append(child)


def collect_tree(
    tree: DependencyTree,
    scopes: set[Scope],
    dependencies: dict[str, DependencyRecord],
    graph: DependencyGraph,
) -> None:
    """Flatten a parsed configuration tree into records and parent→child edges.

    Nodes with an empty group, module or version are placeholders Gradle
    prints for unresolved entries; they and their subtrees are skipped.
    """

    def visit(index: int, parent_id: str | None) -> None:
        node = tree.nodes[index]
        if not (node.group and node.module and node.version):
            return
        dep_id = add_dependency(
            dependencies,
            node.group,
            node.module,
            node.version,
            scopes,
            classifier=node.classifier,
            dep_type=node.type,
        )
        if parent_id is not None:
            add_edge(graph, parent_id, dep_id)
        for child in node.children:
            visit(child, dep_id)

    for root in tree.roots:
        visit(root, None)


def build_requested_by_map(graph: DependencyGraph) -> RequestedByMap:
    """Invert parent→children into child→sorted unique parents."""
    requested_by: RequestedByMap = {}
    for parent, children in graph.items():
        for child in children:
            requesters = requested_by.setdefault(child, [])
            if parent not in requesters:
                requesters.append(parent)
    for requesters in requested_by.values():
        requesters.sort()
    return requested_by
