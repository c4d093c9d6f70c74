"""Parser for ``gradle dependencies --configuration <name>`` text output.

Example input::

    +--- org.slf4j:slf4j-api:2.0.0
    +--- com.example:lib:1.0 -> 1.1
    \\--- a:b:1.0
         +--- c:d:2.0
         \\--- e:f:1.0 (c)

Depth is the number of five-character indent groups (``"|    "`` or
``"     "``) in front of the ``+--- `` / ``\\--- `` marker. Constraint
``(c)`` and not-resolved ``(n)`` entries are dropped together with their
subtree; ``(*)`` (already expanded elsewhere) is parsed normally.
"""

from __future__ import annotations

import re
from typing import Callable

import structlog

from gradle_buildinfo.models import DEFAULT_TYPE, DependencyTree, DependencyTreeNode, ModuleMetadata

log = structlog.get_logger("gradle_buildinfo.parsing")

_MARKERS = ("+--- ", "\\--- ")
_INDENTS = ("|    ", "     ")
_MARKER_WIDTH = 5

_OMITTED_RE = re.compile(r"\((?:c|n)\)(?:\s*\(\*\))?$")
_EXPANDED_SUFFIX = "(*)"
_FAILED_SUFFIX = " FAILED"
_ARROW = " -> "
_PROJECT_PREFIX = "project "

ProjectResolver = Callable[[str], ModuleMetadata]


def tree_depth(prefix: str) -> int:
    """Count leading indent groups in the text before a tree marker."""
    depth = 0
    i = 0
    while prefix.startswith(_INDENTS, i):
        depth += 1
        i += _MARKER_WIDTH
    return depth


def split_tree_line(line: str) -> tuple[int, str] | None:
    """``(depth, content)`` for a tree entry line, or None for any other line."""
    index = -1
    for marker in _MARKERS:
        found = line.find(marker)
        if found != -1 and (index == -1 or found < index):
            index = found
    if index == -1:
        return None
    content = line[index + _MARKER_WIDTH :].strip()
    if not content:
        return None
    return tree_depth(line[:index]), content


def is_omitted(content: str) -> bool:
    """True for ``(c)`` constraint and ``(n)`` not-resolved entries."""
    return _OMITTED_RE.search(content) is not None


def parse_tree_entry(content: str, resolve_project: ProjectResolver) -> DependencyTreeNode | None:
    """Parse one entry's text into a node; None when it has no usable coordinates."""
    content = content.strip()
    if content.endswith(_EXPANDED_SUFFIX):
        content = content[: -len(_EXPANDED_SUFFIX)].rstrip()
    if content.endswith(_FAILED_SUFFIX):
        return None

    resolved_version = ""
    if _ARROW in content:
        content, _, resolved = content.partition(_ARROW)
        content = content.strip()
        resolved_version = resolved.strip().split("@", 1)[0].strip()

    dep_type = DEFAULT_TYPE
    if "@" in content:
        content, _, dep_type = content.rpartition("@")
        dep_type = dep_type.strip() or DEFAULT_TYPE

    if content.startswith(_PROJECT_PREFIX):
        target = resolve_project(content[len(_PROJECT_PREFIX) :])
        return DependencyTreeNode(
            group=target.group,
            module=target.artifact,
            version=target.version,
            type=dep_type,
        )

    parts = content.split(":")
    if len(parts) < 2:
        return None
    if len(parts) == 2 and not resolved_version:
        # Gradle renders some self-references without a version.
        return None

    version = resolved_version or parts[2]
    classifier = parts[3] if len(parts) >= 4 else ""
    return DependencyTreeNode(
        group=parts[0].strip(),
        module=parts[1].strip(),
        version=version.strip(),
        classifier=classifier.strip(),
        type=dep_type,
    )


def parse_dependency_tree(output: str, resolve_project: ProjectResolver) -> DependencyTree:
    """Rebuild the dependency tree printed by Gradle for one configuration."""
    tree = DependencyTree()
    stack: list[int | None] = []  # stack[d] = most recent node index at depth d
    skip_depth: int | None = None

    for raw_line in output.splitlines():
        line = raw_line.rstrip()
        if not line:
            continue
        entry = split_tree_line(line)
        if entry is None:
            continue
        depth, content = entry

        if skip_depth is not None:
            if depth > skip_depth:
                continue
            skip_depth = None

        if is_omitted(content):
            skip_depth = depth
            del stack[depth:]
            continue

        node = parse_tree_entry(content, resolve_project)
        if node is None:
            del stack[depth:]
            continue

        if depth == 0:
            index = tree.add(node)
            stack = [index]
            continue

        parent = next(
            (
                stack[d]
                for d in range(min(depth, len(stack)) - 1, -1, -1)
                if stack[d] is not None
            ),
            None,
        )
        if parent is None:
            log.debug("parsing.tree_orphan_entry", depth=depth, content=content)
        index = tree.add(node, parent)
        del stack[depth:]
        stack.extend([None] * (depth - len(stack)))
        stack.append(index)

    return tree
