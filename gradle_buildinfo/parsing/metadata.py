"""Regex extraction of project metadata from build and settings scripts."""

from __future__ import annotations

import re

from gradle_buildinfo.models import UNSPECIFIED
from gradle_buildinfo.parsing.text import (
    brace_depth_at,
    dependency_block_spans,
    mask_non_code,
    strip_comments,
)

_GROUP_RE = re.compile(r"""(?<![\w.])(?:project\.)?group\s*[=:]\s*['"]([^'"]+)['"]""")
_NAME_RE = re.compile(r"""(?<![\w.])(?:rootProject\.|project\.)?name\s*[=:]\s*['"]([^'"]+)['"]""")
_VERSION_RE = re.compile(r"""(?<![\w.])(?:project\.)?version\s*[=:]\s*['"]([^'"]+)['"]""")
_ROOT_PROJECT_RE = re.compile(r"""rootProject\.name\s*[=:]\s*['"]([^'"]+)['"]""")

_INCLUDE_RE = re.compile(r"include\b")
_QUOTED_RE = re.compile(r"""['"]([^'"]+)['"]""")


def _without_dependency_blocks(content: str) -> str:
    """Blank out ``dependencies { }`` bodies; map notation there uses ``group:``/``name:``."""
    spans = dependency_block_spans(content)
    if not spans:
        return content
    chars = list(content)
    for start, end in spans:
        for i in range(start, end):
            if chars[i] != "\n":
                chars[i] = " "
    return "".join(chars)


def _first_assignment(pattern: re.Pattern[str], content: str, masked: str) -> str:
    """First top-level match of *pattern*, else the first match at any depth."""
    fallback = ""
    for match in pattern.finditer(content):
        if brace_depth_at(masked, match.start()) == 0:
            return match.group(1)
        if not fallback:
            fallback = match.group(1)
    return fallback


def parse_build_metadata(content: str) -> tuple[str, str, str]:
    """Extract ``(group, artifact, version)`` from a build script.

    Missing group and version become ``"unspecified"``; a missing name is
    returned empty so the caller can apply its own fallback.
    """
    text = _without_dependency_blocks(strip_comments(content))
    masked = mask_non_code(text)
    group = _first_assignment(_GROUP_RE, text, masked) or UNSPECIFIED
    artifact = _first_assignment(_NAME_RE, text, masked)
    version = _first_assignment(_VERSION_RE, text, masked) or UNSPECIFIED
    return group, artifact, version


def parse_root_project_name(settings_content: str) -> str:
    """``rootProject.name`` from a settings script, or ``""``."""
    match = _ROOT_PROJECT_RE.search(strip_comments(settings_content))
    return match.group(1) if match else ""


def parse_settings_modules(settings_content: str) -> list[str]:
    """Module paths declared by ``include`` statements, root (``""``) first.

    ``includeBuild`` (composite builds) and ``includeFlat`` are not modules
    of this build and are ignored. Statements may span several lines through
    parentheses or trailing commas.
    """
    modules = [""]
    open_parens = 0
    continued = False
    for line in strip_comments(settings_content).splitlines():
        trimmed = line.strip()
        if not (open_parens > 0 or continued):
            if not _INCLUDE_RE.match(trimmed):
                continue
            trimmed = trimmed[len("include") :]
        for quoted in _QUOTED_RE.findall(trimmed):
            module_path = quoted.strip()
            if module_path.startswith(":"):
                module_path = module_path[1:]
            if module_path and module_path not in modules:
                modules.append(module_path)
        open_parens = max(open_parens + trimmed.count("(") - trimmed.count(")"), 0)
        continued = trimmed.endswith(",")
    return modules
