"""Comment/string-aware lexing helpers for Gradle build scripts.

Build scripts are Groovy or Kotlin DSL; we never parse them fully. The
lexer only separates four kinds of text so that brace matching and regex
extraction are not fooled by ``{`` or ``//`` inside strings and comments:

  code | string literal | line comment | block comment
"""

from __future__ import annotations

import re
from typing import Iterator

import structlog

log = structlog.get_logger("gradle_buildinfo.parsing")

CODE = "code"
STRING = "string"
LINE_COMMENT = "line_comment"
BLOCK_COMMENT = "block_comment"

_DEPENDENCIES_RE = re.compile(r"\bdependencies\s*\{")


def _string_end(content: str, start: int) -> int:
    """Index just past the string literal opened at *start* (backslash escapes honored)."""
    quote = content[start]
    i = start + 1
    n = len(content)
    while i < n:
        char = content[i]
        if char == "\\":
            i += 2
            continue
        if char == quote:
            return i + 1
        i += 1
    return n


def segments(content: str) -> Iterator[tuple[str, int, int]]:
    """Yield ``(kind, start, end)`` spans covering *content* in order."""
    n = len(content)
    i = 0
    code_start = 0
    while i < n:
        char = content[i]
        if char == "/" and i + 1 < n and content[i + 1] in "/*":
            if code_start < i:
                yield CODE, code_start, i
            if content[i + 1] == "/":
                end = content.find("\n", i)
                end = n if end == -1 else end
                yield LINE_COMMENT, i, end
            else:
                end = content.find("*/", i + 2)
                end = n if end == -1 else end + 2
                yield BLOCK_COMMENT, i, end
            i = code_start = end
            continue
        if char in "\"'":
            if code_start < i:
                yield CODE, code_start, i
            end = _string_end(content, i)
            yield STRING, i, end
            i = code_start = end
            continue
        i += 1
    if code_start < n:
        yield CODE, code_start, n


def strip_comments(content: str) -> str:
    """Remove ``//`` and ``/* */`` comments, keeping string literals intact.

    Newlines inside block comments are preserved so line structure survives.
    """
    out: list[str] = []
    for kind, start, end in segments(content):
        if kind in (CODE, STRING):
            out.append(content[start:end])
        elif kind == BLOCK_COMMENT:
            out.append("\n" * content.count("\n", start, end))
    return "".join(out)


def mask_non_code(content: str) -> str:
    """Same-length copy of *content* with strings and comments blanked out."""
    out: list[str] = []
    for kind, start, end in segments(content):
        if kind == CODE:
            out.append(content[start:end])
        else:
            out.append(" " * (end - start))
    return "".join(out)


def brace_depth_at(masked: str, index: int) -> int:
    return masked.count("{", 0, index) - masked.count("}", 0, index)


def _matching_brace(masked: str, open_index: int) -> int | None:
    depth = 0
    for i in range(open_index, len(masked)):
        char = masked[i]
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return i
    return None


def dependency_block_spans(content: str) -> list[tuple[int, int]]:
    """Spans ``(body_start, body_end)`` of every balanced ``dependencies { }`` block.

    Nested blocks inside an already returned block are not reported again.
    An unbalanced block ends the scan.
    """
    masked = mask_non_code(content)
    spans: list[tuple[int, int]] = []
    search_from = 0
    while True:
        match = _DEPENDENCIES_RE.search(masked, search_from)
        if match is None:
            return spans
        open_index = match.end() - 1
        close_index = _matching_brace(masked, open_index)
        if close_index is None:
            log.debug("parsing.unbalanced_dependencies_block", offset=open_index)
            return spans
        spans.append((open_index + 1, close_index))
        search_from = close_index + 1


def extract_dependencies_block(content: str) -> str:
    """Return the body of the first top-level ``dependencies { ... }`` block.

    ``buildscript { dependencies { ... } }`` and other nested blocks are only
    used when no top-level block exists. Returns ``""`` when there is no block
    or its braces never balance.
    """
    masked = mask_non_code(content)
    first: tuple[int, int] | None = None
    for match in _DEPENDENCIES_RE.finditer(masked):
        open_index = match.end() - 1
        close_index = _matching_brace(masked, open_index)
        if close_index is None:
            log.debug("parsing.unbalanced_dependencies_block", offset=open_index)
            break
        span = (open_index + 1, close_index)
        if brace_depth_at(masked, match.start()) == 0:
            return content[span[0] : span[1]]
        if first is None:
            first = span
    if first is None:
        return ""
    return content[first[0] : first[1]]
