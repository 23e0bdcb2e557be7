"""
Markdown preprocessing for diagram fences.

Rewrites fenced code blocks tagged with a diagram language (``mermaid`` by
default) into ``<div class="mermaid">`` containers that the client-side
diagram engine draws at render time. Everything else passes through
unchanged and in its original order.

The document is tokenized line by line into fenced blocks so that diagram
fences nested inside other fences are left alone, and an unclosed fence
passes through unmodified instead of being partially matched.
"""

import html
import re
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Sequence

DEFAULT_DIAGRAM_LANGUAGES = ("mermaid",)
DIAGRAM_CONTAINER_CLASS = "mermaid"

_FENCE_OPEN_RE = re.compile(r"^(?P<indent> {0,3})(?P<fence>`{3,}|~{3,})(?P<info>.*)$")
_FENCE_CLOSE_RE = re.compile(r"^ {0,3}(?P<fence>`{3,}|~{3,})[ \t]*$")


@dataclass(frozen=True)
class FencedBlock:
    """A balanced fenced code block, as line indexes into the document."""

    start: int  # opening fence line
    end: int  # closing fence line
    indent: str
    fence: str
    info: str

    @property
    def language(self) -> str:
        words = self.info.split()
        return words[0].lower() if words else ""


def _strip_eol(line: str) -> str:
    return line.rstrip("\r\n")


def _match_fence_open(line: str) -> Optional[re.Match]:
    match = _FENCE_OPEN_RE.match(_strip_eol(line))
    if match is None:
        return None
    # Backtick fences may not carry backticks in their info string
    if match.group("fence")[0] == "`" and "`" in match.group("info"):
        return None
    return match


def _find_fence_close(lines: Sequence[str], start: int, fence: str) -> Optional[int]:
    for idx in range(start, len(lines)):
        match = _FENCE_CLOSE_RE.match(_strip_eol(lines[idx]))
        if match is None:
            continue
        closing = match.group("fence")
        if closing[0] == fence[0] and len(closing) >= len(fence):
            return idx
    return None


def iter_fenced_blocks(lines: Sequence[str]) -> Iterator[FencedBlock]:
    """
    Yield every balanced fenced block in document order.

    Iteration stops at the first fence that is never closed; per CommonMark
    it swallows the rest of the document, so nothing after it is a block.
    """
    idx = 0
    while idx < len(lines):
        match = _match_fence_open(lines[idx])
        if match is None:
            idx += 1
            continue
        close_idx = _find_fence_close(lines, idx + 1, match.group("fence"))
        if close_idx is None:
            return
        yield FencedBlock(
            start=idx,
            end=close_idx,
            indent=match.group("indent"),
            fence=match.group("fence"),
            info=match.group("info").strip(),
        )
        idx = close_idx + 1


def _dedent_line(line: str, width: int) -> str:
    """Remove up to ``width`` leading spaces (the fence's own indentation)."""
    stripped = line.lstrip(" ")
    removable = min(width, len(line) - len(stripped))
    return line[removable:]


def _diagram_container(block: FencedBlock, lines: Sequence[str]) -> str:
    source = "".join(
        _dedent_line(line, len(block.indent))
        for line in lines[block.start + 1:block.end]
    ).strip()
    # Blank lines would terminate the HTML block early, so they are dropped.
    body = [
        block.indent + html.escape(line.rstrip(), quote=False)
        for line in source.splitlines()
        if line.strip()
    ]
    opening = f'{block.indent}<div class="{DIAGRAM_CONTAINER_CLASS}">'
    closing = f"{block.indent}</div>"
    if body:
        container = "\n".join([opening, *body, closing])
    else:
        container = f"{opening}</div>"
    if lines[block.end].endswith("\n"):
        # Blank line keeps following markdown out of the HTML block
        container += "\n\n"
    return container


def preprocess_markdown(
    markdown: str,
    languages: Iterable[str] = DEFAULT_DIAGRAM_LANGUAGES,
) -> str:
    """
    Replace diagram fences with renderable container markup.

    Args:
        markdown: Raw markdown source
        languages: Fence info-string languages treated as diagrams

    Returns:
        Markdown with each diagram fence replaced by a container wrapping its
        trimmed contents. Input with no diagram fences is returned unchanged.
    """
    wanted = {lang.lower() for lang in languages}
    lines = markdown.splitlines(keepends=True)

    output: List[str] = []
    cursor = 0
    for block in iter_fenced_blocks(lines):
        if block.language not in wanted:
            continue
        output.extend(lines[cursor:block.start])
        output.append(_diagram_container(block, lines))
        cursor = block.end + 1

    if cursor == 0:
        return markdown
    output.extend(lines[cursor:])
    return "".join(output)


def count_diagram_blocks(
    markdown: str,
    languages: Iterable[str] = DEFAULT_DIAGRAM_LANGUAGES,
) -> int:
    """Number of diagram containers preprocess_markdown() would produce."""
    wanted = {lang.lower() for lang in languages}
    lines = markdown.splitlines(keepends=True)
    return sum(1 for block in iter_fenced_blocks(lines) if block.language in wanted)
