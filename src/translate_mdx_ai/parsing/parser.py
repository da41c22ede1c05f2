"""
Markdown/MDX document parser.

Splits a document into typed, line-ranged sections in a single forward pass:
front matter, import blocks, fenced code blocks, embedded component blocks,
heading sections and plain content. Blank lines between sections are not
kept; reassembly puts one blank line back between sections.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from translate_mdx_ai.errors import ParseError
from translate_mdx_ai.hashing import content_hash
from translate_mdx_ai.parsing.sections import (
    NEVER_TRANSLATABLE,
    ParsedDocument,
    Section,
    SectionKind,
)

logger = logging.getLogger(__name__)

FRONTMATTER_DELIMITER = "---"
CODE_FENCE = "```"
BOM = "\ufeff"

HEADING_RE = re.compile(r"^(#{1,6})[ \t]+(\S.*?)[ \t]*$")
# import X from 'y' / import {A, B} from "y" / import 'side-effect' / import {  (multi-line)
IMPORT_RE = re.compile(r"""^import\s+(?:[\w*{}\s,$]+?\s+from\s+)?["']|^import\s*\{[^}]*$""")
COMPONENT_OPEN_RE = re.compile(r"^<([A-Z][A-Za-z0-9_.]*)(?=[\s/>]|$)")
FRONTMATTER_LINE_RE = re.compile(r"^([A-Za-z_][\w-]*)\s*:\s*(.*?)\s*$")
# YAML block scalar header: | or > with optional chomping and indentation
BLOCK_SCALAR_RE = re.compile(r"^[|>][+-]?\d*$")

COMMENT_PREFIXES = ("//", "/*", "*", "{/*")


class ComponentScanner:
    """
    Depth tracker for one embedded component block.

    Fed line by line. Counts opening and closing occurrences of a single tag
    name, follows opening tags across lines (attributes, quoted values and
    ``{...}`` expressions may contain ``>``), and treats ``<Name ... />`` as
    self-closing. Reports the block as closed at the end of the line on which
    the depth returns to zero.
    """

    _QUOTES = "\"'`"

    def __init__(self, name: str):
        self.name = name
        self.depth = 0
        self._started = False
        self._in_tag = False
        self._quote: str | None = None
        self._braces = 0

    def _tag_at(self, line: str, pos: int, prefix: str) -> bool:
        token = prefix + self.name
        if not line.startswith(token, pos):
            return False
        after = pos + len(token)
        return after >= len(line) or line[after] in " \t/>"

    def feed(self, line: str) -> bool:
        """Consume one line; return True once the block is closed."""
        i = 0
        n = len(line)
        while i < n:
            ch = line[i]
            if self._in_tag:
                if self._quote:
                    if ch == self._quote:
                        self._quote = None
                elif ch in self._QUOTES:
                    self._quote = ch
                elif ch == "{":
                    self._braces += 1
                elif ch == "}":
                    self._braces = max(0, self._braces - 1)
                elif ch == ">" and self._braces == 0:
                    self._in_tag = False
                    if i == 0 or line[i - 1] != "/":
                        self.depth += 1
                i += 1
                continue

            if ch == "<":
                if self._tag_at(line, i, "</"):
                    self.depth = max(0, self.depth - 1)
                    i += len(self.name) + 2
                    continue
                if self._tag_at(line, i, "<"):
                    self._started = True
                    self._in_tag = True
                    self._quote = None
                    self._braces = 0
                    i += len(self.name) + 1
                    continue
            i += 1

        return self._started and not self._in_tag and self.depth == 0


class DocumentParser:
    """Parses Markdown/MDX text into a ``ParsedDocument``."""

    def parse(self, path: Path | str, raw_text: str) -> ParsedDocument:
        """
        Parse a document.

        Args:
            path: Source path (used for diagnostics and the document title).
            raw_text: Full document text.

        Returns:
            ParsedDocument with sections in document order.

        Raises:
            ParseError: If the scan fails to advance.
        """
        path = Path(path)
        text = raw_text.removeprefix(BOM).replace("\r\n", "\n")
        lines = text.split("\n")
        if text.endswith("\n"):
            lines.pop()

        sections: list[Section] = []
        frontmatter: dict[str, str] | None = None
        n = len(lines)
        i = 0

        # Front matter may follow leading blank lines
        first = next((j for j in range(n) if lines[j].strip()), n)
        if first < n and lines[first].strip() == FRONTMATTER_DELIMITER:
            close = next(
                (j for j in range(first + 1, n) if lines[j].strip() == FRONTMATTER_DELIMITER),
                None,
            )
            if close is not None:
                frontmatter = parse_frontmatter(lines[first + 1 : close])
                sections.append(
                    self._make_section(sections, SectionKind.FRONTMATTER, lines, first, close)
                )
                i = close + 1

        max_iterations = 2 * n + 1
        iterations = 0
        while i < n:
            iterations += 1
            if iterations > max_iterations:
                raise ParseError(
                    f"Parser did not terminate after {max_iterations} iterations", path, line=i
                )

            line = lines[i]
            stripped = line.strip()
            if not stripped:
                i += 1
                continue

            heading = HEADING_RE.match(line)
            component = COMPONENT_OPEN_RE.match(stripped)

            if IMPORT_RE.match(stripped):
                kind = SectionKind.IMPORT
                end = self._scan_imports(lines, i)
            elif stripped.startswith(CODE_FENCE):
                kind = SectionKind.CODEBLOCK
                end = self._scan_fence(lines, i)
            elif component:
                kind = SectionKind.COMPONENT
                end = self._scan_component(lines, i, component.group(1))
            elif heading:
                kind = SectionKind.HEADING
                end = self._scan_heading(lines, i, len(heading.group(1)))
            else:
                kind = SectionKind.CONTENT
                end = self._scan_content(lines, i)

            if end < i:
                raise ParseError(f"Section scan for {kind.value} moved backwards", path, line=i)

            sections.append(self._make_section(sections, kind, lines, i, end))
            i = end + 1

        logger.debug("Parsed %s into %d sections", path, len(sections))

        return ParsedDocument(
            source_path=path,
            frontmatter=frontmatter,
            sections=tuple(sections),
            content_hash=content_hash(raw_text),
        )

    # ------------------------------------------------------------------
    # Section scanners. Each returns the inclusive end line (>= start).
    # ------------------------------------------------------------------

    def _scan_imports(self, lines: list[str], start: int) -> int:
        last = start
        j = start
        while j < len(lines):
            stripped = lines[j].strip()
            if IMPORT_RE.match(stripped):
                j = self._import_statement_end(lines, j)
                last = j
                j += 1
            elif not stripped or stripped.startswith(COMMENT_PREFIXES):
                j += 1
            else:
                break
        return last

    @staticmethod
    def _import_statement_end(lines: list[str], start: int) -> int:
        line = lines[start]
        brace = line.find("{")
        if brace == -1 or "}" in line[brace:]:
            return start
        for j in range(start + 1, len(lines)):
            if "}" in lines[j]:
                return j
        return len(lines) - 1

    @staticmethod
    def _scan_fence(lines: list[str], start: int) -> int:
        for j in range(start + 1, len(lines)):
            if lines[j].strip().startswith(CODE_FENCE):
                return j
        return len(lines) - 1

    @staticmethod
    def _scan_component(lines: list[str], start: int, name: str) -> int:
        scanner = ComponentScanner(name)
        for j in range(start, len(lines)):
            if scanner.feed(lines[j]):
                return j
        return len(lines) - 1

    def _scan_heading(self, lines: list[str], start: int, level: int) -> int:
        end = start
        in_fence = False
        for j in range(start + 1, len(lines)):
            line = lines[j]
            if line.strip().startswith(CODE_FENCE):
                in_fence = not in_fence
            elif not in_fence:
                match = HEADING_RE.match(line)
                if match and len(match.group(1)) <= level:
                    break
            end = j
        return _trim_trailing_blank(lines, start, end)

    def _scan_content(self, lines: list[str], start: int) -> int:
        end = start
        for j in range(start + 1, len(lines)):
            if _is_section_trigger(lines[j]):
                break
            end = j
        return _trim_trailing_blank(lines, start, end)

    @staticmethod
    def _make_section(
        existing: list[Section],
        kind: SectionKind,
        lines: list[str],
        start: int,
        end: int,
    ) -> Section:
        heading_level = None
        title = None
        if kind == SectionKind.HEADING:
            match = HEADING_RE.match(lines[start])
            if match:
                heading_level = len(match.group(1))
                title = match.group(2).rstrip("#").strip()

        return Section(
            id=f"section-{len(existing)}",
            kind=kind,
            text="\n".join(lines[start : end + 1]),
            start_line=start,
            end_line=end,
            translatable=kind not in NEVER_TRANSLATABLE,
            heading_level=heading_level,
            title=title,
        )


def _is_section_trigger(line: str) -> bool:
    stripped = line.strip()
    return bool(
        IMPORT_RE.match(stripped)
        or stripped.startswith(CODE_FENCE)
        or COMPONENT_OPEN_RE.match(stripped)
        or HEADING_RE.match(line)
    )


def _trim_trailing_blank(lines: list[str], start: int, end: int) -> int:
    while end > start and not lines[end].strip():
        end -= 1
    return end


def parse_frontmatter(lines: list[str]) -> dict[str, str]:
    """
    Parse ``key: value`` lines of a front-matter block; other lines are ignored.

    Block scalars (``key: |`` or ``key: >-``) take the indented lines that
    follow; ``>`` folds them into one line.
    """
    result: dict[str, str] = {}
    for index, line in enumerate(lines):
        match = FRONTMATTER_LINE_RE.match(line)
        if not match:
            continue
        key, value = match.group(1), match.group(2)
        if BLOCK_SCALAR_RE.match(value):
            body = []
            for follow in lines[index + 1 :]:
                if follow.strip() and follow[:1] not in " \t":
                    break
                body.append(follow.strip())
            if value.startswith(">"):
                result[key] = " ".join(part for part in body if part)
            else:
                result[key] = "\n".join(body).strip()
            continue
        result[key] = strip_quotes(value)
    return result


def strip_quotes(value: str) -> str:
    """Remove one pair of matching surrounding quotes."""
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


def parse_document(path: Path | str, raw_text: str) -> ParsedDocument:
    """Parse a document with a default parser."""
    return DocumentParser().parse(path, raw_text)
