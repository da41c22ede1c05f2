"""
Token-bounded chunking of document sections.

Sections are packed greedily, in order, into chunks that fit a token budget.
A chunk never mixes translatable and non-translatable sections, and sections
are never split.
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable
from dataclasses import dataclass, field

from translate_mdx_ai.parsing.sections import Section, SectionKind

# CJK ideographs (incl. ext. A and compatibility), CJK punctuation,
# kana, hangul and full-width forms
CJK_RE = re.compile(
    r"[\u3000-\u303f\u3040-\u309f\u30a0-\u30ff\u3400-\u4dbf"
    r"\u4e00-\u9fff\uac00-\ud7af\uf900-\ufaff\uff00-\uffef]"
)

CJK_CHARS_PER_TOKEN = 1.5
OTHER_CHARS_PER_TOKEN = 4.0

SECTION_SEPARATOR = "\n\n"


def estimate_tokens(text: str) -> int:
    """
    Estimate the token count of a text.

    CJK characters carry more meaning per character than Latin text, so they
    are counted at a higher rate.
    """
    if not text:
        return 0
    cjk = len(CJK_RE.findall(text))
    other = len(text) - cjk
    return math.ceil(cjk / CJK_CHARS_PER_TOKEN + other / OTHER_CHARS_PER_TOKEN)


@dataclass
class Chunk:
    """A batch of sections submitted together to the translator."""

    section_ids: list[str]
    combined_text: str
    estimated_tokens: int
    translatable: bool
    frontmatter: bool = False
    oversized: bool = False
    texts: list[str] = field(default_factory=list, repr=False)

    @property
    def size(self) -> int:
        return len(self.section_ids)


class Chunker:
    """Greedy, order-preserving section packer."""

    def __init__(self, max_tokens_per_chunk: int = 2000):
        if max_tokens_per_chunk < 1:
            raise ValueError("max_tokens_per_chunk must be positive")
        self.max_tokens = max_tokens_per_chunk

    def chunk(self, sections: Iterable[Section]) -> list[Chunk]:
        """
        Group sections into chunks.

        Args:
            sections: Sections in document order.

        Returns:
            Chunks in document order.
        """
        chunks: list[Chunk] = []
        pending: list[Section] = []
        pending_tokens = 0

        def flush() -> None:
            nonlocal pending, pending_tokens
            if pending:
                chunks.append(_build_chunk(pending, pending_tokens, translatable=True))
                pending = []
                pending_tokens = 0

        for section in sections:
            tokens = estimate_tokens(section.text)

            if not section.translatable:
                flush()
                chunks.append(_build_chunk([section], tokens, translatable=False))
                continue

            if section.kind == SectionKind.FRONTMATTER:
                flush()
                chunk = _build_chunk([section], tokens, translatable=True)
                chunk.frontmatter = True
                chunks.append(chunk)
                continue

            if tokens > self.max_tokens:
                flush()
                chunk = _build_chunk([section], tokens, translatable=True)
                chunk.oversized = True
                chunks.append(chunk)
                continue

            if pending and pending_tokens + tokens > self.max_tokens:
                flush()

            pending.append(section)
            pending_tokens += tokens

        flush()
        return chunks


def _build_chunk(sections: list[Section], tokens: int, translatable: bool) -> Chunk:
    texts = [s.text for s in sections]
    return Chunk(
        section_ids=[s.id for s in sections],
        combined_text=SECTION_SEPARATOR.join(texts),
        estimated_tokens=tokens,
        translatable=translatable,
        texts=texts,
    )


def chunk_sections(sections: Iterable[Section], max_tokens_per_chunk: int) -> list[Chunk]:
    """Chunk sections with the given token budget."""
    return Chunker(max_tokens_per_chunk).chunk(sections)
