"""
Reassembly of original and translated sections into one document.

Output is normalised so that reassembling an already normalised document
without translations returns it unchanged.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping

from translate_mdx_ai.parsing.sections import Section

EXCESS_NEWLINES_RE = re.compile(r"\n{3,}")
# Blank lines around code fences and headings are collapsed to one
BLANKS_BEFORE_STRUCTURE_RE = re.compile(r"\n(?:[ \t]*\n){2,}(?=[ \t]*(?:```|#{1,6}[ \t]))")
BLANKS_AFTER_STRUCTURE_RE = re.compile(
    r"^([ \t]*(?:```|#{1,6}[ \t])[^\n]*)\n(?:[ \t]*\n){2,}", re.MULTILINE
)


def normalize_document(text: str) -> str:
    """Normalise blank lines and the trailing newline of a document."""
    text = BLANKS_BEFORE_STRUCTURE_RE.sub("\n\n", text)
    text = BLANKS_AFTER_STRUCTURE_RE.sub(r"\1\n\n", text)
    text = EXCESS_NEWLINES_RE.sub("\n\n", text)
    return text.rstrip("\n") + "\n"


def reassemble(sections: Iterable[Section], translated_by_id: Mapping[str, str]) -> str:
    """
    Rebuild a document from its sections.

    Args:
        sections: Sections in original order.
        translated_by_id: Translated text keyed by section id. Sections without
            an entry keep their original text.

    Returns:
        The normalised document, ending with exactly one newline.
    """
    parts: list[str] = []
    for section in sections:
        text = translated_by_id.get(section.id, section.text)
        if text == "":
            continue
        parts.append(text.strip("\n"))

    return normalize_document("\n\n".join(parts))
