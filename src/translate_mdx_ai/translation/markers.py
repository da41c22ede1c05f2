"""
Section markers for multi-section chunks.

Sections sent together are separated by HTML comment marker lines so the
translated response can be split back per section id.
"""

from __future__ import annotations

import re

SECTION_MARKER_RE = re.compile(r"^[ \t]*<!--\s*@@(section-\d+)@@\s*-->[ \t]*$", re.MULTILINE | re.IGNORECASE)


def section_marker(section_id: str) -> str:
    return f"<!-- @@{section_id}@@ -->"


def join_with_markers(section_ids: list[str], texts: list[str]) -> str:
    """Join section texts, each preceded by its marker line."""
    return "\n\n".join(
        f"{section_marker(section_id)}\n{text}" for section_id, text in zip(section_ids, texts)
    )


def split_by_markers(translated: str, section_ids: list[str]) -> dict[str, str] | None:
    """
    Split a translated response back into sections.

    Returns:
        Translated text by section id, or None if the markers are missing,
        duplicated or out of order.
    """
    matches = list(SECTION_MARKER_RE.finditer(translated))
    found = [m.group(1).lower() for m in matches]
    if found != [s.lower() for s in section_ids]:
        return None

    result: dict[str, str] = {}
    for index, (section_id, match) in enumerate(zip(section_ids, matches)):
        end = matches[index + 1].start() if index + 1 < len(matches) else len(translated)
        text = translated[match.end() : end].strip("\n")
        if not text.strip():
            return None
        result[section_id] = text
    return result
