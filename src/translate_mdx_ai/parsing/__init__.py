"""
Document parsing for translate-mdx-ai.

Provides:
- Section data model (kinds, line ranges, translatable flag)
- Single-pass Markdown/MDX parser
"""

from translate_mdx_ai.parsing.parser import DocumentParser, parse_document
from translate_mdx_ai.parsing.sections import ParsedDocument, Section, SectionKind

__all__ = ["DocumentParser", "ParsedDocument", "Section", "SectionKind", "parse_document"]
