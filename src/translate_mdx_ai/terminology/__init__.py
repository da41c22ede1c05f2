"""
Terminology management for translate-mdx-ai.

Provides a persisted glossary with a built-in seed table.
"""

from translate_mdx_ai.terminology.glossary import GlossaryEntry, GlossaryStore

__all__ = ["GlossaryEntry", "GlossaryStore"]
