"""
translate-mdx-ai: LLM-powered translation of Markdown/MDX documentation.

This package provides tools for:
- Parsing MDX documents into typed sections
- Section-level translation caching keyed by content hashes
- Glossary-guided, token-bounded translation through OpenAI-compatible APIs
- Deterministic reassembly of translated documents
"""

__version__ = "0.1.0"

from translate_mdx_ai.cache import CacheStore
from translate_mdx_ai.config import Settings, load_config
from translate_mdx_ai.errors import (
    CacheCorruptionError,
    DocumentIOError,
    ParseError,
    TranslateDocsError,
    TranslateError,
)
from translate_mdx_ai.hashing import content_hash
from translate_mdx_ai.parsing import DocumentParser, ParsedDocument, Section, SectionKind
from translate_mdx_ai.scanner import DocumentScanner
from translate_mdx_ai.terminology import GlossaryEntry, GlossaryStore
from translate_mdx_ai.translation import (
    FileJob,
    LLMTranslator,
    RunReport,
    TranslationOrchestrator,
    Translator,
)

__all__ = [
    # Config
    "Settings",
    "load_config",
    # Errors
    "TranslateDocsError",
    "ParseError",
    "TranslateError",
    "DocumentIOError",
    "CacheCorruptionError",
    # Parsing
    "content_hash",
    "DocumentParser",
    "ParsedDocument",
    "Section",
    "SectionKind",
    # Stores
    "CacheStore",
    "GlossaryEntry",
    "GlossaryStore",
    # Translation
    "DocumentScanner",
    "FileJob",
    "LLMTranslator",
    "RunReport",
    "TranslationOrchestrator",
    "Translator",
]
