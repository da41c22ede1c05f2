"""
Translation engine for translate-mdx-ai.

Provides:
- Token-bounded chunking of document sections
- Context-aware translation with glossary terms
- LangGraph-based per-file workflow with section-level caching
- Deterministic reassembly of translated documents
"""

from translate_mdx_ai.translation.chunker import Chunk, Chunker, chunk_sections, estimate_tokens
from translate_mdx_ai.translation.context import TranslationContext
from translate_mdx_ai.translation.orchestrator import (
    FileJob,
    JobStage,
    LanguageStats,
    OrchestratorConfig,
    RunReport,
    TranslationOrchestrator,
)
from translate_mdx_ai.translation.reassembler import normalize_document, reassemble
from translate_mdx_ai.translation.translator import LLMTranslator, Translator

__all__ = [
    "Chunk",
    "Chunker",
    "chunk_sections",
    "estimate_tokens",
    "TranslationContext",
    "FileJob",
    "JobStage",
    "LanguageStats",
    "OrchestratorConfig",
    "RunReport",
    "TranslationOrchestrator",
    "normalize_document",
    "reassemble",
    "LLMTranslator",
    "Translator",
]
