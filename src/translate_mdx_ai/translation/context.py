"""
Context building for translation.

Provides document title, type, outline and glossary terms to the translator
and formats them into the prompt.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from translate_mdx_ai.parsing.sections import ParsedDocument

LANGUAGE_NAMES = {
    "zh": "Simplified Chinese",
    "zh-tw": "Traditional Chinese",
    "en": "English",
    "ja": "Japanese",
    "ko": "Korean",
    "fr": "French",
    "de": "German",
    "es": "Spanish",
    "ru": "Russian",
    "ar": "Arabic",
}

# Outline entries beyond this are dropped from the prompt
MAX_OUTLINE_ENTRIES = 40


def language_name(code: str) -> str:
    """Human-readable language name for a language code."""
    return LANGUAGE_NAMES.get(code.lower(), code)


def document_type_for(path: Path | str) -> str:
    """Document type label derived from the file extension."""
    suffix = Path(path).suffix.lower()
    return {".mdx": "mdx", ".md": "markdown"}.get(suffix, "text")


@dataclass
class TranslationContext:
    """Context provided to the translator for one chunk."""

    document_title: str
    document_type: str
    glossary: dict[str, str] = field(default_factory=dict)
    outline: list[str] = field(default_factory=list)

    @classmethod
    def for_document(
        cls,
        document: ParsedDocument,
        glossary: dict[str, str] | None = None,
    ) -> TranslationContext:
        """Build a context from a parsed document."""
        return cls(
            document_title=document.title,
            document_type=document_type_for(document.source_path),
            glossary=dict(glossary or {}),
            outline=document.outline,
        )

    def with_glossary(self, glossary: dict[str, str]) -> TranslationContext:
        """Copy of this context with a different glossary."""
        return TranslationContext(
            document_title=self.document_title,
            document_type=self.document_type,
            glossary=dict(glossary),
            outline=list(self.outline),
        )

    def to_prompt_context(self) -> str:
        """Format context for inclusion in the translation prompt."""
        parts = [f"Document: {self.document_title} ({self.document_type})"]

        if self.outline:
            parts.append("\nDocument outline:")
            parts.extend(f"  {entry}" for entry in self.outline[:MAX_OUTLINE_ENTRIES])

        if self.glossary:
            parts.append("\nTerminology glossary (use these translations):")
            for term, translation in self.glossary.items():
                parts.append(f"  - {term} → {translation}")

        return "\n".join(parts)


def build_translation_prompt(
    source_content: str,
    context: TranslationContext,
    source_lang: str,
    target_lang: str,
    has_section_markers: bool = False,
) -> str:
    """
    Build the user prompt for one translator call.

    Args:
        source_content: Text to translate.
        context: Translation context.
        source_lang: Source language code.
        target_lang: Target language code.
        has_section_markers: Whether the text contains section marker comments.

    Returns:
        Prompt string for the LLM.
    """
    source_name = language_name(source_lang)
    target_name = language_name(target_lang)

    prompt_parts = [
        f"Translate the following {source_name} {context.document_type} content to {target_name}.",
    ]

    if has_section_markers:
        prompt_parts.append(
            "The text contains marker lines such as `<!-- @@section-3@@ -->`. "
            "Copy every marker line unchanged, in the same order, on its own line."
        )

    prompt_parts.append(f"\n## Context\n{context.to_prompt_context()}")
    prompt_parts.append(f"\n## Source Text\n{source_content}")
    prompt_parts.append(f"\n## Translation\nProvide only the {target_name} translation below:")

    return "\n".join(prompt_parts)


def build_system_prompt(source_lang: str, target_lang: str) -> str:
    """System prompt describing what must be preserved verbatim."""
    source_name = language_name(source_lang)
    target_name = language_name(target_lang)

    return f"""You are an expert translator of technical documentation.
Translate from {source_name} to {target_name} while:

1. Preserving all Markdown and MDX syntax exactly (headings, lists, tables, links, emphasis)
2. Keeping code blocks, inline code, import/export statements, URLs and file paths unchanged
3. Keeping JSX component tags, their names and attribute names unchanged; translate only
   human-readable attribute values such as title or description
4. Using the terminology glossary consistently
5. Keeping the meaning and technical accuracy of the original
6. Writing natural, fluent {target_name}

Provide only the translation without any explanations or notes."""
