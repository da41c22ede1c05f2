"""
Translator capability and its LLM-backed implementation.

The orchestrator depends only on the ``Translator`` protocol: one async call
that turns source text into target-language text. ``LLMTranslator`` fulfils
it with an OpenAI-compatible chat model.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from translate_mdx_ai.llm import (
    LLMProvider,
    UsageStats,
    create_llm_provider,
    create_llm_provider_with_fallback,
    strip_blank_lines,
)
from translate_mdx_ai.translation.context import (
    TranslationContext,
    build_system_prompt,
    build_translation_prompt,
)
from translate_mdx_ai.translation.markers import SECTION_MARKER_RE

if TYPE_CHECKING:
    from translate_mdx_ai.config import Settings

# A whole response wrapped in one fence, e.g. ```markdown ... ```
WRAPPING_FENCE_RE = re.compile(r"^```[\w-]*[ \t]*\n(.*?)\n```[ \t]*$", re.DOTALL)


@runtime_checkable
class Translator(Protocol):
    """Anything that can translate a piece of document text."""

    async def translate(
        self,
        text: str,
        source_lang: str,
        target_lang: str,
        context: TranslationContext,
    ) -> str: ...


def clean_translation(translated: str, source: str) -> str:
    """
    Undo common formatting slips of chat models.

    Drops surrounding blank lines but keeps the indentation of the first
    line, and removes a code fence wrapped around the whole response unless
    the source itself was a fenced block.
    """
    text = strip_blank_lines(translated)
    if not source.lstrip().startswith("```"):
        match = WRAPPING_FENCE_RE.match(text)
        if match:
            text = match.group(1)
    return text


class LLMTranslator:
    """Translates document text with an LLM provider."""

    def __init__(
        self,
        provider: LLMProvider,
        *,
        temperature: float = 0.3,
        max_tokens: int = 8192,
    ):
        """
        Initialize translator.

        Args:
            provider: LLM provider used for completions.
            temperature: Sampling temperature.
            max_tokens: Maximum output tokens per call.
        """
        self._provider = provider
        self._temperature = temperature
        self._max_tokens = max_tokens

    @classmethod
    def from_settings(cls, settings: Settings, provider: str | None = None) -> LLMTranslator:
        """
        Create a translator from settings.

        Args:
            settings: Loaded settings.
            provider: Provider override ("openrouter" or "openai").

        Raises:
            ValueError: If the provider is unknown or has no API key.
        """
        from translate_mdx_ai.config import LLMProvider as ProviderSetting

        tcfg = settings.translation
        primary = ProviderSetting(provider) if provider else tcfg.provider
        options = {
            "timeout": settings.processing.timeout_seconds,
            "max_retries": settings.processing.max_retries,
        }

        if tcfg.fallback_provider is not None:
            llm = create_llm_provider_with_fallback(
                primary.value,
                tcfg.fallback_provider.value,
                primary_api_key=settings.api_key_for(primary),
                fallback_api_key=settings.api_key_for(tcfg.fallback_provider),
                primary_model=tcfg.default_model,
                fallback_model=tcfg.fallback_model or "default",
                **options,
            )
        else:
            llm = create_llm_provider(
                primary.value,
                api_key=settings.api_key_for(primary),
                model=tcfg.default_model,
                **options,
            )

        return cls(llm, temperature=tcfg.temperature, max_tokens=tcfg.max_tokens_per_request)

    @property
    def provider(self) -> LLMProvider:
        return self._provider

    @property
    def model(self) -> str:
        return self._provider.model

    @property
    def usage(self) -> UsageStats:
        """Requests and tokens spent by the provider so far."""
        return self._provider.usage

    async def translate(
        self,
        text: str,
        source_lang: str,
        target_lang: str,
        context: TranslationContext,
    ) -> str:
        """
        Translate one chunk of text.

        Args:
            text: Source text (Markdown/MDX).
            source_lang: Source language code.
            target_lang: Target language code.
            context: Document title, type, outline and glossary.

        Returns:
            Translated text.
        """
        if not text.strip():
            return text

        prompt = build_translation_prompt(
            source_content=text,
            context=context,
            source_lang=source_lang,
            target_lang=target_lang,
            has_section_markers=SECTION_MARKER_RE.search(text) is not None,
        )

        response = await self._provider.chat(
            system_prompt=build_system_prompt(source_lang, target_lang),
            user_prompt=prompt,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )
        return clean_translation(response.content, text)

    async def close(self) -> None:
        await self._provider.close()
