"""
LLM provider factory.

Creates the provider configured in settings, optionally wrapped with a
fallback provider.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from translate_mdx_ai.llm.base import LLMProvider


class LLMProviderType(str, Enum):
    """Available LLM provider types."""

    OPENROUTER = "openrouter"
    OPENAI = "openai"


def _normalize(provider_type: LLMProviderType | str) -> LLMProviderType:
    if isinstance(provider_type, LLMProviderType):
        return provider_type
    value = str(getattr(provider_type, "value", provider_type)).lower().replace("_", "-")
    try:
        return LLMProviderType(value)
    except ValueError:
        valid = [p.value for p in LLMProviderType]
        raise ValueError(f"Invalid provider type: {value}. Valid options: {valid}") from None


def create_llm_provider(
    provider_type: LLMProviderType | str,
    *,
    api_key: str | None = None,
    model: str = "default",
    **kwargs: Any,
) -> LLMProvider:
    """
    Create an LLM provider instance.

    Args:
        provider_type: "openrouter" or "openai".
        api_key: API key for the provider.
        model: Model name or alias.
        **kwargs: Passed to the provider (timeout, max_retries, base_url).

    Returns:
        LLMProvider instance.

    Raises:
        ValueError: If the provider type is unknown or the API key is missing.

    Examples:
        provider = create_llm_provider(
            "openrouter",
            api_key="sk-or-...",
            model="anthropic/claude-sonnet-4.5",
        )
    """
    provider_type = _normalize(provider_type)

    if not api_key:
        raise ValueError(f"{provider_type.value} provider requires an API key")

    from translate_mdx_ai.llm.openai_compat import OpenAICompatibleProvider

    return OpenAICompatibleProvider(
        api_key=api_key,
        model=model,
        provider_name=provider_type.value,
        **kwargs,
    )


def create_llm_provider_with_fallback(
    primary_provider: LLMProviderType | str,
    fallback_provider: LLMProviderType | str,
    *,
    primary_api_key: str | None = None,
    fallback_api_key: str | None = None,
    primary_model: str = "default",
    fallback_model: str = "default",
    **kwargs: Any,
) -> LLMProvider:
    """
    Create an LLM provider with automatic fallback support.

    Example:
        provider = create_llm_provider_with_fallback(
            primary_provider="openrouter",
            fallback_provider="openai",
            primary_api_key="sk-or-...",
            fallback_api_key="sk-...",
            fallback_model="gpt-4o-mini",
        )
    """
    from translate_mdx_ai.llm.fallback import FallbackLLMProvider

    primary = create_llm_provider(
        primary_provider, api_key=primary_api_key, model=primary_model, **kwargs
    )
    fallback = create_llm_provider(
        fallback_provider, api_key=fallback_api_key, model=fallback_model, **kwargs
    )
    return FallbackLLMProvider(primary=primary, fallback=fallback)
