"""
LLM provider abstraction layer.

Supports OpenAI-compatible backends:
- OpenRouter (default): access to many upstream models with one key
- OpenAI
An optional fallback provider is tried when the primary one fails.
"""

from translate_mdx_ai.llm.base import LLMProvider, LLMResponse, UsageStats, strip_blank_lines
from translate_mdx_ai.llm.factory import (
    LLMProviderType,
    create_llm_provider,
    create_llm_provider_with_fallback,
)

__all__ = [
    "LLMProvider",
    "LLMResponse",
    "UsageStats",
    "strip_blank_lines",
    "LLMProviderType",
    "create_llm_provider",
    "create_llm_provider_with_fallback",
]
