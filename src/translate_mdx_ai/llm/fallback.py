"""
Fallback LLM provider wrapper.

Sends a request to the primary provider and, if it fails, once more to the
fallback provider.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from translate_mdx_ai.llm.base import LLMProvider, LLMResponse

logger = logging.getLogger(__name__)


class FallbackLLMProvider(LLMProvider):
    """LLM provider that switches to a second provider on failure."""

    def __init__(self, primary: LLMProvider, fallback: LLMProvider):
        """
        Initialize fallback provider wrapper.

        Args:
            primary: Provider tried first.
            fallback: Provider used when the primary raises.
        """
        super().__init__()
        self._primary = primary
        self._fallback = fallback
        self._fallback_requests = 0

    @property
    def name(self) -> str:
        return f"{self._primary.name}+{self._fallback.name}"

    @property
    def model(self) -> str:
        return self._primary.model

    @property
    def primary_provider(self) -> LLMProvider:
        return self._primary

    @property
    def fallback_provider(self) -> LLMProvider:
        return self._fallback

    def get_stats(self) -> dict[str, Any]:
        """Request counts for both providers."""
        total = self.usage.requests
        return {
            "total_requests": total,
            "fallback_requests": self._fallback_requests,
            "primary_failures": self.usage.failures,
            "fallback_rate": self._fallback_requests / total if total else 0.0,
        }

    async def complete(
        self,
        messages: list[dict[str, str]],
        *,
        temperature: float = 0.3,
        max_tokens: int = 4096,
        **kwargs: Any,
    ) -> LLMResponse:
        """
        Generate a completion with automatic fallback.

        Raises:
            Exception: The fallback error (chained to the primary error) if
                both providers fail.
        """
        start_time = time.perf_counter()

        try:
            response = await self._primary.complete(
                messages, temperature=temperature, max_tokens=max_tokens, **kwargs
            )
            response.metadata["provider_used"] = "primary"
            self.usage.add(response)
            return response
        except Exception as primary_error:
            self.usage.failures += 1
            logger.warning(
                "Primary provider %s (%s) failed, switching to %s (%s): %s",
                self._primary.name,
                self._primary.model,
                self._fallback.name,
                self._fallback.model,
                primary_error,
            )

            try:
                response = await self._fallback.complete(
                    messages, temperature=temperature, max_tokens=max_tokens, **kwargs
                )
            except Exception as fallback_error:
                logger.error(
                    "Both providers failed: %s / %s", primary_error, fallback_error
                )
                raise fallback_error from primary_error

        self._fallback_requests += 1
        self.usage.add(response)
        response.metadata["provider_used"] = "fallback"
        logger.info(
            "Fallback provider %s succeeded after %.0fms",
            self._fallback.name,
            (time.perf_counter() - start_time) * 1000,
        )
        return response

    async def close(self) -> None:
        await self._primary.close()
        await self._fallback.close()
