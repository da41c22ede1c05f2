"""
OpenAI-compatible LLM provider.

Talks to any endpoint that implements the OpenAI chat completions API:
OpenRouter (default, many upstream models) or OpenAI itself.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

from openai import AsyncOpenAI

from translate_mdx_ai.llm.base import LLMProvider, LLMResponse, strip_blank_lines

logger = logging.getLogger(__name__)

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
OPENAI_BASE_URL = "https://api.openai.com/v1"


class OpenAICompatibleProvider(LLMProvider):
    """
    Chat completions over the OpenAI API shape.

    Failed requests are retried with exponential backoff (1s, 2s, 4s, ...).
    """

    # Model aliases for convenience
    MODELS = {
        "openrouter": {
            "default": "anthropic/claude-sonnet-4.5",
            "fast": "anthropic/claude-3.5-haiku",
            "deepseek": "deepseek/deepseek-chat",
            "gemini": "google/gemini-2.5-flash",
        },
        "openai": {
            "default": "gpt-4o",
            "fast": "gpt-4o-mini",
        },
    }

    def __init__(
        self,
        api_key: str,
        model: str = "default",
        *,
        provider_name: str = "openrouter",
        base_url: str | None = None,
        timeout: float = 120.0,
        max_retries: int = 3,
        client: AsyncOpenAI | None = None,
    ):
        """
        Initialize provider.

        Args:
            api_key: API key for the endpoint.
            model: Model alias (see MODELS) or full model name.
            provider_name: "openrouter" or "openai"; selects aliases and default URL.
            base_url: Override the API base URL.
            timeout: Request timeout in seconds.
            max_retries: Attempts per request.
            client: Preconfigured client (mainly for tests).
        """
        super().__init__()
        self._provider_name = provider_name
        self._model_name = self.MODELS.get(provider_name, {}).get(model, model)
        self._max_retries = max(1, max_retries)

        if base_url is None:
            base_url = OPENAI_BASE_URL if provider_name == "openai" else OPENROUTER_BASE_URL

        # Retries are handled here so the backoff is visible in our logs
        self._client = client or AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=0,
        )

    @property
    def name(self) -> str:
        return self._provider_name

    @property
    def model(self) -> str:
        return self._model_name

    async def complete(
        self,
        messages: list[dict[str, str]],
        *,
        temperature: float = 0.3,
        max_tokens: int = 4096,
        **kwargs: Any,
    ) -> LLMResponse:
        """
        Generate a completion.

        Args:
            messages: List of message dicts.
            temperature: Sampling temperature.
            max_tokens: Maximum output tokens.
            **kwargs: Additional options passed to the API.

        Returns:
            LLMResponse with content and usage stats.

        Raises:
            Exception: The last API error once all attempts failed.
        """
        start_time = time.perf_counter()
        last_error: Exception | None = None

        for attempt in range(self._max_retries):
            try:
                response = await self._client.chat.completions.create(
                    model=self._model_name,
                    messages=messages,  # type: ignore[arg-type]
                    temperature=temperature,
                    max_tokens=max_tokens,
                    **kwargs,
                )

                latency_ms = (time.perf_counter() - start_time) * 1000
                content = response.choices[0].message.content or ""
                usage = response.usage

                result = LLMResponse(
                    content=strip_blank_lines(content),
                    input_tokens=usage.prompt_tokens if usage else 0,
                    output_tokens=usage.completion_tokens if usage else 0,
                    model=self._model_name,
                    latency_ms=latency_ms,
                    metadata={
                        "provider": self._provider_name,
                        "finish_reason": response.choices[0].finish_reason,
                        "attempt": attempt + 1,
                    },
                )
                self.usage.add(result)
                return result

            except Exception as e:
                last_error = e
                self.usage.failures += 1
                if attempt < self._max_retries - 1:
                    delay = 2**attempt
                    logger.warning(
                        "%s request failed (attempt %d/%d), retrying in %ds: %s",
                        self._provider_name,
                        attempt + 1,
                        self._max_retries,
                        delay,
                        e,
                    )
                    await asyncio.sleep(delay)

        raise last_error or RuntimeError(f"{self._provider_name} request failed after retries")

    async def close(self) -> None:
        await self._client.close()
