"""
Base classes for LLM providers.

A provider turns a list of chat messages into one completion. The
translator only depends on this interface.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

LEADING_BLANK_LINES_RE = re.compile(r"^(?:[ \t]*\n)+")


def strip_blank_lines(text: str) -> str:
    """Drop leading blank lines and trailing whitespace; keep the first line's indent."""
    return LEADING_BLANK_LINES_RE.sub("", text).rstrip()


@dataclass
class LLMResponse:
    """Response from an LLM provider."""

    content: str
    input_tokens: int = 0
    output_tokens: int = 0
    model: str = ""
    latency_ms: float = 0.0
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class UsageStats:
    """Accumulated usage of a provider over a run."""

    requests: int = 0
    failures: int = 0
    input_tokens: int = 0
    output_tokens: int = 0

    def add(self, response: LLMResponse) -> None:
        self.requests += 1
        self.input_tokens += response.input_tokens
        self.output_tokens += response.output_tokens


class LLMProvider(ABC):
    """Abstract chat-completion provider."""

    def __init__(self) -> None:
        self.usage = UsageStats()

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name for logging."""
        ...

    @property
    @abstractmethod
    def model(self) -> str:
        """Model used for completions."""
        ...

    @abstractmethod
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
            messages: Message dicts with 'role' and 'content' keys.
            temperature: Sampling temperature.
            max_tokens: Maximum tokens to generate.
            **kwargs: Provider-specific options.

        Returns:
            LLMResponse with the generated content.
        """
        ...

    async def chat(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        temperature: float = 0.3,
        max_tokens: int = 4096,
        **kwargs: Any,
    ) -> LLMResponse:
        """Send one system message and one user message."""
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]
        return await self.complete(
            messages,
            temperature=temperature,
            max_tokens=max_tokens,
            **kwargs,
        )

    async def close(self) -> None:
        """Release network resources held by the provider."""
        return None
