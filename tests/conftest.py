"""Shared test fixtures for translate-mdx-ai tests."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from translate_mdx_ai.cache import CacheStore
from translate_mdx_ai.llm import LLMProvider, LLMResponse
from translate_mdx_ai.log import PACKAGE_LOGGER
from translate_mdx_ai.terminology import GlossaryEntry, GlossaryStore
from translate_mdx_ai.translation import (
    FileJob,
    OrchestratorConfig,
    TranslationContext,
    TranslationOrchestrator,
)

EXAMPLE_DOC = "---\ntitle: X\n---\n# Hello\nworld\n"

SAMPLE_MDX = """---
title: 快速开始
description: 五分钟搭建后台
icon: Rocket
---

import { Callout } from 'fumadocs-ui/components/callout';

本项目提供用户与角色管理。

```bash
pnpm install
```

<Callout type="warn">
请先配置数据库。
</Callout>

# 配置

设置 `.env` 文件。

## 数据库

运行迁移。
"""


class RecordingTranslator:
    """Translator stub that records every call."""

    def __init__(self, transform: Callable[[str], str] = str.upper):
        self.transform = transform
        self.calls: list[str] = []
        self.contexts: list[TranslationContext] = []

    async def translate(
        self,
        text: str,
        source_lang: str,
        target_lang: str,
        context: TranslationContext,
    ) -> str:
        self.calls.append(text)
        self.contexts.append(context)
        return self.transform(text)

    async def close(self) -> None:
        return None


class ScriptedProvider(LLMProvider):
    """Provider returning a fixed reply and recording the messages."""

    def __init__(self, reply: str):
        super().__init__()
        self.reply = reply
        self.messages: list[list[dict[str, str]]] = []
        self.closed = False

    @property
    def name(self) -> str:
        return "scripted"

    @property
    def model(self) -> str:
        return "scripted-model"

    async def complete(self, messages, *, temperature=0.3, max_tokens=4096, **kwargs: Any):
        self.messages.append(messages)
        response = LLMResponse(content=self.reply, model=self.model, input_tokens=7, output_tokens=3)
        self.usage.add(response)
        return response

    async def close(self) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo CLI logging setup so caplog sees package records."""
    yield
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def upper_translator() -> RecordingTranslator:
    """Translator that upper-cases its input."""
    return RecordingTranslator()


@pytest.fixture
def docs_dir(tmp_path: Path) -> Path:
    """Docs tree with one example document."""
    root = tmp_path / "docs"
    root.mkdir()
    (root / "index.mdx").write_text(EXAMPLE_DOC, encoding="utf-8")
    return root


@pytest.fixture
def glossary_store() -> GlossaryStore:
    """In-memory glossary with a small seed table."""
    return GlossaryStore(
        seed=[
            GlossaryEntry("用户", {"en": "user", "ja": "ユーザー"}, "domain"),
            GlossaryEntry("角色", {"en": "role"}, "domain"),
        ]
    )


@pytest.fixture
def make_orchestrator(tmp_path: Path, glossary_store: GlossaryStore):
    """Factory for orchestrators sharing one cache file."""
    cache_path = tmp_path / "state" / "cache.json"

    def factory(translator, **options) -> TranslationOrchestrator:
        return TranslationOrchestrator(
            translator=translator,
            cache=CacheStore(cache_path),
            glossary=glossary_store,
            config=OrchestratorConfig(**options),
        )

    factory.cache_path = cache_path
    return factory


def make_job(source: Path, target_lang: str = "en", source_lang: str = "zh") -> FileJob:
    """File job writing ``name.<lang>.<ext>`` beside the source."""
    return FileJob(
        source_path=source,
        target_path=source.with_name(f"{source.stem}.{target_lang}{source.suffix}"),
        source_lang=source_lang,
        target_lang=target_lang,
    )
