"""
Glossary store for consistent terminology.

A single term table keyed by the lowercase source term. Each entry maps
target languages to the preferred translation. Registrations merge into
existing entries, so glossary updates are additive across runs.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from translate_mdx_ai.errors import CacheCorruptionError
from translate_mdx_ai.jsonfile import write_json_atomic

logger = logging.getLogger(__name__)

GLOSSARY_VERSION = "1.0"


@dataclass
class GlossaryEntry:
    """A source term and its translations by language."""

    source: str
    translations: dict[str, str] = field(default_factory=dict)
    category: str | None = None
    context: str | None = None

    @property
    def key(self) -> str:
        return self.source.strip().lower()

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"source": self.source, "translations": dict(self.translations)}
        if self.category:
            data["category"] = self.category
        if self.context:
            data["context"] = self.context
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GlossaryEntry:
        return cls(
            source=str(data["source"]),
            translations={str(k): str(v) for k, v in (data.get("translations") or {}).items()},
            category=data.get("category"),
            context=data.get("context"),
        )


# Built-in terms for the admin scaffold documentation (source language: zh)
SEED_TERMS: list[GlossaryEntry] = [
    GlossaryEntry("用户", {"en": "user", "ja": "ユーザー"}, "domain"),
    GlossaryEntry("角色", {"en": "role", "ja": "ロール"}, "domain"),
    GlossaryEntry("权限", {"en": "permission", "ja": "権限"}, "domain"),
    GlossaryEntry("权限码", {"en": "permission code", "ja": "権限コード"}, "domain"),
    GlossaryEntry("审计日志", {"en": "audit log", "ja": "監査ログ"}, "domain"),
    GlossaryEntry("系统设置", {"en": "system settings", "ja": "システム設定"}, "domain"),
    GlossaryEntry("维护模式", {"en": "maintenance mode", "ja": "メンテナンスモード"}, "domain"),
    GlossaryEntry("仪表盘", {"en": "dashboard", "ja": "ダッシュボード"}, "ui"),
    GlossaryEntry("菜单", {"en": "menu", "ja": "メニュー"}, "ui"),
    GlossaryEntry("路由", {"en": "route", "ja": "ルート"}, "frontend"),
    GlossaryEntry("路由守卫", {"en": "route guard", "ja": "ルートガード"}, "frontend"),
    GlossaryEntry("状态管理", {"en": "state management", "ja": "状態管理"}, "frontend"),
    GlossaryEntry("主题", {"en": "theme", "ja": "テーマ"}, "ui"),
    GlossaryEntry("布局", {"en": "layout", "ja": "レイアウト"}, "ui"),
    GlossaryEntry("中间件", {"en": "middleware", "ja": "ミドルウェア"}, "backend"),
    GlossaryEntry("处理器", {"en": "handler", "ja": "ハンドラー"}, "backend"),
    GlossaryEntry("服务层", {"en": "service layer", "ja": "サービス層"}, "backend"),
    GlossaryEntry("数据库迁移", {"en": "database migration", "ja": "データベースマイグレーション"}, "backend"),
    GlossaryEntry("链路追踪", {"en": "tracing", "ja": "トレーシング"}, "backend"),
    GlossaryEntry("单点登录", {"en": "single sign-on", "ja": "シングルサインオン"}, "auth"),
    GlossaryEntry("令牌", {"en": "token", "ja": "トークン"}, "auth"),
    GlossaryEntry("刷新令牌", {"en": "refresh token", "ja": "リフレッシュトークン"}, "auth"),
    GlossaryEntry("对象存储", {"en": "object storage", "ja": "オブジェクトストレージ"}, "backend"),
    GlossaryEntry("脚手架", {"en": "scaffold", "ja": "スキャフォールド"}, "general"),
    GlossaryEntry("快速开始", {"en": "Quick Start", "ja": "クイックスタート"}, "general"),
    GlossaryEntry("部署", {"en": "deployment", "ja": "デプロイ"}, "general"),
    GlossaryEntry("配置", {"en": "configuration", "ja": "設定"}, "general"),
    GlossaryEntry("环境变量", {"en": "environment variable", "ja": "環境変数"}, "general"),
]


class GlossaryStore:
    """
    JSON-backed glossary.

    Falls back to the built-in seed table when no glossary file exists or the
    file is unreadable. On a version mismatch the seed table is loaded and the
    persisted terms are merged over it.
    """

    def __init__(
        self,
        path: Path | str | None = None,
        seed: Iterable[GlossaryEntry] | None = None,
    ):
        """
        Initialize glossary store.

        Args:
            path: Glossary file location. None for an in-memory glossary.
            seed: Built-in terms. Defaults to ``SEED_TERMS``.
        """
        self.path = Path(path) if path is not None else None
        self._seed = list(SEED_TERMS if seed is None else seed)
        self._terms: dict[str, GlossaryEntry] = {}
        self._dirty = False
        self._load_seed()

    def _load_seed(self) -> None:
        self._terms = {}
        for entry in self._seed:
            self._merge(GlossaryEntry.from_dict(entry.to_dict()))

    def load(self) -> None:
        """Load the glossary file, falling back to the seed table."""
        if self.path is None:
            return

        self._dirty = False
        self._load_seed()
        if not self.path.exists():
            return

        try:
            data = self._read(self.path)
        except CacheCorruptionError as e:
            logger.warning("Using built-in glossary: %s", e)
            return

        terms = [GlossaryEntry.from_dict(t) for t in data["terms"]]
        if data.get("version") == GLOSSARY_VERSION:
            self._terms = {}
            for entry in terms:
                self._merge(entry)
        else:
            logger.warning(
                "Glossary version %r does not match %r; merging custom terms over built-in terms",
                data.get("version"),
                GLOSSARY_VERSION,
            )
            for entry in terms:
                self._override(entry)
            self._dirty = True

        logger.debug("Loaded %d glossary terms from %s", len(self._terms), self.path)

    @staticmethod
    def _read(path: Path) -> dict[str, Any]:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise CacheCorruptionError(f"cannot read glossary: {e}", path) from e

        if not isinstance(data, dict) or not isinstance(data.get("terms"), list):
            raise CacheCorruptionError("glossary has no term list", path)
        if not all(isinstance(t, dict) and "source" in t for t in data["terms"]):
            raise CacheCorruptionError("glossary contains malformed terms", path)
        return data

    def save(self) -> bool:
        """
        Write the glossary if it changed.

        Returns:
            True if a file was written.
        """
        if not self._dirty or self.path is None:
            return False

        payload = {
            "version": GLOSSARY_VERSION,
            "lastUpdated": datetime.now(timezone.utc).isoformat(),
            "terms": [entry.to_dict() for entry in self.entries()],
        }
        write_json_atomic(self.path, payload)
        self._dirty = False
        logger.info("Saved %d glossary terms to %s", len(self._terms), self.path)
        return True

    @property
    def dirty(self) -> bool:
        return self._dirty

    def __len__(self) -> int:
        return len(self._terms)

    def __contains__(self, term: str) -> bool:
        return term.strip().lower() in self._terms

    def get(self, term: str) -> GlossaryEntry | None:
        return self._terms.get(term.strip().lower())

    def entries(self) -> list[GlossaryEntry]:
        """All entries sorted by source term."""
        return sorted(self._terms.values(), key=lambda e: e.key)

    def upsert(self, entry: GlossaryEntry) -> GlossaryEntry:
        """
        Register a term, merging into an existing entry with the same key.

        Existing translations for other languages are kept; translations given
        in ``entry`` win for their languages.
        """
        merged = self._merge(entry)
        self._dirty = True
        return merged

    def _merge(self, entry: GlossaryEntry) -> GlossaryEntry:
        existing = self._terms.get(entry.key)
        if existing is None:
            stored = GlossaryEntry(
                source=entry.source.strip(),
                translations=dict(entry.translations),
                category=entry.category,
                context=entry.context,
            )
            self._terms[entry.key] = stored
            return stored

        existing.translations.update(entry.translations)
        if entry.category:
            existing.category = entry.category
        if entry.context:
            existing.context = entry.context
        return existing

    def _override(self, entry: GlossaryEntry) -> None:
        self._terms[entry.key] = entry

    def terms_for(self, source_lang: str, target_lang: str) -> dict[str, str]:
        """
        Source term to target translation, for terms translated into ``target_lang``.

        The source language of the table is the documentation's source
        language, so ``source_lang`` only excludes the identity pair.
        """
        if source_lang == target_lang:
            return {}
        return {
            entry.source: entry.translations[target_lang]
            for entry in self.entries()
            if entry.translations.get(target_lang)
        }

    def relevant_terms(
        self,
        text: str,
        source_lang: str,
        target_lang: str,
        limit: int = 50,
    ) -> dict[str, str]:
        """Glossary terms that occur in ``text``, longest terms first."""
        lowered = text.lower()
        terms = self.terms_for(source_lang, target_lang)
        matches = [(s, t) for s, t in terms.items() if s.lower() in lowered]
        matches.sort(key=lambda item: (-len(item[0]), item[0]))
        return dict(matches[:limit])
