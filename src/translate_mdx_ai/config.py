"""
Configuration management for translate-mdx-ai.

Handles loading configuration from YAML files and environment variables.
"""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file if present (before Settings initialization)
load_dotenv()


class LLMProvider(str, Enum):
    """Available LLM providers."""

    OPENROUTER = "openrouter"
    OPENAI = "openai"


class PathsConfig(BaseModel):
    """Configuration for file paths."""

    docs_dir: Path = Field(default=Path("./docs/content/docs"))
    cache_file: Path = Field(default=Path("./.translation-cache.json"))
    glossary_file: Path = Field(default=Path("./glossary.json"))
    logs: Path = Field(default=Path("./logs"))

    @field_validator("docs_dir", "cache_file", "glossary_file", "logs")
    @classmethod
    def expand_path(cls, v: Path) -> Path:
        """Expand user home directory and make path absolute."""
        return Path(v).expanduser().resolve()


class TranslationConfig(BaseModel):
    """Configuration for translation."""

    provider: LLMProvider = Field(default=LLMProvider.OPENROUTER)
    default_model: str = Field(default="anthropic/claude-sonnet-4.5")
    # Optional second provider tried when the primary fails
    fallback_provider: LLMProvider | None = Field(default=None)
    fallback_model: str | None = Field(default=None)
    source_language: str = Field(default="zh")
    target_languages: list[str] = Field(default_factory=lambda: ["en"])
    max_tokens_per_chunk: int = Field(default=2000, ge=100, le=32000)
    max_tokens_per_request: int = Field(default=8192, ge=256, le=64000)
    temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    # Front-matter keys whose values are translated
    frontmatter_keys: list[str] = Field(default_factory=lambda: ["title", "description"])
    openrouter_api_key: str = Field(default="")
    openai_api_key: str = Field(default="")

    @field_validator("target_languages", mode="before")
    @classmethod
    def split_languages(cls, v: Any) -> Any:
        """Accept a comma-separated string as well as a list."""
        if isinstance(v, str):
            return [lang.strip() for lang in v.split(",") if lang.strip()]
        return v


class ProcessingConfig(BaseModel):
    """Configuration for processing."""

    max_concurrent_chunks: int = Field(default=1, ge=1, le=20)
    # Minimum delay between outbound translator calls (seconds)
    request_delay: float = Field(default=0.0, ge=0.0, le=60.0)
    max_retries: int = Field(default=3, ge=1, le=10)
    timeout_seconds: float = Field(default=120.0, ge=10.0, le=600.0)


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: str = Field(default="INFO")
    file: Path | None = Field(default=Path("./logs/translation.log"))
    format: str = Field(default="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    max_file_size_mb: int = Field(default=10, ge=1, le=100)
    backup_count: int = Field(default=5, ge=1, le=20)


class ProjectConfig(BaseModel):
    """Project metadata configuration."""

    name: str = Field(default="docs-translation")
    description: str = Field(default="")


class Settings(BaseSettings):
    """Main settings class that combines all configurations."""

    model_config = SettingsConfigDict(
        env_prefix="",  # No prefix for simpler env vars
        env_nested_delimiter="__",
        extra="ignore",
    )

    project: ProjectConfig = Field(default_factory=ProjectConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    translation: TranslationConfig = Field(default_factory=TranslationConfig)
    processing: ProcessingConfig = Field(default_factory=ProcessingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def __init__(self, **data: Any) -> None:
        """Initialize with environment variable fallbacks for API keys."""
        super().__init__(**data)
        if not self.translation.openrouter_api_key:
            self.translation.openrouter_api_key = os.getenv("OPENROUTER_API_KEY", "")
        if not self.translation.openai_api_key:
            self.translation.openai_api_key = os.getenv("OPENAI_API_KEY", "")

    def api_key_for(self, provider: LLMProvider) -> str:
        """API key configured for a provider."""
        if provider == LLMProvider.OPENAI:
            return self.translation.openai_api_key
        return self.translation.openrouter_api_key

    @classmethod
    def from_yaml(cls, path: Path | str) -> Settings:
        """Load settings from a YAML file, with environment variable overrides."""
        path = Path(path)
        if not path.exists():
            return cls()

        with open(path, encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f) or {}

        yaml_config = _substitute_env_vars(yaml_config)

        return cls(**yaml_config)


def _substitute_env_vars(config: dict[str, Any]) -> dict[str, Any]:
    """Recursively substitute ${ENV_VAR} patterns in config values."""
    result = {}
    for key, value in config.items():
        if isinstance(value, dict):
            result[key] = _substitute_env_vars(value)
        elif isinstance(value, str) and value.startswith("${") and value.endswith("}"):
            env_var = value[2:-1]
            result[key] = os.getenv(env_var, "")
        elif isinstance(value, list):
            result[key] = [
                _substitute_env_vars(item) if isinstance(item, dict) else item for item in value
            ]
        else:
            result[key] = value
    return result


def load_config(path: Path | str | None = None) -> Settings:
    """
    Load configuration from YAML file or return defaults.

    Args:
        path: Path to YAML config file. If None, looks for a config file in
            the current directory.

    Returns:
        Settings instance with merged YAML and environment configurations.
    """
    if path is None:
        default_paths = [
            Path("translate-mdx.yaml"),
            Path("translate-mdx.yml"),
            Path("config.yaml"),
            Path("config.yml"),
        ]
        for p in default_paths:
            if p.exists():
                path = p
                break

    if path is not None:
        return Settings.from_yaml(path)

    return Settings()


DEFAULT_CONFIG = """# translate-mdx-ai configuration
project:
  name: "docs-translation"

paths:
  # Root of the Markdown/MDX documentation tree
  docs_dir: "./docs/content/docs"
  # Section-level translation cache (one JSON document)
  cache_file: "./.translation-cache.json"
  # Glossary of preferred term translations
  glossary_file: "./glossary.json"
  logs: "./logs"

translation:
  # "openrouter" or "openai"
  provider: "openrouter"
  default_model: "anthropic/claude-sonnet-4.5"
  # Optional provider tried when the primary one fails
  # fallback_provider: "openai"
  # fallback_model: "gpt-4o-mini"
  source_language: "zh"
  target_languages: ["en"]
  # Token budget per translator call (estimated)
  max_tokens_per_chunk: 2000
  temperature: 0.3
  # Front-matter keys whose values are translated
  frontmatter_keys: ["title", "description"]
  openrouter_api_key: "${OPENROUTER_API_KEY}"

processing:
  # Chunks of one file translated in parallel
  max_concurrent_chunks: 1
  # Minimum delay between translator calls (seconds)
  request_delay: 0
  max_retries: 3
  timeout_seconds: 120

logging:
  level: "INFO"
  file: "./logs/translation.log"
"""


def create_default_config(path: Path | str = "translate-mdx.yaml") -> None:
    """Create a default configuration file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(DEFAULT_CONFIG)
