"""
Error types for translate-mdx-ai.

Every failure inside a file job is converted into one of these types so the
orchestrator can record it against the file and keep going with the rest of
the batch.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any


class TranslateDocsError(Exception):
    """Base error with optional structured details."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.details = details or {}


class ParseError(TranslateDocsError):
    """The document scan failed to terminate or hit a structural problem."""

    def __init__(self, message: str, path: Path | str, line: int | None = None):
        super().__init__(message, {"path": str(path), "line": line})
        self.path = Path(path)
        self.line = line

    def __str__(self) -> str:
        base = super().__str__()
        if self.line is not None:
            return f"{self.path}:{self.line + 1}: {base}"
        return f"{self.path}: {base}"


class TranslateError(TranslateDocsError):
    """The translator call failed or returned malformed content."""

    def __init__(self, message: str, section_ids: list[str] | None = None):
        super().__init__(message, {"section_ids": list(section_ids or [])})
        self.section_ids = list(section_ids or [])


class DocumentIOError(TranslateDocsError):
    """Reading a source document or writing a target document failed."""

    def __init__(self, message: str, path: Path | str):
        super().__init__(message, {"path": str(path)})
        self.path = Path(path)


class CacheCorruptionError(TranslateDocsError):
    """A persisted cache or glossary file is unreadable or incompatible."""

    def __init__(self, message: str, path: Path | str):
        super().__init__(message, {"path": str(path)})
        self.path = Path(path)
