"""
LangGraph-based translation orchestrator.

Runs one job per (source file, target language) through a small state
machine:

    read -> file_cache_check -> {skip | parse} -> section_diff
         -> {plan | translate | reassemble} -> reassemble -> write
         -> record_cache

Any node can route the job to ``failed``. Failures are isolated per file;
the cache and glossary are loaded once per run and saved once at the end.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import operator
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Annotated, Any, TypedDict

from langgraph.graph import END, StateGraph

from translate_mdx_ai.cache import CacheStore, SectionRecord, cache_key
from translate_mdx_ai.errors import DocumentIOError, ParseError, TranslateDocsError, TranslateError
from translate_mdx_ai.parsing import DocumentParser, ParsedDocument, Section
from translate_mdx_ai.parsing.parser import BLOCK_SCALAR_RE, FRONTMATTER_LINE_RE, strip_quotes
from translate_mdx_ai.terminology import GlossaryStore
from translate_mdx_ai.translation.chunker import Chunk, Chunker
from translate_mdx_ai.translation.context import TranslationContext
from translate_mdx_ai.translation.markers import join_with_markers, split_by_markers
from translate_mdx_ai.translation.reassembler import reassemble
from translate_mdx_ai.translation.translator import Translator

logger = logging.getLogger(__name__)


class JobStage(str, Enum):
    """Stages of a file job."""

    START = "start"
    FILE_CACHE_CHECK = "file_cache_check"
    SKIPPED = "skipped"
    PARSED = "parsed"
    SECTION_DIFF = "section_diff"
    PLANNED = "planned"
    TRANSLATED = "translated"
    REASSEMBLED = "reassembled"
    WRITTEN = "written"
    RECORDED = "recorded"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class FileJob:
    """One source file translated into one target language."""

    source_path: Path
    target_path: Path
    source_lang: str
    target_lang: str

    @property
    def cache_key(self) -> str:
        return cache_key(self.source_path, self.target_lang)


class FileJobState(TypedDict):
    """State of a file job flowing through the graph."""

    job: FileJob
    stage: JobStage
    source_text: str
    document: ParsedDocument | None
    # Run-local view of the document sections
    sections: list[Section]
    chunks: list[Chunk]
    translations: dict[str, str]
    output_text: str
    planned_calls: int
    translator_calls: int
    errors: Annotated[list[dict[str, Any]], operator.add]


@dataclass
class OrchestratorConfig:
    """Configuration for the translation orchestrator."""

    max_tokens_per_chunk: int = 2000
    max_concurrent_chunks: int = 1
    # Minimum delay between outbound translator calls (seconds)
    request_delay: float = 0.0
    frontmatter_keys: tuple[str, ...] = ("title", "description")
    force: bool = False
    dry_run: bool = False


@dataclass(frozen=True)
class FrontmatterValue:
    """A translatable front-matter value and the lines it occupies."""

    key: str
    value: str
    start: int
    end: int
    quote: str = ""
    # Block scalar indicator such as "|" or ">-"; its value lines share ``indent``
    block: str = ""
    indent: str = ""

    def render(self, translated: str) -> list[str]:
        """Lines replacing ``start..end`` once the value is translated."""
        if self.block:
            body = [line.rstrip() for line in translated.strip("\n").split("\n")]
            return [
                f"{self.key}: {self.block}",
                *(f"{self.indent}{line}" if line else "" for line in body),
            ]
        return [f"{self.key}: {_quote_value(' '.join(translated.split()), self.quote)}"]


@dataclass
class LanguageStats:
    """Per-target-language counters."""

    translated: int = 0
    skipped: int = 0
    failed: int = 0
    planned: int = 0
    translator_calls: int = 0
    planned_calls: int = 0
    failures: list[tuple[Path, str]] = field(default_factory=list)

    def add(self, state: FileJobState) -> None:
        stage = state["stage"]
        self.translator_calls += state["translator_calls"]
        if stage == JobStage.DONE:
            self.translated += 1
        elif stage == JobStage.SKIPPED:
            self.skipped += 1
        elif stage == JobStage.PLANNED:
            self.planned += 1
            self.planned_calls += state["planned_calls"]
        else:
            self.failed += 1
            message = state["errors"][-1]["error"] if state["errors"] else "unknown error"
            self.failures.append((state["job"].source_path, message))


@dataclass
class RunReport:
    """Outcome of a run, grouped by target language."""

    languages: dict[str, LanguageStats] = field(default_factory=dict)

    def stats_for(self, target_lang: str) -> LanguageStats:
        return self.languages.setdefault(target_lang, LanguageStats())

    @property
    def has_failures(self) -> bool:
        return any(stats.failed for stats in self.languages.values())

    @property
    def translator_calls(self) -> int:
        return sum(stats.translator_calls for stats in self.languages.values())


ProgressCallback = Callable[[FileJob, FileJobState], None] | None


class TranslationOrchestrator:
    """
    Coordinates parsing, caching, chunking, translation and reassembly.

    The cache and glossary stores are injected and owned by the orchestrator
    for the duration of a run.
    """

    def __init__(
        self,
        translator: Translator | None,
        cache: CacheStore,
        glossary: GlossaryStore,
        config: OrchestratorConfig | None = None,
        parser: DocumentParser | None = None,
    ):
        """
        Initialize orchestrator.

        Args:
            translator: Translator used for every chunk. May be None for dry runs.
            cache: Translation cache store.
            glossary: Glossary store.
            config: Orchestrator configuration.
            parser: Document parser.
        """
        self.translator = translator
        self.cache = cache
        self.glossary = glossary
        self.config = config or OrchestratorConfig()
        self.parser = parser or DocumentParser()
        self.chunker = Chunker(self.config.max_tokens_per_chunk)

        self._started = False
        self._throttle_lock = asyncio.Lock()
        self._last_call_at: float | None = None

        self._app = self._build_graph().compile()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Load cache and glossary once."""
        if self._started:
            return
        self.cache.load()
        self.glossary.load()
        self._started = True

    def shutdown(self) -> None:
        """Persist cache and glossary. Dry runs write nothing."""
        if not self.config.dry_run:
            self.cache.save()
            self.glossary.save()
        self._started = False

    def clear_cache(self) -> None:
        """Drop every cache entry; takes effect at the next save."""
        self.start()
        self.cache.clear()
        logger.info("Translation cache cleared")

    # ------------------------------------------------------------------
    # Graph
    # ------------------------------------------------------------------

    def _build_graph(self) -> StateGraph:
        """Build the LangGraph workflow."""
        workflow = StateGraph(FileJobState)

        workflow.add_node("read", self._node_read)
        workflow.add_node("file_cache_check", self._node_file_cache_check)
        workflow.add_node("parse", self._node_parse)
        workflow.add_node("section_diff", self._node_section_diff)
        workflow.add_node("plan", self._node_plan)
        workflow.add_node("translate", self._node_translate)
        workflow.add_node("reassemble", self._node_reassemble)
        workflow.add_node("write", self._node_write)
        workflow.add_node("record_cache", self._node_record_cache)
        workflow.add_node("failed", self._node_failed)

        workflow.set_entry_point("read")

        workflow.add_conditional_edges(
            "read",
            _on_success("file_cache_check"),
            {"file_cache_check": "file_cache_check", "failed": "failed"},
        )
        workflow.add_conditional_edges(
            "file_cache_check",
            self._route_after_file_check,
            {"skip": END, "parse": "parse"},
        )
        workflow.add_conditional_edges(
            "parse", _on_success("section_diff"), {"section_diff": "section_diff", "failed": "failed"}
        )
        workflow.add_conditional_edges(
            "section_diff",
            self._route_after_section_diff,
            {"plan": "plan", "translate": "translate", "reassemble": "reassemble"},
        )
        workflow.add_conditional_edges(
            "translate", _on_success("reassemble"), {"reassemble": "reassemble", "failed": "failed"}
        )
        workflow.add_conditional_edges(
            "reassemble", _on_success("write"), {"write": "write", "failed": "failed"}
        )
        workflow.add_conditional_edges(
            "write",
            _on_success("record_cache"),
            {"record_cache": "record_cache", "failed": "failed"},
        )

        workflow.add_conditional_edges(
            "record_cache", _on_success(END), {END: END, "failed": "failed"}
        )

        workflow.add_edge("plan", END)
        workflow.add_edge("failed", END)

        return workflow

    def _route_after_file_check(self, state: FileJobState) -> str:
        return "skip" if state["stage"] == JobStage.SKIPPED else "parse"

    def _route_after_section_diff(self, state: FileJobState) -> str:
        if self.config.dry_run:
            return "plan"
        if any(chunk.translatable for chunk in state["chunks"]):
            return "translate"
        return "reassemble"

    # ------------------------------------------------------------------
    # Nodes
    # ------------------------------------------------------------------

    async def _node_read(self, state: FileJobState) -> dict[str, Any]:
        """Read the source document."""
        job = state["job"]
        try:
            source_text = job.source_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            error = DocumentIOError(f"cannot read source: {e}", job.source_path)
            return _failure("read", error)

        return {"stage": JobStage.START, "source_text": source_text}

    async def _node_file_cache_check(self, state: FileJobState) -> dict[str, Any]:
        """Skip files whose source and language pair are unchanged."""
        job = state["job"]
        if self.config.force or not job.target_path.exists():
            return {"stage": JobStage.FILE_CACHE_CHECK}

        if self.cache.needs_file_translation(
            job.cache_key, state["source_text"], job.source_lang, job.target_lang
        ):
            return {"stage": JobStage.FILE_CACHE_CHECK}

        logger.debug("Unchanged, skipping: %s [%s]", job.source_path, job.target_lang)
        return {"stage": JobStage.SKIPPED}

    async def _node_parse(self, state: FileJobState) -> dict[str, Any]:
        """Parse the source document into sections."""
        job = state["job"]
        try:
            document = self.parser.parse(job.source_path, state["source_text"])
        except TranslateDocsError as e:
            return _failure("parse", e)

        return {
            "stage": JobStage.PARSED,
            "document": document,
            "sections": list(document.sections),
        }

    async def _node_section_diff(self, state: FileJobState) -> dict[str, Any]:
        """
        Reuse cached translations of unchanged sections, then chunk.

        Unchanged sections are marked non-translatable for this run only, so
        the chunker never sends them to the translator.
        """
        job = state["job"]
        sections = state["sections"]
        translations: dict[str, str] = {}

        if self.config.force:
            changed = {s.id for s in sections}
        else:
            changed = set(self.cache.changed_section_ids(job.cache_key, sections))

        view: list[Section] = []
        for section in sections:
            if section.translatable and section.id not in changed:
                cached = self.cache.cached_translation(job.cache_key, section.id)
                if cached is not None:
                    translations[section.id] = cached
                    view.append(dataclasses.replace(section, translatable=False))
                    continue
            view.append(section)

        chunks = self.chunker.chunk(view)
        reused = len(translations)
        pending = sum(len(c.section_ids) for c in chunks if c.translatable)
        logger.debug(
            "%s [%s]: %d sections, %d cached, %d to translate in %d chunks",
            job.source_path,
            job.target_lang,
            len(sections),
            reused,
            pending,
            sum(1 for c in chunks if c.translatable),
        )

        return {
            "stage": JobStage.SECTION_DIFF,
            "sections": view,
            "chunks": chunks,
            "translations": translations,
        }

    async def _node_plan(self, state: FileJobState) -> dict[str, Any]:
        """Dry run: count the translator calls a real run would make."""
        calls = 0
        for chunk in state["chunks"]:
            if not chunk.translatable:
                continue
            if chunk.frontmatter:
                calls += len(self._frontmatter_values(chunk.combined_text))
            else:
                calls += 1

        return {"stage": JobStage.PLANNED, "planned_calls": calls}

    async def _node_translate(self, state: FileJobState) -> dict[str, Any]:
        """Translate pending chunks with bounded concurrency."""
        job = state["job"]
        document = state["document"]
        if document is None:
            return _not_parsed("translate", job)

        context = TranslationContext.for_document(document)
        semaphore = asyncio.Semaphore(self.config.max_concurrent_chunks)
        calls = [0]

        async def run_chunk(chunk: Chunk) -> dict[str, str]:
            async with semaphore:
                return await self._translate_chunk(chunk, job, context, calls)

        chunks = [c for c in state["chunks"] if c.translatable]
        results = await asyncio.gather(*(run_chunk(c) for c in chunks), return_exceptions=True)

        translations = dict(state["translations"])
        for chunk, result in zip(chunks, results):
            if isinstance(result, BaseException):
                error = result
                if not isinstance(error, TranslateDocsError):
                    error = TranslateError(f"translator call failed: {result}", chunk.section_ids)
                update = _failure("translate", error)
                update["translator_calls"] = calls[0]
                return update
            # Results are keyed by section id, never by completion order
            translations.update(result)

        return {
            "stage": JobStage.TRANSLATED,
            "translations": translations,
            "translator_calls": calls[0],
        }

    async def _node_reassemble(self, state: FileJobState) -> dict[str, Any]:
        """Rebuild the document from original and translated sections."""
        job = state["job"]
        document = state["document"]
        if document is None:
            return _not_parsed("reassemble", job)

        output_text = reassemble(document.sections, state["translations"])
        return {"stage": JobStage.REASSEMBLED, "output_text": output_text}

    async def _node_write(self, state: FileJobState) -> dict[str, Any]:
        """Write the translated document next to the source."""
        job = state["job"]
        try:
            job.target_path.parent.mkdir(parents=True, exist_ok=True)
            job.target_path.write_text(state["output_text"], encoding="utf-8")
        except OSError as e:
            return _failure("write", DocumentIOError(f"cannot write target: {e}", job.target_path))

        logger.info("Wrote %s", job.target_path)
        return {"stage": JobStage.WRITTEN}

    async def _node_record_cache(self, state: FileJobState) -> dict[str, Any]:
        """Overwrite the cache entry of the file."""
        job = state["job"]
        document = state["document"]
        if document is None:
            return _not_parsed("record_cache", job)

        translations = state["translations"]
        self.cache.record_file_translation(
            job.cache_key,
            source_text=state["source_text"],
            output_text=state["output_text"],
            source_lang=job.source_lang,
            target_lang=job.target_lang,
            sections=[
                SectionRecord(
                    id=section.id,
                    content=section.text,
                    translated_content=translations.get(section.id, section.text),
                )
                for section in document.sections
            ],
        )
        return {"stage": JobStage.RECORDED}

    async def _node_failed(self, state: FileJobState) -> dict[str, Any]:
        """Log the errors of a failed job."""
        job = state["job"]
        for error in state["errors"]:
            logger.error(
                "%s [%s] failed at %s: %s",
                job.source_path,
                job.target_lang,
                error.get("stage", "unknown"),
                error.get("error", "unknown error"),
            )
        return {"stage": JobStage.FAILED}

    # ------------------------------------------------------------------
    # Translation
    # ------------------------------------------------------------------

    async def _translate_chunk(
        self,
        chunk: Chunk,
        job: FileJob,
        context: TranslationContext,
        calls: list[int],
    ) -> dict[str, str]:
        """Translate one chunk and map the result back to section ids."""
        if chunk.frontmatter:
            section_id = chunk.section_ids[0]
            text = await self._translate_frontmatter(chunk.combined_text, job, context, calls)
            return {section_id: text}

        if chunk.size == 1:
            text = await self._call_translator(
                chunk.combined_text, job, context, calls, chunk.section_ids
            )
            return {chunk.section_ids[0]: text}

        marked = join_with_markers(chunk.section_ids, chunk.texts)
        translated = await self._call_translator(marked, job, context, calls, chunk.section_ids)
        result = split_by_markers(translated, chunk.section_ids)
        if result is not None:
            return result

        logger.warning(
            "%s [%s]: section markers lost, translating %d sections one by one",
            job.source_path,
            job.target_lang,
            chunk.size,
        )
        result = {}
        for section_id, text in zip(chunk.section_ids, chunk.texts):
            result[section_id] = await self._call_translator(text, job, context, calls, [section_id])
        return result

    async def _translate_frontmatter(
        self,
        text: str,
        job: FileJob,
        context: TranslationContext,
        calls: list[int],
    ) -> str:
        """Translate the configured front-matter values, keeping line shapes."""
        values = self._frontmatter_values(text)
        translated = [
            await self._call_translator(item.value, job, context, calls, ["frontmatter"])
            for item in values
        ]

        lines = text.split("\n")
        # Bottom-up, so earlier line indexes stay valid
        for item, result in reversed(list(zip(values, translated))):
            lines[item.start : item.end + 1] = item.render(result)
        return "\n".join(lines)

    def _frontmatter_values(self, text: str) -> list[FrontmatterValue]:
        """Translatable values of the configured front-matter keys, in order."""
        keys = set(self.config.frontmatter_keys)
        found: list[FrontmatterValue] = []
        lines = text.split("\n")
        closing = len(lines) - 1
        # Skip the delimiter lines
        for index in range(1, closing):
            match = FRONTMATTER_LINE_RE.match(lines[index])
            if not match or match.group(1) not in keys:
                continue
            key, raw = match.group(1), match.group(2)

            if BLOCK_SCALAR_RE.match(raw):
                item = _block_scalar_value(key, raw, lines, index, closing)
                if item is not None:
                    found.append(item)
                continue

            value = strip_quotes(raw)
            if not value.strip():
                continue
            quote = raw[0] if value != raw else ""
            found.append(FrontmatterValue(key, value, index, index, quote=quote))
        return found

    async def _call_translator(
        self,
        text: str,
        job: FileJob,
        context: TranslationContext,
        calls: list[int],
        section_ids: list[str],
    ) -> str:
        """One outbound translator call, throttled and validated."""
        if self.translator is None:
            raise TranslateError("no translator configured", section_ids)
        glossary = self.glossary.relevant_terms(text, job.source_lang, job.target_lang)
        await self._throttle()
        calls[0] += 1
        translated = await self.translator.translate(
            text,
            job.source_lang,
            job.target_lang,
            context.with_glossary(glossary),
        )
        if text.strip() and not (translated or "").strip():
            raise TranslateError("translator returned empty output", section_ids)
        return translated

    async def _throttle(self) -> None:
        """Keep at least ``request_delay`` seconds between translator calls."""
        delay = self.config.request_delay
        if delay <= 0:
            return
        async with self._throttle_lock:
            loop = asyncio.get_running_loop()
            if self._last_call_at is not None:
                wait = self._last_call_at + delay - loop.time()
                if wait > 0:
                    await asyncio.sleep(wait)
            self._last_call_at = loop.time()

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def process_file(self, job: FileJob) -> FileJobState:
        """
        Run one file job through the graph.

        Args:
            job: File job.

        Returns:
            Final job state. ``stage`` is DONE, SKIPPED, PLANNED or FAILED.
        """
        initial_state: FileJobState = {
            "job": job,
            "stage": JobStage.START,
            "source_text": "",
            "document": None,
            "sections": [],
            "chunks": [],
            "translations": {},
            "output_text": "",
            "planned_calls": 0,
            "translator_calls": 0,
            "errors": [],
        }

        final_state: FileJobState = await self._app.ainvoke(initial_state)
        if final_state["stage"] == JobStage.RECORDED:
            final_state["stage"] = JobStage.DONE
        return final_state

    async def run(
        self,
        jobs: Iterable[FileJob],
        progress_callback: ProgressCallback = None,
    ) -> RunReport:
        """
        Run a batch of jobs.

        Target languages are processed one after another, and files one at a
        time within a language. The stores are saved once, also when the run
        is interrupted.

        Args:
            jobs: File jobs.
            progress_callback: Called after every finished job.

        Returns:
            RunReport with per-language statistics.
        """
        by_language: dict[str, list[FileJob]] = {}
        for job in jobs:
            by_language.setdefault(job.target_lang, []).append(job)

        report = RunReport()
        self.start()
        try:
            for target_lang, language_jobs in by_language.items():
                stats = report.stats_for(target_lang)
                logger.info("Translating %d files into %s", len(language_jobs), target_lang)
                for job in language_jobs:
                    state = await self.process_file(job)
                    stats.add(state)
                    if progress_callback:
                        progress_callback(job, state)
        finally:
            self.shutdown()

        return report


def _on_success(target: str) -> Callable[[FileJobState], str]:
    """Router sending failed jobs to the ``failed`` node."""

    def route(state: FileJobState) -> str:
        return "failed" if state["stage"] == JobStage.FAILED else target

    return route


def _failure(stage: str, error: Exception) -> dict[str, Any]:
    return {
        "stage": JobStage.FAILED,
        "errors": [{"stage": stage, "error": str(error), "type": type(error).__name__}],
    }


def _not_parsed(stage: str, job: FileJob) -> dict[str, Any]:
    """Failure update for a node reached without a parsed document."""
    return _failure(stage, ParseError("document was not parsed", job.source_path))


def _block_scalar_value(
    key: str, indicator: str, lines: list[str], index: int, closing: int
) -> FrontmatterValue | None:
    """Collect the indented lines of a ``key: |`` or ``key: >-`` value."""
    end = index
    j = index + 1
    while j < closing and (not lines[j].strip() or lines[j][:1] in " \t"):
        if lines[j].strip():
            end = j
        j += 1
    if end == index:
        return None

    body = lines[index + 1 : end + 1]
    first = next(line for line in body if line.strip())
    indent = first[: len(first) - len(first.lstrip())]
    value = "\n".join(
        line[len(indent) :].rstrip() if line.startswith(indent) else line.strip()
        for line in body
    )
    return FrontmatterValue(key, value, index, end, block=indicator, indent=indent)


def _quote_value(value: str, quote: str) -> str:
    """Quote a front-matter value the way the original line did."""
    if quote == '"':
        return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'
    if quote == "'":
        return "'" + value.replace("'", "''") + "'"
    if ": " in value or " #" in value or (value and value[0] in "!&*[]{}|>%@`\"'#,?-"):
        return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'
    return value
