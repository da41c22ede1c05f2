"""
CLI for translate-mdx-ai.

Provides commands for translating a docs tree, managing the glossary,
inspecting the translation cache and creating a default configuration.
"""

from __future__ import annotations

import asyncio
from collections import Counter
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from translate_mdx_ai.cache import CacheStore
from translate_mdx_ai.config import Settings, create_default_config, load_config
from translate_mdx_ai.llm.fallback import FallbackLLMProvider
from translate_mdx_ai.log import setup_logging
from translate_mdx_ai.scanner import DocumentScanner
from translate_mdx_ai.terminology import GlossaryEntry, GlossaryStore
from translate_mdx_ai.translation import (
    FileJob,
    LLMTranslator,
    OrchestratorConfig,
    RunReport,
    TranslationOrchestrator,
)
from translate_mdx_ai.translation.orchestrator import FileJobState

app = typer.Typer(
    name="translate-mdx",
    help="AI-powered translation of Markdown/MDX documentation with section-level caching.",
    add_completion=False,
)

console = Console()


def _display_config(settings: Settings, config_path: Path | None, targets: list[str]) -> None:
    """Display the configuration being used."""
    config_source = str(config_path) if config_path else "default (translate-mdx.yaml or built-in)"
    tcfg = settings.translation

    config_table = Table(show_header=False, box=None, padding=(0, 2))
    config_table.add_column("Key", style="cyan")
    config_table.add_column("Value", style="green")

    config_table.add_row("Config file", config_source)
    config_table.add_row("Docs directory", str(settings.paths.docs_dir))
    config_table.add_row("Cache file", str(settings.paths.cache_file))
    config_table.add_row("", "")
    config_table.add_row("Translation Settings", "", style="bold cyan")
    config_table.add_row("  Provider", tcfg.provider.value)
    config_table.add_row("  Model", tcfg.default_model)
    if tcfg.fallback_provider:
        config_table.add_row(
            "  Fallback",
            f"{tcfg.fallback_provider.value} ({tcfg.fallback_model or 'default'})",
            style="yellow",
        )
    config_table.add_row("  Source language", tcfg.source_language)
    config_table.add_row("  Target languages", ", ".join(targets))
    config_table.add_row("  Chunk budget", f"{tcfg.max_tokens_per_chunk} tokens")

    console.print(
        Panel(config_table, title="[bold blue]translate-mdx-ai[/bold blue]", border_style="blue")
    )


def get_settings(config_path: Path | None = None) -> Settings:
    """Load settings from config file or defaults."""
    if config_path is not None and not config_path.exists():
        console.print(f"[red]Config file not found: {config_path}[/red]")
        raise typer.Exit(1)
    return load_config(config_path)


def _split_languages(value: str | None) -> list[str]:
    if not value:
        return []
    return [lang.strip() for lang in value.split(",") if lang.strip()]


def _print_report(report: RunReport, dry_run: bool) -> None:
    """Print one summary row per target language, then the failures."""
    table = Table(title="Dry Run Plan" if dry_run else "Translation Summary")
    table.add_column("Language", style="cyan")
    if dry_run:
        table.add_column("Planned files", justify="right", style="blue")
        table.add_column("Planned calls", justify="right")
    else:
        table.add_column("Translated", justify="right", style="green")
        table.add_column("Translator calls", justify="right")
    table.add_column("Skipped", justify="right", style="yellow")
    table.add_column("Failed", justify="right", style="red")

    for lang, stats in report.languages.items():
        if dry_run:
            first, second = stats.planned, stats.planned_calls
        else:
            first, second = stats.translated, stats.translator_calls
        table.add_row(lang, str(first), str(second), str(stats.skipped), str(stats.failed))

    console.print(table)

    for lang, stats in report.languages.items():
        for path, message in stats.failures:
            line = escape(f"[{lang}] {path}: {message}")
            console.print(f"[red]✗ {line}[/red]")


def _print_usage(translator: LLMTranslator) -> None:
    """Print LLM request and token totals of the run."""
    usage = translator.usage
    line = (
        f"LLM usage ({translator.model}): {usage.requests} requests, "
        f"{usage.input_tokens} input tokens, {usage.output_tokens} output tokens"
    )
    if isinstance(translator.provider, FallbackLLMProvider):
        stats = translator.provider.get_stats()
        line += f", {stats['fallback_requests']} via fallback"
    console.print(f"[dim]{escape(line)}[/dim]")


@app.command()
def translate(
    source: str | None = typer.Option(None, "--source", "-s", help="Source language code"),
    target: str | None = typer.Option(
        None, "--target", "-t", help="Target language codes, comma-separated"
    ),
    file: str | None = typer.Option(
        None, "--file", "-f", help="Translate one file (relative path or file name)"
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Report planned translator calls, write nothing"
    ),
    force: bool = typer.Option(False, "--force", help="Ignore the cache and retranslate"),
    clear_cache: bool = typer.Option(
        False, "--clear-cache", help="Drop all cache entries before translating"
    ),
    config: Path | None = typer.Option(None, "--config", "-c", help="Config file"),
    docs_dir: Path | None = typer.Option(None, "--docs-dir", "-d", help="Docs directory"),
    provider: str | None = typer.Option(
        None, "--provider", "-p", help="LLM provider (openrouter, openai)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Translate documentation files into the target languages."""
    settings = get_settings(config)
    setup_logging(settings.logging, console=console, verbose=verbose)

    tcfg = settings.translation
    source_lang = source or tcfg.source_language
    target_langs = _split_languages(target) or list(tcfg.target_languages)
    if docs_dir is not None:
        settings.paths.docs_dir = docs_dir.expanduser().resolve()

    _display_config(settings, config, target_langs)

    scanner = DocumentScanner(settings.paths.docs_dir, [source_lang, *target_langs])
    try:
        jobs = scanner.build_jobs(source_lang, target_langs, file_filter=file)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from None

    if not jobs:
        console.print("[yellow]No documents to translate[/yellow]")
        return

    translator: LLMTranslator | None = None
    if not dry_run:
        try:
            translator = LLMTranslator.from_settings(settings, provider)
        except ValueError as e:
            console.print(f"[red]Error: {e}[/red]")
            console.print("Set OPENROUTER_API_KEY (or OPENAI_API_KEY) or add it to the config file.")
            raise typer.Exit(1) from None

    orchestrator = TranslationOrchestrator(
        translator=translator,
        cache=CacheStore(settings.paths.cache_file),
        glossary=GlossaryStore(settings.paths.glossary_file),
        config=OrchestratorConfig(
            max_tokens_per_chunk=tcfg.max_tokens_per_chunk,
            max_concurrent_chunks=settings.processing.max_concurrent_chunks,
            request_delay=settings.processing.request_delay,
            frontmatter_keys=tuple(tcfg.frontmatter_keys),
            force=force,
            dry_run=dry_run,
        ),
    )

    if clear_cache and not dry_run:
        orchestrator.clear_cache()
        console.print("[yellow]Translation cache cleared[/yellow]")

    async def run_jobs() -> RunReport:
        with Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            console=console,
        ) as progress:
            task = progress.add_task("Translating...", total=len(jobs))

            def on_progress(job: FileJob, state: FileJobState) -> None:
                progress.update(
                    task,
                    advance=1,
                    description=escape(
                        f"[{job.target_lang}] {job.source_path.name}: {state['stage'].value}"
                    ),
                )

            try:
                return await orchestrator.run(jobs, progress_callback=on_progress)
            finally:
                if translator is not None:
                    await translator.close()

    report = asyncio.run(run_jobs())
    _print_report(report, dry_run)
    if isinstance(translator, LLMTranslator):
        _print_usage(translator)

    if report.has_failures:
        raise typer.Exit(1)

    console.print("\n[bold green]Done![/bold green]")


@app.command()
def glossary(
    add: str | None = typer.Option(None, "--add", "-a", help="Source term to add or update"),
    lang: str | None = typer.Option(None, "--lang", "-l", help="Target language of the translation"),
    translation: str | None = typer.Option(None, "--translation", help="Preferred translation"),
    category: str | None = typer.Option(None, "--category", help="Term category"),
    config: Path | None = typer.Option(None, "--config", "-c", help="Config file"),
) -> None:
    """List glossary terms, or add a term translation."""
    settings = get_settings(config)
    store = GlossaryStore(settings.paths.glossary_file)
    store.load()

    if add:
        if not lang or not translation:
            console.print("[red]--add requires --lang and --translation[/red]")
            raise typer.Exit(1)
        entry = store.upsert(GlossaryEntry(add, {lang: translation}, category))
        store.save()
        console.print(f"[green]Saved term: {entry.source} → {lang}: {translation}[/green]")
        return

    entries = store.entries()
    languages = sorted({code for entry in entries for code in entry.translations})

    table = Table(title=f"Glossary ({len(entries)} terms)")
    table.add_column("Term", style="cyan")
    for code in languages:
        table.add_column(code, style="green")
    table.add_column("Category", style="magenta")

    for entry in entries:
        table.add_row(
            entry.source,
            *(entry.translations.get(code, "") for code in languages),
            entry.category or "",
        )

    console.print(table)


@app.command()
def cache(
    clear: bool = typer.Option(False, "--clear", help="Drop all cache entries"),
    config: Path | None = typer.Option(None, "--config", "-c", help="Config file"),
) -> None:
    """Show translation cache statistics."""
    settings = get_settings(config)
    store = CacheStore(settings.paths.cache_file)
    store.load()

    if clear:
        store.clear()
        store.save()
        console.print(f"[yellow]Cleared cache: {settings.paths.cache_file}[/yellow]")
        return

    per_language: Counter[str] = Counter()
    sections = 0
    for key in store.keys():
        entry = store.entry(key)
        if entry is None:
            continue
        per_language[entry.target_lang] += 1
        sections += len(entry.sections)

    lines = [
        f"Cache file: {settings.paths.cache_file}",
        f"Files: {len(store)}",
        f"Sections: {sections}",
    ]
    lines.extend(f"  - {lang}: {count} files" for lang, count in sorted(per_language.items()))

    console.print(Panel("\n".join(lines), title="Translation Cache"))


@app.command()
def init(
    output_path: Path = typer.Option(
        Path("translate-mdx.yaml"),
        "--output",
        "-o",
        help="Output path for config file",
    ),
) -> None:
    """Generate a default configuration file."""
    if output_path.exists():
        overwrite = typer.confirm(f"{output_path} already exists. Overwrite?")
        if not overwrite:
            raise typer.Abort()

    create_default_config(output_path)
    console.print(f"[green]Created config file: {output_path}[/green]")
    console.print("\nSet OPENROUTER_API_KEY, then run:")
    console.print(f"  translate-mdx translate --config {output_path} --dry-run")


def main() -> None:
    """Entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
