"""searchlight ask — answer a question from live web results.

Usage:
  searchlight ask "What are good New Year's Eve options in Tokyo?"
  searchlight ask "..." --query "tokyo new year's eve party" --max-results 3
  searchlight ask "..." --output answers/tokyo.md --yes

Flags:
  --query TEXT        Search query (defaults to the question)
  --max-results N     Number of search results fetched
  --engine NAME       Search engine passed to SerpAPI
  --model NAME        Generation model (LiteLLM provider/model)
  --top-k N           Chunks retrieved as context
  --output PATH       Also write the answer as Markdown; path traversal blocked
  --yes               Skip overwrite prompt
  --verbose           Log each pipeline step
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from searchlight.cli.errors import (
    err_config,
    err_fetch_failed,
    err_no_api_key,
    err_output_path_unsafe,
    err_search_failed,
    err_ssrf_blocked,
    warn_no_context,
)
from searchlight.config import ConfigError, SearchlightConfig, load_config
from searchlight.ingest.fetch import FetchError, SsrfError
from searchlight.models import RunResult
from searchlight.pipeline import Pipeline
from searchlight.rag.llm_client import provider_of, validate_api_key
from searchlight.search import SearchError, get_api_key
from searchlight.writer import check_overwrite, render_markdown, validate_output_path, write_output

console = Console()


def ask_cmd(
    question: Annotated[str, typer.Argument(help="The question to answer.")],
    query: Annotated[
        str | None,
        typer.Option("--query", "-q", help="Web search query (defaults to the question)."),
    ] = None,
    max_results: Annotated[
        int | None,
        typer.Option("--max-results", "-n", min=1, help="Number of search results to fetch."),
    ] = None,
    engine: Annotated[
        str | None,
        typer.Option("--engine", help="Search engine (SerpAPI engine name)."),
    ] = None,
    model: Annotated[
        str | None,
        typer.Option("--model", "-m", help="Generation model (provider/model)."),
    ] = None,
    top_k: Annotated[
        int | None,
        typer.Option("--top-k", "-k", min=1, help="Chunks retrieved as context."),
    ] = None,
    output: Annotated[
        str | None,
        typer.Option("--output", "-o", help="Write the answer as Markdown to this path."),
    ] = None,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip overwrite confirmation."),
    ] = False,
    show_sources: Annotated[
        bool,
        typer.Option("--show-sources/--no-show-sources", help="Print the search results used."),
    ] = True,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log each pipeline step."),
    ] = False,
) -> None:
    """Search the web, read the top results, and answer QUESTION from them."""
    _configure_logging(verbose)

    # ---- Config ----
    try:
        cfg = load_config()
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)
    _apply_overrides(cfg, max_results=max_results, engine=engine, model=model, top_k=top_k)

    # ---- Output path validation (security) ----
    output_path: Path | None = None
    if output:
        try:
            output_path = validate_output_path(output)
        except ValueError:
            console.print(err_output_path_unsafe(output))
            raise typer.Exit(1)
        if not check_overwrite(output_path, yes=yes):
            console.print("  [dim]Cancelled.[/]")
            raise typer.Exit(0)

    # ---- API key validation ----
    try:
        get_api_key()
    except EnvironmentError:
        console.print(err_no_api_key("serpapi"))
        raise typer.Exit(1)
    for m in (cfg.generation.model, cfg.embedding.model):
        try:
            validate_api_key(m)
        except EnvironmentError:
            console.print(err_no_api_key(provider_of(m)))
            raise typer.Exit(1)

    # ---- Run ----
    search_query = query or question
    pipeline = Pipeline(cfg)
    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
            console=console,
        ) as prog:
            prog.add_task(f"Searching, reading and answering with {cfg.generation.model}…", total=None)
            result = pipeline.run(question, query=search_query)
    except SearchError as exc:
        console.print(err_search_failed(search_query, str(exc)))
        raise typer.Exit(1)
    except SsrfError as exc:
        console.print(err_ssrf_blocked(str(exc)))
        raise typer.Exit(1)
    except FetchError as exc:
        console.print(err_fetch_failed(str(exc)))
        raise typer.Exit(1)

    # ---- Report ----
    if not result.answer.chunks:
        console.print(warn_no_context())
    console.print()
    console.print(result.answer.text)
    console.print()
    if show_sources:
        console.print(_sources_table(result))
    console.print(_usage_table(result))

    # ---- Write ----
    if output_path is not None:
        write_output(output_path, render_markdown(result))
        console.print(f"\n  [green]✓[/] Written to [bold]{output_path}[/]")


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False, rich_tracebacks=True)],
        force=True,
    )
    # LiteLLM and its HTTP stack are chatty at INFO.
    for name in ("LiteLLM", "httpx", "openai"):
        logging.getLogger(name).setLevel(logging.WARNING)


def _apply_overrides(
    cfg: SearchlightConfig,
    *,
    max_results: int | None,
    engine: str | None,
    model: str | None,
    top_k: int | None,
) -> None:
    if max_results is not None:
        cfg.search.max_results = max_results
    if engine:
        cfg.search.engine = engine
    if model:
        cfg.generation.model = model
    if top_k is not None:
        cfg.retrieval.top_k = top_k


def _sources_table(result: RunResult) -> Table:
    table = Table(title="Sources", show_lines=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Title")
    table.add_column("URL", style="cyan")
    table.add_column("Type")
    table.add_column("Chars", justify="right")
    for i, (res, doc) in enumerate(zip(result.results, result.documents), start=1):
        table.add_row(
            str(i),
            res.title or "—",
            res.link,
            doc.content_type.split(";")[0] or "—",
            f"{len(doc.text):,}",
        )
    return table


def _usage_table(result: RunResult) -> Table:
    usage = result.usage
    table = Table(title="Token usage")
    table.add_column("Prompt", justify="right")
    table.add_column("Completion", justify="right")
    table.add_column("Total", justify="right")
    table.add_row(
        f"{usage.prompt_tokens:,}",
        f"{usage.completion_tokens:,}",
        f"{usage.total_tokens:,}",
    )
    return table
