"""askdoc chat / askdoc ask: load a document and question it.

Usage:
  askdoc chat report.pdf                 interactive questions until exit/quit/EOF
  askdoc ask report.pdf -q "What ..."    one question, answer printed, exit

Flags (both commands):
  --config-dir DIR   Directory holding askdoc.yaml (default: CWD)
  --top-k N          Segments placed in the answer context
  --batch-size N     Texts per embedding call
  --batch-delay S    Seconds between embedding calls
  --verbose          Debug logging to stderr
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Annotated

import typer
from loguru import logger
from rich.console import Console
from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn

from askdoc.cli.errors import err_config, err_file_not_found, err_no_api_key, err_pipeline
from askdoc.config import AskdocConfig, ConfigError, load_config, validate_config
from askdoc.db.models import Progress as LoadProgress
from askdoc.errors import AskdocError
from askdoc.rag.llm_client import provider_of, validate_api_key
from askdoc.session import DocumentSession

console = Console()

_EXIT_WORDS = {"exit", "quit"}

ConfigDirOpt = Annotated[
    Path | None,
    typer.Option("--config-dir", help="Directory holding askdoc.yaml (default: CWD)."),
]
TopKOpt = Annotated[
    int | None,
    typer.Option("--top-k", min=1, help="Segments placed in the answer context."),
]
BatchSizeOpt = Annotated[
    int | None,
    typer.Option("--batch-size", min=1, help="Texts per embedding call."),
]
BatchDelayOpt = Annotated[
    float | None,
    typer.Option("--batch-delay", min=0.0, help="Seconds between embedding calls."),
]
VerboseOpt = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Debug logging to stderr."),
]


def chat_cmd(
    path: Annotated[Path, typer.Argument(help="PDF or text document to load.")],
    config_dir: ConfigDirOpt = None,
    top_k: TopKOpt = None,
    batch_size: BatchSizeOpt = None,
    batch_delay: BatchDelayOpt = None,
    verbose: VerboseOpt = False,
) -> None:
    """Load a document, then answer questions about it until exit."""
    session = _prepare(path, config_dir, top_k, batch_size, batch_delay, verbose)
    code = asyncio.run(_chat(session, path))
    if code:
        raise typer.Exit(code)


def ask_cmd(
    path: Annotated[Path, typer.Argument(help="PDF or text document to load.")],
    question: Annotated[
        str,
        typer.Option("--question", "-q", help="Question to answer."),
    ],
    config_dir: ConfigDirOpt = None,
    top_k: TopKOpt = None,
    batch_size: BatchSizeOpt = None,
    batch_delay: BatchDelayOpt = None,
    verbose: VerboseOpt = False,
) -> None:
    """Load a document and answer a single question."""
    session = _prepare(path, config_dir, top_k, batch_size, batch_delay, verbose)
    code = asyncio.run(_ask_once(session, path, question))
    if code:
        raise typer.Exit(code)


# ------------------------------------------------------------------
# Setup
# ------------------------------------------------------------------


def _prepare(
    path: Path,
    config_dir: Path | None,
    top_k: int | None,
    batch_size: int | None,
    batch_delay: float | None,
    verbose: bool,
) -> DocumentSession:
    """Configure logging, load config, apply flags, check keys. Exits on error."""
    _configure_logging(verbose)

    if not path.is_file():
        console.print(err_file_not_found(str(path)))
        raise typer.Exit(1)

    try:
        cfg = load_config(project_dir=config_dir)
        _apply_flags(cfg, top_k, batch_size, batch_delay)
        validate_config(cfg)
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)

    for model in (cfg.embedding.model, cfg.generation.model):
        try:
            validate_api_key(model)
        except EnvironmentError:
            console.print(err_no_api_key(provider_of(model)))
            raise typer.Exit(1)

    return DocumentSession(cfg)


def _apply_flags(
    cfg: AskdocConfig,
    top_k: int | None,
    batch_size: int | None,
    batch_delay: float | None,
) -> None:
    """CLI flags override every config layer."""
    if top_k is not None:
        cfg.retrieval.top_k = top_k
    if batch_size is not None:
        cfg.embedding.batch_size = batch_size
    if batch_delay is not None:
        cfg.embedding.batch_delay = batch_delay


def _configure_logging(verbose: bool) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


# ------------------------------------------------------------------
# Async pipeline
# ------------------------------------------------------------------


async def _load(session: DocumentSession, path: Path) -> bool:
    """Load *path* with a progress bar. Returns False (error printed) on failure."""
    with Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        transient=True,
        console=console,
    ) as prog:
        task = prog.add_task("Starting…", total=100)

        def _on_progress(p: LoadProgress) -> None:
            prog.update(task, completed=p.percentage, description=p.message)

        try:
            count = await session.load(path, on_progress=_on_progress)
        except AskdocError as exc:
            console.print(err_pipeline(exc))
            return False

    console.print(f"[green]✓[/] {session.file_name}: {count} segments indexed")
    return True


async def _answer(session: DocumentSession, question: str) -> bool:
    """Stream one answer to the console. Returns False (error printed) on failure."""
    try:
        async for fragment in session.ask(question):
            console.print(fragment, end="", markup=False, highlight=False)
    except AskdocError as exc:
        console.print()
        console.print(err_pipeline(exc))
        return False
    console.print()
    return True


async def _ask_once(session: DocumentSession, path: Path, question: str) -> int:
    if not await _load(session, path):
        return 1
    return 0 if await _answer(session, question) else 1


async def _chat(session: DocumentSession, path: Path) -> int:
    if not await _load(session, path):
        return 1

    console.print("[dim]Ask a question about the document. Type 'exit' to quit.[/]")
    while True:
        try:
            question = await asyncio.to_thread(console.input, "[bold]You:[/] ")
        except (EOFError, KeyboardInterrupt):
            console.print()
            break
        question = question.strip()
        if not question:
            continue
        if question.lower() in _EXIT_WORDS:
            break
        console.print("[bold]Assistant:[/] ", end="")
        # A failed question leaves the index intact; keep the loop going.
        await _answer(session, question)
    return 0
