"""askdoc CLI entry point."""

from __future__ import annotations

import importlib.metadata
from typing import Annotated

import typer

from askdoc.cli.chat import ask_cmd, chat_cmd
from askdoc.cli.init import init_cmd


def _installed_version() -> str:
    try:
        return importlib.metadata.version("askdoc")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"askdoc {_installed_version()}")
        raise typer.Exit()


app = typer.Typer(
    name="askdoc",
    help=(
        "askdoc: ask questions about a document.\n\n"
        "  askdoc chat  Load a PDF and ask questions interactively.\n"
        "  askdoc ask   Load a PDF and answer one question.\n"
        "  askdoc init  Write ~/.askdoc/config.yaml with default models."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
) -> None:
    """askdoc: ask questions about a document."""


app.command("chat")(chat_cmd)
app.command("ask")(ask_cmd)
app.command("init")(init_cmd)


@app.command("version")
def version_cmd() -> None:
    """Show the installed askdoc version."""
    typer.echo(f"askdoc {_installed_version()}")


if __name__ == "__main__":
    app()
