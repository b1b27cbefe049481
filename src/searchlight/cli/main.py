"""Searchlight CLI entry point."""

from __future__ import annotations

import importlib.metadata
from typing import Annotated

import typer

from searchlight.cli.ask import ask_cmd


def _installed_version() -> str:
    try:
        return importlib.metadata.version("searchlight")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"searchlight {_installed_version()}")
        raise typer.Exit()


app = typer.Typer(
    name="searchlight",
    help=(
        "Searchlight — answer questions from live web results.\n\n"
        "  searchlight ask QUESTION  Search, read the top results, answer with an LLM."
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
    """Searchlight — answer questions from live web results."""


app.command("ask")(ask_cmd)


@app.command("version")
def version_cmd() -> None:
    """Show the installed Searchlight version."""
    typer.echo(f"searchlight {_installed_version()}")


if __name__ == "__main__":
    app()
