"""
CLI Interface
=============
Command-line interface for question extraction and answer judging.

Usage:
    python -m quizbowl parse <file> [options]
    python -m quizbowl judge <candidate> <canonical>
    python -m quizbowl serve [options]
"""

from __future__ import annotations

import json
import os
import sys

import click
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .documents import DocumentError
from .engine import ImportConfig, ImportEngine
from .matcher import match_answer
from .models import Difficulty, Subject

console = Console()


@click.group()
@click.version_option(version=__version__, prog_name="quizbowl")
def cli():
    """Quiz bowl practice tools — question extraction and answer judging."""
    pass


@cli.command()
@click.argument("file_path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--difficulty", "-d",
    default=None,
    type=click.Choice([d.value for d in Difficulty]),
    help="Default difficulty for questions without a directive",
)
@click.option(
    "--subject", "-s",
    default=None,
    type=click.Choice([s.value for s in Subject]),
    help="Default subject for questions without a directive",
)
@click.option(
    "--year", "-y",
    default=None,
    help="Default 4-digit year (defaults to the current year)",
)
@click.option(
    "--log-level",
    default="WARNING",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Logging level",
)
@click.option(
    "--json-output",
    is_flag=True,
    default=False,
    help="Output only JSON result to stdout (for programmatic use)",
)
def parse(
    file_path: str,
    difficulty: str,
    subject: str,
    year: str,
    log_level: str,
    json_output: bool,
):
    """Extract questions from a TXT, DOCX or PDF file."""

    if json_output:
        # Suppress console output for JSON mode
        log_level = "ERROR"

    engine = ImportEngine(ImportConfig(log_level=log_level))

    try:
        defaults = engine.defaults({
            "difficulty": difficulty,
            "subject": subject,
            "year": year,
        })
        document = engine.parse_file(file_path, defaults)
    except ValidationError as e:
        console.print(f"[red]Invalid defaults:[/] {escape(e.errors()[0]['msg'])}")
        sys.exit(1)
    except (FileNotFoundError, DocumentError) as e:
        console.print(f"[red]Error:[/] {escape(str(e))}")
        sys.exit(1)

    if json_output:
        print(json.dumps(
            document.model_dump(mode="json", by_alias=True),
            indent=2,
            ensure_ascii=False,
        ))
        return

    console.print()
    console.print(
        Panel.fit(
            f"[bold cyan]Quiz Bowl Extractor v{__version__}[/]\n"
            f"[dim]{os.path.basename(file_path)} "
            f"({document.file_type.value})[/]",
            border_style="cyan",
        )
    )
    _display_questions(document.questions)


@cli.command()
@click.argument("candidate")
@click.argument("canonical")
def judge(candidate: str, canonical: str):
    """Judge a CANDIDATE answer against the CANONICAL answer."""
    rule = match_answer(candidate, canonical)

    if rule is None:
        console.print("[red]✗ Incorrect[/]")
        sys.exit(1)

    console.print(f"[green]✓ Correct[/] [dim]({rule.value})[/]")


@cli.command()
@click.option("--host", default="0.0.0.0", help="Server host")
@click.option("--port", default=5000, type=int, help="Server port")
@click.option("--debug", is_flag=True, default=False, help="Debug mode")
def serve(host: str, port: int, debug: bool):
    """Start the HTTP API server."""
    from .server import run_server

    console.print()
    console.print(
        Panel.fit(
            f"[bold cyan]Quiz Bowl API[/]\n"
            f"[dim]Starting on {host}:{port}[/]",
            border_style="cyan",
        )
    )
    console.print()

    run_server(host=host, port=port, debug=debug)


# ─── Display Helpers ──────────────────────────────────────────────────────────


def _display_questions(questions):
    """Display extracted questions in a formatted table."""
    console.print()

    if not questions:
        console.print("[yellow]No questions found[/]")
        console.print()
        return

    table = Table(title="Extracted Questions", border_style="cyan")
    table.add_column("#", justify="right", style="bold")
    table.add_column("Question")
    table.add_column("Answer")
    table.add_column("Subject")
    table.add_column("Difficulty")
    table.add_column("Year", justify="right")

    for index, q in enumerate(questions, start=1):
        table.add_row(
            str(index),
            escape(q.text),
            escape(q.answer),
            q.subject.value,
            q.difficulty.value,
            q.year,
        )

    console.print(table)
    console.print()
    console.print(f"[bold]Total:[/] {len(questions)} questions")
    console.print()


# ─── Entry point (for python -m quizbowl.cli) ─────────────────────────────────


if __name__ == "__main__":
    cli()
