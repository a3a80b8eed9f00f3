"""
CLI entry point for replaymock.

Fixture files are written by test runs; this CLI only reads them.

Commands:
    show    List the fixture keys in a file with their call counts
    check   Validate one or more fixture files
"""

import json
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from replaymock import __version__
from replaymock.errors import FixtureFormatError
from replaymock.serialize import serialize
from replaymock.store import read_fixtures

app = typer.Typer(
    name="replaymock",
    help="Inspect record/replay mock fixture files.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold]replaymock[/bold] version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """
    replaymock - record and replay async calls in tests.
    """


@app.command()
def show(
    path: Annotated[
        Path,
        typer.Argument(
            help="Path to the fixture file.",
            exists=True,
            readable=True,
            dir_okay=False,
            resolve_path=True,
        ),
    ],
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Show the input of every recorded call."),
    ] = False,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output in JSON format."),
    ] = False,
) -> None:
    """
    List the fixture keys in a fixture file.
    """
    try:
        records = read_fixtures(path)
    except FixtureFormatError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)

    if json_output:
        summary = {name: len(calls) for name, calls in records.items()}
        typer.echo(json.dumps({"path": str(path), "mocks": summary}, indent=2, sort_keys=True))
        return

    table = Table(title=str(path))
    table.add_column("Mock", style="cyan")
    table.add_column("Calls", justify="right")
    if verbose:
        table.add_column("Inputs")

    for name in sorted(records):
        calls = records[name]
        row = [escape(name), str(len(calls))]
        if verbose:
            row.append(escape("\n".join(serialize(call.input) for call in calls)))
        table.add_row(*row)

    console.print(table)
    console.print(f"[dim]{len(records)} mocks, {sum(len(c) for c in records.values())} calls[/dim]")


@app.command()
def check(
    paths: Annotated[
        list[Path],
        typer.Argument(
            help="Fixture files to validate.",
            exists=True,
            readable=True,
            dir_okay=False,
            resolve_path=True,
        ),
    ],
) -> None:
    """
    Validate fixture files.

    Exits with code 1 if any file cannot be parsed.
    """
    failed = 0
    for path in paths:
        try:
            records = read_fixtures(path)
        except FixtureFormatError as e:
            failed += 1
            console.print(f"[red]✗[/red] {escape(str(path))}: {escape(e.underlying_error)}")
            continue
        console.print(f"[green]✓[/green] {escape(str(path))} ({len(records)} mocks)")

    if failed:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
