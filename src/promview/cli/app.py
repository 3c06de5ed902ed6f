"""Main Typer application: entry point for the ``promview`` CLI."""

from __future__ import annotations

import typer

from promview import __version__
from promview.cli.snapshot import entities_cmd, snapshot_cmd
from promview.cli.watch import watch_cmd

app = typer.Typer(
    name="promview",
    help="Live terminal view of a process's Prometheus metrics.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.command("watch", help="Scrape a process continuously and show its metrics live.")(watch_cmd)
app.command("snapshot", help="Scrape a process once and print its metrics.")(snapshot_cmd)
app.command("entities", help="Scrape a process once and list its entities.")(entities_cmd)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"promview {__version__}")
        raise typer.Exit


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """promview: watch a process's Prometheus metrics from the terminal."""
