from __future__ import annotations

import sys
from pathlib import Path

import typer
from rich import print

from bpdesk.commands.common import bootstrap_or_exit, finish


def export_cmd(*, controller_factory, output: str) -> None:
    """Export the collection to a portable JSON file (ids stripped)."""

    controller = controller_factory()
    bootstrap_or_exit(controller)
    if output == "-":
        text = controller.export_json()
        controller.close()
        typer.echo(text)
        return
    controller.export_file(Path(output).expanduser())
    finish(controller)


def import_cmd(*, controller_factory, path: Path, yes: bool) -> None:
    """Replace the whole remote collection with the contents of a JSON file."""

    if not yes and not typer.confirm("Replace every blueprint in the store with this file?"):
        raise typer.Exit(code=0)
    controller = controller_factory()
    controller.import_file(path.expanduser())
    finish(controller)
    print(f"  Blueprints: {len(controller.state.blueprints)}")


def paste_cmd(*, controller_factory, yes: bool) -> None:
    """Replace the whole remote collection with JSON read from stdin."""

    # stdin carries the JSON, so there is no way to prompt for confirmation
    if not yes:
        print("[yellow]Pass --yes to replace every blueprint in the store[/yellow]")
        raise typer.Exit(code=1)
    text = sys.stdin.read()
    if not text.strip():
        print("[yellow]Nothing pasted[/yellow]")
        raise typer.Exit(code=1)
    controller = controller_factory()
    controller.import_text(text)
    finish(controller)
    print(f"  Blueprints: {len(controller.state.blueprints)}")


def reset_cmd(*, controller_factory, yes: bool) -> None:
    """Replace the remote collection with the bundled sample data."""

    if not yes and not typer.confirm(
        "Reset to the sample data? This overwrites every blueprint in the store."
    ):
        raise typer.Exit(code=0)
    controller = controller_factory()
    controller.reset_to_sample()
    finish(controller)
