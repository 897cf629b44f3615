from __future__ import annotations

import logging
from pathlib import Path

import typer

from . import __version__
from .commands.blueprint_cmds import (
    delete_cmd,
    duplicate_cmd,
    list_cmd,
    new_cmd,
    recipe_add_cmd,
    recipe_remove_cmd,
    recipe_set_cmd,
    set_cmd,
    set_image_cmd,
    show_cmd,
)
from .commands.common import controller_from_config
from .commands.config_cmds import config_set_cmd, config_show_cmd
from .commands.import_export_cmds import export_cmd, import_cmd, paste_cmd, reset_cmd
from .sync.controller import SyncController

app = typer.Typer(help="bpdesk: edit crafting blueprints stored in PocketBase")
recipe_app = typer.Typer(help="Edit a blueprint's crafting recipe")
config_app = typer.Typer(help="Show or change configuration")
app.add_typer(recipe_app, name="recipe")
app.add_typer(config_app, name="config")


def _controller() -> SyncController:
    return controller_from_config()


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log sync activity to stderr"),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version"
    ),
) -> None:
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


@app.command("list")
def list_blueprints(
    search: str = typer.Option("", "--search", "-s", help="Match name or workshop"),
    availability: str = typer.Option(
        "all", "--availability", "-a", help="all, available or unavailable"
    ),
    page: int = typer.Option(None, help="Page number (clamped to the last page)"),
    page_size: int = typer.Option(None, help="Rows per page: 10, 25, 50 or 100"),
    selected: int = typer.Option(
        None, help="Selected index; the listing jumps to the page that holds it"
    ),
) -> None:
    """List blueprints, filtered and paged."""

    list_cmd(
        controller_factory=_controller,
        search=search,
        availability=availability,
        page=page,
        page_size=page_size,
        selected=selected,
    )


@app.command("show")
def show(index: int = typer.Argument(..., help="Blueprint index")) -> None:
    """Show one blueprint."""

    show_cmd(controller_factory=_controller, index=index)


@app.command("new")
def new() -> None:
    """Add a new blueprint."""

    new_cmd(controller_factory=_controller)


@app.command("set")
def set_fields(
    index: int = typer.Argument(..., help="Blueprint index"),
    name: str = typer.Option(None, help="Blueprint name"),
    workshop: str = typer.Option(None, help="Workshop"),
    image: str = typer.Option(None, help="Image URL or data URI"),
    available: bool = typer.Option(None, "--available/--unavailable"),
    loot: bool = typer.Option(None, "--loot/--no-loot"),
    harvester_event: bool = typer.Option(None, "--harvester-event/--no-harvester-event"),
    quest_reward: bool = typer.Option(None, "--quest-reward/--no-quest-reward"),
    trials_reward: bool = typer.Option(None, "--trials-reward/--no-trials-reward"),
) -> None:
    """Change fields of a blueprint."""

    set_cmd(
        controller_factory=_controller,
        index=index,
        updates={
            "name": name,
            "workshop": workshop,
            "image": image,
            "available": available,
            "loot": loot,
            "harvester_event": harvester_event,
            "quest_reward": quest_reward,
            "trials_reward": trials_reward,
        },
    )


@app.command("set-image")
def set_image(
    index: int = typer.Argument(..., help="Blueprint index"),
    path: Path = typer.Argument(..., help="Image file to inline"),
) -> None:
    """Store an image file inline in a blueprint."""

    set_image_cmd(controller_factory=_controller, index=index, path=path)


@app.command("delete")
def delete(
    index: int = typer.Argument(..., help="Blueprint index"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a blueprint."""

    delete_cmd(controller_factory=_controller, index=index, yes=yes)


@app.command("duplicate")
def duplicate(index: int = typer.Argument(..., help="Blueprint index")) -> None:
    """Duplicate a blueprint."""

    duplicate_cmd(controller_factory=_controller, index=index)


@app.command("export")
def export(
    output: str = typer.Argument("blueprints.json", help="Output file, or - for stdout"),
) -> None:
    """Export blueprints as JSON."""

    export_cmd(controller_factory=_controller, output=output)


@app.command("import")
def import_file(
    path: Path = typer.Argument(..., help="JSON file with a blueprints array"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Replace all blueprints with a JSON file."""

    import_cmd(controller_factory=_controller, path=path, yes=yes)


@app.command("paste")
def paste(yes: bool = typer.Option(False, "--yes", "-y", help="Confirm the replacement")) -> None:
    """Replace all blueprints with JSON read from stdin."""

    paste_cmd(controller_factory=_controller, yes=yes)


@app.command("reset")
def reset(yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation")) -> None:
    """Replace all blueprints with the sample data."""

    reset_cmd(controller_factory=_controller, yes=yes)


@recipe_app.command("add")
def recipe_add(index: int = typer.Argument(..., help="Blueprint index")) -> None:
    """Append an empty recipe row."""

    recipe_add_cmd(controller_factory=_controller, index=index)


@recipe_app.command("set")
def recipe_set(
    index: int = typer.Argument(..., help="Blueprint index"),
    row: int = typer.Argument(..., help="Recipe row"),
    item: str = typer.Option(None, help="Ingredient name"),
    quantity: str = typer.Option(None, help="Quantity (clamped to a non-negative integer)"),
) -> None:
    """Change one recipe row."""

    recipe_set_cmd(
        controller_factory=_controller,
        index=index,
        row=row,
        item=item,
        quantity=quantity,
    )


@recipe_app.command("remove")
def recipe_remove(
    index: int = typer.Argument(..., help="Blueprint index"),
    row: int = typer.Argument(..., help="Recipe row"),
) -> None:
    """Remove one recipe row."""

    recipe_remove_cmd(controller_factory=_controller, index=index, row=row)


@config_app.command("show")
def config_show() -> None:
    """Show the effective configuration."""

    config_show_cmd()


@config_app.command("set")
def config_set(
    key: str = typer.Argument(..., help="Config key"),
    value: str = typer.Argument(..., help="New value"),
) -> None:
    """Set a configuration value."""

    config_set_cmd(key=key, value=value)


if __name__ == "__main__":
    app()
