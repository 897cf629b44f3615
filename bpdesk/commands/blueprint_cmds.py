from __future__ import annotations

from pathlib import Path
from typing import Any

import typer
from rich import print
from rich.markup import escape

from bpdesk.commands.common import bootstrap_or_exit, finish, flag_labels, index_or_exit
from bpdesk.images import is_data_uri


def list_cmd(
    *,
    controller_factory,
    search: str,
    availability: str,
    page: int | None,
    page_size: int | None,
    selected: int | None,
) -> None:
    """Print one page of the filtered blueprint list."""

    controller = controller_factory()
    bootstrap_or_exit(controller)
    try:
        if page_size is not None:
            controller.set_page_size(page_size)
        if selected is not None:
            controller.select(index_or_exit(controller, selected))
        controller.set_search(search)
        controller.set_availability(availability)
    except ValueError as exc:
        controller.close()
        print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1) from exc
    if page is not None:
        controller.state.view.set_page(page)

    state = controller.state
    current = controller.visible_page()
    if not current.indices:
        print("[dim]No matches. Try a different search/filter.[/dim]")
    for idx in current.indices:
        bp = state.blueprints[idx]
        marker = ">" if idx == state.selected_index else " "
        avail = "[green]available[/green]" if bp.available else "[dim]unavailable[/dim]"
        name = escape(bp.name) if bp.name else "[dim](unnamed)[/dim]"
        line = f"{marker} [bold]{idx:>4}[/bold]  {name}"
        if bp.workshop:
            line += f"  [cyan]{escape(bp.workshop)}[/cyan]"
        line += f"  {avail}"
        flags = flag_labels(bp)
        if flags:
            line += f"  [magenta]{flags}[/magenta]"
        print(line)
    print(
        f"[dim]{current.count} shown · Page {current.page}/{current.total_pages}"
        f" · {state.view.page_size} per page[/dim]"
    )
    controller.close()


def show_cmd(*, controller_factory, index: int) -> None:
    """Print every field of one blueprint."""

    controller = controller_factory()
    bootstrap_or_exit(controller)
    bp = controller.state.blueprints[index_or_exit(controller, index)]
    controller.close()
    print(f"[bold]{escape(bp.name) or '(unnamed)'}[/bold]  [dim]{bp.id or 'unsaved'}[/dim]")
    print(f"  Workshop: {escape(bp.workshop)}")
    if is_data_uri(bp.image):
        print(f"  Image: [dim](inline image, {len(bp.image)} chars)[/dim]")
    else:
        print(f"  Image: {escape(bp.image)}")
    print(f"  Available: {'yes' if bp.available else 'no'}")
    print(f"  Sources: {flag_labels(bp) or '-'}")
    print("  Recipe:")
    if not bp.crafting_recipe:
        print("    [dim](empty)[/dim]")
    for row, item in enumerate(bp.crafting_recipe):
        print(f"    {row}. {item.quantity} x {escape(item.item) or '[dim](unnamed)[/dim]'}")


def new_cmd(*, controller_factory) -> None:
    """Create a blank blueprint in the store."""

    controller = controller_factory()
    bootstrap_or_exit(controller)
    created = controller.new_blueprint()
    if created is not None:
        print(f"Index: {controller.state.selected_index}")
    finish(controller)


def set_cmd(*, controller_factory, index: int, updates: dict[str, Any]) -> None:
    """Patch fields of one blueprint."""

    fields = {key: value for key, value in updates.items() if value is not None}
    if not fields:
        print("[yellow]Nothing to update[/yellow]")
        raise typer.Exit(code=0)
    controller = controller_factory()
    bootstrap_or_exit(controller)
    index_or_exit(controller, index)
    controller.state.set_status("ok", "Saved.")
    if controller.patch(index, fields) is None:
        controller.state.set_status("warn", "Blueprint has no id yet; nothing saved.")
    finish(controller)


def set_image_cmd(*, controller_factory, index: int, path: Path) -> None:
    """Inline an image file into a blueprint's image field."""

    controller = controller_factory()
    bootstrap_or_exit(controller)
    index_or_exit(controller, index)
    controller.state.set_status("ok", f"Image set from {path.name}.")
    controller.set_image_from_file(index, path.expanduser())
    finish(controller)


def recipe_add_cmd(*, controller_factory, index: int) -> None:
    controller = controller_factory()
    bootstrap_or_exit(controller)
    index_or_exit(controller, index)
    controller.state.set_status("ok", "Added a recipe row.")
    controller.add_recipe_item(index)
    finish(controller)


def recipe_set_cmd(
    *,
    controller_factory,
    index: int,
    row: int,
    item: str | None,
    quantity: str | None,
) -> None:
    controller = controller_factory()
    bootstrap_or_exit(controller)
    index_or_exit(controller, index)
    controller.state.set_status("ok", "Saved.")
    try:
        controller.update_recipe_item(index, row, item=item, quantity=quantity)
    except IndexError as exc:
        controller.close()
        print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1) from exc
    finish(controller)


def recipe_remove_cmd(*, controller_factory, index: int, row: int) -> None:
    controller = controller_factory()
    bootstrap_or_exit(controller)
    index_or_exit(controller, index)
    controller.state.set_status("ok", "Removed a recipe row.")
    try:
        controller.remove_recipe_item(index, row)
    except IndexError as exc:
        controller.close()
        print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1) from exc
    finish(controller)


def delete_cmd(*, controller_factory, index: int, yes: bool) -> None:
    """Delete a blueprint from the store."""

    controller = controller_factory()
    bootstrap_or_exit(controller)
    controller.select(index_or_exit(controller, index))
    name = controller.state.blueprints[index].name or "this blueprint"
    if not yes and not typer.confirm(f'Delete "{name}"?'):
        controller.close()
        raise typer.Exit(code=0)
    controller.delete(index)
    finish(controller)


def duplicate_cmd(*, controller_factory, index: int) -> None:
    """Copy a blueprint; the copy lands right after the original."""

    controller = controller_factory()
    bootstrap_or_exit(controller)
    controller.select(index_or_exit(controller, index))
    if controller.duplicate() is not None:
        print(f"Index: {controller.state.selected_index}")
    finish(controller)
