from __future__ import annotations

from typing import Any

import typer
from rich import print
from rich.markup import escape

from bpdesk.config import load_config, read_config_file, write_config_file
from bpdesk.state import AppState
from bpdesk.sync.controller import SyncController
from bpdesk.sync.records import RecordStoreClient
from bpdesk.types import Blueprint, StatusMessage
from bpdesk.view import ViewState

STATUS_COLORS = {"ok": "green", "info": "cyan", "warn": "yellow", "err": "red"}

# Exit code used when the record store cannot be reached at all.
UNREACHABLE_EXIT_CODE = 2


def controller_from_config() -> SyncController:
    cfg = load_config()
    try:
        client = RecordStoreClient(
            cfg.pb_url,
            cfg.collection,
            batch_size=cfg.batch_size,
            timeout_s=cfg.timeout_s,
        )
    except ValueError as exc:
        print(f"[red]Invalid record store url: {escape(str(exc))}[/red]")
        raise typer.Exit(code=1) from exc
    view = ViewState()
    if cfg.page_size in view.page_sizes:
        view.page_size = cfg.page_size
    return SyncController(client, AppState(view=view), max_workers=cfg.max_workers)


def print_status(status: StatusMessage | None) -> None:
    if status is None:
        return
    color = STATUS_COLORS.get(status.type, "white")
    print(f"[{color}]{escape(status.text)}[/{color}]")


def finish(controller: SyncController) -> None:
    """Wait for background saves, report the last status, exit non-zero on errors."""
    controller.close()
    state = controller.state
    print_status(state.status)
    if state.unreachable:
        print("[yellow]Retry once the record store is reachable.[/yellow]")
        raise typer.Exit(code=UNREACHABLE_EXIT_CODE)
    if state.status is not None and state.status.type == "err":
        raise typer.Exit(code=1)


def bootstrap_or_exit(controller: SyncController) -> None:
    if controller.bootstrap():
        return
    finish(controller)
    # bootstrap only fails with an err status, so finish() has exited already
    raise typer.Exit(code=1)


def index_or_exit(controller: SyncController, index: int) -> int:
    count = len(controller.state.blueprints)
    if index < 0 or index >= count:
        controller.close()
        print(f"[red]No blueprint at index {index} ({count} loaded)[/red]")
        raise typer.Exit(code=1)
    return index


def flag_labels(bp: Blueprint) -> str:
    labels = [
        label
        for label, on in (
            ("loot", bp.loot),
            ("harvester", bp.harvester_event),
            ("quest", bp.quest_reward),
            ("trials", bp.trials_reward),
        )
        if on
    ]
    return ", ".join(labels)


def read_config_or_exit() -> dict[str, Any]:
    try:
        return read_config_file()
    except ValueError as exc:
        print(f"[red]Invalid config file: {exc}[/red]")
        raise typer.Exit(code=1) from exc


def write_config_or_exit(data: dict[str, Any]) -> None:
    try:
        write_config_file(data)
    except OSError as exc:
        print(f"[red]Failed to write config: {exc}[/red]")
        raise typer.Exit(code=1) from exc
