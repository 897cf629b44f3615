from __future__ import annotations

import json
import warnings

import typer
from rich import print

from bpdesk.commands.common import read_config_or_exit, write_config_or_exit
from bpdesk.config import BpdeskConfig, coerce_value, get_config_path, load_config


def config_show_cmd() -> None:
    """Print the effective configuration (file plus environment)."""

    cfg = load_config()
    print(f"[dim]{get_config_path()}[/dim]")
    print(json.dumps(cfg.to_dict(), indent=2))


def config_set_cmd(*, key: str, value: str) -> None:
    """Write one key to the config file."""

    defaults = BpdeskConfig()
    if not hasattr(defaults, key):
        print(f"[red]Unknown config key: {key}[/red]")
        raise typer.Exit(code=1)
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        coerced = coerce_value(defaults, key, value)
    if caught:
        print(f"[red]Invalid value for {key}: {value}[/red]")
        raise typer.Exit(code=1)
    data = read_config_or_exit()
    data[key] = coerced
    write_config_or_exit(data)
    print(f"[green]✓ {key} = {coerced}[/green]")
