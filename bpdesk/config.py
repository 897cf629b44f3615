from __future__ import annotations

import json
import os
import warnings
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

DEFAULT_CONFIG_PATH = Path("~/.config/bpdesk/config.json").expanduser()

CONFIG_ENV_OVERRIDES = {
    "pb_url": "BPDESK_PB_URL",
    "collection": "BPDESK_COLLECTION",
    "batch_size": "BPDESK_BATCH_SIZE",
    "timeout_s": "BPDESK_TIMEOUT_S",
    "page_size": "BPDESK_PAGE_SIZE",
    "max_workers": "BPDESK_MAX_WORKERS",
}

_INT_KEYS = {"batch_size", "page_size", "max_workers"}
_FLOAT_KEYS = {"timeout_s"}


def get_config_path(path: Path | None = None) -> Path:
    candidate = path or Path(os.getenv("BPDESK_CONFIG", DEFAULT_CONFIG_PATH))
    return candidate.expanduser()


def read_config_file(path: Path | None = None) -> dict[str, Any]:
    config_path = get_config_path(path)
    if not config_path.exists():
        return {}
    raw = config_path.read_text()
    if not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError("invalid config json") from exc
    if not isinstance(data, dict):
        raise ValueError("config must be an object")
    return data


def write_config_file(data: dict[str, Any], path: Path | None = None) -> Path:
    config_path = get_config_path(path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(json.dumps(data, ensure_ascii=False, indent=2) + "\n")
    return config_path


def get_env_overrides() -> dict[str, str]:
    overrides: dict[str, str] = {}
    for key, env_var in CONFIG_ENV_OVERRIDES.items():
        value = os.getenv(env_var)
        if value is not None:
            overrides[key] = value
    return overrides


@dataclass
class BpdeskConfig:
    pb_url: str = "http://127.0.0.1:8090"
    collection: str = "blueprints"
    # PocketBase rejects perPage above 200.
    batch_size: int = 200
    timeout_s: float = 10.0
    page_size: int = 10
    max_workers: int = 8

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _parse_int(value: object, default: int, *, key: str) -> int:
    if value is None:
        return default
    try:
        parsed = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        warnings.warn(f"Invalid int for {key}: {value!r}", RuntimeWarning, stacklevel=2)
        return default
    if parsed < 1:
        warnings.warn(f"Invalid int for {key}: {value!r}", RuntimeWarning, stacklevel=2)
        return default
    return parsed


def _parse_float(value: object, default: float, *, key: str) -> float:
    if value is None:
        return default
    try:
        parsed = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        warnings.warn(f"Invalid float for {key}: {value!r}", RuntimeWarning, stacklevel=2)
        return default
    if parsed <= 0:
        warnings.warn(f"Invalid float for {key}: {value!r}", RuntimeWarning, stacklevel=2)
        return default
    return parsed


def coerce_value(cfg: BpdeskConfig, key: str, value: object) -> Any:
    if key in _INT_KEYS:
        return _parse_int(value, getattr(cfg, key), key=key)
    if key in _FLOAT_KEYS:
        return _parse_float(value, getattr(cfg, key), key=key)
    return str(value)


def load_config(path: Path | None = None) -> BpdeskConfig:
    cfg = BpdeskConfig()
    config_path = get_config_path(path)
    if config_path.exists():
        try:
            data = json.loads(config_path.read_text())
        except json.JSONDecodeError:
            data = {}
        if isinstance(data, dict):
            cfg = _apply_dict(cfg, data)
    cfg = _apply_dict(cfg, get_env_overrides())
    return cfg


def _apply_dict(cfg: BpdeskConfig, data: dict[str, Any]) -> BpdeskConfig:
    for key, value in data.items():
        if not hasattr(cfg, key):
            continue
        setattr(cfg, key, coerce_value(cfg, key, value))
    return cfg
