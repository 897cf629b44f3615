import json
from pathlib import Path

import pytest

from bpdesk.config import (
    BpdeskConfig,
    get_config_path,
    get_env_overrides,
    load_config,
    read_config_file,
    write_config_file,
)


def test_read_config_file_rejects_invalid_json(tmp_path: Path) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text("{not-json}")
    with pytest.raises(ValueError, match="invalid config json"):
        read_config_file(config_path)


def test_read_config_file_rejects_non_object(tmp_path: Path) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text("[1, 2]")
    with pytest.raises(ValueError, match="config must be an object"):
        read_config_file(config_path)


def test_read_config_file_missing_or_blank_is_empty(tmp_path: Path) -> None:
    assert read_config_file(tmp_path / "missing.json") == {}
    blank = tmp_path / "blank.json"
    blank.write_text("  \n")
    assert read_config_file(blank) == {}


def test_write_config_file_creates_parent(tmp_path: Path) -> None:
    config_path = tmp_path / "nested" / "config.json"
    write_config_file({"pb_url": "http://pb:8090"}, config_path)
    assert json.loads(config_path.read_text()) == {"pb_url": "http://pb:8090"}


def test_get_config_path_uses_env(monkeypatch, tmp_path: Path) -> None:
    target = tmp_path / "custom.json"
    monkeypatch.setenv("BPDESK_CONFIG", str(target))
    assert get_config_path() == target


def test_load_config_defaults() -> None:
    assert load_config() == BpdeskConfig()


def test_load_config_file_then_env(monkeypatch, tmp_path: Path) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text(
        json.dumps({"pb_url": "http://file:8090", "batch_size": "50", "unknown": 1})
    )
    monkeypatch.setenv("BPDESK_PB_URL", "http://env:8090")
    monkeypatch.setenv("BPDESK_TIMEOUT_S", "2.5")

    cfg = load_config(config_path)

    assert cfg.pb_url == "http://env:8090"
    assert cfg.batch_size == 50
    assert cfg.timeout_s == 2.5
    assert get_env_overrides() == {"pb_url": "http://env:8090", "timeout_s": "2.5"}


def test_invalid_numbers_warn_and_keep_default(monkeypatch) -> None:
    monkeypatch.setenv("BPDESK_BATCH_SIZE", "lots")
    monkeypatch.setenv("BPDESK_MAX_WORKERS", "0")

    with pytest.warns(RuntimeWarning, match="Invalid int"):
        cfg = load_config()

    assert cfg.batch_size == 200
    assert cfg.max_workers == 8
