from __future__ import annotations

import itertools
import json
import threading
from collections.abc import Iterator
from dataclasses import dataclass, field
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Any
from urllib.parse import parse_qs, urlparse

import pytest

from bpdesk.config import CONFIG_ENV_OVERRIDES

RECORDS_PREFIX = "/api/collections/blueprints/records"


@dataclass
class FakePocketBase:
    """In-memory stand-in for a PocketBase ``blueprints`` collection."""

    records: list[dict[str, Any]] = field(default_factory=list)
    calls: list[tuple[str, str]] = field(default_factory=list)
    failures: dict[str, list[tuple[int, str | bytes]]] = field(default_factory=dict)
    url: str = ""
    lock: threading.Lock = field(default_factory=threading.Lock)
    _ids: Iterator[int] = field(default_factory=lambda: itertools.count(1))

    def seed(self, *names: str, **fields: Any) -> list[dict[str, Any]]:
        created = []
        for name in names:
            record = {"name": name, "workshop": "", "image": "", "crafting_recipe": []}
            record.update(fields)
            created.append(self.insert(record))
        return created

    def insert(self, body: dict[str, Any]) -> dict[str, Any]:
        record = {
            "collectionId": "pbc_blueprints",
            "collectionName": "blueprints",
            "created": "2026-01-01 00:00:00.000Z",
            "updated": "2026-01-01 00:00:00.000Z",
            **{k: v for k, v in body.items() if k != "id"},
            "id": f"rec{next(self._ids):012d}",
        }
        self.records.append(record)
        return record

    def fail_next(self, method: str, status: int = 400, message: str | bytes = "Failed.") -> None:
        """Queue one failure; a bytes message is sent as the raw response body."""
        self.failures.setdefault(method, []).append((status, message))

    def names(self) -> list[str]:
        return [str(r.get("name")) for r in self.records]

    def methods(self) -> list[str]:
        return [method for method, _ in self.calls]


def _build_handler(pb: FakePocketBase) -> type[BaseHTTPRequestHandler]:
    class Handler(BaseHTTPRequestHandler):
        def log_message(self, format: str, *args: Any) -> None:
            return

        def _send(self, status: int, payload: dict[str, Any] | None) -> None:
            body = json.dumps(payload).encode("utf-8") if payload is not None else b""
            self.send_response(status)
            if payload is not None:
                self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

        def _send_raw(self, status: int, body: bytes) -> None:
            self.send_response(status)
            self.send_header("Content-Type", "text/html")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

        def _body(self) -> dict[str, Any]:
            length = int(self.headers.get("Content-Length") or 0)
            if not length:
                return {}
            return json.loads(self.rfile.read(length).decode("utf-8"))

        def _injected_failure(self, method: str) -> bool:
            with pb.lock:
                queue = pb.failures.get(method)
                if not queue:
                    return False
                status, message = queue.pop(0)
            if isinstance(message, bytes):
                self._send_raw(status, message)
            else:
                self._send(status, {"code": status, "message": message, "data": {}})
            return True

        def _record_id(self, path: str) -> str | None:
            if not path.startswith(RECORDS_PREFIX + "/"):
                return None
            return path[len(RECORDS_PREFIX) + 1 :]

        def _handle(self, method: str) -> None:
            parsed = urlparse(self.path)
            with pb.lock:
                pb.calls.append((method, self.path))
            if not parsed.path.startswith(RECORDS_PREFIX):
                self._send(404, {"code": 404, "message": "Missing collection context.", "data": {}})
                return
            body = self._body() if method in {"POST", "PATCH"} else {}
            if self._injected_failure(method):
                return
            record_id = self._record_id(parsed.path)
            with pb.lock:
                if method == "GET" and record_id is None:
                    query = parse_qs(parsed.query)
                    page = int(query.get("page", ["1"])[0])
                    per_page = int(query.get("perPage", ["30"])[0])
                    start = (page - 1) * per_page
                    items = pb.records[start : start + per_page]
                    if query.get("fields", [""])[0] == "id":
                        items = [{"id": r["id"]} for r in items]
                    payload = {"page": page, "perPage": per_page, "items": items}
                    status = 200
                elif method == "POST" and record_id is None:
                    payload = pb.insert(body)
                    status = 200
                else:
                    match = [r for r in pb.records if r["id"] == record_id]
                    if not match:
                        payload = {
                            "code": 404,
                            "message": "The requested resource wasn't found.",
                            "data": {},
                        }
                        status = 404
                    elif method == "PATCH":
                        match[0].update(body)
                        payload, status = match[0], 200
                    elif method == "DELETE":
                        pb.records.remove(match[0])
                        payload, status = None, 204
                    else:
                        payload, status = match[0], 200
            self._send(status, payload)

        def do_GET(self) -> None:
            self._handle("GET")

        def do_POST(self) -> None:
            self._handle("POST")

        def do_PATCH(self) -> None:
            self._handle("PATCH")

        def do_DELETE(self) -> None:
            self._handle("DELETE")

    return Handler


@pytest.fixture
def pb_server() -> Iterator[FakePocketBase]:
    pb = FakePocketBase()
    server = ThreadingHTTPServer(("127.0.0.1", 0), _build_handler(pb))
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    pb.url = f"http://127.0.0.1:{server.server_address[1]}"
    try:
        yield pb
    finally:
        server.shutdown()
        server.server_close()


@pytest.fixture(autouse=True)
def _isolate_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("BPDESK_CONFIG", str(tmp_path / "config.json"))
    for env_var in CONFIG_ENV_OVERRIDES.values():
        monkeypatch.delenv(env_var, raising=False)
