from __future__ import annotations

import socket

import pytest

from bpdesk.errors import TransportUnreachable
from bpdesk.sync import http_client


class _ConnRequestFails:
    def __init__(self, exc: BaseException) -> None:
        self.exc = exc
        self.closed = False

    def request(self, method, path, body=None, headers=None) -> None:
        raise self.exc

    def close(self) -> None:
        self.closed = True


class _ConnReadFails:
    def __init__(self, *args, **kwargs) -> None:
        self.closed = False

    def request(self, method, path, body=None, headers=None) -> None:
        return

    def getresponse(self):
        return _RespReadFails()

    def close(self) -> None:
        self.closed = True


class _RespReadFails:
    status = 200

    def read(self) -> bytes:
        raise RuntimeError("read failed")


def test_build_base_url_adds_scheme_and_trims() -> None:
    assert http_client.build_base_url(" 127.0.0.1:8090/ ") == "http://127.0.0.1:8090"
    assert http_client.build_base_url("https://pb.example.com/") == "https://pb.example.com"
    assert http_client.build_base_url("   ") == ""


def test_request_json_closes_connection_when_request_raises(monkeypatch) -> None:
    conn = _ConnRequestFails(RuntimeError("boom"))
    monkeypatch.setattr(http_client, "HTTPConnection", lambda *a, **k: conn)

    with pytest.raises(RuntimeError, match="boom"):
        http_client.request_json("GET", "http://127.0.0.1:8090/api/health")

    assert conn.closed is True


def test_request_json_closes_connection_when_response_read_raises(monkeypatch) -> None:
    conn = _ConnReadFails()
    monkeypatch.setattr(http_client, "HTTPConnection", lambda *a, **k: conn)

    with pytest.raises(RuntimeError, match="read failed"):
        http_client.request_json("GET", "http://127.0.0.1:8090/api/health")

    assert conn.closed is True


@pytest.mark.parametrize(
    "exc",
    [
        ConnectionRefusedError(111, "Connection refused"),
        socket.gaierror(-2, "Name or service not known"),
        TimeoutError("timed out"),
    ],
)
def test_request_json_maps_connection_failures_to_unreachable(monkeypatch, exc) -> None:
    conn = _ConnRequestFails(exc)
    monkeypatch.setattr(http_client, "HTTPConnection", lambda *a, **k: conn)

    with pytest.raises(TransportUnreachable):
        http_client.request_json("GET", "http://pb.invalid:8090/api/health")

    assert conn.closed is True


def test_request_json_refused_by_closed_port() -> None:
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]
    with pytest.raises(TransportUnreachable):
        http_client.request_json("GET", f"http://127.0.0.1:{port}/api/health", timeout_s=1.0)


def test_request_json_rejects_missing_hostname() -> None:
    with pytest.raises(ValueError, match="missing hostname"):
        http_client.request_json("GET", "/api/health")
