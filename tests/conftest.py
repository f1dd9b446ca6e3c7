"""
pytest configuration and fixtures.
"""

import http.client
from typing import Generator

import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from httpcrud import HTTPServer, ServerConfig
from httpcrud.handler import HandlerBase
from httpcrud.http import HTTPRequest, HTTPResponse
from httpcrud.httpio import JSON, RequestReader, ResponseWriter, Text


@pytest.fixture
def recorder() -> HTTPResponse:
    """Buffered response sink."""
    return HTTPResponse()


@pytest.fixture
def get_request() -> HTTPRequest:
    return HTTPRequest.build("GET", "/", {"Host": "testing.com"})


@pytest.fixture
def json_request() -> HTTPRequest:
    """POST with a small JSON object body."""
    return HTTPRequest.build(
        "POST",
        "/a/b/c",
        {"Host": "testing.com", "Content-Type": "application/json"},
        b'{"foo":"bar"}',
    )


@pytest.fixture
def config() -> ServerConfig:
    """Default test server configuration."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        timeout=5.0,
        log_level="WARNING",
    )


class PingHandler(HandlerBase):
    def __init__(self):
        self.writer = ResponseWriter(body=Text("pong"))


class EchoHandler(HandlerBase):
    def __init__(self):
        self.payload = {}
        self.reader = RequestReader(body=JSON(self.payload))
        self.writer = ResponseWriter(body=JSON(self.payload))


class BoomHandler(HandlerBase):
    def execute(self):
        raise ValueError("boom")


class RunningServer:
    """Server bound to a free port, serving in a background thread."""

    def __init__(self, server: HTTPServer):
        self.server = server

    def request(self, method: str, path: str, body: bytes = None, headers: dict = None):
        """Send one request; returns (status, headers, body)."""
        host, port = self.server.address
        conn = http.client.HTTPConnection(host, port, timeout=5)
        try:
            conn.request(method, path, body=body, headers=headers or {})
            response = conn.getresponse()
            return response.status, dict(response.getheaders()), response.read()
        finally:
            conn.close()


@pytest.fixture
def running_server(config: ServerConfig) -> Generator[RunningServer, None, None]:
    server = HTTPServer(config)
    server.add_routes([
        ("/ping", "GET", PingHandler),
        ("/echo", "POST", EchoHandler),
        ("/boom", "GET", BoomHandler),
    ])
    server.start()

    yield RunningServer(server)

    server.shutdown()
