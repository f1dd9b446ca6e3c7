"""
Tests for the host server, over real sockets.
"""

import http.client
import json

import pytest

from httpcrud import HandlerBase, HTTPServer, ServerConfig


def send_raw_headers(server: HTTPServer, method: str, path: str, headers: dict):
    """Send a request head without a body; returns (status, body)."""
    host, port = server.address
    conn = http.client.HTTPConnection(host, port, timeout=5)
    try:
        conn.putrequest(method, path)
        for name, value in headers.items():
            conn.putheader(name, value)
        conn.endheaders()
        response = conn.getresponse()
        return response.status, response.read()
    finally:
        conn.close()


class TestHTTPServer:
    """End-to-end tests through the threading server."""

    def test_get(self, running_server):
        status, headers, body = running_server.request("GET", "/ping")

        assert status == 200
        assert body == b"pong"
        assert headers["Content-Type"] == "text/plain"
        assert headers["Server"] == "httpcrud/1.0"

    def test_post_json(self, running_server):
        status, _, body = running_server.request(
            "POST", "/echo", b'{"foo":"bar"}', {"Content-Type": "application/json"}
        )

        assert status == 200
        assert json.loads(body) == {"foo": "bar"}

    def test_head_without_route_has_no_body(self, running_server):
        status, _, body = running_server.request("HEAD", "/ping")

        assert status == 405
        assert body == b""

    def test_not_found(self, running_server):
        status, _, body = running_server.request("GET", "/missing")

        assert status == 404
        assert body == b"404 page not found\n"

    def test_pipeline_error_is_400(self, running_server):
        status, _, body = running_server.request("GET", "/boom")

        assert status == 400
        assert body == b"boom\n"

    def test_invalid_content_length(self, running_server):
        status, _ = send_raw_headers(running_server.server, "POST", "/echo", {"Content-Length": "abc"})

        assert status == 400


class TestServerLimits:
    def test_body_too_large(self, config):
        config.max_request_size = 8
        server = HTTPServer(config)
        server.start()
        try:
            status, body = send_raw_headers(server, "POST", "/x", {"Content-Length": "1000"})
        finally:
            server.shutdown()

        assert status == 413
        assert body == b"request body too large\n"

    def test_unhandled_exception_is_500(self, config):
        def explode(w, request):
            raise RuntimeError("kaboom")

        server = HTTPServer(config, handler=explode)
        server.start()
        try:
            status, body = send_raw_headers(server, "GET", "/", {})
        finally:
            server.shutdown()

        assert status == 500
        assert body == b"Internal Server Error\n"

    def test_silent_handler_is_empty_200(self, config):
        server = HTTPServer(config, handler=lambda w, request: None)
        server.start()
        try:
            status, body = send_raw_headers(server, "GET", "/", {})
        finally:
            server.shutdown()

        assert status == 200
        assert body == b""

    def test_context_cancelled_after_request(self, config):
        seen = []
        server = HTTPServer(config, handler=lambda w, request: seen.append(request.context))
        server.start()
        try:
            send_raw_headers(server, "GET", "/", {})
        finally:
            server.shutdown()

        assert len(seen) == 1
        assert seen[0].cancelled

    def test_config_path_prefix(self, config):
        config.path_prefix = "/api"
        server = HTTPServer(config)
        server.add_routes([("/ping", "GET", HandlerBase)])

        assert [r.path for r in server.router.routes()] == ["/api/ping"]

    def test_address_before_start(self, config):
        with pytest.raises(RuntimeError):
            HTTPServer(config).address

    def test_invalid_config(self):
        with pytest.raises(ValueError):
            HTTPServer(ServerConfig(port=-1))
