"""
Tests for the demo application routes and CLI parsing.
"""

import json

from httpcrud.__main__ import build_parser, demo_routes
from httpcrud.handlers import HealthChecks
from httpcrud.http.request import HTTPRequest
from httpcrud.http.response import HTTPResponse
from httpcrud.http.router import Router
from httpcrud.routing import init_router


def demo_app() -> Router:
    router = Router()
    init_router(router, demo_routes(HealthChecks()))
    return router


def serve(method: str, target: str, body: bytes = b"") -> HTTPResponse:
    w = HTTPResponse()
    demo_app()(w, HTTPRequest.build(method, target, body=body))
    return w


class TestDemoRoutes:
    """Tests for the routes served by ``python -m httpcrud``."""

    def test_health(self):
        w = serve("GET", "/health")

        assert w.status == 200
        assert json.loads(w.body)["status"] == "healthy"

    def test_hello(self):
        assert serve("GET", "/hello/ada").text() == "Hello, ada!"

    def test_echo(self):
        w = serve("POST", "/echo", b'{"foo":"bar"}')

        assert w.text() == '{"foo":"bar"}\n'

    def test_echo_bad_json(self):
        assert serve("POST", "/echo", b"[").status == 400

    def test_export(self):
        w = serve("GET", "/export?rows=3")

        assert w.status == 200
        assert w.sent_headers.get("Content-Disposition") == "attachment; filename=export.csv"
        assert w.text() == "id,square\n1,1\n2,4\n3,9\n"

    def test_export_rejects_bad_rows(self):
        w = serve("GET", "/export?rows=-1")

        assert w.status == 400
        assert w.text() == "rows must be between 1 and 10000\n"

    def test_redirect(self):
        w = serve("GET", "/old")

        assert w.status == 301
        assert w.sent_headers.get("Location") == "/hello/world"


class TestParser:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("HTTPCRUD_PORT", raising=False)
        args = build_parser().parse_args([])

        assert args.port == 8080
        assert args.prefix == ""

    def test_flags(self):
        args = build_parser().parse_args(["--port", "3000", "--log-level", "debug", "--prefix", "/api"])

        assert args.port == 3000
        assert args.log_level == "DEBUG"
        assert args.prefix == "/api"
