"""
Unit tests for the request multiplexer.
"""

import pytest

from httpcrud.http.mux import ServeMux
from httpcrud.http.request import HTTPRequest
from httpcrud.http.response import HTTPResponse


def named(name: str):
    def handler(w: HTTPResponse, request: HTTPRequest) -> None:
        w.write(name)
    return handler


def serve(mux: ServeMux, path: str, method: str = "GET") -> HTTPResponse:
    w = HTTPResponse()
    mux(w, HTTPRequest.build(method, path))
    return w


class TestServeMuxRegistration:
    """Tests for ServeMux.handle."""

    def test_empty_pattern(self):
        with pytest.raises(ValueError):
            ServeMux().handle("", named("x"))

    def test_duplicate_pattern(self):
        mux = ServeMux()
        mux.handle("/a", named("a"))

        with pytest.raises(ValueError):
            mux.handle("/a", named("b"))

    def test_handle_func(self):
        mux = ServeMux()

        @mux.handle_func("/x")
        def x(w, request):
            w.write("x")

        assert serve(mux, "/x").text() == "x"


class TestServeMuxMatching:
    """Tests for pattern matching and dispatch."""

    def test_exact_pattern(self):
        mux = ServeMux()
        mux.handle("/health", named("health"))

        assert serve(mux, "/health").text() == "health"
        assert serve(mux, "/health/x").status == 404

    def test_longest_pattern_wins(self):
        mux = ServeMux()
        mux.handle("/", named("root"))
        mux.handle("/api/", named("api"))
        mux.handle("/api/users", named("users"))

        assert serve(mux, "/api/users").text() == "users"
        assert serve(mux, "/api/other").text() == "api"
        assert serve(mux, "/elsewhere").text() == "root"

    def test_match_returns_pattern(self):
        mux = ServeMux()
        mux.handle("/static/", named("static"))

        handler, pattern = mux.match("/static/app.js")
        assert pattern == "/static/"
        assert mux.match("/nope") == (None, "")

    def test_subtree_redirect(self):
        """A path naming only a registered subtree is redirected to it."""
        mux = ServeMux()
        mux.handle("/docs/", named("docs"))

        w = serve(mux, "/docs")
        assert w.status == 301
        assert w.sent_headers.get("Location") == "/docs/"

    def test_not_found(self):
        w = serve(ServeMux(), "/anything")

        assert w.status == 404
