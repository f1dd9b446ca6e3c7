"""
Unit tests for URL router.
"""

import pytest

from httpcrud.http.request import HTTPRequest
from httpcrud.http.response import HTTPResponse
from httpcrud.http.router import Router


def make_request(method: str, path: str) -> HTTPRequest:
    """Helper to create a request for testing."""
    return HTTPRequest.build(method, path)


def dummy_handler(w: HTTPResponse, request: HTTPRequest) -> None:
    """Dummy handler writing the request path."""
    w.write(request.path)


class TestRouter:
    """Tests for Router class."""

    def test_add_route(self):
        router = Router()
        router.add_route("/users", dummy_handler, method="get")

        assert len(router.routes()) == 1
        assert router.routes()[0].path == "/users"
        assert router.routes()[0].method == "GET"

    def test_duplicate_route_raises(self):
        router = Router()
        router.add_route("/users", dummy_handler, method="GET")

        with pytest.raises(ValueError):
            router.add_route("/users", dummy_handler, method="GET")

    def test_match_with_method(self):
        router = Router()
        router.add_route("/users", dummy_handler, method="GET")
        router.add_route("/users", dummy_handler, method="POST")

        assert router.match("GET", "/users").route.method == "GET"
        assert router.match("POST", "/users").route.method == "POST"
        assert router.match("DELETE", "/users") is None

    def test_match_dynamic_params(self):
        router = Router()
        router.add_route("/users/:id", dummy_handler, method="GET")
        router.add_route("/users/:user_id/posts/:post_id", dummy_handler, method="GET")

        assert router.match("GET", "/users/123").params == {"id": "123"}
        assert router.match("GET", "/users/456/posts/789").params == {"user_id": "456", "post_id": "789"}

    def test_match_wildcard(self):
        router = Router()
        router.add_route("/static/*path", dummy_handler, method="GET")

        match = router.match("GET", "/static/css/style.css")
        assert match.params == {"path": "css/style.css"}

    def test_root_route(self):
        router = Router()
        router.add_route("/", dummy_handler, method="GET")

        assert router.match("GET", "/") is not None
        assert router.match("GET", "/other") is None

    def test_trailing_slash_ignored(self):
        router = Router()
        router.add_route("/users", dummy_handler, method="GET")

        assert router.match("GET", "/users/") is not None

    def test_prefix(self):
        router = Router(prefix="/api/")
        router.add_route("/users", dummy_handler, method="GET")

        assert router.match("GET", "/api/users") is not None
        assert router.match("GET", "/users") is None


class TestRouterDispatch:
    """Tests for calling the router as a handler."""

    def test_dispatch_sets_params(self):
        seen = {}

        def handler(w, request):
            seen["path_params"] = request.path_params
            seen["ctx"] = dict(request.context.params)

        router = Router()
        router.add_route("/users/:id", handler, method="GET")
        router(HTTPResponse(), make_request("GET", "/users/7"))

        assert seen == {"path_params": {"id": "7"}, "ctx": {"id": "7"}}

    def test_not_found(self):
        w = HTTPResponse()
        Router()(w, make_request("GET", "/missing"))

        assert w.status == 404
        assert w.text() == "404 page not found\n"

    def test_method_not_allowed(self):
        router = Router()
        router.add_route("/users", dummy_handler, method="GET")
        router.add_route("/users", dummy_handler, method="POST")
        w = HTTPResponse()
        router(w, make_request("DELETE", "/users"))

        assert w.status == 405
        assert w.sent_headers.get("Allow") == "GET, POST"

    def test_any_method_route(self):
        router = Router()
        router.add_route("/any", dummy_handler)
        w = HTTPResponse()
        router(w, make_request("PATCH", "/any"))

        assert w.status == 200
        assert w.text() == "/any"

    def test_double_slash_target_keeps_its_path(self):
        router = Router()
        router.add_route("/report", dummy_handler, method="GET")
        w = HTTPResponse()
        router(w, make_request("GET", "//files/report"))

        assert w.status == 404
