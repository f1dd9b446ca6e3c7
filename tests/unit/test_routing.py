"""
Unit tests for route registration.
"""

import pytest

from httpcrud.handler import FuncInitializer, HandlerBase
from httpcrud.http.mux import ServeMux
from httpcrud.http.request import HTTPRequest
from httpcrud.http.response import HTTPResponse, error
from httpcrud.http.router import Router
from httpcrud.httpio import JSON, RequestReader, ResponseWriter, Slot, String, Text
from httpcrud.routing import (
    DefaultInitializerAdapter,
    RouteDef,
    RouteHandler,
    RouteOptions,
    init_router,
    init_serve_mux,
)


class Hello(HandlerBase):
    def __init__(self):
        self.name = Slot("")
        self.text = Text()
        self.reader = RequestReader(path=String({"name": self.name}))
        self.writer = ResponseWriter(body=self.text)

    def execute(self):
        self.text.val = f"hello {self.name.value}"


class Create(HandlerBase):
    def __init__(self):
        self.writer = ResponseWriter(body=Text("created"), status=201)


class Failing(HandlerBase):
    def validate(self):
        raise ValueError("name is required")


class Echo(HandlerBase):
    def __init__(self):
        self.payload = {}
        self.reader = RequestReader(body=JSON(self.payload))
        self.writer = ResponseWriter(body=JSON(self.payload))


def serve(app, method: str, path: str, body: bytes = b"") -> HTTPResponse:
    w = HTTPResponse()
    app(w, HTTPRequest.build(method, path, body=body))
    return w


class TestInitRouter:
    """Tests for init_router."""

    def test_routes_dispatch(self):
        router = Router()
        init_router(router, [
            RouteDef("/hello/:name", "GET", Hello),
            ("/items", "post", Create),
        ])

        w = serve(router, "GET", "/hello/ada")
        assert w.status == 200
        assert w.text() == "hello ada"

        w = serve(router, "POST", "/items")
        assert w.status == 201
        assert w.text() == "created"

    def test_path_prefix(self):
        router = Router()
        init_router(router, [("/hello/:name", "GET", Hello)], RouteOptions(path_prefix="/api"))

        assert serve(router, "GET", "/api/hello/x").text() == "hello x"
        assert serve(router, "GET", "/hello/x").status == 404

    def test_default_error_handler(self):
        """Pipeline errors become 400 with the error message."""
        router = Router()
        init_router(router, [("/fail", "GET", Failing)])
        w = serve(router, "GET", "/fail")

        assert w.status == 400
        assert w.text() == "name is required\n"

    def test_read_error_is_reported(self):
        router = Router()
        init_router(router, [("/echo", "POST", Echo)])
        w = serve(router, "POST", "/echo", b"not json")

        assert w.status == 400

    def test_custom_error_handler(self):
        class Teapot:
            def handle_error(self, w, request, exc):
                error(w, f"teapot: {exc}", 418)

        router = Router()
        init_router(router, [("/fail", "GET", Failing)], RouteOptions(error_handler=Teapot()))
        w = serve(router, "GET", "/fail")

        assert w.status == 418
        assert w.text() == "teapot: name is required\n"

    def test_custom_adapter(self):
        """An adapter can accept plain (w, request) functions."""

        class FunctionAdapter:
            def adapt(self, initializer, path, method):
                class Wrapped(HandlerBase):
                    def write_response(self, w, request):
                        initializer(w, request)
                return FuncInitializer(Wrapped)

        def ping(w, request):
            w.write("pong")

        router = Router()
        init_router(router, [("/ping", "GET", ping)], RouteOptions(adapter=FunctionAdapter()))

        assert serve(router, "GET", "/ping").text() == "pong"

    def test_duplicate_route(self):
        with pytest.raises(ValueError):
            init_router(Router(), [("/a", "GET", Hello), ("/a", "GET", Hello)])


class TestDefaultInitializerAdapter:
    def test_object_with_init_used_as_is(self):
        init = FuncInitializer(Hello)

        assert DefaultInitializerAdapter().adapt(init, "/", "GET") is init

    def test_class_is_wrapped(self):
        adapted = DefaultInitializerAdapter().adapt(Hello, "/", "GET")

        assert isinstance(adapted.init(), Hello)

    def test_rejects_non_callable(self):
        with pytest.raises(TypeError):
            DefaultInitializerAdapter().adapt(42, "/x", "GET")


class TestRouteHandler:
    def test_repr(self):
        handler = RouteHandler(FuncInitializer(Hello), None, "/x", "GET")

        assert repr(handler) == "RouteHandler(GET /x)"


class TestInitServeMux:
    """Tests for init_serve_mux."""

    def test_dispatch_by_method(self):
        mux = ServeMux()
        init_serve_mux(mux, [("/items", "GET", Hello), ("/items", "POST", Create)])

        assert serve(mux, "GET", "/items").text() == "hello "
        assert serve(mux, "POST", "/items").status == 201

    def test_unknown_method_is_404(self):
        mux = ServeMux()
        init_serve_mux(mux, [("/items", "GET", Hello)])

        assert serve(mux, "DELETE", "/items").status == 404

    def test_unknown_path_is_404(self):
        mux = ServeMux()
        init_serve_mux(mux, [("/items", "GET", Hello)])

        assert serve(mux, "GET", "/other").status == 404

    def test_only_once_per_mux(self):
        mux = ServeMux()
        init_serve_mux(mux, [])

        with pytest.raises(ValueError):
            init_serve_mux(mux, [])

    def test_errors_use_error_handler(self):
        mux = ServeMux()
        init_serve_mux(mux, [("/fail", "GET", Failing)], RouteOptions(path_prefix="/v1"))
        w = serve(mux, "GET", "/v1/fail")

        assert w.status == 400
        assert w.text() == "name is required\n"
