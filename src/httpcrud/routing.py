"""
=============================================================================
ROUTE REGISTRATION
=============================================================================

Binds a list of (path, method, initializer) routes into a ``Router`` or a
``ServeMux``.

    routes = [
        RouteDef("/users", "GET", ListUsers),
        RouteDef("/users/:id", "GET", ShowUser),
        RouteDef("/users", "POST", CreateUser),
    ]
    router = Router()
    init_router(router, routes, RouteOptions(path_prefix="/api"))

=============================================================================
PER-REQUEST FLOW
=============================================================================

    router ─► RouteHandler(w, request)
                  │
                  ├─ serve_handler(init, w, request, request.context)
                  │
                  └─ exception? ─► error_handler.handle_error(w, request, exc)

    Default error handler: the exception's message as text/plain with
    400 Bad Request.

=============================================================================
ADAPTERS
=============================================================================

The initializer given in a route is passed through the options' adapter,
which turns it into a ``HandlerInitializer``. The default adapter accepts:

    - objects with an ``init()`` method          (used as is)
    - zero-argument callables, including classes (wrapped)

A custom adapter can accept anything else, for example a plain function
``(w, request)`` wrapped in a handler.

=============================================================================
"""

import logging
from dataclasses import dataclass
from http import HTTPStatus
from typing import Any, Dict, Iterable, Optional, Protocol, Tuple, Union, runtime_checkable

from .handler import FuncInitializer, HandlerInitializer, serve_handler
from .http.mux import ServeMux
from .http.request import HTTPRequest
from .http.response import HTTPResponse, error, not_found
from .http.router import Router

logger = logging.getLogger(__name__)


@dataclass
class RouteDef:
    """
    One route to register.

    Attributes:
        path: Path pattern (":name" parameters for a Router)
        method: HTTP method
        initializer: Anything the options' adapter accepts
    """

    path: str
    method: str
    initializer: Any


@runtime_checkable
class ErrorHandler(Protocol):
    def handle_error(self, w: HTTPResponse, request: HTTPRequest, exc: Exception) -> None: ...


@runtime_checkable
class HandlerInitializerAdapter(Protocol):
    def adapt(self, initializer: Any, path: str, method: str) -> HandlerInitializer: ...


class DefaultErrorHandler:
    """Writes ``str(exc)`` as plain text with 400 Bad Request."""

    def handle_error(self, w: HTTPResponse, request: HTTPRequest, exc: Exception) -> None:
        error(w, str(exc), HTTPStatus.BAD_REQUEST)


class DefaultInitializerAdapter:
    def adapt(self, initializer: Any, path: str, method: str) -> HandlerInitializer:
        """
        Raises:
            TypeError: ``initializer`` has no ``init()`` and is not callable.
        """
        if not isinstance(initializer, type) and callable(getattr(initializer, "init", None)):
            return initializer
        if callable(initializer):
            return FuncInitializer(initializer)
        raise TypeError(
            f"route {method} {path}: {type(initializer).__name__} is not a handler initializer"
        )


@dataclass
class RouteOptions:
    """
    Options applied to every route being registered.

    Attributes:
        adapter: Converts route initializers; DefaultInitializerAdapter if None
        error_handler: Handles pipeline failures; DefaultErrorHandler if None
        path_prefix: Prepended to every route path
    """

    adapter: Optional[HandlerInitializerAdapter] = None
    error_handler: Optional[ErrorHandler] = None
    path_prefix: str = ""

    def resolved(self) -> "RouteOptions":
        return RouteOptions(
            adapter=self.adapter or DefaultInitializerAdapter(),
            error_handler=self.error_handler or DefaultErrorHandler(),
            path_prefix=self.path_prefix,
        )


class RouteHandler:
    """
    Per-route adapter between the dispatcher and the handler lifecycle.

    Called as ``route_handler(w, request)``.
    """

    def __init__(self, init: HandlerInitializer, error_handler: ErrorHandler, path: str = "", method: str = ""):
        self.init = init
        self.error_handler = error_handler
        self.path = path
        self.method = method

    def __call__(self, w: HTTPResponse, request: HTTPRequest) -> None:
        try:
            serve_handler(self.init, w, request, request.context)
        except Exception as exc:
            logger.debug(f"{self.method} {self.path} failed: {exc!r}")
            self.error_handler.handle_error(w, request, exc)

    def __repr__(self) -> str:
        return f"RouteHandler({self.method} {self.path})"


RouteEntry = Union[RouteDef, Tuple[str, str, Any]]


def _route_defs(routes: Iterable[RouteEntry]) -> Iterable[RouteDef]:
    for route in routes:
        yield route if isinstance(route, RouteDef) else RouteDef(*route)


def init_router(router: Router, routes: Iterable[RouteEntry], options: Optional[RouteOptions] = None) -> None:
    """
    Register every route with ``router``.

    Raises:
        TypeError: The adapter rejected an initializer.
        ValueError: A (method, path) pair is registered twice.
    """
    opts = (options or RouteOptions()).resolved()

    for route in _route_defs(routes):
        path = opts.path_prefix + route.path
        method = route.method.upper()
        init = opts.adapter.adapt(route.initializer, path, method)
        router.add_route(path, RouteHandler(init, opts.error_handler, path, method), method=method)
        logger.info(f"Route {method} {path}")


def init_serve_mux(mux: ServeMux, routes: Iterable[RouteEntry], options: Optional[RouteOptions] = None) -> None:
    """
    Register every route with ``mux``.

    A root handler ("/") is installed on ``mux`` that dispatches to one
    sub-multiplexer per HTTP method and answers 404 for any method with
    no routes. Because of that root registration, this may be called
    only once per mux.

    Raises:
        TypeError: The adapter rejected an initializer.
        ValueError: ``mux`` already has a root handler, or a path is
                    registered twice for the same method.
    """
    opts = (options or RouteOptions()).resolved()
    by_method: Dict[str, ServeMux] = {}

    def dispatch(w: HTTPResponse, request: HTTPRequest) -> None:
        method_mux = by_method.get(request.method)
        if method_mux is None:
            not_found(w, request)
            return
        method_mux(w, request)

    mux.handle("/", dispatch)

    for route in _route_defs(routes):
        path = opts.path_prefix + route.path
        method = route.method.upper()
        method_mux = by_method.setdefault(method, ServeMux())
        init = opts.adapter.adapt(route.initializer, path, method)
        method_mux.handle(path, RouteHandler(init, opts.error_handler, path, method))
        logger.info(f"Route {method} {path}")
