"""
=============================================================================
HTTPCRUD - Lifecycle Handlers for HTTP CRUD Endpoints
=============================================================================

Endpoints are written as small objects with a fixed lifecycle instead of
free-form request functions. Each request gets a fresh handler instance
which reads its input, validates, executes and writes its output through
pluggable readers and writers.

=============================================================================
PROJECT OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   Router / ServeMux                                                  │
    │        │                                                             │
    │        ▼                                                             │
    │   RouteHandler ──── exception ───► ErrorHandler (400 text/plain)    │
    │        │                                                             │
    │        ▼                                                             │
    │   serve_handler                                                      │
    │     h = init()                                                       │
    │     auth_check → read_request → init_response                       │
    │     before_validate → validate → after_validate                     │
    │     before_execute  → execute  → after_execute → done               │
    │     write_response                                                   │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    httpcrud/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # Demo application (python -m httpcrud)
    ├── action.py            # Step pipeline (validate/execute/done)
    ├── handler.py           # Handler lifecycle, HandlerBase, serve_handler
    ├── routing.py           # RouteDef, init_router, init_serve_mux
    ├── errors.py            # ReadError, WriteError, NoTemplateError
    ├── config.py            # ServerConfig dataclass
    ├── server.py            # HTTPServer host
    ├── http/                # Request, response sink, router, mux
    ├── httpio/              # Readers and writers (JSON, XML, CSV, ...)
    └── handlers/            # Built-in handlers (health)

=============================================================================
QUICK START
=============================================================================

    from httpcrud import HTTPServer, HandlerBase, RouteDef
    from httpcrud.httpio import JSON, Int64, RequestReader, ResponseWriter, Slot

    class ShowUser(HandlerBase):
        def __init__(self):
            self.user_id = Slot(0)
            self.out = {}
            self.reader = RequestReader(path=Int64({"id": self.user_id}))
            self.writer = ResponseWriter(body=JSON(self.out))

        def execute(self):
            self.out["id"] = self.user_id.value

    server = HTTPServer()
    server.add_routes([RouteDef("/users/:id", "GET", ShowUser)])
    server.run()

=============================================================================
"""

__version__ = "1.0.0"

from .action import Action, NopAction, Step, execute_action
from .config import ServerConfig
from .errors import HandlerError, NoTemplateError, ReadError, WriteError
from .handler import FuncInitializer, Handler, HandlerBase, HandlerInitializer, serve_handler
from .routing import (
    DefaultErrorHandler,
    DefaultInitializerAdapter,
    RouteDef,
    RouteHandler,
    RouteOptions,
    init_router,
    init_serve_mux,
)
from .server import HTTPServer

__all__ = [
    "Action",
    "NopAction",
    "Step",
    "execute_action",
    "Handler",
    "HandlerBase",
    "HandlerInitializer",
    "FuncInitializer",
    "serve_handler",
    "RouteDef",
    "RouteOptions",
    "RouteHandler",
    "DefaultErrorHandler",
    "DefaultInitializerAdapter",
    "init_router",
    "init_serve_mux",
    "HandlerError",
    "ReadError",
    "WriteError",
    "NoTemplateError",
    "HTTPServer",
    "ServerConfig",
    "__version__",
]
