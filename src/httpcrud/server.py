"""
=============================================================================
HOST SERVER
=============================================================================

Serves a route table over real sockets.

The handler lifecycle only needs a request and a response sink; this
module supplies both from the standard library's threading HTTP server,
one thread per connection.

=============================================================================
ARCHITECTURE OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   ThreadingHTTPServer  (accept loop, one thread per connection)     │
    │          │                                                           │
    │          ▼                                                           │
    │   _RequestBridge       parse request line + headers                 │
    │          │             enforce max_request_size (413)               │
    │          │             build HTTPRequest + streaming HTTPResponse   │
    │          ▼                                                           │
    │   app(w, request)      Router / ServeMux / any (w, request) callable│
    │          │                                                           │
    │          ▼                                                           │
    │   cancel context, flush, close connection                           │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
FAILURE HANDLING
=============================================================================

    Content-Length not a number     → 400, app not called
    Content-Length > limit          → 413, app not called
    app raises                      → logged with traceback; 500 if no
                                      status line was sent yet
    app writes nothing              → empty 200

=============================================================================
USAGE
=============================================================================

    server = HTTPServer(ServerConfig(port=8080))
    server.add_routes([
        RouteDef("/health", "GET", HealthHandler),
        RouteDef("/users/:id", "GET", ShowUser),
    ])
    server.run()        # blocks until Ctrl+C

=============================================================================
"""

import logging
import threading
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Callable, Iterable, Optional, Tuple

from .config import ServerConfig
from .http.request import HTTPRequest
from .http.response import HTTPResponse, error
from .http.router import Router
from .routing import RouteOptions, RouteEntry, init_router

logger = logging.getLogger(__name__)

App = Callable[[HTTPResponse, HTTPRequest], None]


class _ThreadingServer(ThreadingHTTPServer):
    daemon_threads = True

    def __init__(self, address: Tuple[str, int], app: App, config: ServerConfig):
        self.app = app
        self.config = config
        super().__init__(address, _RequestBridge)


class _RequestBridge(BaseHTTPRequestHandler):
    """Adapts one ``http.server`` request to ``app(w, request)``."""

    protocol_version = "HTTP/1.1"
    server: _ThreadingServer

    def setup(self) -> None:
        self.timeout = self.server.config.timeout
        super().setup()

    def do_GET(self) -> None:
        self._dispatch()

    do_HEAD = do_GET
    do_POST = do_GET
    do_PUT = do_GET
    do_PATCH = do_GET
    do_DELETE = do_GET
    do_OPTIONS = do_GET

    def _dispatch(self) -> None:
        config = self.server.config
        w = HTTPResponse(
            stream=self.wfile,
            version=self.protocol_version,
            server_name=config.server_name,
            discard_body=self.command == "HEAD",
        )
        self.close_connection = True

        try:
            length = int(self.headers.get("Content-Length") or 0)
        except ValueError:
            error(w, "invalid Content-Length", HTTPStatus.BAD_REQUEST)
            w.flush()
            return
        if length < 0:
            error(w, "invalid Content-Length", HTTPStatus.BAD_REQUEST)
            w.flush()
            return
        if length > config.max_request_size:
            logger.warning(
                f"Rejecting {self.command} {self.path}: body of {length} bytes "
                f"exceeds {config.max_request_size}"
            )
            error(w, "request body too large", HTTPStatus.REQUEST_ENTITY_TOO_LARGE)
            w.flush()
            return

        body = self.rfile.read(length) if length else b""
        request = HTTPRequest.build(
            self.command,
            self.path,
            list(self.headers.items()),
            body,
            client_address=self.client_address,
        )

        try:
            self.server.app(w, request)
        except Exception:
            logger.exception(f"Unhandled error serving {request.method} {request.path}")
            if not w.wrote_header:
                error(w, HTTPStatus.INTERNAL_SERVER_ERROR.phrase, HTTPStatus.INTERNAL_SERVER_ERROR)
        finally:
            request.context.cancel()
            if not w.wrote_header:
                w.write_header(HTTPStatus.OK)
            w.flush()

        logger.debug(f"{request.method} {request.path} → {w.status} ({w.bytes_written} bytes)")

    def log_message(self, format: str, *args) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)


class HTTPServer:
    """
    Hosts a request handler (by default a ``Router``).

    Example:
        server = HTTPServer(ServerConfig(port=0))
        server.add_routes([("/ping", "GET", Ping)])
        server.start()              # background thread
        host, port = server.address
        ...
        server.shutdown()
    """

    def __init__(self, config: Optional[ServerConfig] = None, handler: Optional[App] = None):
        self.config = config or ServerConfig()
        self.config.validate()

        self.router = Router()
        self.handler: App = handler if handler is not None else self.router

        self._httpd: Optional[_ThreadingServer] = None
        self._thread: Optional[threading.Thread] = None

    def add_routes(self, routes: Iterable[RouteEntry], options: Optional[RouteOptions] = None) -> "HTTPServer":
        """
        Register ``routes`` on the server's router.

        The configured path prefix is used unless ``options`` carries its
        own.
        """
        opts = options or RouteOptions()
        if not opts.path_prefix and self.config.path_prefix:
            opts = RouteOptions(opts.adapter, opts.error_handler, self.config.path_prefix)
        init_router(self.router, routes, opts)
        return self

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (host, port); only valid once started."""
        if self._httpd is None:
            raise RuntimeError("server is not started")
        host, port = self._httpd.server_address[:2]
        return host, port

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def _bind(self) -> _ThreadingServer:
        if self._httpd is None:
            self._httpd = _ThreadingServer((self.config.host, self.config.port), self.handler, self.config)
            host, port = self.address
            logger.info(f"Listening on http://{host}:{port}")
        return self._httpd

    def start(self) -> None:
        """Bind and serve in a background daemon thread."""
        httpd = self._bind()
        self._thread = threading.Thread(target=httpd.serve_forever, name="httpcrud-server", daemon=True)
        self._thread.start()

    def run(self) -> None:
        """Bind and serve in the calling thread until Ctrl+C."""
        self._setup_logging()
        httpd = self._bind()
        try:
            httpd.serve_forever()
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self.shutdown()

    def shutdown(self) -> None:
        if self._httpd is None:
            return
        logger.info("Shutting down server...")
        if self._thread is not None:
            self._httpd.shutdown()
            self._thread.join()
            self._thread = None
        self._httpd.server_close()
        self._httpd = None
        logger.info("Server stopped")

    def _setup_logging(self) -> None:
        level = self.config.log_level_number
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("httpcrud").setLevel(level)
