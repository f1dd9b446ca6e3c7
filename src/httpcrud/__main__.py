"""
=============================================================================
HTTPCRUD CLI ENTRY POINT
=============================================================================

Runs a small demo application built from lifecycle handlers.

=============================================================================
USAGE
=============================================================================

    # Run with defaults (localhost:8080)
    python -m httpcrud

    # Custom port, all interfaces
    python -m httpcrud --host 0.0.0.0 --port 3000

    # Mount every route under /api
    python -m httpcrud --prefix /api

=============================================================================
DEMO ROUTES
=============================================================================

    GET  /health           JSON health report (HealthChecks)
    GET  /hello/:name      "Hello, <name>!" as text/plain
    POST /echo             JSON object in, same JSON object out
    GET  /export?rows=N    CSV attachment with N rows (default 10)
    GET  /old              301 redirect to /hello/world

    curl -s localhost:8080/hello/ada
    curl -s -d '{"foo":"bar"}' localhost:8080/echo
    curl -s 'localhost:8080/export?rows=3'

=============================================================================
"""

import argparse
import sys
from typing import Any, Dict

from . import __version__
from .config import LOG_LEVELS, ServerConfig
from .handler import HandlerBase
from .handlers import HealthChecks
from .httpio import (
    CSV,
    JSON,
    CSVWriter,
    Int,
    Redirect,
    RequestReader,
    ResponseWriter,
    Slot,
    String,
    Text,
)
from .routing import RouteDef
from .server import HTTPServer


class HelloHandler(HandlerBase):
    def __init__(self):
        self.name = Slot("")
        self.text = Text()
        self.reader = RequestReader(path=String({"name": self.name}))
        self.writer = ResponseWriter(body=self.text)

    def execute(self) -> None:
        self.text.val = f"Hello, {self.name.value or 'world'}!"


class EchoHandler(HandlerBase):
    def __init__(self):
        self.payload: Dict[str, Any] = {}
        self.reader = RequestReader(body=JSON(self.payload))
        self.writer = ResponseWriter(body=JSON(self.payload))


class ExportHandler(HandlerBase):
    """Streams ``rows`` CSV rows; rows are produced during execute."""

    default_rows = 10
    max_rows = 10000

    def __init__(self):
        self.rows = Slot(0)
        self.csv = CSVWriter(header=["id", "square"], filename="export.csv")
        self.reader = RequestReader(query=Int({"rows": self.rows}))
        self.writer = ResponseWriter(body=CSV(self.csv))

    def before_validate(self) -> None:
        if self.rows.value == 0:
            self.rows.value = self.default_rows

    def validate(self) -> None:
        if not 0 < self.rows.value <= self.max_rows:
            raise ValueError(f"rows must be between 1 and {self.max_rows}")

    def execute(self) -> None:
        for i in range(1, self.rows.value + 1):
            self.csv.write_row([str(i), str(i * i)])


class MovedHandler(HandlerBase):
    def __init__(self):
        self.writer = ResponseWriter(body=Redirect("/hello/world", 301))


def demo_routes(health: HealthChecks) -> list:
    return [
        RouteDef("/health", "GET", health),
        RouteDef("/hello/:name", "GET", HelloHandler),
        RouteDef("/echo", "POST", EchoHandler),
        RouteDef("/export", "GET", ExportHandler),
        RouteDef("/old", "GET", MovedHandler),
    ]


def build_parser() -> argparse.ArgumentParser:
    defaults = ServerConfig.from_env()
    parser = argparse.ArgumentParser(
        prog="httpcrud",
        description="Run the httpcrud demo application",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m httpcrud                      # Run with defaults
  python -m httpcrud --port 3000          # Custom port
  python -m httpcrud --host 0.0.0.0       # Listen on all interfaces
  python -m httpcrud --prefix /api        # Routes under /api
        """,
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument("--host", "-H", default=defaults.host, help=f"Host to bind to (default: {defaults.host})")
    parser.add_argument("--port", "-p", type=int, default=defaults.port, help=f"Port to listen on (default: {defaults.port})")
    parser.add_argument("--timeout", type=float, default=defaults.timeout, help="Socket timeout in seconds")
    parser.add_argument(
        "--max-request-size",
        type=int,
        default=defaults.max_request_size,
        help="Largest accepted request body in bytes",
    )

    # ─────────────────────────────────────────────────────────────────────
    # APPLICATION ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument("--prefix", default=defaults.path_prefix, help="Path prefix for every route")
    parser.add_argument(
        "--log-level", "-l",
        choices=LOG_LEVELS,
        type=str.upper,
        default=defaults.log_level,
        help=f"Logging level (default: {defaults.log_level})",
    )
    parser.add_argument("--version", "-v", action="version", version=f"httpcrud {__version__}")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    config = ServerConfig(
        host=args.host,
        port=args.port,
        timeout=args.timeout,
        max_request_size=args.max_request_size,
        path_prefix=args.prefix,
        log_level=args.log_level,
    )

    try:
        server = HTTPServer(config)
        server.add_routes(demo_routes(HealthChecks(include_system_info=True)))
        server.run()
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
