"""
=============================================================================
HTTP REQUEST
=============================================================================

The request object handed to every handler step.

The host server (or a test) builds one ``HTTPRequest`` per inbound
request. Handler steps read from it; nothing in the lifecycle mutates it
except the router, which fills in ``path_params``.

=============================================================================
REQUEST ANATOMY
=============================================================================

    POST /api/users/42?expand=1 HTTP/1.1
    ─┬── ──────┬──────  ───┬───  ───┬────
     │         │           │        │
   method     path       query    version
               │
     router pattern "/api/users/:id"  →  path_params {"id": "42"}

    Host: example.com
    Content-Type: application/json      →  headers (case-insensitive)
    Cookie: session=abc123               →  cookies()

    {"name": "alice"}                    →  body / stream

=============================================================================
BODY STREAM
=============================================================================

Body readers consume ``request.stream``, a file-like object positioned at
the start of the body. It behaves like a socket: once read, it is empty.
``request.body`` keeps the raw bytes for code that needs them again
(request dumps, logging).

=============================================================================
"""

import io
from dataclasses import dataclass, field
from http.cookies import CookieError, SimpleCookie
from typing import BinaryIO, Dict, List, Optional, Tuple
from urllib.parse import parse_qs, unquote, urlsplit

from .context import RequestContext
from .headers import Headers


@dataclass
class HTTPRequest:
    """
    Represents an inbound HTTP request.

    =========================================================================
    ATTRIBUTES
    =========================================================================

        method:         The HTTP method (GET, POST, PUT, DELETE, etc.)
        path:           Decoded request path WITHOUT query string
        raw_query:      The query string as received ("a=1&b=2")
        version:        HTTP version string ("HTTP/1.1")
        headers:        Case-insensitive ``Headers`` collection
        query_params:   Parsed query string as dict of lists
                        "?a=1&a=2&b=3" → {"a": ["1", "2"], "b": ["3"]}
        body:           Raw request body as bytes
        path_params:    Route parameters filled in by the router
        client_address: (IP, port) of the peer
        context:        Request-scoped ``RequestContext``
    """

    method: str
    path: str
    raw_query: str = ""
    version: str = "HTTP/1.1"
    headers: Headers = field(default_factory=Headers)
    query_params: Dict[str, List[str]] = field(default_factory=dict)
    body: bytes = b""
    path_params: Dict[str, str] = field(default_factory=dict)
    client_address: Tuple[str, int] = ("", 0)
    context: RequestContext = field(default_factory=RequestContext)

    _stream: Optional[BinaryIO] = field(default=None, repr=False)

    @classmethod
    def build(
        cls,
        method: str,
        target: str,
        headers: Optional[object] = None,
        body: bytes = b"",
        client_address: Tuple[str, int] = ("", 0),
        stream: Optional[BinaryIO] = None,
    ) -> "HTTPRequest":
        """
        Build a request from a method, a request target and headers.

        Args:
            method: HTTP method ("GET", "POST", ...)
            target: Request target, e.g. "/search?q=x"; an absolute URL
                    also supplies the Host header
            headers: ``Headers``, a dict, or an iterable of (name, value)
            body: Raw body bytes
            client_address: Peer address
            stream: Body stream; defaults to a stream over ``body``

        Example:
            request = HTTPRequest.build("POST", "/users?notify=1",
                                        {"Content-Type": "application/json"},
                                        b'{"name": "alice"}')
        """
        if isinstance(headers, Headers):
            parsed_headers = headers
        elif isinstance(headers, dict):
            parsed_headers = Headers.from_dict(headers)
        else:
            parsed_headers = Headers(headers or ())

        if target.startswith("/"):
            # Origin form: "//files/report" is a path, not a host
            path, _, query = target.split("#", 1)[0].partition("?")
        else:
            parts = urlsplit(target)
            path, query = parts.path, parts.query
            if parts.netloc and "Host" not in parsed_headers:
                parsed_headers.set("Host", parts.netloc)
        return cls(
            method=method.upper(),
            path=unquote(path) or "/",
            raw_query=query,
            headers=parsed_headers,
            query_params=parse_qs(query, keep_blank_values=True),
            body=body,
            client_address=client_address,
            _stream=stream,
        )

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def stream(self) -> BinaryIO:
        """The body stream, created over ``body`` on first access."""
        if self._stream is None:
            self._stream = io.BytesIO(self.body)
        return self._stream

    @property
    def target(self) -> str:
        """Path plus query string, as it appeared on the request line."""
        return f"{self.path}?{self.raw_query}" if self.raw_query else self.path

    @property
    def content_type(self) -> Optional[str]:
        """Content-Type without parameters ("application/json")."""
        ct = self.headers.get("Content-Type")
        return ct.split(";")[0].strip().lower() or None

    @property
    def content_length(self) -> int:
        try:
            return int(self.headers.get("Content-Length", "0"))
        except ValueError:
            return 0

    @property
    def host(self) -> str:
        return self.headers.get("Host")

    # =========================================================================
    # ACCESSOR METHODS
    # =========================================================================

    def get_query(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """
        Get the first value of a query parameter.

        Example:
            # URL: /users?page=1&page=2
            request.get_query("page")  # Returns "1"
        """
        values = self.query_params.get(name, [])
        return values[0] if values else default

    def get_query_list(self, name: str) -> List[str]:
        return list(self.query_params.get(name, []))

    def path_param(self, name: str) -> str:
        """Return a router-supplied path parameter, "" when absent."""
        return self.path_params.get(name, "")

    def cookies(self) -> Dict[str, str]:
        """
        Parse every ``Cookie`` header into a name → value dict.

        Malformed cookie headers are skipped.
        """
        return parse_cookies(self.headers)

    def dump(self, body: bool = False) -> bytes:
        """
        Serialize the request back to its HTTP/1.1 wire form.

        Args:
            body: Include the body after the header block.
        """
        lines = [f"{self.method} {self.target} {self.version}"]
        if self.host:
            lines.append(f"Host: {self.host}")
        for name, value in self.headers.items():
            if name != "Host":
                lines.append(f"{name}: {value}")
        head = ("\r\n".join(lines) + "\r\n\r\n").encode("latin-1")
        return head + self.body if body else head


def parse_cookies(headers: Headers) -> Dict[str, str]:
    """
    Parse the ``Cookie`` headers of a header collection.

    The first occurrence of a cookie name wins. Malformed headers are
    skipped.
    """
    result: Dict[str, str] = {}
    for line in headers.get_all("Cookie"):
        jar = SimpleCookie()
        try:
            jar.load(line)
        except CookieError:
            continue
        for name, morsel in jar.items():
            result.setdefault(name, morsel.value)
    return result
