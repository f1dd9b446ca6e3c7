"""
=============================================================================
HTTP RESPONSE SINK
=============================================================================

The object handler steps write their response into.

Unlike a value returned from a handler, a sink is written to
incrementally: header mutations first, then exactly one status line, then
any number of body chunks. This is what lets a CSV export start sending
rows before the last row has been produced.

=============================================================================
WRITE SEQUENCE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   w.headers.set("Content-Type", "text/csv")   ← mutable until...   │
    │                                                                      │
    │   w.write_header(201)                         ← headers frozen     │
    │        │                                        (first call wins)   │
    │        ▼                                                             │
    │   w.write(b"foo,bar\\n")                        ← body chunks        │
    │   w.write(b"1,2\\n")                                                 │
    │                                                                      │
    │   w.write(b"...") without write_header()  →  implicit 200 OK        │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
TWO MODES
=============================================================================

    BUFFERED (no stream):   everything is kept in memory. ``to_bytes()``
                            serializes status line, headers (with an
                            accurate Content-Length) and body. Tests use
                            this mode as a response recorder.

    STREAMING (stream set): the head is written to the stream at
                            write_header() time with "Connection: close",
                            then body chunks are written straight through.
                            The host server uses this mode.

=============================================================================
STATUS CODE CATEGORIES
=============================================================================

    ┌───────────┬──────────────────────────────────────────────────────────┐
    │   Range   │  Meaning                                                 │
    ├───────────┼──────────────────────────────────────────────────────────┤
    │  2xx      │  Success - Request accepted and processed               │
    │  3xx      │  Redirection - Further action needed                    │
    │  4xx      │  Client Error - Bad request or unauthorized             │
    │  5xx      │  Server Error - Server failed to process                │
    └───────────┴──────────────────────────────────────────────────────────┘

=============================================================================
"""

import io
import logging
from datetime import datetime, timezone
from email.utils import format_datetime
from html import escape
from http import HTTPStatus
from typing import BinaryIO, Optional, Union
from urllib.parse import quote, urljoin, urlsplit

from .headers import Headers
from .request import HTTPRequest

logger = logging.getLogger(__name__)

SERVER_NAME = "httpcrud/1.0"


def status_text(status: int) -> str:
    """Reason phrase for ``status`` ("" for unknown codes)."""
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return ""


def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an HTTP-date (RFC 7231).

    Example: Wed, 01 Jan 2026 12:00:00 GMT
    """
    return format_datetime(dt.astimezone(timezone.utc), usegmt=True)


def clean_header_value(value: str) -> str:
    """Replace CR and LF with spaces so a value cannot start a new header line."""
    return value.replace("\r", " ").replace("\n", " ")


class HTTPResponse:
    """
    Response sink handed to ``init_response`` and ``write_response``.

    Attributes:
        headers: Mutable header collection. Changes made after
                 ``write_header`` are not sent.
        status: Status code written so far, 0 before ``write_header``.
    """

    def __init__(
        self,
        stream: Optional[BinaryIO] = None,
        version: str = "HTTP/1.1",
        server_name: str = SERVER_NAME,
        discard_body: bool = False,
    ):
        self.headers = Headers()
        self.status = 0
        self.version = version
        self.server_name = server_name

        self._stream = stream
        self._buffer = io.BytesIO()
        self._sent_headers: Optional[Headers] = None
        self._bytes_written = 0
        self._discard_body = discard_body

    # =========================================================================
    # SINK INTERFACE
    # =========================================================================

    @property
    def wrote_header(self) -> bool:
        return self._sent_headers is not None

    def write_header(self, status: int) -> None:
        """
        Send the status line and freeze the headers.

        Only the first call has an effect; later calls are logged and
        ignored.
        """
        if self.wrote_header:
            logger.debug("Superfluous write_header(%d), status already %d", status, self.status)
            return

        self.status = int(status)
        self._sent_headers = self.headers.copy()

        if self._stream is not None:
            self._stream.write(self._head(streaming=True))

    def write(self, data: Union[bytes, str]) -> int:
        """
        Write a body chunk, sending a 200 status first if none was written.

        Returns:
            Number of bytes written.
        """
        if isinstance(data, str):
            data = data.encode("utf-8")
        if not self.wrote_header:
            self.write_header(HTTPStatus.OK)

        target = self._stream if self._stream is not None else self._buffer
        if not self._discard_body:
            target.write(data)
        self._bytes_written += len(data)
        return len(data)

    def flush(self) -> None:
        if self._stream is not None:
            self._stream.flush()

    # =========================================================================
    # INSPECTION
    # =========================================================================

    @property
    def body(self) -> bytes:
        """Body written so far (buffered mode only)."""
        return self._buffer.getvalue()

    @property
    def bytes_written(self) -> int:
        return self._bytes_written

    @property
    def sent_headers(self) -> Headers:
        """Headers as frozen by ``write_header`` (live headers before that)."""
        return self._sent_headers if self._sent_headers is not None else self.headers

    def text(self, encoding: str = "utf-8") -> str:
        return self.body.decode(encoding)

    def to_bytes(self) -> bytes:
        """
        Serialize a buffered response for sending over a socket.

            HTTP/1.1 200 OK\\r\\n          ← Status line
            Content-Type: text/plain\\r\\n
            Content-Length: 5\\r\\n       ← Auto-calculated
            Date: Wed, 01 Jan 2026 ...\\r\\n
            Server: httpcrud/1.0\\r\\n
            \\r\\n
            hello
        """
        if not self.wrote_header:
            self.write_header(HTTPStatus.OK)
        return self._head(streaming=False) + self.body

    def _head(self, streaming: bool) -> bytes:
        headers = self.sent_headers.copy()

        if streaming:
            headers.set("Connection", "close")
        elif "Content-Length" not in headers:
            headers.set("Content-Length", str(len(self.body)))
        if "Date" not in headers:
            headers.set("Date", format_http_date(datetime.now(timezone.utc)))
        if "Server" not in headers:
            headers.set("Server", self.server_name)

        lines = [f"{self.version} {self.status} {status_text(self.status)}".rstrip()]
        lines.extend(f"{name}: {clean_header_value(value)}" for name, value in headers.items())
        return ("\r\n".join(lines) + "\r\n\r\n").encode("latin-1")

    def __repr__(self) -> str:
        return f"HTTPResponse(status={self.status}, headers={self.sent_headers!r})"


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================
#
# Shortcuts for the common one-shot responses.
#
#     error(w, "bad input", 400)
#     not_found(w, request)
#     redirect(w, request, "/login", 303)
#
# =============================================================================

def error(w: HTTPResponse, message: str, status: int) -> None:
    """
    Reply with ``message`` as plain text and the given status.

    The message is followed by a newline. Callers should not write to
    ``w`` afterwards.
    """
    w.headers.set("Content-Type", "text/plain; charset=utf-8")
    w.headers.set("X-Content-Type-Options", "nosniff")
    w.write_header(status)
    w.write(message + "\n")


def not_found(w: HTTPResponse, request: HTTPRequest) -> None:
    error(w, "404 page not found", HTTPStatus.NOT_FOUND)


def redirect(w: HTTPResponse, request: HTTPRequest, url: str, status: int) -> None:
    """
    Reply with a redirect to ``url``.

    =====================================================================
    TARGET RESOLUTION
    =====================================================================

        url has a scheme      "https://x.org/a"   → sent as is
        url is absolute path  "/foo-bar"          → sent as is
        url is relative       "bar/baz"           → resolved against the
                              (request "/foo/")     request path:
                                                    "/foo/bar/baz"

    For GET and HEAD requests a text/html Content-Type is set; GET
    requests also get a short HTML body linking to the target, for
    clients that do not follow redirects.
    =====================================================================
    """
    if not urlsplit(url).scheme:
        url = urljoin(request.path or "/", url)

    location = quote(url, safe="/:?#[]@!$&'()*+,;=%~")
    w.headers.set("Location", location)

    had_content_type = "Content-Type" in w.headers
    if not had_content_type and request.method in ("GET", "HEAD"):
        w.headers.set("Content-Type", "text/html; charset=utf-8")
    w.write_header(status)

    if not had_content_type and request.method == "GET":
        w.write(f'<a href="{escape(location)}">{status_text(status)}</a>.\n\n')
