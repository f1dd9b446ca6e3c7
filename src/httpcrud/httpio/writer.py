"""
Response-side capability interfaces and the ``ResponseWriter`` aggregator.

    ┌──────────────┬──────────────────────────────────────────────────────┐
    │ HeaderWriter │ write_header(headers)   mutate the response headers  │
    │ BodyWriter   │ write_init(w)           claim the sink before any    │
    │              │                         header is sent (streaming)   │
    │              │ write_body(w, r, code)  send status and body         │
    └──────────────┴──────────────────────────────────────────────────────┘
"""

import logging
from abc import ABC, abstractmethod
from http import HTTPStatus
from typing import Optional, Protocol, runtime_checkable

from ..http.headers import Headers
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse

logger = logging.getLogger(__name__)


@runtime_checkable
class HeaderWriter(Protocol):
    def write_header(self, headers: Headers) -> None: ...


class BodyWriter(ABC):
    """
    Base class for response body writers.

    ``write_init`` is a no-op by default; streaming writers override it to
    capture the sink during ``init_response``.
    """

    def write_init(self, w: HTTPResponse) -> None:
        return None

    @abstractmethod
    def write_body(self, w: HTTPResponse, request: HTTPRequest, status: int) -> None:
        """
        Send ``status`` and the body.

        Raises:
            WriteError: If encoding or writing the body fails.
        """


class ResponseWriter:
    """
    Aggregates the response-side collaborators of a handler.

    Attributes:
        header: Optional ``HeaderWriter`` applied before the body is sent.
        body: Optional ``BodyWriter``.
        status: Explicit status code; 0 means "not set" (200 with a body,
                nothing at all without one).
    """

    def __init__(
        self,
        header: Optional[HeaderWriter] = None,
        body: Optional[BodyWriter] = None,
        status: int = 0,
    ):
        self.header = header
        self.body = body
        self.status = status

    def init_response(self, w: HTTPResponse) -> None:
        if self.body is not None:
            self.body.write_init(w)

    def write_response(self, w: HTTPResponse, request: HTTPRequest) -> None:
        """
        Write headers, status and body.

            header writer set      → applied to w.headers first
            body writer set        → write_body(w, request, status or 200)
            no body, status set    → w.write_header(status) only
        """
        if self.header is not None:
            self.header.write_header(w.headers)

        if self.body is not None:
            self.body.write_body(w, request, self.status if self.status > 0 else HTTPStatus.OK)
        elif self.status > 0:
            w.write_header(self.status)
