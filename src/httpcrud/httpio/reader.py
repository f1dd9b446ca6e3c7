"""
Request-side capability interfaces and the ``RequestReader`` aggregator.

A handler reads its input through up to four narrow collaborators, each
looking at one part of the request:

    ┌──────────────┬──────────────────────────┬──────────────────────────┐
    │ Collaborator │ Method                   │ Receives                 │
    ├──────────────┼──────────────────────────┼──────────────────────────┤
    │ HeaderReader │ read_header(headers)     │ request.headers          │
    │ QueryReader  │ read_query(query)        │ request.query_params     │
    │ PathReader   │ read_path(params)        │ router path parameters   │
    │ BodyReader   │ read_body(request)       │ the whole request        │
    └──────────────┴──────────────────────────┴──────────────────────────┘

``RequestReader`` runs them in that order and stops at the first one that
raises.
"""

import logging
from typing import Dict, List, Optional, Protocol, runtime_checkable

from ..http.context import RequestContext
from ..http.headers import Headers
from ..http.request import HTTPRequest

logger = logging.getLogger(__name__)


@runtime_checkable
class HeaderReader(Protocol):
    def read_header(self, headers: Headers) -> None: ...


@runtime_checkable
class QueryReader(Protocol):
    def read_query(self, query: Dict[str, List[str]]) -> None: ...


@runtime_checkable
class PathReader(Protocol):
    def read_path(self, params: Dict[str, str]) -> None: ...


@runtime_checkable
class BodyReader(Protocol):
    def read_body(self, request: HTTPRequest) -> None: ...


class RequestReader:
    """
    Aggregates the request-side collaborators of a handler.

    Any collaborator may be None, in which case that part of the request
    is not read.

    Usage:
        form = SignupForm()
        reader = RequestReader(
            header=BearerToken(token),
            path=Int64({"id": user_id}),
            body=JSON(form),
        )
        reader.read_request(request, ctx)
        reader.request.path   # the request just read

    Attributes:
        request: The request passed to the last ``read_request`` call.
        context: The context passed to the last ``read_request`` call.
    """

    def __init__(
        self,
        header: Optional[HeaderReader] = None,
        query: Optional[QueryReader] = None,
        path: Optional[PathReader] = None,
        body: Optional[BodyReader] = None,
    ):
        self.header = header
        self.query = query
        self.path = path
        self.body = body

        self.request: Optional[HTTPRequest] = None
        self.context: Optional[RequestContext] = None

    def read_request(self, request: HTTPRequest, ctx: Optional[RequestContext]) -> None:
        """
        Read the request through each configured collaborator.

        Order is header → query → path → body. Path parameters come from
        ``ctx.params`` when a context is given, else from
        ``request.path_params``.

        Raises:
            Exception: Whatever the first failing collaborator raised.
        """
        self.request = request
        self.context = ctx

        if self.header is not None:
            self.header.read_header(request.headers)

        if self.query is not None:
            self.query.read_query(request.query_params)

        if self.path is not None:
            params = ctx.params if ctx is not None and ctx.params else request.path_params
            self.path.read_path(params)

        if self.body is not None:
            self.body.read_body(request)
