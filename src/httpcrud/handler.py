"""
=============================================================================
HANDLER LIFECYCLE
=============================================================================

A *handler* is an action (see ``action.py``) bracketed by request and
response steps. One fresh handler instance serves exactly one request.

=============================================================================
EXECUTION ORDER
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   h = init.init()                    fresh instance per request     │
    │                                                                      │
    │   h.auth_check(request, ctx)    ─┐                                  │
    │   h.read_request(request, ctx)   ├─ raise → propagated as is,       │
    │   h.init_response(w)            ─┘          done() is NOT called    │
    │                                                                      │
    │   execute_action(h)                  before_validate ... done       │
    │        │                                                             │
    │        ├── done() returned an exception → propagated,               │
    │        │                                  write_response skipped    │
    │        ▼                                                             │
    │   h.write_response(w, request)       raise → propagated             │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
WRITING A HANDLER
=============================================================================

``HandlerBase`` gives every step a no-op default and delegates the
request/response steps to an optional ``RequestReader`` and
``ResponseWriter``:

    class ShowUser(HandlerBase):
        def __init__(self, users):
            self.users = users
            self.user_id = Slot(0)
            self.out = {}
            self.reader = RequestReader(path=Int64({"id": self.user_id}))
            self.writer = ResponseWriter(body=JSON(self.out))

        def execute(self):
            self.out.update(self.users.get(self.user_id.value))

    routes = [RouteDef("/users/:id", "GET", lambda: ShowUser(users))]

=============================================================================
"""

import logging
from typing import Callable, Optional, Protocol, runtime_checkable

from .action import Action, NopAction, execute_action
from .http.context import RequestContext
from .http.request import HTTPRequest
from .http.response import HTTPResponse
from .httpio.reader import RequestReader
from .httpio.writer import ResponseWriter

logger = logging.getLogger(__name__)


@runtime_checkable
class Handler(Action, Protocol):
    """The request-scoped lifecycle driven by ``serve_handler``."""

    def auth_check(self, request: HTTPRequest, ctx: RequestContext) -> None: ...

    def read_request(self, request: HTTPRequest, ctx: RequestContext) -> None: ...

    def init_response(self, w: HTTPResponse) -> None: ...

    def write_response(self, w: HTTPResponse, request: HTTPRequest) -> None: ...


@runtime_checkable
class HandlerInitializer(Protocol):
    """
    Produces the handler for one request.

    ``init`` is called once per incoming request; returning a new
    instance each time guarantees requests never share handler state.
    """

    def init(self) -> Handler: ...


class FuncInitializer:
    """``HandlerInitializer`` calling a zero-argument factory (or a class)."""

    def __init__(self, factory: Callable[[], Handler]):
        self.factory = factory

    def init(self) -> Handler:
        return self.factory()

    def __repr__(self) -> str:
        return f"FuncInitializer({getattr(self.factory, '__name__', self.factory)!r})"


class HandlerBase(NopAction):
    """
    No-op handler to subclass.

    Attributes:
        reader: Optional ``RequestReader``; when set, ``read_request``
                delegates to it.
        writer: Optional ``ResponseWriter``; when set, ``init_response``
                and ``write_response`` delegate to it.
    """

    reader: Optional[RequestReader] = None
    writer: Optional[ResponseWriter] = None

    def auth_check(self, request: HTTPRequest, ctx: RequestContext) -> None:
        return None

    def read_request(self, request: HTTPRequest, ctx: RequestContext) -> None:
        if self.reader is not None:
            self.reader.read_request(request, ctx)

    def init_response(self, w: HTTPResponse) -> None:
        if self.writer is not None:
            self.writer.init_response(w)

    def write_response(self, w: HTTPResponse, request: HTTPRequest) -> None:
        if self.writer is not None:
            self.writer.write_response(w, request)


def serve_handler(
    init: HandlerInitializer,
    w: HTTPResponse,
    request: HTTPRequest,
    ctx: Optional[RequestContext] = None,
) -> None:
    """
    Create a handler with ``init`` and run its full lifecycle.

    Args:
        init: Initializer producing the request's handler.
        w: Response sink.
        request: The incoming request.
        ctx: Request context; defaults to ``request.context``.

    Raises:
        Exception: The first failure of auth_check, read_request or
                   init_response; the exception returned by done(); or
                   the failure of write_response.
    """
    if ctx is None:
        ctx = request.context

    h = init.init()
    h.auth_check(request, ctx)
    h.read_request(request, ctx)
    h.init_response(w)

    execute_action(h)

    h.write_response(w, request)
