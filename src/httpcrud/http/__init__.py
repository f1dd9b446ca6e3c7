"""
=============================================================================
HTTP COLLABORATORS
=============================================================================

The request, response and dispatch objects the handler lifecycle runs
against.

=============================================================================
MODULE COMPONENTS
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │ headers.py   Headers          case-insensitive multi-valued map     │
    │ context.py   RequestContext   path params + cancellation signal    │
    │ request.py   HTTPRequest      method, path, query, headers, body   │
    │ response.py  HTTPResponse     header/status/body sink               │
    │              error, not_found, redirect                              │
    │ router.py    Router           (method, pattern) → handler           │
    │ mux.py       ServeMux         path prefix → handler                  │
    └─────────────────────────────────────────────────────────────────────┘

A handler at this level is any callable ``handler(w, request)``.
``Router`` and ``ServeMux`` are handlers themselves, so they nest.

=============================================================================
"""

from .context import RequestContext
from .headers import Headers, canonical_name
from .mux import ServeMux
from .request import HTTPRequest
from .response import HTTPResponse, error, format_http_date, not_found, redirect, status_text
from .router import Handler, Route, RouteMatch, Router

__all__ = [
    "Handler",
    "Headers",
    "HTTPRequest",
    "HTTPResponse",
    "RequestContext",
    "Route",
    "RouteMatch",
    "Router",
    "ServeMux",
    "canonical_name",
    "error",
    "format_http_date",
    "not_found",
    "redirect",
    "status_text",
]
