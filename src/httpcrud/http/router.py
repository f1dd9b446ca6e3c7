"""
=============================================================================
URL ROUTER
=============================================================================

Maps (method, path pattern) pairs to handlers and hands each dispatched
request the path parameters its pattern declared.

Supported patterns:
- Static paths: /users, /api/health
- Named parameters: /users/:id, /posts/:post_id/comments/:comment_id
- Catch-all: /files/*filepath (last segment only)

=============================================================================
DISPATCH FLOW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   router(w, request)          GET /users/123                        │
    │        │                                                             │
    │        ▼                                                             │
    │   ┌─────────────────────────────────────────────────────────────┐   │
    │   │  GET  /health      → HealthHandler route                    │   │
    │   │  GET  /users/:id   → UserHandler route      ← MATCH         │   │
    │   │  POST /users       → CreateUserHandler route                │   │
    │   └─────────────────────────────────────────────────────────────┘   │
    │        │                                                             │
    │        ▼                                                             │
    │   request.path_params = {"id": "123"}                               │
    │   request.context.params = {"id": "123"}                            │
    │   handler(w, request)                                               │
    │                                                                      │
    │   no pattern matches            → 404 page not found                │
    │   pattern matches, wrong method → 405 + Allow header                │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PATTERN COMPILATION
=============================================================================

    Pattern:  /users/:id/posts/:post_id
    Regex:    ^/users/(?P<id>[^/]+)/posts/(?P<post_id>[^/]+)$

    Pattern:  /files/*filepath
    Regex:    ^/files/(?P<filepath>.*)$

Routes are tried in registration order; the first match wins, so
/users/me must be registered before /users/:id.

=============================================================================
"""

import logging
import re
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Callable, Dict, List, Optional, Tuple

from .request import HTTPRequest
from .response import HTTPResponse, error, not_found

logger = logging.getLogger(__name__)


# Handler: writes the response for a request into the sink
Handler = Callable[[HTTPResponse, HTTPRequest], None]


@dataclass
class Route:
    """
    A registered route.

        Route(
            path="/users/:id",      # URL pattern
            method="GET",           # HTTP method (None = any)
            handler=<callable>,     # handler(w, request)
        )
    """

    path: str
    method: Optional[str]
    handler: Handler

    _pattern: Optional[re.Pattern] = field(default=None, repr=False)
    _param_names: List[str] = field(default_factory=list, repr=False)


@dataclass
class RouteMatch:
    route: Route
    params: Dict[str, str]


class Router:
    """
    HTTP request router with path parameters.

    A ``Router`` is itself a handler: call it with ``(w, request)``.

    Usage:
        router = Router()
        router.add_route("/users/:id", show_user, method="GET")
        router.add_route("/users", create_user, method="POST")
    """

    def __init__(self, prefix: str = ""):
        self.prefix = prefix.rstrip("/")
        self._routes: List[Route] = []

    # =========================================================================
    # ROUTE REGISTRATION
    # =========================================================================

    def add_route(
        self,
        path: str,
        handler: Handler,
        method: Optional[str] = None,
    ) -> Route:
        """
        Register a route.

        Args:
            path: URL pattern (e.g., /users/:id)
            handler: Callable taking ``(w, request)``
            method: HTTP method (None for any method)

        Raises:
            ValueError: If the same method and pattern are already registered.
        """
        full_path = self.prefix + path
        method = method.upper() if method else None

        for existing in self._routes:
            if existing.path == full_path and existing.method == method:
                raise ValueError(f"route already registered: {method or 'ANY'} {full_path}")

        pattern, param_names = self._compile_pattern(full_path)
        route = Route(
            path=full_path,
            method=method,
            handler=handler,
            _pattern=pattern,
            _param_names=param_names,
        )
        self._routes.append(route)

        logger.debug("Registered route %s %s", method or "ANY", full_path)
        return route

    def _compile_pattern(self, path: str) -> Tuple[re.Pattern, List[str]]:
        """
        Compile a path pattern into an anchored regex.

        Returns:
            Tuple of (compiled regex, list of parameter names)
        """
        param_names: List[str] = []
        regex_parts = ["^"]

        for segment in path.split("/"):
            if not segment:
                continue
            regex_parts.append("/")

            if segment.startswith(":"):
                param_names.append(segment[1:])
                regex_parts.append(f"(?P<{segment[1:]}>[^/]+)")
            elif segment.startswith("*"):
                name = segment[1:] or "wildcard"
                param_names.append(name)
                regex_parts.append(f"(?P<{name}>.*)")
                break
            else:
                regex_parts.append(re.escape(segment))

        if len(regex_parts) == 1:
            regex_parts.append("/")
        regex_parts.append("$")
        return re.compile("".join(regex_parts)), param_names

    # =========================================================================
    # ROUTE MATCHING
    # =========================================================================

    def match(self, method: str, path: str) -> Optional[RouteMatch]:
        """Return the first route matching ``method`` and ``path``."""
        path = "/" + path.strip("/") if path != "/" else "/"

        for route in self._routes:
            if route.method and route.method != method.upper():
                continue
            found = route._pattern.match(path) if route._pattern else None
            if found:
                return RouteMatch(route=route, params=found.groupdict())
        return None

    def get_allowed_methods(self, path: str) -> List[str]:
        """Methods with a route matching ``path`` (for the Allow header)."""
        path = "/" + path.strip("/") if path != "/" else "/"
        methods = set()
        for route in self._routes:
            if route._pattern and route._pattern.match(path):
                if not route.method:
                    return ["DELETE", "GET", "HEAD", "OPTIONS", "PATCH", "POST", "PUT"]
                methods.add(route.method)
        return sorted(methods)

    def __call__(self, w: HTTPResponse, request: HTTPRequest) -> None:
        """
        Dispatch ``request`` to the matching route.

        Path parameters are stored on ``request.path_params`` and
        ``request.context.params`` before the handler runs.
        """
        found = self.match(request.method, request.path)
        if found:
            request.path_params = dict(found.params)
            request.context.params.update(found.params)
            found.route.handler(w, request)
            return

        allowed = self.get_allowed_methods(request.path)
        if allowed:
            w.headers.set("Allow", ", ".join(allowed))
            error(w, HTTPStatus.METHOD_NOT_ALLOWED.phrase, HTTPStatus.METHOD_NOT_ALLOWED)
            return

        not_found(w, request)

    def routes(self) -> List[Route]:
        return list(self._routes)
