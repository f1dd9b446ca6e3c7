"""
Request multiplexer.

A ``ServeMux`` matches the request path against registered patterns and
calls the handler of the best match:

    "/health"       exact pattern, matches only "/health"
    "/api/"         subtree pattern, matches "/api/" and everything below it
    "/"             matches every path no other pattern claims

The longest matching pattern wins. A request for "/api" when only the
subtree "/api/" is registered is redirected (301) to "/api/".

Unlike ``Router``, the multiplexer knows nothing about methods or path
parameters.
"""

import logging
import threading
from http import HTTPStatus
from typing import Dict, Optional, Tuple

from .request import HTTPRequest
from .response import HTTPResponse, not_found, redirect
from .router import Handler

logger = logging.getLogger(__name__)


class ServeMux:
    """
    Path-prefix request multiplexer.

    Usage:
        mux = ServeMux()
        mux.handle("/health", health)
        mux.handle("/static/", files)
        mux(w, request)
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._entries: Dict[str, Handler] = {}

    def handle(self, pattern: str, handler: Handler) -> None:
        """
        Register ``handler`` for ``pattern``.

        Raises:
            ValueError: On an empty pattern or a pattern registered twice.
        """
        if not pattern:
            raise ValueError("invalid pattern: empty")
        if handler is None:
            raise ValueError(f"nil handler for pattern {pattern!r}")

        with self._lock:
            if pattern in self._entries:
                raise ValueError(f"multiple registrations for {pattern}")
            self._entries[pattern] = handler
        logger.debug("Mux registered %s", pattern)

    def handle_func(self, pattern: str):
        """Decorator form of ``handle``."""
        def decorator(handler: Handler) -> Handler:
            self.handle(pattern, handler)
            return handler
        return decorator

    def match(self, path: str) -> Tuple[Optional[Handler], str]:
        """Return ``(handler, pattern)`` of the longest matching pattern."""
        best: Optional[str] = None
        with self._lock:
            for pattern in self._entries:
                if not _path_matches(pattern, path):
                    continue
                if best is None or len(pattern) > len(best):
                    best = pattern
            if best is None:
                return None, ""
            return self._entries[best], best

    def __call__(self, w: HTTPResponse, request: HTTPRequest) -> None:
        if self._should_redirect(request.path):
            target = request.path + "/"
            if request.raw_query:
                target += "?" + request.raw_query
            redirect(w, request, target, HTTPStatus.MOVED_PERMANENTLY)
            return

        handler, _ = self.match(request.path)
        if handler is None:
            not_found(w, request)
            return
        handler(w, request)

    def _should_redirect(self, path: str) -> bool:
        if path.endswith("/"):
            return False
        with self._lock:
            return path not in self._entries and path + "/" in self._entries


def _path_matches(pattern: str, path: str) -> bool:
    if not pattern.endswith("/"):
        return pattern == path
    return path.startswith(pattern)
