"""
Request-scoped context.

Every dispatched request carries one ``RequestContext``. The router stores
the parsed path parameters on it, and the host server cancels it once the
request has been answered (or the client went away), so long-running
handler steps can check ``ctx.cancelled`` between units of work.
"""

import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class RequestContext:
    """
    Mutable context passed alongside the request through the handler steps.

    Attributes:
        params: Path parameters extracted by the router
                ("/users/:id" with "/users/42" → {"id": "42"}).
        values: Free-form request-scoped values for handler steps
                (e.g. the authenticated principal set by auth_check).
    """

    params: Dict[str, str] = field(default_factory=dict)
    values: Dict[str, Any] = field(default_factory=dict)

    _done: threading.Event = field(default_factory=threading.Event, repr=False, compare=False)

    def cancel(self) -> None:
        """Signal that the request is over. Idempotent."""
        self._done.set()

    @property
    def cancelled(self) -> bool:
        return self._done.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until cancelled or ``timeout`` elapses; return ``cancelled``."""
        return self._done.wait(timeout)
