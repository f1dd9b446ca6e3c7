"""
=============================================================================
HEALTH CHECK HANDLER
=============================================================================

A ready-made lifecycle handler answering health checks.

=============================================================================
RESPONSE FORMAT
=============================================================================

    Healthy (200 OK):
    {"status":"healthy","uptime_seconds":3600,
     "checks":{"database":{"status":"healthy","message":"OK"}}}

    Unhealthy (503 Service Unavailable):
    {"status":"unhealthy","uptime_seconds":3600,
     "checks":{"database":{"status":"unhealthy","error":"Connection refused"}}}

    Always sent with "Cache-Control: no-store".

=============================================================================
USAGE
=============================================================================

    health = HealthChecks()
    health.add_check("database", check_database)

    routes = [RouteDef("/health", "GET", health)]   # health.init() per request

Or, with no checks at all:

    routes = [RouteDef("/health", "GET", HealthHandler)]

=============================================================================
"""

import logging
import platform
import sys
import time
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any, Callable, Dict, Optional

from ..handler import HandlerBase
from ..http.headers import Headers
from ..httpio.body import JSON
from ..httpio.writer import ResponseWriter

logger = logging.getLogger(__name__)

# Uptime origin for handlers built without a start time
PROCESS_STARTED_AT = time.time()


@dataclass
class HealthStatus:
    """
    Result of one health check.

    Example:
        def check_cache():
            latency = cache.ping()
            return HealthStatus(latency < 100, details={"latency_ms": latency})
    """

    healthy: bool
    message: str = "OK"
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "status": "healthy" if self.healthy else "unhealthy",
            "message": self.message,
            **self.details,
        }


HealthCheck = Callable[[], HealthStatus]


class NoStore:
    """Header writer forbidding caches from storing the response."""

    def write_header(self, headers: Headers) -> None:
        headers.set("Cache-Control", "no-store")


class HealthHandler(HandlerBase):
    """
    Runs the registered checks in ``execute`` and writes the report as
    JSON: 200 when every check passes, 503 otherwise.

    Without ``started_at``, uptime counts from module import, so a
    handler built fresh per request still reports process uptime.
    """

    def __init__(
        self,
        checks: Optional[Dict[str, HealthCheck]] = None,
        started_at: Optional[float] = None,
        include_system_info: bool = False,
    ):
        self.checks = dict(checks or {})
        self.started_at = PROCESS_STARTED_AT if started_at is None else started_at
        self.include_system_info = include_system_info

        self.report: Dict[str, Any] = {}
        self.writer = ResponseWriter(header=NoStore(), body=JSON(self.report))

    def execute(self) -> None:
        results = {}
        all_healthy = True

        for name, check in self.checks.items():
            try:
                status = check()
                results[name] = status.to_dict()
                if not status.healthy:
                    all_healthy = False
            except Exception as e:
                logger.warning(f"Health check {name!r} raised: {e}")
                results[name] = {"status": "unhealthy", "error": str(e)}
                all_healthy = False

        self.report["status"] = "healthy" if all_healthy else "unhealthy"
        self.report["uptime_seconds"] = int(time.time() - self.started_at)
        if results:
            self.report["checks"] = results
        if self.include_system_info:
            self.report["system"] = {
                "hostname": platform.node(),
                "platform": platform.system(),
                "python_version": sys.version.split()[0],
            }

        self.writer.status = HTTPStatus.OK if all_healthy else HTTPStatus.SERVICE_UNAVAILABLE


class HealthChecks:
    """
    Registry of named checks; also the route initializer producing a
    ``HealthHandler`` per request.
    """

    def __init__(self, include_system_info: bool = False):
        self.include_system_info = include_system_info
        self._checks: Dict[str, HealthCheck] = {}
        self._start_time = time.time()

    def add_check(self, name: str, check: HealthCheck) -> "HealthChecks":
        """
        Add a check; runs on every request, so keep it fast.

        Returns:
            Self for method chaining.
        """
        self._checks[name] = check
        return self

    def init(self) -> HealthHandler:
        return HealthHandler(self._checks, self._start_time, self.include_system_info)

    @property
    def uptime(self) -> float:
        return time.time() - self._start_time
