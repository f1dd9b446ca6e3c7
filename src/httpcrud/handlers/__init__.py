"""
Built-in lifecycle handlers.

    health.py   HealthHandler / HealthChecks   JSON health report (200/503)
"""

from .health import HealthCheck, HealthChecks, HealthHandler, HealthStatus, NoStore

__all__ = [
    "HealthCheck",
    "HealthChecks",
    "HealthHandler",
    "HealthStatus",
    "NoStore",
]
