"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Settings for hosting a route table with ``httpcrud.server.HTTPServer``.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m httpcrud --port 3000                            │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── HTTPCRUD_PORT=3000 python -m httpcrud                     │
    │                                                                      │
    │   3. Default values (in this dataclass)                            │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
ENVIRONMENT VARIABLES
=============================================================================

    HTTPCRUD_HOST              Bind address            (127.0.0.1)
    HTTPCRUD_PORT              Listen port             (8080)
    HTTPCRUD_TIMEOUT           Socket timeout, seconds (30)
    HTTPCRUD_MAX_REQUEST_SIZE  Body limit, bytes       (10485760)
    HTTPCRUD_LOG_LEVEL         Logging level           (INFO)
    HTTPCRUD_PATH_PREFIX       Prefix for all routes   ("")

=============================================================================
"""

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

ENV_PREFIX = "HTTPCRUD_"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ServerConfig:
    """
    Configuration for the HTTP server.

    Development:
        ServerConfig(host="127.0.0.1", port=8080, log_level="DEBUG")

    Production:
        ServerConfig(host="0.0.0.0", port=80, log_level="INFO",
                     path_prefix="/api")
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """
    The IP address to bind to.
    - "127.0.0.1" - Localhost only (development)
    - "0.0.0.0" - All network interfaces (production)
    """

    port: int = 8080
    """The port number to listen on (0 picks a free port)."""

    timeout: Optional[float] = 30.0
    """
    Socket timeout in seconds for reading a request.
    None = blocking (a slow client can hold a thread forever).
    """

    # ─────────────────────────────────────────────────────────────────────
    # HTTP SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    max_request_size: int = 10 * 1024 * 1024  # 10 MB
    """
    Maximum allowed request body size in bytes.
    Larger bodies are answered with 413 before any handler runs.
    """

    path_prefix: str = ""
    """Prefix applied to every registered route ("/api" → "/api/users")."""

    server_name: str = "httpcrud/1.0"
    """Value of the Server response header."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."""

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ServerConfig":
        """
        Create configuration from ``HTTPCRUD_*`` environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ``.

        Raises:
            ValueError: A numeric variable does not parse.

        Usage:
            HTTPCRUD_PORT=3000 HTTPCRUD_LOG_LEVEL=DEBUG python -m httpcrud
        """
        env = os.environ if environ is None else environ

        def get(name: str, default: str) -> str:
            return env.get(ENV_PREFIX + name, default)

        timeout = get("TIMEOUT", "30")
        return cls(
            host=get("HOST", "127.0.0.1"),
            port=int(get("PORT", "8080")),
            timeout=float(timeout) if timeout.lower() != "none" else None,
            max_request_size=int(get("MAX_REQUEST_SIZE", str(10 * 1024 * 1024))),
            log_level=get("LOG_LEVEL", "INFO").upper(),
            path_prefix=get("PATH_PREFIX", ""),
        )

    def validate(self) -> None:
        """
        Validate configuration values at startup (fail fast).

        Raises:
            ValueError: Describing the first invalid setting.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.max_request_size < 0:
            raise ValueError("max_request_size must be >= 0")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Invalid log_level: {self.log_level}. Must be one of {', '.join(LOG_LEVELS)}.")

        if self.path_prefix and (not self.path_prefix.startswith("/") or self.path_prefix.endswith("/")):
            raise ValueError(f"path_prefix must start and not end with '/': {self.path_prefix!r}")

    @property
    def log_level_number(self) -> int:
        return getattr(logging, self.log_level.upper(), logging.INFO)
