"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the web server.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   Priority (highest to lowest):                                     │
    │                                                                     │
    │   1. Command-line arguments                                         │
    │      └── python -m webserver --port 3000                            │
    │                                                                     │
    │   2. Environment variables                                          │
    │      └── WEB_PORT=3000 python -m webserver                          │
    │                                                                     │
    │   3. Defaults in this dataclass                                     │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class ServerConfig:
    """
    Configuration for the web server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    CONTENT
    - root

    NETWORK SETTINGS
    - host, port, backlog, timeout, accept_timeout

    REQUEST READING
    - buffer_size, read_full_headers, max_request_size

    CONCURRENCY
    - workers

    LOGGING
    - log_level, log_file

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # CONTENT
    # ─────────────────────────────────────────────────────────────────────

    root: str = "."
    """
    Document root. Every request resolves to a single file directly inside
    this directory.
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """
    The IP address to bind to.
    - "127.0.0.1" - Localhost only
    - "0.0.0.0" - All network interfaces
    """

    port: int = 8080
    """The port number to listen on. 0 lets the OS pick a free one."""

    backlog: int = 128
    """Maximum number of queued connections."""

    timeout: Optional[float] = 30.0
    """
    Per-connection socket timeout in seconds.
    None = blocking forever (one silent client would stall the
    synchronous loop).
    """

    accept_timeout: float = 1.0
    """
    How long accept() blocks before the loop re-checks the running flag.
    Bounds how long stop() takes to be noticed.
    """

    # ─────────────────────────────────────────────────────────────────────
    # REQUEST READING
    # ─────────────────────────────────────────────────────────────────────

    buffer_size: int = 1024
    """
    Size of the single receive buffer in bytes.
    With read_full_headers off this is a HARD CEILING on request size:
    anything beyond it is never read.
    """

    read_full_headers: bool = False
    """
    Keep reading until the blank line that ends the headers (or
    max_request_size) instead of trusting one recv() to hold the request.
    """

    max_request_size: int = 64 * 1024
    """Upper bound on bytes read when read_full_headers is on."""

    # ─────────────────────────────────────────────────────────────────────
    # CONCURRENCY
    # ─────────────────────────────────────────────────────────────────────

    workers: int = 0
    """
    Worker threads for handling connections.
    0 = handle each connection inline in the accept loop, one at a time.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."""

    log_file: Optional[str] = None
    """
    File the event log is appended to, in addition to the console.
    The CLI defaults this to ./myOwnWebServer.log.
    """

    # ─────────────────────────────────────────────────────────────────────
    # SERVER IDENTITY
    # ─────────────────────────────────────────────────────────────────────

    server_name: str = "webserver/1.0"
    """Value of the Server header."""

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        WEB_ROOT        Document root (default: .)
        WEB_HOST        Server host (default: 127.0.0.1)
        WEB_PORT        Server port (default: 8080)
        WEB_WORKERS     Worker threads, 0 = synchronous (default: 0)
        WEB_LOG_FILE    Event log file (default: none)
        WEB_LOG_LEVEL   Logging level (default: INFO)

        =====================================================================
        """
        return cls(
            root=os.getenv("WEB_ROOT", "."),
            host=os.getenv("WEB_HOST", "127.0.0.1"),
            port=int(os.getenv("WEB_PORT", "8080")),
            workers=int(os.getenv("WEB_WORKERS", "0")),
            log_file=os.getenv("WEB_LOG_FILE"),
            log_level=os.getenv("WEB_LOG_LEVEL", "INFO"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Called at startup so a bad value fails immediately rather than on
        the first request.

        Raises:
            ValueError: On the first invalid setting found.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if not os.path.isdir(self.root):
            raise ValueError(f"Document root is not a directory: {self.root}")

        if self.buffer_size < 64:
            raise ValueError("buffer_size must be >= 64")

        if self.max_request_size < self.buffer_size:
            raise ValueError("max_request_size must be >= buffer_size")

        if self.workers < 0:
            raise ValueError("workers must be >= 0")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.accept_timeout <= 0:
            raise ValueError("accept_timeout must be > 0")
