"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the file server.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m fileserver --port 3000                          │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── FILESERVER_PORT=3000 python -m fileserver                 │
    │                                                                      │
    │   3. Defaults (this file)                                           │
    │      └── port=8080, host=0.0.0.0, root_dir="."                     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
COMPATIBILITY DEFAULTS
=============================================================================

The defaults reproduce the classic behavior of this server byte for byte:

    - no Content-Length header                (send_content_length=False)
    - decoded paths are not confined to root  (confine_to_root=False)
    - exact-case file names only              (case_insensitive=False)
    - no read/write deadline on clients       (timeout=None)

Each of these can be switched on explicitly.

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional


_TRUE_VALUES = {"1", "true", "yes", "on"}
_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
_LOG_FORMATS = {"text", "json"}


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def _env_optional_float(name: str) -> Optional[float]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return None
    return float(value)


@dataclass
class ServerConfig:
    """
    Configuration for the file server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog, buffer_size, max_request_size, timeout

    CONCURRENCY
    - max_workers, queue_size

    FILE SERVING
    - root_dir, send_content_length, confine_to_root, case_insensitive

    LOGGING
    - log_level, log_format

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "0.0.0.0"
    """All interfaces by default."""

    port: int = 8080
    """
    Port to listen on. 0 lets the OS pick a free port (tests use this).
    """

    backlog: int = 10
    """Connections the kernel queues before accept() picks them up."""

    buffer_size: int = 8192
    """Bytes requested per recv() call."""

    max_request_size: int = 64 * 1024
    """
    Upper bound on bytes buffered while waiting for the request line.
    Reading stops here even if no line terminator has arrived.
    """

    timeout: Optional[float] = None
    """
    Per-connection socket deadline in seconds. None = wait forever on a
    slow client.
    """

    # ─────────────────────────────────────────────────────────────────────
    # CONCURRENCY
    # ─────────────────────────────────────────────────────────────────────

    max_workers: int = 16
    """Worker threads, i.e. connections handled at the same time."""

    queue_size: int = 64
    """
    Accepted connections waiting for a free worker. When full, the
    accept loop blocks until a worker frees up.
    """

    # ─────────────────────────────────────────────────────────────────────
    # FILE SERVING
    # ─────────────────────────────────────────────────────────────────────

    root_dir: str = "."
    """Directory that request paths are resolved against."""

    send_content_length: bool = False
    """Add a Content-Length header to every response."""

    confine_to_root: bool = False
    """
    Refuse (with 404) any path that resolves outside root_dir, such as
    "../secret" or an absolute path.
    """

    case_insensitive: bool = False
    """
    When the exact file name does not exist, fall back to an entry in the
    same directory whose name matches ignoring case.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """DEBUG, INFO, WARNING, ERROR or CRITICAL."""

    log_format: str = "text"
    """Access log format: 'text' (Apache-like) or 'json'."""

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        FILESERVER_HOST              Bind address (default: 0.0.0.0)
        FILESERVER_PORT              Port (default: 8080)
        FILESERVER_BACKLOG           Listen backlog (default: 10)
        FILESERVER_ROOT              Root directory (default: .)
        FILESERVER_BUFFER_SIZE       recv() size (default: 8192)
        FILESERVER_MAX_REQUEST_SIZE  Request line bound (default: 65536)
        FILESERVER_TIMEOUT           Client deadline, seconds (default: none)
        FILESERVER_WORKERS           Worker threads (default: 16)
        FILESERVER_QUEUE_SIZE        Pending connections (default: 64)
        FILESERVER_CONTENT_LENGTH    Send Content-Length (default: false)
        FILESERVER_CONFINE           Confine paths to root (default: false)
        FILESERVER_CASE_INSENSITIVE  Case-insensitive lookup (default: false)
        FILESERVER_LOG_LEVEL         Logging level (default: INFO)
        FILESERVER_LOG_FORMAT        text or json (default: text)

        =====================================================================
        """
        return cls(
            host=os.getenv("FILESERVER_HOST", "0.0.0.0"),
            port=int(os.getenv("FILESERVER_PORT", "8080")),
            backlog=int(os.getenv("FILESERVER_BACKLOG", "10")),
            root_dir=os.getenv("FILESERVER_ROOT", "."),
            buffer_size=int(os.getenv("FILESERVER_BUFFER_SIZE", "8192")),
            max_request_size=int(os.getenv("FILESERVER_MAX_REQUEST_SIZE", "65536")),
            timeout=_env_optional_float("FILESERVER_TIMEOUT"),
            max_workers=int(os.getenv("FILESERVER_WORKERS", "16")),
            queue_size=int(os.getenv("FILESERVER_QUEUE_SIZE", "64")),
            send_content_length=_env_bool("FILESERVER_CONTENT_LENGTH", False),
            confine_to_root=_env_bool("FILESERVER_CONFINE", False),
            case_insensitive=_env_bool("FILESERVER_CASE_INSENSITIVE", False),
            log_level=os.getenv("FILESERVER_LOG_LEVEL", "INFO"),
            log_format=os.getenv("FILESERVER_LOG_FORMAT", "text"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Called once at startup so a bad value stops the process before
        the socket is opened.

        Raises:
            ValueError: On the first invalid setting found.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.buffer_size < 1:
            raise ValueError("buffer_size must be >= 1")

        if self.max_request_size < self.buffer_size:
            raise ValueError("max_request_size must be >= buffer_size")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.max_workers < 1:
            raise ValueError("max_workers must be >= 1")

        if self.queue_size < 1:
            raise ValueError("queue_size must be >= 1")

        if not os.path.isdir(self.root_dir):
            raise ValueError(f"root_dir is not a directory: {self.root_dir}")

        if self.log_level.upper() not in _LOG_LEVELS:
            raise ValueError(f"Invalid log_level: {self.log_level}")

        if self.log_format not in _LOG_FORMATS:
            raise ValueError(f"Invalid log_format: {self.log_format}. Use 'text' or 'json'.")
