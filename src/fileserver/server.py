"""
=============================================================================
FILE SERVER
=============================================================================

Wires the pieces together:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   ServerConfig ──► FileServer                                        │
    │                       │                                              │
    │                       ├── SocketServer      accept loop (main thread)│
    │                       ├── ThreadPool        bounded workers          │
    │                       └── ConnectionHandler per-connection pipeline  │
    │                                                                      │
    │   accept() ─► Connection ─► pool.submit(handler.handle, conn)        │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
USAGE
=============================================================================

    from fileserver import FileServer, ServerConfig

    server = FileServer(ServerConfig(port=8080, root_dir="./public"))
    server.run()  # blocks until Ctrl+C / SIGTERM

=============================================================================
"""

import logging
import threading
import time
from typing import Optional, Tuple

from . import __version__
from .config import ServerConfig
from .core import SocketServer, Connection, ThreadPool
from .handlers import ConnectionHandler


logger = logging.getLogger(__name__)

BANNER_TIME_FORMAT = "%a %d %B %Y %I:%M:%S %p"


def format_start_time(fmt: str = BANNER_TIME_FORMAT, when: Optional[float] = None) -> str:
    """
    Local time formatted for the startup banner.

    Errors propagate: a server that cannot format its start time does not
    start.
    """
    return time.strftime(fmt, time.localtime(when))


class FileServer:
    """
    HTTP/1.x file server.

    =========================================================================
    LIFECYCLE
    =========================================================================

        __init__()   validate config, build components (no socket yet)
        run()        logging, workers, banner, then accept loop (BLOCKS)
        shutdown()   from another thread or a signal: stop accepting
        run() ends   queued connections finish, workers exit

    =========================================================================
    """

    def __init__(
        self,
        config: Optional[ServerConfig] = None,
        handler: Optional[ConnectionHandler] = None,
    ):
        """
        Args:
            config: Server configuration; defaults if omitted.
            handler: Connection handler; built from ``config`` if omitted.

        Raises:
            ValueError: If the configuration is invalid.
        """
        self.config = config or ServerConfig()
        self.config.validate()

        self._socket_server = SocketServer(self.config)
        self._thread_pool = ThreadPool(
            max_workers=self.config.max_workers,
            queue_size=self.config.queue_size,
        )
        self._handler = handler or ConnectionHandler.from_config(self.config)

        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (host, port); the real port once listening."""
        return self._socket_server.address

    # =========================================================================
    # SERVER LIFECYCLE
    # =========================================================================

    def run(self, configure_logging: bool = True, banner: bool = True):
        """
        Start serving (blocking).

        Args:
            configure_logging: Install the default logging setup.
                               Embedders with their own setup pass False.
            banner: Print the startup banner to stdout.

        Raises:
            OSError: If the listening socket cannot be set up.
        """
        if configure_logging:
            self._setup_logging()

        self._running = True
        self._thread_pool.start()

        started_at = format_start_time()
        logger.info(f"Serving {self.config.root_dir!r} on {self.config.host}:{self.config.port}")

        if banner:
            # The real port is only known once listening (port 0)
            threading.Thread(
                target=self._print_banner_when_ready,
                args=(started_at,),
                name="banner",
                daemon=True,
            ).start()

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def _print_banner_when_ready(self, started_at: str):
        if self._socket_server.wait_until_ready(timeout=5.0):
            self._print_startup_banner(started_at)

    def _print_startup_banner(self, started_at: str):
        host, port = self.address
        browse_host = "127.0.0.1" if host in ("0.0.0.0", "") else host

        print("-------------------------------------------------------------")
        print("                                                             ")
        print(f"              FILESERVER {__version__}                       ")
        print("                                                             ")
        print("-------------------------------------------------------------")
        print(f" * Server initiated at {started_at}")
        print(f" * Serving files from {self.config.root_dir}")
        print(f" * Listening on port {port} ...")
        print(f" * Browse to http://{browse_host}:{port} to access the server")
        print(f" * Workers: {self.config.max_workers}, queue: {self.config.queue_size}")
        print()

    def _setup_logging(self):
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("fileserver").setLevel(level)

    def shutdown(self):
        """Stop accepting connections; run() returns once drained."""
        self._socket_server.shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the server is listening. Returns False on timeout."""
        return self._socket_server.wait_until_ready(timeout)

    def _shutdown(self):
        logger.info("Shutting down server...")
        self._running = False
        self._thread_pool.shutdown(wait=True, timeout=30.0)
        logger.info("Server stopped")

    # =========================================================================
    # CONNECTION DISPATCH
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """
        Hand a new connection to the worker pool.

        Runs on the accept loop's thread. Blocks while the pool's queue is
        full, which is the server's admission control.
        """
        try:
            self._thread_pool.submit(self._handler.handle, args=(conn,))
        except RuntimeError as e:
            logger.warning(f"[{conn.id}] Dropping connection: {e}")
            conn.close()
