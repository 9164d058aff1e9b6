"""
=============================================================================
LOW-LEVEL TCP SOCKET SERVER
=============================================================================

Owns the listening socket: create, bind, listen, and the accept loop.
Every accepted socket is wrapped in a Connection and handed to a callback;
this module never reads or writes client data itself.

=============================================================================
SOCKET LIFECYCLE (Server Side)
=============================================================================

    1. socket()    Create a TCP socket
    2. bind()      Reserve HOST:PORT
    3. listen()    Let the kernel queue incoming connections (backlog)
    4. accept()    Take one connection off the queue → NEW client socket
                   (the listening socket keeps listening)
    5. close()     Release the listening socket on shutdown

    listen(0.0.0.0:8080, backlog=10)
          │
          ▼
    accept() ─── every ACCEPT_POLL_INTERVAL: still running?
          │
          ▼
    Connection(client socket, buffer sizes, timeout)
          │
          ▼
    connection_handler(conn)   → FileServer queues it for a worker
          │
          └──► back to accept()

=============================================================================
FAILURE MODES
=============================================================================

    socket/bind/listen fails  → logged and re-raised (startup is over)
    accept() fails            → logged, the loop keeps going
    SIGINT / SIGTERM          → shutdown(): the loop exits within ~1s

=============================================================================
"""

import socket
import signal
import logging
import threading
from typing import Optional, Callable, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)

# accept() wakes up this often to notice shutdown()
ACCEPT_POLL_INTERVAL = 1.0

# Turned into a graceful stop when running on the main thread
STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class SocketServer:
    """
    Low-level TCP socket server.

    Usage:
        def handle_connection(conn: Connection):
            ...

        server = SocketServer(config)
        server.start(handle_connection)  # Blocks until shutdown()
    """

    def __init__(self, config: ServerConfig):
        """
        Args:
            config: Host, port, backlog and per-connection settings.

        The socket is created lazily in start().
        """
        self.config = config

        self._socket: Optional[socket.socket] = None
        self._running = False

        self._ready_event = threading.Event()

        self._previous_handlers: dict = {}

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """
        The address actually bound. With port 0 this holds the port the
        OS picked; before start() it is the configured address.
        """
        if self._socket is not None:
            host, port = self._socket.getsockname()[:2]
            return (host, port)
        return (self.config.host, self.config.port)

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

        # Restarting the server must not fail on a port in TIME_WAIT
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        sock.settimeout(ACCEPT_POLL_INTERVAL)
        return sock

    def _setup_signals(self):
        """
        Turn SIGTERM (docker stop, kill) and SIGINT (Ctrl+C) into a clean
        shutdown. Python only allows this from the main thread, so a
        server started from a worker thread (tests) skips it.
        """
        if threading.current_thread() is not threading.main_thread():
            return

        for sig in STOP_SIGNALS:
            self._previous_handlers[sig] = signal.signal(sig, self._on_stop_signal)

    def _on_stop_signal(self, signum, frame):
        logger.info(f"{signal.Signals(signum).name} received, no longer accepting connections")
        self.shutdown()

    def _restore_signals(self):
        for sig, handler in self._previous_handlers.items():
            signal.signal(sig, handler)
        self._previous_handlers.clear()

    def start(self, connection_handler: Callable[[Connection], None]):
        """
        Bind, listen and run the accept loop. BLOCKS until shutdown().

        Args:
            connection_handler: Called with each new Connection, from the
                                accept loop's thread. It must return
                                quickly (hand off to a worker).

        Raises:
            OSError: If the socket cannot be created, bound or put into
                     listening mode.
        """
        self._socket = self._create_socket()

        try:
            self._socket.bind((self.config.host, self.config.port))
            self._socket.listen(self.config.backlog)
        except OSError as e:
            logger.error(f"Failed to listen on {self.config.host}:{self.config.port}: {e}")
            self._socket.close()
            self._socket = None
            raise

        self._running = True
        self._setup_signals()

        host, port = self.address
        logger.info(f"Server listening on {host}:{port}")
        self._ready_event.set()

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        """
        Accept connections until shutdown().

            while running:
                accept()              ← blocks, at most ACCEPT_POLL_INTERVAL
                wrap in Connection
                connection_handler()  ← hand-off, then straight back to accept
        """
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue  # Poll self._running
            except OSError as e:
                if not self._running or self._socket is None or self._socket.fileno() == -1:
                    break  # Listening socket is gone
                logger.error(f"Accept failed: {e}")
                continue

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

            conn = Connection(
                socket=client_socket,
                address=client_address,
                buffer_size=self.config.buffer_size,
                max_request_size=self.config.max_request_size,
                timeout=self.config.timeout,
            )
            connection_handler(conn)

    def shutdown(self):
        """
        Ask the accept loop to stop. Callable from any thread or from a
        signal handler; calling it twice is harmless.
        """
        if self._running:
            logger.info("Shutting down socket server...")
        self._running = False

    def _cleanup(self):
        self._running = False
        self._restore_signals()

        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None

        self._ready_event.clear()
        logger.info("Socket server stopped")

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the socket is listening. Returns False on timeout."""
        return self._ready_event.wait(timeout)
