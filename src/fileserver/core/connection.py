"""
=============================================================================
CLIENT CONNECTION
=============================================================================

Wraps one accepted client socket. This is the transport the request
pipeline talks to: it hands out the raw request bytes and takes raw
response bytes back. It knows nothing about HTTP.

=============================================================================
ONE REQUEST PER CONNECTION
=============================================================================

    ┌─────────────────────────────────────────────────────────────────┐
    │                                                                  │
    │   TCP accept                                                     │
    │       │                                                          │
    │       ├── read request bytes   (bounded, see read_request)       │
    │       ├── write response bytes (maybe nothing at all)            │
    │       │                                                          │
    │   TCP close                                                      │
    │                                                                  │
    └─────────────────────────────────────────────────────────────────┘

There is no keep-alive. The end of the response body is signalled by
closing the connection, so close() must always run.

=============================================================================
CONNECTION STATE MACHINE
=============================================================================

    ACCEPTED ──────► RECEIVED ──────► MATCHED ──────► RESPONDED ──┐
        │               │                                          │
        │               └───────────► UNMATCHED ───────────────────┤
        │                                                          ▼
        └─────────────────────────────────────────────────────► CLOSED

CLOSED is reachable from every state, including after errors.

=============================================================================
"""

import socket
import time
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional
import uuid


logger = logging.getLogger(__name__)

# close() with unread client data sends RST instead of FIN.
# Drain at most this much, waiting at most this long.
DRAIN_LIMIT = 64 * 1024
DRAIN_TIMEOUT = 0.5


class ConnectionState(Enum):
    """Connection lifecycle states, used for logging and tests."""
    ACCEPTED = "accepted"      # Socket accepted, nothing read yet
    RECEIVED = "received"      # Request bytes are in
    MATCHED = "matched"        # Request line is a GET we answer
    UNMATCHED = "unmatched"    # Anything else; nothing will be sent
    RESPONDED = "responded"    # Response fully written
    CLOSED = "closed"          # Socket released


@dataclass
class Connection:
    """
    Represents a client connection.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    Connection Responsibilities                       │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  1. BOUNDED READING                                                  │
    │     └── TCP delivers bytes in arbitrary chunks                       │
    │     └── keep reading until the caller says "enough" or the cap      │
    │                                                                      │
    │  2. WRITING                                                          │
    │     └── write every chunk handed over, in order                     │
    │                                                                      │
    │  3. STATE AND BYTE COUNTS                                            │
    │     └── for the access log                                           │
    │                                                                      │
    │  4. GRACEFUL CLOSE                                                   │
    │     └── FIN, drain, close; never leak the file descriptor           │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short unique id for log lines.
        state: Current connection state.
        created_at: Timestamp when the connection was accepted.
        bytes_received: Request bytes read.
        bytes_sent: Response bytes written.
    """

    # Required parameters
    socket: socket.socket
    address: tuple

    # Generated/default parameters
    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.ACCEPTED
    created_at: float = field(default_factory=time.time)
    bytes_received: int = 0
    bytes_sent: int = 0

    # Configuration (passed from ServerConfig)
    buffer_size: int = 8192
    max_request_size: int = 64 * 1024
    timeout: Optional[float] = None

    def __post_init__(self):
        """Apply the socket deadline (None = block forever)."""
        self.socket.settimeout(self.timeout)

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def client_ip(self) -> str:
        """Client IP address, or "-" for unnamed sockets."""
        if isinstance(self.address, tuple) and self.address:
            return str(self.address[0])
        return "-"

    @property
    def age(self) -> float:
        """Seconds since the connection was accepted."""
        return time.time() - self.created_at

    @property
    def is_closed(self) -> bool:
        return self.state == ConnectionState.CLOSED

    # =========================================================================
    # READING
    # =========================================================================

    def read_request(self, is_complete: Callable[[bytes], bool]) -> bytes:
        """
        Read request bytes until there is enough to act on.

        ┌─────────────────────────────────────────────────────────────────┐
        │                    read_request() Flow                           │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │   loop:                                                          │
        │     recv(min(buffer_size, bytes left under the cap))            │
        │       ├── b"" (peer closed)        → stop                       │
        │       ├── is_complete(buffer)      → stop                       │
        │       └── len(buffer) == cap       → stop                       │
        │                                                                  │
        └─────────────────────────────────────────────────────────────────┘

        Args:
            is_complete: Predicate on the bytes received so far.

        Returns:
            The bytes received. Empty if the peer sent nothing or the
            receive failed (reset, timeout); either way the caller has
            nothing to answer.
        """
        buffer = bytearray()

        try:
            while len(buffer) < self.max_request_size:
                wanted = min(self.buffer_size, self.max_request_size - len(buffer))
                chunk = self.socket.recv(wanted)
                if not chunk:
                    break  # Peer closed its side

                buffer += chunk
                if is_complete(bytes(buffer)):
                    break
        except socket.timeout:
            logger.debug(f"[{self.id}] Receive timed out after {len(buffer)} bytes")
            return b""
        except OSError as e:
            logger.debug(f"[{self.id}] Receive failed: {e}")
            return b""

        self.bytes_received = len(buffer)
        if buffer:
            self.state = ConnectionState.RECEIVED
        return bytes(buffer)

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_chunks(self, chunks: Iterable[bytes]) -> bool:
        """
        Write each chunk to the client, in order.

        Each chunk goes through sendall(), a single call that returns once
        the whole chunk is handed to the kernel. A failed write is not
        retried.

        Args:
            chunks: Response bytes, typically HTTPResponse.iter_chunks().

        Returns:
            True if everything was written, False if the write failed.
        """
        try:
            for chunk in chunks:
                if chunk:
                    self.socket.sendall(chunk)
                    self.bytes_sent += len(chunk)
        except OSError as e:
            # Client went away, deadline hit, or the file read failed
            logger.warning(f"[{self.id}] Send failed after {self.bytes_sent} bytes: {e}")
            return False

        self.state = ConnectionState.RESPONDED
        return True

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection gracefully.

        1. shutdown(SHUT_WR): send FIN, the client now sees end-of-body
        2. drain: read and drop what the client still sends (headers we
           never looked at), bounded in bytes and time
        3. close(): release the file descriptor

        Safe to call more than once.
        """
        if self.state == ConnectionState.CLOSED:
            return

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Already disconnected

        try:
            deadline = time.monotonic() + DRAIN_TIMEOUT
            drained = 0
            while drained < DRAIN_LIMIT:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                self.socket.settimeout(remaining)
                data = self.socket.recv(4096)
                if not data:
                    break
                drained += len(data)
        except OSError:
            pass  # Timeout or reset; we are closing anyway

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    # =========================================================================
    # CONTEXT MANAGER
    # =========================================================================

    def __enter__(self):
        """
        Allows ``with conn:`` so the socket is closed on every exit path:

            with conn:
                data = conn.read_request(is_complete)
                conn.send_chunks(chunks)
            # closed here, even after an exception
        """
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
