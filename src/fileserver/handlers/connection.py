"""
=============================================================================
CONNECTION HANDLER
=============================================================================

Runs the whole request pipeline for one accepted connection, on a worker
thread.

=============================================================================
PIPELINE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   conn.read_request()            ACCEPTED → RECEIVED                 │
    │        │  b"" ──────────────────────────────────────────┐            │
    │        ▼                                                │            │
    │   parse_request_line()                                  │            │
    │        │  None ───────────────── UNMATCHED ─────────────┤            │
    │        ▼                                                │            │
    │   MATCHED                                               │            │
    │   percent_decode(raw_path)                              │            │
    │   get_file_extension()                                  │            │
    │   StaticFileHandler.build_response()                    │            │
    │   conn.send_chunks()             → RESPONDED            │            │
    │        │                                                │            │
    │        ▼                                                ▼            │
    │   conn.close()  ◄───────────────────────────────────────┘            │
    │                                  → CLOSED (always)                   │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Order within a connection is strict: receive, parse, build, send, close.
Nothing is shared between connections except the read-only filesystem.

A request that is not a GET produces no bytes at all; the client only
sees the connection close.

=============================================================================
"""

import logging
from typing import Optional

from ..access_log import AccessLog
from ..config import ServerConfig
from ..core.connection import Connection, ConnectionState
from ..http.mime_types import get_file_extension
from ..http.request import RequestLine, parse_request_line, is_request_line_complete
from ..http.response import DEFAULT_CHUNK_SIZE
from ..http.url import percent_decode
from .static import StaticFileHandler


logger = logging.getLogger(__name__)


class ConnectionHandler:
    """
    Handles one connection end to end.

    Usage:
        handler = ConnectionHandler.from_config(config)
        pool.submit(handler.handle, args=(conn,))
    """

    def __init__(
        self,
        static_handler: StaticFileHandler,
        access_log: Optional[AccessLog] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        """
        Args:
            static_handler: Builds the response for a decoded path.
            access_log: Receives one record per connection, if given.
            chunk_size: Body bytes read from the file per write.
        """
        self.static_handler = static_handler
        self.access_log = access_log
        self.chunk_size = chunk_size

    @classmethod
    def from_config(cls, config: ServerConfig) -> "ConnectionHandler":
        static_handler = StaticFileHandler(
            root_dir=config.root_dir,
            confine_to_root=config.confine_to_root,
            case_insensitive=config.case_insensitive,
            send_content_length=config.send_content_length,
        )
        return cls(static_handler, access_log=AccessLog(config.log_format))

    def handle(self, conn: Connection) -> None:
        """
        Serve one connection and close it.

        Never raises for client behavior (bad request line, missing file,
        client hanging up). An unexpected exception still propagates to
        the worker, after the connection is closed.
        """
        request_line: Optional[RequestLine] = None
        status_code: Optional[int] = None

        try:
            with conn:
                raw_request = conn.read_request(is_request_line_complete)
                if not raw_request:
                    logger.debug(f"[{conn.id}] Nothing received")
                    return

                request_line = parse_request_line(raw_request)
                if request_line is None:
                    conn.state = ConnectionState.UNMATCHED
                    logger.debug(f"[{conn.id}] Not a GET request line, closing")
                    return

                conn.state = ConnectionState.MATCHED
                status_code = self._respond(conn, request_line)
        finally:
            if self.access_log is not None:
                self.access_log.record(conn, request_line, status_code)

    def _respond(self, conn: Connection, request_line: RequestLine) -> Optional[int]:
        """Send the response; returns its status, or None if the write failed."""
        decoded_path = percent_decode(request_line.raw_path)
        extension = get_file_extension(decoded_path)

        with self.static_handler.build_response(decoded_path, extension) as response:
            if not conn.send_chunks(response.iter_chunks(self.chunk_size)):
                return None
            return int(response.status)
