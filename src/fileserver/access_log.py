"""
=============================================================================
ACCESS LOG
=============================================================================

One log record per handled connection, written to the
``fileserver.access`` logger so it can be routed separately from the
diagnostic logs:

    logging.getLogger("fileserver.access").addHandler(file_handler)

=============================================================================
LOG FORMATS
=============================================================================

    TEXT (default, Apache-like):
    ┌─────────────────────────────────────────────────────────────────────┐
    │ 127.0.0.1 - - [19/Oct/2026:10:55:36 +0000] "GET /index.html" 200    │
    │   1043 0.84ms                                                       │
    └─────────────────────────────────────────────────────────────────────┘

    A connection whose request line did not match is logged with "-" for
    the request and the status:

        127.0.0.1 - - [19/Oct/2026:10:55:37 +0000] "-" - 0 0.21ms

    JSON (for log aggregators):
    ┌─────────────────────────────────────────────────────────────────────┐
    │ {"connection_id": "a1b2c3d4", "client_ip": "127.0.0.1",            │
    │  "method": "GET", "path": "/index.html", "status_code": 200,       │
    │  "bytes_sent": 1043, "duration_ms": 0.84, "timestamp": "..."}      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

import json
import logging
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import Optional

from .core.connection import Connection
from .http.request import RequestLine


logger = logging.getLogger("fileserver.access")


def _printable_path(raw_path: bytes) -> str:
    # Raw paths may contain CR/LF; escape so one record stays one line
    return "/" + raw_path.decode("latin-1").encode("unicode_escape").decode("ascii")


@dataclass
class AccessRecord:
    """
    Structured access log entry.

    path is the raw (still percent-encoded) request path, so the log
    shows exactly what the client sent.
    """

    connection_id: str
    client_ip: str
    method: Optional[str]
    path: Optional[str]
    status_code: Optional[int]
    bytes_sent: int
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        data = asdict(self)
        data["duration_ms"] = round(self.duration_ms, 2)
        return data

    def to_text(self) -> str:
        request = f"{self.method} {self.path}" if self.method else "-"
        status = self.status_code if self.status_code is not None else "-"
        return (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{request}" {status} {self.bytes_sent} {self.duration_ms:.2f}ms'
        )


class AccessLog:
    """Formats and emits access records."""

    def __init__(self, log_format: str = "text"):
        if log_format not in ("text", "json"):
            raise ValueError(f"Unknown access log format: {log_format}")
        self.log_format = log_format

    def record(
        self,
        conn: Connection,
        request_line: Optional[RequestLine],
        status_code: Optional[int],
    ) -> AccessRecord:
        """
        Build the record for a finished connection and log it.

        Args:
            conn: The connection, for address, timing and byte counts.
            request_line: The matched request line, or None.
            status_code: Status sent, or None if no response went out
                         in full.

        Returns:
            The record that was logged.
        """
        entry = AccessRecord(
            connection_id=conn.id,
            client_ip=conn.client_ip,
            method=request_line.method if request_line else None,
            path=_printable_path(request_line.raw_path) if request_line else None,
            status_code=status_code,
            bytes_sent=conn.bytes_sent,
            duration_ms=conn.age * 1000,
            timestamp=datetime.now(timezone.utc).strftime("%d/%b/%Y:%H:%M:%S %z"),
        )

        if self.log_format == "json":
            logger.info(json.dumps(entry.to_dict()))
        else:
            logger.info(entry.to_text())

        return entry
