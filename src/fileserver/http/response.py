"""
=============================================================================
HTTP RESPONSE
=============================================================================

Builds the exact bytes written back to the client.

=============================================================================
WIRE FORMAT
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   HTTP/1.1 200 OK\r\n                   ← status line               │
    │   Content-Type: text/html\r\n           ← the only header           │
    │   \r\n                                  ← blank line                │
    │   <raw file bytes>                      ← body, until close         │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

There is no Content-Length, Date, Server or Connection header. The body
starts right after the blank line and ends when the server closes the
connection. Nothing else is added: the emitted bytes are the status line,
the headers, the blank line and the body, in that order.

Content-Length can be switched on from the server configuration; it is
then written right after Content-Type.

=============================================================================
STREAMING BODIES
=============================================================================

A file body is NOT read into memory. The response keeps the open file
and hands out chunks:

    iter_chunks()
        │
        ├──► header block + first chunk of the file   (one write)
        ├──► next chunk
        ├──► ...
        └──► file exhausted → stop

This serves files of any size in full with a fixed amount of memory per
connection.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import BinaryIO, Dict, Iterator, Optional

from .status_codes import HTTPStatus


NOT_FOUND_BODY = b"404 Not Found"

DEFAULT_CHUNK_SIZE = 64 * 1024


@dataclass
class HTTPResponse:
    """
    A response ready to be written to a socket.

    Either ``body`` (in-memory bytes) or ``body_file`` (an open binary
    file streamed in chunks) carries the payload. When ``body_file`` is
    set the response owns it; call ``close()`` once the response has
    been sent.
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    body_file: Optional[BinaryIO] = field(default=None, repr=False)
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """
        The first line of the response, without CRLF.

        Example: "HTTP/1.1 404 Not Found"
        """
        return f"{self.version} {int(self.status)} {self.status.phrase}"

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        """Set a header, preserving insertion order. Returns self."""
        self.headers[name] = value
        return self

    def header_bytes(self) -> bytes:
        """Status line, headers and the blank separator line."""
        lines = [self.status_line]
        for name, value in self.headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")
        lines.append("")
        return "\r\n".join(lines).encode("latin-1")

    def iter_chunks(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
        """
        Yield the full response as a sequence of byte chunks.

        The header block is merged into the first chunk so small
        responses go out in a single write.

        Args:
            chunk_size: Maximum number of body bytes read per chunk.
        """
        head = self.header_bytes()

        if self.body_file is None:
            yield head + self.body
            return

        first = self.body_file.read(chunk_size)
        yield head + first
        if not first:
            return

        while True:
            chunk = self.body_file.read(chunk_size)
            if not chunk:
                break
            yield chunk

    def to_bytes(self) -> bytes:
        """
        Serialize the whole response into one bytes object.

        Consumes ``body_file`` if there is one. Meant for small responses
        and tests; the connection handler streams with iter_chunks().
        """
        return b"".join(self.iter_chunks())

    def close(self) -> None:
        """Release the body file, if any. Safe to call more than once."""
        if self.body_file is not None:
            self.body_file.close()
            self.body_file = None

    def __enter__(self) -> "HTTPResponse":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


# =============================================================================
# CONVENIENCE CONSTRUCTORS
# =============================================================================

def not_found(content_length: bool = False) -> HTTPResponse:
    """
    The canonical 404 response.

        HTTP/1.1 404 Not Found\\r\\n
        Content-Type: text/plain\\r\\n
        \\r\\n
        404 Not Found
    """
    response = HTTPResponse(
        status=HTTPStatus.NOT_FOUND,
        headers={"Content-Type": "text/plain"},
        body=NOT_FOUND_BODY,
    )
    if content_length:
        response.set_header("Content-Length", str(len(NOT_FOUND_BODY)))
    return response


def file_response(
    body_file: BinaryIO,
    content_type: str,
    content_length: Optional[int] = None,
) -> HTTPResponse:
    """
    A 200 response streaming ``body_file``.

    Args:
        body_file: File opened in binary mode. Ownership moves to the
                   response.
        content_type: Value for the Content-Type header.
        content_length: When given, a Content-Length header is added.
    """
    response = HTTPResponse(
        status=HTTPStatus.OK,
        headers={"Content-Type": content_type},
        body_file=body_file,
    )
    if content_length is not None:
        response.set_header("Content-Length", str(content_length))
    return response
