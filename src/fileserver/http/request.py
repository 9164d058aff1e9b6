"""
=============================================================================
HTTP REQUEST LINE PARSER
=============================================================================

Only the first line of a request is interpreted. Headers and body are
read off the socket along with it but never parsed or validated.

=============================================================================
ACCEPTED SHAPE
=============================================================================

    GET /index.html HTTP/1.1\r\n
    ──┬ ┬────┬───── ───┬──
      │ │    │         │
      │ │    │         └── literal " HTTP/1" (minor version not checked)
      │ │    └──────────── raw path: any run of non-space bytes, may be
      │ │                  empty; still percent-encoded
      │ └───────────────── literal "/"
      └─────────────────── literal "GET", case-sensitive

Anything else (POST, HEAD, "get", a missing version, an empty buffer) is
not a request this server answers. The caller closes the connection
without writing a byte.

=============================================================================
TOKENIZER
=============================================================================

The match is done with three plain byte operations instead of a regular
expression:

    1. buffer.startswith(b"GET /")
    2. scan forward to the first space → end of the raw path
    3. buffer.startswith(b" HTTP/1", end)

A NUL byte stops the scan the same way a space does, but is never a valid
terminator, so paths containing NUL never match.

Note that CR and LF are not spaces: "GET /a\\r\\nb HTTP/1" matches with
raw path "a\\r\\nb". The resulting path simply names no file.

=============================================================================
"""

from dataclasses import dataclass
from typing import Optional


METHOD = "GET"

_PREFIX = b"GET /"
_SUFFIX = b" HTTP/1"
_SPACE = ord(" ")
_NUL = 0


@dataclass(frozen=True)
class RequestLine:
    """
    The parts of a matched request line.

    Attributes:
        method: Always "GET"; kept so logs read naturally.
        raw_path: Bytes between the leading "/" and " HTTP/1",
                  not yet percent-decoded.
    """

    method: str
    raw_path: bytes


def parse_request_line(buffer: bytes) -> Optional[RequestLine]:
    """
    Match ``GET /<path> HTTP/1`` at the start of ``buffer``.

    Args:
        buffer: Raw bytes received on the connection.

    Returns:
        RequestLine on a match, None otherwise. Never raises for bad
        input; a non-match is an expected outcome.

    Examples:
        >>> parse_request_line(b"GET /a%20b.txt HTTP/1.1\\r\\n\\r\\n")
        RequestLine(method='GET', raw_path=b'a%20b.txt')

        >>> parse_request_line(b"POST /form HTTP/1.1\\r\\n") is None
        True
    """
    if not buffer.startswith(_PREFIX):
        return None

    start = len(_PREFIX)
    end = start
    length = len(buffer)

    while end < length and buffer[end] != _SPACE and buffer[end] != _NUL:
        end += 1

    if not buffer.startswith(_SUFFIX, end):
        return None

    return RequestLine(method=METHOD, raw_path=bytes(buffer[start:end]))


def is_request_line_complete(buffer: bytes) -> bool:
    """
    Whether enough bytes have arrived to decide on the request line.

    True once a line terminator has been seen or the buffer already
    matches. A client that sends "GET /x HTTP/1" and then waits is
    answered without waiting for its CRLF.
    """
    return b"\n" in buffer or parse_request_line(buffer) is not None
