"""
=============================================================================
HTTP PROTOCOL COMPONENTS
=============================================================================

The pure, socket-free half of the server. Everything here works on bytes
and strings, which keeps it trivial to unit test.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   raw bytes ──► request.py ──► url.py ──► mime_types.py             │
    │                 (request     (percent-   (extension →               │
    │                  line)        decoding)   content type)             │
    │                                                  │                   │
    │                                                  ▼                   │
    │                               response.py + status_codes.py         │
    │                               (status line, headers, body)          │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .request import RequestLine, parse_request_line, is_request_line_complete
from .url import percent_decode
from .mime_types import get_file_extension, get_mime_type, get_content_type
from .status_codes import HTTPStatus
from .response import HTTPResponse, not_found, file_response

__all__ = [
    # Request line
    "RequestLine",
    "parse_request_line",
    "is_request_line_complete",
    # Path decoding
    "percent_decode",
    # MIME types
    "get_file_extension",
    "get_mime_type",
    "get_content_type",
    # Responses
    "HTTPStatus",
    "HTTPResponse",
    "not_found",
    "file_response",
]
