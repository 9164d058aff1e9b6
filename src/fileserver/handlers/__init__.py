"""
=============================================================================
REQUEST HANDLERS
=============================================================================

    ConnectionHandler   one accepted connection: read, parse, decode,
                        respond, close
    StaticFileHandler   decoded path → 200 with the file, or 404

=============================================================================
"""

from .static import StaticFileHandler
from .connection import ConnectionHandler

__all__ = [
    "StaticFileHandler",
    "ConnectionHandler",
]
