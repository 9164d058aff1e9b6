"""
=============================================================================
MIME TYPE RESOLUTION
=============================================================================

Maps file extensions to the Content-Type header value sent back with a
file.

=============================================================================
WHAT IS A MIME TYPE?
=============================================================================

MIME (Multipurpose Internet Mail Extensions) types tell the browser how
to interpret the bytes that follow the header block:

    Content-Type: text/html     → render as a web page
    Content-Type: image/png     → decode and show an image
    Content-Type: text/plain    → show raw text
    Content-Type: application/octet-stream
                                → "just bytes", usually a download

=============================================================================
EXTENSION EXTRACTION
=============================================================================

The extension is everything after the LAST dot of the requested path:

    index.html          → "html"
    archive.tar.gz      → "gz"
    .bashrc             → ""        (leading dot is a hidden file, not an
                                     extension)
    README              → ""
    dir.v2/notes        → "v2/notes" (the dot is searched in the whole
                                     path, not just the final segment)

The last example never matches the table below, so such paths are served
as application/octet-stream.

=============================================================================
"""

from pathlib import PurePath
from typing import Union


# =============================================================================
# MIME TYPE TABLE
# =============================================================================
#
# Keys are lowercase extensions WITHOUT the dot. Lookups lowercase the
# extension first, so "HTML", "Html" and "html" all resolve the same way.
#
# =============================================================================

MIME_TYPES = {
    "html": "text/html",
    "htm": "text/html",
    "txt": "text/plain",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
}

# Anything not in the table is opaque binary data
DEFAULT_MIME_TYPE = "application/octet-stream"


def get_file_extension(path: Union[str, bytes, PurePath]) -> str:
    """
    Extract the extension of a requested path.

    Args:
        path: Decoded request path. Bytes are accepted because the
              connection handler works on raw bytes end to end.

    Returns:
        The text after the last ".", or "" when there is no dot or the
        dot is the very first character.

    Examples:
        >>> get_file_extension("index.html")
        'html'

        >>> get_file_extension(b"photo.JPG")
        'JPG'

        >>> get_file_extension(".hidden")
        ''
    """
    if isinstance(path, PurePath):
        path = str(path)
    if isinstance(path, bytes):
        # latin-1 maps every byte to one character, so positions line up
        path = path.decode("latin-1")

    dot = path.rfind(".")
    if dot <= 0:
        return ""
    return path[dot + 1:]


def get_mime_type(extension: str) -> str:
    """
    Resolve a file extension to its content type.

    Every input maps to some content type; there is no error path.

    Args:
        extension: Extension without the dot, any case.

    Returns:
        The MIME type string.

    Examples:
        >>> get_mime_type("HTML")
        'text/html'

        >>> get_mime_type("unknown")
        'application/octet-stream'
    """
    return MIME_TYPES.get(extension.lower(), DEFAULT_MIME_TYPE)


def get_content_type(path: Union[str, bytes, PurePath]) -> str:
    """Content-Type header value for a requested path."""
    return get_mime_type(get_file_extension(path))
