"""
=============================================================================
STATIC FILE HANDLER
=============================================================================

Turns a decoded request path into a response by opening a file below the
serving root.

=============================================================================
FLOW
=============================================================================

    decoded path b"docs/a b.txt"
        │
        ├──► join onto root_dir             b"./docs/a b.txt"
        ├──► (confine_to_root) inside root?  no → 404
        ├──► open(path, "rb")
        │       ├── ok                        → 200, Content-Type from the
        │       │                               extension, body streamed
        │       ├── missing + case_insensitive → retry with the entry that
        │       │                               matches ignoring case
        │       └── any other failure         → 404
        ▼
    HTTPResponse

Every failure to open collapses into the same 404: missing file,
permission denied, a directory, a NUL byte in the name. The client
cannot tell them apart.

=============================================================================
PATH HANDLING
=============================================================================

The decoded path is used exactly as given, with no normalization:

    GET /index.html          → ./index.html
    GET /../etc/passwd       → ./../etc/passwd       (above the root!)
    GET //etc/passwd         → /etc/passwd           (absolute path!)

This is the server's historical behavior and stays the default. Set
``confine_to_root`` to answer 404 for anything that resolves (symlinks
included) outside the root directory.

=============================================================================
"""

import os
import logging
from typing import BinaryIO, Optional, Union

from ..http.mime_types import get_file_extension, get_mime_type
from ..http.response import HTTPResponse, not_found, file_response


logger = logging.getLogger(__name__)


class StaticFileHandler:
    """
    Builds responses for decoded request paths.

    Usage:
        handler = StaticFileHandler(root_dir="/srv/www")
        with handler.build_response(b"index.html") as response:
            data = response.to_bytes()
    """

    def __init__(
        self,
        root_dir: str = ".",
        confine_to_root: bool = False,
        case_insensitive: bool = False,
        send_content_length: bool = False,
    ):
        """
        Args:
            root_dir: Directory request paths are joined onto.
            confine_to_root: 404 for paths resolving outside root_dir.
            case_insensitive: Fall back to a case-insensitive name match
                              in the same directory when a file is missing.
            send_content_length: Add Content-Length to responses.
        """
        self.root_dir = os.fsencode(root_dir)
        self.confine_to_root = confine_to_root
        self.case_insensitive = case_insensitive
        self.send_content_length = send_content_length

        self._real_root = os.path.realpath(self.root_dir)

    def resolve_path(self, decoded_path: bytes) -> bytes:
        """Filesystem path for a decoded request path, unnormalized."""
        return os.path.join(self.root_dir, decoded_path)

    def build_response(
        self,
        decoded_path: Union[bytes, str],
        extension: Optional[str] = None,
    ) -> HTTPResponse:
        """
        Build the response for one request.

        Args:
            decoded_path: Percent-decoded path, relative to the root.
            extension: File extension if already known; derived from
                       ``decoded_path`` otherwise.

        Returns:
            200 with the open file as a streamed body, or the canonical
            404. The caller must close() the response.
        """
        if isinstance(decoded_path, str):
            decoded_path = os.fsencode(decoded_path)
        if extension is None:
            extension = get_file_extension(decoded_path)

        body_file = self._open(decoded_path)
        if body_file is None:
            return not_found(content_length=self.send_content_length)

        content_length = None
        if self.send_content_length:
            content_length = os.fstat(body_file.fileno()).st_size

        return file_response(body_file, get_mime_type(extension), content_length)

    def _open(self, decoded_path: bytes) -> Optional[BinaryIO]:
        """Open the requested file, or return None for a 404."""
        path = self.resolve_path(decoded_path)

        try:
            return self._open_checked(path)
        except FileNotFoundError:
            if not self.case_insensitive:
                logger.debug(f"Not found: {path!r}")
                return None
        except (OSError, ValueError) as e:
            # ValueError: embedded NUL byte
            logger.debug(f"Cannot open {path!r}: {e}")
            return None

        alternative = self._find_case_insensitive(path)
        if alternative is None:
            logger.debug(f"Not found (any case): {path!r}")
            return None

        try:
            return self._open_checked(alternative)
        except (OSError, ValueError) as e:
            logger.debug(f"Cannot open {alternative!r}: {e}")
            return None

    def _open_checked(self, path: bytes) -> BinaryIO:
        if self.confine_to_root and not self._is_inside_root(path):
            logger.warning(f"Path outside root refused: {path!r}")
            raise PermissionError(f"outside root: {path!r}")
        return open(path, "rb")

    def _is_inside_root(self, path: bytes) -> bool:
        real_path = os.path.realpath(path)
        try:
            return os.path.commonpath([real_path, self._real_root]) == self._real_root
        except ValueError:
            return False  # Different drives on Windows

    def _find_case_insensitive(self, path: bytes) -> Optional[bytes]:
        """
        Look for ``path``'s file name in its directory, ignoring case.

        Only the last path segment is matched loosely; directories must
        exist with the exact case given.
        """
        directory, name = os.path.split(path)
        if not name:
            return None

        wanted = name.lower()
        try:
            with os.scandir(directory or b".") as entries:
                for entry in entries:
                    if entry.name.lower() == wanted:
                        return os.path.join(directory, entry.name)
        except (OSError, ValueError):
            return None
        return None
