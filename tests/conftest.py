"""
pytest configuration and fixtures.
"""

import socket
import threading
from pathlib import Path
from typing import Generator, Optional, Tuple

import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from fileserver import FileServer, ServerConfig
from fileserver.core import Connection
from fileserver.handlers import ConnectionHandler, StaticFileHandler


INDEX_HTML = b"<!DOCTYPE html>\n<html><body><h1>It works</h1></body></html>\n"
NOTES_TXT = b"first line\nsecond line\n"
# PNG signature plus a few arbitrary bytes, including CR/LF and NUL
IMAGE_PNG = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\xff\xfe"


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample browser GET request."""
    return (
        b"GET /index.html HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: text/html\r\n"
        b"\r\n"
    )


@pytest.fixture
def www(tmp_path: Path) -> Path:
    """A small document root."""
    root = tmp_path / "www"
    root.mkdir()
    (root / "index.html").write_bytes(INDEX_HTML)
    (root / "notes.txt").write_bytes(NOTES_TXT)
    (root / "image.png").write_bytes(IMAGE_PNG)
    (root / "my file.txt").write_bytes(b"spaces in the name\n")
    (root / "README").write_bytes(b"no extension\n")
    (root / "docs").mkdir()
    (root / "docs" / "Guide.HTML").write_bytes(b"<p>guide</p>")
    return root


@pytest.fixture
def static_handler(www: Path) -> StaticFileHandler:
    return StaticFileHandler(root_dir=str(www))


@pytest.fixture
def connection_handler(static_handler: StaticFileHandler) -> ConnectionHandler:
    return ConnectionHandler(static_handler)


@pytest.fixture
def config(www: Path) -> ServerConfig:
    """Test server configuration."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        root_dir=str(www),
        max_workers=4,
        queue_size=8,
        timeout=5.0,
        log_level="WARNING",
    )


# =============================================================================
# SOCKET HELPERS
# =============================================================================

def recv_all(sock: socket.socket, timeout: float = 5.0) -> bytes:
    """Read until the peer closes."""
    sock.settimeout(timeout)
    chunks = []
    while True:
        chunk = sock.recv(65536)
        if not chunk:
            break
        chunks.append(chunk)
    return b"".join(chunks)


def exchange(
    handler: ConnectionHandler,
    request: bytes,
    close_write: bool = True,
    **conn_kwargs,
) -> Tuple[bytes, Connection]:
    """
    Run ``handler`` on one end of a socketpair after writing ``request``
    from the other end. Returns what the client received and the server
    side Connection.
    """
    server_sock, client_sock = socket.socketpair()
    conn = Connection(socket=server_sock, address=("127.0.0.1", 50000), **conn_kwargs)

    with client_sock:
        client_sock.sendall(request)
        if close_write:
            client_sock.shutdown(socket.SHUT_WR)
        handler.handle(conn)
        return recv_all(client_sock), conn


def http_request(port: int, request: bytes, host: str = "127.0.0.1") -> bytes:
    """Send raw bytes to a running server and read the reply until close."""
    with socket.create_connection((host, port), timeout=5.0) as sock:
        sock.sendall(request)
        return recv_all(sock)


class RunningServer:
    """FileServer running in a background thread."""

    def __init__(self, server: FileServer):
        self.server = server
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self):
        self._thread = threading.Thread(
            target=self.server.run,
            kwargs={"configure_logging": False, "banner": False},
            daemon=True,
        )
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        self.server.shutdown()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=10.0)


@pytest.fixture
def running_server(config: ServerConfig) -> Generator[RunningServer, None, None]:
    """A live server on a free port, serving the ``www`` fixture."""
    srv = RunningServer(FileServer(config))
    srv.start()

    yield srv

    srv.stop()
