"""
Unit tests for StaticFileHandler.
"""

import os
from pathlib import Path

import pytest

from conftest import INDEX_HTML, IMAGE_PNG
from fileserver.handlers import StaticFileHandler
from fileserver.http import HTTPStatus


NOT_FOUND_BYTES = b"HTTP/1.1 404 Not Found\r\nContent-Type: text/plain\r\n\r\n404 Not Found"


def serve(handler: StaticFileHandler, path) -> bytes:
    with handler.build_response(path) as response:
        return response.to_bytes()


@pytest.fixture
def secret(tmp_path: Path) -> Path:
    """A file next to (not inside) the document root."""
    path = tmp_path / "secret.txt"
    path.write_bytes(b"top secret\n")
    return path


class TestServeFiles:
    """Tests for files that exist."""

    def test_html_file(self, static_handler: StaticFileHandler):
        data = serve(static_handler, b"index.html")
        assert data == b"HTTP/1.1 200 OK\r\nContent-Type: text/html\r\n\r\n" + INDEX_HTML

    def test_binary_file_verbatim(self, static_handler: StaticFileHandler):
        data = serve(static_handler, "image.png")
        assert data == b"HTTP/1.1 200 OK\r\nContent-Type: image/png\r\n\r\n" + IMAGE_PNG

    def test_no_extension_is_octet_stream(self, static_handler: StaticFileHandler):
        with static_handler.build_response(b"README") as response:
            assert response.status == HTTPStatus.OK
            assert response.headers == {"Content-Type": "application/octet-stream"}

    def test_extension_argument_wins(self, static_handler: StaticFileHandler):
        with static_handler.build_response(b"README", extension="txt") as response:
            assert response.headers["Content-Type"] == "text/plain"

    def test_upper_case_extension(self, static_handler: StaticFileHandler):
        with static_handler.build_response(b"docs/Guide.HTML") as response:
            assert response.headers["Content-Type"] == "text/html"

    def test_name_with_space(self, static_handler: StaticFileHandler):
        data = serve(static_handler, b"my file.txt")
        assert data.endswith(b"\r\n\r\nspaces in the name\n")

    def test_content_length(self, www: Path):
        handler = StaticFileHandler(root_dir=str(www), send_content_length=True)
        data = serve(handler, b"index.html")

        assert data.startswith(
            b"HTTP/1.1 200 OK\r\n"
            b"Content-Type: text/html\r\n"
            b"Content-Length: " + str(len(INDEX_HTML)).encode() + b"\r\n\r\n"
        )

    def test_content_length_on_404(self, www: Path):
        handler = StaticFileHandler(root_dir=str(www), send_content_length=True)
        assert b"Content-Length: 13\r\n" in serve(handler, b"missing.html")


class TestNotFound:
    """Tests for paths that cannot be served."""

    @pytest.mark.parametrize("path", [
        b"missing.html",
        b"",
        b"docs",
        b"docs/",
        b"index.html/extra",
        b"a\x00b.txt",
    ])
    def test_404(self, static_handler: StaticFileHandler, path: bytes):
        assert serve(static_handler, path) == NOT_FOUND_BYTES

    @pytest.mark.skipif(
        not hasattr(os, "geteuid") or os.geteuid() == 0,
        reason="root ignores file permissions",
    )
    def test_unreadable_file(self, static_handler: StaticFileHandler, www: Path):
        """Test that a file that exists but cannot be opened is a 404."""
        locked = www / "locked.txt"
        locked.write_bytes(b"private")
        locked.chmod(0)
        try:
            assert serve(static_handler, b"locked.txt") == NOT_FOUND_BYTES
        finally:
            locked.chmod(0o644)

    def test_case_mismatch_without_fallback(self, static_handler: StaticFileHandler):
        assert serve(static_handler, b"INDEX.HTML") == NOT_FOUND_BYTES


class TestCaseInsensitive:
    """Tests for the case-insensitive fallback."""

    @pytest.fixture
    def handler(self, www: Path) -> StaticFileHandler:
        return StaticFileHandler(root_dir=str(www), case_insensitive=True)

    def test_finds_other_case(self, handler: StaticFileHandler):
        data = serve(handler, b"INDEX.HTML")
        assert data == b"HTTP/1.1 200 OK\r\nContent-Type: text/html\r\n\r\n" + INDEX_HTML

    def test_last_segment_only(self, handler: StaticFileHandler):
        assert serve(handler, b"docs/guide.html").endswith(b"<p>guide</p>")
        assert serve(handler, b"DOCS/Guide.HTML") == NOT_FOUND_BYTES

    def test_still_404_when_nothing_matches(self, handler: StaticFileHandler):
        assert serve(handler, b"nothing.txt") == NOT_FOUND_BYTES


class TestRootConfinement:
    """Tests for paths that leave the document root."""

    def test_parent_path_served_by_default(self, static_handler: StaticFileHandler, secret: Path):
        assert serve(static_handler, b"../secret.txt").endswith(b"top secret\n")

    def test_absolute_path_served_by_default(self, static_handler: StaticFileHandler, secret: Path):
        assert serve(static_handler, str(secret)).endswith(b"top secret\n")

    def test_confined_refuses_parent(self, www: Path, secret: Path):
        handler = StaticFileHandler(root_dir=str(www), confine_to_root=True)
        assert serve(handler, b"../secret.txt") == NOT_FOUND_BYTES
        assert serve(handler, str(secret)) == NOT_FOUND_BYTES

    def test_confined_still_serves_inside(self, www: Path):
        handler = StaticFileHandler(root_dir=str(www), confine_to_root=True)
        assert serve(handler, b"docs/../index.html").endswith(INDEX_HTML)


def test_resolve_path(www: Path):
    handler = StaticFileHandler(root_dir=str(www))
    assert handler.resolve_path(b"a/b.txt") == bytes(www) + b"/a/b.txt"
