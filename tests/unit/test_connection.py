"""
Unit tests for the client connection wrapper.
"""

import socket
import threading
import time

import pytest

from fileserver.core import Connection, ConnectionState
from fileserver.core.connection import DRAIN_TIMEOUT


@pytest.fixture
def pair():
    server_sock, client_sock = socket.socketpair()
    conn = Connection(socket=server_sock, address=("10.0.0.7", 40000))
    yield conn, client_sock
    conn.close()
    client_sock.close()


def never_complete(buffer: bytes) -> bool:
    return False


class TestReadRequest:
    """Tests for Connection.read_request()."""

    def test_reads_until_peer_closes(self, pair):
        conn, client = pair
        client.sendall(b"hello ")
        client.sendall(b"world")
        client.shutdown(socket.SHUT_WR)

        assert conn.read_request(never_complete) == b"hello world"
        assert conn.bytes_received == 11
        assert conn.state == ConnectionState.RECEIVED

    def test_stops_when_complete(self, pair):
        conn, client = pair
        client.sendall(b"line\n")

        # Client keeps its side open; the predicate ends the read
        assert conn.read_request(lambda b: b"\n" in b) == b"line\n"

    def test_bounded_by_max_request_size(self):
        server_sock, client = socket.socketpair()
        conn = Connection(
            socket=server_sock,
            address=("10.0.0.7", 40000),
            buffer_size=4,
            max_request_size=10,
        )
        with conn, client:
            client.sendall(b"x" * 50)
            assert conn.read_request(never_complete) == b"x" * 10

    def test_nothing_received(self, pair):
        conn, client = pair
        client.shutdown(socket.SHUT_WR)

        assert conn.read_request(never_complete) == b""
        assert conn.state == ConnectionState.ACCEPTED

    def test_timeout_returns_empty(self):
        server_sock, client = socket.socketpair()
        conn = Connection(socket=server_sock, address=("10.0.0.7", 40000), timeout=0.1)
        with conn, client:
            client.sendall(b"GET /partial")
            assert conn.read_request(never_complete) == b""


class TestSendChunks:
    """Tests for Connection.send_chunks()."""

    def test_sends_in_order(self, pair):
        conn, client = pair

        assert conn.send_chunks([b"ab", b"", b"cd"]) is True
        assert conn.bytes_sent == 4
        assert conn.state == ConnectionState.RESPONDED
        assert client.recv(16) == b"abcd"

    def test_failed_send(self, pair):
        conn, client = pair
        client.close()

        assert conn.send_chunks([b"x" * 1024] * 512) is False
        assert conn.state != ConnectionState.RESPONDED


class TestClose:
    """Tests for Connection.close()."""

    def test_close_is_idempotent(self, pair):
        conn, client = pair
        client.shutdown(socket.SHUT_WR)

        conn.close()
        conn.close()

        assert conn.is_closed
        assert conn.socket.fileno() == -1

    def test_peer_sees_end_of_stream(self, pair):
        conn, client = pair
        conn.send_chunks([b"body"])
        client.shutdown(socket.SHUT_WR)
        conn.close()

        assert client.recv(16) == b"body"
        assert client.recv(16) == b""

    def test_drain_time_is_bounded(self):
        """Test that a client trickling bytes cannot hold close() open."""
        server_sock, client = socket.socketpair()
        conn = Connection(socket=server_sock, address=("10.0.0.7", 40000))
        stop = threading.Event()

        def trickle():
            while not stop.is_set():
                try:
                    client.sendall(b"x")
                except OSError:
                    return
                time.sleep(0.05)

        sender = threading.Thread(target=trickle, daemon=True)
        sender.start()
        try:
            start = time.monotonic()
            conn.close()
            elapsed = time.monotonic() - start
        finally:
            stop.set()
            sender.join(timeout=2.0)
            client.close()

        assert conn.is_closed
        assert elapsed < DRAIN_TIMEOUT + 0.5

    def test_context_manager_closes(self):
        server_sock, client = socket.socketpair()
        with client:
            client.shutdown(socket.SHUT_WR)
            with Connection(socket=server_sock, address=("10.0.0.7", 1)) as conn:
                pass
        assert conn.is_closed


def test_client_ip():
    server_sock, client = socket.socketpair()
    with client:
        conn = Connection(socket=server_sock, address=("192.168.1.5", 5555))
        assert conn.client_ip == "192.168.1.5"
        assert len(conn.id) == 8

        unnamed = Connection(socket=socket.socket(socket.AF_UNIX), address="")
        assert unnamed.client_ip == "-"

        conn.close()
        unnamed.close()
