"""
Unit tests for the connection handler, driven over a socketpair.
"""

import logging
import socket

import pytest

from webserver.core.connection import Connection, ConnectionState
from webserver.core.dispatch import ConnectionHandler
from webserver.http.request import HTTPRequest
from webserver.http.response import HTTPResponse, NOT_FOUND_PAGE
from webserver.http.router import Router


@pytest.fixture
def router() -> Router:
    router = Router()

    @router.route("/")
    def index(request, response):
        response.set_content("<h1>home</h1>")

    @router.route("/echo")
    def echo(request, response):
        response.set_content(request.body or b"", "text/plain")

    @router.route("/boom")
    def boom(request, response):
        raise RuntimeError("handler exploded")

    return router


def run_cycle(handler: ConnectionHandler, raw: bytes, shut_write: bool = False):
    """
    Feed raw bytes to one connection cycle.

    Returns (connection, everything the server wrote back).
    """
    server_sock, client_sock = socket.socketpair()
    with client_sock:
        client_sock.settimeout(5.0)
        if raw:
            client_sock.sendall(raw)
        if shut_write:
            client_sock.shutdown(socket.SHUT_WR)

        conn = Connection(socket=server_sock, address=("127.0.0.1", 40000), drain_timeout=0.05)
        handler(conn)

        chunks = []
        while True:
            chunk = client_sock.recv(4096)
            if not chunk:
                break
            chunks.append(chunk)
    return conn, b"".join(chunks)


class TestConnectionHandler:

    def test_routed_request(self, router):
        conn, raw = run_cycle(ConnectionHandler(router), b"GET / HTTP/1.1\r\n\r\n")

        assert raw.startswith(b"HTTP/1.1 200 OK\r\n")
        assert b"Content-Length: 13\r\n" in raw
        assert raw.endswith(b"<h1>home</h1>")
        assert conn.state == ConnectionState.CLOSED

    def test_unrouted_request_is_404(self, router):
        conn, raw = run_cycle(ConnectionHandler(router), b"GET /nope HTTP/1.1\r\n\r\n")

        assert raw.startswith(b"HTTP/1.1 404 Not Found\r\n")
        assert raw.endswith(NOT_FOUND_PAGE.encode())
        assert conn.closed

    def test_trailing_slash_is_404(self, router):
        _, raw = run_cycle(ConnectionHandler(router), b"GET /echo/ HTTP/1.1\r\n\r\n")
        assert raw.startswith(b"HTTP/1.1 404 Not Found")

    def test_body_passed_to_handler(self, router):
        request = b"POST /echo HTTP/1.1\r\nContent-Length: 5\r\n\r\nhello"
        _, raw = run_cycle(ConnectionHandler(router), request)

        assert raw.endswith(b"\r\n\r\nhello")

    def test_empty_read_sends_nothing(self, router):
        """A client that closes without sending gets no response."""
        conn, raw = run_cycle(ConnectionHandler(router), b"", shut_write=True)

        assert raw == b""
        assert conn.closed

    def test_bad_content_length_drops_connection(self, router, caplog):
        request = b"POST /echo HTTP/1.1\r\nContent-Length: lots\r\n\r\nhello"

        with caplog.at_level(logging.WARNING, logger="webserver.core.dispatch"):
            conn, raw = run_cycle(ConnectionHandler(router), request)

        assert raw == b""
        assert conn.closed
        assert "Invalid Content-Length" in caplog.text

    def test_handler_exception_is_500(self, router):
        conn, raw = run_cycle(ConnectionHandler(router), b"GET /boom HTTP/1.1\r\n\r\n")

        assert raw.startswith(b"HTTP/1.1 500 Internal Server Error\r\n")
        assert conn.closed

    def test_short_body_is_clamped(self, router):
        """A body shorter than its Content-Length is served as received."""
        request = b"POST /echo HTTP/1.1\r\nContent-Length: 100\r\n\r\nonly ten!!"

        _, raw = run_cycle(ConnectionHandler(router), request)

        assert raw.endswith(b"\r\n\r\nonly ten!!")
        assert b"Content-Length: 10\r\n" in raw

    def test_request_larger_than_buffer_still_answered(self, router):
        """Input past the single read is discarded, not answered with a reset."""
        body = b"x" * 10000
        request = b"POST /echo HTTP/1.1\r\nContent-Length: 10000\r\n\r\n" + body

        conn, raw = run_cycle(ConnectionHandler(router, buffer_size=8192), request)

        head, _, echoed = raw.partition(b"\r\n\r\n")
        assert head.startswith(b"HTTP/1.1 200 OK\r\n")
        assert 0 < len(echoed) < len(body)
        assert body.startswith(echoed)
        assert conn.closed

    def test_access_log(self, router, caplog):
        with caplog.at_level(logging.INFO, logger="webserver.access"):
            run_cycle(ConnectionHandler(router), b"GET /nope HTTP/1.1\r\n\r\n")

        assert '127.0.0.1 "GET /nope HTTP/1.1" 404' in caplog.text


class TestDispatch:
    """dispatch() without any sockets."""

    def test_handler_gets_fresh_default_response(self):
        seen = []
        router = Router()
        router.add_route("/", lambda request, response: seen.append(response))

        response = ConnectionHandler(router).dispatch(HTTPRequest(method="GET", path="/"))

        assert seen == [response]
        assert response.status_code == 200
        assert response.body == b""

    def test_handler_return_value_ignored(self):
        router = Router()
        router.add_route("/", lambda request, response: HTTPResponse(status_code=418))

        response = ConnectionHandler(router).dispatch(HTTPRequest(path="/"))
        assert response.status_code == 200

    def test_not_found(self):
        response = ConnectionHandler(Router()).dispatch(HTTPRequest(path="/missing"))
        assert response.status_code == 404


class TestConnection:

    def test_close_is_idempotent(self):
        server_sock, client_sock = socket.socketpair()
        with client_sock:
            conn = Connection(socket=server_sock, address=("127.0.0.1", 1), drain_timeout=0.05)
            conn.close()
            conn.close()
            assert conn.closed

    def test_send_after_peer_closed_reports_failure(self):
        server_sock, client_sock = socket.socketpair()
        client_sock.close()
        conn = Connection(socket=server_sock, address=("127.0.0.1", 1))

        with conn:
            assert conn.send_response(b"x" * 1_000_000) is False

    def test_read_timeout_returns_empty(self):
        server_sock, client_sock = socket.socketpair()
        with client_sock:
            conn = Connection(
                socket=server_sock, address=("127.0.0.1", 1), timeout=0.05, drain_timeout=0.05
            )
            with conn:
                assert conn.read_once(1024) == b""

    def test_close_discards_unread_input(self, caplog):
        server_sock, client_sock = socket.socketpair()
        with client_sock:
            client_sock.sendall(b"leftover" * 4)
            client_sock.shutdown(socket.SHUT_WR)
            conn = Connection(socket=server_sock, address=("127.0.0.1", 1))

            with caplog.at_level(logging.DEBUG, logger="webserver.core.connection"):
                conn.close()

            assert conn.state == ConnectionState.CLOSED
            assert "Discarded 32 unread bytes" in caplog.text
            assert client_sock.recv(16) == b""  # FIN, not a reset

    def test_close_discards_at_most_drain_limit(self, caplog):
        server_sock, client_sock = socket.socketpair()
        with client_sock:
            client_sock.sendall(b"z" * 100)
            conn = Connection(
                socket=server_sock, address=("127.0.0.1", 1), drain_timeout=0.05, drain_limit=10
            )

            with caplog.at_level(logging.DEBUG, logger="webserver.core.connection"):
                conn.close()

            assert "Discarded 10 unread bytes" in caplog.text
