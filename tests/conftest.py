"""
pytest configuration and fixtures.
"""

import socket
import threading
from typing import Generator, Optional

import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from webserver import WebServer, ServerConfig, StartResult
from webserver.http import HTTPRequest, HTTPResponse


HELLO_HTML = "<html><body><h1>Hello, World!</h1><p>Welcome</p></body></html>"


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /api/users HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: application/json\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """Sample HTTP POST request with JSON body."""
    body = b'{"name": "John", "email": "john@example.com"}'
    return (
        b"POST /api/users HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"Content-Type: application/json\r\n"
        + f"Content-Length: {len(body)}\r\n".encode()
        + b"\r\n"
    ) + body


@pytest.fixture
def config() -> ServerConfig:
    """Test configuration: localhost, OS-assigned port, fast shutdown."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,
        accept_poll_interval=0.1,
        connection_timeout=5.0,
        log_level="WARNING",
    )


class ServerThread:
    """Runs a WebServer in a background thread."""

    def __init__(self, server: WebServer):
        self.server = server
        self.result: Optional[StartResult] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def _run(self):
        self.result = self.server.start()

    def start(self):
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()
        if not self.server.wait_until_listening(timeout=5.0):
            raise RuntimeError(f"Server failed to start: {self.result}")

    def stop(self):
        self.server.stop()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)

    def request(self, raw: bytes) -> bytes:
        """Send raw bytes and read until the server closes the connection."""
        with socket.create_connection(("127.0.0.1", self.port), timeout=5.0) as s:
            if raw:
                s.sendall(raw)
            else:
                s.shutdown(socket.SHUT_WR)
            chunks = []
            while True:
                chunk = s.recv(4096)
                if not chunk:
                    break
                chunks.append(chunk)
        return b"".join(chunks)


@pytest.fixture
def running_server(config: ServerConfig) -> Generator[ServerThread, None, None]:
    """A listening server with a few routes registered."""
    server = WebServer(config)

    @server.route("/")
    def index(request: HTTPRequest, response: HTTPResponse):
        response.set_content(HELLO_HTML)

    @server.route("/echo")
    def echo(request: HTTPRequest, response: HTTPResponse):
        response.set_content(request.body or b"", "text/plain")

    @server.route("/boom")
    def boom(request: HTTPRequest, response: HTTPResponse):
        raise RuntimeError("handler exploded")

    thread = ServerThread(server)
    thread.start()

    yield thread

    thread.stop()
