"""
=============================================================================
WEBSERVER - A Minimal One-Shot HTTP/1.1 Server
=============================================================================

Accepts TCP connections, reads one request per connection, routes it by
exact path to a handler and writes back the response. Built on raw
sockets; one connection is served at a time.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    webserver/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m webserver)
    ├── server.py            # WebServer facade
    ├── config.py            # ServerConfig dataclass
    ├── core/                # Networking
    │   ├── socket_server.py # Listening socket + accept loop
    │   ├── dispatch.py      # Per-connection read/route/write cycle
    │   └── connection.py    # Client socket wrapper
    ├── http/                # Protocol
    │   ├── request.py       # Request parsing
    │   ├── response.py      # Response model + serialization
    │   ├── router.py        # Exact-path routing
    │   ├── status_codes.py  # HTTP status enum
    │   └── mime_types.py    # Suffix → Content-Type
    └── handlers/
        └── static.py        # Static file routes

=============================================================================
QUICK START
=============================================================================

    from webserver import WebServer

    server = WebServer(port=8080)

    @server.route("/")
    def index(request, response):
        response.set_content("<html><body><h1>Hello, World!</h1></body></html>")

    @server.route("/api/data")
    def data(request, response):
        response.set_json({"message": "This is JSON data"})

    server.add_static_file_route("/index.html", "public/index.html")

    server.start()

=============================================================================
"""

__version__ = "1.0.0"

from .config import ServerConfig
from .core import ServerState, StartResult
from .http import HTTPRequest, HTTPResponse, HTTPParseError, Router
from .server import WebServer

__all__ = [
    "WebServer",
    "ServerConfig",
    "ServerState",
    "StartResult",
    "HTTPRequest",
    "HTTPResponse",
    "HTTPParseError",
    "Router",
    "__version__",
]
