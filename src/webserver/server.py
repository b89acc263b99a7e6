"""
=============================================================================
WEB SERVER
=============================================================================

The object an application talks to. It owns the configuration, the route
table and the socket server, and wires them together.

=============================================================================
ARCHITECTURE OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │                        ┌─────────────────┐                          │
    │                        │    WebServer    │                          │
    │                        └────────┬────────┘                          │
    │                                 │ owns                               │
    │            ┌────────────────────┼────────────────────┐              │
    │            ▼                    ▼                    ▼              │
    │    ┌──────────────┐    ┌──────────────────┐   ┌──────────────┐      │
    │    │ SocketServer │───►│ConnectionHandler │──►│    Router    │      │
    │    │ (accept loop)│    │ (one cycle/conn) │   │ (route table)│      │
    │    └──────────────┘    └──────────────────┘   └──────────────┘      │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
REQUEST FLOW
=============================================================================

    1. SocketServer accepts a TCP connection
    2. ConnectionHandler reads once (buffer_size bytes at most)
    3. RequestParser turns the bytes into an HTTPRequest
    4. Router resolves request.path → handler (or 404)
    5. handler(request, response) fills in the response
    6. response.serialize() is written back
    7. The connection is closed; the loop accepts the next one

=============================================================================
"""

import dataclasses
import logging
from pathlib import Path
from typing import Callable, Optional, Tuple, Union

from .config import ServerConfig
from .core import ConnectionHandler, ServerState, SocketServer, StartResult
from .http.router import Handler, Router


logger = logging.getLogger(__name__)


class WebServer:
    """
    Single-threaded HTTP/1.1 server with exact-path routing.

    =========================================================================
    USAGE
    =========================================================================

        server = WebServer(port=8080)

        @server.route("/")
        def index(request, response):
            response.set_content("<html><body><h1>Hello, World!</h1></body></html>")

        server.add_route("/api/data", api_data)
        server.add_static_file_route("/index.html", "public/index.html")

        result = server.start()      # blocks until stop()
        if not result.ok:
            sys.exit(1)

    Routes must be registered before start(); the table is read-only
    while the server is listening.

    =========================================================================
    """

    def __init__(self, config: Optional[ServerConfig] = None, port: Optional[int] = None):
        """
        Initialize the server.

        Args:
            config: Server configuration. Defaults are used if omitted.
            port: Shortcut to override config.port.

        Raises:
            ValueError: If the configuration is invalid.
        """
        self.config = config or ServerConfig()
        if port is not None:
            self.config = dataclasses.replace(self.config, port=port)
        self.config.validate()

        self._router = Router()
        self._socket_server = SocketServer(self.config)
        self._connection_handler = ConnectionHandler(
            self._router,
            buffer_size=self.config.buffer_size,
        )

    # =========================================================================
    # ROUTE REGISTRATION
    # =========================================================================

    @property
    def router(self) -> Router:
        return self._router

    def add_route(self, path: str, handler: Handler) -> None:
        """Register a handler for an exact path (last registration wins)."""
        self._router.add_route(path, handler)

    def add_static_file_route(self, path: str, file_path: Union[str, Path]) -> None:
        """Serve file_path's current contents at path."""
        self._router.add_static_file_route(path, file_path)

    def route(self, path: str) -> Callable[[Handler], Handler]:
        """Decorator form of add_route()."""
        return self._router.route(path)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    @property
    def state(self) -> ServerState:
        return self._socket_server.state

    @property
    def is_running(self) -> bool:
        return self._socket_server.is_running

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (host, port); reflects the real port when config.port is 0."""
        return self._socket_server.address

    def start(self) -> StartResult:
        """
        Start serving (blocking).

        Returns when stop() is called or when the listening socket could
        not be set up. Setup errors are returned, not raised:

            result = server.start()
            if result.error:
                ...

        Returns:
            StartResult describing how the server ended.
        """
        self._setup_logging()

        self._router.freeze()
        logger.info(f"Starting server with {len(self._router)} route(s)")
        self._router.log_routes()

        try:
            result = self._socket_server.start(self._connection_handler)
        finally:
            self._router.unfreeze()

        if result.error is not None:
            logger.error(f"Server failed to start: {result.error}")
        return result

    def stop(self) -> None:
        """Stop accepting connections and release the listening socket."""
        self._socket_server.stop()

    def wait_until_listening(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_until_listening(timeout)

    def _setup_logging(self) -> None:
        """Configure logging based on config."""
        level = self.config.log_level_value

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        logging.getLogger("webserver").setLevel(level)

    def __enter__(self) -> "WebServer":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()

    def __del__(self):
        socket_server = getattr(self, "_socket_server", None)
        if socket_server is not None:
            socket_server.stop()
