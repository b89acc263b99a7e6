"""
=============================================================================
CONNECTION HANDLER
=============================================================================

Runs the full connection cycle for one accepted client:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        CONNECTION CYCLE                             │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   1. READ       one recv(buffer_size)                               │
    │                 └── nothing read? → close, no response              │
    │                                                                      │
    │   2. PARSE      RequestParser.parse(bytes)                          │
    │                 └── bad Content-Length? → close, no response        │
    │                                                                      │
    │   3. ROUTE      router.resolve(request.path)                        │
    │                 ├── found     → handler(request, HTTPResponse())    │
    │                 │               └── raises? → 500 page              │
    │                 └── not found → response.set_not_found()            │
    │                                                                      │
    │   4. WRITE      sendall(response.serialize())                       │
    │                                                                      │
    │   5. CLOSE      always, even when a step above failed               │
    │                 └── FIN first, leftover input discarded unparsed    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Nothing here is allowed to escape into the accept loop: a bad request or a
broken handler costs one connection, never the server.

=============================================================================
"""

import logging

from .connection import Connection, ConnectionState
from ..http.request import HTTPParseError, HTTPRequest, RequestParser
from ..http.response import HTTPResponse
from ..http.router import Router


logger = logging.getLogger(__name__)

access_logger = logging.getLogger("webserver.access")


class ConnectionHandler:
    """
    Callable that performs one read → parse → route → write → close cycle.

    Usage:
        handler = ConnectionHandler(router, buffer_size=8192)
        handler(conn)   # conn is closed when this returns
    """

    def __init__(self, router: Router, buffer_size: int = 8192):
        self.router = router
        self.buffer_size = buffer_size
        self._parser = RequestParser()

    def __call__(self, conn: Connection) -> None:
        with conn:
            raw = conn.read_once(self.buffer_size)
            if not raw:
                logger.debug(f"[{conn.id}] No data received, closing")
                return

            try:
                request = self._parser.parse(raw, conn.address)
            except HTTPParseError as e:
                logger.warning(f"[{conn.id}] Dropping request from {conn.client_ip}: {e}")
                return

            if request.is_truncated:
                logger.debug(
                    f"[{conn.id}] Body truncated: declared {request.content_length} bytes, "
                    f"received {len(request.body or b'')}"
                )

            conn.state = ConnectionState.PROCESSING
            response = self.dispatch(request)

            if conn.send_response(response.serialize()):
                self._log_access(request, response)

    def dispatch(self, request: HTTPRequest) -> HTTPResponse:
        """
        Route a parsed request and produce its response.

        Kept separate from the socket work so it can be exercised directly.
        """
        response = HTTPResponse()
        handler = self.router.resolve(request.path)

        if handler is None:
            response.set_not_found()
            return response

        try:
            handler(request, response)
        except Exception as e:
            logger.exception(f"Handler error for {request.path}: {e}")
            response.set_internal_error()

        return response

    def _log_access(self, request: HTTPRequest, response: HTTPResponse) -> None:
        client_ip = request.client_address[0] or "-"
        access_logger.info(
            f'{client_ip} "{request.method} {request.path} {request.version}" '
            f"{int(response.status_code)} {len(response.body)}"
        )
