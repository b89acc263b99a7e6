"""
=============================================================================
HTTP RESPONSE MODEL
=============================================================================

A mutable HTTP response that handlers fill in, plus its wire serialization.

=============================================================================
HTTP RESPONSE ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP RESPONSE STRUCTURE                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   HTTP/1.1 200 OK\r\n                 ← Status line                 │
    │   ────┬─── ─┬─ ─┬─                                                  │
    │   Version  Code Message                                             │
    │                                                                      │
    │   Content-Type: text/html\r\n         ← Headers (any order)         │
    │   Content-Length: 27\r\n                                            │
    │   \r\n                                ← Blank line                  │
    │   <html>...</html>                    ← Body, raw bytes             │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
HANDLER CONTRACT
=============================================================================

Handlers do not build and return responses. The connection handler passes
each handler a fresh default response (200 OK, no headers, empty body),
and the handler mutates it in place:

    def index(request, response):
        response.set_content("<h1>Hello</h1>")

    def missing(request, response):
        response.set_not_found()

Only set_content() touches Content-Type and Content-Length. serialize()
writes exactly the headers that are present; it adds nothing on its own.

=============================================================================
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from .status_codes import HTTPStatus, reason_phrase


NOT_FOUND_PAGE = "<html><body><h1>404 Not Found</h1></body></html>"

INTERNAL_ERROR_PAGE = "<html><body><h1>500 Internal Server Error</h1></body></html>"


@dataclass
class HTTPResponse:
    """
    Represents an HTTP response to be sent to the client.

    =========================================================================
    RESPONSE LIFECYCLE
    =========================================================================

        HTTPResponse()      handler(request, response)      serialize()
        200 OK, empty ───►  mutates in place        ───►   wire bytes
                                                             │
                                                        sendall()

    =========================================================================
    """

    version: str = "HTTP/1.1"
    status_code: int = HTTPStatus.OK
    status_message: str = "OK"
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def status_line(self) -> str:
        """
        Get the HTTP status line.

        Format: VERSION SP STATUS-CODE SP MESSAGE
        Example: "HTTP/1.1 200 OK"
        """
        return f"{self.version} {int(self.status_code)} {self.status_message}"

    def set_status(self, status_code: int, message: Optional[str] = None) -> "HTTPResponse":
        """
        Set the status code and message.

        Args:
            status_code: Numeric code or HTTPStatus member
            message: Status message; the standard reason phrase if omitted

        Returns:
            Self for method chaining
        """
        self.status_code = status_code
        self.status_message = message if message is not None else reason_phrase(status_code)
        return self

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        """Set a response header, replacing any previous value."""
        self.headers[name] = value
        return self

    def set_content(
        self,
        content: Union[str, bytes],
        content_type: str = "text/html",
    ) -> "HTTPResponse":
        """
        Set the body together with Content-Type and Content-Length.

        Strings are encoded as UTF-8; bytes are stored untouched. After
        this call Content-Length always equals the body's byte length.

        Args:
            content: Response body
            content_type: Value for the Content-Type header

        Returns:
            Self for method chaining
        """
        if isinstance(content, str):
            content = content.encode("utf-8")
        self.body = content
        self.headers["Content-Type"] = content_type
        self.headers["Content-Length"] = str(len(self.body))
        return self

    def set_json(self, data: Any) -> "HTTPResponse":
        """Serialize data as JSON and set it as an application/json body."""
        return self.set_content(json.dumps(data), "application/json")

    def set_not_found(self) -> "HTTPResponse":
        """Turn this response into the standard 404 page."""
        self.set_status(HTTPStatus.NOT_FOUND, "Not Found")
        return self.set_content(NOT_FOUND_PAGE)

    def set_internal_error(self) -> "HTTPResponse":
        """Turn this response into the standard 500 page."""
        self.headers.clear()
        self.set_status(HTTPStatus.INTERNAL_SERVER_ERROR, "Internal Server Error")
        return self.set_content(INTERNAL_ERROR_PAGE)

    def serialize(self) -> bytes:
        """
        Serialize the response to bytes for sending over the socket.

        =====================================================================
        SERIALIZATION FORMAT
        =====================================================================

            HTTP/1.1 200 OK\\r\\n          ← Status line
            Content-Type: text/html\\r\\n  ← One line per header
            Content-Length: 5\\r\\n
            \\r\\n                         ← Blank line
            hello                        ← Body bytes, verbatim

        Header order follows the dict and carries no meaning.

        =====================================================================
        """
        lines = [self.status_line]
        for name, value in self.headers.items():
            lines.append(f"{name}: {value}")
        head = "\r\n".join(lines) + "\r\n\r\n"
        return head.encode("utf-8") + self.body
