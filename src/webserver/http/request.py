"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Parses the raw bytes of a single read from a client socket into a
structured HTTPRequest.

=============================================================================
HTTP REQUEST ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP REQUEST STRUCTURE                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   POST /api/data HTTP/1.1\r\n        ← Request line                 │
    │   ─┬── ────┬──── ───┬────                                           │
    │  Method   Path    Version                                           │
    │                                                                      │
    │   Host: localhost:8080\r\n           ← Headers ("Name: value")      │
    │   Content-Length: 13\r\n                                            │
    │   \r\n                               ← Blank line                   │
    │                                                                      │
    │   {"key": "v"}\n                     ← Body (Content-Length bytes)  │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
A PERMISSIVE PARSER
=============================================================================

This parser never rejects a request for being oddly shaped:

    - Bare LF line endings are accepted as well as CRLF
    - A short request line leaves the missing fields empty
    - Header lines without a colon are skipped
    - A repeated header overwrites the earlier one

The one hard failure is a Content-Length that is not a non-negative
integer. There is no sensible body length to fall back to, so the parser
raises HTTPParseError and the caller drops the connection.

Header names keep the case they arrived with. Content-Length is looked up
by its exact canonical spelling.

=============================================================================
BODY TRUNCATION
=============================================================================

The server reads a request with one fixed-size recv(). When the declared
Content-Length is larger than what arrived, the body is clamped to the
available bytes:

    Content-Length: 100
    \r\n
    <40 bytes>              → body = those 40 bytes, is_truncated = True

No second read is attempted.

=============================================================================
"""

import re
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple


CONTENT_LENGTH = "Content-Length"

_CONTENT_LENGTH_PATTERN = re.compile(r"[0-9]+")


class HTTPParseError(Exception):
    """
    Raised when a request cannot be parsed.

    Carries the HTTP status code that describes the failure, so callers
    can log or report it consistently.
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class HTTPRequest:
    """
    A parsed HTTP request.

    Attributes:
        method:          "GET", "POST", ... (empty if missing)
        path:            Request target exactly as sent, used as routing key.
                         A query string is NOT stripped: "/search?q=x".
        version:         "HTTP/1.1", "HTTP/1.0", ... (empty if missing)
        headers:         Header name → value, case as received
        body:            Raw body bytes, or None when no Content-Length
                         header was sent
        content_length:  The declared Content-Length, or None
        client_address:  (ip, port) of the peer, when known
    """

    method: str = ""
    path: str = ""
    version: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None
    content_length: Optional[int] = None
    client_address: Tuple[str, int] = ("", 0)

    @property
    def is_truncated(self) -> bool:
        """True when fewer body bytes arrived than Content-Length declared."""
        if self.content_length is None:
            return False
        return len(self.body or b"") < self.content_length

    @property
    def text(self) -> str:
        """The body decoded as UTF-8 (empty string when there is no body)."""
        if not self.body:
            return ""
        return self.body.decode("utf-8", errors="replace")

    def get_header(self, name: str, default: str = "") -> str:
        """
        Get a header value by exact name.

        Args:
            name: Header name, case-sensitive
            default: Value returned when the header is absent
        """
        return self.headers.get(name, default)


class RequestParser:
    """
    Parses raw request bytes into HTTPRequest objects.

    ==========================================================================
    PARSING ALGORITHM
    ==========================================================================

        raw bytes
            │
            ├──► 1. Request line      split on whitespace → method/path/version
            │
            ├──► 2. Header lines      up to the first blank line (or "\r")
            │                         "Name: value" → headers[Name] = value
            │
            └──► 3. Body              if Content-Length is present:
                                      raw[pos : pos + N], clamped to len(raw)

    The parse position is tracked in bytes so the body is sliced from the
    original buffer without re-encoding.

    ==========================================================================
    """

    ENCODING = "utf-8"

    def parse(
        self,
        data: bytes,
        client_address: Tuple[str, int] = ("", 0),
    ) -> HTTPRequest:
        """
        Parse raw HTTP request data.

        Args:
            data: Bytes read from the socket.
            client_address: Peer (ip, port), kept on the request for logging.

        Returns:
            Parsed HTTPRequest. Missing parts stay empty.

        Raises:
            HTTPParseError: If Content-Length is not a non-negative integer.
        """
        request = HTTPRequest(client_address=client_address)

        # ---------------------------------------------------------------------
        # REQUEST LINE
        # ---------------------------------------------------------------------
        line, pos = self._next_line(data, 0)
        if line is None:
            return request

        tokens = line.split()
        request.method, request.path, request.version = (tokens + ["", "", ""])[:3]

        # ---------------------------------------------------------------------
        # HEADERS
        # ---------------------------------------------------------------------
        while True:
            line, pos = self._next_line(data, pos)
            if line is None:
                break
            if line == "" or line == "\r":
                break

            line = line.rstrip("\r")
            name, colon, value = line.partition(":")
            if not colon:
                continue  # Not a header line
            request.headers[name] = value.lstrip(" \t")

        # ---------------------------------------------------------------------
        # BODY
        # ---------------------------------------------------------------------
        if CONTENT_LENGTH in request.headers:
            length = self._parse_content_length(request.headers[CONTENT_LENGTH])
            request.content_length = length
            request.body = data[pos:pos + length]

        return request

    def _next_line(self, data: bytes, pos: int) -> Tuple[Optional[str], int]:
        """
        Read one line starting at pos.

        Returns the decoded line without its "\n" (a trailing "\r" is kept)
        and the position just after it. At end of input returns (None, pos).
        A final line without a newline is still returned.
        """
        if pos >= len(data):
            return None, len(data)

        end = data.find(b"\n", pos)
        if end == -1:
            return data[pos:].decode(self.ENCODING, errors="replace"), len(data)
        return data[pos:end].decode(self.ENCODING, errors="replace"), end + 1

    def _parse_content_length(self, value: str) -> int:
        value = value.strip()
        if not _CONTENT_LENGTH_PATTERN.fullmatch(value):
            raise HTTPParseError(f"Invalid Content-Length: {value!r}")
        return int(value)


_default_parser = RequestParser()


def parse_request(data: bytes, client_address: Tuple[str, int] = ("", 0)) -> HTTPRequest:
    """
    Convenience function to parse a request with the default parser.

    Example:
        request = parse_request(b"GET / HTTP/1.1\\r\\nHost: x\\r\\n\\r\\n")
        request.path   # "/"
    """
    return _default_parser.parse(data, client_address)
