"""
=============================================================================
HTTP PROTOCOL LAYER
=============================================================================

Translates between raw bytes and structured HTTP messages, and maps
request paths to handlers.

    request.py       bytes → HTTPRequest
    response.py      HTTPResponse → bytes
    router.py        path → handler (exact match)
    status_codes.py  HTTPStatus enum and reason phrases
    mime_types.py    file suffix → Content-Type

=============================================================================
"""

# request and response must load before router (router → handlers.static → http.*)
from .request import HTTPRequest, RequestParser, HTTPParseError, parse_request
from .response import HTTPResponse, NOT_FOUND_PAGE
from .router import Router, Handler, RouteRegistrationError
from .status_codes import HTTPStatus
from .mime_types import get_content_type

__all__ = [
    "HTTPRequest",
    "RequestParser",
    "HTTPParseError",
    "parse_request",
    "HTTPResponse",
    "NOT_FOUND_PAGE",
    "Router",
    "Handler",
    "RouteRegistrationError",
    "HTTPStatus",
    "get_content_type",
]
