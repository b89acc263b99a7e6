"""
Request handlers that ship with the server.

Handlers take (request, response) and fill in the response.
"""

from .static import StaticFileHandler

__all__ = ["StaticFileHandler"]
