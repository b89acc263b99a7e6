"""
=============================================================================
STATIC FILE ROUTES
=============================================================================

Serves one file from disk at one exact route:

    server.add_static_file_route("/index.html", "public/index.html")

    GET /index.html
        │
        ▼
    StaticFileHandler("public/index.html")(request, response)
        │
        ├── open + read the whole file    (fresh on every request)
        ├── Content-Type from the suffix  (see mime_types.py)
        └── response.set_content(bytes, content_type)

    File missing or unreadable → response.set_not_found()

There is no caching, no ETag, and no directory handling. Edits to the file
show up on the next request because nothing is remembered between calls.

=============================================================================
"""

import logging
from pathlib import Path
from typing import Union

from ..http.mime_types import get_content_type
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger(__name__)


class StaticFileHandler:
    """
    Route handler that serves the current contents of a single file.

    Usage:
        handler = StaticFileHandler("public/style.css")
        router.add_route("/style.css", handler)
    """

    def __init__(self, file_path: Union[str, Path]):
        """
        Args:
            file_path: File to serve. Relative paths are resolved against
                       the process working directory at request time.
        """
        self.file_path = Path(file_path)
        self.content_type = get_content_type(file_path)

    def __call__(self, request: HTTPRequest, response: HTTPResponse) -> None:
        try:
            with open(self.file_path, "rb") as f:
                content = f.read()
        except OSError as e:
            logger.debug(f"Static file unavailable: {self.file_path} ({e})")
            response.set_not_found()
            return

        response.set_content(content, self.content_type)

    def __repr__(self) -> str:
        return f"StaticFileHandler({str(self.file_path)!r})"
