"""
=============================================================================
URL ROUTER
=============================================================================

Maps exact request paths to handler functions.

=============================================================================
EXACT MATCHING ONLY
=============================================================================

The route table is a plain dictionary keyed by path string. A request is
routed by looking its path up as-is:

    ┌───────────────────────┬──────────────────────────────────────────┐
    │  Registered           │  Request path       →  Result            │
    ├───────────────────────┼──────────────────────────────────────────┤
    │  /foo                 │  /foo               →  handler           │
    │  /foo                 │  /foo/              →  not found         │
    │  /search              │  /search?q=x        →  not found         │
    │  /search?q=x          │  /search?q=x        →  handler           │
    └───────────────────────┴──────────────────────────────────────────┘

No trailing-slash normalization, no query stripping, no parameters or
wildcards. The method is not part of the key either: a route answers
every method.

=============================================================================
ROUTE TABLE LIFECYCLE
=============================================================================

    populate (add_route, ...)  ──►  freeze()  ──►  serve  ──►  unfreeze()
                                       │
                                       └── add_route() now raises
                                           RouteRegistrationError

The server freezes its router while listening, so every connection sees
the same table.

=============================================================================
"""

import logging
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

from .request import HTTPRequest
from .response import HTTPResponse
from ..handlers.static import StaticFileHandler


logger = logging.getLogger(__name__)


# A handler receives the parsed request and mutates the response in place.
Handler = Callable[[HTTPRequest, HTTPResponse], None]


class RouteRegistrationError(RuntimeError):
    """Raised when routes are changed while the table is frozen."""


class Router:
    """
    Exact-path router.

    Usage:
        router = Router()

        @router.route("/")
        def index(request, response):
            response.set_content("<h1>Hello</h1>")

        router.add_static_file_route("/index.html", "public/index.html")

        handler = router.resolve("/")      # → index
        handler = router.resolve("/nope")  # → None
    """

    def __init__(self):
        self._routes: Dict[str, Handler] = {}
        self._frozen = False

    # =========================================================================
    # REGISTRATION
    # =========================================================================

    def add_route(self, path: str, handler: Handler) -> None:
        """
        Register a handler for an exact path.

        Registering the same path again replaces the earlier handler.

        Raises:
            RouteRegistrationError: If the router is frozen.
        """
        if self._frozen:
            raise RouteRegistrationError(
                f"Cannot register {path!r}: routes are read-only while serving"
            )
        if path in self._routes:
            logger.debug(f"Replacing handler for {path}")
        self._routes[path] = handler

    def add_static_file_route(self, path: str, file_path: Union[str, Path]) -> None:
        """Register a route that serves the current contents of file_path."""
        self.add_route(path, StaticFileHandler(file_path))

    def route(self, path: str) -> Callable[[Handler], Handler]:
        """
        Decorator form of add_route().

            @router.route("/api/data")
            def data(request, response):
                response.set_json({"message": "This is JSON data"})
        """
        def decorator(handler: Handler) -> Handler:
            self.add_route(path, handler)
            return handler
        return decorator

    # =========================================================================
    # LOOKUP
    # =========================================================================

    def resolve(self, path: str) -> Optional[Handler]:
        """
        Find the handler for a path.

        Returns:
            The registered handler, or None when nothing matches.
        """
        return self._routes.get(path)

    # =========================================================================
    # TABLE STATE
    # =========================================================================

    def freeze(self) -> None:
        self._frozen = True

    def unfreeze(self) -> None:
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def paths(self) -> List[str]:
        """Registered paths, sorted."""
        return sorted(self._routes)

    def __len__(self) -> int:
        return len(self._routes)

    def __contains__(self, path: str) -> bool:
        return path in self._routes

    def log_routes(self) -> None:
        """Log the route table (useful at startup)."""
        for path in self.paths:
            handler = self._routes[path]
            name = getattr(handler, "__name__", repr(handler))
            logger.info(f"  route {path} → {name}")
