"""
=============================================================================
CLI ENTRY POINT
=============================================================================

Run the example server:

    python -m webserver
    python -m webserver --port 3000
    python -m webserver --static /about.html=public/about.html

Registers three example routes:

    /            Hello World HTML page
    /api/data    Small JSON document
    /index.html  Contents of public/index.html (relative to the working dir)

Exits with status 1 if the listening socket cannot be set up.

=============================================================================
"""

import argparse
import sys

from . import __version__
from .config import LOG_LEVELS, ServerConfig
from .server import WebServer


HELLO_PAGE = (
    "<html><body><h1>Hello, World!</h1>"
    "<p>Welcome to the Python Web Server</p></body></html>"
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="webserver",
        description="Minimal one-request-per-connection HTTP/1.1 server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m webserver                                  # Run on port 8080
  python -m webserver --port 3000                      # Custom port
  python -m webserver --host 127.0.0.1                 # Localhost only
  python -m webserver --static /a.css=public/a.css     # Extra static route
        """,
    )

    # Defaults are None so environment values (ServerConfig.from_env)
    # apply unless a flag is given.
    parser.add_argument(
        "--host", "-H",
        default=None,
        help="Host to bind to (default: 0.0.0.0, or $HTTP_HOST)",
    )
    parser.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Port to listen on (default: 8080, or $HTTP_PORT)",
    )
    parser.add_argument(
        "--timeout", "-t",
        type=float,
        default=None,
        help="Per-connection read/write timeout in seconds (default: none)",
    )
    parser.add_argument(
        "--log-level", "-l",
        choices=LOG_LEVELS,
        default=None,
        help="Logging level (default: INFO, or $HTTP_LOG_LEVEL)",
    )
    parser.add_argument(
        "--static", "-s",
        action="append",
        default=[],
        metavar="ROUTE=FILE",
        help="Serve FILE at ROUTE (repeatable)",
    )
    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"webserver {__version__}",
    )
    return parser


def build_config(args: argparse.Namespace) -> ServerConfig:
    """Environment first, then command-line overrides."""
    config = ServerConfig.from_env()
    if args.host is not None:
        config.host = args.host
    if args.port is not None:
        config.port = args.port
    if args.timeout is not None:
        config.connection_timeout = args.timeout
    if args.log_level is not None:
        config.log_level = args.log_level
    return config


def register_example_routes(server: WebServer) -> None:
    @server.route("/")
    def index(request, response):
        response.set_content(HELLO_PAGE)

    @server.route("/api/data")
    def api_data(request, response):
        response.set_json({"message": "This is JSON data"})

    server.add_static_file_route("/index.html", "public/index.html")


def parse_static_routes(parser: argparse.ArgumentParser, values: list) -> list:
    routes = []
    for value in values:
        route, sep, file_path = value.partition("=")
        if not sep or not route or not file_path:
            parser.error(f"--static expects ROUTE=FILE, got {value!r}")
        routes.append((route, file_path))
    return routes


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        server = WebServer(build_config(args))
    except ValueError as e:
        parser.error(str(e))

    register_example_routes(server)
    for route, file_path in parse_static_routes(parser, args.static):
        server.add_static_file_route(route, file_path)

    result = server.start()
    if not result.ok:
        print(f"Error: {result.error}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
