"""
=============================================================================
LOW-LEVEL TCP SOCKET SERVER
=============================================================================

Owns the listening socket and runs the accept loop.

=============================================================================
SOCKET LIFECYCLE (Server Side)
=============================================================================

    1. socket()    Create an IPv4 TCP socket
    2. setsockopt  SO_REUSEADDR, so a restart doesn't hit "Address already
                   in use" while old connections sit in TIME_WAIT
    3. bind()      Reserve host:port (0.0.0.0 = all interfaces)
    4. listen()    Let the kernel queue incoming connections
    5. accept()    Take one connection off the queue (loop)
    6. close()     Release the listening socket

Steps 1-4 are "setup". A failure there is not raised: start() logs it,
closes whatever was created and returns a StartResult carrying the error.
The caller decides whether that should end the process.

=============================================================================
ONE CONNECTION AT A TIME
=============================================================================

    ┌─────────────────────────────────────────────────────────────────┐
    │                     Accept Loop Flow                             │
    ├─────────────────────────────────────────────────────────────────┤
    │                                                                  │
    │   while running:                                                 │
    │       accept()              ← wakes every accept_poll_interval  │
    │       │                       to notice stop()                  │
    │       ▼                                                          │
    │       connection_handler(conn)                                   │
    │       │                                                          │
    │       └── runs to completion (socket closed) before the next    │
    │           accept(). No threads, no pool.                         │
    │                                                                  │
    └─────────────────────────────────────────────────────────────────┘

A slow client therefore delays every client queued behind it. This is the
server's concurrency model, not an accident.

A failed accept() is logged and the loop carries on.

=============================================================================
STATES
=============================================================================

    STOPPED ──start() ok──► LISTENING ──stop() / loop exit──► STOPPED
       ▲                                                      │
       └──────────── start() setup failure ◄──────────────────┘

=============================================================================
"""

import logging
import signal
import socket
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


class ServerState(Enum):
    STOPPED = "stopped"
    LISTENING = "listening"


@dataclass
class StartResult:
    """
    Outcome of SocketServer.start().

    error is None when the server listened and later stopped normally, and
    holds the setup exception (bind, listen, ...) otherwise.

        result = server.start()
        if not result.ok:
            sys.exit(1)
    """

    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def __bool__(self) -> bool:
        return self.ok


class SocketServer:
    """
    Low-level TCP socket server.

    Usage:
        def handle_connection(conn: Connection):
            ...   # must close conn

        server = SocketServer(config)
        result = server.start(handle_connection)   # blocks until stop()
    """

    def __init__(self, config: ServerConfig):
        """
        Initialize the socket server.

        Note: the socket is not created here, only in start().
        """
        self.config = config

        self._socket: Optional[socket.socket] = None
        self._bound_address: Optional[Tuple[str, int]] = None
        self._running = False
        self._looping = False

        # Lets other threads wait for the listener to come up
        self._listening = threading.Event()

        self._original_handlers: dict = {}

    @property
    def state(self) -> ServerState:
        if self._running and self._socket is not None:
            return ServerState.LISTENING
        return ServerState.STOPPED

    @property
    def is_running(self) -> bool:
        return self.state == ServerState.LISTENING

    @property
    def address(self) -> Tuple[str, int]:
        """The bound (host, port), or the configured one before binding."""
        if self._bound_address is not None:
            return self._bound_address
        return (self.config.host, self.config.port)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def start(self, connection_handler: Callable[[Connection], None]) -> StartResult:
        """
        Set up the listening socket and run the accept loop.

        Blocks until stop() is called (from another thread, a signal
        handler, or a connection handler).

        Args:
            connection_handler: Called synchronously with each accepted
                                Connection.

        Returns:
            StartResult; .error is set if socket setup failed.
        """
        if self._running:
            return StartResult(error=RuntimeError("Server is already running"))

        try:
            self._open_socket()
        except OSError as e:
            logger.error(f"Failed to start server on {self.config.host}:{self.config.port}: {e}")
            self._close_socket()
            return StartResult(error=e)

        self._running = True
        self._looping = True
        self._setup_signals()
        self._listening.set()

        host, port = self.address
        logger.info(f"Server started on {host}:{port}")

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

        return StartResult()

    def stop(self) -> None:
        """
        Stop the server.

        Clears the running flag and releases the listening socket. If the
        accept loop is active, it is woken up and closes the socket itself
        on the way out. Safe to call repeatedly.
        """
        was_running = self._running
        self._running = False

        if self._looping:
            self._wake_listener()
        else:
            self._close_socket()

        if was_running:
            logger.info("Stopping server...")

    def wait_until_listening(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for start() to finish setup.

        Returns:
            True once the server is listening, False on timeout.
        """
        return self._listening.wait(timeout)

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _open_socket(self) -> None:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._socket = sock

        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((self.config.host, self.config.port))
        sock.listen(self.config.backlog)

        # Bounded accept() so the loop can notice stop()
        sock.settimeout(self.config.accept_poll_interval)

        self._bound_address = sock.getsockname()[:2]

    def _accept_loop(self, connection_handler: Callable[[Connection], None]) -> None:
        while self._running:
            sock = self._socket
            if sock is None:
                break

            try:
                client_socket, client_address = sock.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if not self._running:
                    break
                logger.error(f"Accept failed: {e}")
                continue

            logger.info(f"Client connected: {client_address[0]}:{client_address[1]}")

            conn = Connection(
                socket=client_socket,
                address=client_address,
                timeout=self.config.connection_timeout,
            )

            try:
                connection_handler(conn)
            except Exception as e:
                logger.exception(f"[{conn.id}] Connection handler failed: {e}")
            finally:
                conn.close()

    def _wake_listener(self) -> None:
        # shutdown() makes a blocked accept() return immediately on Linux;
        # elsewhere the poll interval bounds the wait.
        sock = self._socket
        if sock is None:
            return
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass

    def _close_socket(self) -> None:
        sock, self._socket = self._socket, None
        if sock is not None:
            try:
                sock.close()
            except OSError:
                pass  # Already closed

    def _cleanup(self) -> None:
        self._running = False
        self._looping = False
        self._listening.clear()
        self._restore_signals()
        self._close_socket()
        logger.info("Server stopped")

    def _setup_signals(self) -> None:
        """
        Stop on SIGINT (Ctrl+C) and SIGTERM (kill, docker stop).

        signal.signal() only works in the main thread, so servers started
        from a worker thread (tests, embedding) skip this.
        """
        if not self.config.install_signal_handlers:
            return
        if threading.current_thread() is not threading.main_thread():
            return

        def shutdown_handler(signum, frame):
            logger.info(f"Received {signal.Signals(signum).name}, shutting down...")
            self.stop()

        for sig in (signal.SIGINT, signal.SIGTERM):
            self._original_handlers[sig] = signal.signal(sig, shutdown_handler)

    def _restore_signals(self) -> None:
        for sig, handler in self._original_handlers.items():
            if handler is not None:
                signal.signal(sig, handler)
        self._original_handlers.clear()
