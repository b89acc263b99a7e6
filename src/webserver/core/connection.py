"""
=============================================================================
CONNECTION WRAPPER
=============================================================================

Wraps one accepted client socket with the three operations a connection
cycle needs: one read, one write, one close.

=============================================================================
ONE READ, NO REASSEMBLY
=============================================================================

TCP is a byte stream, so a single recv() may return only part of what the
client sent. This server performs exactly ONE recv() per connection:

    Client sends 20 KB          recv(8192)          Parser sees
    ───────────────────  ──►  ─────────────  ──►  first 8 KB only

Anything beyond the read buffer is never parsed. This is the server's
documented request size limit, not something the connection papers over.

=============================================================================
CLOSING WITH UNREAD INPUT
=============================================================================

Closing a TCP socket that still has unread input makes the kernel send a
reset (RST) instead of a FIN, and the client may lose the response that
was already written. close() therefore ends the connection in three steps:

    1. shutdown(SHUT_WR)     FIN to the client, response is complete
    2. discard input         recv() and throw away, until EOF, the
                             drain timeout, or drain_limit bytes
    3. close()               release the file descriptor

The discarded bytes are never parsed.

=============================================================================
CONNECTION STATE MACHINE
=============================================================================

    NEW ──► READING ──► PROCESSING ──► WRITING ──► CLOSING ──► CLOSED
     │         │             │                        ▲
     └─────────┴─────────────┴────────────────────────┘
              (empty read, parse failure, error)

=============================================================================
"""

import logging
import socket
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Connection lifecycle states, used for logging and tests."""

    NEW = "new"
    READING = "reading"
    PROCESSING = "processing"
    WRITING = "writing"
    CLOSING = "closing"
    CLOSED = "closed"


@dataclass
class Connection:
    """
    Represents a client connection.

    Attributes:
        socket: The accepted client socket.
        address: Client's (ip, port) tuple.
        id: Short unique identifier for log lines.
        state: Current lifecycle state.
        timeout: Optional per-connection socket timeout in seconds.
                 None keeps the socket fully blocking.
        drain_timeout: How long close() waits for leftover client input.
        drain_limit: Most leftover bytes close() discards before giving up.
    """

    socket: socket.socket
    address: Tuple[str, int]
    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)
    timeout: Optional[float] = None
    drain_timeout: float = 0.5
    drain_limit: int = 1024 * 1024

    def __post_init__(self):
        # Accepted sockets must not inherit the listener's poll timeout.
        self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        return self.address[0] if self.address else ""

    @property
    def age(self) -> float:
        """Connection age in seconds."""
        return time.time() - self.created_at

    @property
    def closed(self) -> bool:
        return self.state == ConnectionState.CLOSED

    def read_once(self, buffer_size: int) -> bytes:
        """
        Perform a single recv() of at most buffer_size bytes.

        Returns:
            The bytes received. Empty bytes if the peer closed without
            sending, reset the connection, or the read timed out.
        """
        self.state = ConnectionState.READING
        try:
            return self.socket.recv(buffer_size)
        except socket.timeout:
            logger.debug(f"[{self.id}] Read timed out")
            return b""
        except OSError as e:
            logger.debug(f"[{self.id}] Read failed: {e}")
            return b""

    def send_response(self, data: bytes) -> bool:
        """
        Send response bytes to the client.

        Uses sendall() so a partial send cannot silently drop the tail of
        the response.

        Returns:
            True if all bytes were handed to the kernel, False otherwise.
        """
        self.state = ConnectionState.WRITING
        try:
            self.socket.sendall(data)
            return True
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    def close(self) -> None:
        """
        Close the connection. Safe to call more than once.

        Sends FIN, discards any input left beyond the single read, then
        releases the socket. See CLOSING WITH UNREAD INPUT above.
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Peer already gone

        discarded = self._discard_input()
        if discarded:
            logger.debug(f"[{self.id}] Discarded {discarded} unread bytes")

        try:
            self.socket.close()
        except OSError:
            pass  # Already gone
        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Closed after {self.age * 1000:.1f}ms")

    def _discard_input(self) -> int:
        discarded = 0
        try:
            self.socket.settimeout(self.drain_timeout)
            while discarded < self.drain_limit:
                chunk = self.socket.recv(min(8192, self.drain_limit - discarded))
                if not chunk:
                    break
                discarded += len(chunk)
        except OSError:
            pass  # Timed out or reset; closing anyway
        return discarded

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
