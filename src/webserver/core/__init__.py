"""
=============================================================================
CORE SERVER COMPONENTS
=============================================================================

The networking side of the server:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         SOCKET SERVER                                │
    │  • Creates, binds and listens on the TCP socket                      │
    │  • Runs the accept() loop                                           │
    │  • Reports setup failures as a StartResult                          │
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    │ one connection at a time
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                       CONNECTION HANDLER                             │
    │  • read → parse → route → write → close                             │
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                          CONNECTION                                  │
    │  • Wraps the client socket: one read, one write, close              │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .connection import Connection, ConnectionState
from .dispatch import ConnectionHandler
from .socket_server import ServerState, SocketServer, StartResult

__all__ = [
    "Connection",
    "ConnectionState",
    "ConnectionHandler",
    "ServerState",
    "SocketServer",
    "StartResult",
]
