"""
=============================================================================
CORE SERVER COMPONENTS
=============================================================================

The networking plumbing under the file server.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         SOCKET SERVER                                │
    │  ─────────────────────────────────────────────────────────────────  │
    │  • Creates the listening TCP socket, binds, listens                 │
    │  • Runs the accept() loop                                           │
    │  • Handles graceful shutdown via SIGTERM / SIGINT                   │
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    │ One Connection per accepted socket
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                          CONNECTION                                  │
    │  ─────────────────────────────────────────────────────────────────  │
    │  • Buffered request-line reading                                    │
    │  • Streaming the rest of the input until the peer half-closes       │
    │  • Writing, and a proper TCP close                                  │
    └─────────────────────────────────────────────────────────────────────┘

Thread-per-connection lives one level up, in fileshare.server: each
accepted Connection gets its own thread and is owned by it exclusively.

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState, RequestLineTooLong

__all__ = [
    "SocketServer",        # Accept loop
    "Connection",          # Wrapper for one client socket
    "ConnectionState",     # Connection lifecycle states
    "RequestLineTooLong",  # Raised by Connection.read_line()
]
