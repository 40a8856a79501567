"""
=============================================================================
CORE SERVER COMPONENTS
=============================================================================

The networking side of the server:

    SocketServer       accepts TCP clients (the listener loop)
    Connection         wraps one client socket: read, write, close
    ConnectionHandler  one exchange: read → parse → resolve → write → close
    ThreadPool         optional workers for handling connections in parallel

Nothing here knows what a status code means; that lives in webserver.http.

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState, TransportError
from .handler import ConnectionHandler
from .thread_pool import ThreadPool

__all__ = [
    "SocketServer",
    "Connection",
    "ConnectionState",
    "TransportError",
    "ConnectionHandler",
    "ThreadPool",
]
