"""
=============================================================================
WEBSERVER - Flat-Root Static File Server over Raw Sockets
=============================================================================

Serves the files of a single directory over HTTP/1.1, one request per
connection, using nothing but the standard library's socket module.

=============================================================================
PROJECT OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                     │
    │   client ──TCP──► SocketServer (accept loop)                        │
    │                        │                                            │
    │                        ▼                                            │
    │                  ConnectionHandler                                  │
    │                   │   read bytes                                    │
    │                   │   RequestParser   → HTTPRequest                 │
    │                   │   Resolver        → HTTPResponse                │
    │                   │   write header block + body                     │
    │                   └── close                                         │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

What it does:
    - GET of any text/* or image/* file directly inside the document root
    - 404 for missing files, 405 for other verbs, 415 for other types
    - "/" serves index.html
    - Tagged event log: [REQUEST] [RESPONSE] [ERROR] [SERVER STOPPED]

What it deliberately doesn't:
    - keep-alive, chunked encoding, request bodies, TLS, virtual hosts
    - subdirectories: "/a/b/c.html" is served as "c.html"

=============================================================================
QUICK START
=============================================================================

    # Command line
    python -m webserver --root ./public --port 8080

    # In code
    from webserver import WebServer, ServerConfig

    server = WebServer(ServerConfig(root="./public", port=8080))
    server.run()

=============================================================================
"""

__version__ = "1.0.0"

from .server import WebServer, create_server
from .config import ServerConfig

__all__ = ["WebServer", "ServerConfig", "create_server", "__version__"]
