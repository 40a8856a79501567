"""
=============================================================================
WEB SERVER
=============================================================================

Ties the components together:

    ServerConfig
        │
        ▼
    WebServer ──► SocketServer.serve_forever(dispatch)
                        │
                        ▼  one Connection per client
                  ┌──────────────────────────────┐
     workers == 0 │ ConnectionHandler(conn)      │  inline, one at a time
     workers  > 0 │ ThreadPool.submit(handler,   │  several in flight
                  │                   conn)      │
                  └──────────────────────────────┘

=============================================================================
LIFECYCLE
=============================================================================

    server = WebServer(ServerConfig(root="./public"))

    server.run()          # start() + serve_forever(), blocks; Ctrl+C stops

or, driving it from another thread (tests, embedding):

    server.start()                      # bind + listen
    threading.Thread(target=server.serve_forever).start()
    ...
    server.stop()                       # stop accepting, log [SERVER STOPPED]

=============================================================================
"""

import logging
import threading
from typing import Optional, Tuple

from .config import ServerConfig
from .core import ConnectionHandler, SocketServer, ThreadPool
from .http import RequestParser, Resolver
from .http.mime_types import MimeLookup
from .log import EventLog, setup_logging


logger = logging.getLogger(__name__)


class WebServer:
    """
    Static file server for a flat document root.

    =========================================================================
    ARCHITECTURE
    =========================================================================

    - ServerConfig: Configuration management
    - SocketServer: Listening socket and accept loop
    - ConnectionHandler: One request/response exchange per connection
    - Resolver: Request → file or error classification
    - ThreadPool: Optional concurrency (config.workers > 0)
    - EventLog: [REQUEST]/[RESPONSE]/[ERROR]/[SERVER STOPPED] lines

    =========================================================================
    """

    def __init__(
        self,
        config: Optional[ServerConfig] = None,
        mime_lookup: Optional[MimeLookup] = None,
        events: Optional[EventLog] = None,
    ):
        """
        Args:
            config: Server configuration. Uses defaults if not provided.
            mime_lookup: Replaces the built-in extension → MIME table.
            events: Event sink; defaults to the "webserver.events" logger.
        """
        self.config = config or ServerConfig()
        self.config.validate()  # Fail-fast on invalid config

        self.events = events or EventLog()

        self._resolver = Resolver(
            self.config.root,
            mime_lookup=mime_lookup,
            server_name=self.config.server_name,
        )
        self._handler = ConnectionHandler(
            self._resolver,
            parser=RequestParser(),
            events=self.events,
        )
        self._socket_server = SocketServer(self.config)

        self._thread_pool: Optional[ThreadPool] = None
        if self.config.workers > 0:
            self._thread_pool = ThreadPool(workers=self.config.workers)

        self._stop_lock = threading.Lock()
        self._stopped = False

    @property
    def address(self) -> Tuple[str, int]:
        """The (host, port) actually bound, once started."""
        return self._socket_server.address

    @property
    def is_running(self) -> bool:
        return self._socket_server.is_running

    # =========================================================================
    # SERVER LIFECYCLE
    # =========================================================================

    def start(self):
        """Bind the listening socket and start workers, if any."""
        with self._stop_lock:
            self._stopped = False

        self._socket_server.start()
        if self._thread_pool is not None:
            self._thread_pool.start()

        host, port = self.address
        logger.info(f"Serving {self.config.root} on http://{host}:{port}")

    def serve_forever(self):
        """Accept and handle connections until stop() is called."""
        try:
            self._socket_server.serve_forever(self._dispatch)
        finally:
            self.stop()

    def run(self):
        """
        Start the server and block until it is stopped.

        Installs SIGINT/SIGTERM handlers, so call it from the main thread.
        """
        self.start()
        self._socket_server.install_signal_handlers()
        try:
            self.serve_forever()
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")

    def stop(self):
        """
        Stop accepting connections and release the listening socket.

        Connections already being handled finish first. Safe to call more
        than once; [SERVER STOPPED] is logged once.
        """
        with self._stop_lock:
            if self._stopped:
                return
            self._stopped = True

        self._socket_server.shutdown()
        if self._thread_pool is not None:
            self._thread_pool.shutdown(timeout=self.config.timeout)

        self.events.server_stopped()

    # =========================================================================
    # DISPATCH
    # =========================================================================

    def _dispatch(self, conn):
        if self._thread_pool is None:
            self._handler.handle(conn)
        else:
            self._thread_pool.submit(self._handler.handle, conn)


def create_server(config: Optional[ServerConfig] = None, **kwargs) -> WebServer:
    """
    Create a server from a config, or from keyword overrides of the defaults.

    Example:
        server = create_server(root="./public", port=3000)
        server.run()
    """
    if config is None:
        config = ServerConfig(**kwargs)
    elif kwargs:
        raise TypeError("Pass either a config or keyword settings, not both")
    return WebServer(config)


def serve(config: ServerConfig):
    """Configure logging and run a server until it is stopped."""
    setup_logging(config)
    create_server(config).run()
