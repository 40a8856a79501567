"""
=============================================================================
LOW-LEVEL TCP SOCKET SERVER
=============================================================================

The listener loop: owns the listening socket, accepts clients, and hands
each one to a connection handler.

=============================================================================
SOCKET LIFECYCLE (Server Side)
=============================================================================

    1. socket()    Create the listening socket
    2. bind()      Reserve host:port                  ┐
    3. listen()    Start queueing incoming clients    ┘ start()
    4. accept()    Take the next client (loop)          serve_forever()
    5. close()     Release the listening socket         shutdown()

=============================================================================
THE RUNNING FLAG
=============================================================================

Whether new connections are accepted is decided by ONE threading.Event:

    while running.is_set():
        try:
            client = accept()          # blocks at most accept_timeout
        except timeout:
            continue                   # re-check the flag
        dispatch(client)

shutdown() clears the event and closes the listening socket. A connection
already being handled runs to completion; nothing new is accepted after.
The Event is safe to clear from any thread or from a signal handler.

=============================================================================
SIGNAL HANDLING
=============================================================================

SIGINT (Ctrl+C) and SIGTERM (docker stop, systemd, kill) both trigger
shutdown() when install_signal_handlers() has been called. Python only
allows this from the main thread, so servers run from tests or embedded
in other programs simply don't install them.

=============================================================================
"""

import socket
import signal
import logging
import threading
from typing import Callable, Optional, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


Dispatch = Callable[[Connection], None]


class SocketServer:
    """
    Low-level TCP socket server.

    Usage:
        server = SocketServer(config)
        server.start()                       # bind + listen
        server.serve_forever(handler)        # blocks until shutdown()
    """

    def __init__(self, config: ServerConfig):
        """
        Args:
            config: Server configuration (host, port, backlog, timeouts).

        The socket is not created until start().
        """
        self.config = config
        self._socket: Optional[socket.socket] = None
        self._running = threading.Event()
        self._original_handlers: dict = {}

    @property
    def is_running(self) -> bool:
        return self._running.is_set()

    @property
    def address(self) -> Tuple[str, int]:
        """
        The bound (host, port). After start() this is the real port, which
        matters when the config asked for port 0.
        """
        if self._socket is not None:
            host, port = self._socket.getsockname()[:2]
            return host, port
        return (self.config.host, self.config.port)

    def _create_socket(self) -> socket.socket:
        """
        Create and configure the listening socket.

        SO_REUSEADDR: rebinding right after a restart must not fail with
        "Address already in use" while old sockets sit in TIME_WAIT.

        The accept timeout turns accept() into a poll so the running flag
        is re-checked at least every accept_timeout seconds.
        """
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.settimeout(self.config.accept_timeout)
        return sock

    def start(self):
        """
        Bind and listen. Does not accept anything yet.

        Raises:
            OSError: If the address can't be bound.
        """
        self._socket = self._create_socket()

        try:
            self._socket.bind((self.config.host, self.config.port))
        except OSError as e:
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            self._socket.close()
            self._socket = None
            raise

        self._socket.listen(self.config.backlog)
        self._running.set()

        host, port = self.address
        logger.info(f"Server listening on {host}:{port}")

    def serve_forever(self, dispatch: Dispatch):
        """
        Accept connections until shutdown() is called.

        Args:
            dispatch: Called with each accepted Connection. Runs inline for
                      the synchronous server, or queues to a thread pool.
        """
        if self._socket is None:
            raise RuntimeError("serve_forever() called before start()")

        try:
            self._accept_loop(dispatch)
        finally:
            self._cleanup()

    def _accept_loop(self, dispatch: Dispatch):
        listen_socket = self._socket

        while self._running.is_set():
            try:
                client_socket, client_address = listen_socket.accept()
            except socket.timeout:
                # Normal: just time to re-check the running flag
                continue
            except OSError as e:
                # Listening socket closed under us: we're shutting down
                if self._running.is_set():
                    logger.error(f"Accept error: {e}")
                break

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

            conn = Connection(
                socket=client_socket,
                address=client_address,
                buffer_size=self.config.buffer_size,
                timeout=self.config.timeout,
                read_full_headers=self.config.read_full_headers,
                max_request_size=self.config.max_request_size,
            )

            try:
                dispatch(conn)
            except Exception as e:
                # dispatch owns the connection, but never let it kill the loop
                logger.exception(f"[{conn.id}] Dispatch failed: {e}")
                conn.close()

    def shutdown(self):
        """
        Stop accepting connections.

        Idempotent, and safe to call from another thread or a signal
        handler.
        """
        if not self._running.is_set():
            return
        logger.info("Shutting down socket server...")
        self._running.clear()
        self._close_socket()

    def _close_socket(self):
        sock, self._socket = self._socket, None
        if sock is not None:
            try:
                sock.close()
            except OSError:
                pass  # Already closed

    def _cleanup(self):
        self._running.clear()
        self._close_socket()
        self.restore_signal_handlers()
        logger.info("Socket server stopped")

    # =========================================================================
    # SIGNALS
    # =========================================================================

    def install_signal_handlers(self):
        """
        Route SIGINT/SIGTERM to shutdown().

        Must be called from the main thread. Original handlers are kept and
        put back when the loop exits.
        """
        def shutdown_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            logger.info(f"Received {signal_name}, initiating shutdown...")
            self.shutdown()

        for sig in (signal.SIGTERM, signal.SIGINT):
            self._original_handlers[sig] = signal.signal(sig, shutdown_handler)

    def restore_signal_handlers(self):
        """Restore original signal handlers."""
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()
