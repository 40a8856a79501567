"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps one accepted client socket for exactly one request/response exchange.

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL!
=============================================================================

TCP does NOT preserve message boundaries. A client that writes

    GET /index.html HTTP/1.1\r\nHost: localhost\r\n\r\n

may have it arrive in one recv() or in several:

    First recv():  "GET /index.ht"      (incomplete!)
    Second recv(): "ml HTTP/1.1\r\n..."  (rest)

=============================================================================
TWO READ STRATEGIES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────┐
    │  SINGLE READ (default)                                          │
    ├─────────────────────────────────────────────────────────────────┤
    │                                                                 │
    │   one recv(buffer_size) → whatever arrived is the request       │
    │                                                                 │
    │   + one syscall, trivially bounded                              │
    │   - a request split across segments, or longer than the        │
    │     buffer, is truncated (and may then fail to parse)           │
    │                                                                 │
    ├─────────────────────────────────────────────────────────────────┤
    │  READ FULL HEADERS (read_full_headers=True)                     │
    ├─────────────────────────────────────────────────────────────────┤
    │                                                                 │
    │   while b"\r\n\r\n" not in buffer: recv() → buffer              │
    │                                                                 │
    │   + correct for any segmentation                                │
    │   - stops at max_request_size; no request bodies either way     │
    │                                                                 │
    └─────────────────────────────────────────────────────────────────┘

=============================================================================
CONNECTION STATE MACHINE
=============================================================================

    NEW ──────► READING ──────► PROCESSING ──────► WRITING
     │             │                │                 │
     │             ▼                ▼                 ▼
     └────────► CLOSING ◄───────────┴─────────────────┘
                   │
                   ▼
                 CLOSED

No keep-alive: every path ends in CLOSED after a single exchange.

=============================================================================
"""

import socket
import time
import logging
import uuid
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional


logger = logging.getLogger(__name__)


HEADER_TERMINATOR = b"\r\n\r\n"

# Upper bound, in seconds, on the whole drain when closing
DRAIN_TIMEOUT = 0.5


class TransportError(ConnectionError):
    """An I/O failure on the client socket (read or write)."""


class ConnectionState(Enum):
    """Connection lifecycle states, used for logging and close bookkeeping."""
    NEW = "new"                # Just accepted, haven't read anything yet
    READING = "reading"        # Reading request bytes
    PROCESSING = "processing"  # Parsing and resolving
    WRITING = "writing"        # Sending response bytes
    CLOSING = "closing"        # Shutdown sequence in progress
    CLOSED = "closed"          # Socket released


@dataclass
class Connection:
    """
    Represents one client connection.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short connection identifier (for logging).
        state: Current connection state.
        created_at: Timestamp when connection was accepted.
        buffer_size: Bytes requested per recv().
        timeout: Socket timeout in seconds, None for blocking.
        read_full_headers: Loop until the header terminator is seen.
        max_request_size: Cap on bytes read when looping.
    """

    # Required parameters
    socket: socket.socket
    address: tuple = ("", 0)

    # Generated/default parameters
    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)

    # Configuration (passed from ServerConfig)
    buffer_size: int = 1024
    timeout: Optional[float] = 30.0
    read_full_headers: bool = False
    max_request_size: int = 64 * 1024

    def __post_init__(self):
        """Put the socket in blocking mode with the configured timeout."""
        self.socket.setblocking(True)
        if self.timeout:
            self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        """Get the client IP address."""
        return self.address[0] if self.address else ""

    @property
    def age(self) -> float:
        """Get connection age in seconds."""
        return time.time() - self.created_at

    # =========================================================================
    # READING
    # =========================================================================

    def read_request(self) -> bytes:
        """
        Read the request bytes from the socket.

        Returns:
            The bytes received; b"" if the client closed without sending.

        Raises:
            TransportError: On timeout or socket failure.
        """
        self.state = ConnectionState.READING

        try:
            data = self._recv()
            if not self.read_full_headers:
                return data

            # ─────────────────────────────────────────────────────────────
            # Keep reading until the blank line that ends the headers.
            # The client may close early; whatever we have is the request.
            # ─────────────────────────────────────────────────────────────
            buffer = data
            while data and HEADER_TERMINATOR not in buffer:
                if len(buffer) >= self.max_request_size:
                    logger.debug(f"[{self.id}] Request hit max size, truncating")
                    break
                data = self._recv()
                buffer += data
            return buffer[:self.max_request_size]

        except socket.timeout as e:
            raise TransportError(f"Request read timed out after {self.timeout}s") from e
        except OSError as e:
            raise TransportError(f"Read failed: {e}") from e

    def _recv(self) -> bytes:
        return self.socket.recv(self.buffer_size)

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_response(self, head: bytes, body: bytes = b"") -> None:
        """
        Send a response as two writes: the header block, then the body.

        sendall() on each part so neither is sent short. If the body write
        fails after the header block went out, the client holds a header
        promising bytes that will never arrive; that is reported as a
        truncated response rather than a plain send failure.

        Raises:
            TransportError: If either write fails.
        """
        self.state = ConnectionState.WRITING

        try:
            self.socket.sendall(head)
        except OSError as e:
            raise TransportError(f"Send failed: {e}") from e

        if not body:
            return

        try:
            self.socket.sendall(body)
        except OSError as e:
            raise TransportError(
                f"Response truncated after header block ({len(body)} body bytes unsent): {e}"
            ) from e

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection.

        1. shutdown(SHUT_WR): the client sees FIN after the last body byte
        2. Drain: discard anything the client sent past our single read.
           Closing with unread data makes the kernel send RST, which can
           destroy the response before the client has read it. Bounded by
           DRAIN_TIMEOUT overall and by max_request_size bytes.
        3. close(): release the descriptor

        Safe to call twice.
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Already disconnected

        self._drain()

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    def _drain(self):
        """
        Discard unread client bytes until FIN, DRAIN_TIMEOUT in total, or
        max_request_size bytes, whichever comes first.

        The deadline covers the whole drain, not each recv(): a client
        trickling bytes must not keep the accept loop waiting.
        """
        deadline = time.monotonic() + DRAIN_TIMEOUT
        drained = 0

        try:
            while drained < self.max_request_size:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    logger.debug(f"[{self.id}] Drain deadline reached")
                    break
                self.socket.settimeout(remaining)
                chunk = self.socket.recv(self.buffer_size)
                if not chunk:
                    break
                drained += len(chunk)
        except OSError:
            pass  # Timeout or reset, we're closing anyway

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - ensure connection is closed."""
        self.close()
        return False  # Don't suppress exceptions
