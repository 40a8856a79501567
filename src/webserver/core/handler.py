"""
=============================================================================
CONNECTION HANDLER
=============================================================================

Runs one accepted connection end to end:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                     │
    │   1. read        conn.read_request()                                │
    │   2. pre-check   no "GET" anywhere in the bytes? → 405, skip 3-4    │
    │   3. parse       RequestParser.parse()      → log [REQUEST]         │
    │   4. resolve     Resolver.resolve()                                 │
    │   5. write       header block, then body                            │
    │   6. log         [RESPONSE] header line (200) or status code        │
    │   7. close       always                                             │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
FAILURE BOUNDARY
=============================================================================

Nothing raised inside a connection escapes handle(). A malformed request,
a reset socket or an unreadable file is logged as [ERROR] and the
connection is dropped without a response; the listener moves on to the
next client.

=============================================================================
"""

import logging
from typing import Optional

from ..http.request import RequestParser, RETRIEVAL_METHOD
from ..http.resolver import Resolver
from ..http.response import HTTPResponse
from ..http.status_codes import HTTPStatus
from ..log import EventLog
from .connection import Connection, ConnectionState


logger = logging.getLogger(__name__)


class ConnectionHandler:
    """
    Drives a Connection through one request/response exchange.

    Stateless between connections, so one handler can be shared by every
    worker thread.
    """

    def __init__(
        self,
        resolver: Resolver,
        parser: Optional[RequestParser] = None,
        events: Optional[EventLog] = None,
    ):
        self.resolver = resolver
        self.parser = parser or RequestParser()
        self.events = events or EventLog()

    def __call__(self, conn: Connection) -> None:
        self.handle(conn)

    def handle(self, conn: Connection) -> None:
        """
        Process one connection and close it.

        Never raises; every failure is logged as an [ERROR] event.
        """
        with conn:
            try:
                response = self._exchange(conn)
                if response is not None:
                    self._log_response(response)
            except Exception as e:
                self.events.error(e)
                logger.debug(f"[{conn.id}] Dropped connection", exc_info=True)

    def _exchange(self, conn: Connection) -> Optional[HTTPResponse]:
        raw = conn.read_request()
        if not raw:
            logger.debug(f"[{conn.id}] Client closed without sending a request")
            return None

        conn.state = ConnectionState.PROCESSING

        # ─────────────────────────────────────────────────────────────────
        # Cheap pre-check on the raw bytes: a buffer that never mentions the
        # retrieval verb is answered 405 without being parsed at all.
        # ─────────────────────────────────────────────────────────────────
        if RETRIEVAL_METHOD.encode("ascii") not in raw:
            response = self.resolver.error(HTTPStatus.METHOD_NOT_ALLOWED)
        else:
            request = self.parser.parse(raw)
            self.events.request(request.method, request.target)
            response = self.resolver.resolve(request)

        conn.send_response(response.head_bytes(), response.body)
        return response

    def _log_response(self, response: HTTPResponse) -> None:
        if response.status.is_success:
            self.events.response(response.status, response.header_block)
        else:
            self.events.response(response.status)
