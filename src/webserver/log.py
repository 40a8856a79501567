"""
=============================================================================
EVENT LOG
=============================================================================

The server writes one line per protocol event, each tagged so the log can
be grepped:

    [REQUEST] HTTP Verb GET Resource: index.html
    [RESPONSE] HTTP/1.1 200 Date: ... Content-Type: text/html Content-Length: 2
    [RESPONSE] 404
    [ERROR] MalformedRequest: Missing protocol marker: 'GET /x'
    [SERVER STOPPED]

These go to the "webserver.events" logger. Where they end up (console,
./myOwnWebServer.log, both) is decided by setup_logging(), not by the code
emitting them. The stdlib handlers lock around every write, so events from
worker threads never interleave mid-line.

=============================================================================
"""

import logging
from typing import Optional

from .config import ServerConfig


EVENT_LOGGER = "webserver.events"

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
EVENT_FORMAT = "%(asctime)s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class EventLog:
    """
    Emits the tagged protocol events.

    Wraps a stdlib logger so the connection handler never formats tags
    itself, and so tests can hand in any logger they like.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(EVENT_LOGGER)

    def request(self, verb: str, target: str) -> None:
        self.logger.info(f"[REQUEST] HTTP Verb {verb} Resource: {target}")

    def response(self, status: int, header_block: Optional[str] = None) -> None:
        """
        Log a sent response.

        Successful responses log their whole header block on one line;
        everything else logs just the status code.
        """
        if header_block is None:
            self.logger.info(f"[RESPONSE] {int(status)}")
            return
        one_line = header_block.replace("\r", "").replace("\n", " ").strip()
        self.logger.info(f"[RESPONSE] {one_line}")

    def error(self, exc: BaseException) -> None:
        self.logger.error(f"[ERROR] {type(exc).__name__}: {exc}")

    def server_stopped(self) -> None:
        self.logger.info("[SERVER STOPPED]")


def setup_logging(config: ServerConfig) -> None:
    """
    Configure logging based on config.

    Console output for everything at or above log_level; if log_file is set,
    the event log is also appended there.
    """
    level = getattr(logging, config.log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
    )

    logging.getLogger("webserver").setLevel(level)

    if config.log_file:
        events = logging.getLogger(EVENT_LOGGER)
        # Re-running setup (tests, embedding) must not duplicate file lines
        for handler in list(events.handlers):
            if isinstance(handler, logging.FileHandler):
                events.removeHandler(handler)
                handler.close()

        file_handler = logging.FileHandler(config.log_file, mode="a", encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(EVENT_FORMAT, datefmt=DATE_FORMAT))
        events.addHandler(file_handler)
