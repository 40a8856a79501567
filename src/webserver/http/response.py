"""
=============================================================================
HTTP RESPONSE MODEL
=============================================================================

Holds one response and renders it onto the wire.

=============================================================================
WIRE FORMAT
=============================================================================

    HTTP/1.1 200\r\n                          ← status line (no reason phrase)
    Date: Thu, 15 Jan 2026 12:30:45 GMT\r\n
    Content-Type: text/html\r\n
    Content-Length: 2\r\n                    ← always len(body)
    \r\n                                     ← end of header block
    hi                                       ← body bytes, untouched

The header block and the body are written in two sends (see
core.connection), but the receiver must see them as one message: a client
that only gets the header block has received a broken response.

=============================================================================
THE CONTENT-LENGTH INVARIANT
=============================================================================

Content-Length is never stored. It is computed from the body every time the
headers are rendered, so no code path can produce a response whose declared
length disagrees with what is sent:

    HTTPResponse(body=b"hi").headers["Content-Length"]  → "2"

The body is bytes from start to finish. Images go out exactly as they were
read from disk; nothing is decoded or re-encoded.

=============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict

from .mime_types import ContentType, HTML
from .status_codes import HTTPStatus


DEFAULT_SERVER_NAME = "webserver/1.0"

# Error responses always claim this version, whatever the request said
ERROR_VERSION = "1.1"

# Headers written to the socket, in order
WIRE_HEADERS = ("Date", "Content-Type", "Content-Length")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class HTTPResponse:
    """
    Represents an HTTP response to be sent to the client.

    Attributes:
        status:        HTTP status code (enum)
        content_type:  Type of the body, rendered into Content-Type
        body:          Response body bytes
        version:       Protocol version for the status line ("1.1")
        server:        Value of the Server header
        date:          Construction time (UTC), rendered into Date
    """

    status: HTTPStatus = HTTPStatus.OK
    content_type: ContentType = HTML
    body: bytes = b""
    version: str = "1.1"
    server: str = DEFAULT_SERVER_NAME
    date: datetime = field(default_factory=_utcnow)

    @property
    def reason(self) -> str:
        return self.status.phrase

    @property
    def content_length(self) -> int:
        return len(self.body)

    @property
    def status_line(self) -> str:
        """
        Get the HTTP status line.

        Format: "HTTP/" VERSION SP STATUS-CODE
        Example: "HTTP/1.1 404"

        The reason phrase is optional in HTTP/1.1 and is left off.
        """
        return f"HTTP/{self.version} {int(self.status)}"

    @property
    def headers(self) -> Dict[str, str]:
        """
        All response headers, wire headers first.

        Server is part of the response's metadata but is not put on the wire
        (see WIRE_HEADERS).
        """
        return {
            "Date": format_http_date(self.date),
            "Content-Type": str(self.content_type),
            "Content-Length": str(self.content_length),
            "Server": self.server,
        }

    @property
    def header_block(self) -> str:
        """
        The status line and wire headers, CRLF-terminated, ending with the
        blank separator line.
        """
        headers = self.headers
        lines = [self.status_line]
        for name in WIRE_HEADERS:
            lines.append(f"{name}: {headers[name]}")
        return "\r\n".join(lines) + "\r\n\r\n"

    def head_bytes(self) -> bytes:
        """The header block as bytes (the first of the two sends)."""
        return self.header_block.encode("utf-8")

    def to_bytes(self) -> bytes:
        """
        Serialize the whole response: header block followed by the body.

        Returns:
            Complete HTTP response as bytes ready for socket.sendall()
        """
        return self.head_bytes() + self.body


def error_response(
    status: HTTPStatus,
    server: str = DEFAULT_SERVER_NAME,
) -> HTTPResponse:
    """
    Build the fixed HTML error response for a status.

        error_response(HTTPStatus.NOT_FOUND).body
        # b"<h2>404: Not Found</h2>"

    The status line version is pinned to 1.1 regardless of what version the
    client spoke.
    """
    body = f"<h2>{int(status)}: {status.phrase}</h2>".encode("utf-8")
    return HTTPResponse(
        status=status,
        content_type=HTML,
        body=body,
        version=ERROR_VERSION,
        server=server,
    )


def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an HTTP-date (RFC 1123).

    Format: Day, DD Mon YYYY HH:MM:SS GMT
    Example: Thu, 15 Jan 2026 12:30:45 GMT

    HTTP dates are always GMT. Naive datetimes are assumed to already be
    UTC; aware ones are converted.
    """
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)

    # Weekday names (0=Monday in Python's datetime)
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]

    # Month names (1-indexed, so we subtract 1)
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )
