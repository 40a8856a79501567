"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Turns the bytes of one socket read into a structured HTTPRequest.

=============================================================================
WHAT WE READ FROM THE WIRE
=============================================================================

Only the request line matters to a flat file server:

    GET /docs/guide/index.html HTTP/1.1\r\n
    ─┬─ ──────────┬─────────── ────┬───
     │            │                │
    Verb       Target          Version (8 chars from the "HTTP" marker)
                  │
                  ▼
            "index.html"   ← only the last path segment survives

Header lines after it are collected leniently (malformed lines skipped) so
callers can look at Host or User-Agent, but nothing downstream depends on
them.

=============================================================================
FLATTENING
=============================================================================

Every target is reduced to its final path segment:

    "/index.html"           → "index.html"
    "/a/b/c.html"           → "c.html"
    "/"                     → ""            (resolver picks index.html)
    "/../../etc/passwd"     → "passwd"

This deliberately departs from standard HTTP path semantics: the document
root is a single flat directory, and there is no way to name anything
outside of it. Changing this means adding a real traversal guard first.

=============================================================================
PARSE FAILURES
=============================================================================

    ┌───────────────────────────────────┬──────────────────────────────────┐
    │  Input                            │  Result                          │
    ├───────────────────────────────────┼──────────────────────────────────┤
    │  b""                              │  MalformedRequest (empty)        │
    │  b"GET /x\r\n\r\n"                │  MalformedRequest (no HTTP)      │
    │  b"GET /x HTTP/x.y\r\n"           │  MalformedRequest (bad version)  │
    │  b"POST /x HTTP/1.1\r\n"          │  parses fine: 405 is decided by  │
    │                                   │  the resolver, not the parser    │
    └───────────────────────────────────┴──────────────────────────────────┘

=============================================================================
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Mapping, Tuple
import re

from .status_codes import HTTPStatus


class HTTPParseError(Exception):
    """
    Raised when HTTP request parsing fails.

    Carries the HTTP status code a caller would answer with if it chose to
    answer at all. The connection handler currently drops the connection
    instead (see core.handler).
    """

    def __init__(self, message: str, status_code: int = HTTPStatus.BAD_REQUEST):
        super().__init__(message)
        self.status_code = status_code


class MalformedRequest(HTTPParseError):
    """The buffer does not contain a usable request line."""


# The retrieval verb; the only one the resolver will serve
RETRIEVAL_METHOD = "GET"


@dataclass(frozen=True)
class HTTPRequest:
    """
    A parsed request. Built once per connection, never mutated.

    Attributes:
        method:   Verb token exactly as received ("GET", "POST", ...)
        target:   Flattened file name, "" meaning the default resource
        version:  (major, minor), e.g. (1, 1)
        headers:  Header name (lowercase) → value, read-only
        raw:      The bytes this request was parsed from

    Hashable: the hash covers method, target and version. Headers are
    copied into a read-only mapping at construction, so the caller's dict
    can change afterwards without touching the request.
    """

    method: str
    target: str = ""
    version: Tuple[int, int] = (1, 1)
    headers: Mapping[str, str] = field(default_factory=dict, hash=False)
    raw: bytes = field(default=b"", repr=False, compare=False)

    def __post_init__(self):
        # frozen: bypass __setattr__ to swap in the read-only copy
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))

    @classmethod
    def for_target(cls, target: str, host: str) -> "HTTPRequest":
        """
        Build an outbound GET request for `target` addressed to `host`.

        The target is stored as given (it is a path we are about to send,
        not one we received), and a Host header is added as HTTP/1.1
        requires.

        Example:
            HTTPRequest.for_target("/index.html", "localhost:8080").to_bytes()
            # b"GET /index.html HTTP/1.1\\r\\nHost: localhost:8080\\r\\n\\r\\n"
        """
        return cls(
            method=RETRIEVAL_METHOD,
            target=target,
            version=(1, 1),
            headers={"host": host},
        )

    @property
    def version_string(self) -> str:
        """The version as it appears on the wire: "HTTP/1.1"."""
        return f"HTTP/{self.version[0]}.{self.version[1]}"

    @property
    def request_line(self) -> str:
        """Render the request line, e.g. "GET index.html HTTP/1.1"."""
        return f"{self.method} {self.target} {self.version_string}"

    @property
    def host(self) -> str:
        return self.headers.get("host", "")

    def get_header(self, name: str, default: str = "") -> str:
        """
        Get a header value (case-insensitive lookup).

        Works because names are stored lowercase at parse time.
        """
        return self.headers.get(name.lower(), default)

    def to_bytes(self) -> bytes:
        """
        Serialize the request for sending.

        Request line, one "Name: value" line per header, blank line.
        Header names are rendered in their canonical Title-Case.
        """
        lines = [self.request_line]
        for name, value in self.headers.items():
            lines.append(f"{_canonical(name)}: {value}")
        lines.append("")
        return ("\r\n".join(lines) + "\r\n").encode("ascii")


class RequestParser:
    """
    Parses raw request bytes into HTTPRequest objects.

    ==========================================================================
    PARSER STEPS
    ==========================================================================

        Raw bytes (one recv)
              │
              ▼
        1. Decode as ASCII (bad bytes replaced, never fails)
              │
              ▼
        2. Verb = leading whitespace-delimited token
              │  empty? → MalformedRequest
              ▼
        3. Find the "HTTP" marker on the request line
              │  missing? → MalformedRequest
              ▼
        4. Version = 8 chars from the marker → (major, minor)
              │  not HTTP/d.d? → MalformedRequest
              ▼
        5. Target = text between verb and marker, flattened
              │
              ▼
        6. Headers from the remaining lines (lenient)

    ==========================================================================
    """

    PROTOCOL_MARKER = "HTTP"
    VERSION_PATTERN = re.compile(r"^HTTP/(\d)\.(\d)$")
    HEADER_PATTERN = re.compile(r"^([^:\s][^:]*):\s*(.*)$")

    # Separators a target may use; both collapse to the last segment
    PATH_SEPARATORS = ("/", "\\")

    def parse(self, data: bytes) -> HTTPRequest:
        """
        Parse raw HTTP request data into an HTTPRequest object.

        Args:
            data: Bytes captured from the socket.

        Returns:
            Parsed HTTPRequest.

        Raises:
            MalformedRequest: If no request line can be recovered.
        """
        text = data.decode("ascii", errors="replace")

        # ---------------------------------------------------------------------
        # Request line vs. header lines
        # ---------------------------------------------------------------------
        # Accept bare LF as well as CRLF; a truncated buffer may have no
        # line ending at all, in which case everything is the request line.
        lines = text.replace("\r\n", "\n").split("\n")
        request_line = lines[0]

        parts = request_line.split(maxsplit=1)
        if not parts:
            raise MalformedRequest("Empty request")
        method = parts[0]

        # ---------------------------------------------------------------------
        # Locate the protocol marker
        # ---------------------------------------------------------------------
        # Searched after the verb so a verb can never be mistaken for it.
        # rfind: a target may itself contain "HTTP" ("/HTTP-notes.txt").
        verb_end = request_line.find(method) + len(method)
        marker = request_line.rfind(self.PROTOCOL_MARKER, verb_end)
        if marker == -1:
            raise MalformedRequest(f"Missing protocol marker: {request_line!r}")

        version = self._parse_version(request_line[marker:marker + 8])
        target = self._flatten(request_line[verb_end:marker].strip())
        headers = self._parse_headers(lines[1:])

        return HTTPRequest(
            method=method,
            target=target,
            version=version,
            headers=headers,
            raw=data,
        )

    def _parse_version(self, token: str) -> Tuple[int, int]:
        match = self.VERSION_PATTERN.match(token)
        if not match:
            raise MalformedRequest(f"Invalid protocol version: {token!r}")
        return int(match.group(1)), int(match.group(2))

    def _flatten(self, target: str) -> str:
        """Keep only what follows the last path separator."""
        for separator in self.PATH_SEPARATORS:
            target = target.rsplit(separator, 1)[-1]
        return target

    def _parse_headers(self, lines: list[str]) -> Dict[str, str]:
        """
        Collect "Name: value" lines into a dict with lowercase names.

        Stops at the first blank line. Lines that don't look like headers
        (including a line cut in half by the read buffer) are skipped.
        Repeated headers are joined with ", " as RFC 7230 allows.
        """
        headers: Dict[str, str] = {}

        for line in lines:
            if not line.strip():
                break

            match = self.HEADER_PATTERN.match(line)
            if not match:
                continue

            name = match.group(1).strip().lower()
            value = match.group(2).strip()

            if name in headers:
                headers[name] += ", " + value
            else:
                headers[name] = value

        return headers


def _canonical(name: str) -> str:
    """content-type → Content-Type"""
    return "-".join(part.capitalize() for part in name.split("-"))


# =============================================================================
# CONVENIENCE FUNCTION
# =============================================================================

def parse_request(data: bytes) -> HTTPRequest:
    """
    Parse an HTTP request in one call.

    Args:
        data: Raw HTTP request bytes.

    Returns:
        Parsed HTTPRequest object.

    Raises:
        MalformedRequest: If the request line is unusable.
    """
    return RequestParser().parse(data)
