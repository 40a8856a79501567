"""
=============================================================================
HTTP PROTOCOL LAYER
=============================================================================

Everything that knows what HTTP looks like, and nothing that knows about
sockets:

    request.py       bytes → HTTPRequest
    resolver.py      HTTPRequest → HTTPResponse (filesystem lookup)
    response.py      HTTPResponse → bytes
    status_codes.py  the codes we send
    mime_types.py    file name → MIME type, ContentType

Keeping this layer socket-free means all of it can be tested with plain
bytes and a temporary directory.

=============================================================================
"""

from .request import (
    HTTPRequest,
    RequestParser,
    HTTPParseError,
    MalformedRequest,
    parse_request,
)
from .response import (
    HTTPResponse,
    error_response,
    format_http_date,
)
from .resolver import Resolver, resolve
from .status_codes import HTTPStatus
from .mime_types import ContentType, get_mime_type

__all__ = [
    # Request parsing
    "HTTPRequest",
    "RequestParser",
    "HTTPParseError",
    "MalformedRequest",
    "parse_request",

    # Responses
    "HTTPResponse",
    "error_response",
    "format_http_date",

    # Resolution
    "Resolver",
    "resolve",

    # Status codes
    "HTTPStatus",

    # MIME types
    "ContentType",
    "get_mime_type",
]
