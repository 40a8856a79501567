"""
=============================================================================
REQUEST RESOLVER
=============================================================================

Maps a parsed request onto a file under the document root, or onto one of
the error classifications.

=============================================================================
CLASSIFICATION (first match wins)
=============================================================================

    HTTPRequest
        │
        ▼
    ┌──────────────────────────────┐
    │ target == "" ?               │──yes──► target = "index.html"
    └──────────────┬───────────────┘               │
                   ◄───────────────────────────────┘
                   ▼
    ┌──────────────────────────────┐
    │ method != GET ?              │──yes──► 405 Method Not Allowed
    └──────────────┬───────────────┘
                   ▼
    ┌──────────────────────────────┐
    │ root/target a regular file ? │──no───► 404 Not Found
    └──────────────┬───────────────┘
                   ▼
    ┌──────────────────────────────┐
    │ mime media text or image ?   │──no───► 415 Unsupported Media Type
    └──────────────┬───────────────┘
                   ▼
              200 OK, body = file bytes

The method check comes before any filesystem access: a POST never stats a
file. Each error state is terminal and produces the same fixed HTML shape
(see response.error_response).

=============================================================================
"""

import logging
import os
from typing import Optional

from .mime_types import ContentType, MimeLookup, get_mime_type
from .request import HTTPRequest, RETRIEVAL_METHOD
from .response import DEFAULT_SERVER_NAME, HTTPResponse, error_response
from .status_codes import HTTPStatus


logger = logging.getLogger(__name__)


DEFAULT_RESOURCE = "index.html"


class Resolver:
    """
    Resolves requests against a flat document root.

    Usage:
        resolver = Resolver("/srv/www")
        response = resolver.resolve(parse_request(raw))

    Holds no per-request state; one instance serves every connection, and
    is safe to share between worker threads.
    """

    def __init__(
        self,
        document_root: str,
        mime_lookup: Optional[MimeLookup] = None,
        server_name: str = DEFAULT_SERVER_NAME,
    ):
        """
        Args:
            document_root: Directory the files are served from.
            mime_lookup:   File name → MIME string. Must be total.
                           Defaults to the built-in extension table.
            server_name:   Value for the Server header.
        """
        self.document_root = document_root
        self.mime_lookup = mime_lookup or get_mime_type
        self.server_name = server_name

    def file_path(self, target: str) -> str:
        """Compose the on-disk path for a flattened target."""
        return self.document_root + "/" + target

    def resolve(self, request: HTTPRequest) -> HTTPResponse:
        """
        Classify `request` and build its response.

        Returns:
            The 200 response carrying the file, or a 404/405/415 error
            response.

        Raises:
            OSError: If the file exists but cannot be read. The connection
                     handler treats this like any other failure.
        """
        target = request.target or DEFAULT_RESOURCE

        if request.method != RETRIEVAL_METHOD:
            return self.error(HTTPStatus.METHOD_NOT_ALLOWED)

        path = self.file_path(target)
        if not os.path.isfile(path):
            logger.debug(f"No such file: {path}")
            return self.error(HTTPStatus.NOT_FOUND)

        content_type = ContentType.parse(self.mime_lookup(target))
        if not content_type.is_servable:
            logger.debug(f"Refusing {content_type} for {target}")
            return self.error(HTTPStatus.UNSUPPORTED_MEDIA_TYPE)

        with open(path, "rb") as f:
            body = f.read()

        return HTTPResponse(
            status=HTTPStatus.OK,
            content_type=content_type,
            body=body,
            server=self.server_name,
        )

    def error(self, status: HTTPStatus) -> HTTPResponse:
        """Build the fixed HTML error response for `status`."""
        return error_response(status, server=self.server_name)


def resolve(
    request: HTTPRequest,
    document_root: str,
    mime_lookup: Optional[MimeLookup] = None,
) -> HTTPResponse:
    """
    Resolve a single request without keeping a Resolver around.

    Args:
        request: Parsed request.
        document_root: Directory to serve from.
        mime_lookup: Optional MIME lookup override.
    """
    return Resolver(document_root, mime_lookup).resolve(request)
