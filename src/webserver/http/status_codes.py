"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The status codes this server can put on the wire, with their reason phrases.

=============================================================================
WHICH CODES DO WE ACTUALLY SEND?
=============================================================================

A static file server only ever has a handful of answers:

    ┌────────┬──────────────────────────┬──────────────────────────────────┐
    │  Code  │  Reason                  │  When                            │
    ├────────┼──────────────────────────┼──────────────────────────────────┤
    │  200   │  OK                      │  File found and servable         │
    │  400   │  Bad Request             │  Request line unparsable         │
    │  404   │  Not Found               │  No regular file under the root  │
    │  405   │  Method Not Allowed      │  Anything other than GET         │
    │  415   │  Unsupported Media Type  │  Not text/* or image/*           │
    └────────┴──────────────────────────┴──────────────────────────────────┘

400 is never written to a client today (parse failures drop the
connection), but the parser carries it on its exception so callers can
decide to answer instead.

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes and reason phrases.

    IntEnum, so a status compares equal to its number:

        >>> HTTPStatus.NOT_FOUND == 404
        True
        >>> HTTPStatus.NOT_FOUND.phrase
        'Not Found'
    """

    # 2xx SUCCESS
    OK = 200

    # 4xx CLIENT ERRORS
    BAD_REQUEST = 400
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405
    UNSUPPORTED_MEDIA_TYPE = 415

    @property
    def phrase(self) -> str:
        """
        Get the reason phrase for this status code.

        The phrase is what error bodies render after the code:

            <h2>404: Not Found</h2>
                ───  ─────────
                 │       └──── phrase
                 └──────────── code
        """
        return _STATUS_PHRASES.get(self, "Unknown")

    @property
    def is_success(self) -> bool:
        """Check if this is a 2xx status code."""
        return 200 <= self < 300


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HTTPStatus.UNSUPPORTED_MEDIA_TYPE: "Unsupported Media Type",
}
