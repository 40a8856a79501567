"""
=============================================================================
MIME TYPE LOOKUP
=============================================================================

Maps file names to MIME types, and models the (media, extension) pair the
server renders into the Content-Type header.

=============================================================================
WHO DECIDES THE TYPE?
=============================================================================

The resolver never inspects file contents. It asks a lookup function:

    get_mime_type("logo.png")   → "image/png"
    get_mime_type("notes.txt")  → "text/plain"
    get_mime_type("photo.exe")  → "application/octet-stream"

The lookup is TOTAL: every name gets an answer, unknown extensions get
application/octet-stream. The resolver then only cares about the MEDIA half
of the answer:

    ┌──────────────────────────────┬──────────┬──────────────────────────┐
    │  MIME string                 │  media   │  served?                 │
    ├──────────────────────────────┼──────────┼──────────────────────────┤
    │  text/html                   │  text    │  yes                     │
    │  image/svg+xml               │  image   │  yes                     │
    │  application/json            │  appl... │  no → 415                │
    │  application/octet-stream    │  appl... │  no → 415                │
    └──────────────────────────────┴──────────┴──────────────────────────┘

Any callable with the same shape can be injected into the Resolver instead,
e.g. a wrapper around the stdlib mimetypes database.

=============================================================================
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional


# =============================================================================
# MIME TYPE DATABASE
# =============================================================================
#
# Maps file extensions (lowercase, with dot) to MIME types.
#
# =============================================================================

MIME_TYPES = {
    # -------------------------------------------------------------------------
    # TEXT TYPES
    # -------------------------------------------------------------------------
    ".html": "text/html",
    ".htm": "text/html",
    ".css": "text/css",
    ".js": "text/javascript",
    ".mjs": "text/javascript",
    ".txt": "text/plain",
    ".md": "text/markdown",
    ".csv": "text/csv",
    ".xml": "text/xml",
    ".json": "application/json",   # data, not text: refused with 415

    # -------------------------------------------------------------------------
    # IMAGE TYPES
    # -------------------------------------------------------------------------
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".ico": "image/x-icon",
    ".webp": "image/webp",
    ".bmp": "image/bmp",
    ".tif": "image/tiff",
    ".tiff": "image/tiff",

    # -------------------------------------------------------------------------
    # EVERYTHING ELSE (known, but never served)
    # -------------------------------------------------------------------------
    ".pdf": "application/pdf",
    ".zip": "application/zip",
    ".gz": "application/gzip",
    ".exe": "application/octet-stream",
    ".dll": "application/octet-stream",
    ".wasm": "application/wasm",
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".mp4": "video/mp4",
    ".webm": "video/webm",
    ".woff2": "font/woff2",
}

# "I don't know what this is, treat as binary"
DEFAULT_MIME_TYPE = "application/octet-stream"

# Media types the server is willing to send back
SERVABLE_MEDIA = frozenset({"text", "image"})

MimeLookup = Callable[[str], str]


@dataclass(frozen=True)
class ContentType:
    """
    A MIME type split into its two halves.

        ContentType(media="text", extension="html")  →  "text/html"

    Only used for rendering the Content-Type header and for the resolver's
    media check; the lookup function stays the authority on which type a
    file has.
    """

    media: str
    extension: str

    @classmethod
    def parse(cls, mime_type: str) -> "ContentType":
        """
        Split a MIME string such as "image/png; q=1" into its halves.

        Parameters after ';' are dropped. A string without a '/' is kept
        whole as the media with an empty extension, which is never servable.
        """
        essence = mime_type.split(";", 1)[0].strip().lower()
        media, _, extension = essence.partition("/")
        return cls(media=media, extension=extension)

    @property
    def is_servable(self) -> bool:
        """True for text/* and image/*."""
        return self.media in SERVABLE_MEDIA

    def __str__(self) -> str:
        if not self.extension:
            return self.media
        return f"{self.media}/{self.extension}"


HTML = ContentType("text", "html")


def get_mime_type(path: str | Path, default: Optional[str] = None) -> str:
    """
    Get the MIME type for a file based on its extension.

    Args:
        path: File path or name with extension
        default: MIME type for unknown extensions
                 (application/octet-stream if not specified)

    Returns:
        The MIME type string. Never raises, never returns an empty string.

    Examples:
        >>> get_mime_type("index.html")
        'text/html'

        >>> get_mime_type("LOGO.PNG")
        'image/png'

        >>> get_mime_type("photo.exe")
        'application/octet-stream'
    """
    if isinstance(path, str):
        path = Path(path)

    extension = path.suffix.lower()  # .PNG → .png
    return MIME_TYPES.get(extension, default or DEFAULT_MIME_TYPE)
