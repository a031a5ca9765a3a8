"""
=============================================================================
MIME TYPE DETECTION AND CLASSIFICATION
=============================================================================

Maps file extensions to MIME types, and MIME types to the rendering
strategy the FileResponder uses.

=============================================================================
WHY CLASSIFY AT ALL?
=============================================================================

The server renders files three different ways depending on what they are:

    ┌─────────────────────────────────────────────────────────────────────┐
    │  MimeVerdict   │ MIME types         │ Rendering                     │
    ├─────────────────────────────────────────────────────────────────────┤
    │  TEXT          │ text/*             │ HTML page, <pre> block        │
    │  IMAGE         │ image/*            │ HTML page, base64 <img>       │
    │  BINARY        │ everything else    │ attachment download           │
    │  UNKNOWN       │ (not determinable) │ same as BINARY                │
    └─────────────────────────────────────────────────────────────────────┘

Classification NEVER fails. A file we can't type is served as
application/octet-stream, i.e. the client just saves the raw bytes. That
is the safest rendering: no decoding, no interpretation.

=============================================================================
LOOKUP ORDER
=============================================================================

    1. MIME_TYPES table below (predictable across platforms)
    2. mimetypes.guess_type() (the platform's registry, /etc/mime.types
       and friends), for the long tail of extensions
    3. None → UNKNOWN verdict, application/octet-stream

=============================================================================
"""

import mimetypes
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple


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
    ".txt": "text/plain",
    ".html": "text/html",
    ".htm": "text/html",
    ".css": "text/css",
    ".js": "text/javascript",
    ".md": "text/markdown",
    ".csv": "text/csv",
    ".log": "text/plain",

    # Source code is shown, never executed
    ".py": "text/x-python",
    ".java": "text/x-java-source",
    ".c": "text/x-c",
    ".cc": "text/x-c++",
    ".cpp": "text/x-c++",
    ".h": "text/x-c",
    ".sh": "text/x-shellscript",
    ".yaml": "text/yaml",
    ".yml": "text/yaml",
    ".toml": "text/x-toml",

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

    # -------------------------------------------------------------------------
    # BINARY / DOWNLOAD TYPES
    # -------------------------------------------------------------------------
    ".json": "application/json",
    ".xml": "application/xml",
    ".pdf": "application/pdf",
    ".zip": "application/zip",
    ".tar": "application/x-tar",
    ".gz": "application/gzip",
    ".7z": "application/x-7z-compressed",
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".mp4": "video/mp4",
    ".webm": "video/webm",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".wasm": "application/wasm",
}

# "I don't know what this is, treat as binary"
DEFAULT_MIME_TYPE = "application/octet-stream"


class MimeVerdict(Enum):
    """Content category that selects a FileResponder branch."""

    TEXT = "text"
    IMAGE = "image"
    BINARY = "binary"
    UNKNOWN = "unknown"


def get_mime_type(path: str | Path) -> Optional[str]:
    """
    Get the MIME type for a file based on its extension.

    Args:
        path: File path or name with extension

    Returns:
        The MIME type string, or None if it cannot be determined.

    Examples:
        >>> get_mime_type("notes.TXT")
        'text/plain'
        >>> get_mime_type("/srv/cat.png")
        'image/png'
        >>> get_mime_type("Makefile") is None
        True
    """
    if isinstance(path, str):
        path = Path(path)

    extension = path.suffix.lower()  # .PNG → .png
    if extension in MIME_TYPES:
        return MIME_TYPES[extension]

    guessed, _ = mimetypes.guess_type(path.name)
    return guessed


def verdict_for(mime_type: Optional[str]) -> MimeVerdict:
    """Map a MIME type (or None) onto a MimeVerdict."""
    if mime_type is None:
        return MimeVerdict.UNKNOWN
    if mime_type.startswith("text/"):
        return MimeVerdict.TEXT
    if mime_type.startswith("image/"):
        return MimeVerdict.IMAGE
    return MimeVerdict.BINARY


def classify(path: str | Path) -> Tuple[MimeVerdict, str]:
    """
    Classify a file for rendering.

    Returns:
        (verdict, mime_type). mime_type is always a usable Content-Type
        value: DEFAULT_MIME_TYPE when the verdict is UNKNOWN.

    Examples:
        >>> classify("a.txt")
        (<MimeVerdict.TEXT: 'text'>, 'text/plain')
        >>> classify("blob")
        (<MimeVerdict.UNKNOWN: 'unknown'>, 'application/octet-stream')
    """
    mime_type = get_mime_type(path)
    return verdict_for(mime_type), mime_type or DEFAULT_MIME_TYPE
