"""
=============================================================================
REQUEST LINE PARSING
=============================================================================

Every connection carries exactly ONE request line. There are no headers
worth reading and no request bodies for GET, so the whole "request" is
this single line:

    GET /docs/readme.txt HTTP/1.1\r\n
    ─┬─ ────────┬─────── ────┬───
     │          │            │
   Method     Target      Version (opaque, never validated)

    UPLOAD note.txt\r\n
    ──┬─── ───┬────
      │       │
    Method  File name (one token, taken literally)
    <raw file bytes follow immediately, until the peer half-closes>

=============================================================================
WELL-FORMEDNESS
=============================================================================

    ┌──────────┬──────────────────────────────┬────────────────────────┐
    │ Method   │ Shape                        │ Otherwise              │
    ├──────────┼──────────────────────────────┼────────────────────────┤
    │ GET      │ exactly 3 whitespace tokens  │ RequestParseError      │
    │ UPLOAD   │ exactly 2 whitespace tokens  │ RequestParseError      │
    │ other    │ -                            │ RequestParseError      │
    └──────────┴──────────────────────────────┴────────────────────────┘

Keywords are case-sensitive. A malformed line is never partially acted
upon: parse_request_line() either returns a complete RequestLine or raises.

The GET target is URL-decoded here (browsers send "%20" for spaces) and any
query string is dropped. Containment to the server root is NOT checked
here; that needs the filesystem and happens in the dispatcher.

=============================================================================
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional
from urllib.parse import unquote


class RequestParseError(ValueError):
    """
    Raised when a request line is missing or malformed.

    The dispatcher turns every RequestParseError into a 404.
    """


class Method(Enum):
    """Request methods understood by the server."""

    GET = "GET"
    UPLOAD = "UPLOAD"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def from_token(cls, token: str) -> "Method":
        try:
            return cls(token)
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True)
class RequestLine:
    """
    A parsed request line.

    Attributes:
        method: GET or UPLOAD (UNKNOWN never leaves the parser).
        target: URL-decoded path for GET, the single file name token for UPLOAD.
        rest: Protocol version for GET, empty for UPLOAD.
        raw: The original line, for logging.
    """

    method: Method
    target: str
    rest: str = ""
    raw: str = ""

    @property
    def is_upload(self) -> bool:
        return self.method is Method.UPLOAD


GET_TOKEN_COUNT = 3
UPLOAD_TOKEN_COUNT = 2


def decode_line(data: Optional[bytes]) -> Optional[str]:
    """
    Decode a raw request line.

    Strips the trailing LF and an optional CR before it. Undecodable bytes
    are replaced rather than rejected; such a line will simply fail to
    match anything downstream.
    """
    if data is None:
        return None
    if data.endswith(b"\n"):
        data = data[:-1]
    if data.endswith(b"\r"):
        data = data[:-1]
    return data.decode("utf-8", errors="replace")


def parse_request_line(line: Optional[str]) -> RequestLine:
    """
    Parse a request line into a RequestLine.

    Args:
        line: The decoded request line without its terminator, or None if
              the peer closed the connection before sending one.

    Returns:
        The parsed RequestLine.

    Raises:
        RequestParseError: If the line is absent, empty, uses an unknown
                           method, or has the wrong shape for its method.

    Examples:
        >>> parse_request_line("GET /a%20b.txt HTTP/1.0").target
        '/a b.txt'
        >>> parse_request_line("UPLOAD notes.txt").target
        'notes.txt'
    """
    if line is None:
        raise RequestParseError("Connection closed before a request line was sent")

    if not line.strip():
        raise RequestParseError("Empty request line")

    method = Method.from_token(line.split(None, 1)[0])

    if method is Method.GET:
        return _parse_get(line)

    if method is Method.UPLOAD:
        return _parse_upload(line)

    raise RequestParseError(f"Unknown method in request line: {line!r}")


def _parse_get(line: str) -> RequestLine:
    parts = line.split()
    if len(parts) != GET_TOKEN_COUNT:
        raise RequestParseError(
            f"GET request line must have {GET_TOKEN_COUNT} tokens, got {len(parts)}"
        )

    _, uri, version = parts

    # "/docs/a%20b.txt?x=1" → "/docs/a b.txt". No URL parsing: "//x" is a
    # path, not a netloc, and ";" is an ordinary file name character.
    path = unquote(uri.partition("?")[0]) or "/"

    return RequestLine(method=Method.GET, target=path, rest=version, raw=line)


def _parse_upload(line: str) -> RequestLine:
    parts = line.split()
    if len(parts) != UPLOAD_TOKEN_COUNT:
        raise RequestParseError(
            f"UPLOAD request line must have {UPLOAD_TOKEN_COUNT} tokens, got {len(parts)}"
        )

    return RequestLine(method=Method.UPLOAD, target=parts[1], raw=line)
