"""
=============================================================================
WIRE PROTOCOL
=============================================================================

The file server speaks a small HTTP/1.0-flavoured, line-oriented protocol
with one non-standard verb:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    One connection, one request                       │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   DOWNLOAD                                                           │
    │      client ──► GET /path HTTP/1.1\r\n                               │
    │      server ──► HTTP/1.0 200 OK\r\n ... \r\n\r\n <body>              │
    │      server closes                                                   │
    │                                                                      │
    │   UPLOAD                                                             │
    │      client ──► UPLOAD name.txt\r\n <raw bytes ...>                  │
    │      client half-closes (FIN) ← this IS the end-of-file marker       │
    │      server stores the bytes, sends nothing, closes                  │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
MODULE COMPONENTS
=============================================================================

    request.py       RequestLine parsing (GET / UPLOAD / anything else)
    response.py      Response heads, the fixed 404 page
    status_codes.py  200 and 404, nothing more
    mime_types.py    Extension → MIME type → rendering verdict

=============================================================================
"""

from .request import Method, RequestLine, RequestParseError, parse_request_line, decode_line
from .response import (
    HTTPResponse,
    NOT_FOUND_BODY,
    not_found_response,
    html_head,
    attachment_head,
    format_http_date,
)
from .status_codes import HTTPStatus
from .mime_types import MimeVerdict, classify, get_mime_type, DEFAULT_MIME_TYPE

__all__ = [
    # Request
    "Method",
    "RequestLine",
    "RequestParseError",
    "parse_request_line",
    "decode_line",
    # Response
    "HTTPResponse",
    "NOT_FOUND_BODY",
    "not_found_response",
    "html_head",
    "attachment_head",
    "format_http_date",
    # Status
    "HTTPStatus",
    # MIME
    "MimeVerdict",
    "classify",
    "get_mime_type",
    "DEFAULT_MIME_TYPE",
]
