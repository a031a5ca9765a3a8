"""
=============================================================================
HTTP RESPONSE SERIALIZATION
=============================================================================

Responses are HTTP/1.0 and the connection always closes afterwards, so the
body needs no length framing: the client reads until EOF.

    HTTP/1.0 200 OK\r\n                 ← Status line
    Content-Type: text/html\r\n         ← Headers (insertion order kept)
    \r\n                                ← Empty line (separator)
    <html>...                           ← Body, possibly streamed later

Unlike a general-purpose server we do NOT auto-add Content-Length. Only the
attachment download sets it, because that is the one branch where the
client saves bytes to disk and wants to know the size up front. The HTML
branches stream their bodies line by line and the length is unknown when
the head is written.

That is why HTTPResponse separates head_bytes() from the body: handlers
write the head once, then stream however many body chunks they like.

=============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Union

from .status_codes import HTTPStatus


HTTP_VERSION = "HTTP/1.0"

NOT_FOUND_BODY = "<html><body><h1>404: Page Not Found</h1></body></html>"


@dataclass
class HTTPResponse:
    """
    A response head plus an optional in-memory body.

    Handlers that stream (FileResponder, DirectoryLister) only use the head
    and write the body themselves. Small fixed responses (404) carry their
    body here and are sent in one go with to_bytes().
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = HTTP_VERSION

    @property
    def status_line(self) -> str:
        """
        Format: HTTP-VERSION SP STATUS-CODE SP REASON-PHRASE
        Example: "HTTP/1.0 404 Not Found"
        """
        return f"{self.version} {int(self.status)} {self.status.phrase}"

    def set_body(self, body: Union[str, bytes]) -> "HTTPResponse":
        """Set the body, encoding strings as UTF-8."""
        self.body = body.encode("utf-8") if isinstance(body, str) else body
        return self

    def head_bytes(self) -> bytes:
        """Status line, headers and the blank separator line."""
        lines = [self.status_line]
        for name, value in self.headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")
        return ("\r\n".join(lines) + "\r\n").encode("utf-8")

    def to_bytes(self) -> bytes:
        """Complete response: head followed by the in-memory body."""
        return self.head_bytes() + self.body


def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an HTTP-date (RFC 7231).

        Wed, 15 Jun 2024 10:00:00 GMT
    """
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
    dt = dt.astimezone(timezone.utc)
    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


def html_head(status: HTTPStatus = HTTPStatus.OK) -> HTTPResponse:
    """A response head announcing an HTML body."""
    return HTTPResponse(status=status, headers={"Content-Type": "text/html"})


def not_found_response() -> HTTPResponse:
    """
    The fixed 404 page.

    Every failure to match (bad request line, unknown method, missing
    file, path outside the root) produces exactly these bytes.
    """
    return html_head(HTTPStatus.NOT_FOUND).set_body(NOT_FOUND_BODY + "\r\n")


def attachment_head(
    mime_type: str,
    size: int,
    filename: str,
    server_name: str = "FileShare/1.0",
) -> HTTPResponse:
    """
    Response head for a binary download saved to disk by the client.

    Content-Length is the exact file size; the caller must stream exactly
    that many bytes after the head.
    """
    # Quotes and backslashes would break out of the quoted-string.
    safe_name = filename.replace("\\", "\\\\").replace('"', '\\"')
    return HTTPResponse(
        status=HTTPStatus.OK,
        headers={
            "Server": server_name,
            "Date": format_http_date(datetime.now(timezone.utc)),
            "Content-Type": mime_type,
            "Content-Length": str(size),
            "Content-Disposition": f'attachment; filename="{safe_name}"',
        },
    )
