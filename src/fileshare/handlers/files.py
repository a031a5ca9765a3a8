"""
=============================================================================
FILE RESPONDER
=============================================================================

Sends one file back to the client. HOW it is sent depends on what the
MIME classifier thinks the file is:

    ┌─────────────────────────────────────────────────────────────────────┐
    │  TEXT  (text/*)                                                      │
    │  ─────────────────────────────────────────────────────────────────  │
    │  HTTP/1.0 200 OK                                                     │
    │  Content-Type: text/html                                             │
    │                                                                      │
    │  <html><h1>File Content</h1><body>                                   │
    │  <pre><b>                                                            │
    │  ...file lines, one at a time, line breaks kept...                  │
    │  </b></pre>                                                          │
    │  </body></html>                                                      │
    ├─────────────────────────────────────────────────────────────────────┤
    │  IMAGE  (image/*)                                                    │
    │  ─────────────────────────────────────────────────────────────────  │
    │  Same page shell, body is                                            │
    │  <img src="data:image/png;base64,iVBORw0..." alt="Image" />          │
    ├─────────────────────────────────────────────────────────────────────┤
    │  BINARY / UNKNOWN  (everything else)                                 │
    │  ─────────────────────────────────────────────────────────────────  │
    │  HTTP/1.0 200 OK                                                     │
    │  Content-Type: application/pdf                                       │
    │  Content-Length: 48213                                               │
    │  Content-Disposition: attachment; filename="report.pdf"              │
    │                                                                      │
    │  <raw bytes, streamed in chunk_size pieces>                          │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
MEMORY
=============================================================================

- Text is streamed line by line. Lines have no length limit, so a single
  enormous line is held in memory whole.
- Images are read ENTIRELY into memory and base64-encoded (≈ 4/3 the file
  size again). Images are assumed to fit in memory.
- Binary files are never buffered beyond one chunk.

=============================================================================
FAILURES
=============================================================================

The file is always opened BEFORE the response head is written, so a file
that can't be opened surfaces as an OSError while the connection is still
clean (the dispatcher answers 404).

Once the head is out there is no way back: an OSError while streaming
propagates, the dispatcher logs it and closes the connection, and the
client sees a truncated body. No retry.

=============================================================================
"""

import base64
import html
import logging
import os
from pathlib import Path

from ..core.connection import Connection
from ..http.mime_types import MimeVerdict, classify
from ..http.response import attachment_head, html_head
from ..http.status_codes import HTTPStatus


logger = logging.getLogger(__name__)


PAGE_OPEN = "<html><h1>File Content</h1><body>\r\n"
PAGE_CLOSE = "</body></html>\r\n"
TEXT_OPEN = "<pre><b>\r\n"
TEXT_CLOSE = "</b></pre>\r\n"

DEFAULT_CHUNK_SIZE = 32


class FileResponder:
    """
    Writes a single file to a connection using the encoding its MIME
    verdict calls for.

    Args:
        chunk_size: Read/write size for attachment streaming.
        server_name: Server header value on attachment responses.
        text_encoding: Encoding used to decode text files. Undecodable
                       bytes are replaced, never fatal.
    """

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        server_name: str = "FileShare/1.0",
        text_encoding: str = "utf-8",
    ):
        if chunk_size < 1:
            raise ValueError("chunk_size must be >= 1")
        self.chunk_size = chunk_size
        self.server_name = server_name
        self.text_encoding = text_encoding

    def respond(self, conn: Connection, path: Path) -> HTTPStatus:
        """
        Send path to the client.

        Raises:
            OSError: If the file can't be opened (nothing written yet) or
                     if reading/sending fails mid-stream (response
                     truncated).
        """
        verdict, mime_type = classify(path)
        logger.debug(f"[{conn.id}] {path.name}: {mime_type} → {verdict.value}")

        if verdict is MimeVerdict.TEXT:
            self.send_text(conn, path)
        elif verdict is MimeVerdict.IMAGE:
            self.send_image(conn, path, mime_type)
        else:
            self.send_attachment(conn, path, mime_type)

        return HTTPStatus.OK

    # =========================================================================
    # TEXT
    # =========================================================================

    def send_text(self, conn: Connection, path: Path) -> None:
        """
        Wrap the file in a <pre> block, one line at a time.

        newline="" keeps each line's own terminator (\\n or \\r\\n). A last
        line without one gets a \\n so the closing tags start on their own
        line. Content is HTML-escaped so it shows up exactly as written.
        """
        with open(path, "r", encoding=self.text_encoding, errors="replace", newline="") as f:
            conn.send(html_head(HTTPStatus.OK).head_bytes())
            conn.send((PAGE_OPEN + TEXT_OPEN).encode("utf-8"))

            for line in f:
                if not line.endswith("\n"):
                    line += "\n"
                conn.send(html.escape(line, quote=False).encode("utf-8"))

            conn.send((TEXT_CLOSE + PAGE_CLOSE).encode("utf-8"))

    # =========================================================================
    # IMAGE
    # =========================================================================

    def send_image(self, conn: Connection, path: Path, mime_type: str) -> None:
        """Embed the whole file as a base64 data URI inside an <img> tag."""
        data = path.read_bytes()
        encoded = base64.b64encode(data).decode("ascii")

        conn.send(html_head(HTTPStatus.OK).head_bytes())
        conn.send(
            (
                PAGE_OPEN
                + f'<img src="data:{mime_type};base64,{encoded}" alt="Image" />\r\n'
                + PAGE_CLOSE
            ).encode("ascii")
        )

    # =========================================================================
    # BINARY
    # =========================================================================

    def send_attachment(self, conn: Connection, path: Path, mime_type: str) -> int:
        """
        Stream the file as an attachment.

        Exactly Content-Length bytes follow the head. The size is taken
        once from fstat(); if the file grows meanwhile the extra bytes are
        not sent, if it shrinks the body ends short and that is logged.

        Returns:
            Number of body bytes written.
        """
        with open(path, "rb") as f:
            size = os.fstat(f.fileno()).st_size

            head = attachment_head(mime_type, size, path.name, self.server_name)
            conn.send(head.head_bytes())

            written = 0
            while written < size:
                chunk = f.read(min(self.chunk_size, size - written))
                if not chunk:
                    break
                conn.send(chunk)
                written += len(chunk)

        if written != size:
            logger.error(
                f"[{conn.id}] {path.name} shrank while sending: "
                f"announced {size} bytes, sent {written}"
            )

        return written
